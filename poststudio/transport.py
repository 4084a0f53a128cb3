"""
httpx-backed EventSource.

Mirrors what a browser EventSource does for this client: one GET kept open,
named events delivered to registered listeners in arrival order, and every
connection-level failure reported as an ``error`` event so the listener side
has a single failure path. There is no automatic reconnect.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable, Mapping
from typing import Optional

import httpx

from poststudio.errors import TransportError
from poststudio.events import SSEDecoder

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]

DEFAULT_CONNECT_TIMEOUT = 10.0


class EventSource:
    """A single streaming connection delivering named events.

    Args:
        url: Absolute URL of the event stream.
        client: Optional ``httpx.AsyncClient`` to use; one is created (and
            closed) per connection otherwise.
        connect_timeout: Seconds allowed for connecting. Reads never time out.
    """

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        self.url = url
        self._client = client
        self._timeout = httpx.Timeout(connect_timeout, read=None)
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def add_listener(self, event: str, callback: Listener) -> None:
        self._listeners[event].append(callback)

    def open(self) -> None:
        """Start reading on the running event loop and return immediately."""
        if self._task is not None:
            raise RuntimeError("EventSource already opened")
        self._task = asyncio.get_running_loop().create_task(self._run())

    def close(self) -> None:
        """Stop delivering events and drop the connection. Idempotent."""
        if self._closed:
            return
        self._closed = True
        task = self._task
        if task is None or task.done():
            return
        try:
            running = asyncio.current_task()
        except RuntimeError:
            running = None
        # Closing from inside a listener: the read loop exits on its own.
        if task is not running:
            task.cancel()

    def _dispatch(self, event: str, data: str) -> None:
        if self._closed:
            return
        listeners = self._listeners.get(event)
        if not listeners:
            logger.debug("No listener for %r event on %s", event, self.url)
            return
        for callback in list(listeners):
            callback(data)
            if self._closed:
                return

    def _fail(self, exc: TransportError) -> None:
        logger.warning("Event stream %s failed: %s", self.url, exc)
        self._dispatch("error", str(exc))

    async def _run(self) -> None:
        try:
            if self._client is not None:
                await self._read(self._client)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    await self._read(client)
        except asyncio.CancelledError:
            raise
        except httpx.HTTPError as exc:
            self._fail(TransportError(str(exc) or exc.__class__.__name__))
            return

        if not self._closed:
            # Server hung up without the client closing first.
            self._fail(TransportError(""))

    async def _read(self, client: httpx.AsyncClient) -> None:
        headers = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
        async with client.stream("GET", self.url, headers=headers) as response:
            if response.status_code != 200:
                self._fail(TransportError(f"HTTP {response.status_code}"))
                self._closed = True
                return

            decoder = SSEDecoder()
            async for line in response.aiter_lines():
                event = decoder.feed(line)
                if event is not None:
                    self._dispatch(event.event, event.data)
                if self._closed:
                    return
            # A final block may be left without its terminating blank line.
            event = decoder.feed("")
            if event is not None:
                self._dispatch(event.event, event.data)


def open_event_source(url: str, listeners: Mapping[str, Listener]) -> EventSource:
    """Create an EventSource with *listeners* registered and open it."""
    source = EventSource(url)
    for event, callback in listeners.items():
        source.add_listener(event, callback)
    source.open()
    return source
