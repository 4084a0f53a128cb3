"""
Stream Session Controller.

Owns the lifecycle of at most one streaming session. A session moves through
a small state machine:

    IDLE ──generate──▶ CONNECTING ──status──▶ STREAMING ──status──▶ STREAMING
                           │                      │
                           └──result / error──────┴──▶ TERMINAL

Transitions are looked up in ``_TRANSITIONS``; an event with no entry for the
session's current state (anything after a terminal event, or anything from a
superseded session) is ignored. Opening a new session closes the previous one
first, so there is never more than one open connection.

All handling runs on the single event-loop thread: ``generate`` returns right
after opening the connection and events arrive later through listeners.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Any, Optional, Protocol
from urllib.parse import quote

from pydantic import ValidationError

from poststudio.errors import MalformedResultError, StreamError
from poststudio.models import GenerationResult
from poststudio.render import RenderState, render
from poststudio.sample import sample_result
from poststudio.transport import open_event_source
from poststudio.view import Tone, View

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

STREAM_PATH = "/api/generate-sse"
DEFAULT_BASE_URL = "http://localhost:8080"

EMPTY_TOPIC_MESSAGE = "Please enter a topic."
CONNECTING_MESSAGE = "Connecting to live stream..."
WORKING_MESSAGE = "Working..."
DONE_MESSAGE = "Done."
STREAM_ERROR_MESSAGE = "Stream error"
MALFORMED_RESULT_MESSAGE = "Malformed result payload."
TIMEOUT_MESSAGE = "Stream timed out."
PREVIEW_MESSAGE = "Preview loaded."
COPIED_MESSAGE = "Copied!"


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    TERMINAL = "terminal"


class Connection(Protocol):
    def close(self) -> None: ...


#: ``connect(url, listeners)`` opens a stream and returns its handle.
ConnectFactory = Callable[[str, Mapping[str, Callable[[str], None]]], Connection]
#: ``schedule(delay, callback)`` returns a handle with ``cancel()``.
Scheduler = Callable[[float, Callable[[], None]], Any]


_TRANSITIONS: dict[tuple[SessionState, str], SessionState] = {
    (SessionState.CONNECTING, "status"): SessionState.STREAMING,
    (SessionState.STREAMING, "status"): SessionState.STREAMING,
    (SessionState.CONNECTING, "result"): SessionState.TERMINAL,
    (SessionState.STREAMING, "result"): SessionState.TERMINAL,
    (SessionState.CONNECTING, "error"): SessionState.TERMINAL,
    (SessionState.STREAMING, "error"): SessionState.TERMINAL,
}

_LIVE_STATES = frozenset({SessionState.CONNECTING, SessionState.STREAMING})


@dataclass(eq=False)
class StreamSession:
    """One generate-and-render cycle backed by one connection."""

    topic: str
    url: str
    state: SessionState = SessionState.CONNECTING
    handle: Optional[Connection] = None
    outcome: Optional[str] = None  # "result" | "error" | "superseded"
    result: Optional[GenerationResult] = None
    error: Optional[StreamError] = None
    timer: Any = None

    @property
    def live(self) -> bool:
        return self.state in _LIVE_STATES


def parse_result(data: str) -> GenerationResult:
    """Parse a ``result`` event payload.

    Raises:
        MalformedResultError: If *data* is not a JSON GenerationResult.
    """
    try:
        return GenerationResult.model_validate_json(data)
    except ValidationError as exc:
        raise MalformedResultError(MALFORMED_RESULT_MESSAGE) from exc


def _call_later(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


class StreamSessionController:
    """Drives generate requests against the event-stream endpoint.

    Args:
        view: UI binding receiving status, trigger state and renders.
        base_url: Backend origin, e.g. ``http://localhost:8080``.
        connect: Connection factory; defaults to the httpx EventSource.
        scheduler: Timer factory; defaults to the running loop's ``call_later``.
        stream_timeout: Seconds to wait for a terminal event. ``None`` or 0
            waits forever.
        copy_ack_seconds: How long the "Copied!" acknowledgement stays up.
    """

    def __init__(
        self,
        view: View,
        base_url: str = DEFAULT_BASE_URL,
        connect: ConnectFactory = open_event_source,
        scheduler: Optional[Scheduler] = None,
        stream_timeout: Optional[float] = None,
        copy_ack_seconds: float = 1.5,
    ) -> None:
        self.view = view
        self.base_url = base_url.rstrip("/")
        self.stream_timeout = stream_timeout or None
        self.copy_ack_seconds = copy_ack_seconds
        self._connect = connect
        self._schedule = scheduler or _call_later
        self._session: Optional[StreamSession] = None
        self._copy_timer: Any = None
        self._terminal_listeners: list[Callable[[StreamSession], None]] = []
        self._handlers: dict[str, Callable[[StreamSession, str], None]] = {
            "status": self._on_status,
            "result": self._on_result,
            "error": self._on_error,
        }

    @classmethod
    def from_settings(cls, view: View, settings: Settings, **kwargs: Any) -> StreamSessionController:
        return cls(
            view,
            base_url=settings.base_url,
            stream_timeout=settings.stream_timeout,
            copy_ack_seconds=settings.copy_ack_seconds,
            **kwargs,
        )

    # ── State ──────────────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        """State of the most recent session, IDLE before the first one."""
        return self._session.state if self._session is not None else SessionState.IDLE

    @property
    def active_session(self) -> Optional[StreamSession]:
        """The live session, or None once it has ended."""
        session = self._session
        return session if session is not None and session.live else None

    def add_terminal_listener(self, callback: Callable[[StreamSession], None]) -> None:
        """Call *callback* with each session when it ends."""
        self._terminal_listeners.append(callback)

    def stream_url(self, topic: str) -> str:
        return f"{self.base_url}{STREAM_PATH}?topic={quote(topic, safe='')}"

    # ── Actions ────────────────────────────────────────────────────────────

    def generate(self, topic: str) -> Optional[StreamSession]:
        """Start a session for *topic*.

        Returns the new session, or None when the topic is blank (the
        validation message is shown and nothing else changes).
        """
        topic = (topic or "").strip()
        if not topic:
            self.view.set_status(EMPTY_TOPIC_MESSAGE, Tone.ERROR)
            return None

        self.view.set_trigger_enabled(False)
        self.view.set_status(CONNECTING_MESSAGE)

        previous = self.active_session
        if previous is not None:
            self._supersede(previous)

        session = StreamSession(topic=topic, url=self.stream_url(topic))
        self._session = session
        listeners = {name: partial(self._on_event, session, name) for name in self._handlers}

        logger.info("Opening stream for topic=%r", topic)
        try:
            handle = self._connect(session.url, listeners)
        except Exception as exc:
            logger.exception("Could not open stream for topic=%r", topic)
            self._on_event(session, "error", str(exc))
            return session

        session.handle = handle
        if not session.live:
            # Terminal event delivered while connecting.
            handle.close()
            return session

        if self.stream_timeout:
            session.timer = self._schedule(self.stream_timeout, partial(self._on_timeout, session))
        return session

    def preview(self) -> RenderState:
        """Render the sample payload without touching the network or the session."""
        state = render(sample_result(), self.view)
        self.view.set_status(PREVIEW_MESSAGE)
        return state

    def copy_post(self) -> None:
        """Copy the (possibly user-edited) post text and acknowledge briefly."""
        self.view.copy_to_clipboard(self.view.post_text())
        self.view.set_copy_status(COPIED_MESSAGE)
        if self._copy_timer is not None:
            self._copy_timer.cancel()
        self._copy_timer = self._schedule(self.copy_ack_seconds, self._clear_copy_status)

    def _clear_copy_status(self) -> None:
        self._copy_timer = None
        self.view.set_copy_status("")

    # ── Event handling ─────────────────────────────────────────────────────

    def _on_event(self, session: StreamSession, event_type: str, data: str) -> None:
        next_state = _TRANSITIONS.get((session.state, event_type))
        if next_state is None:
            logger.debug(
                "Ignoring %r event for topic=%r in state %s",
                event_type, session.topic, session.state.value,
            )
            return
        session.state = next_state
        self._handlers[event_type](session, data)

    def _on_status(self, session: StreamSession, data: str) -> None:
        self.view.set_status(data or WORKING_MESSAGE)

    def _on_result(self, session: StreamSession, data: str) -> None:
        try:
            result = parse_result(data)
        except MalformedResultError as exc:
            logger.warning("Malformed result for topic=%r: %s", session.topic, exc.__cause__)
            self._fail(session, exc)
            return

        session.result = result
        render(result, self.view)
        if not result.cache:
            self.view.set_status(DONE_MESSAGE)
        self._finish(session, "result")

    def _on_error(self, session: StreamSession, data: str) -> None:
        self._fail(session, StreamError(data or STREAM_ERROR_MESSAGE))

    def _on_timeout(self, session: StreamSession) -> None:
        session.timer = None
        self._on_event(session, "error", TIMEOUT_MESSAGE)

    # ── Lifecycle ──────────────────────────────────────────────────────────

    def _fail(self, session: StreamSession, exc: StreamError) -> None:
        session.error = exc
        self.view.set_status(str(exc), Tone.ERROR)
        self._finish(session, "error")

    def _finish(self, session: StreamSession, outcome: str) -> None:
        session.outcome = outcome
        self._release(session)
        self.view.set_trigger_enabled(True)
        logger.info("Stream for topic=%r ended with %s", session.topic, outcome)
        self._notify(session)

    def _supersede(self, session: StreamSession) -> None:
        session.state = SessionState.TERMINAL
        session.outcome = "superseded"
        self._release(session)
        logger.info("Superseded stream for topic=%r", session.topic)
        self._notify(session)

    def _release(self, session: StreamSession) -> None:
        if session.timer is not None:
            session.timer.cancel()
            session.timer = None
        if session.handle is not None:
            session.handle.close()

    def _notify(self, session: StreamSession) -> None:
        for callback in list(self._terminal_listeners):
            callback(session)
