"""
Event-stream framing.

``SSEDecoder`` turns the lines of a ``text/event-stream`` body into
``ServerEvent`` objects; ``encode_event`` frames one event for the server side.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ServerEvent:
    """One dispatched server-sent event."""

    event: str
    data: str


class SSEDecoder:
    """Incremental line decoder for the event-stream format.

    Feed it one line at a time (without the trailing newline). A blank line
    dispatches the buffered event; blocks that carried no ``data`` lines are
    dropped, and an unnamed event is reported as ``message``.
    """

    def __init__(self) -> None:
        self._event = ""
        self._data: list[str] = []

    def feed(self, line: str) -> Optional[ServerEvent]:
        line = line.rstrip("\r\n")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        # "id", "retry" and unknown fields are ignored
        return None

    def _dispatch(self) -> Optional[ServerEvent]:
        event, data = self._event, self._data
        self._event, self._data = "", []
        if not data:
            return None
        return ServerEvent(event=event or "message", data="\n".join(data))


def encode_event(event: str, data: str) -> str:
    """Frame *data* as a named event, one ``data:`` line per payload line."""
    lines = data.split("\n") if data else [""]
    body = "".join(f"data: {line}\n" for line in lines)
    return f"event: {event}\n{body}\n"
