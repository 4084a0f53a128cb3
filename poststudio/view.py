"""
UI bindings.

A view is whatever displays the preview: it receives status messages, the
enabled flag of the generate control and complete RenderState snapshots.
``MemoryView`` keeps everything in attributes (headless use and tests);
``ConsoleView`` writes to a terminal.
"""

from __future__ import annotations

import base64
import sys
from enum import Enum
from typing import Optional, Protocol, TextIO

from poststudio.render import RenderState


class Tone(str, Enum):
    """Visual tone of the status line."""

    INFO = "info"
    ERROR = "error"


class View(Protocol):
    """Operations the controller and the Render Engine need from a UI."""

    def set_status(self, text: str, tone: Tone = Tone.INFO) -> None: ...

    def set_trigger_enabled(self, enabled: bool) -> None: ...

    def apply(self, state: RenderState) -> None: ...

    def post_text(self) -> str: ...

    def copy_to_clipboard(self, text: str) -> None: ...

    def set_copy_status(self, text: str) -> None: ...


class MemoryView:
    """Headless view that holds the displayed state in plain attributes."""

    def __init__(self) -> None:
        self.status: str = ""
        self.tone: Tone = Tone.INFO
        self.status_history: list[tuple[str, Tone]] = []
        self.trigger_enabled: bool = True
        self.state: Optional[RenderState] = None
        self.apply_count: int = 0
        self.post: str = ""
        self.clipboard: Optional[str] = None
        self.copy_status: str = ""

    def set_status(self, text: str, tone: Tone = Tone.INFO) -> None:
        self.status = text
        self.tone = tone
        self.status_history.append((text, tone))

    def set_trigger_enabled(self, enabled: bool) -> None:
        self.trigger_enabled = enabled

    def apply(self, state: RenderState) -> None:
        self.state = state
        self.post = state.post_text
        self.apply_count += 1

    def edit_post(self, text: str) -> None:
        """Simulate the user editing the suggested-post field."""
        self.post = text

    def post_text(self) -> str:
        return self.post

    def copy_to_clipboard(self, text: str) -> None:
        self.clipboard = text

    def set_copy_status(self, text: str) -> None:
        self.copy_status = text


class ConsoleView:
    """Terminal view: prints status changes and rendered previews.

    Clipboard requests are sent as OSC 52 escape sequences, which most
    terminal emulators honour and the rest silently ignore.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream or sys.stdout
        self.trigger_enabled = True
        self._post = ""

    def _write(self, text: str = "") -> None:
        self.stream.write(text + "\n")
        self.stream.flush()

    def set_status(self, text: str, tone: Tone = Tone.INFO) -> None:
        prefix = "!! " if tone is Tone.ERROR else "-- "
        self._write(prefix + text)

    def set_trigger_enabled(self, enabled: bool) -> None:
        self.trigger_enabled = enabled

    def apply(self, state: RenderState) -> None:
        self._post = state.post_text
        self._write()
        self._write(f"[{state.stat_model}] {state.count_label}")
        self._write(state.moderation_text)
        self._write()
        self._write("Summary:")
        self._write(state.summary_text)
        if state.keywords:
            self._write()
            self._write("Keywords: " + " ".join(f"[{k}]" for k in state.keywords))
        if state.bullets:
            self._write()
            for bullet in state.bullets:
                self._write(f"  • {bullet}")
        self._write()
        self._write("Suggested Post:")
        self._write(state.post_text)
        self._write()
        for i, card in enumerate(state.cards, start=1):
            self._write(f"{i}. {card.heading}")
            self._write("   " + " ".join(card.body.split()))
        self._write()

    def post_text(self) -> str:
        return self._post

    def copy_to_clipboard(self, text: str) -> None:
        encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
        self.stream.write(f"\033]52;c;{encoded}\a")
        self.stream.flush()

    def set_copy_status(self, text: str) -> None:
        if text:
            self._write(text)
