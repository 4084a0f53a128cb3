"""
Render Engine.

Maps a GenerationResult onto the displayed state of the preview. The mapping
itself (``build_render_state``) is a pure function with no knowledge of the
network or of any presentation technology; ``render`` hands the state to a
view binding, which replaces whatever it showed before.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from poststudio.models import GenerationResult

if TYPE_CHECKING:
    from poststudio.view import View

DEFAULT_MODEL_LABEL = "OpenAI"
CACHE_MESSAGE = "Loaded from cache."
MODERATION_FLAGGED = "Moderation: flagged (suggested post withheld)"
MODERATION_CLEAR = "Moderation: clear"


@dataclass(frozen=True)
class Card:
    """One source item as displayed in the feed."""

    display_name: str
    handle: str
    body: str

    @property
    def heading(self) -> str:
        return f"{self.display_name} ({self.handle})"


@dataclass(frozen=True)
class RenderState:
    """Everything the preview displays for one result."""

    summary_text: str
    post_text: str
    keywords: tuple[str, ...]
    bullets: tuple[str, ...]
    cards: tuple[Card, ...]
    count_label: str
    stat_count: str
    stat_model: str
    moderation_text: str
    cache_hit: bool = False


def build_render_state(result: Union[GenerationResult, Mapping[str, Any]]) -> RenderState:
    """Compute the displayed state for *result*.

    Args:
        result: A GenerationResult, or a mapping in the wire format.

    Returns:
        A RenderState; absent fields render as their empty defaults.
    """
    if not isinstance(result, GenerationResult):
        result = GenerationResult.model_validate(result)

    summary = result.summary
    cards = tuple(
        Card(
            display_name=item.author_name,
            handle=f"@{item.author_username}",
            body=item.text,
        )
        for item in result.items
    )
    count = len(cards)

    return RenderState(
        summary_text=summary.summary,
        post_text=summary.suggested_post,
        keywords=tuple(summary.keywords),
        bullets=tuple(summary.bullets),
        cards=cards,
        count_label=f"{count} items loaded",
        stat_count=str(count),
        stat_model=result.model or DEFAULT_MODEL_LABEL,
        moderation_text=MODERATION_FLAGGED if result.moderation.flagged else MODERATION_CLEAR,
        cache_hit=result.cache,
    )


def render(result: Union[GenerationResult, Mapping[str, Any]], view: View) -> RenderState:
    """Render *result* into *view* and return the state that was applied.

    A cache hit overrides the current status line with the cache message.
    """
    state = build_render_state(result)
    view.apply(state)
    if state.cache_hit:
        view.set_status(CACHE_MESSAGE)
    return state
