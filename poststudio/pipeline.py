"""
Backend generation job.

Flow
────
1. stream(topic)
     → cache hit: one "status" then the cached "result" with cache=true
     → otherwise: fetch items, summarise, moderate the suggested post,
       yielding a "status" before each step and the "result" at the end
     → any failure becomes a single "error" event carrying its message

2. run(topic)
     → the same job without progress events, for the JSON endpoint
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from poststudio.cache import TTLCache
from poststudio.errors import SourceError, TopicValidationError
from poststudio.models import GenerationResult
from poststudio.moderation import OpenAIModerator
from poststudio.sources import XRecentSearch
from poststudio.summarizer import ClaudeSummarizer, KeywordSummarizer, Summarizer

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

CACHE_STATUS = "Loaded from cache."
FETCHING_STATUS = "Fetching recent items..."
SUMMARIZING_STATUS = "Summarizing..."
MODERATING_STATUS = "Running moderation..."


class GenerationPipeline:
    """Produces GenerationResults for topics, caching them per topic."""

    def __init__(
        self,
        settings: Settings,
        source: Optional[XRecentSearch] = None,
        summarizer: Optional[Summarizer] = None,
        moderator: Optional[OpenAIModerator] = None,
        cache: Optional[TTLCache] = None,
    ) -> None:
        self.settings = settings
        self._source = source
        self.summarizer = summarizer or self._default_summarizer(settings)
        self.moderator = moderator or OpenAIModerator(
            settings.openai_api_key,
            base_url=settings.openai_api_base_url,
            model=settings.moderation_model,
        )
        self.cache = cache or TTLCache(settings.cache_ttl_seconds)

    @staticmethod
    def _default_summarizer(settings: Settings) -> Summarizer:
        if settings.anthropic_api_key:
            return ClaudeSummarizer(settings)
        logger.info("ANTHROPIC_API_KEY not set; using keyword summariser")
        return KeywordSummarizer()

    @property
    def source(self) -> XRecentSearch:
        if self._source is None:
            self._source = XRecentSearch(
                self.settings.x_bearer_token,
                base_url=self.settings.x_api_base_url,
            )
        return self._source

    # ── Streaming ──────────────────────────────────────────────────────────

    def stream(self, topic: str) -> Generator[tuple[str, str], None, None]:
        """Yield ``(event, data)`` pairs for one generation session.

        Exactly one terminal event (``result`` or ``error``) is yielded last.
        """
        try:
            topic = _require_topic(topic)
            self._check_configured()

            cached = self.cache.get(topic)
            if cached is not None:
                yield ("status", CACHE_STATUS)
                yield ("result", cached.model_copy(update={"cache": True}).to_wire())
                return

            result: Optional[GenerationResult] = None
            for status, outcome in self._steps(topic):
                if status:
                    yield ("status", status)
                result = outcome
            yield ("result", result.to_wire())

        except Exception as exc:
            logger.exception("Generation stream error for topic=%r", topic)
            yield ("error", str(exc))

    def run(self, topic: str) -> GenerationResult:
        """Blocking generation call.

        Raises:
            TopicValidationError: If topic is blank.
            SourceError: If the item source is not configured or fails.
        """
        topic = _require_topic(topic)
        self._check_configured()

        cached = self.cache.get(topic)
        if cached is not None:
            return cached.model_copy(update={"cache": True})

        result: Optional[GenerationResult] = None
        for _, outcome in self._steps(topic):
            result = outcome
        return result

    # ── Steps ──────────────────────────────────────────────────────────────

    def _steps(self, topic: str) -> Generator[tuple[str, Optional[GenerationResult]], None, None]:
        yield (FETCHING_STATUS, None)
        items = self.source.fetch_recent_unique_authors(topic, self.settings.max_items)

        yield (SUMMARIZING_STATUS, None)
        summary = self.summarizer.summarize(topic, items)

        yield (MODERATING_STATUS, None)
        moderation = self.moderator.moderate(summary.suggested_post)
        if moderation.flagged:
            logger.info("Suggested post withheld for topic=%r", topic)
            summary = summary.model_copy(update={"suggested_post": ""})

        result = GenerationResult(
            topic=topic,
            generated_at=datetime.now(timezone.utc).isoformat(),
            model=self.summarizer.model,
            cache=False,
            moderation=moderation,
            summary=summary,
            items=items,
        )
        self.cache.put(topic, result)
        yield ("", result)

    def _check_configured(self) -> None:
        missing = self.settings.missing_backend_keys()
        if missing:
            raise SourceError(f"Missing {', '.join(missing)}")


def _require_topic(topic: str) -> str:
    topic = (topic or "").strip()
    if not topic:
        raise TopicValidationError("Topic is required")
    return topic
