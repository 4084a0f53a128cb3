"""Summarisation of fetched items.

Two summarisers share the ``summarize(topic, items) -> SummaryResult``
interface:

1. **Claude** — ``ClaudeSummarizer``:
   Structured-output call returning summary, keywords, bullets and an
   original suggested post grounded in the items.

2. **Keyword heuristic** — ``KeywordSummarizer``:
   Offline fallback used when no Anthropic key is configured. Ranks words by
   frequency, picks the most representative items as bullets and fills a
   post template.

The Anthropic client is lazy-initialised so that the class can be
instantiated in tests without requiring a live API key.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import TYPE_CHECKING, Protocol

from poststudio.models import SourceItem, SummaryResult

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

MAX_POST_LENGTH = 280

_SYSTEM = (
    "You are a social media assistant. Create a concise summary and an original "
    "new post based strictly on the provided posts. Do not invent facts, do not "
    "quote verbatim, and keep the suggested post within 280 characters. "
    "Return JSON only."
)

_STOPWORDS: frozenset[str] = frozenset([
    "a", "an", "the", "and", "or", "but", "if", "then", "than", "so", "to", "of",
    "for", "in", "on", "at", "by", "with", "about", "as", "is", "are", "was",
    "were", "be", "been", "being", "it", "its", "this", "that", "these", "those",
    "i", "you", "he", "she", "they", "we", "me", "my", "your", "our", "their",
    "them", "from", "into", "out", "up", "down", "over", "under", "again", "more",
    "most", "very", "can", "could", "should", "would", "will", "just", "not", "no",
    "yes", "do", "does", "did", "doing", "rt", "via", "amp", "t", "s",
])


class Summarizer(Protocol):
    model: str

    def summarize(self, topic: str, items: list[SourceItem]) -> SummaryResult: ...


def trim_to(text: str, limit: int) -> str:
    """Trim *text* to *limit* characters, ending with ``...`` when cut."""
    if len(text) <= limit:
        return text
    if limit <= 3:
        return text[:limit]
    return text[: limit - 3].strip() + "..."


def _one_line(text: str) -> str:
    return " ".join(text.split())


# ── Claude ─────────────────────────────────────────────────────────────────────


class ClaudeSummarizer:
    """Summarises items with a structured Claude call."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.model = settings.summary_model
        self._client: object = None  # Lazy-initialised anthropic.Anthropic

    @property
    def client(self) -> object:
        """Lazy-initialise and return the Anthropic SDK client."""
        if self._client is None:
            import anthropic
            self._client = anthropic.Anthropic(
                api_key=self.settings.anthropic_api_key,
                max_retries=5,
            )
        return self._client

    def summarize(self, topic: str, items: list[SourceItem]) -> SummaryResult:
        """Return a SummaryResult for *items*.

        Raises:
            anthropic.APIError: On API failures.
        """
        lines = [
            f"{i}) {item.author_name} (@{item.author_username}) - {_one_line(item.text)}"
            for i, item in enumerate(items, start=1)
        ]
        user_content = f"Topic: {topic}\nPosts:\n" + "\n".join(lines) + "\n\nReturn JSON only."

        response = self.client.messages.parse(
            model=self.model,
            max_tokens=900,
            system=_SYSTEM,
            messages=[{"role": "user", "content": user_content}],
            output_format=SummaryResult,
        )
        summary = response.parsed_output
        return summary.model_copy(
            update={"suggested_post": trim_to(summary.suggested_post, MAX_POST_LENGTH)}
        )


# ── Keyword heuristic ──────────────────────────────────────────────────────────


def clean_text(text: str) -> str:
    """Strip links, mentions and punctuation, leaving space-separated words."""
    text = re.sub(r"https?://\S+", " ", text)
    text = re.sub(r"@\w+", " ", text)
    text = text.replace("#", "")
    text = re.sub(r"[^a-zA-Z0-9\s]", " ", text)
    return _one_line(text)


class KeywordSummarizer:
    """Frequency-based summariser that needs no external service."""

    model = "keyword-heuristic"

    def __init__(self, keyword_count: int = 8, representative_count: int = 4) -> None:
        self.keyword_count = keyword_count
        self.representative_count = representative_count

    def summarize(self, topic: str, items: list[SourceItem]) -> SummaryResult:
        freq = self.keyword_frequency(items)
        keywords = [word for word, _ in freq.most_common(self.keyword_count)]
        representative = self._representative(items, freq)
        bullets = [trim_to(_one_line(item.text), 120) for item in representative]

        return SummaryResult(
            summary=self._build_summary(topic, keywords, bullets),
            suggested_post=self._build_post(topic, keywords, representative),
            keywords=keywords,
            bullets=bullets,
        )

    @staticmethod
    def keyword_frequency(items: list[SourceItem]) -> Counter[str]:
        freq: Counter[str] = Counter()
        for item in items:
            for token in clean_text(item.text).split():
                word = token.lower()
                if len(word) < 3 or word in _STOPWORDS:
                    continue
                freq[word] += 1
        return freq

    def _representative(self, items: list[SourceItem], freq: Counter[str]) -> list[SourceItem]:
        def score(item: SourceItem) -> int:
            return sum(freq.get(token.lower(), 0) for token in clean_text(item.text).split())

        # sorted() is stable, so ties keep feed order
        return sorted(items, key=score, reverse=True)[: self.representative_count]

    @staticmethod
    def _build_summary(topic: str, keywords: list[str], bullets: list[str]) -> str:
        text = f'Summary for "{topic}": '
        if keywords:
            text += f"Key themes include {', '.join(keywords)}. "
        if bullets:
            text += "Representative points: " + "; ".join(f'"{b}"' for b in bullets) + "."
        return text.strip()

    @staticmethod
    def _build_post(topic: str, keywords: list[str], representative: list[SourceItem]) -> str:
        if keywords:
            body = ", ".join(keywords[:4])
        elif representative:
            body = trim_to(representative[0].text, 80)
        else:
            body = "recent discussion and opinions"

        hashtags = []
        for keyword in keywords:
            if len(hashtags) >= 2:
                break
            tag = re.sub(r"[^a-zA-Z0-9]", "", keyword)
            if len(tag) >= 3:
                hashtags.append(f"#{tag}")

        tail = " What do you think?" + (" " + " ".join(hashtags) if hashtags else "")
        return trim_to(f"Quick roundup on {topic}: {body}.{tail}", MAX_POST_LENGTH)
