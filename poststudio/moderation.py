"""
OpenAI moderation client for the suggested post.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from poststudio.errors import ModerationError
from poststudio.models import ModerationResult

logger = logging.getLogger(__name__)


class OpenAIModerator:
    """Scores text with the ``/moderations`` endpoint.

    With no API key configured, moderation is skipped and every text is
    reported as unflagged.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "omni-moderation-latest",
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._client = client or httpx.Client(timeout=30.0)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def moderate(self, text: str) -> ModerationResult:
        """Return the verdict for *text*.

        Raises:
            ModerationError: On a non-200 response.
        """
        if not self.enabled:
            logger.warning("OPENAI_API_KEY not set; skipping moderation")
            return ModerationResult()

        response = self._client.post(
            f"{self.base_url}/moderations",
            json={"model": self.model, "input": text},
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        if response.status_code != 200:
            raise ModerationError(
                f"OpenAI Moderation API error: HTTP {response.status_code} -> {response.text}"
            )

        results = response.json().get("results") or []
        if not results:
            return ModerationResult()

        first = results[0]
        return ModerationResult(
            flagged=bool(first.get("flagged", False)),
            categories={k: bool(v) for k, v in (first.get("categories") or {}).items()},
            scores={k: float(v or 0.0) for k, v in (first.get("category_scores") or {}).items()},
        )
