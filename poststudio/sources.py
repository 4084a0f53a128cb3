"""
X recent-search client.

Pages through ``/tweets/search/recent`` and keeps the first post of each
author until enough distinct authors have been collected.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from poststudio.errors import SourceError
from poststudio.models import SourceItem

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
MAX_PAGES = 5
USER_AGENT = "PostStudio/1.0"


class XRecentSearch:
    """Fetches recent posts about a topic from the X API v2."""

    def __init__(
        self,
        bearer_token: str,
        base_url: str = "https://api.x.com/2",
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.bearer_token = bearer_token
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=30.0)

    def fetch_recent_unique_authors(self, topic: str, target: int = 50) -> list[SourceItem]:
        """Return up to *target* recent posts, one per author, newest first.

        Raises:
            SourceError: On a non-200 response.
        """
        if target <= 0:
            return []

        by_author: dict[str, SourceItem] = {}
        next_token: Optional[str] = None

        for _ in range(MAX_PAGES):
            payload = self._search_page(topic, next_token)
            users = _index_users(payload.get("includes", {}).get("users", []))

            for post in payload.get("data", []) or []:
                author_id = post.get("author_id", "")
                if author_id in by_author:
                    continue
                user = users.get(author_id, {})
                by_author[author_id] = SourceItem(
                    author_name=user.get("name", "Unknown"),
                    author_username=user.get("username", "unknown"),
                    text=post.get("text", ""),
                    created_at=post.get("created_at", ""),
                )
                if len(by_author) >= target:
                    break

            next_token = (payload.get("meta") or {}).get("next_token")
            if len(by_author) >= target or not next_token:
                break

        logger.info("Fetched %d items from unique authors for topic=%r", len(by_author), topic)
        return list(by_author.values())

    def _search_page(self, topic: str, next_token: Optional[str]) -> dict[str, Any]:
        params = {
            "query": f"{topic} -is:retweet",
            "max_results": str(PAGE_SIZE),
            "tweet.fields": "created_at,author_id,lang",
            "expansions": "author_id",
            "user.fields": "username,name",
        }
        if next_token:
            params["next_token"] = next_token

        response = self._client.get(
            f"{self.base_url}/tweets/search/recent",
            params=params,
            headers={
                "Authorization": f"Bearer {self.bearer_token}",
                "User-Agent": USER_AGENT,
            },
        )
        if response.status_code != 200:
            raise SourceError(f"X API error: HTTP {response.status_code} -> {response.text}")
        return response.json()


def _index_users(users: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    return {u["id"]: u for u in users if u.get("id")}
