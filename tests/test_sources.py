"""Tests for poststudio/sources.py — X recent search (respx-mocked)."""

from __future__ import annotations

import httpx
import pytest
import respx

from poststudio.errors import SourceError
from poststudio.sources import XRecentSearch

SEARCH_URL = "https://api.x.test/2/tweets/search/recent"


def page(posts, users, next_token=None):
    body = {
        "data": [{"id": str(i), "text": text, "author_id": author} for i, (author, text) in enumerate(posts)],
        "includes": {"users": [{"id": uid, "name": name, "username": handle} for uid, name, handle in users]},
        "meta": {"next_token": next_token} if next_token else {},
    }
    return httpx.Response(200, json=body)


@pytest.fixture
def client() -> XRecentSearch:
    return XRecentSearch("token", base_url="https://api.x.test/2/")


class TestFetchRecentUniqueAuthors:
    @respx.mock
    def test_one_item_per_author(self, client):
        respx.get(url__startswith=SEARCH_URL).mock(
            return_value=page(
                [("1", "first"), ("1", "second"), ("2", "other")],
                [("1", "Ada", "ada"), ("2", "Linus", "linus")],
            )
        )
        items = client.fetch_recent_unique_authors("rust", target=10)

        assert [(i.author_username, i.text) for i in items] == [("ada", "first"), ("linus", "other")]

    @respx.mock
    def test_query_and_auth(self, client):
        route = respx.get(url__startswith=SEARCH_URL).mock(return_value=page([], []))
        client.fetch_recent_unique_authors("rust")

        request = route.calls.last.request
        assert request.url.params["query"] == "rust -is:retweet"
        assert request.url.params["max_results"] == "100"
        assert request.headers["Authorization"] == "Bearer token"

    @respx.mock
    def test_follows_next_token_until_target(self, client):
        route = respx.get(url__startswith=SEARCH_URL)
        route.side_effect = [
            page([("1", "a")], [("1", "Ada", "ada")], next_token="n1"),
            page([("2", "b"), ("3", "c")], [("2", "B", "b"), ("3", "C", "c")], next_token="n2"),
        ]
        items = client.fetch_recent_unique_authors("rust", target=2)

        assert len(items) == 2
        assert route.call_count == 2
        assert route.calls[1].request.url.params["next_token"] == "n1"

    @respx.mock
    def test_unknown_author_defaults(self, client):
        respx.get(url__startswith=SEARCH_URL).mock(return_value=page([("9", "hi")], []))
        item = client.fetch_recent_unique_authors("rust")[0]
        assert (item.author_name, item.author_username) == ("Unknown", "unknown")

    @respx.mock
    def test_error_status_raises(self, client):
        respx.get(url__startswith=SEARCH_URL).mock(return_value=httpx.Response(429, text="Too Many Requests"))
        with pytest.raises(SourceError, match="HTTP 429"):
            client.fetch_recent_unique_authors("rust")

    def test_zero_target(self, client):
        assert client.fetch_recent_unique_authors("rust", target=0) == []
