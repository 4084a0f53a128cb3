"""Tests for poststudio/moderation.py (respx-mocked)."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from poststudio.errors import ModerationError
from poststudio.moderation import OpenAIModerator

MODERATIONS_URL = "https://api.openai.test/v1/moderations"


@pytest.fixture
def moderator() -> OpenAIModerator:
    return OpenAIModerator("key", base_url="https://api.openai.test/v1")


class TestModerate:
    @respx.mock
    def test_parses_first_result(self, moderator):
        route = respx.post(MODERATIONS_URL).mock(
            return_value=httpx.Response(
                200,
                json={"results": [{
                    "flagged": True,
                    "categories": {"hate": True, "violence": False},
                    "category_scores": {"hate": 0.91, "violence": 0.02},
                }]},
            )
        )
        result = moderator.moderate("some post")

        assert result.flagged is True
        assert result.categories == {"hate": True, "violence": False}
        assert result.scores["hate"] == pytest.approx(0.91)
        body = json.loads(route.calls.last.request.content)
        assert body == {"model": "omni-moderation-latest", "input": "some post"}

    @respx.mock
    def test_empty_results_are_unflagged(self, moderator):
        respx.post(MODERATIONS_URL).mock(return_value=httpx.Response(200, json={"results": []}))
        assert moderator.moderate("x").flagged is False

    @respx.mock
    def test_error_status_raises(self, moderator):
        respx.post(MODERATIONS_URL).mock(return_value=httpx.Response(401, text="bad key"))
        with pytest.raises(ModerationError, match="HTTP 401"):
            moderator.moderate("x")

    def test_disabled_without_key(self):
        moderator = OpenAIModerator("")
        assert moderator.enabled is False
        assert moderator.moderate("x").flagged is False
