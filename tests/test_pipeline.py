"""Tests for poststudio/pipeline.py — the backend generation job."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from config.settings import Settings
from poststudio.cache import TTLCache
from poststudio.errors import SourceError, TopicValidationError
from poststudio.models import GenerationResult, ModerationResult, SourceItem, SummaryResult
from poststudio.pipeline import (
    CACHE_STATUS,
    FETCHING_STATUS,
    MODERATING_STATUS,
    SUMMARIZING_STATUS,
    GenerationPipeline,
)
from poststudio.summarizer import ClaudeSummarizer, KeywordSummarizer


def make_settings(**overrides) -> Settings:
    settings = Settings()
    settings.x_bearer_token = "x-token"
    settings.anthropic_api_key = ""
    settings.openai_api_key = ""
    for k, v in overrides.items():
        setattr(settings, k, v)
    return settings


@pytest.fixture
def items() -> list[SourceItem]:
    return [
        SourceItem(author_name="Ada", author_username="ada", text="Rust is fast", created_at="2025-01-01T00:00:00Z"),
        SourceItem(author_name="Linus", author_username="linus", text="Rust in the kernel", created_at=""),
    ]


@pytest.fixture
def parts(items):
    source = MagicMock()
    source.fetch_recent_unique_authors.return_value = items
    summarizer = MagicMock()
    summarizer.model = "test-model"
    summarizer.summarize.return_value = SummaryResult(
        summary="Rust.", suggested_post="Post!", keywords=["rust"], bullets=["fast"]
    )
    moderator = MagicMock()
    moderator.moderate.return_value = ModerationResult(flagged=False)
    return source, summarizer, moderator


@pytest.fixture
def pipeline(parts) -> GenerationPipeline:
    source, summarizer, moderator = parts
    return GenerationPipeline(
        make_settings(), source=source, summarizer=summarizer, moderator=moderator
    )


class TestStream:
    def test_status_events_then_result(self, pipeline):
        events = list(pipeline.stream("rust"))

        assert [e for e, _ in events] == ["status", "status", "status", "result"]
        assert [d for _, d in events[:3]] == [FETCHING_STATUS, SUMMARIZING_STATUS, MODERATING_STATUS]

        result = GenerationResult.model_validate_json(events[-1][1])
        assert result.topic == "rust"
        assert result.model == "test-model"
        assert result.cache is False
        assert len(result.items) == 2
        assert result.summary.suggested_post == "Post!"

    def test_result_uses_wire_names(self, pipeline):
        _, data = list(pipeline.stream("rust"))[-1]
        assert json.loads(data)["items"][0]["authorUsername"] == "ada"

    def test_second_request_served_from_cache(self, pipeline, parts):
        source, _, _ = parts
        list(pipeline.stream("Rust"))
        events = list(pipeline.stream("  rust "))

        assert events[0] == ("status", CACHE_STATUS)
        assert GenerationResult.model_validate_json(events[1][1]).cache is True
        assert source.fetch_recent_unique_authors.call_count == 1

    def test_flagged_post_is_withheld(self, pipeline, parts):
        _, _, moderator = parts
        moderator.moderate.return_value = ModerationResult(flagged=True, categories={"hate": True})

        result = GenerationResult.model_validate_json(list(pipeline.stream("rust"))[-1][1])
        assert result.moderation.flagged is True
        assert result.summary.suggested_post == ""
        assert result.summary.summary == "Rust."

    def test_failure_becomes_single_error_event(self, pipeline, parts):
        source, _, _ = parts
        source.fetch_recent_unique_authors.side_effect = SourceError("X API error: HTTP 429")

        events = list(pipeline.stream("rust"))
        assert events[-1] == ("error", "X API error: HTTP 429")
        assert [e for e, _ in events].count("error") == 1
        assert "result" not in [e for e, _ in events]

    def test_missing_token_reports_error(self, parts):
        source, summarizer, moderator = parts
        pipeline = GenerationPipeline(
            make_settings(x_bearer_token=""), source=source, summarizer=summarizer, moderator=moderator
        )
        assert list(pipeline.stream("rust")) == [("error", "Missing X_BEARER_TOKEN")]
        source.fetch_recent_unique_authors.assert_not_called()

    def test_blank_topic_reports_error(self, pipeline):
        events = list(pipeline.stream("   "))
        assert events == [("error", "Topic is required")]


class TestRun:
    def test_returns_result(self, pipeline):
        result = pipeline.run("rust")
        assert isinstance(result, GenerationResult)
        assert result.cache is False

    def test_cache_hit_flagged(self, pipeline):
        pipeline.run("rust")
        assert pipeline.run("RUST").cache is True

    def test_blank_topic_raises(self, pipeline):
        with pytest.raises(TopicValidationError):
            pipeline.run("")


class TestDefaults:
    def test_keyword_summarizer_without_anthropic_key(self):
        assert isinstance(GenerationPipeline(make_settings()).summarizer, KeywordSummarizer)

    def test_claude_summarizer_with_key(self):
        pipeline = GenerationPipeline(make_settings(anthropic_api_key="k"))
        assert isinstance(pipeline.summarizer, ClaudeSummarizer)

    def test_cache_ttl_from_settings(self):
        pipeline = GenerationPipeline(make_settings(cache_ttl_seconds=42))
        assert pipeline.cache.ttl_seconds == 42

    def test_injected_cache_is_used(self, parts):
        source, summarizer, moderator = parts
        cache = TTLCache(60)
        pipeline = GenerationPipeline(
            make_settings(), source=source, summarizer=summarizer, moderator=moderator, cache=cache
        )
        pipeline.run("rust")
        assert len(cache) == 1
