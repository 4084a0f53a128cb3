"""Tests for web/app.py — the Flask generation endpoints."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from poststudio.events import SSEDecoder
from poststudio.models import GenerationResult
from web.app import create_app


@pytest.fixture
def pipeline():
    return MagicMock()


@pytest.fixture
def client(pipeline):
    app = create_app(pipeline)
    app.config["TESTING"] = True
    return app.test_client()


def decode_body(body: str):
    decoder = SSEDecoder()
    events = []
    for line in body.split("\n"):
        event = decoder.feed(line)
        if event is not None:
            events.append((event.event, event.data))
    return events


class TestGenerateSse:
    def test_streams_pipeline_events(self, client, pipeline):
        wire = GenerationResult(topic="java 21 features").to_wire()
        pipeline.stream.return_value = iter([("status", "Fetching recent items..."), ("result", wire)])

        response = client.get("/api/generate-sse?topic=java%2021%20features")

        assert response.status_code == 200
        assert response.mimetype == "text/event-stream"
        assert response.headers["Cache-Control"] == "no-cache"
        assert decode_body(response.get_data(as_text=True)) == [
            ("status", "Fetching recent items..."),
            ("result", wire),
        ]
        pipeline.stream.assert_called_once_with("java 21 features")

    def test_error_event_passes_through(self, client, pipeline):
        pipeline.stream.return_value = iter([("error", "Rate limited")])
        response = client.get("/api/generate-sse?topic=rust")
        assert decode_body(response.get_data(as_text=True)) == [("error", "Rate limited")]

    @pytest.mark.parametrize("query", ["", "?topic=", "?topic=%20%20"])
    def test_missing_topic_is_400(self, client, pipeline, query):
        response = client.get(f"/api/generate-sse{query}")
        assert response.status_code == 400
        assert response.get_json() == {"error": "Topic is required"}
        pipeline.stream.assert_not_called()


class TestGenerateJson:
    def test_returns_result(self, client, pipeline):
        pipeline.run.return_value = GenerationResult(topic="rust", model="m")

        response = client.post("/api/generate", json={"topic": " rust "})

        assert response.status_code == 200
        assert json.loads(response.get_data(as_text=True))["model"] == "m"
        pipeline.run.assert_called_once_with("rust")

    def test_failure_is_500(self, client, pipeline):
        pipeline.run.side_effect = RuntimeError("upstream down")
        response = client.post("/api/generate", json={"topic": "rust"})
        assert response.status_code == 500
        assert response.get_json() == {"error": "upstream down"}

    def test_missing_topic_is_400(self, client):
        assert client.post("/api/generate", json={}).status_code == 400

    def test_get_not_allowed(self, client):
        assert client.get("/api/generate").status_code == 405


class TestModuleApp:
    def test_module_level_app_serves_routes(self):
        from web.app import app

        rules = {rule.rule for rule in app.url_map.iter_rules()}
        assert {"/api/generate-sse", "/api/generate"} <= rules
