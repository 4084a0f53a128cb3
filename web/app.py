"""
Flask web server for Post Studio.

Routes
──────
GET  /api/generate-sse?topic=...  SSE: status updates + one terminal result/error
POST /api/generate                JSON: {"topic": "..."} → GenerationResult
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request, stream_with_context

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import Settings
from poststudio.events import encode_event
from poststudio.pipeline import GenerationPipeline

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(pipeline: Optional[GenerationPipeline] = None) -> Flask:
    """Build the Flask app around *pipeline* (one per process by default)."""
    app = Flask(__name__)
    app.config["PIPELINE"] = pipeline or GenerationPipeline(Settings())

    # ── Generation stream ──────────────────────────────────────────────────

    @app.route("/api/generate-sse")
    def generate_sse():
        """SSE endpoint that streams one generation session.

        Query params:
          topic  (required) — the topic to generate a post for

        SSE events emitted:
          event: status   plain-text progress message (zero or more)
          event: result   GenerationResult JSON (terminal)
          event: error    plain-text failure message (terminal)
        """
        topic = request.args.get("topic", "").strip()
        if not topic:
            return jsonify({"error": "Topic is required"}), 400

        pipeline: GenerationPipeline = app.config["PIPELINE"]

        def generate():
            for event, data in pipeline.stream(topic):
                yield encode_event(event, data)

        return Response(
            stream_with_context(generate()),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    # ── Non-streaming ──────────────────────────────────────────────────────

    @app.route("/api/generate", methods=["POST"])
    def generate_json():
        """Run a generation and return the GenerationResult as JSON."""
        payload = request.get_json(silent=True) or {}
        topic = str(payload.get("topic", "")).strip()
        if not topic:
            return jsonify({"error": "Topic is required"}), 400

        pipeline: GenerationPipeline = app.config["PIPELINE"]
        try:
            result = pipeline.run(topic)
        except Exception as exc:
            logger.exception("Generation failed for topic=%r", topic)
            return jsonify({"error": str(exc)}), 500

        return Response(result.to_wire(), mimetype="application/json")

    return app


# ── Module-level app (flask run / WSGI servers) ────────────────────────────

settings = Settings()
app = create_app(GenerationPipeline(settings))


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app.run(debug=settings.debug, host="0.0.0.0", port=settings.port)
