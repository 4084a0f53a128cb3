"""
Command-line entry point.

    poststudio generate "java 21 features"   stream a generation from the backend
    poststudio preview                       render the sample payload
    poststudio serve                         run the backend (Flask)

``--copy`` on ``generate`` and ``preview`` copies the suggested post to the
terminal clipboard once it is rendered.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from dotenv import load_dotenv

from config.settings import Settings
from poststudio.session import StreamSession, StreamSessionController
from poststudio.view import ConsoleView

logger = logging.getLogger(__name__)


async def _run_generate(controller: StreamSessionController, topic: str, copy: bool = False) -> int:
    finished: asyncio.Future[StreamSession] = asyncio.get_running_loop().create_future()

    def on_end(session: StreamSession) -> None:
        if not finished.done():
            finished.set_result(session)

    controller.add_terminal_listener(on_end)
    if controller.generate(topic) is None:
        return 1

    session = await finished
    if session.result is None:
        return 1

    logger.info(
        "Rendered %d items for topic=%r (model=%s, cache=%s)",
        len(session.result.items), session.result.topic or session.topic,
        session.result.model, session.result.cache,
    )
    if copy:
        controller.copy_post()
    return 0


async def _run_preview(controller: StreamSessionController, copy: bool = False) -> int:
    controller.preview()
    if copy:
        controller.copy_post()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="poststudio")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate a post preview for a topic")
    gen.add_argument("topic", nargs="+")
    gen.add_argument("--base-url", default=None)
    gen.add_argument("--timeout", type=float, default=None,
                     help="Seconds to wait for the result (default: no limit)")
    gen.add_argument("--copy", action="store_true", help="Copy the suggested post")

    preview = sub.add_parser("preview", help="Render the sample payload")
    preview.add_argument("--copy", action="store_true", help="Copy the suggested post")

    serve = sub.add_parser("serve", help="Run the backend server")
    serve.add_argument("--port", type=int, default=None)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    args = build_parser().parse_args(argv)
    settings = Settings()

    if args.command == "generate":
        if args.base_url:
            settings.base_url = args.base_url
        if args.timeout is not None:
            settings.stream_timeout = args.timeout
        controller = StreamSessionController.from_settings(ConsoleView(), settings)
        return asyncio.run(_run_generate(controller, " ".join(args.topic), copy=args.copy))

    if args.command == "preview":
        controller = StreamSessionController.from_settings(ConsoleView(), settings)
        return asyncio.run(_run_preview(controller, copy=args.copy))

    from web.app import create_app
    from poststudio.pipeline import GenerationPipeline

    port = args.port or settings.port
    logger.info("Post Studio backend running on http://localhost:%d", port)
    create_app(GenerationPipeline(settings)).run(debug=settings.debug, host="0.0.0.0", port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
