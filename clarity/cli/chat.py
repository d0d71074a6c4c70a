"""Interactive terminal chat with the Clarity coach.

Usage:
    python -m clarity.cli
    python -m clarity.cli --attach notes.pdf --attach plan.md

In-chat commands:
    /attach PATH   attach another document to the conversation
    /docs          list attached documents and whether they are indexed
    /quit          leave the chat (Ctrl-D works too)

Status lines ("Searching documents...", "Thinking...") are printed while a
turn runs; cited articles are listed, numbered, after each answer.
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Callable, Sequence
from pathlib import Path

import structlog

from clarity.config.loader import load_config
from clarity.config.settings import Settings
from clarity.pipeline.orchestrator import TurnPipeline
from clarity.services.session import RagSession
from clarity.utils.errors import ClarityError
from clarity.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

_PROMPT = "you> "
_HELP = "Commands: /attach PATH, /docs, /quit"


class ChatRepl:
    """Keeps the conversation history and attachments for one terminal chat."""

    def __init__(
        self,
        pipeline: TurnPipeline,
        session: RagSession | None = None,
        attachments: Sequence[str] = (),
        output: Callable[[str], None] = print,
    ) -> None:
        self._pipeline = pipeline
        self._session = session or RagSession()
        self._output = output
        self._history: list[dict[str, str]] = []
        self._attachments: list[str] = []
        for path in attachments:
            self.attach(path)

    @property
    def history(self) -> list[dict[str, str]]:
        return list(self._history)

    @property
    def attachments(self) -> list[str]:
        return list(self._attachments)

    def attach(self, path: str) -> bool:
        """Add *path* to the conversation; ``False`` if it does not exist."""
        resolved = Path(path).expanduser()
        if not resolved.is_file():
            self._output(f"No such file: {path}")
            return False
        document = str(resolved.resolve())
        if document not in self._attachments:
            self._attachments.append(document)
        self._output(f"Attached {resolved.name}")
        return True

    async def handle(self, line: str) -> bool:
        """Process one input line.  Returns ``False`` when the chat should end."""
        text = line.strip()
        if not text:
            return True
        if text in ("/quit", "/exit"):
            return False
        if text.startswith("/attach"):
            path = text[len("/attach"):].strip()
            if not path:
                self._output("Usage: /attach PATH")
            else:
                self.attach(path)
            return True
        if text == "/docs":
            self._print_documents()
            return True
        if text.startswith("/"):
            self._output(_HELP)
            return True

        await self._ask(text)
        return True

    async def run(self, input_fn: Callable[[str], str] = input) -> None:
        """Read lines until ``/quit`` or end of input."""
        self._output(f"Clarity executive coach. {_HELP}")
        while True:
            try:
                line = await asyncio.to_thread(input_fn, _PROMPT)
            except EOFError:
                self._output("")
                break
            if not await self.handle(line):
                break

    async def _ask(self, text: str) -> None:
        self._history.append({"role": "user", "content": text})
        try:
            result = await self._pipeline.run(
                self._session,
                self._history,
                attached_documents=self._attachments,
                on_status=self._print_status,
            )
        except ClarityError as exc:
            # Drop the unanswered message so the next turn starts clean.
            self._history.pop()
            _logger.error("chat_turn_failed", error=str(exc))
            self._output(f"Error: {exc}")
            return

        self._history.append({"role": "assistant", "content": result.content})
        self._output("")
        self._output(result.content)
        if result.sources:
            self._output("")
            self._output("Sources:")
            for number, source in enumerate(result.sources, start=1):
                self._output(f"  [{number}] {source.title} - {source.url}")
        self._output("")

    def _print_status(self, message: str) -> None:
        self._output(f"  ... {message}")

    def _print_documents(self) -> None:
        if not self._attachments:
            self._output("No documents attached.")
            return
        for document in self._attachments:
            marker = "indexed" if self._session.is_ingested(document) else "pending"
            self._output(f"  {Path(document).name} ({marker})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clarity",
        description="Chat with the Clarity executive coach in the terminal.",
    )
    parser.add_argument(
        "--attach",
        action="append",
        default=[],
        metavar="PATH",
        help="Attach a PDF, text or Markdown document (repeatable).",
    )
    parser.add_argument(
        "--config",
        default=None,
        metavar="PATH",
        help="YAML config file (defaults to CONFIG_PATH or config/config.yaml).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level for diagnostic output (default: WARNING).",
    )
    return parser


async def _main_async(args: argparse.Namespace) -> int:
    # Imported here so the web app is not assembled just to parse --help.
    from clarity.main import build_turn_pipeline

    # clarity.main configures logging for the server on import.
    configure_logging(log_level=args.log_level)
    settings = Settings()
    config = load_config(path=args.config, settings=settings)
    pipeline = build_turn_pipeline(settings, config)
    repl = ChatRepl(pipeline, attachments=args.attach)
    await repl.run()
    await pipeline.progress_tracker.drain()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(_main_async(args))
    except KeyboardInterrupt:
        return 130
