# run.py
# Entry point. Config and wiring only — no logic lives here.
#
#   api-scout "What's the weather in Paris?"
#   api-scout --approval always -v "Latest EUR/USD exchange rate?"

import argparse
import logging
import sys

from openai import OpenAIError
from rich.logging import RichHandler

from api_scout import display
from api_scout.agents import build_api_agent, build_api_master
from api_scout.approvals import HANDLERS
from api_scout.config import Settings
from api_scout.errors import InvalidInput, WorkflowError
from api_scout.runner import OpenAIRunner
from api_scout.workflow import Workflow


def build_workflow(
    settings: Settings,
    approval: str = "ask",
    client=None,
    poll_interval: float | None = None,
) -> Workflow:
    if poll_interval is None:
        poll_interval = settings.approval_poll_interval
    runner = OpenAIRunner(
        client=client,
        approval_handler=HANDLERS[approval],
        trace_metadata=settings.trace_metadata(),
        poll_interval=poll_interval,
    )
    return Workflow(runner, build_api_master(settings), build_api_agent(settings))


def _positive_float(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from exc
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return seconds


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="api-scout",
        description="Find a free public API for a question, then answer it with that API.",
    )
    parser.add_argument("question", help="What you want to know.")
    parser.add_argument(
        "--approval",
        choices=sorted(HANDLERS),
        default="ask",
        help="How gated gateway calls are approved (default: ask on the terminal).",
    )
    parser.add_argument(
        "--poll-interval",
        type=_positive_float,
        default=None,
        metavar="SECONDS",
        help="Seconds between checks on a pending approval "
        "(default: API_SCOUT_APPROVAL_POLL_INTERVAL or 2.0).",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log runner traffic at DEBUG level."
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=display.console, show_path=False)],
    )

    settings = Settings.from_env()
    display.banner(settings.model, settings.workflow_id)
    try:
        workflow = build_workflow(
            settings, approval=args.approval, poll_interval=args.poll_interval
        )
    except OpenAIError as exc:
        display.halt(None, f"Cannot create the OpenAI client: {exc}")
        return 1

    try:
        workflow.run(args.question)
    except InvalidInput as exc:
        display.halt(None, str(exc))
        return 2
    except WorkflowError:
        # Already reported by the workflow.
        return 1
    except KeyboardInterrupt:
        display.halt(None, "Interrupted.")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
