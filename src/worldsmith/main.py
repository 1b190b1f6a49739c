"""
Worldsmith entry point.

This file handles startup concerns (arg-parsing, logging) and launches the appropriate interface
(API or CLI).
"""

import argparse
import logging
import sys

from worldsmith.agent.engine import available_engines
from worldsmith.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        stream=sys.stdout,
    )
    # Keep per-request HTTP logs out of the chat output
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Worldsmith agent")
    parser.add_argument(
        "--mode",
        choices=["api", "cli"],
        type=str.lower,
        default="cli",
        help="Launch the REST API or the interactive CLI (default: cli)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=settings.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    parser.add_argument(
        "--engine",
        choices=available_engines(),
        type=str.lower,
        default=settings.ENGINE,
        help="Inference engine back-end (default from env: %(default)s)",
    )
    parser.add_argument(
        "--model", default=settings.MODEL, help="Model identifier (default: %(default)s)"
    )
    parser.add_argument(
        "--temperature",
        type=float,
        default=settings.TEMPERATURE,
        help="Sampling temperature (default: %(default)s)",
    )
    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the Worldsmith application.

    This function sets up the command-line interface, initializes logging, and starts the
    application in either CLI or API mode.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = build_parser().parse_args(argv)

    # Override settings with command-line arguments
    settings.LOG_LEVEL = args.log_level
    settings.ENGINE = args.engine
    settings.MODEL = args.model
    settings.TEMPERATURE = args.temperature

    _init_logging(settings.LOG_LEVEL)

    logger.info("Starting Worldsmith [%s mode, %s/%s]", args.mode, args.engine, args.model)
    logger.debug("Settings: %s", settings.model_dump())

    if args.mode == "api":
        # Lazy import to avoid web dependencies if not needed
        from worldsmith.api.app import run_api  # pylint: disable=import-outside-toplevel

        run_api(host="0.0.0.0", port=settings.API_PORT, reload=False)
    else:
        from worldsmith.agent.agent_loop import run_cli  # pylint: disable=import-outside-toplevel

        run_cli(args.engine, args.model)


if __name__ == "__main__":
    main()
