"""Interactive terminal loop for Worldsmith."""

from __future__ import annotations

import asyncio
import logging
from typing import Tuple

from worldsmith.agent.engine import load_engine
from worldsmith.agent.turn_controller import TurnController
from worldsmith.common import (
    AnsiColors,
    colored_print,
    print_notice,
)

logger = logging.getLogger(__name__)

HELP_TEXT = "Commands: /tools, /temp <value>, /reset, exit"


# ---------------------------------------------------------------------------
# Agent Loop
# ---------------------------------------------------------------------------
def get_user_message() -> Tuple[str, bool]:
    """
    Get a message from the user via standard input.

    Returns:
        Tuple of (user_input, success_flag)
        The success_flag is False if input couldn't be read (e.g., Ctrl+C)
    """
    import signal  # pylint: disable=import-outside-toplevel

    # Ensure SIGINT breaks out of slow system calls such as read()
    # (True  ⇒  *do* interrupt;  False ⇒ restart them)
    signal.siginterrupt(signal.SIGINT, True)

    try:
        user_input = input().strip()
        return user_input, True
    except (EOFError, KeyboardInterrupt):
        return "", False


async def handle_command(controller: TurnController, command: str) -> None:
    """Run a ``/command`` typed at the prompt."""
    name, _, arg = command.partition(" ")
    if name == "/tools":
        for tool in controller.registry.list_all():
            marker = "*" if tool.synthesized else "-"
            colored_print(f"{marker} {tool.name}: {tool.description}", AnsiColors.GREEN)
    elif name == "/temp":
        try:
            value = controller.set_temperature(float(arg))
        except ValueError:
            colored_print("Usage: /temp <float>", AnsiColors.RED)
            return
        colored_print(f"Temperature set to {value:.1f}", AnsiColors.GREEN)
    elif name == "/reset":
        if controller.engine is None:
            colored_print("No engine is loaded; restart with --engine.", AnsiColors.RED)
            return
        engine = load_engine(controller.engine.name, controller.engine.model)
        print_notice(await controller.reload_engine(engine))
    else:
        colored_print(HELP_TEXT, AnsiColors.YELLOW)


async def run_loop(controller: TurnController) -> None:
    """Read messages from stdin and run a turn for each until the user quits."""
    while True:
        colored_print("\n🧑 You: ", AnsiColors.BLUE, end="")
        user_msg, ok = get_user_message()
        if not ok:
            break  # Exit if user input couldn't be retrieved (e.g., Ctrl+C)
        if user_msg.lower() in {"exit", "quit"}:
            break
        if user_msg.startswith("/"):
            await handle_command(controller, user_msg)
            continue

        outcome = await controller.handle_user_message(user_msg)
        for notice in outcome.notices:
            print_notice(notice)


async def _main(engine_name: str | None, model: str | None) -> None:
    controller = TurnController()
    print_notice(await controller.reload_engine(load_engine(engine_name, model)))
    try:
        await run_loop(controller)
    finally:
        if controller.engine is not None:
            await controller.engine.close()


def run_cli(engine_name: str | None = None, model: str | None = None) -> None:
    """Run the main agent loop in CLI mode."""
    colored_print("🔮  Worldsmith shell - type 'exit' to quit. " + HELP_TEXT, AnsiColors.YELLOW)
    asyncio.run(_main(engine_name, model))


if __name__ == "__main__":
    run_cli()
