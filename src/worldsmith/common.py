"""Common utility functions for the project."""

from enum import Enum
from typing import Any

from worldsmith.core.schema import (
    Notice,
    NoticeKind,
)


class AnsiColors(Enum):
    """
    ANSI color codes for terminal output.
    """

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[33m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"


NOTICE_STYLES = {
    NoticeKind.ASSISTANT: ("LLM: ", AnsiColors.YELLOW),
    NoticeKind.TOOL_CALL: ("Game> ", AnsiColors.CYAN),
    NoticeKind.TOOL_RESULT: ("Game> ", AnsiColors.GREEN),
    NoticeKind.ERROR: ("Error: ", AnsiColors.RED),
    NoticeKind.SYSTEM: ("System: ", AnsiColors.BLUE),
}


def colored_print(text: str, color: AnsiColors, *args: Any, **kwargs: Any) -> None:
    """
    Print text in color.

    Args:
        text: The text to print
        color: The color to use (AnsiColors enum)
        args: Additional positional arguments for print
        kwargs: Additional keyword arguments for print
    """
    print(f"{color.value}{text}\033[0m", *args, **kwargs)  # ANSI reset at the end


def print_notice(notice: Notice) -> None:
    """Print a turn notice with its sender prefix and colour."""
    prefix, color = NOTICE_STYLES[notice.kind]
    colored_print(prefix + notice.text, color)
