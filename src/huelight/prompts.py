"""Blocking interactive prompts."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit import prompt as toolkit_prompt

# Takes the message and returns the typed line; tests replace it
read_line: Callable[[str], str] = toolkit_prompt


def ask(question: str) -> str:
    """Read one line and return it without surrounding whitespace.

    End of input (Ctrl-D or a closed stdin) reads as an empty answer.
    """
    try:
        return read_line(question).strip()
    except EOFError:
        return ""


def yes_no(question: str) -> bool:
    """Return True only when the answer is y or yes, ignoring case."""
    return ask(f"{question} [y/n]: ").lower() in ("y", "yes")


def wait_for_enter(message: str) -> None:
    ask(f"{message}\n")
