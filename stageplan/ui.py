"""Coloured terminal output, interactive prompts and progress indicators."""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import re
import sys
from collections.abc import Awaitable, Sequence
from typing import TypeVar

from termcolor import colored
from tqdm import tqdm

T = TypeVar("T")

SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
_NUMBER_RE = re.compile(r"\+?[0-9]+")


def print_success(message: str) -> None:
    print(colored(message, "green"))


def print_error(message: str) -> None:
    print(colored(message, "red"), file=sys.stderr)


def print_warning(message: str) -> None:
    print(colored(message, "yellow"))


def print_info(message: str) -> None:
    print(colored(message, "blue"))


def print_stage_header(stage_number: int, name: str) -> None:
    header = colored(f">>> Stage {stage_number}: {name} <<<", "green", attrs=["bold"])
    print(f"\n{header}")


def _read_line(message: str) -> str | None:
    """Show a prompt and read one line; None when input is exhausted."""
    sys.stdout.write(f"{message} ")
    sys.stdout.flush()
    line = sys.stdin.readline()
    return line.strip() if line else None


def prompt(message: str) -> str:
    """Ask for a line of input and return it stripped."""
    answer = _read_line(message)
    return "" if answer is None else answer


def prompt_yes_no(message: str, default: bool = False) -> bool:
    """Ask a yes/no question; an empty answer gives ``default``."""
    suffix = "[Y/n]" if default else "[y/N]"
    answer = prompt(f"{message} {suffix}")
    if not answer:
        return default
    return answer.lower().startswith("y")


def prompt_select(message: str, options: Sequence[str]) -> int:
    """Ask the user to pick one of ``options``; return its zero-based index."""
    if not options:
        raise ValueError("no options to select from")
    print(message)
    for number, option in enumerate(options, start=1):
        print(f"  {number}. {option}")
    while True:
        answer = _read_line("Enter your choice (number):")
        if answer is None:
            raise EOFError("input ended before a choice was made")
        if _NUMBER_RE.fullmatch(answer) and 1 <= int(answer) <= len(options):
            return int(answer) - 1
        print_error(f"Please enter a number between 1 and {len(options)}")


async def with_spinner(message: str, task: Awaitable[T]) -> T:
    """Await ``task`` while showing a spinner; the spinner is cleared afterwards."""
    bar = tqdm(total=None, desc=message, bar_format="{desc}", leave=False)

    async def spin() -> None:
        for frame in itertools.cycle(SPINNER_FRAMES):
            bar.set_description_str(f"{frame} {message}")
            await asyncio.sleep(0.1)

    spinner = asyncio.ensure_future(spin())
    try:
        return await task
    finally:
        spinner.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await spinner
        bar.close()


def progress_bar(length: int, message: str) -> tqdm:
    """A progress bar for a task with ``length`` known steps."""
    return tqdm(
        total=length,
        desc=message,
        bar_format="{desc} [{bar:40}] {n_fmt}/{total_fmt} ({remaining})",
        ascii=" >=",
    )