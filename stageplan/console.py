"""Messages that go both to the log and to the user's terminal."""

from __future__ import annotations

import logging
import os

from termcolor import colored

log = logging.getLogger(__name__)

DEBUG_ENV_VAR = "STAGEPLAN_LOG"


def info_user(message: str) -> None:
    log.info("%s", message)
    print(message)


def success(message: str) -> None:
    log.info("SUCCESS: %s", message)
    print(colored(message, "green"))


def warn_user(message: str) -> None:
    log.warning("%s", message)
    print(colored(message, "yellow"))


def error_user(message: str) -> None:
    log.error("%s", message)
    print(colored(message, "red"))


def debug_user(message: str) -> None:
    """Log at debug level; also print when the log setting asks for debug output."""
    log.debug("%s", message)
    if "debug" in os.environ.get(DEBUG_ENV_VAR, ""):
        print(colored(f"DEBUG: {message}", attrs=["dark"]))