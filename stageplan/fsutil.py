"""File system helpers: reading, writing, listing, finding and moving files."""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
from pathlib import Path

from stageplan.models import InvalidInputError

log = logging.getLogger(__name__)

_GLOB_TOKEN_RE = re.compile(r"\*\*/|\*|\?|\[!?\]?[^\]]*\]|\[|.", re.DOTALL)


def ensure_dir_exists(path: str | Path) -> None:
    """Create ``path`` and its parents if it does not exist yet."""
    path = Path(path)
    if not path.exists():
        log.debug("Creating directory: %s", path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            log.error("Failed to create directory %s: %s", path, exc)
            raise


def read_to_string(path: str | Path) -> str:
    """The whole text of a file."""
    path = Path(path)
    log.debug("Reading file: %s", path)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        log.error("Failed to read file %s: %s", path, exc)
        raise


def _ensure_parent(path: Path) -> None:
    if str(path.parent):
        ensure_dir_exists(path.parent)


def write_string_to_file(path: str | Path, content: str) -> None:
    """Write ``content`` to a file, creating parent directories as needed."""
    path = Path(path)
    log.debug("Writing to file: %s", path)
    _ensure_parent(path)
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        log.error("Failed to write to file %s: %s", path, exc)
        raise


def append_string_to_file(path: str | Path, content: str) -> None:
    """Append ``content`` to a file, creating it and its parents as needed."""
    path = Path(path)
    log.debug("Appending to file: %s", path)
    _ensure_parent(path)
    try:
        with path.open("a", encoding="utf-8") as handle:
            handle.write(content)
    except OSError as exc:
        log.error("Failed to append to file %s: %s", path, exc)
        raise


def file_exists(path: str | Path) -> bool:
    return Path(path).is_file()


def dir_exists(path: str | Path) -> bool:
    return Path(path).is_dir()


def _entries(directory: Path) -> list[Path]:
    if not directory.exists():
        return []
    try:
        return sorted(directory.iterdir())
    except OSError as exc:
        log.error("Failed to read directory %s: %s", directory, exc)
        raise


def list_files(directory: str | Path) -> list[Path]:
    """Files directly inside ``directory``; empty if it does not exist."""
    log.debug("Listing files in directory: %s", directory)
    return [entry for entry in _entries(Path(directory)) if entry.is_file()]


def list_dirs(directory: str | Path) -> list[Path]:
    """Directories directly inside ``directory``; empty if it does not exist."""
    log.debug("Listing directories in directory: %s", directory)
    return [entry for entry in _entries(Path(directory)) if entry.is_dir()]


def _bracket_class(token: str) -> str:
    body = token[1:-1]
    negate = body.startswith("!")
    if negate:
        body = body[1:]
    inner = "".join(char if char == "-" else re.escape(char) for char in body)
    return f"[{'^' if negate else ''}{inner}]"


def _glob_regex(pattern: str) -> re.Pattern[str]:
    """Compile a glob in which wildcards also match path separators, ignoring case."""
    if "***" in pattern:
        raise InvalidInputError(f"Invalid glob pattern: wildcards are either regular '*' or recursive '**' ({pattern})")
    parts: list[str] = []
    for match in _GLOB_TOKEN_RE.finditer(pattern):
        token = match.group()
        if token == "**/":
            if match.start() == 0 or pattern[match.start() - 1] == "/":
                parts.append("(?:.*/)?")
            else:
                parts.append(".*/")
        elif token == "*":
            parts.append(".*")
        elif token == "?":
            parts.append(".")
        elif token == "[":
            raise InvalidInputError(f"Invalid glob pattern: unclosed character class ({pattern})")
        elif token.startswith("[") and len(token) > 1:
            parts.append(_bracket_class(token))
        else:
            parts.append(re.escape(token))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def find_files(directory: str | Path, pattern: str) -> list[Path]:
    """Files under ``directory`` (recursively) whose relative path matches ``pattern``.

    Matching ignores case, and ``*`` and ``?`` also match path separators.
    """
    log.debug("Finding files with pattern %s in %s", pattern, directory)
    regex = _glob_regex(pattern)
    prefix = Path(directory) if str(directory) else None
    base = prefix if prefix is not None else Path(".")
    found: list[Path] = []
    for root, dirs, files in os.walk(base):
        dirs.sort()
        for name in sorted(files):
            full = Path(root) / name
            relative = full.relative_to(base)
            if regex.fullmatch(relative.as_posix()):
                found.append(prefix / relative if prefix is not None else relative)
    return found


def delete_file(path: str | Path) -> None:
    """Delete a file if there is one."""
    path = Path(path)
    if path.is_file():
        log.debug("Deleting file: %s", path)
        try:
            path.unlink()
        except OSError as exc:
            log.error("Failed to delete file %s: %s", path, exc)
            raise


def delete_dir(path: str | Path) -> None:
    """Delete a directory and everything in it, if there is one."""
    path = Path(path)
    if path.is_dir():
        log.debug("Deleting directory: %s", path)
        try:
            shutil.rmtree(path)
        except OSError as exc:
            log.error("Failed to delete directory %s: %s", path, exc)
            raise


def copy_file(source: str | Path, destination: str | Path) -> int:
    """Copy a file with its permissions; return the number of bytes copied."""
    source, destination = Path(source), Path(destination)
    log.debug("Copying file from %s to %s", source, destination)
    _ensure_parent(destination)
    try:
        shutil.copyfile(source, destination)
        shutil.copymode(source, destination)
    except OSError as exc:
        log.error("Failed to copy file from %s to %s: %s", source, destination, exc)
        raise
    return destination.stat().st_size


def rename(source: str | Path, destination: str | Path) -> None:
    """Move a file or directory, creating the destination's parents as needed."""
    source, destination = Path(source), Path(destination)
    log.debug("Renaming %s to %s", source, destination)
    _ensure_parent(destination)
    try:
        source.replace(destination)
    except OSError as exc:
        log.error("Failed to rename %s to %s: %s", source, destination, exc)
        raise


def read_file(path: str | Path) -> str:
    log.debug("Reading file (sync): %s", path)
    return Path(path).read_text(encoding="utf-8")


def write_file(path: str | Path, content: str) -> None:
    """Write ``content`` to a file, creating missing parent directories."""
    path = Path(path)
    log.debug("Writing to file (sync): %s", path)
    if str(path.parent) and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def ensure_dir(path: str | Path) -> None:
    path = Path(path)
    if not path.exists():
        log.debug("Creating directory (sync): %s", path)
        path.mkdir(parents=True, exist_ok=True)


async def read_file_async(path: str | Path) -> str:
    """Read a file's text without blocking the event loop."""
    return await asyncio.to_thread(read_file, path)


async def write_file_async(path: str | Path, content: str) -> None:
    """Write a file without blocking the event loop."""
    await asyncio.to_thread(write_file, path, content)


async def ensure_dir_async(path: str | Path) -> None:
    """Create a directory without blocking the event loop."""
    await asyncio.to_thread(ensure_dir, path)