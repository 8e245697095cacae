"""Saving projects to disk and finding and loading them again."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from stageplan.models import (
    InvalidInputError,
    Project,
    ProjectFileError,
    ProjectNotFoundError,
    SerializationError,
)

log = logging.getLogger(__name__)

PROJECT_FILE = "project.json"
IDEA_FILE = "idea.md"


def validate_project_id(project_id: str) -> None:
    """Allow only alphanumeric characters, hyphens and underscores."""
    if not all(char.isalnum() or char in "_-" for char in project_id):
        log.warning("Invalid project ID format: %s", project_id)
        raise InvalidInputError(
            "Invalid project ID format. Project IDs must only contain "
            "alphanumeric characters, hyphens, and underscores."
        )


def save_project(project: Project) -> None:
    """Write the project's ``project.json`` into its directory."""
    text = project.to_json()
    project.path.mkdir(parents=True, exist_ok=True)
    project_file = project.path / PROJECT_FILE
    log.debug("Saving project file to: %s", project_file)
    project_file.write_text(text, encoding="utf-8")
    log.info("Project saved successfully: %s", project.id)


async def save_project_async(project: Project) -> None:
    """Validate the project's ID, then save it without blocking the loop."""
    validate_project_id(project.id)
    await asyncio.to_thread(save_project, project)


def find_project_dir(directory: str | Path, project_id: str) -> Optional[Path]:
    """The subdirectory of ``directory`` whose project file has ``project_id``."""
    for entry in sorted(Path(directory).iterdir()):
        project_file = entry / PROJECT_FILE
        if not (entry.is_dir() and project_file.exists()):
            continue
        log.debug("Found potential project file: %s", project_file)
        try:
            project = Project.from_json(project_file.read_text(encoding="utf-8"))
        except SerializationError as exc:
            log.warning("Failed to parse project file %s: %s", project_file, exc)
            continue
        if project.id == project_id:
            return entry
    return None


def _has_project_file(directory: Path) -> bool:
    return directory.exists() and (directory / PROJECT_FILE).exists()


def _search(directory: Path, project_id: str) -> Optional[Path]:
    try:
        return find_project_dir(directory, project_id)
    except OSError as exc:
        log.warning("Error while searching %s: %s", directory, exc)
        return None


def _locate(project_id: str, projects_dir: Optional[Path]) -> Path:
    current = Path.cwd()
    direct = current / project_id
    if _has_project_file(direct):
        return direct
    found = _search(current, project_id)
    if found is not None:
        return found
    if projects_dir is not None and projects_dir.exists():
        direct = projects_dir / project_id
        if _has_project_file(direct):
            return direct
        found = _search(projects_dir, project_id)
        if found is not None:
            return found
    log.error("Could not find project with ID: %s", project_id)
    raise ProjectNotFoundError(project_id)


def load_project(project_id: str, projects_dir: str | Path | None = None) -> Project:
    """Find a project in the working directory or ``projects_dir`` and load it."""
    validate_project_id(project_id)
    project_dir = _locate(project_id, None if projects_dir is None else Path(projects_dir))
    project_file = project_dir / PROJECT_FILE
    log.debug("Loading project from file: %s", project_file)
    project = Project.from_json(project_file.read_text(encoding="utf-8"))
    project.path = project_dir
    log.info("Project loaded successfully: %s", project.id)
    return project


async def load_project_async(
    project_id: str, projects_dir: str | Path | None = None
) -> Project:
    """Load a project without blocking the event loop."""
    validate_project_id(project_id)
    return await asyncio.to_thread(load_project, project_id, projects_dir)


def get_project_idea(project_id: str, projects_dir: str | Path | None = None) -> str:
    """The text of the project's ``idea.md``."""
    project = load_project(project_id, projects_dir)
    idea_file = project.path / IDEA_FILE
    if not idea_file.exists():
        log.error("Idea file not found for project %s: %s", project_id, idea_file)
        raise ProjectFileError(
            f"Idea file not found: {idea_file}. "
            "Please create an idea.md file in the project directory."
        )
    return idea_file.read_text(encoding="utf-8")