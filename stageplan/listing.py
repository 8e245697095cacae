"""Finding every project on disk and showing projects and their stages."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from termcolor import colored

from stageplan.models import Project, SerializationError, StageStatus
from stageplan.projectstore import PROJECT_FILE, load_project

log = logging.getLogger(__name__)

_STATUS_COLOURS = {
    StageStatus.NOT_STARTED: ("Not Started", "red"),
    StageStatus.IN_PROGRESS: ("In Progress", "yellow"),
    StageStatus.COMPLETED: ("Completed", "green"),
    StageStatus.FAILED: ("Failed", "red"),
}


def _display_time(moment: datetime) -> str:
    naive = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return f"{naive.isoformat(sep=' ')} UTC"


def collect_projects(directory: str | Path) -> list[Project]:
    """Load every project kept in a direct subdirectory of ``directory``.

    Unreadable or malformed project files are skipped with a warning.
    """
    projects: list[Project] = []
    for entry in sorted(Path(directory).iterdir()):
        project_file = entry / PROJECT_FILE
        if not (entry.is_dir() and project_file.exists()):
            continue
        log.debug("Found project file: %s", project_file)
        try:
            text = project_file.read_text(encoding="utf-8")
        except OSError as exc:
            log.warning("Failed to read project file %s: %s", project_file, exc)
            continue
        try:
            project = Project.from_json(text)
        except SerializationError as exc:
            log.warning("Failed to parse project file %s: %s", project_file, exc)
            continue
        project.path = entry
        projects.append(project)
    return projects


def get_all_projects(projects_dir: str | Path | None = None) -> list[Project]:
    """Projects in the working directory, then those in ``projects_dir``."""
    current = Path.cwd()
    log.debug("Listing projects in current directory: %s", current)
    projects: list[Project] = []
    try:
        projects.extend(collect_projects(current))
    except OSError as exc:
        log.warning("Error collecting projects from current directory: %s", exc)
    if projects_dir is not None and Path(projects_dir).exists():
        log.debug("Listing projects in configured directory: %s", projects_dir)
        try:
            projects.extend(collect_projects(projects_dir))
        except OSError as exc:
            log.warning("Error collecting projects from configured directory: %s", exc)
    return projects


async def get_all_projects_async(projects_dir: str | Path | None = None) -> list[Project]:
    """Like :func:`get_all_projects`, without blocking the event loop."""
    return await asyncio.to_thread(get_all_projects, projects_dir)


def list_projects(projects_dir: str | Path | None = None) -> list[Project]:
    """Print a table of every project found and return the projects."""
    projects = get_all_projects(projects_dir)
    rule = colored("-" * 50, attrs=["dark"])
    print(colored(f"{' Projects ':-^50}", "green"))
    id_heading = colored(f"{'ID':<15}", "cyan")
    name_heading = colored(f"{'Name':<30}", "cyan")
    print(f"{id_heading} | {name_heading}")
    print(rule)
    if not projects:
        print(colored("No projects found.", "yellow"))
    for project in projects:
        project_id = colored(f"{project.id:<15}", "yellow")
        print(f"{project_id} | {project.name:<30}")
    print(rule)
    return projects


def show_status(project_id: str, projects_dir: str | Path | None = None) -> Project:
    """Print a project's details and the state of each stage; return the project."""
    log.debug("Showing status for project: %s", project_id)
    project = load_project(project_id, projects_dir)
    log.info("Displaying status for project: %s (%s)", project.name, project.id)
    title = f" Project: {project.name} "
    print(colored(f"{title:-^80}", "green"))
    print(f"ID: {colored(project.id, 'yellow')}")
    print(f"Description: {project.description}")
    print(f"Created: {_display_time(project.created_at)}")
    updated: Optional[datetime] = project.updated_at or project.created_at
    print(f"Updated: {_display_time(updated)}")
    print(f"Directory: {colored(str(project.path), 'yellow')}")
    print()
    print(colored(f"{' Stages ':-^80}", "green"))
    for stage in project.stages:
        label, colour = _STATUS_COLOURS[stage.status]
        print(f"Stage {stage.number}: {colored(stage.name, 'cyan')} - {colored(label, colour)}")
        print(f"  Description: {stage.description}")
        if stage.completed_at is not None:
            print(f"  Completed: {_display_time(stage.completed_at)}")
        if stage.artifacts:
            print("  Artifacts:")
            for artifact in stage.artifacts:
                print(f"    - {artifact.name} ({artifact.path})")
        print()
    return project