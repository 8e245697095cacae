"""Creating a new project directory with its record and idea file."""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone
from pathlib import Path

from termcolor import colored

from stageplan.models import Project
from stageplan.projectstore import IDEA_FILE, save_project

ID_ALPHABET = "_-" + string.digits + string.ascii_lowercase + string.ascii_uppercase
ID_LENGTH = 10


def _display_time(moment: datetime) -> str:
    naive = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return f"{naive.isoformat(sep=' ')} UTC"


def new_project_id() -> str:
    """A random, URL-safe project ID."""
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


def run_init(name: str, description: str, base_dir: str | Path | None = None) -> Project:
    """Create a project under ``base_dir`` (the working directory by default)."""
    base = Path.cwd() if base_dir is None else Path(base_dir)
    project_id = new_project_id()
    project_dir = base / name.replace(" ", "-").lower()
    project_dir.mkdir(parents=True, exist_ok=True)
    (project_dir / "stages").mkdir(parents=True, exist_ok=True)
    (project_dir / "artifacts").mkdir(parents=True, exist_ok=True)

    project = Project(project_id, name, description, project_dir)
    save_project(project)

    (project_dir / IDEA_FILE).write_text(
        f"# {name}\n\n{description}\n\nCreated at: {_display_time(project.created_at)}",
        encoding="utf-8",
    )

    print(
        f"{colored('Project', 'green')} {colored(name, 'yellow')} "
        f"{colored('initialized successfully.', 'green')}"
    )
    print(f"{colored('Project ID:', 'green')} {colored(project_id, 'yellow')}")
    print(f"{colored('Project directory:', 'green')} {colored(str(project_dir), 'yellow')}")
    print()
    print(colored("Use the following commands to manage your project:", "green"))
    print(
        f"  {colored('run-stage', 'yellow')} {colored('1', 'light_blue')} - "
        "Run the first stage (Initial Plan Creation)"
    )
    print(
        f"  {colored('status', 'yellow')} {colored('-p', 'light_blue')} "
        f"{colored(project_id, 'light_blue')} - Check project status"
    )
    return project