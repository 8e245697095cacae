"""Project records: stages, artifacts, statuses and their JSON form."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class ToolkitError(Exception):
    """Base class for every error the toolkit raises."""


class InvalidInputError(ToolkitError, ValueError):
    """Input that the toolkit refuses to work with."""


class ProjectNotFoundError(ToolkitError, LookupError):
    """No project with the requested ID could be found."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class TemplateError(ToolkitError):
    """A prompt template could not be registered or rendered."""


class SerializationError(ToolkitError):
    """Project data could not be encoded or decoded."""


class ProjectFileError(ToolkitError):
    """A file that belongs to a project is missing or unusable."""


class StageNotFoundError(ToolkitError, LookupError):
    """There is no stage with the requested number."""

    def __init__(self, stage: int) -> None:
        super().__init__(f"Stage not found: {stage}")
        self.stage = stage


class StageStatus(Enum):
    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    FAILED = "Failed"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


_TIMESTAMP_RE = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<zone>[Zz]|[+-]\d{2}:?\d{2})"
)


def _format_timestamp(moment: datetime) -> str:
    moment = moment.astimezone(timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    micro = moment.microsecond
    if micro:
        text += f".{micro // 1000:03d}" if micro % 1000 == 0 else f".{micro:06d}"
    return text + "Z"


def _parse_timestamp(text: Any) -> datetime:
    if not isinstance(text, str):
        raise SerializationError(f"expected a timestamp string, got {text!r}")
    match = _TIMESTAMP_RE.fullmatch(text.strip())
    if match is None:
        raise SerializationError(f"invalid timestamp: {text!r}")
    try:
        moment = datetime.strptime(
            f"{match['date']}T{match['time']}", "%Y-%m-%dT%H:%M:%S"
        )
    except ValueError as exc:
        raise SerializationError(f"invalid timestamp: {text!r}") from exc
    fraction = match["fraction"] or ""
    moment = moment.replace(microsecond=int(fraction[:6].ljust(6, "0")))
    zone = match["zone"]
    if zone in ("Z", "z"):
        offset = timezone.utc
    else:
        digits = zone[1:].replace(":", "")
        delta = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
        offset = timezone(-delta if zone[0] == "-" else delta)
    return moment.replace(tzinfo=offset).astimezone(timezone.utc)


def _field(data: Any, key: str, kind: type) -> Any:
    if not isinstance(data, dict):
        raise SerializationError(f"expected an object, got {type(data).__name__}")
    if key not in data:
        raise SerializationError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise SerializationError(f"field `{key}` has the wrong type")
    return value


def _optional_str(data: dict, key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise SerializationError(f"field `{key}` has the wrong type")
    return value


def _status(value: Any) -> StageStatus:
    try:
        return StageStatus(value)
    except ValueError as exc:
        raise SerializationError(f"unknown stage status: {value!r}") from exc


@dataclass
class Artifact:
    """A file produced by a stage."""

    name: str
    file_type: str
    path: Path
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "file_type": self.file_type,
            "path": str(self.path),
            "created_at": _format_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Artifact:
        return cls(
            name=_field(data, "name", str),
            file_type=_field(data, "file_type", str),
            path=Path(_field(data, "path", str)),
            created_at=_parse_timestamp(_field(data, "created_at", str)),
        )


@dataclass
class StageRecord:
    """The saved state of one planning stage of a project."""

    number: int
    name: str
    description: str
    status: StageStatus = StageStatus.NOT_STARTED
    completed_at: Optional[datetime] = None
    content: Optional[str] = None
    artifacts: list[Artifact] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "completed_at": (
                None if self.completed_at is None else _format_timestamp(self.completed_at)
            ),
            "content": self.content,
            "artifacts": [artifact.to_dict() for artifact in self.artifacts],
        }

    @classmethod
    def from_dict(cls, data: Any) -> StageRecord:
        completed_at = data.get("completed_at") if isinstance(data, dict) else None
        return cls(
            number=_field(data, "number", int),
            name=_field(data, "name", str),
            description=_field(data, "description", str),
            status=_status(_field(data, "status", str)),
            completed_at=None if completed_at is None else _parse_timestamp(completed_at),
            content=_optional_str(data, "content"),
            artifacts=[Artifact.from_dict(item) for item in _field(data, "artifacts", list)],
        )


_STAGE_DEFINITIONS = (
    (1, "Initial Plan Creation", "Develop a comprehensive plan based on the initial idea"),
    (2, "Critical Evaluation", "Analyze and identify overly complex or impractical elements"),
    (3, "Realistic Alternative", "Propose a more practical, achievable alternative approach"),
    (4, "Technical Approach Refinement", "Compare different technical implementation options"),
    (5, "AI Implementation Enhancement", "Restructure the plan for AI-assisted development"),
    (6, "Code Review and Optimization", "Review and optimize code using Claude Code"),
)


def default_stages() -> list[StageRecord]:
    """The six stages every new project starts with, none of them started."""
    return [
        StageRecord(number, name, description)
        for number, name, description in _STAGE_DEFINITIONS
    ]


@dataclass
class Project:
    """A project plan and the state of each of its stages."""

    id: str
    name: str
    description: str
    path: Path
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: Optional[datetime] = None
    stages: list[StageRecord] = field(default_factory=default_stages)

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        if self.updated_at is None:
            self.updated_at = self.created_at

    def get_stage(self, stage_number: int) -> Optional[StageRecord]:
        return next((stage for stage in self.stages if stage.number == stage_number), None)

    def update_stage(self, stage_number: int, content: str, status: StageStatus) -> bool:
        """Store a stage's content and status; False if there is no such stage."""
        stage = self.get_stage(stage_number)
        if stage is None:
            return False
        stage.content = content
        stage.status = status
        if status is StageStatus.COMPLETED:
            stage.completed_at = _utc_now()
        self.updated_at = _utc_now()
        return True

    def add_artifact(self, stage_number: int, artifact: Artifact) -> bool:
        """Attach an artifact to a stage; False if there is no such stage."""
        stage = self.get_stage(stage_number)
        if stage is None:
            return False
        stage.artifacts.append(artifact)
        self.updated_at = _utc_now()
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": _format_timestamp(self.created_at),
            "updated_at": _format_timestamp(self.updated_at or self.created_at),
            "stages": [stage.to_dict() for stage in self.stages],
            "path": str(self.path),
        }

    @classmethod
    def from_dict(cls, data: Any) -> Project:
        return cls(
            id=_field(data, "id", str),
            name=_field(data, "name", str),
            description=_field(data, "description", str),
            path=Path(_field(data, "path", str)),
            created_at=_parse_timestamp(_field(data, "created_at", str)),
            updated_at=_parse_timestamp(_field(data, "updated_at", str)),
            stages=[StageRecord.from_dict(item) for item in _field(data, "stages", list)],
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> Project:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SerializationError(str(exc)) from exc
        return cls.from_dict(data)