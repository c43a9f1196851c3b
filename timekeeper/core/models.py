# timekeeper/core/models.py

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class ProjectStatus(Enum):
    """Lifecycle state of a project. Only ACTIVE projects accept new time logs."""
    ACTIVE = "active"
    PAUSED = "paused"


def now_timestamp() -> str:
    """The local time as an ISO-8601 string with seconds and UTC offset."""
    return datetime.now().astimezone().isoformat(timespec="seconds")


# --- Schema helpers ---
# Each document is checked field by field so a bad file is reported with a
# precise reason instead of a KeyError deep inside a flow.

def _require(data: Dict[str, Any], key: str, expected_type: Union[type, Tuple[type, ...]], where: str) -> Any:
    if not isinstance(data, dict):
        raise ValueError(f"{where} must be a JSON object")
    if key not in data:
        raise ValueError(f"{where} is missing required field '{key}'")
    value = data[key]
    types = expected_type if isinstance(expected_type, tuple) else (expected_type,)
    type_names = " or ".join(t.__name__ for t in types)
    # bool is a subclass of int, so it must never pass as a number.
    if isinstance(value, bool) and bool not in types:
        raise ValueError(f"{where} field '{key}' must be of type {type_names}")
    if not isinstance(value, types):
        raise ValueError(f"{where} field '{key}' must be of type {type_names}")
    return value


@dataclass
class User:
    uuid: str
    name: str
    email: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            uuid=_require(data, "uuid", str, "user"),
            name=_require(data, "name", str, "user"),
            email=_require(data, "email", str, "user"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"uuid": self.uuid, "name": self.name, "email": self.email}


@dataclass
class Project:
    uuid: str
    name: str
    description: str
    status: ProjectStatus

    @property
    def is_active(self) -> bool:
        return self.status is ProjectStatus.ACTIVE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        raw_status = _require(data, "status", str, "project")
        try:
            status = ProjectStatus(raw_status)
        except ValueError:
            raise ValueError(f"project status '{raw_status}' is not one of: active, paused") from None
        return cls(
            uuid=_require(data, "uuid", str, "project"),
            name=_require(data, "name", str, "project"),
            description=_require(data, "description", str, "project"),
            status=status,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uuid": self.uuid,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
        }


@dataclass
class ProjectCatalog:
    """The ordered list of projects, persisted as a single document."""
    projects: List[Project] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectCatalog":
        raw_projects = _require(data, "projects", list, "catalog")
        projects = [Project.from_dict(item) for item in raw_projects]

        seen = set()
        for project in projects:
            if project.uuid in seen:
                raise ValueError(f"project uuid '{project.uuid}' appears more than once")
            seen.add(project.uuid)
        return cls(projects)

    def to_dict(self) -> Dict[str, Any]:
        return {"projects": [p.to_dict() for p in self.projects]}

    def find(self, project_uuid: str) -> Optional[Project]:
        return next((p for p in self.projects if p.uuid == project_uuid), None)

    def active(self) -> List[Project]:
        return [p for p in self.projects if p.is_active]


@dataclass
class AppConfig:
    api_url: str
    api_token: str
    mock_mode: bool
    show_curl_commands: bool
    last_updated: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        last_updated = _require(data, "last_updated", str, "config")
        try:
            datetime.fromisoformat(last_updated)
        except ValueError:
            raise ValueError(f"config field 'last_updated' is not an ISO-8601 timestamp: {last_updated!r}") from None
        return cls(
            api_url=_require(data, "api_url", str, "config"),
            api_token=_require(data, "api_token", str, "config"),
            mock_mode=_require(data, "mock_mode", bool, "config"),
            show_curl_commands=_require(data, "show_curl_commands", bool, "config"),
            last_updated=last_updated,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "api_url": self.api_url,
            "api_token": self.api_token,
            "mock_mode": self.mock_mode,
            "show_curl_commands": self.show_curl_commands,
            "last_updated": self.last_updated,
        }

    def touched(self, **changes: Any) -> "AppConfig":
        """Returns a copy with `changes` applied and a fresh `last_updated` stamp."""
        return replace(self, last_updated=now_timestamp(), **changes)


@dataclass
class TimeLogEntry:
    id: str
    date: str
    hours: int
    minutes: int
    project_uuid: str
    project_name: str
    note: str
    user_uuid: str

    @property
    def total_minutes(self) -> int:
        return self.hours * 60 + self.minutes

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeLogEntry":
        # Servers may hand out numeric ids; they are kept as opaque strings.
        raw_id = _require(data, "id", (str, int), "time log")
        note = data.get("note")
        return cls(
            id=str(raw_id),
            date=_require(data, "date", str, "time log"),
            hours=_require(data, "hours", int, "time log"),
            minutes=_require(data, "minutes", int, "time log"),
            project_uuid=_require(data, "project_uuid", str, "time log"),
            project_name=data.get("project_name") or "",
            note=note if isinstance(note, str) else "",
            user_uuid=data.get("user_uuid") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "hours": self.hours,
            "minutes": self.minutes,
            "project_uuid": self.project_uuid,
            "project_name": self.project_name,
            "note": self.note,
            "user_uuid": self.user_uuid,
        }


def format_duration(total_minutes: int) -> str:
    """Renders a minute count as 'Xh Ym', e.g. 255 -> '4h 15m'."""
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"


@dataclass
class DailyLog:
    """All time logs returned for one calendar date, with their aggregate."""
    date: str
    entries: List[TimeLogEntry]

    @property
    def total_minutes(self) -> int:
        return sum(entry.total_minutes for entry in self.entries)

    @property
    def total_display(self) -> str:
        return format_duration(self.total_minutes)

    @property
    def is_empty(self) -> bool:
        return not self.entries
