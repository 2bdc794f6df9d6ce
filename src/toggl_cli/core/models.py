"""Core data models for the Toggl client."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

CREATED_WITH = "toggl-cli"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp from the API into an aware datetime."""
    if not value:
        return None
    # fromisoformat only understands a trailing "Z" from Python 3.11 on
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a datetime the way the API expects it (UTC, second precision)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class Project:
    """Project as returned by the service.

    Attributes:
        id: Project identifier
        name: Display name
        workspace_id: Workspace the project belongs to
        billable: Default billable flag for new entries
        active: Whether the project is active
        color: Display color (hex)
    """

    id: int
    name: str
    workspace_id: Optional[int] = None
    billable: bool = False
    active: bool = True
    color: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        """Create Project from the service JSON representation."""
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            workspace_id=data.get("workspace_id") or data.get("wid"),
            billable=bool(data.get("billable") or False),
            active=bool(data.get("active", True)),
            color=data.get("color") or None,
        )


@dataclass
class TimeEntry:
    """Time entry as stored by the service.

    Attributes:
        start: When the entry started
        id: Identifier, None until the service has persisted the entry
        description: Free text, empty string when not set
        project_id: Referenced project (optional)
        workspace_id: Workspace the entry lives in
        stop: When the entry stopped (None while running)
        billable: Whether the entry is billable
        tags: Tag names
        project: Resolved project, only filled in for display
    """

    start: datetime
    id: Optional[int] = None
    description: str = ""
    project_id: Optional[int] = None
    workspace_id: Optional[int] = None
    stop: Optional[datetime] = None
    billable: bool = False
    tags: list[str] = field(default_factory=list)
    project: Optional[Project] = field(default=None, compare=False, repr=False)

    @property
    def is_running(self) -> bool:
        """Check if this entry is currently running."""
        return self.stop is None

    @property
    def duration(self) -> timedelta:
        """Elapsed time, measured up to now while the entry is running."""
        end = self.stop or datetime.now(timezone.utc)
        return max(end - self.start, timedelta(0))

    @property
    def project_name(self) -> Optional[str]:
        return self.project.name if self.project else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON body used to create a running entry."""
        return {
            "created_with": CREATED_WITH,
            "description": self.description or "",
            "project_id": self.project_id,
            "workspace_id": self.workspace_id,
            "billable": self.billable,
            "tags": list(self.tags),
            "start": format_timestamp(self.start),
            "stop": format_timestamp(self.stop) if self.stop else None,
            "duration": -1 if self.stop is None else int((self.stop - self.start).total_seconds()),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeEntry":
        """Create TimeEntry from the service JSON representation."""
        start = parse_timestamp(data.get("start"))
        if start is None:
            raise ValueError(f"Time entry without start time: {data.get('id')}")
        return cls(
            id=data.get("id"),
            start=start,
            stop=parse_timestamp(data.get("stop")),
            description=data.get("description") or "",
            project_id=data.get("project_id") or data.get("pid"),
            workspace_id=data.get("workspace_id") or data.get("wid"),
            billable=bool(data.get("billable") or False),
            tags=list(data.get("tags") or []),
        )


@dataclass(frozen=True)
class Credentials:
    """API credentials persisted in the credential store."""

    api_token: str

    def __repr__(self) -> str:
        return "Credentials(api_token='***')"


@dataclass(frozen=True)
class PickerItem:
    """Labeled candidate offered to a picker.

    The value is returned unchanged; pickers only look at the label.
    """

    label: str
    value: Any
