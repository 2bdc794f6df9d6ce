"""Pytest configuration and shared fixtures."""

import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence

import pytest  # type: ignore[import-not-found]

from toggl_cli.core.api import ApiClient
from toggl_cli.core.credentials import CredentialsStorage
from toggl_cli.core.errors import AuthError, CredentialsNotFoundError, NotFoundError
from toggl_cli.core.models import Credentials, Project, TimeEntry
from toggl_cli.core.picker import Picker

WORKSPACE_ID = 100


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: Integration tests")


class FakeApiClient(ApiClient):
    """In-memory service keeping entries most recent first."""

    def __init__(
        self,
        entries: Optional[list[TimeEntry]] = None,
        projects: Optional[list[Project]] = None,
        valid_tokens: Sequence[str] = ("valid-token",),
    ):
        self.entries = list(entries or [])
        self.projects = list(projects or [])
        self.valid_tokens = set(valid_tokens)
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._ids = itertools.count(1000)

    def calls_to(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]

    def get_running_entry(self) -> Optional[TimeEntry]:
        self.calls.append(("get_running_entry", ()))
        for entry in self.entries:
            if entry.is_running:
                return entry
        return None

    def start_entry(
        self,
        description: str,
        project_id: Optional[int],
        billable: bool,
        workspace_id: Optional[int] = None,
        tags: Optional[list[str]] = None,
    ) -> TimeEntry:
        self.calls.append(("start_entry", (description, project_id, billable, workspace_id, tags)))
        now = datetime.now(timezone.utc)
        for entry in self.entries:
            if entry.is_running:
                entry.stop = now
        entry = TimeEntry(
            id=next(self._ids),
            start=now,
            description=description,
            project_id=project_id,
            workspace_id=workspace_id or WORKSPACE_ID,
            billable=billable,
            tags=list(tags or []),
        )
        self.entries.insert(0, entry)
        return entry

    def stop_entry(self, entry_id: int, workspace_id: Optional[int] = None) -> TimeEntry:
        self.calls.append(("stop_entry", (entry_id, workspace_id)))
        for entry in self.entries:
            if entry.id == entry_id and entry.is_running:
                entry.stop = datetime.now(timezone.utc)
                return entry
        raise NotFoundError(f"No running time entry {entry_id}")

    def list_time_entries(self, count: int) -> list[TimeEntry]:
        self.calls.append(("list_time_entries", (count,)))
        return sorted(self.entries, key=lambda e: e.start, reverse=True)[:count]

    def list_projects(self, workspace_id: Optional[int] = None) -> list[Project]:
        self.calls.append(("list_projects", (workspace_id,)))
        return [p for p in self.projects if workspace_id is None or p.workspace_id == workspace_id]

    def authenticate(self, api_token: str) -> Credentials:
        self.calls.append(("authenticate", (api_token,)))
        if api_token not in self.valid_tokens:
            raise AuthError("The API token was rejected by the server")
        return Credentials(api_token=api_token)


class FakePicker(Picker):
    """Picker answering with a fixed label index, or cancelling."""

    def __init__(self, choice: Optional[int] = 0):
        self.choice = choice
        self.shown: list[list[str]] = []
        self.prompts: list[Optional[str]] = []

    def choose(self, labels: list[str], prompt: Optional[str] = None) -> Optional[str]:
        self.shown.append(labels)
        self.prompts.append(prompt)
        if self.choice is None:
            return None
        return labels[self.choice]


class MemoryStorage(CredentialsStorage):
    """Credential store kept in memory."""

    def __init__(self, credentials: Optional[Credentials] = None):
        self.credentials = credentials
        self.writes = 0

    def read(self) -> Credentials:
        if self.credentials is None:
            raise CredentialsNotFoundError()
        return self.credentials

    def write(self, credentials: Credentials) -> None:
        self.writes += 1
        self.credentials = credentials

    def delete(self) -> None:
        self.credentials = None


def make_entry(
    entry_id: int,
    hours_ago: float,
    description: str = "",
    project_id: Optional[int] = None,
    billable: bool = False,
    running: bool = False,
    tags: Optional[list[str]] = None,
) -> TimeEntry:
    """Build an entry that started ``hours_ago`` and lasted half an hour."""
    start = datetime.now(timezone.utc) - timedelta(hours=hours_ago)
    return TimeEntry(
        id=entry_id,
        start=start,
        stop=None if running else start + timedelta(minutes=30),
        description=description,
        project_id=project_id,
        workspace_id=WORKSPACE_ID,
        billable=billable,
        tags=tags or [],
    )


@pytest.fixture
def projects() -> list[Project]:
    """Projects of the test account."""
    return [
        Project(id=1, name="Internal", workspace_id=WORKSPACE_ID, billable=False),
        Project(id=2, name="Client Work", workspace_id=WORKSPACE_ID, billable=True),
    ]


@pytest.fixture
def api_client(projects: list[Project]) -> FakeApiClient:
    """Service with five stopped entries and no running one."""
    entries = [
        make_entry(5, 1, "Code review", project_id=2, billable=True, tags=["review"]),
        make_entry(4, 2, "Standup", project_id=1),
        make_entry(3, 3, "Code review", project_id=2, billable=True),
        make_entry(2, 4, "Emails"),
        make_entry(1, 5, "Planning", project_id=1),
    ]
    return FakeApiClient(entries, projects)


@pytest.fixture
def storage() -> MemoryStorage:
    """Empty credential store."""
    return MemoryStorage()
