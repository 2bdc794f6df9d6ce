"""Time entry commands built on the API client and a picker."""

import logging
from typing import Any, Optional, Union

from toggl_cli.core.api import ApiClient
from toggl_cli.core.errors import MissingArgumentError, NotFoundError, SelectionCancelled
from toggl_cli.core.models import PickerItem, Project, TimeEntry
from toggl_cli.core.picker import Picker

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 50
PROJECT_PROMPT = "Project"
ENTRY_PROMPT = "Time entry"


def entry_label(entry: TimeEntry) -> str:
    """One-line label for a time entry in a picker."""
    label = entry.description or "(no description)"
    if entry.project_name:
        label += f" @{entry.project_name}"
    if entry.billable:
        label += " $"
    return " ".join(label.split())


def project_label(project: Project) -> str:
    """One-line label for a project in a picker."""
    label = project.name
    if project.billable:
        label += " $"
    return " ".join(label.split())


class TimeTracker:
    """Commands on the running time entry.

    Every method issues its remote calls one after another; none of them is
    retried.
    """

    def __init__(
        self,
        api_client: ApiClient,
        picker: Optional[Picker] = None,
        defaults: Optional[dict[str, Any]] = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ):
        """Initialize time tracker.

        Args:
            api_client: Client for the time-tracking service
            picker: Picker used by interactive commands
            defaults: Fallback description/project/billable/tags for ``start``
            history_size: Number of recent entries offered by ``continue -i``
        """
        self.api_client = api_client
        self.picker = picker
        self.defaults = defaults or {}
        self.history_size = history_size

    def running(self) -> Optional[TimeEntry]:
        """Get the running entry.

        Returns:
            Running entry with its project attached, or None when idle
        """
        entry = self.api_client.get_running_entry()
        if entry is not None:
            self._attach_projects([entry])
        return entry

    def start(
        self,
        description: Optional[str] = None,
        project: Optional[Union[str, int]] = None,
        billable: Optional[bool] = None,
        interactive: bool = False,
        tags: Optional[list[str]] = None,
    ) -> TimeEntry:
        """Start a new entry, replacing the running one if there is any.

        Args:
            description: Entry description
            project: Project name or id
            billable: Billable flag; defaults to the project's flag
            interactive: Pick a project when none was given
            tags: Tag names

        Returns:
            The new running entry

        Raises:
            MissingArgumentError: If neither description nor project is known
                and the command is not interactive
            NotFoundError: If the project does not exist
            SelectionCancelled: If the user cancelled the project selection
        """
        if description is None:
            description = self.defaults.get("description")
        if project is None:
            project = self.defaults.get("project")
        if billable is None:
            billable = self.defaults.get("billable")
        if tags is None:
            tags = self.defaults.get("tags") or None

        if description is None and project is None and not interactive:
            raise MissingArgumentError(
                "Provide a description or a project, or use --interactive to pick a project"
            )

        resolved: Optional[Project] = None
        if project is not None:
            resolved = self._find_project(project)
        elif interactive:
            projects = self.api_client.list_projects()
            if projects:
                resolved = self._pick([PickerItem(project_label(p), p) for p in projects], PROJECT_PROMPT)

        if billable is None:
            billable = resolved.billable if resolved else False

        entry = self.api_client.start_entry(
            description or "",
            resolved.id if resolved else None,
            billable,
            workspace_id=resolved.workspace_id if resolved else None,
            tags=tags,
        )
        entry.project = resolved
        logger.info(f"Started time entry {entry.id}")
        return entry

    def stop(self) -> Optional[TimeEntry]:
        """Stop the running entry.

        Returns:
            Stopped entry, or None if nothing was running
        """
        current = self.api_client.get_running_entry()
        if current is None or current.id is None:
            return None

        stopped = self.api_client.stop_entry(current.id, current.workspace_id)
        self._attach_projects([stopped])
        logger.info(f"Stopped time entry {stopped.id}")
        return stopped

    def continue_entry(self, interactive: bool = False) -> TimeEntry:
        """Start a new entry copying a previous one.

        Args:
            interactive: Pick among recent entries instead of the latest one

        Returns:
            The new running entry

        Raises:
            NotFoundError: If there is no previous entry
            SelectionCancelled: If the user cancelled the selection
        """
        if interactive:
            entries = self.api_client.list_time_entries(self.history_size)
        else:
            entries = self.api_client.list_time_entries(1)
        if not entries:
            raise NotFoundError("No previous time entry to continue")

        if interactive:
            self._attach_projects(entries)
            source = self._pick([PickerItem(entry_label(e), e) for e in _unique(entries)], ENTRY_PROMPT)
        else:
            source = entries[0]

        entry = self.api_client.start_entry(
            source.description,
            source.project_id,
            source.billable,
            workspace_id=source.workspace_id,
            tags=list(source.tags) or None,
        )
        entry.project = source.project
        if entry.project is None:
            self._attach_projects([entry])
        logger.info(f"Continued time entry {source.id} as {entry.id}")
        return entry

    def list_entries(self, number: int) -> list[TimeEntry]:
        """Get the most recent entries.

        Args:
            number: Maximum number of entries

        Returns:
            Entries, most recent first
        """
        entries = self.api_client.list_time_entries(number)[:number]
        self._attach_projects(entries)
        return entries

    def _pick(self, items: list[PickerItem], prompt: str) -> Any:
        if self.picker is None:
            raise MissingArgumentError("Interactive selection is not available")
        value = self.picker.pick(items, prompt)
        if value is None:
            raise SelectionCancelled()
        return value

    def _find_project(self, project: Union[str, int]) -> Project:
        projects = self.api_client.list_projects()
        key = str(project).strip()
        for candidate in projects:
            if str(candidate.id) == key:
                return candidate
        for candidate in projects:
            if candidate.name.lower() == key.lower():
                return candidate
        raise NotFoundError(f"Project not found: {project}")

    def _attach_projects(self, entries: list[TimeEntry]) -> None:
        if not any(e.project_id is not None and e.project is None for e in entries):
            return
        projects = {p.id: p for p in self.api_client.list_projects()}
        for entry in entries:
            if entry.project is None and entry.project_id is not None:
                entry.project = projects.get(entry.project_id)


def _unique(entries: list[TimeEntry]) -> list[TimeEntry]:
    """Drop entries repeating an earlier description/project/billable combination."""
    seen = set()
    result = []
    for entry in entries:
        key = (entry.description, entry.project_id, entry.billable)
        if key in seen:
            continue
        seen.add(key)
        result.append(entry)
    return result
