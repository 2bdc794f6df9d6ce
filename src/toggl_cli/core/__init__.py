"""Core functionality for the Toggl client."""

from toggl_cli.core.models import Credentials, PickerItem, Project, TimeEntry
from toggl_cli.core.tracker import TimeTracker

__all__ = ["Credentials", "PickerItem", "Project", "TimeEntry", "TimeTracker"]
