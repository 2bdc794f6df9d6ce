"""Error types raised by the Toggl client."""

from pathlib import Path
from typing import Optional


class TogglError(Exception):
    """Base class for errors presented to the user.

    Attributes:
        exit_code: Process exit status used by the CLI for this kind of error
    """

    exit_code = 1


class ArgumentError(TogglError):
    """Invalid command line argument."""

    exit_code = 2

    @classmethod
    def directory_not_found(cls, path: Path) -> "ArgumentError":
        return cls(f"Directory not found: {path}")

    @classmethod
    def not_a_directory(cls, path: Path) -> "ArgumentError":
        return cls(f"Not a directory: {path}")


class MissingArgumentError(TogglError):
    """Not enough input to run a command non-interactively."""

    exit_code = 2


class AuthError(TogglError):
    """Missing, invalid or expired credentials."""

    exit_code = 3


class CredentialsNotFoundError(AuthError):
    """No credentials have been stored yet."""

    def __init__(self, message: str = "No API token stored") -> None:
        super().__init__(message)


class NetworkError(TogglError):
    """Transport failure or unexpected response from the service."""

    exit_code = 4

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(TogglError):
    """Referenced entry or project does not exist."""

    exit_code = 5


class PickerError(TogglError):
    """The selection mechanism itself failed."""

    exit_code = 6


class StorageError(TogglError):
    """The credential store backend failed."""

    exit_code = 7


class SelectionCancelled(Exception):
    """The user aborted an interactive selection.

    Not a TogglError: cancelling is a clean no-op, never reported as a failure.
    """
