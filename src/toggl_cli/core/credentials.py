"""Local storage of the API token."""

import logging
from abc import ABC, abstractmethod

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from toggl_cli.core.errors import CredentialsNotFoundError, StorageError
from toggl_cli.core.models import Credentials

logger = logging.getLogger(__name__)

KEYRING_SERVICE = "togglcli"
KEYRING_USERNAME = "default"


class CredentialsStorage(ABC):
    """Single-secret store for the API token."""

    @abstractmethod
    def read(self) -> Credentials:
        """Return stored credentials.

        Raises:
            CredentialsNotFoundError: If nothing has been stored yet
            StorageError: If the backend fails
        """

    @abstractmethod
    def write(self, credentials: Credentials) -> None:
        """Persist credentials, replacing any previous ones."""

    @abstractmethod
    def delete(self) -> None:
        """Remove stored credentials. Does nothing if none are stored."""


class KeyringStorage(CredentialsStorage):
    """Credentials kept in the OS secret manager through keyring."""

    def __init__(self, service: str = KEYRING_SERVICE, username: str = KEYRING_USERNAME):
        self.service = service
        self.username = username

    def read(self) -> Credentials:
        try:
            token = keyring.get_password(self.service, self.username)
        except KeyringError as e:
            raise StorageError(f"Could not read API token from keyring: {e}")
        if not token:
            raise CredentialsNotFoundError()
        return Credentials(api_token=token)

    def write(self, credentials: Credentials) -> None:
        try:
            keyring.set_password(self.service, self.username, credentials.api_token)
        except KeyringError as e:
            raise StorageError(f"Could not store API token in keyring: {e}")
        logger.debug(f"API token stored under {self.service}/{self.username}")

    def delete(self) -> None:
        try:
            keyring.delete_password(self.service, self.username)
        except PasswordDeleteError:
            logger.debug("No API token stored, nothing to delete")
        except KeyringError as e:
            raise StorageError(f"Could not delete API token from keyring: {e}")
