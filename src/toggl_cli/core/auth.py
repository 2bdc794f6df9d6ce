"""Storing and removing the API token."""

import logging

from toggl_cli.core.api import ApiClient
from toggl_cli.core.credentials import CredentialsStorage
from toggl_cli.core.models import Credentials

logger = logging.getLogger(__name__)


def authenticate(api_client: ApiClient, storage: CredentialsStorage, api_token: str) -> Credentials:
    """Validate an API token and store it.

    The token is only written once the service has accepted it, so a failed
    validation leaves the store as it was.

    Raises:
        AuthError: If the service rejects the token
    """
    credentials = api_client.authenticate(api_token.strip())
    storage.write(credentials)
    logger.info("API token stored")
    return credentials


def logout(storage: CredentialsStorage) -> None:
    """Remove the stored API token."""
    storage.delete()
    logger.info("API token removed")
