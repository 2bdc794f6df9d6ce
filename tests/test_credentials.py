"""Tests for credential storage and authentication."""

from unittest.mock import patch

import pytest
from keyring.errors import KeyringError, PasswordDeleteError

from conftest import FakeApiClient, MemoryStorage
from toggl_cli.core.auth import authenticate, logout
from toggl_cli.core.credentials import KeyringStorage
from toggl_cli.core.errors import AuthError, CredentialsNotFoundError, StorageError
from toggl_cli.core.models import Credentials


class TestKeyringStorage:
    """Test KeyringStorage."""

    def test_read(self) -> None:
        """Test reading a stored token."""
        with patch("toggl_cli.core.credentials.keyring.get_password", return_value="secret") as get:
            credentials = KeyringStorage().read()

        get.assert_called_once_with("togglcli", "default")
        assert credentials == Credentials("secret")

    def test_read_missing(self) -> None:
        """Test that a missing token is reported as not found."""
        with patch("toggl_cli.core.credentials.keyring.get_password", return_value=None):
            with pytest.raises(CredentialsNotFoundError):
                KeyringStorage().read()

    def test_read_backend_failure(self) -> None:
        """Test that backend failures are distinct from a missing token."""
        with patch("toggl_cli.core.credentials.keyring.get_password", side_effect=KeyringError("locked")):
            with pytest.raises(StorageError, match="locked"):
                KeyringStorage().read()

    def test_write(self) -> None:
        """Test storing a token."""
        with patch("toggl_cli.core.credentials.keyring.set_password") as set_password:
            KeyringStorage("svc", "user").write(Credentials("secret"))

        set_password.assert_called_once_with("svc", "user", "secret")

    def test_delete_missing_is_noop(self) -> None:
        """Test that deleting a missing token does not fail."""
        with patch("toggl_cli.core.credentials.keyring.delete_password", side_effect=PasswordDeleteError()):
            KeyringStorage().delete()

    def test_delete_backend_failure(self) -> None:
        """Test that backend failures on delete are reported."""
        with patch("toggl_cli.core.credentials.keyring.delete_password", side_effect=KeyringError("locked")):
            with pytest.raises(StorageError):
                KeyringStorage().delete()

    def test_credentials_repr_hides_token(self) -> None:
        """Test that the token does not leak into logs."""
        assert "secret" not in repr(Credentials("secret"))


class TestAuthenticate:
    """Test the authentication flow."""

    def test_valid_token_is_stored(self, storage: MemoryStorage) -> None:
        """Test that a validated token is persisted."""
        credentials = authenticate(FakeApiClient(), storage, "valid-token")

        assert credentials == Credentials("valid-token")
        assert storage.read() == Credentials("valid-token")

    def test_token_is_stripped(self, storage: MemoryStorage) -> None:
        """Test that surrounding whitespace is ignored."""
        authenticate(FakeApiClient(), storage, "  valid-token\n")

        assert storage.read().api_token == "valid-token"

    def test_invalid_token_leaves_empty_store(self, storage: MemoryStorage) -> None:
        """Test that a rejected token is never written."""
        with pytest.raises(AuthError):
            authenticate(FakeApiClient(), storage, "bad-token")

        assert storage.writes == 0
        with pytest.raises(CredentialsNotFoundError):
            storage.read()

    def test_invalid_token_keeps_previous_token(self) -> None:
        """Test that a rejected token does not replace the stored one."""
        storage = MemoryStorage(Credentials("previous"))

        with pytest.raises(AuthError):
            authenticate(FakeApiClient(), storage, "bad-token")

        assert storage.read() == Credentials("previous")

    def test_logout(self) -> None:
        """Test removing the stored token."""
        storage = MemoryStorage(Credentials("previous"))

        logout(storage)

        with pytest.raises(CredentialsNotFoundError):
            storage.read()
