"""Client for the Toggl Track REST API."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

import requests

from toggl_cli.core.errors import AuthError, NetworkError, NotFoundError
from toggl_cli.core.models import Credentials, Project, TimeEntry

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.track.toggl.com/api/v9"
DEFAULT_TIMEOUT = 30


class ApiClient(ABC):
    """Operations the command layer needs from the time-tracking service.

    Reads (``get_running_entry``, ``list_*``) are safe to retry. Mutations
    (``start_entry``, ``stop_entry``) are never retried here: a retry could
    start or stop an entry twice.
    """

    @abstractmethod
    def get_running_entry(self) -> Optional[TimeEntry]:
        """Return the running entry, or None when nothing is running."""

    @abstractmethod
    def start_entry(
        self,
        description: str,
        project_id: Optional[int],
        billable: bool,
        workspace_id: Optional[int] = None,
        tags: Optional[list[str]] = None,
    ) -> TimeEntry:
        """Create a running entry. The service stops any other running entry."""

    @abstractmethod
    def stop_entry(self, entry_id: int, workspace_id: Optional[int] = None) -> TimeEntry:
        """Stop the running entry with the given id.

        Raises:
            NotFoundError: If no such entry is running
        """

    @abstractmethod
    def list_time_entries(self, count: int) -> list[TimeEntry]:
        """Return at most ``count`` entries, most recent first."""

    @abstractmethod
    def list_projects(self, workspace_id: Optional[int] = None) -> list[Project]:
        """Return the projects of the account or of one workspace."""

    @abstractmethod
    def authenticate(self, api_token: str) -> Credentials:
        """Validate an API token against the service.

        Raises:
            AuthError: If the service rejects the token
        """


class V9ApiClient(ApiClient):
    """ApiClient speaking Toggl Track API v9 over HTTPS."""

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        proxy: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        """Initialize API client.

        Args:
            credentials: Credentials used for every request. May be None for
                a client that is only used to authenticate a new token.
            proxy: Proxy URL for both http and https traffic
            base_url: API root
            timeout: Request timeout in seconds
        """
        self.credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if proxy:
            self.session.proxies.update({"http": proxy, "https": proxy})
        self._default_workspace_id: Optional[int] = None

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
        credentials: Optional[Credentials] = None,
    ) -> Any:
        """Send a request and decode the JSON response.

        Raises:
            AuthError: On 401/403 or when no credentials are available
            NotFoundError: On 404
            NetworkError: On transport failures and other error statuses
        """
        credentials = credentials or self.credentials
        if credentials is None:
            raise AuthError("No API token configured")

        url = f"{self.base_url}/{path.lstrip('/')}"
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method,
                url,
                json=json,
                params=params,
                auth=(credentials.api_token, "api_token"),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"Request to {url} failed: {e}")

        logger.debug(f"{method} {url} -> {response.status_code}")
        if response.status_code in (401, 403):
            raise AuthError("The API token was rejected by the server")
        if response.status_code == 404:
            raise NotFoundError(f"Not found: {path}")
        if response.status_code >= 400:
            raise NetworkError(
                f"Server returned {response.status_code}: {response.text.strip()}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON in response from {url}: {e}")

    def _workspace_id(self, workspace_id: Optional[int]) -> int:
        if workspace_id is not None:
            return workspace_id
        if self._default_workspace_id is None:
            me = self._request("GET", "/me")
            self._default_workspace_id = int(me["default_workspace_id"])
        return self._default_workspace_id

    def get_running_entry(self) -> Optional[TimeEntry]:
        data = self._request("GET", "/me/time_entries/current")
        return TimeEntry.from_dict(data) if data else None

    def start_entry(
        self,
        description: str,
        project_id: Optional[int],
        billable: bool,
        workspace_id: Optional[int] = None,
        tags: Optional[list[str]] = None,
    ) -> TimeEntry:
        wid = self._workspace_id(workspace_id)
        entry = TimeEntry(
            start=datetime.now(timezone.utc),
            description=description or "",
            project_id=project_id,
            workspace_id=wid,
            billable=billable,
            tags=tags or [],
        )
        data = self._request("POST", f"/workspaces/{wid}/time_entries", json=entry.to_dict())
        return TimeEntry.from_dict(data)

    def stop_entry(self, entry_id: int, workspace_id: Optional[int] = None) -> TimeEntry:
        wid = self._workspace_id(workspace_id)
        data = self._request("PATCH", f"/workspaces/{wid}/time_entries/{entry_id}/stop")
        return TimeEntry.from_dict(data)

    def list_time_entries(self, count: int) -> list[TimeEntry]:
        data = self._request("GET", "/me/time_entries") or []
        entries = [TimeEntry.from_dict(item) for item in data]
        entries.sort(key=lambda e: e.start, reverse=True)
        return entries[:count]

    def list_projects(self, workspace_id: Optional[int] = None) -> list[Project]:
        if workspace_id is None:
            data = self._request("GET", "/me/projects")
        else:
            data = self._request("GET", f"/workspaces/{workspace_id}/projects")
        return [Project.from_dict(item) for item in data or []]

    def authenticate(self, api_token: str) -> Credentials:
        credentials = Credentials(api_token=api_token)
        me = self._request("GET", "/me", credentials=credentials)
        if not me:
            raise AuthError("The server did not return a user for this API token")
        logger.info(f"Authenticated as {me.get('email', 'unknown user')}")
        return credentials
