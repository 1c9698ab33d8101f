"""Blocking HTTP client for the Apicurio Registry REST API v2.

https://www.apicur.io/registry/docs/apicurio-registry/2.0.1.Final/assets-attachments/registry-rest-api.htm

Every method performs exactly one request.  Non-2xx responses and
connection failures are translated into ``TransportError`` subclasses;
nothing is retried.
"""

import logging
import threading
from typing import Any
from urllib.parse import quote

import requests

from ..auth import apply_auth
from ..context import BasicAuth, NoAuth, OidcAuth
from ..errors import (
    ArtifactNotFoundError,
    ParseError,
    ServerError,
    TransportError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

API_PATH = "apis/registry/v2"
DEFAULT_TIMEOUT = (10, 60)


def _segment(value: str) -> str:
    return quote(value, safe="")


class RegistryClient:
    def __init__(
        self,
        registry_url: str,
        auth: OidcAuth | BasicAuth | NoAuth | None = None,
        timeout: tuple[float, float] = DEFAULT_TIMEOUT,
    ):
        self.registry_url = registry_url
        self.auth = auth or NoAuth()
        self.timeout = timeout
        self._thread_local = threading.local()
        self.api_url = self._get_api_url()

    @property
    def session(self) -> requests.Session:
        """Session for the current thread."""
        return self._get_session()

    def _get_api_url(self) -> str:
        return f"{self.registry_url.rstrip('/')}/{API_PATH}"

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers["Accept"] = "application/json"
        apply_auth(session, self.auth)
        return session

    def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> requests.Response:
        """
        Send one request to the registry API and check its status.
        """
        url = f"{self.api_url}/{path}"
        logger.debug("%s %s", method, url)
        session = self._get_session()
        try:
            response = session.request(
                method, url, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            raise TransportError(
                f"{method} {url} failed: {exc}", url=url
            ) from exc

        self._raise_for_status(response, method, url)
        return response

    def _raise_for_status(
        self, response: requests.Response, method: str, url: str
    ) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return

        detail = self._error_detail(response)
        message = f"{method} {url} returned {status}: {detail}"

        match status:
            case 404:
                raise ArtifactNotFoundError(message, status, url)
            case 401 | 403:
                raise UnauthorizedError(message, status, url)
            case s if s >= 500:
                raise ServerError(message, status, url)
            case _:
                raise TransportError(message, status, url)

    def _error_detail(self, response: requests.Response) -> str:
        """
        Extract the registry's error message, falling back to the raw body.
        """
        try:
            body = response.json()
        except ValueError:
            return (response.text or response.reason or "").strip()[:200]
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return str(body)[:200]

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ParseError(
                f"Registry returned invalid JSON from {response.url}: {exc}"
            ) from exc

    def get_system_info(self) -> dict[str, Any]:
        """
        Get registry name, description, version and build date.
        """
        return self._json(self._request("GET", "system/info"))

    def get_artifact_metadata(
        self, group_id: str, artifact_id: str
    ) -> dict[str, Any]:
        """
        Get metadata of the latest version of an artifact.
        """
        path = f"groups/{_segment(group_id)}/artifacts/{_segment(artifact_id)}/meta"
        return self._json(self._request("GET", path))

    def get_artifact_version_metadata(
        self, group_id: str, artifact_id: str, version: str
    ) -> dict[str, Any]:
        """
        Get metadata of one specific artifact version.
        """
        path = (
            f"groups/{_segment(group_id)}/artifacts/{_segment(artifact_id)}"
            f"/versions/{_segment(version)}/meta"
        )
        return self._json(self._request("GET", path))

    def get_artifact_version(
        self, group_id: str, artifact_id: str, version: str
    ) -> bytes:
        """
        Get the raw content of one artifact version.
        """
        path = (
            f"groups/{_segment(group_id)}/artifacts/{_segment(artifact_id)}"
            f"/versions/{_segment(version)}"
        )
        return self._request("GET", path, headers={"Accept": "*/*"}).content

    def get_artifact_by_global_id(self, global_id: int) -> bytes:
        """
        Get the raw content of the artifact version with *global_id*.
        """
        path = f"ids/globalIds/{int(global_id)}"
        return self._request("GET", path, headers={"Accept": "*/*"}).content

    def create_or_update_artifact(
        self,
        group_id: str,
        artifact_id: str,
        content: bytes,
        artifact_type: str | None = None,
        content_type: str = "application/json",
    ) -> dict[str, Any]:
        """
        Upload artifact content; an existing artifact gets a new version.

        Uses ``ifExists=RETURN_OR_UPDATE`` so identical content returns the
        existing version instead of creating a duplicate.

        Returns:
            Metadata of the created or returned version.
        """
        headers = {
            "Content-Type": content_type,
            "X-Registry-ArtifactId": artifact_id,
        }
        if artifact_type is not None:
            headers["X-Registry-ArtifactType"] = str(artifact_type)

        response = self._request(
            "POST",
            f"groups/{_segment(group_id)}/artifacts",
            params={"ifExists": "RETURN_OR_UPDATE"},
            headers=headers,
            data=content,
        )
        return self._json(response)

    def update_artifact_metadata(
        self,
        group_id: str,
        artifact_id: str,
        name: str | None = None,
        description: str | None = None,
        labels: list[str] | None = None,
        properties: dict[str, str] | None = None,
    ) -> None:
        """
        Replace the editable metadata of an artifact.

        Only fields that are not ``None`` are sent.
        """
        body: dict[str, Any] = {}
        if name is not None:
            body["name"] = name
        if description is not None:
            body["description"] = description
        if labels is not None:
            body["labels"] = list(labels)
        if properties is not None:
            body["properties"] = dict(properties)

        path = f"groups/{_segment(group_id)}/artifacts/{_segment(artifact_id)}/meta"
        self._request("PUT", path, json=body)
