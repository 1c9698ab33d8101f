"""Error kinds raised by apicurio-sync.

Every failure is terminal for the current command: nothing is retried.
Lower layers translate library exceptions (``requests``, ``OSError``,
``json``, ``yaml``, ``pydantic``) into one of the kinds below with
``raise ... from exc`` so the CLI can print a single readable message.

Hierarchy::

    ApicurioSyncError
    ├── TransportError            network failure or non-2xx response
    │   ├── ArtifactNotFoundError 404
    │   ├── ServerError           5xx
    │   └── UnauthorizedError     401/403 (also an AuthError)
    ├── FilesystemError           local read/write/create failure
    ├── ParseError                malformed YAML/JSON or schema violation
    ├── SetupError                missing context/URL, bad preconditions
    │   └── PlanError             plan entry lacks a required field
    └── AuthError                 login or credential failure
"""

from __future__ import annotations


class ApicurioSyncError(Exception):
    """Base class for every error surfaced to the command line."""


class TransportError(ApicurioSyncError):
    """A registry request failed.

    Attributes:
        status_code: HTTP status of the response, or ``None`` when the
            request never produced one (DNS, refused connection, timeout).
        url: The requested URL, when known.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class ArtifactNotFoundError(TransportError):
    """The registry has no such artifact or version."""


class ServerError(TransportError):
    """The registry answered with a 5xx status."""


class AuthError(ApicurioSyncError):
    """Login failed or the stored credentials cannot be used."""


class UnauthorizedError(TransportError, AuthError):
    """The registry rejected the supplied credentials (401/403)."""


class FilesystemError(ApicurioSyncError):
    """A local file could not be read, written or created."""


class ParseError(ApicurioSyncError):
    """A configuration, lockfile or context file is malformed."""


class SetupError(ApicurioSyncError):
    """The tool is not configured well enough to run the command."""


class PlanError(SetupError):
    """A plan entry is missing a field the executor requires.

    Usually means the lockfile has not been resolved for a path; running
    ``apicurio-sync update`` fixes it.
    """
