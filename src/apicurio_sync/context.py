"""Registry contexts: named bundles of registry URL and credentials.

Contexts live in a JSON file (by default
``~/.config/apicurio-sync/context.json``)::

    {
      "current_context": "dev",
      "contexts": {
        "dev": {
          "url": "https://registry.dev.example.com",
          "auth": {"type": "basic", "username": "ci", "password": "..."}
        }
      }
    }

``auth`` is tagged by ``type``: ``oidc``, ``basic`` or ``none``.  Unknown
types read as ``none``.

Resolution rules (see ``resolve_context``):

* An explicit context name wins over ``current_context``.
* ``APICURIO_SYNC_REGISTRY_URL`` on its own yields a usable context, and
  when a file context is also selected it replaces that context's URL while
  the stored credentials are kept.
* The project configuration's ``registry`` URL is the last resort.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from apicurio_sync.errors import FilesystemError, ParseError, SetupError
from apicurio_sync.file_handler import write_new_file, write_text_atomic

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Auth variants
# ---------------------------------------------------------------------------


class OidcAuth(BaseModel):
    """Tokens obtained from an OpenID Connect provider."""

    type: Literal["oidc"] = "oidc"
    issuer_url: str
    client_id: str
    access_token: str
    refresh_token: str | None = None
    expires_at: datetime

    model_config = {"frozen": True}

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return ``True`` once ``expires_at`` has passed."""
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return now >= expires_at


class BasicAuth(BaseModel):
    """HTTP basic credentials."""

    type: Literal["basic"] = "basic"
    username: str
    password: str | None = None

    model_config = {"frozen": True}


class NoAuth(BaseModel):
    """Anonymous access."""

    type: Literal["none"] = "none"

    model_config = {"frozen": True}


Auth = Annotated[
    Union[OidcAuth, BasicAuth, NoAuth], Field(discriminator="type")
]

_KNOWN_AUTH_TYPES = {"oidc", "basic", "none"}


# ---------------------------------------------------------------------------
# File models
# ---------------------------------------------------------------------------


class RegistryContext(BaseModel):
    """One named entry of the context file."""

    url: str
    auth: Auth = Field(default_factory=NoAuth)

    @field_validator("auth", mode="before")
    @classmethod
    def _unknown_auth_is_none(cls, value: Any) -> Any:
        if value is None:
            return {"type": "none"}
        if isinstance(value, dict) and value.get("type") not in _KNOWN_AUTH_TYPES:
            return {"type": "none"}
        return value


class ContextFile(BaseModel):
    """The whole context file."""

    current_context: str | None = None
    contexts: dict[str, RegistryContext] = Field(default_factory=dict)


@dataclass
class Context:
    """The registry connection a command runs against."""

    context_name: str
    registry_url: str
    auth: OidcAuth | BasicAuth | NoAuth = field(default_factory=NoAuth)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ContextStore:
    """Load, query and update the context file.

    Args:
        path: Location of the context JSON file.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> ContextFile:
        """Parse the context file.

        Returns an empty ``ContextFile`` when the file does not exist.

        Raises:
            ParseError: If the file is not valid context JSON.
            FilesystemError: If the file cannot be read.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ContextFile()
        except UnicodeDecodeError as exc:
            raise ParseError(
                f"Invalid context file {self.path}: {exc}"
            ) from exc
        except OSError as exc:
            raise FilesystemError(
                f"Cannot read context file {self.path}: {exc}"
            ) from exc

        try:
            return ContextFile.model_validate_json(raw)
        except ValidationError as exc:
            raise ParseError(
                f"Invalid context file {self.path}: {exc}"
            ) from exc

    def read_raw(self) -> str:
        """Return the file content verbatim (for ``context show``)."""
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise FilesystemError(
                f"Context file not found: {self.path}. Run 'apicurio-sync context init'."
            ) from exc
        except UnicodeDecodeError as exc:
            raise ParseError(
                f"Invalid context file {self.path}: {exc}"
            ) from exc
        except OSError as exc:
            raise FilesystemError(
                f"Cannot read context file {self.path}: {exc}"
            ) from exc

    def select(self, context_name: str | None = None) -> Context | None:
        """Return the named context, or the current one when no name is given.

        Returns ``None`` when the file is missing or holds no matching entry.
        """
        content = self.read()
        name = context_name or content.current_context
        if name is None or name not in content.contexts:
            return None
        entry = content.contexts[name]
        return Context(context_name=name, registry_url=entry.url, auth=entry.auth)

    def write(self, ctx: Context, current: bool = False) -> None:
        """Upsert *ctx* into the file, optionally making it current."""
        content = self.read()
        content.contexts[ctx.context_name] = RegistryContext(
            url=ctx.registry_url, auth=ctx.auth
        )
        if current:
            content.current_context = ctx.context_name
        write_text_atomic(self.path, _render(content))
        logger.debug("Wrote context %s to %s", ctx.context_name, self.path)

    def write_empty(self) -> None:
        """Create an empty context file; an existing file is never replaced."""
        write_new_file(self.path, _render(ContextFile()))


def _render(content: ContextFile) -> str:
    data = content.model_dump(mode="json")
    return json.dumps(data, indent=2, sort_keys=True) + "\n"


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def resolve_context(
    store: ContextStore,
    context_name: str | None = None,
    registry_url: str | None = None,
    fallback_url: str | None = None,
) -> Context:
    """Work out which registry the current command talks to.

    Args:
        store: The context file.
        context_name: Explicit context name (flag or env var).
        registry_url: URL from ``APICURIO_SYNC_REGISTRY_URL``.
        fallback_url: ``registry`` URL from the project configuration.

    Returns:
        The resolved ``Context``.

    Raises:
        SetupError: If no source supplies a registry URL.
    """
    file_ctx = store.select(context_name)

    if registry_url:
        if file_ctx is not None:
            logger.debug(
                "Registry URL for context %s overridden from environment",
                file_ctx.context_name,
            )
            file_ctx.registry_url = registry_url
            return file_ctx
        return Context(
            context_name=context_name or registry_url,
            registry_url=registry_url,
        )

    if file_ctx is not None:
        return file_ctx

    if fallback_url:
        logger.debug("Using registry URL from project configuration")
        return Context(
            context_name=context_name or fallback_url,
            registry_url=fallback_url,
        )

    if context_name:
        raise SetupError(
            f"Context '{context_name}' not found in {store.path}"
        )
    raise SetupError(
        "Failed to read context from either file or env. Run "
        "'apicurio-sync context set <name> --url <url> --current' "
        "or set APICURIO_SYNC_REGISTRY_URL."
    )
