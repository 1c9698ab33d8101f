"""Credential handling for registry contexts.

Two concerns live here:

* ``apply_auth`` attaches a context's credentials to a ``requests``
  session (HTTP basic auth or an OIDC bearer token).
* Login providers turn user input into credentials stored on a
  ``Context``.  Only basic credentials are collected by this tool; OIDC
  tokens obtained by an external login flow are stored in the context file
  and used as-is.
"""

from __future__ import annotations

import dataclasses
import logging
import sys
from datetime import datetime
from typing import Protocol, TextIO

import requests

from apicurio_sync.context import BasicAuth, Context, NoAuth, OidcAuth
from apicurio_sync.errors import AuthError

logger = logging.getLogger(__name__)


def apply_auth(
    session: requests.Session,
    auth: OidcAuth | BasicAuth | NoAuth,
    now: datetime | None = None,
) -> None:
    """Configure *session* to authenticate with *auth*.

    Raises:
        AuthError: If an OIDC access token has already expired.
    """
    match auth:
        case BasicAuth(username=username, password=password):
            session.auth = (username, password or "")
        case OidcAuth() if auth.is_expired(now):
            raise AuthError(
                f"Access token from {auth.issuer_url} expired at "
                f"{auth.expires_at.isoformat()}. Log in again to refresh "
                "the context credentials."
            )
        case OidcAuth(access_token=token):
            session.headers["Authorization"] = f"Bearer {token}"
        case _:
            logger.debug("No credentials configured; using anonymous access")


class AuthProvider(Protocol):
    """Something that can attach fresh credentials to a context."""

    def login(self, ctx: Context) -> Context: ...


class BasicAuthProvider:
    """Store HTTP basic credentials on a context.

    Args:
        username: Registry username.
        password: Registry password, or ``None`` to store no password.
    """

    def __init__(self, username: str, password: str | None = None) -> None:
        self.username = username
        self.password = password

    def login(self, ctx: Context) -> Context:
        if not self.username or not self.username.strip():
            raise AuthError("Username cannot be empty")
        return dataclasses.replace(
            ctx,
            auth=BasicAuth(username=self.username, password=self.password),
        )


def read_password(stream: TextIO | None = None) -> str:
    """Read a single password line from *stream* (stdin by default)."""
    stream = stream or sys.stdin
    line = stream.readline()
    if not line:
        raise AuthError("No password provided on stdin")
    return line.rstrip("\r\n")
