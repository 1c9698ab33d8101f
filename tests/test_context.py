"""Tests for context file handling and context resolution.

Covers:
- ContextStore read/write/select/write_empty
- Tagged auth parsing, unknown auth types read as none
- resolve_context precedence: env URL, named context, current context,
  project fallback, errors
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from apicurio_sync.context import (
    BasicAuth,
    Context,
    ContextStore,
    NoAuth,
    OidcAuth,
    resolve_context,
)
from apicurio_sync.errors import FilesystemError, ParseError, SetupError


def _store(tmp_path: Path, data: dict | None = None) -> ContextStore:
    path = tmp_path / "context.json"
    if data is not None:
        path.write_text(json.dumps(data), encoding="utf-8")
    return ContextStore(path)


FILE = {
    "current_context": "dev",
    "contexts": {
        "dev": {
            "url": "http://dev.test",
            "auth": {"type": "basic", "username": "ci", "password": "pw"},
        },
        "prod": {"url": "http://prod.test", "auth": {"type": "none"}},
    },
}


# ---------------------------------------------------------------------------
# ContextStore
# ---------------------------------------------------------------------------


class TestContextStoreRead:
    def test_missing_file_is_empty(self, tmp_path):
        content = _store(tmp_path).read()
        assert content.current_context is None
        assert content.contexts == {}

    def test_parses_auth_variants(self, tmp_path):
        store = _store(
            tmp_path,
            {
                "contexts": {
                    "a": {"url": "http://a", "auth": {"type": "basic", "username": "u"}},
                    "b": {
                        "url": "http://b",
                        "auth": {
                            "type": "oidc",
                            "issuer_url": "https://sso/realms/r",
                            "client_id": "cli",
                            "access_token": "tok",
                            "expires_at": "2030-01-01T00:00:00Z",
                        },
                    },
                    "c": {"url": "http://c"},
                }
            },
        )
        contexts = store.read().contexts

        assert contexts["a"].auth == BasicAuth(username="u")
        assert isinstance(contexts["b"].auth, OidcAuth)
        assert contexts["b"].auth.refresh_token is None
        assert contexts["c"].auth == NoAuth()

    def test_unknown_auth_type_reads_as_none(self, tmp_path):
        store = _store(
            tmp_path,
            {"contexts": {"x": {"url": "http://x", "auth": {"type": "kerberos"}}}},
        )
        assert store.read().contexts["x"].auth == NoAuth()

    def test_invalid_json_raises_parse_error(self, tmp_path):
        path = tmp_path / "context.json"
        path.write_text("{", encoding="utf-8")
        with pytest.raises(ParseError):
            ContextStore(path).read()

    def test_non_utf8_bytes_raise_parse_error(self, tmp_path):
        path = tmp_path / "context.json"
        path.write_bytes(b"\xff\xfe{garbage")
        with pytest.raises(ParseError, match="Invalid context file"):
            ContextStore(path).read()
        with pytest.raises(ParseError):
            ContextStore(path).read_raw()

    def test_read_raw_missing_file(self, tmp_path):
        with pytest.raises(FilesystemError, match="context init"):
            _store(tmp_path).read_raw()


class TestContextStoreSelect:
    def test_current_context(self, tmp_path):
        ctx = _store(tmp_path, FILE).select()
        assert ctx.context_name == "dev"
        assert ctx.registry_url == "http://dev.test"
        assert ctx.auth == BasicAuth(username="ci", password="pw")

    def test_named_context_beats_current(self, tmp_path):
        assert _store(tmp_path, FILE).select("prod").registry_url == "http://prod.test"

    def test_unknown_name(self, tmp_path):
        assert _store(tmp_path, FILE).select("nope") is None

    def test_no_current_context(self, tmp_path):
        assert _store(tmp_path, {"contexts": FILE["contexts"]}).select() is None


class TestContextStoreWrite:
    def test_write_creates_file_and_parents(self, tmp_path):
        store = ContextStore(tmp_path / "cfg" / "apicurio-sync" / "context.json")
        store.write(Context("dev", "http://dev.test"), current=True)

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data["current_context"] == "dev"
        assert data["contexts"]["dev"] == {
            "url": "http://dev.test",
            "auth": {"type": "none"},
        }

    def test_write_upserts_and_keeps_others(self, tmp_path):
        store = _store(tmp_path, FILE)
        store.write(Context("prod", "http://prod2.test"))

        content = store.read()
        assert content.current_context == "dev"
        assert content.contexts["prod"].url == "http://prod2.test"
        assert content.contexts["dev"].auth == BasicAuth(username="ci", password="pw")

    def test_oidc_roundtrip(self, tmp_path):
        auth = OidcAuth(
            issuer_url="https://sso/realms/r",
            client_id="cli",
            access_token="tok",
            refresh_token="ref",
            expires_at=datetime(2030, 1, 1, tzinfo=timezone.utc),
        )
        store = _store(tmp_path)
        store.write(Context("sso", "http://sso.test", auth))
        assert store.select("sso").auth == auth

    def test_write_empty(self, tmp_path):
        store = _store(tmp_path)
        store.write_empty()
        assert json.loads(store.path.read_text()) == {
            "contexts": {},
            "current_context": None,
        }

    def test_write_empty_refuses_overwrite(self, tmp_path):
        store = _store(tmp_path, FILE)
        with pytest.raises(FilesystemError, match="already exists"):
            store.write_empty()
        assert store.read().current_context == "dev"


class TestOidcExpiry:
    def _auth(self, expires_at):
        return OidcAuth(
            issuer_url="https://sso",
            client_id="cli",
            access_token="tok",
            expires_at=expires_at,
        )

    def test_expired(self):
        auth = self._auth(datetime(2020, 1, 1, tzinfo=timezone.utc))
        assert auth.is_expired()

    def test_not_expired(self):
        now = datetime(2020, 1, 1, tzinfo=timezone.utc)
        auth = self._auth(datetime(2020, 1, 2, tzinfo=timezone.utc))
        assert not auth.is_expired(now)

    def test_naive_timestamp_is_utc(self):
        now = datetime(2020, 1, 1, 12, tzinfo=timezone.utc)
        auth = self._auth(datetime(2020, 1, 1, 11))
        assert auth.is_expired(now)


# ---------------------------------------------------------------------------
# resolve_context
# ---------------------------------------------------------------------------


class TestResolveContext:
    def test_current_context_from_file(self, tmp_path):
        ctx = resolve_context(_store(tmp_path, FILE))
        assert ctx.context_name == "dev"

    def test_explicit_name(self, tmp_path):
        ctx = resolve_context(_store(tmp_path, FILE), context_name="prod")
        assert ctx.registry_url == "http://prod.test"

    def test_env_url_overrides_url_but_keeps_auth(self, tmp_path):
        ctx = resolve_context(
            _store(tmp_path, FILE), registry_url="http://override.test"
        )
        assert ctx.context_name == "dev"
        assert ctx.registry_url == "http://override.test"
        assert ctx.auth == BasicAuth(username="ci", password="pw")

    def test_env_url_alone(self, tmp_path):
        ctx = resolve_context(_store(tmp_path), registry_url="http://env.test")
        assert ctx.context_name == "http://env.test"
        assert ctx.registry_url == "http://env.test"
        assert ctx.auth == NoAuth()

    def test_env_url_with_unknown_name_uses_that_name(self, tmp_path):
        ctx = resolve_context(
            _store(tmp_path, FILE),
            context_name="ci",
            registry_url="http://env.test",
        )
        assert ctx.context_name == "ci"
        assert ctx.auth == NoAuth()

    def test_project_fallback(self, tmp_path):
        ctx = resolve_context(_store(tmp_path), fallback_url="http://proj.test")
        assert ctx.registry_url == "http://proj.test"

    def test_file_context_beats_project_fallback(self, tmp_path):
        ctx = resolve_context(
            _store(tmp_path, FILE), fallback_url="http://proj.test"
        )
        assert ctx.registry_url == "http://dev.test"

    def test_nothing_available(self, tmp_path):
        with pytest.raises(SetupError, match="Failed to read context"):
            resolve_context(_store(tmp_path))

    def test_unknown_named_context(self, tmp_path):
        with pytest.raises(SetupError, match="Context 'nope' not found"):
            resolve_context(_store(tmp_path, FILE), context_name="nope")
