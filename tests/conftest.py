"""Shared pytest fixtures for apicurio-sync tests."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest
import yaml

from apicurio_sync.config_schema import ProjectConfig, build_config
from apicurio_sync.context import Context
from apicurio_sync.errors import ArtifactNotFoundError
from apicurio_sync.provider import (
    ArtifactMetadata,
    PushArtifactMetadata,
    SystemInfo,
)

REGISTRY_URL = "http://registry.test"


@dataclass
class StoredVersion:
    version: str
    global_id: int
    artifact_type: str
    content: bytes


class FakeProvider:
    """In-memory ``Provider`` for testing.

    Stores artifact versions per ``(group, artifact)`` and records every
    call as ``(method_name, *args)`` in ``calls``.
    """

    def __init__(self) -> None:
        self.artifacts: dict[tuple[str, str], list[StoredVersion]] = {}
        self.calls: list[tuple] = []
        self.pushed: list[tuple[PushArtifactMetadata, bytes]] = []
        self._next_global_id = 1

    # -- test helpers --------------------------------------------------

    def add_version(
        self,
        group: str,
        artifact_id: str,
        content: bytes,
        artifact_type: str = "AVRO",
        version: str | None = None,
        global_id: int | None = None,
    ) -> StoredVersion:
        versions = self.artifacts.setdefault((group, artifact_id), [])
        if global_id is None:
            global_id = self._next_global_id
        self._next_global_id = max(self._next_global_id, global_id) + 1
        stored = StoredVersion(
            version=version or str(len(versions) + 1),
            global_id=global_id,
            artifact_type=artifact_type,
            content=content,
        )
        versions.append(stored)
        return stored

    def calls_to(self, method: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == method]

    def _versions(self, group: str, artifact_id: str) -> list[StoredVersion]:
        versions = self.artifacts.get((group, artifact_id))
        if not versions:
            raise ArtifactNotFoundError(
                f"No artifact with ID '{artifact_id}' in group '{group}' was found.",
                status_code=404,
            )
        return versions

    def _find(
        self, group: str, artifact_id: str, version: str
    ) -> StoredVersion:
        for stored in self._versions(group, artifact_id):
            if stored.version == version:
                return stored
        raise ArtifactNotFoundError(
            f"No version '{version}' found for artifact {group}/{artifact_id}",
            status_code=404,
        )

    @staticmethod
    def _metadata(
        group: str, artifact_id: str, stored: StoredVersion
    ) -> ArtifactMetadata:
        return ArtifactMetadata(
            group_id=group,
            id=artifact_id,
            artifact_type=stored.artifact_type,
            version=stored.version,
            global_id=stored.global_id,
        )

    # -- Provider protocol ---------------------------------------------

    async def system_info(self) -> SystemInfo:
        self.calls.append(("system_info",))
        return SystemInfo(name="Fake Registry", version="2.5.0.Final")

    async def fetch_artifact_metadata(
        self, group_id: str, artifact_id: str
    ) -> ArtifactMetadata:
        self.calls.append(("fetch_artifact_metadata", group_id, artifact_id))
        latest = self._versions(group_id, artifact_id)[-1]
        return self._metadata(group_id, artifact_id, latest)

    async def fetch_artifact_version_metadata(
        self, group_id: str, artifact_id: str, version: str
    ) -> ArtifactMetadata:
        self.calls.append(
            ("fetch_artifact_version_metadata", group_id, artifact_id, version)
        )
        stored = self._find(group_id, artifact_id, version)
        return self._metadata(group_id, artifact_id, stored)

    async def fetch_artifact_version(
        self, group_id: str, artifact_id: str, version: str
    ) -> bytes:
        self.calls.append(
            ("fetch_artifact_version", group_id, artifact_id, version)
        )
        return self._find(group_id, artifact_id, version).content

    async def fetch_artifact_by_global_id(self, global_id: int) -> bytes:
        self.calls.append(("fetch_artifact_by_global_id", global_id))
        for versions in self.artifacts.values():
            for stored in versions:
                if stored.global_id == global_id:
                    return stored.content
        raise ArtifactNotFoundError(
            f"No artifact with global ID '{global_id}' was found.",
            status_code=404,
        )

    async def push_artifact(
        self, metadata: PushArtifactMetadata, content: bytes
    ) -> None:
        self.calls.append(
            ("push_artifact", metadata.group_id, metadata.artifact_id)
        )
        self.pushed.append((metadata, content))
        versions = self.artifacts.get(
            (metadata.group_id, metadata.artifact_id), []
        )
        # RETURN_OR_UPDATE: identical content does not create a version
        if versions and versions[-1].content == content:
            return
        self.add_version(
            metadata.group_id,
            metadata.artifact_id,
            content,
            artifact_type=str(metadata.artifact_type or "AVRO"),
        )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def context() -> Context:
    return Context(context_name="test", registry_url=REGISTRY_URL)


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """A project directory with a ``schemas/`` folder."""
    (tmp_path / "schemas").mkdir()
    return tmp_path


@pytest.fixture
def make_config(workdir: Path):
    """Factory fixture: build a ``ProjectConfig`` sourced from ``workdir``."""

    def _make(
        pull: list[dict[str, Any]] | None = None,
        push: list[dict[str, Any]] | None = None,
        write: bool = False,
        **extra: Any,
    ) -> ProjectConfig:
        raw = {"push": push or [], "pull": pull or [], **extra}
        path = workdir / "apicurio-sync.yaml"
        if write:
            path.write_text(yaml.safe_dump(raw), encoding="utf-8")
        return build_config(raw, source_path=path)

    return _make
