"""Registry capability consumed by the lockfile store and the sync engine.

The reconciliation core only talks to a ``Provider``: an object exposing
the handful of async registry operations it needs.  Two implementations
ship with the tool:

- ``HttpProvider`` -- wraps the blocking ``RegistryClient`` and runs each
  call in a worker thread via ``run_sync``.
- ``NoopProvider`` -- refuses every call; used where no registry access is
  allowed (``init``).

Tests substitute their own in-memory provider.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel

from apicurio_sync.core.async_utils import run_sync
from apicurio_sync.errors import ParseError, SetupError

if TYPE_CHECKING:
    from apicurio_sync.core.client import RegistryClient

logger = logging.getLogger(__name__)


class ArtifactType(str, Enum):
    """Artifact types understood by the registry."""

    AVRO = "AVRO"
    PROTOBUF = "PROTOBUF"
    JSON = "JSON"
    KCONNECT = "KCONNECT"
    OPENAPI = "OPENAPI"
    ASYNCAPI = "ASYNCAPI"
    GRAPHQL = "GRAPHQL"
    WSDL = "WSDL"
    XSD = "XSD"

    def __str__(self) -> str:
        return self.value


class SystemInfo(BaseModel):
    """Registry build information, for diagnostics only."""

    name: str
    description: str = ""
    version: str
    built_on: str | None = None

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }


class ArtifactMetadata(BaseModel):
    """Metadata of one artifact version as reported by the registry.

    Attributes:
        group_id: Group of the artifact (``None`` for the default group on
            some registry versions).
        id: Artifact id.
        version: Resolved version string.
        global_id: Registry-wide id of this version's content.
        artifact_type: Artifact type.
    """

    group_id: str | None = None
    id: str
    name: str | None = None
    description: str | None = None
    artifact_type: ArtifactType = Field(alias="type")
    version: str
    global_id: int
    content_id: int | None = None
    created_by: str | None = None
    created_on: str | None = None
    modified_by: str | None = None
    modified_on: str | None = None
    labels: list[str] = Field(default_factory=list)
    properties: dict[str, str] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
        "coerce_numbers_to_str": True,
    }


class PushArtifactMetadata(BaseModel):
    """Everything needed to upload one artifact."""

    group_id: str
    artifact_id: str
    artifact_type: ArtifactType | None = None
    name: str | None = None
    description: str | None = None
    labels: list[str] | None = None
    properties: dict[str, str] | None = None
    content_type: str = "application/json"

    model_config = {"frozen": True}

    @property
    def has_descriptive_metadata(self) -> bool:
        return any(
            value is not None
            for value in (
                self.name,
                self.description,
                self.labels,
                self.properties,
            )
        )


@runtime_checkable
class Provider(Protocol):
    """Async registry operations used by the reconciliation core."""

    async def system_info(self) -> SystemInfo: ...

    async def fetch_artifact_metadata(
        self, group_id: str, artifact_id: str
    ) -> ArtifactMetadata: ...

    async def fetch_artifact_version_metadata(
        self, group_id: str, artifact_id: str, version: str
    ) -> ArtifactMetadata: ...

    async def fetch_artifact_version(
        self, group_id: str, artifact_id: str, version: str
    ) -> bytes: ...

    async def fetch_artifact_by_global_id(self, global_id: int) -> bytes: ...

    async def push_artifact(
        self, metadata: PushArtifactMetadata, content: bytes
    ) -> None: ...


def _parse(model: type[BaseModel], payload: object, what: str):
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ParseError(f"Unexpected {what} response: {exc}") from exc


class HttpProvider:
    """``Provider`` backed by the Apicurio REST API v2.

    Args:
        client: Blocking registry client; credentials are already bound to
            its session.
    """

    def __init__(self, client: RegistryClient) -> None:
        self.client = client

    async def system_info(self) -> SystemInfo:
        payload = await run_sync(self.client.get_system_info)
        return _parse(SystemInfo, payload, "system info")

    async def fetch_artifact_metadata(
        self, group_id: str, artifact_id: str
    ) -> ArtifactMetadata:
        payload = await run_sync(
            self.client.get_artifact_metadata, group_id, artifact_id
        )
        return _parse(ArtifactMetadata, payload, "artifact metadata")

    async def fetch_artifact_version_metadata(
        self, group_id: str, artifact_id: str, version: str
    ) -> ArtifactMetadata:
        payload = await run_sync(
            self.client.get_artifact_version_metadata,
            group_id,
            artifact_id,
            version,
        )
        return _parse(ArtifactMetadata, payload, "artifact version metadata")

    async def fetch_artifact_version(
        self, group_id: str, artifact_id: str, version: str
    ) -> bytes:
        return await run_sync(
            self.client.get_artifact_version, group_id, artifact_id, version
        )

    async def fetch_artifact_by_global_id(self, global_id: int) -> bytes:
        return await run_sync(self.client.get_artifact_by_global_id, global_id)

    async def push_artifact(
        self, metadata: PushArtifactMetadata, content: bytes
    ) -> None:
        await run_sync(
            self.client.create_or_update_artifact,
            metadata.group_id,
            metadata.artifact_id,
            content,
            artifact_type=metadata.artifact_type,
            content_type=metadata.content_type,
        )
        if metadata.has_descriptive_metadata:
            await run_sync(
                self.client.update_artifact_metadata,
                metadata.group_id,
                metadata.artifact_id,
                name=metadata.name,
                description=metadata.description,
                labels=metadata.labels,
                properties=metadata.properties,
            )


class NoopProvider:
    """``Provider`` that refuses to contact any registry."""

    def _refuse(self, operation: str):
        raise SetupError(
            f"Registry access ({operation}) is not available for this command"
        )

    async def system_info(self) -> SystemInfo:
        self._refuse("system_info")

    async def fetch_artifact_metadata(
        self, group_id: str, artifact_id: str
    ) -> ArtifactMetadata:
        self._refuse("fetch_artifact_metadata")

    async def fetch_artifact_version_metadata(
        self, group_id: str, artifact_id: str, version: str
    ) -> ArtifactMetadata:
        self._refuse("fetch_artifact_version_metadata")

    async def fetch_artifact_version(
        self, group_id: str, artifact_id: str, version: str
    ) -> bytes:
        self._refuse("fetch_artifact_version")

    async def fetch_artifact_by_global_id(self, global_id: int) -> bytes:
        self._refuse("fetch_artifact_by_global_id")

    async def push_artifact(
        self, metadata: PushArtifactMetadata, content: bytes
    ) -> None:
        self._refuse("push_artifact")
