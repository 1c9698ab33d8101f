"""Tests for the HTTP and no-op providers."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from apicurio_sync.core.client import RegistryClient
from apicurio_sync.errors import ParseError, SetupError
from apicurio_sync.provider import (
    ArtifactMetadata,
    ArtifactType,
    HttpProvider,
    NoopProvider,
    Provider,
    PushArtifactMetadata,
)

METADATA = {
    "groupId": "g1",
    "id": "a1",
    "name": "A1",
    "type": "AVRO",
    "version": 3,
    "globalId": 42,
    "contentId": 7,
    "createdOn": "2026-01-01T00:00:00+0000",
    "labels": ["x"],
}


@pytest.fixture
def client():
    return MagicMock(spec=RegistryClient)


class TestModels:
    def test_metadata_parses_registry_json(self):
        meta = ArtifactMetadata.model_validate(METADATA)
        assert meta.group_id == "g1"
        assert meta.artifact_type is ArtifactType.AVRO
        assert meta.version == "3"
        assert meta.global_id == 42
        assert meta.content_id == 7

    def test_artifact_type_str_is_value(self):
        assert str(ArtifactType.PROTOBUF) == "PROTOBUF"

    def test_push_metadata_descriptive_flag(self):
        bare = PushArtifactMetadata(group_id="g1", artifact_id="a1")
        named = PushArtifactMetadata(group_id="g1", artifact_id="a1", name="A")
        assert not bare.has_descriptive_metadata
        assert named.has_descriptive_metadata

    def test_implementations_satisfy_protocol(self, client):
        assert isinstance(HttpProvider(client), Provider)
        assert isinstance(NoopProvider(), Provider)


class TestHttpProvider:
    async def test_fetch_artifact_metadata(self, client):
        client.get_artifact_metadata.return_value = METADATA

        meta = await HttpProvider(client).fetch_artifact_metadata("g1", "a1")

        client.get_artifact_metadata.assert_called_once_with("g1", "a1")
        assert meta.global_id == 42

    async def test_fetch_version_metadata(self, client):
        client.get_artifact_version_metadata.return_value = METADATA

        await HttpProvider(client).fetch_artifact_version_metadata(
            "g1", "a1", "3"
        )

        client.get_artifact_version_metadata.assert_called_once_with(
            "g1", "a1", "3"
        )

    async def test_unexpected_payload_raises_parse_error(self, client):
        client.get_artifact_metadata.return_value = {"id": "a1"}

        with pytest.raises(ParseError, match="artifact metadata"):
            await HttpProvider(client).fetch_artifact_metadata("g1", "a1")

    async def test_system_info(self, client):
        client.get_system_info.return_value = {
            "name": "Apicurio Registry (In Memory)",
            "description": "High performance runtime",
            "version": "2.5.0.Final",
            "builtOn": "2023-11-01T00:00:00Z",
        }

        info = await HttpProvider(client).system_info()

        assert info.version == "2.5.0.Final"
        assert info.built_on == "2023-11-01T00:00:00Z"

    async def test_fetch_content(self, client):
        client.get_artifact_version.return_value = b"a"
        client.get_artifact_by_global_id.return_value = b"b"
        provider = HttpProvider(client)

        assert await provider.fetch_artifact_version("g1", "a1", "1") == b"a"
        assert await provider.fetch_artifact_by_global_id(42) == b"b"

    async def test_push_without_metadata_skips_update(self, client):
        await HttpProvider(client).push_artifact(
            PushArtifactMetadata(
                group_id="g1",
                artifact_id="a1",
                artifact_type=ArtifactType.AVRO,
            ),
            b"{}",
        )

        client.create_or_update_artifact.assert_called_once_with(
            "g1",
            "a1",
            b"{}",
            artifact_type=ArtifactType.AVRO,
            content_type="application/json",
        )
        client.update_artifact_metadata.assert_not_called()

    async def test_push_with_metadata_updates_it(self, client):
        await HttpProvider(client).push_artifact(
            PushArtifactMetadata(
                group_id="g1",
                artifact_id="a1",
                description="Orders",
                properties={"owner": "team"},
            ),
            b"{}",
        )

        client.update_artifact_metadata.assert_called_once_with(
            "g1",
            "a1",
            name=None,
            description="Orders",
            labels=None,
            properties={"owner": "team"},
        )


class TestNoopProvider:
    @pytest.mark.parametrize(
        "method, args",
        [
            ("system_info", ()),
            ("fetch_artifact_metadata", ("g", "a")),
            ("fetch_artifact_version_metadata", ("g", "a", "1")),
            ("fetch_artifact_version", ("g", "a", "1")),
            ("fetch_artifact_by_global_id", (1,)),
        ],
    )
    async def test_every_call_is_refused(self, method, args):
        with pytest.raises(SetupError, match="not available"):
            await getattr(NoopProvider(), method)(*args)

    async def test_push_is_refused(self):
        with pytest.raises(SetupError):
            await NoopProvider().push_artifact(
                PushArtifactMetadata(group_id="g", artifact_id="a"), b""
            )
