"""Project configuration schema for apicurio-sync.

Defines Pydantic models for the YAML project file that declares which
artifacts to push and pull::

    registry: https://registry.example.com   # optional
    push:
      - {group, artifact, path, type?, name?, description?, labels?, properties?}
    pull:
      - {group, artifact, path, version?}

Usage:
    from apicurio_sync.config_schema import load_project_config

    config = load_project_config(Path("apicurio-sync.yaml"))
    for path, spec in config.pull_by_path().items():
        ...
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .config_loader import load_yaml_file
from .errors import ParseError
from .provider import ArtifactType
from .validators import validate_coordinate_part, validate_local_path

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared validators
# ---------------------------------------------------------------------------


def _check_coordinate(value: str, field_name: str) -> str:
    ok, reason = validate_coordinate_part(value, field_name)
    if not ok:
        raise ValueError(reason)
    return value


def _check_path(value: Any) -> str:
    path = str(value) if isinstance(value, Path) else value
    if not isinstance(path, str):
        raise ValueError("Path must be a string")
    ok, reason = validate_local_path(path)
    if not ok:
        raise ValueError(reason)
    return Path(path).as_posix()


# ---------------------------------------------------------------------------
# Spec models
# ---------------------------------------------------------------------------


class PushSpec(BaseModel):
    """A local file to upload as a registry artifact."""

    path: str
    group: str
    artifact_id: str = Field(alias="artifact")
    artifact_type: ArtifactType | None = Field(default=None, alias="type")
    name: str | None = None
    description: str | None = None
    labels: list[str] | None = None
    properties: dict[str, str] | None = None

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "coerce_numbers_to_str": True,
    }

    @field_validator("path", mode="before")
    @classmethod
    def _validate_path(cls, value: Any) -> str:
        return _check_path(value)

    @field_validator("group")
    @classmethod
    def _validate_group(cls, value: str) -> str:
        return _check_coordinate(value, "Group")

    @field_validator("artifact_id")
    @classmethod
    def _validate_artifact(cls, value: str) -> str:
        return _check_coordinate(value, "Artifact id")

    @field_validator("artifact_type", mode="before")
    @classmethod
    def _upper_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value


class PullSpec(BaseModel):
    """A registry artifact to download to a local file.

    ``version`` ``None`` means track the latest version.
    """

    path: str
    group: str
    artifact_id: str = Field(alias="artifact")
    version: str | None = None

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "coerce_numbers_to_str": True,
    }

    @field_validator("path", mode="before")
    @classmethod
    def _validate_path(cls, value: Any) -> str:
        return _check_path(value)

    @field_validator("group")
    @classmethod
    def _validate_group(cls, value: str) -> str:
        return _check_coordinate(value, "Group")

    @field_validator("artifact_id")
    @classmethod
    def _validate_artifact(cls, value: str) -> str:
        return _check_coordinate(value, "Artifact id")

    @field_validator("version")
    @classmethod
    def _validate_version(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("Version cannot be empty; omit it to track latest")
        return value


# ---------------------------------------------------------------------------
# Top-level project config
# ---------------------------------------------------------------------------


class ProjectConfig(BaseModel):
    """The whole project configuration file.

    ``source_path`` records where the file was loaded from; the lockfile
    path is derived from it.
    """

    registry: str | None = Field(
        default=None, description="Registry URL used when no context applies"
    )
    push: list[PushSpec] = Field(default_factory=list)
    pull: list[PullSpec] = Field(default_factory=list)
    source_path: Path | None = Field(default=None, exclude=True)

    model_config = {"frozen": True}

    @field_validator("push", "pull", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    def push_by_path(self) -> dict[str, PushSpec]:
        """Push specs keyed by path; the last spec for a path wins."""
        return {spec.path: spec for spec in self.push}

    def pull_by_path(self) -> dict[str, PullSpec]:
        """Pull specs keyed by path; the last spec for a path wins."""
        return {spec.path: spec for spec in self.pull}


# ---------------------------------------------------------------------------
# Factory functions
# ---------------------------------------------------------------------------


def build_config(
    raw_data: Any, source_path: Path | None = None
) -> ProjectConfig:
    """Construct a ``ProjectConfig`` from the raw YAML document.

    An empty document yields an empty configuration.

    Raises:
        ParseError: If the document does not match the schema.
    """
    where = source_path or "<memory>"
    if raw_data is None:
        raw_data = {}
    if not isinstance(raw_data, dict):
        raise ParseError(
            f"Configuration {where} must be a mapping, got {type(raw_data).__name__}"
        )

    try:
        return ProjectConfig.model_validate(
            {**raw_data, "source_path": source_path}
        )
    except ValidationError as exc:
        raise ParseError(f"Invalid configuration {where}: {exc}") from exc


def load_project_config(path: Path) -> ProjectConfig:
    """Load and validate the project configuration at *path*."""
    config = build_config(load_yaml_file(path), source_path=path)
    logger.debug(
        "Loaded %d push and %d pull specs from %s",
        len(config.push),
        len(config.pull),
        path,
    )
    return config
