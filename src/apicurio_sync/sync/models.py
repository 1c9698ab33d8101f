"""Pydantic models for the reconciliation core.

Defines the data contracts shared by the lockfile store, the plan builder
and the sync engine:

- ``LockedPushEntry`` / ``LockedPullEntry``: persisted lockfile entries.
- ``PushArtifactRef`` / ``PullArtifactRef``: merged per-path plan entries.
- ``SyncAction``: Enum of the operations the engine performs.
- ``SyncResult``: Outcome of applying one plan entry.
- ``SyncReport``: Aggregate results for a full sync run.

Lockfile entries and results are frozen; plan refs are mutable because
the plan builder layers values into them field by field.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from apicurio_sync.provider import ArtifactType


class LockedPushEntry(BaseModel):
    """Push intent mirrored into the lockfile.

    Carries no remote-resolved state: push targets are created or updated
    by the push itself.
    """

    group: str
    artifact_id: str = Field(alias="artifact")
    artifact_type: ArtifactType | None = Field(default=None, alias="type")

    model_config = {"frozen": True, "populate_by_name": True}


class LockedPullEntry(BaseModel):
    """Resolved snapshot of a pull target at the last lockfile update.

    Attributes:
        group: Artifact group.
        artifact_id: Artifact id (``artifact`` on disk).
        version: Resolved version; never empty.
        global_id: Registry-wide id of the version's content.
        artifact_type: Artifact type reported by the registry.
    """

    group: str
    artifact_id: str = Field(alias="artifact")
    version: str = Field(min_length=1)
    global_id: int
    artifact_type: ArtifactType

    model_config = {"frozen": True, "populate_by_name": True}


class PushArtifactRef(BaseModel):
    """Merged push entry for one local path."""

    group: str | None = None
    artifact_id: str | None = None
    artifact_type: ArtifactType | None = None
    name: str | None = None
    description: str | None = None
    labels: list[str] | None = None
    properties: dict[str, str] | None = None


class PullArtifactRef(BaseModel):
    """Merged pull entry for one local path."""

    group: str | None = None
    artifact_id: str | None = None
    artifact_type: ArtifactType | None = None
    version: str | None = None
    global_id: int | None = None


class SyncAction(str, Enum):
    """Operations applied to a plan entry."""

    PULL = "pull"
    PUSH = "push"


class SyncResult(BaseModel):
    """Result of applying one plan entry.

    Attributes:
        path: Local path relative to the working directory.
        group: Artifact group.
        artifact_id: Artifact id.
        action: Operation performed.
        version: Version pulled (``None`` for pushes).
        size: Number of bytes written or uploaded (0 for dry runs).
    """

    path: str
    group: str
    artifact_id: str
    action: SyncAction
    version: str | None = None
    size: int = 0

    model_config = {"frozen": True}

    @property
    def coordinate(self) -> str:
        return f"{self.group}/{self.artifact_id}"


class SyncReport(BaseModel):
    """Aggregate report for a full sync run.

    Only successful runs produce a report: the first failing entry aborts
    the run and its exception propagates instead.

    Attributes:
        registry_url: Registry the plan was applied against.
        dry_run: Whether this was a dry-run (no changes applied).
        results: Individual results, pulls first.
        started_at: ISO 8601 timestamp when sync started.
        completed_at: ISO 8601 timestamp when sync completed.
    """

    registry_url: str
    dry_run: bool = False
    results: list[SyncResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def pulled(self) -> list[SyncResult]:
        """Results where action is PULL."""
        return [r for r in self.results if r.action == SyncAction.PULL]

    @property
    def pushed(self) -> list[SyncResult]:
        """Results where action is PUSH."""
        return [r for r in self.results if r.action == SyncAction.PUSH]

    def summary(self) -> str:
        """Format a one-line summary of the sync run."""
        suffix = " (dry run)" if self.dry_run else ""
        return (
            f"{len(self.pulled)} pulled, {len(self.pushed)} pushed"
            f" against {self.registry_url}{suffix}"
        )
