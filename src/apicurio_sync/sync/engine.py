"""Sync executor that applies a plan against the registry.

The ``SyncEngine`` takes a :class:`~apicurio_sync.sync.planner.Plan` and:

1. Pulls every pull entry: fetches content (by global id when the lockfile
   pinned one, else by coordinate and version) and writes it to its local
   path, creating parent directories.
2. Pushes every push entry: reads the local file and uploads it with its
   type and descriptive metadata.
3. Builds and returns a ``SyncReport``.

Entries are processed sequentially in path order.  Error handling is
fail-fast: the first failing entry aborts the run and its exception
propagates; earlier entries stay applied.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from apicurio_sync.errors import PlanError
from apicurio_sync.file_handler import (
    guess_content_type,
    read_file_async,
    resolve_workdir_path,
    write_file_async,
)
from apicurio_sync.provider import PushArtifactMetadata
from apicurio_sync.sync.models import (
    PullArtifactRef,
    PushArtifactRef,
    SyncAction,
    SyncReport,
    SyncResult,
)

if TYPE_CHECKING:
    from apicurio_sync.provider import Provider
    from apicurio_sync.sync.planner import Plan

logger = logging.getLogger(__name__)


def _require(value, field_name: str, path: str, action: str):
    if value is None:
        raise PlanError(
            f"Cannot {action} {path}: {field_name} is not set. "
            "Check the configuration or run 'apicurio-sync update'."
        )
    return value


class SyncEngine:
    """Apply a plan for one working directory.

    Args:
        provider: Registry operations, bound to the plan's context.
        plan: The merged per-path plan.
        workdir: Directory every plan path is relative to.
    """

    def __init__(self, provider: Provider, plan: Plan, workdir: Path) -> None:
        self.provider = provider
        self.plan = plan
        self.workdir = workdir

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(self, dry_run: bool = False) -> SyncReport:
        """Pull then push every plan entry.

        Args:
            dry_run: If ``True``, report what would happen without fetching,
                writing or uploading anything.
        """
        started_at = datetime.now(timezone.utc).isoformat()

        results = await self.pull(dry_run=dry_run)
        results += await self.push(dry_run=dry_run)

        return SyncReport(
            registry_url=self.plan.context.registry_url,
            dry_run=dry_run,
            results=results,
            started_at=started_at,
            completed_at=datetime.now(timezone.utc).isoformat(),
        )

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    async def pull(self, dry_run: bool = False) -> list[SyncResult]:
        """Download every pull entry to its local path."""
        results = []
        for path in sorted(self.plan.pull):
            results.append(
                await self._pull_one(path, self.plan.pull[path], dry_run)
            )
        return results

    async def _pull_one(
        self, path: str, ref: PullArtifactRef, dry_run: bool
    ) -> SyncResult:
        group = _require(ref.group, "group", path, "pull")
        artifact_id = _require(ref.artifact_id, "artifact", path, "pull")
        version = _require(ref.version, "version", path, "pull")
        target = resolve_workdir_path(self.workdir, path)

        if dry_run:
            logger.info(
                "Would pull %s/%s version %s -> %s",
                group,
                artifact_id,
                version,
                path,
            )
            return SyncResult(
                path=path,
                group=group,
                artifact_id=artifact_id,
                action=SyncAction.PULL,
                version=version,
            )

        if ref.global_id is not None:
            logger.debug("Fetching global id %d for %s", ref.global_id, path)
            content = await self.provider.fetch_artifact_by_global_id(
                ref.global_id
            )
        else:
            content = await self.provider.fetch_artifact_version(
                group, artifact_id, version
            )

        size = await write_file_async(target, content)
        logger.info(
            "Pulled %s/%s version %s -> %s (%d bytes)",
            group,
            artifact_id,
            version,
            path,
            size,
        )
        return SyncResult(
            path=path,
            group=group,
            artifact_id=artifact_id,
            action=SyncAction.PULL,
            version=version,
            size=size,
        )

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def push(self, dry_run: bool = False) -> list[SyncResult]:
        """Upload every push entry from its local path."""
        results = []
        for path in sorted(self.plan.push):
            results.append(
                await self._push_one(path, self.plan.push[path], dry_run)
            )
        return results

    async def _push_one(
        self, path: str, ref: PushArtifactRef, dry_run: bool
    ) -> SyncResult:
        group = _require(ref.group, "group", path, "push")
        artifact_id = _require(ref.artifact_id, "artifact", path, "push")
        source = resolve_workdir_path(self.workdir, path)

        if dry_run:
            logger.info("Would push %s -> %s/%s", path, group, artifact_id)
            return SyncResult(
                path=path,
                group=group,
                artifact_id=artifact_id,
                action=SyncAction.PUSH,
            )

        content = await read_file_async(source)
        metadata = PushArtifactMetadata(
            group_id=group,
            artifact_id=artifact_id,
            artifact_type=ref.artifact_type,
            name=ref.name,
            description=ref.description,
            labels=ref.labels,
            properties=ref.properties,
            content_type=guess_content_type(
                source,
                ref.artifact_type.value if ref.artifact_type else None,
            ),
        )
        await self.provider.push_artifact(metadata, content)

        logger.info(
            "Pushed %s -> %s/%s (%d bytes)",
            path,
            group,
            artifact_id,
            len(content),
        )
        return SyncResult(
            path=path,
            group=group,
            artifact_id=artifact_id,
            action=SyncAction.PUSH,
            size=len(content),
        )
