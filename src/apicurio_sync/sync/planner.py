"""Plan builder: merge project configuration and lockfile into a plan.

The plan is the per-path view the sync engine executes.  Configuration is
applied first; the lockfile then only fills fields the configuration left
unset, so an edited config always beats a stale lock.

Tie-break rules live in one place, :func:`layer`.  Collections such as
labels and properties are replaced wholesale, never merged element-wise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

from apicurio_sync.sync.models import PullArtifactRef, PushArtifactRef

if TYPE_CHECKING:
    from apicurio_sync.config_schema import ProjectConfig
    from apicurio_sync.context import Context
    from apicurio_sync.sync.lockfile import LockFile

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Plan:
    """Everything one sync run will do, keyed by local path."""

    context: Context
    push: dict[str, PushArtifactRef] = field(default_factory=dict)
    pull: dict[str, PullArtifactRef] = field(default_factory=dict)


def layer(current: T | None, incoming: T | None) -> T | None:
    """Keep *current* when set, otherwise take *incoming*."""
    return current if current is not None else incoming


def merge_config(plan: Plan, config: ProjectConfig) -> None:
    """Upsert every push and pull spec of *config* into *plan*.

    Config values are assigned directly: they are the highest-precedence
    source.
    """
    for path, spec in config.pull_by_path().items():
        ref = plan.pull.setdefault(path, PullArtifactRef())
        ref.group = spec.group
        ref.artifact_id = spec.artifact_id
        ref.version = spec.version

    for path, spec in config.push_by_path().items():
        ref = plan.push.setdefault(path, PushArtifactRef())
        ref.group = spec.group
        ref.artifact_id = spec.artifact_id
        ref.artifact_type = spec.artifact_type
        ref.name = spec.name
        ref.description = spec.description
        ref.labels = list(spec.labels) if spec.labels is not None else None
        ref.properties = (
            dict(spec.properties) if spec.properties is not None else None
        )


def merge_lockfile(plan: Plan, lockfile: LockFile) -> None:
    """Fill unset pull fields of *plan* from *lockfile*.

    A locked entry only contributes when it still points at the configured
    coordinate.  The pinned ``global_id`` and ``artifact_type`` are only
    taken when the locked version is the effective version, so a config
    pin that moved away from the lock never reuses a stale global id.
    Push entries carry nothing resolvable and are ignored.
    """
    for path, locked in lockfile.pull.items():
        ref = plan.pull.get(path)
        if ref is None:
            logger.debug("Ignoring lockfile entry for undeclared path %s", path)
            continue
        if (ref.group, ref.artifact_id) != (locked.group, locked.artifact_id):
            logger.debug(
                "Lockfile entry for %s points at %s/%s, configured %s/%s",
                path,
                locked.group,
                locked.artifact_id,
                ref.group,
                ref.artifact_id,
            )
            continue

        ref.version = layer(ref.version, locked.version)
        if ref.version == locked.version:
            ref.global_id = layer(ref.global_id, locked.global_id)
            ref.artifact_type = layer(ref.artifact_type, locked.artifact_type)


def build_plan(
    context: Context, config: ProjectConfig, lockfile: LockFile
) -> Plan:
    """Build the execution plan for *context* from config and lockfile."""
    plan = Plan(context=context)
    merge_config(plan, config)
    merge_lockfile(plan, lockfile)
    logger.debug(
        "Plan for %s: %d pull, %d push",
        context.registry_url,
        len(plan.pull),
        len(plan.push),
    )
    return plan
