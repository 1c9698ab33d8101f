"""Lockfile persistence and reconciliation.

The lockfile pins, per local path, the registry coordinate last resolved
for it.  It sits next to the project configuration with the same stem and
a ``.lock`` extension (``apicurio-sync.yaml`` -> ``apicurio-sync.lock``)::

    {
      "pull": {
        "schemas/a1.avsc": {
          "artifact": "a1", "artifact_type": "AVRO",
          "global_id": 42, "group": "g1", "version": "3"
        }
      },
      "push": {
        "schemas/orders.avsc": {"artifact": "orders", "group": "g1", "type": "AVRO"}
      }
    }

Key design choices:

* **Non-forcing reconcile** -- paths that already have a pull entry are not
  re-resolved, so a plain ``sync`` never hits the registry for pinned
  paths.  ``refresh()`` (the ``update`` command) re-resolves everything.
  A consequence: after the configured ``version`` of a locked path
  changes, ``sync`` pulls the new pin (config wins in the plan) while the
  lockfile still records the old version and global id.  Run ``update`` to
  bring the lockfile back in line.
* **Pruning** -- entries for paths no longer declared in the configuration
  are dropped on every reconcile, forcing or not.
* **All-or-nothing** -- new entries are computed into fresh maps and only
  swapped in once every registry call succeeded; the file is then written
  atomically.  A failed pass leaves both the store and the file untouched.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from apicurio_sync.errors import FilesystemError, ParseError, SetupError
from apicurio_sync.file_handler import write_text_atomic
from apicurio_sync.sync.models import LockedPullEntry, LockedPushEntry

if TYPE_CHECKING:
    from apicurio_sync.config_schema import ProjectConfig, PullSpec
    from apicurio_sync.provider import Provider

logger = logging.getLogger(__name__)

LOCK_EXTENSION = ".lock"


def lockfile_path_for(config_path: Path) -> Path:
    """Return the lockfile path belonging to *config_path*."""
    return config_path.with_suffix(LOCK_EXTENSION)


class LockFile:
    """Path-keyed cache of resolved registry coordinates.

    Args:
        path: Where the lockfile is persisted.
        push: Push entries keyed by local path.
        pull: Pull entries keyed by local path.
    """

    def __init__(
        self,
        path: Path,
        push: dict[str, LockedPushEntry] | None = None,
        pull: dict[str, LockedPullEntry] | None = None,
    ) -> None:
        self.path = path
        self.push: dict[str, LockedPushEntry] = dict(push or {})
        self.pull: dict[str, LockedPullEntry] = dict(pull or {})

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def empty(cls, path: Path) -> LockFile:
        return cls(path)

    @classmethod
    def load(cls, path: Path) -> LockFile:
        """Read the lockfile at *path*.

        Returns an empty store when the file does not exist.

        Raises:
            ParseError: If the file is not a valid lockfile.
            FilesystemError: If the file cannot be read.
        """
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No lockfile at %s, starting empty", path)
            return cls.empty(path)
        except UnicodeDecodeError as exc:
            raise ParseError(f"Invalid lockfile {path}: {exc}") from exc
        except OSError as exc:
            raise FilesystemError(
                f"Cannot read lockfile {path}: {exc}"
            ) from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Invalid lockfile {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ParseError(
                f"Invalid lockfile {path}: expected an object at the top level"
            )

        try:
            push = {
                p: LockedPushEntry.model_validate(entry)
                for p, entry in (data.get("push") or {}).items()
            }
            pull = {
                p: LockedPullEntry.model_validate(entry)
                for p, entry in (data.get("pull") or {}).items()
            }
        except (ValidationError, AttributeError) as exc:
            raise ParseError(f"Invalid lockfile {path}: {exc}") from exc

        return cls(path, push=push, pull=pull)

    @classmethod
    async def load_or_create(
        cls,
        config: ProjectConfig,
        provider: Provider,
        path: Path | None = None,
    ) -> LockFile:
        """Load the lockfile for *config*, resolve missing entries, persist.

        Args:
            config: The project configuration.
            provider: Registry used to resolve unlocked pull specs.
            path: Explicit lockfile path; derived from
                ``config.source_path`` when omitted.
        """
        lockfile = cls.load(_resolve_path(config, path))
        await lockfile.reconcile(config, provider, force=False)
        return lockfile

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def refresh(
        self, config: ProjectConfig, provider: Provider
    ) -> None:
        """Re-resolve every pull spec against the registry and persist."""
        await self.reconcile(config, provider, force=True)

    async def reconcile(
        self,
        config: ProjectConfig,
        provider: Provider,
        force: bool = False,
    ) -> None:
        """Bring the store in line with *config*, then persist it.

        Args:
            config: The project configuration.
            provider: Registry used to resolve pull specs.
            force: Re-resolve paths that are already locked.
        """
        specs = config.pull_by_path()

        if not specs:
            pull: dict[str, LockedPullEntry] = {}
        else:
            pull = dict(self.pull)

        for path, spec in specs.items():
            if not force and path in pull:
                logger.debug("Keeping locked entry for %s", path)
                continue
            pull[path] = await self._resolve(spec, provider)

        for stale in sorted(set(pull) - set(specs)):
            logger.info("Removing stale lockfile entry %s", stale)
            del pull[stale]

        push = {
            path: LockedPushEntry(
                group=spec.group,
                artifact_id=spec.artifact_id,
                artifact_type=spec.artifact_type,
            )
            for path, spec in config.push_by_path().items()
        }

        self.pull = pull
        self.push = push
        self.save()

    async def _resolve(
        self, spec: PullSpec, provider: Provider
    ) -> LockedPullEntry:
        """Resolve one pull spec to a pinned entry."""
        if spec.version is not None:
            logger.info(
                "Resolving %s/%s version %s",
                spec.group,
                spec.artifact_id,
                spec.version,
            )
            metadata = await provider.fetch_artifact_version_metadata(
                spec.group, spec.artifact_id, spec.version
            )
        else:
            logger.info(
                "Resolving %s/%s latest version", spec.group, spec.artifact_id
            )
            metadata = await provider.fetch_artifact_metadata(
                spec.group, spec.artifact_id
            )

        return LockedPullEntry(
            group=metadata.group_id or spec.group,
            artifact_id=metadata.id or spec.artifact_id,
            version=metadata.version,
            global_id=metadata.global_id,
            artifact_type=metadata.artifact_type,
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Return the on-disk representation."""
        return {
            "push": {
                path: entry.model_dump(
                    mode="json", by_alias=True, exclude_none=True
                )
                for path, entry in self.push.items()
            },
            "pull": {
                path: entry.model_dump(mode="json", by_alias=True)
                for path, entry in self.pull.items()
            },
        }

    def save(self) -> None:
        """Overwrite the lockfile atomically with the current entries."""
        content = json.dumps(self.to_dict(), indent=2, sort_keys=True) + "\n"
        write_text_atomic(self.path, content)
        logger.debug(
            "Wrote lockfile %s (%d pull, %d push)",
            self.path,
            len(self.pull),
            len(self.push),
        )


def _resolve_path(config: ProjectConfig, path: Path | None) -> Path:
    if path is not None:
        return path
    if config.source_path is None:
        raise SetupError(
            "Cannot derive the lockfile path: configuration has no source file"
        )
    return lockfile_path_for(config.source_path)
