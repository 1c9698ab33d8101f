"""Registry reconciliation core.

Public API for keeping local schema files in step with an Apicurio
registry.

Architecture
------------
A sync run goes through three stages:

1. The **lockfile** is reconciled against the project configuration.  Pull
   specs that are not yet locked are resolved to a concrete version and
   global id; entries for paths no longer declared are pruned.
2. The **plan** is built by layering the lockfile under the configuration:
   config values win, the lockfile fills the gaps.
3. The **engine** applies the plan: pull entries first, then push entries.

Modules:

- ``lockfile``  -- ``LockFile``: load/reconcile/save the JSON lockfile.
- ``planner``   -- ``Plan``, ``build_plan``: config + lockfile merge.
- ``engine``    -- ``SyncEngine``: executes a plan against a provider.
- ``models``    -- lockfile entries, plan refs, ``SyncResult``,
  ``SyncReport``.
- ``reporter``  -- Human-readable and JSON report formatting.

Usage example
-------------
::

    lockfile = await LockFile.load_or_create(config, provider)
    plan = build_plan(context, config, lockfile)
    report = await SyncEngine(provider, plan, workdir).run()
    print(format_sync_report(report))
"""

from .engine import SyncEngine
from .lockfile import LockFile, lockfile_path_for
from .models import (
    LockedPullEntry,
    LockedPushEntry,
    PullArtifactRef,
    PushArtifactRef,
    SyncAction,
    SyncReport,
    SyncResult,
)
from .planner import Plan, build_plan, layer
from .reporter import (
    format_dry_run_preview,
    format_sync_report,
    report_to_json,
)

__all__ = [
    "LockFile",
    "LockedPullEntry",
    "LockedPushEntry",
    "Plan",
    "PullArtifactRef",
    "PushArtifactRef",
    "SyncAction",
    "SyncEngine",
    "SyncReport",
    "SyncResult",
    "build_plan",
    "format_dry_run_preview",
    "format_sync_report",
    "layer",
    "lockfile_path_for",
    "report_to_json",
]
