"""Command-line entry point for apicurio-sync.

Parses arguments, loads settings and logging, then dispatches to one of
the commands below.  Every failure surfaces as an ``ApicurioSyncError``
which ``run()`` reports as ``Error: <message>`` with exit status 1.
"""

import argparse
import asyncio
import json
import logging
import sys

from dotenv import find_dotenv, load_dotenv

from . import __version__
from .auth import AuthProvider, BasicAuthProvider, read_password
from .config import Settings, load_settings
from .config_loader import write_starter_config
from .config_schema import ProjectConfig, load_project_config
from .context import Context, ContextStore, resolve_context
from .core.client import RegistryClient
from .errors import ApicurioSyncError, SetupError
from .logger import setup_logging
from .provider import HttpProvider, NoopProvider, Provider
from .sync import (
    LockFile,
    SyncEngine,
    build_plan,
    format_dry_run_preview,
    format_sync_report,
    lockfile_path_for,
    report_to_json,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apicurio-sync",
        description="Synchronise local schema files with an Apicurio registry",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create apicurio-sync.yaml and an empty lockfile
  apicurio-sync init

  # Register a registry and make it current
  apicurio-sync context set dev --url https://registry.example.com --current

  # Resolve pull versions and pull/push everything (default command)
  apicurio-sync

  # Preview without touching files or the registry
  apicurio-sync sync --dry-run

  # Re-resolve every pull entry to its latest matching version
  apicurio-sync update
        """,
    )

    parser.add_argument(
        "-f",
        "--config-file",
        help="Project configuration file, relative to the working directory "
        "(default: apicurio-sync.yaml, env APICURIO_SYNC_CONFIG_FILE)",
    )
    parser.add_argument(
        "--context-file",
        help="Context file (default: ~/.config/apicurio-sync/context.json, "
        "env APICURIO_SYNC_CONTEXT_FILE)",
    )
    parser.add_argument(
        "--context",
        dest="context_name",
        help="Context to use instead of the current one "
        "(env APICURIO_SYNC_CONTEXT_NAME)",
    )
    parser.add_argument(
        "--cwd",
        help="Working directory (default: current directory, "
        "env APICURIO_SYNC_WORKDIR)",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Also append log records to this file",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Log record format (default: text, env APICURIO_SYNC_LOG_FORMAT)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"apicurio-sync version {__version__}",
    )

    commands = parser.add_subparsers(dest="command", metavar="<command>")

    commands.add_parser(
        "init", help="Create an empty configuration and lockfile"
    )
    commands.add_parser(
        "update", help="Re-resolve every pull entry in the lockfile"
    )

    sync_parser = commands.add_parser(
        "sync", help="Pull and push artifacts (default)"
    )
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be pulled and pushed without doing it",
    )
    sync_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON",
    )

    commands.add_parser("info", help="Show registry system information")

    context_parser = commands.add_parser(
        "context", help="Manage registry contexts"
    )
    context_commands = context_parser.add_subparsers(
        dest="context_command", metavar="<context-command>", required=True
    )
    context_commands.add_parser(
        "current", help="Print the name of the resolved context"
    )
    context_commands.add_parser("init", help="Create an empty context file")
    context_commands.add_parser("show", help="Print the context file")

    set_parser = context_commands.add_parser(
        "set", help="Create or update a context"
    )
    set_parser.add_argument("name", help="Context name")
    set_parser.add_argument(
        "--url", help="Registry URL (required for a new context)"
    )
    set_parser.add_argument(
        "--current",
        action="store_true",
        help="Make this the current context",
    )

    login_parser = context_commands.add_parser(
        "login", help="Store credentials on the selected context"
    )
    login_methods = login_parser.add_subparsers(
        dest="login_method", metavar="<method>", required=True
    )
    basic_parser = login_methods.add_parser(
        "basic", help="HTTP basic authentication"
    )
    basic_parser.add_argument(
        "-u", "--username", required=True, help="Registry username"
    )
    basic_parser.add_argument(
        "--password-stdin",
        action="store_true",
        help="Read the password from the first line of stdin",
    )

    return parser


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _context_store(settings: Settings) -> ContextStore:
    return ContextStore(settings.context_file)


def _resolve(settings: Settings, config: ProjectConfig | None) -> Context:
    return resolve_context(
        _context_store(settings),
        context_name=settings.context_name,
        registry_url=settings.registry_url,
        fallback_url=config.registry if config else None,
    )


def build_provider(ctx: Context) -> Provider:
    """Create the HTTP provider for *ctx*, credentials included."""
    logger.debug(
        "Using context %s (%s)", ctx.context_name, ctx.registry_url
    )
    return HttpProvider(RegistryClient(ctx.registry_url, ctx.auth))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def cmd_init(settings: Settings) -> None:
    path = settings.config_path
    write_starter_config(path)
    config = load_project_config(path)
    lockfile = await LockFile.load_or_create(config, NoopProvider())
    print(f"Created {path} and {lockfile.path}")


async def cmd_update(settings: Settings) -> None:
    config = load_project_config(settings.config_path)
    provider = build_provider(_resolve(settings, config))
    lockfile = LockFile.load(lockfile_path_for(settings.config_path))
    await lockfile.refresh(config, provider)
    print(f"Updated {lockfile.path} ({len(lockfile.pull)} pull entries)")


async def cmd_sync(
    settings: Settings, dry_run: bool = False, as_json: bool = False
) -> None:
    config = load_project_config(settings.config_path)
    ctx = _resolve(settings, config)
    provider = build_provider(ctx)

    lockfile = await LockFile.load_or_create(config, provider)
    plan = build_plan(ctx, config, lockfile)
    report = await SyncEngine(provider, plan, settings.workdir).run(
        dry_run=dry_run
    )
    logger.info("Sync finished: %s", report.summary())

    if as_json:
        print(json.dumps(report_to_json(report), indent=2))
    elif dry_run:
        print(format_dry_run_preview(report))
    else:
        print(format_sync_report(report))


async def cmd_info(settings: Settings) -> None:
    config = None
    if settings.config_path.exists():
        config = load_project_config(settings.config_path)
    ctx = _resolve(settings, config)
    info = await build_provider(ctx).system_info()

    print(f"Registry: {ctx.registry_url} (context {ctx.context_name})")
    print(f"Name: {info.name}")
    print(f"Version: {info.version}")
    if info.description:
        print(f"Description: {info.description}")
    if info.built_on:
        print(f"Built on: {info.built_on}")


def _auth_provider(args: argparse.Namespace) -> AuthProvider:
    """Pick the credential source for ``context login <method>``."""
    if args.login_method == "basic":
        password = read_password() if args.password_stdin else None
        return BasicAuthProvider(args.username, password)
    raise SetupError(f"Unsupported login method: {args.login_method}")


def cmd_context(args: argparse.Namespace, settings: Settings) -> None:
    store = _context_store(settings)

    if args.context_command == "current":
        ctx = _resolve(settings, None)
        print(ctx.context_name)

    elif args.context_command == "init":
        store.write_empty()
        print(f"Created {store.path}")

    elif args.context_command == "show":
        print(store.read_raw().rstrip())

    elif args.context_command == "set":
        ctx = store.select(args.name)
        if ctx is None:
            if not args.url:
                raise SetupError(
                    f"Context '{args.name}' does not exist; --url is required to create it"
                )
            ctx = Context(context_name=args.name, registry_url=args.url)
        elif args.url:
            ctx.registry_url = args.url
        store.write(ctx, current=args.current)
        print(f"Saved context {args.name} ({ctx.registry_url})")

    elif args.context_command == "login":
        ctx = store.select(settings.context_name)
        if ctx is None:
            raise SetupError(
                "No context selected. Run 'apicurio-sync context set <name> "
                "--url <url> --current' first."
            )
        ctx = _auth_provider(args).login(ctx)
        store.write(ctx)
        print(f"Stored basic credentials for {args.username} on {ctx.context_name}")


async def main(args: argparse.Namespace, settings: Settings) -> None:
    """Dispatch the parsed command."""
    command = args.command or "sync"
    logger.debug("Running command %s in %s", command, settings.workdir)

    if command == "init":
        await cmd_init(settings)
    elif command == "update":
        await cmd_update(settings)
    elif command == "sync":
        await cmd_sync(
            settings,
            dry_run=getattr(args, "dry_run", False),
            as_json=getattr(args, "json", False),
        )
    elif command == "info":
        await cmd_info(settings)
    elif command == "context":
        cmd_context(args, settings)


def run(argv: list[str] | None = None) -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    args = build_parser().parse_args(argv)

    load_dotenv(find_dotenv(usecwd=True))

    try:
        settings = load_settings(
            config_file=args.config_file,
            context_file=args.context_file,
            workdir=args.cwd,
            context_name=args.context_name,
            debug=args.debug,
            log_file=args.log_file,
            log_format=args.log_format,
        )
        setup_logging(
            debug=settings.debug,
            log_file=settings.log_file,
            debug_format=settings.log_format,
        )
        asyncio.run(main(args, settings))
    except ApicurioSyncError as e:
        logger.error("Error: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
