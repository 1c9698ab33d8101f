"""
YAML loading for apicurio-sync project configuration.

Provides ``!include`` support, env var interpolation, and the starter file
written by ``apicurio-sync init``.

Usage:
    from apicurio_sync.config_loader import load_yaml_file

    raw = load_yaml_file(Path("apicurio-sync.yaml"))
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from .errors import FilesystemError, ParseError
from .file_handler import write_new_file

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# 1. Env var interpolation
# ---------------------------------------------------------------------------

# Matches ${VAR} and ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` patterns with env values.

    * ``${VAR}`` is replaced with ``os.environ.get(VAR, "")``.
    * ``${VAR:-default}`` uses *default* when VAR is unset or empty.
    * Literal ``${`` with no closing ``}`` is left untouched.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        default = match.group(2)  # None when no :- clause
        env_val = os.environ.get(var_name)
        if env_val is not None and env_val != "":
            return env_val
        if default is not None:
            return default
        return ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    """Walk a nested dict/list and interpolate env vars in all strings."""
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# 2. YAML !include support (dedicated SafeLoader subclass)
# ---------------------------------------------------------------------------


class ConfigLoader(yaml.SafeLoader):
    """YAML SafeLoader subclass with ``!include`` support.

    Uses a dedicated subclass so the global ``yaml.SafeLoader`` is never
    modified.  Tracks an *include stack* per-load to detect circular includes.
    Large ``push``/``pull`` lists can be split into separate files::

        pull: !include pulls.yaml
    """


def _include_constructor(
    loader: ConfigLoader, node: yaml.ScalarNode
) -> Any:
    """Handle ``!include path/to/file.yaml`` directives."""
    include_path_str: str = loader.construct_scalar(node)

    # Resolve relative to the file that contains the !include
    if os.path.isabs(include_path_str):
        include_path = Path(include_path_str)
    else:
        # loader.name is the path of the file being parsed
        parent_dir = Path(loader.name).resolve().parent
        include_path = parent_dir / include_path_str

    include_path = include_path.resolve()

    # Circular include detection
    include_stack: list[Path] = getattr(loader, "_include_stack", [])
    if include_path in include_stack:
        chain = (
            " -> ".join(str(p) for p in include_stack)
            + f" -> {include_path}"
        )
        raise ParseError(f"Circular include detected: {chain}")

    if not include_path.exists():
        source_file = Path(loader.name).resolve()
        raise FilesystemError(
            f"Include file not found: {include_path} (referenced from {source_file})"
        )

    new_stack = include_stack + [include_path]
    return _load_yaml_with_includes(
        include_path, _include_stack=new_stack
    )


ConfigLoader.add_constructor("!include", _include_constructor)


def _load_yaml_with_includes(
    path: Path,
    *,
    _include_stack: list[Path] | None = None,
) -> Any:
    """Load a YAML file using the ``ConfigLoader`` (with ``!include``)."""
    path = path.resolve()
    if _include_stack is None:
        _include_stack = [path]

    with open(path, "r", encoding="utf-8") as fh:
        loader = ConfigLoader(fh)
        loader._include_stack = _include_stack  # type: ignore[attr-defined]
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


def load_yaml_file(path: Path) -> Any:
    """Load *path* with includes and env var interpolation applied.

    Raises:
        FilesystemError: If the file (or an included file) cannot be read.
        ParseError: If the YAML is malformed or includes are circular.
    """
    logger.debug("Loading config: %s", path)
    try:
        data = _load_yaml_with_includes(path)
    except FileNotFoundError as exc:
        raise FilesystemError(
            f"Configuration file not found: {path}. Run 'apicurio-sync init' to create one."
        ) from exc
    except OSError as exc:
        raise FilesystemError(f"Cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ParseError(f"Invalid YAML in {path}: {exc}") from exc

    return _interpolate_recursive(data)


# ---------------------------------------------------------------------------
# 3. Config bootstrapping
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# apicurio-sync configuration
#
# The registry is normally selected through a context
# (apicurio-sync context set <name> --url <url> --current) or the
# APICURIO_SYNC_REGISTRY_URL environment variable.
#
# registry: https://registry.example.com
#
# Upload local files as registry artifacts:
#
# push:
#   - group: com.example
#     artifact: orders
#     path: schemas/orders.avsc
#     type: AVRO
#     name: Orders
#     description: Order events
#     labels: [orders]
#     properties:
#       owner: team-orders
#
# Download registry artifacts (omit version to track the latest):
#
# pull:
#   - group: com.example
#     artifact: payments
#     path: schemas/payments.avsc
#     version: "3"
push: []
pull: []
"""


def write_starter_config(path: Path) -> None:
    """Create a starter configuration at *path*.

    Raises:
        FilesystemError: If *path* already exists or cannot be created.
    """
    write_new_file(path, _STARTER_CONFIG)
    logger.info("Created starter config: %s", path)
