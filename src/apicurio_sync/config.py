"""Runtime settings for the apicurio-sync command line.

Reads global options from CLI flags, environment variables and .env files.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > Built-in defaults

Environment variables:
    APICURIO_SYNC_CONFIG_FILE: Project configuration file (default: apicurio-sync.yaml)
    APICURIO_SYNC_CONTEXT_FILE: Context file (default: ~/.config/apicurio-sync/context.json)
    APICURIO_SYNC_WORKDIR: Working directory (default: current directory)
    APICURIO_SYNC_CONTEXT_NAME: Context to use instead of the current one
    APICURIO_SYNC_REGISTRY_URL: Registry URL overriding the context's URL
    APICURIO_SYNC_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from .errors import SetupError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "apicurio-sync.yaml"
APP_NAME = "apicurio-sync"
LOG_FORMATS = ("text", "json")


def default_context_file() -> Path:
    """Return ``$XDG_CONFIG_HOME/apicurio-sync/context.json``.

    Falls back to ``~/.config`` when ``XDG_CONFIG_HOME`` is unset.
    """
    config_home = os.getenv("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / APP_NAME / "context.json"


@dataclass
class Settings:
    config_file: Path
    context_file: Path
    workdir: Path
    context_name: str | None = None
    registry_url: str | None = None
    debug: bool = False
    log_file: str | None = None
    log_format: str = "text"

    @property
    def config_path(self) -> Path:
        """Project configuration path, resolved against the working directory."""
        return self.workdir / self.config_file


def validate_settings(settings: Settings) -> None:
    """Validate settings values and raise SetupError if invalid.

    Args:
        settings: Settings instance to validate.

    Raises:
        SetupError: If the working directory is missing or the registry URL
            override is malformed.
    """
    if not settings.workdir.is_dir():
        raise SetupError(
            f"Working directory does not exist: {settings.workdir}"
        )

    if settings.log_format not in LOG_FORMATS:
        raise SetupError(
            f"Invalid log format '{settings.log_format}': expected one of "
            + ", ".join(LOG_FORMATS)
        )

    if settings.registry_url is None:
        return

    # Normalize URL: strip whitespace
    settings.registry_url = settings.registry_url.strip()

    if not settings.registry_url.startswith(("http://", "https://")):
        raise SetupError(
            f"Invalid registry URL '{settings.registry_url}': must start with http:// or https://"
        )

    parsed = urlparse(settings.registry_url)
    if not parsed.hostname:
        raise SetupError(
            f"Invalid registry URL '{settings.registry_url}': URL must include a hostname"
        )


def load_settings(
    config_file: str | None = None,
    context_file: str | None = None,
    workdir: str | None = None,
    context_name: str | None = None,
    debug: bool = False,
    log_file: str | None = None,
    log_format: str | None = None,
) -> Settings:
    """Load settings with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        config_file: Override project configuration file path.
        context_file: Override context file path.
        workdir: Override working directory.
        context_name: Context to select instead of the current one.
        debug: Enable debug logging (CLI flag).
        log_file: Additional log file (CLI flag).
        log_format: "text" or "json" log records (CLI flag).

    Returns:
        Validated Settings instance.

    Raises:
        SetupError: If a value is invalid after checking all sources.
    """
    final_config_file = (
        config_file
        or os.getenv("APICURIO_SYNC_CONFIG_FILE")
        or DEFAULT_CONFIG_FILE
    )

    env_context_file = os.getenv("APICURIO_SYNC_CONTEXT_FILE")
    if context_file:
        final_context_file = Path(context_file).expanduser()
    elif env_context_file:
        final_context_file = Path(env_context_file).expanduser()
    else:
        final_context_file = default_context_file()

    final_workdir = workdir or os.getenv("APICURIO_SYNC_WORKDIR")
    workdir_path = (
        Path(final_workdir).expanduser() if final_workdir else Path.cwd()
    )

    final_context_name = context_name or os.getenv(
        "APICURIO_SYNC_CONTEXT_NAME"
    )
    registry_url = os.getenv("APICURIO_SYNC_REGISTRY_URL") or None

    # --- Boolean fields: CLI > env > default ---

    def get_bool_env(key: str) -> bool | None:
        """Return True/False from env var, or None if unset."""
        val = os.getenv(key)
        if val is None:
            return None
        return val.lower() in ("true", "1", "yes", "on")

    if debug:
        final_debug = True
    else:
        final_debug = bool(get_bool_env("APICURIO_SYNC_DEBUG"))

    final_log_format = (
        log_format or os.getenv("APICURIO_SYNC_LOG_FORMAT") or "text"
    ).lower()

    settings = Settings(
        config_file=Path(final_config_file),
        context_file=final_context_file,
        workdir=workdir_path,
        context_name=final_context_name or None,
        registry_url=registry_url,
        debug=final_debug,
        log_file=log_file,
        log_format=final_log_format,
    )

    validate_settings(settings)

    return settings
