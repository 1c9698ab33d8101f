"""File handler module: path validation, byte-exact read/write, content types.

Provides the local file I/O used by the lockfile store, the context store
and the sync engine.  Artifact content is handled as raw bytes and written
verbatim; there is no encoding detection or newline normalisation.

All sync functions translate ``OSError`` into ``FilesystemError``.  Async
wrappers run them through ``run_sync()``.
"""

import os
import stat
import tempfile
from pathlib import Path

from apicurio_sync.core.async_utils import run_sync
from apicurio_sync.errors import FilesystemError

# =============================================================================
# Path Validation
# =============================================================================


def resolve_workdir_path(workdir: Path, relative: str) -> Path:
    """Resolve a configured artifact path against the working directory.

    Args:
        workdir: The working directory every operation happens in.
        relative: Path from the configuration (relative to *workdir*).

    Returns:
        Resolved absolute path.

    Raises:
        FilesystemError: If the path escapes *workdir*.
    """
    base = workdir.resolve()
    resolved = (base / relative).resolve()
    if not resolved.is_relative_to(base):
        raise FilesystemError(
            f"Path is outside the working directory: {relative} not under {base}"
        )
    return resolved


# =============================================================================
# File Read/Write
# =============================================================================


def read_bytes(path: Path) -> bytes:
    """Read a whole file into memory.

    Raises:
        FilesystemError: If the file is missing or unreadable.
    """
    try:
        return path.read_bytes()
    except FileNotFoundError as exc:
        raise FilesystemError(f"File not found: {path}") from exc
    except OSError as exc:
        raise FilesystemError(f"Cannot read {path}: {exc}") from exc


def _target_mode(path: Path) -> int:
    """Mode the replaced file should carry: the existing one, else 0666 & ~umask."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_bytes_atomic(path: Path, data: bytes) -> int:
    """Write *data* to *path*, creating parent directories as needed.

    Writes to a temporary file in the target directory and then atomically
    replaces the target, so readers never observe a partially written file
    and a failed write leaves the previous content in place.

    Args:
        path: Path to the output file.
        data: Content to write.

    Returns:
        Number of bytes written.

    Raises:
        FilesystemError: If the directory or file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
        )
    except OSError as exc:
        raise FilesystemError(f"Cannot write {path}: {exc}") from exc

    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    except BaseException as exc:
        # Clean up temp file on any failure.
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        if isinstance(exc, OSError):
            raise FilesystemError(f"Cannot write {path}: {exc}") from exc
        raise
    return len(data)


def write_text_atomic(path: Path, text: str) -> int:
    """UTF-8 convenience wrapper around ``write_bytes_atomic``."""
    return write_bytes_atomic(path, text.encode("utf-8"))


def write_new_file(path: Path, text: str) -> None:
    """Create *path* with *text*, refusing to overwrite an existing file.

    Raises:
        FilesystemError: If the file already exists or cannot be created.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "x", encoding="utf-8") as fh:
            fh.write(text)
    except FileExistsError as exc:
        raise FilesystemError(f"File already exists: {path}") from exc
    except OSError as exc:
        raise FilesystemError(f"Cannot create {path}: {exc}") from exc


# =============================================================================
# Content Type Detection
# =============================================================================


_EXTENSION_CONTENT_TYPE_MAP: dict[str, str] = {
    ".json": "application/json",
    ".avsc": "application/json",
    ".yaml": "application/x-yaml",
    ".yml": "application/x-yaml",
    ".proto": "application/x-protobuf",
    ".graphql": "application/graphql",
    ".graphqls": "application/graphql",
    ".xml": "application/xml",
    ".xsd": "application/xml",
    ".wsdl": "application/xml",
}

_TYPE_CONTENT_TYPE_MAP: dict[str, str] = {
    "PROTOBUF": "application/x-protobuf",
    "GRAPHQL": "application/graphql",
    "WSDL": "application/xml",
    "XSD": "application/xml",
}


def guess_content_type(path: Path, artifact_type: str | None = None) -> str:
    """Pick the ``Content-Type`` used when uploading *path*.

    Checks the file extension first, then the declared artifact type, and
    falls back to JSON (the registry default).
    """
    suffix = path.suffix.lower()
    if suffix in _EXTENSION_CONTENT_TYPE_MAP:
        return _EXTENSION_CONTENT_TYPE_MAP[suffix]
    if artifact_type is not None and artifact_type in _TYPE_CONTENT_TYPE_MAP:
        return _TYPE_CONTENT_TYPE_MAP[artifact_type]
    return "application/json"


# =============================================================================
# Async Wrappers
# =============================================================================


async def read_file_async(path: Path) -> bytes:
    """Async wrapper around ``read_bytes``."""
    return await run_sync(read_bytes, path)


async def write_file_async(path: Path, data: bytes) -> int:
    """Async wrapper around ``write_bytes_atomic``."""
    return await run_sync(write_bytes_atomic, path, data)
