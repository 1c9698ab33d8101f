"""
Input validation functions for apicurio-sync.

Provides validation for registry coordinates and local paths declared in
the project configuration, so mistakes are reported before any registry
call is made.
"""

from pathlib import PurePath

# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Group")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_coordinate_part(
    value: str, field_name: str = "Artifact id"
) -> tuple[bool, str]:
    """
    Validate a group or artifact id.

    Args:
        value: The group or artifact id to validate
        field_name: Human-readable name used in the error message

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot have leading or trailing whitespace
        - Cannot exceed 512 characters (registry limit)
    """
    if not value or not value.strip():
        return (
            False,
            format_validation_error(field_name, "cannot be empty"),
        )

    if value != value.strip():
        return (
            False,
            format_validation_error(
                field_name, "cannot have leading or trailing whitespace"
            ),
        )

    if len(value) > 512:
        return (
            False,
            format_validation_error(
                field_name, "exceeds maximum length of 512 characters"
            ),
        )

    return (True, "")


def validate_local_path(path: str) -> tuple[bool, str]:
    """
    Validate a local artifact path from the configuration.

    Args:
        path: Path relative to the working directory

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty
        - Must be relative (resolved against the working directory)
        - Cannot contain '..' segments (path traversal protection)
    """
    if not path or not path.strip():
        return (
            False,
            format_validation_error("Path", "cannot be empty"),
        )

    pure = PurePath(path)
    if pure.is_absolute():
        return (
            False,
            format_validation_error(
                "Path", f"must be relative to the working directory: {path}"
            ),
        )

    if ".." in pure.parts:
        return (
            False,
            format_validation_error("Path", f"cannot contain '..': {path}"),
        )

    return (True, "")
