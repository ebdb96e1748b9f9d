"""Validation utilities for the keepass_kpscript package."""

from keepass_kpscript.exceptions import ValidationError


def _validate_text(value: str, label: str) -> None:
    """Validate that a text argument is usable on a command line.

    Args:
        value: Value to validate
        label: Human-readable name of the value, used in error messages

    Raises:
        ValidationError: If value is None, empty, whitespace-only or contains null bytes
    """
    if value is None:
        raise ValidationError(f"{label} cannot be None")

    if value == "":
        raise ValidationError(f"{label} cannot be empty")

    if value.strip() == "":
        raise ValidationError(f"{label} cannot contain only whitespace")

    if '\x00' in value:
        raise ValidationError(f"{label} cannot contain null bytes")


def validate_command(cmd: str) -> None:
    """Validate the KPScript command line prefix.

    Args:
        cmd: Command line invoking KPScript (e.g. "mono /opt/KPScript.exe")

    Raises:
        ValidationError: If the command is not usable
    """
    _validate_text(cmd, "KPScript command")


def validate_database_file(database_file: str) -> None:
    """Validate a database file path.

    Double quotes are refused, as no Windows path can contain them.

    Args:
        database_file: Path to the database file

    Raises:
        ValidationError: If the path is not usable
    """
    _validate_text(database_file, "Database file")

    if '"' in database_file:
        raise ValidationError("Database file cannot contain double quotes")


def validate_export_format(format_name: str) -> None:
    """Validate an export format name.

    Args:
        format_name: Export format, as named in the KeePass Export dialog

    Raises:
        ValidationError: If the format is not usable
    """
    _validate_text(format_name, "Export format")
