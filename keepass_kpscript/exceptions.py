"""Custom exceptions for the KeePass KPScript wrapper.

Every message is built from the silenced command line: secrets given to
KPScript never end up in an exception.
"""

from typing import Optional


class KpscriptError(Exception):
    """Base exception for all KPScript errors."""


class ExecutionError(KpscriptError):
    """Raised when KPScript exits with a non-zero status."""

    def __init__(self, command: str, exit_status: int):
        self.command = command
        self.exit_status = exit_status
        super().__init__(f"Error while executing {command} (exit status: {exit_status})")


class OperationError(KpscriptError):
    """Raised when KPScript does not end its output with the success status line."""

    def __init__(self, command: str, status_line: str):
        self.command = command
        self.status_line = status_line
        super().__init__(f"Error returned by {command}: {status_line}")


class UnknownFormatError(KpscriptError):
    """Raised when an export is asked for a format KPScript does not know."""

    def __init__(self, format_name: str):
        self.format_name = format_name
        super().__init__(f"Unknown format: {format_name}")


class KpscriptTimeoutError(KpscriptError, TimeoutError):
    """Raised when KPScript does not complete within the configured timeout."""

    def __init__(self, command: str, timeout: Optional[float]):
        self.command = command
        self.timeout = timeout
        super().__init__(f"Timeout while executing {command} (timeout: {timeout}s)")


class FileOperationError(KpscriptError, OSError):
    """Raised when file operations fail."""


class ValidationError(KpscriptError):
    """Raised when data validation fails."""
