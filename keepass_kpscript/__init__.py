"""KeePass KPScript - A Python API wrapping the KPScript command line.

This package builds KPScript command lines, runs them and parses their
status, without leaking database secrets into logs or error messages.
"""

from typing import Optional

from keepass_kpscript.config import KpscriptConfig
from keepass_kpscript.database import Database
from keepass_kpscript.exceptions import (
    ExecutionError,
    FileOperationError,
    KpscriptError,
    KpscriptTimeoutError,
    OperationError,
    UnknownFormatError,
    ValidationError,
)
from keepass_kpscript.kpscript import Kpscript
from keepass_kpscript.secret_string import SecretString
from keepass_kpscript.select import Select

try:
    from importlib.metadata import version
    __version__ = version("keepass-kpscript")
except Exception:
    # Not installed as a distribution
    __version__ = "unknown"


def use(
    cmd: str,
    *,
    debug: bool = False,
    timeout: Optional[float] = None,
    tmp_dir: Optional[str] = None
) -> Kpscript:
    """Get a KPScript instance from a given KPScript command line.

    Args:
        cmd: KPScript command line
        debug: Do we activate debugging logs?
            Warning: those logs can contain passwords and secrets from your
            database. Only use it in a local environment.
        timeout: Seconds after which a KPScript process is abandoned, or None to wait forever
        tmp_dir: Directory for temporary files, or None for the system one

    Returns:
        A KPScript instance
    """
    return Kpscript(cmd, KpscriptConfig(debug=debug, timeout=timeout, tmp_dir=tmp_dir))


__all__ = [
    "Database",
    "ExecutionError",
    "FileOperationError",
    "Kpscript",
    "KpscriptConfig",
    "KpscriptError",
    "KpscriptTimeoutError",
    "OperationError",
    "SecretString",
    "Select",
    "UnknownFormatError",
    "ValidationError",
    "use",
]
