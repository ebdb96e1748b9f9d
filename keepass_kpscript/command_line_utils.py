"""Command line utilities for the keepass_kpscript package.

Quoting and tokenizing have to agree: a value quoted with quote_value() comes
back unchanged from split_command_line() on POSIX, and from CreateProcess
argument parsing on Windows.
"""

import os
import shlex
from typing import Any, Union


def split_command_line(command_line: str) -> Union[str, list[str]]:
    """Convert a command line into the arguments given to subprocess.

    No shell is involved. On Windows the command line is given as is, as
    CreateProcess parses it itself.

    Args:
        command_line: Full command line

    Returns:
        The command line on Windows, its tokens elsewhere

    Raises:
        ValueError: If the command line has unbalanced quotes
    """
    if os.name == "nt":
        return command_line
    return shlex.split(command_line)


def quote_value(value: Any) -> str:
    """Double-quote a value for the KPScript command line.

    Double quotes and backslashes inside the value are escaped so that KPScript
    receives the value unchanged.

    Args:
        value: Value to quote, converted with str()

    Returns:
        The quoted value
    """
    text = str(value)
    if os.name != "nt":
        # shlex removes one level of backslashes inside double quotes
        return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'

    # Windows rules: backslashes are literal unless they precede a double quote
    quoted = []
    backslashes = 0
    for char in text:
        if char == "\\":
            backslashes += 1
            continue
        if char == '"':
            quoted.append("\\" * (backslashes * 2 + 1) + '"')
        else:
            quoted.append("\\" * backslashes + char)
        backslashes = 0
    # Trailing backslashes precede the closing quote
    quoted.append("\\" * (backslashes * 2))
    return '"' + "".join(quoted) + '"'


def split_output_lines(output: str) -> list[str]:
    """Split KPScript output into lines.

    Only line feeds separate lines, with an optional carriage return before
    them. Other Unicode line boundaries belong to field values. Trailing empty
    lines are dropped.

    Args:
        output: Raw output

    Returns:
        The output lines
    """
    lines = [line[:-1] if line.endswith("\r") else line for line in output.split("\n")]
    while lines and lines[-1] == "":
        lines.pop()
    return lines
