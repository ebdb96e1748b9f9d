"""Drive a KPScript installation."""

import logging
import subprocess
from pathlib import Path
from typing import Any, Optional, Union

from keepass_kpscript.command_line_utils import split_command_line, split_output_lines
from keepass_kpscript.config import DEFAULT_CONFIG, KpscriptConfig
from keepass_kpscript.constants import Constants
from keepass_kpscript.database import Database
from keepass_kpscript.exceptions import (
    ExecutionError,
    KpscriptError,
    KpscriptTimeoutError,
    OperationError,
    ValidationError,
)
from keepass_kpscript.file_manager import FileManager
from keepass_kpscript.secret_string import SecretString, unprotected
from keepass_kpscript.select import Select
from keepass_kpscript.validation_utils import validate_command

logger = logging.getLogger(__name__)

SEED_DATABASE_FILE = Path(__file__).parent / Constants.SEED_DATABASE_NAME()


def _flatten_arguments(args: Any) -> list[Any]:
    """Flatten nested lists of arguments, keeping SecretString instances."""
    flat = []
    for arg in args:
        if isinstance(arg, (list, tuple)):
            flat.extend(_flatten_arguments(arg))
        else:
            flat.append(arg)
    return flat


class Kpscript:
    """Drives an instance of KPScript."""

    def __init__(
        self,
        cmd: str,
        config: Optional[KpscriptConfig] = None
    ) -> None:
        """Initialize the driver.

        Args:
            cmd: The KPScript command line (e.g. "/path/to/KPScript.exe")
            config: Configuration, or None for the default one.
                Warning: with config.debug set, logs contain passwords and secrets
                from the databases. Only use it in a local environment.

        Raises:
            ValidationError: If cmd is not a usable command line
        """
        validate_command(cmd)
        self._cmd = cmd
        self._config = config if config is not None else DEFAULT_CONFIG
        self._file_manager = FileManager(self._config.tmp_dir)

    def open(
        self,
        database_file: str,
        *,
        password: Union[str, SecretString, None] = None,
        password_enc: Union[str, SecretString, None] = None,
        key_file: Optional[str] = None
    ) -> Database:
        """Open a database using this KPScript instance.

        At least one of password, password_enc or key_file should be given.

        Args:
            database_file: Path to the database file
            password: Password opening the database, or None if none
            password_enc: Encrypted password opening the database, or None if none
            key_file: Key file path opening the database, or None if none

        Returns:
            The database
        """
        return Database(
            self,
            database_file,
            password=password,
            password_enc=password_enc,
            key_file=key_file
        )

    def select(self) -> Select:
        """Get a new entries selector."""
        return Select()

    def encrypt_password(self, password: Union[str, SecretString]) -> str:
        """Encrypt a password so that databases can be opened without the real password.

        The encryption is done by KPScript itself, using the {PASSWORD_ENC}
        placeholder of a seed database that is copied for each call.

        Args:
            password: Password to be encrypted

        Returns:
            The encrypted password

        Raises:
            KpscriptError: If KPScript fails or returns no encrypted password
            FileOperationError: If the seed database cannot be copied or removed
        """
        tmp_dir = self._file_manager.create_temp_directory()
        try:
            tmp_database_file = self._file_manager.copy_file(
                SEED_DATABASE_FILE,
                tmp_dir / Constants.TMP_DATABASE_NAME()
            )
            tmp_database = self.open(
                str(tmp_database_file),
                password=Constants.SEED_DATABASE_PASSWORD()
            )
            selector = self.select().fields(Title=Constants.SEED_ENTRY_TITLE())
            with SecretString.protect(unprotected(password)) as secret_password:
                tmp_database.edit_entries(selector, fields={"Password": secret_password})
            password_enc = tmp_database.entries_string(selector, "URL", spr=True)
        finally:
            self._file_manager.remove_directory(tmp_dir)

        if not password_enc:
            raise KpscriptError("KPScript returned no encrypted password")
        return password_enc[0]

    def run(self, *args: Any) -> str:
        """Run KPScript with a given list of arguments.

        Args:
            *args: Arguments given to the KPScript command line, as strings,
                SecretString instances or lists of those

        Returns:
            The stdout of the command, without the last status line

        Raises:
            ExecutionError: If KPScript exits with a non-zero status
            OperationError: If KPScript does not report success on its last line
            KpscriptTimeoutError: If KPScript does not complete in time
        """
        arguments = _flatten_arguments(args)
        with SecretString.protect(
            " ".join([self._cmd] + [unprotected(arg) for arg in arguments]),
            silenced_str=" ".join([self._cmd] + [str(arg) for arg in arguments])
        ) as cmd:
            completed = self._spawn(cmd)
            exit_status = completed.returncode
            stdout_lines = split_output_lines(completed.stdout or "")
            if self._config.debug:
                # Secrets are logged unprotected here
                stdout = "\n".join(stdout_lines)
                logger.debug(
                    f"Execute {cmd.reveal()} =>\n"
                    f"Exit status: {exit_status}\n"
                    f"STDOUT:\n{stdout}"
                )

            if exit_status != 0:
                raise ExecutionError(str(cmd), exit_status)

            status_line = stdout_lines[-1] if stdout_lines else ""
            if status_line != Constants.SUCCESS_STATUS_LINE():
                raise OperationError(str(cmd), status_line)

            return "\n".join(stdout_lines[:-1])

    def _spawn(self, cmd: SecretString) -> subprocess.CompletedProcess:
        """Spawn KPScript and wait for its completion.

        Args:
            cmd: Full command line

        Returns:
            The completed process, with stdout and stderr captured

        Raises:
            KpscriptError: If the process cannot be started
            ValidationError: If the command line has unbalanced quotes
            KpscriptTimeoutError: If the process does not complete in time
        """
        try:
            command_line = split_command_line(cmd.reveal())
        except ValueError as e:
            # Unbalanced quotes, most likely from a quote inside a value
            raise ValidationError(f"Invalid command line {cmd}: {e}") from None

        try:
            return subprocess.run(
                command_line,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
                timeout=self._config.timeout,
                check=False
            )
        except subprocess.TimeoutExpired:
            # TimeoutExpired holds the unprotected command line: don't chain it
            raise KpscriptTimeoutError(str(cmd), self._config.timeout) from None
        except OSError as e:
            raise KpscriptError(f"Unable to execute {cmd}: {e.strerror}") from None

    @property
    def cmd(self) -> str:
        """Get the KPScript command line."""
        return self._cmd

    @property
    def debug(self) -> bool:
        """Whether debugging logs are activated."""
        return self._config.debug

    @property
    def config(self) -> KpscriptConfig:
        """Get the configuration."""
        return self._config

    @property
    def file_manager(self) -> FileManager:
        """Get the file manager handling temporary files."""
        return self._file_manager
