"""KPScript API handling a KeePass database."""

import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterator, Mapping, Optional, Sequence, Union

from keepass_kpscript.command_line_utils import quote_value, split_output_lines
from keepass_kpscript.constants import Constants
from keepass_kpscript.exceptions import UnknownFormatError
from keepass_kpscript.secret_string import SecretString
from keepass_kpscript.select import Select
from keepass_kpscript.validation_utils import validate_database_file, validate_export_format

if TYPE_CHECKING:
    from keepass_kpscript.kpscript import Kpscript

logger = logging.getLogger(__name__)


class Database:
    """A KeePass database accessed through KPScript.

    The database keeps no state besides its file path and the secrets opening
    it: every operation runs one KPScript process with the full command line.
    """

    def __init__(
        self,
        kpscript: "Kpscript",
        database_file: str,
        *,
        password: Union[str, SecretString, None] = None,
        password_enc: Union[str, SecretString, None] = None,
        key_file: Optional[str] = None
    ) -> None:
        """Initialize the database.

        Args:
            kpscript: The KPScript instance handling this database
            database_file: Database file path
            password: Password opening the database, or None if none
            password_enc: Encrypted password opening the database, or None if none
            key_file: Key file path opening the database, or None if none

        Raises:
            ValidationError: If database_file is not a usable path
        """
        validate_database_file(database_file)
        self._kpscript = kpscript
        self._database_file = database_file
        self._password = password
        self._password_enc = password_enc
        self._key_file = key_file
        if password is None and password_enc is None and key_file is None:
            logger.warning(f"Database {database_file} opened without any password or key file")

    @contextmanager
    def entries_string_secured(
        self,
        select: Select,
        field: str,
        **kwargs: Any
    ) -> Iterator[list[SecretString]]:
        """Securely select field values from entries.

        The values are erased from memory when the with block exits, even on
        exceptions. Avoid copying them into other strings.

        Args:
            select: The entries selector
            field: Field to be selected
            **kwargs: Same flags as entries_string

        Yields:
            The retrieved field values
        """
        values: list[SecretString] = []
        try:
            values = [SecretString(value) for value in self.entries_string(select, field, **kwargs)]
            yield values
        finally:
            for value in values:
                value.erase()

    def entries_string(
        self,
        select: Select,
        field: str,
        *,
        fail_if_not_exists: bool = False,
        fail_if_no_entry: bool = False,
        spr: bool = False
    ) -> list[str]:
        """Get field string values from entries.

        Args:
            select: The entries selector
            field: Field to be selected
            fail_if_not_exists: Do we fail if the field does not exist?
            fail_if_no_entry: Do we fail if no entry was found?
            spr: Do we Spr-compile the value of the retrieved field?

        Returns:
            List of retrieved field values
        """
        args = [
            "-c:GetEntryString",
            str(select),
            f"-Field:{quote_value(field)}"
        ]
        if fail_if_not_exists:
            args.append("-FailIfNotExists")
        if fail_if_no_entry:
            args.append("-FailIfNoEntry")
        if spr:
            args.append("-Spr")
        return split_output_lines(self._execute_kpscript(*args))

    def edit_entries(
        self,
        select: Select,
        *,
        fields: Optional[Mapping[str, Union[str, SecretString]]] = None,
        icon_idx: Optional[int] = None,
        custom_icon_idx: Optional[int] = None,
        expires: Optional[bool] = None,
        expiry_time: Optional[datetime] = None,
        create_backup: bool = False
    ) -> None:
        """Edit field values from entries.

        Args:
            select: The entries selector
            fields: Mapping of field name to the value to be set. SecretString
                values are silenced in logs and errors.
            icon_idx: Icon index to set, or None to leave it untouched
            custom_icon_idx: Custom icon index to set, or None to leave it untouched
            expires: Expires flag to set, or None to leave it untouched
            expiry_time: Expiry time to set, or None to leave it untouched
            create_backup: Should we create backup of entries before modifying them?
        """
        args: list[Any] = [
            "-c:EditEntry",
            str(select)
        ]
        secret_args: list[SecretString] = []
        try:
            for field_name, field_value in (fields or {}).items():
                if isinstance(field_value, SecretString):
                    secret_arg = SecretString(
                        f"-set-{field_name}:{quote_value(field_value.reveal())}",
                        silenced_str=f'-set-{field_name}:"{field_value}"'
                    )
                    secret_args.append(secret_arg)
                    args.append(secret_arg)
                else:
                    args.append(f"-set-{field_name}:{quote_value(field_value)}")
            if icon_idx is not None:
                args.append(f"-setx-Icon:{icon_idx}")
            if custom_icon_idx is not None:
                args.append(f"-setx-CustomIcon:{custom_icon_idx}")
            if expires is not None:
                args.append(f"-setx-Expires:{'true' if expires else 'false'}")
            if expiry_time is not None:
                expiry = expiry_time.strftime(Constants.EXPIRY_TIME_FORMAT())
                args.append(f"-setx-ExpiryTime:{quote_value(expiry)}")
            if create_backup:
                args.append("-CreateBackup")
            self._execute_kpscript(*args)
        finally:
            for secret_arg in secret_args:
                secret_arg.erase()

    def password_for(self, title: str) -> Optional[str]:
        """Retrieve a password for a given entry title.

        Args:
            title: Entry title

        Returns:
            Corresponding password, or None if no entry was found
        """
        passwords = self.entries_string(self._kpscript.select().fields(Title=title), "Password")
        return passwords[0] if passwords else None

    def detach_bins(self, *, copy_to_dir: Optional[str] = None) -> None:
        """Detach binaries.

        Args:
            copy_to_dir: Directory in which binaries are extracted, or None to
                extract them next to the database file. When given, the directory
                is created and binaries are detached from a copy of the database,
                leaving the original database untouched.

        Raises:
            FileOperationError: If the database copy cannot be made or removed
        """
        if copy_to_dir is None:
            self._execute_kpscript("-c:DetachBins")
            logger.info(f"Detached binaries from {self._database_file}")
            return

        # KPScript detachment is destructive: work on a copy of the database
        file_manager = self._kpscript.file_manager
        file_manager.ensure_directory(copy_to_dir)
        tmp_database = file_manager.copy_file(
            self._database_file,
            Path(copy_to_dir) / f"{Path(self._database_file).name}{Constants.TMP_DATABASE_SUFFIX()}"
        )
        try:
            self._kpscript.open(
                str(tmp_database),
                password=self._password,
                password_enc=self._password_enc,
                key_file=self._key_file
            ).detach_bins()
        finally:
            file_manager.remove_file(tmp_database)

    def export(
        self,
        format_name: str,
        file: str,
        *,
        group_path: Optional[Sequence[str]] = None,
        xsl_file: Optional[str] = None
    ) -> None:
        """Export the database.

        Args:
            format_name: Format to export to (see the KeePass Export dialog for possible values)
            file: File path to export to
            group_path: Group path to export, or None for all
            xsl_file: XSL file path used for XSL transformations, or None for none

        Raises:
            UnknownFormatError: If KPScript does not know the format
        """
        validate_export_format(format_name)
        args = [
            "-c:Export",
            f"-Format:{quote_value(format_name)}",
            f"-OutFile:{quote_value(file)}"
        ]
        if group_path is not None:
            if isinstance(group_path, str):
                group_path = [group_path]
            args.append(f"-GroupPath:{quote_value('/'.join(group_path))}")
        if xsl_file is not None:
            args.append(f"-XslFile:{quote_value(xsl_file)}")
        if Constants.UNKNOWN_FORMAT_MARKER() in self._execute_kpscript(*args):
            raise UnknownFormatError(format_name)
        logger.info(f"Exported {self._database_file} to {file} as {format_name}")

    def _execute_kpscript(self, *args: Any) -> str:
        """Execute KPScript on this database with a given list of arguments.

        Arguments opening the database are added here, with secrets silenced.

        Args:
            *args: Operation arguments

        Returns:
            KPScript stdout, without the status line
        """
        kdbx_args: list[Any] = [quote_value(self._database_file)]
        secret_args: list[SecretString] = []
        try:
            if self._password is not None:
                secret_args.append(self._secret_arg("-pw", self._password))
            if self._password_enc is not None:
                secret_args.append(self._secret_arg("-pw-enc", self._password_enc))
            kdbx_args.extend(secret_args)
            if self._key_file is not None:
                kdbx_args.append(f"-keyfile:{quote_value(self._key_file)}")
            return self._kpscript.run(kdbx_args + list(args))
        finally:
            # Make sure we erase secrets
            for secret_arg in secret_args:
                secret_arg.erase()

    @staticmethod
    def _secret_arg(flag: str, value: Union[str, SecretString]) -> SecretString:
        """Build a silenced "flag:value" argument."""
        real_value = value.reveal() if isinstance(value, SecretString) else value
        return SecretString(
            f"{flag}:{quote_value(real_value)}",
            silenced_str=f'{flag}:"{Constants.SILENCED_STR()}"'
        )

    @property
    def database_file(self) -> str:
        """Get the database file path."""
        return self._database_file
