#!/usr/bin/env python3
"""Command-line interface for the KeePass KPScript wrapper."""

import argparse
import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Optional

from keepass_kpscript import use
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


class KpscriptCLI:
    """Command-line interface for KPScript databases."""

    def __init__(self) -> None:
        """Initialize the CLI."""
        self._parser = self._create_parser()
        self._pretty = False

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser.

        Returns:
            Configured argument parser
        """
        parser = argparse.ArgumentParser(
            description="KeePass KPScript - Drive KeePass databases through KPScript",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Read the password of an entry
  keepass-kpscript -k "/path/to/KPScript.exe" -f db.kdbx -p "MyPassword" \\
    password-for -t "My Entry"

  # Read the URL field of all entries of a group
  keepass-kpscript -f db.kdbx -ep KEEPASS_PASSWORD get --group "Web" -F URL

  # Set fields of an entry found by UUID
  keepass-kpscript -f db.kdbx -ep KEEPASS_PASSWORD edit --uuid 46C9B1FFBD4ABC4BBB260C6190BAD20C \\
    -s UserName=me -s URL=https://example.com --create-backup

  # Detach binaries into a directory, leaving the database untouched
  keepass-kpscript -f db.kdbx -pe "MyEncryptedPassword" detach-bins -o /path/to/bins

  # Export a group
  keepass-kpscript -f db.kdbx -kf key.keyx export --format "KeePass XML (2.x)" \\
    --out-file export.xml --group-path "Root/Web"

  # Encrypt a password for later use with -pe/--password-enc
  keepass-kpscript -p "MyPassword" encrypt-password

The KPScript command line defaults to the KPSCRIPT_CMD environment variable.
            """,
        )

        # Global arguments
        parser.add_argument(
            "-k",
            "--kpscript",
            default=os.getenv("KPSCRIPT_CMD", "KPScript"),
            help="KPScript command line (default: $KPSCRIPT_CMD or KPScript)",
        )
        parser.add_argument(
            "-f",
            "--database",
            help="Database file path",
        )
        parser.add_argument(
            "-p",
            "--password",
            help="Password opening the database",
        )
        parser.add_argument(
            "-ep",
            "--env-password",
            help="Environment variable containing the password",
        )
        parser.add_argument(
            "-pe",
            "--password-enc",
            help="Encrypted password opening the database",
        )
        parser.add_argument(
            "-kf",
            "--key-file",
            help="Key file opening the database",
        )
        parser.add_argument(
            "--timeout",
            type=float,
            help="Seconds after which KPScript is abandoned (default: wait forever)",
        )
        parser.add_argument(
            "--debug",
            action="store_true",
            help="Log KPScript calls. Warning: logs contain secrets, only use locally",
        )
        parser.add_argument(
            "--pretty",
            action="store_true",
            help="Pretty-print JSON outputs",
        )

        # Entries selection, shared by commands working on entries
        select_parser = argparse.ArgumentParser(add_help=False)
        select_parser.add_argument(
            "--select",
            action="append",
            default=[],
            metavar="NAME=VALUE",
            help="Select entries having a field value (repeatable)",
        )
        select_parser.add_argument(
            "--uuid",
            help="Select the entry having this UUID",
        )
        select_parser.add_argument(
            "--tags",
            help="Select entries having those comma-separated tags",
        )
        select_parser.add_argument(
            "--expires",
            choices=["true", "false"],
            help="Select entries that expire or not",
        )
        select_parser.add_argument(
            "--expired",
            choices=["true", "false"],
            help="Select entries that have expired or not",
        )
        select_parser.add_argument(
            "--group",
            help="Select entries having this parent group",
        )
        select_parser.add_argument(
            "--group-path",
            help="Select entries having this slash-separated group path",
        )
        select_parser.add_argument(
            "--all",
            action="store_true",
            help="Select all entries",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command",
            help="Available commands",
        )

        # Get command
        get_parser = subparsers.add_parser(
            "get",
            parents=[select_parser],
            help="Get field values from entries",
        )
        get_parser.add_argument(
            "-F",
            "--field",
            required=True,
            help="Field to get",
        )
        get_parser.add_argument(
            "--fail-if-not-exists",
            action="store_true",
            help="Fail if the field does not exist",
        )
        get_parser.add_argument(
            "--fail-if-no-entry",
            action="store_true",
            help="Fail if no entry is selected",
        )
        get_parser.add_argument(
            "--spr",
            action="store_true",
            help="Spr-compile the field values",
        )

        # Password-for command
        password_for_parser = subparsers.add_parser(
            "password-for",
            help="Get the password of an entry from its title",
        )
        password_for_parser.add_argument(
            "-t",
            "--title",
            required=True,
            help="Entry title",
        )

        # Edit command
        edit_parser = subparsers.add_parser(
            "edit",
            parents=[select_parser],
            help="Edit entries",
        )
        edit_parser.add_argument(
            "-s",
            "--set",
            action="append",
            default=[],
            metavar="NAME=VALUE",
            help="Field value to set (repeatable)",
        )
        edit_parser.add_argument(
            "--icon",
            type=int,
            help="Icon index to set",
        )
        edit_parser.add_argument(
            "--custom-icon",
            type=int,
            help="Custom icon index to set",
        )
        expires_group = edit_parser.add_mutually_exclusive_group()
        expires_group.add_argument(
            "--set-expires",
            dest="set_expires",
            action="store_const",
            const=True,
            help="Make entries expire",
        )
        expires_group.add_argument(
            "--set-no-expires",
            dest="set_expires",
            action="store_const",
            const=False,
            help="Make entries never expire",
        )
        edit_parser.add_argument(
            "--expiry-time",
            help="Expiry time to set, in ISO format (e.g. 2021-06-30T15:12:11)",
        )
        edit_parser.add_argument(
            "--create-backup",
            action="store_true",
            help="Back up entries before modifying them",
        )

        # Detach-bins command
        detach_bins_parser = subparsers.add_parser(
            "detach-bins",
            help="Detach binaries from the database",
        )
        detach_bins_parser.add_argument(
            "-o",
            "--copy-to-dir",
            help="Directory receiving the binaries, leaving the database untouched (optional)",
        )

        # Export command
        export_parser = subparsers.add_parser(
            "export",
            help="Export the database",
        )
        export_parser.add_argument(
            "--format",
            required=True,
            help="Export format, as named in the KeePass Export dialog",
        )
        export_parser.add_argument(
            "--out-file",
            required=True,
            help="File to export to",
        )
        export_parser.add_argument(
            "--group-path",
            help="Slash-separated group path to export (optional)",
        )
        export_parser.add_argument(
            "--xsl-file",
            help="XSL file used for XSL transformations (optional)",
        )

        # Encrypt-password command
        subparsers.add_parser(
            "encrypt-password",
            help="Encrypt the password given with -p/-ep for use with -pe",
        )

        return parser

    def _validate_required_args(self, args: argparse.Namespace) -> None:
        """Validate that required arguments are provided."""
        self._validate_required_args_with_dependencies(
            command=args.command,
            database=args.database,
            password=args.password,
            env_password=args.env_password,
            password_enc=args.password_enc,
            key_file=args.key_file
        )

    def _validate_required_args_with_dependencies(
        self,
        *,
        command: str,
        database: str | None,
        password: str | None,
        env_password: str | None,
        password_enc: str | None,
        key_file: str | None
    ) -> None:
        """Validate that required arguments are provided with explicit dependencies.

        Args:
            command: Command being executed
            database: Database file argument
            password: Password argument
            env_password: Environment password argument
            password_enc: Encrypted password argument
            key_file: Key file argument

        Raises:
            ValidationError: If required arguments are missing or invalid
        """
        if password and env_password:
            raise ValidationError(
                "Cannot specify both password and environment password"
            )

        if command == "encrypt-password":
            if not password and not env_password:
                raise ValidationError(
                    "Either password (-p/--password) or environment password "
                    "(-ep/--env-password) is required"
                )
            return

        if not database:
            raise ValidationError("Database file (-f/--database) is required")

        if not password and not env_password and not password_enc and not key_file:
            raise ValidationError(
                "One of password (-p/--password), environment password (-ep/--env-password), "
                "encrypted password (-pe/--password-enc) or key file (-kf/--key-file) is required"
            )

    def _resolve_password(self, args: argparse.Namespace) -> SecretString | None:
        """Resolve the password from arguments."""
        return self._resolve_password_with_dependencies(
            password=args.password,
            env_password=args.env_password
        )

    def _resolve_password_with_dependencies(
        self,
        *,
        password: str | None,
        env_password: str | None
    ) -> SecretString | None:
        """Resolve the password with explicit dependencies.

        Args:
            password: Password
            env_password: Environment variable name containing the password

        Returns:
            The password, or None if none was given

        Raises:
            ValidationError: If the environment variable is missing or empty
        """
        if env_password:
            value = os.getenv(env_password)
            if value is None:
                raise ValidationError(f"Environment variable {env_password} not set")
            if value == "":
                raise ValidationError(f"Environment variable {env_password} is empty")
            return SecretString(value)

        if password:
            return SecretString(password)

        return None

    def _get_kpscript(self, args: argparse.Namespace) -> Kpscript:
        """Get the Kpscript instance based on arguments."""
        return use(
            args.kpscript,
            debug=args.debug,
            timeout=args.timeout
        )

    def _get_database(self, args: argparse.Namespace) -> Database:
        """Get the Database instance based on arguments."""
        password_enc = SecretString(args.password_enc) if args.password_enc else None
        return self._get_kpscript(args).open(
            args.database,
            password=self._resolve_password(args),
            password_enc=password_enc,
            key_file=args.key_file
        )

    def _build_select(self, args: argparse.Namespace) -> Select:
        """Build the entries selector from selection arguments."""
        select = Select()
        select.fields(self._parse_pairs(args.select))
        if args.uuid:
            select.uuid(args.uuid)
        if args.tags:
            select.tags([tag.strip() for tag in args.tags.split(",")])
        if args.expires:
            select.expires(args.expires == "true")
        if args.expired:
            select.expired(args.expired == "true")
        if args.group:
            select.group(args.group)
        if args.group_path:
            select.group_path(args.group_path.split("/"))
        if args.all:
            select.all()
        if not str(select):
            raise ValidationError("No entries selection given (use --select, --uuid, --all...)")
        return select

    def _parse_pairs(self, pairs: list[str]) -> dict[str, str]:
        """Parse NAME=VALUE arguments.

        Raises:
            ValidationError: If a pair has no name
        """
        parsed = {}
        for pair in pairs:
            name, sep, value = pair.partition("=")
            if not sep or not name.strip():
                raise ValidationError(f"Invalid NAME=VALUE pair: {pair}")
            parsed[name.strip()] = value
        return parsed

    def _print_json(self, payload: dict[str, Any]) -> None:
        """Print a JSON payload to stdout."""
        print(json.dumps(payload, indent=2 if self._pretty else None))

    def _print_error(self, *, message: str, code: str = "error", extra: dict[str, Any] | None = None) -> None:
        """Print a JSON error to stderr and exit non-zero."""
        error_obj = {
            "success": False,
            "error_code": code,
            "message": message,
        }
        if extra:
            error_obj["data"] = extra
        print(json.dumps(error_obj, indent=2), file=sys.stderr)
        sys.exit(1)

    def _handle_get(self, args: argparse.Namespace) -> None:
        """Handle get command."""
        self._handle_get_with_dependencies(
            database=self._get_database(args),
            select=self._build_select(args),
            field=args.field,
            fail_if_not_exists=args.fail_if_not_exists,
            fail_if_no_entry=args.fail_if_no_entry,
            spr=args.spr
        )

    def _handle_get_with_dependencies(
        self,
        *,
        database: Database,
        select: Select,
        field: str,
        fail_if_not_exists: bool = False,
        fail_if_no_entry: bool = False,
        spr: bool = False
    ) -> None:
        """Handle get command with explicit dependencies.

        Args:
            database: Database to read
            select: Entries selector
            field: Field to get
            fail_if_not_exists: Fail if the field does not exist
            fail_if_no_entry: Fail if no entry is selected
            spr: Spr-compile the field values
        """
        with database.entries_string_secured(
            select,
            field,
            fail_if_not_exists=fail_if_not_exists,
            fail_if_no_entry=fail_if_no_entry,
            spr=spr
        ) as values:
            self._print_json({
                "success": True,
                "command": "get",
                "field": field,
                "values": [value.reveal() for value in values],
            })

    def _handle_password_for(self, args: argparse.Namespace) -> None:
        """Handle password-for command."""
        self._handle_password_for_with_dependencies(
            database=self._get_database(args),
            title=args.title
        )

    def _handle_password_for_with_dependencies(
        self,
        *,
        database: Database,
        title: str
    ) -> None:
        """Handle password-for command with explicit dependencies.

        Args:
            database: Database to read
            title: Entry title

        Raises:
            ValidationError: If no entry has this title
        """
        password = database.password_for(title)
        if password is None:
            raise ValidationError(f"Entry '{title}' not found")

        self._print_json({
            "success": True,
            "command": "password-for",
            "title": title,
            "password": password,
        })

    def _handle_edit(self, args: argparse.Namespace) -> None:
        """Handle edit command."""
        self._handle_edit_with_dependencies(
            database=self._get_database(args),
            select=self._build_select(args),
            fields={
                name: SecretString(value)
                for name, value in self._parse_pairs(args.set).items()
            },
            icon_idx=args.icon,
            custom_icon_idx=args.custom_icon,
            expires=args.set_expires,
            expiry_time=args.expiry_time,
            create_backup=args.create_backup
        )

    def _handle_edit_with_dependencies(
        self,
        *,
        database: Database,
        select: Select,
        fields: dict[str, SecretString],
        icon_idx: int | None = None,
        custom_icon_idx: int | None = None,
        expires: bool | None = None,
        expiry_time: str | None = None,
        create_backup: bool = False
    ) -> None:
        """Handle edit command with explicit dependencies.

        Args:
            database: Database to edit
            select: Entries selector
            fields: Field values to set
            icon_idx: Icon index to set (optional)
            custom_icon_idx: Custom icon index to set (optional)
            expires: Expires flag to set (optional)
            expiry_time: Expiry time to set, in ISO format (optional)
            create_backup: Back up entries before modifying them

        Raises:
            ValidationError: If expiry_time is not an ISO date time
        """
        try:
            parsed_expiry_time = None
            if expiry_time:
                try:
                    parsed_expiry_time = datetime.fromisoformat(expiry_time)
                except ValueError as e:
                    raise ValidationError(f"Invalid expiry time: {e}") from e

            database.edit_entries(
                select,
                fields=fields,
                icon_idx=icon_idx,
                custom_icon_idx=custom_icon_idx,
                expires=expires,
                expiry_time=parsed_expiry_time,
                create_backup=create_backup
            )
        finally:
            for value in fields.values():
                value.erase()

        self._print_json({
            "success": True,
            "command": "edit",
            "fields": sorted(fields),
        })

    def _handle_detach_bins(self, args: argparse.Namespace) -> None:
        """Handle detach-bins command."""
        self._handle_detach_bins_with_dependencies(
            database=self._get_database(args),
            copy_to_dir=args.copy_to_dir
        )

    def _handle_detach_bins_with_dependencies(
        self,
        *,
        database: Database,
        copy_to_dir: str | None = None
    ) -> None:
        """Handle detach-bins command with explicit dependencies.

        Args:
            database: Database to detach binaries from
            copy_to_dir: Directory receiving the binaries (optional)
        """
        database.detach_bins(copy_to_dir=copy_to_dir)

        self._print_json({
            "success": True,
            "command": "detach-bins",
            "copy_to_dir": copy_to_dir,
        })

    def _handle_export(self, args: argparse.Namespace) -> None:
        """Handle export command."""
        self._handle_export_with_dependencies(
            database=self._get_database(args),
            format_name=args.format,
            out_file=args.out_file,
            group_path=args.group_path,
            xsl_file=args.xsl_file
        )

    def _handle_export_with_dependencies(
        self,
        *,
        database: Database,
        format_name: str,
        out_file: str,
        group_path: str | None = None,
        xsl_file: str | None = None
    ) -> None:
        """Handle export command with explicit dependencies.

        Args:
            database: Database to export
            format_name: Export format
            out_file: File to export to
            group_path: Slash-separated group path to export (optional)
            xsl_file: XSL file (optional)
        """
        database.export(
            format_name,
            out_file,
            group_path=group_path.split("/") if group_path else None,
            xsl_file=xsl_file
        )

        self._print_json({
            "success": True,
            "command": "export",
            "format": format_name,
            "out_file": out_file,
        })

    def _handle_encrypt_password(self, args: argparse.Namespace) -> None:
        """Handle encrypt-password command."""
        self._handle_encrypt_password_with_dependencies(
            kpscript=self._get_kpscript(args),
            password=self._resolve_password(args)
        )

    def _handle_encrypt_password_with_dependencies(
        self,
        *,
        kpscript: Kpscript,
        password: SecretString
    ) -> None:
        """Handle encrypt-password command with explicit dependencies.

        Args:
            kpscript: KPScript instance doing the encryption
            password: Password to encrypt
        """
        try:
            password_enc = kpscript.encrypt_password(password)
        finally:
            password.erase()

        self._print_json({
            "success": True,
            "command": "encrypt-password",
            "password_enc": password_enc,
        })

    def run(self, args: Optional[list[str]] = None) -> None:
        """Run the CLI with given arguments."""
        try:
            parsed_args = self._parser.parse_args(args)
            self._pretty = bool(getattr(parsed_args, "pretty", False))

            if not parsed_args.command:
                self._print_error(message="No command specified", code="missing_command")

            if parsed_args.debug:
                logging.basicConfig(level=logging.DEBUG)

            # Validate required arguments
            self._validate_required_args(parsed_args)

            # Handle commands
            if parsed_args.command == "get":
                self._handle_get(parsed_args)
            elif parsed_args.command == "password-for":
                self._handle_password_for(parsed_args)
            elif parsed_args.command == "edit":
                self._handle_edit(parsed_args)
            elif parsed_args.command == "detach-bins":
                self._handle_detach_bins(parsed_args)
            elif parsed_args.command == "export":
                self._handle_export(parsed_args)
            elif parsed_args.command == "encrypt-password":
                self._handle_encrypt_password(parsed_args)
            else:
                self._print_error(message=f"Unknown command: {parsed_args.command}", code="unknown_command")

        except ValidationError as e:
            self._print_error(message=str(e), code="validation_error")
        except ExecutionError as e:
            self._print_error(message=str(e), code="execution_error", extra={"exit_status": e.exit_status})
        except OperationError as e:
            self._print_error(message=str(e), code="operation_error", extra={"status_line": e.status_line})
        except UnknownFormatError as e:
            self._print_error(message=str(e), code="unknown_format", extra={"format": e.format_name})
        except KpscriptTimeoutError as e:
            self._print_error(message=str(e), code="timeout")
        except FileOperationError as e:
            self._print_error(message=str(e), code="file_error")
        except KpscriptError as e:
            self._print_error(message=str(e), code="kpscript_error")
        except KeyboardInterrupt:
            self._print_error(message="Operation cancelled by user", code="cancelled")
        except Exception as e:
            self._print_error(message=str(e), code="unexpected_error")


def main() -> None:
    """Main entry point for the CLI."""
    cli = KpscriptCLI()
    cli.run()


if __name__ == "__main__":
    main()
