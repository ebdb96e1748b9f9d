#!/usr/bin/env python3
"""Example usage of the KPScript wrapper on an existing KeePass database.

Set KPSCRIPT_CMD (e.g. "mono /opt/KeePass/KPScript.exe"), KEEPASS_DATABASE and
KEEPASS_PASSWORD before running it.
"""

import os
import tempfile

import keepass_kpscript
from keepass_kpscript import KpscriptError, SecretString


def main():
    """Demonstrate reading, editing and exporting entries."""

    kpscript = keepass_kpscript.use(os.environ.get("KPSCRIPT_CMD", "KPScript"), timeout=60)
    database = kpscript.open(
        os.environ["KEEPASS_DATABASE"],
        password=SecretString(os.environ["KEEPASS_PASSWORD"])
    )
    print(f"Opened database: {database.database_file}")
    print()

    try:
        # Simple password lookup
        password = database.password_for("My Entry")
        print(f"Password of 'My Entry' found: {password is not None}")

        # Read URLs of a group, erased from memory once the block exits
        with database.entries_string_secured(kpscript.select().group("Web"), "URL") as urls:
            print(f"Found {len(urls)} URL(s) in group Web: {urls}")

        # Selectors chain and render to KPScript syntax
        select = kpscript.select().group_path("Root", "Web").tags("prod").expired(False)
        print(f"Selector: {select}")
        print(f"Usernames: {database.entries_string(select, 'UserName', fail_if_no_entry=True)}")

        # Edit entries, keeping a backup of the previous values
        database.edit_entries(
            kpscript.select().fields(Title="My Entry"),
            fields={"Notes": "Reviewed", "Password": SecretString("MyNewPassword")},
            expires=False,
            create_backup=True
        )
        print("Edited 'My Entry'")

        # Export and detach binaries without touching the original database
        with tempfile.TemporaryDirectory() as temp_dir:
            database.export("KeePass XML (2.x)", os.path.join(temp_dir, "export.xml"), group_path=["Root", "Web"])
            database.detach_bins(copy_to_dir=os.path.join(temp_dir, "bins"))
            print(f"Exported and detached binaries into: {temp_dir}")

    except KpscriptError as e:
        # Messages never contain the database secrets
        print(f"KPScript failed: {e}")


if __name__ == "__main__":
    main()
