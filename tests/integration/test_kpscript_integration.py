"""Integration tests spawning real processes through a fake KPScript."""

import os
import shutil
import unittest
from pathlib import Path
from unittest.mock import patch

from keepass_kpscript import use
from keepass_kpscript.exceptions import (
    ExecutionError,
    KpscriptError,
    KpscriptTimeoutError,
    OperationError,
    UnknownFormatError,
)
from keepass_kpscript.kpscript import SEED_DATABASE_FILE
from tests.test_utility import FakeKpscript, KpscriptTestHelper, TestUtilities


class TestKpscriptIntegration(unittest.TestCase):
    """Integration tests running KPScript command lines in real processes."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = TestUtilities.create_temp_dir()
        self.fake = FakeKpscript(self.temp_dir)
        self.database_file = TestUtilities.write_dummy_database(self.temp_dir)
        self.kpscript = use(self.fake.cmd, timeout=30)

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def fake_environment(self, responses=None):
        """Configure the fake KPScript for the duration of a with block."""
        return patch.dict(os.environ, self.fake.environment(responses))

    def test_password_for(self):
        """Test reading a password from a real process."""
        with self.fake_environment({
            "-c:GetEntryString": {"stdout": KpscriptTestHelper.success_stdout("My Entry Password")}
        }):
            password = self.kpscript.open(self.database_file, password="My Password").password_for("My Entry")

        self.assertEqual(password, "My Entry Password")
        self.assertEqual(self.fake.calls(), [{
            "args": [
                self.database_file,
                "-pw:My Password",
                "-c:GetEntryString",
                "-ref-Title:My Entry",
                "-Field:Password",
            ],
            "database_exists": True,
        }])

    def test_special_characters_are_not_interpreted(self):
        """Test that shell special characters reach KPScript untouched."""
        with self.fake_environment():
            self.kpscript.open(self.database_file, password="$HOME `id` & | ; *").edit_entries(
                self.kpscript.select().all(),
                fields={"Notes": "$(echo hi) > out.txt"}
            )

        args = self.fake.calls()[0]["args"]
        self.assertIn("-pw:$HOME `id` & | ; *", args)
        self.assertIn("-set-Notes:$(echo hi) > out.txt", args)
        self.assertFalse(os.path.exists(os.path.join(self.temp_dir, "out.txt")))

    def test_windows_line_endings(self):
        """Test parsing outputs using CRLF line endings."""
        with self.fake_environment({
            "-c:GetEntryString": {"stdout": "Value1\r\nValue2\r\nOK: Operation completed successfully.\r\n"}
        }):
            values = self.kpscript.open(self.database_file, password="My Password").entries_string(
                self.kpscript.select().all(),
                "Field"
            )

        self.assertEqual(values, ["Value1", "Value2"])

    def test_quotes_and_backslashes_reach_kpscript(self):
        """Test that double quotes and backslashes in values reach KPScript unchanged."""
        with self.fake_environment():
            self.kpscript.open(self.database_file, password='My "Pass\\word\\').edit_entries(
                self.kpscript.select().fields(Title='My "Entry"'),
                fields={"Notes": 'He said "hi" there', "URL": "C:\\dir\\\\"}
            )

        args = self.fake.calls()[0]["args"]
        self.assertIn('-pw:My "Pass\\word\\', args)
        self.assertIn('-ref-Title:My "Entry"', args)
        self.assertIn('-set-Notes:He said "hi" there', args)
        self.assertIn("-set-URL:C:\\dir\\\\", args)

    def test_form_feeds_stay_in_values(self):
        """Test that only line feeds separate values read from a real process."""
        with self.fake_environment({
            "-c:GetEntryString": {"stdout": "V1\fpage\x1crecord\nV2\nOK: Operation completed successfully.\n\n"}
        }):
            values = self.kpscript.open(self.database_file, password="My Password").entries_string(
                self.kpscript.select().all(),
                "Notes"
            )

        self.assertEqual(values, ["V1\fpage\x1crecord", "V2"])

    def test_non_zero_exit_status(self):
        """Test a real process exiting with a non-zero status."""
        with self.fake_environment({"-c:DetachBins": {"stdout": "", "exit_status": 2}}):
            with self.assertRaises(ExecutionError) as cm:
                self.kpscript.open(self.database_file, password="My Password").detach_bins()

        self.assertEqual(cm.exception.exit_status, 2)
        self.assertNotIn("My Password", str(cm.exception))

    def test_error_status_line(self):
        """Test a real process reporting an error on its last line."""
        with self.fake_environment({"-c:DetachBins": {"stdout": "E: The database is locked.\n"}}):
            with self.assertRaises(OperationError) as cm:
                self.kpscript.open(self.database_file, password_enc="Encrypted").detach_bins()

        self.assertEqual(cm.exception.status_line, "E: The database is locked.")
        self.assertIn('-pw-enc:"XXXXX"', str(cm.exception))
        self.assertNotIn("Encrypted", str(cm.exception))

    def test_unknown_export_format(self):
        """Test exporting in a format KPScript does not know."""
        with self.fake_environment({
            "-c:Export": {"stdout": KpscriptTestHelper.success_stdout("E: Unknown format!")}
        }):
            with self.assertRaises(UnknownFormatError):
                self.kpscript.open(self.database_file, password="My Password").export(
                    "Unknown",
                    os.path.join(self.temp_dir, "export.xml")
                )

    def test_detach_bins_in_another_directory(self):
        """Test that binaries are detached from a database copy removed afterwards."""
        bins_dir = os.path.join(self.temp_dir, "bins")
        with self.fake_environment():
            self.kpscript.open(self.database_file, password="My Password").detach_bins(copy_to_dir=bins_dir)

        calls = self.fake.calls()
        self.assertEqual(len(calls), 1)
        self.assertEqual(calls[0]["args"][0], os.path.join(bins_dir, "my_db.kdbx.tmp.kdbx"))
        self.assertTrue(calls[0]["database_exists"])
        self.assertEqual(os.listdir(bins_dir), [])
        self.assertEqual(Path(self.database_file).read_text(encoding="utf-8"), "Dummy database")

    def test_encrypt_password(self):
        """Test encrypting a password on a copy of the seed database."""
        with self.fake_environment({
            "-c:GetEntryString": {"stdout": KpscriptTestHelper.success_stdout("MyEncryptedPassword")}
        }):
            password_enc = use(self.fake.cmd, tmp_dir=self.temp_dir).encrypt_password("My Password")

        self.assertEqual(password_enc, "MyEncryptedPassword")
        calls = self.fake.calls()
        self.assertEqual([call["args"][2] for call in calls], ["-c:EditEntry", "-c:GetEntryString"])
        self.assertTrue(all(call["database_exists"] for call in calls))
        self.assertIn("-set-Password:My Password", calls[0]["args"])
        self.assertEqual(calls[1]["args"][-2:], ["-Field:URL", "-Spr"])
        # The database copy and its directory are removed
        tmp_database = calls[0]["args"][0]
        self.assertNotEqual(tmp_database, str(SEED_DATABASE_FILE))
        self.assertFalse(os.path.exists(os.path.dirname(tmp_database)))

    def test_timeout(self):
        """Test that a hanging KPScript is abandoned."""
        kpscript = use(self.fake.cmd, timeout=0.5)
        with self.fake_environment({"-c:DetachBins": {"sleep": 10}}):
            with self.assertRaises(KpscriptTimeoutError) as cm:
                kpscript.open(self.database_file, password="My Password").detach_bins()

        self.assertNotIn("My Password", str(cm.exception))

    def test_missing_executable(self):
        """Test running a KPScript that does not exist."""
        kpscript = use(os.path.join(self.temp_dir, "missing", "KPScript"))

        with self.assertRaises(KpscriptError) as cm:
            kpscript.open(self.database_file, password="My Password").detach_bins()

        self.assertNotIn("My Password", str(cm.exception))


if __name__ == "__main__":
    unittest.main()
