"""Tests for the file_manager module."""

import os
import shutil
import unittest
from pathlib import Path

from keepass_kpscript.exceptions import FileOperationError
from keepass_kpscript.file_manager import FileManager
from tests.test_utility import TestUtilities


class TestFileManager(unittest.TestCase):
    """Test cases for FileManager."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = TestUtilities.create_temp_dir()
        self.file_manager = FileManager(self.temp_dir)

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_create_temp_directory(self):
        """Test creating temporary directories in the configured directory."""
        first = self.file_manager.create_temp_directory()
        second = self.file_manager.create_temp_directory()

        self.assertTrue(first.is_dir())
        self.assertNotEqual(first, second)
        self.assertEqual(first.parent, Path(self.temp_dir))
        self.assertTrue(first.name.startswith("keepass_kpscript_"))

    def test_create_temp_directory_failure(self):
        """Test creating a temporary directory in a missing directory."""
        file_manager = FileManager(os.path.join(self.temp_dir, "missing"))

        with self.assertRaises(FileOperationError):
            file_manager.create_temp_directory()

    def test_ensure_directory(self):
        """Test creating nested directories."""
        directory = os.path.join(self.temp_dir, "a", "b", "c")

        self.assertEqual(self.file_manager.ensure_directory(directory), Path(directory))
        self.assertTrue(os.path.isdir(directory))
        # Existing directories are accepted
        self.file_manager.ensure_directory(directory)

    def test_ensure_directory_over_file(self):
        """Test creating a directory where a file exists."""
        file_path = TestUtilities.write_dummy_database(self.temp_dir)

        with self.assertRaises(FileOperationError):
            self.file_manager.ensure_directory(file_path)

    def test_copy_file(self):
        """Test copying a file."""
        source = TestUtilities.write_dummy_database(self.temp_dir)
        destination = os.path.join(self.temp_dir, "copy.kdbx")

        self.assertEqual(self.file_manager.copy_file(source, destination), Path(destination))
        self.assertEqual(Path(destination).read_text(encoding="utf-8"), "Dummy database")
        self.assertTrue(os.path.exists(source))

    def test_copy_missing_file(self):
        """Test copying a missing file."""
        with self.assertRaises(FileOperationError) as cm:
            self.file_manager.copy_file(
                os.path.join(self.temp_dir, "missing.kdbx"),
                os.path.join(self.temp_dir, "copy.kdbx")
            )

        self.assertIn("missing.kdbx", str(cm.exception))

    def test_remove_file(self):
        """Test removing a file."""
        file_path = TestUtilities.write_dummy_database(self.temp_dir)
        self.file_manager.remove_file(file_path)

        self.assertFalse(os.path.exists(file_path))

    def test_remove_missing_file(self):
        """Test removing a missing file."""
        with self.assertRaises(FileOperationError):
            self.file_manager.remove_file(os.path.join(self.temp_dir, "missing.kdbx"))

    def test_remove_directory(self):
        """Test removing a directory and its content."""
        directory = self.file_manager.create_temp_directory()
        TestUtilities.write_dummy_database(str(directory))
        self.file_manager.remove_directory(directory)

        self.assertFalse(directory.exists())

    def test_remove_missing_directory(self):
        """Test removing a missing directory."""
        with self.assertRaises(FileOperationError):
            self.file_manager.remove_directory(os.path.join(self.temp_dir, "missing"))

    def test_tmp_directory(self):
        """Test the configured temporary directory."""
        self.assertEqual(self.file_manager.tmp_directory, self.temp_dir)
        self.assertIsNone(FileManager().tmp_directory)


if __name__ == "__main__":
    unittest.main()
