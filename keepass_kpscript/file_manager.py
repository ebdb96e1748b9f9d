"""File management utilities for temporary database copies."""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

from keepass_kpscript.exceptions import FileOperationError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class FileManager:
    """Manages the temporary files KPScript operations need.

    KPScript mutates the databases it works on, so destructive operations run
    against copies that this class creates and removes.
    """

    def __init__(
        self,
        tmp_dir: Optional[str] = None
    ):
        """Initialize the file manager.

        Args:
            tmp_dir: Directory in which temporary directories are created, or None
                for the system temporary directory
        """
        self._tmp_dir = tmp_dir

    def ensure_directory(self, directory: PathLike) -> Path:
        """Ensure a directory exists, creating its parents if needed.

        Args:
            directory: Directory path

        Returns:
            The directory path

        Raises:
            FileOperationError: If the directory cannot be created
        """
        directory_path = Path(directory)
        try:
            directory_path.mkdir(parents=True, exist_ok=True)
        except Exception as e:
            raise FileOperationError(f"Failed to create directory {directory_path}: {e}") from e
        return directory_path

    def create_temp_directory(self) -> Path:
        """Create a fresh temporary directory.

        Returns:
            Path of the created directory

        Raises:
            FileOperationError: If the directory cannot be created
        """
        try:
            return Path(tempfile.mkdtemp(prefix="keepass_kpscript_", dir=self._tmp_dir))
        except Exception as e:
            raise FileOperationError(f"Failed to create temporary directory: {e}") from e

    def copy_file(
        self,
        source: PathLike,
        destination: PathLike
    ) -> Path:
        """Copy a file.

        Args:
            source: Path of the file to copy
            destination: Path of the copy

        Returns:
            Path of the copy

        Raises:
            FileOperationError: If the copy fails
        """
        destination_path = Path(destination)
        try:
            shutil.copyfile(source, destination_path)
        except Exception as e:
            raise FileOperationError(f"Failed to copy file {source} to {destination_path}: {e}") from e
        logger.info(f"Copied {source} to {destination_path}")
        return destination_path

    def remove_file(self, file_path: PathLike) -> None:
        """Delete a file.

        Args:
            file_path: Path of the file to delete

        Raises:
            FileOperationError: If the delete operation fails
        """
        path = Path(file_path)
        try:
            path.unlink()
        except Exception as e:
            raise FileOperationError(f"Failed to delete file {path}: {e}") from e
        logger.info(f"Removed {path}")

    def remove_directory(self, directory: PathLike) -> None:
        """Delete a directory and its content.

        Args:
            directory: Path of the directory to delete

        Raises:
            FileOperationError: If the delete operation fails
        """
        path = Path(directory)
        try:
            shutil.rmtree(path)
        except Exception as e:
            raise FileOperationError(f"Failed to delete directory {path}: {e}") from e
        logger.info(f"Removed {path}")

    @property
    def tmp_directory(self) -> Optional[str]:
        """Get the directory in which temporary directories are created."""
        return self._tmp_dir
