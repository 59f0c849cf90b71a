"""
File storage service

Stores uploaded files (documents, submissions, schedule imports) under the
configured upload directory with sanitized, collision-free names. Stored files
are served back to clients under ``/uploads``.

Example:
    >>> storage = FileStorage()
    >>> stored = storage.save(upload.file, upload.filename, category="documents")
    >>> stored.url
    '/uploads/documents/report.pdf'
"""

import os
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from ..config import settings

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"


class FileStorageError(Exception):
    """Base exception for file storage errors."""
    pass


class FileTooLargeError(FileStorageError):
    """Raised when an upload exceeds the configured size limit."""
    def __init__(self, filename: str, size: int, limit: int):
        self.filename = filename
        self.size = size
        self.limit = limit
        super().__init__(f"File {filename} is {size} bytes, maximum allowed size is {limit} bytes")


@dataclass
class StoredFile:
    original_name: str
    stored_name: str
    path: Path
    size: int
    mime_type: Optional[str]
    url: str


class FileStorage:
    """
    Saves uploads below a root directory.

    Args:
        upload_dir: Root directory for stored files (defaults to ``settings.UPLOAD_DIR``).
        max_file_size: Maximum allowed file size in bytes (defaults to ``settings.MAX_UPLOAD_SIZE``).
    """

    def __init__(self, upload_dir: Optional[Path] = None, max_file_size: Optional[int] = None):
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR).resolve()
        self.max_file_size = max_file_size or settings.MAX_UPLOAD_SIZE

    def save(self, file: BinaryIO, filename: str, category: str = "") -> StoredFile:
        """
        Save an uploaded file with a unique name.

        Args:
            file: File-like object containing the file data.
            filename: Original filename as sent by the client.
            category: Sub-directory of the upload root.

        Returns:
            StoredFile: Where the file went and how to reach it.

        Raises:
            FileTooLargeError: If the file is bigger than the size limit.
            FileStorageError: If the file cannot be written.
        """
        size = self._get_size(file)
        if size > self.max_file_size:
            raise FileTooLargeError(filename, size, self.max_file_size)

        target_dir = self.upload_dir / category if category else self.upload_dir
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            file_path = self._generate_unique_filename(target_dir, filename)

            # Save the file in chunks to handle large files
            file.seek(0)
            with open(file_path, 'wb') as f:
                while chunk := file.read(8192):  # 8KB chunks
                    f.write(chunk)
        except OSError as e:
            error_msg = f"Failed to save file {filename}: {str(e)}"
            logger.error(error_msg)
            raise FileStorageError(error_msg) from e

        relative = file_path.relative_to(self.upload_dir).as_posix()
        logger.info(f"Stored upload {filename} as {relative} ({size} bytes)")
        return StoredFile(
            original_name=filename,
            stored_name=file_path.name,
            path=file_path,
            size=size,
            mime_type=mimetypes.guess_type(filename)[0],
            url=f"{UPLOAD_URL_PREFIX}/{relative}",
        )

    def delete(self, url: Optional[str]) -> bool:
        """Remove a stored file by its public URL. Returns False when nothing was removed."""
        path = self.path_for(url)
        if path is None or not path.is_file():
            return False
        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete stored file {path}: {e}")
            return False
        logger.info(f"Deleted stored file {path}")
        return True

    def path_for(self, url: Optional[str]) -> Optional[Path]:
        """Map a public URL back to a path inside the upload root."""
        if not url or not url.startswith(f"{UPLOAD_URL_PREFIX}/"):
            return None
        path = (self.upload_dir / url[len(UPLOAD_URL_PREFIX) + 1:]).resolve()
        if self.upload_dir not in path.parents:
            return None
        return path

    @staticmethod
    def _get_size(file: BinaryIO) -> int:
        current_pos = file.tell()
        file.seek(0, 2)  # Seek to end
        size = file.tell()
        file.seek(current_pos)
        return size

    def _generate_unique_filename(self, directory: Path, filename: str) -> Path:
        """Generate a unique filename to avoid conflicts."""
        safe_name = self.get_safe_filename(filename)
        file_path = directory / safe_name
        if not file_path.exists():
            return file_path

        # Add a counter suffix to make it unique
        name, ext = os.path.splitext(safe_name)
        counter = 1
        while True:
            new_path = directory / f"{name}_{counter}{ext}"
            if not new_path.exists():
                return new_path
            counter += 1

    @staticmethod
    def get_safe_filename(filename: str) -> str:
        """
        Return a safe version of the filename.

        Example:
            >>> FileStorage.get_safe_filename("My Document (draft).pdf")
            'My_Document__draft_.pdf'
        """
        if not filename or not isinstance(filename, str):
            return 'unnamed_file'

        # Drop any directory part sent by the client
        filename = filename.replace('\\', '/').rsplit('/', 1)[-1]

        keep_chars = ('.', '_', '-')
        safe_chars = []
        for c in filename:
            if c.isalnum() or c in keep_chars:
                safe_chars.append(c)
            elif c.isspace() or c in '*:!@#$%^&()+=[]{};\',~`|"<>?':
                safe_chars.append('_')

        safe_name = ''.join(safe_chars).strip('_.- ')
        if not safe_name:
            return 'unnamed_file'
        return safe_name


def get_storage() -> FileStorage:
    """Dependency returning a storage bound to the current settings."""
    return FileStorage()
