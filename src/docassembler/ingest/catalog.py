"""Filesystem access for the assembly pipeline.

All pipeline stages go through :class:`FileCatalog`; nothing else touches the
OS filesystem. Paths handed out by the catalog are absolute and use ``/`` as
directory separator, so they can be compared ordinally and rewritten with
regular expressions.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import BinaryIO

from docassembler.ingest.globbing import is_selected

logger = logging.getLogger(__name__)


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Use forward slashes as directory separator."""
    return os.fspath(path).replace("\\", "/")


class FileCatalog:
    """Thin wrapper around the filesystem.

    Text is read and written without newline translation so offsets computed
    on the text match the file content exactly.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def get_full_path(self, path: str | os.PathLike[str]) -> str:
        return normalize_path(os.path.abspath(os.fspath(path)))

    def exists(self, path: str | os.PathLike[str]) -> bool:
        return os.path.exists(path)

    def list_files(
        self,
        root: str | os.PathLike[str],
        include_globs: list[str] | tuple[str, ...],
        exclude_globs: list[str] | tuple[str, ...] | None = None,
    ) -> list[str]:
        """Return the sorted absolute paths of files under root selected by the globs."""
        full_root = self.get_full_path(root)
        if not os.path.isdir(full_root):
            logger.warning("Source folder '%s' not found; no files selected.", full_root)
            return []

        excludes = exclude_globs or ()
        results: list[str] = []
        for dirpath, dirnames, filenames in os.walk(full_root):
            dirnames.sort()
            rel_dir = normalize_path(os.path.relpath(dirpath, full_root))
            for name in sorted(filenames):
                rel_path = name if rel_dir == "." else f"{rel_dir}/{name}"
                if is_selected(rel_path, include_globs, excludes):
                    results.append(f"{full_root.rstrip('/')}/{rel_path}")
        return results

    def get_directories(self, folder: str | os.PathLike[str]) -> list[str]:
        full = self.get_full_path(folder)
        return sorted(
            f"{full.rstrip('/')}/{entry.name}" for entry in os.scandir(full) if entry.is_dir()
        )

    def read_text(self, path: str | os.PathLike[str]) -> str:
        """Read a text file.

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        with open(path, encoding=self.encoding, newline="") as f:
            return f.read()

    def read_lines(self, path: str | os.PathLike[str]) -> list[str]:
        return self.read_text(path).splitlines()

    def open_read(self, path: str | os.PathLike[str]) -> BinaryIO:
        return open(path, "rb")

    def write_text(self, path: str | os.PathLike[str], content: str) -> None:
        """Write a text file, creating parent directories as needed."""
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding=self.encoding, newline="") as f:
            f.write(content)

    def copy(self, source: str | os.PathLike[str], destination: str | os.PathLike[str]) -> None:
        """Copy a file byte for byte.

        Raises:
            FileNotFoundError: If the source doesn't exist
            FileExistsError: If the destination already exists
        """
        if not os.path.isfile(source):
            raise FileNotFoundError(f"Source file '{source}' not found")
        if os.path.exists(destination):
            raise FileExistsError(f"Destination file '{destination}' already exists")
        Path(destination).parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, destination)

    def delete_folder(self, path: str | os.PathLike[str]) -> None:
        """Recursively delete a folder if it exists."""
        if os.path.isdir(path):
            shutil.rmtree(path)
            logger.debug("Removed folder: %s", path)


__all__ = ["FileCatalog", "normalize_path"]
