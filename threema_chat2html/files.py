"""Recursive file enumeration and the case-insensitive file index.

The index maps lowercased basenames to the files found below the archive
directory, so that `<IMG-0001.JPG>` in a message resolves to `img-0001.jpg`
on disk.
"""

import logging
import mimetypes
import os
import re
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

_DIGITS_PATTERN = re.compile(r"(\d+)")


class FileSystemError(OSError):
    """The archive directory or the messages file cannot be used."""


def detect_media_type(path: Path | str) -> Optional[str]:
    """Return the MIME type for a file path (e.g. "image/png"), or None."""
    media_type, _ = mimetypes.guess_type(str(path), strict=False)
    return media_type


def natural_sort_key(name: str) -> tuple[tuple[int, int | str], ...]:
    """Numeric-aware, case- and accent-insensitive sort key.

    "img2" sorts before "IMG10".
    """
    folded = unicodedata.normalize("NFKD", name)
    folded = "".join(c for c in folded if not unicodedata.combining(c)).casefold()
    parts: list[tuple[int, int | str]] = []
    for part in _DIGITS_PATTERN.split(folded):
        if not part:
            continue
        if part.isdigit():
            parts.append((0, int(part)))
        else:
            parts.append((1, part))
    return tuple(parts)


@dataclass(frozen=True)
class FileIndexEntry:
    """A regular file found below the archive directory."""

    full_path: Path
    name: str  # stem, without extension
    ext: str
    base_lower: str
    mtime: float
    media_type: Optional[str]


def _scan_directory(directory: Path) -> list[FileIndexEntry]:
    entries: list[FileIndexEntry] = []
    try:
        with os.scandir(directory) as it:
            dir_entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise FileSystemError(f"Could not read source files in {directory}: {e}") from e

    for dir_entry in dir_entries:
        full_path = Path(dir_entry.path).resolve()
        try:
            if dir_entry.is_dir():
                entries.extend(_scan_directory(full_path))
            elif dir_entry.is_file():
                stat = dir_entry.stat()
                entries.append(
                    FileIndexEntry(
                        full_path=full_path,
                        name=full_path.stem,
                        ext=full_path.suffix,
                        base_lower=dir_entry.name.lower(),
                        mtime=stat.st_mtime,
                        media_type=detect_media_type(full_path),
                    )
                )
        except OSError as e:
            raise FileSystemError(f"Could not read {full_path}: {e}") from e
    return entries


def read_files(directory: Path) -> list[FileIndexEntry]:
    """Recursively list all regular files below a directory.

    Directories are recursed into but not returned. The result is sorted in
    natural order by file stem; the sort is stable, so files with equal stems
    keep their traversal order.

    Raises:
        FileSystemError: If the directory or any subdirectory cannot be read.
    """
    if not directory.is_dir():
        raise FileSystemError(f"Path '{directory}' not found.")
    files = _scan_directory(directory)
    files.sort(key=lambda entry: natural_sort_key(entry.name))
    return files


class FileIndex:
    """Case-insensitive lookup of files by basename.

    For duplicate basenames (same name in different subfolders) the first
    entry in sorted traversal order wins.
    """

    def __init__(self, entries: list[FileIndexEntry]):
        self._entries = list(entries)
        self._by_name: dict[str, FileIndexEntry] = {}
        for entry in self._entries:
            self._by_name.setdefault(entry.base_lower, entry)

    @classmethod
    def build(cls, root: Path) -> "FileIndex":
        """Index every file below ``root``."""
        index = cls(read_files(root))
        logger.info("Indexed %d files below %s", len(index), root)
        return index

    def lookup(self, filename: str) -> Optional[FileIndexEntry]:
        """Find a file by basename, ignoring case."""
        return self._by_name.get(filename.lower())

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[FileIndexEntry]:
        return iter(self._entries)
