import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    size: int
    is_dir: bool

    @property
    def display_name(self) -> str:
        """Name as shown in a listing, directories suffixed with a slash."""
        return self.name + "/" if self.is_dir else self.name


def _to_entry(entry: os.DirEntry) -> DirectoryEntry:
    try:
        stat = entry.stat()
    except FileNotFoundError:
        # Dangling symlink
        stat = entry.stat(follow_symlinks=False)
    is_dir = entry.is_dir()
    return DirectoryEntry(name=entry.name, size=0 if is_dir else stat.st_size, is_dir=is_dir)


def list_directory(path: Union[str, Path]) -> Iterator[DirectoryEntry]:
    """List the immediate entries of a directory, sorted by name.

    The directory is read when this function is called, so a missing or
    unreadable path raises FileNotFoundError / PermissionError (or
    NotADirectoryError) right away instead of producing an empty listing.
    Entries are stat'ed lazily while the result is iterated. Nothing is
    cached: every call reflects what is on disk at that moment.
    """
    with os.scandir(path) as it:
        dir_entries = sorted(it, key=lambda e: e.name)
    return (_to_entry(e) for e in dir_entries)
