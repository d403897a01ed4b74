"""Filesystem implementations for memsh."""

from .in_memory_fs import (
    MAX_SYMLINK_HOPS,
    DirectoryEntry,
    FileEntry,
    FsEntry,
    InMemoryFs,
    SymlinkEntry,
)

__all__ = [
    "InMemoryFs",
    "FileEntry",
    "DirectoryEntry",
    "SymlinkEntry",
    "FsEntry",
    "MAX_SYMLINK_HOPS",
]
