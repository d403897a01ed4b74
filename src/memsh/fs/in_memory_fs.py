"""In-memory virtual filesystem.

Entries are kept in a table indexed by normalized absolute path, so a
directory listing is a scan for direct children. Symbolic links store their
target and are resolved on access with a bounded hop count.
"""

from __future__ import annotations

import errno
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Optional, Union

from ..types import FsStat

logger = logging.getLogger(__name__)

MAX_SYMLINK_HOPS = 40


@dataclass
class FileEntry:
    """A regular file."""

    content: str = ""
    mode: int = 0o644
    mtime: float = field(default_factory=time.time)


@dataclass
class DirectoryEntry:
    """A directory."""

    mode: int = 0o755
    mtime: float = field(default_factory=time.time)


@dataclass
class SymlinkEntry:
    """A symbolic link."""

    target: str
    mode: int = 0o777
    mtime: float = field(default_factory=time.time)


FsEntry = Union[FileEntry, DirectoryEntry, SymlinkEntry]


def _dirname(path: str) -> str:
    if path == "/":
        return "/"
    idx = path.rfind("/")
    return "/" if idx <= 0 else path[:idx]


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def _join(parent: str, name: str) -> str:
    return "/" + name if parent == "/" else f"{parent}/{name}"


def _error(cls: type[OSError], code: int, path: str) -> OSError:
    return cls(code, os.strerror(code), path)


class InMemoryFs:
    """Path-indexed in-memory filesystem."""

    def __init__(
        self,
        initial_files: Optional[dict[str, Union[str, bytes]]] = None,
        directories: Optional[list[str]] = None,
    ):
        """Create the filesystem.

        Args:
            initial_files: Mapping of absolute path to file content. Missing
                parent directories are created.
            directories: Extra directories to create.
        """
        self._data: dict[str, FsEntry] = {"/": DirectoryEntry()}
        for directory in directories or []:
            self._ensure_directory(self.resolve_path("/", directory))
        for path, content in (initial_files or {}).items():
            if isinstance(content, bytes):
                content = content.decode("utf-8", errors="replace")
            full = self.resolve_path("/", path)
            self._ensure_directory(_dirname(full))
            self._data[full] = FileEntry(content=content)

    # Path handling

    def resolve_path(self, base: str, path: str) -> str:
        """Resolve path against base, normalizing '.' and '..' lexically."""
        if not path:
            path = base
        elif not path.startswith("/"):
            path = f"{base.rstrip('/')}/{path}"
        parts: list[str] = []
        for part in path.split("/"):
            if not part or part == ".":
                continue
            if part == "..":
                if parts:
                    parts.pop()
                continue
            parts.append(part)
        return "/" + "/".join(parts)

    def get_all_paths(self) -> list[str]:
        """Return every path in the filesystem, sorted."""
        return sorted(self._data)

    def _follow(self, path: str, follow_last: bool = True) -> str:
        """Resolve symlinks in path, bounded by MAX_SYMLINK_HOPS."""
        parts = [p for p in path.split("/") if p]
        resolved = "/"
        hops = 0
        i = 0
        while i < len(parts):
            candidate = _join(resolved, parts[i])
            entry = self._data.get(candidate)
            is_last = i == len(parts) - 1
            if isinstance(entry, SymlinkEntry) and (follow_last or not is_last):
                hops += 1
                if hops > MAX_SYMLINK_HOPS:
                    logger.debug("too many symlink hops resolving %s", path)
                    raise _error(OSError, errno.ELOOP, path)
                target = self.resolve_path(resolved, entry.target)
                parts = [p for p in target.split("/") if p] + parts[i + 1:]
                resolved = "/"
                i = 0
                continue
            if entry is not None and not is_last and not isinstance(entry, DirectoryEntry):
                raise _error(NotADirectoryError, errno.ENOTDIR, path)
            resolved = candidate
            i += 1
        return resolved

    def _lookup(self, path: str, follow_last: bool = True) -> tuple[str, FsEntry]:
        real = self._follow(self.resolve_path("/", path), follow_last)
        entry = self._data.get(real)
        if entry is None:
            raise _error(FileNotFoundError, errno.ENOENT, path)
        return real, entry

    def _ensure_directory(self, path: str) -> None:
        if path == "/":
            return
        existing = self._data.get(path)
        if isinstance(existing, DirectoryEntry):
            return
        if existing is not None:
            raise _error(FileExistsError, errno.EEXIST, path)
        self._ensure_directory(_dirname(path))
        self._data[path] = DirectoryEntry()

    def _parent_for_create(self, path: str) -> str:
        """Return the real path to create, checking that its parent is a directory."""
        full = self.resolve_path("/", path)
        parent = self._follow(_dirname(full))
        entry = self._data.get(parent)
        if entry is None:
            raise _error(FileNotFoundError, errno.ENOENT, path)
        if not isinstance(entry, DirectoryEntry):
            raise _error(NotADirectoryError, errno.ENOTDIR, path)
        return _join(parent, _basename(full)) if full != "/" else "/"

    # Queries

    async def exists(self, path: str) -> bool:
        try:
            self._lookup(path)
        except OSError:
            return False
        return True

    async def is_directory(self, path: str) -> bool:
        try:
            _, entry = self._lookup(path)
        except OSError:
            return False
        return isinstance(entry, DirectoryEntry)

    def _make_stat(self, entry: FsEntry) -> FsStat:
        return FsStat(
            is_file=isinstance(entry, FileEntry),
            is_directory=isinstance(entry, DirectoryEntry),
            is_symbolic_link=isinstance(entry, SymlinkEntry),
            mode=entry.mode,
            size=len(entry.content.encode("utf-8")) if isinstance(entry, FileEntry) else 0,
            mtime=entry.mtime,
        )

    async def stat(self, path: str) -> FsStat:
        """Stat a path, following symlinks."""
        _, entry = self._lookup(path)
        return self._make_stat(entry)

    async def lstat(self, path: str) -> FsStat:
        """Stat a path without following a final symlink."""
        _, entry = self._lookup(path, follow_last=False)
        return self._make_stat(entry)

    async def readdir(self, path: str) -> list[str]:
        """List the names in a directory, sorted."""
        real, entry = self._lookup(path)
        if not isinstance(entry, DirectoryEntry):
            raise _error(NotADirectoryError, errno.ENOTDIR, path)
        prefix = "/" if real == "/" else real + "/"
        return sorted(
            p[len(prefix):]
            for p in self._data
            if p != real and p.startswith(prefix) and "/" not in p[len(prefix):]
        )

    async def read_file(self, path: str) -> str:
        _, entry = self._lookup(path)
        if isinstance(entry, DirectoryEntry):
            raise _error(IsADirectoryError, errno.EISDIR, path)
        if not isinstance(entry, FileEntry):
            raise _error(OSError, errno.EINVAL, path)
        return entry.content

    async def readlink(self, path: str) -> str:
        _, entry = self._lookup(path, follow_last=False)
        if not isinstance(entry, SymlinkEntry):
            raise _error(OSError, errno.EINVAL, path)
        return entry.target

    async def realpath(self, path: str) -> str:
        real, _ = self._lookup(path)
        return real

    # Mutations

    async def write_file(self, path: str, content: str) -> None:
        """Create or truncate a file. The parent directory must exist."""
        target = self._parent_for_create(path)
        target = self._follow(target)
        existing = self._data.get(target)
        if isinstance(existing, DirectoryEntry):
            raise _error(IsADirectoryError, errno.EISDIR, path)
        if isinstance(existing, FileEntry):
            existing.content = content
            existing.mtime = time.time()
        else:
            self._data[target] = FileEntry(content=content)

    async def append_file(self, path: str, content: str) -> None:
        try:
            current = await self.read_file(path)
        except FileNotFoundError:
            current = ""
        await self.write_file(path, current + content)

    async def mkdir(self, path: str, recursive: bool = False) -> None:
        """Create a directory.

        Raises FileExistsError if it exists (unless recursive) and
        FileNotFoundError if the parent is missing (unless recursive).
        """
        full = self.resolve_path("/", path)
        if recursive:
            real = self._follow(full)
            existing = self._data.get(real)
            if isinstance(existing, DirectoryEntry):
                return
            self._ensure_directory(real)
            return
        target = self._parent_for_create(full)
        if target in self._data:
            raise _error(FileExistsError, errno.EEXIST, path)
        self._data[target] = DirectoryEntry()

    async def rm(self, path: str, recursive: bool = False, force: bool = False) -> None:
        full = self.resolve_path("/", path)
        try:
            real = self._follow(_dirname(full))
        except OSError:
            if force:
                return
            raise
        real = _join(real, _basename(full)) if full != "/" else "/"
        entry = self._data.get(real)
        if entry is None:
            if force:
                return
            raise _error(FileNotFoundError, errno.ENOENT, path)
        if isinstance(entry, DirectoryEntry):
            children = [p for p in self._data if p.startswith(real.rstrip("/") + "/")]
            if children and not recursive:
                raise _error(OSError, errno.ENOTEMPTY, path)
            for child in children:
                del self._data[child]
        if real != "/":
            del self._data[real]

    async def symlink(self, target: str, link_path: str) -> None:
        real = self._parent_for_create(link_path)
        if real in self._data:
            raise _error(FileExistsError, errno.EEXIST, link_path)
        self._data[real] = SymlinkEntry(target=target)

    async def chmod(self, path: str, mode: int) -> None:
        _, entry = self._lookup(path)
        entry.mode = mode
