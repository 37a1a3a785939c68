"""File-access surface used by the lifecycle manager.

Two implementations: `RealFileSystem` for the OS and `MemoryFileSystem` for
tests. Both raise the same exceptions the OS would (`FileNotFoundError`,
`IsADirectoryError`, ...), so callers handle them identically.
"""

from __future__ import annotations

from pathlib import Path, PurePath
from typing import Protocol


class FileSystem(Protocol):
    """Minimal text-file operations the lifecycle manager needs."""

    def read_text(self, path: Path) -> str: ...

    def write_text(self, path: Path, data: str) -> None: ...

    def append_text(self, path: Path, data: str) -> None: ...

    def make_dirs(self, path: Path) -> None: ...

    def exists(self, path: Path) -> bool: ...

    def delete(self, path: Path) -> None: ...


class RealFileSystem:
    """FileSystem backed by the local disk."""

    encoding: str = "utf-8"

    def read_text(self, path: Path) -> str:
        return Path(path).read_text(encoding=self.encoding)

    def write_text(self, path: Path, data: str) -> None:
        Path(path).write_text(data, encoding=self.encoding)

    def append_text(self, path: Path, data: str) -> None:
        with open(path, "a", encoding=self.encoding) as f:
            f.write(data)

    def make_dirs(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def delete(self, path: Path) -> None:
        Path(path).unlink()


class MemoryFileSystem:
    """In-memory FileSystem for tests.

    Directories must exist before files are written into them, matching the
    behaviour of the real disk.
    """

    def __init__(self, files: dict[str, str] | None = None):
        self.files: dict[PurePath, str] = {}
        self.dirs: set[PurePath] = {PurePath("/")}
        for path, content in (files or {}).items():
            self.seed(Path(path), content)

    @staticmethod
    def _key(path: Path) -> PurePath:
        return PurePath(path)

    def seed(self, path: Path, content: str) -> None:
        """Create a file (and its parent directories) directly."""
        self.make_dirs(Path(path).parent)
        self.files[self._key(path)] = content

    def _check_parent(self, path: Path) -> None:
        parent = self._key(path).parent
        if parent not in self.dirs:
            raise FileNotFoundError(f"No such file or directory: '{path}'")
        if self._key(path) in self.dirs:
            raise IsADirectoryError(f"Is a directory: '{path}'")

    def read_text(self, path: Path) -> str:
        key = self._key(path)
        if key in self.dirs:
            raise IsADirectoryError(f"Is a directory: '{path}'")
        if key not in self.files:
            raise FileNotFoundError(f"No such file or directory: '{path}'")
        return self.files[key]

    def write_text(self, path: Path, data: str) -> None:
        self._check_parent(path)
        self.files[self._key(path)] = data

    def append_text(self, path: Path, data: str) -> None:
        self._check_parent(path)
        key = self._key(path)
        self.files[key] = self.files.get(key, "") + data

    def make_dirs(self, path: Path) -> None:
        key = self._key(path)
        if key in self.files:
            raise FileExistsError(f"File exists: '{path}'")
        self.dirs.add(key)
        self.dirs.update(key.parents)

    def exists(self, path: Path) -> bool:
        key = self._key(path)
        return key in self.files or key in self.dirs

    def delete(self, path: Path) -> None:
        key = self._key(path)
        if key in self.dirs:
            raise IsADirectoryError(f"Is a directory: '{path}'")
        if key not in self.files:
            raise FileNotFoundError(f"No such file or directory: '{path}'")
        del self.files[key]
