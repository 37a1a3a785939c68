"""Process lifecycle management for the background dev server."""

from devctl.dev.filesystem import FileSystem, MemoryFileSystem, RealFileSystem
from devctl.dev.manager import DevManager, create_dev_manager
from devctl.dev.pid_store import PidStore

__all__ = [
    "DevManager",
    "FileSystem",
    "MemoryFileSystem",
    "PidStore",
    "RealFileSystem",
    "create_dev_manager",
]
