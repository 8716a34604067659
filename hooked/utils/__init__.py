"""Utility modules for hooked."""

from hooked.utils.fs import (
    FileSystemError,
    ensure_dir,
    file_exists,
    list_files,
    read_file,
    remove_file,
    safe_write,
)

__all__ = [
    "FileSystemError",
    "ensure_dir",
    "file_exists",
    "list_files",
    "read_file",
    "remove_file",
    "safe_write",
]
