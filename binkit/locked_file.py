"""Opening manifest files under an advisory lock, and locating the cargo home."""

from __future__ import annotations

import os
from pathlib import Path
from typing import BinaryIO

import portalocker


def _locked(file: BinaryIO, flags: portalocker.LockFlags) -> BinaryIO:
    try:
        portalocker.lock(file, flags)
    except BaseException:
        file.close()
        raise
    return file


def create_if_not_exist(path: str | os.PathLike[str]) -> BinaryIO:
    """Open ``path`` for reading and writing, creating it if needed, under an exclusive lock.

    Existing content is kept and the position is at the start. The lock is
    released when the file is closed.
    """
    fd = os.open(path, os.O_RDWR | os.O_CREAT | getattr(os, "O_BINARY", 0), 0o666)
    try:
        file = os.fdopen(fd, "r+b")
    except BaseException:
        os.close(fd)
        raise
    return _locked(file, portalocker.LOCK_EX)


def open_shared(path: str | os.PathLike[str]) -> BinaryIO:
    """Open an existing file for reading under a shared lock."""
    return _locked(open(path, "rb"), portalocker.LOCK_SH)


def cargo_home() -> Path:
    """The cargo home directory: ``$CARGO_HOME`` if set, else ``~/.cargo``."""
    value = os.environ.get("CARGO_HOME")
    if value:
        path = Path(value)
        return path if path.is_absolute() else Path.cwd() / path
    return Path.home() / ".cargo"