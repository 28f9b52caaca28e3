from __future__ import annotations

from pathlib import Path


class StoreError(Exception):
    """Base class for document store failures."""


class StorageIOError(StoreError):
    """Directory creation, read, write or rename failed."""

    def __init__(self, message: str, *, path: Path | None = None):
        super().__init__(message)
        self.path = path


class CorruptStateError(StoreError):
    """The backing file exists but is not a valid document."""

    def __init__(self, message: str, *, path: Path | None = None):
        super().__init__(message)
        self.path = path
