from __future__ import annotations

from .document import (
    AuditLogRecord,
    DatasetRecord,
    Document,
    Meta,
    ModelRecord,
    OrgRecord,
    Record,
    ReportRecord,
    ScenarioRecord,
    SessionRecord,
    UserRecord,
)
from .document_store import DocumentStore
from .errors import CorruptStateError, StorageIOError, StoreError
from .migrations import CURRENT_SEED_VERSION, DEMO_CONTENT_MIGRATION, MigrationRunner, looks_unmigrated
from .paths import StorageConfig
from .write_queue import SerialWriteQueue

__all__ = [
    "AuditLogRecord",
    "DatasetRecord",
    "Document",
    "Meta",
    "ModelRecord",
    "OrgRecord",
    "Record",
    "ReportRecord",
    "ScenarioRecord",
    "SessionRecord",
    "UserRecord",
    "DocumentStore",
    "StoreError",
    "StorageIOError",
    "CorruptStateError",
    "CURRENT_SEED_VERSION",
    "DEMO_CONTENT_MIGRATION",
    "MigrationRunner",
    "looks_unmigrated",
    "StorageConfig",
    "SerialWriteQueue",
]
