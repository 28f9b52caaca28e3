from __future__ import annotations

import asyncio
import inspect
import json
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar, Union

from pydantic import ValidationError

from json_store import atomic_write_text, dumps_json, read_json

from .document import Document
from .errors import CorruptStateError, StorageIOError
from .migrations import DEMO_CONTENT_MIGRATION, MigrationRunner
from .paths import StorageConfig
from .seed import build_seed_document
from .seed_assets import sync_seed_reports
from .write_queue import SerialWriteQueue

logger = logging.getLogger(__name__)

T = TypeVar("T")
Mutation = Callable[[Document], Union[T, Awaitable[T]]]


class DocumentStore:
    """
    Owns the single in-memory Document and its backing JSON file.

    - `mutate(fn)` is the only sanctioned way to change state; every call persists once.
    - Writes go through a FIFO queue, so the file reflects mutations in call order.
    - A failed write raises StorageIOError to its caller; memory is not rolled back.
    """

    def __init__(self, path: Path, document: Document):
        self._path = path
        self._document = document
        self._queue = SerialWriteQueue(name=f"persist:{path.name}")
        self._writes_completed = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def writes_completed(self) -> int:
        return self._writes_completed

    @classmethod
    async def load(
        cls,
        config: StorageConfig,
        *,
        migration: MigrationRunner = DEMO_CONTENT_MIGRATION,
        seed_factory: Callable[[], Document] = build_seed_document,
    ) -> "DocumentStore":
        await asyncio.to_thread(config.ensure_layout)

        document = await asyncio.to_thread(_read_document, config.db_file)
        if document is None:
            logger.info("DOCUMENT STORE: no %s, seeding a fresh document", config.db_file)
            store = cls(config.db_file, await asyncio.to_thread(seed_factory))
            await store.persist()
            await store.sync_seed_reports(config)
            return store

        store = cls(config.db_file, document)
        upgraded = migration.run(store._document)
        if upgraded:
            await store.persist()
        await store.sync_seed_reports(config, force=upgraded)
        logger.info(
            "DOCUMENT STORE: loaded %s (version %s)", config.db_file, store._document.meta.version
        )
        return store

    def read(self) -> Document:
        return self._document

    async def mutate(self, fn: Mutation[T]) -> T:
        """
        Apply `fn` to the document, then persist.

        `fn` may be a coroutine function for preparation work, but the document
        changes themselves should happen without awaiting in between. If `fn`
        raises, nothing is persisted.
        """
        result = fn(self._document)
        if inspect.isawaitable(result):
            result = await result
        await self.persist()
        return result

    async def persist(self) -> None:
        await self._queue.run(self._write_snapshot)

    async def drain(self) -> None:
        await self._queue.drain()

    async def sync_seed_reports(self, config: StorageConfig, *, force: bool = False) -> list[str]:
        reports = list(self._document.reports)
        return await asyncio.to_thread(
            sync_seed_reports, reports, config.seed_reports_dir, config.reports_dir, force=force
        )

    async def _write_snapshot(self) -> None:
        # Serialize on the loop thread so the snapshot only contains complete mutations.
        text = dumps_json(self._document.to_disk_doc())
        try:
            await asyncio.to_thread(atomic_write_text, self._path, text)
        except OSError as e:
            logger.warning("DOCUMENT STORE: failed to write %s: %r", self._path, e)
            raise StorageIOError(f"cannot write {self._path}: {e}", path=self._path) from e
        self._writes_completed += 1


def _read_document(path: Path) -> Document | None:
    try:
        raw: Any = read_json(path)
    except json.JSONDecodeError as e:
        raise CorruptStateError(f"{path} is not valid JSON: {e}", path=path) from e
    except UnicodeDecodeError as e:
        raise CorruptStateError(f"{path} is not UTF-8 text: {e}", path=path) from e
    except OSError as e:
        raise StorageIOError(f"cannot read {path}: {e}", path=path) from e

    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise CorruptStateError(f"{path} does not hold a JSON object", path=path)
    try:
        return Document.from_disk_doc(raw)
    except ValidationError as e:
        raise CorruptStateError(f"{path} does not match the document schema: {e}", path=path) from e
