from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


def tmp_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def read_json(path: Path) -> Any | None:
    """
    Read JSON from disk.

    Returns None for a missing file. Unreadable files raise OSError and invalid
    JSON raises json.JSONDecodeError; callers decide what that means.
    """
    if not path.exists():
        return None
    raw = path.read_text(encoding="utf-8")
    return json.loads(raw)


def dumps_json(payload: Any, *, indent: int = 2, sort_keys: bool = False) -> str:
    return json.dumps(payload, indent=indent, sort_keys=sort_keys, ensure_ascii=False) + "\n"


def atomic_write_json(path: Path, payload: Any, *, indent: int = 2, sort_keys: bool = False) -> None:
    atomic_write_text(path, dumps_json(payload, indent=indent, sort_keys=sort_keys))


def atomic_write_text(path: Path, text: str) -> None:
    """
    Atomically write text to disk by writing to a sibling temp file then replacing.

    The temp file lives in the same directory so the rename never crosses a
    filesystem. Readers of `path` see either the old or the new content.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = tmp_path_for(path)
    with tmp_path.open("w", encoding="utf-8") as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)
