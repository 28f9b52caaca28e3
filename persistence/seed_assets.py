from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any, Iterable

logger = logging.getLogger(__name__)


def _same_bytes(src: Path, dst: Path) -> bool | None:
    try:
        return src.read_bytes() == dst.read_bytes()
    except OSError as e:
        logger.warning("SEED REPORTS: cannot compare %s with %s: %r", src, dst, e)
        return None


def sync_seed_reports(
    reports: Iterable[Any],
    source_dir: Path,
    dest_dir: Path,
    *,
    force: bool = False,
) -> list[str]:
    """
    Best-effort copy of shipped report files into the writable reports dir.

    - Reports without a shipped source file are skipped.
    - Missing destinations (or `force`) are always copied.
    - Existing destinations are overwritten only when their bytes differ;
      if either side cannot be read the existing file is left alone.

    Never raises for I/O problems. Returns the filenames that were copied.
    """
    try:
        if not source_dir.is_dir():
            return []
    except OSError as e:
        logger.warning("SEED REPORTS: cannot inspect %s: %r", source_dir, e)
        return []

    copied: list[str] = []
    for report in reports:
        filename = report.get("filename") if isinstance(report, dict) else getattr(report, "filename", None)
        if not isinstance(filename, str) or not filename.strip():
            continue
        # Filenames come from the document; keep copies inside the two dirs.
        name = Path(filename).name
        src = source_dir / name
        dst = dest_dir / name
        try:
            if not src.is_file():
                continue
            dst_exists = dst.exists()
        except OSError as e:
            logger.warning("SEED REPORTS: cannot inspect %s -> %s: %r", src, dst, e)
            continue

        if dst_exists and not force:
            same = _same_bytes(src, dst)
            if same is None or same:
                continue

        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(src, dst)
        except OSError as e:
            logger.warning("SEED REPORTS: failed to copy %s -> %s: %r", src, dst, e)
            continue
        copied.append(name)

    if copied:
        logger.info("SEED REPORTS: refreshed %s file(s) in %s", len(copied), dest_dir)
    return copied
