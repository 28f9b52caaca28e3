from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import StorageIOError


def project_root() -> Path:
    # persistence/paths.py -> persistence -> project root
    return Path(__file__).resolve().parents[1]


def ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageIOError(f"cannot create directory {path}: {e}", path=path) from e
    return path


@dataclass(frozen=True)
class StorageConfig:
    """Where the store keeps its state. All paths are absolute."""

    storage_dir: Path
    db_file: Path
    seed_reports_dir: Path

    @property
    def uploads_dir(self) -> Path:
        return self.storage_dir / "uploads"

    @property
    def reports_dir(self) -> Path:
        return self.storage_dir / "reports"

    @classmethod
    def under(cls, root: Path, *, seed_reports_dir: Path | None = None) -> "StorageConfig":
        root = root.resolve()
        return cls(
            storage_dir=root,
            db_file=root / "db.json",
            seed_reports_dir=(seed_reports_dir or project_root() / "seed" / "reports").resolve(),
        )

    def ensure_layout(self) -> None:
        ensure_dir(self.storage_dir)
        ensure_dir(self.uploads_dir)
        ensure_dir(self.reports_dir)
        ensure_dir(self.db_file.parent)
