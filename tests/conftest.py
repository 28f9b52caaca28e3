from __future__ import annotations

from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import persistence...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


from persistence import Document, Meta, OrgRecord, ReportRecord, StorageConfig  # noqa: E402


def tiny_document(version: int = 3) -> Document:
    """A seed without bcrypt hashing, for store tests that don't log in."""
    return Document(
        meta=Meta(version=version, seededAt="2025-01-01T00:00:00.000Z"),
        orgs=[OrgRecord(id="org_1", name="سازمان آزمایشی", settings={"logoUrl": "/logo.svg"})],
        reports=[ReportRecord(id="rp_1", orgId="org_1", title="گزارش", filename="executive_demo_1.html")],
    )


@pytest.fixture
def seed_reports_dir(tmp_path: Path) -> Path:
    d = tmp_path / "seed" / "reports"
    d.mkdir(parents=True)
    (d / "executive_demo_1.html").write_text("<h1>v2</h1>\n", encoding="utf-8")
    return d


@pytest.fixture
def storage_config(tmp_path: Path, seed_reports_dir: Path) -> StorageConfig:
    return StorageConfig.under(tmp_path / "storage", seed_reports_dir=seed_reports_dir)


@pytest.fixture
def sandbox_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, seed_reports_dir: Path) -> Path:
    """
    Point the app's storage settings at a temp directory so tests never touch real ./storage.
    """
    storage = tmp_path / "storage"
    monkeypatch.setenv("STORAGE_DIR", str(storage))
    monkeypatch.setenv("DB_FILE", str(storage / "db.json"))
    monkeypatch.setenv("SEED_REPORTS_DIR", str(seed_reports_dir))
    monkeypatch.setenv("JWT_SECRET", "test-secret-that-is-long-enough-for-hs256")
    return storage


@pytest.fixture
def client(sandbox_env: Path):
    from fastapi.testclient import TestClient

    import app as app_module

    with TestClient(app_module.create_app()) as c:
        yield c
