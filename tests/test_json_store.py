from __future__ import annotations

import json
from pathlib import Path

import pytest

import json_store
from json_store import atomic_write_json, read_json, tmp_path_for


def test_atomic_write_creates_parent_and_leaves_no_tmp(tmp_path: Path):
    target = tmp_path / "nested" / "db.json"
    atomic_write_json(target, {"name": "یاسوج", "n": 1})

    assert json.loads(target.read_text(encoding="utf-8")) == {"name": "یاسوج", "n": 1}
    # non-ASCII stays readable in the file
    assert "یاسوج" in target.read_text(encoding="utf-8")
    assert not tmp_path_for(target).exists()
    assert tmp_path_for(target).name == "db.json.tmp"


def test_interrupted_write_keeps_previous_document(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    target = tmp_path / "db.json"
    atomic_write_json(target, {"version": 1})

    def _crash(src, dst):
        raise OSError("killed before rename")

    monkeypatch.setattr(json_store.os, "replace", _crash)
    with pytest.raises(OSError):
        atomic_write_json(target, {"version": 2, "big": ["x"] * 1000})

    # canonical file is the previous complete document; the orphan tmp is ignored
    assert read_json(target) == {"version": 1}
    assert tmp_path_for(target).exists()


def test_read_json_missing_and_invalid(tmp_path: Path):
    assert read_json(tmp_path / "nope.json") is None

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(json.JSONDecodeError):
        read_json(bad)
