from __future__ import annotations

from pathlib import Path

import pytest

from repo_fixtures import TOY
from zoorepo.repository.cache import (
    get_cache_root,
    lock_path,
    metadata_cache_path,
    resource_dir,
)
from zoorepo.repository.descriptors import Artifact


def test_cache_root_env_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ZOOREPO_CACHE_DIR", str(tmp_path))
    assert get_cache_root() == tmp_path.resolve() / "artifacts"


def test_cache_root_default_is_user_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ZOOREPO_CACHE_DIR", raising=False)
    root = get_cache_root()
    assert root.name == "artifacts"
    assert "zoorepo" in root.parts


def test_resource_dir_follows_resource_uri(tmp_path: Path) -> None:
    a = Artifact(TOY, "1.0", properties={"flavor": "small"})
    assert resource_dir(tmp_path, a) == (
        tmp_path / "dataset" / "cv" / "ai.test" / "toy" / "1.0+flavor=small"
    )


def test_lock_path_is_hidden_sibling(tmp_path: Path) -> None:
    a = Artifact(TOY, "1.0")
    lock = lock_path(tmp_path, a)

    assert lock.parent == resource_dir(tmp_path, a).parent
    assert lock.name == ".1.0.lock"
    assert lock != lock_path(tmp_path, Artifact(TOY, "2.0"))


def test_metadata_cache_path(tmp_path: Path) -> None:
    path = metadata_cache_path(tmp_path, "https://a.test/zoo/", TOY)

    assert path.name == "metadata.json"
    assert path.parts[-5:-1] == ("dataset", "cv", "ai.test", "toy")
    rel = path.relative_to(tmp_path).parts
    assert rel[0] == ".metadata"
    assert len(rel[1]) == 16


def test_metadata_cache_path_is_keyed_by_repository(tmp_path: Path) -> None:
    a = metadata_cache_path(tmp_path, "https://a.test/zoo/", TOY)
    b = metadata_cache_path(tmp_path, "https://b.test/zoo/", TOY)

    assert a != b
    assert a == metadata_cache_path(tmp_path, "https://a.test/zoo/", TOY)
