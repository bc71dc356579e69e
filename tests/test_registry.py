from __future__ import annotations

import json
from pathlib import Path

import pytest

from zoorepo.repository.errors import ConfigError
from zoorepo.repository.origins import LocalOrigin, RemoteOrigin
from zoorepo.repository.registry import RepositoryRegistry


def test_unknown_reference_is_its_own_location(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("ZOOREPO_REPOSITORIES", raising=False)
    reg = RepositoryRegistry(config_path=tmp_path / "missing.json")

    assert reg.resolve_location("https://example.com/zoo") == "https://example.com/zoo"
    assert reg.names() == []


def test_env_mapping_json_string(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ZOOREPO_REPOSITORIES", json.dumps({"djl": "https://example.com/zoo"}))
    reg = RepositoryRegistry(config_path=tmp_path / "missing.json")

    assert reg.resolve_location("djl") == "https://example.com/zoo"
    assert reg.names() == ["djl"]

    repo = reg.open("djl")
    assert repo.name == "djl"
    assert isinstance(repo.origin, RemoteOrigin)


def test_env_mapping_file_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    mapping = tmp_path / "repos.json"
    mapping.write_text(json.dumps({"local": str(tmp_path / "zoo")}), encoding="utf-8")
    monkeypatch.setenv("ZOOREPO_REPOSITORIES", str(mapping))
    reg = RepositoryRegistry(config_path=tmp_path / "missing.json")

    repo = reg.open("local", cache_root=tmp_path / "cache")
    assert isinstance(repo.origin, LocalOrigin)
    assert repo.origin.root == (tmp_path / "zoo").resolve()


def test_config_file_mapping(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("ZOOREPO_REPOSITORIES", raising=False)
    config = tmp_path / "repositories.json"
    config.write_text(json.dumps({"zoo": "https://a.test/zoo", "bad": 3}), encoding="utf-8")
    reg = RepositoryRegistry(config_path=config)

    assert reg.resolve_location("zoo") == "https://a.test/zoo"
    assert reg.names() == ["zoo"]


def test_env_mapping_wins_over_config_file(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    config = tmp_path / "repositories.json"
    config.write_text(json.dumps({"zoo": "https://file.test/zoo"}), encoding="utf-8")
    monkeypatch.setenv("ZOOREPO_REPOSITORIES", json.dumps({"zoo": "https://env.test/zoo"}))

    assert RepositoryRegistry(config_path=config).resolve_location("zoo") == "https://env.test/zoo"


@pytest.mark.parametrize("value", ["{not json", "[1, 2]"])
def test_invalid_env_mapping(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, value: str) -> None:
    monkeypatch.setenv("ZOOREPO_REPOSITORIES", value)
    with pytest.raises(ConfigError):
        _ = RepositoryRegistry(config_path=tmp_path / "missing.json").resolve_location("zoo")


def test_invalid_config_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("ZOOREPO_REPOSITORIES", raising=False)
    config = tmp_path / "repositories.json"
    config.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError):
        _ = RepositoryRegistry(config_path=config).resolve_location("zoo")


@pytest.mark.parametrize("ref", ["", "   "])
def test_empty_reference(tmp_path: Path, ref: str) -> None:
    with pytest.raises(ConfigError):
        _ = RepositoryRegistry(config_path=tmp_path / "missing.json").resolve_location(ref)
