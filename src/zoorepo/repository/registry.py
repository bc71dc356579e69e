from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .repository import Repository

_ENV_REPOSITORIES = "ZOOREPO_REPOSITORIES"


def _default_config_path() -> Path:
    # Windows: C:\Users\<user>\.zoorepo\repositories.json
    # Unix:    ~/.zoorepo/repositories.json
    return Path.home() / ".zoorepo" / "repositories.json"


def _mapping_from(raw: Any, what: str) -> dict[str, str]:
    if not isinstance(raw, dict):
        raise ConfigError(f"{what} must be a JSON object")

    out: dict[str, str] = {}
    for k, v in raw.items():
        if isinstance(k, str) and isinstance(v, str):
            out[k] = v
    return out


def _load_mapping_file(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in repository registry file: {path}") from exc

    return _mapping_from(raw, f"Repository registry file {path}")


def _load_env_mapping() -> dict[str, str]:
    val = os.environ.get(_ENV_REPOSITORIES)
    if not val:
        return {}

    # Accept either a JSON object string or a path to a JSON file
    maybe_path = Path(val)
    if maybe_path.is_file():
        return _load_mapping_file(maybe_path)

    try:
        raw = json.loads(val)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            f"{_ENV_REPOSITORIES} must be a JSON object string or a path to a JSON file"
        ) from exc

    return _mapping_from(raw, _ENV_REPOSITORIES)


@dataclass(frozen=True)
class RepositoryRegistry:
    """
    Resolves repository references to locations.

    Resolution order:
    1) Env var mapping: ZOOREPO_REPOSITORIES (JSON object or JSON file path)
    2) User file mapping: ~/.zoorepo/repositories.json
    3) The reference itself, taken as a path or URI
    """

    config_path: Path = field(default_factory=_default_config_path)

    def resolve_location(self, ref: str) -> str:
        ref = ref.strip()
        if not ref:
            raise ConfigError("Repository reference must be non-empty")

        env_map = _load_env_mapping()
        if ref in env_map:
            return env_map[ref]

        file_map = _load_mapping_file(self.config_path)
        if ref in file_map:
            return file_map[ref]

        return ref

    def names(self) -> list[str]:
        return sorted(set(_load_env_mapping()) | set(_load_mapping_file(self.config_path)))

    def open(self, ref: str, **kwargs: Any) -> Repository:
        return Repository.new_instance(ref, self.resolve_location(ref), **kwargs)
