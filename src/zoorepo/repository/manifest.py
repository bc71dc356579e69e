from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from .errors import ManifestError

MANIFEST_FILENAME = ".zoorepo-manifest.json"
MANIFEST_SCHEMA_VERSION = 1


@dataclass(frozen=True, slots=True)
class ManifestItem:
    key: str
    uri: str
    type: str
    extension: str
    local_path: str
    sha256: str


@dataclass(frozen=True, slots=True)
class PreparedManifestV1:
    schema_version: int
    resource_uri: str
    mrl: str
    version: str
    properties: dict[str, str]
    prepared_at_utc: str
    items: tuple[ManifestItem, ...]
    tooling: dict[str, str]


def manifest_path(resource_dir: Path) -> Path:
    return resource_dir / MANIFEST_FILENAME


def write_manifest(resource_dir: Path, manifest: PreparedManifestV1) -> None:
    """
    Write the manifest as the last step of prepare().

    Written to a temporary name and renamed, so a reader never sees a
    half-written marker.
    """
    path = manifest_path(resource_dir)
    tmp = path.with_name(path.name + ".part")
    try:
        tmp.write_text(
            json.dumps(asdict(manifest), indent=2, sort_keys=True),
            encoding="utf-8",
        )
        tmp.replace(path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        raise ManifestError(f"Failed to write manifest: {path}") from e


def read_manifest(resource_dir: Path) -> PreparedManifestV1:
    path = manifest_path(resource_dir)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Manifest not found or unreadable: {path}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ManifestError(f"Manifest is not valid JSON: {path}") from e

    _validate_manifest_dict(data, path)

    items = tuple(
        ManifestItem(
            key=i["key"],
            uri=i["uri"],
            type=i["type"],
            extension=i["extension"],
            local_path=i["local_path"],
            sha256=i["sha256"],
        )
        for i in data["items"]
    )

    return PreparedManifestV1(
        schema_version=data["schema_version"],
        resource_uri=data["resource_uri"],
        mrl=data["mrl"],
        version=data["version"],
        properties=dict(data["properties"]),
        prepared_at_utc=data["prepared_at_utc"],
        items=items,
        tooling=dict(data["tooling"]),
    )


def _validate_manifest_dict(data: Any, path: Path) -> None:
    if not isinstance(data, dict):
        raise ManifestError(f"Manifest must be a JSON object: {path}")

    if data.get("schema_version") != MANIFEST_SCHEMA_VERSION:
        raise ManifestError(
            "Unsupported manifest schema_version: "
            f"{data.get('schema_version')} "
            f"(expected {MANIFEST_SCHEMA_VERSION})"
        )

    for key in (
        "resource_uri",
        "mrl",
        "version",
        "properties",
        "prepared_at_utc",
        "items",
        "tooling",
    ):
        if key not in data:
            raise ManifestError(f"Manifest missing key '{key}': {path}")

    if not isinstance(data["items"], list):
        raise ManifestError(f"Manifest 'items' must be a list: {path}")

    for i, item in enumerate(data["items"]):
        if not isinstance(item, dict):
            raise ManifestError(f"Manifest items[{i}] must be an object: {path}")
        for k in ("key", "uri", "type", "extension", "local_path", "sha256"):
            if k not in item:
                raise ManifestError(f"Manifest items[{i}] missing '{k}': {path}")

    for key in ("properties", "tooling"):
        if not isinstance(data[key], dict):
            raise ManifestError(f"Manifest '{key}' must be an object: {path}")
