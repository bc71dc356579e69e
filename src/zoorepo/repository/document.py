from __future__ import annotations

import json
from typing import Any

from .descriptors import Artifact, Item, Metadata
from .errors import MetadataError
from .mrl import MRL

METADATA_FILENAME = "metadata.json"


def load_metadata(raw: bytes, mrl: MRL, *, source: str = METADATA_FILENAME) -> Metadata:
    """Decode a metadata.json document located for mrl."""
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MetadataError(f"Metadata is not valid JSON: {source}") from e

    return parse_metadata(data, mrl, source=source)


def parse_metadata(data: Any, mrl: MRL, *, source: str = METADATA_FILENAME) -> Metadata:
    if not isinstance(data, dict):
        raise MetadataError(f"Metadata must be a JSON object: {source}")

    for key, expected in (("group_id", mrl.group_id), ("artifact_id", mrl.artifact_id)):
        got = data.get(key)
        if got is not None and got != expected:
            raise MetadataError(
                f"Metadata {key} {got!r} does not match requested {expected!r}: {source}"
            )

    raw_artifacts = data.get("artifacts", [])
    if not isinstance(raw_artifacts, list):
        raise MetadataError(f"Metadata 'artifacts' must be a list: {source}")

    artifacts = tuple(
        _parse_artifact(a, mrl, where=f"{source} artifacts[{i}]")
        for i, a in enumerate(raw_artifacts)
    )

    return Metadata(
        mrl=mrl,
        artifacts=artifacts,
        metadata_version=str(data.get("metadata_version", "")),
        name=str(data.get("name", "")),
        description=str(data.get("description", "")),
        website=data.get("website"),
    )


def _parse_artifact(data: Any, mrl: MRL, *, where: str) -> Artifact:
    if not isinstance(data, dict):
        raise MetadataError(f"{where} must be an object")
    if "version" not in data:
        raise MetadataError(f"{where} missing 'version'")
    version = data["version"]
    # bare numbers ("version": 1.0) are accepted and kept as text
    if isinstance(version, bool) or not isinstance(version, (str, int, float)):
        raise MetadataError(f"{where} 'version' must be a string")

    properties = data.get("properties") or {}
    if not isinstance(properties, dict):
        raise MetadataError(f"{where} 'properties' must be an object")

    files = data.get("files") or {}
    if not isinstance(files, dict):
        raise MetadataError(f"{where} 'files' must be an object")

    return Artifact(
        mrl=mrl,
        version=str(version),
        properties={str(k): str(v) for k, v in properties.items()},
        files={
            str(k): _parse_item(str(k), v, where=f"{where} files[{k!r}]")
            for k, v in files.items()
        },
        name=str(data.get("name", "")),
    )


def _parse_item(key: str, data: Any, *, where: str) -> Item:
    if not isinstance(data, dict):
        raise MetadataError(f"{where} must be an object")

    uri = data.get("uri")
    if not isinstance(uri, str) or not uri:
        raise MetadataError(f"{where} missing 'uri'")

    size = data.get("size")
    if size is not None and (isinstance(size, bool) or not isinstance(size, int)):
        raise MetadataError(f"{where} 'size' must be an integer")

    for field in ("name", "type", "extension", "sha256"):
        value = data.get(field)
        if value is not None and not isinstance(value, str):
            raise MetadataError(f"{where} '{field}' must be a string")

    return Item.infer(
        uri,
        key=key,
        name=data.get("name"),
        type=data.get("type"),
        extension=data.get("extension"),
        size=size,
        sha256=data.get("sha256"),
    )


def metadata_to_dict(metadata: Metadata) -> dict[str, Any]:
    """Inverse of parse_metadata (every inferred field written explicitly)."""
    return {
        "metadata_version": metadata.metadata_version,
        "group_id": metadata.mrl.group_id,
        "artifact_id": metadata.mrl.artifact_id,
        "name": metadata.name,
        "description": metadata.description,
        "website": metadata.website,
        "artifacts": [artifact_to_dict(a) for a in metadata.artifacts],
    }


def artifact_to_dict(artifact: Artifact) -> dict[str, Any]:
    return {
        "version": artifact.version,
        "name": artifact.name,
        "properties": dict(artifact.properties),
        "files": {
            key: {
                "uri": item.uri,
                "name": item.name,
                "type": item.type,
                "extension": item.extension,
                "size": item.size,
                "sha256": item.sha256,
            }
            for key, item in artifact.files.items()
        },
    }
