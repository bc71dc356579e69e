from __future__ import annotations

import hashlib
import http.client
import logging
import platform
import sys
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO

from filelock import FileLock
from tqdm.auto import tqdm

from zoorepo import __version__ as zoorepo_version

from .archives import COPY_BUFSIZE, DIR_EXTRACTORS, FILE_TRANSFORMS
from .cache import lock_path, resource_dir
from .completion import CompletionMarker, CompletionPolicy
from .descriptors import DIR_EXTENSIONS, FILE_EXTENSIONS, Artifact, Item, validate_item_name
from .errors import HashMismatchError, RepositoryIOError, UnsupportedFormatError
from .manifest import MANIFEST_SCHEMA_VERSION, ManifestItem, PreparedManifestV1
from .origins import Origin, source_uri

logger = logging.getLogger(__name__)


class _HashingReader:
    """Read-only stream wrapper hashing every byte that passes through."""

    def __init__(self, raw: BinaryIO) -> None:
        self._raw = raw
        self._sha256 = hashlib.sha256()

    def read(self, size: int = -1) -> bytes:
        chunk = self._raw.read(size)
        self._sha256.update(chunk)
        return chunk

    def drain(self) -> None:
        # archive readers may stop before the end (tar padding)
        while self.read(COPY_BUFSIZE):
            pass

    def hexdigest(self) -> str:
        return self._sha256.hexdigest()


def prepare_artifact(
    artifact: Artifact,
    *,
    origin: Origin,
    cache_root: Path,
    completion: CompletionPolicy | None = None,
    progress: bool = False,
) -> Path:
    """
    Ensure an artifact is materialized in the cache:
      {cache_root}/{artifact.resource_uri}/...

    Items are processed in mapping order; the first failure aborts the call
    without rolling back items already written. The completion policy
    decides whether a previous run counts as done (default: the prepared
    manifest written after the last item). Concurrent calls for the same
    artifact are serialized by a file lock; later callers wait and return
    once the first one finished.

    Returns the resource directory.
    """
    if completion is None:
        completion = CompletionMarker()

    res_dir = resource_dir(cache_root, artifact)
    lock = lock_path(cache_root, artifact)
    lock.parent.mkdir(parents=True, exist_ok=True)

    with FileLock(str(lock)):
        if completion.is_complete(res_dir):
            logger.debug("Already prepared: %s", res_dir)
            return res_dir

        completion.begin(res_dir)
        res_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Preparing %s -> %s", artifact.id(), res_dir)

        records: list[ManifestItem] = []
        for key, item in tqdm(
            artifact.files.items(),
            total=len(artifact.files),
            desc=artifact.id(),
            unit="item",
            disable=not progress,
        ):
            records.append(
                _materialize_item(key, item, artifact=artifact, origin=origin, res_dir=res_dir)
            )

        completion.complete(res_dir, _build_manifest(artifact, records))

    # TODO: remove files of earlier cache generations that the artifact no longer lists
    return res_dir


def _materialize_item(
    key: str,
    item: Item,
    *,
    artifact: Artifact,
    origin: Origin,
    res_dir: Path,
) -> ManifestItem:
    uri = source_uri(origin, artifact.base_uri, item.uri)

    if item.type == "dir":
        extractor = DIR_EXTRACTORS.get(item.extension)
        if extractor is None:
            raise UnsupportedFormatError(
                f"Unsupported extension {item.extension!r} for dir item {key!r} "
                f"of {artifact.id()} (expected one of {DIR_EXTENSIONS})"
            )

        target = res_dir / item.name if item.name else res_dir
        target.mkdir(parents=True, exist_ok=True)
        logger.info("Extracting %s (%s) -> %s", uri, item.extension, target)
        digest = _fetch(origin, uri, item, lambda s: extractor(s, target))
        local = target

    else:
        transform = FILE_TRANSFORMS.get(item.extension)
        if transform is None:
            raise UnsupportedFormatError(
                f"Unsupported extension {item.extension!r} for file item {key!r} "
                f"of {artifact.id()} (expected one of {FILE_EXTENSIONS})"
            )

        name = item.name or key
        validate_item_name(name)
        dest = res_dir / name
        dest.parent.mkdir(parents=True, exist_ok=True)

        # Write next to the destination and move into place: a failed item
        # never leaves a partial file behind.
        tmp = dest.with_name(f".{dest.name}.part")
        try:
            logger.info("Fetching %s (%s) -> %s", uri, item.extension or "copy", dest)
            with tmp.open("wb") as out:
                digest = _fetch(origin, uri, item, lambda s: transform(s, out))
            tmp.replace(dest)
        finally:
            tmp.unlink(missing_ok=True)
        local = dest

    return ManifestItem(
        key=key,
        uri=uri,
        type=item.type,
        extension=item.extension,
        local_path=local.relative_to(res_dir).as_posix(),
        sha256=digest,
    )


def _fetch(origin: Origin, uri: str, item: Item, consume: Callable[[BinaryIO], None]) -> str:
    """Stream uri through consume; return the sha256 of the raw source bytes."""
    try:
        with origin.open(uri) as raw:
            reader = _HashingReader(raw)
            consume(reader)  # type: ignore[arg-type]
            reader.drain()
    except (OSError, http.client.HTTPException) as e:
        raise RepositoryIOError(f"Failed to materialize: {uri}") from e

    got = reader.hexdigest()
    if item.sha256 is not None and got != item.sha256.lower():
        raise HashMismatchError(f"sha256 mismatch for {uri}: expected {item.sha256}, got {got}")
    return got


def _build_manifest(artifact: Artifact, items: list[ManifestItem]) -> PreparedManifestV1:
    prepared_at = (
        datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    )
    return PreparedManifestV1(
        schema_version=MANIFEST_SCHEMA_VERSION,
        resource_uri=artifact.resource_uri,
        mrl=str(artifact.mrl),
        version=artifact.version,
        properties=dict(artifact.properties),
        prepared_at_utc=prepared_at,
        items=tuple(items),
        tooling={
            "zoorepo_version": zoorepo_version,
            "python": sys.version.split()[0],
            "platform": platform.platform(),
        },
    )
