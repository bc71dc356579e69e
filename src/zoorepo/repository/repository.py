from __future__ import annotations

import http.client
import logging
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any, BinaryIO

from . import cache
from .completion import CompletionMarker, CompletionPolicy
from .descriptors import Artifact, Item, Metadata, validate_item_name
from .document import METADATA_FILENAME, load_metadata
from .errors import (
    MetadataError,
    OriginNotFoundError,
    RepositoryIOError,
    ResourceNotFoundError,
)
from .materialize import prepare_artifact
from .mrl import MRL
from .origins import DEFAULT_TIMEOUT_SECONDS, Origin, origin_for_location, source_uri
from .resolver import select_artifact

logger = logging.getLogger(__name__)

ONE_DAY = 24 * 60 * 60


class Repository:
    """
    Resolves MRLs to artifacts and materializes them in the local cache.

    The engine is shared; where bytes come from is up to the injected
    origin (LocalOrigin, RemoteOrigin, or anything implementing Origin).

    Typical use:

        repo = Repository.new_instance("zoo", "https://example.com/zoo")
        artifact = repo.resolve(MRL(Category.DATASET_CV, "ai.test", "toy"), "1.0")
        repo.prepare(artifact)
        with repo.open_stream(artifact, "data.bin") as f:
            ...
    """

    def __init__(
        self,
        name: str,
        origin: Origin,
        *,
        cache_root: Path | None = None,
        completion: CompletionPolicy | None = None,
        metadata_ttl: float = ONE_DAY,
    ) -> None:
        self.name = name
        self.origin = origin
        self.completion = completion if completion is not None else CompletionMarker()
        self.metadata_ttl = metadata_ttl
        self._cache_root = cache_root

    @classmethod
    def new_instance(
        cls,
        name: str,
        location: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        **kwargs: Any,
    ) -> Repository:
        """Build a repository for a path or URI (see origin_for_location)."""
        return cls(name, origin_for_location(location, timeout_seconds=timeout_seconds), **kwargs)

    def __repr__(self) -> str:
        return f"Repository(name={self.name!r}, base_uri={self.base_uri!r})"

    @property
    def base_uri(self) -> str:
        return self.origin.base_uri

    def get_cache_directory(self) -> Path:
        root = self._cache_root if self._cache_root is not None else cache.get_cache_root()
        root.mkdir(parents=True, exist_ok=True)
        return root

    # --- lookup ---

    def locate(self, mrl: MRL) -> Metadata:
        """
        Read {base}/{mrl.path}/metadata.json.

        Remote documents are kept under the cache root and reused for
        metadata_ttl seconds.
        """
        uri = self.origin.resolve(f"{mrl.path}/{METADATA_FILENAME}", self.origin.base_uri)

        cached: Path | None = None
        if self.origin.remote:
            cached = cache.metadata_cache_path(self.get_cache_directory(), self.base_uri, mrl)
            if self._is_fresh(cached):
                try:
                    metadata = load_metadata(cached.read_bytes(), mrl, source=str(cached))
                except (OSError, MetadataError):
                    logger.warning("Refetching unreadable cached metadata: %s", cached)
                else:
                    logger.debug("Using cached metadata: %s", cached)
                    return metadata

        raw = self._read_metadata(uri, mrl)
        metadata = load_metadata(raw, mrl, source=uri)

        if cached is not None:
            cached.parent.mkdir(parents=True, exist_ok=True)
            tmp = cached.with_name(cached.name + ".part")
            tmp.write_bytes(raw)
            tmp.replace(cached)

        return metadata

    def resolve(
        self,
        mrl: MRL | Metadata,
        version: str | None = None,
        filter: Mapping[str, str] | None = None,
    ) -> Artifact:
        """Locate mrl (unless Metadata is passed) and select one artifact."""
        metadata = mrl if isinstance(mrl, Metadata) else self.locate(mrl)
        return select_artifact(metadata, version, filter)

    def _is_fresh(self, path: Path) -> bool:
        if self.metadata_ttl <= 0:
            return False
        try:
            age = time.time() - path.stat().st_mtime
        except FileNotFoundError:
            return False
        return age < self.metadata_ttl

    def _read_metadata(self, uri: str, mrl: MRL) -> bytes:
        try:
            with self.origin.open(uri) as f:
                return f.read()
        except OriginNotFoundError as e:
            raise ResourceNotFoundError(
                f"Unknown resource {mrl} in repository {self.name!r} (no {uri})"
            ) from e
        except (OSError, http.client.HTTPException) as e:
            raise RepositoryIOError(f"Failed to read metadata: {uri}") from e

    # --- materialization ---

    def prepare(self, artifact: Artifact, *, progress: bool = False) -> Path:
        return prepare_artifact(
            artifact,
            origin=self.origin,
            cache_root=self.get_cache_directory(),
            completion=self.completion,
            progress=progress,
        )

    def is_prepared(self, artifact: Artifact) -> bool:
        return self.completion.is_complete(self.resource_dir(artifact))

    def resource_dir(self, artifact: Artifact) -> Path:
        return cache.resource_dir(self.get_cache_directory(), artifact)

    def item_path(self, artifact: Artifact, item: Item | str, path: str | None = None) -> Path:
        """
        Cache path of an item, recomputed from the artifact's identity.

        path addresses a file inside a dir item; it is ignored for file items.
        """
        key, item = _lookup_item(artifact, item)
        base = self.resource_dir(artifact)

        if item.type == "dir":
            target = base / item.name if item.name else base
            if path:
                validate_item_name(path)
                target = target / path
            return target

        return base / (item.name or key)

    def open_stream(
        self, artifact: Artifact, item: Item | str, path: str | None = None
    ) -> BinaryIO:
        """
        Open one file of an artifact for reading. Caller closes the stream.

        Reads the materialized copy; a plain file item that was not prepared
        yet is streamed from the origin instead.
        """
        key, item = _lookup_item(artifact, item)
        local = self.item_path(artifact, item, path)

        if local.is_file():
            try:
                return local.open("rb")
            except OSError as e:
                raise RepositoryIOError(f"Failed to open: {local}") from e

        if item.type == "file" and item.extension == "":
            return self.origin.open(source_uri(self.origin, artifact.base_uri, item.uri))

        raise OriginNotFoundError(
            f"{local} does not exist (is {artifact.id()} prepared? item {key!r})"
        )


def _lookup_item(artifact: Artifact, item: Item | str) -> tuple[str, Item]:
    if isinstance(item, str):
        try:
            return item, artifact.files[item]
        except KeyError as e:
            available = ", ".join(artifact.files) or "none"
            raise ResourceNotFoundError(
                f"Artifact {artifact.id()} has no item {item!r}. Available: {available}"
            ) from e

    for key, candidate in artifact.files.items():
        if candidate is item or candidate == item:
            return key, candidate
    raise ResourceNotFoundError(f"Item {item.uri!r} does not belong to {artifact.id()}")
