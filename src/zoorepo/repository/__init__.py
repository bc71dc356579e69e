from __future__ import annotations

from .completion import CompletionMarker, CompletionPolicy, DirectoryPresence
from .descriptors import Artifact, Item, Metadata
from .errors import (
    ArchiveExtractError,
    ArtifactNotFoundError,
    ConfigError,
    HashMismatchError,
    IntegrityError,
    ManifestError,
    MetadataError,
    OriginNotFoundError,
    RepositoryError,
    RepositoryIOError,
    ResourceNotFoundError,
    UnsupportedFormatError,
)
from .materialize import prepare_artifact
from .mrl import MRL, Category
from .origins import LocalOrigin, Origin, RemoteOrigin, origin_for_location
from .registry import RepositoryRegistry
from .repository import Repository
from .resolver import select_artifact, version_key

__all__ = [
    "MRL",
    "Category",
    "Item",
    "Artifact",
    "Metadata",
    "Repository",
    "RepositoryRegistry",
    "Origin",
    "LocalOrigin",
    "RemoteOrigin",
    "origin_for_location",
    "select_artifact",
    "version_key",
    "prepare_artifact",
    "CompletionPolicy",
    "CompletionMarker",
    "DirectoryPresence",
    "RepositoryError",
    "ConfigError",
    "ResourceNotFoundError",
    "ArtifactNotFoundError",
    "RepositoryIOError",
    "OriginNotFoundError",
    "MetadataError",
    "UnsupportedFormatError",
    "ArchiveExtractError",
    "IntegrityError",
    "HashMismatchError",
    "ManifestError",
]
