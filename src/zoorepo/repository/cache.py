from __future__ import annotations

import hashlib
import os
from pathlib import Path

from platformdirs import user_cache_dir

from .descriptors import Artifact
from .mrl import MRL

_ENV_CACHE_DIR = "ZOOREPO_CACHE_DIR"

METADATA_CACHE_DIRNAME = ".metadata"
METADATA_CACHE_FILENAME = "metadata.json"


def get_cache_root() -> Path:
    """
    Return the artifact cache root directory for zoorepo.

    Override with env var:
      ZOOREPO_CACHE_DIR=/path/to/cache

    Layout:
      {cache_root}/{artifact.resource_uri}/...

    Default:
      platformdirs.user_cache_dir("zoorepo") / "artifacts"
    """
    override = os.environ.get(_ENV_CACHE_DIR)
    if override:
        return Path(override).expanduser().resolve() / "artifacts"

    return Path(user_cache_dir("zoorepo")) / "artifacts"


def resource_dir(cache_root: Path, artifact: Artifact) -> Path:
    """Directory an artifact is materialized into."""
    return cache_root.joinpath(*artifact.resource_uri.split("/"))


def lock_path(cache_root: Path, artifact: Artifact) -> Path:
    """
    Lock file serializing prepare() of one artifact.

    Lives next to the resource directory; resource directory names never
    start with a dot, so it cannot collide with another artifact.
    """
    d = resource_dir(cache_root, artifact)
    return d.parent / f".{d.name}.lock"


def metadata_cache_path(cache_root: Path, base_uri: str, mrl: MRL) -> Path:
    """
    Cached copy of a remote metadata document.

    Layout:
      {cache_root}/.metadata/{sha256(base_uri)[:16]}/{mrl.path}/metadata.json

    Keyed by the repository base URI: two repositories serving the same MRL
    never share a cached document.
    """
    origin_key = hashlib.sha256(base_uri.encode("utf-8")).hexdigest()[:16]
    return (
        cache_root.joinpath(METADATA_CACHE_DIRNAME, origin_key, *mrl.path.split("/"))
        / METADATA_CACHE_FILENAME
    )
