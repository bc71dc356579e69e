from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .manifest import PreparedManifestV1, manifest_path, write_manifest

logger = logging.getLogger(__name__)


class CompletionPolicy(Protocol):
    """Decides whether a resource directory is fully prepared."""

    def is_complete(self, resource_dir: Path) -> bool:
        raise NotImplementedError

    def begin(self, resource_dir: Path) -> None:
        """Called under the artifact lock right before materializing."""
        raise NotImplementedError

    def complete(self, resource_dir: Path, manifest: PreparedManifestV1) -> None:
        """Called once every item succeeded."""
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class DirectoryPresence:
    """
    An existing resource directory counts as prepared.

    Compatible with caches populated by older tools, but an interrupted
    prepare() is indistinguishable from a finished one.
    """

    def is_complete(self, resource_dir: Path) -> bool:
        return resource_dir.exists()

    def begin(self, resource_dir: Path) -> None:
        return None

    def complete(self, resource_dir: Path, manifest: PreparedManifestV1) -> None:
        write_manifest(resource_dir, manifest)


@dataclass(frozen=True, slots=True)
class CompletionMarker:
    """
    Only the prepared manifest, written after the last item, counts.

    A directory without it is left over from a failed or interrupted run and
    is discarded before materializing again.
    """

    def is_complete(self, resource_dir: Path) -> bool:
        return manifest_path(resource_dir).is_file()

    def begin(self, resource_dir: Path) -> None:
        if resource_dir.exists():
            logger.warning("Discarding incomplete resource directory: %s", resource_dir)
            shutil.rmtree(resource_dir)

    def complete(self, resource_dir: Path, manifest: PreparedManifestV1) -> None:
        write_manifest(resource_dir, manifest)
