from __future__ import annotations

__version__ = "0.1.0"

from zoorepo.repository import (  # noqa: E402
    MRL,
    Artifact,
    Category,
    Item,
    LocalOrigin,
    Metadata,
    RemoteOrigin,
    Repository,
    RepositoryError,
)

__all__ = [
    "__version__",
    "MRL",
    "Category",
    "Item",
    "Artifact",
    "Metadata",
    "Repository",
    "LocalOrigin",
    "RemoteOrigin",
    "RepositoryError",
]
