from __future__ import annotations


class RepositoryError(Exception):
    """Base error for locating, resolving and preparing artifacts."""


class ConfigError(RepositoryError):
    """Repository configuration (named locations) is unreadable or invalid."""


class ResourceNotFoundError(RepositoryError):
    """The repository does not know the requested resource identifier."""


class ArtifactNotFoundError(ResourceNotFoundError):
    """No artifact matches the requested version/filter combination."""


class RepositoryIOError(RepositoryError):
    """Reading metadata or file bytes from the origin failed."""


class OriginNotFoundError(RepositoryIOError):
    """The requested URI does not exist at the origin."""


class MetadataError(RepositoryIOError):
    """Metadata document is missing required fields, or is not valid JSON."""


class UnsupportedFormatError(RepositoryError):
    """Item type/extension combination has no extraction strategy."""


class ArchiveExtractError(RepositoryError):
    """Extracting an archive item failed."""


class IntegrityError(RepositoryError):
    """Materialized data failed an integrity check."""


class HashMismatchError(IntegrityError):
    """Item bytes do not match the expected sha256."""


class ManifestError(RepositoryError):
    """Prepared manifest is missing, unreadable, or invalid."""
