from __future__ import annotations

import http.client
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, ClassVar, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urljoin, urlsplit
from urllib.request import url2pathname

from .errors import OriginNotFoundError, RepositoryIOError

DEFAULT_TIMEOUT_SECONDS = 60.0


class Origin(Protocol):
    """
    Fetch strategy a Repository is composed with.

    Anything that can join URIs and open a read stream for an absolute URI
    plugs in; `remote` tells the repository whether metadata is worth caching.
    """

    remote: ClassVar[bool]

    @property
    def base_uri(self) -> str:
        """Absolute URI of the repository root, ending with '/'."""
        raise NotImplementedError

    def resolve(self, reference: str, base: str) -> str:
        """Resolve reference against base (absolute references win)."""
        raise NotImplementedError

    def open(self, uri: str) -> BinaryIO:
        """Open a binary read stream for an absolute URI. Caller closes it."""
        raise NotImplementedError


def resolve_uri(reference: str, base: str) -> str:
    if urlsplit(reference).scheme:
        return reference
    return urljoin(base, reference)


def source_uri(origin: Origin, metadata_base_uri: str, item_uri: str) -> str:
    """
    Two-level resolution of an item URI:
      origin base -> metadata base -> item
    """
    base = origin.resolve(metadata_base_uri, origin.base_uri)
    return origin.resolve(item_uri, base)


def _urlopen(uri: str, timeout: float) -> BinaryIO:
    try:
        return urllib.request.urlopen(uri, timeout=timeout)  # noqa: S310
    except HTTPError as e:
        if e.code == 404:
            raise OriginNotFoundError(f"Not found: {uri}") from e
        raise RepositoryIOError(f"Failed to fetch {uri}: HTTP {e.code}") from e
    except URLError as e:
        if isinstance(e.reason, FileNotFoundError):
            raise OriginNotFoundError(f"Not found: {uri}") from e
        raise RepositoryIOError(f"Failed to fetch {uri}: {e.reason}") from e
    except (OSError, ValueError, http.client.HTTPException) as e:
        raise RepositoryIOError(f"Failed to fetch {uri}") from e


@dataclass(frozen=True, slots=True)
class LocalOrigin:
    """
    Repository rooted in a local directory.

    file: URIs are opened directly; items may still point at absolute
    http(s) URIs, which go through urllib.
    """

    root: Path
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    remote: ClassVar[bool] = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path(self.root).expanduser().resolve())

    @property
    def base_uri(self) -> str:
        return self.root.as_uri().rstrip("/") + "/"

    def resolve(self, reference: str, base: str) -> str:
        return resolve_uri(reference, base)

    def open(self, uri: str) -> BinaryIO:
        parts = urlsplit(uri)
        if parts.scheme != "file":
            return _urlopen(uri, self.timeout_seconds)

        path = Path(url2pathname(parts.path))
        try:
            return path.open("rb")
        except FileNotFoundError as e:
            raise OriginNotFoundError(f"Not found: {path}") from e
        except OSError as e:
            raise RepositoryIOError(f"Failed to open: {path}") from e


@dataclass(frozen=True, slots=True)
class RemoteOrigin:
    """
    Repository behind an absolute URL, fetched with stdlib urllib.

    Supports:
      - https://, http://
      - any other scheme urllib understands (file:/// is handy in tests)
    No retries here; a failed request surfaces as RepositoryIOError.
    """

    url: str
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    remote: ClassVar[bool] = True

    @property
    def base_uri(self) -> str:
        return self.url if self.url.endswith("/") else self.url + "/"

    def resolve(self, reference: str, base: str) -> str:
        return resolve_uri(reference, base)

    def open(self, uri: str) -> BinaryIO:
        return _urlopen(uri, self.timeout_seconds)


def origin_for_location(
    location: str, *, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
) -> Origin:
    """
    Classify a repository location.

      relative or absolute filesystem path -> LocalOrigin
      file: URI                            -> LocalOrigin
      any other absolute URI               -> RemoteOrigin
    """
    parts = urlsplit(location)
    # single-letter schemes are Windows drive letters ("C:\\models")
    if not parts.scheme or len(parts.scheme) == 1:
        return LocalOrigin(Path(location), timeout_seconds=timeout_seconds)
    if parts.scheme.lower() == "file":
        return LocalOrigin(Path(url2pathname(parts.path)), timeout_seconds=timeout_seconds)
    return RemoteOrigin(location, timeout_seconds=timeout_seconds)
