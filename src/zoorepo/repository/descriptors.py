from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Literal
from urllib.parse import urlsplit

from .errors import MetadataError
from .mrl import MRL
from .util import encode_segment

ItemType = Literal["file", "dir"]

ITEM_TYPES: tuple[str, ...] = ("file", "dir")

# Extensions with a known transform, per item type.
DIR_EXTENSIONS: tuple[str, ...] = ("zip", "tgz")
FILE_EXTENSIONS: tuple[str, ...] = ("zip", "gzip", "")


def infer_extension(uri: str) -> str:
    path = urlsplit(uri).path.lower()
    if path.endswith(".zip"):
        return "zip"
    if path.endswith(".tgz") or path.endswith(".tar.gz"):
        return "tgz"
    if path.endswith(".gz"):
        return "gzip"
    return ""


def validate_item_name(name: str) -> None:
    if not name:
        return
    p = PurePosixPath(name.replace("\\", "/"))
    # "C:" style drive prefixes are rejected as well
    if p.is_absolute() or ".." in p.parts or (p.parts and ":" in p.parts[0]):
        raise MetadataError(f"Item name must be a relative path inside the artifact: {name!r}")


@dataclass(frozen=True, slots=True)
class Item:
    """
    One file or directory belonging to an artifact.

    extension selects the transform applied while materializing:
      file: "" (verbatim copy), "gzip", "zip" (first entry)
      dir:  "zip", "tgz"
    Other values are kept as-is and rejected by prepare().
    """

    uri: str
    name: str = ""
    type: ItemType = "file"
    extension: str = ""
    size: int | None = None

    # Optional integrity check over the raw source bytes.
    sha256: str | None = None

    def __post_init__(self) -> None:
        if self.type not in ITEM_TYPES:
            raise MetadataError(f"Item type must be one of {ITEM_TYPES}, got {self.type!r}")
        validate_item_name(self.name)

    @classmethod
    def infer(
        cls,
        uri: str,
        *,
        key: str = "",
        name: str | None = None,
        type: str | None = None,
        extension: str | None = None,
        size: int | None = None,
        sha256: str | None = None,
    ) -> Item:
        """
        Build an Item, filling omitted fields from the URI:
          extension from the URI suffix
          type "dir" for zip/tgz, else "file"
          name: the mapping key for files, "" (artifact root) for dirs
        """
        ext = infer_extension(uri) if extension is None else extension
        item_type = type or ("dir" if ext in DIR_EXTENSIONS else "file")
        if name is None:
            name = "" if item_type == "dir" else key
        return cls(
            uri=uri,
            name=name,
            type=item_type,  # type: ignore[arg-type]
            extension=ext,
            size=size,
            sha256=sha256,
        )


@dataclass(frozen=True, slots=True)
class Artifact:
    """
    One concrete, resolvable version of a resource.

    Instead of pointing back at its Metadata, an artifact carries the two
    values it needs from it: the MRL (identity) and the metadata base URI
    (for resolving relative item URIs).
    """

    mrl: MRL
    version: str
    base_uri: str = ""
    properties: dict[str, str] = field(default_factory=dict, hash=False)
    files: dict[str, Item] = field(default_factory=dict, hash=False)
    name: str = ""

    def __post_init__(self) -> None:
        if not self.version or not self.version.strip():
            raise MetadataError(f"Artifact version must be non-empty ({self.mrl})")
        if not self.base_uri:
            object.__setattr__(self, "base_uri", f"{self.mrl.path}/")

    @property
    def resource_uri(self) -> str:
        """
        Stable cache key derived from identity alone.

        Layout:
          {mrl.path}/{version}[+{key}={value}...]

        Properties are appended in sorted key order. Every segment is
        percent-encoded, so distinct (mrl, version, properties) never share a
        path and no artifact directory nests inside another.
        """
        leaf = encode_segment(self.version)
        for key in sorted(self.properties):
            leaf += f"+{encode_segment(key)}={encode_segment(self.properties[key])}"
        return f"{self.mrl.path}/{leaf}"

    def matches(self, filter: Mapping[str, str] | None) -> bool:
        if not filter:
            return True
        return all(self.properties.get(k) == v for k, v in filter.items())

    def id(self) -> str:
        props = ",".join(f"{k}={self.properties[k]}" for k in sorted(self.properties))
        suffix = f" [{props}]" if props else ""
        return f"{self.mrl}@{self.version}{suffix}"


@dataclass(frozen=True, slots=True)
class Metadata:
    """
    Resolved description of a logical resource: where it lives and which
    artifacts are available for it (in document order).
    """

    mrl: MRL
    artifacts: tuple[Artifact, ...] = ()
    metadata_version: str = ""
    name: str = ""
    description: str = ""
    website: str | None = None

    def __post_init__(self) -> None:
        for a in self.artifacts:
            if a.mrl != self.mrl or a.base_uri != self.base_uri:
                raise MetadataError(
                    f"Artifact {a.id()} does not belong to {self.mrl} "
                    f"(base {a.base_uri!r}, expected {self.base_uri!r})"
                )

    @property
    def base_uri(self) -> str:
        """Location of the resource relative to the repository base URI."""
        return f"{self.mrl.path}/"

    def versions(self) -> list[str]:
        return [a.version for a in self.artifacts]
