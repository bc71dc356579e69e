from __future__ import annotations

import re
from collections.abc import Mapping

from .descriptors import Artifact, Metadata
from .errors import ArtifactNotFoundError

VersionKey = tuple[tuple[int, int, str], ...]

_TOKEN_RE = re.compile(r"\d+|[a-z]+")

# Markers ranking below the plain release they qualify.
_PRE_RELEASE = {
    "dev": 0,
    "a": 1,
    "alpha": 1,
    "b": 2,
    "beta": 2,
    "c": 3,
    "pre": 3,
    "preview": 3,
    "rc": 3,
    "snapshot": 4,
}

_END = (1, 0, "")


def version_key(version: str) -> VersionKey:
    """
    Sort key for loosely formatted version strings.

      - numeric parts compare as integers ("1.10" > "1.9")
      - trailing zeros of the release part are ignored ("1.0" == "1.0.0")
      - dev/alpha/beta/rc/snapshot rank below the release ("1.0rc1" < "1.0")
      - any other word ranks above the release but below a further number
    """
    tokens = _TOKEN_RE.findall(version.strip().lower())

    release: list[int] = []
    while tokens and tokens[0].isdigit():
        release.append(int(tokens.pop(0)))
    while release and release[-1] == 0:
        release.pop()

    key: list[tuple[int, int, str]] = [(3, n, "") for n in release]
    for tok in tokens:
        if tok.isdigit():
            key.append((3, int(tok), ""))
        elif tok in _PRE_RELEASE:
            key.append((0, _PRE_RELEASE[tok], tok))
        else:
            key.append((2, 0, tok))
    key.append(_END)
    return tuple(key)


def select_artifact(
    metadata: Metadata,
    version: str | None = None,
    filter: Mapping[str, str] | None = None,
) -> Artifact:
    """
    Pick exactly one artifact of metadata.

    Eligible: version equal to `version` (when given) and every `filter`
    entry present among the artifact's properties.

    Preference: highest version_key(). Artifacts with equal keys are ordered
    by their position in the metadata document; the last one wins, as
    documents are appended to when artifacts are published.
    """
    candidates = [
        (i, a)
        for i, a in enumerate(metadata.artifacts)
        if (version is None or a.version == version) and a.matches(filter)
    ]
    if not candidates:
        wanted = f"version={version!r}" if version is not None else "any version"
        if filter:
            wanted += f", filter={dict(filter)!r}"
        available = ", ".join(metadata.versions()) or "none"
        raise ArtifactNotFoundError(
            f"No artifact of {metadata.mrl} matches {wanted}. Available versions: {available}"
        )

    _, best = max(candidates, key=lambda c: (version_key(c[1].version), c[0]))
    return best
