from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any

from zoorepo.repository.cache import get_cache_root, metadata_cache_path
from zoorepo.repository.descriptors import Artifact
from zoorepo.repository.document import artifact_to_dict, metadata_to_dict
from zoorepo.repository.errors import ManifestError, RepositoryError
from zoorepo.repository.manifest import read_manifest
from zoorepo.repository.mrl import MRL
from zoorepo.repository.registry import RepositoryRegistry
from zoorepo.repository.repository import Repository
from zoorepo.repository.util import format_bytes


def parse_filters(pairs: list[str] | None) -> dict[str, str]:
    out: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Filter must look like key=value: {pair!r}")
        out[key.strip()] = value.strip()
    return out


def _open_repo(repo_ref: str, *, cache_dir: Path | None, refresh: bool = False) -> Repository:
    kwargs: dict[str, Any] = {}
    if cache_dir is not None:
        kwargs["cache_root"] = cache_dir
    if refresh:
        kwargs["metadata_ttl"] = 0
    return RepositoryRegistry().open(repo_ref, **kwargs)


def _resolve(
    repo_ref: str,
    mrl_text: str,
    *,
    version: str | None,
    filters: list[str] | None,
    cache_dir: Path | None,
    refresh: bool = False,
) -> tuple[Repository, Artifact]:
    mrl = MRL.parse(mrl_text)
    repo = _open_repo(repo_ref, cache_dir=cache_dir, refresh=refresh)
    artifact = repo.resolve(mrl, version, parse_filters(filters))
    return repo, artifact


def cache_dir_cmd(*, cache_dir: Path | None) -> int:
    root = cache_dir if cache_dir is not None else get_cache_root()
    root.mkdir(parents=True, exist_ok=True)
    print(str(root))
    return 0


def locate_cmd(repo_ref: str, mrl_text: str, *, cache_dir: Path | None, refresh: bool) -> int:
    try:
        mrl = MRL.parse(mrl_text)
        repo = _open_repo(repo_ref, cache_dir=cache_dir, refresh=refresh)
        metadata = repo.locate(mrl)
    except (RepositoryError, ValueError) as e:
        print(str(e))
        return 2

    info = metadata_to_dict(metadata)
    info.update({"mrl": str(mrl), "repository": repo.base_uri, "base_uri": metadata.base_uri})
    for entry, a in zip(info["artifacts"], metadata.artifacts):
        entry["resource_uri"] = a.resource_uri
    print(json.dumps(info, indent=2, sort_keys=True))
    return 0


def resolve_cmd(
    repo_ref: str,
    mrl_text: str,
    *,
    version: str | None,
    filters: list[str] | None,
    cache_dir: Path | None,
    refresh: bool,
) -> int:
    try:
        repo, artifact = _resolve(
            repo_ref,
            mrl_text,
            version=version,
            filters=filters,
            cache_dir=cache_dir,
            refresh=refresh,
        )
    except (RepositoryError, ValueError) as e:
        print(str(e))
        return 2

    prepared = repo.is_prepared(artifact)
    res_dir = repo.resource_dir(artifact)

    manifest_summary = None
    if prepared:
        try:
            m = read_manifest(res_dir)
        except ManifestError:
            m = None
        if m is not None:
            manifest_summary = {
                "prepared_at_utc": m.prepared_at_utc,
                "tooling": m.tooling,
                "items": [
                    {"key": i.key, "local_path": i.local_path, "sha256": i.sha256}
                    for i in m.items
                ],
            }

    sizes = [i.size for i in artifact.files.values() if i.size is not None]
    info = artifact_to_dict(artifact)
    info.update(
        {
            "mrl": str(artifact.mrl),
            "resource_uri": artifact.resource_uri,
            "prepared": prepared,
            "path": str(res_dir) if prepared else None,
            "manifest": manifest_summary,
            "total_size": format_bytes(sum(sizes) if sizes else None),
        }
    )
    print(json.dumps(info, indent=2, sort_keys=True))
    return 0


def prepare_cmd(
    repo_ref: str,
    mrl_text: str,
    *,
    version: str | None,
    filters: list[str] | None,
    cache_dir: Path | None,
    refresh: bool,
    progress: bool,
) -> int:
    try:
        repo, artifact = _resolve(
            repo_ref,
            mrl_text,
            version=version,
            filters=filters,
            cache_dir=cache_dir,
            refresh=refresh,
        )
        res_dir = repo.prepare(artifact, progress=progress)
    except (RepositoryError, ValueError) as e:
        print(str(e))
        return 2

    print(str(res_dir))
    return 0


def path_cmd(
    repo_ref: str,
    mrl_text: str,
    *,
    version: str | None,
    filters: list[str] | None,
    cache_dir: Path | None,
) -> int:
    try:
        repo, artifact = _resolve(
            repo_ref, mrl_text, version=version, filters=filters, cache_dir=cache_dir
        )
    except (RepositoryError, ValueError) as e:
        print(str(e))
        return 2

    if not repo.is_prepared(artifact):
        print(f"Artifact not prepared: {artifact.id()}")
        return 2

    print(str(repo.resource_dir(artifact)))
    return 0


def clean_cmd(
    repo_ref: str,
    mrl_text: str,
    *,
    version: str | None,
    filters: list[str] | None,
    all_versions: bool,
    yes: bool,
    cache_dir: Path | None,
) -> int:
    """
    Remove prepared artifact directories.

    --all works offline: it drops everything cached for the MRL, including
    the cached metadata document. Otherwise the artifact is resolved first.
    """
    cached_doc: Path | None = None
    mrl_root: Path | None = None
    try:
        if all_versions:
            mrl = MRL.parse(mrl_text)
            repo = _open_repo(repo_ref, cache_dir=cache_dir)
            cache_root = repo.get_cache_directory()
            mrl_root = cache_root.joinpath(*mrl.path.split("/"))
            targets = (
                sorted(p for p in mrl_root.iterdir() if p.is_dir())
                if mrl_root.exists()
                else []
            )
            doc = metadata_cache_path(cache_root, repo.base_uri, mrl)
            cached_doc = doc if doc.exists() else None
        else:
            repo, artifact = _resolve(
                repo_ref, mrl_text, version=version, filters=filters, cache_dir=cache_dir
            )
            res_dir = repo.resource_dir(artifact)
            targets = [res_dir] if res_dir.exists() else []
    except (RepositoryError, ValueError) as e:
        print(str(e))
        return 2

    if not targets and cached_doc is None:
        print(f"No prepared artifact found for: {mrl_text}")
        return 0

    print("The following will be removed:")
    for t in targets:
        print(f"  - {t}")
    if cached_doc is not None:
        print(f"  - {cached_doc} (cached metadata)")

    if not yes:
        resp = input("Proceed? [y/N]: ").strip().lower()
        if resp not in {"y", "yes"}:
            print("Aborted.")
            return 1

    for t in targets:
        shutil.rmtree(t)

    if mrl_root is not None and mrl_root.exists():
        shutil.rmtree(mrl_root)

    if cached_doc is not None:
        cached_doc.unlink(missing_ok=True)

    print(f"Removed {len(targets)} artifact directory(s).")
    return 0
