from __future__ import annotations

import argparse
import logging
from pathlib import Path


def safe_print(msg: str) -> None:
    # Avoid UnicodeEncodeError on Windows CI/console encodings
    try:
        print(msg)
    except UnicodeEncodeError:
        print(msg.encode("utf-8", errors="replace").decode("utf-8"))


def _add_target_args(p: argparse.ArgumentParser, *, select: bool = True) -> None:
    p.add_argument("repo", help="Repository name (see ~/.zoorepo/repositories.json), path or URL")
    p.add_argument("mrl", help="Resource identifier: <category>/<group>/<name>")
    p.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Cache root (default: $ZOOREPO_CACHE_DIR/artifacts or the user cache dir)",
    )
    if select:
        p.add_argument(
            "--version",
            dest="artifact_version",
            default=None,
            help="Exact artifact version (default: highest available)",
        )
        p.add_argument(
            "--filter",
            dest="filters",
            action="append",
            default=None,
            metavar="KEY=VALUE",
            help="Required artifact property (repeatable)",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zoorepo",
        description="Resolve resource identifiers to versioned artifacts and cache them locally.",
    )
    parser.add_argument("--version", action="store_true", help="Print version")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress (-v info, -vv debug)",
    )

    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("cache-dir", help="Print the cache root")
    p.add_argument("--cache-dir", type=Path, default=None)

    p = sub.add_parser("locate", help="List the artifacts available for an MRL")
    _add_target_args(p, select=False)
    p.add_argument("--refresh", action="store_true", help="Ignore cached remote metadata")

    p = sub.add_parser("resolve", help="Show the artifact an MRL resolves to")
    _add_target_args(p)
    p.add_argument("--refresh", action="store_true", help="Ignore cached remote metadata")

    p = sub.add_parser("prepare", help="Download and extract an artifact into the cache")
    _add_target_args(p)
    p.add_argument("--refresh", action="store_true", help="Ignore cached remote metadata")
    p.add_argument("--progress", action="store_true", help="Show a progress bar")

    p = sub.add_parser("path", help="Print the cache directory of a prepared artifact")
    _add_target_args(p)

    p = sub.add_parser("clean", help="Remove prepared artifacts from the cache")
    _add_target_args(p)
    p.add_argument("--all", dest="all_versions", action="store_true", help="Every cached version")
    p.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    return parser


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        try:
            from importlib.metadata import version

            safe_print(f"zoorepo {version('zoorepo')}")
        except Exception:
            from zoorepo import __version__

            safe_print(f"zoorepo {__version__}")
        return 0

    if not args.command:
        parser.print_help()
        return 0

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )

    from zoorepo.repository import commands

    if args.command == "cache-dir":
        return commands.cache_dir_cmd(cache_dir=args.cache_dir)

    if args.command == "locate":
        return commands.locate_cmd(
            args.repo, args.mrl, cache_dir=args.cache_dir, refresh=args.refresh
        )

    selection = {
        "version": args.artifact_version,
        "filters": args.filters,
        "cache_dir": args.cache_dir,
    }

    if args.command == "resolve":
        return commands.resolve_cmd(args.repo, args.mrl, refresh=args.refresh, **selection)

    if args.command == "prepare":
        return commands.prepare_cmd(
            args.repo, args.mrl, refresh=args.refresh, progress=args.progress, **selection
        )

    if args.command == "path":
        return commands.path_cmd(args.repo, args.mrl, **selection)

    if args.command == "clean":
        return commands.clean_cmd(
            args.repo, args.mrl, all_versions=args.all_versions, yes=args.yes, **selection
        )

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
