from __future__ import annotations

import gzip
import shutil
import tarfile
import tempfile
import zipfile
import zlib
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from .errors import ArchiveExtractError

COPY_BUFSIZE = 1024 * 1024

_FORMAT_ERRORS = (
    zipfile.BadZipFile,
    tarfile.TarError,
    gzip.BadGzipFile,
    zlib.error,
    EOFError,
)


@contextmanager
def _format_errors(kind: str) -> Iterator[None]:
    try:
        yield
    except tarfile.FilterError as e:
        raise ArchiveExtractError(f"Refusing unsafe {kind} entry: {e}") from e
    except _FORMAT_ERRORS as e:
        raise ArchiveExtractError(f"Corrupt or truncated {kind} stream: {e}") from e


@contextmanager
def _spooled(stream: BinaryIO) -> Iterator[BinaryIO]:
    # zipfile needs a seekable file; network streams are not.
    with tempfile.TemporaryFile() as tmp:
        shutil.copyfileobj(stream, tmp, length=COPY_BUFSIZE)
        tmp.seek(0)
        yield tmp


def _is_safe_member(name: str) -> bool:
    p = PurePosixPath(name.replace("\\", "/"))
    return not p.is_absolute() and ".." not in p.parts and not (p.parts and ":" in p.parts[0])


def copy_stream(src: BinaryIO, dest: BinaryIO) -> None:
    """Verbatim copy."""
    shutil.copyfileobj(src, dest, length=COPY_BUFSIZE)


def gunzip(src: BinaryIO, dest: BinaryIO) -> None:
    """Decompress a single gzip stream."""
    with _format_errors("gzip"), gzip.GzipFile(fileobj=src, mode="rb") as gz:
        shutil.copyfileobj(gz, dest, length=COPY_BUFSIZE)


def extract_first_zip_entry(src: BinaryIO, dest: BinaryIO) -> None:
    """Copy the first file entry of a zip archive (directory entries are skipped)."""
    with _format_errors("zip"), _spooled(src) as tmp, zipfile.ZipFile(tmp) as zf:
        info = next((i for i in zf.infolist() if not i.is_dir()), None)
        if info is None:
            raise ArchiveExtractError("zip archive contains no file entries")
        with zf.open(info) as entry:
            shutil.copyfileobj(entry, dest, length=COPY_BUFSIZE)


def extract_zip(src: BinaryIO, target: Path) -> None:
    """Extract every entry of a zip archive under target."""
    with _format_errors("zip"), _spooled(src) as tmp, zipfile.ZipFile(tmp) as zf:
        unsafe = [n for n in zf.namelist() if not _is_safe_member(n)]
        if unsafe:
            raise ArchiveExtractError(f"Refusing zip entries outside the target: {unsafe[:5]}")
        zf.extractall(target)


def extract_tgz(src: BinaryIO, target: Path) -> None:
    """
    Extract every non-directory entry of a gzip-compressed tar stream.

    Read sequentially ("r|gz"), so src does not need to be seekable. The
    "data" filter rejects absolute paths, parent traversal and links leaving
    target.
    """
    with _format_errors("tgz"), tarfile.open(fileobj=src, mode="r|gz") as tar:
        for member in tar:
            if member.isdir():
                continue
            tar.extract(member, target, filter="data")


FileTransform = Callable[[BinaryIO, BinaryIO], None]
DirExtractor = Callable[[BinaryIO, Path], None]

# Keyed by Item.extension.
FILE_TRANSFORMS: dict[str, FileTransform] = {
    "": copy_stream,
    "gzip": gunzip,
    "zip": extract_first_zip_entry,
}

DIR_EXTRACTORS: dict[str, DirExtractor] = {
    "zip": extract_zip,
    "tgz": extract_tgz,
}
