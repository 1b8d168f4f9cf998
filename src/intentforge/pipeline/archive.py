"""Download archives of generated projects.

Archives are built from the GeneratedFile list rather than the directory on
disk, so they contain exactly one entry per generated file and nothing else
(no node_modules or build output). Entry timestamps are fixed, which makes
the archive bytes a pure function of the file list.
"""

from __future__ import annotations

import gzip
import io
import os
import tarfile
import tempfile
import zipfile
from collections.abc import Sequence
from enum import Enum
from pathlib import Path

from intentforge.models.project import GeneratedFile

_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


class ArchiveFormat(str, Enum):
    ZIP = "zip"
    TAR = "tar"

    @property
    def extension(self) -> str:
        return "zip" if self is ArchiveFormat.ZIP else "tar.gz"

    @property
    def media_type(self) -> str:
        return "application/zip" if self is ArchiveFormat.ZIP else "application/gzip"


def build_zip(files: Sequence[GeneratedFile]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for file in files:
            info = zipfile.ZipInfo(file.path, date_time=_ZIP_EPOCH)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            archive.writestr(info, file.content.encode("utf-8"))
    return buffer.getvalue()


def build_tar(files: Sequence[GeneratedFile]) -> bytes:
    """Gzip-compressed tar with one regular-file member per file."""
    buffer = io.BytesIO()
    # mtime=0 keeps the gzip header stable across runs
    with gzip.GzipFile(fileobj=buffer, mode="wb", mtime=0) as compressed, tarfile.open(
        fileobj=compressed, mode="w"
    ) as archive:
        for file in files:
            data = file.content.encode("utf-8")
            info = tarfile.TarInfo(name=file.path)
            info.size = len(data)
            info.mode = 0o644
            info.mtime = 0
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def build_archive(files: Sequence[GeneratedFile], fmt: ArchiveFormat) -> bytes:
    """Build an archive in the requested format."""
    if fmt is ArchiveFormat.ZIP:
        return build_zip(files)
    return build_tar(files)


def write_archive(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` without exposing a partially written file.

    The bytes go to a temporary file in the same directory, which is then
    renamed over ``path``. Readers holding the old file keep reading it.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
    ) as f:
        f.write(data)
    try:
        os.replace(f.name, path)
    except OSError:
        Path(f.name).unlink(missing_ok=True)
        raise
