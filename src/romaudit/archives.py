# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Archive reader exposing zip files and plain directories as named byte streams."""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from collections.abc import Mapping, Sequence
from functools import partial
from pathlib import Path
from typing import BinaryIO, Final, cast

from .errors import ArchiveReadError
from .interfaces.archive import ArchiveEntry, ArchiveReader

LOGGER = logging.getLogger(__name__)

ZIP_SUFFIX: Final[str] = ".zip"


class _ZipMemberStream(io.RawIOBase):
    """Read-only stream over one zip member that owns its ``ZipFile`` handle."""

    def __init__(self, path: Path, member: str) -> None:
        super().__init__()
        self._label = f"{path.name}/{member}"
        self._archive: zipfile.ZipFile | None = None
        self._stream: BinaryIO | None = None
        try:
            self._archive = zipfile.ZipFile(path)
            self._stream = cast(BinaryIO, self._archive.open(member))
        except (KeyError, zipfile.BadZipFile, RuntimeError) as exc:
            self.close()
            raise ArchiveReadError(f"cannot open '{self._label}': {exc}", entry=member) from exc

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        if self._stream is None:
            raise ValueError("read from closed member stream")
        try:
            data = self._stream.read(len(buffer))
        except (zipfile.BadZipFile, zlib.error, EOFError) as exc:
            raise ArchiveReadError(f"corrupt member '{self._label}': {exc}") from exc
        size = len(data)
        buffer[:size] = data
        return size

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        if self._archive is not None:
            self._archive.close()
            self._archive = None
        super().close()


def _open_zip_member(path: Path, member: str) -> BinaryIO:
    return cast(BinaryIO, _ZipMemberStream(path, member))


def _open_file(path: Path) -> BinaryIO:
    return path.open("rb")


class DirectoryArchiveReader(ArchiveReader):
    """Expose ``<root>/<name>.zip`` files and ``<root>/<name>/`` directories as archives.

    When both forms exist for one name the zip file wins.
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        """Return the directory holding the archives."""

        return self._root

    def list_archives(self) -> Sequence[str]:
        if not self._root.is_dir():
            return ()
        names: set[str] = set()
        for child in self._root.iterdir():
            if child.is_dir():
                names.add(child.name)
            elif child.is_file() and child.suffix.lower() == ZIP_SUFFIX:
                names.add(child.stem)
        return tuple(sorted(names))

    def read_archive(self, name: str) -> Sequence[ArchiveEntry] | None:
        zip_path = self._root / f"{name}{ZIP_SUFFIX}"
        if zip_path.is_file():
            return self._read_zip(name, zip_path)
        folder = self._root / name
        if folder.is_dir():
            return self._read_directory(name, folder)
        return None

    @staticmethod
    def _read_zip(name: str, path: Path) -> tuple[ArchiveEntry, ...]:
        try:
            stamp = path.stat().st_mtime_ns
            with zipfile.ZipFile(path) as archive:
                members = [info for info in archive.infolist() if not info.is_dir()]
        except (OSError, zipfile.BadZipFile) as exc:
            raise ArchiveReadError(f"cannot read archive '{path}': {exc}", archive=name) from exc
        entries = [
            ArchiveEntry(
                name=info.filename,
                opener=partial(_open_zip_member, path, info.filename),
                identity=(str(path), stamp, info.filename, info.file_size, info.CRC),
                size=info.file_size,
            )
            for info in members
        ]
        LOGGER.debug("listed %d members in %s", len(entries), path)
        return tuple(sorted(entries, key=lambda entry: entry.name))

    @staticmethod
    def _read_directory(name: str, folder: Path) -> tuple[ArchiveEntry, ...]:
        entries: list[ArchiveEntry] = []
        try:
            for path in sorted(folder.rglob("*")):
                if not path.is_file():
                    continue
                stat = path.stat()
                entries.append(
                    ArchiveEntry(
                        name=path.relative_to(folder).as_posix(),
                        opener=partial(_open_file, path),
                        identity=(str(path), stat.st_mtime_ns, stat.st_size),
                        size=stat.st_size,
                    ),
                )
        except OSError as exc:
            raise ArchiveReadError(f"cannot read directory '{folder}': {exc}", archive=name) from exc
        return tuple(entries)


class MemoryArchiveReader(ArchiveReader):
    """Serve archives held in memory as ``{archive: {entry: bytes}}``.

    Entry identities are stable per ``(archive, entry)`` so repeated reads share
    hash memoisation.
    """

    def __init__(self, archives: Mapping[str, Mapping[str, bytes]] | None = None) -> None:
        self._archives: dict[str, tuple[ArchiveEntry, ...]] = {
            name: tuple(
                ArchiveEntry.from_bytes(entry, data, identity=("memory", id(self), name, entry))
                for entry, data in sorted(members.items())
            )
            for name, members in (archives or {}).items()
        }

    def list_archives(self) -> Sequence[str]:
        return tuple(sorted(self._archives))

    def read_archive(self, name: str) -> Sequence[ArchiveEntry] | None:
        return self._archives.get(name)


__all__ = ["DirectoryArchiveReader", "MemoryArchiveReader", "ZIP_SUFFIX"]
