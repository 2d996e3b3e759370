"""Blob containers that settings stores persist into.

A container is a flat namespace of named binary entries. The store only needs
existence checks, a readable stream and a writable stream per entry.

Design goals:
  * Atomic writes (a failed save never leaves a half-written blob)
  * No knowledge of the settings format
"""

from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, Protocol


logger = logging.getLogger(__name__)


class WritableBlob(Protocol):
    def write(self, data: bytes) -> int: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...

    def __enter__(self) -> "WritableBlob": ...

    def __exit__(self, exc_type, exc, tb) -> None: ...


class Container(Protocol):
    """Container contract required by :class:`~isolated_settings.store.SettingsStore`."""

    def exists(self, name: str) -> bool: ...

    def open_read(self, name: str) -> BinaryIO: ...

    def create_or_truncate(self, name: str) -> WritableBlob: ...


class _AtomicFileWriter:
    """Writes into ``<name>.tmp`` and replaces ``<name>`` on a clean close."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._tmp = path.with_name(path.name + ".tmp")
        self._fh = open(self._tmp, "wb")

    @property
    def closed(self) -> bool:
        return self._fh.closed

    def write(self, data: bytes) -> int:
        return self._fh.write(data)

    def flush(self) -> None:
        self._fh.flush()

    def close(self) -> None:
        if self._fh.closed:
            return
        self._fh.close()
        os.replace(self._tmp, self._path)
        logger.debug("Committed %s", self._path)

    def discard(self) -> None:
        if not self._fh.closed:
            self._fh.close()
        try:
            self._tmp.unlink()
        except FileNotFoundError:
            pass
        logger.debug("Discarded partial write of %s", self._path)

    def __enter__(self) -> "_AtomicFileWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.discard()


class DirectoryContainer:
    """Container backed by a directory; each entry is one file."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root).expanduser()

    def __repr__(self) -> str:
        return f"DirectoryContainer({str(self.root)!r})"

    def path(self, name: str) -> Path:
        return self.root / name

    def exists(self, name: str) -> bool:
        return self.path(name).is_file()

    def open_read(self, name: str) -> BinaryIO:
        return open(self.path(name), "rb")

    def create_or_truncate(self, name: str) -> _AtomicFileWriter:
        self.root.mkdir(parents=True, exist_ok=True)
        return _AtomicFileWriter(self.path(name))

    def delete(self, name: str) -> bool:
        try:
            self.path(name).unlink()
        except FileNotFoundError:
            return False
        return True


class _MemoryWriter(io.BytesIO):
    def __init__(self, blobs: Dict[str, bytes], name: str) -> None:
        super().__init__()
        self._blobs = blobs
        self._name = name
        self._discarded = False

    def close(self) -> None:
        if not self.closed and not self._discarded:
            self._blobs[self._name] = self.getvalue()
        super().close()

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self._discarded = True
        self.close()


class MemoryContainer:
    """In-process container; blobs live only as long as the object."""

    def __init__(self) -> None:
        self._blobs: Dict[str, bytes] = {}

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._blobs))

    def exists(self, name: str) -> bool:
        return name in self._blobs

    def open_read(self, name: str) -> BinaryIO:
        try:
            return io.BytesIO(self._blobs[name])
        except KeyError:
            raise FileNotFoundError(name) from None

    def create_or_truncate(self, name: str) -> _MemoryWriter:
        return _MemoryWriter(self._blobs, name)

    def read_bytes(self, name: str) -> bytes:
        with self.open_read(name) as fh:
            return fh.read()

    def write_bytes(self, name: str, data: bytes) -> None:
        self._blobs[name] = bytes(data)

    def delete(self, name: str) -> bool:
        return self._blobs.pop(name, None) is not None
