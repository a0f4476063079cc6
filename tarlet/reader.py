from __future__ import annotations

import os
from dataclasses import dataclass
from typing import BinaryIO, List, Optional, Union

from .constants import HEADER_SIZE
from .errors import (
    ArchiveOpenError,
    ChecksumMismatchError,
    EmptyArchiveError,
    EntryNotFoundError,
    MalformedHeaderError,
    TarletError,
    TruncatedArchiveError,
)
from .header import HeaderRecord, is_zero_block, round_up, verify_checksum


@dataclass
class Entry:
    name: str
    size: int = 0
    mtime: int = 0
    payload_offset: int = 0

    @property
    def header_offset(self) -> int:
        return self.payload_offset - HEADER_SIZE


class ArchiveReader:
    """Index of a tar archive built by one sequential pass over its headers.

    The reader is a snapshot: payloads are fetched lazily from the backing
    file at each entry's ``payload_offset``, so the file must not change
    while the reader is open.
    """
    def __init__(self, path: str, *, strict: bool = True, allow_empty: bool = False):
        self.path = path
        self.strict = strict
        self.allow_empty = allow_empty
        self.f: Optional[BinaryIO] = None
        self.entries: List[Entry] = []
        self.file_size: int = 0

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        try:
            self.f = open(self.path, "rb")
            self.file_size = os.fstat(self.f.fileno()).st_size
        except OSError as exc:
            self.close()
            raise ArchiveOpenError(f"cannot open archive {self.path}: {exc}") from exc
        try:
            self._load_entries()
        except (TarletError, OSError):
            # Ensure file handle is closed on failure to avoid leaks
            self.close()
            raise

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def list(self) -> List[Entry]:
        return self.entries

    def names(self) -> List[str]:
        return [e.name for e in self.entries]

    def find(self, name: str) -> Optional[Entry]:
        """Return the first entry called ``name``; later duplicates are shadowed."""
        for e in self.entries:
            if e.name == name:
                return e
        return None

    def read(self, name: str, *, null_terminated: bool = False) -> bytes:
        entry = self._require(name)
        data = self.read_entry(entry)
        if null_terminated:
            data += b"\x00"
        return data

    def read_into(self, name: str, buffer: Union[bytearray, memoryview], *, null_terminated: bool = False) -> int:
        """Copy the payload of ``name`` into ``buffer``; returns the number of bytes written."""
        entry = self._require(name)
        needed = entry.size + (1 if null_terminated else 0)
        if len(buffer) < needed:
            raise ValueError(f"buffer of {len(buffer)} bytes cannot hold {needed} bytes")
        view = memoryview(buffer)
        view[: entry.size] = self.read_entry(entry)
        if null_terminated:
            view[entry.size] = 0
        return needed

    def read_entry(self, entry: Entry) -> bytes:
        if self.f is None:
            raise RuntimeError("Archive not open")
        self.f.seek(entry.payload_offset)
        data = self.f.read(entry.size)
        if len(data) != entry.size:
            raise TruncatedArchiveError(f"payload of {entry.name!r} ends early ({len(data)}/{entry.size} bytes)")
        return data

    def extract(self, name: str, out_path: str) -> int:
        data = self.read(name)
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "wb") as wf:
            wf.write(data)
        return len(data)

    # internals
    def _require(self, name: str) -> Entry:
        entry = self.find(name)
        if entry is None:
            raise EntryNotFoundError(f"{name!r} not found in {self.path}")
        return entry

    def _load_entries(self):
        """
        Walks the header chain from the start of the file.

        Each header is followed by its payload padded to a whole number of
        blocks, so the next header sits at ``payload_offset +
        round_up(size)``. The walk ends at the first all-zero block or at a
        clean end of file. An empty file or a leading zero block means the
        archive has no entries, which is an error unless ``allow_empty``.
        """
        assert self.f is not None
        self.entries = []
        offset = 0
        while True:
            self.f.seek(offset)
            raw = self.f.read(HEADER_SIZE)
            if not raw or is_zero_block(raw):
                break
            if len(raw) != HEADER_SIZE:
                if offset == 0:
                    raise MalformedHeaderError(f"{self.path} is too short to hold a header ({len(raw)} bytes)")
                raise TruncatedArchiveError(f"partial header at offset {offset} in {self.path}")
            if self.strict and not verify_checksum(raw):
                raise ChecksumMismatchError(f"header checksum mismatch at offset {offset} in {self.path}")
            hdr = HeaderRecord.unpack(raw, strict=self.strict)
            payload_offset = offset + HEADER_SIZE
            if payload_offset + hdr.size > self.file_size:
                raise TruncatedArchiveError(
                    f"entry {hdr.name!r} declares {hdr.size} bytes but the archive ends at {self.file_size}"
                )
            self.entries.append(Entry(name=hdr.name, size=hdr.size, mtime=hdr.mtime, payload_offset=payload_offset))
            offset = payload_offset + round_up(hdr.size)
        if not self.entries and not self.allow_empty:
            raise EmptyArchiveError(f"{self.path} contains no entries")


def open_archive(path: str, *, strict: bool = True, allow_empty: bool = False) -> ArchiveReader:
    reader = ArchiveReader(path, strict=strict, allow_empty=allow_empty)
    reader.open()
    return reader
