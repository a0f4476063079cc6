from __future__ import annotations

import os
import time
from typing import BinaryIO, Callable, Optional

from .constants import DEFAULT_TERMINATOR_BLOCKS, HEADER_SIZE, MAX_SIZE, ZERO_BLOCK
from .errors import ArchiveWriteError, HeaderFieldOverflowError
from .header import HeaderRecord, padding_for
from .reader import Entry


class ArchiveWriter:
    """Streaming writer that appends header, payload and padding for each entry."""
    def __init__(
        self,
        out_path: str,
        *,
        terminator_blocks: int = DEFAULT_TERMINATOR_BLOCKS,
        clock: Callable[[], float] = time.time,
    ):
        if terminator_blocks < 1:
            raise ValueError("terminator_blocks must be at least 1")
        self.out_path = out_path
        self.terminator_blocks = terminator_blocks
        self.clock = clock
        self.f: Optional[BinaryIO] = None
        self.finalized = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        try:
            self.f = open(self.out_path, "wb")
        except OSError as exc:
            raise ArchiveWriteError(f"cannot write archive {self.out_path}: {exc}") from exc

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def add_bytes(self, name: str, data: bytes, *, mtime: Optional[int] = None) -> Entry:
        """Write one entry: header, ``data`` verbatim, then NUL padding to the block boundary."""
        if self.f is None or self.finalized:
            raise RuntimeError("Archive not open")
        if len(data) > MAX_SIZE:
            raise HeaderFieldOverflowError(f"{name!r} is {len(data)} bytes; entries are limited to {MAX_SIZE}")
        stamp = int(self.clock()) if mtime is None else int(mtime)
        # Encode before writing so a bad name leaves the stream untouched
        hdr = HeaderRecord(name=name, size=len(data), mtime=stamp).pack()
        try:
            header_offset = self.f.tell()
            self.f.write(hdr)
            self.f.write(data)
            self.f.write(b"\x00" * padding_for(len(data)))
        except OSError as exc:
            raise ArchiveWriteError(f"failed writing {name!r} to {self.out_path}: {exc}") from exc
        e = Entry(name=name, size=len(data), mtime=stamp, payload_offset=header_offset + HEADER_SIZE)
        return e

    def add_file(self, arc_name: str, fs_path: str) -> Entry:
        """Add a filesystem file, keeping its modification time."""
        with open(fs_path, "rb") as rf:
            data = rf.read()
            mtime = int(os.fstat(rf.fileno()).st_mtime)
        return self.add_bytes(arc_name, data, mtime=mtime)

    def finalize(self):
        """Terminate the archive with zero blocks and close the stream."""
        if self.f is None or self.finalized:
            raise RuntimeError("Archive not open")
        try:
            self.f.write(ZERO_BLOCK * self.terminator_blocks)
            self.f.flush()
        except OSError as exc:
            raise ArchiveWriteError(f"failed finishing {self.out_path}: {exc}") from exc
        self.finalized = True
        self.close()


def begin_write(out_path: str, *, terminator_blocks: int = DEFAULT_TERMINATOR_BLOCKS) -> ArchiveWriter:
    writer = ArchiveWriter(out_path, terminator_blocks=terminator_blocks)
    writer.open()
    return writer
