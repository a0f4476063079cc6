from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .constants import DEFAULT_TERMINATOR_BLOCKS
from .header import truncate_name
from .pathutil import norm_path
from .reader import ArchiveReader, Entry
from .writer import ArchiveWriter


@dataclass
class AppendResult:
    written: List[Entry] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)  # (fs_path, reason)


def rename_entry(reader: ArchiveReader, old_name: str, new_name: str) -> bool:
    """Rename the first entry called ``old_name`` in memory only.

    The backing file is not touched; the new name shows up in the next
    export. Names longer than the header field are cut to fit. Returns
    False, changing nothing, when ``old_name`` is not in the archive.
    """
    entry = reader.find(old_name)
    if entry is None:
        return False
    entry.name = truncate_name(new_name)
    return True


def export_archive(
    reader: ArchiveReader,
    dest_path: str,
    *,
    exclude: Iterable[str] = (),
    terminator_blocks: int = DEFAULT_TERMINATOR_BLOCKS,
) -> int:
    """
    Writes every entry of ``reader`` to a new archive at ``dest_path``, in
    order, under its current name and with its original mtime. Entries whose
    name is in ``exclude`` are left out. Returns the number of entries
    written.

    Payloads are read lazily from the source while the destination is being
    written, so ``dest_path`` must not be the reader's own backing file; use
    ``staging.staged_output`` to rewrite an archive in place.
    """
    skip = set(exclude)
    written = 0
    with ArchiveWriter(dest_path, terminator_blocks=terminator_blocks) as writer:
        for e in reader.list():
            if e.name in skip:
                continue
            writer.add_bytes(e.name, reader.read_entry(e), mtime=e.mtime)
            written += 1
        writer.finalize()
    return written


def extract_entry(reader: ArchiveReader, name: str, dest_path: str) -> int:
    return reader.extract(name, dest_path)


def delete_entries(reader: ArchiveReader, dest_path: str, names: Iterable[str]) -> int:
    """Export ``reader`` to ``dest_path`` without any entry named in ``names`` (duplicates included)."""
    return export_archive(reader, dest_path, exclude=names)


def append_files(
    dest_path: str,
    fs_paths: Iterable[str],
    *,
    source: Optional[ArchiveReader] = None,
    terminator_blocks: int = DEFAULT_TERMINATOR_BLOCKS,
) -> AppendResult:
    """
    Writes a new archive holding the entries of ``source`` (when given)
    followed by each file in ``fs_paths``, named by its normalized path.

    Files that cannot be read or named are recorded in ``skipped`` and the
    rest are still written.
    """
    result = AppendResult()
    with ArchiveWriter(dest_path, terminator_blocks=terminator_blocks) as writer:
        if source is not None:
            for e in source.list():
                result.written.append(writer.add_bytes(e.name, source.read_entry(e), mtime=e.mtime))
        for fs_path in fs_paths:
            try:
                result.written.append(writer.add_file(norm_path(fs_path), fs_path))
            except (OSError, ValueError) as exc:
                result.skipped.append((fs_path, str(exc)))
        writer.finalize()
    return result
