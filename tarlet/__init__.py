"""
tarlet — a minimal reader/writer for USTAR tar archives.

Features:

- Header codec for the fixed 512-byte record: octal fields, NUL-padded names,
  and the header checksum (validated on read).
- ArchiveReader: one sequential pass builds an ordered entry index; payloads
  are read on demand by name.
- ArchiveWriter: header, payload and block padding per entry, terminated by
  zero blocks readable by other tar tools.
- Operations composed from both: rename (in memory), export, delete, append,
  extract, plus a CLI that rewrites archives through a temp-file swap.

Compression, GNU/PAX extensions and ownership metadata are out of scope.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "header",
    "reader",
    "writer",
    "ops",
    "staging",
]

# Programmatic API: tarlet.reader.ArchiveReader, tarlet.writer.ArchiveWriter and
# the helpers in tarlet.ops; the CLI functions in tarlet.cli (cmd_list, cmd_extract, ...)
# take normal parameters.
