from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Tuple

from .constants import (
    BLOCK_SIZE,
    CHECKSUM_FIELD_LEN,
    CHECKSUM_OFFSET,
    CHECKSUM_SEED,
    DEFAULT_GID,
    DEFAULT_MODE,
    DEFAULT_UID,
    HEADER_FORMAT,
    HEADER_SIZE,
    ID_FIELD_LEN,
    LINKNAME_FIELD_LEN,
    MODE_FIELD_LEN,
    MTIME_FIELD_LEN,
    NAME_ENCODING,
    NAME_ERRORS,
    NAME_FIELD_LEN,
    SIZE_FIELD_LEN,
    TYPE_REGULAR,
    ZERO_BLOCK,
)
from .errors import HeaderFieldOverflowError, MalformedHeaderError


# Header record (fixed 512 bytes)
# struct: 100s 8s 8s 8s 12s 12s 8s c 100s 255s
#  - name, mode, uid, gid, size, mtime, chksum, typeflag, linkname, reserved
_HEADER_STRUCT = struct.Struct(HEADER_FORMAT)
# Every byte except the checksum field, summed both ways
_UNSIGNED_SUM = struct.Struct("148B8x356B")
_SIGNED_SUM = struct.Struct("148b8x356b")

_OCTAL_DIGITS = b"01234567"


def round_up(n: int, multiple: int = BLOCK_SIZE) -> int:
    """Round ``n`` up to the next multiple of ``multiple`` (unchanged if already aligned)."""
    if multiple == 0:
        return n
    remainder = n % multiple
    if remainder == 0:
        return n
    return n + multiple - remainder


def padding_for(n: int) -> int:
    return round_up(n) - n


def is_zero_block(raw: bytes) -> bool:
    return raw == ZERO_BLOCK


def compute_checksum(raw: bytes) -> Tuple[int, int]:
    """Return the (unsigned, signed) sums of a header record.

    The checksum field itself is skipped and replaced by the value of eight
    ASCII spaces, so the result does not depend on what the field holds.
    Old tar implementations summed signed chars; both variants are returned
    so readers can accept either.
    """
    if len(raw) != HEADER_SIZE:
        raise MalformedHeaderError(f"header record must be {HEADER_SIZE} bytes, got {len(raw)}")
    unsigned = CHECKSUM_SEED + sum(_UNSIGNED_SUM.unpack(raw))
    signed = CHECKSUM_SEED + sum(_SIGNED_SUM.unpack(raw))
    return unsigned, signed


def verify_checksum(raw: bytes) -> bool:
    stored = _parse_octal(raw[CHECKSUM_OFFSET:CHECKSUM_OFFSET + CHECKSUM_FIELD_LEN], strict=False)
    return stored in compute_checksum(raw)


def decode_name(field: bytes) -> str:
    return field.split(b"\x00", 1)[0].decode(NAME_ENCODING, NAME_ERRORS)


def encode_name(name: str, width: int = NAME_FIELD_LEN, what: str = "name") -> bytes:
    raw = name.encode(NAME_ENCODING, NAME_ERRORS)
    if len(raw) > width:
        raise HeaderFieldOverflowError(f"{what} is {len(raw)} bytes; the field holds at most {width}: {name!r}")
    return raw


def truncate_name(name: str, width: int = NAME_FIELD_LEN) -> str:
    """Cut ``name`` to the bytes that fit in a name field.

    The cut never splits a multi-byte UTF-8 character; a character that
    straddles the limit is dropped whole.
    """
    raw = name.encode(NAME_ENCODING, NAME_ERRORS)
    if len(raw) <= width:
        return name
    cut = raw[:width]
    lead = len(cut)
    while lead > 0 and len(cut) - lead < 4 and (cut[lead - 1] & 0xC0) == 0x80:
        lead -= 1
    if lead > 0 and cut[lead - 1] >= 0xC0:
        first = cut[lead - 1]
        need = 2 if first < 0xE0 else 3 if first < 0xF0 else 4
        if len(cut) - (lead - 1) < need:
            cut = cut[:lead - 1]
    return cut.decode(NAME_ENCODING, NAME_ERRORS)


def _parse_octal(field: bytes, strict: bool, what: str = "numeric field") -> int:
    text = field.split(b"\x00", 1)[0].strip(b" ")
    if not text:
        return 0
    if text.translate(None, _OCTAL_DIGITS):
        if strict:
            raise MalformedHeaderError(f"invalid octal in {what}: {field!r}")
        return 0
    return int(text, 8)


def _format_octal(value: int, width: int, what: str) -> bytes:
    digits = width - 1
    if not 0 <= value < 8 ** digits:
        raise HeaderFieldOverflowError(f"{what} {value} does not fit in {digits} octal digits")
    return ("%0*o" % (digits, value)).encode("ascii") + b"\x00"


def _format_checksum(value: int) -> bytes:
    # 6 digits, NUL, space
    return ("%06o" % value).encode("ascii") + b"\x00 "


@dataclass
class HeaderRecord:
    name: str
    size: int = 0
    mtime: int = 0
    mode: int = DEFAULT_MODE
    uid: int = DEFAULT_UID
    gid: int = DEFAULT_GID
    typeflag: bytes = TYPE_REGULAR
    linkname: str = ""
    checksum: int = 0

    def pack(self) -> bytes:
        pre = _HEADER_STRUCT.pack(
            encode_name(self.name),
            _format_octal(self.mode, MODE_FIELD_LEN, "mode"),
            _format_octal(self.uid, ID_FIELD_LEN, "uid"),
            _format_octal(self.gid, ID_FIELD_LEN, "gid"),
            _format_octal(self.size, SIZE_FIELD_LEN, "size"),
            _format_octal(self.mtime, MTIME_FIELD_LEN, "mtime"),
            b"\x00" * CHECKSUM_FIELD_LEN,  # placeholder, filled below
            self.typeflag,
            encode_name(self.linkname, LINKNAME_FIELD_LEN, "linkname"),
            b"",
        )
        chksum, _signed = compute_checksum(pre)
        return pre[:CHECKSUM_OFFSET] + _format_checksum(chksum) + pre[CHECKSUM_OFFSET + CHECKSUM_FIELD_LEN:]

    @classmethod
    def unpack(cls, raw: bytes, *, strict: bool = True) -> "HeaderRecord":
        """Decode a 512-byte header record.

        With ``strict`` unset, numeric fields that are not valid octal
        decode to 0 instead of raising ``MalformedHeaderError``.
        """
        if len(raw) != HEADER_SIZE:
            raise MalformedHeaderError(f"header record must be {HEADER_SIZE} bytes, got {len(raw)}")
        name, mode, uid, gid, size, mtime, chksum, typeflag, linkname, _reserved = _HEADER_STRUCT.unpack(raw)
        return cls(
            name=decode_name(name),
            size=_parse_octal(size, strict, "size"),
            mtime=_parse_octal(mtime, strict, "mtime"),
            mode=_parse_octal(mode, strict, "mode"),
            uid=_parse_octal(uid, strict, "uid"),
            gid=_parse_octal(gid, strict, "gid"),
            typeflag=typeflag,
            linkname=decode_name(linkname),
            checksum=_parse_octal(chksum, strict, "checksum"),
        )


def encode_header(name: str, size: int, mtime: int) -> bytes:
    return HeaderRecord(name=name, size=size, mtime=mtime).pack()


def decode_header(raw: bytes, *, strict: bool = True) -> HeaderRecord:
    return HeaderRecord.unpack(raw, strict=strict)
