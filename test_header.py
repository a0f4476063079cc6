from __future__ import annotations

import tarfile
import unittest

from tarlet.constants import CHECKSUM_OFFSET, HEADER_SIZE, MAX_SIZE, ZERO_BLOCK
from tarlet.errors import HeaderFieldOverflowError, MalformedHeaderError
from tarlet.header import (
    HeaderRecord,
    compute_checksum,
    decode_header,
    encode_header,
    is_zero_block,
    padding_for,
    round_up,
    truncate_name,
    verify_checksum,
)


def _with_field(raw: bytes, offset: int, value: bytes) -> bytes:
    return raw[:offset] + value + raw[offset + len(value):]


class RoundUpTests(unittest.TestCase):
    def test_block_alignment_invariants(self):
        for n in list(range(0, 2050)) + [10**6, 10**9 + 7, MAX_SIZE]:
            r = round_up(n, 512)
            self.assertEqual(r % 512, 0)
            self.assertGreaterEqual(r, n)
            self.assertLess(r - n, 512)

    def test_known_values(self):
        self.assertEqual(round_up(0), 0)
        self.assertEqual(round_up(1), 512)
        self.assertEqual(round_up(512), 512)
        self.assertEqual(round_up(513), 1024)
        self.assertEqual(padding_for(2), 510)
        self.assertEqual(padding_for(1024), 0)

    def test_zero_multiple_is_noop(self):
        self.assertEqual(round_up(777, 0), 777)


class EncodeTests(unittest.TestCase):
    def test_record_layout(self):
        raw = encode_header("a.txt", 2, 0o1234)
        self.assertEqual(len(raw), HEADER_SIZE)
        self.assertEqual(raw[0:100], b"a.txt" + b"\x00" * 95)
        self.assertEqual(raw[100:108], b"0000644\x00")
        self.assertEqual(raw[108:116], b"0000000\x00")
        self.assertEqual(raw[116:124], b"0000000\x00")
        self.assertEqual(raw[124:136], b"00000000002\x00")
        self.assertEqual(raw[136:148], b"00000001234\x00")
        self.assertEqual(raw[156:157], b"0")
        self.assertEqual(raw[157:512], b"\x00" * 355)

    def test_checksum_field_matches_recomputed_sum(self):
        raw = encode_header("some/dir/file.bin", 4096, 1_700_000_000)
        field = raw[CHECKSUM_OFFSET:CHECKSUM_OFFSET + 8]
        self.assertEqual(field[6:], b"\x00 ")
        stored = int(field[:6], 8)
        manual = sum(raw[:CHECKSUM_OFFSET]) + 8 * ord(" ") + sum(raw[CHECKSUM_OFFSET + 8:])
        self.assertEqual(stored, manual)
        self.assertEqual(stored, compute_checksum(raw)[0])
        self.assertEqual(decode_header(raw).checksum, stored)
        self.assertTrue(verify_checksum(raw))

    def test_matches_tarfile_ustar_fields(self):
        # Independent encoder: everything up to the checksum and the
        # typeflag/linkname must be byte-identical.
        info = tarfile.TarInfo("text/file.txt")
        info.size = 8100
        info.mtime = 0
        info.mode = 0o644
        theirs = info.tobuf(format=tarfile.USTAR_FORMAT)
        ours = encode_header("text/file.txt", 8100, 0)
        self.assertEqual(ours[:CHECKSUM_OFFSET], theirs[:CHECKSUM_OFFSET])
        self.assertEqual(ours[156:257], theirs[156:257])

    def test_name_overflow_rejected(self):
        encode_header("n" * 100, 0, 0)
        with self.assertRaises(HeaderFieldOverflowError):
            encode_header("n" * 101, 0, 0)

    def test_size_overflow_rejected(self):
        raw = HeaderRecord(name="big", size=MAX_SIZE).pack()
        self.assertEqual(raw[124:136], b"77777777777\x00")
        with self.assertRaises(HeaderFieldOverflowError):
            HeaderRecord(name="big", size=MAX_SIZE + 1).pack()
        with self.assertRaises(ValueError):
            HeaderRecord(name="neg", mtime=-1).pack()

    def test_truncate_name(self):
        self.assertEqual(truncate_name("short"), "short")
        self.assertEqual(len(truncate_name("x" * 150)), 100)

    def test_truncate_name_keeps_multibyte_characters_whole(self):
        # 1 + 2*60 bytes; the 50th "é" straddles byte 100
        cut = truncate_name("a" + "é" * 60)
        self.assertEqual(cut, "a" + "é" * 49)
        self.assertEqual(len(cut.encode("utf-8")), 99)
        cut.encode("utf-8")  # no lone surrogates left behind
        self.assertEqual(decode_header(encode_header(cut, 0, 0)).name, cut)

        # three-byte characters: 33 fit exactly in 99 bytes
        self.assertEqual(truncate_name("€" * 40), "€" * 33)
        # four-byte characters: 25 fill the field exactly
        self.assertEqual(truncate_name("\U0001F600" * 30), "\U0001F600" * 25)


class DecodeTests(unittest.TestCase):
    def test_roundtrip_fields(self):
        raw = encode_header("docs/readme.md", 513, 1_234_567_890)
        hdr = HeaderRecord.unpack(raw)
        self.assertEqual(hdr.name, "docs/readme.md")
        self.assertEqual(hdr.size, 513)
        self.assertEqual(hdr.mtime, 1_234_567_890)
        self.assertEqual(hdr.mode, 0o644)
        self.assertEqual(hdr.typeflag, b"0")
        self.assertEqual(hdr.linkname, "")

    def test_full_width_name_without_terminator(self):
        raw = encode_header("z" * 100, 0, 0)
        self.assertEqual(decode_header(raw).name, "z" * 100)

    def test_space_padded_octal_accepted(self):
        raw = _with_field(encode_header("a", 0, 0), 124, b"        12 \x00")
        self.assertEqual(decode_header(raw).size, 0o12)

    def test_malformed_octal_strict_and_lenient(self):
        raw = _with_field(encode_header("a", 5, 0), 124, b"0000000009x\x00")
        with self.assertRaises(MalformedHeaderError):
            decode_header(raw)
        self.assertEqual(decode_header(raw, strict=False).size, 0)

    def test_wrong_record_size(self):
        with self.assertRaises(MalformedHeaderError):
            decode_header(b"\x00" * 100)

    def test_tarfile_header_decodes(self):
        info = tarfile.TarInfo("pkg/data.json")
        info.size = 42
        info.mtime = 1_000_000
        theirs = info.tobuf(format=tarfile.USTAR_FORMAT)
        self.assertTrue(verify_checksum(theirs))
        hdr = decode_header(theirs)
        self.assertEqual((hdr.name, hdr.size, hdr.mtime), ("pkg/data.json", 42, 1_000_000))

    def test_corruption_breaks_checksum(self):
        raw = encode_header("a.txt", 2, 0)
        bad = _with_field(raw, 0, b"b")
        self.assertFalse(verify_checksum(bad))

    def test_zero_block(self):
        self.assertTrue(is_zero_block(ZERO_BLOCK))
        self.assertFalse(is_zero_block(encode_header("a", 0, 0)))


if __name__ == "__main__":
    unittest.main()
