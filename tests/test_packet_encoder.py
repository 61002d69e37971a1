import pathlib
import sys
import unittest

import numpy as np

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fakemts.core.models import KeyRecord  # noqa: E402
from fakemts.core.packet import (  # noqa: E402
    BLOB_SIZE,
    DEFAULT_HEADER_SIZE,
    NUM_KEYS,
    PacketEncoder,
)


class PacketEncoderTest(unittest.TestCase):
    def test_initialize_returns_total_length(self):
        self.assertEqual(PacketEncoder().initialize(), 548)
        self.assertEqual(PacketEncoder(header_size=0).initialize(), 528)

    def test_header_layout(self):
        enc = PacketEncoder()
        enc.initialize()
        header = enc.to_bytes()[:DEFAULT_HEADER_SIZE]
        self.assertEqual(header[0:8], b"/mts\x00\x00\x00\x00")
        self.assertEqual(header[8:11], b",ib")
        self.assertEqual(header[11:15], b"\x00\x00\x00\x00")
        self.assertEqual(header[15], 24)
        self.assertEqual(header[16:20], b"\x00\x00\x02\x10")

    def test_blob_size_round_trips(self):
        enc = PacketEncoder()
        enc.initialize()
        self.assertEqual(enc.blob_size_from_header(), BLOB_SIZE)
        self.assertEqual(int.from_bytes(enc.to_bytes()[16:20], "big"), 528)

    def test_initialize_is_idempotent(self):
        enc = PacketEncoder()
        enc.initialize()
        first = enc.header.copy()
        enc.write_key_record(1, 9, 9, 9, 9, 9)
        enc.initialize()
        np.testing.assert_array_equal(enc.header, first)

    def test_write_key_record_only_touches_its_span(self):
        enc = PacketEncoder()
        enc.initialize()
        rng = np.random.default_rng(7)
        enc.buffer[DEFAULT_HEADER_SIZE:] = rng.integers(0, 256, BLOB_SIZE, dtype=np.uint8)
        for key in (1, 2, 44, 87, 88):
            before = enc.buffer.copy()
            enc.write_key_record(key, 0xAA, 0xBB, 0xCC, 0xDD, 0xEE)
            start = DEFAULT_HEADER_SIZE + (key - 1) * 6
            changed = np.flatnonzero(before != enc.buffer)
            self.assertTrue(all(start <= i <= start + 5 for i in changed))
            self.assertEqual(
                enc.to_bytes()[start : start + 6],
                bytes([key, 0xAA, 0xBB, 0xCC, 0xDD, 0xEE]),
            )

    def test_headerless_records_start_at_zero(self):
        enc = PacketEncoder(header_size=0)
        enc.initialize()
        enc.write_key_record(1, 1, 2, 3, 4, 5)
        enc.write_key_record(NUM_KEYS, 6, 7, 8, 9, 10)
        data = enc.to_bytes()
        self.assertEqual(len(data), BLOB_SIZE)
        self.assertEqual(data[:6], bytes([1, 1, 2, 3, 4, 5]))
        self.assertEqual(data[-6:], bytes([88, 6, 7, 8, 9, 10]))
        self.assertEqual(enc.blob_size_from_header(), 0)

    def test_record_round_trip_through_buffer(self):
        enc = PacketEncoder()
        record = KeyRecord(key=12, x=0x10, y=0x20, z=12, a=12, f=12)
        enc.write_key_record(*record.as_tuple())
        self.assertEqual(enc.read_key_record(12), record)

    def test_rejects_unsupported_header_size(self):
        with self.assertRaises(ValueError):
            PacketEncoder(header_size=8)


if __name__ == "__main__":
    unittest.main()
