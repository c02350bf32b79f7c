import os
import tempfile
import unittest
from decimal import Decimal
from pathlib import Path

from tests.fixtures import make_sequence, quiet_logger, write_raw_pcap
from warp.collectors.pcap_codec import PcapCodec
from warp.core.errors import LoadError, WriteError
from warp.core.models import CaptureMetadata, CaptureSequence, TimePrecision

RECORDS = [
    (1700000000, 0, b"\x00" * 60),
    (1700000000, 250000, bytes(range(64)), 1514),
    (1700000001, 999999, b"tail-packet"),
]


class PcapCodecTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.codec = PcapCodec(log=quiet_logger())

    def tearDown(self):
        self._tmp.cleanup()


class LoadTests(PcapCodecTestCase):
    def test_loads_records_in_file_order(self):
        path = write_raw_pcap(self.tmp / "in.pcap", RECORDS)
        seq = self.codec.load(path)
        self.assertEqual(len(seq), 3)
        self.assertEqual([r.original_index for r in seq], [0, 1, 2])
        self.assertEqual(
            [r.timestamp for r in seq],
            [Decimal("1700000000"), Decimal("1700000000.25"), Decimal("1700000001.999999")],
        )
        self.assertEqual(seq.get(1).payload, bytes(range(64)))
        self.assertEqual(seq.get(1).wire_length, 1514)

    def test_metadata(self):
        path = write_raw_pcap(self.tmp / "in.pcap", RECORDS, linktype=101,
                              snaplen=2048, thiszone=-3600, sigfigs=3)
        meta = self.codec.load(path).metadata
        self.assertEqual(meta.link_type, 101)
        self.assertEqual(meta.snap_length, 2048)
        self.assertEqual(meta.thiszone, -3600)
        self.assertEqual(meta.sigfigs, 3)
        self.assertEqual(meta.byte_order, "<")
        self.assertEqual(meta.precision, TimePrecision.MICRO)
        self.assertEqual((meta.version_major, meta.version_minor), (2, 4))

    def test_nanosecond_timestamps(self):
        path = write_raw_pcap(self.tmp / "nano.pcap",
                              [(1700000000, 123456789, b"n1"), (1700000000, 123456790, b"n2")],
                              nano=True)
        seq = self.codec.load(path)
        self.assertEqual(seq.metadata.precision, TimePrecision.NANO)
        self.assertEqual(seq.get(0).timestamp, Decimal("1700000000.123456789"))
        self.assertEqual(seq.get(1).timestamp - seq.get(0).timestamp, Decimal("1E-9"))

    def test_big_endian(self):
        path = write_raw_pcap(self.tmp / "be.pcap", RECORDS, endian=">")
        seq = self.codec.load(path)
        self.assertEqual(seq.metadata.byte_order, ">")
        self.assertEqual(seq.get(2).payload, b"tail-packet")

    def test_header_only_file_is_empty_capture(self):
        path = write_raw_pcap(self.tmp / "empty.pcap", [])
        self.assertEqual(len(self.codec.load(path)), 0)

    def test_truncated_final_record_is_dropped(self):
        path = write_raw_pcap(self.tmp / "cut.pcap", RECORDS)
        data = path.read_bytes()
        path.write_bytes(data[:-5])
        seq = self.codec.load(path)
        self.assertEqual(len(seq), 2)

    def test_reads_scapy_written_capture(self):
        from scapy.layers.l2 import Ether
        from scapy.packet import Raw
        from scapy.utils import wrpcap

        packets = []
        for i, ts in enumerate((1700000000.25, 1700000000.5, 1700000001.0)):
            pkt = Ether(src="02:00:00:00:00:01", dst="02:00:00:00:00:02") / Raw(b"payload-%d" % i)
            pkt.time = ts
            packets.append(pkt)
        path = self.tmp / "scapy.pcap"
        wrpcap(str(path), packets)

        seq = self.codec.load(path)
        self.assertEqual(seq.metadata.link_type, 1)
        self.assertEqual([r.payload for r in seq], [bytes(p) for p in packets])
        self.assertEqual(seq.get(0).timestamp, Decimal("1700000000.25"))


class LoadErrorTests(PcapCodecTestCase):
    def assertLoadError(self, path, fragment):
        with self.assertRaises(LoadError) as ctx:
            self.codec.load(path)
        self.assertEqual(ctx.exception.operation, "load")
        self.assertEqual(ctx.exception.parameter, "path")
        self.assertIn(fragment, str(ctx.exception))

    def test_missing_file(self):
        self.assertLoadError(self.tmp / "nope.pcap", "not found")

    def test_pcapng_rejected(self):
        path = self.tmp / "capture.pcapng"
        path.write_bytes(b"\x0a\x0d\x0d\x0a" + b"\x00" * 28)
        self.assertLoadError(path, "pcapng")

    def test_short_header(self):
        path = self.tmp / "short.pcap"
        path.write_bytes(b"\xd4\xc3\xb2\xa1\x02\x00")
        self.assertLoadError(path, "too short")

    def test_unknown_magic(self):
        path = self.tmp / "junk.pcap"
        path.write_bytes(b"GIF89a" + b"\x00" * 40)
        self.assertLoadError(path, "magic")


class WriteTests(PcapCodecTestCase):
    def test_round_trip_is_byte_identical(self):
        for name, kwargs in (
            ("le.pcap", {}),
            ("be.pcap", {"endian": ">"}),
            ("nano.pcap", {"nano": True}),
            ("meta.pcap", {"linktype": 113, "snaplen": 96, "thiszone": 7200, "sigfigs": 1}),
        ):
            with self.subTest(file=name):
                source = write_raw_pcap(self.tmp / name, RECORDS, **kwargs)
                target = self.tmp / f"out-{name}"
                self.codec.write(self.codec.load(source), target)
                self.assertEqual(target.read_bytes(), source.read_bytes())

    def test_rounds_half_even_to_container_precision(self):
        seq = make_sequence(["1.0000005", "1.0000015", "2.49999949"])
        target = self.codec.write(seq, self.tmp / "rounded.pcap")
        stamps = [r.timestamp for r in self.codec.load(target)]
        self.assertEqual(stamps, [Decimal("1.000000"), Decimal("1.000002"), Decimal("2.499999")])

    def test_nanosecond_metadata_keeps_nanoseconds(self):
        meta = CaptureMetadata(precision=TimePrecision.NANO)
        seq = make_sequence(["5.000000001"], metadata=meta)
        target = self.codec.write(seq, self.tmp / "ns.pcap")
        self.assertEqual(self.codec.load(target).get(0).timestamp, Decimal("5.000000001"))

    def test_creates_parent_directories(self):
        target = self.codec.write(make_sequence(["1"]), self.tmp / "a" / "b" / "out.pcap")
        self.assertTrue(target.is_file())

    def test_empty_sequence_writes_header_only(self):
        target = self.codec.write(CaptureSequence(), self.tmp / "empty.pcap")
        self.assertEqual(target.stat().st_size, 24)

    def test_unrepresentable_timestamp_leaves_no_file(self):
        target = self.tmp / "bad.pcap"
        for stamp in ("-1", "4294967296"):
            with self.subTest(timestamp=stamp):
                with self.assertRaises(WriteError) as ctx:
                    self.codec.write(make_sequence(["1", stamp]), target)
                self.assertEqual(ctx.exception.operation, "write")
                self.assertEqual(ctx.exception.parameter, "timestamp")
                self.assertFalse(target.exists())
                self.assertEqual(os.listdir(self.tmp), [])

    def test_failed_write_keeps_previous_file(self):
        target = self.tmp / "keep.pcap"
        target.write_bytes(b"previous")
        with self.assertRaises(WriteError):
            self.codec.write(make_sequence(["-5"]), target)
        self.assertEqual(target.read_bytes(), b"previous")


if __name__ == "__main__":
    unittest.main()
