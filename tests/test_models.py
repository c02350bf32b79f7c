import unittest
from decimal import Decimal

from pydantic import ValidationError

from tests.fixtures import make_sequence
from warp.core.errors import EmptyCaptureError
from warp.core.models import (
    CaptureMetadata,
    CaptureSequence,
    ComparisonReport,
    DiffEntry,
    PacketRecord,
    TimePrecision,
    canonical_timestamp,
    to_timestamp,
)


class TimestampCoercionTests(unittest.TestCase):
    def test_float_goes_through_repr(self):
        self.assertEqual(to_timestamp(1.1), Decimal("1.1"))

    def test_string_and_int(self):
        self.assertEqual(to_timestamp(" 12.000001 "), Decimal("12.000001"))
        self.assertEqual(to_timestamp(7), Decimal(7))

    def test_rejects_non_finite_and_bool(self):
        for bad in (float("nan"), float("inf"), "NaN", "abc", True, None):
            with self.subTest(value=bad):
                with self.assertRaises(ValueError):
                    to_timestamp(bad)

    def test_canonical_form_drops_trailing_zeros(self):
        self.assertEqual(canonical_timestamp(Decimal("1.500000")), "1.5")
        self.assertEqual(canonical_timestamp(Decimal("1.500000000")), "1.5")
        self.assertEqual(canonical_timestamp(Decimal("100")), "100")
        self.assertEqual(canonical_timestamp(Decimal("0.000000")), "0")


class PacketRecordTests(unittest.TestCase):
    def test_is_immutable(self):
        record = PacketRecord(original_index=0, timestamp="1.0", payload=b"ab")
        with self.assertRaises(ValidationError):
            record.timestamp = Decimal(2)

    def test_lengths(self):
        record = PacketRecord(original_index=3, timestamp=0, payload=b"abcd", wire_length=1500)
        self.assertEqual(record.payload_length, 4)
        self.assertEqual(record.original_length, 1500)
        bare = PacketRecord(original_index=3, timestamp=0, payload=b"abcd")
        self.assertEqual(bare.original_length, 4)

    def test_strict_hash_depends_on_timestamp(self):
        a = PacketRecord(original_index=0, timestamp="1.0", payload=b"same")
        b = PacketRecord(original_index=9, timestamp="2.0", payload=b"same")
        self.assertNotEqual(a.content_hash(), b.content_hash())
        self.assertEqual(a.content_hash(ignore_timestamp=True), b.content_hash(ignore_timestamp=True))

    def test_hash_ignores_index_and_precision(self):
        micro = PacketRecord(original_index=0, timestamp=Decimal("5.250000"), payload=b"x")
        nano = PacketRecord(original_index=4, timestamp=Decimal("5.250000000"), payload=b"x")
        self.assertEqual(micro.content_hash(), nano.content_hash())

    def test_hash_is_128_bit_hex(self):
        digest = PacketRecord(original_index=0, timestamp=0, payload=b"").content_hash()
        self.assertEqual(len(digest), 32)
        int(digest, 16)

    def test_with_timestamp_keeps_other_fields(self):
        record = PacketRecord(original_index=2, timestamp=1, payload=b"p", wire_length=9)
        moved = record.with_timestamp(Decimal("1.5"))
        self.assertEqual(moved.timestamp, Decimal("1.5"))
        self.assertEqual((moved.original_index, moved.payload, moved.wire_length), (2, b"p", 9))
        self.assertEqual(record.timestamp, Decimal(1))


class CaptureSequenceTests(unittest.TestCase):
    def test_load_assigns_indices_in_arrival_order(self):
        seq = CaptureSequence.load([(3, b"c"), (1, b"a"), ("2", b"b", 64)])
        self.assertEqual([r.original_index for r in seq], [0, 1, 2])
        self.assertEqual(seq.get(2).wire_length, 64)
        self.assertEqual(len(seq), 3)

    def test_load_reindexes_records(self):
        records = [PacketRecord(original_index=7, timestamp=0, payload=b"x")] * 2
        seq = CaptureSequence.load(records)
        self.assertEqual([r.original_index for r in seq], [0, 1])

    def test_empty_allowed_unless_required(self):
        self.assertEqual(len(CaptureSequence.load([])), 0)
        with self.assertRaises(EmptyCaptureError) as ctx:
            CaptureSequence.load([], require_non_empty=True)
        self.assertEqual(ctx.exception.operation, "load")
        self.assertIn("records", str(ctx.exception))

    def test_replace_keeps_metadata(self):
        meta = CaptureMetadata(link_type=101, precision=TimePrecision.NANO, snap_length=256)
        seq = make_sequence([0, 1, 2], metadata=meta)
        replaced = seq.replace(seq[:1])
        self.assertIs(replaced.metadata, meta)
        self.assertEqual(len(replaced), 1)
        self.assertEqual(len(seq), 3)

    def test_span_and_bounds(self):
        seq = make_sequence(["10.5", "11", "12.25"])
        self.assertEqual(seq.first_timestamp, Decimal("10.5"))
        self.assertEqual(seq.last_timestamp, Decimal("12.25"))
        self.assertEqual(seq.span, Decimal("1.75"))
        empty = CaptureSequence()
        self.assertIsNone(empty.first_timestamp)
        self.assertEqual(empty.span, 0)


class ComparisonReportTests(unittest.TestCase):
    def test_identical_and_counts_are_serialised(self):
        entry = DiffEntry(original_index=1, payload_length=4, content_hash="ab", timestamp=Decimal(1))
        report = ComparisonReport(reference_count=2, candidate_count=1, matched_count=1, missing=[entry])
        self.assertFalse(report.identical)
        dumped = report.model_dump(mode="json")
        self.assertEqual(dumped["missing_count"], 1)
        self.assertEqual(dumped["extra_count"], 0)
        self.assertFalse(dumped["identical"])
        self.assertEqual(dumped["missing"][0]["timestamp"], "1")
        self.assertTrue(ComparisonReport().identical)


if __name__ == "__main__":
    unittest.main()
