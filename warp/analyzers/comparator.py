"""
Warp Differential Comparator
=============================

Order-independent, duplicate-tolerant comparison of two captures by
packet content.

Matching is a multiset difference over content hashes:

    1. Bucket each side's packets by content hash, preserving capture
       order inside every bucket.
    2. For each hash, pair reference and candidate occurrences front to
       back; every pair is a match.  Duplicates therefore match up to
       the smaller multiplicity, and ties are broken by original order
       alone.
    3. Reference occurrences left over are *missing*; candidate
       occurrences left over are *extra*.

No positional alignment is attempted: two captures holding the same
packets in a different order are reported identical.  Ordering within
one capture is the Disorder Detector's concern.

Hashes are 128-bit BLAKE2b digests of the payload, optionally prefixed
with the packet timestamp (strict mode).  Hash equality is treated as
payload equality.

References:
    - Knuth, D. E. (1998). The Art of Computer Programming, Vol. 2,
      4.6.3 (multisets).
    - Aumasson, J.-P. et al. (2013). BLAKE2: simpler, smaller, fast
      as MD5. ACNS 2013.
"""

from __future__ import annotations

from collections import defaultdict

from shared.logger import ForgeLogger

from warp.core.models import (
    CaptureSequence,
    ComparisonReport,
    DiffEntry,
    PacketRecord,
)

logger = ForgeLogger("warp.comparator")


class DifferentialComparator:
    """Content-hash multiset comparison of a reference and a candidate.

    Args:
        ignore_timestamp: Hash payload bytes only, so packets with equal
            payloads match whatever their capture time.
        log: Logger to report through; defaults to the module logger.

    Usage::

        report = DifferentialComparator().compare(reference, candidate)
        for entry in report.missing:
            print(entry.original_index, entry.payload_length)
    """

    def __init__(
        self,
        ignore_timestamp: bool = False,
        log: ForgeLogger | None = None,
    ) -> None:
        self.ignore_timestamp: bool = ignore_timestamp
        self._log = log if log is not None else logger

    def compare(
        self,
        reference: CaptureSequence,
        candidate: CaptureSequence,
    ) -> ComparisonReport:
        """Compute the missing / extra packets between two captures.

        Args:
            reference: Baseline capture.
            candidate: Capture checked against the baseline.

        Returns:
            A :class:`ComparisonReport` whose ``missing`` and ``extra``
            lists are sorted by ascending ``original_index``.
        """
        ref_buckets = self._bucket(reference)
        cand_buckets = self._bucket(candidate)

        missing: list[DiffEntry] = []
        extra: list[DiffEntry] = []
        matched = 0

        for digest in ref_buckets.keys() | cand_buckets.keys():
            ref_items = ref_buckets.get(digest, [])
            cand_items = cand_buckets.get(digest, [])
            pairs = min(len(ref_items), len(cand_items))
            matched += pairs
            missing.extend(DiffEntry.from_record(r, digest) for r in ref_items[pairs:])
            extra.extend(DiffEntry.from_record(r, digest) for r in cand_items[pairs:])

        missing.sort(key=lambda e: e.original_index)
        extra.sort(key=lambda e: e.original_index)

        report = ComparisonReport(
            ignore_timestamp=self.ignore_timestamp,
            reference_count=len(reference),
            candidate_count=len(candidate),
            matched_count=matched,
            missing=missing,
            extra=extra,
        )

        mode = "payload-only" if self.ignore_timestamp else "strict"
        summary = (
            f"Comparison ({mode}): base={report.reference_count}, "
            f"candidate={report.candidate_count}, matched={matched}, "
            f"missing={report.missing_count}, extra={report.extra_count}"
        )
        if report.identical:
            self._log.info(summary)
        else:
            self._log.warning(summary)
        return report

    def _bucket(self, sequence: CaptureSequence) -> dict[str, list[PacketRecord]]:
        """Group *sequence* by content hash, keeping capture order per bucket."""
        buckets: dict[str, list[PacketRecord]] = defaultdict(list)
        for record in sequence:
            buckets[record.content_hash(self.ignore_timestamp)].append(record)
        return buckets
