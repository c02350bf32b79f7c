"""
Warp Data Models
=================

Pydantic-based data models for the Warp packet-stream engine: the
immutable packet record, the capture-level metadata copied from the
source container, the in-memory capture sequence every algorithm runs
over, and the report structures the analyzers produce.

Timestamps are exact :class:`decimal.Decimal` seconds.  A capture's
sub-second fraction (micro- or nanoseconds) is carried without loss, and
every rescaling is computed at :data:`TIMESTAMP_PRECISION` significant
digits; rounding back to the container's resolution only happens when
the codec writes a file.

References:
    - Evans, E. (2003). Domain-Driven Design. Addison-Wesley.
    - Pydantic v2 Documentation. https://docs.pydantic.dev/latest/
    - libpcap file format. https://wiki.wireshark.org/Development/LibpcapFileFormat
    - Aumasson, J.-P., Neves, S., Wilcox-O'Hearn, Z., & Winnerlein, C.
      (2013). BLAKE2: simpler, smaller, fast as MD5. ACNS 2013.
"""

from __future__ import annotations

import enum
import hashlib
import math
import struct
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Iterable, Iterator, Literal, Optional, overload

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from warp.core.errors import EmptyCaptureError

# Significant digits used for all timestamp arithmetic.
TIMESTAMP_PRECISION = 50

# BLAKE2b digest size in bytes (128-bit content hashes).
HASH_DIGEST_SIZE = 16


# ---------------------------------------------------------------------------
#  Timestamp helpers
# ---------------------------------------------------------------------------


def to_timestamp(value: Any) -> Decimal:
    """Coerce *value* to an exact, finite :class:`Decimal` timestamp.

    Floats are converted through their shortest ``repr`` so that ``1.1``
    becomes ``Decimal("1.1")`` rather than its binary expansion.

    Raises:
        ValueError: If *value* is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Timestamp must be a number, got {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Timestamp must be finite, got {value!r}")
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Invalid timestamp literal: {value!r}") from exc
    else:
        raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"Timestamp must be finite, got {value!r}")
    return result


def canonical_timestamp(value: Decimal) -> str:
    """Return the canonical fixed-point text of *value*.

    Trailing zeros are dropped, so ``1.500000`` (microsecond file) and
    ``1.500000000`` (nanosecond file) both render as ``"1.5"``.
    """
    with localcontext() as ctx:
        ctx.prec = TIMESTAMP_PRECISION
        text = format(value.normalize(), "f")
    return "0" if text in ("-0", "0") else text


# ---------------------------------------------------------------------------
#  Capture metadata
# ---------------------------------------------------------------------------


class TimePrecision(str, enum.Enum):
    """Sub-second resolution of a capture container's record timestamps."""

    MICRO = "micro"
    NANO = "nano"

    @property
    def digits(self) -> int:
        """Number of decimal sub-second digits."""
        return 9 if self is TimePrecision.NANO else 6

    @property
    def quantum(self) -> Decimal:
        """Smallest representable timestamp step, in seconds."""
        return Decimal(1).scaleb(-self.digits)


class CaptureMetadata(BaseModel):
    """Sequence-level properties copied from the source container.

    Written back unchanged by the codec; no Warp transform alters them.

    Attributes:
        link_type:     Link-layer header type (1 = Ethernet).
        precision:     Timestamp resolution of the container.
        snap_length:   Maximum captured bytes per packet.
        byte_order:    ``"<"`` little-endian or ``">"`` big-endian header.
        version_major: Container format major version.
        version_minor: Container format minor version.
        thiszone:      GMT-to-local correction (seconds), normally 0.
        sigfigs:       Timestamp accuracy field, normally 0.
    """

    model_config = ConfigDict(frozen=True)

    link_type: int = Field(default=1, ge=0, description="Link-layer header type")
    precision: TimePrecision = Field(
        default=TimePrecision.MICRO,
        description="Timestamp resolution",
    )
    snap_length: int = Field(default=65535, ge=0, description="Snapshot length")
    byte_order: Literal["<", ">"] = Field(default="<", description="Header byte order")
    version_major: int = Field(default=2, ge=0, le=0xFFFF)
    version_minor: int = Field(default=4, ge=0, le=0xFFFF)
    thiszone: int = Field(default=0)
    sigfigs: int = Field(default=0, ge=0)


# ---------------------------------------------------------------------------
#  Packet record
# ---------------------------------------------------------------------------


class PacketRecord(BaseModel):
    """A single captured packet.

    Immutable value object.  ``original_index`` is the packet's 0-based
    position in the file it was loaded from and survives every transform
    (duplicates produced by augmentation share their source's index).

    Attributes:
        original_index: Position in the source capture, assigned at load.
        timestamp:      Capture time in seconds since the epoch.
        payload:        Captured bytes (at most the snap length).
        wire_length:    Length of the packet on the wire; ``0`` means
                        "same as the captured payload".
    """

    model_config = ConfigDict(frozen=True)

    original_index: int = Field(..., ge=0, description="Position in the source capture")
    timestamp: Decimal = Field(..., description="Capture time (seconds)")
    payload: bytes = Field(default=b"", description="Captured packet bytes")
    wire_length: int = Field(default=0, ge=0, description="Original on-the-wire length")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v: Any) -> Decimal:
        return to_timestamp(v)

    @property
    def payload_length(self) -> int:
        """Number of captured payload bytes."""
        return len(self.payload)

    @property
    def original_length(self) -> int:
        """On-the-wire length, never shorter than the captured payload."""
        return max(self.wire_length, len(self.payload))

    def content_hash(self, ignore_timestamp: bool = False) -> str:
        """128-bit BLAKE2b content identity of this packet, as hex.

        In strict mode (the default) the canonical timestamp text is
        folded in ahead of the payload, length-prefixed so the two
        fields cannot bleed into each other.  With *ignore_timestamp*
        only the payload bytes are hashed.  No other field ever
        participates.
        """
        digest = hashlib.blake2b(digest_size=HASH_DIGEST_SIZE)
        if not ignore_timestamp:
            stamp = canonical_timestamp(self.timestamp).encode("ascii")
            digest.update(struct.pack(">H", len(stamp)))
            digest.update(stamp)
        digest.update(self.payload)
        return digest.hexdigest()

    def with_timestamp(self, timestamp: Decimal) -> PacketRecord:
        """Return a copy of this record carrying *timestamp*."""
        return self.model_copy(update={"timestamp": timestamp})


# ---------------------------------------------------------------------------
#  Capture sequence
# ---------------------------------------------------------------------------


class CaptureSequence:
    """Ordered, indexable collection of :class:`PacketRecord` objects.

    Exposes length, positional access and ordered iteration only; there
    is no per-record mutation API.  Transforms build a replacement via
    :meth:`replace`, which carries the metadata over unchanged.

    Usage::

        seq = CaptureSequence.load([(0, b"\\x00"), ("0.5", b"\\x01")])
        len(seq)          # 2
        seq.get(1).original_index   # 1
    """

    __slots__ = ("_records", "_metadata")

    def __init__(
        self,
        records: Iterable[PacketRecord] = (),
        metadata: CaptureMetadata | None = None,
    ) -> None:
        self._records: tuple[PacketRecord, ...] = tuple(records)
        self._metadata = metadata if metadata is not None else CaptureMetadata()

    # ------------------------------------------------------------------ #
    #  Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def load(
        cls,
        entries: Iterable[Any],
        metadata: CaptureMetadata | None = None,
        *,
        require_non_empty: bool = False,
    ) -> CaptureSequence:
        """Build a sequence, assigning ``original_index`` in arrival order.

        Each entry is either a :class:`PacketRecord` (its index is
        overwritten), a ``(timestamp, payload)`` pair, or a
        ``(timestamp, payload, wire_length)`` triple.

        Args:
            entries:           Records in capture order.
            metadata:          Container metadata; defaults to Ethernet,
                               microsecond precision.
            require_non_empty: Raise instead of returning an empty sequence.

        Raises:
            EmptyCaptureError: If *require_non_empty* is set and no
                entries were supplied.
        """
        records: list[PacketRecord] = []
        for index, entry in enumerate(entries):
            if isinstance(entry, PacketRecord):
                records.append(entry.model_copy(update={"original_index": index}))
                continue
            timestamp, payload, *rest = entry
            records.append(
                PacketRecord(
                    original_index=index,
                    timestamp=timestamp,
                    payload=bytes(payload),
                    wire_length=rest[0] if rest else 0,
                )
            )

        if require_non_empty and not records:
            raise EmptyCaptureError(
                "Capture contains no packets",
                operation="load",
                parameter="records",
                value=0,
            )
        return cls(records, metadata)

    def replace(self, records: Iterable[PacketRecord]) -> CaptureSequence:
        """Return a new sequence holding *records* with this sequence's metadata."""
        return CaptureSequence(records, self._metadata)

    # ------------------------------------------------------------------ #
    #  Access
    # ------------------------------------------------------------------ #

    @property
    def metadata(self) -> CaptureMetadata:
        """Container metadata of the source capture."""
        return self._metadata

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[PacketRecord]:
        return iter(self._records)

    @overload
    def __getitem__(self, index: int) -> PacketRecord: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[PacketRecord, ...]: ...

    def __getitem__(self, index: int | slice) -> PacketRecord | tuple[PacketRecord, ...]:
        return self._records[index]

    def get(self, index: int) -> PacketRecord:
        """Return the record at stream position *index*."""
        return self._records[index]

    def __repr__(self) -> str:
        return (
            f"CaptureSequence(packets={len(self._records)}, "
            f"link_type={self._metadata.link_type}, "
            f"precision={self._metadata.precision.value})"
        )

    # ------------------------------------------------------------------ #
    #  Derived properties
    # ------------------------------------------------------------------ #

    @property
    def first_timestamp(self) -> Decimal | None:
        """Timestamp of the first packet, or ``None`` when empty."""
        return self._records[0].timestamp if self._records else None

    @property
    def last_timestamp(self) -> Decimal | None:
        """Timestamp of the last packet, or ``None`` when empty."""
        return self._records[-1].timestamp if self._records else None

    @property
    def span(self) -> Decimal:
        """Last minus first timestamp (zero for fewer than two packets)."""
        if len(self._records) < 2:
            return Decimal(0)
        with localcontext() as ctx:
            ctx.prec = TIMESTAMP_PRECISION
            return self._records[-1].timestamp - self._records[0].timestamp


# ---------------------------------------------------------------------------
#  Disorder report
# ---------------------------------------------------------------------------


class DisorderViolation(BaseModel):
    """A packet whose timestamp is earlier than its predecessor's.

    Attributes:
        position:           Stream position of the offending packet.
        original_index:     ``original_index`` of the offending packet.
        timestamp:          Timestamp of the offending packet.
        previous_timestamp: Timestamp of its immediate predecessor.
        magnitude:          ``previous_timestamp - timestamp`` (> 0).
    """

    position: int = Field(..., ge=0)
    original_index: int = Field(..., ge=0)
    timestamp: Decimal
    previous_timestamp: Decimal
    magnitude: Decimal


class DisorderReport(BaseModel):
    """Result of a chronological-order audit over one capture."""

    total_packets: int = Field(default=0, ge=0, description="Packets scanned")
    violations: list[DisorderViolation] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def violation_count(self) -> int:
        """Number of ordering violations found."""
        return len(self.violations)

    @property
    def is_ordered(self) -> bool:
        """``True`` when timestamps never decrease."""
        return not self.violations

    @property
    def max_magnitude(self) -> Decimal | None:
        """Largest backwards jump, or ``None`` when ordered."""
        if not self.violations:
            return None
        return max(v.magnitude for v in self.violations)


# ---------------------------------------------------------------------------
#  Comparison report
# ---------------------------------------------------------------------------


class DiffEntry(BaseModel):
    """One unmatched packet reported by the comparator.

    Attributes:
        original_index: Index of the packet in its own capture.
        payload_length: Captured payload size in bytes.
        content_hash:   Hex content hash the packet was bucketed under.
        timestamp:      Capture time of the packet.
    """

    original_index: int = Field(..., ge=0)
    payload_length: int = Field(..., ge=0)
    content_hash: str
    timestamp: Decimal

    @classmethod
    def from_record(cls, record: PacketRecord, content_hash: str) -> DiffEntry:
        return cls(
            original_index=record.original_index,
            payload_length=record.payload_length,
            content_hash=content_hash,
            timestamp=record.timestamp,
        )


class ComparisonReport(BaseModel):
    """Multiset difference between a reference and a candidate capture.

    Attributes:
        ignore_timestamp: Whether timestamps were excluded from hashing.
        reference_count:  Packets in the reference capture.
        candidate_count:  Packets in the candidate capture.
        matched_count:    Reference/candidate pairs consumed as matches.
        missing:          Reference packets absent from the candidate,
                          ascending by ``original_index``.
        extra:            Candidate packets absent from the reference,
                          ascending by ``original_index``.
    """

    ignore_timestamp: bool = False
    reference_count: int = Field(default=0, ge=0)
    candidate_count: int = Field(default=0, ge=0)
    matched_count: int = Field(default=0, ge=0)
    missing: list[DiffEntry] = Field(default_factory=list)
    extra: list[DiffEntry] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def missing_count(self) -> int:
        return len(self.missing)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def extra_count(self) -> int:
        return len(self.extra)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def identical(self) -> bool:
        """Same packet multiset on both sides, regardless of order."""
        return not self.missing and not self.extra


# ---------------------------------------------------------------------------
#  Transform summary
# ---------------------------------------------------------------------------


class TransformSummary(BaseModel):
    """Before/after figures for a transform that produced a new capture."""

    operation: str
    factor: int | Decimal
    input_count: int = Field(..., ge=0)
    output_count: int = Field(..., ge=0)
    input_span: Decimal = Decimal(0)
    output_span: Decimal = Decimal(0)
    output_path: Optional[str] = None
