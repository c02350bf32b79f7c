"""
Warp PCAP Codec
================

Reads classic libpcap capture files into a :class:`CaptureSequence` and
writes sequences back out, preserving the container metadata.

The 24-byte global header is parsed with :mod:`struct` so that every
field (byte order, version, thiszone, sigfigs, snap length, link type
and time resolution) survives a round trip unchanged.  Records are
iterated with Scapy's :class:`~scapy.utils.RawPcapReader`, which yields
the raw bytes and header fields of each packet without dissecting it.

File layout (all fields in the byte order announced by the magic)::

    Global header (24 bytes):
        magic (4)  version_major (2)  version_minor (2)
        thiszone (4, signed)  sigfigs (4)  snaplen (4)  linktype (4)

    Record header (16 bytes), followed by caplen bytes of data:
        ts_sec (4)  ts_frac (4)  caplen (4)  orig_len (4)

``ts_frac`` counts microseconds (magic ``0xA1B2C3D4``) or nanoseconds
(magic ``0xA1B23C4D``).  pcapng files are not supported.

References:
    - Wireshark Foundation. (2024). Libpcap File Format.
      https://wiki.wireshark.org/Development/LibpcapFileFormat
    - Biondi, P. (2024). Scapy Documentation.
      https://scapy.readthedocs.io/
"""

from __future__ import annotations

import logging
import os
import struct
import tempfile
from decimal import ROUND_HALF_EVEN, Decimal, localcontext
from pathlib import Path
from typing import Any, Iterator

from shared.logger import ForgeLogger

from warp.core.errors import LoadError, WriteError
from warp.core.models import (
    TIMESTAMP_PRECISION,
    CaptureMetadata,
    CaptureSequence,
    PacketRecord,
    TimePrecision,
)

# Suppress Scapy's import-time runtime warnings (routes, IPv6, ...)
logging.getLogger("scapy.runtime").setLevel(logging.ERROR)

from scapy.data import MTU  # noqa: E402
from scapy.error import Scapy_Exception  # noqa: E402
from scapy.utils import RawPcapReader  # noqa: E402

logger = ForgeLogger("warp.collectors.pcap_codec")

GLOBAL_HEADER_SIZE = 24
RECORD_HEADER_SIZE = 16
MAX_SECONDS = 0xFFFFFFFF


class PcapCodec:
    """Classic pcap reader / writer for Warp capture sequences.

    Supports:
        - Microsecond files (magic: 0xA1B2C3D4), both byte orders
        - Nanosecond files (magic: 0xA1B23C4D), both byte orders

    Usage::

        codec = PcapCodec()
        sequence = codec.load("in.pcap")
        codec.write(sequence, "out.pcap")
    """

    PCAP_MAGIC = 0xA1B2C3D4
    PCAP_MAGIC_SWAPPED = 0xD4C3B2A1
    PCAP_MAGIC_NS = 0xA1B23C4D
    PCAP_MAGIC_NS_SWAPPED = 0x4D3CB2A1
    PCAPNG_MAGIC = 0x0A0D0D0A

    def __init__(self, log: ForgeLogger | None = None) -> None:
        self._log = log if log is not None else logger

    # ------------------------------------------------------------------ #
    #  Load
    # ------------------------------------------------------------------ #

    def load(self, file_path: str | Path) -> CaptureSequence:
        """Read a pcap file into a :class:`CaptureSequence`.

        Packets keep their file order, which becomes their
        ``original_index``.  A trailing partial record is dropped with a
        warning.

        Args:
            file_path: Path to the capture file.

        Returns:
            The loaded sequence with its container metadata.

        Raises:
            LoadError: If the file is missing, unreadable, not a classic
                pcap file, or contains a malformed record.
        """
        path = Path(file_path)
        if not path.is_file():
            raise LoadError(
                "Capture file not found",
                operation="load",
                parameter="path",
                value=str(path),
            )

        try:
            file_size = path.stat().st_size
            with open(path, "rb") as fh:
                header = fh.read(GLOBAL_HEADER_SIZE)
        except OSError as exc:
            raise LoadError(
                f"Cannot read capture file: {exc}",
                operation="load",
                parameter="path",
                value=str(path),
            ) from exc

        metadata = self._parse_global_header(header, path)

        try:
            entries = list(self._iter_records(path, metadata, file_size))
        except (Scapy_Exception, struct.error, OSError, ValueError) as exc:
            raise LoadError(
                f"Malformed capture file: {exc}",
                operation="load",
                parameter="path",
                value=str(path),
            ) from exc

        sequence = CaptureSequence.load(entries, metadata)
        self._log.info(
            f"Loaded {len(sequence)} packets from {path} "
            f"(link type {metadata.link_type}, "
            f"{metadata.precision.value}second precision, "
            f"snaplen {metadata.snap_length})"
        )
        return sequence

    def _parse_global_header(self, header: bytes, path: Path) -> CaptureMetadata:
        """Decode the 24-byte global header into :class:`CaptureMetadata`."""
        if len(header) < GLOBAL_HEADER_SIZE:
            raise LoadError(
                "File too short for a pcap global header",
                operation="load",
                parameter="path",
                value=str(path),
            )

        magic = struct.unpack("<I", header[:4])[0]
        if magic in (self.PCAP_MAGIC, self.PCAP_MAGIC_NS):
            endian = "<"
        elif magic in (self.PCAP_MAGIC_SWAPPED, self.PCAP_MAGIC_NS_SWAPPED):
            endian = ">"
        elif magic == self.PCAPNG_MAGIC:
            raise LoadError(
                "pcapng captures are not supported; "
                "convert with 'editcap -F pcap' first",
                operation="load",
                parameter="path",
                value=str(path),
            )
        else:
            raise LoadError(
                f"Unknown pcap magic 0x{magic:08X}",
                operation="load",
                parameter="path",
                value=str(path),
            )

        precision = (
            TimePrecision.NANO
            if magic in (self.PCAP_MAGIC_NS, self.PCAP_MAGIC_NS_SWAPPED)
            else TimePrecision.MICRO
        )
        version_major, version_minor, thiszone, sigfigs, snaplen, link_type = (
            struct.unpack(f"{endian}HHiIII", header[4:GLOBAL_HEADER_SIZE])
        )
        return CaptureMetadata(
            link_type=link_type,
            precision=precision,
            snap_length=snaplen,
            byte_order=endian,
            version_major=version_major,
            version_minor=version_minor,
            thiszone=thiszone,
            sigfigs=sigfigs,
        )

    def _iter_records(
        self,
        path: Path,
        metadata: CaptureMetadata,
        file_size: int,
    ) -> Iterator[tuple[Decimal, bytes, int]]:
        """Yield ``(timestamp, data, wire_length)`` for every complete record."""
        digits = metadata.precision.digits
        consumed = GLOBAL_HEADER_SIZE
        index = 0

        with RawPcapReader(str(path)) as reader:
            for data, meta in reader:
                if len(data) < min(meta.caplen, MTU):
                    self._log.warning(
                        f"Record #{index} is truncated "
                        f"({len(data)} of {meta.caplen} bytes); "
                        f"file was not fully read"
                    )
                    return
                if meta.caplen > MTU:
                    self._log.warning(
                        f"Record #{index} clipped to {MTU} of "
                        f"{meta.caplen} captured bytes"
                    )

                with localcontext() as ctx:
                    ctx.prec = TIMESTAMP_PRECISION
                    timestamp = Decimal(meta.sec) + Decimal(meta.usec).scaleb(-digits)

                consumed += RECORD_HEADER_SIZE + meta.caplen
                index += 1
                yield timestamp, data, meta.wirelen

        if consumed < file_size:
            self._log.warning(
                f"{file_size - consumed} trailing bytes after record #{index - 1} "
                f"in {path}; file was not fully read"
            )

    # ------------------------------------------------------------------ #
    #  Write
    # ------------------------------------------------------------------ #

    def write(self, sequence: CaptureSequence, file_path: str | Path) -> Path:
        """Serialise *sequence* to *file_path* as a classic pcap file.

        The global header is rebuilt from the sequence metadata; record
        timestamps are rounded half-even to the container precision.  The
        file is written to a temporary sibling and moved into place only
        once every record has been serialised.

        Args:
            sequence:  Capture to write.
            file_path: Destination path (parent directories are created).

        Returns:
            The destination path.

        Raises:
            WriteError: If a timestamp does not fit the container or the
                file cannot be written.
        """
        target = Path(file_path)
        metadata = sequence.metadata
        tmp_path: Path | None = None

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb",
                dir=target.parent,
                prefix=f".{target.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_path = Path(fh.name)
                fh.write(self._pack_global_header(metadata))
                for record in sequence:
                    fh.write(self._pack_record(record, metadata))
            os.replace(tmp_path, target)
        except OSError as exc:
            self._discard(tmp_path)
            raise WriteError(
                f"Cannot write capture file: {exc}",
                operation="write",
                parameter="path",
                value=str(target),
            ) from exc
        except WriteError:
            self._discard(tmp_path)
            raise

        self._log.info(f"Wrote {len(sequence)} packets to {target}")
        return target

    def _pack_global_header(self, metadata: CaptureMetadata) -> bytes:
        magic = (
            self.PCAP_MAGIC_NS
            if metadata.precision is TimePrecision.NANO
            else self.PCAP_MAGIC
        )
        try:
            return struct.pack(
                f"{metadata.byte_order}IHHiIII",
                magic,
                metadata.version_major,
                metadata.version_minor,
                metadata.thiszone,
                metadata.sigfigs,
                metadata.snap_length,
                metadata.link_type,
            )
        except struct.error as exc:
            raise WriteError(
                f"Metadata does not fit a pcap header: {exc}",
                operation="write",
                parameter="metadata",
                value=metadata.model_dump(),
            ) from exc

    def _pack_record(self, record: PacketRecord, metadata: CaptureMetadata) -> bytes:
        """Encode one record header plus its captured bytes."""
        seconds, fraction = self._split_timestamp(record, metadata.precision)
        caplen = len(record.payload)
        try:
            header = struct.pack(
                f"{metadata.byte_order}IIII",
                seconds,
                fraction,
                caplen,
                record.original_length,
            )
        except struct.error as exc:
            raise WriteError(
                f"Packet #{record.original_index} does not fit a pcap record: {exc}",
                operation="write",
                parameter="payload",
                value=caplen,
            ) from exc
        return header + record.payload

    @staticmethod
    def _split_timestamp(
        record: PacketRecord, precision: TimePrecision
    ) -> tuple[int, int]:
        """Round a timestamp to *precision* and split it into header fields."""
        with localcontext() as ctx:
            ctx.prec = TIMESTAMP_PRECISION
            rounded = record.timestamp.quantize(
                precision.quantum, rounding=ROUND_HALF_EVEN
            )
            seconds = int(rounded)
            fraction = int((rounded - seconds).scaleb(precision.digits))

        if rounded < 0 or seconds > MAX_SECONDS:
            raise WriteError(
                f"Timestamp of packet #{record.original_index} is outside "
                f"the pcap range [0, {MAX_SECONDS}] seconds",
                operation="write",
                parameter="timestamp",
                value=str(record.timestamp),
            )
        return seconds, fraction

    @staticmethod
    def _discard(tmp_path: Path | None) -> None:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)


def describe_metadata(metadata: CaptureMetadata) -> dict[str, Any]:
    """Human-oriented view of capture metadata for reports."""
    return {
        "link_type": metadata.link_type,
        "precision": metadata.precision.value,
        "snap_length": metadata.snap_length,
        "byte_order": "little" if metadata.byte_order == "<" else "big",
        "version": f"{metadata.version_major}.{metadata.version_minor}",
    }
