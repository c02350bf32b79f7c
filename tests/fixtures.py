"""Shared builders for Warp test suites."""

import struct
from decimal import Decimal

from shared.logger import ForgeLogger
from warp.core.models import CaptureMetadata, CaptureSequence

PCAP_MAGIC = 0xA1B2C3D4
PCAP_MAGIC_NS = 0xA1B23C4D


def quiet_logger(name="warp.tests"):
    return ForgeLogger(name, log_level="debug", console_output=False)


def payload_for(index, size=None):
    """Distinct, deterministic payload for packet *index*."""
    body = index.to_bytes(4, "big")
    if size is None:
        size = 60 + index % 40
    return (body * (size // 4 + 1))[:size]


def make_sequence(timestamps, payloads=None, metadata=None):
    if payloads is None:
        payloads = [payload_for(i) for i in range(len(timestamps))]
    entries = [(Decimal(str(ts)), p) for ts, p in zip(timestamps, payloads)]
    return CaptureSequence.load(entries, metadata or CaptureMetadata())


def write_raw_pcap(path, records, nano=False, endian="<", linktype=1, snaplen=65535,
                   thiszone=0, sigfigs=0):
    """Write a classic pcap file byte by byte.

    *records* holds ``(seconds, fraction, data)`` or
    ``(seconds, fraction, data, orig_len)`` tuples.
    """
    magic = PCAP_MAGIC_NS if nano else PCAP_MAGIC
    with open(path, "wb") as fh:
        fh.write(struct.pack(endian + "IHHiIII", magic, 2, 4, thiszone, sigfigs,
                             snaplen, linktype))
        for record in records:
            seconds, fraction, data = record[:3]
            orig_len = record[3] if len(record) > 3 else len(data)
            fh.write(struct.pack(endian + "IIII", seconds, fraction, len(data), orig_len))
            fh.write(data)
    return path
