"""
Warp Collectors
================

Capture-file input and output for the Warp engine.

Modules:
    pcap_codec  -- Classic libpcap reader (struct + Scapy) and writer
"""

from warp.collectors.pcap_codec import PcapCodec

__all__ = [
    "PcapCodec",
]
