"""
PcapForge Shared Module
========================

Common utilities, models, and configuration management shared across
PcapForge toolkit modules.
"""

from shared.config import ForgeConfig, get_config

__all__ = ["ForgeConfig", "get_config"]
