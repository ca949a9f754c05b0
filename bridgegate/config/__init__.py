"""
Bridgegate Configuration

Loads config.toml; environment variables override TOML values.
"""

from .loader import (
    BridgeSettings,
    BridgeSectionConfig,
    LoggingSectionConfig,
    load_settings,
)

__all__ = [
    "BridgeSettings",
    "BridgeSectionConfig",
    "LoggingSectionConfig",
    "load_settings",
]
