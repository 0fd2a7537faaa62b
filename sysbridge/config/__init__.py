"""
Sysbridge Configuration

Loads sysbridge.toml. Environment variables override TOML values.
"""

from .loader import (
    BridgeConfig,
    LoggingConfig,
    NetworkConfig,
    RentSectionConfig,
    SysbridgeConfig,
    load_config,
)

__all__ = [
    "BridgeConfig",
    "LoggingConfig",
    "NetworkConfig",
    "RentSectionConfig",
    "SysbridgeConfig",
    "load_config",
]
