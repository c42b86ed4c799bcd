# PATH: config/__init__.py
"""
Configuration loading for RELAYGATE.
"""

from config.settings import (
    CONFIG_DIR,
    DEFAULT_SETTINGS_PATH,
    CacheSettings,
    CacheTTLSettings,
    GatewaySettings,
    LivenessSettings,
    load_settings,
    load_yaml,
)

__all__ = [
    "CONFIG_DIR",
    "DEFAULT_SETTINGS_PATH",
    "load_yaml",
    "CacheSettings",
    "CacheTTLSettings",
    "GatewaySettings",
    "LivenessSettings",
    "load_settings",
]
