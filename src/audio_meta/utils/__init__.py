from .config import (
    CorsPolicy,
    GatewaySettings,
    load_settings,
    load_settings_file,
)

__all__ = [
    "CorsPolicy",
    "GatewaySettings",
    "load_settings",
    "load_settings_file",
]
