"""Common utilities for PaddleGuard."""

from paddleguard.common.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
