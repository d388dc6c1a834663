"""
Configuration package.

Exports the singleton settings instance for easy importing.

Usage:
    from madatabase.config import settings

    print(settings.url)
"""

from madatabase.config.settings import Settings, settings, get_settings, print_settings

__all__ = [
    "Settings",
    "settings",
    "get_settings",
    "print_settings",
]
