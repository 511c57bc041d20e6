"""
Loader configuration.
"""

from .settings import DEFAULT_BATCH_SIZE, LoaderSettings, load_settings

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "LoaderSettings",
    "load_settings",
]
