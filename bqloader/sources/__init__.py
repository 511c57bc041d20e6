"""
Upstream record sources.
"""

from .base import RecordSource
from .directory_source import DirectoryRecordSource, SpooledRecord
from .memory_source import InMemoryRecordSource

__all__ = [
    "RecordSource",
    "DirectoryRecordSource",
    "SpooledRecord",
    "InMemoryRecordSource",
]
