"""
BigQuery sink: client construction, bulk-insert client and insert executor.
"""

from .connection import BigQueryConnection, connect
from .executor import InsertExecutor
from .insert_client import BigQueryInsertClient, SinkClient, expand_insert_errors

__all__ = [
    "BigQueryConnection",
    "connect",
    "InsertExecutor",
    "BigQueryInsertClient",
    "SinkClient",
    "expand_insert_errors",
]
