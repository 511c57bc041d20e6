"""
Core data models for the BigQuery loader.

All models use Pydantic for runtime validation and type safety.
"""

from .batch import Batch
from .diagnostic_document import CREATED_AT_FORMAT, DiagnosticDocument
from .disposition import FAILURE_CHANNEL, SUCCESS_CHANNEL, Disposition
from .insert_outcome import InsertOutcome, PerRowResult, WholesaleFailure
from .pending_record import PendingRecord
from .sink_error import SinkError
from .table_target import TableTarget

__all__ = [
    "Batch",
    "CREATED_AT_FORMAT",
    "DiagnosticDocument",
    "Disposition",
    "FAILURE_CHANNEL",
    "SUCCESS_CHANNEL",
    "InsertOutcome",
    "PerRowResult",
    "WholesaleFailure",
    "PendingRecord",
    "SinkError",
    "TableTarget",
]
