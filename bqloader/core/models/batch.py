"""
Batch model representing the order-aligned working set of one insert cycle.
"""

from typing import Any

from pydantic import BaseModel, model_validator

from .pending_record import PendingRecord


class Batch(BaseModel):
    """
    Three order-aligned sequences of equal length.

    records[i] and original_content[i] are the provenance of rows[i].
    The sequences are tuples and the model is frozen, so nothing can
    reorder, filter or resize one of them after collection.

    Attributes:
        rows: Sink-bound rows, in arrival order
        records: Source records the rows were built from
        original_content: Original JSON text of each record
    """

    rows: tuple[dict[str, Any], ...] = ()
    records: tuple[PendingRecord, ...] = ()
    original_content: tuple[str, ...] = ()

    @model_validator(mode="after")
    def check_alignment(self):
        """Reject sequences of different lengths."""
        lengths = {len(self.rows), len(self.records), len(self.original_content)}
        if len(lengths) != 1:
            raise ValueError(
                f"Batch sequences are misaligned: rows={len(self.rows)}, "
                f"records={len(self.records)}, original_content={len(self.original_content)}"
            )
        return self

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    class Config:
        frozen = True
