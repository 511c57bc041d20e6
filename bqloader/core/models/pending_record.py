"""
PendingRecord model representing one unit of upstream work awaiting a disposition.
"""

from typing import Any

from pydantic import BaseModel, Field

from bqloader.core.exceptions import DispositionError
from .disposition import Disposition


class PendingRecord(BaseModel):
    """
    Opaque handle to one upstream record.

    The source owns the record until it is collected into a batch; from
    then on the loader owns its disposition, which can be assigned once.

    Attributes:
        record_id: Source-assigned identifier, unique within a source
        payload: Record content, expected to be a UTF-8 JSON document;
                 None until read for sources that load lazily
        attributes: Free-form string attributes (ordered)
        disposition: Terminal outcome, None while pending
    """

    record_id: str = Field(..., min_length=1)
    payload: bytes | None = None
    attributes: dict[str, str] = Field(default_factory=dict)
    disposition: Disposition | None = None

    @property
    def is_finalized(self) -> bool:
        return self.disposition is not None

    def assign_disposition(self, disposition: Disposition) -> None:
        """
        Record the terminal outcome.

        Raises:
            DispositionError: If the record already has a disposition
        """
        if self.disposition is not None:
            raise DispositionError(
                f"Record {self.record_id} already has disposition {self.disposition.status}"
            )
        self.disposition = disposition

    def replace_payload(self, payload: bytes) -> None:
        """Replace the record content before it is routed onward."""
        if self.disposition is not None:
            raise DispositionError(f"Record {self.record_id} is already finalized")
        self.payload = payload

    def read_payload(self) -> bytes:
        """Return the record content; sources may override to read lazily."""
        return self.payload if self.payload is not None else b""

    def describe(self) -> dict[str, Any]:
        """Short summary for log records."""
        return {"record_id": self.record_id, "size": len(self.payload or b"")}

    class Config:
        json_schema_extra = {
            "example": {
                "record_id": "0001.json",
                "payload": "{\"test_col\": 2}",
                "attributes": {"filename": "0001.json"}
            }
        }
