"""
DiagnosticDocument model written back as the payload of a row rejected by the sink.
"""

import json

from pydantic import BaseModel, Field

# UTC, minute precision, e.g. 2025-11-17T10:42Z
CREATED_AT_FORMAT = "%Y-%m-%dT%H:%MZ"


class DiagnosticDocument(BaseModel):
    """
    Fixed-shape failure artifact for one rejected row.

    Attributes:
        errors: Formatted sink errors, one string per error
        content: Original JSON text of the record
        created_at: UTC creation time at minute precision
    """

    errors: list[str] = Field(..., min_length=1)
    content: str
    created_at: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}Z$")

    def to_payload(self) -> bytes:
        """Serialize to the UTF-8 JSON bytes that replace the record payload."""
        return json.dumps(
            {
                "errors": list(self.errors),
                "content": self.content,
                "created_at": self.created_at,
            }
        ).encode("utf-8")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "errors": ["invalid/test_col/Cannot convert value to integer."],
                "content": "{\"test_col\": \"two\"}",
                "created_at": "2025-11-17T10:42Z"
            }
        }
