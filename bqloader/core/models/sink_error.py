"""
SinkError model representing one error reported by the sink for one row.
"""

from pydantic import BaseModel


class SinkError(BaseModel):
    """
    One entry of a row's error list, as returned by the bulk-insert API.

    The reason and location vocabulary is defined by BigQuery and passed
    through verbatim.

    Attributes:
        reason: Short error code (e.g. "invalid", "stopped")
        location: Field or position the error refers to, may be empty
        message: Human-readable description
    """

    reason: str = ""
    location: str = ""
    message: str = ""

    def format(self) -> str:
        """Render as "reason/location/message"."""
        return f"{self.reason}/{self.location}/{self.message}"

    def __str__(self) -> str:
        return self.format()

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "reason": "invalid",
                "location": "test_col",
                "message": "Cannot convert value to integer."
            }
        }
