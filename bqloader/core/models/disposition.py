"""
Disposition model representing the terminal outcome of a pending record.
"""

from typing import Literal

from pydantic import BaseModel, model_validator

from .diagnostic_document import DiagnosticDocument

SUCCESS_CHANNEL = "success"
FAILURE_CHANNEL = "failure"


class Disposition(BaseModel):
    """
    Terminal state of a PendingRecord. Immutable once created.

    Attributes:
        status: "succeeded" or "failed"
        reason: Why the record failed (required when failed)
        diagnostics: Diagnostic document for rows rejected by the sink
    """

    status: Literal["succeeded", "failed"]
    reason: str | None = None
    diagnostics: DiagnosticDocument | None = None

    @model_validator(mode="after")
    def check_failure_details(self):
        """Failed dispositions carry a reason, succeeded ones carry nothing."""
        if self.status == "failed" and not self.reason:
            raise ValueError("A failed disposition requires a reason")
        if self.status == "succeeded" and (self.reason or self.diagnostics):
            raise ValueError("A succeeded disposition cannot carry failure details")
        return self

    @classmethod
    def succeeded(cls) -> "Disposition":
        return cls(status="succeeded")

    @classmethod
    def failed(cls, reason: str, diagnostics: DiagnosticDocument | None = None) -> "Disposition":
        return cls(status="failed", reason=reason, diagnostics=diagnostics)

    @property
    def channel(self) -> str:
        """Downstream channel the record is routed to."""
        return SUCCESS_CHANNEL if self.status == "succeeded" else FAILURE_CHANNEL

    class Config:
        frozen = True
