"""
Insert outcome models returned by the insert executor.
"""

from pydantic import BaseModel, Field

from .sink_error import SinkError


class WholesaleFailure(BaseModel):
    """
    The insert request failed before any per-row detail was available.

    Attributes:
        message: Transport, auth or quota error reported by the client
    """

    message: str

    class Config:
        frozen = True


class PerRowResult(BaseModel):
    """
    Structured insert response, one error list per requested row.

    Attributes:
        error_lists: error_lists[i] belongs to rows[i] and is empty iff
                     row i was accepted
    """

    error_lists: tuple[tuple[SinkError, ...], ...] = Field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.error_lists)

    def errors_for(self, index: int) -> tuple[SinkError, ...]:
        return self.error_lists[index]

    @property
    def failed_indexes(self) -> list[int]:
        return [i for i, errors in enumerate(self.error_lists) if errors]

    class Config:
        frozen = True


InsertOutcome = WholesaleFailure | PerRowResult
