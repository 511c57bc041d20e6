"""
Exception hierarchy for the BigQuery loader.

Each error is raised where it is detected and handled at the boundary
that owns the recovery (collector, executor, pipeline or CLI).
"""

from typing import Literal

ParseErrorKind = Literal["io", "syntax", "structural"]

# Label used in the error_message attribute of a malformed record
PARSE_ERROR_LABELS: dict[str, str] = {
    "io": "IOError",
    "syntax": "JsonSyntaxError",
    "structural": "JsonStructureError",
}


class LoaderError(Exception):
    """Base class for all loader errors."""
    pass


class ParseError(LoaderError):
    """
    Raised when a record payload cannot be turned into a row.

    Attributes:
        kind: "io" (payload unreadable or not UTF-8), "syntax" (invalid JSON)
              or "structural" (valid JSON that is not an object)
        message: Original message from the decoder
    """

    def __init__(self, kind: ParseErrorKind, message: str):
        if kind not in PARSE_ERROR_LABELS:
            raise ValueError(f"Unknown parse error kind: {kind}")
        self.kind = kind
        self.message = message
        super().__init__(self.describe())

    @property
    def label(self) -> str:
        return PARSE_ERROR_LABELS[self.kind]

    def describe(self) -> str:
        """Human-readable reason attached to the failed record."""
        return f"{self.label} while reading JSON item: {self.message}"


class SinkInsertError(LoaderError):
    """Raised by a sink client when an insert fails before any per-row result exists."""
    pass


class BatchCardinalityError(LoaderError):
    """
    Raised when an insert response does not line up with the request rows.

    No row can be attributed to its record once this happens, so the batch
    is aborted instead of partially reconciled.
    """

    def __init__(self, expected: int, actual: int | None = None, detail: str | None = None):
        self.expected = expected
        self.actual = actual
        if actual is None:
            message = f"Insert response does not match the {expected} rows sent"
        else:
            message = f"Insert response covers {actual} rows but {expected} were sent"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class SinkInitializationError(LoaderError):
    """Raised when the BigQuery client cannot be built from the settings."""
    pass


class DispositionError(LoaderError):
    """Raised when a record is finalized more than once."""
    pass
