"""
Diagnostic payload builder.

Renders the errors the sink reported for one row, together with the
row's original JSON text, into the document that replaces the payload of
the rejected record.
"""

from collections.abc import Iterable
from datetime import datetime, timezone

from bqloader.core.models import CREATED_AT_FORMAT, DiagnosticDocument, SinkError


def format_errors(errors: Iterable[SinkError]) -> list[str]:
    """One "reason/location/message" string per error, order preserved."""
    return [error.format() for error in errors]


def format_created_at(now: datetime) -> str:
    """
    Render a timestamp in UTC at minute precision.

    Naive datetimes are taken to be UTC already.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).strftime(CREATED_AT_FORMAT)


def build_diagnostic_document(
    errors: Iterable[SinkError],
    original_content: str,
    now: datetime,
) -> DiagnosticDocument:
    """
    Build the diagnostic document of a rejected row.

    Args:
        errors: Errors reported by the sink for the row (at least one)
        original_content: Original JSON text of the record
        now: Creation instant

    Returns:
        DiagnosticDocument
    """
    return DiagnosticDocument(
        errors=format_errors(errors),
        content=original_content,
        created_at=format_created_at(now),
    )
