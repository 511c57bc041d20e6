"""
Reconciler.

Zips the insert outcome with the batch by position and finalizes every
record of the batch exactly once.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import NamedTuple

from bqloader.core.exceptions import BatchCardinalityError
from bqloader.core.models import (
    Batch,
    Disposition,
    InsertOutcome,
    PerRowResult,
    WholesaleFailure,
)
from bqloader.observability.logger import get_logger
from bqloader.observability.metrics import MetricsCollector
from bqloader.sources.base import RecordSource

from .collector import ERROR_MESSAGE_ATTRIBUTE
from .diagnostics import build_diagnostic_document

logger = get_logger(__name__)

WHOLESALE_FAILURE_REASON = "insert request failed"
ROW_REJECTED_REASON = "row rejected by sink"


class ReconcileSummary(NamedTuple):
    succeeded: int
    failed: int


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Reconciler:
    """
    Assigns dispositions to the records of an inserted batch.
    """

    def __init__(
        self,
        source: RecordSource,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize reconciler.

        Args:
            source: Source that receives the finalized records
            metrics: Optional metrics collector
            clock: Returns the creation instant of diagnostic documents
        """
        self.source = source
        self.metrics = metrics
        self.clock = clock

    def reconcile(self, batch: Batch, outcome: InsertOutcome) -> ReconcileSummary:
        """
        Finalize every record of the batch.

        Args:
            batch: Batch that was sent to the sink
            outcome: Result of the insert call

        Returns:
            ReconcileSummary with the number of succeeded and failed records

        Raises:
            BatchCardinalityError: If the per-row result does not cover
                                   exactly the rows of the batch; no record
                                   is finalized in that case
        """
        if isinstance(outcome, WholesaleFailure):
            return self._fail_all(batch, outcome)

        if len(outcome) != len(batch):
            raise BatchCardinalityError(len(batch), len(outcome))

        return self._reconcile_rows(batch, outcome)

    def _fail_all(self, batch: Batch, outcome: WholesaleFailure) -> ReconcileSummary:
        disposition = Disposition.failed(WHOLESALE_FAILURE_REASON)
        for record in batch.records:
            record.attributes[ERROR_MESSAGE_ATTRIBUTE] = f"{WHOLESALE_FAILURE_REASON}: {outcome.message}"
            self.source.finalize(record, disposition)
        return ReconcileSummary(succeeded=0, failed=len(batch))

    def _reconcile_rows(self, batch: Batch, outcome: PerRowResult) -> ReconcileSummary:
        succeeded = 0
        failed = 0
        now = self.clock()

        for record, content, errors in zip(batch.records, batch.original_content, outcome.error_lists):
            if not errors:
                self.source.finalize(record, Disposition.succeeded())
                succeeded += 1
                continue

            document = build_diagnostic_document(errors, content, now)
            record.replace_payload(document.to_payload())
            self.source.finalize(record, Disposition.failed(ROW_REJECTED_REASON, diagnostics=document))
            failed += 1

            logger.warning(
                f"Row rejected by sink: {record.record_id}",
                extra={
                    **record.describe(),
                    "error_count": len(document.errors),
                    "errors": document.errors,
                },
            )
            if self.metrics:
                self.metrics.record_row_errors([error.reason for error in errors])

        return ReconcileSummary(succeeded=succeeded, failed=failed)
