"""
Insert pipeline orchestration.

Coordinates the flow: collect → insert → reconcile
"""

from typing import Literal, Optional

from pydantic import BaseModel

from bqloader.config.settings import LoaderSettings
from bqloader.core.models import Batch, TableTarget, WholesaleFailure
from bqloader.observability.logger import get_logger, log_operation
from bqloader.observability.metrics import MetricsCollector
from bqloader.sink.executor import InsertExecutor
from bqloader.sink.insert_client import SinkClient
from bqloader.sources.base import RecordSource

from .collector import BatchCollector
from .reconciler import Reconciler

logger = get_logger(__name__)

BatchStatus = Literal["inserted", "partial", "wholesale_failure", "skipped", "empty"]


class BatchReport(BaseModel):
    """
    Outcome of one batch.

    Attributes:
        pulled: Records pulled from the source
        succeeded: Records routed to success
        failed: Records routed to failure (malformed included)
        malformed: Records that could not be parsed
        inserted_rows: Rows sent to the sink
        wholesale_failure: Whether the insert request failed as a whole
        status: inserted, partial, wholesale_failure, skipped (nothing
                transformable) or empty (nothing pulled)
    """

    pulled: int = 0
    succeeded: int = 0
    failed: int = 0
    malformed: int = 0
    inserted_rows: int = 0
    wholesale_failure: bool = False
    status: BatchStatus = "empty"


class InsertPipeline:
    """
    Orchestrates batch inserts for one source and one destination table.

    Flow:
    1. Collect up to batch_size records, finalizing malformed ones
    2. Insert the transformable rows in one request
    3. Reconcile the response with the collected records

    Every collected record ends up on the success or failure channel. If a
    batch is aborted before all its records are finalized, the remaining
    ones are handed back to the source and the error propagates.
    """

    def __init__(
        self,
        source: RecordSource,
        client: SinkClient,
        settings: LoaderSettings,
        metrics: Optional[MetricsCollector] = None,
    ):
        """
        Initialize insert pipeline.

        Args:
            source: Upstream record source
            client: Bulk-insert client, reused across batches
            settings: Loader settings (target table and batch size)
            metrics: Metrics collector; one bound to the target table is created if None
        """
        self.source = source
        self.client = client
        self.settings = settings
        self.target: TableTarget = settings.target
        self.metrics = metrics or MetricsCollector(str(self.target))

        self.collector = BatchCollector(source, metrics=self.metrics)
        self.executor = InsertExecutor(client, metrics=self.metrics)
        self.reconciler = Reconciler(source, metrics=self.metrics)

    def process_batch(self) -> BatchReport:
        """
        Run one collect → insert → reconcile cycle.

        Returns:
            BatchReport; succeeded + failed always equals pulled

        Raises:
            BatchCardinalityError: If the sink response cannot be attributed
                                   to the rows; the batch is requeued first
        """
        batch = self.collector.collect(self.settings.batch_size)
        malformed = len(self.collector.last_malformed)
        pulled = len(batch) + malformed

        if pulled == 0:
            return BatchReport()

        if batch.is_empty:
            logger.info(f"All {malformed} records of the batch were malformed, nothing to insert")
            report = BatchReport(
                pulled=pulled,
                failed=malformed,
                malformed=malformed,
                status="skipped",
            )
            self._record(report)
            return report

        with log_operation(
            f"Insert batch into {self.target}",
            logger=logger,
            table=str(self.target),
            row_count=len(batch),
        ):
            try:
                outcome = self.executor.execute(self.target, batch)
                summary = self.reconciler.reconcile(batch, outcome)
            except BaseException:
                self._abort(batch)
                raise

        wholesale = isinstance(outcome, WholesaleFailure)
        if wholesale:
            status = "wholesale_failure"
        elif summary.failed:
            status = "partial"
        else:
            status = "inserted"

        report = BatchReport(
            pulled=pulled,
            succeeded=summary.succeeded,
            failed=summary.failed + malformed,
            malformed=malformed,
            inserted_rows=len(batch),
            wholesale_failure=wholesale,
            status=status,
        )
        self._record(report)

        logger.info(
            f"Batch done: {report.succeeded} succeeded, {report.failed} failed "
            f"({report.malformed} malformed)",
            extra=report.model_dump(),
        )
        return report

    def run(self, max_batches: Optional[int] = None) -> list[BatchReport]:
        """
        Process batches until the source is drained.

        Args:
            max_batches: Stop after this many non-empty batches

        Returns:
            Reports of the processed batches, empty pulls excluded
        """
        reports: list[BatchReport] = []
        while max_batches is None or len(reports) < max_batches:
            report = self.process_batch()
            if report.pulled == 0:
                break
            reports.append(report)
        return reports

    def _abort(self, batch: Batch) -> None:
        unfinalized = [record for record in batch.records if not record.is_finalized]
        if not unfinalized:
            return

        self.source.requeue(unfinalized)
        self.metrics.record_requeued(len(unfinalized))
        self.metrics.record_batch(pulled=0, succeeded=0, failed=0, status="aborted")
        logger.error(
            f"Batch aborted, requeued {len(unfinalized)} unfinalized records",
            extra={"table": str(self.target), "requeued": len(unfinalized)},
        )

    def _record(self, report: BatchReport) -> None:
        self.metrics.record_batch(
            pulled=report.pulled,
            succeeded=report.succeeded,
            failed=report.failed,
            status=report.status,
        )


def summarize(reports: list[BatchReport]) -> BatchReport:
    """Sum a list of batch reports into one (status reflects the last batch)."""
    total = BatchReport()
    for report in reports:
        total = BatchReport(
            pulled=total.pulled + report.pulled,
            succeeded=total.succeeded + report.succeeded,
            failed=total.failed + report.failed,
            malformed=total.malformed + report.malformed,
            inserted_rows=total.inserted_rows + report.inserted_rows,
            wholesale_failure=total.wholesale_failure or report.wholesale_failure,
            status=report.status,
        )
    return total
