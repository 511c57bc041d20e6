"""
Insert executor.

Issues exactly one bulk-insert request per non-empty batch and turns the
client's answer into an InsertOutcome.
"""

from bqloader.core.exceptions import BatchCardinalityError, SinkInsertError
from bqloader.core.models import (
    Batch,
    InsertOutcome,
    PerRowResult,
    TableTarget,
    WholesaleFailure,
)
from bqloader.observability.logger import get_logger
from bqloader.observability.metrics import MetricsCollector

from .insert_client import SinkClient

logger = get_logger(__name__)


class InsertExecutor:
    """
    Sends batches to the sink. Does not retry; retries belong to the client.
    """

    def __init__(self, client: SinkClient, metrics: MetricsCollector | None = None):
        """
        Initialize insert executor.

        Args:
            client: Bulk-insert client
            metrics: Optional metrics collector
        """
        self.client = client
        self.metrics = metrics

    def execute(self, target: TableTarget, batch: Batch) -> InsertOutcome | None:
        """
        Insert the rows of a batch.

        Unknown fields are always ignored by the sink instead of failing the row.

        Args:
            target: Destination dataset and table
            batch: Collected batch

        Returns:
            None for an empty batch (no request is made), WholesaleFailure if
            the request failed as a whole, PerRowResult otherwise

        Raises:
            BatchCardinalityError: If the response does not have one error
                                   list per row
        """
        if batch.is_empty:
            logger.debug(f"Nothing to insert into {target}")
            return None

        # Shallow copies so the client cannot alter the collected rows
        rows = [dict(row) for row in batch.rows]

        try:
            if self.metrics:
                with self.metrics.insert_timer():
                    error_lists = self._insert(target, rows)
            else:
                error_lists = self._insert(target, rows)
        except SinkInsertError as e:
            logger.error(
                f"Insert of {len(rows)} rows into {target} failed: {e}",
                extra={"table": str(target), "row_count": len(rows)},
                exc_info=True,
            )
            return WholesaleFailure(message=str(e))

        if len(error_lists) != len(rows):
            raise BatchCardinalityError(len(rows), len(error_lists))

        return PerRowResult(error_lists=tuple(tuple(errors) for errors in error_lists))

    def _insert(self, target: TableTarget, rows: list[dict]) -> list:
        return self.client.insert(
            target.dataset_id,
            target.table_id,
            rows,
            ignore_unknown_fields=True,
        )
