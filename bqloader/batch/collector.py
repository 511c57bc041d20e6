"""
Batch collector.

Pulls a bounded number of pending records, transforms each into a row and
finalizes malformed ones straight away. The returned Batch keeps rows,
records and original content aligned by arrival position.
"""

from collections.abc import Callable

from bqloader.core.exceptions import ParseError
from bqloader.core.models import Batch, Disposition, PendingRecord
from bqloader.core.transform import TransformedRow, transform
from bqloader.observability.logger import get_logger
from bqloader.observability.metrics import MetricsCollector
from bqloader.sources.base import RecordSource

logger = get_logger(__name__)

ERROR_MESSAGE_ATTRIBUTE = "error_message"


class BatchCollector:
    """
    Builds one Batch per call from an upstream record source.
    """

    def __init__(
        self,
        source: RecordSource,
        metrics: MetricsCollector | None = None,
        transformer: Callable[[bytes], TransformedRow] = transform,
    ):
        """
        Initialize batch collector.

        Args:
            source: Upstream record source
            metrics: Optional metrics collector
            transformer: Payload-to-row transformation
        """
        self.source = source
        self.metrics = metrics
        self.transformer = transformer
        self.last_malformed: list[PendingRecord] = []

    def collect(self, max_batch_size: int) -> Batch:
        """
        Pull and transform up to max_batch_size records.

        Malformed records get an error_message attribute and are routed to
        failure immediately; they are not part of the returned Batch.

        Args:
            max_batch_size: Maximum number of records to pull

        Returns:
            Batch of the transformable records, in arrival order

        Raises:
            ValueError: If max_batch_size is not positive
        """
        if max_batch_size <= 0:
            raise ValueError(f"max_batch_size must be a positive integer, got {max_batch_size}")

        pulled = self.source.pull(max_batch_size)
        self.last_malformed = []

        rows = []
        records = []
        original_content = []

        try:
            for record in pulled:
                try:
                    transformed = self._transform(record)
                except ParseError as e:
                    self._reject(record, e)
                    continue

                rows.append(transformed.row)
                records.append(record)
                original_content.append(transformed.original_content)
        except BaseException:
            # Nothing collected so far may be lost if the loop is interrupted
            self.source.requeue(r for r in pulled if not r.is_finalized)
            raise

        if pulled:
            logger.debug(
                f"Collected {len(rows)} of {len(pulled)} records "
                f"({len(self.last_malformed)} malformed)"
            )

        return Batch(
            rows=tuple(rows),
            records=tuple(records),
            original_content=tuple(original_content),
        )

    def _transform(self, record: PendingRecord) -> TransformedRow:
        try:
            payload = record.read_payload()
        except OSError as e:
            raise ParseError("io", str(e)) from e
        return self.transformer(payload)

    def _reject(self, record: PendingRecord, error: ParseError) -> None:
        reason = error.describe()
        logger.error(reason, extra={**record.describe(), "kind": error.kind})

        record.attributes[ERROR_MESSAGE_ATTRIBUTE] = reason
        self.source.finalize(record, Disposition.failed(reason))
        self.last_malformed.append(record)

        if self.metrics:
            self.metrics.record_malformed(error.kind)
