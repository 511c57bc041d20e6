"""
Record source contract.

A source hands out pending records, receives their final disposition and
takes back records whose batch was aborted before they were finalized.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from bqloader.core.exceptions import DispositionError
from bqloader.core.models import Disposition, PendingRecord


class RecordSource(ABC):
    """
    Abstract base class for upstream record sources.

    Records are routed to exactly two channels: "success" and "failure".
    """

    @abstractmethod
    def pull(self, max_records: int) -> list[PendingRecord]:
        """
        Take up to max_records pending records, oldest first.

        Returns fewer (possibly none) when fewer are available; never blocks
        waiting for new records.
        """
        pass

    @abstractmethod
    def _route(self, record: PendingRecord, channel: str) -> None:
        """Move a record to its downstream channel; the disposition is assigned after."""
        pass

    @abstractmethod
    def requeue(self, records: Iterable[PendingRecord]) -> None:
        """Return unfinalized records to pending state, keeping their order."""
        pass

    def finalize(self, record: PendingRecord, disposition: Disposition) -> None:
        """
        Route the record, then assign the disposition.

        A record whose routing fails stays unfinalized, so an aborted
        batch hands it back through requeue().

        Raises:
            DispositionError: If the record was already finalized
        """
        if record.is_finalized:
            raise DispositionError(
                f"Record {record.record_id} already has disposition {record.disposition.status}"
            )
        self._route(record, disposition.channel)
        record.assign_disposition(disposition)
