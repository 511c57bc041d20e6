"""
In-memory record source.

Keeps pending records in a FIFO queue and finalized records per channel.
Useful for embedding the loader in another process and for tests.
"""

from collections import deque
from collections.abc import Iterable
from itertools import count

from bqloader.core.models import FAILURE_CHANNEL, SUCCESS_CHANNEL, PendingRecord

from .base import RecordSource


class InMemoryRecordSource(RecordSource):
    """
    FIFO queue of pending records.

    Usage:
        source = InMemoryRecordSource()
        source.enqueue(b'{"test_col": 2}')
        ...
        source.transferred("success")
    """

    def __init__(self):
        self._pending: deque[PendingRecord] = deque()
        self._routed: dict[str, list[PendingRecord]] = {
            SUCCESS_CHANNEL: [],
            FAILURE_CHANNEL: [],
        }
        self._ids = count(1)

    def enqueue(self, payload: bytes | str, attributes: dict[str, str] | None = None) -> PendingRecord:
        """
        Add a record to the end of the queue.

        Args:
            payload: Record content; str is encoded as UTF-8
            attributes: Optional record attributes

        Returns:
            The queued PendingRecord
        """
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        record = PendingRecord(
            record_id=f"record-{next(self._ids)}",
            payload=payload,
            attributes=dict(attributes or {}),
        )
        self._pending.append(record)
        return record

    def pull(self, max_records: int) -> list[PendingRecord]:
        records = []
        while self._pending and len(records) < max_records:
            records.append(self._pending.popleft())
        return records

    def _route(self, record: PendingRecord, channel: str) -> None:
        self._routed[channel].append(record)

    def requeue(self, records: Iterable[PendingRecord]) -> None:
        # extendleft reverses, so feed it reversed to keep the original order
        self._pending.extendleft(reversed(list(records)))

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def transferred(self, channel: str) -> list[PendingRecord]:
        """Records routed to a channel so far, in routing order."""
        return list(self._routed[channel])
