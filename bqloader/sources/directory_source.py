"""
Spool-directory record source.

Layout under the root directory:
    pending/   one JSON document per file, processed in file-name order
    success/   records inserted by the sink
    failure/   malformed or rejected records, with an attributes sidecar

A finalized record is written to its channel directory (with the payload
as it is at finalization time, i.e. the diagnostic document for rows the
sink rejected) and then removed from pending/.
"""

import json
import os
from collections.abc import Iterable
from pathlib import Path

from pydantic import PrivateAttr

from bqloader.core.models import FAILURE_CHANNEL, SUCCESS_CHANNEL, PendingRecord
from bqloader.observability.logger import get_logger

from .base import RecordSource

logger = get_logger(__name__)

PENDING_DIR = "pending"
ATTRIBUTES_SUFFIX = ".attributes.json"


class SpooledRecord(PendingRecord):
    """A pending record backed by a file; the payload is read on first access."""

    path: Path
    _replaced: bool = PrivateAttr(default=False)

    def read_payload(self) -> bytes:
        """
        Raises:
            OSError: If the spooled file cannot be read
        """
        if self.payload is None:
            self.payload = self.path.read_bytes()
        return self.payload

    def replace_payload(self, payload: bytes) -> None:
        super().replace_payload(payload)
        self._replaced = True

    @property
    def payload_replaced(self) -> bool:
        return self._replaced


class DirectoryRecordSource(RecordSource):
    """
    Record source backed by a spool directory.

    Records handed out by pull() are claimed until they are finalized or
    requeued, so a second pull in the same process never returns them twice.
    """

    def __init__(self, root: str | Path, pattern: str = "*.json"):
        """
        Initialize directory source.

        Args:
            root: Spool root; pending/, success/ and failure/ are created if missing
            pattern: Glob pattern selecting pending record files
        """
        self.root = Path(root)
        self.pattern = pattern
        self._claimed: set[str] = set()

        for name in (PENDING_DIR, SUCCESS_CHANNEL, FAILURE_CHANNEL):
            (self.root / name).mkdir(parents=True, exist_ok=True)

        logger.info(f"Initialized DirectoryRecordSource at {self.root}")

    @property
    def pending_dir(self) -> Path:
        return self.root / PENDING_DIR

    def channel_dir(self, channel: str) -> Path:
        return self.root / channel

    def pull(self, max_records: int) -> list[PendingRecord]:
        records: list[PendingRecord] = []
        for path in sorted(self.pending_dir.glob(self.pattern)):
            if len(records) >= max_records:
                break
            if path.name in self._claimed or path.name.endswith(ATTRIBUTES_SUFFIX):
                continue
            self._claimed.add(path.name)
            records.append(
                SpooledRecord(
                    record_id=path.name,
                    path=path,
                    attributes={"filename": path.name},
                )
            )
        return records

    def _route(self, record: PendingRecord, channel: str) -> None:
        if not isinstance(record, SpooledRecord):
            raise TypeError(f"Record {record.record_id} does not belong to this source")

        destination = self.channel_dir(channel) / record.path.name
        # Untouched payloads are moved as-is; replaced ones are rewritten
        if record.payload_replaced:
            _write_atomic(destination, record.payload or b"")
            record.path.unlink(missing_ok=True)
        else:
            try:
                os.replace(record.path, destination)
            except FileNotFoundError:
                # Pending file removed after pull: route what was read, if anything
                logger.warning(
                    f"Pending file {record.path} disappeared, routing record from memory",
                    extra={"record_id": record.record_id, "channel": channel},
                )
                _write_atomic(destination, record.payload or b"")

        if channel == FAILURE_CHANNEL or len(record.attributes) > 1:
            sidecar = destination.with_name(destination.name + ATTRIBUTES_SUFFIX)
            _write_atomic(sidecar, json.dumps(record.attributes, indent=2).encode("utf-8"))

        self._claimed.discard(record.path.name)

    def requeue(self, records: Iterable[PendingRecord]) -> None:
        for record in records:
            self._claimed.discard(record.record_id)

    def routed_files(self, channel: str) -> list[Path]:
        """Record files present in a channel directory, sidecars excluded."""
        return sorted(
            path for path in self.channel_dir(channel).iterdir()
            if not path.name.endswith(ATTRIBUTES_SUFFIX)
        )


def _write_atomic(path: Path, content: bytes) -> None:
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_bytes(content)
    os.replace(tmp_path, path)
