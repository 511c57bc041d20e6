"""
Unit tests for Pydantic data models.

Tests the core models for validation, immutability and the record lifecycle.
"""

import json

import pytest
from pydantic import ValidationError

from bqloader.core.exceptions import DispositionError
from bqloader.core.models import (
    Batch,
    DiagnosticDocument,
    Disposition,
    PendingRecord,
    PerRowResult,
    SinkError,
    TableTarget,
    WholesaleFailure,
)


@pytest.mark.unit
class TestSinkError:
    """Tests for SinkError model"""

    def test_format(self):
        """Test reason/location/message rendering"""
        error = SinkError(reason="invalid", location="test_col", message="Bad value")
        assert error.format() == "invalid/test_col/Bad value"
        assert str(error) == "invalid/test_col/Bad value"

    def test_empty_location(self):
        """Test that a missing location renders as an empty segment"""
        error = SinkError(reason="stopped", message="Row not inserted")
        assert error.format() == "stopped//Row not inserted"

    def test_frozen(self):
        """Test that SinkError cannot be modified"""
        error = SinkError(reason="invalid")
        with pytest.raises(ValidationError):
            error.reason = "other"


@pytest.mark.unit
class TestDisposition:
    """Tests for Disposition model"""

    def test_succeeded(self):
        disposition = Disposition.succeeded()
        assert disposition.status == "succeeded"
        assert disposition.channel == "success"
        assert disposition.reason is None

    def test_failed(self):
        disposition = Disposition.failed("row rejected by sink")
        assert disposition.status == "failed"
        assert disposition.channel == "failure"
        assert disposition.reason == "row rejected by sink"

    def test_failed_requires_reason(self):
        """Test that a failed disposition without a reason is rejected"""
        with pytest.raises(ValidationError) as exc_info:
            Disposition(status="failed")
        assert "reason" in str(exc_info.value)

    def test_succeeded_cannot_carry_reason(self):
        with pytest.raises(ValidationError):
            Disposition(status="succeeded", reason="nope")

    def test_invalid_status(self):
        with pytest.raises(ValidationError):
            Disposition(status="retry")


@pytest.mark.unit
class TestPendingRecord:
    """Tests for the PendingRecord lifecycle"""

    def test_new_record_is_pending(self):
        record = PendingRecord(record_id="r1", payload=b"{}")
        assert record.is_finalized is False
        assert record.disposition is None
        assert record.attributes == {}

    def test_empty_record_id(self):
        with pytest.raises(ValidationError):
            PendingRecord(record_id="", payload=b"{}")

    def test_disposition_assigned_once(self):
        """Test that a second disposition raises DispositionError"""
        record = PendingRecord(record_id="r1", payload=b"{}")
        record.assign_disposition(Disposition.succeeded())

        assert record.is_finalized is True
        with pytest.raises(DispositionError):
            record.assign_disposition(Disposition.failed("late"))
        assert record.disposition.status == "succeeded"

    def test_replace_payload_before_finalization(self):
        record = PendingRecord(record_id="r1", payload=b"{}")
        record.replace_payload(b'{"errors": []}')
        assert record.read_payload() == b'{"errors": []}'

    def test_replace_payload_after_finalization(self):
        """Test that payloads are frozen once the record is finalized"""
        record = PendingRecord(record_id="r1", payload=b"{}")
        record.assign_disposition(Disposition.succeeded())

        with pytest.raises(DispositionError):
            record.replace_payload(b"[]")

    def test_read_payload_when_absent(self):
        assert PendingRecord(record_id="r1").read_payload() == b""


@pytest.mark.unit
class TestBatch:
    """Tests for Batch model"""

    def test_aligned_batch(self):
        records = (PendingRecord(record_id="a"), PendingRecord(record_id="b"))
        batch = Batch(rows=({"x": 1}, {"x": 2}), records=records, original_content=('{"x":1}', '{"x":2}'))

        assert len(batch) == 2
        assert batch.is_empty is False
        assert batch.records[1] is records[1]

    def test_empty_batch(self):
        batch = Batch()
        assert len(batch) == 0
        assert batch.is_empty is True

    def test_misaligned_batch(self):
        """Test that sequences of different lengths are rejected"""
        with pytest.raises(ValidationError) as exc_info:
            Batch(
                rows=({"x": 1}, {"x": 2}),
                records=(PendingRecord(record_id="a"),),
                original_content=('{"x":1}', '{"x":2}'),
            )
        assert "misaligned" in str(exc_info.value)

    def test_frozen(self):
        batch = Batch()
        with pytest.raises(ValidationError):
            batch.rows = ({"x": 1},)


@pytest.mark.unit
class TestInsertOutcome:
    """Tests for WholesaleFailure and PerRowResult"""

    def test_per_row_result(self):
        result = PerRowResult(error_lists=((), (SinkError(reason="invalid"),), ()))

        assert len(result) == 3
        assert result.failed_indexes == [1]
        assert result.errors_for(0) == ()
        assert result.errors_for(1)[0].reason == "invalid"

    def test_per_row_result_from_dicts(self):
        """Test that plain error mappings are coerced to SinkError"""
        result = PerRowResult(error_lists=([{"reason": "invalid", "location": "a", "message": "m"}],))
        assert isinstance(result.errors_for(0)[0], SinkError)

    def test_wholesale_failure(self):
        assert WholesaleFailure(message="timeout").message == "timeout"


@pytest.mark.unit
class TestDiagnosticDocument:
    """Tests for DiagnosticDocument model"""

    def test_payload_keys(self):
        document = DiagnosticDocument(
            errors=["reason1/loc1/msg1"],
            content='{"test_col":2}',
            created_at="2025-11-17T10:42Z",
        )

        parsed = json.loads(document.to_payload())

        assert set(parsed) == {"errors", "content", "created_at"}
        assert parsed["content"] == '{"test_col":2}'

    def test_requires_an_error(self):
        with pytest.raises(ValidationError):
            DiagnosticDocument(errors=[], content="{}", created_at="2025-11-17T10:42Z")

    def test_created_at_format(self):
        """Test that seconds in created_at are rejected"""
        with pytest.raises(ValidationError):
            DiagnosticDocument(errors=["a/b/c"], content="{}", created_at="2025-11-17T10:42:37Z")


@pytest.mark.unit
class TestTableTarget:
    """Tests for TableTarget model"""

    def test_str(self):
        assert str(TableTarget(dataset_id="test_dataset", table_id="test_table")) == "test_dataset.test_table"

    def test_invalid_dataset(self):
        with pytest.raises(ValidationError):
            TableTarget(dataset_id="bad-dataset", table_id="test_table")

    def test_table_with_hyphen(self):
        assert TableTarget(dataset_id="ds", table_id="events-2024").table_id == "events-2024"


@pytest.mark.unit
def test_pending_record_describe():
    """Test the log summary of a record"""
    record = PendingRecord(record_id="r1", payload=b'{"n": 1}')
    assert record.describe() == {"record_id": "r1", "size": 8}
    assert PendingRecord(record_id="r2").describe() == {"record_id": "r2", "size": 0}
