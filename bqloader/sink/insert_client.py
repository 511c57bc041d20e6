"""
Bulk-insert clients.

SinkClient is the contract the insert executor relies on: one call that
takes an ordered list of rows and returns an ordered list of per-row
error lists, or raises SinkInsertError when no structured response exists.
BigQueryInsertClient implements it on top of the BigQuery streaming
insertAll API.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

import requests
from google.api_core import exceptions as api_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import bigquery

from bqloader.core.exceptions import BatchCardinalityError, SinkInsertError
from bqloader.core.models import SinkError
from bqloader.observability.logger import get_logger

logger = get_logger(__name__)

# Failures that happen before BigQuery returns a structured insertAll response
TRANSPORT_ERRORS = (
    api_exceptions.GoogleAPIError,
    auth_exceptions.GoogleAuthError,
    requests.exceptions.RequestException,
)


class SinkClient(ABC):
    """Abstract bulk-insert capability of a tabular sink."""

    @abstractmethod
    def insert(
        self,
        container_id: str,
        table_id: str,
        rows: Sequence[Mapping[str, Any]],
        ignore_unknown_fields: bool,
    ) -> list[list[SinkError]]:
        """
        Insert rows into container_id.table_id.

        Returns:
            One error list per row, same order and count as rows

        Raises:
            SinkInsertError: If the request fails as a whole
        """
        pass

    def close(self) -> None:
        """Release the underlying connection, if any."""
        pass


def expand_insert_errors(
    insert_errors: Sequence[Mapping[str, Any]],
    row_count: int,
) -> list[list[SinkError]]:
    """
    Expand a sparse insertAll error response into one list per row.

    insertAll only reports rows that have errors, each entry being
    {"index": <row position>, "errors": [{"reason", "location", "message", ...}]}.

    Args:
        insert_errors: Sparse response entries
        row_count: Number of rows in the request

    Returns:
        Dense list of error lists

    Raises:
        BatchCardinalityError: If an entry refers to a row outside the request
    """
    error_lists: list[list[SinkError]] = [[] for _ in range(row_count)]

    for entry in insert_errors:
        index = entry.get("index")
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < row_count:
            raise BatchCardinalityError(row_count, detail=f"error reported for row index {index!r}")

        for error in entry.get("errors") or []:
            error_lists[index].append(
                SinkError(
                    reason=error.get("reason") or "",
                    location=error.get("location") or "",
                    message=error.get("message") or "",
                )
            )

    return error_lists


class BigQueryInsertClient(SinkClient):
    """
    SinkClient backed by google-cloud-bigquery's insert_rows_json.

    The google client is constructed by the connection layer and only
    used here; it is safe to reuse across sequential batches.
    """

    def __init__(
        self,
        client: bigquery.Client,
        skip_invalid_rows: bool = False,
        timeout: float | tuple[float, float] | None = None,
    ):
        """
        Initialize insert client.

        Args:
            client: Authenticated BigQuery client; its project owns the datasets
            skip_invalid_rows: Insert the valid rows of a request that also
                               contains invalid ones
            timeout: Per-request timeout in seconds, or (connect, read)
        """
        self.client = client
        self.skip_invalid_rows = skip_invalid_rows
        self.timeout = timeout

    @property
    def project(self) -> str:
        return self.client.project

    def table_reference(self, container_id: str, table_id: str) -> bigquery.TableReference:
        return bigquery.TableReference(bigquery.DatasetReference(self.project, container_id), table_id)

    def insert(
        self,
        container_id: str,
        table_id: str,
        rows: Sequence[Mapping[str, Any]],
        ignore_unknown_fields: bool,
    ) -> list[list[SinkError]]:
        table_ref = self.table_reference(container_id, table_id)
        rows = list(rows)

        try:
            insert_errors = self.client.insert_rows_json(
                table_ref,
                rows,
                ignore_unknown_values=ignore_unknown_fields,
                skip_invalid_rows=self.skip_invalid_rows,
                timeout=self.timeout,
            )
        except TRANSPORT_ERRORS as e:
            raise SinkInsertError(f"insertAll request to {table_ref} failed: {e}") from e

        logger.debug(
            f"insertAll to {table_ref}: {len(rows)} rows, {len(insert_errors)} with errors"
        )
        return expand_insert_errors(insert_errors, len(rows))

    def close(self) -> None:
        self.client.close()
