"""
BigQuery client construction

Builds the long-lived insert client from service account credentials,
an optional project override and optional timeouts. The client is built
once and handed to the pipeline explicitly.
"""
import json
from typing import Any

from google.auth import exceptions as auth_exceptions
from google.cloud import bigquery
from google.oauth2 import service_account

from bqloader.config.settings import LoaderSettings
from bqloader.core.exceptions import SinkInitializationError
from bqloader.observability.logger import get_logger

from .insert_client import BigQueryInsertClient

logger = get_logger(__name__)


def load_credentials_info(settings: LoaderSettings) -> dict[str, Any]:
    """
    Read and parse the service account credentials JSON.

    Raises:
        SinkInitializationError: If no credentials are configured or they
                                 cannot be read or parsed
    """
    if not settings.has_credentials:
        raise SinkInitializationError(
            "Service account credentials are required: set credentials_json or credentials_path"
        )

    try:
        info = json.loads(settings.read_credentials())
    except (OSError, ValueError) as e:
        raise SinkInitializationError("fail to load service account credentials") from e

    if not isinstance(info, dict):
        raise SinkInitializationError("fail to load service account credentials")

    return info


def resolve_project_id(settings: LoaderSettings, credentials_info: dict[str, Any]) -> str:
    """
    Project from the settings, otherwise from the credentials.

    Raises:
        SinkInitializationError: If neither provides one
    """
    if settings.project:
        return settings.project

    project_id = credentials_info.get("project_id")
    if not project_id:
        raise SinkInitializationError(
            "A project id is required but could not be determined from the "
            "properties or Service Account Credentials"
        )
    return project_id


def request_timeout(settings: LoaderSettings) -> float | tuple[float, float] | None:
    """
    Timeout forwarded with each insert request.

    Both values set gives a (connect, read) pair; a single value applies
    to the whole request.
    """
    if settings.connect_timeout and settings.read_timeout:
        return (float(settings.connect_timeout), float(settings.read_timeout))
    if settings.read_timeout:
        return float(settings.read_timeout)
    if settings.connect_timeout:
        return float(settings.connect_timeout)
    return None


class BigQueryConnection:
    """
    Owns the BigQuery client for the lifetime of a loader run

    Usage:
        with BigQueryConnection(settings) as client:
            pipeline = InsertPipeline(source, client, settings)
    """

    def __init__(self, settings: LoaderSettings) -> None:
        """
        Args:
            settings: Loader settings with credentials, project and timeouts
        """
        self.settings = settings
        self._client: BigQueryInsertClient | None = None

    def open(self) -> BigQueryInsertClient:
        """
        Build the client. Idempotent.

        Raises:
            SinkInitializationError: If credentials or project cannot be resolved
        """
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self) -> BigQueryInsertClient:
        info = load_credentials_info(self.settings)

        try:
            credentials = service_account.Credentials.from_service_account_info(info)
        except (ValueError, KeyError, auth_exceptions.GoogleAuthError) as e:
            raise SinkInitializationError("fail to load service account credentials") from e

        project_id = resolve_project_id(self.settings, info)
        client = bigquery.Client(project=project_id, credentials=credentials)

        logger.info(
            f"Created BigQuery client for project {project_id}",
            extra={"project": project_id, "table": str(self.settings.target)},
        )
        return BigQueryInsertClient(
            client,
            skip_invalid_rows=self.settings.skip_invalid_rows,
            timeout=request_timeout(self.settings),
        )

    @property
    def client(self) -> BigQueryInsertClient:
        """
        Raises:
            RuntimeError: If the connection is not open
        """
        if self._client is None:
            raise RuntimeError("BigQuery connection is not open. Call open() first.")
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> BigQueryInsertClient:
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def connect(settings: LoaderSettings) -> BigQueryInsertClient:
    """
    Build a BigQuery insert client from settings.

    The caller owns the returned client and closes it when done.
    """
    return BigQueryConnection(settings).open()
