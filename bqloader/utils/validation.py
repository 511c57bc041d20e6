"""
Input validation utilities for the BigQuery loader.

Provides reusable validation functions for the identifiers and numeric
settings that end up in insert requests, so that a bad configuration
fails at load time instead of on the first batch.
"""

import re

# BigQuery accepts at most 50,000 rows per insertAll request
MAX_ROWS_PER_REQUEST = 50000


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def validate_dataset_id(dataset_id: str, field_name: str = "dataset") -> str:
    """
    Validate a BigQuery dataset ID.

    Dataset IDs contain only letters, digits and underscores, up to 1024
    characters.

    Examples:
        >>> validate_dataset_id("test_dataset")
        'test_dataset'
        >>> validate_dataset_id("my-dataset")  # doctest: +SKIP
        ValidationError: dataset contains invalid characters
    """
    if not dataset_id or not isinstance(dataset_id, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    dataset_id = dataset_id.strip()

    if not re.match(r'^[a-zA-Z0-9_]+$', dataset_id):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "Dataset IDs may contain only letters, digits and underscores."
        )

    if len(dataset_id) > 1024:
        raise ValidationError(f"{field_name} exceeds maximum length of 1024 characters")

    return dataset_id


def validate_table_id(table_id: str, field_name: str = "table") -> str:
    """
    Validate a BigQuery table ID.

    Table IDs may additionally contain hyphens; the table itself must
    already exist in the dataset.

    Examples:
        >>> validate_table_id("test_table")
        'test_table'
        >>> validate_table_id("events-2024")
        'events-2024'
    """
    if not table_id or not isinstance(table_id, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    table_id = table_id.strip()

    if not re.match(r'^[a-zA-Z0-9_\-]+$', table_id):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "Table IDs may contain only letters, digits, underscores and hyphens."
        )

    if len(table_id) > 1024:
        raise ValidationError(f"{field_name} exceeds maximum length of 1024 characters")

    return table_id


def validate_project_id(project_id: str, field_name: str = "project") -> str:
    """
    Validate a Google Cloud project ID, optionally domain-scoped.

    Examples:
        >>> validate_project_id("my-project-123")
        'my-project-123'
        >>> validate_project_id("example.com:my-project")
        'example.com:my-project'
    """
    if not project_id or not isinstance(project_id, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    project_id = project_id.strip()

    if not re.match(r'^([a-z0-9.\-]+:)?[a-z][a-z0-9\-]{4,28}[a-z0-9]$', project_id):
        raise ValidationError(
            f"{field_name} '{project_id}' is not a valid project ID. "
            "Project IDs are 6 to 30 lowercase letters, digits or hyphens "
            "and start with a letter."
        )

    return project_id


def validate_batch_size(batch_size: int, field_name: str = "batch_size") -> int:
    """
    Validate the maximum number of records pulled per batch.

    Examples:
        >>> validate_batch_size(500)
        500
        >>> validate_batch_size(0)  # doctest: +SKIP
        ValidationError: batch_size must be a positive integer
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int):
        raise ValidationError(f"{field_name} must be an integer, got {type(batch_size).__name__}")

    if batch_size <= 0:
        raise ValidationError(f"{field_name} must be a positive integer, got {batch_size}")

    if batch_size > MAX_ROWS_PER_REQUEST:
        raise ValidationError(
            f"{field_name} exceeds the insertAll maximum of {MAX_ROWS_PER_REQUEST} rows"
        )

    return batch_size


def validate_timeout(timeout: int, field_name: str = "timeout") -> int:
    """
    Validate a connect or read timeout in seconds.

    Examples:
        >>> validate_timeout(22)
        22
    """
    if isinstance(timeout, bool) or not isinstance(timeout, int):
        raise ValidationError(f"{field_name} must be an integer, got {type(timeout).__name__}")

    if timeout <= 0:
        raise ValidationError(f"{field_name} must be a positive integer, got {timeout}")

    return timeout
