"""
Loader configuration.

Settings are read from a YAML file and overlaid with BQLOADER_* environment
variables, optionally loaded from a .env file first.

Expected YAML format:
```yaml
dataset: analytics
table: events
batch_size: 500            # optional, defaults to 500
project: my-project        # optional, read from the credentials otherwise
credentials_path: /secrets/service-account.json
connect_timeout: 10        # optional, seconds
read_timeout: 30           # optional, seconds
spool_dir: /var/spool/bqloader
```
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from bqloader.core.models import TableTarget
from bqloader.utils.validation import (
    validate_batch_size,
    validate_dataset_id,
    validate_project_id,
    validate_table_id,
    validate_timeout,
)

# Matches the documented per-request row-count recommendation of insertAll
DEFAULT_BATCH_SIZE = 500

ENV_PREFIX = "BQLOADER_"


class LoaderSettings(BaseModel):
    """
    Configuration of one loader instance.

    Attributes:
        dataset: Dataset (container) id holding the destination table
        table: Destination table id; the table must already exist
        batch_size: Maximum number of records pulled per batch
        project: Project id; taken from the credentials when unset
        credentials_json: Service account credentials as JSON text
        credentials_path: Path to a service account credentials file
        connect_timeout: Connection timeout in seconds
        read_timeout: Read timeout in seconds
        skip_invalid_rows: Let the sink insert valid rows of a batch
                           that also contains invalid ones
        spool_dir: Root of the directory record source
        log_level: Log level name
        log_format: "json" or "text"
        metrics_port: Port of the Prometheus endpoint, disabled when unset
    """

    dataset: str
    table: str
    batch_size: int = DEFAULT_BATCH_SIZE
    project: str | None = None
    credentials_json: str | None = Field(default=None, repr=False)
    credentials_path: Path | None = None
    connect_timeout: int | None = None
    read_timeout: int | None = None
    skip_invalid_rows: bool = False
    spool_dir: Path | None = None
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    metrics_port: int | None = Field(default=None, gt=0, lt=65536)

    @field_validator("dataset")
    @classmethod
    def check_dataset(cls, v):
        return validate_dataset_id(v, "dataset")

    @field_validator("table")
    @classmethod
    def check_table(cls, v):
        return validate_table_id(v, "table")

    @field_validator("batch_size")
    @classmethod
    def check_batch_size(cls, v):
        return validate_batch_size(v)

    @field_validator("project")
    @classmethod
    def check_project(cls, v):
        if v is None or not v.strip():
            return None
        return validate_project_id(v)

    @field_validator("connect_timeout", "read_timeout")
    @classmethod
    def check_timeout(cls, v, info):
        if v is None:
            return v
        return validate_timeout(v, info.field_name)

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, v):
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level '{v}'")
        return level

    @model_validator(mode="after")
    def check_credentials_source(self):
        """At most one way of providing credentials."""
        if self.credentials_json and self.credentials_path:
            raise ValueError("Set either credentials_json or credentials_path, not both")
        return self

    @property
    def target(self) -> TableTarget:
        return TableTarget(dataset_id=self.dataset, table_id=self.table)

    @property
    def has_credentials(self) -> bool:
        return bool(self.credentials_json or self.credentials_path)

    def read_credentials(self) -> str | None:
        """
        Return the credentials JSON text.

        Raises:
            OSError: If credentials_path cannot be read
        """
        if self.credentials_json:
            return self.credentials_json
        if self.credentials_path:
            return self.credentials_path.read_text(encoding="utf-8")
        return None

    class Config:
        json_schema_extra = {
            "example": {
                "dataset": "test_dataset",
                "table": "test_table",
                "batch_size": 500,
                "credentials_path": "/secrets/service-account.json",
                "read_timeout": 30
            }
        }


def read_yaml_config(config_path: str | Path) -> dict[str, Any]:
    """
    Read the settings mapping from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file does not contain a mapping
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Loader configuration file not found: {config_path}")

    with open(config_path) as f:
        config = yaml.safe_load(f)

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"Loader configuration must be a mapping, got {type(config).__name__}")

    return config


def environment_overrides(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect BQLOADER_<FIELD> variables for every settings field."""
    environ = os.environ if environ is None else environ
    overrides = {}
    for field_name in LoaderSettings.model_fields:
        value = environ.get(f"{ENV_PREFIX}{field_name.upper()}")
        if value is not None and value != "":
            overrides[field_name] = value
    return overrides


def load_settings(
    config_path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    dotenv_path: str | Path | None = None,
) -> LoaderSettings:
    """
    Build settings from YAML, environment and explicit overrides.

    Precedence, lowest first: YAML file, environment, overrides (CLI flags).

    Args:
        config_path: Optional YAML file
        overrides: Values that win over everything else; None values are ignored
        environ: Environment mapping (defaults to os.environ)
        dotenv_path: Optional .env file loaded into os.environ first

    Returns:
        Validated LoaderSettings

    Raises:
        pydantic.ValidationError: If the merged configuration is invalid
    """
    if dotenv_path is not None:
        load_dotenv(dotenv_path, override=False)

    merged: dict[str, Any] = {}
    if config_path is not None:
        merged.update(read_yaml_config(config_path))
    merged.update(environment_overrides(environ))
    if overrides:
        merged.update({k: v for k, v in overrides.items() if v is not None})

    return LoaderSettings.model_validate(merged)
