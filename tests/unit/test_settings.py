"""
Unit tests for loader configuration.

Tests defaults, YAML loading, environment overrides and validation.
"""

import pytest
from pydantic import ValidationError

from bqloader.config.settings import (
    DEFAULT_BATCH_SIZE,
    LoaderSettings,
    environment_overrides,
    load_settings,
    read_yaml_config,
)


@pytest.fixture
def yaml_config(tmp_path):
    path = tmp_path / "loader.yaml"
    path.write_text(
        "dataset: analytics\n"
        "table: events\n"
        "batch_size: 250\n"
        "read_timeout: 30\n"
    )
    return path


@pytest.mark.unit
class TestDefaults:
    """Tests for default values"""

    def test_default_batch_size(self):
        """Test that batch size resolves to 500 without any override"""
        settings = LoaderSettings(dataset="test_dataset", table="test_table")

        assert settings.batch_size == 500
        assert DEFAULT_BATCH_SIZE == 500

    def test_default_batch_size_through_loader(self):
        settings = load_settings(environ={"BQLOADER_DATASET": "ds", "BQLOADER_TABLE": "tbl"})
        assert settings.batch_size == 500

    def test_other_defaults(self, settings):
        assert settings.project is None
        assert settings.skip_invalid_rows is False
        assert settings.connect_timeout is None
        assert settings.read_timeout is None
        assert settings.log_format == "json"
        assert settings.has_credentials is False

    def test_target(self, settings):
        assert str(settings.target) == "test_dataset.test_table"


@pytest.mark.unit
class TestValidation:
    """Tests for settings validation"""

    @pytest.mark.parametrize("batch_size", [0, -5, 50001])
    def test_invalid_batch_size(self, batch_size):
        with pytest.raises(ValidationError) as exc_info:
            LoaderSettings(dataset="ds", table="tbl", batch_size=batch_size)
        assert "batch_size" in str(exc_info.value)

    @pytest.mark.parametrize("timeout", ["2a2", "2.2", 2.2, 0, -1])
    def test_invalid_timeouts(self, timeout):
        """Test that timeouts must be positive whole seconds"""
        with pytest.raises(ValidationError):
            LoaderSettings(dataset="ds", table="tbl", read_timeout=timeout)
        with pytest.raises(ValidationError):
            LoaderSettings(dataset="ds", table="tbl", connect_timeout=timeout)

    def test_numeric_string_timeout(self):
        settings = LoaderSettings(dataset="ds", table="tbl", read_timeout="22")
        assert settings.read_timeout == 22

    def test_invalid_dataset(self):
        with pytest.raises(ValidationError):
            LoaderSettings(dataset="my-dataset", table="tbl")

    def test_invalid_project(self):
        with pytest.raises(ValidationError):
            LoaderSettings(dataset="ds", table="tbl", project="Bad_Project")

    def test_blank_project_is_unset(self):
        assert LoaderSettings(dataset="ds", table="tbl", project="  ").project is None

    def test_both_credential_sources(self, tmp_path):
        with pytest.raises(ValidationError) as exc_info:
            LoaderSettings(
                dataset="ds",
                table="tbl",
                credentials_json="{}",
                credentials_path=tmp_path / "sa.json",
            )
        assert "credentials" in str(exc_info.value)

    def test_log_level_normalized(self):
        assert LoaderSettings(dataset="ds", table="tbl", log_level="debug").log_level == "DEBUG"

    def test_invalid_metrics_port(self):
        with pytest.raises(ValidationError):
            LoaderSettings(dataset="ds", table="tbl", metrics_port=70000)

    def test_credentials_not_in_repr(self):
        settings = LoaderSettings(dataset="ds", table="tbl", credentials_json='{"private_key": "secret"}')
        assert "secret" not in repr(settings)


@pytest.mark.unit
class TestYamlConfig:
    """Tests for YAML loading"""

    def test_read_yaml(self, yaml_config):
        assert read_yaml_config(yaml_config)["table"] == "events"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_yaml_config(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert read_yaml_config(path) == {}

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- dataset\n- table\n")
        with pytest.raises(ValueError):
            read_yaml_config(path)

    def test_load_from_yaml(self, yaml_config):
        settings = load_settings(yaml_config, environ={})

        assert settings.dataset == "analytics"
        assert settings.table == "events"
        assert settings.batch_size == 250
        assert settings.read_timeout == 30


@pytest.mark.unit
class TestPrecedence:
    """Tests for YAML < environment < overrides precedence"""

    def test_environment_overrides(self):
        environ = {
            "BQLOADER_TABLE": "other",
            "BQLOADER_SKIP_INVALID_ROWS": "true",
            "BQLOADER_UNKNOWN": "ignored",
            "BQLOADER_PROJECT": "",
        }
        assert environment_overrides(environ) == {"table": "other", "skip_invalid_rows": "true"}

    def test_environment_wins_over_yaml(self, yaml_config):
        settings = load_settings(yaml_config, environ={"BQLOADER_BATCH_SIZE": "100"})
        assert settings.batch_size == 100

    def test_overrides_win_over_environment(self, yaml_config):
        settings = load_settings(
            yaml_config,
            overrides={"batch_size": 10, "spool_dir": None},
            environ={"BQLOADER_BATCH_SIZE": "100"},
        )
        assert settings.batch_size == 10
        assert settings.spool_dir is None

    def test_invalid_environment_value(self, yaml_config):
        with pytest.raises(ValidationError):
            load_settings(yaml_config, environ={"BQLOADER_READ_TIMEOUT": "2a2"})

    def test_dotenv_file(self, tmp_path, yaml_config, monkeypatch):
        """Test that a .env file feeds the environment layer"""
        monkeypatch.setenv("BQLOADER_TABLE", "placeholder")
        monkeypatch.delenv("BQLOADER_TABLE")
        env_file = tmp_path / ".env"
        env_file.write_text("BQLOADER_TABLE=from_dotenv\n")

        settings = load_settings(yaml_config, dotenv_path=env_file)

        assert settings.table == "from_dotenv"

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            load_settings(environ={})
        assert "dataset" in str(exc_info.value)
