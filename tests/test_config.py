"""
Tests for the configuration system.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config import (
    Config,
    Environment,
    HubConfig,
    env_overrides,
    load_config,
    load_config_file,
    merge_configs,
    parse_environment,
)

REPO_CONFIG_DIR = Path(__file__).parent.parent / "configuration"


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Config directory with a base file and both environment files."""
    (tmp_path / "base.yaml").write_text(
        "backend:\n"
        "  port: 8000\n"
        "hub:\n"
        "  outbound_queue_size: 64\n"
    )
    (tmp_path / "local.yaml").write_text("host: 127.0.0.1\n")
    (tmp_path / "prod.yaml").write_text(
        "host: 0.0.0.0\n"
        "backend:\n"
        "  port: 80\n"
        "history:\n"
        "  path: /tmp/chat-history.jsonl\n"
    )
    return tmp_path


class TestConfigModels:
    """Test configuration model defaults and validation."""

    def test_defaults(self):
        """Test the defaults without any config files."""
        config = Config()
        assert config.host == "127.0.0.1"
        assert config.backend.port == 8000
        assert config.hub.outbound_queue_size == 256
        assert config.hub.send_timeout_seconds == 10.0
        assert config.hub.storage_retry_attempts == 3
        assert config.history.path is None
        assert config.cors_origins == ["*"]

    def test_invalid_port(self):
        with pytest.raises(ValidationError):
            Config(backend={"port": 70000})

    def test_invalid_hub_policy(self):
        """Test queue size, timeout and retries must be positive."""
        with pytest.raises(ValidationError):
            HubConfig(outbound_queue_size=0)
        with pytest.raises(ValidationError):
            HubConfig(send_timeout_seconds=0)
        with pytest.raises(ValidationError):
            HubConfig(storage_retry_attempts=0)

    def test_cors_origins_from_string(self):
        config = Config(cors_origins="https://a.example, https://b.example,")
        assert config.cors_origins == ["https://a.example", "https://b.example"]


class TestEnvironment:
    """Test environment selection."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("local", Environment.LOCAL),
            ("prod", Environment.PRODUCTION),
            (" PROD ", Environment.PRODUCTION),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_environment(value) is expected

    def test_unsupported(self):
        with pytest.raises(ValueError, match="not a supported environment"):
            parse_environment("staging")


class TestLoadConfigFile:
    """Test YAML file loading."""

    def test_missing_file(self, tmp_path: Path):
        assert load_config_file(tmp_path / "nope.yaml") is None

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config_file(path) == {}

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("backend: [unclosed\n")
        assert load_config_file(path) is None

    def test_top_level_must_be_mapping(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- one\n- two\n")
        assert load_config_file(path) is None


class TestMergeConfigs:
    """Test deep merging."""

    def test_nested_merge(self):
        base = {"backend": {"port": 8000}, "hub": {"outbound_queue_size": 256}}
        override = {"hub": {"send_timeout_seconds": 5}}
        assert merge_configs(base, override) == {
            "backend": {"port": 8000},
            "hub": {"outbound_queue_size": 256, "send_timeout_seconds": 5},
        }

    def test_override_wins(self):
        assert merge_configs({"host": "a"}, {"host": "b"}) == {"host": "b"}

    def test_base_not_mutated(self):
        base = {"hub": {"outbound_queue_size": 256}}
        merge_configs(base, {"hub": {"outbound_queue_size": 1}})
        assert base == {"hub": {"outbound_queue_size": 256}}


class TestEnvOverrides:
    """Test CHAT_APP_* environment variables."""

    def test_nested_keys(self):
        overrides = env_overrides(
            {
                "CHAT_APP_BACKEND__PORT": "9000",
                "CHAT_APP_HOST": "0.0.0.0",
                "CHAT_APP_HUB__SEND_TIMEOUT_SECONDS": "2.5",
            }
        )
        assert overrides == {
            "backend": {"port": 9000},
            "host": "0.0.0.0",
            "hub": {"send_timeout_seconds": 2.5},
        }

    def test_ignores_other_variables(self):
        overrides = env_overrides(
            {"PATH": "/usr/bin", "CHAT_APP_ENVIRONMENT": "prod", "CHAT_APP_HUB__": "1"}
        )
        assert overrides == {}


class TestLoadConfig:
    """Test loading configuration from all sources."""

    def test_local_environment(self, config_dir: Path):
        config = load_config(config_dir, environment="local", environ={})
        assert config.host == "127.0.0.1"
        assert config.backend.port == 8000
        assert config.hub.outbound_queue_size == 64
        assert config.history.path is None

    def test_prod_environment(self, config_dir: Path):
        """Test the environment file overrides the base file."""
        config = load_config(config_dir, environment="prod", environ={})
        assert config.host == "0.0.0.0"
        assert config.backend.port == 80
        assert config.hub.outbound_queue_size == 64
        assert config.history.path == "/tmp/chat-history.jsonl"

    def test_environment_from_variable(self, config_dir: Path):
        config = load_config(config_dir, environ={"CHAT_APP_ENVIRONMENT": "prod"})
        assert config.host == "0.0.0.0"

    def test_env_variables_win(self, config_dir: Path):
        """Test environment variables override both files."""
        config = load_config(
            config_dir,
            environment="prod",
            environ={"CHAT_APP_BACKEND__PORT": "9000", "CHAT_APP_HISTORY__PATH": "/data/h.jsonl"},
        )
        assert config.backend.port == 9000
        assert config.history.path == "/data/h.jsonl"

    def test_missing_directory_uses_defaults(self, tmp_path: Path):
        config = load_config(tmp_path / "missing", environ={})
        assert config == Config()

    def test_unsupported_environment(self, config_dir: Path):
        with pytest.raises(ValueError):
            load_config(config_dir, environment="staging", environ={})

    def test_repository_configuration(self):
        """Test the shipped configuration files load in both environments."""
        local = load_config(REPO_CONFIG_DIR, environment="local", environ={})
        prod = load_config(REPO_CONFIG_DIR, environment="prod", environ={})
        assert local.backend.port == prod.backend.port == 8000
        assert local.host == "127.0.0.1"
        assert prod.host == "0.0.0.0"
        assert prod.history.path is not None
