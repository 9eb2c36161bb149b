"""Tests for jobagent configuration loading."""

import os
from pathlib import Path

import pytest
import yaml

from jobagent.config import DEFAULT_STORAGE_PATH, JobAgentConfig, get_jobagent_home, load_config
from jobagent.errors import ConfigError
from jobagent.schemas import CodeHostType


def _write_config(home: Path, data) -> Path:
    home.mkdir(parents=True, exist_ok=True)
    path = home / "config.yaml"
    path.write_text(yaml.safe_dump(data) if not isinstance(data, str) else data)
    return path


class TestJobAgentHome:
    def test_env_override(self, isolated_home):
        assert get_jobagent_home() == isolated_home

    def test_default(self, monkeypatch):
        monkeypatch.delenv("JOBAGENT_HOME", raising=False)
        assert get_jobagent_home() == Path("~/.config/jobagent").expanduser()


class TestLoadConfig:
    def test_missing_file(self):
        with pytest.raises(FileNotFoundError, match="config.yaml not found"):
            load_config()

    def test_loads_from_home(self, isolated_home):
        _write_config(isolated_home, {"storage_path": "/mnt/s3", "log_level": "DEBUG"})
        config = load_config()
        assert config.storage_root == Path("/mnt/s3")
        assert config.log_level == "DEBUG"

    def test_empty_file_gives_defaults(self, isolated_home):
        _write_config(isolated_home, "")
        config = load_config()
        assert config.storage_path == DEFAULT_STORAGE_PATH
        assert config.log_format == "pretty"

    def test_invalid_yaml(self, isolated_home):
        _write_config(isolated_home, "storage_path: [\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config()

    def test_non_mapping(self, isolated_home):
        _write_config(isolated_home, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config()

    def test_invalid_log_format(self, isolated_home):
        _write_config(isolated_home, {"log_format": "xml"})
        with pytest.raises(ConfigError, match="log_format"):
            load_config()

    def test_unknown_keys_warned(self, isolated_home, caplog):
        _write_config(isolated_home, {"project": "legacy"})
        load_config()
        assert "Ignoring unknown config keys" in caplog.text

    def test_env_file_loaded(self, isolated_home, tmp_path, monkeypatch):
        monkeypatch.delenv("JOBAGENT_TEST_TOKEN", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("JOBAGENT_TEST_TOKEN=from-dotenv\n")
        _write_config(isolated_home, {
            "env_file": str(env_file),
            "code_hosts": [{"id": 1, "type": "gitlab", "access_token": "${JOBAGENT_TEST_TOKEN}"}],
        })

        config = load_config()

        try:
            assert config.get_code_hosts()[0].access_token == "from-dotenv"
        finally:
            os.environ.pop("JOBAGENT_TEST_TOKEN", None)

    def test_explicit_path(self, tmp_path):
        path = _write_config(tmp_path / "elsewhere", {"ssh_home": "/home/agent"})
        assert load_config(path).ssh_home_path == Path("/home/agent")


class TestJobAgentConfig:
    def test_code_hosts_parsed(self):
        config = JobAgentConfig(code_hosts=[
            {"id": 1, "type": "github"},
            {"id": 2, "type": "other", "address": "https://git.internal"},
        ])
        hosts = config.get_code_hosts()
        assert [h.type for h in hosts] == [CodeHostType.GITHUB, CodeHostType.OTHER]

    def test_invalid_code_host(self):
        with pytest.raises(ConfigError, match="Invalid code host"):
            JobAgentConfig(code_hosts=[{"type": "gitlab"}]).get_code_hosts()

    def test_duplicate_code_host_ids(self):
        config = JobAgentConfig(code_hosts=[{"id": 1, "type": "github"}, {"id": 1, "type": "gitlab"}])
        with pytest.raises(ConfigError, match="Duplicate"):
            config.validate()

    def test_unknown_log_level(self):
        with pytest.raises(ConfigError, match="log_level"):
            JobAgentConfig(log_level="CHATTY").validate()

    def test_optional_paths(self):
        config = JobAgentConfig()
        assert config.ssh_home_path is None
        assert config.log_file_path is None
