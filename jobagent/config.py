"""
Configuration management for jobagent.

Loads $JOBAGENT_HOME/config.yaml (default ~/.config/jobagent/config.yaml).

Example config.yaml:
    storage_path: /var/lib/jobagent/s3storage
    ssh_home: /home/agent
    log_level: INFO
    log_format: pretty          # or "structured" (JSON lines)
    log_file: ~/.local/state/jobagent/agent.log
    download_timeout: 30
    variable_sets_dir: ~/.config/jobagent/variable_sets
    env_file: ~/.config/jobagent/.env
    code_hosts:
      - id: 1
        type: gitlab
        address: https://gitlab.example.com
        namespace: platform
        access_token: ${GITLAB_TOKEN}
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from jobagent.errors import ConfigError
from jobagent.schemas import CodeHost

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = "/var/lib/jobagent/s3storage"


def get_jobagent_home() -> Path:
    """Directory holding config.yaml; $JOBAGENT_HOME overrides the default."""
    env_home = os.environ.get("JOBAGENT_HOME")
    if env_home:
        return Path(env_home)
    return Path("~/.config/jobagent").expanduser()


@dataclass
class JobAgentConfig:
    """Agent-wide settings."""
    storage_path: str = DEFAULT_STORAGE_PATH
    ssh_home: Optional[str] = None
    log_level: str = "INFO"
    log_format: str = "pretty"
    log_file: Optional[str] = None
    download_timeout: float = 30.0
    variable_sets_dir: Optional[str] = None
    env_file: Optional[str] = None
    code_hosts: list[dict[str, Any]] = field(default_factory=list)

    @property
    def storage_root(self) -> Path:
        """Object-storage mount holding local repository copies."""
        return Path(self.storage_path).expanduser()

    @property
    def ssh_home_path(self) -> Optional[Path]:
        return Path(self.ssh_home).expanduser() if self.ssh_home else None

    @property
    def log_file_path(self) -> Optional[Path]:
        return Path(self.log_file).expanduser() if self.log_file else None

    def get_code_hosts(self) -> list[CodeHost]:
        """Parse the configured code hosts. ${VAR} in access_token is expanded."""
        hosts = []
        for data in self.code_hosts:
            try:
                data = dict(data)
                if data.get("access_token"):
                    data["access_token"] = os.path.expandvars(data["access_token"])
                hosts.append(CodeHost.from_dict(data))
            except (KeyError, ValueError, TypeError) as e:
                raise ConfigError(f"Invalid code host entry {data!r}: {e}") from e
        return hosts

    def validate(self) -> None:
        """Validate the configuration."""
        if self.log_format not in ("pretty", "structured"):
            raise ConfigError(f"log_format must be 'pretty' or 'structured', got {self.log_format!r}")
        if not hasattr(logging, self.log_level.upper()):
            raise ConfigError(f"Unknown log_level: {self.log_level}")
        ids = [host.id for host in self.get_code_hosts()]
        if len(ids) != len(set(ids)):
            raise ConfigError(f"Duplicate code host ids: {ids}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobAgentConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {unknown}")
        return cls(**{k: v for k, v in data.items() if k in known})


def load_config(config_path: Optional[Path] = None) -> JobAgentConfig:
    """
    Load jobagent configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to $JOBAGENT_HOME/config.yaml

    Returns:
        Validated JobAgentConfig. If env_file is set, it is loaded into os.environ.

    Raises:
        FileNotFoundError: If the config file does not exist
        ConfigError: If the config is invalid
    """
    if config_path is None:
        config_path = get_jobagent_home() / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"jobagent config.yaml not found at {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a mapping")

    config = JobAgentConfig.from_dict(data)

    if config.env_file:
        env_path = Path(config.env_file).expanduser()
        if env_path.exists():
            load_dotenv(env_path)
        else:
            logger.warning(f"env_file not found: {env_path}")

    config.validate()
    return config
