"""
jobagent - CI/CD job agent

Runs ordered pipeline steps with partial-failure semantics and secret
redaction, and fetches, merges and drift-checks configuration values files.
"""

__version__ = "0.1.0"
__author__ = "Local Pipeline Team"


__all__ = ["JobAgentConfig", "load_config", "get_jobagent_home"]

from .config import JobAgentConfig, load_config, get_jobagent_home
