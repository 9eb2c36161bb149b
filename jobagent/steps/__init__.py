"""
Step executors for jobagent.

The StepRunner looks executors up in a StepExecutorRegistry keyed by StepType.
Built in:
- shell: bash scripts with redacted, streamed output
- tar_archive: gzip tarball of workspace paths

Other step kinds (git, docker_build, tool_install, archive, junit_report,
sonar_check) are provided by the host and registered at startup.

Usage:
    from jobagent.steps import StepExecutorRegistry

    registry = StepExecutorRegistry.create_default()
    registry.register(StepType.GIT, MyGitStep)
"""

from jobagent.steps.base import NoOpStep, StepExecutor
from jobagent.steps.registry import StepExecutorRegistry
from jobagent.steps.shell import ShellStep, prepare_scripts_env
from jobagent.steps.archive import TarArchiveStep

__all__ = [
    "StepExecutor",
    "NoOpStep",
    "StepExecutorRegistry",
    "ShellStep",
    "TarArchiveStep",
    "prepare_scripts_env",
]
