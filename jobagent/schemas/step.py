"""
Step schemas - the unit of pipeline work and its execution context.

A Step carries a closed StepType tag and an opaque per-type spec payload.
The StepContext is shared by every step of one run.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, TextIO, Union


def parse_flag(value: Any) -> bool:
    """
    Parse a boolean flag from a job or source descriptor.

    Real booleans pass through. Strings must be "true" or "false" (any case)
    so a quoted "false" never reads as set.

    Raises:
        ValueError: If the value is not a recognisable boolean
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered in ("false", ""):
            return False
    raise ValueError(f"Invalid boolean flag: {value!r}")


class StepType(str, Enum):
    """Enumeration of all step kinds a job may contain."""
    SHELL = "shell"
    GIT = "git"
    DOCKER_BUILD = "docker_build"
    TOOL_INSTALL = "tool_install"
    ARCHIVE = "archive"
    JUNIT_REPORT = "junit_report"
    TAR_ARCHIVE = "tar_archive"
    SONAR_CHECK = "sonar_check"

    @classmethod
    def from_string(cls, value: str) -> "StepType":
        """Parse a StepType from its string value."""
        for step_type in cls:
            if step_type.value == value:
                return step_type
        raise ValueError(f"Unknown step type: {value}")


@dataclass(frozen=True)
class Step:
    """
    One step of a job.

    Attributes:
        step_type: The step kind. Unknown types parsed from a job description
                   are kept as the raw string and fail at dispatch time.
        spec: Opaque per-type payload handed to the executor
        on_failure: If true, the step runs even after an earlier failure
        name: Optional display name
    """
    step_type: Union[StepType, str]
    spec: dict[str, Any] = field(default_factory=dict)
    on_failure: bool = False
    name: str = ""

    @property
    def label(self) -> str:
        """Name used in logs and outcomes."""
        if self.name:
            return self.name
        return getattr(self.step_type, "value", str(self.step_type))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON/YAML output."""
        result: dict[str, Any] = {
            "type": getattr(self.step_type, "value", self.step_type),
            "spec": self.spec,
        }
        if self.name:
            result["name"] = self.name
        if self.on_failure:
            result["onfailure"] = True
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Step":
        """Deserialize from dictionary."""
        raw_type = data.get("type", data.get("step_type", ""))
        try:
            step_type: Union[StepType, str] = StepType.from_string(raw_type)
        except ValueError:
            step_type = str(raw_type)

        return cls(
            step_type=step_type,
            spec=data.get("spec") or {},
            on_failure=parse_flag(data.get("onfailure", data.get("on_failure", False))),
            name=data.get("name", ""),
        )


@dataclass
class StepContext:
    """
    Execution context shared by all steps of one run.

    Attributes:
        workspace: Working directory for every step
        paths: Extra search paths prepended to PATH
        envs: Plain KEY=VALUE environment entries
        secret_envs: Secret KEY=VALUE entries; their values are masked in output
        log_file: If set, step output is also persisted to this file
        sink: Live text sink for step output (defaults to stdout)
        ssh_home: Home directory holding deploy keys for ssh-agent preparation
    """
    workspace: Path
    paths: list[str] = field(default_factory=list)
    envs: list[str] = field(default_factory=list)
    secret_envs: list[str] = field(default_factory=list)
    log_file: Optional[Path] = None
    sink: Optional[TextIO] = None
    ssh_home: Optional[Path] = None

    def __post_init__(self):
        self.workspace = Path(self.workspace)
        if self.log_file is not None:
            self.log_file = Path(self.log_file)

    def build_env(self, base: Optional[dict[str, str]] = None) -> dict[str, str]:
        """
        Build the process environment for a step.

        Starts from base (default: os.environ), then applies envs and
        secret_envs in order. Search paths are prepended to PATH.
        """
        env = dict(os.environ if base is None else base)
        for entry in [*self.envs, *self.secret_envs]:
            key, sep, value = entry.partition("=")
            if not sep or not key:
                continue
            env[key] = value
        if self.paths:
            current = env.get("PATH", "")
            env["PATH"] = os.pathsep.join([*self.paths, current] if current else self.paths)
        return env
