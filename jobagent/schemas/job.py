"""
JobSpec schema - a job description as handed to the agent.

Job description YAML:
    name: build-api
    workspace: /workspace
    paths: [/opt/tools/bin]
    envs: [GOFLAGS=-mod=vendor]
    secret_envs: [REGISTRY_TOKEN=s3cr3t]
    log_file: /workspace/job.log
    steps:
      - name: build
        type: shell
        spec:
          scripts: ["make build"]
      - name: package
        type: tar_archive
        onfailure: true
        spec:
          paths: [bin]
          dest: out/bin.tar.gz
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, TextIO

from .step import Step, StepContext


@dataclass(frozen=True)
class JobSpec:
    """
    A job: ordered steps plus the context they share.

    Attributes:
        name: Job name used in logs
        workspace: Working directory for every step
        paths: Extra search paths prepended to PATH
        envs: Plain KEY=VALUE environment entries
        secret_envs: Secret KEY=VALUE entries, masked in all output
        steps: Ordered steps; immutable once a run starts
        log_file: Optional file that step output is persisted to
    """
    name: str
    workspace: Path
    paths: tuple[str, ...] = field(default_factory=tuple)
    envs: tuple[str, ...] = field(default_factory=tuple)
    secret_envs: tuple[str, ...] = field(default_factory=tuple)
    steps: tuple[Step, ...] = field(default_factory=tuple)
    log_file: Optional[Path] = None

    def to_context(
        self,
        sink: Optional[TextIO] = None,
        log_file: Optional[Path] = None,
        ssh_home: Optional[Path] = None,
    ) -> StepContext:
        """Build the StepContext for running this job."""
        return StepContext(
            workspace=self.workspace,
            paths=list(self.paths),
            envs=list(self.envs),
            secret_envs=list(self.secret_envs),
            log_file=log_file or self.log_file,
            sink=sink,
            ssh_home=ssh_home,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobSpec":
        """Deserialize from dictionary."""
        if "workspace" not in data:
            raise ValueError("job description is missing 'workspace'")
        log_file = data.get("log_file")
        return cls(
            name=data.get("name", "unnamed-job"),
            workspace=Path(data["workspace"]),
            paths=tuple(data.get("paths") or ()),
            envs=tuple(data.get("envs") or ()),
            secret_envs=tuple(data.get("secret_envs") or ()),
            steps=tuple(Step.from_dict(s) for s in data.get("steps") or ()),
            log_file=Path(log_file) if log_file else None,
        )
