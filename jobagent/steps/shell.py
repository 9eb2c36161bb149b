"""
Shell step - runs user scripts with bash in the job workspace.

Spec schema:
    scripts: ["make build", "make test"]   # joined into one bash script
    load_ssh_keys: false                   # prepend ssh-agent preparation

Output (stdout and stderr merged) is streamed through OutputRedactor, so
secret env values never reach the terminal or the persisted log.
"""

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Any

from jobagent.errors import StepExecutionError
from jobagent.output import OutputRedactor
from jobagent.schemas import StepContext
from jobagent.steps.base import StepExecutor

logger = logging.getLogger(__name__)

SHELL = "/bin/bash"


def prepare_scripts_env(home: Path) -> list[str]:
    """
    Preamble that loads the deploy keys into an ssh-agent and removes them from disk.

    $HOME/.ssh/id_rsa.github and $HOME/.ssh/id_rsa.gitlab are the github and
    gitlab private keys.
    """
    ssh_dir = Path(home) / ".ssh"
    return [
        "eval $(ssh-agent -s) > /dev/null",
        f"ssh-add {ssh_dir}/id_rsa.github &> /dev/null",
        f"rm {ssh_dir}/id_rsa.github &> /dev/null",
        f"ssh-add {ssh_dir}/id_rsa.gitlab &> /dev/null",
        f"rm {ssh_dir}/id_rsa.gitlab &> /dev/null",
    ]


class ShellStep(StepExecutor):
    """Run the step's scripts with bash, failing on the first non-zero command."""

    def __init__(self, spec: dict[str, Any], context: StepContext):
        super().__init__(spec, context)
        scripts = spec.get("scripts")
        if isinstance(scripts, str):
            scripts = [scripts]
        if not isinstance(scripts, list) or not all(isinstance(s, str) for s in scripts):
            raise StepExecutionError("shell", "spec.scripts must be a list of strings")
        self.scripts: list[str] = scripts
        self.load_ssh_keys = bool(spec.get("load_ssh_keys", False))

    def build_script(self) -> str:
        lines: list[str] = []
        if self.load_ssh_keys:
            home = self.context.ssh_home or Path.home()
            lines.extend(prepare_scripts_env(home))
        lines.extend(self.scripts)
        return "\n".join(lines) + "\n"

    def run(self) -> None:
        fd, script_path = tempfile.mkstemp(prefix="jobagent-", suffix=".sh")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(self.build_script())

            try:
                proc = subprocess.Popen(
                    [SHELL, "-e", script_path],
                    cwd=self.context.workspace,
                    env=self.context.build_env(),
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                )
            except OSError as e:
                raise StepExecutionError("shell", f"failed to start {SHELL}: {e}", e) from e

            redactor = OutputRedactor(
                secret_envs=self.context.secret_envs,
                sink=self.context.sink,
                log_file=self.context.log_file,
            )
            with proc:
                redactor.drain(proc.stdout)
                # drain may stop before EOF; a closed pipe lets the child exit instead of blocking
                proc.stdout.close()
                returncode = proc.wait()
        finally:
            Path(script_path).unlink(missing_ok=True)

        if returncode != 0:
            raise StepExecutionError("shell", f"exit status {returncode}")
        logger.debug(f"shell step finished in {self.context.workspace}")
