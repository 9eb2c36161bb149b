"""
Tar archive step - packs workspace paths into a gzip-compressed tarball.

Spec schema:
    paths: [bin, config/app.yaml]   # relative to the workspace
    dest: out/app.tar.gz            # relative to the workspace, or absolute
    exclude: ["*.tmp"]              # optional fnmatch patterns on archive names
"""

import fnmatch
import logging
import tarfile
from pathlib import Path
from typing import Any, Optional

from jobagent.errors import StepExecutionError
from jobagent.schemas import StepContext
from jobagent.steps.base import StepExecutor

logger = logging.getLogger(__name__)


class TarArchiveStep(StepExecutor):
    """Create a .tar.gz of selected workspace paths."""

    def __init__(self, spec: dict[str, Any], context: StepContext):
        super().__init__(spec, context)
        paths = spec.get("paths")
        if not paths or not isinstance(paths, list):
            raise StepExecutionError("tar_archive", "spec.paths must be a non-empty list")
        dest = spec.get("dest")
        if not dest:
            raise StepExecutionError("tar_archive", "spec.dest is required")
        self.paths: list[str] = [str(p) for p in paths]
        self.dest = Path(dest)
        self.exclude: list[str] = list(spec.get("exclude") or [])

    @property
    def dest_path(self) -> Path:
        if self.dest.is_absolute():
            return self.dest
        return self.context.workspace / self.dest

    def _filter(self, info: tarfile.TarInfo) -> Optional[tarfile.TarInfo]:
        for pattern in self.exclude:
            if fnmatch.fnmatch(info.name, pattern) or fnmatch.fnmatch(Path(info.name).name, pattern):
                return None
        return info

    def run(self) -> None:
        workspace = self.context.workspace
        missing = [p for p in self.paths if not (workspace / p).exists()]
        if missing:
            raise StepExecutionError("tar_archive", f"paths not found in workspace: {missing}")

        dest = self.dest_path
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            with tarfile.open(dest, "w:gz") as tar:
                for rel in self.paths:
                    tar.add(workspace / rel, arcname=rel, filter=self._filter)
        except (OSError, tarfile.TarError) as e:
            raise StepExecutionError("tar_archive", f"failed to write {dest}: {e}", e) from e

        logger.info(f"archived {len(self.paths)} path(s) to {dest}")
