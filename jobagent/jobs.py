"""Job description loading and execution."""

import json
import logging
from pathlib import Path
from typing import Optional, TextIO

import yaml

from jobagent.schemas import JobSpec, RunResult
from jobagent.step_runner import StepRunner
from jobagent.steps import StepExecutorRegistry

logger = logging.getLogger(__name__)


def load_job(job_path: Path) -> JobSpec:
    """
    Load a job description from YAML (or JSON) file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not a valid job description
    """
    job_path = Path(job_path)
    if not job_path.exists():
        raise FileNotFoundError(f"Job description not found: {job_path}")

    with open(job_path) as f:
        try:
            if job_path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"Invalid job description {job_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Invalid job description {job_path}: expected a mapping")
    return JobSpec.from_dict(data)


def run_job(
    job: JobSpec,
    registry: Optional[StepExecutorRegistry] = None,
    sink: Optional[TextIO] = None,
    log_file: Optional[Path] = None,
    ssh_home: Optional[Path] = None,
) -> RunResult:
    """Run every step of a job and log a summary."""
    logger.info(f"Starting job: {job.name} ({len(job.steps)} steps, workspace={job.workspace})")
    context = job.to_context(sink=sink, log_file=log_file, ssh_home=ssh_home)
    result = StepRunner(registry).run(job.steps, context)

    if result.success:
        logger.info(f"Job completed: {job.name}")
    else:
        logger.error(
            f"Job failed: {job.name} - {result.error} "
            f"(failed={len(result.failed_steps)}, skipped={len(result.skipped_steps)})"
        )
    return result
