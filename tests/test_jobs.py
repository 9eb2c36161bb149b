"""Tests for job description loading and execution."""

import json

import pytest

from jobagent.jobs import load_job, run_job
from jobagent.schemas import JobSpec, Step, StepType
from jobagent.steps import StepExecutorRegistry


JOB_YAML = """\
name: build-api
workspace: {workspace}
envs: [GOFLAGS=-mod=vendor]
secret_envs: [REGISTRY_TOKEN=s3cr3t]
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


class TestLoadJob:
    def test_load_yaml(self, tmp_path, workspace):
        path = tmp_path / "job.yaml"
        path.write_text(JOB_YAML.format(workspace=workspace))

        job = load_job(path)

        assert job.name == "build-api"
        assert job.workspace == workspace
        assert job.secret_envs == ("REGISTRY_TOKEN=s3cr3t",)
        assert [s.step_type for s in job.steps] == [StepType.SHELL, StepType.TAR_ARCHIVE]
        assert job.steps[1].on_failure

    def test_load_json(self, tmp_path, workspace):
        path = tmp_path / "job.json"
        path.write_text(json.dumps({"workspace": str(workspace), "steps": [{"type": "git"}]}))
        job = load_job(path)
        assert job.name == "unnamed-job"
        assert job.steps[0].step_type == StepType.GIT

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_job(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("steps: [\n")
        with pytest.raises(ValueError, match="Invalid job description"):
            load_job(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n")
        with pytest.raises(ValueError, match="expected a mapping"):
            load_job(path)


class TestRunJob:
    def test_dry_run_registry(self, workspace, sink):
        job = JobSpec(
            name="dry",
            workspace=workspace,
            steps=(Step(StepType.SHELL, {"scripts": ["rm -rf /"]}), Step(StepType.DOCKER_BUILD)),
        )
        result = run_job(job, registry=StepExecutorRegistry.create_noop(), sink=sink)
        assert result.success
        assert len(result.step_outcomes) == 2
        assert sink.getvalue() == ""

    def test_failure_logged(self, workspace, caplog):
        job = JobSpec(name="broken", workspace=workspace, steps=(Step("unknown_kind"),))
        result = run_job(job, registry=StepExecutorRegistry())
        assert not result.success
        assert "Job failed: broken" in caplog.text
