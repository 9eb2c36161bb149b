"""
CLI interface for the jobagent.

Provides commands to run jobs, merge values files from a repository,
check a stored value for drift against its source, and mask secrets.

Jobs are described as YAML files (see jobagent.schemas.job) and executed
step by step by the StepRunner.
"""

import sys
from pathlib import Path

import click

from jobagent import __version__


def _get_config(ctx):
    from jobagent.config import JobAgentConfig

    config = ctx.obj.get("config")
    if config is None:
        config = JobAgentConfig()
        ctx.obj["config"] = config
    return config


@click.group()
@click.version_option(version=__version__, prog_name="jobagent")
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def main(ctx, log_level):
    """
    jobagent - CI/CD job agent.

    Run pipeline steps and synchronize configuration values files.
    """
    from jobagent.config import load_config
    from jobagent.utils import setup_logging

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config()
    except FileNotFoundError:
        # No config file: commands run with defaults
        ctx.obj["config"] = None
    except Exception as e:
        ctx.obj["config"] = None
        ctx.obj["config_error"] = str(e)

    config = _get_config(ctx)
    setup_logging(
        log_file=config.log_file_path,
        log_level=log_level or config.log_level,
        log_format=config.log_format,
    )
    if ctx.obj.get("config_error"):
        click.echo(f"⚠ Ignoring invalid config: {ctx.obj['config_error']}", err=True)


@main.command("run")
@click.argument("job_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path),
              help="Also persist step output to this file")
@click.option("--dry-run", is_flag=True, help="Walk the steps without executing them")
@click.pass_context
def run(ctx, job_file: Path, log_file: Path, dry_run: bool):
    """
    Run a job description.

    JOB_FILE is a YAML job description.

    Examples:

        jobagent run build.yaml

        jobagent run build.yaml --log-file /tmp/build.log

        jobagent run build.yaml --dry-run
    """
    from jobagent.jobs import load_job, run_job
    from jobagent.steps import StepExecutorRegistry
    from jobagent.utils import format_duration

    config = _get_config(ctx)

    try:
        job = load_job(job_file)
    except Exception as e:
        click.echo(f"✗ Failed to load job {job_file}: {e}", err=True)
        raise SystemExit(1)

    registry = StepExecutorRegistry.create_noop() if dry_run else None
    result = run_job(job, registry=registry, log_file=log_file, ssh_home=config.ssh_home_path)

    click.echo("", err=True)
    for outcome in result.step_outcomes:
        click.echo(
            f"  [{outcome.status.value:>9}] {outcome.index}: {outcome.name} "
            f"({format_duration(outcome.duration_ms)})",
            err=True,
        )

    if not result.success:
        click.echo(f"✗ {job.name} failed: {result.error}", err=True)
        raise SystemExit(1)

    if dry_run:
        click.echo(f"\n[DRY-RUN] {job.name} completed (no steps executed)", err=True)
    else:
        click.echo(f"✓ {job.name} completed", err=True)


@main.group("values")
def values_group():
    """Fetch, merge and drift-check values files."""
    pass


@values_group.command("merge")
@click.argument("paths", nargs=-1, required=True)
@click.option("--codehost-id", type=int, required=True, help="Code host id from config")
@click.option("--owner", default="", help="Repository owner")
@click.option("--repo", required=True, help="Repository name")
@click.option("--branch", default="", help="Branch to read from")
@click.option("--namespace", default="", help="Namespace (defaults to owner)")
@click.option("--repo-link", default="", help="Direct repository link; files are fetched from it")
@click.pass_context
def values_merge(ctx, paths, codehost_id, owner, repo, branch, namespace, repo_link):
    """
    Fetch values files concurrently and print the merged YAML.

    Later PATHS take precedence over earlier ones.

    Example:

        jobagent values merge --codehost-id 1 --owner team --repo svc --branch main \\
            values.yaml values-prod.yaml
    """
    from jobagent.schemas import RepoCoordinates
    from jobagent.sources import (
        ConcurrentFetchMerger,
        ConfigCodeHostClient,
        GitRepoMaterializer,
        HttpRepoDownloader,
    )

    config = _get_config(ctx)
    coordinates = RepoCoordinates(
        codehost_id=codehost_id,
        owner=owner,
        repo=repo,
        branch=branch,
        namespace=namespace,
        repo_link=repo_link,
    )

    try:
        code_hosts = ConfigCodeHostClient(config.get_code_hosts())
        with HttpRepoDownloader(code_hosts, timeout=config.download_timeout) as downloader:
            merger = ConcurrentFetchMerger(
                code_hosts,
                downloader,
                materializer=GitRepoMaterializer(),
                storage_path=config.storage_root,
            )
            merged = merger.merge(list(paths), coordinates)
    except Exception as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    click.echo(merged, nl=False)


@values_group.command("sync")
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("current_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def values_sync(ctx, source_file: Path, current_file: Path):
    """
    Check whether a stored value has drifted from its source.

    SOURCE_FILE is a YAML configuration source descriptor; CURRENT_FILE holds
    the currently stored value. Prints the source's value when it differs.

    Example:

        jobagent values sync source.yaml current-values.yaml
    """
    import yaml

    from jobagent.schemas import ConfigurationSource
    from jobagent.sources import (
        ConfigCodeHostClient,
        FileVariableSetStore,
        HttpRepoDownloader,
        ValueSourceSyncer,
    )

    config = _get_config(ctx)

    try:
        with open(source_file) as f:
            data = yaml.safe_load(f) or {}
        source = ConfigurationSource.from_dict(data)
    except Exception as e:
        click.echo(f"✗ Invalid source descriptor {source_file}: {e}", err=True)
        raise SystemExit(1)

    current = current_file.read_text()
    variable_sets = (
        FileVariableSetStore(Path(config.variable_sets_dir).expanduser())
        if config.variable_sets_dir else None
    )

    try:
        code_hosts = ConfigCodeHostClient(config.get_code_hosts())
        with HttpRepoDownloader(code_hosts, timeout=config.download_timeout) as downloader:
            changed, value = ValueSourceSyncer(variable_sets, downloader).sync(source, current)
    except Exception as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    if changed:
        click.echo("changed", err=True)
        click.echo(value, nl=False)
    else:
        click.echo("unchanged", err=True)


@main.command("mask")
@click.option("--secret-env", "secret_envs", multiple=True, help="KEY=VALUE secret to mask")
@click.option("--secret", "secrets", multiple=True, help="Literal secret to mask")
def mask(secret_envs, secrets):
    """
    Mask secrets in text read from stdin.

    Example:

        make deploy 2>&1 | jobagent mask --secret-env TOKEN=$TOKEN
    """
    from jobagent.masking import mask_secret_envs, mask_secrets

    for line in sys.stdin:
        line = mask_secret_envs(line, list(secret_envs))
        line = mask_secrets(line, list(secrets))
        click.echo(line, nl=False)


if __name__ == "__main__":
    main()
