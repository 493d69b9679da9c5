"""CLI script for inspecting and controlling SageMaker jobs."""

import json
import logging
from contextlib import contextmanager

import click
from botocore.exceptions import ClientError

from smsession.aws.config import SessionConfig
from smsession.aws.errors import SessionError
from smsession.aws.job_kinds import JobKind, get_job_kind
from smsession.aws.session import Session

KIND_CHOICES = [k.value for k in JobKind]

WAITERS = {
    JobKind.TRAINING: "wait_for_job",
    JobKind.TRANSFORM: "wait_for_transform_job",
    JobKind.TUNING: "wait_for_tuning_job",
    JobKind.PROCESSING: "wait_for_processing_job",
    JobKind.AUTO_ML: "wait_for_auto_ml_job",
}

STOPPERS = {
    JobKind.TRAINING: "stop_training_job",
    JobKind.TRANSFORM: "stop_transform_job",
    JobKind.TUNING: "stop_tuning_job",
    JobKind.PROCESSING: "stop_processing_job",
}


@contextmanager
def _errors_as_click():
    try:
        yield
    except (SessionError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    except ClientError as e:
        raise click.ClickException(f"AWS error: {e}") from e


kind_option = click.option(
    "--kind",
    "-k",
    type=click.Choice(KIND_CHOICES),
    default=JobKind.TRAINING.value,
    help="Job kind",
)
poll_option = click.option(
    "--poll",
    "-p",
    type=float,
    default=None,
    help="Seconds between status checks (defaults to the configured interval)",
)


@click.group()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to YAML session config file",
)
@click.option("--region", "-r", default=None, help="AWS region (overrides config)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config: str | None, region: str | None, verbose: bool):
    """Wait for, tail, describe and stop SageMaker jobs.

    Example usage:

        python -m scripts.jobs logs my-training-job --wait

        python -m scripts.jobs --config configs/session.yaml wait my-job --kind processing
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    with _errors_as_click():
        session_config = SessionConfig.from_yaml(config) if config else SessionConfig.from_env()
    if region:
        session_config.region = region

    errors = session_config.validate()
    if errors:
        raise click.ClickException("Invalid session config: " + "; ".join(errors))

    if ctx.obj is None:
        ctx.obj = Session(session_config)


@main.command()
@click.argument("job_name")
@kind_option
@poll_option
@click.pass_obj
def wait(session: Session, job_name: str, kind: str, poll: float | None):
    """Block until a job finishes; fail unless it completed or was stopped."""
    job_kind = JobKind(kind)
    with _errors_as_click():
        description = getattr(session, WAITERS[job_kind])(job_name, poll=poll)

    status = get_job_kind(job_kind).status(description)
    click.echo(f"{job_name}: {status}")


@main.command()
@click.argument("job_name")
@kind_option
@click.option("--wait/--no-wait", default=False, help="Keep tailing until the job finishes")
@poll_option
@click.pass_obj
def logs(session: Session, job_name: str, kind: str, wait: bool, poll: float | None):
    """Print a job's CloudWatch log lines."""
    with _errors_as_click():
        session.logs_for_job(job_name, kind=kind, wait=wait, poll=poll, line_callback=click.echo)


@main.command()
@click.argument("job_name")
@kind_option
@click.pass_obj
def describe(session: Session, job_name: str, kind: str):
    """Print a job description as JSON."""
    with _errors_as_click():
        description = get_job_kind(kind).describe(session.sagemaker_client, job_name)

    description.pop("ResponseMetadata", None)
    click.echo(json.dumps(description, indent=2, default=str))


@main.command()
@click.argument("job_name")
@kind_option
@click.pass_obj
def stop(session: Session, job_name: str, kind: str):
    """Request that a running job stop."""
    job_kind = JobKind(kind)
    if job_kind not in STOPPERS:
        raise click.ClickException(f"Stopping {kind} jobs is not supported")

    with _errors_as_click():
        getattr(session, STOPPERS[job_kind])(job_name)
    click.echo(f"Stop requested for {job_name}")


if __name__ == "__main__":
    main()
