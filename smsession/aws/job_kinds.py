"""Job kinds and the per-kind SageMaker operation table."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable


TERMINAL_STATUSES = frozenset({"Completed", "Failed", "Stopped"})
SUCCESS_STATUSES = frozenset({"Completed", "Stopped"})


class JobKind(str, Enum):
    """Type of asynchronous SageMaker job."""

    TRAINING = "training"
    TRANSFORM = "transform"
    TUNING = "tuning"
    PROCESSING = "processing"
    AUTO_ML = "auto_ml"


@dataclass(frozen=True)
class JobKindSpec:
    """How to describe, stop and tail one kind of job."""

    label: str
    describe_operation: str
    stop_operation: str
    name_key: str
    status_key: str
    terminal_statuses: frozenset = TERMINAL_STATUSES
    log_group: str | None = None
    instance_count: Callable[[dict[str, Any]], int | None] = lambda desc: None

    def describe(self, client, job_name: str) -> dict[str, Any]:
        """Call the describe operation for ``job_name``."""
        return getattr(client, self.describe_operation)(**{self.name_key: job_name})

    def stop(self, client, job_name: str) -> dict[str, Any]:
        """Call the stop operation for ``job_name``."""
        return getattr(client, self.stop_operation)(**{self.name_key: job_name})

    def status(self, description: dict[str, Any]) -> str:
        return description.get(self.status_key, "Unknown")

    def is_terminal(self, description: dict[str, Any]) -> bool:
        return self.status(description) in self.terminal_statuses


JOB_KINDS: dict[JobKind, JobKindSpec] = {
    JobKind.TRAINING: JobKindSpec(
        label="Training job",
        describe_operation="describe_training_job",
        stop_operation="stop_training_job",
        name_key="TrainingJobName",
        status_key="TrainingJobStatus",
        log_group="/aws/sagemaker/TrainingJobs",
        instance_count=lambda desc: desc.get("ResourceConfig", {}).get("InstanceCount", 1),
    ),
    JobKind.TRANSFORM: JobKindSpec(
        label="Transform job",
        describe_operation="describe_transform_job",
        stop_operation="stop_transform_job",
        name_key="TransformJobName",
        status_key="TransformJobStatus",
        log_group="/aws/sagemaker/TransformJobs",
        instance_count=lambda desc: desc.get("TransformResources", {}).get("InstanceCount", 1),
    ),
    JobKind.TUNING: JobKindSpec(
        label="HyperParameterTuning job",
        describe_operation="describe_hyper_parameter_tuning_job",
        stop_operation="stop_hyper_parameter_tuning_job",
        name_key="HyperParameterTuningJobName",
        status_key="HyperParameterTuningJobStatus",
    ),
    JobKind.PROCESSING: JobKindSpec(
        label="Processing job",
        describe_operation="describe_processing_job",
        stop_operation="stop_processing_job",
        name_key="ProcessingJobName",
        status_key="ProcessingJobStatus",
        log_group="/aws/sagemaker/ProcessingJobs",
        instance_count=lambda desc: (
            desc.get("ProcessingResources", {}).get("ClusterConfig", {}).get("InstanceCount", 1)
        ),
    ),
    # AutoML spawns its own child jobs, so the number of streams is unknown.
    JobKind.AUTO_ML: JobKindSpec(
        label="AutoML job",
        describe_operation="describe_auto_ml_job",
        stop_operation="stop_auto_ml_job",
        name_key="AutoMLJobName",
        status_key="AutoMLJobStatus",
        log_group="/aws/sagemaker/AutoMLJobs",
    ),
}


def get_job_kind(kind: JobKind | str) -> JobKindSpec:
    """Look up the operation table entry for a job kind.

    Accepts either a JobKind or its string value ("training", "transform", ...).
    """
    try:
        return JOB_KINDS[JobKind(kind)]
    except ValueError:
        valid = ", ".join(k.value for k in JobKind)
        raise ValueError(f"Unknown job kind: {kind}. Valid kinds: {valid}") from None
