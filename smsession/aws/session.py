"""SageMaker session: job submission, resource management and waiting.

Session wraps the boto3 clients a workflow needs and turns higher-level calls
(train, tune, deploy an endpoint, ...) into SageMaker control-plane requests.
Requests are shaped by the pure builders in ``requests`` and ``normalize``,
so argument errors surface before anything is sent.
"""

import json
import logging
from typing import Any, Callable

from botocore.exceptions import ClientError

from ..storage.s3 import S3Helper
from ..utils.naming import name_from_image
from . import waiter
from .config import SessionConfig
from .errors import (
    EndpointNotFoundError,
    ErrorAction,
    ErrorContext,
    classify_client_error,
    client_error_code,
)
from .job_kinds import JobKind, get_job_kind
from .logs import LogTailer
from .normalize import (
    VPC_CONFIG_DEFAULT,
    container_def,
    production_variant,
    update_args,
    vpc_sanitize,
)
from .requests import (
    create_model_request,
    get_auto_ml_request,
    get_create_model_package_request,
    get_process_request,
    get_train_request,
    get_transform_request,
    get_tuning_request,
    get_update_training_job_request,
)
from .status import check_job_status

logger = logging.getLogger(__name__)


def _dump(request: dict[str, Any]) -> str:
    return json.dumps(request, indent=2, default=str)


class Session:
    """Client for SageMaker jobs, models and endpoints.

    Usage:
        session = Session(SessionConfig.from_env())

        session.train(
            input_mode="File",
            input_config=channels,
            role="SageMakerRole",
            job_name="my-job",
            output_config={"S3OutputPath": "s3://bucket/output"},
            resource_config={"InstanceType": "ml.m5.xlarge", "InstanceCount": 1,
                             "VolumeSizeInGB": 30},
            stop_condition={"MaxRuntimeInSeconds": 3600},
            image_uri=image,
        )
        session.logs_for_job("my-job", wait=True)
        session.endpoint_from_job("my-job", 1, "ml.m5.large")
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        sagemaker_client=None,
        logs_client=None,
        s3_client=None,
        sts_client=None,
        iam_client=None,
    ):
        self.config = config or SessionConfig()
        self._sagemaker_client = sagemaker_client
        self._logs_client = logs_client
        self._s3_client = s3_client
        self._sts_client = sts_client
        self._iam_client = iam_client
        self._s3 = None
        self._default_bucket = None

    def _boto_client(self, service: str, max_attempts: int | None = None):
        import boto3
        from botocore.config import Config

        config_kwargs = {"region_name": self.config.region}
        if max_attempts is not None:
            config_kwargs["retries"] = {"max_attempts": max_attempts, "mode": "standard"}

        client_kwargs = {"config": Config(**config_kwargs)}
        if self.config.endpoint_url and service in ("sagemaker", "logs", "s3"):
            client_kwargs["endpoint_url"] = self.config.endpoint_url

        return boto3.client(service, **client_kwargs)

    @property
    def sagemaker_client(self):
        """Lazy initialization of SageMaker client."""
        if self._sagemaker_client is None:
            self._sagemaker_client = self._boto_client("sagemaker")
        return self._sagemaker_client

    @property
    def logs_client(self):
        """Lazy initialization of CloudWatch Logs client."""
        if self._logs_client is None:
            self._logs_client = self._boto_client("logs", self.config.logs_max_attempts)
        return self._logs_client

    @property
    def s3_client(self):
        """Lazy initialization of S3 client."""
        if self._s3_client is None:
            self._s3_client = self._boto_client("s3", self.config.s3_max_attempts)
        return self._s3_client

    @property
    def sts_client(self):
        if self._sts_client is None:
            self._sts_client = self._boto_client("sts")
        return self._sts_client

    @property
    def iam_client(self):
        if self._iam_client is None:
            self._iam_client = self._boto_client("iam")
        return self._iam_client

    @property
    def s3(self) -> S3Helper:
        """S3 helper bound to this session's S3 client."""
        if self._s3 is None:
            self._s3 = S3Helper(self.s3_client)
        return self._s3

    # ========== INTERNAL HELPERS ==========

    def _tags(self, tags: list[dict[str, str]] | None) -> list[dict[str, str]]:
        """Caller tags plus the configured session tags (caller keys win)."""
        merged = list(tags or [])
        keys = {t["Key"] for t in merged}
        merged.extend(t for t in self.config.tag_list() if t["Key"] not in keys)
        return merged

    def _role(self, role: str | None) -> str:
        role = role or self.config.role_arn
        if not role:
            raise ValueError("An execution role is required (pass role or set role_arn)")
        return role

    @staticmethod
    def _poll(poll: float | None, default: float) -> float:
        return default if poll is None else poll

    def _stop_job(self, kind: JobKind, job_name: str, context: ErrorContext | None = None) -> None:
        """Stop a job, treating allow-listed validation errors as already stopped."""
        spec = get_job_kind(kind)
        try:
            logger.info("Stopping %s: %s", spec.label.lower(), job_name)
            spec.stop(self.sagemaker_client, job_name)
        except ClientError as e:
            if context is not None and (
                classify_client_error(e, context) is ErrorAction.WARN_AND_SUCCEED
            ):
                logger.info("%s: %s is already stopped or not running.", spec.label, job_name)
                return
            logger.error(
                "Error occurred while attempting to stop %s: %s. Please try again.",
                spec.label.lower(),
                job_name,
            )
            raise

    def _wait_for_job(self, kind: JobKind, job_name: str, poll: float | None) -> dict[str, Any]:
        description = waiter.wait_for_job(
            self.sagemaker_client,
            job_name,
            kind=kind,
            poll=self._poll(poll, self.config.poll_interval_seconds),
        )
        check_job_status(job_name, description, kind)
        return description

    @staticmethod
    def _vpc_config_from_training_job(
        description: dict[str, Any],
        vpc_config_override: dict[str, Any] | str | None = VPC_CONFIG_DEFAULT,
    ) -> dict[str, list[str]] | None:
        if vpc_config_override == VPC_CONFIG_DEFAULT:
            return description.get("VpcConfig")
        return vpc_sanitize(vpc_config_override)

    # ========== TRAINING ==========

    def train(
        self,
        input_mode: str,
        input_config: list[dict[str, Any]] | None,
        role: str | None,
        job_name: str,
        output_config: dict[str, Any],
        resource_config: dict[str, Any],
        stop_condition: dict[str, Any],
        hyperparameters: dict[str, Any] | None = None,
        vpc_config: dict[str, Any] | None = None,
        tags: list[dict[str, str]] | None = None,
        metric_definitions: list[dict[str, str]] | None = None,
        image_uri: str | None = None,
        algorithm_arn: str | None = None,
        enable_network_isolation: bool = False,
        encrypt_inter_container_traffic: bool = False,
        use_spot_instances: bool = False,
        checkpoint_s3_uri: str | None = None,
        checkpoint_local_path: str | None = None,
        experiment_config: dict[str, str] | None = None,
        environment: dict[str, str] | None = None,
        retry_strategy: dict[str, Any] | None = None,
        **kwargs,
    ) -> dict[str, Any]:
        """Create a training job.

        Args:
            input_mode: "File", "Pipe" or "FastFile"
            input_config: Input channels
            role: Execution role name or ARN (defaults to the configured role)
            job_name: Name of the training job
            output_config: OutputDataConfig
            resource_config: ResourceConfig (instance type, count, volume)
            stop_condition: StoppingCondition
            hyperparameters: Values are converted to strings
            image_uri: Training image; mutually exclusive with algorithm_arn
            algorithm_arn: Marketplace algorithm; mutually exclusive with image_uri
            **kwargs: Debugger, profiler and TensorBoard settings passed to
                get_train_request

        Returns:
            The CreateTrainingJob response
        """
        request = get_train_request(
            input_mode=input_mode,
            input_config=input_config,
            role=role,
            job_name=job_name,
            output_config=output_config,
            resource_config=resource_config,
            stop_condition=stop_condition,
            vpc_config=vpc_config,
            hyperparameters=hyperparameters,
            tags=self._tags(tags),
            metric_definitions=metric_definitions,
            enable_network_isolation=enable_network_isolation,
            image_uri=image_uri,
            algorithm_arn=algorithm_arn,
            encrypt_inter_container_traffic=encrypt_inter_container_traffic,
            use_spot_instances=use_spot_instances,
            checkpoint_s3_uri=checkpoint_s3_uri,
            checkpoint_local_path=checkpoint_local_path,
            experiment_config=experiment_config,
            environment=environment,
            retry_strategy=retry_strategy,
            **kwargs,
        )
        request["RoleArn"] = self.expand_role(self._role(role))

        logger.info("Creating training-job with name: %s", job_name)
        logger.debug("train request: %s", _dump(request))
        return self.sagemaker_client.create_training_job(**request)

    def update_training_job(
        self,
        job_name: str,
        profiler_rule_configs: list[dict[str, Any]] | None = None,
        profiler_config: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Update the profiler settings of a running training job."""
        request = get_update_training_job_request(job_name, profiler_rule_configs, profiler_config)
        logger.info("Updating training job with name %s", job_name)
        logger.debug("Update request: %s", _dump(request))
        return self.sagemaker_client.update_training_job(**request)

    def describe_training_job(self, job_name: str) -> dict[str, Any]:
        return get_job_kind(JobKind.TRAINING).describe(self.sagemaker_client, job_name)

    def stop_training_job(self, job_name: str) -> None:
        self._stop_job(JobKind.TRAINING, job_name)

    # ========== HYPERPARAMETER TUNING ==========

    def tune(
        self,
        job_name: str,
        strategy: str,
        objective_type: str | None,
        objective_metric_name: str | None,
        max_jobs: int,
        max_parallel_jobs: int,
        parameter_ranges: dict[str, Any],
        static_hyperparameters: dict[str, Any],
        input_mode: str,
        metric_definitions: list[dict[str, str]] | None,
        role: str | None,
        input_config: list[dict[str, Any]] | None,
        output_config: dict[str, Any],
        resource_config: dict[str, Any],
        stop_condition: dict[str, Any],
        tags: list[dict[str, str]] | None = None,
        warm_start_config: dict[str, Any] | None = None,
        early_stopping_type: str = "Off",
        image_uri: str | None = None,
        algorithm_arn: str | None = None,
        vpc_config: dict[str, Any] | None = None,
        enable_network_isolation: bool = False,
        encrypt_inter_container_traffic: bool = False,
        use_spot_instances: bool = False,
        checkpoint_s3_uri: str | None = None,
        checkpoint_local_path: str | None = None,
    ) -> dict[str, Any]:
        """Create a tuning job over a single training definition."""
        tuning_config = {
            "strategy": strategy,
            "max_jobs": max_jobs,
            "max_parallel_jobs": max_parallel_jobs,
            "early_stopping_type": early_stopping_type,
            "objective_type": objective_type,
            "objective_metric_name": objective_metric_name,
            "parameter_ranges": parameter_ranges,
        }
        training_config = {
            "static_hyperparameters": static_hyperparameters,
            "input_mode": input_mode,
            "role": role,
            "output_config": output_config,
            "resource_config": resource_config,
            "stop_condition": stop_condition,
            "input_config": input_config,
            "metric_definitions": metric_definitions,
            "image_uri": image_uri,
            "algorithm_arn": algorithm_arn,
            "vpc_config": vpc_config,
            "enable_network_isolation": enable_network_isolation,
            "encrypt_inter_container_traffic": encrypt_inter_container_traffic,
            "use_spot_instances": use_spot_instances,
            "checkpoint_s3_uri": checkpoint_s3_uri,
            "checkpoint_local_path": checkpoint_local_path,
        }
        return self.create_tuning_job(
            job_name,
            tuning_config,
            training_config=training_config,
            warm_start_config=warm_start_config,
            tags=tags,
        )

    def create_tuning_job(
        self,
        job_name: str,
        tuning_config: dict[str, Any],
        training_config: dict[str, Any] | None = None,
        training_config_list: list[dict[str, Any]] | None = None,
        warm_start_config: dict[str, Any] | None = None,
        tags: list[dict[str, str]] | None = None,
    ) -> dict[str, Any]:
        """Create a tuning job from one or several training definitions.

        Exactly one of ``training_config`` and ``training_config_list`` must
        be given; a ValueError is raised otherwise, before any request.
        Each definition without a role falls back to the configured one,
        and bare role names are expanded to ARNs.
        """
        request = get_tuning_request(
            job_name,
            tuning_config,
            training_config=training_config,
            training_config_list=training_config_list,
            warm_start_config=warm_start_config,
            tags=self._tags(tags),
        )
        definitions = request.get("TrainingJobDefinitions") or [request["TrainingJobDefinition"]]
        for definition in definitions:
            definition["RoleArn"] = self.expand_role(self._role(definition.get("RoleArn")))

        logger.info("Creating hyperparameter tuning job with name: %s", job_name)
        logger.debug("tune request: %s", _dump(request))
        return self.sagemaker_client.create_hyper_parameter_tuning_job(**request)

    def describe_tuning_job(self, job_name: str) -> dict[str, Any]:
        return get_job_kind(JobKind.TUNING).describe(self.sagemaker_client, job_name)

    def stop_tuning_job(self, job_name: str) -> None:
        """Stop a tuning job; a job that already finished is not an error."""
        self._stop_job(JobKind.TUNING, job_name, ErrorContext.STOP_TUNING_JOB)

    # ========== BATCH TRANSFORM ==========

    def transform(
        self,
        job_name: str,
        model_name: str,
        input_config: dict[str, Any],
        output_config: dict[str, Any],
        resource_config: dict[str, Any],
        strategy: str | None = None,
        max_concurrent_transforms: int | None = None,
        max_payload: int | None = None,
        env: dict[str, str] | None = None,
        experiment_config: dict[str, str] | None = None,
        tags: list[dict[str, str]] | None = None,
        data_processing: dict[str, str] | None = None,
        model_client_config: dict[str, int] | None = None,
    ) -> dict[str, Any]:
        """Create a batch transform job."""
        request = get_transform_request(
            job_name=job_name,
            model_name=model_name,
            input_config=input_config,
            output_config=output_config,
            resource_config=resource_config,
            strategy=strategy,
            max_concurrent_transforms=max_concurrent_transforms,
            max_payload=max_payload,
            env=env,
            experiment_config=experiment_config,
            tags=self._tags(tags),
            data_processing=data_processing,
            model_client_config=model_client_config,
        )

        logger.info("Creating transform job with name: %s", job_name)
        logger.debug("Transform request: %s", _dump(request))
        return self.sagemaker_client.create_transform_job(**request)

    def describe_transform_job(self, job_name: str) -> dict[str, Any]:
        return get_job_kind(JobKind.TRANSFORM).describe(self.sagemaker_client, job_name)

    def stop_transform_job(self, job_name: str) -> None:
        """Stop a transform job; a job that already finished is not an error."""
        self._stop_job(JobKind.TRANSFORM, job_name, ErrorContext.STOP_TRANSFORM_JOB)

    # ========== PROCESSING ==========

    def process(
        self,
        job_name: str,
        resources: dict[str, Any],
        app_specification: dict[str, Any],
        role_arn: str | None,
        inputs: list[dict[str, Any]] | None = None,
        output_config: dict[str, Any] | None = None,
        stopping_condition: dict[str, Any] | None = None,
        environment: dict[str, str] | None = None,
        network_config: dict[str, Any] | None = None,
        tags: list[dict[str, str]] | None = None,
        experiment_config: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Create a processing job."""
        request = get_process_request(
            job_name=job_name,
            resources=resources,
            app_specification=app_specification,
            role_arn=role_arn,
            inputs=inputs,
            output_config=output_config,
            stopping_condition=stopping_condition,
            environment=environment,
            network_config=network_config,
            tags=self._tags(tags),
            experiment_config=experiment_config,
        )
        request["RoleArn"] = self.expand_role(self._role(role_arn))

        logger.info("Creating processing-job with name %s", job_name)
        logger.debug("process request: %s", _dump(request))
        return self.sagemaker_client.create_processing_job(**request)

    def describe_processing_job(self, job_name: str) -> dict[str, Any]:
        return get_job_kind(JobKind.PROCESSING).describe(self.sagemaker_client, job_name)

    def stop_processing_job(self, job_name: str) -> None:
        self._stop_job(JobKind.PROCESSING, job_name)

    def was_processing_job_successful(self, job_name: str) -> bool:
        """Whether a processing job finished with status Completed."""
        description = self.describe_processing_job(job_name)
        return description["ProcessingJobStatus"] == "Completed"

    # ========== AUTOML ==========

    def auto_ml(
        self,
        input_config: list[dict[str, Any]],
        output_config: dict[str, Any],
        auto_ml_job_config: dict[str, Any],
        role: str | None,
        job_name: str,
        problem_type: str | None = None,
        job_objective: dict[str, str] | None = None,
        generate_candidate_definitions_only: bool = False,
        tags: list[dict[str, str]] | None = None,
    ) -> dict[str, Any]:
        """Create an AutoML job."""
        request = get_auto_ml_request(
            job_name=job_name,
            input_config=input_config,
            output_config=output_config,
            auto_ml_job_config=auto_ml_job_config,
            role=role,
            problem_type=problem_type,
            job_objective=job_objective,
            generate_candidate_definitions_only=generate_candidate_definitions_only,
            tags=self._tags(tags),
        )
        request["RoleArn"] = self.expand_role(self._role(role))

        logger.info("Creating auto-ml-job with name: %s", job_name)
        logger.debug("auto ml request: %s", _dump(request))
        return self.sagemaker_client.create_auto_ml_job(**request)

    def describe_auto_ml_job(self, job_name: str) -> dict[str, Any]:
        return get_job_kind(JobKind.AUTO_ML).describe(self.sagemaker_client, job_name)

    def list_candidates(
        self,
        job_name: str,
        status_equals: str | None = None,
        candidate_name: str | None = None,
        candidate_arn: str | None = None,
        sort_order: str | None = None,
        sort_by: str | None = None,
        max_results: int | None = None,
    ) -> dict[str, Any]:
        """List the candidates an AutoML job produced."""
        request = update_args(
            {"AutoMLJobName": job_name},
            StatusEquals=status_equals,
            CandidateNameEquals=candidate_name,
            CandidateArnEquals=candidate_arn,
            SortOrder=sort_order,
            SortBy=sort_by,
            MaxResults=max_results,
        )
        return self.sagemaker_client.list_candidates_for_auto_ml_job(**request)

    # ========== MODELS ==========

    def create_model(
        self,
        name: str,
        role: str | None = None,
        container_defs: str | dict[str, Any] | list[dict[str, Any]] | None = None,
        vpc_config: dict[str, Any] | None = None,
        enable_network_isolation: bool = False,
        primary_container: str | dict[str, Any] | None = None,
        tags: list[dict[str, str]] | None = None,
    ) -> str:
        """Create a model, reusing one that already exists under ``name``.

        Args:
            name: Model name
            role: Execution role name or ARN (defaults to the configured role)
            container_defs: Image URI, container definition, or a list of
                definitions for an inference pipeline
            vpc_config: Subnets and security groups for the model
            enable_network_isolation: Run the containers without network access
            primary_container: Deprecated alias for a single container_defs
            tags: Extra tags

        Returns:
            The model name
        """
        request = create_model_request(
            name,
            role,
            container_defs=container_defs,
            vpc_config=vpc_config,
            enable_network_isolation=enable_network_isolation,
            primary_container=primary_container,
            tags=self._tags(tags),
        )
        request["ExecutionRoleArn"] = self.expand_role(self._role(role))

        logger.info("Creating model with name: %s", name)
        logger.debug("CreateModel request: %s", _dump(request))

        try:
            self.sagemaker_client.create_model(**request)
        except ClientError as e:
            if classify_client_error(e, ErrorContext.CREATE_MODEL) is not ErrorAction.WARN_AND_SUCCEED:
                raise
            logger.warning("Using already existing model: %s", name)

        return name

    def create_model_from_job(
        self,
        training_job_name: str,
        name: str | None = None,
        role: str | None = None,
        image_uri: str | None = None,
        model_data_url: str | None = None,
        env: dict[str, str] | None = None,
        enable_network_isolation: bool = False,
        vpc_config_override: dict[str, Any] | str | None = VPC_CONFIG_DEFAULT,
        tags: list[dict[str, str]] | None = None,
    ) -> str:
        """Create a model from the artifacts of a finished training job.

        Missing arguments come from the training job description. The VPC
        config is the training job's unless ``vpc_config_override`` is given;
        pass None to drop it.
        """
        description = self.describe_training_job(training_job_name)

        primary = container_def(
            image_uri or description["AlgorithmSpecification"]["TrainingImage"],
            model_data_url=model_data_url or description["ModelArtifacts"]["S3ModelArtifacts"],
            env=env,
        )
        vpc_config = self._vpc_config_from_training_job(description, vpc_config_override)

        return self.create_model(
            name or training_job_name,
            role or description["RoleArn"],
            primary,
            vpc_config=vpc_config,
            enable_network_isolation=enable_network_isolation,
            tags=tags,
        )

    def describe_model(self, name: str) -> dict[str, Any]:
        return self.sagemaker_client.describe_model(ModelName=name)

    def delete_model(self, model_name: str) -> None:
        logger.info("Deleting model with name: %s", model_name)
        self.sagemaker_client.delete_model(ModelName=model_name)

    # ========== MODEL PACKAGES ==========

    def create_model_package_from_algorithm(
        self,
        name: str,
        description: str,
        algorithm_arn: str,
        model_data: str,
    ) -> str:
        """Create a model package from a marketplace algorithm's artifacts."""
        request = {
            "ModelPackageName": name,
            "ModelPackageDescription": description,
            "SourceAlgorithmSpecification": {
                "SourceAlgorithms": [{"AlgorithmName": algorithm_arn, "ModelDataUrl": model_data}]
            },
        }

        logger.info("Creating model package with name: %s", name)
        try:
            self.sagemaker_client.create_model_package(**request)
        except ClientError as e:
            if (
                classify_client_error(e, ErrorContext.CREATE_MODEL_PACKAGE)
                is not ErrorAction.WARN_AND_SUCCEED
            ):
                raise
            logger.warning("Using already existing model package: %s", name)

        return name

    def create_model_package_from_containers(
        self,
        containers: list[dict[str, Any]] | None = None,
        content_types: list[str] | None = None,
        response_types: list[str] | None = None,
        inference_instances: list[str] | None = None,
        transform_instances: list[str] | None = None,
        model_package_name: str | None = None,
        model_package_group_name: str | None = None,
        model_metrics: dict[str, Any] | None = None,
        metadata_properties: dict[str, str] | None = None,
        marketplace_cert: bool = False,
        approval_status: str = "PendingManualApproval",
        description: str | None = None,
        drift_check_baselines: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create a model package, or a versioned package inside a group."""
        request = get_create_model_package_request(
            model_package_name=model_package_name,
            model_package_group_name=model_package_group_name,
            containers=containers,
            content_types=content_types,
            response_types=response_types,
            inference_instances=inference_instances,
            transform_instances=transform_instances,
            model_metrics=model_metrics,
            metadata_properties=metadata_properties,
            marketplace_cert=marketplace_cert,
            approval_status=approval_status,
            description=description,
            drift_check_baselines=drift_check_baselines,
        )

        logger.info(
            "Creating model package: %s", model_package_name or model_package_group_name
        )
        logger.debug("CreateModelPackage request: %s", _dump(request))
        return self.sagemaker_client.create_model_package(**request)

    def wait_for_model_package(self, model_package_name: str, poll: float | None = None) -> dict[str, Any]:
        return waiter.wait_for_model_package(
            self.sagemaker_client,
            model_package_name,
            poll=self._poll(poll, self.config.poll_interval_seconds),
        )

    # ========== ENDPOINTS ==========

    def create_endpoint_config(
        self,
        name: str,
        model_name: str,
        initial_instance_count: int | None,
        instance_type: str | None,
        accelerator_type: str | None = None,
        tags: list[dict[str, str]] | None = None,
        kms_key: str | None = None,
        data_capture_config_dict: dict[str, Any] | None = None,
        serverless_inference_config: dict[str, Any] | None = None,
    ) -> str:
        """Create an endpoint config with a single production variant."""
        logger.info("Creating endpoint-config with name %s", name)

        variant = production_variant(
            model_name,
            instance_type=instance_type,
            initial_instance_count=initial_instance_count,
            accelerator_type=accelerator_type,
            serverless_inference_config=serverless_inference_config,
        )
        request = update_args(
            {"EndpointConfigName": name, "ProductionVariants": [variant]},
            Tags=self._tags(tags) or None,
            KmsKeyId=kms_key,
            DataCaptureConfig=data_capture_config_dict,
        )

        logger.debug("CreateEndpointConfig request: %s", _dump(request))
        self.sagemaker_client.create_endpoint_config(**request)
        return name

    def create_endpoint_config_from_existing(
        self,
        existing_config_name: str,
        new_config_name: str,
        new_tags: list[dict[str, str]] | None = None,
        new_kms_key: str | None = None,
        new_data_capture_config_dict: dict[str, Any] | None = None,
        new_production_variants: list[dict[str, Any]] | None = None,
    ) -> str:
        """Copy an endpoint config, overriding the given fields."""
        logger.info("Creating endpoint-config with name %s", new_config_name)

        existing = self.sagemaker_client.describe_endpoint_config(
            EndpointConfigName=existing_config_name
        )
        tags = new_tags
        if tags is None:
            tags = self.list_tags(existing["EndpointConfigArn"])

        request = update_args(
            {
                "EndpointConfigName": new_config_name,
                "ProductionVariants": new_production_variants or existing["ProductionVariants"],
            },
            Tags=self._tags(tags) or None,
            KmsKeyId=new_kms_key or existing.get("KmsKeyId"),
            DataCaptureConfig=new_data_capture_config_dict or existing.get("DataCaptureConfig"),
        )

        self.sagemaker_client.create_endpoint_config(**request)
        return new_config_name

    def create_endpoint(
        self,
        endpoint_name: str,
        config_name: str,
        tags: list[dict[str, str]] | None = None,
        wait: bool = True,
    ) -> str:
        """Create an endpoint and, by default, wait until it is InService."""
        logger.info("Creating endpoint with name %s", endpoint_name)

        request = update_args(
            {"EndpointName": endpoint_name, "EndpointConfigName": config_name},
            Tags=self._tags(tags) or None,
        )
        self.sagemaker_client.create_endpoint(**request)

        if wait:
            self.wait_for_endpoint(endpoint_name)
        return endpoint_name

    def update_endpoint(self, endpoint_name: str, endpoint_config_name: str, wait: bool = True) -> str:
        """Point an existing endpoint at a new endpoint config.

        Raises:
            EndpointNotFoundError: If the endpoint does not exist
        """
        self.describe_endpoint(endpoint_name)

        logger.info("Updating endpoint %s to config %s", endpoint_name, endpoint_config_name)
        self.sagemaker_client.update_endpoint(
            EndpointName=endpoint_name, EndpointConfigName=endpoint_config_name
        )

        if wait:
            self.wait_for_endpoint(endpoint_name)
        return endpoint_name

    def describe_endpoint(self, endpoint_name: str) -> dict[str, Any]:
        """Describe an endpoint.

        Raises:
            EndpointNotFoundError: If the endpoint does not exist
        """
        try:
            return self.sagemaker_client.describe_endpoint(EndpointName=endpoint_name)
        except ClientError as e:
            if classify_client_error(e, ErrorContext.DESCRIBE_ENDPOINT) is ErrorAction.TRANSLATE:
                raise EndpointNotFoundError(endpoint_name) from e
            raise

    def endpoint_exists(self, endpoint_name: str) -> bool:
        try:
            self.describe_endpoint(endpoint_name)
        except EndpointNotFoundError:
            return False
        return True

    def delete_endpoint(self, endpoint_name: str) -> None:
        logger.info("Deleting endpoint with name: %s", endpoint_name)
        self.sagemaker_client.delete_endpoint(EndpointName=endpoint_name)

    def delete_endpoint_config(self, endpoint_config_name: str) -> None:
        logger.info("Deleting endpoint configuration with name: %s", endpoint_config_name)
        self.sagemaker_client.delete_endpoint_config(EndpointConfigName=endpoint_config_name)

    def wait_for_endpoint(self, endpoint: str, poll: float | None = None) -> dict[str, Any]:
        return waiter.wait_for_endpoint(
            self.sagemaker_client,
            endpoint,
            poll=self._poll(poll, self.config.endpoint_poll_interval_seconds),
        )

    def endpoint_from_job(
        self,
        job_name: str,
        initial_instance_count: int,
        instance_type: str,
        image_uri: str | None = None,
        name: str | None = None,
        role: str | None = None,
        wait: bool = True,
        model_environment_vars: dict[str, str] | None = None,
        vpc_config_override: dict[str, Any] | str | None = VPC_CONFIG_DEFAULT,
        accelerator_type: str | None = None,
    ) -> str:
        """Deploy the model a training job produced to a new endpoint."""
        description = self.describe_training_job(job_name)

        return self.endpoint_from_model_data(
            model_s3_location=description["ModelArtifacts"]["S3ModelArtifacts"],
            image_uri=image_uri or description["AlgorithmSpecification"]["TrainingImage"],
            initial_instance_count=initial_instance_count,
            instance_type=instance_type,
            name=name or job_name,
            role=role or description["RoleArn"],
            wait=wait,
            model_environment_vars=model_environment_vars,
            model_vpc_config=self._vpc_config_from_training_job(description, vpc_config_override),
            accelerator_type=accelerator_type,
        )

    def endpoint_from_model_data(
        self,
        model_s3_location: str,
        image_uri: str,
        initial_instance_count: int,
        instance_type: str,
        name: str | None = None,
        role: str | None = None,
        wait: bool = True,
        model_environment_vars: dict[str, str] | None = None,
        model_vpc_config: dict[str, Any] | None = None,
        accelerator_type: str | None = None,
        tags: list[dict[str, str]] | None = None,
    ) -> str:
        """Create a model, an endpoint config and an endpoint, all named ``name``.

        The model and endpoint config are reused if they already exist.

        Raises:
            ValueError: If an endpoint named ``name`` already exists
        """
        name = name or name_from_image(image_uri)
        model_vpc_config = vpc_sanitize(model_vpc_config)

        if self.endpoint_exists(name):
            raise ValueError(
                f'Endpoint with name "{name}" already exists; please pick a different name.'
            )

        primary = container_def(image_uri, model_s3_location, model_environment_vars)
        self.create_model(name, role, primary, vpc_config=model_vpc_config, tags=tags)

        if not self._endpoint_config_exists(name):
            self.create_endpoint_config(
                name,
                name,
                initial_instance_count,
                instance_type,
                accelerator_type=accelerator_type,
                tags=tags,
            )

        return self.create_endpoint(name, name, tags=tags, wait=wait)

    def endpoint_from_production_variants(
        self,
        name: str,
        production_variants: list[dict[str, Any]],
        tags: list[dict[str, str]] | None = None,
        kms_key: str | None = None,
        wait: bool = True,
        data_capture_config_dict: dict[str, Any] | None = None,
    ) -> str:
        """Create an endpoint config and endpoint from explicit variants."""
        request = update_args(
            {"EndpointConfigName": name, "ProductionVariants": production_variants},
            Tags=self._tags(tags) or None,
            KmsKeyId=kms_key,
            DataCaptureConfig=data_capture_config_dict,
        )

        logger.info("Creating endpoint-config with name %s", name)
        logger.debug("CreateEndpointConfig request: %s", _dump(request))
        self.sagemaker_client.create_endpoint_config(**request)

        return self.create_endpoint(name, name, tags=tags, wait=wait)

    def _endpoint_config_exists(self, name: str) -> bool:
        try:
            self.sagemaker_client.describe_endpoint_config(EndpointConfigName=name)
        except ClientError as e:
            if classify_client_error(e, ErrorContext.DESCRIBE_ENDPOINT_CONFIG) is ErrorAction.TRANSLATE:
                return False
            raise
        return True

    # ========== FEATURE GROUPS ==========

    def create_feature_group(
        self,
        feature_group_name: str,
        record_identifier_name: str,
        event_time_feature_name: str,
        feature_definitions: list[dict[str, str]],
        role_arn: str | None = None,
        online_store_config: dict[str, Any] | None = None,
        offline_store_config: dict[str, Any] | None = None,
        description: str | None = None,
        tags: list[dict[str, str]] | None = None,
    ) -> dict[str, Any]:
        """Create a feature group."""
        request = update_args(
            {
                "FeatureGroupName": feature_group_name,
                "RecordIdentifierFeatureName": record_identifier_name,
                "EventTimeFeatureName": event_time_feature_name,
                "FeatureDefinitions": feature_definitions,
            },
            OnlineStoreConfig=online_store_config,
            OfflineStoreConfig=offline_store_config,
            Description=description,
            Tags=self._tags(tags) or None,
        )
        if offline_store_config is not None:
            request["RoleArn"] = self.expand_role(self._role(role_arn))
        elif role_arn is not None:
            request["RoleArn"] = self.expand_role(role_arn)

        logger.info("Creating feature group with name: %s", feature_group_name)
        return self.sagemaker_client.create_feature_group(**request)

    def describe_feature_group(self, feature_group_name: str, next_token: str | None = None) -> dict[str, Any]:
        request = update_args({"FeatureGroupName": feature_group_name}, NextToken=next_token)
        return self.sagemaker_client.describe_feature_group(**request)

    def delete_feature_group(self, feature_group_name: str) -> None:
        logger.info("Deleting feature group with name: %s", feature_group_name)
        self.sagemaker_client.delete_feature_group(FeatureGroupName=feature_group_name)

    # ========== TAGS AND IDENTITY ==========

    def list_tags(self, resource_arn: str, max_results: int = 50) -> list[dict[str, str]]:
        """List a resource's tags, leaving out the ``aws:`` system tags."""
        tags = []
        params = {"ResourceArn": resource_arn, "MaxResults": max_results}

        while True:
            response = self.sagemaker_client.list_tags(**params)
            tags.extend(t for t in response.get("Tags", []) if not t["Key"].startswith("aws:"))

            next_token = response.get("NextToken")
            if not next_token:
                break
            params["NextToken"] = next_token

        return tags

    def expand_role(self, role: str) -> str:
        """Return a role ARN, looking up bare role names through IAM."""
        if "/" in role:
            return role
        return self.iam_client.get_role(RoleName=role)["Role"]["Arn"]

    def account_id(self) -> str:
        return self.sts_client.get_caller_identity()["Account"]

    def get_caller_identity_arn(self) -> str:
        """ARN of the caller; an assumed-role session maps to its role ARN."""
        arn = self.sts_client.get_caller_identity()["Arn"]
        if ":assumed-role/" not in arn:
            return arn

        role_name = arn.split("/")[1]
        try:
            return self.iam_client.get_role(RoleName=role_name)["Role"]["Arn"]
        except ClientError:
            logger.warning(
                "Couldn't call 'get_role' to get Role ARN from role name %s to get Role path.",
                role_name,
            )
            parts = arn.split(":")
            return f"arn:{parts[1]}:iam::{parts[4]}:role/{role_name}"

    def default_bucket(self) -> str:
        """Bucket for job artifacts, created on first use if missing.

        Defaults to ``sagemaker-{region}-{account_id}``.
        """
        if self._default_bucket:
            return self._default_bucket

        bucket = self.config.default_bucket or (
            f"sagemaker-{self.config.region}-{self.account_id()}"
        )
        self._create_bucket_if_missing(bucket)
        self._default_bucket = bucket
        return bucket

    def _create_bucket_if_missing(self, bucket: str) -> None:
        try:
            self.s3_client.head_bucket(Bucket=bucket)
            return
        except ClientError as e:
            if client_error_code(e) not in ("404", "NoSuchBucket", "NotFound"):
                raise

        params = {"Bucket": bucket}
        if self.config.region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": self.config.region}

        try:
            self.s3_client.create_bucket(**params)
            logger.info("Created S3 bucket: %s", bucket)
        except ClientError as e:
            if client_error_code(e) != "BucketAlreadyOwnedByYou":
                raise

    def upload_data(
        self,
        path: str,
        bucket: str | None = None,
        key_prefix: str = "data",
        extra_args: dict | None = None,
    ) -> str:
        """Upload a file or directory, to the default bucket unless one is given."""
        return self.s3.upload_data(path, bucket or self.default_bucket(), key_prefix, extra_args)

    def download_data(self, path: str, bucket: str, key_prefix: str = "") -> list:
        return self.s3.download_data(path, bucket, key_prefix)

    # ========== WAITING AND LOGS ==========

    def wait_for_job(self, job: str, poll: float | None = None) -> dict[str, Any]:
        """Wait for a training job and require it to complete or be stopped."""
        return self._wait_for_job(JobKind.TRAINING, job, poll)

    def wait_for_transform_job(self, job: str, poll: float | None = None) -> dict[str, Any]:
        return self._wait_for_job(JobKind.TRANSFORM, job, poll)

    def wait_for_processing_job(self, job: str, poll: float | None = None) -> dict[str, Any]:
        return self._wait_for_job(JobKind.PROCESSING, job, poll)

    def wait_for_auto_ml_job(self, job: str, poll: float | None = None) -> dict[str, Any]:
        return self._wait_for_job(JobKind.AUTO_ML, job, poll)

    def wait_for_tuning_job(self, job: str, poll: float | None = None) -> dict[str, Any]:
        description = waiter.wait_until(
            lambda: waiter.tuning_job_status(self.sagemaker_client, job),
            poll=self._poll(poll, self.config.poll_interval_seconds),
        )
        check_job_status(job, description, JobKind.TUNING)
        return description

    def logs_for_job(
        self,
        job_name: str,
        kind: JobKind | str = JobKind.TRAINING,
        wait: bool = False,
        poll: float | None = None,
        line_callback: Callable[[str], None] | None = None,
    ) -> dict[str, Any] | None:
        """Write a job's log lines to the logger, optionally until it finishes.

        Args:
            job_name: Name of the job
            kind: Job kind (training, transform, processing or auto_ml)
            wait: Keep tailing until the job reaches a terminal status
            poll: Seconds between polls while waiting
            line_callback: Receives each line instead of the logger

        Returns:
            The last job description seen

        Raises:
            UnexpectedStatusError: With ``wait=True``, if the job failed
        """
        tailer = LogTailer(
            self.sagemaker_client,
            self.logs_client,
            job_name,
            kind=kind,
            poll=self._poll(poll, self.config.log_poll_interval_seconds),
        )

        for line in tailer.stream(wait=wait):
            if line_callback:
                line_callback(line)
            else:
                logger.info(line)

        return tailer.description
