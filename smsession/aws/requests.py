"""Request builders for SageMaker create calls.

These functions only shape dictionaries and validate arguments; they never
talk to AWS. Session validates by building the request before it makes any
client call.
"""

import warnings
from typing import Any

from .normalize import expand_container_def, update_args


def _stringify(hyperparameters: dict[str, Any] | None) -> dict[str, str] | None:
    if not hyperparameters:
        return None
    return {str(k): str(v) for k, v in hyperparameters.items()}


def _checkpoint_config(s3_uri: str | None, local_path: str | None) -> dict[str, str] | None:
    if s3_uri is None:
        return None
    return update_args({"S3Uri": s3_uri}, LocalPath=local_path)


def get_train_request(
    input_mode: str,
    input_config: list[dict[str, Any]] | None,
    role: str,
    job_name: str,
    output_config: dict[str, Any],
    resource_config: dict[str, Any],
    stop_condition: dict[str, Any],
    vpc_config: dict[str, Any] | None = None,
    hyperparameters: dict[str, Any] | None = None,
    tags: list[dict[str, str]] | None = None,
    metric_definitions: list[dict[str, str]] | None = None,
    enable_network_isolation: bool = False,
    image_uri: str | None = None,
    algorithm_arn: str | None = None,
    encrypt_inter_container_traffic: bool = False,
    use_spot_instances: bool = False,
    checkpoint_s3_uri: str | None = None,
    checkpoint_local_path: str | None = None,
    experiment_config: dict[str, str] | None = None,
    debugger_rule_configs: list[dict[str, Any]] | None = None,
    debugger_hook_config: dict[str, Any] | None = None,
    tensorboard_output_config: dict[str, Any] | None = None,
    enable_sagemaker_metrics: bool | None = None,
    profiler_rule_configs: list[dict[str, Any]] | None = None,
    profiler_config: dict[str, Any] | None = None,
    environment: dict[str, str] | None = None,
    retry_strategy: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a CreateTrainingJob request.

    Exactly one of ``image_uri`` and ``algorithm_arn`` must be given.

    Raises:
        ValueError: If both or neither of image_uri and algorithm_arn are set
    """
    if image_uri is not None and algorithm_arn is not None:
        raise ValueError(
            "image_uri and algorithm_arn are mutually exclusive. "
            f"Both were provided: image_uri: {image_uri} algorithm_arn: {algorithm_arn}"
        )
    if image_uri is None and algorithm_arn is None:
        raise ValueError("either image_uri or algorithm_arn is required. None was provided.")

    algorithm_spec = update_args(
        {"TrainingInputMode": input_mode},
        TrainingImage=image_uri,
        AlgorithmName=algorithm_arn,
        MetricDefinitions=metric_definitions,
        EnableSageMakerMetricsTimeSeries=enable_sagemaker_metrics,
    )

    request = {
        "TrainingJobName": job_name,
        "AlgorithmSpecification": algorithm_spec,
        "RoleArn": role,
        "OutputDataConfig": output_config,
        "ResourceConfig": resource_config,
        "StoppingCondition": stop_condition,
    }

    request = update_args(
        request,
        InputDataConfig=input_config,
        HyperParameters=_stringify(hyperparameters),
        Tags=tags or None,
        VpcConfig=vpc_config,
        ExperimentConfig=experiment_config or None,
        CheckpointConfig=_checkpoint_config(checkpoint_s3_uri, checkpoint_local_path),
        DebugRuleConfigurations=debugger_rule_configs,
        DebugHookConfig=debugger_hook_config,
        TensorBoardOutputConfig=tensorboard_output_config,
        ProfilerRuleConfigurations=profiler_rule_configs,
        ProfilerConfig=profiler_config,
        Environment=environment or None,
        RetryStrategy=retry_strategy,
    )

    if enable_network_isolation:
        request["EnableNetworkIsolation"] = True
    if encrypt_inter_container_traffic:
        request["EnableInterContainerTrafficEncryption"] = True
    if use_spot_instances:
        request["EnableManagedSpotTraining"] = True

    return request


def get_update_training_job_request(
    job_name: str,
    profiler_rule_configs: list[dict[str, Any]] | None = None,
    profiler_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build an UpdateTrainingJob request."""
    return update_args(
        {"TrainingJobName": job_name},
        ProfilerRuleConfigurations=profiler_rule_configs,
        ProfilerConfig=profiler_config,
    )


def map_tuning_config(
    strategy: str,
    max_jobs: int,
    max_parallel_jobs: int,
    early_stopping_type: str = "Off",
    objective_type: str | None = None,
    objective_metric_name: str | None = None,
    parameter_ranges: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a HyperParameterTuningJobConfig."""
    if strategy not in ("Bayesian", "Random", "Hyperband", "Grid"):
        raise ValueError(f"Unsupported tuning strategy: {strategy}")

    objective = None
    if objective_type is not None or objective_metric_name is not None:
        objective = update_args({}, Type=objective_type, MetricName=objective_metric_name)

    return update_args(
        {
            "Strategy": strategy,
            "ResourceLimits": {
                "MaxNumberOfTrainingJobs": max_jobs,
                "MaxParallelTrainingJobs": max_parallel_jobs,
            },
            "TrainingJobEarlyStoppingType": early_stopping_type,
        },
        HyperParameterTuningJobObjective=objective,
        ParameterRanges=parameter_ranges,
    )


def map_training_config(
    static_hyperparameters: dict[str, Any] | None,
    input_mode: str,
    role: str | None,
    output_config: dict[str, Any],
    resource_config: dict[str, Any],
    stop_condition: dict[str, Any],
    input_config: list[dict[str, Any]] | None = None,
    metric_definitions: list[dict[str, str]] | None = None,
    image_uri: str | None = None,
    algorithm_arn: str | None = None,
    vpc_config: dict[str, Any] | None = None,
    enable_network_isolation: bool = False,
    encrypt_inter_container_traffic: bool = False,
    estimator_name: str | None = None,
    objective_type: str | None = None,
    objective_metric_name: str | None = None,
    parameter_ranges: dict[str, Any] | None = None,
    use_spot_instances: bool = False,
    checkpoint_s3_uri: str | None = None,
    checkpoint_local_path: str | None = None,
    max_retry_attempts: int | None = None,
) -> dict[str, Any]:
    """Build a TrainingJobDefinition for a tuning job.

    ``algorithm_arn`` wins over ``image_uri`` when both are present.
    """
    algorithm_spec = update_args({"TrainingInputMode": input_mode}, MetricDefinitions=metric_definitions)
    if algorithm_arn is not None:
        algorithm_spec["AlgorithmName"] = algorithm_arn
    else:
        algorithm_spec["TrainingImage"] = image_uri

    objective = None
    if objective_type is not None or objective_metric_name is not None:
        objective = update_args({}, Type=objective_type, MetricName=objective_metric_name)

    retry_strategy = None
    if max_retry_attempts is not None:
        retry_strategy = {"MaximumRetryAttempts": max_retry_attempts}

    definition = update_args(
        {
            "StaticHyperParameters": _stringify(static_hyperparameters) or {},
            "RoleArn": role,
            "OutputDataConfig": output_config,
            "ResourceConfig": resource_config,
            "StoppingCondition": stop_condition,
            "AlgorithmSpecification": algorithm_spec,
        },
        InputDataConfig=input_config,
        VpcConfig=vpc_config,
        CheckpointConfig=_checkpoint_config(checkpoint_s3_uri, checkpoint_local_path),
        DefinitionName=estimator_name,
        TuningObjective=objective,
        HyperParameterRanges=parameter_ranges,
        RetryStrategy=retry_strategy,
    )

    if enable_network_isolation:
        definition["EnableNetworkIsolation"] = True
    if encrypt_inter_container_traffic:
        definition["EnableInterContainerTrafficEncryption"] = True
    if use_spot_instances:
        definition["EnableManagedSpotTraining"] = True

    return definition


def get_tuning_request(
    job_name: str,
    tuning_config: dict[str, Any],
    training_config: dict[str, Any] | None = None,
    training_config_list: list[dict[str, Any]] | None = None,
    warm_start_config: dict[str, Any] | None = None,
    tags: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """Build a CreateHyperParameterTuningJob request.

    ``tuning_config`` holds keyword arguments for map_tuning_config;
    ``training_config`` (or each entry of ``training_config_list``) holds
    keyword arguments for map_training_config.

    Raises:
        ValueError: Unless exactly one of training_config and
            training_config_list is provided
    """
    if training_config is None and training_config_list is None:
        raise ValueError("Either training_config or training_config_list should be provided.")
    if training_config is not None and training_config_list is not None:
        raise ValueError("Only one of training_config and training_config_list should be provided.")

    request = {
        "HyperParameterTuningJobName": job_name,
        "HyperParameterTuningJobConfig": map_tuning_config(**tuning_config),
    }

    if training_config is not None:
        request["TrainingJobDefinition"] = map_training_config(**training_config)
    else:
        request["TrainingJobDefinitions"] = [map_training_config(**c) for c in training_config_list]

    return update_args(request, WarmStartConfig=warm_start_config, Tags=tags or None)


def get_transform_request(
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
    """Build a CreateTransformJob request."""
    return update_args(
        {
            "TransformJobName": job_name,
            "ModelName": model_name,
            "TransformInput": input_config,
            "TransformOutput": output_config,
            "TransformResources": resource_config,
        },
        BatchStrategy=strategy,
        MaxConcurrentTransforms=max_concurrent_transforms,
        MaxPayloadInMB=max_payload,
        Environment=env,
        Tags=tags or None,
        DataProcessing=data_processing,
        ExperimentConfig=experiment_config or None,
        ModelClientConfig=model_client_config or None,
    )


def get_process_request(
    job_name: str,
    resources: dict[str, Any],
    app_specification: dict[str, Any],
    role_arn: str,
    inputs: list[dict[str, Any]] | None = None,
    output_config: dict[str, Any] | None = None,
    stopping_condition: dict[str, Any] | None = None,
    environment: dict[str, str] | None = None,
    network_config: dict[str, Any] | None = None,
    tags: list[dict[str, str]] | None = None,
    experiment_config: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build a CreateProcessingJob request."""
    outputs = (output_config or {}).get("Outputs")
    return update_args(
        {
            "ProcessingJobName": job_name,
            "ProcessingResources": resources,
            "AppSpecification": app_specification,
            "RoleArn": role_arn,
        },
        ProcessingInputs=inputs,
        ProcessingOutputConfig=output_config if outputs else None,
        Environment=environment,
        NetworkConfig=network_config,
        StoppingCondition=stopping_condition,
        Tags=tags or None,
        ExperimentConfig=experiment_config,
    )


def get_auto_ml_request(
    job_name: str,
    input_config: list[dict[str, Any]],
    output_config: dict[str, Any],
    auto_ml_job_config: dict[str, Any],
    role: str,
    problem_type: str | None = None,
    job_objective: dict[str, str] | None = None,
    generate_candidate_definitions_only: bool = False,
    tags: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """Build a CreateAutoMLJob request."""
    return update_args(
        {
            "AutoMLJobName": job_name,
            "InputDataConfig": input_config,
            "OutputDataConfig": output_config,
            "AutoMLJobConfig": auto_ml_job_config,
            "RoleArn": role,
            "GenerateCandidateDefinitionsOnly": generate_candidate_definitions_only,
        },
        AutoMLJobObjective=job_objective,
        ProblemType=problem_type,
        Tags=tags or None,
    )


def create_model_request(
    name: str,
    role: str,
    container_defs: str | dict[str, Any] | list[dict[str, Any]] | None = None,
    vpc_config: dict[str, Any] | None = None,
    enable_network_isolation: bool = False,
    primary_container: str | dict[str, Any] | None = None,
    tags: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    """Build a CreateModel request.

    A list of container definitions becomes an inference pipeline
    (``Containers``); a single definition or image URI becomes the
    ``PrimaryContainer``.

    Raises:
        ValueError: If both container_defs and primary_container are given
    """
    if container_defs is not None and primary_container is not None:
        raise ValueError("Both container_defs and primary_container can not be passed as input")

    if primary_container is not None:
        warnings.warn(
            "primary_container is going to be deprecated in a future release. "
            "Please use container_defs instead.",
            DeprecationWarning,
            stacklevel=3,
        )
        container_defs = primary_container

    if container_defs is None:
        raise ValueError("container_defs is required to create a model")

    request = {"ModelName": name, "ExecutionRoleArn": role}
    if isinstance(container_defs, list):
        request["Containers"] = [expand_container_def(c) for c in container_defs]
    else:
        request["PrimaryContainer"] = expand_container_def(container_defs)

    request = update_args(request, Tags=tags or None, VpcConfig=vpc_config)
    if enable_network_isolation:
        request["EnableNetworkIsolation"] = True

    return request


def get_create_model_package_request(
    model_package_name: str | None = None,
    model_package_group_name: str | None = None,
    containers: list[dict[str, Any]] | None = None,
    content_types: list[str] | None = None,
    response_types: list[str] | None = None,
    inference_instances: list[str] | None = None,
    transform_instances: list[str] | None = None,
    model_metrics: dict[str, Any] | None = None,
    metadata_properties: dict[str, str] | None = None,
    marketplace_cert: bool = False,
    approval_status: str = "PendingManualApproval",
    description: str | None = None,
    drift_check_baselines: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a CreateModelPackage request.

    Raises:
        ValueError: If both a package name and a group name are given, or if
            containers are given without their supported types and instances
    """
    if model_package_name is not None and model_package_group_name is not None:
        raise ValueError(
            "model_package_name and model_package_group_name cannot be present at the same time."
        )

    request = update_args(
        {},
        ModelPackageName=model_package_name,
        ModelPackageGroupName=model_package_group_name,
        ModelPackageDescription=description,
        ModelMetrics=model_metrics,
        DriftCheckBaselines=drift_check_baselines,
        MetadataProperties=metadata_properties,
    )

    if containers is not None:
        required = (content_types, response_types, inference_instances, transform_instances)
        if any(value is None for value in required):
            raise ValueError(
                "content_types, response_types, inference_instances and transform_instances "
                "must be provided if containers is present."
            )
        request["InferenceSpecification"] = {
            "Containers": containers,
            "SupportedContentTypes": content_types,
            "SupportedResponseMIMETypes": response_types,
            "SupportedRealtimeInferenceInstanceTypes": inference_instances,
            "SupportedTransformInstanceTypes": transform_instances,
        }

    request["CertifyForMarketplace"] = marketplace_cert
    request["ModelApprovalStatus"] = approval_status
    return request
