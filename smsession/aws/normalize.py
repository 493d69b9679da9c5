"""Builders for request fragments shared by several SageMaker calls."""

from typing import Any

SUBNETS_KEY = "Subnets"
SECURITY_GROUP_IDS_KEY = "SecurityGroupIds"
VPC_CONFIG_KEY = "VpcConfig"

# Sentinel for "reuse the VpcConfig of the training job"
VPC_CONFIG_DEFAULT = "VPC_CONFIG_DEFAULT"


def update_args(args: dict[str, Any], **kwargs) -> dict[str, Any]:
    """Return a copy of ``args`` with every non-None keyword added.

    The service rejects explicit nulls, so optional fields are left out.
    """
    updated = dict(args)
    updated.update({k: v for k, v in kwargs.items() if v is not None})
    return updated


def vpc_to_dict(
    subnets: list[str] | None,
    security_group_ids: list[str] | None,
) -> dict[str, list[str]] | None:
    """Build a VpcConfig, or None unless both lists are non-empty."""
    if not subnets or not security_group_ids:
        return None
    return {SUBNETS_KEY: subnets, SECURITY_GROUP_IDS_KEY: security_group_ids}


def vpc_sanitize(vpc_config: dict[str, Any] | None) -> dict[str, list[str]] | None:
    """Validate a VpcConfig and drop any keys besides the two it needs.

    Raises:
        ValueError: If the config is empty, or a key is missing, not a list,
            or an empty list.
    """
    if vpc_config is None:
        return None
    if not isinstance(vpc_config, dict):
        raise ValueError(f"vpc_config is not a dict: {vpc_config}")
    if not vpc_config:
        raise ValueError("vpc_config is empty")

    sanitized = {}
    for key in (SUBNETS_KEY, SECURITY_GROUP_IDS_KEY):
        value = vpc_config.get(key)
        if value is None:
            raise ValueError(f"vpc_config is missing key: {key}")
        if not isinstance(value, list):
            raise ValueError(f"vpc_config value for {key} is not a list: {value}")
        if not value:
            raise ValueError(f"vpc_config value for {key} is empty")
        sanitized[key] = value

    return sanitized


def vpc_from_dict(
    vpc_config: dict[str, Any] | None,
    do_sanitize: bool = False,
) -> tuple[list[str] | None, list[str] | None]:
    """Split a VpcConfig into (subnets, security_group_ids)."""
    if do_sanitize:
        vpc_config = vpc_sanitize(vpc_config)
    if vpc_config is None:
        return None, None
    if not vpc_config:
        raise ValueError("vpc_config is an empty dict")

    missing = [k for k in (SUBNETS_KEY, SECURITY_GROUP_IDS_KEY) if k not in vpc_config]
    if missing:
        raise ValueError(f"{', or '.join(missing)} is missing from vpc_config")

    return vpc_config[SUBNETS_KEY], vpc_config[SECURITY_GROUP_IDS_KEY]


def container_def(
    image_uri: str,
    model_data_url: str | None = None,
    env: dict[str, str] | None = None,
    container_mode: str | None = None,
    image_config: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Container definition usable as a CreateModel PrimaryContainer.

    Args:
        image_uri: Docker image to run
        model_data_url: S3 URI of the model artifacts
        env: Environment variables for the container
        container_mode: "SingleModel" or "MultiModel"
        image_config: Where to pull the image from (ECR or a VPC registry)
    """
    return update_args(
        {"Image": image_uri, "Environment": env or {}},
        ModelDataUrl=model_data_url,
        Mode=container_mode,
        ImageConfig=image_config,
    )


def expand_container_def(c_def: str | dict[str, Any]) -> dict[str, Any]:
    """Promote a bare image URI to a container definition."""
    if isinstance(c_def, str):
        return container_def(c_def)
    return c_def


def production_variant(
    model_name: str,
    instance_type: str | None = None,
    initial_instance_count: int | None = None,
    variant_name: str = "AllTraffic",
    initial_weight: int = 1,
    accelerator_type: str | None = None,
    serverless_inference_config: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """ProductionVariant entry for a CreateEndpointConfig request.

    A serverless config replaces the instance type and count.
    """
    variant = update_args(
        {
            "ModelName": model_name,
            "VariantName": variant_name,
            "InitialVariantWeight": initial_weight,
        },
        AcceleratorType=accelerator_type,
    )

    if serverless_inference_config is not None:
        variant["ServerlessConfig"] = serverless_inference_config
    else:
        variant["InitialInstanceCount"] = initial_instance_count or 1
        if instance_type is not None:
            variant["InstanceType"] = instance_type

    return variant
