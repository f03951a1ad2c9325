"""Lambda handler for policy reconciliation events."""
import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from fms_policy_manager.clients import (
    NotificationPublisher,
    ObjectStore,
    ParameterStore,
    PolicyTable,
    RegionLister,
)
from fms_policy_manager.clients.base_client import ClientFactory
from fms_policy_manager.config import PolicyManagerConfig
from fms_policy_manager.metrics import MetricsReporter
from fms_policy_manager.models.errors import (
    AWSClientError,
    ParameterFetchError,
    ParameterValidationError,
    PolicyManagerError,
)
from fms_policy_manager.models.policy import EventSource, PolicyTags, ValidationResults
from fms_policy_manager.policy import ManifestHelper, PolicyHelper, PolicyManager
from fms_policy_manager.validators import Parameter, Validator

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def classify_event(event: Dict[str, Any], config: PolicyManagerConfig) -> Optional[EventSource]:
    """Map an EventBridge event to the control input that changed."""
    if event.get("source") == "aws.s3":
        return EventSource.S3

    name = event.get("detail", {}).get("name")
    return {
        config.region_parameter: EventSource.REGION,
        config.ou_parameter: EventSource.OU,
        config.tag_parameter: EventSource.TAG,
    }.get(name)


def _split(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


async def fetch_parameters(store: ParameterStore, config: PolicyManagerConfig) -> Dict[str, str]:
    """Read the region, OU and tag inputs from their configured parameter names."""
    names = [config.region_parameter, config.ou_parameter, config.tag_parameter]
    try:
        return await store.get_parameters(names)
    except AWSClientError as e:
        raise ParameterFetchError(f"Failed to fetch SSM parameters: {e}") from e


async def validate_parameters(regions: List[str], ous: List[str], tags: str,
                              region_lister: RegionLister) -> ValidationResults:
    region_validator = Validator(Parameter.REGION, region_lister)
    ou_validator = Validator(Parameter.OU)
    tag_validator = Validator(Parameter.TAG)
    try:
        return ValidationResults(
            region_delete=region_validator.is_delete(regions),
            region_valid=await region_validator.is_valid(regions),
            ou_delete=ou_validator.is_delete(ous),
            ou_valid=await ou_validator.is_valid(ous),
            tag_delete=tag_validator.is_delete(tags),
            tag_valid=await tag_validator.is_valid(tags)
        )
    except Exception as e:
        raise ParameterValidationError(f"Failed to validate SSM parameter: {e}") from e


async def handle(event: Dict[str, Any], config: PolicyManagerConfig,
                 client_factory: Optional[ClientFactory] = None) -> Dict[str, Any]:
    """Run one reconciliation pass and return its summary."""
    client_kwargs = {"client_factory": client_factory, "user_agent": config.user_agent}

    parameters = await fetch_parameters(ParameterStore(**client_kwargs), config)

    source = classify_event(event, config)
    if source is None:
        logger.info(f"Event {event.get('detail', {}).get('name')} does not affect policies, ignoring")
        return {"source": None, "ignored": True}

    regions = _split(parameters[config.region_parameter])
    ous = _split(parameters[config.ou_parameter])
    raw_tags = parameters[config.tag_parameter]

    region_lister = RegionLister(**client_kwargs)
    validation = await validate_parameters(regions, ous, raw_tags, region_lister)
    logger.debug(f"Validation results: {validation.to_dict()}")

    # invalid or deleted tags scope policies to all resources
    if not validation.tag_valid or validation.tag_delete:
        tags = PolicyTags()
    else:
        tags = PolicyTags.from_dict(json.loads(raw_tags))

    publisher = NotificationPublisher(**client_kwargs)
    manifest_helper = ManifestHelper(config.policy_topic_arn, ObjectStore(**client_kwargs), publisher)
    manifest = await manifest_helper.fetch_manifest(config.policy_manifest)

    policy_helper = PolicyHelper(
        PolicyTable(config.table, **client_kwargs),
        manifest,
        ous,
        tags,
        config.policy_identifier,
        partition=config.partition,
        client_factory=client_factory,
        user_agent=config.user_agent,
        max_attempts=config.max_attempts
    )
    manager = PolicyManager(
        validation,
        regions,
        ous,
        policy_helper,
        region_lister,
        publisher,
        config.policy_topic_arn,
        metrics=MetricsReporter(config, client_factory=client_factory),
        partition=config.partition
    )
    results = await manager.handle_event(source)

    return {
        "source": source.value,
        "validation": validation.to_dict(),
        "batches": [result.to_dict() for result in results],
    }


def lambda_handler(event: Dict[str, Any], context) -> Dict[str, Any]:
    """Lambda handler for SSM parameter and manifest change events."""
    config = PolicyManagerConfig.from_env()
    logger.setLevel(config.log_level)
    logger.info(f"Received event: {json.dumps(event, default=str)}")

    try:
        summary = asyncio.run(handle(event, config))
    except PolicyManagerError as e:
        logger.error(f"Policy reconciliation failed: {e}", exc_info=True)
        raise

    return {
        "statusCode": 200,
        "body": json.dumps(summary, default=str)
    }


def local_test(parameter_name: str, config: PolicyManagerConfig,
               client_factory: ClientFactory) -> Dict[str, Any]:
    """Run a parameter change event against the given AWS client factory."""
    logger.info(f"Testing policy reconciliation locally for {parameter_name}")

    event = {
        "source": "aws.ssm",
        "detail-type": "Parameter Store Change",
        "detail": {
            "name": parameter_name,
            "operation": "Update",
            "type": "StringList",
        },
    }
    return asyncio.run(handle(event, config, client_factory))
