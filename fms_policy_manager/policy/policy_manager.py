"""Reconciles FMS policies with the control inputs after a change event."""
import asyncio
import json
import logging
from typing import Awaitable, Callable, Dict, List, Optional

from fms_policy_manager.clients.ec2_client import RegionLister
from fms_policy_manager.clients.sns_client import NotificationPublisher
from fms_policy_manager.metrics import MetricsReporter
from fms_policy_manager.models.policy import (
    GLOBAL_POLICIES,
    GLOBAL_REGION,
    REGIONAL_POLICIES,
    EventSource,
    Partition,
    PolicyType,
    ValidationResults,
    supported_policies,
)
from fms_policy_manager.models.results import BatchAction, BatchResult, UnitFailure
from .policy_helper import PolicyHelper

logger = logging.getLogger(__name__)

DELETE_EVENT = "Delete"


class PolicyManager:
    """One-shot reconciliation pass for a single event source.

    Every (policy type, region) unit runs concurrently and independently.
    Failed units are collected per batch and reported in a single
    notification; they never stop sibling work.
    """

    def __init__(self, validation: ValidationResults, regions: List[str], ous: List[str],
                 policy_helper: PolicyHelper, region_lister: RegionLister,
                 publisher: NotificationPublisher, topic_arn: str,
                 metrics: Optional[MetricsReporter] = None,
                 partition: Partition = Partition.AWS):
        self.validation = validation
        self.regions = regions
        self.ous = ous
        self.policy_helper = policy_helper
        self.region_lister = region_lister
        self.publisher = publisher
        self.topic_arn = topic_arn
        self.metrics = metrics
        self.partition = partition

        self._handlers: Dict[EventSource, Callable[[], Awaitable[List[BatchResult]]]] = {
            EventSource.REGION: self._handle_region,
            EventSource.OU: self._handle_ou,
            EventSource.TAG: self._handle_scope_change,
            EventSource.S3: self._handle_scope_change,
        }

    async def handle_event(self, source: EventSource) -> List[BatchResult]:
        logger.info(f"Handling {source.value} event with {self.validation.to_dict()}")
        results = await self._handlers[source]()
        failed = sum(len(result.failures) for result in results)
        logger.info(f"{source.value} event handled: {len(results)} batches, {failed} failed policies")
        return results

    async def _handle_region(self) -> List[BatchResult]:
        if self.validation.ou_delete or not self.validation.ou_valid:
            logger.info("OUs are deleted or invalid, region change ignored")
            return []

        if self.validation.region_delete:
            enabled_regions = await self.region_lister.get_regions()
            return await self.delete_regional_policies(enabled_regions)

        if self.validation.region_valid:
            enabled_regions = await self.region_lister.get_regions()
            stale_regions = [region for region in enabled_regions if region not in self.regions]
            results = await self.delete_regional_policies(stale_regions)
            results.extend(await self.save_regional_policies(self.regions))
            return results

        logger.info("Regions are invalid, region change ignored")
        return []

    async def _handle_ou(self) -> List[BatchResult]:
        if self.validation.ou_delete:
            results = [await self.delete_policies(GLOBAL_POLICIES, GLOBAL_REGION)]
            if not self.validation.region_delete:
                results.extend(await self.delete_regional_policies(self.regions))
            return results
        return await self._handle_scope_change()

    async def _handle_scope_change(self) -> List[BatchResult]:
        """Tag and manifest changes re-save everything currently in scope."""
        if self.validation.ou_delete or not self.validation.ou_valid:
            logger.info("OUs are deleted or invalid, nothing to save")
            return []

        results = [await self.save_policies(GLOBAL_POLICIES, GLOBAL_REGION)]
        if self.validation.region_valid:
            results.extend(await self.save_regional_policies(self.regions))
        return results

    async def save_regional_policies(self, regions: List[str]) -> List[BatchResult]:
        return await self._per_region(self.save_policies, regions)

    async def delete_regional_policies(self, regions: List[str]) -> List[BatchResult]:
        return await self._per_region(self.delete_policies, regions)

    async def _per_region(self, batch: Callable[[List[PolicyType], str], Awaitable[BatchResult]],
                          regions: List[str]) -> List[BatchResult]:
        outcomes = await asyncio.gather(
            *[batch(REGIONAL_POLICIES, region) for region in regions],
            return_exceptions=True
        )
        results: List[BatchResult] = []
        for region, outcome in zip(regions, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"Policy batch in {region} failed: {outcome}")
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)
        return results

    async def save_policies(self, policy_types: List[PolicyType], region: str) -> BatchResult:
        """Build and save each supported policy type in one region."""
        policy_types = supported_policies(policy_types, self.partition)
        logger.debug(f"Saving policies {[p.value for p in policy_types]} in {region}")

        async def save(policy_type: PolicyType) -> str:
            policy = await self.policy_helper.build_policy(policy_type, region)
            event = await self.policy_helper.save_or_update_policy(policy, region)
            await self._send_metric(event, policy_type, region, ou_count=len(self.ous))
            return event

        return await self._run_batch(BatchAction.SAVE, policy_types, region, save)

    async def delete_policies(self, policy_types: List[PolicyType], region: str) -> BatchResult:
        """Delete each supported policy type in one region."""
        policy_types = supported_policies(policy_types, self.partition)
        logger.debug(f"Deleting policies {[p.value for p in policy_types]} in {region}")

        async def delete(policy_type: PolicyType) -> str:
            await self.policy_helper.delete_policy(policy_type, region)
            await self._send_metric(DELETE_EVENT, policy_type, region)
            return DELETE_EVENT

        return await self._run_batch(BatchAction.DELETE, policy_types, region, delete)

    async def _run_batch(self, action: BatchAction, policy_types: List[PolicyType], region: str,
                         unit: Callable[[PolicyType], Awaitable[str]]) -> BatchResult:
        result = BatchResult(action=action, region=region)
        outcomes = await asyncio.gather(
            *[unit(policy_type) for policy_type in policy_types],
            return_exceptions=True
        )
        for policy_type, outcome in zip(policy_types, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"failed {action.value.lower()} policy {policy_type.value} "
                               f"in {region}, error: {outcome}")
                result.failures.append(UnitFailure(policy_type.value, outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.succeeded[policy_type.value] = outcome

        if result.failures:
            await self._notify_failures(result)
        else:
            logger.info(f"{action.value} of {list(result.succeeded)} completed in {region}")
        return result

    async def _notify_failures(self, result: BatchResult) -> None:
        subject = f"FMS Policy Manager Failed To {result.action.value} Policies"
        message = json.dumps({
            "Region": result.region,
            "FailedPolicies": result.failed_units,
            "Errors": [failure.to_dict() for failure in result.failures],
        })
        await self.publisher.publish(self.topic_arn, subject, message)

    async def _send_metric(self, event: str, policy_type: PolicyType, region: str,
                           ou_count: Optional[int] = None) -> None:
        if self.metrics is None:
            return
        await self.metrics.send_policy_event(event, policy_type, region, ou_count)
