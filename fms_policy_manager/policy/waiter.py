"""Bounded poll for a DNS Firewall rule group to become unshared."""
import asyncio
import logging
import random
import time
from typing import Awaitable, Callable

from botocore.exceptions import BotoCoreError, ClientError

from fms_policy_manager.clients.route53_client import DNSFirewallClient
from fms_policy_manager.models.errors import AWSClientError
from fms_policy_manager.models.results import WaiterResult, WaiterState

logger = logging.getLogger(__name__)

NOT_SHARED = "NOT_SHARED"
MAX_WAIT_SECONDS = 600
MIN_DELAY_SECONDS = 1
MAX_DELAY_SECONDS = 10


def backoff_delay(attempt: int, min_delay: float = MIN_DELAY_SECONDS,
                  max_delay: float = MAX_DELAY_SECONDS) -> float:
    """Full-jitter exponential backoff, never below ``min_delay``."""
    ceiling = min(max_delay, min_delay * (2 ** max(attempt - 1, 0)))
    return random.uniform(min_delay, ceiling)


async def wait_until_rule_group_not_shared(
    client: DNSFirewallClient,
    rule_group_id: str,
    max_wait: float = MAX_WAIT_SECONDS,
    min_delay: float = MIN_DELAY_SECONDS,
    max_delay: float = MAX_DELAY_SECONDS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic
) -> WaiterResult:
    """Poll GetFirewallRuleGroup until ShareStatus is NOT_SHARED.

    Returns SUCCESS once the group is unshared, TIMEOUT when ``max_wait``
    elapses first, and FAILURE if the status call itself fails. Cancelling
    the calling task cancels the pending sleep.
    """
    deadline = clock() + max_wait
    attempts = 0

    while True:
        attempts += 1
        try:
            status = await client.get_share_status(rule_group_id)
        except (AWSClientError, ClientError, BotoCoreError) as e:
            logger.error(f"Error reading share status of rule group {rule_group_id}: {e}")
            return WaiterResult(WaiterState.FAILURE, attempts, reason=e)

        logger.debug(f"Rule group {rule_group_id} share status {status} (attempt {attempts})")
        if status == NOT_SHARED:
            return WaiterResult(WaiterState.SUCCESS, attempts)

        remaining = deadline - clock()
        if remaining <= 0:
            logger.warning(f"Rule group {rule_group_id} still {status} after {max_wait}s")
            return WaiterResult(
                WaiterState.TIMEOUT, attempts,
                reason=f"share status {status} after {max_wait}s"
            )

        await sleep(min(backoff_delay(attempts, min_delay, max_delay), remaining))
