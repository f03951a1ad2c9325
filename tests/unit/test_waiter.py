"""Unit tests for the rule group share-status waiter."""
import asyncio

import pytest

from fms_policy_manager.models.errors import AWSClientError
from fms_policy_manager.models.results import WaiterState
from fms_policy_manager.policy.waiter import backoff_delay, wait_until_rule_group_not_shared


class FakeFirewall:
    """Returns share statuses in order, repeating the last one."""

    def __init__(self, statuses):
        self.statuses = list(statuses)
        self.calls = 0

    async def get_share_status(self, rule_group_id):
        self.calls += 1
        status = self.statuses[min(self.calls, len(self.statuses)) - 1]
        if isinstance(status, Exception):
            raise status
        return status


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def run_waiter(firewall, clock, **kwargs):
    return asyncio.run(wait_until_rule_group_not_shared(
        firewall, "rslvr-frg-1", sleep=clock.sleep, clock=clock, **kwargs
    ))


def test_waiter_succeeds_when_not_shared():
    """Test the waiter polls until the group is unshared."""
    firewall = FakeFirewall(["SHARING", "SHARED_BY_ME", "NOT_SHARED"])
    clock = FakeClock()

    result = run_waiter(firewall, clock)

    assert result.state == WaiterState.SUCCESS
    assert result.succeeded == True
    assert result.attempts == 3
    assert len(clock.sleeps) == 2


def test_waiter_times_out_at_deadline():
    """Test the waiter gives up after max_wait seconds."""
    firewall = FakeFirewall(["SHARED_BY_ME"])
    clock = FakeClock()

    result = run_waiter(firewall, clock, max_wait=60)

    assert result.state == WaiterState.TIMEOUT
    assert clock.now == pytest.approx(60)
    assert all(1 <= delay <= 10 for delay in clock.sleeps[:-1])


def test_waiter_default_deadline_is_ten_minutes():
    firewall = FakeFirewall(["SHARED_BY_ME"])
    clock = FakeClock()

    result = run_waiter(firewall, clock)

    assert result.state == WaiterState.TIMEOUT
    assert clock.now == pytest.approx(600)


def test_waiter_reports_describe_failure():
    """Test a failing status call ends the wait with FAILURE."""
    error = AWSClientError("throttled")
    firewall = FakeFirewall(["SHARED_BY_ME", error])
    clock = FakeClock()

    result = run_waiter(firewall, clock)

    assert result.state == WaiterState.FAILURE
    assert result.reason is error
    assert result.attempts == 2


def test_backoff_delay_bounds():
    """Test jittered delays stay within the configured bounds."""
    for attempt in range(1, 12):
        delay = backoff_delay(attempt)
        assert 1 <= delay <= 10
    assert backoff_delay(1) == 1
