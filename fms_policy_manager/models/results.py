"""Result types for work that is allowed to partially fail."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class BatchAction(str, Enum):
    SAVE = "Save"
    DELETE = "Delete"


@dataclass
class UnitFailure:
    """A single unit of work that failed, with the error it raised."""
    unit: str
    error: BaseException

    def to_dict(self) -> Dict[str, str]:
        return {"unit": self.unit, "error": str(self.error)}


@dataclass
class BatchResult:
    """Outcome of one save or delete batch in a single region."""
    action: BatchAction
    region: str
    succeeded: Dict[str, str] = field(default_factory=dict)
    failures: List[UnitFailure] = field(default_factory=list)

    @property
    def failed_units(self) -> List[str]:
        return [failure.unit for failure in self.failures]

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "region": self.region,
            "succeeded": self.succeeded,
            "failures": [failure.to_dict() for failure in self.failures]
        }


class WaiterState(str, Enum):
    SUCCESS = "SUCCESS"
    TIMEOUT = "TIMEOUT"
    FAILURE = "FAILURE"


@dataclass
class WaiterResult:
    state: WaiterState
    attempts: int = 0
    reason: Optional[Any] = None

    @property
    def succeeded(self) -> bool:
        return self.state == WaiterState.SUCCESS


@dataclass
class RuleGroupResult:
    """Outcome of creating or tearing down a DNS Firewall rule group.

    ``rule_group_id`` is only set by the create workflow. Errors that were
    tolerated along the way (a rule that could not be created, a share
    that never reached NOT_SHARED) are kept in ``failures``.
    """
    rule_group_id: Optional[str] = None
    deleted_rule_groups: List[str] = field(default_factory=list)
    failures: List[UnitFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures
