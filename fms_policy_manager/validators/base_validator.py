"""Base class for control-input validators."""
from abc import ABC, abstractmethod
from typing import List, Union

from fms_policy_manager.models.policy import DELETE_SENTINEL


ParameterValue = Union[str, List[str]]


class BaseValidator(ABC):
    """Validators answer two questions about an input: is it the delete
    sentinel, and is it a usable value. Business invalidity is reported as
    ``False``; only infrastructure failures raise."""

    @abstractmethod
    def is_delete(self, value: ParameterValue) -> bool:
        pass

    @abstractmethod
    async def is_valid(self, value: ParameterValue) -> bool:
        pass

    @staticmethod
    def _is_delete_list(values: List[str]) -> bool:
        return (
            isinstance(values, list)
            and len(values) == 1
            and isinstance(values[0], str)
            and values[0].lower() == DELETE_SENTINEL
        )
