"""Facade that picks the validator for a control input."""
from enum import Enum
from typing import Optional

from fms_policy_manager.clients.ec2_client import RegionLister
from .base_validator import BaseValidator, ParameterValue
from .ou_validator import OUValidator
from .region_validator import RegionValidator
from .tag_validator import TagValidator


class Parameter(str, Enum):
    REGION = "region"
    OU = "ou"
    TAG = "tag"


class Validator:
    """Delegates to the Region, OU or Tag validator."""

    def __init__(self, parameter: Parameter, region_lister: Optional[RegionLister] = None):
        self.parameter = parameter
        self.validator = self._create(parameter, region_lister)

    @staticmethod
    def _create(parameter: Parameter, region_lister: Optional[RegionLister]) -> BaseValidator:
        if parameter == Parameter.REGION:
            if region_lister is None:
                raise ValueError("region validation requires a region lister")
            return RegionValidator(region_lister)
        if parameter == Parameter.OU:
            return OUValidator()
        if parameter == Parameter.TAG:
            return TagValidator()
        raise ValueError(f"Unsupported parameter: {parameter}")

    def is_delete(self, value: ParameterValue) -> bool:
        return self.validator.is_delete(value)

    async def is_valid(self, value: ParameterValue) -> bool:
        return await self.validator.is_valid(value)
