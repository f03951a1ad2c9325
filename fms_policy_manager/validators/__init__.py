from .validator import Validator, Parameter
from .region_validator import RegionValidator
from .ou_validator import OUValidator
from .tag_validator import TagValidator

__all__ = ["Validator", "Parameter", "RegionValidator", "OUValidator", "TagValidator"]
