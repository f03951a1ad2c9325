"""Unit tests for control input validators."""
import asyncio
import json

import pytest

from fms_policy_manager.models.errors import RegionsNotFoundError
from fms_policy_manager.validators import (
    OUValidator,
    Parameter,
    RegionValidator,
    TagValidator,
    Validator,
)


class FakeRegionLister:
    def __init__(self, regions):
        self.regions = regions

    async def get_regions(self):
        return self.regions


VALID_TAGS = json.dumps({
    "ResourceTags": [{"Key": "Environment", "Value": "Prod"}],
    "ExcludeResourceTags": False
})


@pytest.mark.parametrize("values, expected", [
    (["delete"], True),
    (["DELETE"], True),
    (["Delete"], True),
    (["delete", "other"], False),
    (["us-east-1"], False),
    ([], False),
])
def test_region_and_ou_is_delete(values, expected):
    """Test the delete sentinel for list inputs."""
    assert RegionValidator(FakeRegionLister(["us-east-1"])).is_delete(values) == expected
    assert OUValidator().is_delete(values) == expected


def test_ou_is_valid():
    """Test OU ids must all match the OU pattern."""
    validator = OUValidator()

    assert asyncio.run(validator.is_valid(["ou-abcd-12345678", "ou-a1b2c3-a1b2c3d4e5"])) == True
    assert asyncio.run(validator.is_valid(["ou-abcd-12345678", "ou-ABCD-12345678"])) == False
    assert asyncio.run(validator.is_valid(["ou-abc-12345678"])) == False
    assert asyncio.run(validator.is_valid(["delete"])) == False
    assert asyncio.run(validator.is_valid("ou-abcd-12345678")) == False


def test_region_is_valid():
    """Test regions are checked against the live region list."""
    validator = RegionValidator(FakeRegionLister(["us-east-1", "us-west-2"]))

    assert asyncio.run(validator.is_valid(["us-east-1"])) == True
    assert asyncio.run(validator.is_valid(["us-east-1", "moon-west-1"])) == False
    assert asyncio.run(validator.is_valid(["delete"])) == False


@pytest.mark.parametrize("regions", [[], None, "us-east-1"])
def test_region_is_valid_raises_without_regions(regions):
    """Test an empty or malformed region list from EC2 raises."""
    validator = RegionValidator(FakeRegionLister(regions))

    with pytest.raises(RegionsNotFoundError, match="no regions found"):
        asyncio.run(validator.is_valid(["us-east-1"]))


def test_tag_is_delete():
    validator = TagValidator()

    assert validator.is_delete("delete") == True
    assert validator.is_delete("Delete") == True
    assert validator.is_delete(VALID_TAGS) == False


def test_tag_is_valid():
    assert asyncio.run(TagValidator().is_valid(VALID_TAGS)) == True
    assert asyncio.run(TagValidator().is_valid(
        json.dumps({"ResourceTags": [], "ExcludeResourceTags": True})
    )) == True


@pytest.mark.parametrize("tags", [
    "delete",
    "not json",
    json.dumps([]),
    json.dumps({"ResourceTags": [{"Key": "k", "Value": "v"}]}),
    json.dumps({"ResourceTags": "k=v", "ExcludeResourceTags": False}),
    json.dumps({"ResourceTags": [{"Key": "k"}], "ExcludeResourceTags": False}),
    json.dumps({"ResourceTags": [{"Key": "k", "Value": "v", "Extra": "x"}], "ExcludeResourceTags": False}),
    json.dumps({"ResourceTags": [{"Key": "k", "Value": 1}], "ExcludeResourceTags": False}),
    json.dumps({"ResourceTags": [], "ExcludeResourceTags": "false"}),
    None,
])
def test_tag_is_valid_rejects_malformed(tags):
    """Test malformed tags are invalid and never raise."""
    assert asyncio.run(TagValidator().is_valid(tags)) == False


def test_validator_facade():
    """Test the facade delegates to the matching validator."""
    lister = FakeRegionLister(["us-east-1"])

    assert isinstance(Validator(Parameter.REGION, lister).validator, RegionValidator)
    assert isinstance(Validator(Parameter.OU).validator, OUValidator)
    assert isinstance(Validator(Parameter.TAG).validator, TagValidator)
    assert asyncio.run(Validator(Parameter.REGION, lister).is_valid(["us-east-1"])) == True
    assert Validator(Parameter.TAG).is_delete("delete") == True


def test_validator_facade_requires_region_lister():
    with pytest.raises(ValueError):
        Validator(Parameter.REGION)
