"""Shared model configuration."""

from enum import Enum
from typing import List

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

WIRE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    from_attributes=True,
)


class EntityKind(str, Enum):
    """Entity kinds held by the stores."""

    STORY = "story"
    DRAFT = "draft"
    PROFILE = "user_profile"


def dedupe(values: List[str]) -> List[str]:
    """Drop repeated values, keeping the first occurrence's position."""
    return list(dict.fromkeys(values))
