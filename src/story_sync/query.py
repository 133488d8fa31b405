"""
Story Query

Structured filter/sort parameters for story reads and the one definition
of how they are applied. The local cache and the in-memory remote store
both evaluate queries through apply_query so that offline results match
what the backend would have returned.
"""

from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator

from .models import WIRE_CONFIG, Story

DEFAULT_LIMIT = 10


class StoryOrder(str, Enum):
    CREATED_AT = "createdAt"
    CHARACTER_COUNT = "characterCount"


class StoryQuery(BaseModel):
    """Search text plus optional filters. All orderings are descending."""

    model_config = WIRE_CONFIG

    text: str = ""
    tags: List[str] = Field(default_factory=list)
    author: Optional[str] = None
    user_id: Optional[str] = None
    min_characters: Optional[int] = Field(default=None, ge=0)
    max_characters: Optional[int] = Field(default=None, ge=0)
    order_by: StoryOrder = StoryOrder.CREATED_AT
    limit: Optional[int] = Field(default=None, ge=1)

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @classmethod
    def popular(cls, limit: int = DEFAULT_LIMIT) -> "StoryQuery":
        return cls(order_by=StoryOrder.CHARACTER_COUNT, limit=limit)

    @classmethod
    def recent(cls, limit: int = DEFAULT_LIMIT) -> "StoryQuery":
        return cls(order_by=StoryOrder.CREATED_AT, limit=limit)

    @classmethod
    def by_owner(cls, user_id: str) -> "StoryQuery":
        return cls(user_id=user_id)

    def to_params(self) -> List[tuple]:
        """Encode as HTTP query parameters (repeated `tags` keys)."""
        params: List[tuple] = [("orderBy", self.order_by.value)]
        if self.text:
            params.append(("q", self.text))
        params.extend(("tags", tag) for tag in self.tags)
        if self.author is not None:
            params.append(("author", self.author))
        if self.user_id is not None:
            params.append(("userId", self.user_id))
        if self.min_characters is not None:
            params.append(("minCharacters", str(self.min_characters)))
        if self.max_characters is not None:
            params.append(("maxCharacters", str(self.max_characters)))
        if self.limit is not None:
            params.append(("limit", str(self.limit)))
        return params


def matches(story: Story, query: StoryQuery) -> bool:
    """Return True if the story passes every filter in the query."""
    if query.text:
        needle = query.text.lower()
        haystack = [story.title, story.content, *story.tags]
        if not any(needle in field.lower() for field in haystack):
            return False

    # Tag filter is any-of
    if query.tags and not set(query.tags).intersection(story.tags):
        return False

    if query.author is not None and story.author != query.author:
        return False

    if query.user_id is not None and story.user_id != query.user_id:
        return False

    count = story.character_count
    if query.min_characters is not None and count < query.min_characters:
        return False
    if query.max_characters is not None and count > query.max_characters:
        return False

    return True


def sort_key(order: StoryOrder):
    if order is StoryOrder.CHARACTER_COUNT:
        return lambda s: (s.character_count, s.created_at)
    return lambda s: s.created_at


def apply_query(stories: Iterable[Story], query: StoryQuery) -> List[Story]:
    """Filter, order (descending) and truncate a story sequence."""
    selected = [s for s in stories if matches(s, query)]
    selected.sort(key=sort_key(query.order_by), reverse=True)
    if query.limit is not None:
        selected = selected[: query.limit]
    return selected
