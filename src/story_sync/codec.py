"""
Entity Codec

Converts between wire records (camelCase dicts with serialized timestamps)
and model instances.

Decoding is forgiving on purpose: stored records predate several schema
additions, so optional fields are filled from FIELD_DEFAULTS and missing or
unreadable timestamps become "now". Only records missing an identifying or
content field are rejected.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Tuple, Type, Union

from pydantic import BaseModel, ValidationError

from .errors import CodecError
from .models import Draft, EntityKind, Story, UserProfile
from .utils import (
    ANONYMOUS_AUTHOR,
    ANONYMOUS_USER_ID,
    LEGACY_PLACEHOLDER_AUTHOR,
    utc_now,
)

logger = logging.getLogger(__name__)

Entity = Union[Story, Draft, UserProfile]

# Numeric timestamps above this are epoch milliseconds, below it epoch seconds
MILLIS_THRESHOLD = 10**11

TIMESTAMP_FIELDS = ("createdAt", "updatedAt")

# Decode-time schema migrations: wire field -> default for records written
# before the field existed. A null value counts as missing.
FIELD_DEFAULTS: Dict[EntityKind, Dict[str, Callable[[], Any]]] = {
    EntityKind.STORY: {
        "tags": list,
        "likes": list,
        "comments": list,
        "pendingSync": lambda: False,
        "userId": lambda: ANONYMOUS_USER_ID,
        "author": lambda: ANONYMOUS_AUTHOR,
    },
    EntityKind.DRAFT: {
        "title": str,
        "content": str,
        "tags": list,
        "userId": lambda: ANONYMOUS_USER_ID,
        "author": lambda: ANONYMOUS_AUTHOR,
    },
    EntityKind.PROFILE: {
        "email": str,
        "displayName": lambda: ANONYMOUS_AUTHOR,
        "favoriteGenre": str,
        "bio": str,
        "favoriteAuthor": str,
        "pendingSync": lambda: False,
    },
}

# Comment ids missing from old records are derived in _decode_comment
COMMENT_DEFAULTS: Dict[str, Callable[[], Any]] = {
    "userId": lambda: ANONYMOUS_USER_ID,
    "userName": lambda: ANONYMOUS_AUTHOR,
}

REQUIRED_FIELDS: Dict[EntityKind, Tuple[str, ...]] = {
    EntityKind.STORY: ("id", "title", "content"),
    EntityKind.DRAFT: ("id",),
    EntityKind.PROFILE: ("uid",),
}

MODEL_FOR_KIND: Dict[EntityKind, Type[BaseModel]] = {
    EntityKind.STORY: Story,
    EntityKind.DRAFT: Draft,
    EntityKind.PROFILE: UserProfile,
}


def kind_of(entity: BaseModel) -> EntityKind:
    """Return the entity kind for a model instance."""
    for kind, model in MODEL_FOR_KIND.items():
        if isinstance(entity, model):
            return kind
    raise TypeError(f"Not a stored entity: {type(entity).__name__}")


def entity_id(entity: BaseModel) -> str:
    """Primary key of a stored entity (profiles are keyed by uid)."""
    if isinstance(entity, UserProfile):
        return entity.uid
    return entity.id


def repair_author(name: str) -> str:
    """Rewrite the legacy placeholder author name to the anonymous default."""
    if name == LEGACY_PLACEHOLDER_AUTHOR:
        return ANONYMOUS_AUTHOR
    return name


def parse_timestamp(value: Any, default: datetime) -> datetime:
    """
    Parse a serialized timestamp into an aware UTC datetime.

    Accepts datetimes, ISO-8601 strings (with or without a trailing "Z"),
    epoch seconds or milliseconds, and {"seconds": ..., "nanoseconds": ...}
    objects as exported by document stores. Anything else returns default.
    """
    if value is None:
        return default

    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
            nanos = value.get("nanoseconds", value.get("_nanoseconds")) or 0
            value = seconds + nanos / 1_000_000_000
        else:
            logger.warning(f"Unrecognized timestamp object {value!r}, using now")
            return default

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        return default
    elif isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) > MILLIS_THRESHOLD else value
        try:
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.warning(f"Out-of-range timestamp {value!r}, using now")
            return default
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unparseable timestamp {value!r}, using now")
            return default
    else:
        return default

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _apply_defaults(data: Dict[str, Any], defaults: Mapping[str, Callable[[], Any]]) -> None:
    for field, factory in defaults.items():
        if field not in data:
            data[field] = factory()


def _strip_nulls(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in record.items() if value is not None}


def _decode_comment(raw: Any, story_id: str, index: int, now: datetime) -> Dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise CodecError(f"Comment must be an object, got {type(raw).__name__}")
    data = _strip_nulls(raw)
    if "content" not in data:
        raise CodecError(f"Comment {data.get('id')} has no content")
    data.setdefault("id", f"{story_id}-comment-{index}")
    _apply_defaults(data, COMMENT_DEFAULTS)
    data["createdAt"] = parse_timestamp(data.get("createdAt"), now)
    return data


def decode(kind: EntityKind, record: Any) -> Entity:
    """
    Build an entity from its wire record.

    Raises:
        CodecError: record is not an object, lacks a required field,
            or fails model validation after defaults are applied.
    """
    if not isinstance(record, Mapping):
        raise CodecError(
            f"{kind.value} record must be an object, got {type(record).__name__}"
        )

    data = _strip_nulls(record)
    missing = [field for field in REQUIRED_FIELDS[kind] if field not in data]
    if missing:
        raise CodecError(
            f"{kind.value} record {data.get('id') or data.get('uid')} "
            f"is missing {', '.join(missing)}"
        )

    _apply_defaults(data, FIELD_DEFAULTS[kind])

    now = utc_now()
    for field in TIMESTAMP_FIELDS:
        data[field] = parse_timestamp(data.get(field), now)

    if "author" in data:
        data["author"] = repair_author(data["author"])

    if kind is EntityKind.STORY:
        comments = data["comments"]
        if not isinstance(comments, list):
            raise CodecError(f"story {data['id']} comments must be a list")
        data["comments"] = [
            _decode_comment(c, data["id"], index, now) for index, c in enumerate(comments)
        ]

    try:
        return MODEL_FOR_KIND[kind].model_validate(data)
    except ValidationError as e:
        raise CodecError(f"Invalid {kind.value} record: {e}") from e


def encode(entity: BaseModel) -> Dict[str, Any]:
    """Serialize an entity to its wire record."""
    return entity.model_dump(mode="json", by_alias=True)
