"""
Entity Codec Tests

Decode-time defaults, timestamp repair and the legacy author rewrite.
Run with: pytest tests/test_codec.py -v
"""

from datetime import datetime, timedelta, timezone

import pytest

from story_sync.codec import (
    FIELD_DEFAULTS,
    decode,
    encode,
    entity_id,
    kind_of,
    parse_timestamp,
)
from story_sync.errors import CodecError
from story_sync.models import Draft, EntityKind, Story, UserProfile
from story_sync.utils import ANONYMOUS_AUTHOR, ANONYMOUS_USER_ID


@pytest.fixture
def minimal_story():
    return {"id": "s1", "title": "密室の謎", "content": "x" * 42}


class TestDecodeDefaults:
    """Older records missing optional fields still decode."""

    def test_missing_collections_default_to_empty(self, minimal_story):
        story = decode(EntityKind.STORY, minimal_story)

        assert story.tags == []
        assert story.likes == []
        assert story.comments == []
        assert story.pending_sync is False

    def test_null_counts_as_missing(self, minimal_story):
        record = {**minimal_story, "tags": None, "likes": None, "pendingSync": None}

        story = decode(EntityKind.STORY, record)

        assert story.tags == []
        assert story.likes == []
        assert story.pending_sync is False

    def test_missing_owner_is_anonymous(self, minimal_story):
        story = decode(EntityKind.STORY, minimal_story)

        assert story.user_id == ANONYMOUS_USER_ID
        assert story.author == ANONYMOUS_AUTHOR

    def test_every_kind_has_a_defaults_table(self):
        assert set(FIELD_DEFAULTS) == set(EntityKind)

    def test_profile_optional_fields_default_to_empty_strings(self):
        profile = decode(EntityKind.PROFILE, {"uid": "u1", "displayName": "花子"})

        assert profile.bio == ""
        assert profile.favorite_author == ""
        assert profile.favorite_genre == ""
        assert profile.pending_sync is False

    def test_draft_needs_only_an_id(self):
        draft = decode(EntityKind.DRAFT, {"id": "d1"})

        assert isinstance(draft, Draft)
        assert draft.title == ""
        assert draft.content == ""

    def test_comment_defaults(self, minimal_story):
        record = {**minimal_story, "comments": [{"content": "nice"}]}

        story = decode(EntityKind.STORY, record)

        comment = story.comments[0]
        assert comment.content == "nice"
        assert comment.user_name == ANONYMOUS_AUTHOR
        assert comment.id

    def test_missing_comment_ids_are_stable_across_decodes(self, minimal_story):
        record = {**minimal_story, "comments": [{"content": "one"}, {"id": "c9", "content": "two"}]}

        first = decode(EntityKind.STORY, record)
        second = decode(EntityKind.STORY, record)

        assert [c.id for c in first.comments] == [c.id for c in second.comments]
        assert first.comments[0].id == f"{minimal_story['id']}-comment-0"
        assert first.comments[1].id == "c9"


class TestDecodeRepairs:
    def test_missing_timestamps_become_now(self, minimal_story):
        before = datetime.now(timezone.utc)

        story = decode(EntityKind.STORY, minimal_story)

        assert story.created_at >= before
        assert story.updated_at >= before

    def test_unparseable_timestamp_becomes_now(self, minimal_story):
        before = datetime.now(timezone.utc)

        story = decode(EntityKind.STORY, {**minimal_story, "createdAt": "yesterday-ish"})

        assert story.created_at >= before

    def test_iso_timestamp_with_z_suffix(self, minimal_story):
        story = decode(EntityKind.STORY, {**minimal_story, "createdAt": "2024-01-15T10:30:00.000Z"})

        assert story.created_at == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_legacy_placeholder_author_is_rewritten(self, minimal_story):
        story = decode(EntityKind.STORY, {**minimal_story, "author": "あなたの名前"})

        assert story.author == ANONYMOUS_AUTHOR

    def test_real_author_is_kept(self, minimal_story):
        story = decode(EntityKind.STORY, {**minimal_story, "author": "江戸川"})

        assert story.author == "江戸川"

    def test_duplicate_likes_and_tags_collapse(self, minimal_story):
        record = {**minimal_story, "likes": ["u1", "u2", "u1"], "tags": ["密室", "推理", "密室"]}

        story = decode(EntityKind.STORY, record)

        assert story.likes == ["u1", "u2"]
        assert story.tags == ["密室", "推理"]

    def test_character_count_ignores_stored_value(self, minimal_story):
        story = decode(EntityKind.STORY, {**minimal_story, "characterCount": 9999})

        assert story.character_count == 42


class TestParseTimestamp:
    DEFAULT = datetime(2000, 1, 1, tzinfo=timezone.utc)

    def test_epoch_seconds(self):
        assert parse_timestamp(1705881600, self.DEFAULT) == datetime(2024, 1, 22, tzinfo=timezone.utc)

    def test_epoch_milliseconds(self):
        assert parse_timestamp(1705881600000, self.DEFAULT) == datetime(2024, 1, 22, tzinfo=timezone.utc)

    def test_document_store_timestamp_object(self):
        value = {"seconds": 1705881600, "nanoseconds": 0}

        assert parse_timestamp(value, self.DEFAULT) == datetime(2024, 1, 22, tzinfo=timezone.utc)

    def test_naive_datetime_is_taken_as_utc(self):
        parsed = parse_timestamp("2024-01-22T00:00:00", self.DEFAULT)

        assert parsed.tzinfo is not None
        assert parsed.utcoffset() == timedelta(0)

    def test_offset_is_preserved(self):
        parsed = parse_timestamp("2024-01-22T09:00:00+09:00", self.DEFAULT)

        assert parsed == datetime(2024, 1, 22, tzinfo=timezone.utc)

    def test_bool_is_not_a_timestamp(self):
        assert parse_timestamp(True, self.DEFAULT) == self.DEFAULT

    def test_garbage_returns_default(self):
        assert parse_timestamp([1, 2], self.DEFAULT) == self.DEFAULT


class TestDecodeRejects:
    def test_non_object_record(self):
        with pytest.raises(CodecError):
            decode(EntityKind.STORY, ["not", "a", "record"])

    @pytest.mark.parametrize("field", ["id", "title", "content"])
    def test_missing_required_story_field(self, minimal_story, field):
        record = dict(minimal_story)
        del record[field]

        with pytest.raises(CodecError, match=field):
            decode(EntityKind.STORY, record)

    def test_profile_without_uid(self):
        with pytest.raises(CodecError):
            decode(EntityKind.PROFILE, {"displayName": "花子"})

    def test_wrong_field_type(self, minimal_story):
        with pytest.raises(CodecError):
            decode(EntityKind.STORY, {**minimal_story, "likes": "u1"})

    def test_codec_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            decode(EntityKind.STORY, "nope")


class TestEncode:
    def test_wire_format_is_camel_case(self):
        story = Story(id="s1", title="t", content="abc", user_id="u1")

        record = encode(story)

        assert record["userId"] == "u1"
        assert record["characterCount"] == 3
        assert record["pendingSync"] is False
        assert isinstance(record["createdAt"], str)

    def test_decode_restores_encoded_story(self):
        created = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        story = Story(
            id="s1",
            title="t",
            content="本文",
            tags=["a"],
            likes=["u2"],
            created_at=created,
            updated_at=created,
        )

        assert decode(EntityKind.STORY, encode(story)) == story


class TestKindHelpers:
    def test_kind_of(self):
        assert kind_of(Story(id="s", title="t", content="c")) is EntityKind.STORY
        assert kind_of(Draft(id="d", title="", content="")) is EntityKind.DRAFT
        assert kind_of(UserProfile(uid="u", display_name="n")) is EntityKind.PROFILE

    def test_entity_id_uses_uid_for_profiles(self):
        assert entity_id(UserProfile(uid="u9", display_name="n")) == "u9"
