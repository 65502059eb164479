"""Tests for parameter models and field parsers."""
import pytest
from pydantic import ValidationError

from actions_uri.models.params import (
    IncomingParams,
    NoteTargetingParams,
    PeriodicNoteType,
    TargetingKey,
    is_absolute_url,
    parse_bool_token,
)
from actions_uri.routes.note import (
    CreateContentParams,
    CreateParams,
    CreatePeriodicNoteParams,
    CreateTemplaterParams,
    CreateTemplatesParams,
    OpenParams,
)
from actions_uri.routes.note_properties import RemoveKeysParams, SetParams


class TestBooleanTokens:
    """Tests for boolean-like transport tokens."""

    @pytest.mark.parametrize("token", ["true", "TRUE", "1", "yes", "on", " True "])
    def test_truthy(self, token):
        assert parse_bool_token(token) is True

    @pytest.mark.parametrize("token", ["false", "0", "no", "off", "", None])
    def test_falsy(self, token):
        assert parse_bool_token(token) is False

    def test_invalid_token(self):
        with pytest.raises(ValueError):
            parse_bool_token("maybe")


class TestIncomingParams:
    """Tests for the base parameter model."""

    def test_minimal(self):
        params = IncomingParams.model_validate({"action": "/actions-uri/note/list"})
        assert params.call_id is None
        assert params.debug_mode is False
        assert params.x_success is None

    def test_hyphenated_fields_and_extras(self):
        params = IncomingParams.model_validate({
            "action": "/x",
            "call-id": "42",
            "debug-mode": "yes",
            "x-success": "another-app://success",
            "foo": "bar",
        })
        assert params.call_id == "42"
        assert params.debug_mode is True
        assert params.x_success == "another-app://success"
        assert params.model_extra == {"foo": "bar"}

    def test_empty_callback_is_absent(self):
        params = IncomingParams.model_validate({"action": "/x", "x-error": ""})
        assert params.x_error is None

    def test_collects_every_invalid_field(self):
        with pytest.raises(ValidationError) as exc_info:
            IncomingParams.model_validate({
                "debug-mode": "maybe",
                "x-success": "not a url",
            })
        fields = {e["loc"][0] for e in exc_info.value.errors()}
        assert fields == {"action", "debug-mode", "x-success"}

    def test_absolute_url_check(self):
        assert is_absolute_url("another-app://")
        assert is_absolute_url("https://example.com/cb?x=1")
        assert not is_absolute_url("/relative/path")
        assert not is_absolute_url("app://has space")
        assert not is_absolute_url(None)


class TestNoteTargetingParams:
    """Tests for the addressing fields."""

    def test_file_is_sanitized(self):
        params = NoteTargetingParams.model_validate({"action": "/x", "file": "/Folder//Note?"})
        assert params.file == "Folder/Note.md"

    def test_targeting_fields_skip_empty(self):
        params = NoteTargetingParams.model_validate({
            "action": "/x", "file": "", "uid": "abc",
        })
        assert params.targeting_fields() == {TargetingKey.UID: "abc"}

    def test_periodic_note_enum(self):
        params = NoteTargetingParams.model_validate({"action": "/x", "periodic-note": "weekly"})
        assert params.periodic_note is PeriodicNoteType.WEEKLY

    def test_invalid_periodic_note(self):
        with pytest.raises(ValidationError):
            NoteTargetingParams.model_validate({"action": "/x", "periodic-note": "hourly"})

    def test_open_silent_is_forced_false(self):
        params = OpenParams.model_validate({"action": "/x", "file": "a", "silent": "true"})
        assert params.silent is False


class TestCreateVariants:
    """Tests for picking the create parameter variant."""

    @pytest.mark.parametrize("raw,variant", [
        ({"file": "a"}, CreateContentParams),
        ({"file": "a", "apply": "content"}, CreateContentParams),
        ({"file": "a", "apply": ""}, CreateContentParams),
        ({"file": "a", "apply": "templater"}, CreateTemplaterParams),
        ({"file": "a", "apply": "templates"}, CreateTemplatesParams),
        ({"periodic-note": "daily"}, CreatePeriodicNoteParams),
    ])
    def test_select_variant(self, raw, variant):
        assert CreateParams.select_variant(raw) is variant

    def test_content_default_apply(self):
        params = CreateContentParams.model_validate({"action": "/x", "file": "a"})
        assert params.apply == "content"
        assert params.content is None

    def test_empty_apply_rejected(self):
        with pytest.raises(ValidationError):
            CreateContentParams.model_validate({"action": "/x", "file": "a", "apply": ""})

    def test_template_file_required(self):
        with pytest.raises(ValidationError) as exc_info:
            CreateTemplaterParams.model_validate({"action": "/x", "file": "a", "apply": "templater"})
        assert [e["loc"][0] for e in exc_info.value.errors()] == ["template-file"]

    def test_invalid_if_exists(self):
        with pytest.raises(ValidationError):
            CreateContentParams.model_validate({"action": "/x", "file": "a", "if-exists": "merge"})


class TestJsonFields:
    """Tests for JSON-encoded parameters."""

    def test_properties_object(self):
        params = SetParams.model_validate({
            "action": "/x",
            "file": "a",
            "properties": '{"tags": "x", "count": 3, "done": false, "gone": null}',
        })
        assert params.properties == {"tags": "x", "count": 3, "done": False, "gone": None}

    @pytest.mark.parametrize("value", ['["a"]', "not json", '{"nested": {"a": 1}}', '{"list": [1]}'])
    def test_properties_rejected(self, value):
        with pytest.raises(ValidationError):
            SetParams.model_validate({"action": "/x", "file": "a", "properties": value})

    def test_string_array(self):
        params = RemoveKeysParams.model_validate({"action": "/x", "file": "a", "keys": '["a", "b"]'})
        assert params.keys == ["a", "b"]

    @pytest.mark.parametrize("value", ['"a"', "[1, 2]", "nope"])
    def test_string_array_rejected(self, value):
        with pytest.raises(ValidationError):
            RemoveKeysParams.model_validate({"action": "/x", "file": "a", "keys": value})
