"""Tests for the ``/note`` actions, dispatched end to end on a temp vault."""
import os

import pytest

from actions_uri.exceptions import ErrorCode
from actions_uri.models.params import PeriodicNoteType
from actions_uri.models.results import HandlerFailure, HandlerSuccess
from actions_uri.plugins import PluginRegistry
from actions_uri.server.app import ActionsUriApp
from tests.fakes import FakeTemplaterPlugin


def _ok(outcome):
    assert isinstance(outcome, HandlerSuccess), outcome
    return outcome


def _failed(outcome, code):
    assert isinstance(outcome, HandlerFailure), outcome
    assert outcome.error_code == code.value
    return outcome


class TestReadActions:
    """Tests for list, get and open."""

    def test_get(self, call, store, services):
        store.create("Foo.md", "---\ntags: x\n---\nHi")
        outcome = _ok(call("/note/get", {"file": "Foo"}))

        assert outcome.processed_filepath == "Foo.md"
        assert outcome.result.filepath == "Foo.md"
        assert outcome.result.content == "---\ntags: x\n---\nHi"
        assert outcome.result.front_matter == "tags: x"
        assert outcome.result.properties == {"tags": "x"}
        assert outcome.result.body.strip() == "Hi"
        assert services.workspace.opened == ["Foo.md"]

    def test_get_silent(self, call, store, services):
        store.create("Foo.md", "Hi")
        _ok(call("/note/get", {"file": "Foo", "silent": "true"}))
        assert services.workspace.opened == []

    def test_get_missing(self, call):
        _failed(call("/note/get", {"file": "Missing"}), ErrorCode.NOT_FOUND)

    def test_list(self, call, store):
        store.create("b.md", "")
        store.create("a/c.md", "")
        store.create("image.png", "")
        store.create("z.md", "")
        call("/note/trash", {"file": "z"})

        outcome = _ok(call("/note/list"))
        assert outcome.result.paths == ["a/c.md", "b.md"]
        assert outcome.processed_filepath is None

    def test_open(self, call, store, services):
        store.create("Foo.md", "Hi")
        outcome = _ok(call("/note/open", {"file": "Foo", "silent": "true"}))
        assert outcome.result.message == "Opened note"
        assert services.workspace.opened == ["Foo.md"]

    def test_get_active(self, call, store):
        _failed(call("/note/get-active"), ErrorCode.NOT_FOUND)

        store.create("Foo.md", "Hi")
        call("/note/open", {"file": "Foo"})
        outcome = _ok(call("/note/get-active"))
        assert outcome.result.filepath == "Foo.md"

    def test_get_active_after_delete(self, call, store):
        store.create("Foo.md", "Hi")
        call("/note/open", {"file": "Foo"})
        call("/note/delete", {"file": "Foo"})
        _failed(call("/note/get-active"), ErrorCode.NOT_FOUND)

    def test_get_first_named(self, call, store):
        store.create("Deep/Folder/Plan.md", "deep")
        store.create("Other/Plan.md", "other")

        outcome = _ok(call("/note/get-first-named", {"file": "Plan"}))
        assert outcome.result.filepath == "Other/Plan.md"

        outcome = _ok(call("/note/get-first-named", {"file": "Plan", "sort-by": "path-asc"}))
        assert outcome.result.filepath == "Deep/Folder/Plan.md"

        _failed(call("/note/get-first-named", {"file": "Nothing"}), ErrorCode.NOT_FOUND)


class TestCreate:
    """Tests for ``/note/create``."""

    def test_create_with_content(self, call, store, services):
        outcome = _ok(call("/note/create", {"file": "Foo", "content": "Hi"}))
        assert outcome.processed_filepath == "Foo.md"
        assert outcome.result.content == "Hi"
        assert store.read("Foo.md") == "Hi"
        assert services.workspace.opened == ["Foo.md"]

    def test_create_without_content(self, call, store):
        _ok(call("/note/create", {"file": "Empty", "silent": "true"}))
        assert store.read("Empty.md") == ""

    def test_existing_gets_numbered_name(self, call, store):
        store.create("Foo.md", "first")
        outcome = _ok(call("/note/create", {"file": "Foo", "content": "second"}))
        assert outcome.processed_filepath == "Foo 1.md"
        assert store.read("Foo.md") == "first"
        assert store.read("Foo 1.md") == "second"

    def test_if_exists_overwrite(self, call, store):
        store.create("Foo.md", "first")
        outcome = _ok(call("/note/create", {
            "file": "Foo", "content": "second", "if-exists": "overwrite",
        }))
        assert outcome.processed_filepath == "Foo.md"
        assert store.read("Foo.md") == "second"
        assert not store.exists("Foo 1.md")

    def test_if_exists_skip(self, call, store):
        store.create("Foo.md", "first")
        outcome = _ok(call("/note/create", {
            "file": "Foo", "content": "second", "if-exists": "skip",
        }))
        assert outcome.result.content == "first"
        assert store.read("Foo.md") == "first"

    def test_skip_on_new_note_creates_it(self, call, store):
        _ok(call("/note/create", {"file": "New", "content": "x", "if-exists": "skip"}))
        assert store.read("New.md") == "x"

    def test_create_by_uid_sets_front_matter(self, call, store):
        outcome = _ok(call("/note/create", {"uid": "abc-123", "content": "Hi"}))
        assert outcome.processed_filepath == "abc-123.md"
        assert outcome.result.properties == {"uid": "abc-123"}
        assert outcome.result.body.strip() == "Hi"

    def test_validation_errors_reported_together(self, call):
        outcome = _failed(
            call("/note/create", {"file": "a", "if-exists": "merge", "x-success": "nope"}),
            ErrorCode.VALIDATION_FAILED,
        )
        assert "if-exists" in outcome.error
        assert "x-success" in outcome.error

    def test_templates(self, call, store):
        store.create("Templates/Meeting.md", "# {{title}}\nNotes")
        outcome = _ok(call("/note/create", {
            "file": "Standup",
            "apply": "templates",
            "template-file": "Templates/Meeting",
        }))
        assert outcome.result.content == "# Standup\nNotes"

    def test_template_file_must_exist(self, call, store):
        outcome = _failed(call("/note/create", {
            "file": "Standup",
            "apply": "templates",
            "template-file": "Templates/Nope",
        }), ErrorCode.VALIDATION_FAILED)
        assert "template-file" in outcome.error
        assert not store.exists("Standup.md")

    def test_templater_missing(self, call, store):
        store.create("Templates/T.md", "<% title %>")
        _failed(call("/note/create", {
            "file": "New",
            "apply": "templater",
            "template-file": "Templates/T",
        }), ErrorCode.MISSING_PLUGIN)
        assert not store.exists("New.md")

    @pytest.fixture
    def templater_app(self, test_config, store, opener, reporter):
        plugin = FakeTemplaterPlugin()
        app = ActionsUriApp(
            config=test_config,
            store=store,
            plugins=PluginRegistry([plugin]),
            opener=opener,
            error_reporter=reporter,
        )
        return app, plugin

    def _create(self, app, params):
        route = app.registry.lookup("/actions-uri/note/create")
        return app.dispatcher.dispatch(route, params)

    def test_templater_applied(self, templater_app, store):
        app, plugin = templater_app
        store.create("Templates/T.md", "# <% title %>")
        outcome = _ok(self._create(app, {
            "file": "Daily Log",
            "apply": "templater",
            "template-file": "Templates/T",
        }))
        assert plugin.applied == [("Templates/T.md", "Daily Log.md")]
        assert outcome.result.content == "# DAILY LOG"

    def test_templater_disabled(self, templater_app, store):
        app, plugin = templater_app
        plugin.enabled = False
        store.create("Templates/T.md", "x")
        _failed(self._create(app, {
            "file": "New",
            "apply": "templater",
            "template-file": "Templates/T",
        }), ErrorCode.PLUGIN_DISABLED)
        assert plugin.applied == []

    def test_templates_missing_in_registry(self, templater_app, store):
        app, _ = templater_app
        store.create("Templates/T.md", "x")
        _failed(self._create(app, {
            "file": "New",
            "apply": "templates",
            "template-file": "Templates/T",
        }), ErrorCode.MISSING_PLUGIN)

    def test_periodic_note(self, call, store, services):
        path = services.periodic_notes.current_path(PeriodicNoteType.DAILY)
        outcome = _ok(call("/note/create", {"periodic-note": "daily"}))
        assert outcome.processed_filepath == path
        assert store.exists(path)

    def test_periodic_note_existing_is_returned(self, call, store, services):
        path = services.periodic_notes.current_path(PeriodicNoteType.MONTHLY)
        store.create(path, "kept")
        outcome = _ok(call("/note/create", {"periodic-note": "monthly"}))
        assert outcome.result.content == "kept"

    def test_periodic_note_overwrite_trashes_old(self, call, store, services, vault_dir):
        path = services.periodic_notes.current_path(PeriodicNoteType.WEEKLY)
        store.create(path, "old")
        outcome = _ok(call("/note/create", {"periodic-note": "weekly", "if-exists": "overwrite"}))
        assert outcome.result.content == ""
        assert (vault_dir / ".trash" / path).read_text(encoding="utf-8") == "old"


class TestAppendPrepend:
    """Tests for ``/note/append`` and ``/note/prepend``."""

    def test_append(self, call, store):
        store.create("Foo.md", "Line")
        outcome = _ok(call("/note/append", {"file": "Foo", "content": " more"}))
        assert outcome.result.message == "Appended content"
        assert store.read("Foo.md") == "Line more"

    def test_append_ensure_newline(self, call, store):
        store.create("Foo.md", "Line")
        _ok(call("/note/append", {"file": "Foo", "content": "more", "ensure-newline": "true"}))
        assert store.read("Foo.md") == "Line\nmore"

    def test_append_missing_note(self, call, store):
        _failed(call("/note/append", {"file": "Nope", "content": "x"}), ErrorCode.NOT_FOUND)
        assert not store.exists("Nope.md")

    def test_append_create_if_not_found(self, call, store):
        _ok(call("/note/append", {
            "file": "New", "content": "x", "create-if-not-found": "true",
        }))
        assert store.read("New.md") == "x"

    def test_append_create_by_uid(self, call, store):
        outcome = _ok(call("/note/append", {
            "uid": "u1", "content": "text", "create-if-not-found": "true",
        }))
        assert outcome.processed_filepath == "u1.md"
        assert store.get_properties("u1.md") == {"uid": "u1"}
        assert store.read("u1.md").endswith("text")

    def test_append_below_headline(self, call, store):
        store.create("Foo.md", "# A\none\n\n# B\ntwo\n")
        _ok(call("/note/append", {"file": "Foo", "content": "added", "below-headline": "A"}))
        assert store.read("Foo.md") == "# A\none\nadded\n\n# B\ntwo\n"

    def test_append_below_missing_headline(self, call, store):
        store.create("Foo.md", "# A\n")
        _failed(call("/note/append", {
            "file": "Foo", "content": "x", "below-headline": "Z",
        }), ErrorCode.NOT_FOUND)
        assert store.read("Foo.md") == "# A\n"

    def test_prepend_keeps_front_matter_first(self, call, store):
        store.create("Foo.md", "---\na: 1\n---\nBody\n")
        outcome = _ok(call("/note/prepend", {"file": "Foo", "content": "Top\n"}))
        assert outcome.result.message == "Prepended content"
        assert store.read("Foo.md") == "---\na: 1\n---\nTop\nBody\n"

    def test_prepend_ignore_front_matter(self, call, store):
        store.create("Foo.md", "---\na: 1\n---\nBody\n")
        _ok(call("/note/prepend", {
            "file": "Foo", "content": "Top", "ensure-newline": "true", "ignore-front-matter": "true",
        }))
        assert store.read("Foo.md") == "Top\n---\na: 1\n---\nBody\n"

    def test_prepend_below_headline(self, call, store):
        store.create("Foo.md", "# H\nold\n")
        _ok(call("/note/prepend", {"file": "Foo", "content": "new", "below-headline": "H"}))
        assert store.read("Foo.md") == "# H\nnew\nold\n"


class TestFileActions:
    """Tests for touch, delete, trash and rename."""

    def test_touch(self, call, store, vault_dir):
        store.create("Foo.md", "Hi")
        os.utime(vault_dir / "Foo.md", (1_000, 1_000))
        outcome = _ok(call("/note/touch", {"file": "Foo"}))
        assert outcome.result.message == "Touched note"
        assert store.get_file("Foo.md").mtime > 1_000
        assert store.read("Foo.md") == "Hi"

    def test_touch_missing(self, call):
        _failed(call("/note/touch", {"file": "Nope"}), ErrorCode.NOT_FOUND)

    def test_delete(self, call, store, vault_dir):
        store.create("Foo.md", "Hi")
        outcome = _ok(call("/note/delete", {"file": "Foo"}))
        assert outcome.result.message == "Deleted note"
        assert not store.exists("Foo.md")
        assert not (vault_dir / ".trash" / "Foo.md").exists()

    def test_trash(self, call, store, vault_dir):
        store.create("Sub/Foo.md", "Hi")
        _ok(call("/note/trash", {"file": "Sub/Foo"}))
        assert not store.exists("Sub/Foo.md")
        assert (vault_dir / ".trash" / "Sub" / "Foo.md").read_text(encoding="utf-8") == "Hi"

    def test_trash_twice_keeps_both(self, call, store, vault_dir):
        store.create("Foo.md", "one")
        call("/note/trash", {"file": "Foo"})
        store.create("Foo.md", "two")
        call("/note/trash", {"file": "Foo"})
        assert (vault_dir / ".trash" / "Foo.md").read_text(encoding="utf-8") == "one"
        assert (vault_dir / ".trash" / "Foo 1.md").read_text(encoding="utf-8") == "two"

    def test_rename(self, call, store, services):
        store.create("Foo.md", "Hi")
        outcome = _ok(call("/note/rename", {"file": "Foo", "new-filename": "Sub/Bar"}))
        assert outcome.result.message == "Renamed note"
        assert not store.exists("Foo.md")
        assert store.read("Sub/Bar.md") == "Hi"
        assert services.workspace.opened == ["Sub/Bar.md"]

    def test_rename_onto_existing(self, call, store):
        store.create("Foo.md", "a")
        store.create("Bar.md", "b")
        _failed(
            call("/note/rename", {"file": "Foo", "new-filename": "Bar"}),
            ErrorCode.NOTE_ALREADY_EXISTS,
        )
        assert store.read("Foo.md") == "a"


class TestSearchAndReplace:
    """Tests for the in-note replace actions."""

    def test_string_replace_all(self, call, store):
        store.create("Foo.md", "a b a")
        outcome = _ok(call("/note/search-string-and-replace", {
            "file": "Foo", "search": "a", "replace": "x",
        }))
        assert outcome.result.message == "Replaced text in note"
        assert store.read("Foo.md") == "x b x"

    def test_string_no_match(self, call, store):
        store.create("Foo.md", "abc")
        _failed(call("/note/search-string-and-replace", {
            "file": "Foo", "search": "zzz", "replace": "x",
        }), ErrorCode.NOT_FOUND)
        assert store.read("Foo.md") == "abc"

    def test_empty_search_rejected(self, call, store):
        store.create("Foo.md", "abc")
        _failed(call("/note/search-string-and-replace", {
            "file": "Foo", "search": "", "replace": "x",
        }), ErrorCode.VALIDATION_FAILED)

    def test_regex_global_with_groups(self, call, store):
        store.create("Foo.md", "a1 a2")
        _ok(call("/note/search-regex-and-replace", {
            "file": "Foo", "search": r"/a(\d)/g", "replace": "<$1>",
        }))
        assert store.read("Foo.md") == "<1> <2>"

    def test_regex_literal_without_g_replaces_first(self, call, store):
        store.create("Foo.md", "a1 a2")
        _ok(call("/note/search-regex-and-replace", {
            "file": "Foo", "search": r"/A(\d)/i", "replace": "$&!",
        }))
        assert store.read("Foo.md") == "a1! a2"

    def test_regex_js_named_group(self, call, store):
        store.create("Foo.md", "ann@ bob@")
        _ok(call("/note/search-regex-and-replace", {
            "file": "Foo", "search": r"/(?<w>\w+)@/g", "replace": "$<w>!",
        }))
        assert store.read("Foo.md") == "ann! bob!"

    def test_bare_pattern_replaces_all(self, call, store):
        store.create("Foo.md", "cat cot")
        _ok(call("/note/search-regex-and-replace", {
            "file": "Foo", "search": "c.t", "replace": "dog",
        }))
        assert store.read("Foo.md") == "dog dog"

    @pytest.mark.parametrize("search", ["/(/", "[", "/a/q"])
    def test_invalid_regex(self, call, store, search):
        store.create("Foo.md", "abc")
        _failed(call("/note/search-regex-and-replace", {
            "file": "Foo", "search": search, "replace": "x",
        }), ErrorCode.INVALID_REGEX)
        assert store.read("Foo.md") == "abc"
