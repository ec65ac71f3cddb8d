"""Tests for composing stored overrides into one override."""

import json

import pytest

from overridez.core.compose import (
    Composition,
    FlagOverride,
    PartialOverride,
    compose,
    compose_store,
    identity,
    layer,
)
from overridez.errors import CompositionError
from overridez.storage.options import Flag, OptionTagStore
from overridez.storage.overrides import OverrideKind, OverrideStore

GOOD_DESCRIPTOR = json.dumps(
    {
        "url": "https://github.com/reflex-frp/reflex-dom.git",
        "rev": "3f4a1c2e9b7d",
        "sha256": "0h7ljgnxk6rxcx3bmsqkfc0d1ysqzynbnydqsg7gvkg4ls8fqm2y",
    }
)


class RecordingBuilder:
    """Builder fake that returns tuples describing each call."""

    def __init__(self):
        self.calls = []

    def call_expression(self, project_id, expression):
        self.calls.append(("expression", project_id))
        return ("expr", project_id, expression)

    def call_source(self, project_id, source):
        self.calls.append(("source", project_id))
        return ("src", project_id, source.owner, source.repo, source.rev)

    def apply_flag(self, flag, derivation):
        return ("flag", flag.value, derivation)


def _const(project_id, value):
    return PartialOverride("test", project_id, lambda self_, super_: value)


def _memory_store():
    return OverrideStore(
        {OverrideKind.EXPRESSION: {}, OverrideKind.DESCRIPTOR: {}},
        on_discover=None,
    )


class TestLayer:
    def test_later_wins_on_collision(self):
        a = _const("x", "A")
        b = _const("x", "B")
        assert compose([a, b])(None, {}) == {"x": "B"}
        assert compose([b, a])(None, {}) == {"x": "A"}

    def test_later_sees_earlier_output(self):
        first = _const("base", 1)
        second = PartialOverride(
            "test", "derived", lambda self_, super_: super_["base"] + 1
        )
        assert layer(first, second)(None, {}) == {"base": 1, "derived": 2}

    def test_super_is_passed_through(self):
        reader = PartialOverride(
            "test", "copy", lambda self_, super_: super_["original"]
        )
        assert compose([reader])(None, {"original": "o"}) == {"copy": "o"}

    def test_result_excludes_untouched_base_packages(self):
        override = compose([_const("x", 1)])
        assert override(None, {"y": 2}) == {"x": 1}
        assert override.apply(None, {"y": 2}) == {"x": 1, "y": 2}

    def test_identity(self):
        assert identity(None, {"x": 1}) == {}
        assert Composition()(None, {"x": 1}) == {}

    def test_plain_functions_fold_but_are_not_listed(self):
        def plain(self_, super_):
            return {"zlib": "plain"}

        override = compose([_const("aeson", 1), plain])
        assert override.project_ids == ["aeson"]
        assert override(None, {}) == {"aeson": 1, "zlib": "plain"}


class TestComposeStore:
    def test_empty_store_is_identity(self, tmp_path):
        composition = compose_store(
            OverrideStore.at(tmp_path / "nothing"),
            OptionTagStore.at(tmp_path / "nothing"),
        )
        assert composition.partials == ()
        assert composition.ok
        assert composition(RecordingBuilder(), {"aeson": "base"}) == {}

    def test_builds_every_recorded_project(self):
        store = _memory_store()
        store.put(OverrideKind.EXPRESSION, "beam-core", "expr")
        store.put(OverrideKind.DESCRIPTOR, "reflex-dom", GOOD_DESCRIPTOR)
        builder = RecordingBuilder()

        result = compose_store(store)(builder, {})

        assert result["beam-core"] == ("expr", "beam-core", "expr")
        assert result["reflex-dom"] == (
            "src",
            "reflex-dom",
            "reflex-frp",
            "reflex-dom",
            "3f4a1c2e9b7d",
        )

    def test_descriptor_wins_over_expression(self):
        store = _memory_store()
        store.put(OverrideKind.EXPRESSION, "reflex-dom", "expr")
        store.put(OverrideKind.DESCRIPTOR, "reflex-dom", GOOD_DESCRIPTOR)
        result = compose_store(store)(RecordingBuilder(), {})
        assert result["reflex-dom"][0] == "src"

    def test_scan_order_is_kind_then_project(self):
        store = _memory_store()
        store.put(OverrideKind.DESCRIPTOR, "a-desc", GOOD_DESCRIPTOR)
        store.put(OverrideKind.EXPRESSION, "zlib", "z")
        store.put(OverrideKind.EXPRESSION, "aeson", "a")
        composition = compose_store(store)
        assert composition.project_ids == ["aeson", "zlib", "a-desc"]

    def test_discovery_order_via_observer(self, tmp_path):
        seen = []
        store = OverrideStore.at(
            tmp_path, on_discover=lambda kind, pid: seen.append((kind.value, pid))
        )
        store.put(OverrideKind.DESCRIPTOR, "b", GOOD_DESCRIPTOR)
        store.put(OverrideKind.EXPRESSION, "c", "expr")
        store.put(OverrideKind.EXPRESSION, "a", "expr")
        compose_store(store)
        assert seen == [("expression", "a"), ("expression", "c"), ("descriptor", "b")]

    def test_malformed_record_is_isolated(self):
        store = _memory_store()
        store.put(OverrideKind.EXPRESSION, "aeson", "expr")
        store.put(OverrideKind.EXPRESSION, "empty", "   \n")
        store.put(
            OverrideKind.DESCRIPTOR,
            "broken",
            json.dumps({"url": "https://github.com/o/r", "rev": "1", "sha256": "2"}),
        )
        store.put(OverrideKind.DESCRIPTOR, "reflex-dom", GOOD_DESCRIPTOR)

        composition = compose_store(store)

        assert not composition.ok
        assert [(f.kind, f.project_id) for f in composition.failures] == [
            ("expression", "empty"),
            ("descriptor", "broken"),
        ]
        result = composition(RecordingBuilder(), {})
        assert set(result) == {"aeson", "reflex-dom"}

    def test_undecodable_record_file_is_isolated(self, tmp_path):
        store = OverrideStore.at(tmp_path, on_discover=None)
        store.put(OverrideKind.EXPRESSION, "aeson", "expr")
        (tmp_path / "expr-overrides" / "bad.nix").write_bytes(b"\xff\xfe{ }")

        composition = compose_store(store)

        assert [(f.kind, f.project_id) for f in composition.failures] == [
            ("expression", "bad")
        ]
        assert "UTF-8" in composition.failures[0].reason
        assert set(composition(RecordingBuilder(), {})) == {"aeson"}

    def test_unusable_file_name_is_skipped(self, tmp_path):
        store = OverrideStore.at(tmp_path, on_discover=None)
        store.put(OverrideKind.EXPRESSION, "aeson", "expr")
        (tmp_path / "expr-overrides" / "we\\ird.nix").write_text("expr")

        composition = compose_store(store)

        assert composition.ok
        assert composition.project_ids == ["aeson"]

    def test_raise_for_failures_lists_every_project(self):
        store = _memory_store()
        store.put(OverrideKind.DESCRIPTOR, "one", "{}")
        store.put(OverrideKind.DESCRIPTOR, "two", "not json")
        composition = compose_store(store)
        with pytest.raises(CompositionError) as excinfo:
            composition.raise_for_failures()
        message = str(excinfo.value)
        assert "one" in message and "two" in message
        assert len(excinfo.value.failures) == 2


class TestOptionLayer:
    def test_flags_wrap_overridden_derivation(self):
        store = _memory_store()
        store.put(OverrideKind.EXPRESSION, "aeson", "expr")
        options = OptionTagStore()
        options.add_flags("aeson", ["skip-docs", "skip-tests"])

        result = compose_store(store, options)(RecordingBuilder(), {})

        assert result["aeson"] == (
            "flag",
            "skip-docs",
            ("flag", "skip-tests", ("expr", "aeson", "expr")),
        )

    def test_flags_apply_to_base_packages(self):
        options = OptionTagStore()
        options.add_flags("lens", ["relax-dependency-bounds"])
        result = compose_store(_memory_store(), options)(
            RecordingBuilder(), {"lens": "base-lens"}
        )
        assert result == {"lens": ("flag", "relax-dependency-bounds", "base-lens")}

    def test_flags_for_unknown_package_are_skipped(self, caplog):
        options = OptionTagStore()
        options.add_flags("ghost", ["skip-tests"])
        with caplog.at_level("WARNING", logger="overridez"):
            result = compose_store(_memory_store(), options)(RecordingBuilder(), {})
        assert result == {}
        assert "ghost" in caplog.text

    def test_options_can_be_disabled(self):
        store = _memory_store()
        store.put(OverrideKind.EXPRESSION, "aeson", "expr")
        options = OptionTagStore()
        options.add_flags("aeson", ["skip-tests"])
        result = compose_store(store, options, include_options=False)(
            RecordingBuilder(), {}
        )
        assert result["aeson"] == ("expr", "aeson", "expr")

    def test_flag_override_order_follows_declaration(self):
        partial = FlagOverride("x", (Flag.RELAX_DEPENDENCY_BOUNDS, Flag.SKIP_TESTS))
        result = partial(RecordingBuilder(), {"x": "d"})
        assert result["x"] == (
            "flag",
            "skip-tests",
            ("flag", "relax-dependency-bounds", "d"),
        )
