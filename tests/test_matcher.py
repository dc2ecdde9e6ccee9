"""Tests for the call-site matcher."""

import ast

from macaron_extract.core.matcher import CallSiteMatcher, resolve_callee
from macaron_extract.core.naming import UidGenerator
from macaron_extract.core.scope import analyze_scopes, parse_source


def _first_call(source: str):
    tree = parse_source(source)
    info = analyze_scopes(tree)
    call = next(n for n in ast.walk(tree) if isinstance(n, ast.Call))
    return call, info


class TestResolveCallee:
    """Tests for import-based callee resolution."""

    def test_from_import(self) -> None:
        call, info = _first_call("from macaron import style\nstyle({})\n")
        assert resolve_callee(call, info) == "macaron.style"

    def test_from_import_alias(self) -> None:
        call, info = _first_call("from macaron import style as s\ns({})\n")
        assert resolve_callee(call, info) == "macaron.style"

    def test_module_attribute(self) -> None:
        call, info = _first_call("import macaron\nmacaron.style({})\n")
        assert resolve_callee(call, info) == "macaron.style"

    def test_module_alias_attribute(self) -> None:
        call, info = _first_call("import macaron as m\nm.recipe({})\n")
        assert resolve_callee(call, info) == "macaron.recipe"

    def test_local_function_is_not_resolved(self) -> None:
        call, info = _first_call("def style(x):\n    return x\nstyle({})\n")
        assert resolve_callee(call, info) is None

    def test_relative_import_is_not_resolved(self) -> None:
        call, info = _first_call("from .macaron import style\nstyle({})\n")
        assert resolve_callee(call, info) is None

    def test_call_on_call_result_is_not_resolved(self) -> None:
        call, info = _first_call("from macaron import style\nstyle({})()\n")
        assert resolve_callee(call, info) is None


class TestCallSiteMatcher:
    """Tests for CallSiteMatcher."""

    def test_matches_default_api(self) -> None:
        call, info = _first_call("from macaron import style\nbutton = style({})\n")
        matcher = CallSiteMatcher()
        assert matcher.matches(call, info)
        assert matcher.api_name(call, info) == "style"

    def test_unknown_api_is_ignored(self) -> None:
        call, info = _first_call("from macaron import css\nbutton = css({})\n")
        matcher = CallSiteMatcher()
        assert not matcher.matches(call, info)
        assert matcher.api_name(call, info) is None

    def test_parameter_shadowing_import(self) -> None:
        source = (
            "from macaron import style\n"
            "def render(style):\n"
            "    return style({})\n"
        )
        call, info = _first_call(source)
        assert not CallSiteMatcher().matches(call, info)

    def test_custom_source_module(self) -> None:
        call, info = _first_call("from design.tokens import theme\nt = theme()\n")
        matcher = CallSiteMatcher("design.tokens", ["theme"])
        assert matcher.matches(call, info)
        assert matcher.api_name(call, info) == "theme"
        assert not CallSiteMatcher().matches(call, info)

    def test_non_call_never_matches(self) -> None:
        tree = parse_source("x = 1\n")
        info = analyze_scopes(tree)
        assert not CallSiteMatcher().matches(tree.body[0], info)


class TestUidGenerator:
    """Tests for program-unique identifiers."""

    def test_sequence(self) -> None:
        uids = UidGenerator()
        assert uids.generate("button") == "_button"
        assert uids.generate("button") == "_button2"
        assert uids.generate("_button") == "_button3"

    def test_avoids_used_names(self) -> None:
        uids = UidGenerator({"_color", "_color2"})
        assert uids.generate("color") == "_color3"

    def test_hint_is_sanitized(self) -> None:
        uids = UidGenerator()
        assert uids.generate("my-style") == "_my_style"
        assert uids.generate("color2") == "_color"
        assert uids.generate("") == "_temp"
        assert uids.is_used("_my_style")

    def test_reserve(self) -> None:
        uids = UidGenerator()
        uids.reserve("_x")
        assert uids.generate("x") == "_x2"
