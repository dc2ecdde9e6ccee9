"""Tests for lexical scope analysis."""

import ast

import pytest

from macaron_extract.core.scope import (
    ASSIGN,
    CLASS,
    COMPREHENSION,
    FUNCTION,
    IMPORT,
    MODULE,
    PARAM,
    Span,
    analyze_scopes,
    parse_source,
    span_of,
)


def _analyze(source: str):
    tree = parse_source(source)
    return tree, analyze_scopes(tree)


def _loads(tree, name):
    return [
        n for n in ast.walk(tree)
        if isinstance(n, ast.Name) and n.id == name and isinstance(n.ctx, ast.Load)
    ]


class TestSpan:
    """Tests for source spans."""

    def test_span_of_statement(self) -> None:
        tree = parse_source("x = 1\ny = (\n  2)\n")
        span = span_of(tree.body[1])
        assert span == Span(2, 0, 3, 4)
        assert span.start == (2, 0)
        assert span.end == (3, 4)

    def test_synthetic_node_has_no_span(self) -> None:
        assert span_of(ast.Name(id="x", ctx=ast.Load())) is None
        assert span_of(None) is None


class TestBindings:
    """Tests for binding discovery."""

    def test_module_bindings(self) -> None:
        tree, info = _analyze(
            "import os\n"
            "from macaron import style as s\n"
            "color = 'red'\n"
            "def f(a, *rest, key=None, **kw):\n"
            "    return a\n"
        )
        module = info.module
        assert module.kind == MODULE
        assert set(module.bindings) == {"os", "s", "color", "f"}
        assert module.bindings["s"].kind == IMPORT
        assert module.bindings["color"].kind == ASSIGN
        func_scope = module.children[0]
        assert func_scope.kind == FUNCTION
        assert set(func_scope.bindings) == {"a", "rest", "key", "kw"}
        assert all(b.kind == PARAM for b in func_scope.bindings.values())

    def test_binding_statement_is_root_declaration(self) -> None:
        tree, info = _analyze("a, (b, c) = 1, (2, 3)\n")
        binding = info.module.bindings["c"]
        assert binding.statement is tree.body[0]
        assert info.bindings_declared_by(tree.body[0]) == [
            info.module.bindings["a"], info.module.bindings["b"], binding,
        ]

    def test_reassignment_recorded(self) -> None:
        tree, info = _analyze("x = 1\nx = 2\n")
        binding = info.module.bindings["x"]
        assert binding.statement is tree.body[0]
        assert len(binding.reassignments) == 1

    def test_references(self) -> None:
        tree, info = _analyze("x = 1\ny = x + x\nz = 3\n")
        assert len(info.module.bindings["x"].references) == 2
        assert not info.module.bindings["z"].referenced


class TestResolution:
    """Tests for name resolution."""

    def test_class_scope_invisible_to_methods(self) -> None:
        tree, info = _analyze(
            "x = 1\n"
            "class C:\n"
            "    x = 2\n"
            "    y = x\n"
            "    def m(self):\n"
            "        return x\n"
        )
        class_scope = info.module.children[0]
        assert class_scope.kind == CLASS
        in_class, in_method = _loads(tree, "x")
        assert info.resolve(in_class) is class_scope.bindings["x"]
        assert info.resolve(in_method) is info.module.bindings["x"]

    def test_comprehension_scope(self) -> None:
        tree, info = _analyze("items = [1]\nout = [y * 2 for y in items]\n")
        comp = info.module.children[0]
        assert comp.kind == COMPREHENSION
        (y_load,) = _loads(tree, "y")
        assert info.resolve(y_load) is comp.bindings["y"]
        assert "y" not in info.module.bindings

    def test_walrus_in_comprehension_binds_outside(self) -> None:
        tree, info = _analyze("vals = [last := v for v in range(3)]\n")
        assert "last" in info.module.bindings
        assert "v" not in info.module.bindings

    def test_global_declaration(self) -> None:
        tree, info = _analyze(
            "def f():\n"
            "    global counter\n"
            "    counter = 1\n"
            "f()\n"
            "print(counter)\n"
        )
        binding = info.module.bindings["counter"]
        assert binding.referenced
        assert len(binding.declarations) == 1

    def test_nonlocal_declaration(self) -> None:
        tree, info = _analyze(
            "def outer():\n"
            "    n = 0\n"
            "    def inner():\n"
            "        nonlocal n\n"
            "        n = 1\n"
            "    return n\n"
        )
        outer = info.module.children[0]
        assert "n" in outer.bindings
        assert len(outer.bindings["n"].reassignments) == 1
        inner = outer.children[0]
        assert "n" not in inner.bindings

    def test_unresolved_names(self) -> None:
        tree, info = _analyze("print(undefined_name)\n")
        assert {n.id for n in info.unresolved} == {"print", "undefined_name"}
        assert info.free_names() == {"print", "undefined_name"}

    def test_visible_bindings_innermost_first(self) -> None:
        tree, info = _analyze(
            "color = 1\n"
            "def f(color):\n"
            "    return color\n"
        )
        func_scope = info.module.children[0]
        visible = info.visible_bindings(func_scope)
        names = [b.name for b in visible]
        assert names.count("color") == 1
        assert visible[0] is func_scope.bindings["color"]


class TestRename:
    """Tests for identity-based renaming."""

    def test_rename_leaves_shadowing_binding_alone(self) -> None:
        tree, info = _analyze(
            "button = 1\n"
            "use = button\n"
            "def f(button):\n"
            "    return button\n"
        )
        info.rename(info.module.bindings["button"], "_button")
        out = ast.unparse(tree)
        assert "_button = 1" in out
        assert "use = _button" in out
        assert "def f(button):" in out
        assert "return button" in out
        assert "_button" in info.module.bindings
        assert "button" not in info.module.bindings

    def test_rename_import_alias(self) -> None:
        tree, info = _analyze("from macaron import style\nstyle({})\n")
        info.rename(info.module.bindings["style"], "_style")
        assert ast.unparse(tree) == "from macaron import style as _style\n_style({})"

    def test_rename_global_statement(self) -> None:
        tree, info = _analyze(
            "def f():\n"
            "    global counter\n"
            "    counter = 1\n"
        )
        info.rename(info.module.bindings["counter"], "_counter")
        out = ast.unparse(tree)
        assert "global _counter" in out
        assert "_counter = 1" in out

    def test_rename_dotted_import_rejected(self) -> None:
        tree, info = _analyze("import os.path\n")
        with pytest.raises(ValueError):
            info.rename(info.module.bindings["os"], "_os")

    def test_used_names_include_new_name(self) -> None:
        tree, info = _analyze("x = 1\n")
        info.rename(info.module.bindings["x"], "_x")
        assert "_x" in info.used_names()
