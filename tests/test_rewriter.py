"""Tests for program rewriting and auxiliary module emission."""

import ast

from macaron_extract.core.emitter import materialize, tree_shake
from macaron_extract.core.ledger import BindingNode, ExtractionLedger, StyleNode
from macaron_extract.core.naming import UidGenerator
from macaron_extract.core.rewriter import ImportRegistry, Rewriter, reexport_statement
from macaron_extract.core.scope import analyze_scopes, parse_source


def _rewriter(source: str):
    tree = parse_source(source)
    info = analyze_scopes(tree)
    imports = ImportRegistry(UidGenerator(info.used_names()))
    return tree, info, Rewriter(tree, info, imports)


class TestImportRegistry:
    """Tests for ImportRegistry."""

    def test_register_is_cached(self) -> None:
        registry = ImportRegistry(UidGenerator({"_button"}))
        first = registry.register("_button", "button_extracted_1")
        again = registry.register("_button", "button_extracted_1")
        assert first == again == "_button2"
        assert len(registry.statements) == 1
        assert ast.unparse(registry.statements[0]) == "from button_extracted_1 import _button as _button2"

    def test_relative_module(self) -> None:
        registry = ImportRegistry(UidGenerator())
        registry.register("_a", ".theme_extracted_1")
        (statement,) = registry.statements
        assert statement.level == 1
        assert statement.module == "theme_extracted_1"


class TestRewriter:
    """Tests for Rewriter."""

    def test_replace_expression(self) -> None:
        tree, info, rewriter = _rewriter("x = f(g(1))\n")
        inner = tree.body[0].value.args[0]
        rewriter.replace_expression(inner, ast.Name(id="_g", ctx=ast.Load()))
        assert ast.unparse(tree) == "x = f(_g)"

    def test_replace_statement_keeps_block_valid(self) -> None:
        tree, info, rewriter = _rewriter("def f():\n    x = 1\n")
        rewriter.remove_statement(tree.body[0].body[0])
        assert isinstance(tree.body[0].body[0], ast.Pass)

    def test_replace_statement_with_reexport(self) -> None:
        tree, info, rewriter = _rewriter("button = make()\nother = 1\n")
        rewriter.replace_statement(tree.body[0], [reexport_statement("button", "_button2")])
        assert ast.unparse(tree) == "button = _button2\nother = 1"

    def test_finalize_hoists_imports_after_docstring(self) -> None:
        tree, info, rewriter = _rewriter('"""Doc."""\nfrom __future__ import annotations\nx = 1\n')
        rewriter.imports.register("_a", "mod")
        program = rewriter.finalize()
        assert isinstance(program.body[2], ast.ImportFrom)
        assert program.body[2].module == "mod"
        assert program.body[1].module == "__future__"

    def test_prune_relocated(self) -> None:
        tree, info, rewriter = _rewriter(
            "from macaron import style\n"
            "_base = 1\n"
            "_derived = _base + 1\n"
            "public = 2\n"
            "button = _button2\n"
        )
        bindings = [info.module.bindings[n] for n in ("style", "_base", "_derived", "public")]
        removed = rewriter.prune_relocated(bindings, None)
        assert len(removed) == 3
        assert ast.unparse(tree) == "public = 2\nbutton = _button2"

    def test_prune_keeps_referenced_and_listed(self) -> None:
        tree, info, rewriter = _rewriter(
            "__all__ = ['style']\n"
            "from macaron import style\n"
            "_color = 'red'\n"
            "print(_color)\n"
        )
        bindings = [info.module.bindings[n] for n in ("style", "_color")]
        assert rewriter.prune_relocated(bindings, {"style"}) == []


class TestEmitter:
    """Tests for tree shaking and materialization."""

    def test_tree_shake(self) -> None:
        body = parse_source(
            "import os\n"
            "a = 1\n"
            "b = a\n"
            "c = 3\n"
            "root = b\n"
        ).body
        kept = tree_shake(body, [body[4]])
        assert [ast.unparse(s) for s in kept] == ["a = 1", "b = a", "root = b"]

    def test_materialize(self) -> None:
        source = parse_source("from macaron import style\ncolor = 'red'\n")
        tree = parse_source("_button = style({'color': color})\n")
        info = analyze_scopes(source)
        ledger = ExtractionLedger("mod")
        ledger.emit(BindingNode(node=source.body[0], binding=info.module.bindings["style"]))
        ledger.emit(BindingNode(node=source.body[1], binding=info.module.bindings["color"]))
        ledger.emit(StyleNode(export=tree.body[0], name="_button", imported_name="_button2"))

        module = materialize(ledger, "button.py")
        assert ast.get_docstring(module) == "Styles extracted from button.py. Generated file, do not edit."
        assert [ast.unparse(s) for s in module.body[1:]] == [
            "from macaron import style",
            "color = 'red'",
            "_button = style({'color': color})",
        ]

    def test_materialize_without_tree_shake_keeps_alias(self) -> None:
        tree = parse_source("_button = 1\n")
        ledger = ExtractionLedger("mod")
        ledger.emit(StyleNode(export=tree.body[0], name="_button", imported_name="_button2"))
        module = materialize(ledger, tree_shake_unused=False)
        assert ast.unparse(module) == "_button = 1\n_button2 = _button"
