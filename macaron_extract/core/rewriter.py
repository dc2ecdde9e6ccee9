#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Mutations of the main program: import wiring, call replacement,
declaration removal and identity-based renaming.
"""

from __future__ import annotations

import ast
from typing import Dict, List, Optional, Tuple

from .naming import UidGenerator
from .scope import Binding, ScopeInfo, analyze_scopes
from .shape import is_exported


def _split_module(module_id: str) -> Tuple[Optional[str], int]:
    level = len(module_id) - len(module_id.lstrip("."))
    return (module_id[level:] or None), level


class ImportRegistry:
    """
    ``register(local_name, module_id)`` makes ``local_name`` of the auxiliary
    module available in the main program and returns the name it is bound to
    there. Statements are collected and hoisted by ``Rewriter.finalize``.
    """

    def __init__(self, uids: UidGenerator):
        self._uids = uids
        self._cache: Dict[Tuple[str, str], str] = {}
        self.statements: List[ast.ImportFrom] = []

    def register(self, local_name: str, module_id: str) -> str:
        key = (module_id, local_name)
        if key in self._cache:
            return self._cache[key]
        imported = self._uids.generate(local_name)
        module, level = _split_module(module_id)
        self.statements.append(
            ast.ImportFrom(module=module, names=[ast.alias(name=local_name, asname=imported)], level=level)
        )
        self._cache[key] = imported
        return imported


def _import_insertion_index(body: List[ast.stmt]) -> int:
    index = 0
    if body and isinstance(body[0], ast.Expr) and isinstance(body[0].value, ast.Constant) \
            and isinstance(body[0].value.value, str):
        index = 1
    while index < len(body) and isinstance(body[index], ast.ImportFrom) and body[index].module == "__future__":
        index += 1
    return index


def _container_of(parent: ast.AST, node: ast.AST) -> Tuple[str, Optional[List[ast.AST]]]:
    for name, value in ast.iter_fields(parent):
        if value is node:
            return name, None
        if isinstance(value, list) and any(item is node for item in value):
            return name, value
    raise ValueError(f"{type(node).__name__} is not a child of {type(parent).__name__}")


def _index_in(items: List[ast.AST], node: ast.AST) -> int:
    for i, item in enumerate(items):
        if item is node:
            return i
    raise ValueError("node not found")


def reexport_statement(name: str, imported_name: str) -> ast.Assign:
    return ast.Assign(
        targets=[ast.Name(id=name, ctx=ast.Store())],
        value=ast.Name(id=imported_name, ctx=ast.Load()),
    )


class Rewriter:
    def __init__(self, tree: ast.Module, scopes: ScopeInfo, imports: ImportRegistry):
        self.tree = tree
        self.scopes = scopes
        self.imports = imports

    def rename(self, binding: Binding, new_name: str) -> None:
        self.scopes.rename(binding, new_name)

    def replace_expression(self, node: ast.AST, replacement: ast.AST) -> None:
        parent = self.scopes.parent_of(node)
        if parent is None:
            raise ValueError("cannot replace a node without a parent")
        field_name, items = _container_of(parent, node)
        if items is None:
            setattr(parent, field_name, replacement)
        else:
            items[_index_in(items, node)] = replacement
        ast.copy_location(replacement, node)
        self.scopes.set_parent(replacement, parent)

    def replace_statement(self, statement: ast.stmt, replacements: List[ast.stmt]) -> None:
        parent = self.scopes.parent_of(statement)
        if parent is None:
            raise ValueError("cannot replace a statement without a parent")
        _field, items = _container_of(parent, statement)
        if items is None:
            raise ValueError("statement is not inside a block")
        index = _index_in(items, statement)
        items[index:index + 1] = replacements
        for new in replacements:
            ast.copy_location(new, statement)
            self.scopes.set_parent(new, parent)
        if not items:
            items.append(ast.Pass())

    def remove_statement(self, statement: ast.stmt) -> None:
        self.replace_statement(statement, [])

    def prune_relocated(self, bindings: List[Binding], exports) -> List[ast.AST]:
        """
        Drop relocated module-level declarations the main program no longer
        uses. Exported names are kept; imports count as exported only when
        listed in ``__all__``. Repeats until nothing else becomes unused.
        """
        candidates = []
        for binding in bindings:
            statement = binding.statement
            if any(statement is s for s in candidates):
                continue
            if any(statement is s for s in self.tree.body):
                candidates.append(statement)

        removed: List[ast.AST] = []
        changed = True
        while changed and candidates:
            changed = False
            current = analyze_scopes(self.tree)
            for statement in list(candidates):
                declared = current.bindings_declared_by(statement)
                if not declared or any(b.referenced for b in declared):
                    continue
                if any(self._keeps_export(statement, b.name, exports) for b in declared):
                    continue
                self.tree.body.remove(statement)
                candidates.remove(statement)
                removed.append(statement)
                changed = True
        return removed

    @staticmethod
    def _keeps_export(statement: ast.AST, name: str, exports) -> bool:
        if isinstance(statement, (ast.Import, ast.ImportFrom)):
            return exports is not None and name in exports
        return is_exported(name, exports)

    def finalize(self) -> ast.Module:
        body = self.tree.body
        index = _import_insertion_index(body)
        body[index:index] = self.imports.statements
        for statement in self.imports.statements:
            self.scopes.set_parent(statement, self.tree)
        ast.fix_missing_locations(self.tree)
        return self.tree
