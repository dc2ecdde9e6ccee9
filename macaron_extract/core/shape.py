#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Declaration shape classification for a matched style call.

    button = style(...)              -> single
    primary, secondary = variants()  -> destructure (one target per plain name)
    global_style("body", {...})      -> bare
    obj.attr = style(...)            -> DeclarationShapeError
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import List, Optional, Set

from .scope import CLASS, MODULE, ScopeInfo

BARE = "bare"
SINGLE = "single"
DESTRUCTURE = "destructure"


class DeclarationShapeError(ValueError):
    """The call's binding target is neither a name nor a pattern of names."""


@dataclass
class ShapeTarget:
    name: ast.Name
    index: Optional[int] = None   # position inside the destructuring pattern
    exported: bool = False


@dataclass
class DeclarationShape:
    kind: str
    call: ast.Call
    statement: Optional[ast.stmt] = None
    targets: List[ShapeTarget] = field(default_factory=list)

    @property
    def is_declaration(self) -> bool:
        return self.kind != BARE


def _literal_names(node: ast.AST) -> Optional[List[str]]:
    if isinstance(node, (ast.List, ast.Tuple)):
        names = []
        for elt in node.elts:
            if not (isinstance(elt, ast.Constant) and isinstance(elt.value, str)):
                return None
            names.append(elt.value)
        return names
    return None


def module_exports(tree: ast.Module) -> Optional[Set[str]]:
    """
    Names listed in a literal module-level ``__all__``.

    Returns None when the module does not define ``__all__`` (or builds it
    dynamically); callers then fall back to the leading-underscore rule.
    """
    exports: Optional[Set[str]] = None
    for stmt in tree.body:
        if isinstance(stmt, ast.Assign):
            if any(isinstance(t, ast.Name) and t.id == "__all__" for t in stmt.targets):
                names = _literal_names(stmt.value)
                if names is None:
                    return None
                exports = set(names)
        elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name):
            if stmt.target.id == "__all__" and stmt.value is not None:
                names = _literal_names(stmt.value)
                if names is None:
                    return None
                exports = set(names)
        elif isinstance(stmt, ast.AugAssign) and isinstance(stmt.target, ast.Name):
            if stmt.target.id == "__all__" and exports is not None:
                names = _literal_names(stmt.value)
                if names is None:
                    return None
                exports.update(names)
    return exports


def is_exported(name: str, exports: Optional[Set[str]]) -> bool:
    if exports is not None:
        return name in exports
    return not name.startswith("_")


def _reexported(statement: ast.AST, name: str, scopes: ScopeInfo, exports: Optional[Set[str]]) -> bool:
    scope = scopes.scope_of(statement)
    if scope.kind == MODULE:
        return is_exported(name, exports)
    # class attributes are always part of the class surface
    return scope.kind == CLASS


def classify_declaration(
    call: ast.Call,
    scopes: ScopeInfo,
    exports: Optional[Set[str]] = None,
) -> DeclarationShape:
    parent = scopes.parent_of(call)

    if isinstance(parent, ast.Assign) and parent.value is call:
        if len(parent.targets) != 1:
            raise DeclarationShapeError(
                f"line {getattr(parent, 'lineno', '?')}: chained assignment of a style call cannot be extracted"
            )
        target = parent.targets[0]
    elif isinstance(parent, ast.AnnAssign) and parent.value is call:
        target = parent.target
    else:
        return DeclarationShape(BARE, call)

    if isinstance(target, ast.Name):
        return DeclarationShape(
            SINGLE,
            call,
            statement=parent,
            targets=[ShapeTarget(target, None, _reexported(parent, target.id, scopes, exports))],
        )

    if isinstance(target, (ast.Tuple, ast.List)):
        targets = [
            ShapeTarget(elt, index, _reexported(parent, elt.id, scopes, exports))
            for index, elt in enumerate(target.elts)
            if isinstance(elt, ast.Name)
        ]
        if not targets:
            raise DeclarationShapeError(
                f"line {getattr(parent, 'lineno', '?')}: destructuring of a style call binds no plain names"
            )
        return DeclarationShape(DESTRUCTURE, call, statement=parent, targets=targets)

    raise DeclarationShapeError(
        f"line {getattr(parent, 'lineno', '?')}: declaration should be a tuple/list pattern "
        f"or a name, got {type(target).__name__}"
    )
