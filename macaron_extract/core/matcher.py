#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Call-site matcher: decides whether a call invokes one of the style APIs.

Matching goes through import bindings, never through the textual callee
name, so a local ``def style(...)`` or a parameter named ``style`` never
triggers an extraction.
"""

from __future__ import annotations

import ast
from typing import Iterable, List, Optional

from ..config.config_loader import DEFAULT_EXTRACTION_APIS, DEFAULT_SOURCE_MODULE
from .scope import IMPORT, ScopeInfo


def _attribute_chain(node: ast.AST) -> Optional[List[str]]:
    """``a.b.c`` -> ["a", "b", "c"]; None when the chain is not rooted at a name."""
    parts: List[str] = []
    cur = node
    while isinstance(cur, ast.Attribute):
        parts.insert(0, cur.attr)
        cur = cur.value
    if not isinstance(cur, ast.Name):
        return None
    parts.insert(0, cur.id)
    return parts


def _root_name(node: ast.AST) -> Optional[ast.Name]:
    cur = node
    while isinstance(cur, ast.Attribute):
        cur = cur.value
    return cur if isinstance(cur, ast.Name) else None


def resolve_callee(call: ast.Call, scopes: ScopeInfo) -> Optional[str]:
    """
    Fully qualified import path of ``call``'s callee.

      from a.b import c as d; d()   => a.b.c
      import a.b as m; m.c()        => a.b.c
      import a.b; a.b.c()           => a.b.c

    Returns None when the callee is not reached through an import binding
    (locals, attributes of call results, relative imports).
    """
    chain = _attribute_chain(call.func)
    root = _root_name(call.func)
    if chain is None or root is None:
        return None
    binding = scopes.resolve(root)
    if binding is None or binding.kind != IMPORT:
        return None
    alias = binding.node
    statement = binding.statement
    if isinstance(statement, ast.ImportFrom):
        if statement.level or not statement.module:
            return None
        base = f"{statement.module}.{alias.name}"
    elif alias.asname:
        base = alias.name
    else:
        base = chain[0]
    return ".".join([base, *chain[1:]])


class CallSiteMatcher:
    def __init__(self, source_module: str = DEFAULT_SOURCE_MODULE, apis: Iterable[str] = DEFAULT_EXTRACTION_APIS):
        self.source_module = source_module
        self.apis = tuple(apis)
        self._targets = {f"{source_module}.{api}" for api in self.apis}

    def matches(self, call: ast.AST, scopes: ScopeInfo) -> bool:
        if not isinstance(call, ast.Call):
            return False
        qualified = resolve_callee(call, scopes)
        return qualified is not None and qualified in self._targets

    def api_name(self, call: ast.Call, scopes: ScopeInfo) -> Optional[str]:
        qualified = resolve_callee(call, scopes)
        if qualified is None or qualified not in self._targets:
            return None
        return qualified[len(self.source_module) + 1:]
