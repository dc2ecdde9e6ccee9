#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Materializes a ledger into the auxiliary module.
"""

from __future__ import annotations

import ast
from typing import List, Optional, Set

from .ledger import BINDING, ExtractionLedger
from .rewriter import reexport_statement
from .scope import analyze_scopes


def _defined_and_free(statement: ast.stmt):
    info = analyze_scopes(ast.Module(body=[statement], type_ignores=[]))
    defined = set(info.module.bindings)
    return defined, info.free_names()


def tree_shake(body: List[ast.stmt], roots: List[ast.stmt]) -> List[ast.stmt]:
    """
    Keep ``roots`` and every statement that defines a name they (transitively)
    use. Order is preserved.
    """
    facts = [_defined_and_free(stmt) for stmt in body]
    kept = [any(stmt is r for r in roots) for stmt in body]
    needed: Set[str] = set()
    for keep, (_defined, free) in zip(kept, facts):
        if keep:
            needed |= free

    changed = True
    while changed:
        changed = False
        for i, (defined, free) in enumerate(facts):
            if kept[i] or not (defined & needed):
                continue
            kept[i] = True
            needed |= free
            changed = True
    return [stmt for stmt, keep in zip(body, kept) if keep]


def materialize(
    ledger: ExtractionLedger,
    source_name: Optional[str] = None,
    tree_shake_unused: bool = True,
) -> ast.Module:
    """
    Build the auxiliary module in ledger order.

    Each style export is followed by ``<imported> = <local>`` so relocated
    code that refers to the main program's imported name resolves here too.
    """
    body: List[ast.stmt] = []
    roots: List[ast.stmt] = []
    for node in ledger.nodes:
        if node.type == BINDING:
            body.append(node.node)
            continue
        body.append(node.export)
        roots.append(node.export)
        if node.imported_name != node.name:
            body.append(reexport_statement(node.imported_name, node.name))

    if tree_shake_unused:
        body = tree_shake(body, roots)

    if source_name:
        doc = f"Styles extracted from {source_name}. Generated file, do not edit."
        body.insert(0, ast.Expr(value=ast.Constant(value=doc)))

    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    return module
