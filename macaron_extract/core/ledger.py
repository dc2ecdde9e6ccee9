#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Extraction ledger: the ordered record of everything that goes into the
auxiliary module of one source program.

One ledger per program. It is created before traversal, filled while the
extraction sites are processed and consumed once when the auxiliary module
is materialized.
"""

from __future__ import annotations

import ast
import hashlib
import os
import re
from dataclasses import dataclass
from typing import List, Optional, Set, Union

from .scope import Binding

BINDING = "binding"
STYLE = "style"


@dataclass
class BindingNode:
    """A relocated dependency: a clone of its root declaration."""
    node: ast.AST
    binding: Binding
    type: str = BINDING


@dataclass
class StyleNode:
    """The exported declaration synthesized for one extracted call (or pattern element)."""
    export: ast.stmt
    name: str                      # generated local name inside the auxiliary module
    imported_name: str             # name the main program imports it under
    should_reexport: bool = False
    exported_as: Optional[str] = None
    type: str = STYLE


ExtractionNode = Union[BindingNode, StyleNode]


_MODULE_CHARS_RE = re.compile(r"[^0-9A-Za-z_]+")


def virtual_module_id(filename: str, suffix: str = "extracted", package: Optional[str] = None) -> str:
    """
    Stable auxiliary module name for ``filename``.

      ("app/button.py")                  => button_extracted_<sha1[:8]>
      ("app/button.py", package="app")   => app.button_extracted_<sha1[:8]>
      ("app/button.py", package=".")     => .button_extracted_<sha1[:8]>
    """
    normalized = filename.replace("\\", "/")
    stem = os.path.splitext(os.path.basename(normalized))[0]
    stem = _MODULE_CHARS_RE.sub("_", stem).strip("_") or "module"
    if stem[0].isdigit():
        stem = f"m{stem}"
    digest = hashlib.sha1(normalized.encode("utf-8")).hexdigest()[:8]
    name = f"{stem}_{suffix}_{digest}"
    if not package:
        return name
    if package.endswith("."):
        return f"{package}{name}"
    return f"{package}.{name}"


class ExtractionLedger:
    """
    Ordered extraction nodes plus the set of bindings already relocated.

    ``emit`` appends unconditionally; deduplication is the caller's job
    (check ``has_emitted`` first).
    """

    def __init__(self, module_id: str):
        self.module_id = module_id
        self.nodes: List[ExtractionNode] = []
        self._emitted: Set[Binding] = set()
        self._statements: Set[ast.AST] = set()

    def __len__(self) -> int:
        return len(self.nodes)

    def emit(self, node: ExtractionNode) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def insert(self, index: int, node: ExtractionNode) -> None:
        self.nodes.insert(index, node)

    def has_emitted(self, binding: Binding) -> bool:
        return binding in self._emitted

    def mark_emitted(self, binding: Binding) -> None:
        self._emitted.add(binding)

    def has_emitted_statement(self, statement: ast.AST) -> bool:
        return statement in self._statements

    def mark_statement(self, statement: ast.AST) -> None:
        self._statements.add(statement)

    @property
    def binding_nodes(self) -> List[BindingNode]:
        return [n for n in self.nodes if n.type == BINDING]

    @property
    def style_nodes(self) -> List[StyleNode]:
        return [n for n in self.nodes if n.type == STYLE]

    def index_of(self, node: ExtractionNode) -> int:
        for i, candidate in enumerate(self.nodes):
            if candidate is node:
                return i
        raise ValueError("node is not in the ledger")
