#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Dependency closure for one extraction site.

Every binding visible at the call is considered. Referenced ones are
relocated into the ledger (once per program), and the site's style node is
placed after the last predecessor and after every binding it relocated.

Source positions stand in for evaluation order: a binding whose root
declaration ends before the call starts, or that encloses the call, is a
predecessor. Control flow (loops, branches, re-entry) is not modelled.
"""

from __future__ import annotations

import ast
import copy
from dataclasses import dataclass, field
from typing import List, Optional

from .ledger import BindingNode, ExtractionLedger, StyleNode
from .scope import Binding, Scope, ScopeInfo, Span, span_of

PREDECESSOR = "predecessor"
SAME_OR_LATER = "same_or_later"
UNRESOLVED = "unresolved"
EMITTED = "emitted"

PENDING = "pending"
APPENDED = "appended"


def classify_position(binding_span: Optional[Span], call_span: Optional[Span]) -> str:
    if binding_span is None or call_span is None:
        return UNRESOLVED
    b, c = binding_span, call_span
    if (
        b.end <= c.start                                       # ends before the call starts
        or (b.start < c.start and b.end >= c.end)              # encloses the call
        or (b.start_line == c.start_line and b.start_col < c.start_col)
    ):
        return PREDECESSOR
    return SAME_OR_LATER


class StyleEmission:
    """
    Places a site's style node(s) exactly once.

    ``defer`` moves the insertion point to the current end of the ledger
    while pending; ``append`` inserts at that point and moves to
    ``appended``, after which both are no-ops.
    """

    def __init__(self, ledger: ExtractionLedger, styles: List[StyleNode]):
        self._ledger = ledger
        self._styles = styles
        self.state = PENDING
        self.anchor = len(ledger)

    def defer(self) -> None:
        if self.state == PENDING:
            self.anchor = len(self._ledger)

    def append(self) -> bool:
        if self.state != PENDING:
            return False
        for offset, style in enumerate(self._styles):
            self._ledger.insert(self.anchor + offset, style)
        self.state = APPENDED
        return True


@dataclass
class ClosureEntry:
    binding: Binding
    position: str
    relocated: bool = False


@dataclass
class Closure:
    entries: List[ClosureEntry] = field(default_factory=list)
    style_index: int = -1

    @property
    def relocated(self) -> List[Binding]:
        return [e.binding for e in self.entries if e.relocated]


def scan_order(bindings: List[Binding]) -> List[Binding]:
    """Source order; bindings without a position come first, in scope order."""
    def key(binding: Binding):
        span = binding.span
        if span is None:
            return (0, 0, 0)
        return (1, span.start_line, span.start_col)
    return sorted(bindings, key=key)


def relocate(binding: Binding, ledger: ExtractionLedger) -> bool:
    """Copy ``binding``'s root declaration into the ledger; False if it was already there."""
    ledger.mark_emitted(binding)
    statement = binding.statement
    if ledger.has_emitted_statement(statement):
        return False
    ledger.mark_statement(statement)
    ledger.emit(BindingNode(node=copy.deepcopy(statement), binding=binding))
    return True


def build_closure(
    call: ast.Call,
    scope: Scope,
    scopes: ScopeInfo,
    ledger: ExtractionLedger,
    styles: List[StyleNode],
) -> Closure:
    call_span = span_of(call)
    emission = StyleEmission(ledger, styles)
    closure = Closure()

    for binding in scan_order(scopes.visible_bindings(scope)):
        if ledger.has_emitted(binding):
            emission.defer()
            closure.entries.append(ClosureEntry(binding, EMITTED))
            continue

        position = classify_position(binding.span, call_span)
        relocated = False
        if position == UNRESOLVED or binding.referenced:
            relocated = relocate(binding, ledger)
        # the style never lands before a dependency it pulled in
        if relocated or position != SAME_OR_LATER:
            emission.defer()
        closure.entries.append(ClosureEntry(binding, position, relocated))

    emission.append()
    closure.style_index = emission.anchor
    return closure
