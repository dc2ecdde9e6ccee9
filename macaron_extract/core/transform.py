#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Extraction pass over one Python module.

For every call to a recognized style API:
  1. classify how its result is bound (bare / single name / destructuring)
  2. rename the bound names to program-unique ones and synthesize the export
  3. relocate the bindings it depends on into the ledger, in order
  4. wire an import from the auxiliary module and delete (or re-export) the
     original declaration

Each ProgramExtractor owns its ledger, uid namespace and import registry;
nothing is shared between programs.
"""

from __future__ import annotations

import ast
import copy
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config.config_loader import ExtractionConfig
from .closure import build_closure
from .emitter import materialize
from .ledger import BINDING, STYLE, ExtractionLedger, ExtractionNode, StyleNode, virtual_module_id
from .matcher import CallSiteMatcher
from .naming import UidGenerator
from .rewriter import ImportRegistry, Rewriter, reexport_statement
from .scope import analyze_scopes, parse_source
from .shape import BARE, DeclarationShape, ShapeTarget, classify_declaration, module_exports


@dataclass
class ExtractionSite:
    api: Optional[str]
    shape: str
    line: Optional[int]
    names: List[str] = field(default_factory=list)       # generated names in the auxiliary module
    imported: List[str] = field(default_factory=list)    # names bound in the main program
    relocated: List[str] = field(default_factory=list)   # dependencies this site relocated

    def to_dict(self) -> Dict:
        return {
            "api": self.api,
            "shape": self.shape,
            "line": self.line,
            "names": self.names,
            "imported": self.imported,
            "relocated": self.relocated,
        }


@dataclass
class ExtractionResult:
    filename: str
    module_id: str
    program: ast.Module
    auxiliary: Optional[ast.Module]
    nodes: List[ExtractionNode]
    sites: List[ExtractionSite]
    pruned: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.sites)

    @property
    def code(self) -> str:
        return ast.unparse(self.program) + "\n"

    @property
    def auxiliary_code(self) -> str:
        if self.auxiliary is None:
            return ""
        return ast.unparse(self.auxiliary) + "\n"

    def to_dict(self) -> Dict:
        return {
            "filename": self.filename,
            "module_id": self.module_id,
            "num_sites": len(self.sites),
            "num_nodes": len(self.nodes),
            "num_bindings": sum(1 for n in self.nodes if n.type == BINDING),
            "num_styles": sum(1 for n in self.nodes if n.type == STYLE),
            "num_pruned": self.pruned,
            "sites": [s.to_dict() for s in self.sites],
        }


def nearest_identifier(node: ast.AST, scopes) -> Optional[str]:
    """Closest name that describes where ``node`` sits (keyword, dict key, target, def)."""
    child = node
    parent = scopes.parent_of(node)
    while parent is not None and not isinstance(parent, ast.Module):
        if isinstance(parent, ast.keyword) and parent.arg:
            return parent.arg
        if isinstance(parent, ast.Dict):
            for key, value in zip(parent.keys, parent.values):
                if value is child and isinstance(key, ast.Constant) and isinstance(key.value, str) \
                        and key.value.isidentifier():
                    return key.value
        if isinstance(parent, ast.Assign) and len(parent.targets) == 1 and isinstance(parent.targets[0], ast.Name):
            return parent.targets[0].id
        if isinstance(parent, (ast.AnnAssign, ast.AugAssign)) and isinstance(parent.target, ast.Name):
            return parent.target.id
        if isinstance(parent, ast.NamedExpr):
            return parent.target.id
        if isinstance(parent, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            return parent.name
        child, parent = parent, scopes.parent_of(parent)
    return None


class ProgramExtractor:
    def __init__(self, tree: ast.Module, filename: str = "<unknown>", config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()
        self.tree = tree
        self.filename = filename
        self.scopes = analyze_scopes(tree)
        self.exports = module_exports(tree)
        self.ledger = ExtractionLedger(
            virtual_module_id(filename, self.config.module_suffix, self.config.package)
        )
        self.uids = UidGenerator(self.scopes.used_names())
        self.imports = ImportRegistry(self.uids)
        self.rewriter = Rewriter(tree, self.scopes, self.imports)
        self.matcher = CallSiteMatcher(self.config.source_module, self.config.apis)
        self.sites: List[ExtractionSite] = []
        self._discard: Optional[str] = None

    def find_sites(self) -> List[ast.Call]:
        """Matched calls in tree order; arguments of a matched call travel with it."""
        found: List[ast.Call] = []

        def walk(node: ast.AST) -> None:
            for child in ast.iter_child_nodes(node):
                if isinstance(child, ast.Call) and self.matcher.matches(child, self.scopes):
                    found.append(child)
                    continue
                walk(child)

        walk(self.tree)
        return found

    def run(self) -> ExtractionResult:
        for call in self.find_sites():
            self.extract_site(call)

        pruned = []
        if self.sites and self.config.prune_relocated:
            pruned = self.rewriter.prune_relocated(
                [n.binding for n in self.ledger.binding_nodes], self.exports
            )
        program = self.rewriter.finalize()
        auxiliary = None
        if self.sites:
            auxiliary = materialize(self.ledger, self.filename, self.config.tree_shake)
        return ExtractionResult(
            filename=self.filename,
            module_id=self.ledger.module_id,
            program=program,
            auxiliary=auxiliary,
            nodes=list(self.ledger.nodes),
            sites=self.sites,
            pruned=len(pruned),
        )

    def extract_site(self, call: ast.Call) -> ExtractionSite:
        api = self.matcher.api_name(call, self.scopes)
        shape = classify_declaration(call, self.scopes, self.exports)
        site = ExtractionSite(api=api, shape=shape.kind, line=getattr(call, "lineno", None))
        if shape.kind == BARE:
            self._extract_expression(call, site)
        else:
            self._extract_declaration(shape, site)
        self.sites.append(site)
        return site

    # ------------------------------------------------------------------

    def _discard_name(self) -> str:
        if self._discard is None:
            self._discard = self.uids.generate("unused")
        return self._discard

    def _export_declaration(self, statement: ast.stmt, target: ShapeTarget, fresh: str) -> ast.Assign:
        if target.index is None:
            new_target: ast.AST = ast.Name(id=fresh, ctx=ast.Store())
        else:
            new_target = copy.deepcopy(statement.targets[0])
            for i, elt in enumerate(new_target.elts):
                if i == target.index:
                    continue
                if isinstance(elt, ast.Starred):
                    elt.value = ast.Name(id=self._discard_name(), ctx=ast.Store())
                else:
                    new_target.elts[i] = ast.Name(id=self._discard_name(), ctx=ast.Store())
        export = ast.Assign(targets=[new_target], value=copy.deepcopy(statement.value))
        return ast.copy_location(export, statement)

    def _extract_declaration(self, shape: DeclarationShape, site: ExtractionSite) -> None:
        statement = shape.statement
        styles: List[StyleNode] = []
        reexports: List[ast.stmt] = []

        for target in shape.targets:
            binding = self.scopes.binding_for(target.name)
            if binding is None:
                raise RuntimeError(f"no binding recorded for {target.name.id!r}")
            original = target.name.id
            fresh = self.uids.generate(original)
            self.rewriter.rename(binding, fresh)
            export = self._export_declaration(statement, target, fresh)
            imported = self.imports.register(fresh, self.ledger.module_id)
            self.rewriter.rename(binding, imported)
            self.ledger.mark_emitted(binding)

            styles.append(StyleNode(
                export=export,
                name=fresh,
                imported_name=imported,
                should_reexport=target.exported,
                exported_as=original if target.exported else None,
            ))
            if target.exported:
                reexports.append(reexport_statement(original, imported))
            site.names.append(fresh)
            site.imported.append(imported)

        self.ledger.mark_statement(statement)
        closure = build_closure(shape.call, self.scopes.scope_of(shape.call), self.scopes, self.ledger, styles)
        site.relocated = [b.name for b in closure.relocated]
        self.rewriter.replace_statement(statement, reexports)

    def _extract_expression(self, call: ast.Call, site: ExtractionSite) -> None:
        prefix = self.config.identifier_prefix
        near = nearest_identifier(call, self.scopes)
        hint = f"{prefix}_{near}" if near else f"unknown_{prefix}_identifier"
        fresh = self.uids.generate(hint)
        imported = self.imports.register(fresh, self.ledger.module_id)

        export = ast.Assign(targets=[ast.Name(id=fresh, ctx=ast.Store())], value=copy.deepcopy(call))
        ast.copy_location(export, call)
        style = StyleNode(export=export, name=fresh, imported_name=imported)

        closure = build_closure(call, self.scopes.scope_of(call), self.scopes, self.ledger, [style])
        site.relocated = [b.name for b in closure.relocated]
        site.names.append(fresh)
        site.imported.append(imported)
        self.rewriter.replace_expression(call, ast.Name(id=imported, ctx=ast.Load()))


def extract_source(
    source: str,
    filename: str = "<string>",
    config: Optional[ExtractionConfig] = None,
) -> ExtractionResult:
    tree = parse_source(source, filename)
    return ProgramExtractor(tree, filename, config).run()


def extract_file(
    path: str,
    config: Optional[ExtractionConfig] = None,
    filename: Optional[str] = None,
) -> ExtractionResult:
    with open(path, "r", encoding="utf-8") as f:
        source = f.read()
    return extract_source(source, filename or path, config)
