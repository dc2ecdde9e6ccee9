#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Lexical scope analysis over the stdlib ``ast`` tree.

Every ``Name`` load is resolved to the binding that declares it, following
Python's rules:
  - module, function (incl. lambda), class and comprehension scopes
  - class bodies are invisible to nested scopes
  - ``global`` / ``nonlocal`` redirect a declaration to an outer scope
  - walrus targets inside a comprehension bind in the enclosing scope

A binding is identified by object identity, never by name, so two scopes
may each own a ``color`` without being confused.
"""

from __future__ import annotations

import ast
import warnings
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

MODULE = "module"
FUNCTION = "function"
CLASS = "class"
COMPREHENSION = "comprehension"

# binding kinds
ASSIGN = "assign"
IMPORT = "import"
DEF = "def"
PARAM = "param"
EXCEPT = "except"
MATCH = "match"


@dataclass(frozen=True)
class Span:
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    @property
    def start(self) -> Tuple[int, int]:
        return (self.start_line, self.start_col)

    @property
    def end(self) -> Tuple[int, int]:
        return (self.end_line, self.end_col)


def span_of(node: Optional[ast.AST]) -> Optional[Span]:
    """Source span of ``node``, or None for synthetic nodes."""
    if node is None:
        return None
    values = [getattr(node, attr, None) for attr in ("lineno", "col_offset", "end_lineno", "end_col_offset")]
    if any(v is None for v in values):
        return None
    return Span(*values)


@dataclass(eq=False)
class Binding:
    name: str
    kind: str
    node: ast.AST                # first declaring node
    statement: ast.AST           # root declaration (nearest enclosing statement)
    scope: "Scope"
    references: List[ast.Name] = field(default_factory=list)
    reassignments: List[ast.AST] = field(default_factory=list)
    declarations: List[ast.AST] = field(default_factory=list)  # global / nonlocal statements

    @property
    def referenced(self) -> bool:
        return bool(self.references)

    @property
    def span(self) -> Optional[Span]:
        return span_of(self.statement)

    def __repr__(self) -> str:
        return f"Binding({self.name!r}, kind={self.kind!r}, scope={self.scope.kind!r}, refs={len(self.references)})"


@dataclass(eq=False)
class Scope:
    kind: str
    node: ast.AST
    parent: Optional["Scope"]
    bindings: Dict[str, Binding] = field(default_factory=dict)
    globals: Set[str] = field(default_factory=set)
    nonlocals: Set[str] = field(default_factory=set)
    children: List["Scope"] = field(default_factory=list)


def parse_source(source: str, filename: str = "<unknown>") -> ast.Module:
    with warnings.catch_warnings():
        warnings.filterwarnings(
            "ignore",
            category=SyntaxWarning,
            message=r".*invalid escape sequence.*",
        )
        return ast.parse(source, filename=filename)


def _all_args(args: ast.arguments) -> List[ast.arg]:
    out: List[ast.arg] = [*args.posonlyargs, *args.args]
    if args.vararg is not None:
        out.append(args.vararg)
    out.extend(args.kwonlyargs)
    if args.kwarg is not None:
        out.append(args.kwarg)
    return out


def _set_name(node: ast.AST, new_name: str) -> None:
    if isinstance(node, ast.Name):
        node.id = new_name
    elif isinstance(node, ast.arg):
        node.arg = new_name
    elif isinstance(node, ast.alias):
        if node.asname is None and "." in node.name:
            raise ValueError(f"cannot rename dotted import {node.name!r}")
        node.asname = new_name
    elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef, ast.ExceptHandler)):
        node.name = new_name
    elif isinstance(node, (ast.MatchAs, ast.MatchStar)):
        node.name = new_name
    elif isinstance(node, ast.MatchMapping):
        node.rest = new_name
    else:
        raise TypeError(f"unsupported declaring node: {type(node).__name__}")


class ScopeInfo:
    """Query surface over one analyzed module."""

    def __init__(
        self,
        tree: ast.Module,
        module: Scope,
        node_scopes: Dict[ast.AST, Scope],
        parents: Dict[ast.AST, ast.AST],
        names: Set[str],
    ):
        self.tree = tree
        self.module = module
        self._node_scopes = node_scopes
        self._parents = parents
        self._names = names
        self._declared: Dict[ast.AST, Binding] = {}
        self._resolved: Dict[ast.AST, Binding] = {}
        self.unresolved: List[ast.Name] = []

    # -- structure -------------------------------------------------------

    def scope_of(self, node: ast.AST) -> Scope:
        return self._node_scopes[node]

    def parent_of(self, node: ast.AST) -> Optional[ast.AST]:
        return self._parents.get(node)

    def set_parent(self, node: ast.AST, parent: ast.AST) -> None:
        self._parents[node] = parent
        for child in ast.walk(node):
            for grandchild in ast.iter_child_nodes(child):
                self._parents[grandchild] = child

    def enclosing_statement(self, node: ast.AST) -> ast.AST:
        cur: Optional[ast.AST] = node
        while cur is not None and not isinstance(cur, ast.stmt):
            cur = self._parents.get(cur)
        return cur if cur is not None else node

    def iter_scopes(self) -> Iterator[Scope]:
        stack = [self.module]
        while stack:
            scope = stack.pop()
            yield scope
            stack.extend(reversed(scope.children))

    def iter_bindings(self) -> Iterator[Binding]:
        for scope in self.iter_scopes():
            yield from scope.bindings.values()

    # -- resolution ------------------------------------------------------

    def lookup(self, scope: Scope, name: str) -> Optional[Binding]:
        s: Optional[Scope] = scope
        while s is not None:
            if s is scope or s.kind != CLASS:
                if name in s.globals:
                    return self.module.bindings.get(name)
                binding = s.bindings.get(name)
                if binding is not None:
                    return binding
            s = s.parent
        return None

    def resolve(self, node: ast.AST) -> Optional[Binding]:
        """Binding a name load (or a declaring node) refers to."""
        return self._resolved.get(node) or self._declared.get(node)

    def binding_for(self, declaring_node: ast.AST) -> Optional[Binding]:
        return self._declared.get(declaring_node)

    def visible_bindings(self, scope: Scope) -> List[Binding]:
        """All bindings visible from ``scope``, innermost first, shadowed names dropped."""
        seen: Set[str] = set()
        out: List[Binding] = []
        s: Optional[Scope] = scope
        while s is not None:
            if s is scope or s.kind != CLASS:
                for name, binding in s.bindings.items():
                    if name not in seen:
                        seen.add(name)
                        out.append(binding)
            s = s.parent
        return out

    def bindings_declared_by(self, statement: ast.AST, scope: Optional[Scope] = None) -> List[Binding]:
        scope = scope or self.module
        return [b for b in scope.bindings.values() if b.statement is statement]

    def used_names(self) -> Set[str]:
        names = set(self._names)
        names.update(b.name for b in self.iter_bindings())
        return names

    def free_names(self) -> Set[str]:
        """Names loaded anywhere that are not bound by a nested scope."""
        free = {n.id for n in self.unresolved}
        for binding in self.module.bindings.values():
            if binding.references:
                free.add(binding.name)
        return free

    # -- mutation --------------------------------------------------------

    def rename(self, binding: Binding, new_name: str) -> None:
        """Rename ``binding`` everywhere it is declared or referenced."""
        old = binding.name
        if old == new_name:
            return
        for node in [binding.node, *binding.reassignments]:
            _set_name(node, new_name)
        for ref in binding.references:
            ref.id = new_name
        for stmt in binding.declarations:
            stmt.names = [new_name if n == old else n for n in stmt.names]
            owner = self._node_scopes.get(stmt)
            if owner is not None:
                for marks in (owner.globals, owner.nonlocals):
                    if old in marks:
                        marks.discard(old)
                        marks.add(new_name)
        scope = binding.scope
        scope.bindings = {(new_name if k == old else k): v for k, v in scope.bindings.items()}
        binding.name = new_name
        self._names.add(new_name)


class _ScopeBuilder(ast.NodeVisitor):
    def __init__(self, tree: ast.Module):
        self.tree = tree
        self.parents: Dict[ast.AST, ast.AST] = {}
        for parent in ast.walk(tree):
            for child in ast.iter_child_nodes(parent):
                self.parents[child] = parent
        self.module = Scope(MODULE, tree, None)
        self.current = self.module
        self.node_scopes: Dict[ast.AST, Scope] = {}
        self.names: Set[str] = set()
        self._pending: List[Tuple[Scope, str, ast.AST, str]] = []
        self._loads: List[Tuple[Scope, ast.Name]] = []
        self._scope_statements: List[Tuple[Scope, ast.AST]] = []

    def visit(self, node: ast.AST):
        self.node_scopes[node] = self.current
        return super().visit(node)

    def _declare(self, name: str, node: ast.AST, kind: str, scope: Optional[Scope] = None) -> None:
        self.names.add(name)
        self._pending.append((scope or self.current, name, node, kind))

    def _push(self, kind: str, node: ast.AST) -> Scope:
        scope = Scope(kind, node, self.current)
        self.current.children.append(scope)
        self.current = scope
        return scope

    def _pop(self) -> None:
        assert self.current.parent is not None
        self.current = self.current.parent

    # -- definitions -----------------------------------------------------

    def _visit_outer_arguments(self, args: ast.arguments) -> None:
        for default in args.defaults:
            self.visit(default)
        for default in args.kw_defaults:
            if default is not None:
                self.visit(default)
        for arg in _all_args(args):
            if arg.annotation is not None:
                self.visit(arg.annotation)

    def _declare_arguments(self, args: ast.arguments) -> None:
        for arg in _all_args(args):
            self.node_scopes[arg] = self.current
            self._declare(arg.arg, arg, PARAM)

    def visit_FunctionDef(self, node):
        for decorator in node.decorator_list:
            self.visit(decorator)
        self._visit_outer_arguments(node.args)
        if node.returns is not None:
            self.visit(node.returns)
        self._declare(node.name, node, DEF)
        self._push(FUNCTION, node)
        self._declare_arguments(node.args)
        for stmt in node.body:
            self.visit(stmt)
        self._pop()

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Lambda(self, node: ast.Lambda):
        self._visit_outer_arguments(node.args)
        self._push(FUNCTION, node)
        self._declare_arguments(node.args)
        self.visit(node.body)
        self._pop()

    def visit_ClassDef(self, node: ast.ClassDef):
        for decorator in node.decorator_list:
            self.visit(decorator)
        for base in node.bases:
            self.visit(base)
        for kw in node.keywords:
            self.visit(kw)
        self._declare(node.name, node, DEF)
        self._push(CLASS, node)
        for stmt in node.body:
            self.visit(stmt)
        self._pop()

    def _visit_comprehension(self, node: ast.AST, elements: List[ast.AST]) -> None:
        generators = node.generators
        # the first iterable is evaluated in the enclosing scope
        self.visit(generators[0].iter)
        self._push(COMPREHENSION, node)
        for index, comp in enumerate(generators):
            self.node_scopes[comp] = self.current
            if index:
                self.visit(comp.iter)
            self.visit(comp.target)
            for cond in comp.ifs:
                self.visit(cond)
        for element in elements:
            self.visit(element)
        self._pop()

    def visit_ListComp(self, node):
        self._visit_comprehension(node, [node.elt])

    visit_SetComp = visit_ListComp
    visit_GeneratorExp = visit_ListComp

    def visit_DictComp(self, node: ast.DictComp):
        self._visit_comprehension(node, [node.key, node.value])

    # -- names -----------------------------------------------------------

    def visit_Name(self, node: ast.Name):
        self.names.add(node.id)
        if isinstance(node.ctx, ast.Store):
            self._declare(node.id, node, ASSIGN)
        else:
            self._loads.append((self.current, node))

    def visit_AugAssign(self, node: ast.AugAssign):
        if isinstance(node.target, ast.Name):
            self._loads.append((self.current, node.target))
        self.generic_visit(node)

    def visit_NamedExpr(self, node: ast.NamedExpr):
        self.visit(node.value)
        target_scope = self.current
        while target_scope.kind == COMPREHENSION and target_scope.parent is not None:
            target_scope = target_scope.parent
        self.node_scopes[node.target] = self.current
        self.names.add(node.target.id)
        self._declare(node.target.id, node.target, ASSIGN, target_scope)

    def visit_Import(self, node: ast.Import):
        for alias in node.names:
            self.node_scopes[alias] = self.current
            self._declare(alias.asname or alias.name.split(".")[0], alias, IMPORT)

    def visit_ImportFrom(self, node: ast.ImportFrom):
        for alias in node.names:
            if alias.name == "*":
                continue
            self.node_scopes[alias] = self.current
            self._declare(alias.asname or alias.name, alias, IMPORT)

    def visit_Global(self, node: ast.Global):
        self.current.globals.update(node.names)
        self._scope_statements.append((self.current, node))

    def visit_Nonlocal(self, node: ast.Nonlocal):
        self.current.nonlocals.update(node.names)
        self._scope_statements.append((self.current, node))

    def visit_ExceptHandler(self, node: ast.ExceptHandler):
        if node.type is not None:
            self.visit(node.type)
        if node.name:
            self._declare(node.name, node, EXCEPT)
        for stmt in node.body:
            self.visit(stmt)

    def visit_MatchAs(self, node: ast.MatchAs):
        if node.pattern is not None:
            self.visit(node.pattern)
        if node.name:
            self._declare(node.name, node, MATCH)

    def visit_MatchStar(self, node: ast.MatchStar):
        if node.name:
            self._declare(node.name, node, MATCH)

    def visit_MatchMapping(self, node: ast.MatchMapping):
        for key in node.keys:
            self.visit(key)
        for pattern in node.patterns:
            self.visit(pattern)
        if node.rest:
            self._declare(node.rest, node, MATCH)

    # -- resolution ------------------------------------------------------

    def _root_statement(self, node: ast.AST) -> ast.AST:
        cur: Optional[ast.AST] = node
        while cur is not None and not isinstance(cur, ast.stmt):
            cur = self.parents.get(cur)
        return cur if cur is not None else node

    def _declaring_scope(self, scope: Scope, name: str, local_names: Dict[Scope, Set[str]]) -> Scope:
        if name in scope.globals:
            return self.module
        if name in scope.nonlocals:
            s = scope.parent
            while s is not None and s.kind != MODULE:
                if s.kind != CLASS and name in local_names.get(s, ()):
                    return s
                s = s.parent
            return self.module
        return scope

    def finish(self) -> ScopeInfo:
        info = ScopeInfo(self.tree, self.module, self.node_scopes, self.parents, self.names)

        local_names: Dict[Scope, Set[str]] = {}
        for scope, name, _node, _kind in self._pending:
            if name not in scope.globals and name not in scope.nonlocals:
                local_names.setdefault(scope, set()).add(name)

        for scope, name, node, kind in self._pending:
            target = self._declaring_scope(scope, name, local_names)
            binding = target.bindings.get(name)
            if binding is None:
                binding = Binding(name, kind, node, self._root_statement(node), target)
                target.bindings[name] = binding
            else:
                binding.reassignments.append(node)
            info._declared[node] = binding

        for scope, stmt in self._scope_statements:
            for name in stmt.names:
                target = self._declaring_scope(scope, name, local_names)
                binding = target.bindings.get(name)
                if binding is not None:
                    binding.declarations.append(stmt)

        for scope, name_node in self._loads:
            binding = info.lookup(scope, name_node.id)
            if binding is None:
                info.unresolved.append(name_node)
            else:
                binding.references.append(name_node)
                info._resolved[name_node] = binding
        return info


def analyze_scopes(tree: ast.Module) -> ScopeInfo:
    builder = _ScopeBuilder(tree)
    builder.node_scopes[tree] = builder.module
    for stmt in tree.body:
        builder.visit(stmt)
    return builder.finish()
