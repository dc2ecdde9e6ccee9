"""
Core passes: scope analysis, call-site matching, declaration shapes,
dependency closure, the extraction ledger and the program rewriter.
"""

from .scope import Binding, Scope, ScopeInfo, Span, analyze_scopes, parse_source
from .naming import UidGenerator
from .matcher import CallSiteMatcher, resolve_callee
from .shape import (
    DeclarationShape,
    DeclarationShapeError,
    ShapeTarget,
    classify_declaration,
    module_exports,
)
from .ledger import BindingNode, ExtractionLedger, StyleNode, virtual_module_id
from .closure import Closure, StyleEmission, build_closure, classify_position
from .rewriter import ImportRegistry, Rewriter
from .emitter import materialize, tree_shake
from .transform import (
    ExtractionResult,
    ExtractionSite,
    ProgramExtractor,
    extract_file,
    extract_source,
)

__all__ = [
    "Binding",
    "Scope",
    "ScopeInfo",
    "Span",
    "analyze_scopes",
    "parse_source",
    "UidGenerator",
    "CallSiteMatcher",
    "resolve_callee",
    "DeclarationShape",
    "DeclarationShapeError",
    "ShapeTarget",
    "classify_declaration",
    "module_exports",
    "BindingNode",
    "ExtractionLedger",
    "StyleNode",
    "virtual_module_id",
    "Closure",
    "StyleEmission",
    "build_closure",
    "classify_position",
    "ImportRegistry",
    "Rewriter",
    "materialize",
    "tree_shake",
    "ExtractionResult",
    "ExtractionSite",
    "ProgramExtractor",
    "extract_file",
    "extract_source",
]
