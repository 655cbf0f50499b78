"""
Binding analysis for ES module ASTs.

The analyzer walks an esprima-compatible AST and records the bindings the
module introduces at its top level (`var`, `let`, `const`, `function`,
`class` and `import` declarations, including those wrapped in `export`), the
names the module exports, and every identifier name appearing anywhere in the
tree. The module rewriter uses the identifier set to pick synthetic names that
cannot clash with user code, and the top-level bindings to detect an import
hook name that is already taken.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set


class BindingKind(str, Enum):
    VAR = "var"
    LET = "let"
    CONST = "const"
    FUNCTION = "function"
    CLASS = "class"
    IMPORT = "import"


@dataclass(frozen=True)
class SourcePosition:
    line: Optional[int]
    column: Optional[int]


@dataclass(frozen=True)
class Binding:
    """Represents a single identifier bound at module level."""

    name: str
    kind: BindingKind
    loc: SourcePosition
    node: Dict[str, Any]


@dataclass(frozen=True)
class AnalysisIssue:
    code: str
    message: str
    loc: SourcePosition


@dataclass
class AnalysisResult:
    source_name: str
    bindings: Dict[str, List[Binding]] = field(default_factory=dict)
    exported: List[str] = field(default_factory=list)
    names: Set[str] = field(default_factory=set)
    issues: List[AnalysisIssue] = field(default_factory=list)

    def is_bound(self, name: str) -> bool:
        return name in self.bindings

    def names_of_kind(self, kind: BindingKind) -> Set[str]:
        return {
            name
            for name, bindings in self.bindings.items()
            if any(binding.kind == kind for binding in bindings)
        }


def pattern_names(pattern: Any) -> Iterable[Dict[str, Any]]:
    """Yield the Identifier nodes bound by a declaration target pattern."""
    if not isinstance(pattern, dict):
        return
    node_type = pattern.get("type")
    if node_type == "Identifier":
        yield pattern
    elif node_type == "ObjectPattern":
        for prop in pattern.get("properties", []):
            if prop.get("type") == "RestElement":
                yield from pattern_names(prop.get("argument"))
            else:
                yield from pattern_names(prop.get("value"))
    elif node_type == "ArrayPattern":
        for element in pattern.get("elements", []):
            yield from pattern_names(element)
    elif node_type == "RestElement":
        yield from pattern_names(pattern.get("argument"))
    elif node_type == "AssignmentPattern":
        yield from pattern_names(pattern.get("left"))


class _BindingAnalyzer:
    def __init__(self, source_name: str) -> None:
        self._result = AnalysisResult(source_name=source_name)

    def analyze(self, ast: Dict[str, Any]) -> AnalysisResult:
        for statement in ast.get("body", []):
            self._visit_statement(statement)
        self._collect_names(ast)
        return self._result

    # ------------------------------------------------------------------ helpers

    @staticmethod
    def _source_position(node: Dict[str, Any]) -> SourcePosition:
        loc = node.get("loc") or {}
        start = loc.get("start") or {}
        return SourcePosition(
            line=start.get("line"),
            column=start.get("column"),
        )

    def _add_binding(self, node: Dict[str, Any], kind: BindingKind) -> None:
        binding = Binding(
            name=node.get("name"),
            kind=kind,
            loc=self._source_position(node),
            node=node,
        )
        self._result.bindings.setdefault(binding.name, []).append(binding)

    def _add_export(self, name: Optional[str], node: Dict[str, Any]) -> None:
        if name is None:
            return
        if name in self._result.exported:
            self._result.issues.append(
                AnalysisIssue(
                    code="DUPLICATE_EXPORT",
                    message=f"Duplicate export of '{name}'.",
                    loc=self._source_position(node),
                )
            )
            return
        self._result.exported.append(name)

    def _collect_names(self, node: Any) -> None:
        stack = [node]
        while stack:
            current = stack.pop()
            if isinstance(current, list):
                stack.extend(current)
            elif isinstance(current, dict):
                if current.get("type") == "Identifier" and isinstance(current.get("name"), str):
                    self._result.names.add(current["name"])
                for key, value in current.items():
                    if key in {"loc", "range"}:
                        continue
                    if isinstance(value, (dict, list)):
                        stack.append(value)

    # ----------------------------------------------------------------- visitors

    def _visit_statement(self, node: Dict[str, Any]) -> None:
        handler = getattr(self, f"_visit_{node.get('type')}", None)
        if handler:
            handler(node)

    def _visit_VariableDeclaration(self, node: Dict[str, Any]) -> None:
        kind = BindingKind(node.get("kind", "var"))
        for declarator in node.get("declarations", []):
            for ident in pattern_names(declarator.get("id")):
                self._add_binding(ident, kind)

    def _visit_FunctionDeclaration(self, node: Dict[str, Any]) -> None:
        ident = node.get("id")
        if isinstance(ident, dict):
            self._add_binding(ident, BindingKind.FUNCTION)

    def _visit_ClassDeclaration(self, node: Dict[str, Any]) -> None:
        ident = node.get("id")
        if isinstance(ident, dict):
            self._add_binding(ident, BindingKind.CLASS)

    def _visit_ImportDeclaration(self, node: Dict[str, Any]) -> None:
        for specifier in node.get("specifiers", []):
            local = specifier.get("local")
            if isinstance(local, dict):
                self._add_binding(local, BindingKind.IMPORT)

    def _visit_ExportNamedDeclaration(self, node: Dict[str, Any]) -> None:
        declaration = node.get("declaration")
        if isinstance(declaration, dict):
            self._visit_statement(declaration)
            for ident in self._declared_identifiers(declaration):
                self._add_export(ident.get("name"), ident)
        for specifier in node.get("specifiers", []):
            exported = specifier.get("exported") or specifier.get("local")
            self._add_export(_specifier_name(exported), specifier)

    def _visit_ExportDefaultDeclaration(self, node: Dict[str, Any]) -> None:
        declaration = node.get("declaration")
        if isinstance(declaration, dict) and declaration.get("type") in {
            "FunctionDeclaration",
            "ClassDeclaration",
        }:
            self._visit_statement(declaration)
        self._add_export("default", node)

    def _visit_ExportAllDeclaration(self, node: Dict[str, Any]) -> None:
        exported = node.get("exported")
        if isinstance(exported, dict):
            self._add_export(_specifier_name(exported), node)

    @staticmethod
    def _declared_identifiers(declaration: Dict[str, Any]) -> List[Dict[str, Any]]:
        if declaration.get("type") == "VariableDeclaration":
            found: List[Dict[str, Any]] = []
            for declarator in declaration.get("declarations", []):
                found.extend(pattern_names(declarator.get("id")))
            return found
        ident = declaration.get("id")
        return [ident] if isinstance(ident, dict) else []


def _specifier_name(node: Any) -> Optional[str]:
    if not isinstance(node, dict):
        return None
    if node.get("type") == "Literal":
        return node.get("value")
    return node.get("name")


def analyze_bindings(ast: Dict[str, Any], *, source_name: str = "<input>") -> AnalysisResult:
    """
    Run module-level binding analysis on an ES module AST.

    Args:
        ast: esprima-compatible Program AST (result of `parse_js`).
        source_name: Label for diagnostics and reporting.

    Returns:
        AnalysisResult with top-level bindings, exported names, every
        identifier name in the tree, and analysis issues.
    """
    analyzer = _BindingAnalyzer(source_name=source_name)
    return analyzer.analyze(ast)


__all__ = [
    "AnalysisIssue",
    "AnalysisResult",
    "Binding",
    "BindingKind",
    "SourcePosition",
    "analyze_bindings",
    "pattern_names",
]
