"""
Front end producing Program trees ready for `module_to_function`.

Two entry points feed the rewriter. `run_frontend` parses JavaScript source
with the `esprima` port; `load_estree` accepts a Program already serialized as
ESTree JSON by another parser, which is how syntax newer than esprima 4
(`import.meta`, `export * as ns from`, `import()` as `ImportExpression`)
reaches the rewriter. Both run module-level binding analysis before anything
mutates the tree, and hand back a `FrontEndResult` whose `rewrite()` applies
the transform.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

import esprima

from analyzer import AnalysisResult, analyze_bindings
from rewriter import RewriteError, RewriteOptions, RewriteResult, module_to_function


@dataclass(frozen=True)
class SourceError:
    """A syntax problem reported while reading the input."""

    description: str
    line: Optional[int]
    column: Optional[int]


@dataclass(frozen=True)
class FrontEndResult:
    """A Program (when one could be read) plus what was learned about it."""

    source_name: str
    program: Optional[Dict[str, Any]]
    errors: List[SourceError] = field(default_factory=list)
    analysis: Optional[AnalysisResult] = None

    @property
    def has_ast(self) -> bool:
        return self.program is not None

    @property
    def diagnostics(self):
        """Aggregate diagnostics from syntax errors and analysis issues."""
        diagnostics = list(self.errors)
        if self.analysis:
            diagnostics.extend(self.analysis.issues)
        return diagnostics

    def rewrite(
        self, options: Union[RewriteOptions, Mapping[str, Any], None] = None
    ) -> RewriteResult:
        """Rewrite the Program in place into an async function body."""
        if self.program is None:
            raise RewriteError(f"No Program available for {self.source_name}.")
        return module_to_function(self.program, options)


def _finish(
    source_name: str,
    program: Optional[Dict[str, Any]],
    errors: List[SourceError],
    analyze: bool,
) -> FrontEndResult:
    analysis = None
    if analyze and program is not None:
        analysis = analyze_bindings(program, source_name=source_name)
    return FrontEndResult(source_name=source_name, program=program, errors=errors, analysis=analysis)


def run_frontend(
    source: str,
    *,
    source_name: str = "<input>",
    tolerant: bool = True,
    analyze: bool = True,
    source_type: str = "module",
) -> FrontEndResult:
    """
    Parse JavaScript source and analyze its top-level bindings.

    Args:
        source: Raw JavaScript source text.
        source_name: Identifier used in diagnostics, e.g. file path.
        tolerant: When True esprima attempts recovery and reports errors
            instead of raising.
        analyze: Toggle to disable binding analysis.
        source_type: `"module"` or `"script"`; only modules accept import/export.

    Returns:
        FrontEndResult whose `program` is None when parsing failed outright.

    Raises:
        esprima.Error: If parsing fails and `tolerant` is False.
    """
    parse = esprima.parseScript if source_type == "script" else esprima.parseModule
    try:
        tree = parse(source, loc=True, range=True, tolerant=tolerant)
    except esprima.Error as exc:
        if not tolerant:
            raise
        error = SourceError(
            description=getattr(exc, "description", None) or str(exc),
            line=getattr(exc, "lineNumber", None),
            column=getattr(exc, "column", None),
        )
        return _finish(source_name, None, [error], analyze)

    program = tree.toDict() if hasattr(tree, "toDict") else tree
    errors = [
        SourceError(
            description=error.get("description"),
            line=error.get("lineNumber"),
            column=error.get("column"),
        )
        for error in program.pop("errors", [])
    ]
    return _finish(source_name, program, errors, analyze)


def load_estree(
    text: str,
    *,
    source_name: str = "<input>",
    analyze: bool = True,
) -> FrontEndResult:
    """
    Read a Program serialized as ESTree JSON.

    Invalid JSON, or a root that is not a Program node, yields a result without
    a program and one SourceError describing why.
    """
    try:
        program = json.loads(text)
    except json.JSONDecodeError as exc:
        error = SourceError(description=f"Invalid ESTree JSON: {exc.msg}", line=exc.lineno, column=exc.colno)
        return _finish(source_name, None, [error], analyze)

    if not isinstance(program, dict) or program.get("type") != "Program":
        error = SourceError(description="ESTree JSON root is not a Program node.", line=None, column=None)
        return _finish(source_name, None, [error], analyze)
    return _finish(source_name, program, [], analyze)


__all__ = ["FrontEndResult", "SourceError", "load_estree", "run_frontend"]
