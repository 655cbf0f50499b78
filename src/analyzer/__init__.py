"""Binding analysis helpers for ES module ASTs."""

from .binding_tracker import (
    AnalysisIssue,
    AnalysisResult,
    Binding,
    BindingKind,
    SourcePosition,
    analyze_bindings,
    pattern_names,
)

__all__ = [
    "AnalysisIssue",
    "AnalysisResult",
    "Binding",
    "BindingKind",
    "SourcePosition",
    "analyze_bindings",
    "pattern_names",
]
