"""Utilities for emitting rewritten Program trees as ESTree JSON."""

from .writer import EmitOptions, EmitResult, emit_program, wrap_in_function

__all__ = ["EmitOptions", "EmitResult", "emit_program", "wrap_in_function"]
