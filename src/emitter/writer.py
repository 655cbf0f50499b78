"""
Serialize rewritten Program trees as ESTree JSON, ready for writing to disk.

Printing JavaScript text is left to an external ESTree printer; this module
only hands the tree over in the interchange format such printers read. With
`wrap_function` the body is wrapped in an `async function` expression whose
single parameter is the import hook, so the printer produces a complete
function rather than a bare body.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from rewriter.nodes import async_function_expression

_POSITION_KEYS = frozenset({"loc", "range"})


@dataclass(frozen=True)
class EmitOptions:
    wrap_function: bool = False
    include_locations: bool = True
    indent: Optional[int] = 2
    trailing_newline: bool = True


@dataclass(frozen=True)
class EmitResult:
    source: str
    tree: Dict[str, Any]


def wrap_in_function(program: Dict[str, Any], params: List[str]) -> Dict[str, Any]:
    """Return a Program whose only statement is the async function built from `program`."""
    function = async_function_expression(params, list(program.get("body", [])))
    return {
        "type": "Program",
        "sourceType": "script",
        "body": [{"type": "ExpressionStatement", "expression": function}],
    }


def _strip_positions(node: Any) -> Any:
    if isinstance(node, list):
        return [_strip_positions(item) for item in node]
    if isinstance(node, dict):
        return {
            key: _strip_positions(value)
            for key, value in node.items()
            if key not in _POSITION_KEYS
        }
    return node


def emit_program(
    program: Dict[str, Any],
    params: List[str],
    options: Optional[EmitOptions] = None,
) -> EmitResult:
    """
    Render the given rewritten Program to ESTree JSON text.
    """
    options = options or EmitOptions()

    tree = wrap_in_function(program, params) if options.wrap_function else program
    if not options.include_locations:
        tree = _strip_positions(tree)

    source = json.dumps(tree, ensure_ascii=False, indent=options.indent)
    if options.trailing_newline:
        source += "\n"

    return EmitResult(source=source, tree=tree)


__all__ = ["EmitOptions", "EmitResult", "emit_program", "wrap_in_function"]
