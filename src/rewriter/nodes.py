"""
Builders for the ESTree nodes emitted by the module rewriter.

Every builder returns a fresh JSON-compatible dict shaped like the output of
`esprima`'s `toDict()`, so generated nodes and parsed nodes can be mixed
freely inside one Program.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional

Node = Dict[str, Any]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

RESERVED_WORDS = frozenset(
    {
        "await", "break", "case", "catch", "class", "const", "continue",
        "debugger", "default", "delete", "do", "else", "enum", "export",
        "extends", "false", "finally", "for", "function", "if", "import",
        "in", "instanceof", "new", "null", "return", "super", "switch",
        "this", "throw", "true", "try", "typeof", "var", "void", "while",
        "with", "yield", "let", "static", "implements", "interface",
        "package", "private", "protected", "public",
    }
)


def is_identifier_name(name: Any) -> bool:
    """True when `name` may be written as a bare property key or member name."""
    return isinstance(name, str) and bool(_IDENTIFIER_RE.match(name))


def is_binding_identifier(name: Any) -> bool:
    """True when `name` may be declared as a variable or parameter."""
    return is_identifier_name(name) and name not in RESERVED_WORDS


def identifier(name: str) -> Node:
    return {"type": "Identifier", "name": name}


def literal(value: Any) -> Node:
    if isinstance(value, str):
        raw = json.dumps(value)
    elif value is None:
        raw = "null"
    elif isinstance(value, bool):
        raw = "true" if value else "false"
    else:
        raw = str(value)
    return {"type": "Literal", "value": value, "raw": raw}


def property_key(name: str) -> Node:
    """Key node for `name`: an Identifier when legal, a string Literal otherwise."""
    return identifier(name) if is_identifier_name(name) else literal(name)


def member(obj: Node, name: str) -> Node:
    if is_identifier_name(name):
        return {
            "type": "MemberExpression",
            "computed": False,
            "object": obj,
            "property": identifier(name),
        }
    return computed_member(obj, literal(name))


def computed_member(obj: Node, prop: Node) -> Node:
    return {"type": "MemberExpression", "computed": True, "object": obj, "property": prop}


def call(callee: Node, arguments: List[Node]) -> Node:
    return {"type": "CallExpression", "callee": callee, "arguments": arguments}


def await_expression(argument: Node) -> Node:
    return {"type": "AwaitExpression", "argument": argument}


def assignment(left: Node, right: Node) -> Node:
    return {"type": "AssignmentExpression", "operator": "=", "left": left, "right": right}


def expression_statement(expression: Node) -> Node:
    return {"type": "ExpressionStatement", "expression": expression}


def const_declaration(target: Node, init: Node) -> Node:
    return {
        "type": "VariableDeclaration",
        "kind": "const",
        "declarations": [{"type": "VariableDeclarator", "id": target, "init": init}],
    }


def pattern_property(key: str, local: str) -> Node:
    """`key: local` inside an object pattern (shorthand when the names match)."""
    return {
        "type": "Property",
        "kind": "init",
        "key": property_key(key),
        "computed": False,
        "method": False,
        "shorthand": key == local and is_identifier_name(key),
        "value": identifier(local),
    }


def object_pattern(pairs: List[tuple]) -> Node:
    return {
        "type": "ObjectPattern",
        "properties": [pattern_property(key, local) for key, local in pairs],
    }


def object_expression(pairs: List[tuple]) -> Node:
    """Object literal from `(key, value_node)` pairs."""
    properties = []
    for key, value in pairs:
        shorthand = (
            value.get("type") == "Identifier"
            and value.get("name") == key
            and is_identifier_name(key)
        )
        properties.append(
            {
                "type": "Property",
                "kind": "init",
                "key": property_key(key),
                "computed": False,
                "method": False,
                "shorthand": shorthand,
                "value": value,
            }
        )
    return {"type": "ObjectExpression", "properties": properties}


def return_statement(argument: Optional[Node]) -> Node:
    return {"type": "ReturnStatement", "argument": argument}


def spread_object(sources: List[Node]) -> Node:
    """`{...a, ...b}`: copies own enumerable properties without naming any global."""
    return {
        "type": "ObjectExpression",
        "properties": [{"type": "SpreadElement", "argument": source} for source in sources],
    }


def delete_statement(target: Node) -> Node:
    return expression_statement(
        {"type": "UnaryExpression", "operator": "delete", "prefix": True, "argument": target}
    )


def async_function_expression(params: List[str], body: List[Node]) -> Node:
    return {
        "type": "FunctionExpression",
        "id": None,
        "params": [identifier(name) for name in params],
        "body": {"type": "BlockStatement", "body": body},
        "generator": False,
        "expression": False,
        "async": True,
    }


def specifier_name(node: Optional[Node]) -> Optional[str]:
    """Name carried by an import/export specifier part (Identifier or string Literal)."""
    if not isinstance(node, dict):
        return None
    if node.get("type") == "Identifier":
        return node.get("name")
    if node.get("type") == "Literal" and isinstance(node.get("value"), str):
        return node.get("value")
    return None


__all__ = [
    "Node",
    "RESERVED_WORDS",
    "assignment",
    "async_function_expression",
    "await_expression",
    "call",
    "computed_member",
    "const_declaration",
    "delete_statement",
    "expression_statement",
    "identifier",
    "is_binding_identifier",
    "is_identifier_name",
    "literal",
    "member",
    "object_expression",
    "object_pattern",
    "pattern_property",
    "property_key",
    "return_statement",
    "spread_object",
    "specifier_name",
]
