import json
from pathlib import Path
from typing import Set

import esprima
import pytest

from analyzer import BindingKind, analyze_bindings
from frontend import load_estree, run_frontend
from rewriter import RewriteError


def _run(relative_path: str):
    source_path = Path(relative_path)
    source = source_path.read_text(encoding="utf-8")
    return run_frontend(source, source_name=str(source_path))


TEST_CASES = [
    (
        "tests/cases/no_modules.js",
        {"counter": BindingKind.VAR, "increment": BindingKind.FUNCTION},
        [],
    ),
    (
        "tests/cases/named_imports.js",
        {"join": BindingKind.IMPORT, "resolvePath": BindingKind.IMPORT},
        [],
    ),
    (
        "tests/cases/local_exports.js",
        {
            "answer": BindingKind.CONST,
            "left": BindingKind.CONST,
            "first": BindingKind.CONST,
            "greet": BindingKind.FUNCTION,
            "Person": BindingKind.CLASS,
            "hidden": BindingKind.LET,
            "pair": BindingKind.FUNCTION,
        },
        ["answer", "left", "first", "greet", "Person", "hidden", "visible"],
    ),
    (
        "tests/cases/reexports.js",
        {"own": BindingKind.CONST},
        ["a", "c", "d", "own"],
    ),
]


@pytest.mark.parametrize("relative_path, expected_bindings, expected_exports", TEST_CASES)
def test_frontend_reports_module_bindings(
    relative_path, expected_bindings, expected_exports
):
    result = _run(relative_path)

    assert result.has_ast
    assert result.errors == []
    assert result.program["type"] == "Program"
    assert result.program["sourceType"] == "module"

    analysis = result.analysis
    assert analysis is not None
    assert not analysis.issues
    for name, kind in expected_bindings.items():
        assert analysis.is_bound(name)
        assert analysis.bindings[name][0].kind == kind
    assert analysis.exported == expected_exports


def test_analysis_collects_every_identifier_name():
    result = _run("tests/cases/named_imports.js")
    names: Set[str] = result.analysis.names

    assert {"join", "resolve", "resolvePath", "console", "log"} <= names


def test_binding_kinds_are_grouped():
    result = _run("tests/cases/namespace_import.js")

    assert result.analysis.names_of_kind(BindingKind.IMPORT) == {"fs", "React", "ReactAll"}
    assert result.analysis.names_of_kind(BindingKind.CONST) == set()


def test_duplicate_exports_are_reported():
    program = {
        "type": "Program",
        "sourceType": "module",
        "body": [
            {
                "type": "ExportNamedDeclaration",
                "specifiers": [
                    {
                        "type": "ExportSpecifier",
                        "local": {"type": "Identifier", "name": "a"},
                        "exported": {"type": "Identifier", "name": "a"},
                    },
                    {
                        "type": "ExportSpecifier",
                        "local": {"type": "Identifier", "name": "b"},
                        "exported": {"type": "Identifier", "name": "a"},
                    },
                ],
            }
        ],
    }

    analysis = analyze_bindings(program, source_name="dup.js")

    assert analysis.exported == ["a"]
    assert [issue.code for issue in analysis.issues] == ["DUPLICATE_EXPORT"]


def test_script_goal_rejects_module_syntax():
    source = Path("tests/cases/default_import.js").read_text(encoding="utf-8")
    result = run_frontend(source, source_type="script", tolerant=True)

    assert result.program is None or result.errors


def test_syntax_errors_surface_as_diagnostics():
    result = run_frontend("export const = ;", tolerant=True)

    assert result.errors
    assert result.diagnostics[: len(result.errors)] == list(result.errors)


def test_strict_parsing_raises_on_syntax_error():
    with pytest.raises(esprima.Error):
        run_frontend("import { from 'm';", tolerant=False)


def test_unrecoverable_syntax_error_yields_no_program():
    result = run_frontend("import { from 'm';", source_name="broken.js")

    assert not result.has_ast
    assert result.errors
    assert result.analysis is None
    with pytest.raises(RewriteError, match="broken.js"):
        result.rewrite()


def test_frontend_result_rewrites_program_in_place():
    result = run_frontend("export default 1;", source_name="one.js")
    program = result.program

    rewritten = result.rewrite({"importName": "load"})

    assert rewritten.program is program
    assert rewritten.params == ["load"]
    assert program["sourceType"] == "script"
    assert program["body"][-1]["type"] == "ReturnStatement"


def test_estree_json_accepts_syntax_newer_than_the_parser():
    program = {
        "type": "Program",
        "sourceType": "module",
        "body": [
            {
                "type": "ExportAllDeclaration",
                "source": {"type": "Literal", "value": "m", "raw": "'m'"},
                "exported": {"type": "Identifier", "name": "ns"},
            },
            {
                "type": "ExpressionStatement",
                "expression": {
                    "type": "MetaProperty",
                    "meta": {"type": "Identifier", "name": "import"},
                    "property": {"type": "Identifier", "name": "meta"},
                },
            },
        ],
    }

    result = load_estree(json.dumps(program), source_name="newer.json")

    assert result.has_ast
    assert result.errors == []
    assert result.analysis.exported == ["ns"]
    rewritten = result.rewrite()
    assert rewritten.exported_names == ["ns"]
    meta = result.program["body"][1]["expression"]
    assert meta["type"] == "MemberExpression"
    assert meta["object"] == {"type": "Identifier", "name": "$import"}
    assert meta["property"]["name"] == "meta"


def test_estree_json_reports_invalid_json():
    result = load_estree('{"type": "Program",', source_name="bad.json")

    assert not result.has_ast
    [error] = result.errors
    assert error.description.startswith("Invalid ESTree JSON")
    assert error.line == 1


def test_estree_json_requires_program_root():
    result = load_estree('{"type": "ExpressionStatement"}')

    assert not result.has_ast
    assert [error.description for error in result.errors] == [
        "ESTree JSON root is not a Program node."
    ]
