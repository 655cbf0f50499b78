import json
from pathlib import Path

from emitter import EmitOptions, emit_program
from frontend import run_frontend
from rewriter import RewriteOptions, module_to_function


def _emit_js(relative_path: str, options: EmitOptions, *, import_name: str = "$import"):
    source_path = Path(relative_path)
    source = source_path.read_text(encoding="utf-8")
    frontend_result = run_frontend(source, source_name=str(source_path))
    assert frontend_result.program is not None
    rewrite_result = module_to_function(
        frontend_result.program, RewriteOptions(import_name=import_name)
    )
    emit_result = emit_program(rewrite_result.program, rewrite_result.params, options)
    return emit_result, rewrite_result


def test_emit_bare_body():
    emit_result, rewrite_result = _emit_js("tests/cases/module_full.js", EmitOptions())

    assert emit_result.source.endswith("\n")
    tree = json.loads(emit_result.source)
    assert tree["type"] == "Program"
    assert tree["sourceType"] == "script"
    assert tree["body"][-1]["type"] == "ReturnStatement"
    assert len(tree["body"]) == len(rewrite_result.program["body"])
    assert any("loc" in statement for statement in tree["body"])


def test_emit_wrapped_async_function():
    options = EmitOptions(wrap_function=True, include_locations=False, indent=None)
    emit_result, rewrite_result = _emit_js(
        "tests/cases/module_full.js", options, import_name="_import"
    )

    tree = json.loads(emit_result.source)
    assert tree == emit_result.tree
    [statement] = tree["body"]
    function = statement["expression"]
    assert function["type"] == "FunctionExpression"
    assert function["async"] is True
    assert function["params"] == [{"type": "Identifier", "name": "_import"}]
    assert function["body"]["type"] == "BlockStatement"
    assert len(function["body"]["body"]) == len(rewrite_result.program["body"])
    assert '"loc"' not in emit_result.source
    assert '"range"' not in emit_result.source
    assert "\n  " not in emit_result.source


def test_emit_does_not_touch_rewritten_program():
    options = EmitOptions(wrap_function=True, include_locations=False)
    _, rewrite_result = _emit_js("tests/cases/default_import.js", options)

    assert rewrite_result.program["type"] == "Program"
    assert "loc" in rewrite_result.program["body"][1]
