import json

import pytest

from frontend import run_frontend
from rewriter import (
    DEFAULT_IMPORT_NAME,
    ConfigurationError,
    ModuleRewriter,
    RewriteError,
    RewriteOptions,
    module_to_function,
    module_to_function_plugin,
)

MODULE_SOURCE = """
import main, { helper } from 'lib';
import 'side-effect';
export { helper };
export * from 'more';
export default main;
"""


def _parse(source: str):
    result = run_frontend(source, analyze=False)
    assert result.program is not None
    return result.program


def _with_meta_and_dynamic(program):
    program["body"].append(
        {
            "type": "ExpressionStatement",
            "expression": {
                "type": "ImportExpression",
                "source": {"type": "Literal", "value": "lazy", "raw": "'lazy'"},
            },
        }
    )
    program["body"].append(
        {
            "type": "ExpressionStatement",
            "expression": {
                "type": "MetaProperty",
                "meta": {"type": "Identifier", "name": "import"},
                "property": {"type": "Identifier", "name": "meta"},
            },
        }
    )
    return program


def test_default_import_name():
    assert DEFAULT_IMPORT_NAME == "$import"
    assert RewriteOptions().import_name == "$import"
    assert RewriteOptions().strict is False


def test_custom_import_name_is_used_everywhere():
    program = _with_meta_and_dynamic(_parse(MODULE_SOURCE))

    result = module_to_function(program, RewriteOptions(import_name="_import"))

    assert result.params == ["_import"]
    serialized = json.dumps(program)
    assert DEFAULT_IMPORT_NAME not in serialized
    assert serialized.count('"name": "_import"') == 5


def test_mapping_options_are_accepted():
    program = _parse(MODULE_SOURCE)

    result = module_to_function(program, {"importName": "load"})

    assert result.params == ["load"]
    assert program["body"][0]["declarations"][0]["init"]["argument"]["callee"]["name"] == "load"


def test_plugin_applies_rewrite_with_fixed_options():
    plugin = module_to_function_plugin({"importName": "_import"})
    program = _parse(MODULE_SOURCE)

    assert plugin(program) is None
    assert program["sourceType"] == "script"
    assert program["body"][1]["expression"]["argument"]["callee"]["name"] == "_import"


def test_non_program_root_is_rejected():
    with pytest.raises(RewriteError):
        module_to_function({"type": "ExpressionStatement", "expression": None})


def test_invalid_name_passes_through_without_strict():
    program = _parse("import a from 'm';")

    result = module_to_function(program, RewriteOptions(import_name="not valid"))

    assert result.params == ["not valid"]
    assert program["body"][0]["declarations"][0]["init"]["argument"]["callee"]["name"] == "not valid"


@pytest.mark.parametrize("name", ["not valid", "class", "1st", ""])
def test_strict_rejects_invalid_names(name):
    program = _parse("import a from 'm';")

    with pytest.raises(ConfigurationError):
        module_to_function(program, RewriteOptions(import_name=name, strict=True))

    assert program["sourceType"] == "module"
    assert program["body"][0]["type"] == "ImportDeclaration"


def test_strict_rejects_name_bound_at_top_level():
    source = "const $import = 'shadow';\nexport { $import as value };\n"
    program = _parse(source)

    with pytest.raises(ConfigurationError) as excinfo:
        module_to_function(program, RewriteOptions(strict=True))

    assert "already bound" in str(excinfo.value)
    assert "line 1" in str(excinfo.value)
    assert program["body"][1]["type"] == "ExportNamedDeclaration"


def test_without_strict_collisions_are_not_checked():
    program = _parse("const $import = 'shadow';\nexport { $import as value };\n")

    result = module_to_function(program)

    assert result.exported_names == ["value"]


def test_synthetic_names_avoid_the_import_name():
    program = _parse("export default 1;")

    module_to_function(program, RewriteOptions(import_name="_default"))

    assert program["body"][0]["declarations"][0]["id"]["name"] == "_default2"


def test_rewriter_collects_diagnostics_like_result():
    program = _parse("export default class {}")
    rewriter = ModuleRewriter(options=RewriteOptions())

    result = rewriter.rewrite(program)

    assert rewriter.diagnostics == result.diagnostics
    assert "line 1" in result.diagnostics[0]
