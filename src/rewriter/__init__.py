"""ES module to async function body rewriting utilities."""

from .core import (
    DEFAULT_IMPORT_NAME,
    ConfigurationError,
    ExportRecord,
    ImportKind,
    ImportRecord,
    ModuleRewriter,
    RewriteError,
    RewriteOptions,
    RewriteResult,
    module_to_function,
    module_to_function_plugin,
)

__all__ = [
    "DEFAULT_IMPORT_NAME",
    "ConfigurationError",
    "ExportRecord",
    "ImportKind",
    "ImportRecord",
    "ModuleRewriter",
    "RewriteError",
    "RewriteOptions",
    "RewriteResult",
    "module_to_function",
    "module_to_function_plugin",
]
