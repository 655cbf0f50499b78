"""
Core logic turning an ES module AST into the body of an async function.

The rewriter walks the top-level statement list of an esprima-compatible
Program and replaces it with a statement list that has no static module
syntax:

* every `import` declaration becomes an awaited call of the injected import
  hook, destructured into the originally bound local names;
* every `export` is recorded and turned into a property of the result object,
  which the rewritten body returns as its last statement;
* dynamic `import()` calls and `import.meta` reads anywhere in the tree are
  routed through the same hook.

The Program dict is mutated in place. Nested nodes (dynamic imports and meta
reads) are mutated in place as well, so every reference a caller holds into
the tree stays valid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Union

from analyzer import AnalysisResult, analyze_bindings, pattern_names

from .nodes import (
    Node,
    assignment,
    await_expression,
    call,
    const_declaration,
    delete_statement,
    expression_statement,
    identifier,
    is_binding_identifier,
    is_identifier_name,
    member,
    object_expression,
    object_pattern,
    return_statement,
    specifier_name,
    spread_object,
)

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_NAME = "$import"


class RewriteError(RuntimeError):
    """Raised when a tree cannot be rewritten into a function body."""

    def __init__(self, message: str, node: Optional[Dict[str, Any]] = None):
        super().__init__(f"{message}{_format_location(node)}")
        self.node = node


class ConfigurationError(RewriteError):
    """Raised by strict mode when the rewrite options are unusable for a tree."""


def _format_location(node: Optional[Dict[str, Any]]) -> str:
    if not node or not isinstance(node, dict):
        return ""
    loc_meta = node.get("loc") or {}
    start = loc_meta.get("start") or {}
    line = start.get("line")
    column = start.get("column")
    if line is None or column is None:
        return ""
    return f" (line {line}, column {column})"


class ImportKind(str, Enum):
    DEFAULT = "default"
    NAMESPACE = "namespace"
    NAMED = "named"
    SIDE_EFFECT = "side_effect"


@dataclass(frozen=True)
class ImportRecord:
    """One binding (or bare side effect) obtained through the import hook."""

    specifier: str
    kind: ImportKind
    local: Optional[str] = None
    imported: Optional[str] = None


@dataclass(frozen=True)
class ExportRecord:
    """
    One entry of the result object.

    `exported` is None for `export * from` merges, whose keys are only known at
    run time; `local` is then the binding holding the resolved module object.
    """

    local: str
    exported: Optional[str]
    source: Optional[str] = None


@dataclass(frozen=True)
class RewriteOptions:
    """
    Options for `module_to_function`.

    Attributes:
        import_name: Identifier of the injected import hook. It becomes the
            single parameter of the generated function and the callee of every
            rewritten import.
        strict: Validate `import_name` before rewriting. When False the name is
            used as given, and a bad name only surfaces once the output is
            printed or evaluated.
    """

    import_name: str = DEFAULT_IMPORT_NAME
    strict: bool = False

    @classmethod
    def coerce(cls, value: Union["RewriteOptions", Mapping[str, Any], None]) -> "RewriteOptions":
        if value is None:
            return cls()
        if isinstance(value, cls):
            return value
        import_name = value.get("importName", value.get("import_name"))
        if import_name is None:
            import_name = DEFAULT_IMPORT_NAME
        return cls(import_name=import_name, strict=bool(value.get("strict", False)))


@dataclass(frozen=True)
class RewriteResult:
    program: Dict[str, Any]
    params: List[str]
    imports: List[ImportRecord] = field(default_factory=list)
    exports: List[ExportRecord] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)

    @property
    def exported_names(self) -> List[str]:
        return [record.exported for record in self.exports if record.exported is not None]


class NameAllocator:
    """Hands out `_`-prefixed identifiers that are not used anywhere in the tree."""

    def __init__(self, taken: Iterable[str]):
        self._taken: Set[str] = set(taken)

    def allocate(self, hint: Optional[str]) -> str:
        stem = hint if is_identifier_name(hint) else "value"
        base = f"_{stem}"
        candidate = base
        counter = 2
        while candidate in self._taken or not is_binding_identifier(candidate):
            candidate = f"{base}{counter}"
            counter += 1
        self._taken.add(candidate)
        return candidate


class ModuleRewriter:
    """Rewrites one Program; create a fresh instance per tree."""

    def __init__(self, *, options: Optional[RewriteOptions] = None):
        self.options = options or RewriteOptions()
        self.diagnostics: List[str] = []
        self._imports: List[ImportRecord] = []
        self._exports: List[ExportRecord] = []
        self._names = NameAllocator(())
        self._dynamic_imports = 0
        self._meta_reads = 0

    def _warn(self, message: str, node: Optional[Dict[str, Any]] = None) -> None:
        self.diagnostics.append(f"{message}{_format_location(node)}")

    # ------------------------------------------------------------------ entry

    def rewrite(self, program: Dict[str, Any]) -> RewriteResult:
        if not isinstance(program, dict) or program.get("type") != "Program":
            raise RewriteError("Expected Program node at the root.", program)

        analysis = analyze_bindings(program)
        if self.options.strict:
            self._preflight(analysis)

        taken = set(analysis.names)
        if isinstance(self.options.import_name, str):
            taken.add(self.options.import_name)
        self._names = NameAllocator(taken)

        statements = program.get("body") or []
        self._rewrite_import_expressions(statements)

        body: List[Node] = []
        for statement in statements:
            body.extend(self._rewrite_statement(statement))
        body.extend(self._build_result())

        statements[:] = body
        program["body"] = statements
        program["sourceType"] = "script"

        logger.debug(
            "Rewrote module: %d import binding(s), %d export(s), %d dynamic import(s), "
            "%d import.meta read(s)",
            len(self._imports),
            len(self._exports),
            self._dynamic_imports,
            self._meta_reads,
        )
        return RewriteResult(
            program=program,
            params=[self.options.import_name],
            imports=list(self._imports),
            exports=list(self._exports),
            diagnostics=list(self.diagnostics),
        )

    def _preflight(self, analysis: AnalysisResult) -> None:
        name = self.options.import_name
        if not isinstance(name, str) or not is_binding_identifier(name):
            raise ConfigurationError(f"Import hook name {name!r} is not a valid identifier.")
        if analysis.is_bound(name):
            binding = analysis.bindings[name][0]
            raise ConfigurationError(
                f"Import hook name '{name}' is already bound at the top level.",
                binding.node,
            )

    # ----------------------------------------------------------- statements

    def _rewrite_statement(self, node: Dict[str, Any]) -> List[Node]:
        handler = getattr(self, f"_rewrite_{node.get('type')}", None)
        if handler is None:
            return [node]
        return handler(node)

    def _hook_call(self, source: Node) -> Node:
        return await_expression(call(identifier(self.options.import_name), [source]))

    def _rewrite_ImportDeclaration(self, node: Dict[str, Any]) -> List[Node]:
        source = node.get("source") or {}
        specifier = source.get("value")
        specifiers = node.get("specifiers") or []
        hook_call = self._hook_call(source)

        if not specifiers:
            self._imports.append(ImportRecord(specifier=specifier, kind=ImportKind.SIDE_EFFECT))
            return [expression_statement(hook_call)]

        namespace: Optional[str] = None
        pairs = []
        for spec in specifiers:
            local = specifier_name(spec.get("local"))
            spec_type = spec.get("type")
            if spec_type == "ImportNamespaceSpecifier":
                namespace = local
                self._imports.append(ImportRecord(specifier, ImportKind.NAMESPACE, local))
            elif spec_type == "ImportDefaultSpecifier":
                pairs.append(("default", local))
                self._imports.append(ImportRecord(specifier, ImportKind.DEFAULT, local, "default"))
            else:
                imported = specifier_name(spec.get("imported")) or local
                pairs.append((imported, local))
                self._imports.append(ImportRecord(specifier, ImportKind.NAMED, local, imported))

        if namespace is None:
            return [const_declaration(object_pattern(pairs), hook_call)]

        statements = [const_declaration(identifier(namespace), hook_call)]
        if pairs:
            statements.append(const_declaration(object_pattern(pairs), identifier(namespace)))
        return statements

    def _rewrite_ExportNamedDeclaration(self, node: Dict[str, Any]) -> List[Node]:
        declaration = node.get("declaration")
        if isinstance(declaration, dict):
            for ident in self._declared_identifiers(declaration):
                name = ident.get("name")
                self._exports.append(ExportRecord(local=name, exported=name))
            return [declaration]

        specifiers = node.get("specifiers") or []
        source = node.get("source")
        if source is None:
            for spec in specifiers:
                local = specifier_name(spec.get("local"))
                exported = specifier_name(spec.get("exported")) or local
                self._exports.append(ExportRecord(local=local, exported=exported))
            return []

        specifier = source.get("value")
        hook_call = self._hook_call(source)
        if not specifiers:
            self._imports.append(ImportRecord(specifier=specifier, kind=ImportKind.SIDE_EFFECT))
            return [expression_statement(hook_call)]

        pairs = []
        for spec in specifiers:
            imported = specifier_name(spec.get("local"))
            exported = specifier_name(spec.get("exported")) or imported
            temp = self._names.allocate(exported)
            pairs.append((imported, temp))
            self._imports.append(ImportRecord(specifier, ImportKind.NAMED, temp, imported))
            self._exports.append(ExportRecord(local=temp, exported=exported, source=specifier))
        return [const_declaration(object_pattern(pairs), hook_call)]

    def _rewrite_ExportDefaultDeclaration(self, node: Dict[str, Any]) -> List[Node]:
        declaration = node.get("declaration") or {}
        if declaration.get("type") in {"FunctionDeclaration", "ClassDeclaration"}:
            ident = declaration.get("id")
            if isinstance(ident, dict) and ident.get("name"):
                name = ident["name"]
            else:
                name = self._names.allocate("default")
                declaration["id"] = identifier(name)
                self._warn(f"Anonymous default export bound to '{name}'.", node)
            self._exports.append(ExportRecord(local=name, exported="default"))
            return [declaration]

        # Expressions are evaluated where the export stood, not when returning.
        name = self._names.allocate("default")
        self._exports.append(ExportRecord(local=name, exported="default"))
        return [const_declaration(identifier(name), declaration)]

    def _rewrite_ExportAllDeclaration(self, node: Dict[str, Any]) -> List[Node]:
        source = node.get("source") or {}
        specifier = source.get("value")
        exported = specifier_name(node.get("exported"))
        temp = self._names.allocate(exported or "reexport")
        self._imports.append(ImportRecord(specifier, ImportKind.NAMESPACE, temp))
        self._exports.append(ExportRecord(local=temp, exported=exported, source=specifier))
        return [const_declaration(identifier(temp), self._hook_call(source))]

    @staticmethod
    def _declared_identifiers(declaration: Dict[str, Any]) -> List[Dict[str, Any]]:
        if declaration.get("type") == "VariableDeclaration":
            found: List[Dict[str, Any]] = []
            for declarator in declaration.get("declarations") or []:
                found.extend(pattern_names(declarator.get("id")))
            return found
        ident = declaration.get("id")
        return [ident] if isinstance(ident, dict) else []

    # ---------------------------------------------------------- result object

    def _build_result(self) -> List[Node]:
        merges = [record for record in self._exports if record.exported is None]
        named = [record for record in self._exports if record.exported is not None]

        if not merges:
            pairs = [(record.exported, identifier(record.local)) for record in named]
            return [return_statement(object_expression(pairs))]

        container = self._names.allocate("exports")
        sources = [identifier(record.local) for record in merges]
        # `export *` never re-exports `default`.
        statements: List[Node] = [
            const_declaration(identifier(container), spread_object(sources)),
            delete_statement(member(identifier(container), "default")),
        ]
        # Explicit exports take precedence over names merged from `export *`.
        for record in named:
            statements.append(
                expression_statement(
                    assignment(
                        member(identifier(container), record.exported),
                        identifier(record.local),
                    )
                )
            )
        statements.append(return_statement(identifier(container)))
        return statements

    # ------------------------------------------------ import() and import.meta

    def _rewrite_import_expressions(self, root: Any) -> None:
        stack = [root]
        while stack:
            current = stack.pop()
            if isinstance(current, list):
                stack.extend(current)
                continue
            if not isinstance(current, dict):
                continue
            self._rewrite_expression_in_place(current)
            for key, value in current.items():
                if key in {"loc", "range"}:
                    continue
                if isinstance(value, (dict, list)):
                    stack.append(value)

    def _rewrite_expression_in_place(self, node: Dict[str, Any]) -> None:
        node_type = node.get("type")
        hook = identifier(self.options.import_name)

        if node_type == "ImportExpression":
            arguments = [node.get("source")]
            options = node.get("options")
            if options is not None:
                arguments.append(options)
            self._replace(node, call(hook, arguments))
            self._dynamic_imports += 1
        elif node_type == "CallExpression" and (node.get("callee") or {}).get("type") == "Import":
            node["callee"] = hook
            self._dynamic_imports += 1
        elif node_type == "MetaProperty" and _is_import_meta(node):
            self._replace(node, member(hook, "meta"))
            self._meta_reads += 1

    @staticmethod
    def _replace(node: Dict[str, Any], replacement: Node) -> None:
        for key in ("loc", "range"):
            if key in node:
                replacement[key] = node[key]
        node.clear()
        node.update(replacement)


def _is_import_meta(node: Dict[str, Any]) -> bool:
    return (
        specifier_name(node.get("meta")) == "import"
        and specifier_name(node.get("property")) == "meta"
    )


def module_to_function(
    program: Dict[str, Any],
    options: Union[RewriteOptions, Mapping[str, Any], None] = None,
) -> RewriteResult:
    """
    Rewrite an ES module Program in place into an async function body.

    Args:
        program: esprima-compatible Program dict; mutated in place.
        options: `RewriteOptions`, or a mapping with `importName` / `import_name`
            and `strict` keys.

    Returns:
        RewriteResult with the same Program object, the single parameter name of
        the generated function, and records of the rewritten imports/exports.

    Raises:
        RewriteError: If `program` is not a Program node.
        ConfigurationError: In strict mode, if the import hook name is invalid
            or already bound at the top level.
    """
    rewriter = ModuleRewriter(options=RewriteOptions.coerce(options))
    return rewriter.rewrite(program)


def module_to_function_plugin(
    options: Union[RewriteOptions, Mapping[str, Any], None] = None,
) -> Callable[[Dict[str, Any]], None]:
    """Build a tree plugin applying `module_to_function` with fixed options."""
    resolved = RewriteOptions.coerce(options)

    def plugin(program: Dict[str, Any]) -> None:
        module_to_function(program, resolved)

    return plugin


__all__ = [
    "DEFAULT_IMPORT_NAME",
    "ConfigurationError",
    "ExportRecord",
    "ImportKind",
    "ImportRecord",
    "ModuleRewriter",
    "NameAllocator",
    "RewriteError",
    "RewriteOptions",
    "RewriteResult",
    "module_to_function",
    "module_to_function_plugin",
]
