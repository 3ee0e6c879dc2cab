"""Symbol providers: raw symbol lists for a buffer.

The synchronization controller only depends on the SymbolProvider protocol.
Built-in providers:
- PythonSymbolProvider: stdlib AST (classes, functions, methods, assignments)
- TreeSitterSymbolProvider: tree-sitter grammars for TypeScript, JavaScript,
  Go, Rust, Java, C, C++, C#, Ruby, PHP, Swift, Kotlin
- DefaultSymbolProvider: dispatches between the two, parsing off the event loop

Providers report symbols in their own native-kind vocabulary; the classifier
decides what reaches the outline.
"""

from __future__ import annotations

import ast
import asyncio
import logging
from collections.abc import Awaitable, Sequence
from typing import Protocol, runtime_checkable

from tree_sitter_language_pack import get_parser  # type: ignore

from .exceptions import ProviderUnavailableError, UnsupportedSourceError
from .languages import TREESITTER_GRAMMARS
from .models import Position, ProviderSymbol, Range

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_DEPTH = 32


@runtime_checkable
class SymbolProvider(Protocol):
    """Source of raw symbols for a buffer snapshot.

    get_symbols() may be a plain method or a coroutine function, and may
    return None when it has nothing to report. It must not keep references
    to the returned symbols after the call.
    """

    def get_symbols(
        self, uri: str, language_id: str, content: str
    ) -> Sequence[ProviderSymbol] | None | Awaitable[Sequence[ProviderSymbol] | None]: ...


# =============================================================================
# Python (AST)
# =============================================================================


class _ColumnMapper:
    """Converts UTF-8 byte columns to character columns."""

    def __init__(self, content: str):
        self._lines = [line.encode("utf-8") for line in content.split("\n")]

    def position(self, line: int, byte_col: int) -> Position:
        if 0 <= line < len(self._lines):
            prefix = self._lines[line][:byte_col]
            character = len(prefix.decode("utf-8", errors="replace"))
        else:
            character = byte_col
        return Position(line=max(0, line), character=max(0, character))


class PythonSymbolProvider:
    """Extract symbols from Python source using the ast module.

    Native kinds reported: class, function, method, constructor, variable,
    field.
    """

    def get_symbols(self, uri: str, language_id: str, content: str) -> list[ProviderSymbol]:
        """Parse content and return top-level symbols with nested children.

        Raises:
            ProviderUnavailableError: If the source does not parse
        """
        try:
            tree = ast.parse(content, filename=uri)
        except SyntaxError as e:
            raise ProviderUnavailableError(
                uri, language_id, f"syntax error at line {e.lineno}: {e.msg}"
            ) from e
        except ValueError as e:
            # Null bytes in source
            raise ProviderUnavailableError(uri, language_id, str(e)) from e

        mapper = _ColumnMapper(content)
        return self._symbols_for_body(tree.body, mapper, scope="module")

    def _range(self, node: ast.AST, mapper: _ColumnMapper) -> Range:
        lineno = getattr(node, "lineno", 1)
        end_lineno = getattr(node, "end_lineno", None) or lineno
        start = mapper.position(lineno - 1, getattr(node, "col_offset", 0))
        end = mapper.position(end_lineno - 1, getattr(node, "end_col_offset", None) or 0)
        if end.sort_key() < start.sort_key():
            end = start
        return Range(start=start, end=end)

    def _symbols_for_body(
        self, body: list[ast.stmt], mapper: _ColumnMapper, scope: str
    ) -> list[ProviderSymbol]:
        symbols: list[ProviderSymbol] = []
        for node in body:
            if isinstance(node, ast.ClassDef):
                symbols.append(
                    ProviderSymbol(
                        name=node.name,
                        native_kind="class",
                        range=self._range(node, mapper),
                        children=self._symbols_for_body(node.body, mapper, scope="class"),
                    )
                )
            elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                if scope == "class":
                    native_kind = "constructor" if node.name == "__init__" else "method"
                else:
                    native_kind = "function"
                symbols.append(
                    ProviderSymbol(
                        name=node.name,
                        native_kind=native_kind,
                        range=self._range(node, mapper),
                        detail=self._signature(node),
                        children=self._symbols_for_body(node.body, mapper, scope="function"),
                    )
                )
            elif isinstance(node, (ast.Assign, ast.AnnAssign)) and scope != "function":
                native_kind = "field" if scope == "class" else "variable"
                targets = node.targets if isinstance(node, ast.Assign) else [node.target]
                for target in targets:
                    for name_node in self._assigned_names(target):
                        symbols.append(
                            ProviderSymbol(
                                name=name_node.id,
                                native_kind=native_kind,
                                range=self._range(name_node, mapper),
                            )
                        )
        return symbols

    def _assigned_names(self, target: ast.expr) -> list[ast.Name]:
        if isinstance(target, ast.Name):
            return [target]
        if isinstance(target, (ast.Tuple, ast.List)):
            names: list[ast.Name] = []
            for element in target.elts:
                names.extend(self._assigned_names(element))
            return names
        return []

    def _signature(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> str:
        params = [arg.arg for arg in node.args.args]
        return_type = f" -> {ast.unparse(node.returns)}" if node.returns else ""
        return f"({', '.join(params)}){return_type}"


# =============================================================================
# Tree-sitter
# =============================================================================

_SCRIPT_SYMBOLS: dict[str, str] = {
    "class_declaration": "class",
    "abstract_class_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
    "internal_module": "namespace",
    "module": "module",
    "function_declaration": "function",
    "generator_function_declaration": "function",
    "method_definition": "method",
    "method_signature": "method",
    "property_signature": "property",
    "public_field_definition": "field",
    "field_definition": "field",
    "variable_declarator": "variable",
}

# Per-grammar node type -> native kind
TREESITTER_SYMBOL_TYPES: dict[str, dict[str, str]] = {
    "typescript": _SCRIPT_SYMBOLS,
    "tsx": _SCRIPT_SYMBOLS,
    "javascript": _SCRIPT_SYMBOLS,
    "go": {
        "function_declaration": "function",
        "method_declaration": "method",
        "type_spec": "class",
    },
    "rust": {
        "function_item": "function",
        "impl_item": "namespace",
        "struct_item": "class",
        "enum_item": "enum",
        "trait_item": "interface",
        "mod_item": "module",
    },
    "java": {
        "class_declaration": "class",
        "interface_declaration": "interface",
        "enum_declaration": "enum",
        "method_declaration": "method",
        "constructor_declaration": "constructor",
    },
    "cpp": {
        "function_definition": "function",
        "class_specifier": "class",
        "struct_specifier": "class",
        "namespace_definition": "namespace",
        "enum_specifier": "enum",
    },
    "c": {
        "function_definition": "function",
        "struct_specifier": "class",
        "enum_specifier": "enum",
    },
    "csharp": {
        "namespace_declaration": "namespace",
        "class_declaration": "class",
        "struct_declaration": "class",
        "interface_declaration": "interface",
        "enum_declaration": "enum",
        "method_declaration": "method",
        "constructor_declaration": "constructor",
        "property_declaration": "property",
    },
    "ruby": {
        "class": "class",
        "module": "module",
        "method": "method",
        "singleton_method": "method",
    },
    "php": {
        "namespace_definition": "namespace",
        "class_declaration": "class",
        "interface_declaration": "interface",
        "enum_declaration": "enum",
        "function_definition": "function",
        "method_declaration": "method",
    },
    "swift": {
        "class_declaration": "class",
        "protocol_declaration": "interface",
        "function_declaration": "function",
    },
    "kotlin": {
        "class_declaration": "class",
        "object_declaration": "class",
        "function_declaration": "function",
    },
}

_IDENTIFIER_TYPES = frozenset(
    {
        "identifier",
        "type_identifier",
        "property_identifier",
        "private_property_identifier",
        "field_identifier",
        "simple_identifier",
        "namespace_identifier",
        "constant",
        "name",
    }
)

# Fields that hold (or lead to) a declaration's name, in lookup order
_NAME_FIELDS = ("name", "declarator", "type")
_NAME_SEARCH_DEPTH = 4


class TreeSitterSymbolProvider:
    """Extract symbols with tree-sitter grammars.

    Parsers are created lazily per grammar and reused.
    """

    def __init__(self, max_depth: int = DEFAULT_PROVIDER_DEPTH):
        self._max_depth = max_depth
        self._parsers: dict[str, object] = {}

    def supports(self, language_id: str) -> bool:
        return TREESITTER_GRAMMARS.get(language_id) in TREESITTER_SYMBOL_TYPES

    def _parser_for(self, uri: str, language_id: str, grammar: str) -> object:
        parser = self._parsers.get(grammar)
        if parser is None:
            try:
                parser = get_parser(grammar)
            except Exception as e:
                raise ProviderUnavailableError(
                    uri, language_id, f"no tree-sitter parser for '{grammar}': {e}"
                ) from e
            self._parsers[grammar] = parser
        return parser

    def get_symbols(self, uri: str, language_id: str, content: str) -> list[ProviderSymbol]:
        """Parse content and return symbols.

        Raises:
            UnsupportedSourceError: If no grammar is configured for language_id
            ProviderUnavailableError: If the parser cannot be built or fails
        """
        grammar = TREESITTER_GRAMMARS.get(language_id)
        target_types = TREESITTER_SYMBOL_TYPES.get(grammar or "")
        if not grammar or not target_types:
            raise UnsupportedSourceError(uri, language_id)

        parser = self._parser_for(uri, language_id, grammar)
        source = content.encode("utf-8")
        try:
            tree = parser.parse(source)  # type: ignore[attr-defined]
        except Exception as e:
            raise ProviderUnavailableError(uri, language_id, f"parse failed: {e}") from e

        walker = _TreeWalker(source, target_types, self._max_depth)
        return walker.collect(tree.root_node)


class _TreeWalker:
    """Collects symbols from one parsed tree."""

    def __init__(self, source: bytes, target_types: dict[str, str], max_depth: int):
        self._source = source
        self._lines = source.split(b"\n")
        self._target_types = target_types
        self._max_depth = max_depth

    def collect(self, node: object, depth: int = 0) -> list[ProviderSymbol]:
        """Walk node's children; symbols nest under the nearest symbol ancestor."""
        if depth >= self._max_depth:
            return []

        symbols: list[ProviderSymbol] = []
        for child in getattr(node, "children", []):
            node_type = getattr(child, "type", None)
            if not node_type:
                continue

            native_kind = self._target_types.get(node_type)
            if native_kind is None:
                # Not a symbol, but symbols may be nested inside
                symbols.extend(self.collect(child, depth))
                continue

            name = self._node_name(child)
            if not name:
                symbols.extend(self.collect(child, depth))
                continue

            symbols.append(
                ProviderSymbol(
                    name=name,
                    native_kind=native_kind,
                    range=self._range(child),
                    children=self.collect(child, depth + 1),
                )
            )
        return symbols

    def _text(self, node: object) -> str:
        start = getattr(node, "start_byte", 0)
        end = getattr(node, "end_byte", 0)
        return self._source[start:end].decode("utf-8", errors="replace")

    def _node_name(self, node: object, depth: int = 0) -> str | None:
        if depth > _NAME_SEARCH_DEPTH:
            return None

        child_by_field_name = getattr(node, "child_by_field_name", None)
        if child_by_field_name is not None:
            for field in _NAME_FIELDS:
                field_node = child_by_field_name(field)
                if field_node is None:
                    continue
                if getattr(field_node, "type", None) in _IDENTIFIER_TYPES:
                    return self._text(field_node)
                nested = self._node_name(field_node, depth + 1)
                if nested:
                    return nested

        for child in getattr(node, "named_children", []):
            if getattr(child, "type", None) in _IDENTIFIER_TYPES:
                return self._text(child)
        return None

    def _position(self, point: tuple[int, int]) -> Position:
        row, byte_col = point[0], point[1]
        if 0 <= row < len(self._lines):
            character = len(self._lines[row][:byte_col].decode("utf-8", errors="replace"))
        else:
            character = byte_col
        return Position(line=row, character=character)

    def _range(self, node: object) -> Range:
        start = self._position(getattr(node, "start_point", (0, 0)))
        end = self._position(getattr(node, "end_point", (0, 0)))
        if end.sort_key() < start.sort_key():
            end = start
        return Range(start=start, end=end)


# =============================================================================
# Dispatch
# =============================================================================


class DefaultSymbolProvider:
    """Python via AST, everything else via tree-sitter.

    Parsing is CPU-bound, so it runs in a worker thread; the controller sees a
    single await per extraction.
    """

    def __init__(
        self,
        python_provider: PythonSymbolProvider | None = None,
        treesitter_provider: TreeSitterSymbolProvider | None = None,
    ):
        self._python = python_provider or PythonSymbolProvider()
        self._treesitter = treesitter_provider or TreeSitterSymbolProvider()

    async def get_symbols(self, uri: str, language_id: str, content: str) -> list[ProviderSymbol]:
        if language_id == "python":
            return await asyncio.to_thread(self._python.get_symbols, uri, language_id, content)
        if self._treesitter.supports(language_id):
            return await asyncio.to_thread(self._treesitter.get_symbols, uri, language_id, content)
        raise UnsupportedSourceError(uri, language_id)


__all__ = [
    "DefaultSymbolProvider",
    "PythonSymbolProvider",
    "SymbolProvider",
    "TREESITTER_SYMBOL_TYPES",
    "TreeSitterSymbolProvider",
]
