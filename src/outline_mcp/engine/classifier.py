"""Symbol classifier: provider symbols -> outline nodes.

Native kinds are mapped onto the NodeKind vocabulary through KIND_MAP.
Symbols whose native kind has no entry are dropped unless a promotion rule
keeps them. Promotion rules are plain predicates evaluated in order:

1. component-like: native function/variable/class named like ``UserCard``
2. hook-like: native function named like ``useFetchData``

Otherwise the detail is the native kind in parentheses, e.g. ``(method)``.

Children are classified with the same rules. Recursion is bounded by
max_depth and a symbol that appears again on its own ancestor path is
truncated, so self-referential provider trees cannot loop.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from pydantic import ValidationError

from .config import DEFAULT_MAX_SYMBOL_DEPTH, DroppedChildrenPolicy
from .models import NodeKind, ProviderSymbol, StructureNode

logger = logging.getLogger(__name__)

COMPONENT_DETAIL = "(component)"
HOOK_DETAIL = "(hook)"

KIND_MAP: dict[str, NodeKind] = {
    "class": NodeKind.CLASS,
    "interface": NodeKind.INTERFACE,
    "namespace": NodeKind.NAMESPACE,
    "module": NodeKind.NAMESPACE,
    "enum": NodeKind.ENUM,
    "method": NodeKind.FUNCTION,
    "function": NodeKind.FUNCTION,
    "constructor": NodeKind.FUNCTION,
    "variable": NodeKind.VARIABLE,
    "property": NodeKind.VARIABLE,
    "field": NodeKind.VARIABLE,
}

# Kinds used for promoted symbols, independent of KIND_MAP
_COMPONENT_KINDS: dict[str, NodeKind] = {
    "function": NodeKind.FUNCTION,
    "variable": NodeKind.VARIABLE,
    "class": NodeKind.CLASS,
}

_COMPONENT_NAME = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_HOOK_NAME = re.compile(r"^use[A-Z]")


@dataclass(frozen=True)
class Promotion:
    """Outcome of a promotion rule: the node kind and detail label to use."""

    kind: NodeKind
    detail: str


def is_component_like(symbol: ProviderSymbol) -> bool:
    """Native function/variable/class with a PascalCase name."""
    return symbol.native_kind in _COMPONENT_KINDS and bool(_COMPONENT_NAME.match(symbol.name))


def is_hook_like(symbol: ProviderSymbol) -> bool:
    """Native function whose name starts with ``use`` + uppercase letter."""
    return symbol.native_kind == "function" and bool(_HOOK_NAME.match(symbol.name))


# Later rules override the detail of earlier ones
PROMOTION_RULES: tuple[tuple[Callable[[ProviderSymbol], bool], str], ...] = (
    (is_component_like, COMPONENT_DETAIL),
    (is_hook_like, HOOK_DETAIL),
)


def promote(symbol: ProviderSymbol) -> Promotion | None:
    """Apply promotion rules in order; return None when no rule matches."""
    detail: str | None = None
    for predicate, label in PROMOTION_RULES:
        if predicate(symbol):
            detail = label
    if detail is None:
        return None
    return Promotion(kind=_COMPONENT_KINDS[symbol.native_kind], detail=detail)


def default_detail(symbol: ProviderSymbol) -> str:
    """Lowercase native kind in parentheses."""
    return f"({symbol.native_kind.lower()})"


class _Classifier:
    """One classification pass over a provider symbol list."""

    def __init__(
        self,
        kind_map: Mapping[str, NodeKind],
        max_depth: int,
        dropped_children: DroppedChildrenPolicy,
    ):
        self._kind_map = kind_map
        self._max_depth = max_depth
        self._dropped_children = dropped_children
        self._path: set[int] = set()
        self.truncated = 0

    def classify_list(self, symbols: Sequence[ProviderSymbol], depth: int) -> list[StructureNode]:
        if depth >= self._max_depth:
            if symbols:
                self.truncated += len(symbols)
            return []

        nodes: list[StructureNode] = []
        for symbol in symbols:
            nodes.extend(self.classify_one(symbol, depth))
        nodes.sort(key=lambda node: node.range.start.sort_key())
        return nodes

    def classify_one(self, symbol: ProviderSymbol, depth: int) -> list[StructureNode]:
        marker = id(symbol)
        if marker in self._path:
            self.truncated += 1
            return []

        self._path.add(marker)
        try:
            kind, detail = self._resolve(symbol)
            if kind is None:
                if self._dropped_children == DroppedChildrenPolicy.PROMOTE:
                    return self.classify_list(symbol.children, depth)
                return []

            if not symbol.name.strip():
                logger.debug(f"Dropping unnamed {symbol.native_kind} symbol")
                return []

            children = self.classify_list(symbol.children, depth + 1)
            return [
                StructureNode(
                    name=symbol.name,
                    kind=kind,
                    range=symbol.range,
                    detail=detail,
                    children=tuple(children) or None,
                )
            ]
        finally:
            self._path.discard(marker)

    def _resolve(self, symbol: ProviderSymbol) -> tuple[NodeKind | None, str | None]:
        promotion = promote(symbol)
        if promotion is not None:
            # Keep the mapped kind when there is one; promotion only widens eligibility
            mapped = self._kind_map.get(symbol.native_kind)
            if mapped is None or mapped.is_annotation():
                mapped = promotion.kind
            return mapped, promotion.detail

        kind = self._kind_map.get(symbol.native_kind)
        if kind is None or kind.is_annotation():
            return None, None
        return kind, default_detail(symbol)


def coerce_symbols(raw: object) -> list[ProviderSymbol]:
    """Validate a provider result into ProviderSymbol objects.

    Accepts None, ProviderSymbol instances, or mappings with the same fields.
    Entries that fail validation are skipped.
    """
    if raw is None:
        return []
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        logger.warning(f"Symbol provider returned {type(raw).__name__}, expected a sequence")
        return []

    symbols: list[ProviderSymbol] = []
    for item in raw:
        if isinstance(item, ProviderSymbol):
            symbols.append(item)
            continue
        try:
            symbols.append(ProviderSymbol.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed provider symbol: {e.error_count()} errors")
    return symbols


def classify_symbols(
    symbols: Sequence[ProviderSymbol] | None,
    *,
    kind_map: Mapping[str, NodeKind] | None = None,
    max_depth: int = DEFAULT_MAX_SYMBOL_DEPTH,
    dropped_children: DroppedChildrenPolicy = DroppedChildrenPolicy.DISCARD,
) -> list[StructureNode]:
    """Classify provider symbols into outline nodes.

    Args:
        symbols: Provider symbols (None is treated as empty)
        kind_map: Native kind -> NodeKind mapping (default: KIND_MAP)
        max_depth: Nesting levels kept before children are truncated
        dropped_children: Whether children of dropped symbols are discarded
            or lifted to the dropped symbol's level

    Returns:
        Root nodes sorted by start position, children sorted the same way
    """
    if not symbols:
        return []

    classifier = _Classifier(
        kind_map=KIND_MAP if kind_map is None else kind_map,
        max_depth=max(1, max_depth),
        dropped_children=dropped_children,
    )
    try:
        nodes = classifier.classify_list(symbols, depth=0)
    except (ValidationError, RecursionError) as e:
        logger.warning(f"Symbol classification failed, using empty tree: {e}")
        return []
    if classifier.truncated:
        logger.warning(
            f"Symbol tree truncated: {classifier.truncated} symbols beyond depth "
            f"{max_depth} or on a cyclic path"
        )
    return nodes


__all__ = [
    "COMPONENT_DETAIL",
    "HOOK_DETAIL",
    "KIND_MAP",
    "PROMOTION_RULES",
    "Promotion",
    "classify_symbols",
    "coerce_symbols",
    "default_detail",
    "is_component_like",
    "is_hook_like",
    "promote",
]
