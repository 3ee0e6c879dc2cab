"""Tree merger: classified symbols + annotations -> one ordered outline."""

from __future__ import annotations

from collections.abc import Iterable

from .models import StructureNode


def merge_outline(
    symbol_roots: Iterable[StructureNode], annotations: Iterable[StructureNode]
) -> list[StructureNode]:
    """Merge symbol roots and annotation nodes into the root list of an outline.

    Annotations always become roots, even when their range falls inside a
    symbol. Roots are stably sorted by start position, so ties keep symbols
    ahead of annotations. Children are left in the order they arrived in.

    Args:
        symbol_roots: Root nodes from the symbol classifier
        annotations: Flat annotation nodes from the scanner

    Returns:
        Ordered root nodes (empty when both inputs are empty)
    """
    roots = [*symbol_roots, *annotations]
    # list.sort is stable
    roots.sort(key=lambda node: node.range.start.sort_key())
    return roots


__all__ = ["merge_outline"]
