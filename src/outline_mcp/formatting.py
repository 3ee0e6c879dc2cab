"""Shared formatting utilities for outline presentation.

Text tree rendering, per-node labels (description, tooltip) and JSON
conversion used by the MCP tools. Line numbers shown to humans are 1-based;
ranges in JSON stay zero-based.
"""

from typing import Any

from .engine.models import NodeKind, OutlineSnapshot, Range, StructureNode

# =============================================================================
# Node Labels
# =============================================================================

# Icon identifiers a tree view can use per node kind
KIND_ICONS: dict[NodeKind, str] = {
    NodeKind.CLASS: "symbol-class",
    NodeKind.INTERFACE: "symbol-interface",
    NodeKind.ENUM: "symbol-enum",
    NodeKind.FUNCTION: "symbol-method",
    NodeKind.VARIABLE: "symbol-variable",
    NodeKind.NAMESPACE: "symbol-namespace",
    NodeKind.TODO: "checklist",
    NodeKind.FIXME: "warning",
    NodeKind.NOTE: "note",
}


def describe_node(node: StructureNode) -> str:
    """Short description shown next to a node: "kind - detail - Line N"."""
    parts = [node.kind.value, node.detail, f"Line {node.range.start.line + 1}"]
    return " - ".join(part for part in parts if part)


def node_tooltip(node: StructureNode) -> str:
    """Hover text for a node."""
    return f"{node.kind.value}: {node.name}\nLine {node.range.start.line + 1}"


def node_icon(node: StructureNode) -> str:
    """Icon identifier for a node kind."""
    return KIND_ICONS.get(node.kind, "symbol-misc")


def navigation_target(node: StructureNode) -> Range:
    """Selection a host should reveal when the node is activated."""
    return node.range


# =============================================================================
# Text Tree
# =============================================================================


def _line_span(node: StructureNode) -> str:
    start = node.range.start.line + 1
    end = node.range.end.line + 1
    return f"[{start}]" if start == end else f"[{start}-{end}]"


def _format_nodes(nodes: tuple[StructureNode, ...], indent: str) -> list[str]:
    lines = []
    for i, node in enumerate(nodes):
        last = i == len(nodes) - 1
        connector = "└──" if last else "├──"
        detail = f" {node.detail}" if node.detail else ""
        label = f"{node.kind.value} {node.name}{detail}"
        lines.append(f"{indent}{connector} {label} {_line_span(node)}")
        if node.children:
            lines.extend(_format_nodes(node.children, indent + ("    " if last else "│   ")))
    return lines


def format_outline_tree(snapshot: OutlineSnapshot) -> str:
    """Render a snapshot as a box-drawing tree with a header line.

    Args:
        snapshot: Outline snapshot to render

    Returns:
        Multi-line text tree
    """
    header = (
        f"--- {snapshot.uri} "
        f"(generation {snapshot.generation}, {snapshot.node_count()} nodes) ---"
    )
    if not snapshot.roots:
        return f"{header}\n  [No symbols found]"
    return "\n".join([header, *_format_nodes(snapshot.roots, "  ")])


def format_outline_markdown(snapshot: OutlineSnapshot) -> str:
    """Render a snapshot as markdown for MCP tool responses."""
    lines = [
        f"## Outline: {snapshot.uri}",
        f"**Generation**: {snapshot.generation}",
        "",
        "```",
        format_outline_tree(snapshot),
        "```",
    ]
    return "\n".join(lines)


# =============================================================================
# JSON Formatting
# =============================================================================


def node_to_dict(node: StructureNode) -> dict[str, Any]:
    """Convert a node (recursively) into a JSON-compatible dict."""
    data: dict[str, Any] = {
        "name": node.name,
        "kind": node.kind.value,
        "range": node.range.model_dump(),
        "description": describe_node(node),
    }
    if node.detail is not None:
        data["detail"] = node.detail
    if node.children:
        data["children"] = [node_to_dict(child) for child in node.children]
    return data


def snapshot_to_dict(snapshot: OutlineSnapshot) -> dict[str, Any]:
    """Convert a snapshot into a JSON-compatible dict."""
    return {
        "uri": snapshot.uri,
        "generation": snapshot.generation,
        "node_count": snapshot.node_count(),
        "roots": [node_to_dict(root) for root in snapshot.roots],
    }


def format_buffer_not_found_error(uri: str, known: list[str]) -> str:
    """Format error for a buffer with no outline."""
    lines = [f"No outline available for '{uri}'."]
    if known:
        lines.append(f"Buffers with outlines: {', '.join(known)}")
    lines.append("Use open_buffer() to open the buffer first.")
    return " ".join(lines)


__all__ = [
    "KIND_ICONS",
    "describe_node",
    "format_buffer_not_found_error",
    "format_outline_markdown",
    "format_outline_tree",
    "navigation_target",
    "node_icon",
    "node_to_dict",
    "node_tooltip",
    "snapshot_to_dict",
]
