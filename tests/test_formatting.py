"""Tests for outline presentation helpers."""

from outline_mcp.engine.models import NodeKind, OutlineSnapshot, Range, StructureNode
from outline_mcp.formatting import (
    describe_node,
    format_buffer_not_found_error,
    format_outline_tree,
    navigation_target,
    node_icon,
    node_to_dict,
    node_tooltip,
    snapshot_to_dict,
)


def _snapshot() -> OutlineSnapshot:
    method = StructureNode(
        name="getUser",
        kind=NodeKind.FUNCTION,
        range=Range.from_coords(2, 2, 4, 3),
        detail="(method)",
    )
    service = StructureNode(
        name="UserService",
        kind=NodeKind.CLASS,
        range=Range.from_coords(1, 0, 5, 1),
        detail="(component)",
        children=(method,),
    )
    todo = StructureNode(
        name="cache users",
        kind=NodeKind.TODO,
        range=Range.from_coords(0, 3, 0, 22),
        detail="TODO",
    )
    return OutlineSnapshot(roots=(todo, service), generation=3, uri="file:///svc.ts")


def test_describe_node():
    service = _snapshot().roots[1]

    assert describe_node(service) == "class - (component) - Line 2"


def test_describe_node_without_detail():
    node = StructureNode(name="x", kind=NodeKind.VARIABLE, range=Range.from_coords(9, 0, 9, 1))

    assert describe_node(node) == "variable - Line 10"


def test_node_tooltip_and_icon():
    todo = _snapshot().roots[0]

    assert node_tooltip(todo) == "todo: cache users\nLine 1"
    assert node_icon(todo) == "checklist"


def test_navigation_target_is_node_range():
    service = _snapshot().roots[1]

    assert navigation_target(service) == Range.from_coords(1, 0, 5, 1)


def test_format_outline_tree():
    text = format_outline_tree(_snapshot())

    assert text.splitlines() == [
        "--- file:///svc.ts (generation 3, 3 nodes) ---",
        "  ├── todo cache users TODO [1]",
        "  └── class UserService (component) [2-6]",
        "      └── function getUser (method) [3-5]",
    ]


def test_format_outline_tree_empty():
    snapshot = OutlineSnapshot(roots=(), generation=1, uri="file:///empty.ts")

    assert format_outline_tree(snapshot) == (
        "--- file:///empty.ts (generation 1, 0 nodes) ---\n  [No symbols found]"
    )


def test_node_to_dict_omits_empty_fields():
    node = StructureNode(name="x", kind=NodeKind.VARIABLE, range=Range.from_coords(0, 0, 0, 1))

    data = node_to_dict(node)

    assert data == {
        "name": "x",
        "kind": "variable",
        "range": {"start": {"line": 0, "character": 0}, "end": {"line": 0, "character": 1}},
        "description": "variable - Line 1",
    }


def test_snapshot_to_dict():
    data = snapshot_to_dict(_snapshot())

    assert data["uri"] == "file:///svc.ts"
    assert data["generation"] == 3
    assert data["node_count"] == 3
    assert [root["name"] for root in data["roots"]] == ["cache users", "UserService"]
    assert data["roots"][1]["children"][0]["detail"] == "(method)"


def test_buffer_not_found_error_lists_known_buffers():
    message = format_buffer_not_found_error("file:///gone.ts", ["file:///a.ts"])

    assert "No outline available for 'file:///gone.ts'" in message
    assert "file:///a.ts" in message
