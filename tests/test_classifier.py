"""Tests for the symbol classifier."""

from test_utils import sym

from outline_mcp.engine.classifier import (
    COMPONENT_DETAIL,
    HOOK_DETAIL,
    KIND_MAP,
    classify_symbols,
    coerce_symbols,
    is_component_like,
    is_hook_like,
    promote,
)
from outline_mcp.engine.config import DroppedChildrenPolicy
from outline_mcp.engine.models import NodeKind


def test_base_mapping_and_default_detail():
    symbols = [
        sym("Service", "Class", line=0),
        sym("Shape", "interface", line=1),
        sym("api", "namespace", line=2),
        sym("utils", "module", line=3),
        sym("Color", "enum", line=4),
        sym("run", "method", line=5),
        sym("main", "function", line=6),
        sym("constructor", "constructor", line=7),
        sym("count", "variable", line=8),
        sym("size", "property", line=9),
        sym("id", "field", line=10),
    ]

    nodes = classify_symbols(symbols)

    assert [(node.name, node.kind) for node in nodes] == [
        ("Service", NodeKind.CLASS),
        ("Shape", NodeKind.INTERFACE),
        ("api", NodeKind.NAMESPACE),
        ("utils", NodeKind.NAMESPACE),
        ("Color", NodeKind.ENUM),
        ("run", NodeKind.FUNCTION),
        ("main", NodeKind.FUNCTION),
        ("constructor", NodeKind.FUNCTION),
        ("count", NodeKind.VARIABLE),
        ("size", NodeKind.VARIABLE),
        ("id", NodeKind.VARIABLE),
    ]
    assert nodes[5].detail == "(method)"
    assert nodes[6].detail == "(function)"
    assert nodes[9].detail == "(property)"
    # Native kind is lowercased on input
    assert nodes[0].detail == COMPONENT_DETAIL


def test_unmapped_kinds_dropped():
    nodes = classify_symbols(
        [
            sym("MAX", "constant"),
            sym("T", "typeparameter"),
            sym("key", "key"),
            sym("go", "function"),
        ]
    )

    assert [node.name for node in nodes] == ["go"]


def test_symbol_derived_nodes_never_annotation_kinds():
    nodes = classify_symbols([sym("x", "todo"), sym("y", "note"), sym("z", "variable")])

    assert [node.name for node in nodes] == ["z"]
    assert not any(node.kind.is_annotation() for node in nodes)


def test_component_like_function():
    nodes = classify_symbols([sym("UserCard", "function")])

    assert len(nodes) == 1
    assert nodes[0].kind == NodeKind.FUNCTION
    assert nodes[0].detail == COMPONENT_DETAIL


def test_component_kept_when_base_mapping_excludes_function():
    kind_map = {k: v for k, v in KIND_MAP.items() if k != "function"}

    nodes = classify_symbols(
        [sym("UserCard", "function", line=0), sym("helper", "function", line=1)],
        kind_map=kind_map,
    )

    assert [node.name for node in nodes] == ["UserCard"]
    assert nodes[0].kind == NodeKind.FUNCTION
    assert nodes[0].detail == COMPONENT_DETAIL


def test_component_like_variable_and_class():
    nodes = classify_symbols([sym("App", "variable", line=0), sym("Store", "class", line=1)])

    assert [(node.name, node.detail) for node in nodes] == [
        ("App", COMPONENT_DETAIL),
        ("Store", COMPONENT_DETAIL),
    ]


def test_component_name_shape():
    assert is_component_like(sym("UserCard2", "function"))
    assert not is_component_like(sym("User_Card", "function"))
    assert not is_component_like(sym("userCard", "function"))
    # Only function/variable/class native kinds qualify
    assert not is_component_like(sym("UserCard", "method"))


def test_hook_like_function():
    nodes = classify_symbols([sym("useFetchData", "function")])

    assert len(nodes) == 1
    assert nodes[0].kind == NodeKind.FUNCTION
    assert nodes[0].detail == HOOK_DETAIL


def test_hook_shape():
    assert is_hook_like(sym("useState", "function"))
    assert not is_hook_like(sym("user", "function"))
    assert not is_hook_like(sym("useless", "function"))
    assert not is_hook_like(sym("useState", "variable"))


def test_promote_returns_none_for_plain_symbols():
    assert promote(sym("helper", "function")) is None
    assert promote(sym("Helper", "function")).detail == COMPONENT_DETAIL


def test_children_classified_and_sorted():
    parent = sym(
        "Service",
        "class",
        line=0,
        end_line=10,
        children=[
            sym("stop", "method", line=6),
            sym("T", "typeparameter", line=1),
            sym("start", "method", line=3),
        ],
    )

    nodes = classify_symbols([parent])

    assert [child.name for child in nodes[0].children] == ["start", "stop"]


def test_leaf_children_is_none():
    nodes = classify_symbols([sym("Service", "class", children=[sym("T", "typeparameter")])])

    assert nodes[0].children is None


def test_dropped_parent_discards_subtree_by_default():
    wrapper = sym(
        "T", "typeparameter", line=0, end_line=5, children=[sym("inner", "function", line=1)]
    )

    assert classify_symbols([wrapper]) == []


def test_dropped_parent_promotes_children_when_configured():
    wrapper = sym(
        "block",
        "object",
        line=0,
        end_line=5,
        children=[sym("later", "function", line=4), sym("inner", "function", line=1)],
    )

    nodes = classify_symbols(
        [sym("top", "variable", line=2), wrapper], dropped_children=DroppedChildrenPolicy.PROMOTE
    )

    assert [node.name for node in nodes] == ["inner", "top", "later"]


def test_depth_bound_truncates():
    leaf = sym("leaf", "function", line=3)
    mid = sym("Mid", "class", line=2, end_line=4, children=[leaf])
    top = sym("Top", "class", line=1, end_line=5, children=[mid])

    nodes = classify_symbols([top], max_depth=2)

    assert nodes[0].children[0].name == "Mid"
    assert nodes[0].children[0].children is None


def test_cyclic_symbol_tree_truncated():
    node = sym("Loop", "class", line=0, end_line=3)
    node.children.append(node)

    nodes = classify_symbols([node])

    assert len(nodes) == 1
    assert nodes[0].name == "Loop"
    assert nodes[0].children is None


def test_provider_objects_not_mutated():
    child = sym("run", "method", line=1)
    parent = sym("Service", "class", line=0, end_line=3, children=[child])

    classify_symbols([parent])

    assert parent.children == [child]
    assert child.detail is None


def test_none_and_empty_input():
    assert classify_symbols(None) == []
    assert classify_symbols([]) == []


def test_coerce_symbols_accepts_mappings_and_skips_malformed():
    raw = [
        {
            "name": "fromDict",
            "native_kind": "Function",
            "range": {"start": {"line": 0, "character": 0}, "end": {"line": 1, "character": 0}},
        },
        {"name": "broken"},
        sym("direct", "variable", line=2),
    ]

    symbols = coerce_symbols(raw)

    assert [symbol.name for symbol in symbols] == ["fromDict", "direct"]
    assert symbols[0].native_kind == "function"


def test_coerce_symbols_rejects_non_sequences():
    assert coerce_symbols(None) == []
    assert coerce_symbols("not a list") == []
    assert coerce_symbols(42) == []
