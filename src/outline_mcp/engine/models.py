"""Data model for structure outlines.

All outline types are immutable pydantic v2 models. Each pipeline stage
(scanner, classifier, merger) builds new nodes instead of mutating its
inputs, so provider-owned symbol objects are never aliased into the
published tree.

Coordinates are zero-based (line, character) pairs. A Range is half-open:
[start, end).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class NodeKind(str, Enum):
    """Closed vocabulary of outline node kinds."""

    CLASS = "class"
    FUNCTION = "function"
    INTERFACE = "interface"
    VARIABLE = "variable"
    NAMESPACE = "namespace"
    ENUM = "enum"
    TODO = "todo"
    FIXME = "fixme"
    NOTE = "note"

    def is_annotation(self) -> bool:
        """Check if this kind is produced by comment annotations."""
        return self in _ANNOTATION_KINDS


_ANNOTATION_KINDS = frozenset({NodeKind.TODO, NodeKind.FIXME, NodeKind.NOTE})


class Position(BaseModel):
    """Zero-based (line, character) position in a buffer snapshot."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=0, description="Zero-based line number")
    character: int = Field(ge=0, description="Zero-based column on the line")

    def sort_key(self) -> tuple[int, int]:
        """Ordering key: line first, then column."""
        return (self.line, self.character)


class Range(BaseModel):
    """Half-open [start, end) interval over a buffer snapshot."""

    model_config = ConfigDict(frozen=True)

    start: Position
    end: Position

    @model_validator(mode="after")
    def _check_order(self) -> Range:
        if self.start.sort_key() > self.end.sort_key():
            raise ValueError(
                f"Range start {self.start.sort_key()} is after end {self.end.sort_key()}"
            )
        return self

    @classmethod
    def from_coords(cls, start_line: int, start_char: int, end_line: int, end_char: int) -> Range:
        """Build a range from four integers."""
        return cls(
            start=Position(line=start_line, character=start_char),
            end=Position(line=end_line, character=end_char),
        )


class StructureNode(BaseModel):
    """Canonical unit of the outline.

    children is None for a leaf. An empty children sequence is normalized to
    None so structurally equal trees always compare equal.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, description="Display identifier")
    kind: NodeKind
    range: Range
    detail: str | None = Field(default=None, description="Tag text or classifier label")
    children: tuple[StructureNode, ...] | None = None

    @field_validator("children", mode="after")
    @classmethod
    def _empty_children_to_none(
        cls, value: tuple[StructureNode, ...] | None
    ) -> tuple[StructureNode, ...] | None:
        if value is not None and len(value) == 0:
            return None
        return value

    def walk(self) -> list[StructureNode]:
        """Return this node and all descendants in pre-order."""
        nodes = [self]
        for child in self.children or ():
            nodes.extend(child.walk())
        return nodes


class ProviderSymbol(BaseModel):
    """Symbol as reported by an external symbol provider.

    native_kind uses the provider's own vocabulary (e.g. "method",
    "property", "constructor"). It is lowercased on input.
    """

    name: str
    native_kind: str
    range: Range
    detail: str | None = None
    children: list[ProviderSymbol] = Field(default_factory=list)

    @field_validator("native_kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class TextBuffer(BaseModel):
    """Buffer identity together with one content snapshot."""

    model_config = ConfigDict(frozen=True)

    uri: str = Field(min_length=1)
    language_id: str
    content: str


class ExtractionRequest(BaseModel):
    """One unit of extraction work, tagged with the generation it was issued at."""

    model_config = ConfigDict(frozen=True)

    buffer: TextBuffer
    generation: int = Field(ge=1)

    @property
    def uri(self) -> str:
        return self.buffer.uri


class OutlineSnapshot(BaseModel):
    """Externally visible outline state for one buffer.

    Each published snapshot fully replaces the previous one for the same uri.
    """

    model_config = ConfigDict(frozen=True)

    roots: tuple[StructureNode, ...] = ()
    generation: int = Field(ge=1)
    uri: str

    def node_count(self) -> int:
        """Total number of nodes across all roots."""
        return sum(len(root.walk()) for root in self.roots)


__all__ = [
    "ExtractionRequest",
    "NodeKind",
    "OutlineSnapshot",
    "Position",
    "ProviderSymbol",
    "Range",
    "StructureNode",
    "TextBuffer",
]
