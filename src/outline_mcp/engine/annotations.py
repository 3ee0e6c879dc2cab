"""Annotation scanner: TODO/FIXME/NOTE/XXX/HACK comment tags as outline nodes.

Two forms are recognized:
- single-line: a line-comment token, then ``TAG:`` and text to end of line
- block: ``/* ... TAG: text ... */``, including ``/** */`` doc comments with
  ``*`` continuation lines (multi-line bodies are flattened to one line).
  Every tag in a block is its own node, its text running to the next tag or
  to ``*/``; all of them share the block's range.

A tag must be immediately followed by ``:``. Prose such as "TODO app" is
never matched.

The scanner never raises. A pattern that fails degrades to no matches for that
pattern, and a match with an empty body is skipped. Matches from both forms
are not deduplicated against each other.
"""

from __future__ import annotations

import bisect
import logging
import re
from collections.abc import Iterable, Iterator

from .languages import DEFAULT_LINE_COMMENT_TOKENS
from .models import NodeKind, Position, Range, StructureNode

logger = logging.getLogger(__name__)

ANNOTATION_TAGS: tuple[str, ...] = ("TODO", "FIXME", "NOTE", "XXX", "HACK")

TAG_KINDS: dict[str, NodeKind] = {
    "TODO": NodeKind.TODO,
    "FIXME": NodeKind.FIXME,
    "NOTE": NodeKind.NOTE,
    "XXX": NodeKind.NOTE,
    "HACK": NodeKind.NOTE,
}

_TAG_ALTERNATION = "|".join(ANNOTATION_TAGS)

_BLOCK_OPEN = "/*"
_BLOCK_CLOSE = "*/"

# Searched only inside one terminated block comment
_BLOCK_TAG_PATTERN = re.compile(r"\b(?P<tag>" + _TAG_ALTERNATION + r"):")

# Newline plus optional continuation marker ("\n   * ")
_CONTINUATION = re.compile(r"[ \t]*\r?\n[ \t]*(?:\*(?!/)[ \t]*)?")


def tag_kind(tag: str) -> NodeKind:
    """Map a tag token to its node kind (case-insensitive)."""
    return TAG_KINDS[tag.upper()]


def _single_line_pattern(comment_tokens: Iterable[str]) -> re.Pattern[str]:
    tokens = sorted({token for token in comment_tokens if token}, key=len, reverse=True)
    if not tokens:
        tokens = list(DEFAULT_LINE_COMMENT_TOKENS)
    token_alternation = "|".join(re.escape(token) for token in tokens)
    return re.compile(
        r"(?:" + token_alternation + r")[ \t]*(?P<tag>" + _TAG_ALTERNATION + r"):"
        r"(?P<body>[^\r\n]*)",
    )


class _LineIndex:
    """Converts absolute string offsets to (line, character) positions."""

    def __init__(self, text: str):
        self._starts = [0]
        for match in re.finditer(r"\n", text):
            self._starts.append(match.end())
        self._text = text

    def position(self, offset: int) -> Position:
        line = bisect.bisect_right(self._starts, offset) - 1
        return Position(line=line, character=offset - self._starts[line])

    def line_end(self, line: int) -> Position:
        """Position just past the last character of a line (newline excluded)."""
        start = self._starts[line]
        end = self._starts[line + 1] - 1 if line + 1 < len(self._starts) else len(self._text)
        if end > start and self._text[end - 1] == "\r":
            end -= 1
        return Position(line=line, character=end - start)


def _decode(text: str | bytes) -> str | None:
    if isinstance(text, str):
        return text
    try:
        return text.decode("utf-8")
    except UnicodeDecodeError as e:
        logger.warning(f"Annotation scan skipped: buffer is not valid UTF-8 ({e})")
        return None


def flatten_block_body(body: str) -> str:
    """Collapse a multi-line comment body into a single trimmed line."""
    return _CONTINUATION.sub(" ", body).strip()


def _scan_single_line(
    text: str, index: _LineIndex, comment_tokens: Iterable[str]
) -> list[StructureNode]:
    nodes: list[StructureNode] = []
    for match in _single_line_pattern(comment_tokens).finditer(text):
        name = match.group("body").strip()
        tag = match.group("tag")
        if not name:
            logger.debug(f"Skipping empty {tag} annotation at offset {match.start()}")
            continue
        start = index.position(match.start("tag"))
        nodes.append(
            StructureNode(
                name=name,
                kind=tag_kind(tag),
                range=Range(start=start, end=index.line_end(start.line)),
                detail=tag,
            )
        )
    return nodes


def _block_comments(text: str) -> Iterator[tuple[int, int]]:
    """Yield (start, end) offsets of terminated block comments, end past ``*/``.

    An unterminated ``/*`` ends the scan: no later opener can be terminated
    either, since no ``*/`` follows it.
    """
    position = 0
    while True:
        start = text.find(_BLOCK_OPEN, position)
        if start < 0:
            return
        close = text.find(_BLOCK_CLOSE, start + len(_BLOCK_OPEN))
        if close < 0:
            return
        end = close + len(_BLOCK_CLOSE)
        yield start, end
        position = end


def _scan_blocks(text: str, index: _LineIndex) -> list[StructureNode]:
    nodes: list[StructureNode] = []
    for start, end in _block_comments(text):
        inner_end = end - len(_BLOCK_CLOSE)
        tags = list(_BLOCK_TAG_PATTERN.finditer(text, start + len(_BLOCK_OPEN), inner_end))
        if not tags:
            continue

        block_range = Range(start=index.position(start), end=index.position(end))
        for i, match in enumerate(tags):
            # A body runs to the next tag in the same block, or to the terminator
            body_end = tags[i + 1].start() if i + 1 < len(tags) else inner_end
            name = flatten_block_body(text[match.end() : body_end])
            tag = match.group("tag")
            if not name:
                logger.debug(f"Skipping empty {tag} block annotation at offset {match.start()}")
                continue
            nodes.append(
                StructureNode(name=name, kind=tag_kind(tag), range=block_range, detail=tag)
            )
    return nodes


def scan_annotations(
    text: str | bytes,
    line_comment_tokens: Iterable[str] = DEFAULT_LINE_COMMENT_TOKENS,
) -> list[StructureNode]:
    """Scan buffer text for annotation comments.

    Args:
        text: Full buffer content (str, or UTF-8 encoded bytes)
        line_comment_tokens: Tokens that open a single-line comment

    Returns:
        Annotation nodes, single-line matches first then block matches.
        Order is not meaningful; the merger sorts roots by position.
    """
    decoded = _decode(text)
    if not decoded:
        return []

    index = _LineIndex(decoded)
    tokens = tuple(line_comment_tokens)
    nodes: list[StructureNode] = []

    try:
        nodes.extend(_scan_single_line(decoded, index, tokens))
    except (re.error, ValueError) as e:
        logger.warning(f"Single-line annotation scan failed: {e}")

    try:
        nodes.extend(_scan_blocks(decoded, index))
    except (re.error, ValueError) as e:
        logger.warning(f"Block annotation scan failed: {e}")

    return nodes


__all__ = ["ANNOTATION_TAGS", "TAG_KINDS", "flatten_block_body", "scan_annotations", "tag_kind"]
