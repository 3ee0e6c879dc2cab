"""Language identifiers recognized by the outline engine.

Two allowlist policies gate whether extraction runs at all:
- minimal: the four script-family identifiers
- extended: minimal plus common general-purpose languages

Identifiers follow editor conventions (e.g. "typescriptreact" for .tsx files).
"""

from __future__ import annotations

from enum import Enum


class LanguagePolicy(str, Enum):
    """Allowlist policy selecting which languages get an outline."""

    MINIMAL = "minimal"
    EXTENDED = "extended"


MINIMAL_LANGUAGES: frozenset[str] = frozenset(
    {
        "typescript",
        "typescriptreact",
        "javascript",
        "javascriptreact",
    }
)

EXTENDED_LANGUAGES: frozenset[str] = MINIMAL_LANGUAGES | frozenset(
    {
        "python",
        "java",
        "csharp",
        "cpp",
        "c",
        "ruby",
        "php",
        "go",
        "rust",
        "swift",
        "kotlin",
    }
)

# Editor language id -> tree-sitter grammar name
TREESITTER_GRAMMARS: dict[str, str] = {
    "typescript": "typescript",
    "typescriptreact": "tsx",
    "javascript": "javascript",
    "javascriptreact": "javascript",
    "java": "java",
    "csharp": "csharp",
    "cpp": "cpp",
    "c": "c",
    "ruby": "ruby",
    "php": "php",
    "go": "go",
    "rust": "rust",
    "swift": "swift",
    "kotlin": "kotlin",
}

# File extension -> editor language id
EXTENSION_LANGUAGES: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
    ".py": "python",
    ".java": "java",
    ".cs": "csharp",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".h": "c",  # Could be C or C++, default to C
    ".c": "c",
    ".rb": "ruby",
    ".php": "php",
    ".go": "go",
    ".rs": "rust",
    ".swift": "swift",
    ".kt": "kotlin",
    ".kts": "kotlin",
}

DEFAULT_LINE_COMMENT_TOKENS: tuple[str, ...] = ("//", "#", "--")

_HASH_COMMENTS = ("#",)
_SLASH_COMMENTS = ("//",)

LINE_COMMENT_TOKENS: dict[str, tuple[str, ...]] = {
    "python": _HASH_COMMENTS,
    "ruby": _HASH_COMMENTS,
    "php": ("//", "#"),
    "typescript": _SLASH_COMMENTS,
    "typescriptreact": _SLASH_COMMENTS,
    "javascript": _SLASH_COMMENTS,
    "javascriptreact": _SLASH_COMMENTS,
    "java": _SLASH_COMMENTS,
    "csharp": _SLASH_COMMENTS,
    "cpp": _SLASH_COMMENTS,
    "c": _SLASH_COMMENTS,
    "go": _SLASH_COMMENTS,
    "rust": _SLASH_COMMENTS,
    "swift": _SLASH_COMMENTS,
    "kotlin": _SLASH_COMMENTS,
}


def supported_languages(policy: LanguagePolicy) -> frozenset[str]:
    """Return the allowlist for a policy."""
    if policy == LanguagePolicy.MINIMAL:
        return MINIMAL_LANGUAGES
    return EXTENDED_LANGUAGES


def is_supported(language_id: str, policy: LanguagePolicy = LanguagePolicy.EXTENDED) -> bool:
    """Check if a language identifier passes the allowlist."""
    return language_id in supported_languages(policy)


def comment_tokens_for(language_id: str) -> tuple[str, ...]:
    """Line-comment tokens used by the annotation scanner for a language."""
    return LINE_COMMENT_TOKENS.get(language_id, DEFAULT_LINE_COMMENT_TOKENS)


def language_for_extension(suffix: str) -> str | None:
    """Map a file extension (with leading dot) to a language identifier."""
    return EXTENSION_LANGUAGES.get(suffix.lower())


__all__ = [
    "DEFAULT_LINE_COMMENT_TOKENS",
    "EXTENDED_LANGUAGES",
    "LanguagePolicy",
    "MINIMAL_LANGUAGES",
    "TREESITTER_GRAMMARS",
    "comment_tokens_for",
    "is_supported",
    "language_for_extension",
    "supported_languages",
]
