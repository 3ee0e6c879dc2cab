"""Outline engine configuration from environment variables.

Environment Variables:
    OUTLINE_LANGUAGE_POLICY: "minimal" or "extended" (default: extended)
    OUTLINE_MAX_SYMBOL_DEPTH: Maximum symbol nesting kept by the classifier
        (default: 32, clamped to 1-256)
    OUTLINE_DROPPED_CHILDREN: What happens to children of dropped symbols,
        "discard" or "promote" (default: discard)

Invalid values fall back to the defaults with a warning.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from .languages import LanguagePolicy

logger = logging.getLogger(__name__)

DEFAULT_MAX_SYMBOL_DEPTH = 32
MAX_SYMBOL_DEPTH_LIMIT = 256

E = TypeVar("E", bound=Enum)


class DroppedChildrenPolicy(str, Enum):
    """Handling of children whose parent symbol kind is not recognized."""

    DISCARD = "discard"
    """Drop the whole subtree."""

    PROMOTE = "promote"
    """Lift recognized children to the dropped parent's level."""


@dataclass(frozen=True)
class OutlineConfig:
    """Settings shared by the classifier and the synchronization controller."""

    language_policy: LanguagePolicy = LanguagePolicy.EXTENDED
    max_symbol_depth: int = DEFAULT_MAX_SYMBOL_DEPTH
    dropped_children: DroppedChildrenPolicy = DroppedChildrenPolicy.DISCARD

    @classmethod
    def from_env(cls) -> OutlineConfig:
        """Build configuration from OUTLINE_* environment variables."""
        return cls(
            language_policy=_read_enum(
                "OUTLINE_LANGUAGE_POLICY", LanguagePolicy, LanguagePolicy.EXTENDED
            ),
            max_symbol_depth=get_max_symbol_depth(),
            dropped_children=_read_enum(
                "OUTLINE_DROPPED_CHILDREN", DroppedChildrenPolicy, DroppedChildrenPolicy.DISCARD
            ),
        )


def get_max_symbol_depth() -> int:
    """Get maximum symbol nesting depth from environment.

    Reads OUTLINE_MAX_SYMBOL_DEPTH environment variable.
    Default: 32, Valid range: 1-256 (clamped automatically)

    Returns:
        Maximum symbol depth (1-256)
    """
    try:
        depth = int(os.getenv("OUTLINE_MAX_SYMBOL_DEPTH", str(DEFAULT_MAX_SYMBOL_DEPTH)))
        return max(1, min(MAX_SYMBOL_DEPTH_LIMIT, depth))
    except ValueError:
        return DEFAULT_MAX_SYMBOL_DEPTH


def _read_enum(name: str, enum_type: type[E], default: E) -> E:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    try:
        return enum_type(raw)
    except ValueError:
        valid = ", ".join(str(member.value) for member in enum_type)
        logger.warning(f"Invalid {name} '{raw}'. Valid values: {valid}. Using {default.value}.")
        return default


__all__ = ["DroppedChildrenPolicy", "OutlineConfig", "get_max_symbol_depth"]
