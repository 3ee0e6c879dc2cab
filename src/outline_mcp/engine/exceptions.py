"""Outline extraction exceptions.

None of these are fatal to the synchronization controller: it catches them
at the extraction boundary and publishes a partial outline instead.
"""

from __future__ import annotations


class ProviderUnavailableError(Exception):
    """
    Symbol provider could not produce symbols for a buffer.

    Raised by the built-in providers when the buffer cannot be parsed (syntax
    error, parser construction failure). The controller recovers by using an
    empty symbol list for that extraction.

    Attributes:
        uri: Buffer identity the provider was queried for
        language_id: Language identifier passed as the source-kind hint
        reason: Human-readable cause
    """

    def __init__(self, uri: str, language_id: str, reason: str):
        self.uri = uri
        self.language_id = language_id
        self.reason = reason
        super().__init__(f"Symbol provider unavailable for '{uri}' ({language_id}): {reason}")

    def __repr__(self) -> str:
        """Developer-friendly representation."""
        return (
            f"ProviderUnavailableError(uri={self.uri!r}, "
            f"language_id={self.language_id!r}, reason={self.reason!r})"
        )


class UnsupportedSourceError(ProviderUnavailableError):
    """
    Provider has no parser for the requested language.

    The controller checks its language allowlist before calling a provider, so
    this only surfaces when the allowlist is wider than what a provider can
    parse.
    """

    def __init__(self, uri: str, language_id: str):
        super().__init__(uri, language_id, f"unsupported language '{language_id}'")

    def __repr__(self) -> str:
        """Developer-friendly representation."""
        return f"UnsupportedSourceError(uri={self.uri!r}, language_id={self.language_id!r})"


__all__ = ["ProviderUnavailableError", "UnsupportedSourceError"]
