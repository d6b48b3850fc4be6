"""
Validation module for architecture graph sanitization.
"""

from archforge.validation.sanitizer import (
    ACTOR_LEXICON,
    SanitizationWarning,
    SanitizeResult,
    WarningKind,
    is_disallowed_actor,
    sanitize_graph,
    sanitize_payload,
)

__all__ = [
    "ACTOR_LEXICON",
    "SanitizationWarning",
    "SanitizeResult",
    "WarningKind",
    "is_disallowed_actor",
    "sanitize_graph",
    "sanitize_payload",
]
