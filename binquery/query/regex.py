"""
Pattern construction for the server's restricted regex dialect.

The dialect is POSIX basic regular expressions: only ``\\ . * $ [ ^`` are
special, so only those are escaped. Parentheses, braces, ``+``, ``?`` and
``|`` are literals there and pass through untouched.
"""

from __future__ import annotations

from typing import FrozenSet

from .qualifier import FilterOperation


SPECIAL_CHARACTERS: FrozenSet[str] = frozenset("\\.*$[^")


class RegexPatternBuilder:
    """Builds anchored BRE patterns for string qualifiers."""

    @staticmethod
    def escape(text: str) -> str:
        """Prefix every BRE special character in ``text`` with a backslash."""
        return "".join(
            "\\" + char if char in SPECIAL_CHARACTERS else char
            for char in text
        )

    @classmethod
    def pattern_for(cls, operation: FilterOperation, text: str) -> str:
        """
        Build the pattern matching ``text`` under ``operation``.

        Args:
            operation: One of START_WITH, ENDS_WITH, EQ, CONTAINING
            text: Literal text to match

        Returns:
            The anchored, escaped pattern. Operations other than the first
            three yield the unanchored (substring) pattern.
        """
        escaped = cls.escape(text)
        if operation == FilterOperation.START_WITH:
            return "^" + escaped
        if operation == FilterOperation.ENDS_WITH:
            return escaped + "$"
        if operation == FilterOperation.EQ:
            return "^" + escaped + "$"
        return escaped

    @classmethod
    def starts_with(cls, text: str) -> str:
        return cls.pattern_for(FilterOperation.START_WITH, text)

    @classmethod
    def ends_with(cls, text: str) -> str:
        return cls.pattern_for(FilterOperation.ENDS_WITH, text)

    @classmethod
    def containing(cls, text: str) -> str:
        return cls.pattern_for(FilterOperation.CONTAINING, text)

    @classmethod
    def string_equals(cls, text: str) -> str:
        return cls.pattern_for(FilterOperation.EQ, text)


escape = RegexPatternBuilder.escape
pattern_for = RegexPatternBuilder.pattern_for
