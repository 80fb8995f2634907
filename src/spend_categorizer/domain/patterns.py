"""Compiled rule patterns.

A rule's ``pattern_type`` is resolved once into one of three matcher
variants. Matchers are immutable, so a compiled one can be shared between
concurrent requests.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from uuid import UUID

from spend_categorizer.errors import ValidationError
from spend_categorizer.models import CategorizationRule, PatternType


@dataclass(frozen=True)
class ExactPattern:
    needle: str

    def matches(self, text: str) -> bool:
        return self.needle in text


@dataclass(frozen=True)
class KeywordPattern:
    keywords: tuple[str, ...]

    def matches(self, text: str) -> bool:
        return all(keyword in text for keyword in self.keywords)


@dataclass(frozen=True)
class RegexPattern:
    regex: re.Pattern[str]

    def matches(self, text: str) -> bool:
        return self.regex.search(text) is not None


CompiledPattern = ExactPattern | KeywordPattern | RegexPattern


def normalize_text(description: str, merchant: str | None = None) -> str:
    text = description.lower()
    if merchant:
        text += " " + merchant.lower()
    return text


def parse_pattern_type(value: str | PatternType) -> PatternType:
    if isinstance(value, PatternType):
        return value
    try:
        return PatternType(value)
    except ValueError:
        raise ValidationError(f"invalid pattern type: {value}") from None


def compile_pattern(pattern: str, pattern_type: PatternType) -> CompiledPattern:
    """Resolve a raw pattern into its matcher. Raises ``re.error`` for bad regexes."""
    if pattern_type is PatternType.EXACT:
        return ExactPattern(pattern.lower())
    if pattern_type is PatternType.KEYWORD:
        return KeywordPattern(tuple(pattern.lower().split()))
    return RegexPattern(re.compile(pattern, re.IGNORECASE))


def validate_pattern(pattern: str, pattern_type: str | PatternType) -> PatternType:
    resolved = parse_pattern_type(pattern_type)
    if resolved in (PatternType.EXACT, PatternType.KEYWORD):
        if not pattern:
            raise ValidationError("pattern cannot be empty")
    else:
        try:
            re.compile(pattern, re.IGNORECASE)
        except re.error as exc:
            raise ValidationError(f"invalid regex pattern: {exc}") from exc
    return resolved


class PatternCache:
    """Compiled matchers keyed by rule id.

    An entry is reused only while the rule's type and pattern text are the
    ones it was compiled from. ``None`` marks a pattern that failed to compile.
    """

    def __init__(self) -> None:
        self._entries: dict[UUID, tuple[PatternType, str, CompiledPattern | None]] = {}

    def get(self, rule: CategorizationRule) -> CompiledPattern | None:
        entry = self._entries.get(rule.id)
        if entry is not None and entry[0] is rule.pattern_type and entry[1] == rule.pattern:
            return entry[2]

        try:
            compiled: CompiledPattern | None = compile_pattern(rule.pattern, rule.pattern_type)
        except re.error:
            compiled = None
        self._entries[rule.id] = (rule.pattern_type, rule.pattern, compiled)
        return compiled

    def invalidate(self, rule_id: UUID) -> None:
        self._entries.pop(rule_id, None)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
