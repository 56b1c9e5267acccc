"""Classify log lines into tags using an ordered rule set."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from procwatch.errors import RuleConfigError

# Built-in fallbacks, checked in this order only when no rule matched.
# Plain substring tests; "\bERROR\b"-style regexes were too broad.
FALLBACK_TAGS: tuple[tuple[str, str], ...] = (
    ("ERROR", "Error"),
    ("Exception", "Exception"),
)


@dataclass(frozen=True)
class ExtractionRule:
    tag_name: str
    pattern: re.Pattern[str]

    @classmethod
    def from_strings(cls, tag_name: str, regex: str) -> ExtractionRule:
        try:
            return cls(tag_name, re.compile(regex))
        except re.error as e:
            raise RuleConfigError(f"Invalid regex for tag {tag_name!r}: {regex!r} ({e})") from e


def _first_of(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    raise RuleConfigError(f"Extraction rule is missing {keys[0]!r}: {dict(raw)!r}")


def compile_rules(raw_rules: Iterable[Mapping[str, Any]]) -> list[ExtractionRule]:
    """Compile ``{"tagName": ..., "regex": ...}`` entries, keeping their order.

    Raises RuleConfigError on the first malformed entry so a bad config
    halts startup instead of failing on every line later.
    """
    rules: list[ExtractionRule] = []
    for raw in raw_rules:
        if not isinstance(raw, Mapping):
            raise RuleConfigError(f"Extraction rule must be an object, got {type(raw).__name__}")
        tag_name = _first_of(raw, "tagName", "tag_name")
        regex = _first_of(raw, "regex", "pattern")
        if not isinstance(tag_name, str) or not tag_name:
            raise RuleConfigError(f"Extraction rule has an empty tag name: {dict(raw)!r}")
        if not isinstance(regex, str):
            raise RuleConfigError(f"Regex for tag {tag_name!r} must be a string")
        rules.append(ExtractionRule.from_strings(tag_name, regex))
    return rules


def classify(line: str, rules: Sequence[ExtractionRule]) -> str | None:
    """Return the tag for *line*, or None if it is not interesting.

    The first rule whose pattern occurs anywhere in the line wins. Only if
    no rule matches are the ERROR / Exception fallbacks consulted.
    """
    for rule in rules:
        if rule.pattern.search(line):
            return rule.tag_name
    for needle, tag in FALLBACK_TAGS:
        if needle in line:
            return tag
    return None
