"""
Detection rule sets for technology fingerprinting.

A rule file is a YAML list of rules:

    - kind: literal            # or: regex
      category: CMS
      name: WordPress
      patterns: ["wp-content/", "wp-includes/"]
      parents: [PHP]

Older rule files use `tag_type` ("String" / "StringRegex"), `tag_name` and
`values`; both spellings are accepted. The rule kind is decided here, once,
so matching never compares kind strings.
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional, Pattern, Tuple, Union

import yaml

from crawler.errors import ConfigError
from crawler.logger import get_logger

logger = get_logger("fingerprint.rules")


class RuleKind(Enum):
    LITERAL = "literal"
    REGEX = "regex"
    UNKNOWN = "unknown"


_KIND_ALIASES = {
    "literal": RuleKind.LITERAL,
    "string": RuleKind.LITERAL,
    "regex": RuleKind.REGEX,
    "stringregex": RuleKind.REGEX,
}

_FIELD_ALIASES = {
    "kind": ("kind", "tag_type"),
    "category": ("category", "tag_name"),
    "patterns": ("patterns", "values"),
}


@dataclass(frozen=True)
class DetectionRule:
    """
    A named rule. Parents are lineage only and never affect matching.
    `compiled` is populated for REGEX rules, in the same order as `patterns`.
    """
    kind: RuleKind
    category: str
    name: str
    patterns: Tuple[str, ...]
    parents: Tuple[str, ...] = ()
    compiled: Tuple[Pattern, ...] = ()
    raw_kind: Optional[str] = None


@dataclass(frozen=True)
class RuleSet:
    """Immutable, ordered collection of detection rules."""
    name: str
    rules: Tuple[DetectionRule, ...]

    def __len__(self):
        return len(self.rules)

    def __iter__(self):
        return iter(self.rules)

    @classmethod
    def load(cls, source: Union[str, Path, Iterable[Any], Any], name: Optional[str] = None) -> "RuleSet":
        """
        Load a rule set from a YAML path, an open stream, or an already
        parsed list of rule mappings. Raises ConfigError on malformed input.
        """
        entries = _read_source(source)
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            raise ConfigError(f"Rule source {_describe(source)} must be a list of rules")

        rules = tuple(_build_rule(entry, index, source) for index, entry in enumerate(entries))
        ruleset = cls(name=name or _describe(source), rules=rules)
        logger.info(f"Loaded {len(rules)} rules from {ruleset.name}")
        return ruleset


@dataclass(frozen=True)
class RuleSources:
    """The two named rule lists used by a crawl."""
    body_tags: RuleSet
    headers_tags: RuleSet


def load_rule_sources(body_path, headers_path) -> RuleSources:
    """Load `body_tags` and `headers_tags` once at process start."""
    return RuleSources(
        body_tags=RuleSet.load(body_path, name="body_tags"),
        headers_tags=RuleSet.load(headers_path, name="headers_tags"),
    )


def _describe(source) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", "<rules>")


def _read_source(source):
    if isinstance(source, (str, Path)):
        path = Path(source)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return _parse_yaml(fh, path)
        except OSError as e:
            raise ConfigError(f"Cannot read rule file {path}: {e}") from e
    if hasattr(source, "read"):
        return _parse_yaml(source, _describe(source))
    return list(source)


def _parse_yaml(stream, label):
    try:
        return yaml.safe_load(stream)
    except yaml.YAMLError as e:
        raise ConfigError(f"Rule file {label} is not valid YAML: {e}") from e


def _field(entry, key, default=None):
    for alias in _FIELD_ALIASES.get(key, (key,)):
        if alias in entry:
            return entry[alias]
    return default


def _parent_names(parents, where) -> Tuple[str, ...]:
    if parents is None:
        return ()
    if not isinstance(parents, list):
        raise ConfigError(f"{where}: 'parents' must be a list")
    names = []
    for parent in parents:
        if isinstance(parent, str):
            names.append(parent)
        elif isinstance(parent, dict) and parent.get("name"):
            names.append(str(parent["name"]))
        else:
            raise ConfigError(f"{where}: parent {parent!r} has no name")
    return tuple(names)


def _build_rule(entry, index, source) -> DetectionRule:
    where = f"{_describe(source)} rule #{index}"
    if not isinstance(entry, dict):
        raise ConfigError(f"{where}: expected a mapping, got {type(entry).__name__}")

    name = entry.get("name")
    category = _field(entry, "category")
    if not name or not category:
        raise ConfigError(f"{where}: 'name' and 'category' are required")

    patterns = _field(entry, "patterns", [])
    if isinstance(patterns, str):
        patterns = [patterns]
    if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
        raise ConfigError(f"{where} ({name}): 'patterns' must be a list of strings")

    raw_kind = str(_field(entry, "kind", ""))
    kind = _KIND_ALIASES.get(raw_kind.strip().lower(), RuleKind.UNKNOWN)
    if kind is RuleKind.UNKNOWN:
        # Kept for forward compatibility; the matcher skips it.
        logger.warning(f"{where} ({name}): unknown rule kind {raw_kind!r}, rule will be ignored")

    compiled = ()
    if kind is RuleKind.REGEX:
        try:
            compiled = tuple(re.compile(p) for p in patterns)
        except re.error as e:
            raise ConfigError(f"{where} ({name}): invalid regex: {e}") from e

    return DetectionRule(
        kind=kind,
        category=str(category),
        name=str(name),
        patterns=tuple(patterns),
        parents=_parent_names(entry.get("parents"), where),
        compiled=compiled,
        raw_kind=raw_kind,
    )
