"""
Technology fingerprinting.
Evaluates a RuleSet against a page body or its response headers.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

from fingerprint.rules import DetectionRule, RuleKind, RuleSet
from crawler.logger import get_logger

logger = get_logger("fingerprint.matcher")

HeaderList = Sequence[Tuple[str, str]]


@dataclass(frozen=True)
class TechnologyRecord:
    category: str
    name: str

    def to_dict(self):
        return {"category": self.category, "name": self.name}

    @classmethod
    def from_dict(cls, data):
        # Older documents store the category under 'ttype'
        return cls(category=data.get("category", data.get("ttype")), name=data["name"])


def _rule_matches(rule: DetectionRule, units: Sequence[str]) -> bool:
    """True on the first pattern/unit hit; remaining tests are skipped."""
    if rule.kind is RuleKind.LITERAL:
        return any(pattern in unit for pattern in rule.patterns for unit in units)
    if rule.kind is RuleKind.REGEX:
        return any(regex.search(unit) for regex in rule.compiled for unit in units)
    return False


def _match_units(ruleset: RuleSet, units: Sequence[str], corpus_label: str) -> List[TechnologyRecord]:
    found = []
    seen = set()
    for rule in ruleset:
        if rule.kind is RuleKind.UNKNOWN:
            logger.warning(f"Skipping rule {rule.name!r} with unknown kind {rule.raw_kind!r}")
            continue
        record = TechnologyRecord(category=rule.category, name=rule.name)
        if record in seen:
            continue
        if _rule_matches(rule, units):
            logger.info(f"Found technology in {corpus_label}: {rule.category} / {rule.name}")
            if rule.parents:
                logger.debug(f"  parents of {rule.name}: {list(rule.parents)}")
            seen.add(record)
            found.append(record)
    return found


def match_body(ruleset: RuleSet, body: str) -> List[TechnologyRecord]:
    """Match every rule against the whole page body."""
    return _match_units(ruleset, (body or "",), "body")


def match_headers(ruleset: RuleSet, headers: HeaderList) -> List[TechnologyRecord]:
    """Match every rule against each response header value (names are ignored)."""
    values = tuple(value for _, value in headers if value is not None)
    return _match_units(ruleset, values, "headers")


def match(ruleset: RuleSet, corpus: Union[str, HeaderList]) -> List[TechnologyRecord]:
    """
    Return the deduplicated technologies detected in `corpus`, in order of
    first match. A body is a string; headers are (name, value) pairs.
    """
    if isinstance(corpus, str):
        return match_body(ruleset, corpus)
    return match_headers(ruleset, corpus)
