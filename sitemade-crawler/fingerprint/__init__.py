from fingerprint.rules import DetectionRule, RuleKind, RuleSet, RuleSources, load_rule_sources
from fingerprint.matcher import TechnologyRecord, match, match_body, match_headers
from fingerprint.language import detect_language
