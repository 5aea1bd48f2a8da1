"""Rule compilation and relevance classification (core domain)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List

from core.config import ClassifierConfig
from core.models import Candidate, SourceKind

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rule:
    """Compiled keyword rule used by the classifier."""

    name: str
    keywords: List[str]


@dataclass(frozen=True)
class RuleMatch:
    """A single rule match with a human-readable reason."""

    rule_name: str
    reason: str


def build_rules(rules_config: Iterable[dict]) -> List[Rule]:
    """Normalize rule configs.

    Keywords are lower-cased once here so per-title matching is a plain
    substring test against the lower-cased title.
    """

    compiled: List[Rule] = []
    for rule in rules_config:
        if not rule.get("enabled", True):
            continue
        keywords = [k.lower() for k in rule.get("keywords", []) if k and k.strip()]
        compiled.append(Rule(name=rule["name"], keywords=keywords))
    return compiled


def match_rules(text: str, rules: Iterable[Rule]) -> List[RuleMatch]:
    """Return all rule matches for the given text.

    Matching is a case-insensitive substring test: no tokenization and no
    stemming, so "dub" also hits "dubbed".
    """

    lowered = text.lower()
    matches: List[RuleMatch] = []

    for rule in rules:
        keyword_hits = [k for k in rule.keywords if k in lowered]
        if not keyword_hits:
            continue
        reason = f"keyword(s): {', '.join(sorted(set(keyword_hits)))}"
        matches.append(RuleMatch(rule_name=rule.name, reason=reason))

    return matches


class Classifier:
    """Decides which candidates are worth announcing.

    Announcements are already scoped by the feed query and always pass.
    Discussion and dub posts must hit their own rule set.
    """

    def __init__(self, discussion_rules: Iterable[Rule], dub_rules: Iterable[Rule]) -> None:
        self._rules = {
            SourceKind.DISCUSSION: list(discussion_rules),
            SourceKind.DUB: list(dub_rules),
        }

    @classmethod
    def from_config(cls, config: ClassifierConfig) -> "Classifier":
        discussion_rules = build_rules(
            [
                {"name": "discussion keywords", "keywords": config.discussion_keywords},
                {"name": "monitored series", "keywords": config.monitored_series},
            ]
        )
        dub_rules = build_rules([{"name": "dub keywords", "keywords": config.dub_keywords}])
        return cls(discussion_rules, dub_rules)

    def is_relevant(self, candidate: Candidate) -> bool:
        if candidate.kind is SourceKind.ANNOUNCEMENT:
            return True
        matches = match_rules(candidate.title, self._rules[candidate.kind])
        if matches:
            LOGGER.debug(
                "Relevant %s post %r (%s)",
                candidate.kind.value,
                candidate.title,
                "; ".join(match.reason for match in matches),
            )
        return bool(matches)

    def filter(self, candidates: Iterable[Candidate]) -> List[Candidate]:
        """Keep relevant candidates, preserving input order."""

        return [candidate for candidate in candidates if self.is_relevant(candidate)]
