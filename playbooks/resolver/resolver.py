"""Playbook resolver - matches playbooks to a task.

Deterministic weighted-additive scoring, computed independently per
playbook:

  Description containment  +10   task is a substring of the description
  Tag overlap              +5    per tag, substring in either direction
  Strategy overlap         +3    per strategy, substring in either direction
  Package match            +15   package name is a substring of the id
  Domain match             +20   domain-scope playbook whose id contains the domain
  Error-pattern match      +12   error pattern is a substring of the description
  Priority boost           +2 x priority, always

Text comparisons are case-insensitive; id comparisons are not.
Ties are broken by id (ascending) so rankings are reproducible.

Pure functions: no I/O, no logging.
"""

from typing import Optional, Sequence, Union

from playbooks.documents.schemas import Playbook, PlaybookScope
from playbooks.resolver.schemas import ResolveQuery, ScoredMatch

# Scoring weights
WEIGHT_DESCRIPTION = 10
WEIGHT_TAG = 5
WEIGHT_STRATEGY = 3
WEIGHT_PACKAGE = 15
WEIGHT_DOMAIN = 20
WEIGHT_ERROR_PATTERN = 12
PRIORITY_MULTIPLIER = 2

# Best score at or below this means "no match". Validated playbooks have
# priority >= 1, so only unvalidated input can reach it.
NO_MATCH_SCORE = 0


def _overlaps(text: str, needle: str) -> bool:
    """Bidirectional case-insensitive substring test."""
    text_lower = text.lower()
    needle_lower = needle.lower()
    return needle_lower in text_lower or text_lower in needle_lower


def score_playbook(playbook: Playbook, query: ResolveQuery) -> tuple[int, list[str]]:
    """Score one playbook against a query.

    Returns:
        (score, reasons) where reasons names every signal that fired
    """
    score = 0
    reasons: list[str] = []

    if query.task:
        task_lower = query.task.lower()

        if task_lower in playbook.description.lower():
            score += WEIGHT_DESCRIPTION
            reasons.append("description match")

        matching_tags = [tag for tag in playbook.tags if _overlaps(query.task, tag)]
        if matching_tags:
            score += len(matching_tags) * WEIGHT_TAG
            reasons.append(f"tag match: {', '.join(matching_tags)}")

        matching_strategies = [s for s in playbook.strategies if _overlaps(query.task, s)]
        if matching_strategies:
            score += len(matching_strategies) * WEIGHT_STRATEGY
            reasons.append(f"strategy match: {len(matching_strategies)}")

    if query.package_name and query.package_name in playbook.id:
        score += WEIGHT_PACKAGE
        reasons.append("package match")

    if query.domain and playbook.scope == PlaybookScope.DOMAIN and query.domain in playbook.id:
        score += WEIGHT_DOMAIN
        reasons.append("domain match")

    if query.error_pattern and query.error_pattern.lower() in playbook.description.lower():
        score += WEIGHT_ERROR_PATTERN
        reasons.append("error pattern match")

    # Higher priority = more specific playbook
    score += playbook.priority * PRIORITY_MULTIPLIER

    return score, reasons


def _to_match(playbook: Playbook, query: ResolveQuery) -> ScoredMatch:
    score, reasons = score_playbook(playbook, query)
    details = reasons + [f"priority: {playbook.priority}"]
    return ScoredMatch(
        playbook=playbook,
        score=score,
        reason=f"Score: {score} ({'; '.join(details)})",
    )


def _rank(playbooks: Sequence[Playbook], query: ResolveQuery) -> list[ScoredMatch]:
    matches = [_to_match(p, query) for p in playbooks]
    matches.sort(key=lambda m: (-m.score, m.playbook.id))
    return matches


def resolve(playbooks: Sequence[Playbook], query: ResolveQuery) -> Optional[ScoredMatch]:
    """Resolve the best playbook for a query.

    Returns:
        Highest-scoring match, or None if there are no playbooks or the
        best score is zero
    """
    if not playbooks:
        return None

    best = _rank(playbooks, query)[0]
    if best.score <= NO_MATCH_SCORE:
        return None
    return best


def resolve_layers(playbooks: Sequence[Playbook], query: ResolveQuery) -> list[ScoredMatch]:
    """Resolve every positively-scored playbook, best first (for layering)."""
    return [m for m in _rank(playbooks, query) if m.score > NO_MATCH_SCORE]


def filter_by_scope(
    playbooks: Sequence[Playbook],
    scope: Union[PlaybookScope, str],
) -> list[Playbook]:
    """Get playbooks by scope."""
    scope = PlaybookScope(scope)
    return [p for p in playbooks if p.scope == scope]


def filter_by_package(
    playbooks: Sequence[Playbook],
    package_name: Optional[str],
) -> list[Playbook]:
    """Get playbooks selected for a package (id containment, no scoring)."""
    if not package_name:
        return []
    return [p for p in playbooks if package_name in p.id]
