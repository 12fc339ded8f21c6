"""Playbook resolution: scoring and ranking playbooks against a query."""

from .schemas import ResolveQuery, ScoredMatch
from .resolver import (
    filter_by_package,
    filter_by_scope,
    resolve,
    resolve_layers,
    score_playbook,
)

__all__ = [
    "ResolveQuery",
    "ScoredMatch",
    "filter_by_package",
    "filter_by_scope",
    "resolve",
    "resolve_layers",
    "score_playbook",
]
