"""Playbook definitions.

Architecture:
- definitions/  - Bundled YAML playbooks (system, tasks, domains, policies, packages)
- schemas.py    - Pydantic models for playbooks
- registry.py   - PlaybookRegistry for loading definitions from disk
"""

from .schemas import (
    KnowledgeIntegration,
    Playbook,
    PlaybookCheck,
    PlaybookExample,
    PlaybookMetadata,
    PlaybookPolicy,
    PlaybookScope,
    PlaybookSummary,
)
from .registry import (
    PlaybookRegistry,
    get_playbook_registry,
    load_all_playbooks,
    load_playbook,
)

__all__ = [
    "KnowledgeIntegration",
    "Playbook",
    "PlaybookCheck",
    "PlaybookExample",
    "PlaybookMetadata",
    "PlaybookPolicy",
    "PlaybookScope",
    "PlaybookSummary",
    "PlaybookRegistry",
    "get_playbook_registry",
    "load_all_playbooks",
    "load_playbook",
]
