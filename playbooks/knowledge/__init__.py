"""Knowledge augmentation: retrieved context for the prompt's context layer.

Architecture:
- schemas.py     - Request/result models at the retrieval boundary
- capability.py  - KnowledgeCapability protocol, command-line and HTTP implementations
- augmenter.py   - KnowledgeAugmenter (interpolate, fan out, merge, truncate)
"""

from .schemas import (
    AugmentationResult,
    KnowledgeChunk,
    KnowledgeFilters,
    KnowledgeIntent,
    KnowledgeRequest,
    KnowledgeResult,
)
from .capability import (
    CommandLineKnowledge,
    HttpKnowledge,
    KnowledgeCapability,
    KnowledgeQueryError,
    close_knowledge_capability,
    get_knowledge_capability,
)
from .augmenter import KnowledgeAugmenter, augment_context, interpolate_query

__all__ = [
    "AugmentationResult",
    "KnowledgeChunk",
    "KnowledgeFilters",
    "KnowledgeIntent",
    "KnowledgeRequest",
    "KnowledgeResult",
    "CommandLineKnowledge",
    "HttpKnowledge",
    "KnowledgeCapability",
    "KnowledgeQueryError",
    "close_knowledge_capability",
    "get_knowledge_capability",
    "KnowledgeAugmenter",
    "augment_context",
    "interpolate_query",
]
