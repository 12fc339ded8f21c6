"""Schemas for the knowledge retrieval boundary.

Retrieval services speak a loose JSON dialect; chunk fields are accepted
under either the canonical names or the short ones (path, score,
contextText) that retrieval CLIs emit.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field


class KnowledgeIntent(str, Enum):
    """What kind of retrieval the query asks for."""

    SUMMARY = "summary"
    SIMILAR = "similar"
    NAV = "nav"
    SEARCH = "search"


class KnowledgeFilters(BaseModel):
    paths: Optional[list[str]] = None
    tags: Optional[list[str]] = None
    mime_types: Optional[list[str]] = None


class KnowledgeRequest(BaseModel):
    """One retrieval query sent to a knowledge capability."""

    domain_tag: str = Field(default="playbooks", description="Product or domain issuing the query")
    intent: KnowledgeIntent = KnowledgeIntent.SEARCH
    scope_id: str = Field(default="default", description="Index scope to search")
    text: str = Field(..., description="Interpolated query text")
    limit: Optional[int] = Field(default=None, ge=1, description="Maximum chunks to return")
    filters: Optional[KnowledgeFilters] = None


class KnowledgeChunk(BaseModel):
    """One retrieved text fragment."""

    text: str
    source_path: str = Field(
        ...,
        validation_alias=AliasChoices("source_path", "sourcePath", "path"),
    )
    relevance_score: float = Field(
        default=0.0,
        validation_alias=AliasChoices("relevance_score", "relevanceScore", "score"),
    )
    metadata: Optional[dict[str, Any]] = None


class KnowledgeResult(BaseModel):
    """Response of one retrieval query."""

    chunks: list[KnowledgeChunk] = Field(default_factory=list)
    merged_context_text: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "merged_context_text", "mergedContextText", "contextText"
        ),
    )


class AugmentationResult(BaseModel):
    """Merged outcome of all knowledge queries for one playbook.

    A failed augmentation is a normal result, never an exception: the
    caller composes without context.
    """

    success: bool
    context_text: str = ""
    chunks: list[KnowledgeChunk] = Field(default_factory=list)
    error: Optional[str] = None
    truncated: bool = False
    queries: list[str] = Field(
        default_factory=list, description="Interpolated queries, in template order"
    )
