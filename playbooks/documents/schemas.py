"""Playbook definition schemas.

Pure instructional definitions - NO resolution or composition logic.
These schemas define what a playbook IS; the resolver decides when it
applies and the composer decides how it is rendered.

Definitions are written in YAML. Keys may be snake_case or the camelCase
spelling used by older playbook files (allowWrite, maxContextTokens,
expectedSteps, mindIntegration, ...).
"""

from enum import Enum
from typing import Any, Optional

from pydantic import (
    AliasChoices,
    AliasGenerator,
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel


class DefinitionModel(BaseModel):
    """Base model accepting both snake_case and camelCase keys on input."""

    model_config = ConfigDict(
        alias_generator=AliasGenerator(validation_alias=to_camel),
        populate_by_name=True,
        frozen=True,
    )


class PlaybookScope(str, Enum):
    """Which composition layer a playbook feeds."""

    SYSTEM = "system"
    PACKAGE = "package"
    DOMAIN = "domain"
    TASK = "task"
    POLICY = "policy"


class PlaybookCheck(DefinitionModel):
    """A validation check the agent must satisfy."""

    id: str = Field(..., description="Check identifier (e.g., 'no-broken-imports')")
    description: str = Field(..., description="What the check verifies")


class PlaybookPolicy(DefinitionModel):
    """Behavioral restrictions for the agent.

    Defaults are read-only: a playbook has to opt in to writes and deletes.
    """

    allow_write: bool = Field(default=False, description="Agent may modify files")
    allow_delete: bool = Field(default=False, description="Agent may delete files")
    restricted_paths: list[str] = Field(
        default_factory=list,
        description="Path globs the agent must not touch (e.g., '**/.env')",
    )
    forbidden_actions: list[str] = Field(
        default_factory=list,
        description="Free-text actions the agent must never take",
    )


class KnowledgeIntegration(DefinitionModel):
    """Retrieval configuration for the context layer.

    Query templates may contain {placeholder} tokens that are filled from
    the caller's context mapping before dispatch.
    """

    enabled: bool = Field(default=False)
    query_templates: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("query_templates", "queryTemplates", "queries"),
        description="Retrieval queries, may contain {placeholder} tokens",
    )
    max_context_tokens: int = Field(
        default=2000,
        ge=1,
        description="Budget for merged context (1 token ~ 4 characters)",
    )


class PlaybookExample(DefinitionModel):
    """A worked example: a task and the steps the agent should take."""

    task: str
    expected_steps: list[str] = Field(default_factory=list)


class PlaybookMetadata(DefinitionModel):
    author: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    last_updated: Optional[str] = None


class Playbook(DefinitionModel):
    """A declarative instructional unit for an AI coding agent.

    Playbooks are loaded once per invocation and never mutated; the model
    is frozen so resolver and composer can share instances freely.
    """

    # Identity
    id: str = Field(
        ...,
        min_length=1,
        description="Unique identifier (e.g., 'task.fix-imports')",
        examples=["task.fix-imports", "domain.refactoring"],
    )
    version: str = Field(default="1.0.0")
    scope: PlaybookScope = Field(..., description="Composition layer this playbook feeds")
    priority: int = Field(
        ...,
        ge=1,
        le=5,
        description="Specificity, 1 (generic) to 5 (most specific)",
    )
    metadata: PlaybookMetadata = Field(default_factory=PlaybookMetadata)

    # Content
    description: str = Field(..., description="What the playbook is for")
    strategies: list[str] = Field(default_factory=list)
    checks: list[PlaybookCheck] = Field(default_factory=list)
    policies: PlaybookPolicy = Field(default_factory=PlaybookPolicy)
    knowledge_integration: KnowledgeIntegration = Field(
        default_factory=KnowledgeIntegration,
        validation_alias=AliasChoices(
            "knowledge_integration", "knowledgeIntegration", "mindIntegration"
        ),
    )
    examples: list[PlaybookExample] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _fold_top_level_tags(cls, data: Any) -> Any:
        # Some definitions declare tags at the top level instead of under metadata
        if isinstance(data, dict) and "tags" in data:
            data = dict(data)
            metadata = dict(data.get("metadata") or {})
            metadata.setdefault("tags", data.pop("tags"))
            data["metadata"] = metadata
        return data

    @property
    def tags(self) -> list[str]:
        return self.metadata.tags


class PlaybookSummary(BaseModel):
    """Lightweight registry entry for listings."""

    id: str
    scope: PlaybookScope
    priority: int
    tags: list[str] = Field(default_factory=list)
    file_path: Optional[str] = Field(
        default=None, description="Definition file the playbook was loaded from"
    )
