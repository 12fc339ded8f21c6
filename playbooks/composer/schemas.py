"""Pydantic schemas for prompt composition."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from playbooks.documents.schemas import Playbook


class PromptLayer(str, Enum):
    """The six prompt sections, declared in assembly order."""

    SYSTEM_DIRECTIVES = "system-directives"
    POLICIES = "policies"
    PACKAGE_INSTRUCTIONS = "package-instructions"
    DOMAIN_STRATEGIES = "domain-strategies"
    TASK_PLAYBOOK = "task-playbook"
    CONTEXT = "context"


LAYER_ORDER: tuple[PromptLayer, ...] = tuple(PromptLayer)


class SupportingPlaybooks(BaseModel):
    """Playbooks that feed the layers around the main playbook."""

    system: list[Playbook] = Field(default_factory=list)
    package: list[Playbook] = Field(
        default_factory=list,
        description="Playbooks selected for the active package (id containment)",
    )
    domain: list[Playbook] = Field(default_factory=list)


class BuiltPrompt(BaseModel):
    """Result of one composition call. Disposable."""

    playbook_id: Optional[str] = Field(default=None, description="Main playbook id")
    layers: dict[PromptLayer, str] = Field(
        ..., description="Text of every layer, empty string when omitted"
    )
    full_prompt: str = Field(..., description="Non-empty layers joined in order")
    token_count: int = Field(..., ge=0, description="ceil(len(full_prompt) / 4)")
