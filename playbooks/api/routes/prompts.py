"""Prompt API routes.

Builds a layered agent prompt for a task: resolve the main playbook,
fetch knowledge context when the playbook enables it, compose.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from playbooks.composer.pipeline import build_prompt_for_task
from playbooks.composer.schemas import PromptLayer
from playbooks.documents.registry import get_playbook_registry
from playbooks.knowledge.capability import get_knowledge_capability


router = APIRouter(prefix="/prompts", tags=["prompts"])


class BuildPromptRequest(BaseModel):
    task: str = Field(..., min_length=1, description="Task to brief the agent for")
    package_name: Optional[str] = None
    domain: Optional[str] = None
    error_pattern: Optional[str] = None
    context: dict[str, str] = Field(
        default_factory=dict,
        description="Placeholder values for knowledge query templates",
    )
    skip_knowledge: bool = Field(default=False, description="Do not query for context")
    show_layers: bool = Field(default=False, description="Include individual layers")


class BuildPromptResponse(BaseModel):
    playbook_id: Optional[str]
    full_prompt: str
    token_count: int
    layers: Optional[dict[PromptLayer, str]] = None


# Sync handler: knowledge queries block, FastAPI runs this in its threadpool
@router.post("/build", response_model=BuildPromptResponse)
def build_prompt(request: BuildPromptRequest) -> BuildPromptResponse:
    """Build a layered prompt for a task."""
    registry = get_playbook_registry()

    built = build_prompt_for_task(
        request.task,
        registry.list_all(),
        package_name=request.package_name,
        domain=request.domain,
        error_pattern=request.error_pattern,
        knowledge_context=request.context,
        capability=get_knowledge_capability(),
        skip_knowledge=request.skip_knowledge,
    )
    if built is None:
        raise HTTPException(
            status_code=404,
            detail=f"No playbook matched task: {request.task}",
        )

    return BuildPromptResponse(
        playbook_id=built.playbook_id,
        full_prompt=built.full_prompt,
        token_count=built.token_count,
        layers=built.layers if request.show_layers else None,
    )
