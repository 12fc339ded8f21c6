"""Playbook API routes.

Listing and lookup of playbook definitions, plus resolution of the best
playbook (or ranked playbook layers) for a query.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from playbooks.documents.registry import get_playbook_registry
from playbooks.documents.schemas import Playbook, PlaybookScope, PlaybookSummary
from playbooks.resolver.resolver import resolve, resolve_layers
from playbooks.resolver.schemas import ResolveQuery, ScoredMatch

router = APIRouter(prefix="/playbooks", tags=["playbooks"])


class ResolveResponse(BaseModel):
    resolved: Optional[ScoredMatch] = None


@router.get("", response_model=list[PlaybookSummary])
async def list_playbooks(
    scope: Optional[PlaybookScope] = Query(None, description="Filter by scope"),
) -> list[PlaybookSummary]:
    """List all playbooks, most specific first."""
    registry = get_playbook_registry()
    return registry.list_summaries(scope=scope)


@router.get("/count")
async def get_playbook_count() -> dict[str, int]:
    """Get total number of playbooks."""
    registry = get_playbook_registry()
    return {"count": registry.count()}


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_playbook(query: ResolveQuery) -> ResolveResponse:
    """Resolve the best playbook for a task, package, domain or error."""
    registry = get_playbook_registry()
    return ResolveResponse(resolved=resolve(registry.list_all(), query))


@router.post("/resolve/layers", response_model=list[ScoredMatch])
async def resolve_playbook_layers(query: ResolveQuery) -> list[ScoredMatch]:
    """Resolve every matching playbook, best first."""
    registry = get_playbook_registry()
    return resolve_layers(registry.list_all(), query)


@router.get("/{playbook_id}", response_model=Playbook)
async def get_playbook(playbook_id: str) -> Playbook:
    """Get full playbook definition by id."""
    registry = get_playbook_registry()
    playbook = registry.get(playbook_id)
    if playbook is None:
        raise HTTPException(
            status_code=404,
            detail=f"Playbook not found: {playbook_id}",
        )
    return playbook
