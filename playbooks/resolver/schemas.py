"""Schemas for playbook resolution."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from playbooks.documents.schemas import Playbook


class ResolveQuery(BaseModel):
    """What the caller wants a playbook for.

    At least one discriminator must be given; an empty query is a caller
    error, not an empty result.
    """

    task: Optional[str] = Field(
        default=None,
        description="Free-text task description (e.g., 'fix broken imports')",
    )
    package_name: Optional[str] = Field(
        default=None,
        description="Target package, matched against playbook ids",
    )
    domain: Optional[str] = Field(
        default=None,
        description="Domain, matched against ids of domain-scope playbooks",
    )
    error_pattern: Optional[str] = Field(
        default=None,
        description="Error signature, matched against playbook descriptions",
    )

    @model_validator(mode="after")
    def _require_discriminator(self) -> "ResolveQuery":
        if not (self.task or self.package_name or self.domain or self.error_pattern):
            raise ValueError(
                "Provide at least one of: task, package_name, domain, or error_pattern"
            )
        return self


class ScoredMatch(BaseModel):
    """A playbook with its score for one query. Never cached."""

    playbook: Playbook
    score: int = Field(..., ge=0)
    reason: str = Field(..., description="Human-readable breakdown of the score")
