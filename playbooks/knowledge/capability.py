"""Knowledge capability abstraction.

A capability answers one retrieval query. Two implementations ship here:

- CommandLineKnowledge: runs a retrieval CLI and parses its JSON output.
  This is the fallback when no capability is injected.
- HttpKnowledge: POSTs the request to a retrieval service.

Capabilities report failure by raising KnowledgeQueryError. Retries and
timeouts belong to the capability, not to the augmenter.
"""

import json
import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import Optional, Protocol, Sequence

import httpx
from pydantic import ValidationError

from playbooks.knowledge.schemas import KnowledgeChunk, KnowledgeRequest, KnowledgeResult

logger = logging.getLogger(__name__)

DEFAULT_KNOWLEDGE_COMMAND = "pnpm kb mind rag-query"
KNOWLEDGE_COMMAND = os.environ.get("PLAYBOOKS_KNOWLEDGE_COMMAND", DEFAULT_KNOWLEDGE_COMMAND)
KNOWLEDGE_TIMEOUT = float(os.environ.get("PLAYBOOKS_KNOWLEDGE_TIMEOUT", "60"))
KNOWLEDGE_URL = os.environ.get("PLAYBOOKS_KNOWLEDGE_URL", "")


class KnowledgeQueryError(Exception):
    """A single knowledge query failed."""


class KnowledgeCapability(Protocol):
    """Protocol for knowledge retrieval implementations."""

    def query(self, request: KnowledgeRequest) -> KnowledgeResult: ...


def format_chunks(chunks: Sequence[KnowledgeChunk]) -> str:
    """Render chunks as context text, each under its source path."""
    return "\n\n".join(f"// {chunk.source_path}\n{chunk.text}" for chunk in chunks)


class CommandLineKnowledge:
    """Retrieval through an external command.

    The command receives the query as `--text <query> --agent --mode instant`
    and must print a JSON object on stdout:

        {"results": {"chunks": [{"text": ..., "path": ..., "score": ...}]}}
        {"error": {"message": ...}}
    """

    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        cwd: Optional[Path] = None,
        timeout: float = KNOWLEDGE_TIMEOUT,
    ):
        self.command = list(command) if command else shlex.split(KNOWLEDGE_COMMAND)
        self.cwd = cwd
        self.timeout = timeout

    def query(self, request: KnowledgeRequest) -> KnowledgeResult:
        args = [*self.command, "--text", request.text, "--agent", "--mode", "instant"]

        try:
            completed = subprocess.run(
                args,
                cwd=str(self.cwd) if self.cwd else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise KnowledgeQueryError(f"Knowledge command not found: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise KnowledgeQueryError(f"Knowledge command timed out after {self.timeout}s") from e

        if completed.returncode != 0:
            raise KnowledgeQueryError(
                f"Knowledge command exited with {completed.returncode}: {completed.stderr.strip()}"
            )

        try:
            response = json.loads(completed.stdout)
        except json.JSONDecodeError as e:
            raise KnowledgeQueryError(f"Failed to parse knowledge response: {e}") from e

        if not isinstance(response, dict):
            raise KnowledgeQueryError("Failed to parse knowledge response: expected a JSON object")

        if response.get("error"):
            error = response["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise KnowledgeQueryError(f"Knowledge query failed: {message}")

        raw_chunks = (response.get("results") or {}).get("chunks") or []
        try:
            chunks = [KnowledgeChunk.model_validate(c) for c in raw_chunks]
        except ValidationError as e:
            raise KnowledgeQueryError(f"Invalid chunk in knowledge response: {e}") from e

        return KnowledgeResult(chunks=chunks, merged_context_text=format_chunks(chunks))


class HttpKnowledge:
    """Retrieval through an HTTP service exposing POST /query."""

    def __init__(self, base_url: str, timeout: float = KNOWLEDGE_TIMEOUT, client: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(connect=10.0, read=timeout, write=10.0, pool=10.0),
        )

    def query(self, request: KnowledgeRequest) -> KnowledgeResult:
        try:
            response = self.client.post(
                f"{self.base_url}/query",
                json=request.model_dump(mode="json", exclude_none=True),
            )
            response.raise_for_status()
            return KnowledgeResult.model_validate(response.json())
        except httpx.HTTPError as e:
            raise KnowledgeQueryError(f"Knowledge service request failed: {e}") from e
        except ValueError as e:  # JSON decode and pydantic validation errors
            raise KnowledgeQueryError(f"Failed to parse knowledge response: {e}") from e

    def close(self) -> None:
        """Close the HTTP client."""
        self.client.close()

    def __enter__(self) -> "HttpKnowledge":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# Singleton instance
_capability: Optional[HttpKnowledge] = None


def get_knowledge_capability() -> Optional[KnowledgeCapability]:
    """Get the capability configured by the environment.

    Returns the shared HttpKnowledge when PLAYBOOKS_KNOWLEDGE_URL is set,
    else None (callers then fall back to the command line). The instance
    keeps its connection pool until close_knowledge_capability().
    """
    global _capability
    if _capability is None and KNOWLEDGE_URL:
        logger.info(f"Using knowledge service at {KNOWLEDGE_URL}")
        _capability = HttpKnowledge(KNOWLEDGE_URL)
    return _capability


def close_knowledge_capability() -> None:
    """Close the shared capability, if one was created."""
    global _capability
    if _capability is not None:
        _capability.close()
        _capability = None
