"""Knowledge augmentation for the context layer.

Turns a playbook's knowledge_integration block into context text:

1. Interpolate every query template with the caller's context mapping
   ({key} -> value; unknown keys stay as literal {key}).
2. Fan the queries out to the capability (or the command-line fallback)
   and wait for all of them to settle.
3. Merge the successful results in template order, deduplicate chunks by
   source path (first wins) and truncate to max_context_tokens * 4 chars.

A failing query is dropped; only when every query fails does the
augmentation report failure, and even then nothing is raised.
"""

import logging
import math
import os
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Mapping, Optional

from playbooks.documents.schemas import KnowledgeIntegration
from playbooks.knowledge.capability import (
    CommandLineKnowledge,
    KnowledgeCapability,
    KnowledgeQueryError,
    format_chunks,
)
from playbooks.knowledge.schemas import (
    AugmentationResult,
    KnowledgeChunk,
    KnowledgeRequest,
    KnowledgeResult,
)

logger = logging.getLogger(__name__)

MERGE_SEPARATOR = "\n\n---\n\n"
TRUNCATION_MARKER = "\n// ... (truncated)"
CHARS_PER_TOKEN = 4
TOKENS_PER_CHUNK = 100
ALL_QUERIES_FAILED = "all knowledge queries failed"
MAX_QUERY_CONCURRENCY = int(os.environ.get("PLAYBOOKS_KNOWLEDGE_CONCURRENCY", "4"))

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


def interpolate_query(template: str, context: Mapping[str, str]) -> str:
    """Replace every {key} with context[key], leaving unknown keys as-is."""
    return _PLACEHOLDER.sub(
        lambda m: str(context[m.group(1)]) if m.group(1) in context else m.group(0),
        template,
    )


def truncate_context(text: str, max_tokens: int) -> tuple[str, bool]:
    """Cut text to the token budget, appending the truncation marker.

    Returns:
        (text, truncated)
    """
    max_chars = max_tokens * CHARS_PER_TOKEN
    if len(text) <= max_chars:
        return text, False
    return text[:max_chars] + TRUNCATION_MARKER, True


def dedupe_chunks(chunks: list[KnowledgeChunk]) -> list[KnowledgeChunk]:
    """Keep the first chunk seen for each source path."""
    seen: set[str] = set()
    unique = []
    for chunk in chunks:
        if chunk.source_path in seen:
            continue
        seen.add(chunk.source_path)
        unique.append(chunk)
    return unique


def _context_fragment(result: KnowledgeResult) -> str:
    if result.merged_context_text is not None:
        return result.merged_context_text
    return format_chunks(result.chunks)


class KnowledgeAugmenter:
    """Runs a playbook's knowledge queries and merges the results.

    Usage:
        augmenter = KnowledgeAugmenter(capability=get_knowledge_capability())
        result = augmenter.augment(playbook.knowledge_integration, {"packageName": "cli"})
        if result.success:
            context_text = result.context_text
    """

    def __init__(
        self,
        capability: Optional[KnowledgeCapability] = None,
        cwd: Optional[Path] = None,
        max_workers: int = MAX_QUERY_CONCURRENCY,
    ):
        """Initialize the augmenter.

        Args:
            capability: Injected retrieval capability; None falls back to
                CommandLineKnowledge
            cwd: Working directory for the command-line fallback
            max_workers: Maximum queries in flight
        """
        self.capability: KnowledgeCapability = (
            capability if capability is not None else CommandLineKnowledge(cwd=cwd)
        )
        self.max_workers = max(1, max_workers)

    def augment(
        self,
        integration: KnowledgeIntegration,
        context: Optional[Mapping[str, str]] = None,
    ) -> AugmentationResult:
        """Fetch and merge knowledge context for one playbook.

        Args:
            integration: The playbook's knowledge_integration block
            context: Placeholder values for query templates

        Returns:
            AugmentationResult; success=False only when every query failed
        """
        if not integration.enabled:
            return AugmentationResult(success=True)

        queries = [interpolate_query(t, context or {}) for t in integration.query_templates]
        if not queries:
            return AugmentationResult(success=True)

        limit = math.ceil(integration.max_context_tokens / TOKENS_PER_CHUNK)
        results = self._run_queries(queries, limit)

        successful = [r for r in results if r is not None]
        if not successful:
            return AugmentationResult(success=False, error=ALL_QUERIES_FAILED, queries=queries)

        fragments = [_context_fragment(r) for r in successful]
        merged = MERGE_SEPARATOR.join(f for f in fragments if f)
        context_text, truncated = truncate_context(merged, integration.max_context_tokens)

        chunks = dedupe_chunks([c for r in successful for c in r.chunks])

        logger.debug(
            f"Knowledge augmentation: {len(successful)}/{len(queries)} queries succeeded, "
            f"{len(chunks)} chunks, {len(context_text):,} chars"
            + (" (truncated)" if truncated else "")
        )

        return AugmentationResult(
            success=True,
            context_text=context_text,
            chunks=chunks,
            truncated=truncated,
            queries=queries,
        )

    def _run_queries(self, queries: list[str], limit: int) -> list[Optional[KnowledgeResult]]:
        """Dispatch all queries concurrently and wait for every one to settle.

        Returns results in query order, None where a query failed.
        """
        results: list[Optional[KnowledgeResult]] = [None] * len(queries)

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(queries))) as executor:
            futures = {
                executor.submit(self.capability.query, KnowledgeRequest(text=text, limit=limit)): idx
                for idx, text in enumerate(queries)
            }

            for future in as_completed(futures):
                idx = futures[future]
                try:
                    results[idx] = future.result()
                except KnowledgeQueryError as e:
                    logger.debug(f"Knowledge query failed for '{queries[idx]}': {e}")
                except Exception as e:
                    logger.debug(f"Knowledge capability raised for '{queries[idx]}': {e}")

        return results


def augment_context(
    integration: KnowledgeIntegration,
    context: Optional[Mapping[str, str]] = None,
    capability: Optional[KnowledgeCapability] = None,
    cwd: Optional[Path] = None,
) -> AugmentationResult:
    """Fetch and merge knowledge context (convenience function)."""
    return KnowledgeAugmenter(capability=capability, cwd=cwd).augment(integration, context)
