"""Prompt pipeline: resolve, augment, compose.

Wires the resolver, knowledge augmenter and composer together for callers
that start from a task description (CLI, API).
"""

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

from playbooks.composer.composer import PromptComposer
from playbooks.composer.schemas import BuiltPrompt, SupportingPlaybooks
from playbooks.documents.schemas import Playbook, PlaybookScope
from playbooks.knowledge.augmenter import KnowledgeAugmenter
from playbooks.knowledge.capability import KnowledgeCapability
from playbooks.resolver.resolver import filter_by_package, filter_by_scope, resolve
from playbooks.resolver.schemas import ResolveQuery

logger = logging.getLogger(__name__)


def build_prompt_with_knowledge(
    main_playbook: Playbook,
    supporting: Optional[SupportingPlaybooks] = None,
    *,
    context_text: Optional[str] = None,
    knowledge_context: Optional[Mapping[str, str]] = None,
    capability: Optional[KnowledgeCapability] = None,
    cwd: Optional[Path] = None,
    skip_knowledge: bool = False,
    composer: Optional[PromptComposer] = None,
) -> BuiltPrompt:
    """Compose a prompt, injecting retrieved context when the playbook asks for it.

    Args:
        main_playbook: Resolved playbook
        supporting: System, package and domain playbooks
        context_text: Context to use when no knowledge is fetched
        knowledge_context: Placeholder values for query templates
        capability: Retrieval capability (None: command-line fallback)
        cwd: Working directory for the command-line fallback
        skip_knowledge: Never query, use context_text as given
        composer: PromptComposer instance (default: new one)

    Returns:
        BuiltPrompt; knowledge failures degrade to the given context
    """
    if not skip_knowledge and main_playbook.knowledge_integration.enabled:
        augmenter = KnowledgeAugmenter(capability=capability, cwd=cwd)
        knowledge = augmenter.augment(main_playbook.knowledge_integration, knowledge_context or {})

        if knowledge.success:
            context_text = knowledge.context_text
        else:
            logger.warning(f"Knowledge query failed for {main_playbook.id}: {knowledge.error}")

    composer = composer or PromptComposer()
    return composer.compose(
        main_playbook=main_playbook,
        supporting=supporting,
        context_text=context_text,
    )


def select_supporting_playbooks(
    playbooks: Sequence[Playbook],
    package_name: Optional[str] = None,
) -> SupportingPlaybooks:
    """Pick the playbooks that feed the layers around the main playbook."""
    return SupportingPlaybooks(
        system=filter_by_scope(playbooks, PlaybookScope.SYSTEM),
        package=filter_by_package(playbooks, package_name),
        domain=filter_by_scope(playbooks, PlaybookScope.DOMAIN),
    )


def build_prompt_for_task(
    task: str,
    playbooks: Sequence[Playbook],
    *,
    package_name: Optional[str] = None,
    domain: Optional[str] = None,
    error_pattern: Optional[str] = None,
    knowledge_context: Optional[Mapping[str, str]] = None,
    capability: Optional[KnowledgeCapability] = None,
    cwd: Optional[Path] = None,
    skip_knowledge: bool = False,
    composer: Optional[PromptComposer] = None,
) -> Optional[BuiltPrompt]:
    """Build a prompt for a task with automatic playbook resolution.

    Returns:
        BuiltPrompt, or None if no playbook matched the task

    Raises:
        ValueError: If the task is empty and no other discriminator is given
    """
    query = ResolveQuery(
        task=task,
        package_name=package_name,
        domain=domain,
        error_pattern=error_pattern,
    )
    resolved = resolve(playbooks, query)
    if resolved is None:
        return None

    logger.info(f"Resolved playbook {resolved.playbook.id} for task '{task}': {resolved.reason}")

    variables = {"task": task, "packageName": package_name or "unknown"}
    variables.update(knowledge_context or {})

    return build_prompt_with_knowledge(
        main_playbook=resolved.playbook,
        supporting=select_supporting_playbooks(playbooks, package_name),
        knowledge_context=variables,
        capability=capability,
        cwd=cwd,
        skip_knowledge=skip_knowledge,
        composer=composer,
    )
