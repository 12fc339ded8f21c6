"""Prompt composer using Jinja2 templates.

Builds a layered prompt from a main playbook plus supporting playbooks:

  1. system-directives     every system playbook (fallback sentence if none)
  2. policies              the main playbook's policies
  3. package-instructions  playbooks selected for the active package
  4. domain-strategies     domain playbooks
  5. task-playbook         the main playbook itself
  6. context               pre-fetched knowledge context

Layers are always produced in this order. Empty layers are dropped from
the assembled prompt together with their separator.

Pure: composing reads cached templates only, no I/O and no logging.
"""

from typing import Any, Mapping, Optional, Sequence

from jinja2 import BaseLoader, Environment, TemplateError

from playbooks.composer.registry import TemplateRegistry, get_template_registry
from playbooks.composer.schemas import (
    LAYER_ORDER,
    BuiltPrompt,
    PromptLayer,
    SupportingPlaybooks,
)
from playbooks.documents.schemas import Playbook

LAYER_SEPARATOR = "\n\n---\n\n"
SYSTEM_FALLBACK = "You are an AI coding assistant. Follow the playbook below."
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Approximate token count: one token per 4 characters, rounded up."""
    return (len(text) + CHARS_PER_TOKEN - 1) // CHARS_PER_TOKEN


def assemble_prompt(layers: Mapping[PromptLayer, str]) -> str:
    """Join the non-empty layers in fixed order.

    An empty layer contributes nothing, not even a separator.
    """
    parts = [layers.get(layer, "") for layer in LAYER_ORDER]
    return LAYER_SEPARATOR.join(part for part in parts if part)


def _bullets(items: Sequence[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def _indented_bullets(items: Sequence[str]) -> str:
    return "\n".join(f"  - {item}" for item in items)


def _numbered(items: Sequence[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


class PromptComposer:
    """Composes layered prompts from playbooks.

    Usage:
        composer = PromptComposer()
        prompt = composer.compose(
            main_playbook=resolved.playbook,
            supporting=SupportingPlaybooks(system=system_playbooks),
            context_text=knowledge.context_text,
        )
    """

    def __init__(self, registry: Optional[TemplateRegistry] = None):
        """Initialize the composer.

        Args:
            registry: TemplateRegistry instance (default: global singleton)
        """
        self.registry = registry or get_template_registry()

        self.env = Environment(
            loader=BaseLoader(),
            autoescape=False,  # Prompts are markdown, not HTML
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["bullets"] = _bullets
        self.env.filters["indented_bullets"] = _indented_bullets
        self.env.filters["numbered"] = _numbered

    def compose(
        self,
        main_playbook: Playbook,
        supporting: Optional[SupportingPlaybooks] = None,
        context_text: Optional[str] = None,
    ) -> BuiltPrompt:
        """Compose the full layered prompt.

        Args:
            main_playbook: Resolved playbook for the task
            supporting: System, package and domain playbooks
            context_text: Retrieved context for the context layer

        Returns:
            BuiltPrompt with every layer, the assembled prompt and its token estimate

        Raises:
            ValueError: If a template is missing or fails to render
        """
        supporting = supporting or SupportingPlaybooks()

        layers = {
            PromptLayer.SYSTEM_DIRECTIVES: self.build_system_directives(supporting.system),
            PromptLayer.POLICIES: self.build_policies(main_playbook),
            PromptLayer.PACKAGE_INSTRUCTIONS: self.build_package_instructions(supporting.package),
            PromptLayer.DOMAIN_STRATEGIES: self.build_domain_strategies(supporting.domain),
            PromptLayer.TASK_PLAYBOOK: self.build_task_playbook(main_playbook),
            PromptLayer.CONTEXT: self.build_context(context_text),
        }
        full_prompt = assemble_prompt(layers)

        return BuiltPrompt(
            playbook_id=main_playbook.id,
            layers=layers,
            full_prompt=full_prompt,
            token_count=estimate_tokens(full_prompt),
        )

    def build_system_directives(self, system_playbooks: Sequence[Playbook]) -> str:
        if not system_playbooks:
            return SYSTEM_FALLBACK

        blocks = [
            self._render(
                "system_directives",
                playbook=playbook,
                heading=", ".join(playbook.tags) or playbook.id,
            )
            for playbook in system_playbooks
        ]
        return LAYER_SEPARATOR.join(blocks)

    def build_policies(self, playbook: Playbook) -> str:
        return self._render("policies", policies=playbook.policies)

    def build_package_instructions(self, package_playbooks: Sequence[Playbook]) -> str:
        if not package_playbooks:
            return ""
        return self._render(
            "playbook_sections",
            title="Package-Specific Instructions",
            label="Package",
            playbooks=package_playbooks,
        )

    def build_domain_strategies(self, domain_playbooks: Sequence[Playbook]) -> str:
        if not domain_playbooks:
            return ""
        return self._render(
            "playbook_sections",
            title="Domain Strategies",
            label="Domain",
            playbooks=domain_playbooks,
        )

    def build_task_playbook(self, playbook: Playbook) -> str:
        return self._render("task_playbook", playbook=playbook)

    def build_context(self, context_text: Optional[str]) -> str:
        if not context_text:
            return ""
        # Context text is passed through verbatim, so no stripping here
        return self._render("context", strip=False, context_text=context_text)

    def _render(self, name: str, strip: bool = True, **context: Any) -> str:
        template_str = self.registry.get_template(name)
        if template_str is None:
            raise ValueError(f"Template not found for layer: {name}")

        try:
            rendered = self.env.from_string(template_str).render(**context)
        except TemplateError as e:
            raise ValueError(f"Template rendering error for {name}: {e}")

        return rendered.strip() if strip else rendered


# Convenience function
def compose_prompt(
    main_playbook: Playbook,
    supporting: Optional[SupportingPlaybooks] = None,
    context_text: Optional[str] = None,
) -> BuiltPrompt:
    """Compose a layered prompt (convenience function)."""
    return PromptComposer().compose(
        main_playbook=main_playbook,
        supporting=supporting,
        context_text=context_text,
    )
