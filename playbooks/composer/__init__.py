"""Layered prompt composition.

Architecture:
- templates/   - Jinja2 templates, one per layer shape
- schemas.py   - PromptLayer, SupportingPlaybooks, BuiltPrompt
- registry.py  - TemplateRegistry for loading templates
- composer.py  - PromptComposer for rendering and assembling layers
- pipeline.py  - Resolve + knowledge augmentation + compose
"""

from .schemas import LAYER_ORDER, BuiltPrompt, PromptLayer, SupportingPlaybooks
from .registry import TemplateRegistry, get_template_registry
from .composer import PromptComposer, assemble_prompt, compose_prompt, estimate_tokens
from .pipeline import (
    build_prompt_for_task,
    build_prompt_with_knowledge,
    select_supporting_playbooks,
)

__all__ = [
    "LAYER_ORDER",
    "BuiltPrompt",
    "PromptLayer",
    "SupportingPlaybooks",
    "TemplateRegistry",
    "get_template_registry",
    "PromptComposer",
    "assemble_prompt",
    "compose_prompt",
    "estimate_tokens",
    "build_prompt_for_task",
    "build_prompt_with_knowledge",
    "select_supporting_playbooks",
]
