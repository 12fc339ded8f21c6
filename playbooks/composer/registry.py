"""Template registry for prompt layer templates.

Templates are loaded from playbooks/composer/templates/*.md.j2 and cached
at construction, so composing a prompt never touches the filesystem.
"""

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class TemplateRegistry:
    """Registry for layer templates.

    Loads Jinja2 template sources from disk and caches them for fast access.
    """

    def __init__(self, templates_dir: Optional[Path] = None):
        """Initialize the registry.

        Args:
            templates_dir: Path to templates directory (default: playbooks/composer/templates)
        """
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self._templates: dict[str, str] = {}
        self._load_templates()

    def _load_templates(self) -> None:
        """Load all Jinja2 templates from templates directory."""
        if not self.templates_dir.exists():
            logger.warning(f"Templates directory not found: {self.templates_dir}")
            return

        for template_file in sorted(self.templates_dir.glob("*.md.j2")):
            name = template_file.name[: -len(".md.j2")]  # task_playbook.md.j2 -> task_playbook
            self._templates[name] = template_file.read_text(encoding="utf-8")
            logger.debug(f"Loaded template: {name}")

        logger.debug(f"TemplateRegistry: Loaded {len(self._templates)} templates")

    def get_template(self, name: str) -> Optional[str]:
        """Get a template source by name, or None if not found."""
        return self._templates.get(name)

    def list_templates(self) -> list[str]:
        """List all available template names."""
        return list(self._templates.keys())

    def reload(self) -> None:
        """Reload all templates from disk."""
        self._templates.clear()
        self._load_templates()


# Global singleton instance
_registry: Optional[TemplateRegistry] = None


def get_template_registry() -> TemplateRegistry:
    """Get the global TemplateRegistry singleton."""
    global _registry
    if _registry is None:
        _registry = TemplateRegistry()
    return _registry
