"""Playbook registry - loads and serves playbook definitions from YAML files."""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml

from playbooks.documents.schemas import Playbook, PlaybookScope, PlaybookSummary

logger = logging.getLogger(__name__)

PLAYBOOK_SUFFIXES = (".yml", ".yaml")


def _default_definitions_dir() -> Path:
    env_dir = os.environ.get("PLAYBOOKS_DIR")
    if env_dir:
        return Path(env_dir)
    return Path(__file__).parent / "definitions"


def load_playbook(path: Path) -> Playbook:
    """Load a single playbook from a YAML file.

    Args:
        path: Path to the .yml/.yaml definition

    Returns:
        Validated Playbook

    Raises:
        ValueError: If the file does not contain a mapping
        yaml.YAMLError: If the file is not valid YAML
        pydantic.ValidationError: If required fields are missing or invalid
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Invalid playbook at {path}: expected a mapping")
    return Playbook.model_validate(data)


def scan_playbook_files(definitions_dir: Path) -> list[Path]:
    """Find playbook definition files under a directory, recursively."""
    return sorted(
        p for p in definitions_dir.rglob("*")
        if p.is_file() and p.suffix in PLAYBOOK_SUFFIXES
    )


class PlaybookRegistry:
    """Registry of playbook definitions loaded from YAML files.

    Playbooks are loaded from definitions_dir (recursively) on first access.
    Each YAML file holds one Playbook. Invalid files are skipped with a
    warning so one broken definition never takes down the whole set.
    """

    def __init__(self, definitions_dir: Optional[Path] = None):
        """Initialize registry with optional custom definitions directory.

        Args:
            definitions_dir: Directory to scan (default: $PLAYBOOKS_DIR,
                else the bundled definitions)
        """
        self.definitions_dir = Path(definitions_dir) if definitions_dir else _default_definitions_dir()
        self._playbooks: dict[str, Playbook] = {}
        self._file_paths: dict[str, Path] = {}
        self._loaded = False

    def load(self) -> None:
        """Load all playbook definitions from YAML files."""
        if self._loaded:
            return

        if not self.definitions_dir.exists():
            logger.warning(f"Playbooks directory not found: {self.definitions_dir}")
            self._loaded = True
            return

        for yaml_file in scan_playbook_files(self.definitions_dir):
            try:
                playbook = load_playbook(yaml_file)
            except Exception as e:
                logger.warning(f"Failed to load playbook {yaml_file}: {e}")
                continue

            if playbook.id in self._playbooks:
                logger.warning(
                    f"Duplicate playbook id '{playbook.id}' in {yaml_file}, "
                    f"keeping {self._file_paths[playbook.id]}"
                )
                continue

            self._playbooks[playbook.id] = playbook
            self._file_paths[playbook.id] = yaml_file
            logger.debug(f"Loaded playbook: {playbook.id}")

        self._loaded = True
        logger.info(f"Loaded {len(self._playbooks)} playbooks from {self.definitions_dir}")

    def get(self, playbook_id: str) -> Optional[Playbook]:
        """Get playbook by id."""
        self.load()
        return self._playbooks.get(playbook_id)

    def get_validated(self, playbook_id: str) -> Playbook:
        """Get playbook by id, raising if not found."""
        playbook = self.get(playbook_id)
        if playbook is None:
            available = list(self._playbooks.keys())[:10]
            raise ValueError(
                f"Playbook not found: {playbook_id}. "
                f"Available (first 10): {available}"
            )
        return playbook

    def list_all(self) -> list[Playbook]:
        """List all playbooks in load order."""
        self.load()
        return list(self._playbooks.values())

    def list_by_scope(self, scope: Union[PlaybookScope, str]) -> list[Playbook]:
        """List playbooks in a specific scope."""
        self.load()
        scope = PlaybookScope(scope)
        return [p for p in self._playbooks.values() if p.scope == scope]

    def list_summaries(self, scope: Optional[Union[PlaybookScope, str]] = None) -> list[PlaybookSummary]:
        """List lightweight summaries, most specific first.

        Sorted by priority (descending) then by id.
        """
        playbooks = self.list_by_scope(scope) if scope else self.list_all()
        summaries = [
            PlaybookSummary(
                id=p.id,
                scope=p.scope,
                priority=p.priority,
                tags=list(p.tags),
                file_path=str(self._file_paths[p.id]),
            )
            for p in playbooks
        ]
        summaries.sort(key=lambda s: (-s.priority, s.id))
        return summaries

    def list_ids(self) -> list[str]:
        """List all playbook ids."""
        self.load()
        return list(self._playbooks.keys())

    def count(self) -> int:
        """Get total number of playbooks."""
        self.load()
        return len(self._playbooks)

    def reload(self) -> None:
        """Reload all playbooks from disk."""
        self._playbooks.clear()
        self._file_paths.clear()
        self._loaded = False
        self.load()


def load_all_playbooks(definitions_dir: Path) -> list[Playbook]:
    """Load every valid playbook under a directory (convenience function)."""
    return PlaybookRegistry(definitions_dir).list_all()


# Global singleton instance
_registry: Optional[PlaybookRegistry] = None


def get_playbook_registry() -> PlaybookRegistry:
    """Get the global PlaybookRegistry singleton."""
    global _registry
    if _registry is None:
        _registry = PlaybookRegistry()
    return _registry
