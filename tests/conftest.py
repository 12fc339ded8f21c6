"""
Pytest configuration and fixtures
"""
import time
from pathlib import Path
from typing import Any, Union

import httpx
import pytest

from playbooks.documents.registry import PlaybookRegistry
from playbooks.documents.schemas import Playbook
from playbooks.knowledge.capability import HttpKnowledge, KnowledgeQueryError
from playbooks.knowledge.schemas import KnowledgeRequest, KnowledgeResult

BUNDLED_DEFINITIONS = Path(__file__).parent.parent / "playbooks" / "documents" / "definitions"


def make_playbook(**overrides: Any) -> Playbook:
    """Build a valid playbook, overriding any field."""
    data: dict[str, Any] = {
        "id": "task.example",
        "scope": "task",
        "priority": 3,
        "description": "Example playbook.",
    }
    data.update(overrides)
    return Playbook.model_validate(data)


class FakeKnowledge:
    """Knowledge capability double answering from a query -> response table.

    A response is a KnowledgeResult, an exception to raise, or a
    (delay_seconds, KnowledgeResult) pair to finish late.
    """

    def __init__(self, responses: dict[str, Union[KnowledgeResult, Exception, tuple]]):
        self.responses = responses
        self.requests: list[KnowledgeRequest] = []

    def query(self, request: KnowledgeRequest) -> KnowledgeResult:
        self.requests.append(request)
        response = self.responses.get(request.text)
        if response is None:
            raise KnowledgeQueryError(f"no answer for {request.text}")
        if isinstance(response, Exception):
            raise response
        if isinstance(response, tuple):
            delay, response = response
            time.sleep(delay)
        return response


def make_http_knowledge(payload: dict) -> tuple[HttpKnowledge, list[httpx.Request]]:
    """HttpKnowledge answering every query with payload; returns (knowledge, requests seen)."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=payload)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpKnowledge("http://knowledge.test", client=client), seen


@pytest.fixture
def fix_imports_playbook() -> Playbook:
    """Task playbook used by the scoring scenario."""
    return make_playbook(
        id="task.fix-imports",
        priority=3,
        description="Fix broken imports in a package by updating import statements.",
        metadata={"tags": ["refactoring", "imports"]},
        strategies=[
            "Fix broken imports by rewriting module paths",
            "Update import statements",
        ],
        checks=[{"id": "no-broken-imports", "description": "All imports must resolve"}],
        policies={"allow_write": True, "restricted_paths": ["core/"]},
    )


@pytest.fixture
def bundled_registry() -> PlaybookRegistry:
    return PlaybookRegistry(BUNDLED_DEFINITIONS)


@pytest.fixture
def bundled_playbooks(bundled_registry) -> list[Playbook]:
    return bundled_registry.list_all()


@pytest.fixture
def definitions_dir(tmp_path) -> Path:
    """A small playbooks directory with nested scopes."""
    (tmp_path / "tasks").mkdir()
    (tmp_path / "system").mkdir()
    (tmp_path / "tasks" / "debug.yaml").write_text(
        "id: task.debug\n"
        "scope: task\n"
        "priority: 4\n"
        "description: Debug a failing build.\n"
        "tags: [debugging]\n"
    )
    (tmp_path / "system" / "base.yml").write_text(
        "id: system.base\n"
        "scope: system\n"
        "priority: 1\n"
        "description: Base directives.\n"
    )
    return tmp_path
