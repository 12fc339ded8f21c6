"""
Tests for the playbooks command-line interface
"""
import json

import pytest

from playbooks.cli import build_parser, main
from playbooks.knowledge import capability as capability_module

from conftest import BUNDLED_DEFINITIONS, make_http_knowledge

DIR_ARGS = ["--dir", str(BUNDLED_DEFINITIONS)]


def test_list_json(capsys):
    assert main(DIR_ARGS + ["list", "--json"]) == 0

    data = json.loads(capsys.readouterr().out)
    ids = [p["id"] for p in data["playbooks"]]
    assert len(ids) == 7
    assert ids[0] == "policy.security"


def test_list_text_by_scope(capsys):
    assert main(DIR_ARGS + ["list", "--scope", "domain"]) == 0

    out = capsys.readouterr().out
    assert "Found 2 playbook(s):" in out
    assert "domain.refactoring" in out
    assert "task.fix-imports" not in out


def test_resolve_json(capsys):
    assert main(DIR_ARGS + ["resolve", "--task", "fix broken imports", "--json"]) == 0

    resolved = json.loads(capsys.readouterr().out)["resolved"]
    assert resolved["id"] == "task.fix-imports"
    assert resolved["score"] == 21
    assert resolved["description"].startswith("Fix broken imports")


def test_resolve_text(capsys):
    assert main(DIR_ARGS + ["resolve", "--domain", "testing"]) == 0

    out = capsys.readouterr().out
    assert "ID: domain.testing" in out
    assert "Score: 24" in out


def test_resolve_requires_a_discriminator(capsys):
    assert main(DIR_ARGS + ["resolve"]) == 1
    assert "Provide at least one of" in capsys.readouterr().err


def test_resolve_empty_directory(tmp_path, capsys):
    assert main(["--dir", str(tmp_path), "resolve", "--task", "anything"]) == 1
    assert "No playbooks found" in capsys.readouterr().err


def test_build_prompt_json(capsys):
    code = main(DIR_ARGS + [
        "build-prompt",
        "--task", "fix broken imports",
        "--package", "mind-engine",
        "--skip-knowledge",
        "--show-layers",
        "--json",
    ])
    assert code == 0

    data = json.loads(capsys.readouterr().out)
    assert data["playbook_id"] == "task.fix-imports"
    assert data["token_count"] == (len(data["full_prompt"]) + 3) // 4
    assert list(data["layers"]) == [
        "system-directives",
        "policies",
        "package-instructions",
        "domain-strategies",
        "task-playbook",
        "context",
    ]
    assert data["layers"]["context"] == ""


def test_build_prompt_text(capsys):
    assert main(DIR_ARGS + ["build-prompt", "--task", "debug plugin", "--skip-knowledge"]) == 0

    out = capsys.readouterr().out
    assert "Full Prompt:" in out
    assert "# Task: task.debug-plugin" in out
    assert "Token count: ~" in out


def test_build_prompt_requires_task():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["build-prompt"])


def test_build_prompt_empty_task_reports_the_error(capsys):
    assert main(DIR_ARGS + ["build-prompt", "--task", "", "--skip-knowledge"]) == 1

    err = capsys.readouterr().err
    assert err.startswith("Error: ")
    assert "--domain" not in err


def test_build_prompt_closes_knowledge_client(monkeypatch, capsys):
    knowledge, seen = make_http_knowledge({"mergedContextText": "retrieved"})
    monkeypatch.setattr(capability_module, "_capability", knowledge)

    assert main(DIR_ARGS + ["build-prompt", "--task", "fix broken imports", "--json"]) == 0

    assert "# Relevant Context\n\nretrieved" in json.loads(capsys.readouterr().out)["full_prompt"]
    assert len(seen) == 1
    assert knowledge.client.is_closed
    assert capability_module._capability is None
