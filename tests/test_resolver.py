"""
Unit tests for the playbook resolver
"""
import pytest
from pydantic import ValidationError

from playbooks.documents.schemas import Playbook, PlaybookScope
from playbooks.resolver import (
    ResolveQuery,
    filter_by_package,
    filter_by_scope,
    resolve,
    resolve_layers,
    score_playbook,
)

from conftest import make_playbook


class TestScoring:

    def test_fix_imports_scenario(self, fix_imports_playbook):
        score, reasons = score_playbook(fix_imports_playbook, ResolveQuery(task="fix broken imports"))

        # 10 description + 5 one tag ("imports") + 3 one strategy + 3 * 2 priority
        assert score == 24
        assert "description match" in reasons
        assert "tag match: imports" in reasons
        assert "strategy match: 1" in reasons

    def test_matching_is_case_insensitive(self, fix_imports_playbook):
        score, _ = score_playbook(fix_imports_playbook, ResolveQuery(task="FIX BROKEN IMPORTS"))
        assert score == 24

    def test_tag_matches_when_task_is_inside_tag(self):
        playbook = make_playbook(priority=1, metadata={"tags": ["troubleshooting"]})
        score, _ = score_playbook(playbook, ResolveQuery(task="shoot"))
        assert score == 5 + 2

    def test_package_match(self):
        playbook = make_playbook(id="package.mind-engine", scope="package", priority=2)
        score, reasons = score_playbook(playbook, ResolveQuery(package_name="mind-engine"))
        assert score == 15 + 4
        assert reasons == ["package match"]

    def test_package_match_is_case_sensitive(self):
        playbook = make_playbook(id="package.mind-engine", scope="package", priority=2)
        score, _ = score_playbook(playbook, ResolveQuery(package_name="Mind-Engine"))
        assert score == 4

    def test_domain_match_requires_domain_scope(self):
        domain_playbook = make_playbook(id="domain.testing", scope="domain", priority=2)
        task_playbook = make_playbook(id="task.testing", scope="task", priority=2)
        query = ResolveQuery(domain="testing")

        assert score_playbook(domain_playbook, query)[0] == 20 + 4
        assert score_playbook(task_playbook, query)[0] == 4

    def test_error_pattern_match(self):
        playbook = make_playbook(priority=1, description="Handles ModuleNotFoundError in tests.")
        score, reasons = score_playbook(playbook, ResolveQuery(error_pattern="modulenotfounderror"))
        assert score == 12 + 2
        assert reasons == ["error pattern match"]

    def test_task_signals_need_a_task(self, fix_imports_playbook):
        score, _ = score_playbook(fix_imports_playbook, ResolveQuery(error_pattern="segfault"))
        assert score == 6

    def test_score_never_below_priority_boost(self, bundled_playbooks):
        queries = [
            ResolveQuery(task="fix broken imports"),
            ResolveQuery(task="nothing relevant at all"),
            ResolveQuery(package_name="mind-engine", domain="testing"),
            ResolveQuery(error_pattern="plugin"),
        ]
        for playbook in bundled_playbooks:
            for query in queries:
                score, _ = score_playbook(playbook, query)
                assert score >= playbook.priority * 2


class TestResolve:

    def test_resolve_best_match(self, bundled_playbooks):
        match = resolve(bundled_playbooks, ResolveQuery(task="fix broken imports"))

        assert match is not None
        assert match.playbook.id == "task.fix-imports"
        # 10 description + 5 tag "imports" + 3 * 2 priority
        assert match.score == 21
        assert match.reason.startswith("Score: 21 (")
        assert "priority: 3" in match.reason

    def test_resolve_returns_the_same_playbook_instance(self, fix_imports_playbook):
        match = resolve([fix_imports_playbook], ResolveQuery(task="imports"))
        assert match.playbook is fix_imports_playbook

    def test_resolve_empty_list(self):
        assert resolve([], ResolveQuery(task="anything")) is None

    def test_resolve_without_signal_still_matches_on_priority(self, fix_imports_playbook):
        # Priority is validated to >= 1, so any non-empty list has a positive best score
        match = resolve([fix_imports_playbook], ResolveQuery(task="unrelated"))
        assert match is not None
        assert match.score == 6

    def test_zero_score_is_no_match(self):
        # Only reachable by bypassing validation (priority 0)
        unvalidated = Playbook.model_construct(
            id="task.zero",
            scope=PlaybookScope.TASK,
            priority=0,
            description="Nothing here.",
        )
        assert resolve([unvalidated], ResolveQuery(task="unrelated")) is None
        assert resolve_layers([unvalidated], ResolveQuery(task="unrelated")) == []

    def test_ties_break_by_id(self):
        b = make_playbook(id="task.b", priority=2)
        a = make_playbook(id="task.a", priority=2)
        match = resolve([b, a], ResolveQuery(task="unrelated"))
        assert match.playbook.id == "task.a"

    def test_no_discriminator_is_rejected(self):
        with pytest.raises(ValidationError):
            ResolveQuery()
        with pytest.raises(ValidationError):
            ResolveQuery(task="", package_name="")


class TestResolveLayers:

    def test_layers_sorted_descending_and_positive(self, bundled_playbooks):
        layers = resolve_layers(bundled_playbooks, ResolveQuery(task="refactoring", domain="refactoring"))

        scores = [m.score for m in layers]
        assert scores == sorted(scores, reverse=True)
        assert all(score > 0 for score in scores)
        assert len(layers) == len(bundled_playbooks)
        assert layers[0].playbook.id == "domain.refactoring"

    def test_layers_empty_list(self):
        assert resolve_layers([], ResolveQuery(task="anything")) == []


class TestFilters:

    def test_filter_by_scope(self, bundled_playbooks):
        domains = filter_by_scope(bundled_playbooks, PlaybookScope.DOMAIN)
        assert {p.id for p in domains} == {"domain.refactoring", "domain.testing"}

    def test_filter_by_scope_accepts_string(self, bundled_playbooks):
        assert [p.id for p in filter_by_scope(bundled_playbooks, "policy")] == ["policy.security"]

    def test_filter_by_scope_empty_list(self):
        for scope in PlaybookScope:
            assert filter_by_scope([], scope) == []

    def test_filter_by_package(self, bundled_playbooks):
        assert [p.id for p in filter_by_package(bundled_playbooks, "mind-engine")] == ["package.mind-engine"]
        assert filter_by_package(bundled_playbooks, None) == []
