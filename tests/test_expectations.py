"""
Tests for the expectation set.
"""

import pytest

from mde_ops.core.config import TargetScope
from mde_ops.core.errors import ConfigError
from mde_ops.expectations import (
    PHASE_ORDER,
    Expectation,
    ExpectationSet,
    Phase,
    ResourceKind,
    read_catalog,
)


class TestCatalog:
    """Tests for the packaged catalog."""

    def test_phase_order(self):
        assert PHASE_ORDER == (Phase.TABLES, Phase.WORKLOADS, Phase.JOBS, Phase.BUCKETS, Phase.TOPICS)

    def test_every_phase_in_declaration_order(self, scope, catalog_resources):
        expectations = ExpectationSet.from_catalog(scope)
        assert [e.identifier for e in expectations.list(Phase.TABLES)] == catalog_resources["tables"]
        assert [e.identifier for e in expectations.list(Phase.WORKLOADS)] == catalog_resources["workloads"]
        assert [e.identifier for e in expectations.list(Phase.JOBS)] == catalog_resources["jobs"]
        assert [e.identifier for e in expectations.list(Phase.TOPICS)] == catalog_resources["topics"]
        assert len(expectations) == 33

    def test_bucket_identifiers_use_project(self, scope, catalog_resources):
        buckets = ExpectationSet.from_catalog(scope).list(Phase.BUCKETS)
        assert [b.identifier for b in buckets] == [f"gs://demo-proj-{s}" for s in catalog_resources["buckets"]]

    def test_parent_scopes(self, scope):
        expectations = ExpectationSet.from_catalog(scope)
        assert {e.parent_scope for e in expectations.list(Phase.TABLES)} == {"sfp_data"}
        assert {e.parent_scope for e in expectations.list(Phase.WORKLOADS)} == {"sfp-gke"}
        assert {e.parent_scope for e in expectations.list(Phase.TOPICS)} == {"demo-proj"}

    def test_kinds_match_phases(self, scope):
        for phase in PHASE_ORDER:
            for expectation in ExpectationSet.from_catalog(scope).list(phase):
                assert expectation.kind is phase.kind

    def test_iteration_follows_phase_order(self, scope):
        kinds = [e.kind for e in ExpectationSet.from_catalog(scope)]
        first_index = [kinds.index(phase.kind) for phase in PHASE_ORDER]
        assert first_index == sorted(first_index)

    def test_unknown_version(self):
        scope = TargetScope(project_id="p", dataset_name="d", version="9.9.9")
        with pytest.raises(ConfigError, match="No expectation catalog"):
            ExpectationSet.from_catalog(scope)

    def test_custom_catalog(self, tmp_path):
        catalog = tmp_path / "catalog.yaml"
        catalog.write_text(
            "phases:\n"
            "  topics:\n"
            "    resources: [dead-letter]\n"
        )
        expectations = ExpectationSet.from_catalog(TargetScope("p", "d"), catalog)
        assert len(expectations) == 1
        assert expectations.list(Phase.TABLES) == ()
        assert expectations.list(Phase.TOPICS) == (Expectation(ResourceKind.TOPIC, "dead-letter", "p"),)

    def test_read_catalog_without_dataset(self, catalog_resources):
        """Test the job prefixes can be read without a dataset."""
        phases = read_catalog(TargetScope(project_id="p"))
        assert [e.identifier for e in phases[Phase.JOBS]] == catalog_resources["jobs"]


class TestExpectationSet:
    """Tests for ExpectationSet construction."""

    def test_empty_dataset_raises(self):
        with pytest.raises(ConfigError):
            ExpectationSet.from_catalog(TargetScope(project_id="p", dataset_name=""))

    def test_empty_project_raises(self):
        with pytest.raises(ConfigError):
            ExpectationSet(TargetScope(project_id="", dataset_name="d"), {})

    def test_wrong_kind_in_phase_raises(self, scope):
        with pytest.raises(ConfigError):
            ExpectationSet(scope, {Phase.TABLES: [Expectation(ResourceKind.TOPIC, "x", "p")]})

    def test_expectations_are_frozen(self):
        expectation = Expectation(ResourceKind.TABLE, "T", "ds")
        with pytest.raises(AttributeError):
            expectation.identifier = "other"
