"""Tests for the opensearch-domain definition."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from shinobi_resolver.components.opensearch_domain import OpenSearchDomain
from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.types import ComplianceFramework, ViolationKind
from shinobi_resolver.domain.violations import ResolutionError
from shinobi_resolver.engine import resolve, resolve_detailed

ContextFactory = Callable[..., ResolutionContext]


def _resolve(make_context: ContextFactory, overrides=None, framework=None):
    context = make_context(
        "opensearch-domain", "search", framework=framework or ComplianceFramework.COMMERCIAL
    )
    return resolve(OpenSearchDomain(), context, overrides)


class TestDefaults:
    def test_commercial_single_node(self, make_context: ContextFactory) -> None:
        config = _resolve(make_context)
        assert config.get("cluster.instanceCount") == 1
        assert config.get("cluster.availabilityZoneCount") == 2
        assert "masterInstanceType" not in config["cluster"]
        assert config.get("vpc.createSecurityGroup") is False
        assert config.get("maintenance.autoTune.desiredState") == "DISABLED"

    def test_high_cluster(self, make_context: ContextFactory) -> None:
        config = _resolve(make_context, framework=ComplianceFramework.FEDRAMP_HIGH)
        assert config.get("cluster.instanceCount") == 3
        assert config.get("cluster.availabilityZoneCount") == 3
        assert config.get("cluster.masterInstanceType") == "r6g.large.search"
        assert config.get("cluster.masterInstanceCount") == 3
        assert config.get("logging.audit.retentionInDays") == 2555
        assert config.get("vpc.createSecurityGroup") is True
        assert config.get("monitoring.alarms.clusterStatusRed.enabled") is True

    def test_default_ingress_rules(self, make_context: ContextFactory) -> None:
        config = _resolve(make_context)
        ports = [rule["port"] for rule in config.to_dict()["vpc"]["ingressRules"]]
        assert ports == [443, 9200]


class TestDomainName:
    def test_derived_from_service_and_component(self, make_context: ContextFactory) -> None:
        assert _resolve(make_context)["domainName"] == "checkout-search"

    def test_leading_digit_prefixed(self, make_context: ContextFactory) -> None:
        assert _resolve(make_context, {"domainName": "42-search"})["domainName"] == "a42-search"

    def test_at_most_28_characters(self, make_context: ContextFactory) -> None:
        name = _resolve(make_context, {"domainName": "x" * 40})["domainName"]
        assert name == "x" * 28


class TestChecks:
    def test_zone_awareness_needs_two_nodes(self, make_context: ContextFactory) -> None:
        with pytest.raises(ResolutionError) as excinfo:
            _resolve(make_context, {"cluster": {"zoneAwarenessEnabled": True}})
        [violation] = excinfo.value.violations
        assert violation.kind is ViolationKind.RANGE
        assert violation.path == "cluster.instanceCount"

    def test_internal_user_database_needs_master_user(
        self, make_context: ContextFactory
    ) -> None:
        with pytest.raises(ResolutionError) as excinfo:
            _resolve(make_context, {"advancedSecurity": {"internalUserDatabaseEnabled": True}})
        assert [v.path for v in excinfo.value.violations] == ["advancedSecurity.masterUserName"]

    def test_log_retention_out_of_range_rejected(self, make_context: ContextFactory) -> None:
        with pytest.raises(ResolutionError) as excinfo:
            _resolve(make_context, {"logging": {"audit": {"retentionInDays": 5000}}})
        assert excinfo.value.violations[0].path == "logging.audit.retentionInDays"

    def test_snapshot_hour_clamped(self, make_context: ContextFactory) -> None:
        config = _resolve(make_context, {"snapshot": {"automatedSnapshotStartHour": 30}})
        assert config.get("snapshot.automatedSnapshotStartHour") == 23


class TestDerivedAdjustments:
    def _adjusted(self, make_context: ContextFactory, overrides: dict) -> dict:
        context = make_context("opensearch-domain", "search")
        resolution = resolve_detailed(OpenSearchDomain(), context, overrides)
        return {a.path: (a.original, a.adjusted) for a in resolution.adjustments}

    def test_zone_count_without_zone_awareness(self, make_context: ContextFactory) -> None:
        adjusted = self._adjusted(make_context, {"cluster": {"availabilityZoneCount": 3}})
        assert adjusted == {"cluster.availabilityZoneCount": (3, 2)}

    def test_master_settings_dropped_without_dedicated_masters(
        self, make_context: ContextFactory
    ) -> None:
        overrides = {"cluster": {"masterInstanceType": "r6g.large.search"}}
        adjusted = self._adjusted(make_context, overrides)
        assert adjusted == {"cluster.masterInstanceType": ("r6g.large.search", None)}

    def test_user_domain_name_sanitized(self, make_context: ContextFactory) -> None:
        adjusted = self._adjusted(make_context, {"domainName": "My Custom Name!"})
        assert adjusted == {"domainName": ("My Custom Name!", "my-custom-name")}

    def test_derived_name_is_not_an_adjustment(self, make_context: ContextFactory) -> None:
        assert self._adjusted(make_context, {}) == {}
