"""Tests for the auto-scaling-group definition."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from shinobi_resolver.components.auto_scaling_group import AutoScalingGroup
from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.types import ComplianceFramework
from shinobi_resolver.domain.violations import ResolutionError
from shinobi_resolver.engine import resolve

ContextFactory = Callable[..., ResolutionContext]


def _resolve(make_context: ContextFactory, framework: ComplianceFramework, overrides=None):
    context = make_context("auto-scaling-group", "workers", framework=framework)
    return resolve(AutoScalingGroup(), context, overrides)


class TestFrameworkDefaults:
    @pytest.mark.parametrize(
        ("framework", "low", "high", "instance_type"),
        [
            (ComplianceFramework.COMMERCIAL, 1, 3, "t3.micro"),
            (ComplianceFramework.FEDRAMP_MODERATE, 2, 6, "m5.large"),
            (ComplianceFramework.FEDRAMP_HIGH, 2, 10, "m5.xlarge"),
        ],
    )
    def test_capacity_and_instance_type(
        self,
        make_context: ContextFactory,
        framework: ComplianceFramework,
        low: int,
        high: int,
        instance_type: str,
    ) -> None:
        config = _resolve(make_context, framework)
        assert config.get("capacity.min") == low
        assert config.get("capacity.max") == high
        assert config.get("launchTemplate.instanceType") == instance_type

    def test_high_hardening(self, make_context: ContextFactory) -> None:
        config = _resolve(make_context, ComplianceFramework.FEDRAMP_HIGH)
        assert config.get("storage.encrypted") is True
        assert config.get("storage.kms.useCustomerManagedKey") is True
        assert config.get("launchTemplate.installAgents.stigHardening") is True
        assert config.get("healthCheck.type") == "ELB"

    def test_commercial_is_unencrypted(self, make_context: ContextFactory) -> None:
        config = _resolve(make_context, ComplianceFramework.COMMERCIAL)
        assert config.get("storage.encrypted") is False
        assert config.get("vpc.subnetType") == "PUBLIC"


class TestDerivation:
    def test_name_from_service_and_component(self, make_context: ContextFactory) -> None:
        config = _resolve(make_context, ComplianceFramework.COMMERCIAL)
        assert config["name"] == "checkout-workers"

    def test_explicit_name_kept(self, make_context: ContextFactory) -> None:
        config = _resolve(make_context, ComplianceFramework.COMMERCIAL, {"name": "batch"})
        assert config["name"] == "batch"

    def test_desired_defaults_to_min(self, make_context: ContextFactory) -> None:
        config = _resolve(make_context, ComplianceFramework.FEDRAMP_HIGH)
        assert config.get("capacity.desired") == 2

    def test_desired_raised_to_min(self, make_context: ContextFactory) -> None:
        config = _resolve(
            make_context, ComplianceFramework.COMMERCIAL, {"capacity": {"min": 2, "desired": 0}}
        )
        assert config.get("capacity.desired") == 2

    def test_in_service_threshold_follows_min(self, make_context: ContextFactory) -> None:
        config = _resolve(make_context, ComplianceFramework.COMMERCIAL, {"capacity": {"min": 2}})
        assert config.get("monitoring.alarms.inService.threshold") == 2
        assert config.get("monitoring.alarms.inService.comparisonOperator") == "lt"

    def test_empty_termination_policies_restored(self, make_context: ContextFactory) -> None:
        config = _resolve(
            make_context, ComplianceFramework.COMMERCIAL, {"terminationPolicies": []}
        )
        assert config.to_dict()["terminationPolicies"] == ["Default"]


class TestChecks:
    def test_min_above_max(self, make_context: ContextFactory) -> None:
        with pytest.raises(ResolutionError) as excinfo:
            _resolve(
                make_context, ComplianceFramework.COMMERCIAL, {"capacity": {"min": 4, "max": 3}}
            )
        assert [v.path for v in excinfo.value.violations] == ["capacity.min"]

    def test_unknown_termination_policy(self, make_context: ContextFactory) -> None:
        with pytest.raises(ResolutionError) as excinfo:
            _resolve(
                make_context,
                ComplianceFramework.COMMERCIAL,
                {"terminationPolicies": ["Random"]},
            )
        assert excinfo.value.violations[0].path == "terminationPolicies[0]"
