"""opensearch-domain — managed OpenSearch cluster with storage, VPC and logging."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from shinobi_resolver.components._shared import (
    REMOVAL_POLICIES,
    alarm_schema,
    discard,
    log_schema,
    overwrite,
    string_list,
)
from shinobi_resolver.components.base import ComponentDefinition
from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.naming import derive_resource_name, sanitize_identifier
from shinobi_resolver.domain.schema import (
    array_of,
    boolean,
    number,
    object_of,
    one_of,
    string,
    string_map,
)
from shinobi_resolver.domain.types import BoundsPolicy, ComplianceFramework, ViolationKind
from shinobi_resolver.domain.violations import ConfigViolation
from shinobi_resolver.engine.normalize import Adjustment

DOMAIN_NAME_MAX = 28
TLS_1_2 = "Policy-Min-TLS-1-2-2019-07"
DEFAULT_MASTER_COUNT = 3
DEFAULT_WARM_TYPE = "ultrawarm1.medium.search"
DEFAULT_WARM_COUNT = 2

DEFAULT_INGRESS_RULES = [
    {"port": 443, "protocol": "tcp", "cidr": "0.0.0.0/0", "description": "HTTPS access"},
    {"port": 9200, "protocol": "tcp", "cidr": "0.0.0.0/0", "description": "OpenSearch API"},
]

SCHEMA = object_of(
    {
        "domainName": string(
            max_length=DOMAIN_NAME_MAX,
            bounds=BoundsPolicy.CLAMP,
            description="Sanitized to lower-case letters, digits and hyphens.",
        ),
        "version": one_of(
            "OpenSearch_1.3",
            "OpenSearch_2.3",
            "OpenSearch_2.5",
            "OpenSearch_2.7",
            default="OpenSearch_2.7",
        ),
        "cluster": object_of(
            {
                "instanceType": string(default="t3.small.search"),
                "instanceCount": number(default=1, minimum=1, maximum=80, integer=True),
                "zoneAwarenessEnabled": boolean(default=False),
                "availabilityZoneCount": number(
                    default=2, minimum=2, maximum=3, integer=True, bounds=BoundsPolicy.CLAMP
                ),
                "dedicatedMasterEnabled": boolean(default=False),
                "masterInstanceType": string(),
                "masterInstanceCount": one_of(3, 5),
                "warmEnabled": boolean(default=False),
                "warmInstanceType": string(),
                "warmInstanceCount": number(minimum=2, maximum=150, integer=True),
            }
        ),
        "ebs": object_of(
            {
                "enabled": boolean(default=True),
                "volumeType": one_of("gp2", "gp3", "io1", "io2", default="gp3"),
                "volumeSize": number(
                    default=20, minimum=10, maximum=3584, integer=True, bounds=BoundsPolicy.CLAMP
                ),
                "iops": number(minimum=100, maximum=16000, integer=True),
                "throughput": number(minimum=125, maximum=1000, integer=True),
            }
        ),
        "vpc": object_of(
            {
                "enabled": boolean(default=False),
                "vpcId": string(),
                "subnetIds": string_list(),
                "securityGroupIds": string_list(),
                "createSecurityGroup": boolean(),
                "ingressRules": array_of(
                    object_of(
                        {
                            "port": number(required=True, minimum=1, maximum=65535, integer=True),
                            "protocol": one_of("tcp", "udp", default="tcp"),
                            "cidr": string(required=True),
                            "description": string(),
                        }
                    ),
                    default=[],
                ),
            }
        ),
        "encryption": object_of(
            {
                "atRest": object_of({"enabled": boolean(default=True), "kmsKeyArn": string()}),
                "nodeToNode": boolean(default=True),
            }
        ),
        "domainEndpoint": object_of(
            {
                "enforceHttps": boolean(default=True),
                "tlsSecurityPolicy": one_of("Policy-Min-TLS-1-0-2019-07", TLS_1_2, default=TLS_1_2),
            }
        ),
        "advancedSecurity": object_of(
            {
                "enabled": boolean(default=False),
                "internalUserDatabaseEnabled": boolean(default=False),
                "masterUserName": string(),
                "masterUserPassword": string(),
                "masterUserPasswordSecretArn": string(),
            }
        ),
        "logging": object_of(
            {
                "slowSearch": log_schema(),
                "slowIndex": log_schema(),
                "application": log_schema(),
                "audit": log_schema(retention_days=365, removal_policy="retain"),
            }
        ),
        "monitoring": object_of(
            {
                "enabled": boolean(default=False),
                "alarms": object_of(
                    {
                        "clusterStatusRed": alarm_schema(
                            enabled=None, comparison="gt", statistic="Maximum", evaluation_periods=1
                        ),
                        "clusterStatusYellow": alarm_schema(
                            enabled=None, comparison="gt", statistic="Maximum", evaluation_periods=1
                        ),
                        "jvmMemoryPressure": alarm_schema(
                            enabled=None,
                            threshold=80,
                            comparison="gt",
                            statistic="Maximum",
                            evaluation_periods=1,
                        ),
                        "freeStorageSpace": alarm_schema(
                            enabled=None,
                            threshold=20,
                            comparison="lt",
                            statistic="Minimum",
                            evaluation_periods=1,
                        ),
                    }
                ),
            }
        ),
        "snapshot": object_of(
            {
                "automatedSnapshotStartHour": number(
                    default=0, minimum=0, maximum=23, integer=True, bounds=BoundsPolicy.CLAMP
                )
            }
        ),
        "maintenance": object_of(
            {
                "autoTune": object_of(
                    {
                        "enabled": boolean(default=False),
                        "desiredState": one_of("ENABLED", "DISABLED"),
                    }
                ),
                "offPeakWindowEnabled": boolean(default=False),
            }
        ),
        "accessPolicies": object_of(
            {
                "statements": array_of(
                    object_of(
                        {
                            "effect": one_of("Allow", "Deny", required=True),
                            "principals": string_list(),
                            "actions": array_of(string(), required=True),
                            "resources": string_list(),
                            "conditions": object_of(additional=True, default={}),
                        }
                    ),
                    default=[],
                )
            }
        ),
        "advancedOptions": string_map(),
        "hardeningProfile": string(default="baseline"),
        "removalPolicy": one_of(*REMOVAL_POLICIES, default="destroy"),
        "tags": string_map(),
    }
)

_SECURE_TRANSPORT = {
    "encryption": {"atRest": {"enabled": True}, "nodeToNode": True},
    "domainEndpoint": {"enforceHttps": True, "tlsSecurityPolicy": TLS_1_2},
}


class OpenSearchDomain(ComponentDefinition):
    component_type = "opensearch-domain"
    description = "OpenSearch domain with cluster sizing, storage, VPC access and log publishing"
    schema = SCHEMA

    FALLBACKS = {
        "version": "OpenSearch_2.7",
        "cluster": {"instanceType": "t3.small.search", "instanceCount": 1},
        "ebs": {"enabled": True, "volumeType": "gp3", "volumeSize": 20},
        "snapshot": {"automatedSnapshotStartHour": 0},
        "hardeningProfile": "baseline",
        "removalPolicy": "destroy",
    }

    COMPLIANCE_DEFAULTS = {
        ComplianceFramework.COMMERCIAL: {},
        ComplianceFramework.FEDRAMP_MODERATE: {
            "cluster": {
                "instanceType": "m6g.large.search",
                "instanceCount": 2,
                "zoneAwarenessEnabled": True,
            },
            "ebs": {"volumeSize": 50},
            "vpc": {"enabled": True},
            "logging": {
                "slowSearch": {"enabled": True},
                "application": {"enabled": True},
                "audit": {"enabled": True},
            },
            "monitoring": {"enabled": True},
            "maintenance": {"autoTune": {"enabled": True}},
            "hardeningProfile": "fedramp-moderate",
            "removalPolicy": "retain",
        },
        ComplianceFramework.FEDRAMP_HIGH: {
            "cluster": {
                "instanceType": "r6g.large.search",
                "instanceCount": 3,
                "zoneAwarenessEnabled": True,
                "availabilityZoneCount": 3,
                "dedicatedMasterEnabled": True,
            },
            "ebs": {"volumeSize": 100},
            "vpc": {"enabled": True},
            "advancedSecurity": {"enabled": True},
            "logging": {
                "slowSearch": {"enabled": True},
                "slowIndex": {"enabled": True},
                "application": {"enabled": True},
                "audit": {"enabled": True, "retentionInDays": 2555},
            },
            "monitoring": {"enabled": True},
            "maintenance": {"autoTune": {"enabled": True}, "offPeakWindowEnabled": True},
            "hardeningProfile": "fedramp-high",
            "removalPolicy": "retain",
        },
    }

    GUARDRAILS = {
        ComplianceFramework.FEDRAMP_MODERATE: _SECURE_TRANSPORT,
        ComplianceFramework.FEDRAMP_HIGH: {
            **_SECURE_TRANSPORT,
            "logging": {"audit": {"enabled": True}},
        },
    }

    def derive(
        self,
        config: dict[str, Any],
        context: ResolutionContext,
        adjustments: list[Adjustment],
    ) -> dict[str, Any]:
        if config.get("domainName"):
            overwrite(
                config,
                "domainName",
                sanitize_identifier(
                    config["domainName"], max_length=DOMAIN_NAME_MAX, fallback="domain"
                ),
                path="domainName",
                reason="sanitized to a valid domain name",
                adjustments=adjustments,
            )
        else:
            config["domainName"] = sanitize_identifier(
                derive_resource_name(context.service_name, context.component_name),
                max_length=DOMAIN_NAME_MAX,
                fallback="domain",
            )

        cluster = config["cluster"]
        if not cluster["zoneAwarenessEnabled"]:
            overwrite(
                cluster,
                "availabilityZoneCount",
                2,
                path="cluster.availabilityZoneCount",
                reason="zone awareness is disabled",
                adjustments=adjustments,
            )
        for role, default_type, default_count in (
            ("master", cluster["instanceType"], DEFAULT_MASTER_COUNT),
            ("warm", DEFAULT_WARM_TYPE, DEFAULT_WARM_COUNT),
        ):
            flag = "dedicatedMasterEnabled" if role == "master" else "warmEnabled"
            if cluster[flag]:
                cluster.setdefault(f"{role}InstanceType", default_type)
                cluster.setdefault(f"{role}InstanceCount", default_count)
                continue
            for suffix in ("InstanceType", "InstanceCount"):
                discard(
                    cluster,
                    f"{role}{suffix}",
                    path=f"cluster.{role}{suffix}",
                    reason=f"{flag} is false",
                    adjustments=adjustments,
                )

        vpc = config["vpc"]
        if vpc.get("vpcId") or vpc["subnetIds"]:
            overwrite(
                vpc,
                "enabled",
                True,
                path="vpc.enabled",
                reason="a VPC or subnets are configured",
                adjustments=adjustments,
            )
        if not vpc["enabled"]:
            vpc["createSecurityGroup"] = False
        elif vpc.get("createSecurityGroup") is None:
            vpc["createSecurityGroup"] = not vpc["securityGroupIds"]
        if not vpc["ingressRules"]:
            vpc["ingressRules"] = [dict(rule) for rule in DEFAULT_INGRESS_RULES]

        monitoring = config["monitoring"]
        for alarm in monitoring["alarms"].values():
            if alarm.get("enabled") is None:
                alarm["enabled"] = monitoring["enabled"]

        auto_tune = config["maintenance"]["autoTune"]
        if auto_tune.get("desiredState") is None:
            auto_tune["desiredState"] = "ENABLED" if auto_tune["enabled"] else "DISABLED"
        return config

    def check(self, config: Mapping[str, Any]) -> list[ConfigViolation]:
        violations: list[ConfigViolation] = []
        security = config.get("advancedSecurity") or {}
        if security.get("internalUserDatabaseEnabled") and not security.get("masterUserName"):
            violations.append(
                ConfigViolation(
                    kind=ViolationKind.SCHEMA,
                    path="advancedSecurity.masterUserName",
                    reason="the internal user database requires a master user name",
                    expected="non-empty string",
                )
            )
        cluster = config.get("cluster") or {}
        count = cluster.get("instanceCount", 1)
        if cluster.get("zoneAwarenessEnabled") and count < 2:
            violations.append(
                ConfigViolation(
                    kind=ViolationKind.RANGE,
                    path="cluster.instanceCount",
                    reason="zone awareness needs at least two data nodes",
                    expected=">= 2",
                    actual=count,
                )
            )
        return violations
