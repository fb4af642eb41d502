"""auto-scaling-group — EC2 Auto Scaling group behind a launch template."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from shinobi_resolver.components._shared import alarm_schema, string_list
from shinobi_resolver.components.base import ComponentDefinition
from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.naming import derive_resource_name
from shinobi_resolver.domain.schema import (
    array_of,
    boolean,
    is_number,
    number,
    object_of,
    one_of,
    string,
    string_map,
)
from shinobi_resolver.domain.types import BoundsPolicy, ComplianceFramework, ViolationKind
from shinobi_resolver.domain.violations import ConfigViolation
from shinobi_resolver.engine.normalize import Adjustment, clamp_number

TERMINATION_POLICIES = (
    "Default",
    "OldestInstance",
    "NewestInstance",
    "OldestLaunchConfiguration",
    "ClosestToNextInstanceHour",
)

_CAPACITY_LIMIT = 1000

SCHEMA = object_of(
    {
        "name": string(description="Group name; defaults to {service}-{component}."),
        "description": string(),
        "launchTemplate": object_of(
            {
                "instanceType": string(default="t3.micro"),
                "ami": object_of(
                    {
                        "amiId": string(),
                        "namePattern": string(),
                        "owner": string(),
                    }
                ),
                "userData": string(),
                "keyName": string(),
                "detailedMonitoring": boolean(default=False),
                "requireImdsv2": boolean(default=False),
                "installAgents": object_of(
                    {
                        "ssm": boolean(default=False),
                        "cloudwatch": boolean(default=False),
                        "stigHardening": boolean(default=False),
                    }
                ),
            }
        ),
        "capacity": object_of(
            {
                "min": number(required=True, minimum=0, maximum=_CAPACITY_LIMIT, integer=True),
                "max": number(required=True, minimum=0, maximum=_CAPACITY_LIMIT, integer=True),
                "desired": number(
                    minimum=0,
                    maximum=_CAPACITY_LIMIT,
                    integer=True,
                    bounds=BoundsPolicy.CLAMP,
                    description="Defaults to min; always pulled into [min, max].",
                ),
            },
            required=True,
        ),
        "storage": object_of(
            {
                "rootVolumeSize": number(
                    default=20, minimum=8, maximum=16384, integer=True, bounds=BoundsPolicy.CLAMP
                ),
                "rootVolumeType": one_of("gp2", "gp3", "io1", "io2", default="gp3"),
                "encrypted": boolean(default=False),
                "kms": object_of(
                    {
                        "useCustomerManagedKey": boolean(default=False),
                        "enableKeyRotation": boolean(default=False),
                        "kmsKeyArn": string(),
                    }
                ),
            }
        ),
        "healthCheck": object_of(
            {
                "type": one_of("EC2", "ELB", default="EC2"),
                "gracePeriod": number(default=300, minimum=0, maximum=7200, integer=True),
            }
        ),
        "terminationPolicies": array_of(one_of(*TERMINATION_POLICIES), default=["Default"]),
        "updatePolicy": object_of(
            {
                "rollingUpdate": object_of(
                    {
                        "minInstancesInService": number(minimum=0, integer=True),
                        "maxBatchSize": number(minimum=1, integer=True),
                        "pauseTime": string(),
                    }
                )
            }
        ),
        "vpc": object_of(
            {
                "vpcId": string(),
                "subnetIds": string_list(),
                "securityGroupIds": string_list(),
                "subnetType": one_of("PUBLIC", "PRIVATE_WITH_EGRESS", default="PUBLIC"),
                "allowAllOutbound": boolean(default=True),
            }
        ),
        "security": object_of(
            {
                "managedPolicies": string_list(),
                "attachLogDeliveryPolicy": boolean(default=False),
                "stigComplianceTag": boolean(default=False),
            }
        ),
        "monitoring": object_of(
            {
                "enabled": boolean(default=True),
                "alarms": object_of(
                    {
                        "cpuHigh": alarm_schema(enabled=True, threshold=80, comparison="gt"),
                        "inService": alarm_schema(
                            enabled=True,
                            threshold=None,
                            comparison="lt",
                            period_minutes=1,
                            treat_missing_data="breaching",
                            description="Threshold defaults to capacity.min.",
                        ),
                    }
                ),
            }
        ),
        "tags": string_map(),
    }
)


class AutoScalingGroup(ComponentDefinition):
    component_type = "auto-scaling-group"
    description = "EC2 Auto Scaling group with launch template, storage and alarms"
    schema = SCHEMA

    FALLBACKS = {
        "launchTemplate": {"instanceType": "t3.micro"},
        "storage": {"rootVolumeSize": 20, "rootVolumeType": "gp3"},
        "healthCheck": {"type": "EC2", "gracePeriod": 300},
        "terminationPolicies": ["Default"],
    }

    COMPLIANCE_DEFAULTS = {
        ComplianceFramework.COMMERCIAL: {
            "capacity": {"min": 1, "max": 3},
        },
        ComplianceFramework.FEDRAMP_MODERATE: {
            "capacity": {"min": 2, "max": 6},
            "launchTemplate": {
                "instanceType": "m5.large",
                "detailedMonitoring": True,
                "requireImdsv2": True,
                "installAgents": {"ssm": True, "cloudwatch": True},
            },
            "storage": {"rootVolumeSize": 30, "encrypted": True},
            "vpc": {"subnetType": "PRIVATE_WITH_EGRESS"},
            "security": {"attachLogDeliveryPolicy": True},
        },
        ComplianceFramework.FEDRAMP_HIGH: {
            "capacity": {"min": 2, "max": 10},
            "launchTemplate": {
                "instanceType": "m5.xlarge",
                "detailedMonitoring": True,
                "requireImdsv2": True,
                "installAgents": {"ssm": True, "cloudwatch": True, "stigHardening": True},
            },
            "storage": {
                "rootVolumeSize": 50,
                "encrypted": True,
                "kms": {"useCustomerManagedKey": True, "enableKeyRotation": True},
            },
            "healthCheck": {"type": "ELB"},
            "vpc": {"subnetType": "PRIVATE_WITH_EGRESS", "allowAllOutbound": False},
            "security": {"attachLogDeliveryPolicy": True, "stigComplianceTag": True},
        },
    }

    GUARDRAILS = {
        ComplianceFramework.FEDRAMP_MODERATE: {
            "launchTemplate": {"requireImdsv2": True},
            "storage": {"encrypted": True},
        },
        ComplianceFramework.FEDRAMP_HIGH: {
            "launchTemplate": {"requireImdsv2": True, "installAgents": {"stigHardening": True}},
            "storage": {"encrypted": True, "kms": {"useCustomerManagedKey": True}},
        },
    }

    def derive(
        self,
        config: dict[str, Any],
        context: ResolutionContext,
        adjustments: list[Adjustment],
    ) -> dict[str, Any]:
        if not config.get("name"):
            config["name"] = derive_resource_name(context.service_name, context.component_name)

        capacity = config["capacity"]
        low, high = capacity["min"], capacity["max"]
        desired = capacity.get("desired")
        if desired is None:
            capacity["desired"] = low
        else:
            capacity["desired"] = int(clamp_number(desired, low, high))
            if capacity["desired"] != desired:
                adjustments.append(
                    Adjustment(
                        "capacity.desired",
                        desired,
                        capacity["desired"],
                        f"clamped into capacity range [{low}, {high}]",
                    )
                )

        if not config["terminationPolicies"]:
            config["terminationPolicies"] = ["Default"]

        in_service = config["monitoring"]["alarms"]["inService"]
        if in_service.get("threshold") is None:
            in_service["threshold"] = low
        return config

    def check(self, config: Mapping[str, Any]) -> list[ConfigViolation]:
        capacity = config.get("capacity") or {}
        low, high = capacity.get("min"), capacity.get("max")
        if is_number(low) and is_number(high) and low > high:
            return [
                ConfigViolation(
                    kind=ViolationKind.RANGE,
                    path="capacity.min",
                    reason=f"minimum capacity {low} exceeds maximum capacity {high}",
                    expected=f"<= {high}",
                    actual=low,
                )
            ]
        return []
