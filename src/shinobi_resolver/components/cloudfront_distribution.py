"""cloudfront-distribution — CDN distribution in front of S3, an ALB or a custom origin."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from shinobi_resolver.components._shared import alarm_schema, string_list
from shinobi_resolver.components.base import ComponentDefinition
from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.naming import derive_resource_name, sanitize_identifier
from shinobi_resolver.domain.schema import (
    array_of,
    boolean,
    object_of,
    one_of,
    string,
    string_map,
)
from shinobi_resolver.domain.types import BoundsPolicy, ComplianceFramework, ViolationKind
from shinobi_resolver.domain.violations import ConfigViolation

VIEWER_PROTOCOL_POLICIES = ("allow-all", "redirect-to-https", "https-only")
PRICE_CLASSES = ("PriceClass_100", "PriceClass_200", "PriceClass_All")
DEFAULT_METHODS = ["GET", "HEAD"]

# Alarm thresholds; enablement follows monitoring.enabled unless set explicitly.
_ALARM = {
    "error4xx": 50,
    "error5xx": 10,
    "originLatencyMs": 5000,
}


def _behavior_fields(*, policy_default: str | None) -> dict[str, Any]:
    policy = (
        one_of(*VIEWER_PROTOCOL_POLICIES)
        if policy_default is None
        else one_of(*VIEWER_PROTOCOL_POLICIES, default=policy_default)
    )
    return {
        "viewerProtocolPolicy": policy,
        "allowedMethods": string_list(default=DEFAULT_METHODS),
        "cachedMethods": string_list(default=DEFAULT_METHODS),
        "compress": boolean(default=True),
        "cachePolicyId": string(),
        "originRequestPolicyId": string(),
    }


SCHEMA = object_of(
    {
        "comment": string(
            default="Managed by Shinobi platform", max_length=128, bounds=BoundsPolicy.CLAMP
        ),
        "origin": object_of(
            {
                "type": one_of("s3", "alb", "custom", required=True),
                "s3BucketName": string(max_length=63),
                "albDnsName": string(),
                "customDomainName": string(),
                "originPath": string(),
                "customHeaders": string_map(),
            },
            required=True,
        ),
        "defaultBehavior": object_of(_behavior_fields(policy_default="allow-all")),
        "additionalBehaviors": array_of(
            object_of(
                {"pathPattern": string(required=True), **_behavior_fields(policy_default=None)}
            ),
            default=[],
        ),
        "priceClass": one_of(*PRICE_CLASSES, default="PriceClass_100"),
        "geoRestriction": object_of(
            {
                "type": one_of("none", "whitelist", "blacklist", default="none"),
                "countries": string_list(),
            }
        ),
        "domain": object_of(
            {
                "domainNames": string_list(),
                "certificateArn": string(),
            }
        ),
        "logging": object_of(
            {
                "enabled": boolean(default=False),
                "bucket": string(),
                "prefix": string(),
                "includeCookies": boolean(default=False),
            }
        ),
        "monitoring": object_of(
            {
                "enabled": boolean(default=False),
                "alarms": object_of(
                    {
                        name: alarm_schema(enabled=None, threshold=threshold)
                        for name, threshold in _ALARM.items()
                    }
                ),
            }
        ),
        "webAclId": string(),
        "hardeningProfile": string(default="baseline"),
        "tags": string_map(),
    }
)


class CloudFrontDistribution(ComponentDefinition):
    component_type = "cloudfront-distribution"
    description = "CloudFront distribution with behaviors, geo restriction, logging and alarms"
    schema = SCHEMA

    FALLBACKS = {
        "comment": "Managed by Shinobi platform",
        "origin": {"type": "s3"},
        "defaultBehavior": {"viewerProtocolPolicy": "allow-all", "compress": True},
        "priceClass": "PriceClass_100",
        "geoRestriction": {"type": "none"},
        "logging": {"enabled": False},
        "monitoring": {"enabled": False},
        "hardeningProfile": "baseline",
    }

    COMPLIANCE_DEFAULTS = {
        ComplianceFramework.COMMERCIAL: {},
        ComplianceFramework.FEDRAMP_MODERATE: {
            "defaultBehavior": {"viewerProtocolPolicy": "redirect-to-https"},
            "logging": {"enabled": True},
            "monitoring": {"enabled": True},
            "hardeningProfile": "fedramp-moderate",
        },
        ComplianceFramework.FEDRAMP_HIGH: {
            "defaultBehavior": {"viewerProtocolPolicy": "https-only"},
            "priceClass": "PriceClass_All",
            "logging": {"enabled": True, "includeCookies": True},
            "monitoring": {"enabled": True},
            "hardeningProfile": "fedramp-high",
        },
    }

    GUARDRAILS = {
        ComplianceFramework.FEDRAMP_MODERATE: {"logging": {"enabled": True}},
        ComplianceFramework.FEDRAMP_HIGH: {
            "logging": {"enabled": True},
            "defaultBehavior": {"viewerProtocolPolicy": "https-only"},
        },
    }

    def derive(
        self,
        config: dict[str, Any],
        context: ResolutionContext,
        adjustments: list[Adjustment],
    ) -> dict[str, Any]:
        base_name = derive_resource_name(context.service_name, context.component_name)

        origin = config["origin"]
        if origin["type"] == "s3" and not origin.get("s3BucketName"):
            origin["s3BucketName"] = sanitize_identifier(
                f"{base_name}-origin",
                max_length=63,
                allowed="a-z0-9.-",
                letter_start=False,
                fallback="cloudfront-origin",
            )

        default_policy = config["defaultBehavior"]["viewerProtocolPolicy"]
        for behavior in config["additionalBehaviors"]:
            if behavior.get("viewerProtocolPolicy") is None:
                behavior["viewerProtocolPolicy"] = default_policy

        monitoring = config["monitoring"]
        for alarm in monitoring["alarms"].values():
            if alarm.get("enabled") is None:
                alarm["enabled"] = monitoring["enabled"]

        logging_cfg = config["logging"]
        if logging_cfg["enabled"]:
            if not logging_cfg.get("bucket"):
                logging_cfg["bucket"] = sanitize_identifier(
                    f"{base_name}-logs",
                    max_length=63,
                    allowed="a-z0-9.-",
                    letter_start=False,
                    fallback="cloudfront-logs",
                )
            if not logging_cfg.get("prefix"):
                logging_cfg["prefix"] = f"{context.component_name}/"
        return config

    def check(self, config: Mapping[str, Any]) -> list[ConfigViolation]:
        violations: list[ConfigViolation] = []
        origin = config.get("origin") or {}
        required_by_type = {"alb": "albDnsName", "custom": "customDomainName"}
        needed = required_by_type.get(origin.get("type", ""))
        if needed and not origin.get(needed):
            violations.append(
                ConfigViolation(
                    kind=ViolationKind.SCHEMA,
                    path=f"origin.{needed}",
                    reason=f"origin type {origin['type']!r} requires {needed}",
                    expected="non-empty string",
                )
            )
        geo = config.get("geoRestriction") or {}
        if geo.get("type") in ("whitelist", "blacklist") and not geo.get("countries"):
            violations.append(
                ConfigViolation(
                    kind=ViolationKind.SCHEMA,
                    path="geoRestriction.countries",
                    reason=f"geo restriction type {geo['type']!r} requires at least one country",
                    expected="non-empty array",
                    actual=geo.get("countries"),
                )
            )
        return violations
