"""Tests for the cloudfront-distribution definition."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from shinobi_resolver.components.cloudfront_distribution import CloudFrontDistribution
from shinobi_resolver.domain.context import ResolutionContext
from shinobi_resolver.domain.types import ComplianceFramework
from shinobi_resolver.domain.violations import ResolutionError
from shinobi_resolver.engine import resolve, resolve_detailed

ContextFactory = Callable[..., ResolutionContext]


def _context(make_context: ContextFactory, framework=ComplianceFramework.COMMERCIAL):
    return make_context("cloudfront-distribution", "cdn", framework=framework)


class TestDefaults:
    def test_commercial(self, make_context: ContextFactory) -> None:
        config = resolve(CloudFrontDistribution(), _context(make_context))
        assert config.get("defaultBehavior.viewerProtocolPolicy") == "allow-all"
        assert config.get("logging.enabled") is False
        assert config.get("monitoring.alarms.error5xx.enabled") is False
        assert config["comment"] == "Managed by Shinobi platform"

    def test_high(self, make_context: ContextFactory) -> None:
        config = resolve(
            CloudFrontDistribution(), _context(make_context, ComplianceFramework.FEDRAMP_HIGH)
        )
        assert config.get("defaultBehavior.viewerProtocolPolicy") == "https-only"
        assert config.get("logging.enabled") is True
        assert config.get("logging.bucket") == "checkout-cdn-logs"
        assert config.get("logging.prefix") == "cdn/"
        assert config.get("monitoring.alarms.error4xx.enabled") is True
        assert config["hardeningProfile"] == "fedramp-high"


class TestDerivation:
    def test_s3_bucket_name_derived(self, make_context: ContextFactory) -> None:
        config = resolve(CloudFrontDistribution(), _context(make_context))
        assert config.get("origin.s3BucketName") == "checkout-cdn-origin"

    def test_additional_behaviors_inherit_policy(self, make_context: ContextFactory) -> None:
        overrides = {
            "defaultBehavior": {"viewerProtocolPolicy": "redirect-to-https"},
            "additionalBehaviors": [{"pathPattern": "/api/*"}],
        }
        config = resolve(CloudFrontDistribution(), _context(make_context), overrides)
        [behavior] = config.to_dict()["additionalBehaviors"]
        assert behavior["viewerProtocolPolicy"] == "redirect-to-https"
        assert behavior["allowedMethods"] == ["GET", "HEAD"]

    def test_long_comment_truncated(self, make_context: ContextFactory) -> None:
        resolution = resolve_detailed(
            CloudFrontDistribution(), _context(make_context), {"comment": "x" * 200}
        )
        assert len(resolution.config["comment"]) == 128
        assert [a.path for a in resolution.adjustments] == ["comment"]


class TestGuardrails:
    def test_logging_cannot_be_disabled_under_moderate(self, make_context: ContextFactory) -> None:
        context = _context(make_context, ComplianceFramework.FEDRAMP_MODERATE)
        resolution = resolve_detailed(
            CloudFrontDistribution(), context, {"logging": {"enabled": False}}
        )
        assert resolution.config.get("logging.enabled") is True
        assert [o.path for o in resolution.superseded] == ["logging.enabled"]


class TestChecks:
    def test_alb_origin_needs_dns_name(self, make_context: ContextFactory) -> None:
        with pytest.raises(ResolutionError) as excinfo:
            resolve(CloudFrontDistribution(), _context(make_context), {"origin": {"type": "alb"}})
        assert [v.path for v in excinfo.value.violations] == ["origin.albDnsName"]

    def test_geo_restriction_needs_countries(self, make_context: ContextFactory) -> None:
        with pytest.raises(ResolutionError) as excinfo:
            resolve(
                CloudFrontDistribution(),
                _context(make_context),
                {"geoRestriction": {"type": "whitelist"}},
            )
        assert [v.path for v in excinfo.value.violations] == ["geoRestriction.countries"]

    def test_price_class_enum(self, make_context: ContextFactory) -> None:
        with pytest.raises(ResolutionError) as excinfo:
            resolve(
                CloudFrontDistribution(), _context(make_context), {"priceClass": "PriceClass_50"}
            )
        assert excinfo.value.violations[0].path == "priceClass"
