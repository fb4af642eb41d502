"""Tests for service manifest and overrides loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from shinobi_resolver.domain.types import ComplianceFramework
from shinobi_resolver.infrastructure.manifest import (
    ManifestError,
    ServiceManifest,
    apply_assignments,
    load_manifest,
    load_overrides,
    parse_assignment,
)

MANIFEST = """\
service: checkout
owner: payments-team
complianceFramework: fedramp-moderate
components:
  - name: search
    type: opensearch-domain
    config:
      cluster:
        instanceCount: 4
  - name: edge
    type: cloudfront-distribution
    config:
"""


def _write(tmp_path: Path, text: str, name: str = "service.yml") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadManifest:
    def test_loads_components(self, tmp_path: Path) -> None:
        manifest = load_manifest(_write(tmp_path, MANIFEST))
        assert manifest.service == "checkout"
        assert manifest.framework is ComplianceFramework.FEDRAMP_MODERATE
        assert [c.name for c in manifest.components] == ["search", "edge"]
        assert manifest.components[0].config == {"cluster": {"instanceCount": 4}}

    def test_null_config_is_empty(self, tmp_path: Path) -> None:
        manifest = load_manifest(_write(tmp_path, MANIFEST))
        edge = manifest.component("edge")
        assert edge is not None
        assert edge.config == {}
        assert manifest.component("missing") is None

    def test_framework_defaults_to_commercial(self) -> None:
        manifest = ServiceManifest.model_validate({"service": "checkout"})
        assert manifest.framework is ComplianceFramework.COMMERCIAL
        assert manifest.components == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="file not found") as excinfo:
            load_manifest(tmp_path / "absent.yml")
        assert excinfo.value.path.endswith("absent.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="invalid YAML"):
            load_manifest(_write(tmp_path, "service: [checkout\n"))

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="must be a mapping"):
            load_manifest(_write(tmp_path, "- a\n- b\n"))

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="owners"):
            load_manifest(_write(tmp_path, "service: checkout\nowners: team\n"))

    def test_unknown_framework_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="complianceFramework"):
            load_manifest(_write(tmp_path, "service: checkout\ncomplianceFramework: iso\n"))

    def test_duplicate_component_names(self, tmp_path: Path) -> None:
        text = (
            "service: checkout\n"
            "components:\n"
            "  - {name: web, type: auto-scaling-group}\n"
            "  - {name: web, type: cloudfront-distribution}\n"
        )
        with pytest.raises(ManifestError, match="duplicate component name 'web'"):
            load_manifest(_write(tmp_path, text))


class TestLoadOverrides:
    def test_mapping(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "capacity:\n  min: 2\n", "overrides.yml")
        assert load_overrides(path) == {"capacity": {"min": 2}}

    def test_empty_file(self, tmp_path: Path) -> None:
        assert load_overrides(_write(tmp_path, "", "overrides.yml")) == {}

    def test_scalar_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="must be a mapping"):
            load_overrides(_write(tmp_path, "42\n", "overrides.yml"))


class TestAssignments:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("capacity.min=3", (["capacity", "min"], 3)),
            ("logging.enabled=true", (["logging", "enabled"], True)),
            ("priceClass=PriceClass_All", (["priceClass"], "PriceClass_All")),
            (
                "terminationPolicies=[Default, OldestInstance]",
                (["terminationPolicies"], ["Default", "OldestInstance"]),
            ),
            ("comment=", (["comment"], "")),
        ],
    )
    def test_parse_assignment(self, text: str, expected: tuple) -> None:
        assert parse_assignment(text) == expected

    @pytest.mark.parametrize("text", ["capacity.min", "capacity..min=3", "=3"])
    def test_malformed_assignment(self, text: str) -> None:
        with pytest.raises(ValueError, match="expected PATH=VALUE"):
            parse_assignment(text)

    def test_apply_onto_existing_tree(self) -> None:
        base = {"capacity": {"min": 1, "max": 3}}
        result = apply_assignments(base, ["capacity.max=6", "storage.encrypted=true"])
        assert result is base
        assert base == {"capacity": {"min": 1, "max": 6}, "storage": {"encrypted": True}}

    def test_cannot_walk_through_scalar(self) -> None:
        with pytest.raises(ValueError, match="capacity.min is not an object"):
            apply_assignments({"capacity": {"min": 1}}, ["capacity.min.value=2"])
