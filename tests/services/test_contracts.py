"""Tests for service payload contracts."""

import pytest
from pydantic import ValidationError

from shinobi_resolver.services.contracts import (
    ComponentListData,
    ResolveResultData,
    dump_validated,
)


class TestDumpValidated:
    def test_round_trips_valid_payload(self) -> None:
        data = {
            "count": 1,
            "items": [
                {
                    "component_type": "auto-scaling-group",
                    "description": "EC2 group",
                    "frameworks": ["commercial"],
                }
            ],
        }
        assert dump_validated(ComponentListData, data) == data

    def test_missing_key_fails(self) -> None:
        with pytest.raises(ValidationError):
            dump_validated(ComponentListData, {"items": []})

    def test_resolve_payload_keeps_provenance(self) -> None:
        data = {
            "component_type": "auto-scaling-group",
            "component_name": "workers",
            "framework": "commercial",
            "environment": "dev",
            "config": {"capacity": {"min": 1}},
            "adjustments": [],
            "provenance": {"capacity.min": "compliance-defaults:commercial"},
        }
        dumped = dump_validated(ResolveResultData, data)
        assert dumped["provenance"] == {"capacity.min": "compliance-defaults:commercial"}
