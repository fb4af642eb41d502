"""Service manifest and override file loading (YAML via ruamel.yaml).

A service manifest declares one compliance framework for the whole
service and the components it is built from::

    service: checkout
    owner: payments-team
    complianceFramework: fedramp-moderate
    components:
      - name: search
        type: opensearch-domain
        config:
          cluster:
            instanceCount: 4

Each component's ``config`` block becomes that component's user layer.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from shinobi_resolver.domain.schema import join_path
from shinobi_resolver.domain.types import ComplianceFramework


class ManifestError(ValueError):
    """The manifest or overrides file is missing, unparsable or malformed."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = str(path)
        super().__init__(f"{path}: {message}")


def _new_yaml() -> YAML:
    """Create a fresh safe YAML parser (plain dicts and lists)."""
    return YAML(typ="safe", pure=True)


class ManifestComponent(BaseModel):
    """One entry of the manifest ``components`` list."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    type: str
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("config", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class ServiceManifest(BaseModel):
    """A service and the components it declares."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    service: str
    owner: str | None = None
    framework: ComplianceFramework = Field(
        default=ComplianceFramework.COMMERCIAL, alias="complianceFramework"
    )
    environment: str | None = None
    components: list[ManifestComponent] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_component_names(self) -> ServiceManifest:
        seen: set[str] = set()
        for component in self.components:
            if component.name in seen:
                msg = f"duplicate component name {component.name!r}"
                raise ValueError(msg)
            seen.add(component.name)
        return self

    def component(self, name: str) -> ManifestComponent | None:
        return next((c for c in self.components if c.name == name), None)


def _read_yaml(path: Path) -> Any:
    if not path.is_file():
        raise ManifestError(path, "file not found")
    try:
        return _new_yaml().load(path.read_text(encoding="utf-8"))
    except YAMLError as exc:
        raise ManifestError(path, f"invalid YAML: {exc}") from exc


def load_manifest(path: Path) -> ServiceManifest:
    """Parse and validate a service manifest.

    Raises:
        ManifestError: If the file is missing, not YAML, or not a manifest.
    """
    data = _read_yaml(path)
    if not isinstance(data, dict):
        raise ManifestError(path, "a manifest must be a mapping")
    try:
        return ServiceManifest.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ManifestError(path, problems) from exc


def load_overrides(path: Path) -> dict[str, Any]:
    """Parse a YAML file holding one component's user overrides.

    An empty file means "no overrides".

    Raises:
        ManifestError: If the file is missing, not YAML, or not a mapping.
    """
    data = _read_yaml(path)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ManifestError(path, "overrides must be a mapping")
    return data


def parse_assignment(text: str) -> tuple[list[str], Any]:
    """Split ``a.b.c=value`` into a key path and a YAML-typed value.

    ``true`` becomes a boolean, ``3`` a number and ``[a, b]`` a list.

    Raises:
        ValueError: If *text* has no ``=`` or an empty key segment.
    """
    key, sep, raw = text.partition("=")
    parts = key.strip().split(".")
    if not sep or not all(parts):
        msg = f"expected PATH=VALUE, got {text!r}"
        raise ValueError(msg)
    if not raw.strip():
        return parts, ""
    try:
        return parts, _new_yaml().load(raw)
    except YAMLError as exc:
        msg = f"invalid value in {text!r}: {exc}"
        raise ValueError(msg) from exc


def apply_assignments(base: dict[str, Any], assignments: list[str]) -> dict[str, Any]:
    """Apply ``--set`` style assignments onto *base* (mutated and returned).

    Raises:
        ValueError: If an assignment is malformed or walks through a scalar.
    """
    for text in assignments:
        parts, value = parse_assignment(text)
        node = base
        for index, part in enumerate(parts[:-1]):
            child = node.setdefault(part, {})
            if not isinstance(child, dict):
                where = join_path(".".join(parts[:index]), part)
                msg = f"cannot set {text!r}: {where} is not an object"
                raise ValueError(msg)
            node = child
        node[parts[-1]] = value
    return base
