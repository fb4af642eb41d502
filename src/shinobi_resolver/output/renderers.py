"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from shinobi_resolver.output.console import create_console, get_output, style_for_layer

if TYPE_CHECKING:
    from rich.console import Console

    from shinobi_resolver.services.result import ServiceResult

Renderer = Callable[..., None]


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    if result.op == "list_components":
        return "\n".join(item["component_type"] for item in result.data.get("items", []))
    if result.op == "plan_manifest":
        return "\n".join(c["name"] for c in result.data.get("components", []))

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def format_value(value: Any) -> str:
    """Render a leaf value the way it would appear in JSON."""
    return _json.dumps(value, separators=(", ", ": "), default=str)


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    label = Text("OK", style="shinobi.ok")
    op = Text(f"  {result.op}", style="shinobi.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="shinobi.key")
    console.print(k, Text(str(value)), end="")
    console.print()


def _layer_text(name: str) -> Text:
    return Text(name, style=style_for_layer(name))


def _config_tree(
    label: str,
    tree: Mapping[str, Any],
    *,
    provenance: Mapping[str, str] | None = None,
    prefix: str = "",
) -> Tree:
    """Build a Rich tree of a configuration, leaves annotated with their layer."""
    node = Tree(Text(label, style="bold"))
    _add_branches(node, tree, provenance or {}, prefix)
    return node


def _add_branches(
    node: Tree, tree: Mapping[str, Any], provenance: Mapping[str, str], prefix: str
) -> None:
    for key, value in tree.items():
        path = f"{prefix}.{key}" if prefix else key
        if isinstance(value, Mapping) and value:
            child = node.add(Text(key, style="shinobi.path"))
            _add_branches(child, value, provenance, path)
            continue
        line = Text.assemble((key, "shinobi.path"), ": ", format_value(value))
        source = provenance.get(path)
        if source:
            line.append("  ")
            line.append_text(_layer_text(source))
        node.add(line)


def _violation_table(violations: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Path", style="shinobi.path", no_wrap=True)
    table.add_column("Kind")
    table.add_column("Reason")
    table.add_column("Expected", style="dim")
    table.add_column("Actual")
    table.add_column("Layer")
    for v in violations:
        layer = v.get("layer")
        table.add_row(
            v.get("path") or "<root>",
            str(v.get("kind", "")),
            str(v.get("reason", "")),
            str(v.get("expected") or ""),
            format_value(v.get("actual")),
            _layer_text(layer) if layer else Text(""),
        )
    return table


def _render_adjustments(console: Console, adjustments: list[dict[str, Any]]) -> None:
    if not adjustments:
        return
    console.print()
    console.print(Text("  adjustments:", style="dim"))
    for adj in adjustments:
        console.print(
            Text.assemble(
                "    ",
                (adj["path"], "shinobi.path"),
                f": {format_value(adj['original'])} -> {format_value(adj['adjusted'])}",
                (f" ({adj['reason']})", "dim"),
            )
        )


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="shinobi.error")
    op = Text(f"  {result.op}", style="shinobi.op")
    console.print(label, op, Text(" — "), Text(msg))

    if err is None:
        return
    # Violations are listed even without --verbose.
    if "violations" in err.detail:
        console.print(_violation_table(err.detail["violations"]))
    for name, violations in err.detail.get("components", {}).items():
        console.print(Text(f"\n{name}", style="bold"))
        console.print(_violation_table(violations))
    if "known" in err.detail:
        console.print(f"  known types: {', '.join(err.detail['known'])}")

    if verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            if k in ("violations", "components"):
                continue
            console.print(Text(f"    {k}: {v}"))


# ── Catalog renderers ─────────────────────────────────────────────────


def _render_components(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_components as a table."""
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Type", style="shinobi.path", no_wrap=True)
    table.add_column("Frameworks")
    table.add_column("Description")
    for item in items:
        table.add_row(
            item["component_type"],
            ", ".join(item.get("frameworks", [])),
            item.get("description", ""),
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} components")


def _schema_branch(
    node: Tree, name: str, doc: Mapping[str, Any], *, required: bool = False
) -> None:
    kind = doc.get("type", "?")
    facts: list[str] = [kind]
    if required:
        facts.append("required")
    if "enum" in doc:
        facts.append("one of " + ", ".join(format_value(v) for v in doc["enum"]))
    if "minimum" in doc or "maximum" in doc:
        facts.append(f"range {doc.get('minimum', '-inf')}..{doc.get('maximum', 'inf')}")
    if "maxLength" in doc:
        facts.append(f"max length {doc['maxLength']}")
    if "outOfRange" in doc:
        facts.append(f"out of range: {doc['outOfRange']}")
    if "default" in doc and kind != "object":
        facts.append(f"default {format_value(doc['default'])}")
    label = Text.assemble((name, "shinobi.path"), "  ", (", ".join(facts), "dim"))
    child = node.add(label)
    needed = set(doc.get("required", ()))
    for prop, sub in doc.get("properties", {}).items():
        _schema_branch(child, prop, sub, required=prop in needed)
    if isinstance(doc.get("items"), Mapping):
        _schema_branch(child, "[]", doc["items"])


def _render_schema(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render describe_schema as a field tree."""
    d = result.data
    _status_line(console, result)
    _field(console, "component_type", d["component_type"])
    _field(console, "description", d.get("description", ""))
    definition = d.get("definition", {})
    root = Tree(Text("fields", style="bold"))
    needed = set(definition.get("required", ()))
    for prop, sub in definition.get("properties", {}).items():
        _schema_branch(root, prop, sub, required=prop in needed)
    console.print(root)
    if verbose:
        console.print(_config_tree("hardcoded-fallbacks", d.get("fallbacks", {})))
        for fw, values in d.get("compliance_defaults", {}).items():
            if values:
                console.print(_config_tree(f"compliance-defaults:{fw}", values))
        for fw, values in d.get("guardrails", {}).items():
            if values:
                console.print(_config_tree(f"compliance-guardrails:{fw}", values))


# ── Resolution renderers ──────────────────────────────────────────────


def _render_resolve(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render resolve_component as a configuration tree."""
    d = result.data
    _status_line(console, result)
    for key in ("component_type", "component_name", "framework", "environment"):
        _field(console, key, d[key])
    label = f"{d['component_name']} ({d['component_type']})"
    console.print(_config_tree(label, d.get("config", {}), provenance=d.get("provenance")))
    if verbose:
        _render_adjustments(console, d.get("adjustments", []))


def _render_explain(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render explain_component as a per-field source table."""
    d = result.data
    _status_line(console, result)
    for key in ("component_type", "component_name", "framework", "environment"):
        _field(console, key, d[key])

    console.print()
    console.print(Text("layers", style="bold"))
    for layer in d.get("layers", []):
        keys = ", ".join(layer.get("values", {})) or "(empty)"
        console.print(
            Text.assemble(f"  {layer['rank']} ", _layer_text(layer["name"]), (f"  {keys}", "dim"))
        )

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Path", style="shinobi.path", no_wrap=True)
    table.add_column("Value")
    table.add_column("Source")
    for f in d.get("fields", []):
        table.add_row(f["path"], format_value(f["value"]), _layer_text(f["source"]))
    console.print()
    console.print(table)

    overrides = d.get("overrides", [])
    if overrides and verbose:
        console.print()
        console.print(Text("  overrides:", style="dim"))
        for o in overrides:
            console.print(
                Text.assemble(
                    "    ",
                    (o["path"], "shinobi.path"),
                    f": {format_value(o['previous_value'])} (",
                    _layer_text(o["previous_layer"]),
                    f") -> {format_value(o['value'])} (",
                    _layer_text(o["layer"]),
                    ")",
                )
            )
    conflicts = d.get("conflicts", [])
    if conflicts:
        console.print()
        console.print(Text("conflicts", style="shinobi.warning"))
        console.print(_violation_table(conflicts))
    _render_adjustments(console, d.get("adjustments", []))


def _render_plan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render plan_manifest as a component table (full trees when verbose)."""
    d = result.data
    _status_line(console, result)
    for key in ("service", "owner", "framework", "environment"):
        if d.get(key):
            _field(console, key, d[key])
    components = d.get("components", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Name", style="shinobi.path", no_wrap=True)
    table.add_column("Type")
    table.add_column("Fields", justify="right")
    for c in components:
        table.add_row(c["name"], c["type"], str(len(c.get("config", {}))))
    console.print(table)
    if verbose:
        for c in components:
            console.print(_config_tree(f"{c['name']} ({c['type']})", c.get("config", {})))
    console.print(f"\n{d.get('count', len(components))} components resolved")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":"), default=str))
        else:
            _field(console, key, value)
    if verbose and result.meta:
        console.print()
        console.print(Text("  meta:", style="dim"))
        for k, v in result.meta.items():
            console.print(Text(f"    {k}: {v}"))


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Renderer] = {
    "list_components": _render_components,
    "describe_schema": _render_schema,
    "resolve_component": _render_resolve,
    "explain_component": _render_explain,
    "plan_manifest": _render_plan,
}
