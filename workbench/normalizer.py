"""
Workflow graph normalizer.

The model writes workflows in n8n's newer, looser parameter schema and
regularly references nodes that do not exist. ``normalize_graph`` repairs
such a document into one a stable n8n instance will import:

Per node:
  - ``typeVersion`` becomes a number (numeric strings parsed, anything else 1)
  - generation-only fields (``ui`` and the branch fields) are removed
  - ``parameters`` becomes a mapping; null entries are deleted and nested
    mappings lose their null fields (one level deep, lists untouched)
  - ``propertyValues`` maps hold lists only
  - ``*.set`` nodes move from the ``assignments`` shape to the ``values`` shape
  - ``*.webhook`` nodes get ``options``, ``responseMode``, ``httpMethod``, ``path``

Per graph:
  - connections survive only when both ends name a normalized node and the
    ``main`` output is a list of lanes of ``{node: str, ...}`` entries
  - ``active``, ``settings`` and ``tags`` receive defaults

The transform is pure (the input is never mutated), total (it never raises)
and idempotent.
"""
import copy
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Set, Union

from workbench.graph import GENERATION_ONLY_FIELDS

MAIN_OUTPUT = "main"
SET_TYPE_SUFFIX = ".set"
WEBHOOK_TYPE_SUFFIX = ".webhook"
PROPERTY_VALUE_KEYS = ("propertyValues",)

DEFAULT_TYPE_VERSION = 1
DEFAULT_EXECUTION_ORDER = "v1"
WEBHOOK_DEFAULTS = (
    ("responseMode", "responseNode"),
    ("httpMethod", "POST"),
    ("path", "webhook"),
)

Number = Union[int, float]


@dataclass
class NormalizationResult:
    """The repaired graph plus a human-readable note for every repair."""
    graph: Dict[str, Any]
    diagnostics: List[str] = field(default_factory=list)


def coerce_type_version(value: Any) -> Number:
    if isinstance(value, bool):
        return DEFAULT_TYPE_VERSION
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else DEFAULT_TYPE_VERSION
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return DEFAULT_TYPE_VERSION
        if not math.isfinite(parsed):
            return DEFAULT_TYPE_VERSION
        return int(parsed) if parsed.is_integer() else parsed
    return DEFAULT_TYPE_VERSION


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if value is None:
        return []
    return [value]


def _clean_parameters(params: Dict[str, Any]) -> Dict[str, Any]:
    for key in PROPERTY_VALUE_KEYS:
        if isinstance(params.get(key), dict):
            params[key] = {k: _as_list(v) for k, v in params[key].items()}

    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, dict):
            value = {k: v for k, v in value.items() if v is not None}
        cleaned[key] = value
    return cleaned


def rewrite_set_parameters(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert set-node parameters from the ``assignments`` shape to ``values``.

    ``{"assignments": {"assignments": [{"name", "value", ...}]}, "includeOtherFields": bool}``
    becomes ``{"keepOnlySet": not includeOtherFields, "values": {"string": [...]}, "options": {}}``.
    Parameters already holding ``values`` are returned unchanged.
    """
    if "values" in params:
        return params

    container = params.get("assignments")
    include_other = params.get("includeOtherFields")
    if isinstance(container, dict):
        if include_other is None:
            include_other = container.get("includeOtherFields")
        assignments = container.get("assignments")
    else:
        assignments = container
    if not isinstance(assignments, list):
        return params

    values = [
        {"name": a["name"], "value": "" if a.get("value") is None else a["value"]}
        for a in assignments
        if isinstance(a, dict) and a.get("name")
    ]
    return {
        "keepOnlySet": include_other is not True,
        "values": {"string": values},
        "options": {},
    }


def _apply_webhook_defaults(params: Dict[str, Any], label: str, diagnostics: List[str]) -> None:
    if not isinstance(params.get("options"), dict):
        params["options"] = {}
    for key, default in WEBHOOK_DEFAULTS:
        if not params.get(key):
            params[key] = default
            diagnostics.append(f"{label}: defaulted webhook {key} to {default!r}")


def normalize_node(node: Dict[str, Any], diagnostics: List[str]) -> Dict[str, Any]:
    n = {k: copy.deepcopy(v) for k, v in node.items() if k not in GENERATION_ONLY_FIELDS}
    label = f"node {n.get('name')!r}"

    n["typeVersion"] = coerce_type_version(n.get("typeVersion"))

    params = n.get("parameters")
    if not isinstance(params, dict):
        if params is not None:
            diagnostics.append(f"{label}: replaced non-object parameters")
        params = {}
    params = _clean_parameters(params)

    node_type = n.get("type") if isinstance(n.get("type"), str) else ""
    if node_type.endswith(SET_TYPE_SUFFIX):
        rewritten = rewrite_set_parameters(params)
        if rewritten is not params:
            diagnostics.append(f"{label}: rewrote set assignments into values")
        params = rewritten
    if node_type.endswith(WEBHOOK_TYPE_SUFFIX):
        _apply_webhook_defaults(params, label, diagnostics)

    n["parameters"] = params
    return n


def normalize_connections(
    connections: Any,
    node_names: Set[str],
    diagnostics: List[str],
) -> Dict[str, Dict[str, List[List[Dict[str, Any]]]]]:
    if not isinstance(connections, dict):
        if connections is not None:
            diagnostics.append("replaced non-object connections")
        return {}

    result = {}
    for source, outputs in connections.items():
        if source not in node_names:
            diagnostics.append(f"dropped connections from unknown node {source!r}")
            continue
        main = outputs.get(MAIN_OUTPUT) if isinstance(outputs, dict) else None
        if not isinstance(main, list):
            diagnostics.append(f"dropped connections from {source!r}: no main output list")
            continue

        lanes = []
        for lane in main:
            if not isinstance(lane, list):
                lanes.append([])
                continue
            kept = []
            for entry in lane:
                if not isinstance(entry, dict) or not isinstance(entry.get("node"), str):
                    diagnostics.append(f"dropped malformed connection entry from {source!r}")
                    continue
                if entry["node"] not in node_names:
                    diagnostics.append(f"dropped connection {source!r} -> unknown node {entry['node']!r}")
                    continue
                kept.append(copy.deepcopy(entry))
            lanes.append(kept)
        result[source] = {MAIN_OUTPUT: lanes}
    return result


def normalize_graph(raw: Any) -> NormalizationResult:
    """Repair a model-generated workflow. Never raises."""
    diagnostics: List[str] = []
    if not isinstance(raw, dict):
        diagnostics.append(f"replaced non-object workflow ({type(raw).__name__})")
        raw = {}

    graph = {k: copy.deepcopy(v) for k, v in raw.items() if k not in ("nodes", "connections")}

    raw_nodes = raw.get("nodes")
    if not isinstance(raw_nodes, list):
        if raw_nodes is not None:
            diagnostics.append("replaced non-list nodes")
        raw_nodes = []
    nodes = []
    for index, node in enumerate(raw_nodes):
        if not isinstance(node, dict):
            diagnostics.append(f"dropped non-object node at index {index}")
            continue
        nodes.append(normalize_node(node, diagnostics))
    graph["nodes"] = nodes

    node_names = {n["name"] for n in nodes if isinstance(n.get("name"), str)}
    graph["connections"] = normalize_connections(raw.get("connections"), node_names, diagnostics)

    if not isinstance(graph.get("active"), bool):
        graph["active"] = False
    if not isinstance(graph.get("settings"), dict):
        graph["settings"] = {"executionOrder": DEFAULT_EXECUTION_ORDER}
    if not isinstance(graph.get("tags"), list):
        graph["tags"] = []

    return NormalizationResult(graph=graph, diagnostics=diagnostics)
