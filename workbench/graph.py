"""
Walking the workflow generation tree.

While generating a workflow the model may nest nodes under branch fields
(``true_branch``/``false_branch`` for conditionals, ``default_case`` and
``cases[].branch`` for switches) and attach UI components (``ui``) to a
node. Those fields never reach the emitted graph (the normalizer strips
them) but they are where an embedded agent prompt lives.
"""
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

CONDITIONAL_FIELDS = ("true_branch", "false_branch")
SWITCH_FIELDS = ("default_case", "cases")
BRANCH_FIELDS = CONDITIONAL_FIELDS + SWITCH_FIELDS
GENERATION_ONLY_FIELDS = ("ui",) + BRANCH_FIELDS

PROMPT_LABEL = "prompt"

_END = object()


class NodeKind(Enum):
    PLAIN = "plain"
    CONDITIONAL = "conditional"
    SWITCH = "switch"


def node_kind(node: Dict[str, Any]) -> NodeKind:
    if any(node.get(f) for f in SWITCH_FIELDS):
        return NodeKind.SWITCH
    if any(node.get(f) for f in CONDITIONAL_FIELDS):
        return NodeKind.CONDITIONAL
    return NodeKind.PLAIN


def children(node: Dict[str, Any]) -> Iterator[List[Any]]:
    """
    Yield each child node sequence of ``node``.

    Order: true branch, false branch, default case, then every case's
    branch. A node tagged SWITCH that also carries conditional branches
    still yields them first.
    """
    if node_kind(node) is NodeKind.PLAIN:
        return
    for name in CONDITIONAL_FIELDS + ("default_case",):
        branch = node.get(name)
        if isinstance(branch, list):
            yield branch
    cases = node.get("cases")
    if isinstance(cases, list):
        for case in cases:
            if isinstance(case, dict) and isinstance(case.get("branch"), list):
                yield case["branch"]


def walk(nodes: Any) -> Iterator[Dict[str, Any]]:
    """Depth-first, pre-order iteration over ``nodes`` and all nested branches."""
    if not isinstance(nodes, list):
        return
    stack = [iter(nodes)]
    seen = set()
    while stack:
        node = next(stack[-1], _END)
        if node is _END:
            stack.pop()
            continue
        if not isinstance(node, dict) or id(node) in seen:
            continue
        seen.add(id(node))
        yield node
        nested = [n for seq in children(node) for n in seq]
        if nested:
            stack.append(iter(nested))


def ui_components(node: Dict[str, Any]) -> List[Dict[str, Any]]:
    ui = node.get("ui")
    if not isinstance(ui, list):
        return []
    return [c for c in ui if isinstance(c, dict)]


def find_prompt(nodes: Any) -> Optional[str]:
    """Return the value of the first UI component labelled "prompt", if any."""
    for node in walk(nodes):
        for component in ui_components(node):
            label = component.get("label")
            if not isinstance(label, str) or label.strip().lower() != PROMPT_LABEL:
                continue
            value = component.get("value")
            if isinstance(value, str) and value.strip():
                return value
    return None
