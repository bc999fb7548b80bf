from __future__ import annotations

"""Snapshot reader: host workflow state → plain node descriptors.

The reader is the only place that knows the host's serialisation. It drops
non-live nodes, checks every link reference and works out the broadcast
outputs and properties of broadcaster nodes. It never raises on a malformed
reference; the problem is recorded in ``Snapshot.diagnostics`` instead.
"""

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from everywhere.io.workflow import (
    MODE_BYPASS,
    MODE_NEVER,
    Workflow,
    WorkflowLink,
    WorkflowNode,
)
from everywhere.settings import INPUT_SOURCED_TYPES, Settings

from .errors import StructuralWarning
from .model import (
    InputSlot,
    NodeDescriptor,
    OutputSlot,
    RealLink,
    Role,
    Snapshot,
)

__all__ = ["read_snapshot", "node_is_live"]

# Name constraints of the two "Prompts Everywhere" inputs, by input position
_PROMPT_PATTERNS = ("^(positive|prompt)", "^neg")

_PATTERN_WIDGET_TYPE = "Anything Everywhere?"

_LINK_ROW = TypeAdapter(WorkflowLink)


def node_is_live(node: WorkflowNode) -> bool:
    """Return False for muted or bypassed nodes."""
    return node.mode not in (MODE_NEVER, MODE_BYPASS)


def _as_workflow(workflow: Workflow | Mapping[str, Any]) -> Workflow:
    if isinstance(workflow, Workflow):
        return workflow
    return Workflow.model_validate(workflow)


# --------------------------------------------------------------------------- #
# Link table
# --------------------------------------------------------------------------- #

def _warn(diagnostics: List[StructuralWarning], message: str) -> None:
    diagnostics.append(StructuralWarning(message))


def _check_links(
    wf: Workflow, nodes: Dict[str, WorkflowNode], diagnostics: List[StructuralWarning]
) -> Dict[int, WorkflowLink]:
    """Return the links whose endpoints and slots all exist."""
    valid: Dict[int, WorkflowLink] = {}
    for idx, row in enumerate(wf.links):
        try:
            link = _LINK_ROW.validate_python(row)
        except ValidationError as e:
            _warn(diagnostics, f"link row {idx} is malformed ({e.error_count()} error(s)): {row!r}; skipped")
            continue
        origin = nodes.get(str(link.origin_id))
        target = nodes.get(str(link.target_id))
        if origin is None or target is None:
            missing = link.origin_id if origin is None else link.target_id
            _warn(diagnostics, f"link {link.id} references missing node {missing}; skipped")
            continue
        if not 0 <= link.origin_slot < len(origin.outputs):
            _warn(
                diagnostics,
                f"link {link.id} references missing output {link.origin_slot} on node {origin.key}; skipped"
            )
            continue
        if not 0 <= link.target_slot < len(target.inputs):
            _warn(
                diagnostics,
                f"link {link.id} references missing input {link.target_slot} on node {target.key}; skipped"
            )
            continue
        valid[link.id] = link
    return valid


# --------------------------------------------------------------------------- #
# Per-node projection
# --------------------------------------------------------------------------- #

def _inputs(
    node: WorkflowNode, links: Dict[int, WorkflowLink], diagnostics: List[StructuralWarning]
) -> Tuple[InputSlot, ...]:
    slots: List[InputSlot] = []
    for inp in node.inputs:
        if inp.link is None:
            slots.append(InputSlot(inp.name, inp.type))
        elif inp.link in links:
            slots.append(InputSlot(inp.name, inp.type, connected=True, current_link_id=inp.link))
        else:
            _warn(
                diagnostics,
                f"input '{inp.name}' on node {node.key} references unknown link {inp.link}; treated as unconnected"
            )
            slots.append(InputSlot(inp.name, inp.type))
    return tuple(slots)


def _groups(node: WorkflowNode, wf: Workflow) -> frozenset[str]:
    x, y = node.centre
    titles = {g.title for g in wf.groups if g.contains(x, y)}
    extra = node.properties.get("groups")
    if isinstance(extra, (list, tuple)):
        titles.update(str(t) for t in extra)
    return frozenset(titles)


def _restricted(node: WorkflowNode, diagnostics: List[StructuralWarning]) -> bool:
    flag = node.properties.get("group_restricted")
    if flag is None or isinstance(flag, bool):
        return bool(flag)
    _warn(
        diagnostics,
        f"node {node.key} has malformed group_restricted={flag!r}; treated as unrestricted"
    )
    return False


def _widget(node: WorkflowNode, index: int) -> Optional[str]:
    values = node.widgets_values
    if isinstance(values, list) and index < len(values) and isinstance(values[index], str):
        return values[index]
    return None


def _broadcast_properties(node: WorkflowNode) -> Mapping[str, Any]:
    props = node.properties
    name_pat = props.get("target_name_pattern", props.get("input_regex"))
    title_pat = props.get("target_title_pattern", props.get("title_regex"))
    if node.type == _PATTERN_WIDGET_TYPE:
        title_pat = title_pat if title_pat is not None else _widget(node, 0)
        name_pat = name_pat if name_pat is not None else _widget(node, 1)

    targets = props.get("target_node_ids")
    if isinstance(targets, (list, tuple, set)) and targets:
        targets = frozenset(str(t) for t in targets)
    else:
        targets = None

    return MappingProxyType(
        {
            "target_name_pattern": name_pat or None,
            "target_title_pattern": title_pat or None,
            "target_node_ids": targets,
        }
    )


def _broadcast_outputs(
    node: WorkflowNode,
    nodes: Dict[str, WorkflowNode],
    links: Dict[int, WorkflowLink],
    live: set[str],
) -> Tuple[OutputSlot, ...]:
    if node.type not in INPUT_SOURCED_TYPES:
        return tuple(
            OutputSlot(out.name, out.type, value=[node.key, idx])
            for idx, out in enumerate(node.outputs)
        )

    # Re-broadcast whatever is wired into each input
    outs: List[OutputSlot] = []
    for idx, inp in enumerate(node.inputs):
        link = links.get(inp.link) if inp.link is not None else None
        if link is None:
            continue
        origin = nodes[str(link.origin_id)]
        if origin.key not in live:
            continue
        upstream_type = origin.outputs[link.origin_slot].type
        if upstream_type == "*":
            upstream_type = link.type
        pattern = None
        if node.type == "Prompts Everywhere" and idx < len(_PROMPT_PATTERNS):
            pattern = _PROMPT_PATTERNS[idx]
        outs.append(
            OutputSlot(inp.name, upstream_type, value=[origin.key, link.origin_slot], target_name_pattern=pattern)
        )
    return tuple(outs)


def _role(node: WorkflowNode, settings: Settings) -> Role:
    if node.type in settings.broadcaster_types or node.properties.get("broadcaster") is True:
        return Role.BROADCASTER
    return Role.CONSUMER if node.inputs else Role.PLAIN


# --------------------------------------------------------------------------- #
# Public API
# --------------------------------------------------------------------------- #

def read_snapshot(
    workflow: Workflow | Mapping[str, Any],
    settings: Settings | None = None,
) -> Snapshot:
    """Project *workflow* into a :class:`Snapshot` of live nodes and links."""
    settings = settings or Settings()
    wf = _as_workflow(workflow)
    diagnostics: List[StructuralWarning] = []

    nodes: Dict[str, WorkflowNode] = {}
    for n in wf.nodes:
        if n.key in nodes:
            _warn(diagnostics, f"duplicate node id {n.key}; later definition ignored")
            continue
        nodes[n.key] = n

    live = {key for key, n in nodes.items() if node_is_live(n)}
    links = _check_links(wf, nodes, diagnostics)

    real_links = tuple(
        RealLink(
            link_id=l.id,
            upstream_node_id=str(l.origin_id),
            upstream_slot=l.origin_slot,
            downstream_node_id=str(l.target_id),
            downstream_slot=l.target_slot,
            type=l.type,
        )
        for l in links.values()
        if str(l.origin_id) in live and str(l.target_id) in live
    )

    descriptors: List[NodeDescriptor] = []
    for key, n in nodes.items():
        if key not in live:
            continue
        role = _role(n, settings)
        is_bc = role is Role.BROADCASTER
        descriptors.append(
            NodeDescriptor(
                id=key,
                role=role,
                title=n.display_title,
                type=n.type,
                groups=_groups(n, wf),
                restricted=_restricted(n, diagnostics),
                inputs=_inputs(n, links, diagnostics),
                outputs=_broadcast_outputs(n, nodes, links, live) if is_bc else tuple(
                    OutputSlot(out.name, out.type, value=[key, idx]) for idx, out in enumerate(n.outputs)
                ),
                properties=_broadcast_properties(n) if is_bc else MappingProxyType({}),
            )
        )

    return Snapshot(nodes=tuple(descriptors), links=real_links, diagnostics=tuple(diagnostics))
