from __future__ import annotations

"""Broadcaster registry: live node descriptors → ordered broadcast rules.

Rule order follows node traversal order and later serves as the resolver's
tie-break, so the list must never be re-sorted.
"""

import re
from typing import Iterable, List, Optional, Pattern

from everywhere.utils.logging import log

from .model import BroadcastRule, NodeDescriptor

__all__ = ["build_rules", "rules_for_node"]


class _BadPattern(Exception):
    pass


def _compile(pattern: Optional[str], *, node_id: str, what: str) -> Optional[Pattern[str]]:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise _BadPattern(f"node {node_id}: invalid {what} pattern {pattern!r} ({e})") from e


def rules_for_node(node: NodeDescriptor, order: int = 0) -> List[BroadcastRule]:
    """Return one rule per eligible output of the broadcaster *node*."""
    if not node.is_broadcaster:
        return []

    props = node.properties
    explicit = props.get("target_node_ids") or None
    try:
        title_pat = _compile(props.get("target_title_pattern"), node_id=node.id, what="title")
        node_name_pat = _compile(props.get("target_name_pattern"), node_id=node.id, what="input name")
    except _BadPattern as e:
        log.warning("%s; broadcaster ignored", e)
        return []

    rules: List[BroadcastRule] = []
    for out in node.outputs:
        name_pat = node_name_pat
        if out.target_name_pattern:
            try:
                name_pat = _compile(out.target_name_pattern, node_id=node.id, what="input name")
            except _BadPattern as e:
                log.warning("%s; output '%s' ignored", e, out.name)
                continue
        rules.append(
            BroadcastRule(
                source_node_id=node.id,
                source_output_name=out.name,
                type=out.declared_type,
                value=out.value,
                target_name_pattern=name_pat,
                target_title_pattern=title_pat,
                explicit_target_node_ids=frozenset(str(t) for t in explicit) if explicit else None,
                restricted=node.restricted is True,
                groups=node.groups,
                order=order,
            )
        )
    return rules


def build_rules(nodes: Iterable[NodeDescriptor]) -> List[BroadcastRule]:  # noqa: D401
    """Return the broadcast rules of all broadcasters in *nodes*, in order."""
    rules: List[BroadcastRule] = []
    order = 0
    for node in nodes:
        if not node.is_broadcaster:
            continue
        node_rules = rules_for_node(node, order)
        if node_rules:
            rules.extend(node_rules)
        order += 1
    return rules
