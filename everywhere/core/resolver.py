from __future__ import annotations

"""Resolver: pick the best broadcast for every unconnected input.

Candidates are ranked by specificity tier (explicit target, input name,
node title, type only). Within the best tier the broadcaster registered
last wins, so a broadcaster added later in the graph overrides an earlier
one. Two rules from the same broadcaster that tie are reported as a
:class:`MatchConflict` and the first one found is kept.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .model import (
    WILDCARD,
    BroadcastRule,
    InputSlot,
    MatchConflict,
    NodeDescriptor,
    SlotKey,
    VirtualLink,
)

__all__ = [
    "Resolution",
    "TIER_EXPLICIT",
    "TIER_NAME",
    "TIER_TITLE",
    "TIER_TYPE",
    "types_compatible",
    "match_tier",
    "find_best_match",
    "resolve",
]

TIER_EXPLICIT = 0
TIER_NAME = 1
TIER_TITLE = 2
TIER_TYPE = 3


@dataclass(frozen=True)
class Resolution:  # noqa: D101
    assignments: Dict[SlotKey, VirtualLink] = field(default_factory=dict)
    conflicts: Tuple[MatchConflict, ...] = ()


def types_compatible(rule_type: str, input_type: str) -> bool:
    return rule_type == WILDCARD or input_type == WILDCARD or rule_type == input_type


def match_tier(rule: BroadcastRule, node: NodeDescriptor, slot: InputSlot) -> Optional[int]:
    """Return the specificity tier of *rule* for *slot* on *node*, or None."""
    if rule.is_explicit and node.id not in rule.explicit_target_node_ids:
        return None
    if not types_compatible(rule.type, slot.declared_type):
        return None
    if rule.restricted and not (rule.groups & node.groups):
        return None
    if rule.is_explicit:
        return TIER_EXPLICIT

    if rule.target_name_pattern is not None and not rule.target_name_pattern.search(slot.name):
        return None
    if rule.target_title_pattern is not None and not rule.target_title_pattern.search(node.title):
        return None
    if rule.target_name_pattern is not None:
        return TIER_NAME
    if rule.target_title_pattern is not None:
        return TIER_TITLE
    return TIER_TYPE


def find_best_match(
    rules: Sequence[BroadcastRule], node: NodeDescriptor, slot: InputSlot
) -> Tuple[Optional[BroadcastRule], List[BroadcastRule]]:
    """Return ``(winner, tied)`` for *slot*.

    *tied* holds every candidate sharing the winner's tier and registration
    order (the winner included) when there is more than one of them.
    """
    best: Optional[BroadcastRule] = None
    best_key: Tuple[int, int] | None = None
    ties: List[BroadcastRule] = []
    for rule in rules:
        tier = match_tier(rule, node, slot)
        if tier is None:
            continue
        key = (-tier, rule.order)
        if best_key is None or key > best_key:
            best, best_key, ties = rule, key, [rule]
        elif key == best_key:
            ties.append(rule)  # first found stays the winner
    return best, (ties if len(ties) > 1 else [])


def resolve(
    nodes: Iterable[NodeDescriptor], rules: Sequence[BroadcastRule]
) -> Resolution:  # noqa: D401
    """Synthesize virtual links for every unconnected input of *nodes*."""
    assignments: Dict[SlotKey, VirtualLink] = {}
    conflicts: List[MatchConflict] = []
    if not rules:
        return Resolution()

    for node in nodes:
        if node.is_broadcaster:
            continue
        for slot in node.unconnected_inputs():
            winner, tied = find_best_match(rules, node, slot)
            if winner is None:
                continue
            link = VirtualLink(
                downstream_node_id=node.id,
                downstream_input_name=slot.name,
                upstream_node_id=winner.source_node_id,
                upstream_output_name=winner.source_output_name,
                controller_node_id=winner.source_node_id,
                value=winner.value,
                type=winner.type,
            )
            assignments[link.key] = link
            if tied:
                conflicts.append(
                    MatchConflict(
                        node_id=node.id,
                        input_name=slot.name,
                        candidates=tuple((r.source_node_id, r.source_output_name) for r in tied),
                    )
                )
    return Resolution(assignments=assignments, conflicts=tuple(conflicts))
