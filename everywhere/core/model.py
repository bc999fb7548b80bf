from __future__ import annotations

"""Plain records shared by the analysis passes.

Everything here is rebuilt from scratch on every resolution pass; only the
node ids and slot names are stable between passes.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Mapping, Optional, Pattern, Tuple

if TYPE_CHECKING:
    from .errors import StructuralWarning

__all__ = [
    "WILDCARD",
    "Role",
    "InputSlot",
    "OutputSlot",
    "NodeDescriptor",
    "RealLink",
    "Snapshot",
    "BroadcastRule",
    "VirtualLink",
    "MatchConflict",
    "CycleReport",
    "ResolutionResult",
    "SlotKey",
]

WILDCARD = "*"

SlotKey = Tuple[str, str]  # (node id, input name)


class Role(Enum):  # noqa: D101
    BROADCASTER = "broadcaster"
    CONSUMER = "consumer"
    PLAIN = "plain"


@dataclass(frozen=True)
class InputSlot:  # noqa: D101
    name: str
    declared_type: str = WILDCARD
    connected: bool = False
    current_link_id: Optional[int] = None


@dataclass(frozen=True)
class OutputSlot:
    """An output a broadcaster can offer; *value* is never inspected."""

    name: str
    declared_type: str = WILDCARD
    value: Any = None
    target_name_pattern: Optional[str] = None  # overrides the node-level pattern


@dataclass(frozen=True)
class NodeDescriptor:  # noqa: D101
    id: str
    role: Role
    title: str = ""
    type: str = ""
    groups: FrozenSet[str] = frozenset()
    restricted: bool = False
    inputs: Tuple[InputSlot, ...] = ()
    outputs: Tuple[OutputSlot, ...] = ()
    properties: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def is_broadcaster(self) -> bool:
        return self.role is Role.BROADCASTER

    def unconnected_inputs(self) -> List[InputSlot]:
        return [i for i in self.inputs if not i.connected]


@dataclass(frozen=True)
class RealLink:
    """A wire that already exists between two live nodes."""

    link_id: int
    upstream_node_id: str
    upstream_slot: int
    downstream_node_id: str
    downstream_slot: int
    type: str = WILDCARD


@dataclass(frozen=True)
class Snapshot:
    """Analysis-friendly view of the host graph produced by the reader."""

    nodes: Tuple[NodeDescriptor, ...]
    links: Tuple[RealLink, ...] = ()
    diagnostics: Tuple[StructuralWarning, ...] = ()

    def node(self, node_id: str) -> Optional[NodeDescriptor]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None


@dataclass(frozen=True)
class BroadcastRule:  # noqa: D101
    source_node_id: str
    source_output_name: str
    type: str
    value: Any = None
    target_name_pattern: Optional[Pattern[str]] = None
    target_title_pattern: Optional[Pattern[str]] = None
    explicit_target_node_ids: Optional[FrozenSet[str]] = None
    restricted: bool = False
    groups: FrozenSet[str] = frozenset()
    order: int = 0  # position of the owning node in registry traversal

    @property
    def is_explicit(self) -> bool:
        return bool(self.explicit_target_node_ids)


@dataclass(frozen=True)
class VirtualLink:
    """An implicit connection; lives only in the resolution overlay."""

    downstream_node_id: str
    downstream_input_name: str
    upstream_node_id: str
    upstream_output_name: str
    controller_node_id: str
    value: Any = None
    type: str = WILDCARD

    @property
    def key(self) -> SlotKey:
        return (self.downstream_node_id, self.downstream_input_name)


@dataclass(frozen=True)
class MatchConflict:  # noqa: D101 – diagnostic only
    node_id: str
    input_name: str
    candidates: Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class CycleReport:
    """A cycle in the augmented graph.

    *chain* lists the node ids in edge order; the edge from the last id back
    to the first closes the loop. *virtual_edges* holds the (upstream,
    downstream) pairs of the cycle that only exist as virtual links and
    *broadcasts* the broadcaster ids that created them.
    """

    chain: Tuple[str, ...]
    virtual_edges: Tuple[Tuple[str, str], ...] = ()
    broadcasts: Tuple[str, ...] = ()

    @property
    def caused_by_broadcast(self) -> bool:
        return bool(self.virtual_edges)

    def describe(self) -> str:
        loop = " → ".join(self.chain + self.chain[:1])
        if self.broadcasts:
            return f"Loop ({loop}) with broadcast ({', '.join(self.broadcasts)})"
        return f"Loop ({loop})"


@dataclass(frozen=True)
class ResolutionResult:  # noqa: D101
    assignments: Mapping[SlotKey, VirtualLink]
    graph_version: int = 0
    loop_error: Optional[CycleReport] = None
    conflicts: Tuple[MatchConflict, ...] = ()
    diagnostics: Tuple[StructuralWarning, ...] = ()

    def __post_init__(self):
        # consumers only ever get a read-only view of the assignments
        if not isinstance(self.assignments, MappingProxyType):
            object.__setattr__(self, "assignments", MappingProxyType(dict(self.assignments)))

    @property
    def accepted(self) -> bool:
        return self.loop_error is None

    def links(self) -> List[VirtualLink]:
        return list(self.assignments.values())

    def as_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable summary."""
        return {
            "graph_version": self.graph_version,
            "assignments": [
                {
                    "downstream": vl.downstream_node_id,
                    "input": vl.downstream_input_name,
                    "upstream": vl.upstream_node_id,
                    "output": vl.upstream_output_name,
                    "controller": vl.controller_node_id,
                    "type": vl.type,
                }
                for vl in self.assignments.values()
            ],
            "loop": self.loop_error.describe() if self.loop_error else None,
            "conflicts": [
                {"node": c.node_id, "input": c.input_name, "candidates": [list(x) for x in c.candidates]}
                for c in self.conflicts
            ],
            "diagnostics": [str(d) for d in self.diagnostics],
        }
