from __future__ import annotations
"""Render projection: per-node incoming virtual links for the renderer.

The projection is shared by every render query of a dirty period, so it is
handed out read-only: a mapping proxy of tuples.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .model import ResolutionResult

__all__ = ["RenderLink", "Projection", "EMPTY_PROJECTION", "link_source", "project"]


def link_source(node_id: str, output_name: str) -> str:
    """Return the ``node.output`` form used wherever a link source is shown."""
    return f"{node_id}.{output_name}"


@dataclass(frozen=True)
class RenderLink:  # noqa: D101
    upstream_node_id: str
    upstream_output_name: str
    input_name: str
    label: Optional[str] = None  # only filled in detail mode

    @property
    def source(self) -> str:
        return link_source(self.upstream_node_id, self.upstream_output_name)


Projection = Mapping[str, Tuple[RenderLink, ...]]

EMPTY_PROJECTION: Projection = MappingProxyType({})


def project(result: ResolutionResult | None, show_details: bool = False) -> Projection:  # noqa: D401
    """Group the links of *result* by downstream node, in assignment order."""
    if result is None:
        return EMPTY_PROJECTION
    grouped: Dict[str, List[RenderLink]] = {}
    for vl in result.links():
        label = None
        if show_details:
            label = f"{link_source(vl.upstream_node_id, vl.upstream_output_name)} → {vl.downstream_input_name}"
        grouped.setdefault(vl.downstream_node_id, []).append(
            RenderLink(
                upstream_node_id=vl.upstream_node_id,
                upstream_output_name=vl.upstream_output_name,
                input_name=vl.downstream_input_name,
                label=label,
            )
        )
    return MappingProxyType({node_id: tuple(links) for node_id, links in grouped.items()})
