from __future__ import annotations

"""One analysis pass: snapshot → rules → virtual links → loop check.

The pure building blocks live in the reader, registry, resolver and loops
modules; this module chains them and publishes the pass's diagnostics on the
event bus.
"""

from typing import Any, Mapping

from everywhere.io.workflow import Workflow
from everywhere.settings import Settings
from everywhere.utils.events import (
    publish,
    ConflictFound,
    LoopFound,
    ResolutionComputed,
    SnapshotWarning,
)

from .loops import detect_cycle
from .model import ResolutionResult, Snapshot
from .reader import read_snapshot
from .registry import build_rules
from .resolver import resolve

__all__ = ["analyse_snapshot", "analyse_graph"]


def analyse_snapshot(
    snapshot: Snapshot,
    *,
    settings: Settings | None = None,
    version: int = 0,
    purpose: str = "render",
) -> ResolutionResult:
    """Resolve *snapshot* and, when enabled, check the result for loops."""
    settings = settings or Settings()

    for warning in snapshot.diagnostics:
        publish(SnapshotWarning(message=str(warning)))

    rules = build_rules(snapshot.nodes)
    resolution = resolve(snapshot.nodes, rules)
    for c in resolution.conflicts:
        publish(ConflictFound(node_id=c.node_id, input_name=c.input_name, candidates=c.candidates))

    loop = None
    if settings.check_loops:
        loop = detect_cycle(snapshot.nodes, snapshot.links, resolution.assignments.values())
        if loop is not None:
            publish(LoopFound(chain=loop.chain, broadcasts=loop.broadcasts, description=loop.describe()))

    result = ResolutionResult(
        assignments=resolution.assignments,
        graph_version=version,
        loop_error=loop,
        conflicts=resolution.conflicts,
        diagnostics=snapshot.diagnostics,
    )
    publish(
        ResolutionComputed(
            version=version,
            assignments=len(result.assignments),
            accepted=result.accepted,
            purpose=purpose,
        )
    )
    return result


def analyse_graph(
    workflow: Workflow | Mapping[str, Any],
    *,
    settings: Settings | None = None,
    version: int = 0,
    purpose: str = "render",
) -> ResolutionResult:  # noqa: D401
    """Read *workflow* and run :func:`analyse_snapshot` on it."""
    settings = settings or Settings()
    snapshot = read_snapshot(workflow, settings)
    return analyse_snapshot(snapshot, settings=settings, version=version, purpose=purpose)
