from __future__ import annotations
"""Rich-backed logging for the resolution engine.

Plain log records go through a :class:`rich.logging.RichHandler`; analysis
diagnostics published on the event bus are turned into log records here so
the core modules never format user-facing output themselves.
"""
from logging import DEBUG, ERROR, INFO, WARNING, Logger, basicConfig, getLogger
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from everywhere.core.render import link_source
from everywhere.utils.events import (
    subscribe,
    ConflictFound,
    GraphChanged,
    LoopFound,
    ResolutionComputed,
    SnapshotWarning,
)

console = Console()

__all__ = [
    "console",
    "log",
    "get",
    "set_details",
    "show_link_tree",
]

_LEVEL_MAP = {
    "info": INFO,
    "debug": DEBUG,
    "warning": WARNING,
    "error": ERROR,
}

# Configure root once with Rich handler for plain log messages
basicConfig(
    level=INFO,
    format="%(message)s",
    datefmt="%H:%M:%S",
    handlers=[RichHandler(rich_tracebacks=True, markup=True)],
)

log: Logger = getLogger("everywhere")

# Detail mode promotes conflict diagnostics from DEBUG to INFO
_details = {"on": False}


def get(level: str = "info") -> Logger:  # noqa: D401
    """Return the package logger set to *level* (str)."""
    lvl = _LEVEL_MAP.get(level.lower(), INFO)
    lg = getLogger("everywhere")
    lg.setLevel(lvl)
    return lg


def set_details(on: bool) -> None:
    _details["on"] = bool(on)


# --------------------------------------------------------------------------- #
# Event subscribers
# --------------------------------------------------------------------------- #
@subscribe(GraphChanged)
def _on_graph_changed(evt: GraphChanged):  # noqa: D401 – event hook
    log.debug("graph changed (%s%s) → version %d", evt.kind, f" on {evt.node_id}" if evt.node_id else "", evt.version)


@subscribe(ResolutionComputed)
def _on_resolution(evt: ResolutionComputed):  # noqa: D401 – event hook
    log.debug(
        "%s resolution v%d: %d virtual link(s)%s",
        evt.purpose,
        evt.version,
        evt.assignments,
        "" if evt.accepted else " [rejected: loop]",
    )


@subscribe(LoopFound)
def _on_loop(evt: LoopFound):  # noqa: D401 – event hook
    log.warning("%s", evt.description)


@subscribe(SnapshotWarning)
def _on_snapshot_warning(evt: SnapshotWarning):  # noqa: D401 – event hook
    log.warning("snapshot: %s", evt.message)


@subscribe(ConflictFound)
def _on_conflict(evt: ConflictFound):  # noqa: D401 – event hook
    lvl = INFO if _details["on"] else DEBUG
    sources = ", ".join(link_source(n, o) for n, o in evt.candidates)
    log.log(lvl, "input %s.%s matched equally by %s (first wins)", evt.node_id, evt.input_name, sources)


# --------------------------------------------------------------------------- #
# Public helpers
# --------------------------------------------------------------------------- #

def show_link_tree(obj: Any, **kw):
    """Print the incoming-link tree for a resolution result or projection."""
    from everywhere.utils.tree import build_rich_tree

    console.print(build_rich_tree(obj, **kw))
