"""everywhere: implicit broadcast links for node-graph editors.

Main components:
* `read_snapshot`: host workflow → live node descriptors
* `build_rules` / `resolve`: pick a broadcast for every unconnected input
* `detect_cycle`: loop check over real + virtual links
* `ResolutionController`: cached render queries, fresh submission queries
* `GraphObserver`: mutation notifications → `mark_dirty()`
"""

# Version info
__version__ = "0.1.0"

# Wire log subscribers before anything publishes
from everywhere.utils import logging as _logging  # noqa: F401

from everywhere.core.model import (
    Role,
    InputSlot,
    OutputSlot,
    NodeDescriptor,
    RealLink,
    Snapshot,
    BroadcastRule,
    VirtualLink,
    CycleReport,
    ResolutionResult,
)
from everywhere.core.reader import read_snapshot
from everywhere.core.registry import build_rules
from everywhere.core.resolver import resolve
from everywhere.core.loops import detect_cycle
from everywhere.core.analysis import analyse_graph, analyse_snapshot
from everywhere.core.cache import ResolutionController
from everywhere.core.render import project
from everywhere.core.errors import BusySubmission, CycleDetected, StructuralWarning
from everywhere.host import GraphHost, GraphObserver, StaticHost
from everywhere.settings import Settings, load_settings

__all__ = [
    # Data model
    "Role",
    "InputSlot",
    "OutputSlot",
    "NodeDescriptor",
    "RealLink",
    "Snapshot",
    "BroadcastRule",
    "VirtualLink",
    "CycleReport",
    "ResolutionResult",

    # Analysis
    "read_snapshot",
    "build_rules",
    "resolve",
    "detect_cycle",
    "analyse_graph",
    "analyse_snapshot",
    "project",

    # Controller & host
    "ResolutionController",
    "GraphHost",
    "GraphObserver",
    "StaticHost",

    # Errors
    "BusySubmission",
    "CycleDetected",
    "StructuralWarning",

    # Config
    "Settings",
    "load_settings",
]
