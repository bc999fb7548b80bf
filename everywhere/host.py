from __future__ import annotations

"""Host-side seams of the resolution engine.

* :class:`GraphHost` is what the engine needs from the editor: the current
  workflow state and, for submission, the raw execution payload.
* :class:`GraphObserver` is what the editor calls on every mutation. Each
  notification maps to exactly one ``mark_dirty()``.

The host guarantees a new node's slots are initialised by the time it calls
:meth:`GraphObserver.on_node_created`.
"""

import copy
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Protocol

from everywhere.io.workflow import Workflow
from everywhere.utils.events import publish, GraphChanged

if TYPE_CHECKING:
    from everywhere.core.cache import ResolutionController

__all__ = ["GraphHost", "StaticHost", "GraphObserver"]


class GraphHost(Protocol):  # noqa: D101
    def workflow(self) -> Workflow | Mapping[str, Any]:
        """Return the current workflow state (used by the render path)."""
        ...

    async def graph_to_prompt(self) -> Mapping[str, Any]:
        """Return ``{"workflow": ..., "output": ...}`` for submission."""
        ...


class StaticHost:
    """A host over fixed data, e.g. files saved by the editor."""

    def __init__(
        self,
        workflow: Workflow | Mapping[str, Any],
        output: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._workflow = workflow
        self._output: Dict[str, Any] = dict(output or {})

    def update(self, workflow: Workflow | Mapping[str, Any], output: Optional[Mapping[str, Any]] = None) -> None:
        self._workflow = workflow
        if output is not None:
            self._output = dict(output)

    def workflow(self) -> Workflow | Mapping[str, Any]:
        return self._workflow

    async def graph_to_prompt(self) -> Dict[str, Any]:
        wf = self._workflow
        if isinstance(wf, Workflow):
            wf = wf.model_dump(mode="json")
        return {"workflow": copy.deepcopy(dict(wf)), "output": copy.deepcopy(self._output)}


class GraphObserver:
    """Forward host mutation notifications to a :class:`ResolutionController`."""

    CONNECTION_CHANGED = "connection_changed"
    NODE_REMOVED = "node_removed"
    NODE_CREATED = "node_created"
    PROPERTY_CHANGED = "property_changed"
    WIDGET_CHANGED = "widget_changed"
    MENU_ACTION = "menu_action"
    GRAPH_CHANGED = "graph_changed"

    def __init__(self, controller: "ResolutionController"):
        self.controller = controller

    def _notify(self, kind: str, node_id: Any = None) -> None:
        version = self.controller.mark_dirty(kind)
        publish(GraphChanged(kind=kind, version=version, node_id=None if node_id is None else str(node_id)))

    # -------------------------------------------------- #
    def on_connection_changed(self, node_id: Any = None) -> None:
        self._notify(self.CONNECTION_CHANGED, node_id)

    def on_node_removed(self, node_id: Any = None) -> None:
        self._notify(self.NODE_REMOVED, node_id)

    def on_node_created(self, node_id: Any = None) -> None:
        self._notify(self.NODE_CREATED, node_id)

    def on_property_changed(self, node_id: Any = None) -> None:
        self._notify(self.PROPERTY_CHANGED, node_id)

    def on_widget_changed(self, node_id: Any = None) -> None:
        self._notify(self.WIDGET_CHANGED, node_id)

    def on_menu_action(self, node_id: Any = None) -> None:
        self._notify(self.MENU_ACTION, node_id)

    def on_graph_changed(self) -> None:
        self._notify(self.GRAPH_CHANGED)
