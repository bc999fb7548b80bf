from __future__ import annotations

"""Resolution cache and invalidation controller.

Render queries are frequent (once per node per frame) and may be a little
stale: they share one recomputation per dirty period, and a pass that hits a
loop keeps the last accepted result on screen. Submission queries are rare
and must be exact: they always recompute from a fresh host payload and are
serialised, a second one while the first is in flight is rejected with
:class:`BusySubmission`.

Only this controller writes ``cached``, ``dirty`` and ``version``.
"""

from typing import Any, Dict, Mapping, Tuple

import anyio

from everywhere.host import GraphHost
from everywhere.settings import Settings

from .analysis import analyse_graph
from .errors import BusySubmission, CycleDetected
from .model import ResolutionResult
from .payload import augment_payload
from .render import EMPTY_PROJECTION, Projection, RenderLink, project
from .result import Result

__all__ = ["ResolutionController"]


class ResolutionController:  # noqa: D101
    def __init__(self, host: GraphHost, settings: Settings | None = None):
        self.host = host
        self.settings = settings or Settings()
        self.cached: ResolutionResult | None = None
        self.dirty = True  # nothing computed yet
        self.version = 0
        self.computations = 0
        self._projection: Projection | None = None
        self._submit_lock = anyio.Lock()

    # ------------------------------------------------------------------ #
    # Invalidation
    # ------------------------------------------------------------------ #
    def mark_dirty(self, reason: str = "") -> int:
        """Flag the cached result as outdated; return the new version."""
        self.version += 1
        self.dirty = True
        return self.version

    def is_stale(self, result: ResolutionResult | None) -> bool:
        return result is None or result.graph_version != self.version

    # ------------------------------------------------------------------ #
    # Render path
    # ------------------------------------------------------------------ #
    def refresh(self) -> ResolutionResult:
        """Recompute from the host's current state.

        A result with a loop is returned but does not replace ``cached``.
        """
        version = self.version
        result = analyse_graph(
            self.host.workflow(), settings=self.settings, version=version, purpose="render"
        )
        self.computations += 1
        if result.accepted:
            self.cached = result
            self._projection = None
        self.dirty = False
        return result

    def query_for_render(self, node_id: Any = None) -> Projection | Tuple[RenderLink, ...]:
        """Return incoming virtual links for all nodes, or just *node_id*."""
        if not self.settings.links_visible:
            return EMPTY_PROJECTION if node_id is None else ()
        if self.dirty:
            self.refresh()
        if self._projection is None:
            self._projection = project(self.cached, self.settings.show_details)
        if node_id is None:
            return self._projection
        return self._projection.get(str(node_id), ())

    def toggle_links_visible(self) -> bool:
        self.settings.links_visible = not self.settings.links_visible
        return self.settings.links_visible

    def set_show_details(self, on: bool) -> None:
        if self.settings.show_details != on:
            self.settings.show_details = on
            self._projection = None

    # ------------------------------------------------------------------ #
    # Submission path
    # ------------------------------------------------------------------ #
    async def _submit(self) -> Tuple[Mapping[str, Any], Result[ResolutionResult]]:
        if self._submit_lock.locked():
            raise BusySubmission()
        async with self._submit_lock:
            payload = await self.host.graph_to_prompt()
            result = analyse_graph(
                payload.get("workflow") or {},
                settings=self.settings,
                version=self.version,
                purpose="submission",
            )
            if result.loop_error is not None:
                return payload, Result.failure(CycleDetected(result.loop_error))
            return payload, Result.success(result)

    async def query_for_submission(self) -> Result[ResolutionResult]:
        """Fresh, authoritative resolution; the error is a CycleDetected on a loop."""
        _, res = await self._submit()
        return res

    async def build_execution_payload(self) -> Dict[str, Any]:
        """Return the host payload with virtual links applied.

        Raises :class:`CycleDetected` instead of returning a payload when the
        augmented graph has a loop, and :class:`BusySubmission` when another
        submission is still being analysed.
        """
        payload, res = await self._submit()
        return augment_payload(payload, res.unwrap())
