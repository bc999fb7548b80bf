from __future__ import annotations
"""Apply an accepted resolution to the execution payload.

The payload's ``output`` section maps node id → ``{"inputs": {...}}``. Each
virtual link writes its value (``[upstream_id, slot]``) into the matching
input. The caller's payload is never touched; a deep copy is returned.
"""
import copy
from typing import Any, Dict, Mapping

from everywhere.utils.logging import log

from .model import ResolutionResult

__all__ = ["augment_payload"]


def augment_payload(payload: Mapping[str, Any], result: ResolutionResult) -> Dict[str, Any]:  # noqa: D401
    """Return a copy of *payload* with every assignment of *result* applied."""
    augmented: Dict[str, Any] = copy.deepcopy(dict(payload))
    output = augmented.setdefault("output", {})
    for (node_id, input_name), vl in result.assignments.items():
        entry = output.get(node_id)
        if entry is None:
            # nodes that do not lead to an output are left out of the payload by the host
            log.debug("node %s not in execution payload; link for '%s' not applied", node_id, input_name)
            continue
        entry.setdefault("inputs", {})[input_name] = copy.deepcopy(vl.value)
    return augmented
