from __future__ import annotations
"""Ultra-lightweight pub/sub **EventBus** for analysis diagnostics.

Example
-------
```python
from everywhere.utils.events import subscribe, publish, LoopFound

@subscribe(LoopFound)
def _on_loop(evt: LoopFound):
    print(f"loop: {evt.description}")
```
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Tuple, Type, TypeVar

__all__ = [
    "Event",
    "GraphChanged",
    "ResolutionComputed",
    "LoopFound",
    "SnapshotWarning",
    "ConflictFound",
    "subscribe",
    "unsubscribe",
    "publish",
]

T = TypeVar("T", bound="Event")
_Handler = Callable[[Any], None]
_REGISTRY: Dict[Type["Event"], List[_Handler]] = {}


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, kw_only=True)
class Event:  # noqa: D101 – base event
    ts: datetime = field(default_factory=_now)


# --------------------------------------------------------------------------- #
# Concrete events
# --------------------------------------------------------------------------- #
@dataclass(slots=True)
class GraphChanged(Event):
    kind: str  # connection_changed, node_removed, node_created, ...
    version: int
    node_id: str | None = None


@dataclass(slots=True)
class ResolutionComputed(Event):
    version: int
    assignments: int
    accepted: bool
    purpose: str  # "render" or "submission"


@dataclass(slots=True)
class LoopFound(Event):
    chain: Tuple[str, ...]
    broadcasts: Tuple[str, ...]
    description: str


@dataclass(slots=True)
class SnapshotWarning(Event):
    message: str


@dataclass(slots=True)
class ConflictFound(Event):
    node_id: str
    input_name: str
    candidates: Tuple[Tuple[str, str], ...]


# --------------------------------------------------------------------------- #
# API helpers
# --------------------------------------------------------------------------- #

def subscribe(event_type: Type[T]):  # noqa: D401
    """Decorator: register *func* to receive *event_type* events."""

    def _decorator(func: _Handler) -> _Handler:
        _REGISTRY.setdefault(event_type, []).append(func)
        return func

    return _decorator


def unsubscribe(event_type: Type[T], func: _Handler) -> None:
    handlers = _REGISTRY.get(event_type, [])
    if func in handlers:
        handlers.remove(func)


def publish(evt: Event) -> None:  # noqa: D401
    """Publish an event to all registered subscribers."""
    for func in list(_REGISTRY.get(type(evt), [])):
        try:
            func(evt)
        except Exception as e:  # noqa: BLE001
            # Failure to handle an event must never break an analysis pass.
            from everywhere.utils.logging import log

            log.warning("event handler %s failed: %s", getattr(func, "__name__", func), e)
