from __future__ import annotations

"""Settings for the resolution engine.

The host owns these values and the core only reads them. They can be built in
code or loaded from YAML::

    check_loops: true
    show_details: false
    broadcaster_types:
      - Anything Everywhere
      - My Custom Broadcaster
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet

import yaml
from jsonschema import validate as _js_validate

__all__ = [
    "Settings",
    "DEFAULT_BROADCASTER_TYPES",
    "INPUT_SOURCED_TYPES",
    "load_settings",
]

# Broadcasters that re-broadcast whatever is wired into their inputs.
INPUT_SOURCED_TYPES: FrozenSet[str] = frozenset(
    {
        "Anything Everywhere",
        "Anything Everywhere3",
        "Anything Everywhere?",
        "Prompts Everywhere",
    }
)

DEFAULT_BROADCASTER_TYPES: FrozenSet[str] = INPUT_SOURCED_TYPES | {"Seed Everywhere"}


@dataclass
class Settings:  # noqa: D101 – self-documenting via fields
    # Run the loop detector; when off, virtual links are applied even if cyclic
    check_loops: bool = True
    # Only affects render projection verbosity and conflict logging
    show_details: bool = False
    links_visible: bool = True
    broadcaster_types: FrozenSet[str] = DEFAULT_BROADCASTER_TYPES
    log_level: str = "info"

    # Unknown keys, kept for forward compatibility
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Return a YAML/JSON-serialisable representation."""
        d = self.__dict__.copy()
        d["broadcaster_types"] = sorted(self.broadcaster_types)
        return d


# --------------------------------------------------------------------------- #

def _from_mapping(data: Dict[str, Any]) -> Settings:
    known = {f for f in Settings.__dataclass_fields__}  # type: ignore[attr-defined]
    kwargs = {k: v for k, v in data.items() if k in known and k != "extra"}
    extra = {k: v for k, v in data.items() if k not in known}
    if "broadcaster_types" in kwargs:
        kwargs["broadcaster_types"] = frozenset(kwargs["broadcaster_types"])
    return Settings(**kwargs, extra=extra)


def load_settings(path: str | Path) -> Settings:  # noqa: D401
    """Load settings from the YAML file at *path*.

    Raises ``jsonschema.ValidationError`` when a known key has the wrong type.
    An empty file yields the defaults.
    """
    data = yaml.safe_load(Path(path).read_text()) or {}
    _js_validate(instance=data, schema=_SCHEMA)
    return _from_mapping(data)


# --------------------------------------------------------------------------- #
# JSON Schema for YAML settings files
# --------------------------------------------------------------------------- #

_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "check_loops": {"type": "boolean"},
        "show_details": {"type": "boolean"},
        "links_visible": {"type": "boolean"},
        "log_level": {"enum": ["debug", "info", "warning", "error"]},
        "broadcaster_types": {
            "type": "array",
            "items": {"type": "string"},
        },
    },
}
