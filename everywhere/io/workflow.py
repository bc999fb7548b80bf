"""
Pydantic models for the host editor's workflow state.

The shape follows the LiteGraph serialisation used by node editors such as
ComfyUI: a list of nodes with typed input/output slots, a link table and a
list of rectangular groups. Only the fields the reader needs are modelled;
everything else is kept as extra data.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

__all__ = [
    "WorkflowInput",
    "WorkflowOutput",
    "WorkflowNode",
    "WorkflowLink",
    "WorkflowGroup",
    "Workflow",
    "PromptPayload",
    "load_workflow",
    "load_prompt",
]

# LiteGraph node modes
MODE_ALWAYS = 0
MODE_NEVER = 2  # muted
MODE_BYPASS = 4


def _slot_type(value: Any) -> str:
    if value is None or value == "":
        return "*"
    if isinstance(value, str):
        return value
    # combo widgets converted to inputs carry their option list as the type
    return "COMBO"


def _xy(value: Any) -> List[float]:
    if value is None:
        return [0.0, 0.0]
    if isinstance(value, dict):  # {"0": x, "1": y} in some saved files
        return [float(value.get("0", 0)), float(value.get("1", 0))]
    return [float(v) for v in list(value)[:2]]


class WorkflowInput(BaseModel):  # noqa: D101
    model_config = ConfigDict(extra="allow")

    name: str
    type: str = "*"
    link: Optional[int] = None

    @field_validator("type", mode="before")
    @classmethod
    def _norm_type(cls, v: Any) -> str:
        return _slot_type(v)


class WorkflowOutput(BaseModel):  # noqa: D101
    model_config = ConfigDict(extra="allow")

    name: str
    type: str = "*"
    links: Optional[List[int]] = None
    slot_index: Optional[int] = None

    @field_validator("type", mode="before")
    @classmethod
    def _norm_type(cls, v: Any) -> str:
        return _slot_type(v)


class WorkflowNode(BaseModel):  # noqa: D101
    model_config = ConfigDict(extra="allow")

    id: Union[int, str]
    type: str = ""
    title: Optional[str] = None
    mode: int = MODE_ALWAYS
    pos: List[float] = Field(default_factory=lambda: [0.0, 0.0])
    size: List[float] = Field(default_factory=lambda: [0.0, 0.0])
    inputs: List[WorkflowInput] = Field(default_factory=list)
    outputs: List[WorkflowOutput] = Field(default_factory=list)
    properties: Dict[str, Any] = Field(default_factory=dict)
    widgets_values: Any = None

    @field_validator("pos", "size", mode="before")
    @classmethod
    def _norm_xy(cls, v: Any) -> List[float]:
        return _xy(v)

    @field_validator("inputs", "outputs", "properties", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any, info) -> Any:
        if v is None:
            return {} if info.field_name == "properties" else []
        return v

    @property
    def key(self) -> str:
        return str(self.id)

    @property
    def display_title(self) -> str:
        return self.title or self.type

    @property
    def centre(self) -> tuple[float, float]:
        return (self.pos[0] + self.size[0] / 2, self.pos[1] + self.size[1] / 2)


class WorkflowLink(BaseModel):
    """One entry of the link table.

    Saved files use the compact list form
    ``[id, origin_id, origin_slot, target_id, target_slot, type]``.
    """

    model_config = ConfigDict(extra="allow")

    id: int
    origin_id: Union[int, str]
    origin_slot: int
    target_id: Union[int, str]
    target_slot: int
    type: str = "*"

    @model_validator(mode="before")
    @classmethod
    def _from_list(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            keys = ["id", "origin_id", "origin_slot", "target_id", "target_slot", "type"]
            return dict(zip(keys, data))
        return data

    @field_validator("type", mode="before")
    @classmethod
    def _norm_type(cls, v: Any) -> str:
        return _slot_type(v)


class WorkflowGroup(BaseModel):  # noqa: D101
    model_config = ConfigDict(extra="allow")

    title: str = ""
    bounding: List[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0])

    def contains(self, x: float, y: float) -> bool:
        gx, gy, gw, gh = (list(self.bounding) + [0.0] * 4)[:4]
        return gx <= x <= gx + gw and gy <= y <= gy + gh


class Workflow(BaseModel):  # noqa: D101
    model_config = ConfigDict(extra="allow")

    nodes: List[WorkflowNode] = Field(default_factory=list)
    # rows are validated one by one by the reader so a bad row only loses itself
    links: List[Any] = Field(default_factory=list)
    groups: List[WorkflowGroup] = Field(default_factory=list)

    @field_validator("nodes", "links", "groups", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class PromptPayload(BaseModel):
    """What the host hands to the execution backend.

    *output* maps node id → ``{"class_type": ..., "inputs": {...}}``; an
    input either holds a literal widget value or ``[upstream_id, slot]``.
    """

    model_config = ConfigDict(extra="allow")

    workflow: Workflow = Field(default_factory=Workflow)
    output: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


# --------------------------------------------------------------------------- #
# File helpers
# --------------------------------------------------------------------------- #

def load_workflow(path: str | Path) -> Workflow:  # noqa: D401
    """Load a saved workflow JSON (bare or wrapped in a prompt payload)."""
    data = json.loads(Path(path).read_text())
    if isinstance(data, dict) and "workflow" in data and "nodes" not in data:
        data = data["workflow"]
    return Workflow.model_validate(data)


def load_prompt(path: str | Path) -> Dict[str, Any]:  # noqa: D401
    """Load a ``{"workflow": ..., "output": ...}`` payload as a plain dict."""
    data = json.loads(Path(path).read_text())
    PromptPayload.model_validate(data)  # shape check only; raw dict is returned
    return data
