"""Builders for small workflows in the editor's saved-file shape."""

from everywhere.core.model import InputSlot, NodeDescriptor, OutputSlot, Role


def node(id, type="KSampler", *, inputs=(), outputs=(), mode=0, title=None,
         pos=(0, 0), size=(100, 100), properties=None, widgets_values=None):
    return {
        "id": id,
        "type": type,
        "title": title,
        "mode": mode,
        "pos": list(pos),
        "size": list(size),
        "inputs": [{"name": n, "type": t, "link": l} for n, t, l in inputs],
        "outputs": [{"name": n, "type": t, "links": ls} for n, t, ls in outputs],
        "properties": properties or {},
        "widgets_values": widgets_values,
    }


def link(id, origin, origin_slot, target, target_slot, type="*"):
    return [id, origin, origin_slot, target, target_slot, type]


def workflow(nodes, links=(), groups=()):
    return {"nodes": list(nodes), "links": list(links), "groups": list(groups)}


def broadcaster(id, outputs, *, groups=(), restricted=False, props=None):
    """Descriptor of a broadcaster offering *outputs* = [(name, type), ...]."""
    return NodeDescriptor(
        id=id,
        role=Role.BROADCASTER,
        title=f"Broadcaster {id}",
        groups=frozenset(groups),
        restricted=restricted,
        outputs=tuple(OutputSlot(n, t, value=[id, i]) for i, (n, t) in enumerate(outputs)),
        properties=props or {},
    )


def consumer(id, inputs, *, title=None, groups=()):
    """Descriptor of an ordinary node; *inputs* = [(name, type), ...] unconnected."""
    return NodeDescriptor(
        id=id,
        role=Role.CONSUMER,
        title=title or f"Node {id}",
        groups=frozenset(groups),
        inputs=tuple(InputSlot(n, t) for n, t in inputs),
    )
