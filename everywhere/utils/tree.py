from __future__ import annotations

"""Tree view of virtual links (no side-effects).

build_rich_tree(obj) returns a Rich *Tree* with one branch per downstream
node and one leaf per incoming virtual link.
"""
from typing import Any, Dict

from everywhere.core.model import ResolutionResult
from everywhere.core.render import Projection, project

__all__ = ["build_rich_tree"]


def build_rich_tree(obj: Any, *, titles: Dict[str, str] | None = None):  # noqa: D401 – return type is Tree
    """Return a *rich.tree.Tree* for a ResolutionResult or a render projection."""
    from rich.tree import Tree  # local import keeps this module lightweight

    titles = titles or {}
    proj: Projection
    if isinstance(obj, ResolutionResult):
        proj = project(obj)
        header = f"[bold]Virtual links[/] [dim](v{obj.graph_version})[/]"
    else:
        proj = obj
        header = "[bold]Virtual links[/]"

    tree = Tree(header)
    if not proj:
        tree.add("[dim]none[/]")
        return tree

    for node_id, links in proj.items():
        name = titles.get(node_id)
        label = f"[cyan]{node_id}[/] {name}" if name else f"[cyan]{node_id}[/]"
        branch = tree.add(label)
        for rl in links:
            branch.add(f"{rl.source} → [magenta]{rl.input_name}[/]")
    return tree
