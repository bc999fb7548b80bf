from everywhere.core.model import ResolutionResult, VirtualLink
from everywhere.core.render import project


def _vl(down, name, up, out="v"):
    return VirtualLink(
        downstream_node_id=down,
        downstream_input_name=name,
        upstream_node_id=up,
        upstream_output_name=out,
        controller_node_id=up,
    )


def test_projection_groups_by_downstream_node_in_order():
    links = [_vl("c", "a", "b1"), _vl("d", "x", "b2"), _vl("c", "b", "b2", out="w")]
    result = ResolutionResult(assignments={vl.key: vl for vl in links}, graph_version=3)
    proj = project(result)

    assert list(proj) == ["c", "d"]
    assert [(rl.input_name, rl.upstream_node_id, rl.upstream_output_name) for rl in proj["c"]] == [
        ("a", "b1", "v"),
        ("b", "b2", "w"),
    ]
    assert all(rl.label is None for rls in proj.values() for rl in rls)


def test_projection_details_and_empty():
    vl = _vl("c", "seed", "b", out="INT")
    proj = project(ResolutionResult(assignments={vl.key: vl}), show_details=True)
    assert proj["c"][0].label == "b.INT → seed"
    assert project(None) == {}
    assert project(ResolutionResult(assignments={})) == {}


def test_projection_does_not_track_later_changes():
    source = {}
    vl = _vl("c", "seed", "b")
    source[vl.key] = vl
    result = ResolutionResult(assignments=source)
    source.clear()

    proj = project(result)
    assert [rl.source for rl in proj["c"]] == ["b.v"]
    assert isinstance(proj["c"], tuple)
