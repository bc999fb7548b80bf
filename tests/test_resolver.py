from graphs import broadcaster, consumer

from everywhere.core.model import InputSlot, NodeDescriptor, Role
from everywhere.core.registry import build_rules
from everywhere.core.resolver import (
    TIER_EXPLICIT,
    TIER_NAME,
    TIER_TITLE,
    TIER_TYPE,
    match_tier,
    resolve,
)


def _resolve(nodes):
    return resolve(nodes, build_rules(nodes))


def test_single_broadcaster_links_matching_input():
    b = broadcaster("b", [("value", "number")])
    c = consumer("c", [("x", "number")])
    res = _resolve([b, c])

    assert list(res.assignments) == [("c", "x")]
    vl = res.assignments[("c", "x")]
    assert vl.upstream_node_id == "b"
    assert vl.upstream_output_name == "value"
    assert vl.controller_node_id == "b"
    assert vl.value == ["b", 0]


def test_last_registered_broadcaster_wins():
    b1 = broadcaster("b1", [("v", "number")])
    b2 = broadcaster("b2", [("v", "number")])
    c = consumer("c", [("x", "number")])
    res = _resolve([b1, b2, c])
    assert res.assignments[("c", "x")].upstream_node_id == "b2"
    assert res.conflicts == ()


def test_restricted_broadcaster_needs_shared_group():
    b = broadcaster("b", [("v", "number")], groups=["g1"], restricted=True)
    outsider = consumer("c", [("x", "number")], groups=["g2"])
    insider = consumer("d", [("x", "number")], groups=["g1", "g3"])
    res = _resolve([b, outsider, insider])
    assert ("c", "x") not in res.assignments
    assert ("d", "x") in res.assignments


def test_unrestricted_broadcaster_ignores_groups():
    b = broadcaster("b", [("v", "number")], groups=["g1"])
    c = consumer("c", [("x", "number")], groups=["g2"])
    assert ("c", "x") in _resolve([b, c]).assignments


def test_types_must_match_unless_wildcard():
    b = broadcaster("b", [("img", "IMAGE")])
    c = consumer("c", [("model", "MODEL"), ("any", "*"), ("image", "IMAGE")])
    res = _resolve([b, c])
    assert set(res.assignments) == {("c", "any"), ("c", "image")}
    for vl in res.assignments.values():
        assert vl.type == "IMAGE"

    wild = broadcaster("w", [("anything", "*")])
    res = _resolve([wild, consumer("d", [("model", "MODEL")])])
    assert ("d", "model") in res.assignments


def test_connected_inputs_are_left_alone():
    b = broadcaster("b", [("v", "INT")])
    c = NodeDescriptor(
        id="c",
        role=Role.CONSUMER,
        inputs=(InputSlot("seed", "INT", connected=True, current_link_id=4), InputSlot("steps", "INT")),
    )
    res = _resolve([b, c])
    assert list(res.assignments) == [("c", "steps")]


def test_unresolved_input_is_not_an_error():
    b = broadcaster("b", [("v", "LATENT")])
    c = consumer("c", [("x", "INT")])
    res = _resolve([b, c])
    assert res.assignments == {}
    assert res.conflicts == ()


def test_explicit_targets_never_leak():
    explicit = broadcaster("e", [("v", "INT")], props={"target_node_ids": frozenset({"c1"})})
    c1 = consumer("c1", [("x", "INT")])
    c2 = consumer("c2", [("x", "INT")])
    res = _resolve([explicit, c1, c2])
    assert res.assignments[("c1", "x")].upstream_node_id == "e"
    assert ("c2", "x") not in res.assignments


def test_explicit_target_beats_later_broadcaster():
    explicit = broadcaster("e", [("v", "INT")], props={"target_node_ids": frozenset({"c"})})
    later = broadcaster("l", [("v", "INT")])
    c = consumer("c", [("x", "INT")])
    res = _resolve([explicit, later, c])
    assert res.assignments[("c", "x")].upstream_node_id == "e"


def test_explicit_target_still_checks_type():
    explicit = broadcaster("e", [("v", "INT")], props={"target_node_ids": frozenset({"c"})})
    c = consumer("c", [("x", "FLOAT")])
    assert _resolve([explicit, c]).assignments == {}


def test_specificity_tiers():
    type_only = broadcaster("t", [("v", "INT")])
    by_title = broadcaster("ti", [("v", "INT")], props={"target_title_pattern": "Sampler"})
    by_name = broadcaster("n", [("v", "INT")], props={"target_name_pattern": "^seed$"})
    c = consumer("c", [("seed", "INT"), ("steps", "INT")], title="KSampler")

    # name-matching rule was registered first but is the most specific
    res = _resolve([by_name, by_title, type_only, c])
    assert res.assignments[("c", "seed")].upstream_node_id == "n"
    assert res.assignments[("c", "steps")].upstream_node_id == "ti"

    other = consumer("o", [("seed", "INT")], title="Upscaler")
    res = _resolve([by_name, by_title, type_only, other])
    assert res.assignments[("o", "seed")].upstream_node_id == "n"


def test_match_tier_values():
    rules = build_rules([
        broadcaster("e", [("v", "INT")], props={"target_node_ids": frozenset({"c"})}),
        broadcaster("n", [("v", "INT")], props={"target_name_pattern": "seed"}),
        broadcaster("t", [("v", "INT")], props={"target_title_pattern": "KSampler"}),
        broadcaster("p", [("v", "INT")]),
    ])
    c = consumer("c", [("seed", "INT")], title="KSampler")
    slot = c.inputs[0]
    assert [match_tier(r, c, slot) for r in rules] == [TIER_EXPLICIT, TIER_NAME, TIER_TITLE, TIER_TYPE]

    miss = consumer("m", [("steps", "INT")], title="Loader")
    assert [match_tier(r, miss, miss.inputs[0]) for r in rules] == [None, None, None, TIER_TYPE]


def test_tie_within_one_broadcaster_is_a_conflict():
    b = broadcaster("b", [("first", "INT"), ("second", "INT")])
    c = consumer("c", [("x", "INT")])
    res = _resolve([b, c])
    assert res.assignments[("c", "x")].upstream_output_name == "first"
    assert len(res.conflicts) == 1
    conflict = res.conflicts[0]
    assert (conflict.node_id, conflict.input_name) == ("c", "x")
    assert conflict.candidates == (("b", "first"), ("b", "second"))


def test_resolve_is_deterministic_and_pure():
    nodes = [
        broadcaster("b1", [("v", "INT"), ("w", "*")]),
        broadcaster("b2", [("v", "INT")], groups=["g"], restricted=True),
        consumer("c", [("a", "INT"), ("b", "STRING")], groups=["g"]),
        consumer("d", [("a", "INT")]),
    ]
    rules = build_rules(nodes)
    before = list(rules)
    first = resolve(nodes, rules)
    second = resolve(nodes, rules)
    assert first.assignments == second.assignments
    assert list(first.assignments) == list(second.assignments)
    assert rules == before


def test_no_rules_means_no_links():
    assert resolve([consumer("c", [("x", "*")])], []).assignments == {}
