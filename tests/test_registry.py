import logging

from graphs import broadcaster, consumer

from everywhere.core.model import NodeDescriptor, Role
from everywhere.core.registry import build_rules, rules_for_node


def test_rules_follow_node_order():
    nodes = [
        broadcaster("b1", [("a", "INT"), ("b", "FLOAT")]),
        consumer("c", [("x", "INT")]),
        broadcaster("b2", [("a", "INT")]),
    ]
    rules = build_rules(nodes)
    assert [(r.source_node_id, r.source_output_name) for r in rules] == [
        ("b1", "a"),
        ("b1", "b"),
        ("b2", "a"),
    ]
    assert [r.order for r in rules] == [0, 0, 1]
    assert rules[1].type == "FLOAT"
    assert rules[0].value == ["b1", 0]


def test_broadcaster_without_outputs_contributes_nothing():
    empty = NodeDescriptor(id="e", role=Role.BROADCASTER)
    assert build_rules([empty]) == []
    assert rules_for_node(consumer("c", [("x", "INT")])) == []


def test_restriction_and_groups_are_copied():
    b = broadcaster("b", [("v", "INT")], groups=["g1"], restricted=True)
    (rule,) = build_rules([b])
    assert rule.restricted is True
    assert rule.groups == frozenset({"g1"})


def test_malformed_restriction_defaults_to_unrestricted():
    b = broadcaster("b", [("v", "INT")], restricted="yes")  # type: ignore[arg-type]
    (rule,) = build_rules([b])
    assert rule.restricted is False


def test_patterns_are_compiled_and_empty_ones_ignored():
    b = broadcaster("b", [("v", "INT")], props={"target_name_pattern": "seed", "target_title_pattern": ""})
    (rule,) = build_rules([b])
    assert rule.target_name_pattern.search("noise_seed")
    assert rule.target_title_pattern is None


def test_invalid_pattern_drops_broadcaster(caplog):
    caplog.set_level(logging.WARNING, logger="everywhere")
    bad = broadcaster("bad", [("v", "INT")], props={"target_name_pattern": "("})
    good = broadcaster("good", [("v", "INT")])
    rules = build_rules([bad, good])
    assert [r.source_node_id for r in rules] == ["good"]
    assert any("invalid input name pattern" in rec.getMessage() for rec in caplog.records)


def test_explicit_targets_become_string_ids():
    b = broadcaster("b", [("v", "INT")], props={"target_node_ids": [3, "4"]})
    (rule,) = build_rules([b])
    assert rule.explicit_target_node_ids == frozenset({"3", "4"})
    assert rule.is_explicit
