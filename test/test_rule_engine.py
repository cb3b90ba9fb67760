import numpy as np
import pytest

from vehicle_flc.fuzzifier import Fuzzifier, VariableRegistry
from vehicle_flc.rule_engine import Rule, RuleBase, RuleEngine


@pytest.fixture
def registry(tiny_config):
    return VariableRegistry.from_config(tiny_config)


@pytest.fixture
def rule_base(tiny_config, registry):
    return RuleBase.from_config(tiny_config, registry)


@pytest.fixture
def engine(rule_base):
    return RuleEngine(rule_base)


def _table(registry, temp, load):
    return Fuzzifier(registry).membership_table({"temp": temp, "load": load})


def test_rule_engine_init(engine, rule_base):
    assert engine.rule_base is rule_base
    assert len(rule_base) == 2
    assert list(rule_base.base_weights) == [1.0, 0.5]


def test_rules_resolve_to_indices(rule_base):
    i = rule_base.index_of("r_hot_heavy")
    assert rule_base.conditions_of(i) == ((0, 1), (1, 1))
    assert rule_base.conclusion_of(i) == (0, 0)


def test_firing_strength_is_min_times_weight(engine, registry):
    act = engine.evaluate(_table(registry, 15.0, 7.5))
    assert act.strengths[0] == pytest.approx(0.5)
    assert act.strengths[1] == pytest.approx(0.25)
    (w0, z0), (w1, z1) = act.per_output[0]
    assert (w0, z0) == pytest.approx((0.5, 85.0))
    assert (w1, z1) == pytest.approx((0.25, 15.0))


def test_weights_override_base_weights(engine, registry):
    act = engine.evaluate(_table(registry, 15.0, 7.5), np.array([0.2, 1.0]))
    assert act.strengths[0] == pytest.approx(0.1)
    assert act.strengths[1] == pytest.approx(0.5)


def test_inactive_rules_are_not_reported(engine, registry):
    act = engine.evaluate(_table(registry, 5.0, 7.5))
    assert list(act.fired()) == [True, False]
    assert len(act.per_output[0]) == 1


def test_wrong_weight_count(engine, registry):
    with pytest.raises(ValueError):
        engine.evaluate(_table(registry, 15.0, 7.5), np.array([1.0]))


def test_rule_from_config():
    rule = Rule.from_config(
        {"id": "x", "if": [["a", "b"], ["c", "d"]], "then": ["o", "s"], "weight": 0.7, "priority": 9}
    )
    assert rule.conditions == (("a", "b"), ("c", "d"))
    assert rule.conclusion == ("o", "s")
    assert rule.priority == 9


@pytest.mark.parametrize("weight", [-0.1, 1.5])
def test_rule_weight_out_of_range(weight):
    with pytest.raises(ValueError):
        Rule("x", (("a", "b"),), ("o", "s"), weight)


def test_rule_without_conditions():
    with pytest.raises(ValueError):
        Rule("x", (), ("o", "s"), 1.0)


@pytest.mark.parametrize(
    "rule",
    [
        {"id": "bad", "if": [["pressure", "high"]], "then": ["power", "low"], "weight": 1.0},
        {"id": "bad", "if": [["temp", "lukewarm"]], "then": ["power", "low"], "weight": 1.0},
        {"id": "bad", "if": [["temp", "hot"]], "then": ["power", "maximum"], "weight": 1.0},
        {"id": "bad", "if": [["temp", "hot"]], "then": ["temp", "cold"], "weight": 1.0},
    ],
)
def test_unresolvable_rule_rejected(tiny_config, registry, rule):
    tiny_config["rules"].append(rule)
    with pytest.raises(KeyError):
        RuleBase.from_config(tiny_config, registry)


def test_duplicate_rule_ids_rejected(tiny_config, registry):
    tiny_config["rules"].append(dict(tiny_config["rules"][0]))
    with pytest.raises(ValueError):
        RuleBase.from_config(tiny_config, registry)
