import numpy as np
import pytest

from vehicle_flc.defuzzifier import Defuzzifier
from vehicle_flc.fuzzifier import VariableRegistry
from vehicle_flc.rule_engine import RuleActivations


@pytest.fixture
def defuzzifier(tiny_config):
    return Defuzzifier(VariableRegistry.from_config(tiny_config))


def test_defuzzifier_init(defuzzifier):
    assert defuzzifier is not None


def test_defuzzify_normal_case(defuzzifier):
    # Sum(W*Z) = (0.5 * 85) + (0.25 * 15) = 46.25
    # Sum(W) = 0.75
    rule_outputs = [(0.5, 85.0), (0.25, 15.0)]
    result = defuzzifier.defuzzify_variable(rule_outputs, 50.0)
    assert result == pytest.approx(61.6667, abs=1e-3)


def test_defuzzify_no_rules(defuzzifier):
    assert defuzzifier.defuzzify_variable([], 50.0) == 50.0


def test_defuzzify_zero_firing_strength(defuzzifier):
    rule_outputs = [(0.0, 85.0), (0.0, 15.0)]
    assert defuzzifier.defuzzify_variable(rule_outputs, 50.0) == 50.0


def test_defuzzify_non_finite_falls_back_to_default(defuzzifier):
    rule_outputs = [(1.0, float("inf"))]
    assert defuzzifier.defuzzify_variable(rule_outputs, 50.0) == 50.0


def test_defuzzify_every_output(defuzzifier):
    act = RuleActivations(strengths=np.array([0.5]), per_output=[[(0.5, 85.0)]])
    assert defuzzifier.defuzzify(act) == {"power": pytest.approx(85.0)}

    idle = RuleActivations(strengths=np.array([0.0]), per_output=[[]])
    assert defuzzifier.defuzzify(idle) == {"power": 50.0}


def test_numpy_centroids_give_plain_floats(defuzzifier):
    rule_outputs = [(np.float64(0.5), np.float64(85.0))]
    assert type(defuzzifier.defuzzify_variable(rule_outputs, np.float64(50.0))) is float
    assert type(defuzzifier.defuzzify_variable([], np.float64(50.0))) is float
