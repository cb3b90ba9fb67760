import math

import pytest

from vehicle_flc.optimizer import (
    SEARCH_FACTORS,
    OptimizationObjectives,
    blend,
    refine,
    score_candidate,
)


def test_search_grid():
    assert list(SEARCH_FACTORS) == pytest.approx([0.8, 0.9, 1.0, 1.1, 1.2])


def test_default_objectives_sum_to_one():
    objectives = OptimizationObjectives.from_config({})
    assert sum(objectives.as_dict().values()) == pytest.approx(1.0)
    assert objectives.comfort == pytest.approx(0.3)
    assert objectives.efficiency == pytest.approx(0.15)


def test_objectives_are_normalised():
    objectives = OptimizationObjectives.normalized(comfort=2.0, energy=1.0, stability=1.0, efficiency=0.0)
    assert objectives.comfort == pytest.approx(0.5)
    assert objectives.energy == pytest.approx(0.25)
    assert sum(objectives.as_dict().values()) == pytest.approx(1.0)


def test_update_merges_and_renormalises():
    objectives = OptimizationObjectives().updated(comfort=0.7)
    total = 0.7 + 0.3 + 0.25 + 0.15
    assert objectives.comfort == pytest.approx(0.7 / total)
    assert objectives.stability == pytest.approx(0.25 / total)
    assert sum(objectives.as_dict().values()) == pytest.approx(1.0)


@pytest.mark.parametrize(
    "weights",
    [
        {"comfort": -0.1, "energy": 1.0},
        {"comfort": 0.0, "energy": 0.0, "stability": 0.0, "efficiency": 0.0},
        {"comfort": math.nan},
        {"handling": 1.0},
    ],
)
def test_invalid_objectives(weights):
    with pytest.raises(ValueError):
        OptimizationObjectives.normalized(**weights)


def test_blend_pulls_toward_anticipated_values():
    objectives = OptimizationObjectives()
    damping, energy = blend(2000.0, 400.0, 3000.0, 800.0, objectives)
    assert damping == pytest.approx(2000.0 * 0.75 + 3000.0 * 0.25)
    assert energy == pytest.approx(400.0 * 0.7 + 800.0 * 0.3)


def test_blend_of_identical_targets_is_unchanged():
    assert blend(2500.0, 500.0, 2500.0, 500.0, OptimizationObjectives()) == (
        pytest.approx(2500.0),
        pytest.approx(500.0),
    )


def test_refine_never_scores_below_unscaled_blend():
    objectives = OptimizationObjectives()
    result = refine(1800.0, 300.0, 3200.0, 0.4, objectives)
    assert result.score >= score_candidate(1800.0, 300.0, 3200.0, 0.4, objectives)
    assert result.damping_factor in (1.0, *SEARCH_FACTORS)
    assert result.energy_factor in (1.0, *SEARCH_FACTORS)


def test_refine_moves_damping_toward_reference():
    result = refine(2000.0, 300.0, 3500.0, 0.4, OptimizationObjectives())
    assert result.damping > 2000.0


def test_refine_is_deterministic():
    objectives = OptimizationObjectives()
    first = refine(2700.0, 650.0, 3000.0, 0.25, objectives)
    second = refine(2700.0, 650.0, 3000.0, 0.25, objectives)
    assert first == second


def test_refine_respects_actuator_ranges():
    result = refine(4900.0, 1450.0, 5000.0, 2.0, OptimizationObjectives())
    assert 500.0 <= result.damping <= 5000.0
    assert 0.0 <= result.energy_recovery <= 1500.0
