import numpy as np
import pytest

from vehicle_flc.history import ConditionHistory
from vehicle_flc.predictive import PredictiveParameters, linear_trend, predict

DOMAINS = {"road_roughness": (0.0, 1.0), "aggression": (0.0, 1.0)}


def _histories(roughness=(), aggression=()):
    histories = {"road_roughness": ConditionHistory(100), "aggression": ConditionHistory(100)}
    for v in roughness:
        histories["road_roughness"].append(v)
    for v in aggression:
        histories["aggression"].append(v)
    return histories


def test_linear_trend():
    assert linear_trend(np.array([0.3, 0.4, 0.5, 0.6])) == pytest.approx(0.1)
    assert linear_trend(np.array([0.5, 0.5, 0.5])) == pytest.approx(0.0)
    assert linear_trend(np.array([0.5])) == 0.0


def test_short_history_returns_current_value():
    params = PredictiveParameters()
    prediction = predict(
        params, _histories([0.3, 0.4]), {"road_roughness": 0.6, "aggression": 0.2}, DOMAINS
    )
    assert prediction.anticipated == {"road_roughness": 0.6, "aggression": 0.2}
    assert prediction.confidence == pytest.approx(0.5)
    assert not prediction.trusted


def test_rising_roughness_is_projected_forward():
    params = PredictiveParameters()
    prediction = predict(
        params, _histories([0.3, 0.4, 0.5]), {"road_roughness": 0.6, "aggression": 0.3}, DOMAINS
    )
    anticipated = prediction.anticipated["road_roughness"]
    assert anticipated == pytest.approx(0.8)
    assert 0.6 < anticipated < 1.0
    assert prediction.slopes["road_roughness"] == pytest.approx(0.1)
    # one condition with a trend
    assert prediction.confidence == pytest.approx(0.7)
    assert not prediction.trusted


def test_confidence_reaches_threshold_with_both_conditions():
    params = PredictiveParameters()
    prediction = predict(
        params,
        _histories([0.3, 0.3, 0.3], [0.2, 0.2, 0.2]),
        {"road_roughness": 0.3, "aggression": 0.2},
        DOMAINS,
    )
    assert prediction.confidence == pytest.approx(0.9)
    assert prediction.trusted
    assert prediction.anticipated["road_roughness"] == pytest.approx(0.3)


def test_projection_is_clamped_to_domain():
    params = PredictiveParameters()
    prediction = predict(
        params, _histories([0.7, 0.8, 0.9]), {"road_roughness": 1.0, "aggression": 0.3}, DOMAINS
    )
    assert prediction.anticipated["road_roughness"] == 1.0


def test_trend_window_limits_samples():
    params = PredictiveParameters(trend_window=3)
    # only the last two stored samples (0.5, 0.5) plus the current 0.5 are fitted
    prediction = predict(
        params, _histories([0.0, 0.1, 0.5, 0.5]), {"road_roughness": 0.5, "aggression": 0.3}, DOMAINS
    )
    assert prediction.anticipated["road_roughness"] == pytest.approx(0.5)


def test_histories_are_not_modified():
    histories = _histories([0.3, 0.4, 0.5])
    predict(PredictiveParameters(), histories, {"road_roughness": 0.6, "aggression": 0.3}, DOMAINS)
    assert list(histories["road_roughness"]) == [0.3, 0.4, 0.5]
    assert len(histories["aggression"]) == 0


def test_invalid_parameters():
    with pytest.raises(ValueError):
        PredictiveParameters(confidence_threshold=1.5)
    with pytest.raises(ValueError):
        PredictiveParameters(trend_window=1)
    with pytest.raises(KeyError):
        PredictiveParameters.from_config({"kalman_gain": 0.3})
    with pytest.raises(KeyError):
        PredictiveParameters().updated(kalman_gain=0.3)
