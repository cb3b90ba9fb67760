"""
Short-horizon trend extrapolation of slowly drifting conditions.

Each tracked condition (road roughness, driving aggression) keeps a bounded
history of raw samples. A least-squares line through the recent samples gives a
per-sample slope, and the anticipated value is the current value pushed forward
by ``slope * prediction_horizon``, clamped to the condition's domain. With too
little history the current value is returned unchanged at base confidence.
"""

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Tuple

import numpy as np

from vehicle_flc.history import ConditionHistory

predictive_log = logging.getLogger("predictive")


@dataclass(frozen=True)
class PredictiveParameters:
    """
    Attributes:
        prediction_horizon (float): Forward projection applied to the per-sample slope.
        confidence_threshold (float): Minimum confidence for a prediction to be used.
        update_frequency (float): Nominal cycle rate in Hz (reported only).
        trend_window (int): Samples (history plus current) used for the fit.
        history_capacity (int): Capacity of each condition history.
        min_samples (int): Stored samples needed before a trend is fitted.
        base_confidence (float): Confidence with no usable history.
        confidence_step (float): Confidence added per condition with a trend.
    """

    prediction_horizon: float = 2.0
    confidence_threshold: float = 0.8
    update_frequency: float = 10.0
    trend_window: int = 10
    history_capacity: int = 100
    min_samples: int = 3
    base_confidence: float = 0.5
    confidence_step: float = 0.2

    def __post_init__(self):
        if self.prediction_horizon < 0:
            raise ValueError(f"prediction_horizon must be >= 0, got {self.prediction_horizon}")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError(
                f"confidence_threshold must be in [0, 1], got {self.confidence_threshold}"
            )
        if self.trend_window < 2 or self.history_capacity < 1 or self.min_samples < 2:
            raise ValueError("trend_window and min_samples must be >= 2, history_capacity >= 1")

    @classmethod
    def from_config(cls, section: Mapping[str, Any]) -> "PredictiveParameters":
        known = {f.name for f in fields(cls)}
        unknown = set(section) - known
        if unknown:
            raise KeyError(f"Unknown predictive parameters {sorted(unknown)}")
        return cls(**dict(section))

    def updated(self, **changes) -> "PredictiveParameters":
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise KeyError(f"Unknown predictive parameters {sorted(unknown)}")
        return replace(self, **changes)


@dataclass(frozen=True)
class Prediction:
    """
    Attributes:
        anticipated (Dict[str, float]): Condition -> projected value.
        slopes (Dict[str, float]): Condition -> fitted per-sample slope (0 if none).
        confidence (float): In [0, 1].
        trusted (bool): Confidence reached the configured threshold.
    """

    anticipated: Dict[str, float]
    slopes: Dict[str, float]
    confidence: float
    trusted: bool


def linear_trend(samples: np.ndarray) -> float:
    """
    Least-squares slope of ``samples`` against their index.

    Returns 0.0 for fewer than two samples.
    """
    n = samples.size
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=float)
    x_centered = x - x.mean()
    denominator = float(np.dot(x_centered, x_centered))
    if denominator == 0:
        return 0.0
    slope = float(np.dot(x_centered, samples - samples.mean()) / denominator)
    return slope if np.isfinite(slope) else 0.0


def predict(
    params: PredictiveParameters,
    histories: Mapping[str, ConditionHistory],
    current: Mapping[str, float],
    domains: Mapping[str, Tuple[float, float]],
) -> Prediction:
    """
    Projects every tracked condition forward.

    The stored histories are not modified; the orchestrator appends the current
    samples at the end of the cycle.

    Args:
        params (PredictiveParameters): Predictor configuration.
        histories (Mapping[str, ConditionHistory]): Condition -> stored samples.
        current (Mapping[str, float]): Condition -> value in this cycle.
        domains (Mapping[str, Tuple[float, float]]): Condition -> clamp range.

    Returns:
        Prediction: Anticipated values, slopes and confidence.
    """
    anticipated: Dict[str, float] = {}
    slopes: Dict[str, float] = {}
    confidence = params.base_confidence

    for name, history in histories.items():
        value = float(current[name])
        if len(history) < params.min_samples:
            anticipated[name] = value
            slopes[name] = 0.0
            continue

        samples = np.append(history.window(params.trend_window - 1), value)
        slope = linear_trend(samples)
        lo, hi = domains[name]
        anticipated[name] = max(lo, min(hi, value + slope * params.prediction_horizon))
        slopes[name] = slope
        confidence += params.confidence_step

    confidence = min(1.0, confidence)
    trusted = confidence >= params.confidence_threshold
    predictive_log.debug(
        "Prediction %s (slopes %s) confidence %.2f trusted=%s",
        {k: round(v, 4) for k, v in anticipated.items()},
        {k: round(v, 4) for k, v in slopes.items()},
        confidence,
        trusted,
    )
    return Prediction(anticipated=anticipated, slopes=slopes, confidence=confidence, trusted=trusted)
