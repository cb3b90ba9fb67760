"""
Adaptive learning of rule weights and output scaling factors.

Two mechanisms run off the performance history:

* a proportional learner that moves each rule's adaptive weight toward or away
  from its base value depending on how recent aggregate performance compares
  with a target (no gradients, no momentum; rules are never removed), and
* coarse output scaling factors that nudge damping, energy recovery and valve
  opening when the rolling averages of comfort, efficiency or stability sag.
"""

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Sequence

import numpy as np

from vehicle_flc.history import PerformanceHistory, RingBuffer

adaptive_log = logging.getLogger("adaptive")

MIN_ADAPTIVE_WEIGHT = 0.1
MAX_ADAPTIVE_WEIGHT = 1.0


@dataclass(frozen=True)
class AdaptiveParameters:
    """
    Configuration of the adaptive learner.

    Attributes:
        learning_rate (float): Step size of adaptive-weight updates per cycle.
        forgetting_factor (float): Per-sample decay of older trace entries in (0, 1].
        adaptation_threshold (float): Minimum positive delta before a weight is
            raised; below-target deltas always apply.
        performance_window (int): Length of rule traces and of the factor window.
        target_performance (float): Aggregate score the learner steers toward.
        aggregate_window (int): Number of recent cycles averaged into one score.
        min_factor_history (int): Records needed before scaling factors apply.
        learning_enabled (bool): Use adaptive weights in inference when True.
    """

    learning_rate: float = 0.1
    forgetting_factor: float = 0.95
    adaptation_threshold: float = 0.05
    performance_window: int = 50
    target_performance: float = 0.7
    aggregate_window: int = 5
    min_factor_history: int = 10
    learning_enabled: bool = True

    def __post_init__(self):
        if self.learning_rate < 0:
            raise ValueError(f"learning_rate must be >= 0, got {self.learning_rate}")
        if not 0.0 < self.forgetting_factor <= 1.0:
            raise ValueError(f"forgetting_factor must be in (0, 1], got {self.forgetting_factor}")
        if self.adaptation_threshold < 0:
            raise ValueError(
                f"adaptation_threshold must be >= 0, got {self.adaptation_threshold}"
            )
        for name in ("performance_window", "aggregate_window", "min_factor_history"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(self, name)}")

    @classmethod
    def from_config(cls, section: Mapping[str, Any]) -> "AdaptiveParameters":
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in section.items():
            if key not in known:
                raise KeyError(f"Unknown adaptive parameter '{key}'")
            kwargs[key] = value
        return cls(**kwargs)

    def updated(self, **changes) -> "AdaptiveParameters":
        unknown = set(changes) - {f.name for f in fields(self)}
        if unknown:
            raise KeyError(f"Unknown adaptive parameters {sorted(unknown)}")
        return replace(self, **changes)


@dataclass(frozen=True)
class AdaptiveFactors:
    damping: float = 1.0
    energy: float = 1.0
    valve: float = 1.0


NEUTRAL_FACTORS = AdaptiveFactors()


def trace_mean(trace: Sequence[float], forgetting_factor: float) -> float:
    """
    Mean of a rule trace with older entries discounted by ``forgetting_factor**age``.
    """
    values = np.asarray(list(trace), dtype=float)
    if values.size == 0:
        return 0.0
    ages = np.arange(values.size - 1, -1, -1)
    weights = forgetting_factor ** ages
    return float(np.dot(weights, values) / weights.sum())


def update_rule_weights(
    params: AdaptiveParameters,
    history: PerformanceHistory,
    weights: np.ndarray,
    traces: Sequence[RingBuffer],
) -> np.ndarray:
    """
    One learning step over every rule.

    The mean aggregate score of the last ``aggregate_window`` cycles is appended
    to each rule trace; each weight then moves by ``learning_rate * delta`` where
    ``delta`` is the discounted trace mean minus the target, and is clamped to
    [0.1, 1.0]. Positive deltas smaller than ``adaptation_threshold`` are
    skipped; a below-target delta is never skipped. Nothing happens until two
    records exist.

    Args:
        params (AdaptiveParameters): Learner configuration.
        history (PerformanceHistory): Completed cycle records.
        weights (np.ndarray): Current adaptive weights (not modified).
        traces (Sequence[RingBuffer]): Per-rule score traces (appended to).

    Returns:
        np.ndarray: The new adaptive weights.
    """
    if len(history) < 2:
        return weights

    score = history.mean_aggregate(params.aggregate_window)
    new_weights = weights.copy()
    updated = 0
    for i, trace in enumerate(traces):
        trace.append(score)
        delta = trace_mean(trace, params.forgetting_factor) - params.target_performance
        # below-target deltas always apply; only small gains are gated
        if 0.0 <= delta < params.adaptation_threshold:
            continue
        new_weights[i] = weights[i] + params.learning_rate * delta
        updated += 1

    np.clip(new_weights, MIN_ADAPTIVE_WEIGHT, MAX_ADAPTIVE_WEIGHT, out=new_weights)
    adaptive_log.debug(
        "Aggregate score %.3f, %d of %d weights updated, mean weight %.3f",
        score,
        updated,
        len(traces),
        float(new_weights.mean()) if new_weights.size else 0.0,
    )
    return new_weights


def adaptive_factors(params: AdaptiveParameters, history: PerformanceHistory) -> AdaptiveFactors:
    """
    Output scaling factors learned from the last ``performance_window`` records.
    """
    if len(history) < params.min_factor_history:
        return NEUTRAL_FACTORS

    window = params.performance_window
    avg_efficiency = float(history.column("efficiency", window).mean())
    avg_comfort = float(history.column("comfort", window).mean())
    avg_stability = float(history.column("stability", window).mean())

    damping = 1.0
    energy = 1.0
    valve = 1.0
    if avg_comfort < 0.6:
        damping *= 0.9
    if avg_efficiency < 0.5:
        energy *= 1.1
        valve *= 1.05
    if avg_stability < 0.7:
        damping *= 1.1

    factors = AdaptiveFactors(
        damping=max(0.8, min(1.2, damping)),
        energy=max(0.8, min(1.2, energy)),
        valve=max(0.9, min(1.1, valve)),
    )
    adaptive_log.debug(
        "Averages eff=%.3f comfort=%.3f stab=%.3f -> factors %s",
        avg_efficiency,
        avg_comfort,
        avg_stability,
        factors,
    )
    return factors
