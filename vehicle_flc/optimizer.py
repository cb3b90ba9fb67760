"""
Multi-objective trade-off between comfort, energy recovery and stability.

The baseline inference output is first blended with the anticipated (predictive)
output, then a fixed 5 x 5 grid of multiplicative factors around the blend is
searched for the best weighted score. The grid is enumerated in a fixed order
and the unscaled blend is the incumbent, so identical inputs always produce the
identical choice.
"""

import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping

import numpy as np

from vehicle_flc import performance
from vehicle_flc.plant_models import MAX_RECOVERY_W

optimizer_log = logging.getLogger("optimizer")

SEARCH_FACTORS = np.round(np.linspace(0.8, 1.2, 5), 2)


@dataclass(frozen=True)
class OptimizationObjectives:
    """
    Relative priorities of the trade-off search. Always normalised to sum to 1.
    """

    comfort: float = 0.3
    energy: float = 0.3
    stability: float = 0.25
    efficiency: float = 0.15

    @classmethod
    def normalized(cls, **weights: float) -> "OptimizationObjectives":
        """
        Builds objectives from raw non-negative weights, rescaled to sum to 1.

        Raises:
            ValueError: On an unknown name, a negative or non-finite weight, or
                an all-zero set.
        """
        names = [f.name for f in fields(cls)]
        unknown = set(weights) - set(names)
        if unknown:
            raise ValueError(f"Unknown objective weights {sorted(unknown)}")
        values = {name: float(weights.get(name, 0.0)) for name in names}
        for name, value in values.items():
            if not np.isfinite(value) or value < 0:
                raise ValueError(f"Objective weight '{name}' must be >= 0, got {value}")
        total = sum(values.values())
        if total <= 0:
            raise ValueError("At least one objective weight must be positive")
        return cls(**{name: value / total for name, value in values.items()})

    @classmethod
    def from_config(cls, section: Mapping[str, Any]) -> "OptimizationObjectives":
        if not section:
            return cls.normalized(**cls().as_dict())
        return cls.normalized(**dict(section))

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def updated(self, **changes: float) -> "OptimizationObjectives":
        merged = self.as_dict()
        merged.update(changes)
        return OptimizationObjectives.normalized(**merged)


@dataclass(frozen=True)
class TradeoffResult:
    damping: float
    energy_recovery: float
    score: float
    damping_factor: float
    energy_factor: float


def blend(
    baseline_damping: float,
    baseline_energy: float,
    anticipated_damping: float,
    anticipated_energy: float,
    objectives: OptimizationObjectives,
):
    """
    Linear blend of baseline and anticipated targets.

    The stability weight pulls damping toward the anticipated value, the energy
    weight pulls energy recovery toward it.
    """
    damping = baseline_damping * (1 - objectives.stability) + anticipated_damping * objectives.stability
    energy = baseline_energy * (1 - objectives.energy) + anticipated_energy * objectives.energy
    return damping, energy


def score_candidate(
    damping: float,
    energy_recovery: float,
    reference_damping: float,
    suspension_velocity: float,
    objectives: OptimizationObjectives,
) -> float:
    comfort = performance.comfort_score(damping, reference_damping)
    energy = performance.energy_efficiency(energy_recovery, suspension_velocity)
    stability = performance.stability_score(damping)
    efficiency = performance.system_efficiency(energy, comfort)
    return (
        comfort * objectives.comfort
        + energy * objectives.energy
        + stability * objectives.stability
        + efficiency * objectives.efficiency
    )


def refine(
    damping: float,
    energy_recovery: float,
    reference_damping: float,
    suspension_velocity: float,
    objectives: OptimizationObjectives,
) -> TradeoffResult:
    """
    Local grid search around a blended (damping, energy) pair.

    Args:
        damping (float): Blended damping coefficient.
        energy_recovery (float): Blended energy-recovery rate.
        reference_damping (float): Condition-dependent optimal damping.
        suspension_velocity (float): Current suspension velocity (m/s).
        objectives (OptimizationObjectives): Normalised priorities.

    Returns:
        TradeoffResult: Best candidate, clamped to the actuator ranges.
    """
    best_d, best_e = 1.0, 1.0
    best_score = float(
        score_candidate(damping, energy_recovery, reference_damping, suspension_velocity, objectives)
    )
    for d_factor in SEARCH_FACTORS:
        for e_factor in SEARCH_FACTORS:
            score = score_candidate(
                damping * d_factor,
                energy_recovery * e_factor,
                reference_damping,
                suspension_velocity,
                objectives,
            )
            if score > best_score:
                best_score = float(score)
                best_d, best_e = float(d_factor), float(e_factor)

    result = TradeoffResult(
        damping=max(performance.MIN_DAMPING, min(performance.MAX_DAMPING, damping * best_d)),
        energy_recovery=max(0.0, min(MAX_RECOVERY_W, energy_recovery * best_e)),
        score=best_score,
        damping_factor=best_d,
        energy_factor=best_e,
    )
    optimizer_log.debug(
        "Trade-off: damping %.1f x%.1f, energy %.1f x%.1f, score %.4f",
        damping,
        best_d,
        energy_recovery,
        best_e,
        best_score,
    )
    return result
