"""
Performance scores of a suspension control decision.

The same scores serve as reported telemetry (comfort index, energy efficiency,
system efficiency) and as the feedback signal of the adaptive learner. All
scores are in [0, 1].
"""

MIN_DAMPING = 500.0
MAX_DAMPING = 5000.0
BASE_DAMPING = 2500.0


def optimal_damping(road_roughness: float, vehicle_speed: float, acceleration_pattern: float) -> float:
    """Condition-dependent reference damping in N*s/m."""
    optimal = BASE_DAMPING
    optimal += road_roughness * 1000.0
    optimal += (vehicle_speed / 100.0) * 500.0
    optimal += acceleration_pattern * 1000.0
    return min(MAX_DAMPING, max(MIN_DAMPING, optimal))


def comfort_index(
    road_roughness: float,
    suspension_velocity: float,
    damping: float,
    reference_damping: float,
) -> float:
    comfort = 1.0
    comfort -= road_roughness * 0.3
    comfort -= min(abs(suspension_velocity) * 0.5, 0.4)
    comfort -= abs(damping - reference_damping) / reference_damping * 0.2
    return max(0.0, min(1.0, comfort))


def energy_efficiency(energy_recovery_rate: float, suspension_velocity: float) -> float:
    """Ratio of recovered to theoretically recoverable power, capped at 1."""
    max_possible = abs(suspension_velocity) * 1000.0
    if max_possible == 0:
        return 0.0
    return max(0.0, min(1.0, energy_recovery_rate / max_possible))


def system_efficiency(energy: float, comfort: float) -> float:
    return energy * 0.6 + comfort * 0.4


def stability_metric(damping: float, suspension_velocity: float, road_roughness: float) -> float:
    """Stability of a completed cycle, recorded in the performance history."""
    damping_stability = min(1.0, damping / 3000.0)
    velocity_stability = max(0.0, 1.0 - abs(suspension_velocity))
    road_stability = 1.0 - road_roughness
    return (damping_stability + velocity_stability + road_stability) / 3.0


# Scores used by the trade-off search


def comfort_score(damping: float, reference_damping: float) -> float:
    deviation = abs(damping - reference_damping) / reference_damping
    return max(0.0, 1.0 - deviation)


def stability_score(damping: float) -> float:
    # Rises with damping, penalised past 80% of the damping range.
    normalized = damping / MAX_DAMPING
    stability_factor = min(1.0, normalized * 1.2)
    comfort_penalty = max(0.0, normalized - 0.8) * 0.5
    return max(0.0, stability_factor - comfort_penalty)
