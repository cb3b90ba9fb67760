"""
Control cycle of the hydraulic regenerative suspension.

Each call to ``SuspensionController.run_cycle`` sequences

    validate -> inference (baseline) -> prediction (anticipated baseline)
    -> trade-off blend and grid search -> adaptive scaling -> safety clamp
    -> scoring -> history and rule-weight update

The immutable configuration (knowledge base, ranges, envelope, parameters) and
the mutable state (rule weights, traces, histories) are kept in separate
objects; the stage functions below take them explicitly and only the final
commit step mutates state. One controller instance owns its state and expects
at most one cycle in flight; callers sharing it across threads must serialise
access themselves.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from vehicle_flc import performance, plant_models
from vehicle_flc.adaptive import (
    AdaptiveFactors,
    AdaptiveParameters,
    adaptive_factors,
    update_rule_weights,
)
from vehicle_flc.controller import FuzzyInferenceSystem
from vehicle_flc.faults import INPUT_VALIDATION, INTERNAL_ERROR, FaultRegistry
from vehicle_flc.history import (
    ConditionHistory,
    ControlCycleRecord,
    PerformanceHistory,
    RingBuffer,
    rule_traces,
)
from vehicle_flc.optimizer import OptimizationObjectives, blend, refine
from vehicle_flc.predictive import Prediction, PredictiveParameters, predict
from vehicle_flc.safety import SuspensionSafetyBounds, clamp_suspension
from vehicle_flc.signals import (
    DRIVING_MODES,
    SUSPENSION_FAILSAFE,
    SURFACE_TYPES,
    CycleResult,
    SuspensionInputs,
    SuspensionOutputs,
    damping_mode,
)
from vehicle_flc.validation import InputRanges, Invalid, describe, validate

suspension_log = logging.getLogger("suspension")

ROUGHNESS = "road_roughness"
AGGRESSION = "aggression"

DAMPING = "damping_coefficient"
RECOVERY = "energy_recovery_rate"
VALVE = "valve_position"

DIAGNOSTIC_WINDOW = 100
TREND_MIN_RECORDS = 50
TREND_SEGMENT = 25
TREND_TOLERANCE = 0.05


@dataclass(frozen=True)
class SuspensionConfig:
    """Everything that is fixed between explicit update calls."""

    system: FuzzyInferenceSystem
    ranges: InputRanges
    safety: SuspensionSafetyBounds
    adaptive: AdaptiveParameters
    predictive: PredictiveParameters
    objectives: OptimizationObjectives
    history_capacity: int = 1000

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SuspensionConfig":
        validation = dict(config.get("validation", {}))
        validation.setdefault(
            "choices", {"driving_mode": DRIVING_MODES, "surface_type": SURFACE_TYPES}
        )
        history_capacity = int(config.get("history", {}).get("capacity", 1000))
        if history_capacity < 1:
            raise ValueError(f"history capacity must be >= 1, got {history_capacity}")
        return cls(
            system=FuzzyInferenceSystem(config),
            ranges=InputRanges.from_config(validation),
            safety=SuspensionSafetyBounds.from_config(config.get("safety", {})),
            adaptive=AdaptiveParameters.from_config(config.get("adaptive", {})),
            predictive=PredictiveParameters.from_config(config.get("predictive", {})),
            objectives=OptimizationObjectives.from_config(config.get("objectives", {})),
            history_capacity=history_capacity,
        )


@dataclass
class SuspensionState:
    """Mutable state owned by one controller and changed only at cycle commit."""

    weights: np.ndarray
    traces: Tuple[RingBuffer, ...]
    performance: PerformanceHistory
    conditions: Dict[str, ConditionHistory]
    fire_counts: np.ndarray
    committed_cycles: int = 0
    faults: FaultRegistry = field(default_factory=FaultRegistry)

    @classmethod
    def initial(cls, config: SuspensionConfig) -> "SuspensionState":
        rule_base = config.system.rule_base
        capacity = config.predictive.history_capacity
        return cls(
            weights=rule_base.base_weights.copy(),
            traces=tuple(rule_traces(len(rule_base), config.adaptive.performance_window)),
            performance=PerformanceHistory(config.history_capacity),
            conditions={
                ROUGHNESS: ConditionHistory(capacity),
                AGGRESSION: ConditionHistory(capacity),
            },
            fire_counts=np.zeros(len(rule_base), dtype=int),
        )


# ---------------------------------------------------------------------------
# Stage functions
# ---------------------------------------------------------------------------


def crisp_inputs(system: FuzzyInferenceSystem, inputs: SuspensionInputs) -> Dict[str, float]:
    sample = inputs.as_sample()
    return {v.name: float(sample[v.name]) for v in system.registry.inputs}


def derive_outputs(
    inputs: SuspensionInputs, damping: float, recovery: float, valve: float
) -> SuspensionOutputs:
    """Fills in the actuator quantities implied by the three fuzzy targets."""
    return SuspensionOutputs(
        damping_coefficient=damping,
        damping_mode=damping_mode(damping),
        energy_recovery_rate=recovery,
        hydraulic_flow_rate=plant_models.hydraulic_flow_rate(
            inputs.suspension_velocity, inputs.vehicle_speed, inputs.road_roughness
        ),
        generator_torque=plant_models.generator_torque(recovery),
        accumulator_charge_rate=plant_models.accumulator_charge_rate(
            recovery, inputs.energy_storage_level
        ),
        valve_position=valve,
        pump_speed=plant_models.pump_speed(inputs.suspension_velocity, inputs.hydraulic_pressure),
    )


def score_outputs(outputs: SuspensionOutputs, inputs: SuspensionInputs) -> SuspensionOutputs:
    reference = performance.optimal_damping(
        inputs.road_roughness, inputs.vehicle_speed, inputs.acceleration_pattern
    )
    comfort = performance.comfort_index(
        inputs.road_roughness, inputs.suspension_velocity, outputs.damping_coefficient, reference
    )
    energy = performance.energy_efficiency(outputs.energy_recovery_rate, inputs.suspension_velocity)
    return replace(
        outputs,
        comfort_index=comfort,
        energy_efficiency=energy,
        system_efficiency=performance.system_efficiency(energy, comfort),
    )


def anticipated_inputs(inputs: SuspensionInputs, prediction: Prediction) -> SuspensionInputs:
    """
    The input vector expected after the prediction horizon.

    Aggression drift is carried onto the acceleration pattern, the only driving
    pattern the rule base reads.
    """
    drift = prediction.anticipated[AGGRESSION] - inputs.aggression
    acceleration = max(0.0, min(1.0, inputs.acceleration_pattern + drift))
    return replace(
        inputs,
        road_roughness=prediction.anticipated[ROUGHNESS],
        acceleration_pattern=acceleration,
    )


def apply_factors(outputs: SuspensionOutputs, factors: AdaptiveFactors) -> SuspensionOutputs:
    return replace(
        outputs,
        damping_coefficient=outputs.damping_coefficient * factors.damping,
        energy_recovery_rate=outputs.energy_recovery_rate * factors.energy,
        valve_position=max(0.0, min(1.0, outputs.valve_position * factors.valve)),
    )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class SuspensionController:
    """
    Adaptive, predictive fuzzy controller for the regenerative suspension.

    Attributes:
        config (SuspensionConfig): Immutable configuration.
        state (SuspensionState): Weights, traces and histories.
    """

    def __init__(self, config: Mapping[str, Any]):
        """
        Args:
            config (Mapping[str, Any]): Parsed ``suspension_flc.toml``.
        """
        self.config = SuspensionConfig.from_config(config)
        self.state = SuspensionState.initial(self.config)
        self._domains = {
            ROUGHNESS: self.config.system.registry.input_variable(ROUGHNESS).domain,
            AGGRESSION: (0.0, 1.0),
        }
        suspension_log.info(
            "Suspension controller ready (%d rules, learning %s, objectives %s).",
            len(self.config.system.rule_base),
            "on" if self.config.adaptive.learning_enabled else "off",
            {k: round(v, 3) for k, v in self.config.objectives.as_dict().items()},
        )

    @property
    def faults(self) -> FaultRegistry:
        return self.state.faults

    # -- cycle entry points -------------------------------------------------

    def run_cycle(
        self, inputs: SuspensionInputs, timestamp: Optional[float] = None
    ) -> CycleResult[SuspensionOutputs]:
        """
        Executes one full adaptive/predictive control cycle.

        Args:
            inputs (SuspensionInputs): Current measurements.
            timestamp (float, optional): Cycle time; monotonic clock if None.

        Returns:
            CycleResult[SuspensionOutputs]: Always fully populated. On invalid
                input or an internal error the fail-safe targets are returned
                and a fault is registered.
        """
        result = validate(inputs.as_sample(), self.config.ranges)
        if isinstance(result, Invalid):
            return self._failsafe(INPUT_VALIDATION, result.reasons)

        try:
            outputs, details, fired = self._advanced_step(inputs)
        except (ArithmeticError, KeyError, ValueError, IndexError) as exc:
            suspension_log.error("Error in suspension control cycle: %s", exc, exc_info=True)
            return self._failsafe(INTERNAL_ERROR, (f"{type(exc).__name__}: {exc}",))

        self._commit(inputs, outputs, fired, timestamp, learn=self.config.adaptive.learning_enabled)
        return CycleResult(outputs=outputs, details=details)

    def calculate_optimal_control(
        self, inputs: SuspensionInputs, timestamp: Optional[float] = None
    ) -> CycleResult[SuspensionOutputs]:
        """
        Single-pass control: inference, derived quantities and the safety clamp,
        without prediction, trade-off search, adaptive scaling or learning.
        """
        result = validate(inputs.as_sample(), self.config.ranges)
        if isinstance(result, Invalid):
            return self._failsafe(INPUT_VALIDATION, result.reasons)

        try:
            inference = self.config.system.infer(
                crisp_inputs(self.config.system, inputs), self._inference_weights()
            )
            crisp = inference.outputs
            draft = derive_outputs(inputs, crisp[DAMPING], crisp[RECOVERY], crisp[VALVE])
            outputs = score_outputs(clamp_suspension(draft, inputs, self.config.safety), inputs)
        except (ArithmeticError, KeyError, ValueError, IndexError) as exc:
            suspension_log.error("Error in HRS control calculation: %s", exc, exc_info=True)
            return self._failsafe(INTERNAL_ERROR, (f"{type(exc).__name__}: {exc}",))

        self._commit(inputs, outputs, inference.activations.fired(), timestamp, learn=False)
        return CycleResult(outputs=outputs, details={"baseline_damping": crisp[DAMPING]})

    # -- pipeline -----------------------------------------------------------

    def _inference_weights(self) -> np.ndarray:
        if self.config.adaptive.learning_enabled:
            return self.state.weights
        return self.config.system.rule_base.base_weights

    def _advanced_step(self, inputs: SuspensionInputs):
        cfg = self.config
        system = cfg.system
        weights = self._inference_weights()

        # 1) Baseline inference
        baseline = system.infer(crisp_inputs(system, inputs), weights)
        base = baseline.outputs

        # 2) Anticipated baseline
        prediction = predict(
            cfg.predictive,
            self.state.conditions,
            {ROUGHNESS: inputs.road_roughness, AGGRESSION: inputs.aggression},
            self._domains,
        )
        if prediction.trusted:
            future = anticipated_inputs(inputs, prediction)
            anticipated = system.infer(crisp_inputs(system, future), weights).outputs
        else:
            anticipated = base

        # 3) Blend and local trade-off search
        damping, recovery = blend(
            base[DAMPING], base[RECOVERY], anticipated[DAMPING], anticipated[RECOVERY], cfg.objectives
        )
        reference = performance.optimal_damping(
            inputs.road_roughness, inputs.vehicle_speed, inputs.acceleration_pattern
        )
        tradeoff = refine(damping, recovery, reference, inputs.suspension_velocity, cfg.objectives)

        # 4) Learned scaling
        factors = adaptive_factors(cfg.adaptive, self.state.performance)
        draft = apply_factors(
            derive_outputs(inputs, tradeoff.damping, tradeoff.energy_recovery, base[VALVE]),
            factors,
        )

        # 5) Hard envelope, then scores on what will actually be applied
        outputs = score_outputs(clamp_suspension(draft, inputs, cfg.safety), inputs)

        details = {
            "baseline_damping": base[DAMPING],
            "baseline_recovery": base[RECOVERY],
            "anticipated_damping": anticipated[DAMPING],
            "anticipated_recovery": anticipated[RECOVERY],
            "prediction_confidence": prediction.confidence,
            "optimization_score": tradeoff.score,
            "damping_factor": factors.damping,
            "energy_factor": factors.energy,
            "valve_factor": factors.valve,
        }
        suspension_log.debug(
            "Cycle: baseline %.1f/%.1f -> final %.1f (%s)/%.1f, confidence %.2f",
            base[DAMPING],
            base[RECOVERY],
            outputs.damping_coefficient,
            outputs.damping_mode,
            outputs.energy_recovery_rate,
            prediction.confidence,
        )
        return outputs, details, baseline.activations.fired()

    def _commit(
        self,
        inputs: SuspensionInputs,
        outputs: SuspensionOutputs,
        fired: np.ndarray,
        timestamp: Optional[float],
        learn: bool,
    ) -> None:
        state = self.state
        stability = performance.stability_metric(
            outputs.damping_coefficient, inputs.suspension_velocity, inputs.road_roughness
        )
        state.performance.append(
            ControlCycleRecord(
                timestamp=time.monotonic() if timestamp is None else float(timestamp),
                efficiency=outputs.energy_efficiency,
                comfort=outputs.comfort_index,
                stability=stability,
            )
        )
        state.conditions[ROUGHNESS].append(inputs.road_roughness)
        state.conditions[AGGRESSION].append(inputs.aggression)
        state.fire_counts += fired.astype(int)
        state.committed_cycles += 1

        if learn:
            state.weights = update_rule_weights(
                self.config.adaptive, state.performance, state.weights, state.traces
            )

    def _failsafe(self, code: str, reasons) -> CycleResult[SuspensionOutputs]:
        detail = describe(reasons)
        suspension_log.warning("Fail-safe suspension output (%s): %s", code, detail)
        self.state.faults.raise_fault(code, detail)
        return CycleResult(outputs=SUSPENSION_FAILSAFE, failsafe=True, reasons=tuple(reasons))

    # -- monitoring and explicit updates ------------------------------------

    def adaptive_weights(self) -> Dict[str, float]:
        rules = self.config.system.rule_base.rules
        return {rule.id: float(w) for rule, w in zip(rules, self.state.weights)}

    def get_system_diagnostics(self) -> Dict[str, Any]:
        """
        Rolling averages, performance trend and rule utilisation.

        Returns:
            Dict[str, Any]: ``average_efficiency``, ``average_comfort``,
                ``average_stability``, ``performance_trend`` ('improving',
                'stable' or 'declining'), ``rule_utilization`` (rule id ->
                fraction of committed cycles in which it fired),
                ``active_faults``.
        """
        history = self.state.performance
        recent = history.recent(DIAGNOSTIC_WINDOW)
        efficiency = np.array([r.efficiency for r in recent])
        comfort = np.array([r.comfort for r in recent])
        stability = np.array([r.stability for r in recent])

        trend = "stable"
        if len(recent) >= TREND_MIN_RECORDS:
            first = efficiency[:TREND_SEGMENT].mean()
            last = efficiency[-TREND_SEGMENT:].mean()
            if last > first + TREND_TOLERANCE:
                trend = "improving"
            elif last < first - TREND_TOLERANCE:
                trend = "declining"

        cycles = self.state.committed_cycles
        rules = self.config.system.rule_base.rules
        utilization = {
            rule.id: (float(count) / cycles if cycles else 0.0)
            for rule, count in zip(rules, self.state.fire_counts)
        }
        return {
            "average_efficiency": float(efficiency.mean()) if recent else 0.0,
            "average_comfort": float(comfort.mean()) if recent else 0.0,
            "average_stability": float(stability.mean()) if recent else 0.0,
            "performance_trend": trend,
            "rule_utilization": utilization,
            "active_faults": sorted(self.state.faults.active),
        }

    def get_adaptive_parameters(self) -> Dict[str, Any]:
        return {
            "adaptive_params": self.config.adaptive,
            "predictive_params": self.config.predictive,
            "optimization_objectives": self.config.objectives.as_dict(),
            "current_adaptive_weights": self.adaptive_weights(),
        }

    def update_objectives(self, **weights: float) -> OptimizationObjectives:
        """Merges new objective weights and renormalises them to sum to 1."""
        objectives = self.config.objectives.updated(**weights)
        self.config = replace(self.config, objectives=objectives)
        suspension_log.info("Objectives updated: %s", objectives.as_dict())
        return objectives

    def update_adaptive_parameters(self, **changes) -> AdaptiveParameters:
        """
        Replaces adaptive parameters. A new ``performance_window`` resizes the
        rule traces, keeping their most recent entries.
        """
        params = self.config.adaptive.updated(**changes)
        if params.performance_window != self.config.adaptive.performance_window:
            resized = []
            for trace in self.state.traces:
                buffer = RingBuffer(params.performance_window)
                for value in trace.recent(params.performance_window):
                    buffer.append(value)
                resized.append(buffer)
            self.state.traces = tuple(resized)
        self.config = replace(self.config, adaptive=params)
        suspension_log.info("Adaptive parameters updated: %s", params)
        return params

    def update_predictive_parameters(self, **changes) -> PredictiveParameters:
        params = self.config.predictive.updated(**changes)
        if params.history_capacity != self.config.predictive.history_capacity:
            for name, history in list(self.state.conditions.items()):
                resized = ConditionHistory(params.history_capacity)
                for value in history.recent(params.history_capacity):
                    resized.append(value)
                self.state.conditions[name] = resized
        self.config = replace(self.config, predictive=params)
        suspension_log.info("Predictive parameters updated: %s", params)
        return params

    def reset_learning(self) -> None:
        """Restores base rule weights and clears the rule traces."""
        self.state.weights = self.config.system.rule_base.base_weights.copy()
        for trace in self.state.traces:
            trace.clear()
        suspension_log.info("Adaptive weights reset to base weights.")
