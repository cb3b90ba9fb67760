"""
Fuzzy regenerative braking controller.

Splits front-axle braking between the electric motor (regenerative) and the
friction brakes from driving speed, braking intensity, battery state of charge
and motor temperature. A cycle is validate -> inference -> thermal derating ->
safety clamp; there is no learning or prediction on this path.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from vehicle_flc import plant_models
from vehicle_flc.controller import FuzzyInferenceSystem
from vehicle_flc.faults import INPUT_VALIDATION, INTERNAL_ERROR, FaultRegistry
from vehicle_flc.safety import BrakingSafetyBounds, clamp_braking, derate_for_temperature
from vehicle_flc.signals import BRAKING_FAILSAFE, BrakingInputs, BrakingOutputs, CycleResult
from vehicle_flc.validation import InputRanges, Invalid, describe, validate

braking_log = logging.getLogger("braking")

REGEN_RATIO = "regen_ratio"
MOTOR_TORQUE = "motor_torque"


@dataclass(frozen=True)
class BrakingConfig:
    system: FuzzyInferenceSystem
    ranges: InputRanges
    safety: BrakingSafetyBounds

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "BrakingConfig":
        return cls(
            system=FuzzyInferenceSystem(config),
            ranges=InputRanges.from_config(config.get("validation", {})),
            safety=BrakingSafetyBounds.from_config(config.get("safety", {})),
        )


class BrakingController:
    """
    Attributes:
        config (BrakingConfig): Knowledge base, validation ranges and envelope.
        faults (FaultRegistry): Faults raised by rejected or failed cycles.
        last_cycle_time (float): Monotonic time of the last cycle, None before the first.
    """

    def __init__(self, config: Mapping[str, Any]):
        self.config = BrakingConfig.from_config(config)
        self.faults = FaultRegistry()
        self.last_cycle_time: Optional[float] = None
        braking_log.info(
            "Braking controller ready (%d rules).", len(self.config.system.rule_base)
        )

    def calculate_optimal_braking(self, inputs: BrakingInputs) -> CycleResult[BrakingOutputs]:
        """
        Computes the regenerative/mechanical split for one braking request.

        Args:
            inputs (BrakingInputs): Current braking request and vehicle state.

        Returns:
            CycleResult[BrakingOutputs]: The clamped split, or the all-mechanical
                fail-safe with a registered fault when the inputs are invalid or
                the computation fails.
        """
        self.last_cycle_time = time.monotonic()
        result = validate(inputs.as_sample(), self.config.ranges)
        if isinstance(result, Invalid):
            return self._failsafe(INPUT_VALIDATION, result.reasons)

        try:
            inference = self.config.system.infer(result.values)
            ratio, torque = derate_for_temperature(
                inference.outputs[REGEN_RATIO],
                inference.outputs[MOTOR_TORQUE],
                inputs,
                self.config.safety,
            )
            draft = BrakingOutputs(
                regen_ratio=ratio,
                mechanical_ratio=1.0 - ratio,
                motor_torque=torque,
                front_axle_braking_force=plant_models.front_axle_braking_force(torque, ratio),
            )
            outputs = clamp_braking(draft, inputs, self.config.safety)
        except (ArithmeticError, KeyError, ValueError, IndexError) as exc:
            braking_log.error("Error in regenerative braking calculation: %s", exc, exc_info=True)
            return self._failsafe(INTERNAL_ERROR, (f"{type(exc).__name__}: {exc}",))

        braking_log.debug(
            "v=%.1f intensity=%.2f soc=%.2f T=%.1f -> ratio %.3f torque %.1f",
            inputs.driving_speed,
            inputs.braking_intensity,
            inputs.battery_soc,
            inputs.motor_temperature,
            outputs.regen_ratio,
            outputs.motor_torque,
        )
        return CycleResult(
            outputs=outputs,
            details={
                "inferred_regen_ratio": inference.outputs[REGEN_RATIO],
                "inferred_motor_torque": inference.outputs[MOTOR_TORQUE],
            },
        )

    def _failsafe(self, code: str, reasons) -> CycleResult[BrakingOutputs]:
        detail = describe(reasons)
        braking_log.warning("Fail-safe braking output (%s): %s", code, detail)
        self.faults.raise_fault(code, detail)
        return CycleResult(outputs=BRAKING_FAILSAFE, failsafe=True, reasons=tuple(reasons))

    def get_system_status(self) -> Dict[str, Any]:
        registry = self.config.system.registry
        return {
            "rule_count": len(self.config.system.rule_base),
            "input_variables": [v.name for v in registry.inputs],
            "output_variables": [v.name for v in registry.outputs],
            "active_faults": sorted(self.faults.active),
            "is_active": not self.faults.active,
            "last_cycle_time": self.last_cycle_time,
        }
