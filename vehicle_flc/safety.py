"""
Hard operational envelopes applied to every controller output.

The clamps are pure and idempotent: clamping an already clamped output returns
it unchanged. Dependent fields (damping mode, generator torque, accumulator
charge rate, mechanical braking share, front-axle force) are recomputed from
the clamped values so the envelope holds exactly.
"""

import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Tuple

from vehicle_flc import plant_models
from vehicle_flc.signals import (
    BrakingInputs,
    BrakingOutputs,
    SuspensionInputs,
    SuspensionOutputs,
    damping_mode,
)

safety_log = logging.getLogger("safety")


def _clip(value: float, bounds: Tuple[float, float]) -> float:
    lo, hi = bounds
    return max(lo, min(hi, value))


def _from_section(cls, section: Mapping[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = set(section) - known
    if unknown:
        raise KeyError(f"Unknown {cls.__name__} options {sorted(unknown)}")
    kwargs = {
        key: tuple(float(v) for v in value) if isinstance(value, (list, tuple)) else float(value)
        for key, value in section.items()
    }
    return cls(**kwargs)


@dataclass(frozen=True)
class SuspensionSafetyBounds:
    damping: Tuple[float, float] = (500.0, 5000.0)
    energy_recovery: Tuple[float, float] = (0.0, 1500.0)
    # Recovery ceiling once the store is this full.
    full_storage_level: float = 0.9
    full_storage_max_recovery: float = 500.0
    valve_position: Tuple[float, float] = (0.0, 1.0)
    pump_speed: Tuple[float, float] = (0.0, 3000.0)
    hydraulic_flow: Tuple[float, float] = (0.0, 50.0)
    # Damping ceiling on very rough roads.
    rough_road_threshold: float = 0.8
    rough_road_max_damping: float = 3000.0

    @classmethod
    def from_config(cls, section: Mapping[str, Any]) -> "SuspensionSafetyBounds":
        return _from_section(cls, section)


@dataclass(frozen=True)
class BrakingSafetyBounds:
    regen_ratio: Tuple[float, float] = (0.0, 1.0)
    motor_torque: Tuple[float, float] = (0.0, 800.0)
    # Regeneration ceiling when the battery is nearly full.
    full_soc: float = 0.95
    full_soc_max_ratio: float = 0.1
    # Minimum mechanical share (1 - ratio) above this braking intensity.
    heavy_braking_intensity: float = 0.8
    heavy_braking_max_ratio: float = 0.6
    # Thermal derating, applied once before the clamp.
    hot_motor_temperature: float = 120.0
    thermal_derate_factor: float = 0.5

    @classmethod
    def from_config(cls, section: Mapping[str, Any]) -> "BrakingSafetyBounds":
        return _from_section(cls, section)


def clamp_suspension(
    outputs: SuspensionOutputs, inputs: SuspensionInputs, bounds: SuspensionSafetyBounds
) -> SuspensionOutputs:
    """
    Clamps suspension targets to the hard envelope.

    Args:
        outputs (SuspensionOutputs): Candidate targets.
        inputs (SuspensionInputs): The cycle's (validated) inputs.
        bounds (SuspensionSafetyBounds): The envelope.

    Returns:
        SuspensionOutputs: Targets inside the envelope with dependent fields
            recomputed.
    """
    damping = _clip(outputs.damping_coefficient, bounds.damping)
    if inputs.road_roughness > bounds.rough_road_threshold:
        damping = min(damping, bounds.rough_road_max_damping)

    recovery = _clip(outputs.energy_recovery_rate, bounds.energy_recovery)
    if inputs.energy_storage_level >= bounds.full_storage_level:
        recovery = min(recovery, bounds.full_storage_max_recovery)

    clamped = replace(
        outputs,
        damping_coefficient=damping,
        damping_mode=damping_mode(damping),
        energy_recovery_rate=recovery,
        hydraulic_flow_rate=_clip(outputs.hydraulic_flow_rate, bounds.hydraulic_flow),
        generator_torque=plant_models.generator_torque(recovery),
        accumulator_charge_rate=plant_models.accumulator_charge_rate(
            recovery, inputs.energy_storage_level
        ),
        valve_position=_clip(outputs.valve_position, bounds.valve_position),
        pump_speed=_clip(outputs.pump_speed, bounds.pump_speed),
    )
    if damping != outputs.damping_coefficient or recovery != outputs.energy_recovery_rate:
        safety_log.debug(
            "Suspension clamp: damping %.1f -> %.1f, recovery %.1f -> %.1f",
            outputs.damping_coefficient,
            damping,
            outputs.energy_recovery_rate,
            recovery,
        )
    return clamped


def derate_for_temperature(
    regen_ratio: float, motor_torque: float, inputs: BrakingInputs, bounds: BrakingSafetyBounds
) -> Tuple[float, float]:
    """Halves regeneration and motor torque above the hot-motor temperature."""
    if inputs.motor_temperature > bounds.hot_motor_temperature:
        safety_log.debug(
            "Motor at %.1f degC, derating by %.2f",
            inputs.motor_temperature,
            bounds.thermal_derate_factor,
        )
        return (
            regen_ratio * bounds.thermal_derate_factor,
            motor_torque * bounds.thermal_derate_factor,
        )
    return regen_ratio, motor_torque


def clamp_braking(
    outputs: BrakingOutputs, inputs: BrakingInputs, bounds: BrakingSafetyBounds
) -> BrakingOutputs:
    """
    Clamps the braking split to the hard envelope.

    The mechanical share is always exactly ``1 - regen_ratio`` and the
    front-axle force is recomputed from the clamped torque and ratio.
    """
    ratio = _clip(outputs.regen_ratio, bounds.regen_ratio)
    if inputs.battery_soc > bounds.full_soc:
        ratio = min(ratio, bounds.full_soc_max_ratio)
    if inputs.braking_intensity > bounds.heavy_braking_intensity:
        ratio = min(ratio, bounds.heavy_braking_max_ratio)
    torque = _clip(outputs.motor_torque, bounds.motor_torque)

    if ratio != outputs.regen_ratio or torque != outputs.motor_torque:
        safety_log.debug(
            "Braking clamp: ratio %.3f -> %.3f, torque %.1f -> %.1f",
            outputs.regen_ratio,
            ratio,
            outputs.motor_torque,
            torque,
        )
    return BrakingOutputs(
        regen_ratio=ratio,
        mechanical_ratio=1.0 - ratio,
        motor_torque=torque,
        front_axle_braking_force=plant_models.front_axle_braking_force(torque, ratio),
    )
