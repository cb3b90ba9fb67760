"""
Derived actuator quantities supplied by the physical models.

These are simplified, externally owned relationships between the crisp control
targets and the hydraulic/electrical actuation layer. The control core treats
them as opaque numeric functions and never adjusts their constants.
"""

import math

MAX_FLOW_L_MIN = 50.0
GENERATOR_RPM = 1500.0
MAX_GENERATOR_TORQUE_NM = 50.0
MAX_CHARGE_RATE_BAR_S = 5.0
MAX_RECOVERY_W = 1500.0
BASE_PUMP_RPM = 1000.0
MAX_PUMP_RPM = 3000.0
WHEEL_RADIUS_M = 0.35


def hydraulic_flow_rate(suspension_velocity: float, vehicle_speed: float, road_roughness: float) -> float:
    """Hydraulic flow in L/min."""
    base_flow = abs(suspension_velocity) * 10.0
    speed_factor = 1.0 + (vehicle_speed / 100.0) * 0.3
    roughness_factor = 1.0 + road_roughness * 0.5
    return min(base_flow * speed_factor * roughness_factor, MAX_FLOW_L_MIN)


def generator_torque(energy_recovery_rate: float) -> float:
    """Generator torque in Nm for a recovered power in W, at nominal generator speed."""
    torque = (energy_recovery_rate * 60.0) / (2.0 * math.pi * GENERATOR_RPM)
    return min(torque, MAX_GENERATOR_TORQUE_NM)


def accumulator_charge_rate(energy_recovery_rate: float, energy_storage_level: float) -> float:
    """Accumulator charge rate in bar/s."""
    energy_factor = energy_recovery_rate / MAX_RECOVERY_W
    storage_factor = 1.0 - energy_storage_level
    return MAX_CHARGE_RATE_BAR_S * energy_factor * storage_factor


def pump_speed(suspension_velocity: float, hydraulic_pressure: float) -> float:
    """Hydraulic pump speed in rpm."""
    demand_factor = abs(suspension_velocity) * 2.0
    pressure_factor = max(0.0, (200.0 - hydraulic_pressure) / 200.0)
    return min(BASE_PUMP_RPM * (1.0 + demand_factor + pressure_factor), MAX_PUMP_RPM)


def front_axle_braking_force(motor_torque: float, regen_ratio: float) -> float:
    """Regenerative share of the front-axle braking force in N."""
    return (motor_torque * regen_ratio) / WHEEL_RADIUS_M
