"""
Input and output records exchanged with the controllers.

Inputs are what the sensor/estimation layer hands in each cycle; outputs are
the crisp actuator targets plus the derived performance scores.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Generic, Tuple, TypeVar

DRIVING_MODES = ("eco", "comfort", "sport", "off-road")
SURFACE_TYPES = ("asphalt", "concrete", "gravel", "dirt", "wet", "snow", "ice")

SOFT_DAMPING_LIMIT = 2000.0
MEDIUM_DAMPING_LIMIT = 3500.0


def damping_mode(damping_coefficient: float) -> str:
    if damping_coefficient < SOFT_DAMPING_LIMIT:
        return "soft"
    if damping_coefficient < MEDIUM_DAMPING_LIMIT:
        return "medium"
    return "firm"


@dataclass(frozen=True)
class SuspensionInputs:
    # Vehicle dynamics
    vehicle_speed: float = 50.0  # km/h
    vertical_acceleration: float = 0.0  # m/s^2
    suspension_velocity: float = 0.0  # m/s
    suspension_displacement: float = 0.0  # m

    # Road conditions
    road_roughness: float = 0.2  # 0 smooth .. 1 very rough
    road_gradient: float = 0.0  # % grade
    surface_type: str = "asphalt"

    # Driving patterns, 0 gentle .. 1 aggressive
    acceleration_pattern: float = 0.3
    braking_pattern: float = 0.3
    cornering_pattern: float = 0.3
    driving_mode: str = "comfort"

    # System state
    hydraulic_pressure: float = 150.0  # bar
    accumulator_pressure: float = 100.0  # bar
    fluid_temperature: float = 40.0  # degC
    energy_storage_level: float = 0.5  # 0 empty .. 1 full

    # Environment
    ambient_temperature: float = 20.0  # degC
    vehicle_load: float = 1500.0  # kg

    @property
    def aggression(self) -> float:
        return (self.acceleration_pattern + self.braking_pattern + self.cornering_pattern) / 3.0

    def as_sample(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SuspensionOutputs:
    damping_coefficient: float  # N*s/m
    damping_mode: str
    energy_recovery_rate: float  # W
    hydraulic_flow_rate: float  # L/min
    generator_torque: float  # Nm
    accumulator_charge_rate: float  # bar/s
    valve_position: float  # 0..1
    pump_speed: float  # rpm
    comfort_index: float = 0.0
    energy_efficiency: float = 0.0
    system_efficiency: float = 0.0


SUSPENSION_FAILSAFE = SuspensionOutputs(
    damping_coefficient=2500.0,
    damping_mode="medium",
    energy_recovery_rate=0.0,
    hydraulic_flow_rate=10.0,
    generator_torque=0.0,
    accumulator_charge_rate=0.0,
    valve_position=0.3,
    pump_speed=1000.0,
    comfort_index=0.5,
    energy_efficiency=0.0,
    system_efficiency=0.3,
)


@dataclass(frozen=True)
class BrakingInputs:
    driving_speed: float  # km/h
    braking_intensity: float  # 0..1
    battery_soc: float  # 0..1
    motor_temperature: float  # degC

    def as_sample(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BrakingOutputs:
    regen_ratio: float  # regenerative share of front-axle braking
    mechanical_ratio: float  # 1 - regen_ratio
    motor_torque: float  # Nm
    front_axle_braking_force: float  # N


BRAKING_FAILSAFE = BrakingOutputs(
    regen_ratio=0.0,
    mechanical_ratio=1.0,
    motor_torque=0.0,
    front_axle_braking_force=0.0,
)

OutputT = TypeVar("OutputT")


@dataclass(frozen=True)
class CycleResult(Generic[OutputT]):
    """
    Outcome of one control cycle. ``outputs`` is always fully populated.

    Attributes:
        outputs: The actuator targets (fail-safe values when ``failsafe``).
        failsafe (bool): True when the cycle was rejected or failed internally.
        reasons (Tuple[str, ...]): Why the fail-safe path was taken.
        details (Dict[str, float]): Intermediate values for diagnostics.
    """

    outputs: OutputT
    failsafe: bool = False
    reasons: Tuple[str, ...] = ()
    details: Dict[str, float] = field(default_factory=dict)
