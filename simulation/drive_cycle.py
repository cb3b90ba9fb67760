"""
drive_cycle.py
==============

Defines the DriveCycle class used to generate the road and driver conditions
seen by the suspension and braking controllers during simulation. A cycle is
composed of:

    • Speed segments (linear ramps between set points)
    • Road-roughness steps (e.g. a gravel section)
    • Sine undulation of the road surface
    • Gaussian roughness noise
    • Driving-pattern (aggression) segments

All components are evaluated at time t by DriveCycle.sample(t, storage_level),
which returns a SuspensionInputs record. Randomness comes from a seeded numpy
Generator so a cycle with the same seed always produces the same samples.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from vehicle_flc.signals import BrakingInputs, SuspensionInputs

# Full braking intensity at this deceleration (km/h per second).
MAX_DECEL_KMH_S = 30.0


@dataclass
class DriveCycle:
    seed: int = 0
    base_roughness: float = 0.2
    driving_mode: str = "comfort"
    surface_type: str = "asphalt"

    # (t, speed_kmh) set points, linearly interpolated
    speed_points: List[Tuple[float, float]] = field(default_factory=list)

    # (t0, t1, magnitude)
    roughness_steps: List[Tuple[float, float, float]] = field(default_factory=list)

    # (amplitude, freq, phase, t_start, t_end)
    roughness_sines: List[Tuple[float, float, float, float, float]] = field(default_factory=list)

    noise_std: float = 0.0

    # (t0, t1, aggression)
    aggression_segments: List[Tuple[float, float, float]] = field(default_factory=list)
    base_aggression: float = 0.3

    # Wheel-hop frequency of the suspension velocity (Hz)
    wheel_hop_hz: float = 1.5

    rng: Optional[np.random.Generator] = field(default=None, repr=False)

    def __post_init__(self):
        if self.rng is None:
            self.rng = np.random.default_rng(self.seed)

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    def add_speed_point(self, t: float, speed_kmh: float):
        self.speed_points.append((t, speed_kmh))
        self.speed_points.sort()

    def add_roughness_step(self, t0: float, t1: float, magnitude: float):
        self.roughness_steps.append((t0, t1, magnitude))

    def add_roughness_sine(
        self,
        amplitude: float,
        freq: float,
        phase: float = 0.0,
        t_start: float = 0.0,
        t_end: float = float("inf"),
    ):
        self.roughness_sines.append((amplitude, freq, phase, t_start, t_end))

    def add_noise(self, std: float):
        self.noise_std = std

    def add_aggression_segment(self, t0: float, t1: float, aggression: float):
        self.aggression_segments.append((t0, t1, aggression))

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------
    def speed(self, t: float) -> float:
        if not self.speed_points:
            return 50.0
        times = [p[0] for p in self.speed_points]
        speeds = [p[1] for p in self.speed_points]
        return float(np.interp(t, times, speeds))

    def deceleration(self, t: float, dt: float) -> float:
        """Speed drop rate in km/h/s over the next ``dt`` (0 when accelerating)."""
        return max(0.0, (self.speed(t) - self.speed(t + dt)) / dt)

    def roughness(self, t: float) -> float:
        r = self.base_roughness

        for t0, t1, mag in self.roughness_steps:
            if t0 <= t <= t1:
                r += mag

        for amp, freq, phase, t0, t1 in self.roughness_sines:
            if t0 <= t <= t1:
                r += amp * math.sin(2 * math.pi * freq * t + phase)

        if self.noise_std > 0:
            r += self.rng.normal(0.0, self.noise_std)

        return min(1.0, max(0.0, r))

    def aggression(self, t: float) -> float:
        for t0, t1, level in self.aggression_segments:
            if t0 <= t <= t1:
                return level
        return self.base_aggression

    # ------------------------------------------------------------------
    # Samples
    # ------------------------------------------------------------------
    def sample(self, t: float, storage_level: float, dt: float = 0.05) -> SuspensionInputs:
        speed = self.speed(t)
        roughness = self.roughness(t)
        aggression = self.aggression(t)

        # Wheel travel speed grows with roughness and road speed.
        amplitude = roughness * (0.3 + speed / 150.0)
        velocity = amplitude * math.sin(2 * math.pi * self.wheel_hop_hz * t)
        velocity = min(2.0, max(-2.0, velocity))

        braking = min(1.0, self.deceleration(t, dt) / MAX_DECEL_KMH_S)
        return SuspensionInputs(
            vehicle_speed=speed,
            vertical_acceleration=velocity * 2 * math.pi * self.wheel_hop_hz,
            suspension_velocity=velocity,
            suspension_displacement=min(0.5, max(-0.5, velocity / (2 * math.pi * self.wheel_hop_hz))),
            road_roughness=roughness,
            surface_type=self.surface_type,
            acceleration_pattern=aggression,
            braking_pattern=max(aggression, braking),
            cornering_pattern=aggression,
            driving_mode=self.driving_mode,
            energy_storage_level=min(1.0, max(0.0, storage_level)),
        )

    def braking_request(
        self, t: float, battery_soc: float, motor_temperature: float, dt: float = 0.05
    ) -> Optional[BrakingInputs]:
        """The braking request at time t, or None while not braking."""
        intensity = min(1.0, self.deceleration(t, dt) / MAX_DECEL_KMH_S)
        if intensity <= 0:
            return None
        return BrakingInputs(
            driving_speed=min(200.0, self.speed(t)),
            braking_intensity=intensity,
            battery_soc=min(1.0, max(0.0, battery_soc)),
            motor_temperature=motor_temperature,
        )
