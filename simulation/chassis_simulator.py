# chassis_simulator.py
"""
chassis_simulator.py
====================
Closed-loop drive-cycle simulator for the suspension and braking controllers.

Each step the simulator:

    • samples road, speed and driver conditions from a DriveCycle
    • runs one suspension control cycle (adaptive or single-pass)
    • runs the braking controller while the speed profile decelerates
    • integrates the hydraulic energy store with the recovered power:
          level <- level + P_recovery * dt / capacity
    • charges the battery with the regenerative braking energy:
          soc <- soc + F_regen * v * dt / battery_capacity

Logging:
    Time, inputs, outputs, prediction confidence and fail-safe flags are
    recorded at a decimated rate (steps_per_log).

Typical usage::

    sim_cfg, cycle, suspension, braking, duration = load_simulation_config()
    sim = ChassisSimulator(sim_cfg, cycle, suspension, braking)
    sim.reset()
    sim.run(duration)
    # logs available in sim.log_damping, sim.log_recovery, etc.

This simulator contains no configuration parsing or plotting code.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from simulation.central_config import SimConfig
from simulation.drive_cycle import DriveCycle
from utils.logger import set_loop_index
from utils.profiler import CodeProfiler
from vehicle_flc.braking import BrakingController
from vehicle_flc.suspension import SuspensionController

simloop_log = logging.getLogger("simloop")

WH_PER_J = 1.0 / 3600.0


@dataclass
class ChassisSimulator:
    cfg: SimConfig
    cycle: DriveCycle
    suspension: SuspensionController
    braking: Optional[BrakingController] = None

    t: float = 0.0
    step_index: int = 0
    storage_level: float = 0.5
    battery_soc: float = 0.6
    recovered_wh: float = 0.0
    regen_wh: float = 0.0
    failsafe_count: int = 0

    log_t: List[float] = field(default_factory=list)
    log_speed: List[float] = field(default_factory=list)
    log_roughness: List[float] = field(default_factory=list)
    log_damping: List[float] = field(default_factory=list)
    log_mode: List[str] = field(default_factory=list)
    log_recovery: List[float] = field(default_factory=list)
    log_valve: List[float] = field(default_factory=list)
    log_storage: List[float] = field(default_factory=list)
    log_comfort: List[float] = field(default_factory=list)
    log_efficiency: List[float] = field(default_factory=list)
    log_confidence: List[float] = field(default_factory=list)
    log_regen_ratio: List[float] = field(default_factory=list)
    log_failsafe: List[bool] = field(default_factory=list)
    _log_decim: int = 0

    # ------------------------------------------------------------
    def reset(self, t: float = 0.0):
        self.t = t
        self.step_index = 0
        self.storage_level = self.cfg.initial_storage_level
        self.battery_soc = self.cfg.initial_battery_soc
        self.recovered_wh = 0.0
        self.regen_wh = 0.0
        self.failsafe_count = 0
        for name in (
            "log_t", "log_speed", "log_roughness", "log_damping", "log_mode",
            "log_recovery", "log_valve", "log_storage", "log_comfort",
            "log_efficiency", "log_confidence", "log_regen_ratio", "log_failsafe",
        ):
            getattr(self, name).clear()
        self._log_decim = 0

    # ------------------------------------------------------------
    def step(self):
        dt = self.cfg.dt
        set_loop_index(self.step_index)
        inputs = self.cycle.sample(self.t, self.storage_level, dt)

        with CodeProfiler("suspension cycle", budget_ms=dt * 1000.0):
            if self.cfg.mode == "basic":
                result = self.suspension.calculate_optimal_control(inputs, timestamp=self.t)
            else:
                result = self.suspension.run_cycle(inputs, timestamp=self.t)
        out = result.outputs

        regen_ratio = 0.0
        request = None
        if self.braking is not None:
            request = self.cycle.braking_request(
                self.t, self.battery_soc, self.cfg.motor_temperature, dt
            )
        if request is not None:
            braking = self.braking.calculate_optimal_braking(request)
            regen_ratio = braking.outputs.regen_ratio
            if braking.failsafe:
                self.failsafe_count += 1
            # P = F_regen * v
            speed_ms = request.driving_speed / 3.6
            regen_wh = braking.outputs.front_axle_braking_force * speed_ms * dt * WH_PER_J
            self.regen_wh += regen_wh
            self.battery_soc = min(1.0, self.battery_soc + regen_wh / self.cfg.battery_capacity_wh)

        if result.failsafe:
            self.failsafe_count += 1

        # Hydraulic energy store
        energy_wh = out.energy_recovery_rate * dt * WH_PER_J
        self.recovered_wh += energy_wh
        self.storage_level = min(1.0, self.storage_level + energy_wh / self.cfg.storage_capacity_wh)

        simloop_log.debug(
            "t=%.2f v=%.1f r=%.2f -> c=%.0f (%s) P=%.0f store=%.3f",
            self.t,
            inputs.vehicle_speed,
            inputs.road_roughness,
            out.damping_coefficient,
            out.damping_mode,
            out.energy_recovery_rate,
            self.storage_level,
        )

        self.t += dt
        self.step_index += 1

        # Logging (decimated)
        self._log_decim += 1
        if self._log_decim >= self.cfg.steps_per_log:
            self.log_t.append(self.t)
            self.log_speed.append(inputs.vehicle_speed)
            self.log_roughness.append(inputs.road_roughness)
            self.log_damping.append(out.damping_coefficient)
            self.log_mode.append(out.damping_mode)
            self.log_recovery.append(out.energy_recovery_rate)
            self.log_valve.append(out.valve_position)
            self.log_storage.append(self.storage_level)
            self.log_comfort.append(out.comfort_index)
            self.log_efficiency.append(out.system_efficiency)
            self.log_confidence.append(result.details.get("prediction_confidence", 0.0))
            self.log_regen_ratio.append(regen_ratio)
            self.log_failsafe.append(result.failsafe)
            self._log_decim = 0

    # ------------------------------------------------------------
    def run(self, duration: float):
        steps = int(round(duration / self.cfg.dt))
        simloop_log.info("Running %d steps (%.1f s).", steps, duration)
        for _ in range(steps):
            self.step()
        simloop_log.info(
            "Done: %.3f Wh recovered, %d fail-safe cycles.", self.recovered_wh, self.failsafe_count
        )
