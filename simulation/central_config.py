# simulation/central_config.py
"""
==================
Unified configuration loader for the vehicle chassis controllers.

This module is the single place that reads TOML files. Everything else
(controllers, drive-cycle runner, main loop) receives plain dicts or
prebuilt objects, so it stays independent of file formats and paths.

Responsibilities
----------------
• Load the fuzzy knowledge bases and cycle parameters from:
      config/suspension_flc.toml
      config/braking_flc.toml

• Load the drive-cycle scenario from:
      config/sim_config.toml

• Construct:
      - SuspensionController
      - BrakingController
      - DriveCycle      (seeded road / speed / driver profile)
      - SimConfig       (step size, duration, storage model)

Returned Values
---------------
load_simulation_config() returns a 5-tuple:

    sim_cfg     : SimConfig
    cycle       : DriveCycle
    suspension  : SuspensionController
    braking     : BrakingController | None
    duration    : float

Typical Usage
-------------
    from simulation.central_config import load_simulation_config
    from simulation.run_simulation import run_drive_cycle

    sim_cfg, cycle, suspension, braking, duration = load_simulation_config()
    log = run_drive_cycle(sim_cfg, cycle, suspension, braking, duration)

Relative paths inside sim_config.toml are resolved against the project root.
"""
import logging
import os
import tomllib
from dataclasses import dataclass
from typing import Optional

from simulation.drive_cycle import DriveCycle
from vehicle_flc.braking import BrakingController
from vehicle_flc.suspension import SuspensionController

sim_log = logging.getLogger("simulation")

PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))
CONFIG_DIR = os.path.join(PROJECT_ROOT, "config")


@dataclass
class SimConfig:
    dt: float = 0.05
    steps_per_log: int = 1
    mode: str = "adaptive"  # "adaptive" (run_cycle) or "basic" (calculate_optimal_control)
    storage_capacity_wh: float = 50.0
    initial_storage_level: float = 0.5
    initial_battery_soc: float = 0.6
    battery_capacity_wh: float = 40000.0
    motor_temperature: float = 60.0


# ------------------------------------------------------------
# Load TOML
# ------------------------------------------------------------
def _load_toml(path: str) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)


def _resolve(path: str) -> str:
    return path if os.path.isabs(path) else os.path.join(PROJECT_ROOT, path)


# ------------------------------------------------------------
# Load controllers
# ------------------------------------------------------------
def load_suspension_controller(
    path: str = os.path.join(CONFIG_DIR, "suspension_flc.toml"),
) -> SuspensionController:
    return SuspensionController(_load_toml(_resolve(path)))


def load_braking_controller(
    path: str = os.path.join(CONFIG_DIR, "braking_flc.toml"),
) -> BrakingController:
    return BrakingController(_load_toml(_resolve(path)))


# ------------------------------------------------------------
# Drive cycle
# ------------------------------------------------------------
def build_drive_cycle(cfg: dict) -> DriveCycle:
    road = cfg.get("road", {})
    driver = cfg.get("driver", {})
    cycle = DriveCycle(
        seed=int(cfg["simulation"].get("seed", 0)),
        base_roughness=float(road.get("base_roughness", 0.2)),
        driving_mode=str(driver.get("driving_mode", "comfort")),
        surface_type=str(road.get("surface_type", "asphalt")),
        base_aggression=float(driver.get("base_aggression", 0.3)),
        wheel_hop_hz=float(road.get("wheel_hop_hz", 1.5)),
    )

    for point in cfg.get("speed", {}).get("points", []):
        cycle.add_speed_point(float(point["t"]), float(point["kmh"]))

    # --- Roughness steps (rough sections) ---
    if "step" in road and road["step"].get("enable", False):
        for ev in road["step"].get("events", []):
            cycle.add_roughness_step(float(ev["t0"]), float(ev["t1"]), float(ev["magnitude"]))

    # --- Undulation ---
    if "sine" in road and road["sine"].get("enable", False):
        s = road["sine"]
        cycle.add_roughness_sine(
            amplitude=float(s["amplitude"]),
            freq=float(s["frequency"]),
            phase=float(s.get("phase", 0.0)),
            t_start=float(s.get("t_start", 0.0)),
            t_end=float(s.get("t_end", float("inf"))),
        )

    if "noise" in road and road["noise"].get("enable", False):
        cycle.add_noise(float(road["noise"]["std"]))

    for seg in driver.get("segments", []):
        cycle.add_aggression_segment(float(seg["t0"]), float(seg["t1"]), float(seg["aggression"]))

    return cycle


# ------------------------------------------------------------
# Main loader
# ------------------------------------------------------------
def load_simulation_config(
    sim_cfg_path: str = os.path.join(CONFIG_DIR, "sim_config.toml"),
):
    """
    Builds and returns the full simulation setup:

        sim_cfg     : SimConfig
        cycle       : DriveCycle
        suspension  : SuspensionController
        braking     : BrakingController or None
        duration    : float
    """
    cfg = _load_toml(_resolve(sim_cfg_path))
    sim = cfg["simulation"]
    storage = cfg.get("storage", {})

    sim_cfg = SimConfig(
        dt=float(sim["dt"]),
        steps_per_log=int(sim.get("steps_per_log", 1)),
        mode=str(sim.get("mode", "adaptive")),
        storage_capacity_wh=float(storage.get("capacity_wh", 50.0)),
        initial_storage_level=float(storage.get("initial_level", 0.5)),
        initial_battery_soc=float(storage.get("initial_battery_soc", 0.6)),
        battery_capacity_wh=float(storage.get("battery_capacity_wh", 40000.0)),
        motor_temperature=float(storage.get("motor_temperature", 60.0)),
    )
    if sim_cfg.dt <= 0:
        raise ValueError(f"simulation dt must be > 0, got {sim_cfg.dt}")
    if sim_cfg.mode not in ("adaptive", "basic"):
        raise ValueError(f"Unknown simulation mode: {sim_cfg.mode}")

    duration = float(sim["DURATION_S"])

    ctrl_cfg = cfg.get("controller", {})
    suspension = load_suspension_controller(
        ctrl_cfg.get("SUSPENSION_CONFIG_PATH", "config/suspension_flc.toml")
    )
    braking: Optional[BrakingController] = None
    if ctrl_cfg.get("BRAKING_ENABLED", True):
        braking = load_braking_controller(
            ctrl_cfg.get("BRAKING_CONFIG_PATH", "config/braking_flc.toml")
        )

    sim_log.info(
        "Simulation config loaded: dt=%.3f s, duration=%.1f s, mode=%s, braking=%s",
        sim_cfg.dt,
        duration,
        sim_cfg.mode,
        braking is not None,
    )
    return sim_cfg, build_drive_cycle(cfg), suspension, braking, duration
