# test/conftest.py
import copy
import os
import tomllib

import pytest

from simulation.central_config import SimConfig
from simulation.chassis_simulator import ChassisSimulator
from simulation.drive_cycle import DriveCycle
from vehicle_flc.braking import BrakingController
from vehicle_flc.suspension import SuspensionController

CONFIG_DIR = os.path.normpath(os.path.join(os.path.dirname(__file__), "..", "config"))


def _load(name: str) -> dict:
    with open(os.path.join(CONFIG_DIR, name), "rb") as f:
        return tomllib.load(f)


@pytest.fixture(scope="session")
def _suspension_toml():
    return _load("suspension_flc.toml")


@pytest.fixture(scope="session")
def _braking_toml():
    return _load("braking_flc.toml")


@pytest.fixture
def suspension_config(_suspension_toml):
    """A private, mutable copy of the real suspension configuration."""
    return copy.deepcopy(_suspension_toml)


@pytest.fixture
def braking_config(_braking_toml):
    return copy.deepcopy(_braking_toml)


@pytest.fixture
def suspension(suspension_config):
    return SuspensionController(suspension_config)


@pytest.fixture
def braking(braking_config):
    return BrakingController(braking_config)


@pytest.fixture
def tiny_config():
    """
    Two-input, one-output knowledge base with easy numbers.

    temp:  cold [0, 0, 10, 20], hot [10, 20, 30, 30]
    load:  light [0, 0, 5, 10], heavy [0, 5, 10, 10]
    power: low [0, 0, 20, 40] (centroid 15), mid triangle (30, 50, 70)
           (centroid 50), high [60, 80, 100, 100] (centroid 85)
    """
    return {
        "inputs": {
            "temp": {"domain": [0.0, 30.0], "sets": {"cold": [0, 0, 10, 20], "hot": [10, 20, 30, 30]}},
            "load": {"domain": [0.0, 10.0], "sets": {"light": [0, 0, 5, 10], "heavy": [0, 5, 10, 10]}},
        },
        "outputs": {
            "power": {
                "domain": [0.0, 100.0],
                "default": 50.0,
                "sets": {"low": [0, 0, 20, 40], "mid": [30, 50, 70], "high": [60, 80, 100, 100]},
            },
        },
        "rules": [
            {"id": "r_cold", "if": [["temp", "cold"]], "then": ["power", "high"], "weight": 1.0},
            {"id": "r_hot_heavy", "if": [["temp", "hot"], ["load", "heavy"]], "then": ["power", "low"], "weight": 0.5},
        ],
    }


@pytest.fixture
def chassis_sim(suspension, braking):
    """A ChassisSimulator over a short scripted drive cycle (20 Hz)."""
    cycle = DriveCycle(seed=7, base_roughness=0.3)
    cycle.add_speed_point(0.0, 60.0)
    cycle.add_speed_point(1.0, 80.0)
    cycle.add_speed_point(2.0, 40.0)
    cycle.add_roughness_step(0.5, 1.5, 0.4)
    cycle.add_noise(0.02)
    return ChassisSimulator(SimConfig(dt=0.05), cycle, suspension, braking)
