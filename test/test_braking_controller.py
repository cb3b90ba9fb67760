# test/test_braking_controller.py

import pytest

from vehicle_flc.faults import INPUT_VALIDATION, INTERNAL_ERROR
from vehicle_flc.signals import BRAKING_FAILSAFE, BrakingInputs


def test_negative_speed_returns_failsafe(braking):
    result = braking.calculate_optimal_braking(BrakingInputs(-10.0, 0.5, 0.5, 40.0))
    assert result.failsafe
    assert result.outputs == BRAKING_FAILSAFE
    assert result.outputs.regen_ratio == 0.0
    assert result.outputs.motor_torque == 0.0
    assert result.outputs.mechanical_ratio == 1.0
    assert braking.faults.is_active(INPUT_VALIDATION)
    assert "driving_speed" in braking.faults.details(INPUT_VALIDATION)


@pytest.mark.parametrize(
    "inputs",
    [
        BrakingInputs(80.0, 1.5, 0.5, 40.0),
        BrakingInputs(80.0, 0.5, -0.1, 40.0),
        BrakingInputs(80.0, 0.5, 0.5, 250.0),
        BrakingInputs(float("nan"), 0.5, 0.5, 40.0),
        BrakingInputs(250.0, 0.5, 0.5, 40.0),
    ],
)
def test_out_of_range_inputs_return_failsafe(braking, inputs):
    result = braking.calculate_optimal_braking(inputs)
    assert result.failsafe
    assert result.outputs == BRAKING_FAILSAFE


def test_hot_motor_is_derated(braking):
    result = braking.calculate_optimal_braking(BrakingInputs(80.0, 0.5, 0.5, 160.0))
    assert not result.failsafe
    assert result.details["inferred_regen_ratio"] == pytest.approx(0.2875)
    assert result.details["inferred_motor_torque"] == pytest.approx(243.75)
    assert result.outputs.regen_ratio == pytest.approx(0.14375)
    assert result.outputs.motor_torque == pytest.approx(121.875)
    assert result.outputs.mechanical_ratio == pytest.approx(1.0 - 0.14375)


def test_high_speed_light_braking_low_soc_regenerates(braking):
    result = braking.calculate_optimal_braking(BrakingInputs(90.0, 0.1, 0.1, 40.0))
    assert result.outputs.regen_ratio == pytest.approx(0.925)
    assert result.outputs.motor_torque == pytest.approx(262.5)


def test_full_battery_limits_regeneration(braking):
    result = braking.calculate_optimal_braking(BrakingInputs(90.0, 0.1, 0.97, 40.0))
    assert result.outputs.regen_ratio <= 0.1
    assert result.outputs.mechanical_ratio >= 0.9


def test_heavy_braking_keeps_friction_share(braking):
    result = braking.calculate_optimal_braking(BrakingInputs(50.0, 0.95, 0.1, 40.0))
    assert result.outputs.regen_ratio <= 0.6


@pytest.mark.parametrize(
    "speed, intensity, soc, temp",
    [
        (0.0, 0.0, 0.0, -40.0),
        (5.0, 0.9, 0.3, 20.0),
        (35.0, 0.5, 0.5, 90.0),
        (70.0, 0.3, 0.7, 110.0),
        (110.0, 0.7, 0.2, 130.0),
        (200.0, 1.0, 1.0, 200.0),
    ],
)
def test_outputs_within_bounds(braking, speed, intensity, soc, temp):
    out = braking.calculate_optimal_braking(BrakingInputs(speed, intensity, soc, temp)).outputs
    assert 0.0 <= out.regen_ratio <= 1.0
    assert out.mechanical_ratio == pytest.approx(1.0 - out.regen_ratio)
    assert 0.0 <= out.motor_torque <= 800.0
    assert out.front_axle_braking_force >= 0.0


def test_internal_error_returns_failsafe(braking, monkeypatch):
    def broken_infer(*_a, **_k):
        raise ArithmeticError("overflow")

    monkeypatch.setattr(braking.config.system, "infer", broken_infer)
    result = braking.calculate_optimal_braking(BrakingInputs(80.0, 0.5, 0.5, 40.0))
    assert result.failsafe
    assert braking.faults.is_active(INTERNAL_ERROR)


def test_system_status(braking):
    status = braking.get_system_status()
    assert status["rule_count"] == 34
    assert status["last_cycle_time"] is None
    assert status["input_variables"] == [
        "driving_speed",
        "braking_intensity",
        "battery_soc",
        "motor_temperature",
    ]
    assert status["is_active"]

    braking.calculate_optimal_braking(BrakingInputs(-1.0, 0.5, 0.5, 40.0))
    status = braking.get_system_status()
    assert not status["is_active"]
    assert status["last_cycle_time"] is not None
    assert status["active_faults"] == [INPUT_VALIDATION]
