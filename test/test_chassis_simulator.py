# test/test_chassis_simulator.py

import numpy as np


def test_run_logs_every_step(chassis_sim):
    chassis_sim.reset()
    chassis_sim.run(2.0)
    assert chassis_sim.step_index == 40
    assert len(chassis_sim.log_t) == 40
    assert chassis_sim.failsafe_count == 0
    assert chassis_sim.log_t[-1] == chassis_sim.t


def test_decimated_logging(chassis_sim):
    chassis_sim.cfg.steps_per_log = 4
    chassis_sim.reset()
    chassis_sim.run(2.0)
    assert len(chassis_sim.log_t) == 10


def test_storage_charges_with_recovered_energy(chassis_sim):
    chassis_sim.reset()
    start = chassis_sim.storage_level
    chassis_sim.run(2.0)
    assert chassis_sim.recovered_wh > 0.0
    assert chassis_sim.storage_level > start
    assert chassis_sim.storage_level <= 1.0


def test_damping_stays_in_envelope(chassis_sim):
    chassis_sim.reset()
    chassis_sim.run(2.0)
    t = np.array(chassis_sim.log_t)
    damping = np.array(chassis_sim.log_damping)
    roughness = np.array(chassis_sim.log_roughness)
    assert np.all((damping >= 500.0) & (damping <= 5000.0))
    assert np.all(damping[roughness > 0.8] <= 3000.0)
    assert t.size == roughness.size


def test_braking_runs_while_decelerating(chassis_sim):
    chassis_sim.reset()
    chassis_sim.run(2.0)
    t = np.array(chassis_sim.log_t)
    regen = np.array(chassis_sim.log_regen_ratio)
    # accelerating for the first second: no braking request
    assert np.all(regen[t <= 0.95] == 0.0)
    assert np.any(regen[t > 1.05] > 0.0)


def test_basic_mode_uses_single_pass(chassis_sim):
    chassis_sim.cfg.mode = "basic"
    chassis_sim.reset()
    chassis_sim.run(1.0)
    assert all(c == 0.0 for c in chassis_sim.log_confidence)
    weights = chassis_sim.suspension.state.weights
    np.testing.assert_array_equal(weights, chassis_sim.suspension.config.system.rule_base.base_weights)


def test_run_drive_cycle_returns_finished_sim(chassis_sim):
    from simulation.run_simulation import run_drive_cycle

    sim = run_drive_cycle(
        chassis_sim.cfg, chassis_sim.cycle, chassis_sim.suspension, chassis_sim.braking, 0.5
    )
    assert sim.step_index == 10
    assert sim.suspension.state.committed_cycles == 10


def test_regenerative_braking_charges_battery(chassis_sim):
    chassis_sim.cfg.battery_capacity_wh = 1.0
    chassis_sim.reset()
    chassis_sim.run(1.0)
    # still accelerating
    assert chassis_sim.battery_soc == chassis_sim.cfg.initial_battery_soc

    chassis_sim.run(1.0)
    assert chassis_sim.regen_wh > 0.0
    assert chassis_sim.battery_soc > chassis_sim.cfg.initial_battery_soc
    assert chassis_sim.battery_soc <= 1.0
