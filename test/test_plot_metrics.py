# test/test_plot_metrics.py

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from simulation.plot_sim_results import (
    damping_mode_shares,
    max_damping_step,
    mean_comfort,
    plot_sim_results,
    summarize,
    total_recovered_wh,
)


def test_metric_functions():
    assert mean_comfort(np.array([0.4, 0.6])) == pytest.approx(0.5)
    assert mean_comfort(np.array([])) == 0.0
    # 3600 W for one second is one watt-hour
    assert total_recovered_wh(np.full(20, 3600.0), 0.05) == pytest.approx(1.0)
    assert max_damping_step(np.array([1000.0, 1500.0, 1200.0])) == 500.0
    assert max_damping_step(np.array([1000.0])) == 0.0


def test_damping_mode_shares():
    shares = damping_mode_shares(["soft", "soft", "firm", "medium"])
    assert shares == {"soft": 0.5, "medium": 0.25, "firm": 0.25}
    assert damping_mode_shares([]) == {"soft": 0.0, "medium": 0.0, "firm": 0.0}


def test_summary_and_plot(chassis_sim, tmp_path):
    sim = chassis_sim
    sim.reset()
    sim.run(2.0)

    summary = summarize(sim)
    assert summary["failsafe_cycles"] == 0
    assert summary["recovered_wh"] >= 0.0
    assert abs(summary["soft_share"] + summary["medium_share"] + summary["firm_share"] - 1.0) < 1e-2

    path = tmp_path / "drive_cycle.png"
    plot_sim_results(sim, save_path=str(path), show=False)
    assert path.exists()
