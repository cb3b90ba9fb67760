# plot_sim_results.py
"""
plot_sim_results.py
====================

Analysis & plotting utilities for the chassis drive-cycle simulator.

The primary function `plot_sim_results()` accepts a completed ChassisSimulator
and draws a three-panel Matplotlib figure:

    • Road roughness, speed (right axis)
    • Damping coefficient with damping-mode shading, valve position (right axis)
    • Energy recovery rate, storage level and prediction confidence (right axis)

Performance metrics:
    • mean comfort index
    • total recovered energy (Wh)
    • damping-mode shares
    • largest damping change between consecutive cycles
    • fail-safe cycle count

Typical usage::

    sim.run(60.0)
    plot_sim_results(sim, save_path="plots/drive_cycle.png", show=False)
"""
from __future__ import annotations

import os
from typing import Dict, Sequence

import matplotlib.pyplot as plt
import numpy as np

from simulation.chassis_simulator import ChassisSimulator

MODE_COLORS = {"soft": "tab:green", "medium": "tab:orange", "firm": "tab:red"}


# ============================================================
# PERFORMANCE METRICS
# ============================================================

def mean_comfort(comfort: np.ndarray) -> float:
    if comfort.size == 0:
        return 0.0
    return float(np.mean(comfort))


def total_recovered_wh(recovery_w: np.ndarray, dt: float) -> float:
    """Rectangle-rule integral of recovered power, in watt-hours."""
    return float(np.sum(recovery_w) * dt / 3600.0)


def damping_mode_shares(modes: Sequence[str]) -> Dict[str, float]:
    n = len(modes)
    if n == 0:
        return {mode: 0.0 for mode in MODE_COLORS}
    return {mode: sum(1 for m in modes if m == mode) / n for mode in MODE_COLORS}


def max_damping_step(damping: np.ndarray) -> float:
    if damping.size < 2:
        return 0.0
    return float(np.max(np.abs(np.diff(damping))))


def summarize(sim: ChassisSimulator) -> Dict[str, float]:
    dt = sim.cfg.dt * sim.cfg.steps_per_log
    shares = damping_mode_shares(sim.log_mode)
    return {
        "mean_comfort": round(mean_comfort(np.array(sim.log_comfort)), 4),
        "recovered_wh": round(total_recovered_wh(np.array(sim.log_recovery), dt), 4),
        "soft_share": round(shares["soft"], 3),
        "medium_share": round(shares["medium"], 3),
        "firm_share": round(shares["firm"], 3),
        "max_damping_step": round(max_damping_step(np.array(sim.log_damping)), 1),
        "failsafe_cycles": sim.failsafe_count,
        "final_storage": round(sim.storage_level, 4),
    }


# ============================================================
# MODE SHADING
# ============================================================

def shade_damping_modes(ax, t: np.ndarray, modes: Sequence[str]):
    if len(modes) == 0:
        return
    start = 0
    for i in range(1, len(modes) + 1):
        if i == len(modes) or modes[i] != modes[start]:
            ax.axvspan(t[start], t[i - 1], color=MODE_COLORS.get(modes[start], "gray"), alpha=0.12)
            start = i


# ============================================================
# MAIN PLOTTING FUNCTION
# ============================================================

def plot_sim_results(
    sim: ChassisSimulator,
    title: str = "Drive Cycle Results",
    save_path: str | None = None,
    show: bool = True,
):
    t = np.array(sim.log_t)

    fig, (ax_road, ax_damp, ax_energy) = plt.subplots(3, 1, sharex=True, figsize=(11, 9))
    fig.suptitle(title)

    # Road
    ax_road.plot(t, sim.log_roughness, label="road roughness")
    ax_road.set_ylabel("Roughness")
    ax_speed = ax_road.twinx()
    ax_speed.plot(t, sim.log_speed, color="gray", alpha=0.6, label="speed (km/h)")
    ax_speed.set_ylabel("Speed (km/h)", color="gray")

    # Damping
    ax_damp.plot(t, sim.log_damping, label="damping (N·s/m)")
    shade_damping_modes(ax_damp, t, sim.log_mode)
    ax_damp.set_ylabel("Damping (N·s/m)")
    ax_valve = ax_damp.twinx()
    ax_valve.plot(t, sim.log_valve, "k--", alpha=0.5, label="valve position")
    ax_valve.set_ylabel("Valve", color="k")

    # Energy
    ax_energy.plot(t, sim.log_recovery, label="recovery (W)")
    ax_energy.set_ylabel("Recovery (W)")
    ax_energy.set_xlabel("Time (s)")
    ax_frac = ax_energy.twinx()
    ax_frac.plot(t, sim.log_storage, "g-.", label="storage level")
    ax_frac.plot(t, sim.log_confidence, "m:", label="prediction confidence")
    ax_frac.plot(t, sim.log_regen_ratio, "c-", alpha=0.5, label="regen ratio")
    ax_frac.set_ylim(0.0, 1.05)

    for ax, twin in ((ax_road, ax_speed), (ax_damp, ax_valve), (ax_energy, ax_frac)):
        lines = ax.get_lines() + twin.get_lines()
        ax.legend(lines, [ln.get_label() for ln in lines], loc="upper right", fontsize=8)
        ax.grid(True, alpha=0.3)

    plt.tight_layout()
    if save_path:
        os.makedirs(os.path.dirname(save_path) or ".", exist_ok=True)
        fig.savefig(save_path)
    if show:
        plt.show()
    return fig
