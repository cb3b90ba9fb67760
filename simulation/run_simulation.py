"""Runs the configured drive cycle through the suspension and braking
controllers and plots the results.
"""
import argparse
import logging

from simulation.central_config import load_simulation_config
from simulation.chassis_simulator import ChassisSimulator
from simulation.plot_sim_results import plot_sim_results, summarize
from utils.logger import setup_logging


def run_drive_cycle(sim_cfg, cycle, suspension, braking=None, duration=None) -> ChassisSimulator:
    sim = ChassisSimulator(sim_cfg, cycle, suspension, braking)
    sim.reset()
    sim.run(duration if duration is not None else 60.0)
    return sim


def main():
    parser = argparse.ArgumentParser(description="Simulate a drive cycle.")
    parser.add_argument("--config", default="config/sim_config.toml", help="Scenario TOML file.")
    parser.add_argument("--no-plot", action="store_true", help="Print metrics only.")
    parser.add_argument("--save", default=None, help="Save the figure to this PNG path.")
    args = parser.parse_args()

    setup_logging()
    main_log = logging.getLogger("main")

    sim_cfg, cycle, suspension, braking, duration = load_simulation_config(args.config)
    sim = run_drive_cycle(sim_cfg, cycle, suspension, braking, duration)

    for key, value in summarize(sim).items():
        main_log.info("%-22s %s", key, value)
    main_log.info("Diagnostics: %s", suspension.get_system_diagnostics()["performance_trend"])

    if not args.no_plot:
        plot_sim_results(sim, save_path=args.save, show=args.save is None)


if __name__ == "__main__":
    main()
