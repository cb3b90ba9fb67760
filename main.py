"""
Main entry point for the vehicle chassis controllers.

This script initializes logging, the suspension and braking controllers and
the configured drive cycle, then runs a continuous control loop at a fixed
frequency (20 Hz by default), feeding each cycle's inputs from the drive
cycle and logging the resulting actuator targets.
"""

import logging
import os
import signal
import threading
import time

from simulation.central_config import load_simulation_config
from simulation.chassis_simulator import ChassisSimulator
from utils.logger import setup_logging

# -----------------------------------------------------------------------------
# Cross-platform shutdown handling:
# - SIGINT works on Windows and Linux (Ctrl-C).
# - SIGTERM is installed only on non-Windows (sent by `systemctl stop`).
# - SIGBREAK is tried on Windows consoles but safely ignored elsewhere.
# -----------------------------------------------------------------------------
shutdown = threading.Event()


def _on_signal(_sig, _frm):
    shutdown.set()


def _install_signal_handlers():
    signal.signal(signal.SIGINT, _on_signal)
    try:
        signal.signal(signal.SIGBREAK, _on_signal)
    except (AttributeError, OSError):
        pass
    if os.name != "nt":
        signal.signal(signal.SIGTERM, _on_signal)


def main_control_loop(max_cycles=None):
    """
    Main control loop: sample drive cycle -> suspension/braking cycle -> log,
    at the configured control period.

    Args:
        max_cycles (int, optional): Stop after this many cycles; runs until
            the drive cycle ends or a shutdown signal arrives if None.
    """
    setup_logging()
    main_log = logging.getLogger("main")
    main_log.info("Application starting...")

    sim_cfg, cycle, suspension, braking, duration = load_simulation_config()
    sim = ChassisSimulator(sim_cfg, cycle, suspension, braking)
    sim.reset()

    loop_period = sim_cfg.dt
    total_cycles = int(round(duration / loop_period))
    if max_cycles is not None:
        total_cycles = min(total_cycles, max_cycles)

    main_log.info(
        "Starting control loop at %.1f Hz (%.1f ms period) for %d cycles...",
        1.0 / loop_period,
        loop_period * 1000.0,
        total_cycles,
    )

    try:
        while not shutdown.is_set() and sim.step_index < total_cycles:
            loop_start_time = time.perf_counter()

            sim.step()

            # Maintain the loop period (sleep only the remainder of the tick)
            processing_time = time.perf_counter() - loop_start_time
            sleep_time = loop_period - processing_time
            if sleep_time > 0:
                # Sleep in small chunks so we respond quickly to shutdown
                end = time.perf_counter() + sleep_time
                while not shutdown.is_set() and time.perf_counter() < end:
                    time.sleep(0.002)

    except KeyboardInterrupt:
        main_log.info("Keyboard interrupt received. Shutting down.")
    finally:
        diagnostics = suspension.get_system_diagnostics()
        main_log.info(
            "Stopped after %d cycles: %.3f Wh recovered, trend %s, faults %s.",
            sim.step_index,
            sim.recovered_wh,
            diagnostics["performance_trend"],
            diagnostics["active_faults"],
        )
        main_log.info("Application finished.")


if __name__ == "__main__":
    _install_signal_handlers()
    main_control_loop()
