"""
A context manager for timing one control cycle.

Used by the drive-cycle runner and the main loop to check that a cycle fits
into the control period.
"""
import time
import logging

profiler_log = logging.getLogger('profiler')

class CodeProfiler:
    """
    Times the execution of a code block.

    Example:
        with CodeProfiler("suspension cycle", budget_ms=50.0):
            controller.run_cycle(inputs)

    Attributes:
        name (str): The name of the code block being timed.
        budget_ms (float): Latency above which a warning is logged.
        elapsed_ms (float): Measured duration, set on exit.
    """
    def __init__(self, name="", budget_ms=10.0):
        self.name = name
        self.budget_ms = budget_ms
        self.elapsed_ms = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        profiler_log.debug("'%s' execution time: %.3f ms", self.name, self.elapsed_ms)
        if self.elapsed_ms > self.budget_ms:
            profiler_log.warning(
                "'%s' took %.3f ms, over its %.1f ms budget.", self.name, self.elapsed_ms, self.budget_ms
            )
