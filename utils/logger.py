# logger.py
import os, glob, logging
from contextvars import ContextVar

_CYCLE_I = ContextVar("cycle_i", default=-1)

def set_loop_index(i: int) -> None:
    """Tags every following log record with control-cycle index ``i``."""
    _CYCLE_I.set(int(i))

class LoopIndexFilter(logging.Filter):
    def filter(self, record):
        # every record carries the cycle index as .i
        record.i = _CYCLE_I.get()
        return True

LOGGER_NAMES = [
    "main",
    "controller",
    "suspension",
    "braking",
    "fuzzifier",
    "rule_engine",
    "WZ_engine",
    "defuzzifier",
    "safety",
    "adaptive",
    "predictive",
    "optimizer",
    "faults",
    "simulation",
    "simloop",
    "profiler",
]

def setup_logging(
    log_dir: str = "logs",
    overwrite: bool = True,
    log_level: int = logging.DEBUG,
    console_level: int = logging.INFO,
    cleanup_rotated: bool = True,
) -> None:
    """
    One log file per named logger under ``log_dir``; console output for "main"
    and for anything at WARNING or above from the controllers.
    """
    os.makedirs(log_dir, exist_ok=True)
    if cleanup_rotated:
        for path in glob.glob(os.path.join(log_dir, "*.log.*")):
            os.remove(path)

    fmt = logging.Formatter("%(i)06d | %(levelname)s | %(name)s | %(message)s")

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    console.setLevel(console_level)
    console.addFilter(LoopIndexFilter())

    alerts = logging.StreamHandler()
    alerts.setFormatter(fmt)
    alerts.setLevel(logging.WARNING)
    alerts.addFilter(LoopIndexFilter())

    for name in LOGGER_NAMES:
        log = logging.getLogger(name)
        log.setLevel(log_level)
        log.propagate = False
        for h in list(log.handlers):
            log.removeHandler(h)

        mode = "w" if overwrite else "a"
        fh = logging.FileHandler(os.path.join(log_dir, f"{name}.log"), mode=mode, encoding="utf-8")
        fh.setFormatter(fmt)
        fh.setLevel(log_level)
        fh.addFilter(LoopIndexFilter())
        log.addHandler(fh)
        if name != "main":
            log.addHandler(alerts)

    logging.getLogger("main").addHandler(console)
    logging.getLogger("main").info("Logging system initialized.")
