# test/test_profiler.py

import logging
import time

from utils.profiler import CodeProfiler


class _Collect(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.WARNING)
        self.records = []

    def emit(self, record):
        self.records.append(record)


def test_over_budget_block_warns():
    handler = _Collect()
    log = logging.getLogger("profiler")
    log.addHandler(handler)
    try:
        with CodeProfiler("slow block", budget_ms=1.0) as prof:
            time.sleep(0.01)
        with CodeProfiler("fast block", budget_ms=1000.0):
            pass
    finally:
        log.removeHandler(handler)

    assert prof.elapsed_ms >= 10.0
    assert [r.getMessage().split("'")[1] for r in handler.records] == ["slow block"]
