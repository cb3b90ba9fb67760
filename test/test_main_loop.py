# test/test_main_loop.py

import main
from utils.logger import LOGGER_NAMES


def test_main_loop_runs_bounded_cycles(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    main.shutdown.clear()

    main.main_control_loop(max_cycles=3)

    logs = tmp_path / "logs"
    assert {f"{name}.log" for name in LOGGER_NAMES} <= {p.name for p in logs.iterdir()}
    text = (logs / "main.log").read_text(encoding="utf-8")
    assert "Stopped after 3 cycles" in text


def test_shutdown_flag_stops_loop_immediately(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    main.shutdown.set()
    try:
        main.main_control_loop(max_cycles=100)
    finally:
        main.shutdown.clear()

    text = (tmp_path / "logs" / "main.log").read_text(encoding="utf-8")
    assert "Stopped after 0 cycles" in text
