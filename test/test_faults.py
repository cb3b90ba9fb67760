from vehicle_flc.faults import INPUT_VALIDATION, INTERNAL_ERROR, FaultRegistry


def test_fault_lifecycle():
    faults = FaultRegistry()
    assert faults.active == frozenset()

    faults.raise_fault(INPUT_VALIDATION, "speed=-10 outside [0, 200]")
    faults.raise_fault(INPUT_VALIDATION, "soc=2 outside [0, 1]")
    faults.raise_fault(INTERNAL_ERROR, "ZeroDivisionError")

    assert faults.active == {INPUT_VALIDATION, INTERNAL_ERROR}
    assert faults.is_active(INPUT_VALIDATION)
    assert faults.count(INPUT_VALIDATION) == 2
    assert faults.details(INPUT_VALIDATION) == "soc=2 outside [0, 1]"

    faults.clear(INPUT_VALIDATION)
    assert faults.active == {INTERNAL_ERROR}
    assert faults.count(INPUT_VALIDATION) == 0
    assert faults.details(INPUT_VALIDATION) == ""

    faults.clear()
    assert not faults.active
