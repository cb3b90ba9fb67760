import math

import pytest

from vehicle_flc.signals import DRIVING_MODES, SURFACE_TYPES, SuspensionInputs
from vehicle_flc.validation import InputRanges, Invalid, Valid, describe, validate


@pytest.fixture
def ranges():
    return InputRanges.from_config(
        {
            "ranges": {"speed": [0, 200], "soc": [0.0, 1.0]},
            "choices": {"mode": ["eco", "sport"]},
        }
    )


def test_valid_sample(ranges):
    result = validate({"speed": 50, "soc": 0.4, "mode": "eco"}, ranges)
    assert isinstance(result, Valid)
    assert result.values == {"speed": 50.0, "soc": 0.4}


def test_range_bounds_are_inclusive(ranges):
    assert isinstance(validate({"speed": 0.0, "soc": 1.0, "mode": "sport"}, ranges), Valid)


@pytest.mark.parametrize(
    "sample, fragment",
    [
        ({"speed": -10.0, "soc": 0.5, "mode": "eco"}, "speed=-10.0 outside"),
        ({"speed": 10.0, "soc": 1.2, "mode": "eco"}, "soc=1.2 outside"),
        ({"speed": math.nan, "soc": 0.5, "mode": "eco"}, "not finite"),
        ({"speed": math.inf, "soc": 0.5, "mode": "eco"}, "not finite"),
        ({"speed": "fast", "soc": 0.5, "mode": "eco"}, "not numeric"),
        ({"speed": True, "soc": 0.5, "mode": "eco"}, "not numeric"),
        ({"soc": 0.5, "mode": "eco"}, "speed missing"),
        ({"speed": 10.0, "soc": 0.5, "mode": "race"}, "mode='race' not one of"),
    ],
)
def test_invalid_samples(ranges, sample, fragment):
    result = validate(sample, ranges)
    assert isinstance(result, Invalid)
    assert any(fragment in reason for reason in result.reasons)


def test_every_failure_is_reported(ranges):
    result = validate({"speed": -1.0, "soc": 2.0, "mode": "x"}, ranges)
    assert isinstance(result, Invalid)
    assert len(result.reasons) == 3
    assert describe(result.reasons).count(";") == 2


def test_inverted_range_rejected():
    with pytest.raises(ValueError):
        InputRanges.from_config({"ranges": {"speed": [10, 0]}})


def test_default_suspension_inputs_are_valid(suspension_config):
    ranges = InputRanges.from_config(suspension_config["validation"])
    assert isinstance(validate(SuspensionInputs().as_sample(), ranges), Valid)
    assert set(ranges.enumerated["driving_mode"]) == set(DRIVING_MODES)
    assert set(ranges.enumerated["surface_type"]) == set(SURFACE_TYPES)
