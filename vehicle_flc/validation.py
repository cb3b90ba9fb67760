"""
Input validation for the control cycle.

Validation never raises: it returns either ``Valid`` carrying the crisp values
or ``Invalid`` carrying every reason the sample was rejected, and the
orchestrator branches on the result.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Mapping, Sequence, Tuple, Union


@dataclass(frozen=True)
class Valid:
    values: Dict[str, float]


@dataclass(frozen=True)
class Invalid:
    reasons: Tuple[str, ...]


ValidationResult = Union[Valid, Invalid]


@dataclass(frozen=True)
class InputRanges:
    """
    Documented valid ranges of the numeric inputs and the allowed values of the
    enumerated context fields.

    Attributes:
        numeric (Dict[str, Tuple[float, float]]): Field -> inclusive (min, max).
        enumerated (Dict[str, Tuple[str, ...]]): Field -> allowed labels.
    """

    numeric: Dict[str, Tuple[float, float]]
    enumerated: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def from_config(cls, section: Mapping) -> "InputRanges":
        numeric = {}
        for name, bounds in section.get("ranges", {}).items():
            lo, hi = float(bounds[0]), float(bounds[1])
            if lo > hi:
                raise ValueError(f"Range for '{name}' is inverted: [{lo}, {hi}]")
            numeric[name] = (lo, hi)
        enumerated = {
            name: tuple(str(v) for v in allowed)
            for name, allowed in section.get("choices", {}).items()
        }
        return cls(numeric=numeric, enumerated=enumerated)


def _format_range(name: str, lo: float, hi: float, value) -> str:
    return f"{name}={value!r} outside [{lo:g}, {hi:g}]"


def validate(sample: Mapping[str, object], ranges: InputRanges) -> ValidationResult:
    """
    Checks one input sample against the configured ranges.

    Args:
        sample (Mapping[str, object]): Field name -> raw value.
        ranges (InputRanges): The validation table.

    Returns:
        ValidationResult: ``Valid`` with the numeric fields as floats, or
            ``Invalid`` listing every failed field.
    """
    reasons = []
    values: Dict[str, float] = {}

    for name, (lo, hi) in ranges.numeric.items():
        if name not in sample:
            reasons.append(f"{name} missing")
            continue
        raw = sample[name]
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            reasons.append(f"{name}={raw!r} is not numeric")
            continue
        value = float(raw)
        if not math.isfinite(value):
            reasons.append(f"{name}={raw!r} is not finite")
        elif not lo <= value <= hi:
            reasons.append(_format_range(name, lo, hi, raw))
        else:
            values[name] = value

    for name, allowed in ranges.enumerated.items():
        label = sample.get(name)
        if label not in allowed:
            reasons.append(f"{name}={label!r} not one of {list(allowed)}")

    if reasons:
        return Invalid(tuple(reasons))
    return Valid(values)


def describe(reasons: Sequence[str]) -> str:
    return "; ".join(reasons)
