"""
Linguistic variables, fuzzy sets and the fuzzifier.

This module holds the static part of the knowledge base: every input and output
variable of a controller, the named trapezoidal/triangular sets defined over its
domain, and the membership arithmetic. Variables and sets are resolved to
integer indices once, when the registry is built, so the rule engine never looks
up a set by name inside a control cycle.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple

import numpy as np

fuzzifier_log = logging.getLogger("fuzzifier")

TRAPEZOIDAL = "trapezoidal"
TRIANGULAR = "triangular"
SHAPES = (TRAPEZOIDAL, TRIANGULAR)


@dataclass(frozen=True)
class FuzzySet:
    """
    A named fuzzy set with four control points (a, b, c, d).

    A triangular set is stored as the degenerate trapezoid b == c.

    Attributes:
        name (str): The linguistic label, e.g. 'rough'.
        shape (str): 'trapezoidal' or 'triangular'.
        points (Tuple[float, float, float, float]): Control points a <= b <= c <= d.
    """

    name: str
    shape: str
    points: Tuple[float, float, float, float]

    def __post_init__(self):
        if self.shape not in SHAPES:
            raise ValueError(f"Unknown fuzzy set shape '{self.shape}' for '{self.name}'")
        a, b, c, d = self.points
        if not (a <= b <= c <= d):
            raise ValueError(f"Invalid trapezoid params [{a}, {b}, {c}, {d}] for '{self.name}'")
        if self.shape == TRIANGULAR and b != c:
            raise ValueError(f"Triangular set '{self.name}' needs b == c, got {b} != {c}")

    @classmethod
    def from_config(cls, name: str, spec) -> "FuzzySet":
        """
        Builds a set from its TOML form.

        Accepts either a bare list of points (3 points -> triangle, 4 -> trapezoid)
        or a table ``{shape = "...", points = [...]}``.
        """
        if isinstance(spec, Mapping):
            shape = spec.get("shape", TRAPEZOIDAL)
            raw = [float(p) for p in spec["points"]]
        else:
            raw = [float(p) for p in spec]
            shape = TRIANGULAR if len(raw) == 3 else TRAPEZOIDAL

        if len(raw) == 3:
            if shape != TRIANGULAR:
                raise ValueError(f"Set '{name}' has 3 points but shape '{shape}'")
            raw = [raw[0], raw[1], raw[1], raw[2]]
        elif len(raw) != 4:
            raise ValueError(f"Invalid membership function shape for '{name}': {raw}")
        return cls(name=name, shape=shape, points=tuple(raw))

    def membership(self, x: float) -> float:
        """
        Degree of membership of ``x``, in [0, 1].

        The plateau [b, c] is tested first, so shoulder sets (a == b or c == d)
        reach full membership at the edge of their domain.

        Raises:
            ValueError: If ``x`` is NaN or infinite.
        """
        if not math.isfinite(x):
            raise ValueError(f"Non-finite value {x!r} passed to fuzzy set '{self.name}'")
        a, b, c, d = self.points
        if b <= x <= c:
            return 1.0
        if x <= a or x >= d:
            return 0.0
        if x < b:
            return (x - a) / (b - a)
        return (d - x) / (d - c)

    def centroid(self) -> float:
        """Centroid used by the weighted-centroid defuzzifier."""
        a, b, c, d = self.points
        if self.shape == TRIANGULAR:
            return (a + b + d) / 3.0
        return (a + b + c + d) / 4.0


@dataclass(frozen=True)
class LinguisticVariable:
    """
    A variable with a numeric domain and an ordered tuple of fuzzy sets.

    Attributes:
        name (str): Variable name as used in rules and input maps.
        domain (Tuple[float, float]): Inclusive [min, max].
        sets (Tuple[FuzzySet, ...]): Ordered sets, indexable by position.
    """

    name: str
    domain: Tuple[float, float]
    sets: Tuple[FuzzySet, ...]

    def __post_init__(self):
        lo, hi = self.domain
        if not lo < hi:
            raise ValueError(f"Variable '{self.name}' has an empty domain {self.domain}")
        if not self.sets:
            raise ValueError(f"Variable '{self.name}' defines no fuzzy sets")
        names = [s.name for s in self.sets]
        if len(set(names)) != len(names):
            raise ValueError(f"Variable '{self.name}' has duplicate set names: {names}")
        for fs in self.sets:
            if fs.points[0] < lo or fs.points[3] > hi:
                raise ValueError(
                    f"Set '{fs.name}' {fs.points} lies outside the domain "
                    f"{self.domain} of '{self.name}'"
                )

    def set_index(self, set_name: str) -> int:
        for i, fs in enumerate(self.sets):
            if fs.name == set_name:
                return i
        raise KeyError(f"Variable '{self.name}' has no fuzzy set '{set_name}'")

    def clamp(self, value: float) -> float:
        lo, hi = self.domain
        return max(lo, min(hi, value))

    def centroids(self) -> np.ndarray:
        return np.array([fs.centroid() for fs in self.sets], dtype=float)


class VariableRegistry:
    """
    Fixed, index-addressed collection of the linguistic variables of one controller.

    Inputs and outputs are kept apart: inputs are fuzzified, outputs only supply
    conclusion centroids and default values.
    """

    def __init__(
        self,
        inputs: Sequence[LinguisticVariable],
        outputs: Sequence[LinguisticVariable],
        defaults: Mapping[str, float],
    ):
        self.inputs: Tuple[LinguisticVariable, ...] = tuple(inputs)
        self.outputs: Tuple[LinguisticVariable, ...] = tuple(outputs)
        all_names = [v.name for v in self.inputs + self.outputs]
        if len(set(all_names)) != len(all_names):
            raise ValueError(f"Duplicate variable names in registry: {all_names}")

        self._input_index: Dict[str, int] = {v.name: i for i, v in enumerate(self.inputs)}
        self._output_index: Dict[str, int] = {v.name: i for i, v in enumerate(self.outputs)}

        missing = [v.name for v in self.outputs if v.name not in defaults]
        if missing:
            raise KeyError(f"No default value configured for outputs: {missing}")
        self.defaults = np.array([float(defaults[v.name]) for v in self.outputs])
        for var, default in zip(self.outputs, self.defaults):
            lo, hi = var.domain
            if not lo <= default <= hi:
                raise ValueError(
                    f"Default {default} for '{var.name}' lies outside its domain {var.domain}"
                )

        # Output centroids, one row per output variable (ragged, so kept as a list).
        self.output_centroids: List[np.ndarray] = [v.centroids() for v in self.outputs]

    @classmethod
    def from_config(cls, config: Mapping) -> "VariableRegistry":
        """
        Builds the registry from the ``[inputs.*]``/``[outputs.*]`` tables.

        Each variable table carries ``domain = [min, max]`` and a ``sets`` table of
        set name -> points (or ``{shape, points}``). Output tables also carry
        ``default``.
        """

        def _build(section: Mapping) -> List[LinguisticVariable]:
            variables = []
            for var_name, spec in section.items():
                sets = tuple(
                    FuzzySet.from_config(set_name, set_spec)
                    for set_name, set_spec in spec["sets"].items()
                )
                lo, hi = spec["domain"]
                variables.append(LinguisticVariable(var_name, (float(lo), float(hi)), sets))
            return variables

        inputs = _build(config.get("inputs", {}))
        outputs = _build(config.get("outputs", {}))
        defaults = {
            name: spec["default"]
            for name, spec in config.get("outputs", {}).items()
            if "default" in spec
        }
        return cls(inputs, outputs, defaults)

    def input_index(self, name: str) -> int:
        try:
            return self._input_index[name]
        except KeyError:
            raise KeyError(f"Unknown input variable '{name}'") from None

    def output_index(self, name: str) -> int:
        try:
            return self._output_index[name]
        except KeyError:
            raise KeyError(f"Unknown output variable '{name}'") from None

    def input_variable(self, name: str) -> LinguisticVariable:
        return self.inputs[self.input_index(name)]

    def output_variable(self, name: str) -> LinguisticVariable:
        return self.outputs[self.output_index(name)]


class Fuzzifier:
    """
    Calculates membership degrees for crisp inputs.

    Attributes:
        registry (VariableRegistry): The variables being fuzzified.
    """

    def __init__(self, registry: VariableRegistry) -> None:
        self.registry = registry
        fuzzifier_log.info(
            "Fuzzifier initialized with %d input variables (%d sets).",
            len(registry.inputs),
            sum(len(v.sets) for v in registry.inputs),
        )

    def fuzzify(self, input_name: str, crisp_value: float) -> Dict[str, float]:
        """
        Fuzzifies a single crisp input value.

        Args:
            input_name (str): The name of the input variable.
            crisp_value (float): The crisp value to fuzzify.

        Returns:
            Dict[str, float]: Fuzzy set name -> membership degree. Only sets with
                a degree > 0 are included.
        """
        variable = self.registry.input_variable(input_name)
        fuzzified_output = {}
        for fs in variable.sets:
            degree = fs.membership(crisp_value)
            if degree > 0:
                fuzzified_output[fs.name] = degree

        formatted_output = {k: f"{v:.3f}" for k, v in fuzzified_output.items()}
        fuzzifier_log.debug("Fuzzified %s= %.3f -> %s", input_name, crisp_value, formatted_output)
        return fuzzified_output

    def membership_table(self, crisp_inputs: Mapping[str, float]) -> List[np.ndarray]:
        """
        Membership degrees of every set of every input variable.

        Args:
            crisp_inputs (Mapping[str, float]): Variable name -> crisp value. Must
                contain every registered input variable.

        Returns:
            List[np.ndarray]: One array per input variable, in registry order,
                holding the degree of each of its sets.
        """
        table = []
        for variable in self.registry.inputs:
            if variable.name not in crisp_inputs:
                raise KeyError(f"No crisp value supplied for input '{variable.name}'")
            value = float(crisp_inputs[variable.name])
            table.append(np.array([fs.membership(value) for fs in variable.sets]))
        return table
