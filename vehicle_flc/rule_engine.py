"""
Evaluates the fuzzy rule base to determine rule activation and output.

This module takes the membership degrees produced by the Fuzzifier and applies
them to a Mamdani-style rule base whose conclusions are output fuzzy sets. For
each rule it computes the firing strength (minimum of the condition degrees,
scaled by the rule's current weight) and pairs it with the centroid of the
concluded set, grouped by output variable.
"""

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

import numpy as np

from vehicle_flc.fuzzifier import VariableRegistry

rule_engine_log = logging.getLogger("rule_engine")
WZ_log = logging.getLogger("WZ_engine")


@dataclass(frozen=True)
class Rule:
    """
    One weighted conditional rule.

    Conditions are ANDed. Priority is informational and never used in arithmetic.

    Attributes:
        id (str): Unique rule identifier.
        conditions (Tuple[Tuple[str, str], ...]): (variable, fuzzy set) pairs.
        conclusion (Tuple[str, str]): (output variable, fuzzy set).
        weight (float): Base weight in [0, 1].
        priority (int): Informational ranking.
    """

    id: str
    conditions: Tuple[Tuple[str, str], ...]
    conclusion: Tuple[str, str]
    weight: float
    priority: int = 5

    def __post_init__(self):
        if not self.conditions:
            raise ValueError(f"Rule '{self.id}' has no conditions")
        if not 0.0 <= self.weight <= 1.0:
            raise ValueError(f"Rule '{self.id}' weight {self.weight} is outside [0, 1]")

    @classmethod
    def from_config(cls, spec: Mapping) -> "Rule":
        conditions = tuple((str(v), str(s)) for v, s in spec["if"])
        then = spec["then"]
        return cls(
            id=str(spec["id"]),
            conditions=conditions,
            conclusion=(str(then[0]), str(then[1])),
            weight=float(spec["weight"]),
            priority=int(spec.get("priority", 5)),
        )


class RuleBase:
    """
    The fixed rule set of one controller, resolved against a VariableRegistry.

    Rules are created once and never added or removed; only the adaptive weights
    held by the controller state change at runtime.

    Attributes:
        rules (Tuple[Rule, ...]): Rules in evaluation order.
        base_weights (np.ndarray): Base weight per rule.
    """

    def __init__(self, rules: Sequence[Rule], registry: VariableRegistry):
        self.rules: Tuple[Rule, ...] = tuple(rules)
        ids = [r.id for r in self.rules]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate rule ids: {ids}")

        self._conditions: List[Tuple[Tuple[int, int], ...]] = []
        self._conclusions: List[Tuple[int, int]] = []
        for rule in self.rules:
            resolved = []
            for var_name, set_name in rule.conditions:
                var_i = registry.input_index(var_name)
                set_i = registry.inputs[var_i].set_index(set_name)
                resolved.append((var_i, set_i))
            self._conditions.append(tuple(resolved))

            out_i = registry.output_index(rule.conclusion[0])
            out_set_i = registry.outputs[out_i].set_index(rule.conclusion[1])
            self._conclusions.append((out_i, out_set_i))

        self.base_weights = np.array([r.weight for r in self.rules], dtype=float)
        self.registry = registry

    @classmethod
    def from_config(cls, config: Mapping, registry: VariableRegistry) -> "RuleBase":
        return cls([Rule.from_config(spec) for spec in config.get("rules", [])], registry)

    def __len__(self) -> int:
        return len(self.rules)

    def index_of(self, rule_id: str) -> int:
        for i, rule in enumerate(self.rules):
            if rule.id == rule_id:
                return i
        raise KeyError(f"Unknown rule '{rule_id}'")

    def conditions_of(self, i: int) -> Tuple[Tuple[int, int], ...]:
        return self._conditions[i]

    def conclusion_of(self, i: int) -> Tuple[int, int]:
        return self._conclusions[i]


@dataclass
class RuleActivations:
    """
    Result of one rule-base evaluation.

    Attributes:
        strengths (np.ndarray): Firing strength W of every rule (0 when inactive).
        per_output (List[List[Tuple[float, float]]]): For each output variable,
            the (W, Z) pairs of its active rules, Z being the conclusion centroid.
    """

    strengths: np.ndarray
    per_output: List[List[Tuple[float, float]]]

    def fired(self) -> np.ndarray:
        return self.strengths > 0


class RuleEngine:
    """
    Evaluates a rule base against fuzzified inputs.

    Attributes:
        rule_base (RuleBase): The resolved rules.
    """

    def __init__(self, rule_base: RuleBase):
        self.rule_base = rule_base
        rule_engine_log.info("Rule Engine initialized with %d rules.", len(rule_base))
        rule_engine_log.info(
            "W is rule firing strength and Z is the centroid of the concluded set."
        )

    def evaluate(
        self,
        membership_table: List[np.ndarray],
        weights: Optional[np.ndarray] = None,
    ) -> RuleActivations:
        """
        Evaluates all rules in the rule base.

        For each rule:
            - W = min(condition degrees) * current weight (fuzzy AND)
            - Z = centroid of the concluded output set

        Args:
            membership_table (List[np.ndarray]): Degrees per input variable and set,
                as returned by Fuzzifier.membership_table().
            weights (np.ndarray, optional): Current rule weights. Defaults to the
                base weights.

        Returns:
            RuleActivations: Strengths and the grouped (W, Z) pairs.
        """
        rb = self.rule_base
        if weights is None:
            weights = rb.base_weights
        elif len(weights) != len(rb):
            raise ValueError(f"Expected {len(rb)} rule weights, got {len(weights)}")

        strengths = np.zeros(len(rb))
        per_output: List[List[Tuple[float, float]]] = [[] for _ in rb.registry.outputs]

        for i, rule in enumerate(rb.rules):
            degree = min(membership_table[v][s] for v, s in rb.conditions_of(i))
            firing_strength = degree * weights[i]

            if firing_strength > 0:
                out_i, set_i = rb.conclusion_of(i)
                z = float(rb.registry.output_centroids[out_i][set_i])
                strengths[i] = firing_strength
                per_output[out_i].append((firing_strength, z))
                WZ_log.debug(
                    "Rule %s (%s -> %s=%s) degree= %.3f weight= %.3f W= %.3f Z= %.3f",
                    rule.id,
                    ",".join(f"{v}={s}" for v, s in rule.conditions),
                    rule.conclusion[0],
                    rule.conclusion[1],
                    degree,
                    weights[i],
                    firing_strength,
                    z,
                )
            else:
                WZ_log.debug("Rule %s W= %.3f", rule.id, firing_strength)

        rule_engine_log.debug(
            "%d of %d rules active", int(np.count_nonzero(strengths)), len(rb)
        )
        return RuleActivations(strengths=strengths, per_output=per_output)
