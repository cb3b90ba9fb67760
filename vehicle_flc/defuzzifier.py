"""
Computes the final crisp outputs from the aggregated fuzzy rule outputs.

Weighted-centroid defuzzification: for each output variable the crisp value is
the strength-weighted average of the centroids of the concluded sets. When no
rule for a variable fired, the variable's configured default is returned.
"""

import logging
import math
from typing import Dict, List, Tuple

from vehicle_flc.fuzzifier import VariableRegistry
from vehicle_flc.rule_engine import RuleActivations

defuzzifier_log = logging.getLogger("defuzzifier")


class Defuzzifier:
    """Performs weighted-centroid defuzzification with per-variable defaults."""

    def __init__(self, registry: VariableRegistry):
        self.registry = registry
        defuzzifier_log.info(
            "Defuzzifier initialized for outputs %s.", [v.name for v in registry.outputs]
        )

    def defuzzify_variable(self, rule_outputs: List[Tuple[float, float]], default: float) -> float:
        """
        Calculates one crisp output value.

        output = (Σ(Wi * Zi)) / (Σ Wi)

        Args:
            rule_outputs (List[Tuple[float, float]]): (W, Z) pairs of the active rules.
            default (float): Value returned when no rule is active.

        Returns:
            float: The crisp value. Always finite.
        """
        numerator = 0.0
        denominator = 0.0
        for w, z in rule_outputs:
            numerator += w * z
            denominator += w

        if denominator <= 0:
            return float(default)

        result = float(numerator / denominator)
        if not math.isfinite(result):
            defuzzifier_log.warning("Non-finite centroid %r, using default %.4f", result, default)
            return float(default)
        return result

    def defuzzify(self, activations: RuleActivations) -> Dict[str, float]:
        """
        Defuzzifies every output variable.

        Args:
            activations (RuleActivations): Output of RuleEngine.evaluate().

        Returns:
            Dict[str, float]: Output variable name -> crisp value.
        """
        crisp = {}
        for i, variable in enumerate(self.registry.outputs):
            rule_outputs = activations.per_output[i]
            default = float(self.registry.defaults[i])
            if not rule_outputs:
                defuzzifier_log.debug(
                    "No active rules for '%s'. Outputting default %.4f.", variable.name, default
                )
            crisp[variable.name] = self.defuzzify_variable(rule_outputs, default)

        defuzzifier_log.debug(
            "Defuzzified outputs: %s", {k: round(v, 4) for k, v in crisp.items()}
        )
        return crisp
