"""
Orchestrates the fuzzy inference operations.

This module integrates the Fuzzifier, Rule Engine, and Defuzzifier into a single
inference system that maps a dict of crisp inputs to a dict of crisp outputs.
It is shared by the braking and suspension controllers and holds no per-cycle
state of its own.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import numpy as np

from vehicle_flc.defuzzifier import Defuzzifier
from vehicle_flc.fuzzifier import Fuzzifier, VariableRegistry
from vehicle_flc.rule_engine import RuleActivations, RuleBase, RuleEngine

controller_log = logging.getLogger("controller")


@dataclass
class InferenceResult:
    outputs: Dict[str, float]
    activations: RuleActivations


class FuzzyInferenceSystem:
    """
    The fuzzy inference pipeline of one controller.

    Attributes:
        registry (VariableRegistry): Input and output variables.
        rule_base (RuleBase): The resolved rule set.
        fuzzifier (Fuzzifier): The fuzzifier instance.
        rule_engine (RuleEngine): The rule engine instance.
        defuzzifier (Defuzzifier): The defuzzifier instance.
    """

    def __init__(self, config: Mapping[str, Any]):
        """
        Initializes the inference system from its knowledge-base configuration.

        Args:
            config (Mapping[str, Any]): The controller configuration dictionary;
                the ``inputs``, ``outputs`` and ``rules`` sections are used here.
        """
        self.registry = VariableRegistry.from_config(config)
        self.rule_base = RuleBase.from_config(config, self.registry)

        self.fuzzifier = Fuzzifier(self.registry)
        self.rule_engine = RuleEngine(self.rule_base)
        self.defuzzifier = Defuzzifier(self.registry)
        controller_log.info(
            "Inference system ready: %d inputs, %d outputs, %d rules.",
            len(self.registry.inputs),
            len(self.registry.outputs),
            len(self.rule_base),
        )

    def infer(
        self, crisp_inputs: Mapping[str, float], weights: Optional[np.ndarray] = None
    ) -> InferenceResult:
        """
        Executes one full pass of the fuzzy inference system.

        Args:
            crisp_inputs (Mapping[str, float]): Input variable name -> crisp value.
            weights (np.ndarray, optional): Current rule weights; base weights if None.

        Returns:
            InferenceResult: Crisp outputs (never missing, never NaN) and the
                rule activations they came from.
        """
        controller_log.debug("--- Inference start %s ---", dict(crisp_inputs))

        # 1) Fuzzification
        table = self.fuzzifier.membership_table(crisp_inputs)

        # 2) Rule Evaluation
        activations = self.rule_engine.evaluate(table, weights)

        # 3) Defuzzification
        outputs = self.defuzzifier.defuzzify(activations)
        controller_log.debug("--- Inference end %s ---", outputs)
        return InferenceResult(outputs=outputs, activations=activations)
