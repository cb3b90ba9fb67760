"""
Queryable fault state for a controller.

Faults are recorded by the orchestrator whenever a cycle falls back to the
fail-safe output. They stay active until the caller clears them, independently
of the per-cycle return value.
"""

import logging
from collections import Counter
from typing import Dict, FrozenSet, Optional

faults_log = logging.getLogger("faults")

INPUT_VALIDATION = "input_validation"
INTERNAL_ERROR = "internal_error"


class FaultRegistry:
    """Set of active fault identifiers with the last detail and a count per fault."""

    def __init__(self):
        self._details: Dict[str, str] = {}
        self._counts: Counter = Counter()

    def raise_fault(self, code: str, detail: str = "") -> None:
        if code not in self._details:
            faults_log.warning("Fault raised: %s (%s)", code, detail)
        else:
            faults_log.debug("Fault repeated: %s (%s)", code, detail)
        self._details[code] = detail
        self._counts[code] += 1

    @property
    def active(self) -> FrozenSet[str]:
        return frozenset(self._details)

    def is_active(self, code: str) -> bool:
        return code in self._details

    def details(self, code: str) -> str:
        return self._details.get(code, "")

    def count(self, code: str) -> int:
        return self._counts[code]

    def clear(self, code: Optional[str] = None) -> None:
        """Clears one fault, or every fault when ``code`` is None."""
        if code is None:
            if self._details:
                faults_log.info("Clearing faults %s", sorted(self._details))
            self._details.clear()
            self._counts.clear()
            return
        if self._details.pop(code, None) is not None:
            faults_log.info("Clearing fault %s", code)
        self._counts.pop(code, None)
