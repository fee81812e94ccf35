import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping

from models.patient import PatientRecord
from models.thresholds import ParameterThreshold, is_lower_bound_critical

logger = logging.getLogger(__name__)

class Severity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class Violation:
    """A single threshold breach"""
    parameter: str
    value: float
    threshold: float
    severity: Severity

    def to_dict(self) -> Dict:
        return {
            "parameter": self.parameter,
            "value": self.value,
            "threshold": self.threshold,
            "severity": self.severity.value,
        }


class ThresholdEvaluator:
    """Compares a patient record against a threshold table"""

    def evaluate(self, record: PatientRecord,
                 table: Mapping[str, ParameterThreshold]) -> List[Violation]:
        violations = []

        for parameter, threshold in table.items():
            if not threshold.enabled:
                continue

            value = record.value_for(parameter)
            if value is None:
                continue

            if threshold.critical is not None:
                if is_lower_bound_critical(parameter):
                    breached = value < threshold.critical
                else:
                    breached = value > threshold.critical
                if breached:
                    violations.append(Violation(parameter, value, threshold.critical, Severity.CRITICAL))

            if threshold.min is not None and value < threshold.min:
                violations.append(Violation(parameter, value, threshold.min, Severity.WARNING))
            if threshold.max is not None and value > threshold.max:
                violations.append(Violation(parameter, value, threshold.max, Severity.WARNING))

        logger.debug(f"Threshold evaluation produced {len(violations)} violations")
        return violations
