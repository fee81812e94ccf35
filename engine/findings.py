from typing import Callable, List, NamedTuple, Optional, Sequence

from models.patient import PatientRecord
from models.threshold_evaluator import Severity, Violation


def format_value(value: float) -> str:
    """Render a clinical value without a spurious trailing '.0'"""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


class FindingRule(NamedTuple):
    source: str
    parameter: str
    fires: Callable[[float], bool]
    template: str


# These literals are intentionally independent of the threshold registry
FINDING_RULES = (
    FindingRule('vitals', 'HR', lambda v: v > 100, "Tachycardia present (HR: {} bpm)"),
    FindingRule('vitals', 'Temp', lambda v: v > 38.3, "Hyperthermia detected ({}°C)"),
    FindingRule('vitals', 'Temp', lambda v: v < 36, "Hypothermia detected ({}°C)"),
    FindingRule('vitals', 'SBP', lambda v: v < 90, "Hypotension present (SBP: {} mmHg)"),
    FindingRule('vitals', 'Resp', lambda v: v > 22, "Tachypnea observed ({}/min)"),
    FindingRule('labs', 'Lactate', lambda v: v > 2.5, "Elevated lactate levels ({} mmol/L)"),
    FindingRule('labs', 'WBC', lambda v: v > 12, "Leukocytosis present (WBC: {} K/μL)"),
    FindingRule('labs', 'WBC', lambda v: v < 4, "Leukopenia detected (WBC: {} K/μL)"),
    FindingRule('labs', 'Platelets', lambda v: v < 150, "Thrombocytopenia observed ({} K/μL)"),
)


class FindingsGenerator:
    """Turns raw vitals/labs and critical violations into readable findings"""

    def __init__(self, rules: Optional[Sequence[FindingRule]] = None):
        self.rules = tuple(rules) if rules is not None else FINDING_RULES

    def generate(self, record: PatientRecord, violations: List[Violation]) -> List[str]:
        findings = []

        for rule in self.rules:
            value = getattr(record, rule.source).get(rule.parameter)
            if value is not None and rule.fires(value):
                findings.append(rule.template.format(format_value(value)))

        for violation in violations:
            if violation.severity == Severity.CRITICAL:
                findings.append(
                    f"CRITICAL: {violation.parameter} at {format_value(violation.value)} "
                    f"(threshold: {format_value(violation.threshold)})"
                )

        return findings
