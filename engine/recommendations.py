from typing import Dict, List, Sequence, Tuple

from models.risk_scorer import Prediction, RiskLevel
from models.threshold_evaluator import Severity, Violation

RISK_RECOMMENDATIONS: Dict[RiskLevel, Tuple[str, ...]] = {
    RiskLevel.UNCERTAIN: (
        "UNCERTAINTY DETECTED: Insufficient data for confident diagnosis",
        "Obtain additional vital signs and laboratory values",
        "Consider clinical assessment by senior physician",
        "Implement enhanced monitoring protocols",
    ),
    RiskLevel.CRITICAL: (
        "CRITICAL: Initiate sepsis bundle protocol IMMEDIATELY",
        "Administer broad-spectrum antibiotics within 1 hour",
        "Obtain blood cultures before antibiotic administration",
        "Begin aggressive fluid resuscitation (30ml/kg crystalloid)",
        "Consider ICU transfer",
    ),
    RiskLevel.HIGH: (
        "HIGH RISK: Close monitoring required",
        "Order additional labs: procalcitonin, CRP, blood cultures",
        "Consider fluid challenge if hypotensive",
        "Infectious disease consultation recommended",
    ),
}

# (parameter, severity) -> recommendation
VIOLATION_RECOMMENDATIONS: Tuple[Tuple[str, Severity, str], ...] = (
    ('Lactate', Severity.CRITICAL, "Severe hyperlactatemia - investigate shock etiology"),
    ('MAP', Severity.CRITICAL, "Consider vasopressor support"),
)

TREATMENT_PLANS: Dict[RiskLevel, Tuple[str, ...]] = {
    RiskLevel.UNCERTAIN: (
        "Conservative monitoring approach due to diagnostic uncertainty",
        "Avoid aggressive interventions until more data available",
        "Consider empirical treatment only if clinical deterioration",
        "Document uncertainty in medical record",
    ),
    RiskLevel.CRITICAL: (
        "Immediate sepsis protocol activation",
        "Antibiotic therapy within 1 hour",
        "Fluid resuscitation 30ml/kg over 3 hours",
        "Vasopressor support if MAP < 65 mmHg after fluids",
    ),
    RiskLevel.HIGH: (
        "Enhanced monitoring every 2 hours",
        "Prepare for potential sepsis protocol",
        "Consider empirical antibiotics if clinical worsening",
    ),
}

REASSESSMENT_ACTIONS = (
    "Reassess in 2-4 hours with additional data",
    "Obtain missing laboratory values",
)

STANDING_ACTIONS = (
    "Monitor vital signs hourly",
    "Document clinical response to interventions",
    "Reassess sepsis risk every 6 hours",
)


class RecommendationEngine:
    """Maps a prediction and its violations to tiered clinical guidance"""

    def recommendations(self, prediction: Prediction, violations: Sequence[Violation]) -> List[str]:
        recommendations = list(RISK_RECOMMENDATIONS.get(prediction.risk_level, ()))

        for violation in violations:
            for parameter, severity, text in VIOLATION_RECOMMENDATIONS:
                if violation.parameter == parameter and violation.severity == severity:
                    recommendations.append(text)

        return recommendations

    def treatment_plan(self, prediction: Prediction) -> List[str]:
        return list(TREATMENT_PLANS.get(prediction.risk_level, ()))

    def follow_up_actions(self, uncertainty_factors: Sequence[str]) -> List[str]:
        actions = []
        if uncertainty_factors:
            actions.extend(REASSESSMENT_ACTIONS)
        actions.extend(STANDING_ACTIONS)
        return actions
