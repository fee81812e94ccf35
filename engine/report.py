import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Tuple

from engine.findings import FindingsGenerator
from engine.recommendations import RecommendationEngine
from models.patient import PatientRecord
from models.risk_scorer import RiskLevel, RiskScorer
from models.threshold_evaluator import ThresholdEvaluator, Violation
from models.thresholds import ThresholdTable
from models.uncertainty import UncertaintyAnalyzer

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class PatientAnalysisReport:
    """Immutable explainable risk report for one patient"""
    patient_id: str
    overall_risk: RiskLevel
    confidence: float
    risk_probability: float
    clinical_findings: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    threshold_violations: Tuple[Violation, ...]
    uncertainty_factors: Tuple[str, ...]
    treatment_plan: Tuple[str, ...]
    follow_up_actions: Tuple[str, ...]
    risk_contributions: Tuple[Tuple[str, float], ...]
    timestamp: datetime

    def to_dict(self) -> Dict:
        return {
            "patient_id": self.patient_id,
            "overall_risk": self.overall_risk.value,
            "confidence": self.confidence,
            "risk_probability": self.risk_probability,
            "clinical_findings": list(self.clinical_findings),
            "recommendations": list(self.recommendations),
            "threshold_violations": [v.to_dict() for v in self.threshold_violations],
            "uncertainty_factors": list(self.uncertainty_factors),
            "treatment_plan": list(self.treatment_plan),
            "follow_up_actions": list(self.follow_up_actions),
            "risk_contributions": dict(self.risk_contributions),
            "timestamp": self.timestamp.isoformat(),
        }


class ReportAssembler:
    """Composes scorer, evaluator and rule generators into one report"""

    def __init__(self,
                 scorer: Optional[RiskScorer] = None,
                 evaluator: Optional[ThresholdEvaluator] = None,
                 uncertainty: Optional[UncertaintyAnalyzer] = None,
                 findings: Optional[FindingsGenerator] = None,
                 recommender: Optional[RecommendationEngine] = None):
        self.scorer = scorer or RiskScorer()
        self.evaluator = evaluator or ThresholdEvaluator()
        self.uncertainty = uncertainty or UncertaintyAnalyzer()
        self.findings = findings or FindingsGenerator()
        self.recommender = recommender or RecommendationEngine()

    def assemble(self, record: PatientRecord, patient_id: str,
                 thresholds: ThresholdTable) -> PatientAnalysisReport:
        prediction, breakdown = self.scorer.score_with_breakdown(record)
        violations = self.evaluator.evaluate(record, thresholds)
        uncertainty_factors = self.uncertainty.analyze(record)

        report = PatientAnalysisReport(
            patient_id=patient_id,
            overall_risk=prediction.risk_level,
            confidence=prediction.confidence,
            risk_probability=prediction.probability,
            clinical_findings=tuple(self.findings.generate(record, violations)),
            recommendations=tuple(self.recommender.recommendations(prediction, violations)),
            threshold_violations=tuple(violations),
            uncertainty_factors=tuple(uncertainty_factors),
            treatment_plan=tuple(self.recommender.treatment_plan(prediction)),
            follow_up_actions=tuple(self.recommender.follow_up_actions(uncertainty_factors)),
            risk_contributions=tuple(breakdown.contributions.items()),
            timestamp=datetime.now(),
        )

        logger.info(
            f"Analysis for patient {patient_id}: {prediction.risk_level.value} "
            f"(p={prediction.probability:.3f}, confidence={prediction.confidence:.3f}, "
            f"violations={len(violations)})"
        )
        return report
