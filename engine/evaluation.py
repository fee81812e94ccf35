"""Empirical evaluation of the scorer against labelled patients.

Every test row is scored on its own and compared with the sepsis label of
the same patient id. Ratios with an empty denominator are reported as 0.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple

from config.settings import config
from models.patient import PatientRecord
from models.risk_scorer import RiskLevel, RiskScorer

logger = logging.getLogger(__name__)


def safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


@dataclass(frozen=True)
class LabelledPrediction:
    patient_id: str
    probability: float
    confidence: float
    risk_level: RiskLevel
    predicted: int
    actual: int

    def to_dict(self) -> Dict:
        return {
            "patient_id": self.patient_id,
            "probability": self.probability,
            "confidence": self.confidence,
            "risk_level": self.risk_level.value,
            "predicted": self.predicted,
            "actual": self.actual,
        }


@dataclass(frozen=True)
class EvaluationReport:
    """Confusion counts and derived rates over a labelled test set"""
    predictions: Tuple[LabelledPrediction, ...]
    true_positives: int
    false_negatives: int
    false_positives: int
    true_negatives: int

    @classmethod
    def from_predictions(cls, predictions: Iterable[LabelledPrediction]) -> "EvaluationReport":
        predictions = tuple(predictions)
        counts = {(1, 1): 0, (0, 1): 0, (1, 0): 0, (0, 0): 0}
        for item in predictions:
            counts[(item.predicted, item.actual)] += 1
        return cls(
            predictions=predictions,
            true_positives=counts[(1, 1)],
            false_negatives=counts[(0, 1)],
            false_positives=counts[(1, 0)],
            true_negatives=counts[(0, 0)],
        )

    @property
    def total_patients(self) -> int:
        return len(self.predictions)

    @property
    def accuracy(self) -> float:
        return safe_ratio(self.true_positives + self.true_negatives, self.total_patients)

    @property
    def sensitivity(self) -> float:
        return safe_ratio(self.true_positives, self.true_positives + self.false_negatives)

    @property
    def specificity(self) -> float:
        return safe_ratio(self.true_negatives, self.true_negatives + self.false_positives)

    @property
    def precision(self) -> float:
        return safe_ratio(self.true_positives, self.true_positives + self.false_positives)

    @property
    def f1_score(self) -> float:
        return safe_ratio(2 * self.precision * self.sensitivity, self.precision + self.sensitivity)

    @property
    def predicted_distribution(self) -> Dict[str, int]:
        positives = self.true_positives + self.false_positives
        return {"sepsis": positives, "no_sepsis": self.total_patients - positives}

    @property
    def actual_distribution(self) -> Dict[str, int]:
        positives = self.true_positives + self.false_negatives
        return {"sepsis": positives, "no_sepsis": self.total_patients - positives}

    def to_dict(self) -> Dict:
        return {
            "total_patients": self.total_patients,
            "true_positives": self.true_positives,
            "false_negatives": self.false_negatives,
            "false_positives": self.false_positives,
            "true_negatives": self.true_negatives,
            "accuracy": self.accuracy,
            "sensitivity": self.sensitivity,
            "specificity": self.specificity,
            "precision": self.precision,
            "f1_score": self.f1_score,
            "predicted_distribution": self.predicted_distribution,
            "actual_distribution": self.actual_distribution,
            "predictions": [item.to_dict() for item in self.predictions],
        }


class LabelledEvaluator:
    """Scores labelled rows and tallies them against their known outcome"""

    def __init__(self, scorer: Optional[RiskScorer] = None,
                 decision_threshold: Optional[float] = None):
        self.scorer = scorer or RiskScorer()
        self.decision_threshold = (decision_threshold if decision_threshold is not None
                                   else config.DECISION_THRESHOLD)

    def evaluate(self, records: Iterable[Tuple[str, PatientRecord]],
                 labels: Mapping[str, int]) -> EvaluationReport:
        predictions = []
        unlabelled = 0
        for patient_id, record in records:
            prediction = self.scorer.score(record)
            if patient_id not in labels:
                unlabelled += 1
            predictions.append(LabelledPrediction(
                patient_id=patient_id,
                probability=prediction.probability,
                confidence=prediction.confidence,
                risk_level=prediction.risk_level,
                predicted=int(prediction.probability > self.decision_threshold),
                # Unknown patients count as negatives
                actual=1 if labels.get(patient_id, 0) == 1 else 0,
            ))

        if unlabelled:
            logger.warning(f"{unlabelled} evaluated rows had no known label; counted as negative")

        report = EvaluationReport.from_predictions(predictions)
        logger.info(
            f"Labelled evaluation over {report.total_patients} rows: accuracy={report.accuracy:.3f}, "
            f"sensitivity={report.sensitivity:.3f}, specificity={report.specificity:.3f}"
        )
        return report
