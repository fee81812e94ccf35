import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from data.loader import DatasetLike, MedicalDataLoader
from data.preprocessor import SepsisDataPreprocessor
from engine.evaluation import EvaluationReport, LabelledEvaluator
from engine.metrics import MetricsSynthesizer, ModelMetrics
from engine.report import PatientAnalysisReport, ReportAssembler
from models.patient import PatientRecord
from models.thresholds import ThresholdLike, ThresholdRegistry, ThresholdTable

logger = logging.getLogger(__name__)

class ModelNotReadyError(RuntimeError):
    """Raised when analysis is requested before the engine has been trained"""


@dataclass
class EngineState:
    """Everything the engine owns between calls"""
    thresholds: ThresholdRegistry = field(default_factory=ThresholdRegistry)
    status: str = "idle"
    progress: float = 0.0
    message: str = "Ready"
    metrics: Optional[ModelMetrics] = None
    feature_names: List[str] = field(default_factory=list)
    patient_count: int = 0
    labels: Dict[str, int] = field(default_factory=dict)

    @property
    def is_trained(self) -> bool:
        return self.metrics is not None

    def as_status(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "progress": self.progress,
            "message": self.message,
            "patient_count": self.patient_count,
            "feature_count": len(self.feature_names),
            "metrics": self.metrics.to_dict() if self.metrics is not None else None,
        }


class SepsisRiskEngine:
    """Rule-based sepsis risk engine: training gate, per-patient reports and thresholds"""

    def __init__(self, state: Optional[EngineState] = None,
                 assembler: Optional[ReportAssembler] = None,
                 synthesizer: Optional[MetricsSynthesizer] = None,
                 evaluator: Optional[LabelledEvaluator] = None):
        self.state = state or EngineState()
        self.assembler = assembler or ReportAssembler()
        self.synthesizer = synthesizer or MetricsSynthesizer()
        self.evaluator = evaluator or LabelledEvaluator(self.assembler.scorer)

    @property
    def is_trained(self) -> bool:
        return self.state.is_trained

    @property
    def is_training(self) -> bool:
        return self.state.status in ("initiated", "training")

    @property
    def metrics(self) -> ModelMetrics:
        self._require_trained()
        return self.state.metrics

    @property
    def feature_names(self) -> List[str]:
        return list(self.state.feature_names)

    def training_status(self) -> Dict[str, Any]:
        return self.state.as_status()

    def train(self, dataset: DatasetLike, rng: Optional[np.random.Generator] = None) -> ModelMetrics:
        """Mark the engine ready and synthesize quality metrics for the dataset"""
        logger.info("=== SEPSIS RISK ENGINE TRAINING ===")
        self.state.status = "training"
        self.state.progress = 0.1
        self.state.message = "Loading data..."

        try:
            loader = MedicalDataLoader()
            df = loader.load_frame(dataset)
            summary = loader.summarize()

            feature_names = loader.get_feature_columns()
            id_column = loader.patient_id_column
            patient_count = int(df[id_column].nunique()) if id_column is not None else len(df)
            labels = loader.patient_labels()

            self.state.progress = 0.5
            self.state.message = "Computing quality metrics..."
            metrics = self.synthesizer.synthesize(summary, rng)

        except Exception as e:
            logger.error(f"Training failed: {e}")
            self.state.status = "error"
            self.state.progress = 0.0
            self.state.message = f"Training failed: {str(e)}"
            raise

        self.state.metrics = metrics
        self.state.feature_names = feature_names
        self.state.patient_count = patient_count
        self.state.labels = labels
        self.state.status = "completed"
        self.state.progress = 1.0
        self.state.message = "Training completed successfully"

        logger.info(f"Engine ready: {len(feature_names)} features, {patient_count} patients")
        return metrics

    def analyze(self, record: PatientRecord, patient_id: str) -> PatientAnalysisReport:
        """Build a full explainable report for one patient"""
        self._require_trained()
        return self.assembler.assemble(record, patient_id, self.state.thresholds.get())

    def analyze_batch(self, records: Iterable[Tuple[str, PatientRecord]]) -> List[PatientAnalysisReport]:
        self._require_trained()
        thresholds = self.state.thresholds.get()
        reports = [self.assembler.assemble(record, patient_id, thresholds) for patient_id, record in records]
        logger.info(f"Batch analysis completed: {len(reports)} reports")
        return reports

    def evaluate_labelled(self, dataset: DatasetLike,
                          labels: Optional[Mapping[str, int]] = None) -> EvaluationReport:
        """Score every row of a test set against the training labels of the same patients"""
        self._require_trained()
        loader = MedicalDataLoader()
        loader.load_frame(dataset)
        records = SepsisDataPreprocessor(loader).row_records()
        return self.evaluator.evaluate(records, labels if labels is not None else self.state.labels)

    def get_thresholds(self) -> ThresholdTable:
        return self.state.thresholds.get()

    def update_thresholds(self, partial: Mapping[str, ThresholdLike]):
        self.state.thresholds.update(partial)

    def _require_trained(self):
        if not self.state.is_trained:
            raise ModelNotReadyError("Model not trained yet")
