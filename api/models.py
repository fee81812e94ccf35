from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict

class VitalsModel(BaseModel):
    # Untyped channels pass through for thresholds added at runtime
    model_config = ConfigDict(extra="allow")

    HR: Optional[float] = None
    Temp: Optional[float] = None
    SBP: Optional[float] = None
    DBP: Optional[float] = None
    Resp: Optional[float] = None
    O2Sat: Optional[float] = None
    MAP: Optional[float] = None

class LabsModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    WBC: Optional[float] = None
    Lactate: Optional[float] = None
    Creatinine: Optional[float] = None
    Platelets: Optional[float] = None
    pH: Optional[float] = None
    Bilirubin_total: Optional[float] = None
    PTT: Optional[float] = None

class AnalysisRequest(BaseModel):
    """Request model for a single patient analysis"""
    patient_id: str
    vitals: VitalsModel = Field(default_factory=VitalsModel)
    labs: LabsModel = Field(default_factory=LabsModel)
    Age: Optional[float] = None
    ICULOS: Optional[float] = None
    HospAdmTime: Optional[float] = None

class ViolationModel(BaseModel):
    parameter: str
    value: float
    threshold: float
    severity: str

class AnalysisResponse(BaseModel):
    """Response model for a patient analysis report"""
    patient_id: str
    overall_risk: str
    confidence: float
    risk_probability: float
    clinical_findings: List[str]
    recommendations: List[str]
    threshold_violations: List[ViolationModel]
    uncertainty_factors: List[str]
    treatment_plan: List[str]
    follow_up_actions: List[str]
    risk_contributions: Dict[str, float]
    timestamp: str

class ThresholdModel(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    critical: Optional[float] = None
    enabled: bool = True

class FeatureImportanceModel(BaseModel):
    feature: str
    importance: float

class MetricsResponse(BaseModel):
    accuracy: float
    precision: float
    recall: float
    f1_score: float
    auc: float
    confusion_matrix: List[List[int]]
    feature_importance: List[FeatureImportanceModel]
    false_positive_rate: float
    false_negative_rate: float

class TrainingStatus(BaseModel):
    """Training status model"""
    status: str
    progress: float
    message: str
    patient_count: int = 0
    feature_count: int = 0
    metrics: Optional[Dict] = None

class LabelledPredictionModel(BaseModel):
    patient_id: str
    probability: float
    confidence: float
    risk_level: str
    predicted: int
    actual: int

class EvaluationResponse(BaseModel):
    """Empirical confusion counts and rates over a labelled test set"""
    total_patients: int
    true_positives: int
    false_negatives: int
    false_positives: int
    true_negatives: int
    accuracy: float
    sensitivity: float
    specificity: float
    precision: float
    f1_score: float
    predicted_distribution: Dict[str, int]
    actual_distribution: Dict[str, int]
    predictions: List[LabelledPredictionModel]
