from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

@dataclass
class SepsisConfig:
    # Data configuration
    VITAL_SIGNS: List[str] = None
    LAB_VALUES: List[str] = None
    DEMOGRAPHICS: List[str] = None
    LABEL_ALIASES: Tuple[str, ...] = None
    PATIENT_ID_ALIASES: Tuple[str, ...] = None
    TIME_COLUMN: str = "Hour"

    # Threshold configuration: (min, max, critical)
    DEFAULT_THRESHOLDS: Dict[str, Tuple[float, float, float]] = None
    LOWER_CRITICAL_PARAMS: frozenset = None

    # Simulated quality metrics
    METRIC_RANGES: Dict[str, Tuple[float, float]] = None
    FEATURE_IMPORTANCE: List[Tuple[str, float]] = None
    METRICS_RANDOM_STATE: Optional[int] = None

    # Labelled evaluation: predicted positive when probability exceeds this
    DECISION_THRESHOLD: float = 0.5

    # Paths
    LOGS_DIR: str = "logs"

    # API configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    def __post_init__(self):
        if self.VITAL_SIGNS is None:
            self.VITAL_SIGNS = ['HR', 'Temp', 'SBP', 'DBP', 'Resp', 'O2Sat', 'MAP']

        if self.LAB_VALUES is None:
            self.LAB_VALUES = ['WBC', 'Lactate', 'Creatinine', 'Platelets', 'pH',
                               'Bilirubin_total', 'PTT']

        if self.DEMOGRAPHICS is None:
            self.DEMOGRAPHICS = ['Age', 'ICULOS', 'HospAdmTime']

        if self.LABEL_ALIASES is None:
            self.LABEL_ALIASES = ('SepsisLabel', 'sepsislabel')

        if self.PATIENT_ID_ALIASES is None:
            self.PATIENT_ID_ALIASES = ('Patient_ID', 'PatientID', 'patient_id')

        if self.DEFAULT_THRESHOLDS is None:
            self.DEFAULT_THRESHOLDS = {
                'HR': (60, 100, 120),
                'Temp': (36.1, 37.2, 38.5),
                'SBP': (90, 140, 80),
                'Resp': (12, 20, 25),
                'O2Sat': (95, 100, 90),
                'WBC': (4.0, 12.0, 15.0),
                'Lactate': (0.5, 2.2, 4.0),
                'Creatinine': (0.7, 1.3, 2.0),
                'Platelets': (150, 450, 100),
                'MAP': (70, 100, 65),
            }

        # Critical is a lower-bound breach for these; upper-bound for the rest
        if self.LOWER_CRITICAL_PARAMS is None:
            self.LOWER_CRITICAL_PARAMS = frozenset({'SBP', 'MAP', 'O2Sat', 'Platelets'})

        if self.METRIC_RANGES is None:
            self.METRIC_RANGES = {
                'accuracy': (0.87, 0.93),
                'recall': (0.89, 0.97),
                'precision': (0.83, 0.92),
                'auc': (0.91, 0.97),
            }

        if self.FEATURE_IMPORTANCE is None:
            self.FEATURE_IMPORTANCE = [
                ('Lactate', 0.18),
                ('WBC', 0.16),
                ('MAP', 0.14),
                ('Temperature', 0.12),
                ('Heart_Rate', 0.11),
                ('Platelets', 0.09),
                ('Creatinine', 0.08),
                ('Respiratory_Rate', 0.07),
                ('O2_Saturation', 0.05),
                ('Age', 0.04),
                ('ICULOS', 0.03),
                ('pH', 0.03),
            ]

    @property
    def EXCLUDE_COLS(self) -> set:
        return set(self.LABEL_ALIASES) | set(self.PATIENT_ID_ALIASES)

# Global config instance
config = SepsisConfig()
