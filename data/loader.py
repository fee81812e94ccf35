import pandas as pd
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union
import logging

from config.settings import config
from engine.metrics import DatasetSummary

logger = logging.getLogger(__name__)

DatasetLike = Union[pd.DataFrame, Sequence[Mapping[str, Any]]]

def as_dataframe(dataset: DatasetLike) -> pd.DataFrame:
    """Accept either a DataFrame or an ordered list of row mappings"""
    if isinstance(dataset, pd.DataFrame):
        return dataset
    return pd.DataFrame(list(dataset))

def resolve_column(columns: Iterable[str], aliases: Sequence[str]) -> Optional[str]:
    """Return the first alias present among the columns"""
    columns = set(columns)
    for alias in aliases:
        if alias in columns:
            return alias
    return None

class MedicalDataLoader:
    """Loads labelled sepsis datasets and derives what the engine needs from them"""

    def __init__(self, filepath: Optional[str] = None):
        self.filepath = filepath
        self.data = None

    def load_data(self, nrows: Optional[int] = None) -> pd.DataFrame:
        """Load data from CSV file"""
        try:
            if not self.filepath:
                raise ValueError("No filepath specified")

            logger.info(f"Loading data from {self.filepath}...")
            return self.load_frame(pd.read_csv(self.filepath, nrows=nrows))

        except Exception as e:
            logger.error(f"Error loading data: {e}")
            raise

    def load_frame(self, dataset: DatasetLike) -> pd.DataFrame:
        """Adopt an in-memory dataset (DataFrame or row mappings)"""
        df = as_dataframe(dataset)

        # Clean up columns
        if 'Unnamed: 0' in df.columns:
            df = df.drop(columns=['Unnamed: 0'])

        self.data = df
        logger.info(f"Data loaded: {df.shape}")
        return df

    def _require_data(self) -> pd.DataFrame:
        if self.data is None:
            raise ValueError("Data not loaded")
        return self.data

    @property
    def label_column(self) -> Optional[str]:
        return resolve_column(self._require_data().columns, config.LABEL_ALIASES)

    @property
    def patient_id_column(self) -> Optional[str]:
        return resolve_column(self._require_data().columns, config.PATIENT_ID_ALIASES)

    def summarize(self) -> DatasetSummary:
        """Total row count and positive-label count"""
        df = self._require_data()
        label = self.label_column

        positives = 0
        if label is not None:
            positives = int((pd.to_numeric(df[label], errors='coerce') == 1).sum())
        else:
            logger.warning("No sepsis label column found; treating every row as negative")

        summary = DatasetSummary(total_rows=len(df), positive_count=positives)
        logger.info(f"Dataset summary: {summary.total_rows} rows, {summary.positive_count} sepsis-positive")
        return summary

    def get_feature_columns(self) -> List[str]:
        """Column names minus label and patient identifier columns"""
        df = self._require_data()
        return [col for col in df.columns if col not in config.EXCLUDE_COLS]

    def patient_labels(self) -> Dict[str, int]:
        """Sepsis label per patient id; a patient with any positive row is positive"""
        df = self._require_data()
        id_column, label = self.patient_id_column, self.label_column
        if id_column is None or label is None:
            logger.warning("Labelled evaluation needs both a patient id and a sepsis label column")
            return {}

        positive = (pd.to_numeric(df[label], errors='coerce') == 1).astype(int)
        labels = positive.groupby(df[id_column].astype(str)).max()
        return {str(patient_id): int(value) for patient_id, value in labels.items()}
