import pandas as pd
from typing import Any, List, Mapping, Tuple
import logging

from config.settings import config
from data.loader import MedicalDataLoader, resolve_column
from models.patient import PatientRecord

logger = logging.getLogger(__name__)

class SepsisDataPreprocessor:
    """Turns flat dataset rows into typed patient records"""

    def __init__(self, data_loader: MedicalDataLoader):
        self.data_loader = data_loader

    @staticmethod
    def row_to_record(row: Mapping[str, Any]) -> PatientRecord:
        """Split a flat row into vitals, labs and demographics; blanks and NaN stay missing.

        Columns outside the known vocabularies (BUN, HCO3, Glucose, ...) are
        carried as untyped labs.
        """
        non_lab = set(config.VITAL_SIGNS) | set(config.DEMOGRAPHICS) | config.EXCLUDE_COLS | {config.TIME_COLUMN}
        return PatientRecord.from_dict({
            "vitals": {name: row.get(name) for name in config.VITAL_SIGNS},
            "labs": {name: value for name, value in row.items() if name not in non_lab},
            **{name: row.get(name) for name in config.DEMOGRAPHICS},
        })

    def latest_records(self, df: pd.DataFrame = None) -> List[Tuple[str, PatientRecord]]:
        """Latest observation per patient, ordered by patient identifier"""
        df = df if df is not None else self.data_loader.data
        if df is None:
            raise ValueError("Data not loaded")

        id_column = resolve_column(df.columns, config.PATIENT_ID_ALIASES)

        # Without identifiers every row is its own patient
        if id_column is None:
            logger.warning("No patient identifier column found; analyzing each row independently")
            return [(f"patient_{idx}", self.row_to_record(row.to_dict())) for idx, row in df.iterrows()]

        records = []
        for patient_id, group in df.groupby(id_column, sort=True):
            if config.TIME_COLUMN in group.columns:
                group = group.sort_values(config.TIME_COLUMN)
            latest = group.iloc[-1].to_dict()
            records.append((str(patient_id), self.row_to_record(latest)))

        logger.info(f"Prepared {len(records)} patient records from {len(df)} rows")
        return records

    def row_records(self, df: pd.DataFrame = None) -> List[Tuple[str, PatientRecord]]:
        """Every row as its own record, keyed by the row's patient identifier"""
        df = df if df is not None else self.data_loader.data
        if df is None:
            raise ValueError("Data not loaded")

        id_column = resolve_column(df.columns, config.PATIENT_ID_ALIASES)
        if id_column is not None:
            # Stringify the column itself; iterrows upcasts ids to float in mixed frames
            patient_ids = df[id_column].astype(str).tolist()
        else:
            patient_ids = [f"patient_{idx}" for idx in df.index]

        rows = (row.to_dict() for _, row in df.iterrows())
        return [(patient_id, self.row_to_record(row)) for patient_id, row in zip(patient_ids, rows)]
