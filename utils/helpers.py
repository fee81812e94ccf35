import pandas as pd
import numpy as np
import logging
from typing import Dict, Any

from config.settings import config
from data.loader import resolve_column
from models.patient import PatientRecord

logger = logging.getLogger(__name__)

class DataValidator:
    """Validate data integrity and format"""

    @staticmethod
    def validate_sepsis_data(df: pd.DataFrame) -> Dict[str, Any]:
        """Validate sepsis dataset"""
        validation_result = {
            "is_valid": True,
            "warnings": [],
            "errors": [],
            "info": {}
        }

        if df.empty:
            validation_result["errors"].append("Dataset contains no rows")
            validation_result["is_valid"] = False
            return validation_result

        label_col = resolve_column(df.columns, config.LABEL_ALIASES)
        id_col = resolve_column(df.columns, config.PATIENT_ID_ALIASES)

        if label_col is None:
            validation_result["errors"].append(
                f"Missing sepsis label column (expected one of {list(config.LABEL_ALIASES)})"
            )
            validation_result["is_valid"] = False

        if id_col is None:
            validation_result["warnings"].append(
                f"No patient identifier column (expected one of {list(config.PATIENT_ID_ALIASES)})"
            )

        # Missing data analysis
        missing_percentages = (df.isnull().sum() / len(df)) * 100
        high_missing = missing_percentages[missing_percentages > 50]

        if not high_missing.empty:
            validation_result["warnings"].append(f"Columns with >50% missing data: {high_missing.round(1).to_dict()}")

        # Summary info
        validation_result["info"] = {
            "total_rows": len(df),
            "total_columns": len(df.columns),
            "unique_patients": int(df[id_col].nunique()) if id_col else 0,
        }

        # Sepsis label analysis
        if label_col is not None:
            sepsis_counts = df[label_col].value_counts()
            validation_result["info"]["sepsis_distribution"] = {str(k): int(v) for k, v in sepsis_counts.items()}

            # Check for class imbalance
            if len(sepsis_counts) == 2:
                imbalance_ratio = sepsis_counts.min() / sepsis_counts.max()
                if imbalance_ratio < 0.1:
                    validation_result["warnings"].append(f"Severe class imbalance detected (ratio: {imbalance_ratio:.3f})")

        for warning in validation_result["warnings"]:
            logger.warning(warning)

        return validation_result

    @staticmethod
    def validate_patient_record(record: PatientRecord) -> Dict[str, Any]:
        """Validate a patient record before analysis; missing values are not errors"""
        validation_result = {
            "is_valid": True,
            "errors": [],
            "warnings": [],
            "info": {}
        }

        vitals = record.vitals.to_dict()
        labs = record.labs.to_dict()
        values = {**vitals, **labs}

        non_finite = [name for name, value in values.items() if not np.isfinite(value)]
        if non_finite:
            validation_result["errors"].append(f"Infinite values detected for: {non_finite}")
            validation_result["is_valid"] = False

        if not values:
            validation_result["warnings"].append("No vitals or labs provided; report will be UNCERTAIN")

        validation_result["info"] = {
            "vitals_present": len(vitals),
            "labs_present": len(labs),
        }

        return validation_result
