from typing import List

from models.patient import PatientRecord

MISSING_LACTATE = "Missing lactate levels"
MISSING_WBC = "Missing white blood cell count"
MISSING_HR = "Missing heart rate data"
MISSING_TEMP = "Missing temperature readings"
BORDERLINE_LACTATE = "Borderline lactate elevation"
BORDERLINE_TACHYCARDIA = "Borderline tachycardia"


class UncertaintyAnalyzer:
    """Flags missing or borderline inputs that should qualify trust in a score"""

    def analyze(self, record: PatientRecord) -> List[str]:
        factors = []
        lactate = record.labs.Lactate
        hr = record.vitals.HR

        if lactate is None:
            factors.append(MISSING_LACTATE)
        if record.labs.WBC is None:
            factors.append(MISSING_WBC)
        if hr is None:
            factors.append(MISSING_HR)
        if record.vitals.Temp is None:
            factors.append(MISSING_TEMP)

        if lactate is not None and 2.0 < lactate < 2.5:
            factors.append(BORDERLINE_LACTATE)
        if hr is not None and 85 < hr < 95:
            factors.append(BORDERLINE_TACHYCARDIA)

        return factors
