import sys
import json
import logging

from config.settings import config
from data.loader import MedicalDataLoader
from data.preprocessor import SepsisDataPreprocessor
from engine.analyzer import SepsisRiskEngine
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

def run(filepath: str, nrows: int = None):
    """Train the engine on a CSV file and analyze the latest record of each patient"""
    try:
        print("=== SEPSIS RISK ASSESSMENT ===")

        loader = MedicalDataLoader(filepath)
        data = loader.load_data(nrows=nrows)

        engine = SepsisRiskEngine()
        metrics = engine.train(data)

        print("\n=== QUALITY METRICS ===")
        print(f"Accuracy:  {metrics.accuracy:.4f}")
        print(f"Recall:    {metrics.recall:.4f}")
        print(f"Precision: {metrics.precision:.4f}")
        print(f"AUC:       {metrics.auc:.4f}")
        print(f"Confusion matrix [[tn, fp], [fn, tp]]: {[list(row) for row in metrics.confusion_matrix]}")

        reports = engine.analyze_batch(SepsisDataPreprocessor(loader).latest_records())

        print("\n=== PATIENT REPORTS ===")
        for report in reports:
            print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))

    except Exception as e:
        print(f"Error: {e}")
        logger.error(f"Error in main: {e}")
        raise

def evaluate(train_path: str, test_path: str):
    """Train on one CSV file and report empirical accuracy on another"""
    engine = SepsisRiskEngine()
    engine.train(MedicalDataLoader(train_path).load_data())
    report = engine.evaluate_labelled(MedicalDataLoader(test_path).load_data())

    print("\n=== LABELLED EVALUATION ===")
    print(f"Patients:    {report.total_patients}")
    print(f"Accuracy:    {report.accuracy:.4f}")
    print(f"Sensitivity: {report.sensitivity:.4f}")
    print(f"Specificity: {report.specificity:.4f}")
    print(f"Precision:   {report.precision:.4f}")
    print(f"F1:          {report.f1_score:.4f}")
    print(f"TP={report.true_positives} FN={report.false_negatives} "
          f"FP={report.false_positives} TN={report.true_negatives}")

if __name__ == "__main__":
    setup_logging(log_dir=config.LOGS_DIR)

    if len(sys.argv) > 1 and sys.argv[1] == "api":
        from api.main import start_api
        start_api()
    elif len(sys.argv) > 3 and sys.argv[1] == "evaluate":
        evaluate(sys.argv[2], sys.argv[3])
    elif len(sys.argv) > 2 and sys.argv[1] == "analyze":
        run(sys.argv[2])
    else:
        print("Usage:")
        print("  python -m main analyze <dataset.csv>")
        print("  python -m main evaluate <train.csv> <test.csv>")
        print("  python -m main api")
