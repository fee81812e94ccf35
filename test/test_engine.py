import dataclasses
import unittest
from pathlib import Path
import sys

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from engine.analyzer import ModelNotReadyError, SepsisRiskEngine
from engine.findings import FindingsGenerator, format_value
from engine.recommendations import RecommendationEngine
from models.patient import PatientRecord
from models.risk_scorer import Prediction, RiskLevel
from models.threshold_evaluator import Severity, ThresholdEvaluator, Violation
from models.thresholds import ParameterThreshold, ThresholdRegistry

CRITICAL_SCENARIO = PatientRecord.from_dict({
    "vitals": {"HR": 130, "Temp": 39.8, "Resp": 30, "MAP": 60},
    "labs": {"WBC": 22, "Lactate": 4.5, "Platelets": 80},
})

TRAINING_ROWS = [
    {"Patient_ID": 1, "Hour": 0, "HR": 80, "Temp": 37.0, "SepsisLabel": 0},
    {"Patient_ID": 1, "Hour": 1, "HR": 110, "Temp": 38.6, "SepsisLabel": 1},
    {"Patient_ID": 2, "Hour": 0, "HR": 72, "Temp": 36.8, "SepsisLabel": 0},
    {"Patient_ID": 3, "Hour": 0, "HR": 95, "Temp": 37.4, "SepsisLabel": 0},
]

def prediction(level: RiskLevel) -> Prediction:
    return Prediction(probability=0.5, confidence=0.9, risk_level=level)

class TestFindingsGenerator(unittest.TestCase):
    def setUp(self):
        self.generator = FindingsGenerator()
        self.violations = ThresholdEvaluator().evaluate(CRITICAL_SCENARIO, ThresholdRegistry().get())

    def test_scenario_findings(self):
        findings = self.generator.generate(CRITICAL_SCENARIO, self.violations)
        self.assertEqual(findings, [
            "Tachycardia present (HR: 130 bpm)",
            "Hyperthermia detected (39.8°C)",
            "Tachypnea observed (30/min)",
            "Elevated lactate levels (4.5 mmol/L)",
            "Leukocytosis present (WBC: 22 K/μL)",
            "Thrombocytopenia observed (80 K/μL)",
            "CRITICAL: HR at 130 (threshold: 120)",
            "CRITICAL: Temp at 39.8 (threshold: 38.5)",
            "CRITICAL: Resp at 30 (threshold: 25)",
            "CRITICAL: WBC at 22 (threshold: 15)",
            "CRITICAL: Lactate at 4.5 (threshold: 4)",
            "CRITICAL: Platelets at 80 (threshold: 100)",
            "CRITICAL: MAP at 60 (threshold: 65)",
        ])

    def test_low_side_findings(self):
        record = PatientRecord.from_dict({"vitals": {"Temp": 35.5, "SBP": 85}, "labs": {"WBC": 3.1}})
        self.assertEqual(self.generator.generate(record, []), [
            "Hypothermia detected (35.5°C)",
            "Hypotension present (SBP: 85 mmHg)",
            "Leukopenia detected (WBC: 3.1 K/μL)",
        ])

    def test_findings_ignore_registry_thresholds(self):
        # HR 105 breaches the literal HR > 100 finding even with the registry relaxed
        record = PatientRecord.from_dict({"vitals": {"HR": 105}})
        self.assertEqual(self.generator.generate(record, []), ["Tachycardia present (HR: 105 bpm)"])

    def test_warning_violations_are_not_findings(self):
        violation = Violation('HR', 110.0, 100, Severity.WARNING)
        self.assertEqual(self.generator.generate(PatientRecord(), [violation]), [])

    def test_format_value(self):
        self.assertEqual(format_value(130.0), "130")
        self.assertEqual(format_value(38.5), "38.5")
        self.assertEqual(format_value(1234567.0), "1234567")
        self.assertEqual(format_value(4), "4")

    def test_findings_keep_full_precision(self):
        record = PatientRecord.from_dict({"vitals": {"HR": 101.1234567}})
        self.assertEqual(self.generator.generate(record, []), ["Tachycardia present (HR: 101.1234567 bpm)"])
        violation = Violation('BUN', 1234567.5, 40, Severity.CRITICAL)
        self.assertEqual(self.generator.generate(PatientRecord(), [violation]),
                         ["CRITICAL: BUN at 1234567.5 (threshold: 40)"])

class TestRecommendationEngine(unittest.TestCase):
    def setUp(self):
        self.engine = RecommendationEngine()

    def test_critical_recommendations_with_violation_specifics(self):
        violations = ThresholdEvaluator().evaluate(CRITICAL_SCENARIO, ThresholdRegistry().get())
        recommendations = self.engine.recommendations(prediction(RiskLevel.CRITICAL), violations)
        self.assertEqual(len(recommendations), 7)
        self.assertEqual(recommendations[0], "CRITICAL: Initiate sepsis bundle protocol IMMEDIATELY")
        self.assertEqual(recommendations[-2:], [
            "Severe hyperlactatemia - investigate shock etiology",
            "Consider vasopressor support",
        ])

    def test_recommendation_counts_per_level(self):
        expected = {
            RiskLevel.UNCERTAIN: 4,
            RiskLevel.CRITICAL: 5,
            RiskLevel.HIGH: 4,
            RiskLevel.MODERATE: 0,
            RiskLevel.LOW: 0,
        }
        for level, count in expected.items():
            self.assertEqual(len(self.engine.recommendations(prediction(level), [])), count)

    def test_warning_violation_adds_nothing(self):
        violations = [Violation('MAP', 68.0, 70, Severity.WARNING)]
        self.assertEqual(self.engine.recommendations(prediction(RiskLevel.LOW), violations), [])

    def test_treatment_plan_lengths(self):
        expected = {
            RiskLevel.UNCERTAIN: 4,
            RiskLevel.CRITICAL: 4,
            RiskLevel.HIGH: 3,
            RiskLevel.MODERATE: 0,
            RiskLevel.LOW: 0,
        }
        for level, count in expected.items():
            self.assertEqual(len(self.engine.treatment_plan(prediction(level))), count)

    def test_follow_up_actions(self):
        self.assertEqual(self.engine.follow_up_actions([]), [
            "Monitor vital signs hourly",
            "Document clinical response to interventions",
            "Reassess sepsis risk every 6 hours",
        ])
        actions = self.engine.follow_up_actions(["Borderline tachycardia"])
        self.assertEqual(len(actions), 5)
        self.assertEqual(actions[0], "Reassess in 2-4 hours with additional data")

class TestSepsisRiskEngine(unittest.TestCase):
    def setUp(self):
        self.engine = SepsisRiskEngine()

    def test_analyze_before_training_fails(self):
        self.assertFalse(self.engine.is_trained)
        with self.assertRaises(ModelNotReadyError):
            self.engine.analyze(PatientRecord(), "P1")
        with self.assertRaises(ModelNotReadyError):
            _ = self.engine.metrics

    def test_training_marks_engine_ready(self):
        metrics = self.engine.train(TRAINING_ROWS, rng=np.random.default_rng(7))
        self.assertTrue(self.engine.is_trained)
        self.assertEqual(self.engine.feature_names, ["Hour", "HR", "Temp"])
        self.assertEqual(self.engine.state.patient_count, 3)

        status = self.engine.training_status()
        self.assertEqual(status["status"], "completed")
        self.assertEqual(status["progress"], 1.0)
        self.assertEqual(status["patient_count"], 3)
        self.assertEqual(status["feature_count"], 3)

        (tn, fp), (fn, tp) = metrics.confusion_matrix
        self.assertEqual(tp + fn, 1)
        self.assertEqual(fp + tn, 3)

    def test_queued_job_counts_as_training(self):
        self.assertFalse(self.engine.is_training)
        self.engine.state.status = "initiated"
        self.assertTrue(self.engine.is_training)
        self.engine.train(TRAINING_ROWS)
        self.assertFalse(self.engine.is_training)

    def test_seeded_training_is_reproducible(self):
        other = SepsisRiskEngine()
        first = self.engine.train(TRAINING_ROWS, rng=np.random.default_rng(11))
        second = other.train(TRAINING_ROWS, rng=np.random.default_rng(11))
        self.assertEqual(first, second)

    def test_empty_record_report(self):
        self.engine.train(TRAINING_ROWS)
        report = self.engine.analyze(PatientRecord(), "P1")

        self.assertEqual(report.patient_id, "P1")
        self.assertEqual(report.overall_risk, RiskLevel.UNCERTAIN)
        self.assertEqual(report.threshold_violations, ())
        for tag in ("Missing lactate levels", "Missing white blood cell count",
                    "Missing heart rate data", "Missing temperature readings"):
            self.assertIn(tag, report.uncertainty_factors)
        self.assertEqual(len(report.follow_up_actions), 5)
        self.assertEqual(len(report.recommendations), 4)
        self.assertEqual(len(report.treatment_plan), 4)

    def test_critical_scenario_report(self):
        self.engine.train(TRAINING_ROWS)
        report = self.engine.analyze(CRITICAL_SCENARIO, "P2")

        self.assertEqual(report.overall_risk, RiskLevel.CRITICAL)
        self.assertEqual(report.risk_probability, 1.0)
        self.assertEqual(report.confidence, 0.96)
        critical = {(v.parameter, v.severity) for v in report.threshold_violations}
        self.assertIn(('MAP', Severity.CRITICAL), critical)
        self.assertIn(('Lactate', Severity.CRITICAL), critical)
        self.assertEqual(report.uncertainty_factors, ())
        self.assertEqual(len(report.follow_up_actions), 3)
        contributions = dict(report.risk_contributions)
        self.assertAlmostEqual(contributions["HR"], 0.36)
        self.assertAlmostEqual(contributions["Lactate"], 0.42)
        self.assertAlmostEqual(contributions["MAP"], 0.35)

    def test_reports_are_fresh_and_immutable(self):
        self.engine.train(TRAINING_ROWS)
        first = self.engine.analyze(CRITICAL_SCENARIO, "P2")
        second = self.engine.analyze(CRITICAL_SCENARIO, "P2")
        self.assertIsNot(first, second)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            first.confidence = 0.1

    def test_threshold_updates_flow_into_reports(self):
        self.engine.train(TRAINING_ROWS)
        record = PatientRecord.from_dict({"vitals": {"HR": 130}})

        before = self.engine.analyze(record, "P3")
        self.assertEqual(len(before.threshold_violations), 2)

        self.engine.update_thresholds({'HR': ParameterThreshold(enabled=False)})
        after = self.engine.analyze(record, "P3")
        self.assertEqual(after.threshold_violations, ())
        self.assertFalse(self.engine.get_thresholds()['HR'].enabled)

    def test_analyze_batch(self):
        self.engine.train(TRAINING_ROWS)
        reports = self.engine.analyze_batch([("A", PatientRecord()), ("B", CRITICAL_SCENARIO)])
        self.assertEqual([r.patient_id for r in reports], ["A", "B"])
        self.assertEqual([r.overall_risk for r in reports], [RiskLevel.UNCERTAIN, RiskLevel.CRITICAL])

    def test_evaluate_labelled_against_training_labels(self):
        self.engine.train(TRAINING_ROWS)
        critical = {"HR": 130, "Temp": 39.8, "Resp": 30, "MAP": 60, "WBC": 22, "Lactate": 4.5, "Platelets": 80}
        normal = {"HR": 80, "Temp": 37.0, "Resp": 16, "WBC": 8.0}
        report = self.engine.evaluate_labelled([
            {"Patient_ID": 1, **critical},
            {"Patient_ID": 2, **normal},
            {"Patient_ID": 3, **critical},
            {"Patient_ID": 4, **normal},
        ])

        self.assertEqual(report.total_patients, 4)
        self.assertEqual((report.true_positives, report.false_negatives,
                          report.false_positives, report.true_negatives), (1, 0, 1, 2))
        self.assertEqual(report.accuracy, 0.75)
        self.assertEqual(report.sensitivity, 1.0)
        self.assertAlmostEqual(report.specificity, 2 / 3)
        self.assertEqual(report.precision, 0.5)
        self.assertAlmostEqual(report.f1_score, 2 / 3)
        self.assertEqual(report.predicted_distribution, {"sepsis": 2, "no_sepsis": 2})
        self.assertEqual(report.actual_distribution, {"sepsis": 1, "no_sepsis": 3})
        self.assertEqual([p.patient_id for p in report.predictions], ["1", "2", "3", "4"])

    def test_evaluate_labelled_requires_training(self):
        with self.assertRaises(ModelNotReadyError):
            self.engine.evaluate_labelled(TRAINING_ROWS)

    def test_report_to_dict(self):
        self.engine.train(TRAINING_ROWS)
        data = self.engine.analyze(CRITICAL_SCENARIO, "P2").to_dict()
        self.assertEqual(data["overall_risk"], "CRITICAL")
        self.assertEqual(data["threshold_violations"][0]["severity"], "critical")
        self.assertIsInstance(data["timestamp"], str)

if __name__ == '__main__':
    unittest.main()
