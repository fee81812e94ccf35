import unittest
from pathlib import Path
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from models.patient import PatientRecord
from models.threshold_evaluator import Severity, ThresholdEvaluator, Violation
from models.thresholds import ParameterThreshold, ThresholdRegistry, is_lower_bound_critical

def make_record(vitals=None, labs=None) -> PatientRecord:
    return PatientRecord.from_dict({"vitals": vitals or {}, "labs": labs or {}})

class TestThresholdRegistry(unittest.TestCase):
    def setUp(self):
        self.registry = ThresholdRegistry()

    def test_default_table(self):
        table = self.registry.get()
        self.assertEqual(list(table.keys()), [
            'HR', 'Temp', 'SBP', 'Resp', 'O2Sat', 'WBC', 'Lactate', 'Creatinine', 'Platelets', 'MAP'
        ])
        self.assertEqual(table['HR'], ParameterThreshold(min=60, max=100, critical=120, enabled=True))
        self.assertEqual(table['Lactate'].critical, 4.0)
        self.assertEqual(table['MAP'].critical, 65)

    def test_get_is_idempotent(self):
        self.assertEqual(self.registry.get(), self.registry.get())

    def test_empty_update_is_noop(self):
        before = self.registry.get()
        self.registry.update({})
        self.assertEqual(self.registry.get(), before)

    def test_update_replaces_entry_wholesale(self):
        self.registry.update({'HR': {'max': 110}})
        hr = self.registry.get()['HR']
        self.assertEqual(hr.max, 110)
        self.assertIsNone(hr.min)
        self.assertIsNone(hr.critical)
        self.assertTrue(hr.enabled)
        # Untouched entries keep their defaults
        self.assertEqual(self.registry.get()['Temp'].critical, 38.5)

    def test_update_adds_new_keys(self):
        self.registry.update({'pH': ParameterThreshold(min=7.35, max=7.45)})
        self.assertIn('pH', self.registry)
        self.assertEqual(list(self.registry.get().keys())[-1], 'pH')

    def test_enabled_must_be_boolean(self):
        with self.assertRaises(ValueError):
            self.registry.update({'HR': {'max': 110, 'enabled': 'false'}})
        self.assertEqual(self.registry.get()['HR'].max, 100)
        self.registry.update({'HR': {'max': 110, 'enabled': False}})
        self.assertFalse(self.registry.get()['HR'].enabled)

    def test_returned_table_does_not_alias_live_table(self):
        table = self.registry.get()
        table['HR'] = ParameterThreshold(enabled=False)
        self.assertTrue(self.registry.get()['HR'].enabled)

    def test_critical_directionality(self):
        for parameter in ('SBP', 'MAP', 'O2Sat', 'Platelets'):
            self.assertTrue(is_lower_bound_critical(parameter))
        for parameter in ('HR', 'Temp', 'Lactate', 'pH'):
            self.assertFalse(is_lower_bound_critical(parameter))

class TestThresholdEvaluator(unittest.TestCase):
    def setUp(self):
        self.registry = ThresholdRegistry()
        self.evaluator = ThresholdEvaluator()

    def test_upper_critical_then_max_warning(self):
        violations = self.evaluator.evaluate(make_record({"HR": 130}), self.registry.get())
        self.assertEqual(violations, [
            Violation('HR', 130.0, 120, Severity.CRITICAL),
            Violation('HR', 130.0, 100, Severity.WARNING),
        ])

    def test_lower_critical_then_min_warning(self):
        violations = self.evaluator.evaluate(make_record({"MAP": 60}, {"Platelets": 80}),
                                             self.registry.get())
        self.assertEqual(violations, [
            Violation('Platelets', 80.0, 100, Severity.CRITICAL),
            Violation('Platelets', 80.0, 150, Severity.WARNING),
            Violation('MAP', 60.0, 65, Severity.CRITICAL),
            Violation('MAP', 60.0, 70, Severity.WARNING),
        ])

    def test_warning_only_between_range_and_critical(self):
        violations = self.evaluator.evaluate(make_record({"HR": 110}), self.registry.get())
        self.assertEqual(violations, [Violation('HR', 110.0, 100, Severity.WARNING)])

    def test_missing_and_normal_values_produce_nothing(self):
        self.assertEqual(self.evaluator.evaluate(PatientRecord(), self.registry.get()), [])
        self.assertEqual(self.evaluator.evaluate(make_record({"HR": 80}), self.registry.get()), [])

    def test_disabled_parameter_is_skipped(self):
        self.registry.update({'HR': ParameterThreshold(min=60, max=100, critical=120, enabled=False)})
        self.assertEqual(self.evaluator.evaluate(make_record({"HR": 180}), self.registry.get()), [])

    def test_contradictory_range_emits_three_in_order(self):
        self.registry.update({'HR': ParameterThreshold(min=10, max=5, critical=6)})
        violations = self.evaluator.evaluate(make_record({"HR": 8}), self.registry.get())
        self.assertEqual([(v.threshold, v.severity) for v in violations], [
            (6, Severity.CRITICAL),
            (10, Severity.WARNING),
            (5, Severity.WARNING),
        ])

    def test_added_parameter_resolves_from_labs(self):
        self.registry.update({'pH': ParameterThreshold(min=7.35, max=7.45, critical=7.6)})
        violations = self.evaluator.evaluate(make_record(labs={"pH": 7.2}), self.registry.get())
        self.assertEqual(violations, [Violation('pH', 7.2, 7.35, Severity.WARNING)])

    def test_added_parameter_outside_typed_channels(self):
        self.registry.update({'BUN': ParameterThreshold(min=7, max=20, critical=40)})
        violations = self.evaluator.evaluate(make_record(labs={"BUN": 55}), self.registry.get())
        self.assertEqual(violations, [
            Violation('BUN', 55.0, 40, Severity.CRITICAL),
            Violation('BUN', 55.0, 20, Severity.WARNING),
        ])

    def test_violation_to_dict(self):
        violation = Violation('Lactate', 4.5, 4.0, Severity.CRITICAL)
        self.assertEqual(violation.to_dict(), {
            "parameter": "Lactate", "value": 4.5, "threshold": 4.0, "severity": "critical"
        })

if __name__ == '__main__':
    unittest.main()
