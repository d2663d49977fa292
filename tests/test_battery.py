"""
Tests for the battery controller.

Covers the renewables-first dispatch branches, the state-of-charge band and
the reference scenarios.
"""

import sys
from pathlib import Path
import unittest

import numpy as np

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from microgrid.config import BatteryConfig
from microgrid.models import BatteryController


class TestBatteryScenarios(unittest.TestCase):
    """Reference dispatch scenarios."""

    def setUp(self):
        self.controller = BatteryController(BatteryConfig(), np.random.RandomState(0))

    def test_balanced_supply_is_idle(self):
        """solar=300, wind=0, target=300, soc=50"""
        d = self.controller.decide(50.0, 300.0, 300.0)
        self.assertEqual(d.excess_kw, 0.0)
        self.assertEqual(d.deficit_kw, 0.0)
        self.assertEqual(d.charge_rate_kw, 0.0)
        self.assertEqual(d.soc_percent, 50.0)
        self.assertEqual(d.grid_import_kw, 0.0)
        self.assertEqual(d.grid_export_kw, 0.0)

    def test_surplus_near_ceiling_exports_remainder(self):
        """solar=450, wind=0, target=300, soc=85"""
        d = self.controller.decide(85.0, 450.0, 300.0)
        self.assertEqual(d.excess_kw, 150.0)
        self.assertAlmostEqual(d.charge_rate_kw, 50.0)
        self.assertAlmostEqual(d.grid_export_kw, 100.0)
        self.assertEqual(d.grid_import_kw, 0.0)
        self.assertAlmostEqual(d.soc_percent, 85.0 + 50.0 / 1000 * 100 / 60)

    def test_deficit_at_floor_imports_everything(self):
        """solar=100, wind=0, target=300, soc=20"""
        d = self.controller.decide(20.0, 100.0, 300.0)
        self.assertEqual(d.deficit_kw, 200.0)
        self.assertEqual(d.grid_import_kw, 200.0)
        self.assertEqual(d.charge_rate_kw, 0.0)
        self.assertEqual(d.soc_percent, 20.0)


class TestBatteryController(unittest.TestCase):
    """Branch and limit behaviour."""

    def setUp(self):
        self.controller = BatteryController(BatteryConfig(), np.random.RandomState(0))

    def test_charge_limited_by_surplus_fraction(self):
        d = self.controller.decide(50.0, 400.0, 300.0)
        self.assertAlmostEqual(d.charge_rate_kw, 90.0)
        self.assertAlmostEqual(d.grid_export_kw, 10.0)

    def test_charge_limited_by_hardware_ceiling(self):
        d = self.controller.decide(30.0, 800.0, 300.0)
        self.assertAlmostEqual(d.charge_rate_kw, 200.0)
        self.assertAlmostEqual(d.grid_export_kw, 300.0)

    def test_full_battery_exports_all_surplus(self):
        d = self.controller.decide(92.0, 500.0, 300.0)
        self.assertEqual(d.charge_rate_kw, 0.0)
        self.assertAlmostEqual(d.grid_export_kw, 200.0)
        self.assertEqual(d.soc_percent, 92.0)

    def test_discharge_limited_by_hardware_ceiling(self):
        d = self.controller.decide(60.0, 0.0, 400.0)
        self.assertAlmostEqual(d.charge_rate_kw, -150.0)
        self.assertAlmostEqual(d.grid_import_kw, 250.0)
        self.assertAlmostEqual(d.soc_percent, 60.0 - 150.0 / 1000 * 100 / 60)

    def test_discharge_limited_by_margin_above_floor(self):
        d = self.controller.decide(26.0, 100.0, 300.0)
        self.assertAlmostEqual(d.charge_rate_kw, -60.0)
        self.assertAlmostEqual(d.grid_import_kw, 140.0)

    def test_discharge_covers_small_deficit(self):
        d = self.controller.decide(70.0, 250.0, 300.0)
        self.assertAlmostEqual(d.charge_rate_kw, -50.0)
        self.assertEqual(d.grid_import_kw, 0.0)

    def test_out_of_band_soc_is_clamped_first(self):
        d = self.controller.decide(5.0, 300.0, 300.0)
        self.assertEqual(d.soc_percent, 20.0)
        d = self.controller.decide(100.0, 300.0, 300.0)
        self.assertEqual(d.soc_percent, 95.0)

    def test_battery_state_reports_capacity_and_health(self):
        d = self.controller.decide(50.0, 400.0, 300.0)
        state = self.controller.battery_state(d, ambient_temperature_c=30.0)
        self.assertEqual(state.capacity_kwh, 1000.0)
        self.assertTrue(95.0 <= state.health_percent <= 99.0)
        self.assertEqual(state.temperature_c, 25.0)
        self.assertTrue(state.is_charging)


class TestBatteryProperties(unittest.TestCase):
    """Properties that must hold across the whole input space."""

    def setUp(self):
        self.controller = BatteryController(BatteryConfig(), np.random.RandomState(0))
        self.socs = np.linspace(20, 95, 61)
        self.renewables = [0.0, 50.0, 150.0, 299.0, 300.0, 301.0, 450.0, 700.0]
        self.loads = [1.0, 150.0, 300.0, 600.0, 2000.0]

    def test_soc_stays_within_band(self):
        for soc in self.socs:
            for renewable in self.renewables:
                for load in self.loads:
                    d = self.controller.decide(float(soc), renewable, load)
                    self.assertGreaterEqual(d.soc_percent, 20.0)
                    self.assertLessEqual(d.soc_percent, 95.0)

    def test_grid_flows_are_exclusive_and_non_negative(self):
        for soc in self.socs:
            for renewable in self.renewables:
                for load in self.loads:
                    d = self.controller.decide(float(soc), renewable, load)
                    self.assertGreaterEqual(d.grid_import_kw, 0.0)
                    self.assertGreaterEqual(d.grid_export_kw, 0.0)
                    self.assertEqual(min(d.grid_import_kw, d.grid_export_kw), 0.0)

    def test_energy_balances(self):
        for soc in self.socs:
            for renewable in self.renewables:
                for load in self.loads:
                    d = self.controller.decide(float(soc), renewable, load)
                    supply = renewable + d.grid_import_kw - d.charge_rate_kw
                    self.assertAlmostEqual(supply, load + d.grid_export_kw, places=6)

    def test_never_discharges_with_surplus_and_headroom(self):
        for soc in self.socs[self.socs < 90]:
            for renewable in self.renewables:
                for load in self.loads:
                    if renewable >= load:
                        d = self.controller.decide(float(soc), renewable, load)
                        self.assertGreaterEqual(d.charge_rate_kw, 0.0)

    def test_floor_respected_on_deficit(self):
        for soc in self.socs[self.socs <= 25]:
            for renewable in self.renewables:
                for load in self.loads:
                    if renewable < load:
                        d = self.controller.decide(float(soc), renewable, load)
                        self.assertEqual(d.charge_rate_kw, 0.0)
                        self.assertEqual(d.grid_import_kw, d.deficit_kw)


if __name__ == "__main__":
    unittest.main()
