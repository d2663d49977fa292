"""Tests for the hourly forecast projector and forecast requests."""

import sys
from pathlib import Path
from datetime import datetime
import unittest

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from microgrid.exceptions import ValidationRangeError
from microgrid.forecasting import (
    ForecastProjector, ForecastType, parse_timeframe, project_hour, request_forecast
)
from microgrid.simulation import Simulator
from microgrid.config import MicrogridConfig


class TestForecastProjector(unittest.TestCase):
    """Test suite for the deterministic projection."""

    def setUp(self):
        self.projector = ForecastProjector()
        self.reference = datetime(2024, 6, 1, 21, 40)

    def test_horizon_lengths(self):
        self.assertEqual(len(list(self.projector.project(self.reference, 6))), 6)
        self.assertEqual(len(list(self.projector.project(self.reference, 24))), 24)

    def test_hours_start_after_reference_and_wrap(self):
        hours = [r.hour for r in self.projector.project(self.reference, 6)]
        self.assertEqual(hours, [22, 23, 0, 1, 2, 3])

        hours = [r.hour for r in self.projector.project(self.reference, 24)]
        self.assertEqual(hours[-1], 21)
        self.assertEqual(sorted(hours), list(range(24)))

    def test_idempotent(self):
        first = list(self.projector.project(self.reference, 24))
        second = list(self.projector.project(self.reference, 24))
        self.assertEqual(first, second)

    def test_projection_is_restartable(self):
        projection = self.projector.project(self.reference, 6)
        self.assertEqual(list(projection), list(projection))

    def test_noon_values(self):
        record = project_hour(12)
        self.assertAlmostEqual(record.solar, 450.0)
        self.assertAlmostEqual(record.wind, 50.0)
        self.assertAlmostEqual(record.load, 250 + 200 * 2 ** 0.5 / 2)
        self.assertEqual(record.battery_action, "charge")

    def test_midnight_values(self):
        record = project_hour(0)
        self.assertEqual(record.solar, 0.0)
        self.assertAlmostEqual(record.wind, 50.0)
        self.assertAlmostEqual(record.load, 50.0)
        self.assertEqual(record.battery_action, "discharge")

    def test_night_has_no_solar(self):
        for hour in [19, 20, 23, 0, 5]:
            self.assertEqual(project_hour(hour).solar, 0.0)

    def test_invalid_horizon(self):
        with self.assertRaises(ValidationRangeError):
            self.projector.project(self.reference, 12)

    def test_to_list_rounds_values(self):
        rows = self.projector.project(datetime(2024, 6, 1, 11, 0), 6).to_list()
        self.assertEqual(rows[0], {
            "hour": 12, "solar": 450, "wind": 50, "load": 391, "batteryAction": "charge"
        })


class TestForecastRequests(unittest.TestCase):
    """Test suite for the optimize/forecast selector."""

    def test_parse_timeframe(self):
        self.assertEqual(parse_timeframe("6h"), 6)
        self.assertEqual(parse_timeframe("24h"), 24)
        with self.assertRaises(ValidationRangeError):
            parse_timeframe("12h")

    def test_forecast_request_carries_hourly_table(self):
        report = request_forecast("forecast", "6h", reference=datetime(2024, 6, 1, 8, 0))
        self.assertIs(report.type, ForecastType.FORECAST)
        self.assertEqual(len(report.hourly_forecast), 6)
        self.assertEqual(report.primary, report.hourly_forecast)
        self.assertEqual(report.recommendations, [])

    def test_optimize_request_without_history(self):
        report = request_forecast("optimize", reference=datetime(2024, 6, 1, 8, 0))
        self.assertIs(report.type, ForecastType.OPTIMIZE)
        self.assertEqual(report.hourly_forecast, [])
        self.assertEqual(report.primary, report.recommendations)

        battery, solar = report.recommendations
        self.assertEqual((battery.priority, battery.action), ("high", "Charge battery urgently"))
        self.assertEqual((solar.priority, solar.action), ("low", "Wait for better conditions"))
        self.assertEqual(len(report.next_actions), 3)

    def test_optimize_request_uses_latest_result(self):
        sim = Simulator(MicrogridConfig.from_dict({"engine": {"random_seed": 5}}))
        try:
            result = sim.step(datetime(2024, 6, 1, 12, 0))
        finally:
            sim.close()

        report = request_forecast("optimize", "24h", latest=result)
        self.assertEqual(report.current_conditions["soc_percent"], result.battery.soc_percent)
        battery = report.recommendations[0]
        self.assertEqual(battery.action, "Optimize charging schedule")
        self.assertIn(f"{result.battery.soc_percent:.1f}%", report.next_actions[0])

    def test_unknown_type_rejected(self):
        with self.assertRaises(ValidationRangeError):
            request_forecast("narrative")


if __name__ == "__main__":
    unittest.main()
