"""Tests for the generation and load models."""

import sys
from pathlib import Path
from datetime import datetime
import unittest

import numpy as np

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from microgrid.config import GenerationConfig, LoadConfig
from microgrid.models import GenerationModel, LoadModel


class TestGenerationModel(unittest.TestCase):
    """Test suite for solar and wind generation."""

    def setUp(self):
        self.model = GenerationModel(GenerationConfig(), np.random.RandomState(7))

    def test_no_solar_at_night(self):
        for hour in [0, 3, 5, 18, 21, 23]:
            sample = self.model.sample(datetime(2024, 6, 1, hour, 30))
            self.assertEqual(sample.solar_irradiance_wm2, 0.0)
            self.assertEqual(sample.solar_power_kw, 0.0)

    def test_solar_noon_within_bands(self):
        for _ in range(50):
            sample = self.model.sample(datetime(2024, 6, 1, 12, 0))
            self.assertGreaterEqual(sample.solar_irradiance_wm2, 800.0)
            self.assertLessEqual(sample.solar_irradiance_wm2, 1200.0)
            ratio = sample.solar_power_kw / (sample.solar_irradiance_wm2 / 1000 * 500)
            self.assertGreaterEqual(ratio, 0.85)
            self.assertLessEqual(ratio, 1.15)

    def test_solar_forecast_is_optimistic(self):
        sample = self.model.sample(datetime(2024, 6, 1, 10, 0))
        self.assertAlmostEqual(sample.solar_forecast_kw, sample.solar_power_kw * 1.05)
        self.assertAlmostEqual(sample.wind_forecast_kw, sample.wind_power_kw * 1.02)

    def test_wind_below_cut_in_produces_nothing(self):
        self.assertEqual(self.model.wind_power(0.0), 0.0)
        self.assertEqual(self.model.wind_power(2.9), 0.0)
        self.assertEqual(self.model.wind_power(3.0), 0.0)

    def test_wind_power_ramp(self):
        for _ in range(50):
            power = self.model.wind_power(9.0)
            self.assertGreaterEqual(power, 70.0)
            self.assertLessEqual(power, 130.0)

    def test_wind_power_capped_above_rated_speed(self):
        for _ in range(50):
            power = self.model.wind_power(25.0)
            self.assertGreaterEqual(power, 140.0)
            self.assertLessEqual(power, 260.0)

    def test_outputs_never_negative_or_nan(self):
        for minute in range(0, 24 * 60, 7):
            ts = datetime(2024, 6, 1, minute // 60, minute % 60, minute % 60)
            sample = self.model.sample(ts)
            for value in [
                sample.solar_irradiance_wm2, sample.solar_power_kw,
                sample.wind_speed_ms, sample.wind_power_kw
            ]:
                self.assertFalse(np.isnan(value))
                self.assertGreaterEqual(value, 0.0)
            self.assertGreaterEqual(sample.wind_direction_deg, 0.0)
            self.assertLess(sample.wind_direction_deg, 360.0)

    def test_seeded_models_are_reproducible(self):
        a = GenerationModel(rng=np.random.RandomState(3))
        b = GenerationModel(rng=np.random.RandomState(3))
        ts = datetime(2024, 6, 1, 11, 15, 20)
        self.assertEqual(a.sample(ts), b.sample(ts))

    def test_ambient_cloud_cover_bounded(self):
        for hour in range(24):
            ambient = self.model.ambient(datetime(2024, 6, 1, hour, 0))
            self.assertGreaterEqual(ambient.cloud_cover_pct, 0.0)
            self.assertLessEqual(ambient.cloud_cover_pct, 100.0)


class TestLoadModel(unittest.TestCase):
    """Test suite for the campus load model."""

    def setUp(self):
        self.model = LoadModel(LoadConfig(), np.random.RandomState(11))

    def test_sub_loads_sum_exactly(self):
        for target in [1.0, 37.5, 300.0, 1234.56, 2000.0]:
            for _ in range(100):
                s = self.model.sample(target)
                self.assertEqual(s.hvac_kw + s.lighting_kw + s.equipment_kw + s.other_kw,
                                 s.actual_load_kw)

    def test_sub_load_proportions(self):
        s = self.model.sample(300.0)
        self.assertAlmostEqual(s.hvac_kw, s.actual_load_kw * 0.4)
        self.assertAlmostEqual(s.lighting_kw, s.actual_load_kw * 0.2)
        self.assertAlmostEqual(s.equipment_kw, s.actual_load_kw * 0.3)
        self.assertAlmostEqual(s.other_kw, s.actual_load_kw * 0.1)

    def test_noise_is_bounded(self):
        for _ in range(200):
            s = self.model.sample(300.0)
            self.assertEqual(s.target_load_kw, 300.0)
            self.assertLessEqual(abs(s.actual_load_kw - 300.0), 10.0)

    def test_small_target_never_negative(self):
        for _ in range(200):
            self.assertGreaterEqual(self.model.sample(1.0).actual_load_kw, 0.0)

    def test_forecast(self):
        s = self.model.sample(500.0)
        self.assertAlmostEqual(s.forecast_kw, s.actual_load_kw * 1.03)


if __name__ == "__main__":
    unittest.main()
