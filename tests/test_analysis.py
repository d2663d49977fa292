"""Tests for trend analysis over stored results."""

import sys
from pathlib import Path
from datetime import datetime, timedelta
import unittest

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from microgrid import MicrogridEngine, MicrogridConfig
from microgrid.analysis import results_to_frame, summarize_trends
from microgrid.config import EngineConfig
from microgrid.exceptions import AnalysisError


class TestAnalysis(unittest.TestCase):
    """Test suite for the analysis helpers."""

    @classmethod
    def setUpClass(cls):
        engine = MicrogridEngine(MicrogridConfig(engine=EngineConfig(random_seed=8)))
        state = engine.default_state()
        ts = datetime(2024, 6, 1, 8, 0)
        cls.results = []
        for _ in range(40):
            result = engine.tick(state, ts)
            cls.results.append(result)
            state = result.next_state()
            ts += timedelta(minutes=10)

    def test_frame_indexed_by_timestamp(self):
        frame = results_to_frame(self.results)
        self.assertEqual(len(frame), 40)
        self.assertEqual(frame.index[0], self.results[0].timestamp)
        self.assertTrue(frame.index.is_monotonic_increasing)
        self.assertIn("soc_percent", frame.columns)

    def test_empty_frame(self):
        self.assertTrue(results_to_frame([]).empty)

    def test_summary(self):
        summary = summarize_trends(self.results)
        self.assertEqual(summary.samples, 40)
        self.assertAlmostEqual(
            summary.avg_solar_kw,
            sum(r.generation.solar_power_kw for r in self.results) / 40
        )
        self.assertEqual(summary.peak_import_kw, max(r.grid.import_kw for r in self.results))
        self.assertTrue(20.0 <= summary.avg_soc_percent <= 95.0)
        self.assertTrue(0.0 <= summary.renewable_share_pct <= 100.0)

    def test_summary_requires_results(self):
        with self.assertRaises(AnalysisError):
            summarize_trends([])


if __name__ == "__main__":
    unittest.main()
