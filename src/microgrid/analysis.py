"""Trend analysis over a window of dispatch results."""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from .exceptions import AnalysisError
from .state import DispatchResult


@dataclass
class TrendSummary:
    """Averages and extremes over a window of ticks."""
    samples: int
    avg_solar_kw: float
    avg_wind_kw: float
    avg_soc_percent: float
    avg_load_kw: float
    peak_import_kw: float
    peak_export_kw: float
    renewable_share_pct: float


def results_to_frame(results: Sequence[DispatchResult]) -> pd.DataFrame:
    """Flatten dispatch results into a DataFrame indexed by timestamp."""
    rows = [
        {
            "timestamp": r.timestamp,
            "solar_kw": r.generation.solar_power_kw,
            "wind_kw": r.generation.wind_power_kw,
            "irradiance_wm2": r.generation.solar_irradiance_wm2,
            "wind_speed_ms": r.generation.wind_speed_ms,
            "target_load_kw": r.load.target_load_kw,
            "load_kw": r.load.actual_load_kw,
            "soc_percent": r.battery.soc_percent,
            "charge_rate_kw": r.battery.charge_rate_kw,
            "grid_import_kw": r.grid.import_kw,
            "grid_export_kw": r.grid.export_kw,
            "self_consumption_pct": r.mix.self_consumption_pct,
            "alerts": len(r.alerts)
        }
        for r in results
    ]
    frame = pd.DataFrame(rows)
    if not frame.empty:
        frame = frame.set_index("timestamp").sort_index()
    return frame


def summarize_trends(results: Sequence[DispatchResult]) -> TrendSummary:
    """Summarize the recent trend of a window of results."""
    if not results:
        raise AnalysisError("No results to analyze")

    frame = results_to_frame(results)
    renewable = frame["solar_kw"] + frame["wind_kw"]
    served = np.minimum(renewable, frame["load_kw"]).sum()
    total_load = frame["load_kw"].sum()

    return TrendSummary(
        samples=len(frame),
        avg_solar_kw=float(frame["solar_kw"].mean()),
        avg_wind_kw=float(frame["wind_kw"].mean()),
        avg_soc_percent=float(frame["soc_percent"].mean()),
        avg_load_kw=float(frame["load_kw"].mean()),
        peak_import_kw=float(frame["grid_import_kw"].max()),
        peak_export_kw=float(frame["grid_export_kw"].max()),
        renewable_share_pct=float(served / total_load * 100) if total_load > 0 else 0.0
    )
