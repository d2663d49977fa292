"""
Hourly projection of solar, wind and load for planning.

The projection is a fixed sinusoidal profile of the hour of day. It does not
look at live state and draws no random numbers, so it can be recomputed any
number of times and run alongside dispatch ticks without coordination.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

import numpy as np

from .exceptions import ValidationRangeError
from .state import DispatchResult
from .validation import validate_horizon

SOLAR_PEAK_KW = 450.0
WIND_BASE_KW = 50.0
WIND_SWING_KW = 100.0
LOAD_BASE_KW = 250.0
LOAD_SWING_KW = 200.0

TIMEFRAMES = {"6h": 6, "24h": 24}


class ForecastType(str, Enum):
    """Which payload a forecast request puts first."""
    OPTIMIZE = "optimize"
    FORECAST = "forecast"


@dataclass(frozen=True)
class HourlyForecast:
    """Projected conditions for one hour of the day."""
    hour: int
    solar: float
    wind: float
    load: float
    battery_action: str  # "charge" or "discharge"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hour": self.hour,
            "solar": round(self.solar),
            "wind": round(self.wind),
            "load": round(self.load),
            "batteryAction": self.battery_action
        }


def project_hour(hour: int) -> HourlyForecast:
    """Projected solar, wind and load for an hour of the day."""
    if 6 <= hour <= 18:
        solar = float(np.sin((hour - 6) / 12 * np.pi) * SOLAR_PEAK_KW)
    else:
        solar = 0.0

    wind = float(WIND_BASE_KW + np.sin(hour * np.pi / 12) * WIND_SWING_KW)
    load = float(LOAD_BASE_KW + np.sin((hour - 8) * np.pi / 16) * LOAD_SWING_KW)

    return HourlyForecast(
        hour=hour,
        solar=solar,
        wind=wind,
        load=load,
        battery_action="charge" if solar > load else "discharge"
    )


class ForecastProjection:
    """Lazy, restartable sequence of hourly forecasts after a reference time.

    Each iteration recomputes the records, starting at the hour after
    ``reference``.
    """

    def __init__(self, reference: datetime, horizon: int = 24):
        self.reference = reference
        self.horizon = validate_horizon(horizon)

    def __iter__(self) -> Iterator[HourlyForecast]:
        for i in range(1, self.horizon + 1):
            yield project_hour((self.reference.hour + i) % 24)

    def __len__(self) -> int:
        return self.horizon

    def to_list(self) -> List[Dict[str, Any]]:
        return [record.to_dict() for record in self]


class ForecastProjector:
    """Produces hourly projections; holds no state."""

    def project(self, reference: datetime, horizon: int = 24) -> ForecastProjection:
        return ForecastProjection(reference, horizon)


def parse_timeframe(timeframe: str) -> int:
    """Map a timeframe label such as ``"6h"`` to a horizon in hours."""
    try:
        return TIMEFRAMES[timeframe]
    except KeyError:
        raise ValidationRangeError(
            f"Unknown timeframe {timeframe!r}, expected one of {sorted(TIMEFRAMES)}"
        ) from None


@dataclass(frozen=True)
class Recommendation:
    """Actionable suggestion derived from current conditions."""
    category: str
    priority: str  # "high", "medium" or "low"
    action: str
    impact: str


def optimization_recommendations(soc_percent: float, solar_power_kw: float) -> List[Recommendation]:
    """Battery and solar recommendations for the current conditions."""
    return [
        Recommendation(
            category="battery",
            priority="high" if soc_percent < 50 else "medium",
            action="Charge battery urgently" if soc_percent < 30 else "Optimize charging schedule",
            impact="High"
        ),
        Recommendation(
            category="solar",
            priority="high" if solar_power_kw > 300 else "low",
            action="Maximize solar utilization" if solar_power_kw > 300 else "Wait for better conditions",
            impact="Medium"
        )
    ]


def next_actions(soc_percent: float) -> List[str]:
    return [
        f"Monitor battery SoC (currently {soc_percent:.1f}%)",
        "Optimize HVAC schedule based on solar availability",
        "Consider load shifting for non-critical equipment"
    ]


@dataclass
class ForecastReport:
    """Structured answer to a forecast request."""
    type: ForecastType
    timeframe: str
    timestamp: datetime
    hourly_forecast: List[HourlyForecast] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    next_actions: List[str] = field(default_factory=list)
    current_conditions: Dict[str, float] = field(default_factory=dict)

    @property
    def primary(self) -> List[Any]:
        """The payload the request type asked for."""
        if self.type is ForecastType.FORECAST:
            return self.hourly_forecast
        return self.recommendations


def _current_conditions(latest: Optional[DispatchResult]) -> Dict[str, float]:
    if latest is None:
        return {}
    return {
        "solar_power_kw": latest.generation.solar_power_kw,
        "solar_irradiance_wm2": latest.generation.solar_irradiance_wm2,
        "wind_power_kw": latest.generation.wind_power_kw,
        "wind_speed_ms": latest.generation.wind_speed_ms,
        "soc_percent": latest.battery.soc_percent,
        "charge_rate_kw": latest.battery.charge_rate_kw,
        "total_load_kw": latest.load.actual_load_kw,
        "grid_import_kw": latest.grid.import_kw,
        "grid_export_kw": latest.grid.export_kw
    }


def request_forecast(
    request_type: str = "optimize",
    timeframe: str = "24h",
    reference: Optional[datetime] = None,
    latest: Optional[DispatchResult] = None
) -> ForecastReport:
    """Build a forecast report for a request.

    ``forecast`` requests carry the hourly table; ``optimize`` requests carry
    recommendations for the latest conditions (zeros when none are known).
    """
    try:
        kind = ForecastType(request_type)
    except ValueError:
        raise ValidationRangeError(
            f"Unknown forecast type {request_type!r}, expected 'optimize' or 'forecast'"
        ) from None

    horizon = parse_timeframe(timeframe)
    reference = reference or datetime.now()
    conditions = _current_conditions(latest)

    report = ForecastReport(
        type=kind,
        timeframe=timeframe,
        timestamp=reference,
        current_conditions=conditions
    )

    if kind is ForecastType.FORECAST:
        report.hourly_forecast = list(ForecastProjector().project(reference, horizon))
    else:
        soc = conditions.get("soc_percent", 0.0)
        solar = conditions.get("solar_power_kw", 0.0)
        report.recommendations = optimization_recommendations(soc, solar)
        report.next_actions = next_actions(soc)

    return report
