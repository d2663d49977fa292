"""Data records exchanged by the microgrid dispatch engine."""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional, Tuple

DEFAULT_SOC_PERCENT = 50.0
DEFAULT_TARGET_LOAD_KW = 300.0


class AlertType(str, Enum):
    """Severity of an alert."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class GenerationSample:
    """Solar and wind generation for one tick."""
    timestamp: datetime
    solar_irradiance_wm2: float  # W/m²
    solar_power_kw: float
    wind_speed_ms: float  # m/s
    wind_direction_deg: float
    wind_power_kw: float
    solar_forecast_kw: float = 0.0
    wind_forecast_kw: float = 0.0

    @property
    def total_renewable_kw(self) -> float:
        """Combined solar and wind output."""
        return self.solar_power_kw + self.wind_power_kw


@dataclass(frozen=True)
class AmbientConditions:
    """Simulated site weather reported alongside generation."""
    temperature_c: float
    cloud_cover_pct: float


@dataclass(frozen=True)
class LoadSample:
    """Campus load for one tick, split into sub-loads."""
    target_load_kw: float
    actual_load_kw: float
    hvac_kw: float
    lighting_kw: float
    equipment_kw: float
    other_kw: float
    forecast_kw: float


@dataclass(frozen=True)
class BatteryState:
    """Battery state after a tick (positive charge rate = charging)."""
    soc_percent: float
    charge_rate_kw: float
    capacity_kwh: float
    health_percent: float
    temperature_c: Optional[float] = None

    @property
    def is_charging(self) -> bool:
        return self.charge_rate_kw > 0

    @property
    def is_discharging(self) -> bool:
        return self.charge_rate_kw < 0


@dataclass(frozen=True)
class GridFlow:
    """Grid exchange; at most one of import and export is non-zero."""
    import_kw: float
    export_kw: float
    frequency_hz: Optional[float] = None
    voltages: Tuple[float, float, float] = ()

    @property
    def net_kw(self) -> float:
        """Net grid draw (positive = importing)."""
        return self.import_kw - self.export_kw


@dataclass(frozen=True)
class EnergyMix:
    """Share of supply by source, in percent."""
    solar_pct: float
    wind_pct: float
    battery_pct: float
    grid_pct: float
    self_consumption_pct: float
    total_generation_kw: float
    total_consumption_kw: float


@dataclass(frozen=True)
class Alert:
    """Condition-based notification raised by a tick."""
    type: AlertType
    category: str
    title: str
    description: str
    priority: int  # 1 = low .. 3 = high
    timestamp: datetime
    recommendation: Optional[str] = None
    active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "recommendation": self.recommendation,
            "priority": self.priority,
            "timestamp": self.timestamp.isoformat(),
            "active": self.active
        }


@dataclass
class SystemState:
    """State carried from one tick to the next."""
    soc_percent: float = DEFAULT_SOC_PERCENT
    target_load_kw: float = DEFAULT_TARGET_LOAD_KW
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class DispatchResult:
    """Complete output of a single dispatch tick."""
    generation: GenerationSample
    load: LoadSample
    battery: BatteryState
    grid: GridFlow
    mix: EnergyMix
    alerts: Tuple[Alert, ...] = field(default_factory=tuple)
    ambient: Optional[AmbientConditions] = None

    @property
    def timestamp(self) -> datetime:
        return self.generation.timestamp

    def next_state(self) -> SystemState:
        """State to feed into the following tick."""
        return SystemState(
            soc_percent=self.battery.soc_percent,
            target_load_kw=self.load.target_load_kw,
            timestamp=self.timestamp
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dictionary for transports."""
        data = {
            "generation": asdict(self.generation),
            "load": asdict(self.load),
            "battery": asdict(self.battery),
            "grid": asdict(self.grid),
            "mix": asdict(self.mix),
            "alerts": [alert.to_dict() for alert in self.alerts],
            "ambient": asdict(self.ambient) if self.ambient else None
        }
        data["generation"]["timestamp"] = self.timestamp.isoformat()
        data["grid"]["voltages"] = list(self.grid.voltages)
        return data
