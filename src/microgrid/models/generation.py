"""
Solar and wind generation model.

Generation follows deterministic diurnal curves scaled by bounded random
factors. All randomness comes from the injected ``numpy.random.RandomState``
so ticks can be reproduced from a seed.
"""

from datetime import datetime
from typing import Optional

import numpy as np

from ..config import GenerationConfig
from ..state import GenerationSample, AmbientConditions


def _fractional_hour(timestamp: datetime) -> float:
    return timestamp.hour + timestamp.minute / 60 + timestamp.second / 3600


class GenerationModel:
    """Produces a ``GenerationSample`` for a timestamp."""

    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        rng: Optional[np.random.RandomState] = None
    ):
        self.config = config or GenerationConfig()
        self.rng = rng if rng is not None else np.random.RandomState()

    def solar_irradiance(self, timestamp: datetime) -> float:
        """Irradiance in W/m², zero outside the daylight window."""
        cfg = self.config
        if not cfg.sunrise_hour <= timestamp.hour < cfg.sunset_hour:
            return 0.0

        day_length = cfg.sunset_hour - cfg.sunrise_hour
        day_progress = (timestamp.hour - cfg.sunrise_hour + timestamp.minute / 60) / day_length
        irradiance = np.sin(day_progress * np.pi) * cfg.peak_irradiance_wm2
        irradiance *= self.rng.uniform(*cfg.irradiance_variation)
        return max(0.0, float(irradiance))

    def solar_power(self, irradiance: float) -> float:
        """Array output in kW for a given irradiance."""
        cfg = self.config
        efficiency = self.rng.uniform(*cfg.solar_efficiency_range)
        power = irradiance / cfg.peak_irradiance_wm2 * cfg.solar_capacity_kw * efficiency
        return max(0.0, float(power))

    def wind_speed(self, timestamp: datetime) -> float:
        """Hub wind speed in m/s."""
        speed = (
            3 +
            np.sin(_fractional_hour(timestamp) * np.pi / 12) * 4 +
            self.rng.uniform(0, 3)
        )
        return max(0.0, float(speed))

    def wind_power(self, wind_speed: float) -> float:
        """Turbine output in kW; linear ramp from cut-in to rated speed."""
        cfg = self.config
        if wind_speed <= cfg.cut_in_speed_ms:
            return 0.0

        ramp = (wind_speed - cfg.cut_in_speed_ms) / (cfg.rated_speed_ms - cfg.cut_in_speed_ms)
        power = min(ramp * cfg.wind_capacity_kw, cfg.wind_capacity_kw)
        power *= self.rng.uniform(*cfg.wind_efficiency_range)
        return max(0.0, float(power))

    def sample(self, timestamp: datetime) -> GenerationSample:
        """Generate solar and wind output for ``timestamp``."""
        irradiance = self.solar_irradiance(timestamp)
        solar_power = self.solar_power(irradiance)

        speed = self.wind_speed(timestamp)
        direction = float(self.rng.uniform(0, 360))
        wind_power = self.wind_power(speed)

        return GenerationSample(
            timestamp=timestamp,
            solar_irradiance_wm2=irradiance,
            solar_power_kw=solar_power,
            wind_speed_ms=speed,
            wind_direction_deg=direction,
            wind_power_kw=wind_power,
            solar_forecast_kw=solar_power * self.config.solar_forecast_factor,
            wind_forecast_kw=wind_power * self.config.wind_forecast_factor
        )

    def ambient(self, timestamp: datetime) -> AmbientConditions:
        """Site temperature and cloud cover, reported but not dispatched on."""
        hour = _fractional_hour(timestamp)
        temperature = 25 + np.sin(hour * np.pi / 12) * 15 + self.rng.uniform(-2, 2)
        cloud_cover = 30 + np.sin(timestamp.hour * np.pi / 8) * 40 + self.rng.uniform(-15, 15)

        return AmbientConditions(
            temperature_c=float(temperature),
            cloud_cover_pct=float(np.clip(cloud_cover, 0, 100))
        )
