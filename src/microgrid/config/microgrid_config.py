"""
Main microgrid configuration class that integrates all configuration sections.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional, Tuple
import logging

from .base import BaseConfig, ConfigValidationResult, section_from_dict
from ..exceptions import ValidationError
from ..validation import validate_target_load


def _check_band(result: ConfigValidationResult, name: str, band: Tuple[float, float]) -> None:
    if len(band) != 2:
        result.add_error(f"{name} must have exactly two values, got {band}")
    elif band[0] > band[1]:
        result.add_error(f"{name} lower bound exceeds upper bound: {band}")
    elif band[0] < 0:
        result.add_error(f"{name} must be non-negative, got {band}")


@dataclass
class GenerationConfig:
    """Solar array and wind turbine parameters."""
    solar_capacity_kw: float = 500.0
    peak_irradiance_wm2: float = 1000.0
    sunrise_hour: int = 6
    sunset_hour: int = 18
    irradiance_variation: Tuple[float, float] = (0.8, 1.2)
    solar_efficiency_range: Tuple[float, float] = (0.85, 1.15)
    wind_capacity_kw: float = 200.0
    cut_in_speed_ms: float = 3.0
    rated_speed_ms: float = 15.0
    wind_efficiency_range: Tuple[float, float] = (0.70, 1.30)
    solar_forecast_factor: float = 1.05
    wind_forecast_factor: float = 1.02

    def validate(self) -> ConfigValidationResult:
        """Validate generation configuration."""
        result = ConfigValidationResult(is_valid=True)

        if self.solar_capacity_kw < 0:
            result.add_error(f"Solar capacity must be >= 0, got {self.solar_capacity_kw}")
        if self.wind_capacity_kw < 0:
            result.add_error(f"Wind capacity must be >= 0, got {self.wind_capacity_kw}")
        if self.peak_irradiance_wm2 <= 0:
            result.add_error(f"Peak irradiance must be > 0, got {self.peak_irradiance_wm2}")
        if not 0 <= self.sunrise_hour < self.sunset_hour <= 24:
            result.add_error(
                f"Daylight window invalid: {self.sunrise_hour}-{self.sunset_hour}"
            )
        if self.cut_in_speed_ms < 0:
            result.add_error(f"Cut-in speed must be >= 0, got {self.cut_in_speed_ms}")
        if self.rated_speed_ms <= self.cut_in_speed_ms:
            result.add_error("Rated speed must be greater than cut-in speed")

        _check_band(result, "irradiance_variation", self.irradiance_variation)
        _check_band(result, "solar_efficiency_range", self.solar_efficiency_range)
        _check_band(result, "wind_efficiency_range", self.wind_efficiency_range)

        return result


@dataclass
class LoadConfig:
    """Campus load model parameters."""
    noise_kw: float = 10.0
    hvac_share: float = 0.4
    lighting_share: float = 0.2
    equipment_share: float = 0.3
    forecast_factor: float = 1.03

    @property
    def other_share(self) -> float:
        return 1.0 - self.hvac_share - self.lighting_share - self.equipment_share

    def validate(self) -> ConfigValidationResult:
        """Validate load configuration."""
        result = ConfigValidationResult(is_valid=True)

        if self.noise_kw < 0:
            result.add_error(f"Load noise must be >= 0, got {self.noise_kw}")

        for name in ("hvac_share", "lighting_share", "equipment_share"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                result.add_error(f"{name} must be between 0 and 1, got {value}")

        if self.other_share < -1e-9:
            result.add_error("Sub-load shares exceed 1.0")

        if self.forecast_factor <= 0:
            result.add_error(f"Forecast factor must be > 0, got {self.forecast_factor}")

        return result


@dataclass
class BatteryConfig:
    """Battery limits used by the charge/discharge controller."""
    capacity_kwh: float = 1000.0
    min_soc: float = 20.0
    max_soc: float = 95.0
    charge_ceiling_soc: float = 90.0
    discharge_floor_soc: float = 25.0
    max_charge_kw: float = 200.0
    max_discharge_kw: float = 150.0
    charge_fraction: float = 0.9
    kw_per_soc_point: float = 10.0
    health_range: Tuple[float, float] = (95.0, 99.0)
    temperature_offset_c: float = -5.0

    def validate(self) -> ConfigValidationResult:
        """Validate battery configuration."""
        result = ConfigValidationResult(is_valid=True)

        if self.capacity_kwh <= 0:
            result.add_error(f"Capacity must be > 0, got {self.capacity_kwh}")
        if not 0 <= self.min_soc < self.max_soc <= 100:
            result.add_error(f"SoC band invalid: {self.min_soc}-{self.max_soc}")
        if not self.min_soc <= self.charge_ceiling_soc <= self.max_soc:
            result.add_error("Charge ceiling must lie within the SoC band")
        if not self.min_soc <= self.discharge_floor_soc <= self.max_soc:
            result.add_error("Discharge floor must lie within the SoC band")
        if self.max_charge_kw < 0 or self.max_discharge_kw < 0:
            result.add_error("Charge and discharge limits must be >= 0")
        if not 0 < self.charge_fraction <= 1:
            result.add_error(f"Charge fraction must be in (0, 1], got {self.charge_fraction}")
        if self.kw_per_soc_point <= 0:
            result.add_error(f"kW per SoC point must be > 0, got {self.kw_per_soc_point}")

        _check_band(result, "health_range", self.health_range)

        return result


@dataclass
class AlertThresholds:
    """Trigger levels for the alert rules."""
    low_soc_percent: float = 30.0
    strong_solar_kw: float = 400.0
    solar_charge_soc_percent: float = 80.0
    strong_wind_kw: float = 150.0
    high_import_kw: float = 200.0
    high_export_kw: float = 100.0

    def validate(self) -> ConfigValidationResult:
        """Validate alert thresholds."""
        result = ConfigValidationResult(is_valid=True)

        for name, value in asdict(self).items():
            if value < 0:
                result.add_error(f"{name} must be >= 0, got {value}")

        if self.low_soc_percent > 100 or self.solar_charge_soc_percent > 100:
            result.add_error("SoC thresholds must be <= 100")

        return result


@dataclass
class EngineConfig:
    """Tick loop and external store settings."""
    tick_interval_seconds: float = 3.0
    random_seed: Optional[int] = None
    default_soc_percent: float = 50.0
    default_target_load_kw: float = 300.0
    store_timeout_seconds: float = 2.0
    store_max_attempts: int = 3
    store_retry_delay: float = 0.1
    history_size: int = 1000

    def validate(self) -> ConfigValidationResult:
        """Validate engine configuration."""
        result = ConfigValidationResult(is_valid=True)

        if self.tick_interval_seconds <= 0:
            result.add_error(f"Tick interval must be > 0, got {self.tick_interval_seconds}")

        if not 20 <= self.default_soc_percent <= 95:
            result.add_error(
                f"Default SoC must be between 20 and 95, got {self.default_soc_percent}"
            )

        try:
            validate_target_load(self.default_target_load_kw)
        except ValidationError as e:
            result.add_error(f"Default target load invalid: {e}")

        if self.store_timeout_seconds <= 0:
            result.add_error(f"Store timeout must be > 0, got {self.store_timeout_seconds}")

        if not 1 <= self.store_max_attempts <= 5:
            result.add_error(
                f"Store attempts must be between 1 and 5, got {self.store_max_attempts}"
            )

        if self.store_retry_delay < 0:
            result.add_error(f"Retry delay must be >= 0, got {self.store_retry_delay}")

        if self.history_size <= 0:
            result.add_error(f"History size must be > 0, got {self.history_size}")

        return result


@dataclass
class MonitoringConfig:
    """Logging configuration."""
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def validate(self) -> ConfigValidationResult:
        """Validate monitoring configuration."""
        result = ConfigValidationResult(is_valid=True)

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            result.add_error(f"Invalid log level: {self.log_level}")

        return result


@dataclass
class MicrogridConfig(BaseConfig):
    """Main microgrid configuration class."""

    name: str = "Campus Microgrid"
    description: str = ""
    location: str = ""

    generation: GenerationConfig = field(default_factory=GenerationConfig)
    load: LoadConfig = field(default_factory=LoadConfig)
    battery: BatteryConfig = field(default_factory=BatteryConfig)
    alerts: AlertThresholds = field(default_factory=AlertThresholds)
    engine: EngineConfig = field(default_factory=EngineConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    config_version: str = "1.0"

    def setup_logging(self) -> logging.Logger:
        """Configure the ``microgrid`` logger from the monitoring section."""
        logger = logging.getLogger("microgrid")
        logger.setLevel(getattr(logging, self.monitoring.log_level, logging.INFO))

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        if not any(type(h) is logging.StreamHandler for h in logger.handlers):
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        if self.monitoring.log_file:
            file_handler = logging.FileHandler(self.monitoring.log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        return logger

    def validate(self) -> ConfigValidationResult:
        """Validate the entire microgrid configuration."""
        result = ConfigValidationResult(is_valid=True)

        if not self.name:
            result.add_error("Microgrid name cannot be empty")

        sections = [
            ("generation", self.generation),
            ("load", self.load),
            ("battery", self.battery),
            ("alerts", self.alerts),
            ("engine", self.engine),
            ("monitoring", self.monitoring)
        ]

        for section_name, section in sections:
            result.merge(section.validate(), prefix=f"{section_name}: ")

        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        data = asdict(self)
        # YAML safe_dump cannot represent tuples
        for section in data.values():
            if isinstance(section, dict):
                for key, value in section.items():
                    if isinstance(value, tuple):
                        section[key] = list(value)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MicrogridConfig':
        """Create configuration from dictionary."""
        return cls(
            name=data.get("name", "Campus Microgrid"),
            description=data.get("description", ""),
            location=data.get("location", ""),
            generation=section_from_dict(GenerationConfig, data.get("generation", {})),
            load=section_from_dict(LoadConfig, data.get("load", {})),
            battery=section_from_dict(BatteryConfig, data.get("battery", {})),
            alerts=section_from_dict(AlertThresholds, data.get("alerts", {})),
            engine=section_from_dict(EngineConfig, data.get("engine", {})),
            monitoring=section_from_dict(MonitoringConfig, data.get("monitoring", {})),
            config_version=data.get("config_version", "1.0")
        )

    def validate_and_log(self) -> bool:
        """Validate configuration and log results."""
        result = self.validate()

        logger = logging.getLogger("microgrid.config")

        if result.is_valid:
            logger.info("Configuration validation passed")
        else:
            logger.error("Configuration validation failed")
            for error in result.errors:
                logger.error(f"Validation error: {error}")

        for warning in result.warnings:
            logger.warning(f"Validation warning: {warning}")

        return result.is_valid
