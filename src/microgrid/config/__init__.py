"""
Configuration package for the campus microgrid engine.
"""

from .base import (
    BaseConfig,
    ConfigFormat,
    ConfigValidationResult,
    section_from_dict
)

from .microgrid_config import (
    GenerationConfig,
    LoadConfig,
    BatteryConfig,
    AlertThresholds,
    EngineConfig,
    MonitoringConfig,
    MicrogridConfig
)

__all__ = [
    "BaseConfig",
    "ConfigFormat",
    "ConfigValidationResult",
    "section_from_dict",

    # Sections
    "GenerationConfig",
    "LoadConfig",
    "BatteryConfig",
    "AlertThresholds",
    "EngineConfig",
    "MonitoringConfig",

    "MicrogridConfig"
]
