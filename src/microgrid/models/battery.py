"""
Battery charge/discharge controller for the campus microgrid.

Renewables serve the load first. The battery absorbs surplus or covers
shortfall within its rate limits and safe state-of-charge band, and the grid
takes whatever remains in either direction.
"""

from dataclasses import dataclass
from typing import Optional
import logging

import numpy as np

from ..config import BatteryConfig
from ..state import BatteryState

# Each tick moves energy as if the rate were held for one minute.
MINUTES_PER_HOUR = 60.0


@dataclass(frozen=True)
class BatteryDecision:
    """Outcome of one controller step."""
    charge_rate_kw: float  # positive = charging
    soc_percent: float     # state of charge after the step
    grid_import_kw: float
    grid_export_kw: float
    renewable_to_load_kw: float
    excess_kw: float
    deficit_kw: float


class BatteryController:
    """Decides the battery rate for a tick and advances its state of charge."""

    def __init__(
        self,
        config: Optional[BatteryConfig] = None,
        rng: Optional[np.random.RandomState] = None
    ):
        self.config = config or BatteryConfig()
        self.rng = rng if rng is not None else np.random.RandomState()
        self.logger = logging.getLogger("microgrid.battery")

    def clamp_soc(self, soc_percent: float) -> float:
        """Clamp a state of charge into the permitted band."""
        return float(np.clip(soc_percent, self.config.min_soc, self.config.max_soc))

    def max_charge_power(self, soc_percent: float, excess_kw: float) -> float:
        """Charge rate allowed by surplus, hardware and headroom to the ceiling."""
        cfg = self.config
        headroom = (cfg.charge_ceiling_soc - soc_percent) * cfg.kw_per_soc_point
        return max(0.0, min(excess_kw * cfg.charge_fraction, cfg.max_charge_kw, headroom))

    def max_discharge_power(self, soc_percent: float, deficit_kw: float) -> float:
        """Discharge rate allowed by shortfall, hardware and margin above the floor."""
        cfg = self.config
        margin = (soc_percent - cfg.min_soc) * cfg.kw_per_soc_point
        return max(0.0, min(deficit_kw, cfg.max_discharge_kw, margin))

    def next_soc(self, soc_percent: float, charge_rate_kw: float) -> float:
        """State of charge after holding ``charge_rate_kw`` for one tick."""
        delta = charge_rate_kw / self.config.capacity_kwh * 100 / MINUTES_PER_HOUR
        return self.clamp_soc(soc_percent + delta)

    def decide(
        self,
        soc_percent: float,
        total_renewable_kw: float,
        target_load_kw: float
    ) -> BatteryDecision:
        """Run one renewables-first dispatch step.

        Args:
            soc_percent: State of charge carried from the previous tick.
            total_renewable_kw: Solar plus wind output.
            target_load_kw: Operator target load the dispatch balances against.

        Returns:
            The battery rate, the new state of charge and the grid remainders.
        """
        cfg = self.config
        soc = self.clamp_soc(soc_percent)

        renewable_to_load = min(total_renewable_kw, target_load_kw)
        excess = max(0.0, total_renewable_kw - target_load_kw)
        deficit = max(0.0, target_load_kw - total_renewable_kw)

        charge_rate = 0.0
        grid_import = 0.0
        grid_export = 0.0

        if excess > 0:
            if soc < cfg.charge_ceiling_soc:
                charge_rate = self.max_charge_power(soc, excess)
                grid_export = excess - charge_rate
            else:
                grid_export = excess
        elif deficit > 0:
            if soc > cfg.discharge_floor_soc:
                discharge_rate = self.max_discharge_power(soc, deficit)
                charge_rate = -discharge_rate
                grid_import = deficit - discharge_rate
            else:
                grid_import = deficit

        new_soc = self.next_soc(soc, charge_rate)

        self.logger.debug(
            f"SoC {soc:.2f}% -> {new_soc:.2f}%, rate {charge_rate:.1f} kW, "
            f"import {grid_import:.1f} kW, export {grid_export:.1f} kW"
        )

        return BatteryDecision(
            charge_rate_kw=float(charge_rate),
            soc_percent=new_soc,
            grid_import_kw=float(grid_import),
            grid_export_kw=float(grid_export),
            renewable_to_load_kw=float(renewable_to_load),
            excess_kw=float(excess),
            deficit_kw=float(deficit)
        )

    def battery_state(
        self,
        decision: BatteryDecision,
        ambient_temperature_c: Optional[float] = None
    ) -> BatteryState:
        """Battery telemetry for a decision."""
        cfg = self.config
        temperature = None
        if ambient_temperature_c is not None:
            temperature = ambient_temperature_c + cfg.temperature_offset_c

        return BatteryState(
            soc_percent=decision.soc_percent,
            charge_rate_kw=decision.charge_rate_kw,
            capacity_kwh=cfg.capacity_kwh,
            health_percent=float(self.rng.uniform(*cfg.health_range)),
            temperature_c=temperature
        )
