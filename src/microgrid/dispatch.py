"""Dispatch allocation: grid exchange and energy mix for a tick."""

from typing import Optional, Tuple

import numpy as np

from .models.battery import BatteryDecision
from .state import GenerationSample, LoadSample, GridFlow, EnergyMix

NOMINAL_FREQUENCY_HZ = 50.0
NOMINAL_VOLTAGE_V = 230.0


def _percent(part: float, whole: float) -> float:
    """Percentage of ``part`` in ``whole``, 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0.0
    return part / whole * 100


def grid_flow(decision: BatteryDecision) -> GridFlow:
    """Grid import/export from the controller remainders."""
    return GridFlow(
        import_kw=max(0.0, decision.grid_import_kw),
        export_kw=max(0.0, decision.grid_export_kw)
    )


def energy_mix(
    generation: GenerationSample,
    load: LoadSample,
    decision: BatteryDecision,
    grid: GridFlow
) -> EnergyMix:
    """Share of supply by source.

    All four shares use the same denominator: renewable output plus battery
    discharge plus grid import.
    """
    renewable = generation.total_renewable_kw
    battery_discharge = max(0.0, -decision.charge_rate_kw)
    total_supply = renewable + battery_discharge + grid.import_kw
    actual_load = load.actual_load_kw

    return EnergyMix(
        solar_pct=_percent(generation.solar_power_kw, total_supply),
        wind_pct=_percent(generation.wind_power_kw, total_supply),
        battery_pct=_percent(battery_discharge, total_supply),
        grid_pct=_percent(grid.import_kw, total_supply),
        self_consumption_pct=_percent(min(renewable, actual_load), actual_load),
        total_generation_kw=renewable,
        total_consumption_kw=actual_load
    )


class DispatchAllocator:
    """Combines generation, load and the battery decision into grid flows and mix."""

    def __init__(self, rng: Optional[np.random.RandomState] = None):
        self.rng = rng if rng is not None else np.random.RandomState()

    def grid_telemetry(self) -> Tuple[float, Tuple[float, float, float]]:
        """Simulated frequency and phase voltages at the point of connection."""
        frequency = NOMINAL_FREQUENCY_HZ + self.rng.uniform(-0.1, 0.1)
        voltages = tuple(
            float(NOMINAL_VOLTAGE_V + v) for v in self.rng.uniform(-5, 5, size=3)
        )
        return float(frequency), voltages

    def allocate(
        self,
        generation: GenerationSample,
        load: LoadSample,
        decision: BatteryDecision
    ) -> Tuple[GridFlow, EnergyMix]:
        """Compute the grid flow and energy mix for a tick."""
        flow = grid_flow(decision)
        frequency, voltages = self.grid_telemetry()
        flow = GridFlow(
            import_kw=flow.import_kw,
            export_kw=flow.export_kw,
            frequency_hz=frequency,
            voltages=voltages
        )
        return flow, energy_mix(generation, load, decision, flow)
