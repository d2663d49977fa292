"""Core campus microgrid dispatch engine."""

from datetime import datetime
from typing import Optional
import logging
import threading

import numpy as np

from .config import MicrogridConfig
from .alerts import AlertContext, AlertEvaluator
from .dispatch import DispatchAllocator
from .models import GenerationModel, LoadModel, BatteryController
from .state import DispatchResult, SystemState


class MicrogridEngine:
    """Runs one dispatch tick at a time.

    A tick takes the carried ``SystemState`` and a timestamp and returns a
    ``DispatchResult``. The engine keeps no history; the caller stores the
    result and feeds ``result.next_state()`` into the next tick.
    """

    def __init__(
        self,
        config: Optional[MicrogridConfig] = None,
        rng: Optional[np.random.RandomState] = None
    ):
        """Initialize the engine, sharing one random source across models."""
        self.config = config or MicrogridConfig()
        self.rng = rng if rng is not None else np.random.RandomState(self.config.engine.random_seed)
        self.logger = logging.getLogger("microgrid.engine")

        self.generation_model = GenerationModel(self.config.generation, self.rng)
        self.load_model = LoadModel(self.config.load, self.rng)
        self.battery_controller = BatteryController(self.config.battery, self.rng)
        self.allocator = DispatchAllocator(self.rng)
        self.alert_evaluator = AlertEvaluator(self.config.alerts)

        self._lock = threading.Lock()

    def default_state(self) -> SystemState:
        """State used when nothing has been persisted yet."""
        return SystemState(
            soc_percent=self.config.engine.default_soc_percent,
            target_load_kw=self.config.engine.default_target_load_kw
        )

    def tick(self, state: SystemState, timestamp: Optional[datetime] = None) -> DispatchResult:
        """Compute the energy balance for one tick."""
        timestamp = timestamp or datetime.now()

        with self._lock:
            generation = self.generation_model.sample(timestamp)
            ambient = self.generation_model.ambient(timestamp)
            load = self.load_model.sample(state.target_load_kw)

            decision = self.battery_controller.decide(
                state.soc_percent,
                generation.total_renewable_kw,
                load.target_load_kw
            )
            battery = self.battery_controller.battery_state(decision, ambient.temperature_c)
            grid, mix = self.allocator.allocate(generation, load, decision)

            alerts = self.alert_evaluator.evaluate(AlertContext(
                timestamp=timestamp,
                soc_percent=battery.soc_percent,
                solar_power_kw=generation.solar_power_kw,
                wind_power_kw=generation.wind_power_kw,
                wind_speed_ms=generation.wind_speed_ms,
                grid_import_kw=grid.import_kw,
                grid_export_kw=grid.export_kw,
                actual_load_kw=load.actual_load_kw
            ))

        self.logger.debug(
            f"Tick {timestamp.isoformat()}: renewable {generation.total_renewable_kw:.1f} kW, "
            f"load {load.actual_load_kw:.1f} kW, SoC {battery.soc_percent:.2f}%, "
            f"{len(alerts)} alerts"
        )

        return DispatchResult(
            generation=generation,
            load=load,
            battery=battery,
            grid=grid,
            mix=mix,
            alerts=alerts,
            ambient=ambient
        )
