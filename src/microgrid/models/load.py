"""Campus load model."""

from typing import Optional

import numpy as np

from ..config import LoadConfig
from ..state import LoadSample


class LoadModel:
    """Perturbs the operator target load and splits it into sub-loads."""

    def __init__(
        self,
        config: Optional[LoadConfig] = None,
        rng: Optional[np.random.RandomState] = None
    ):
        self.config = config or LoadConfig()
        self.rng = rng if rng is not None else np.random.RandomState()

    def sample(self, target_load_kw: float) -> LoadSample:
        """Draw the actual campus load around ``target_load_kw``.

        The target is assumed to have been validated by the caller. The
        ``other`` sub-load is the remainder, so the four sub-loads always
        sum exactly to the actual load.
        """
        cfg = self.config
        noise = self.rng.uniform(-cfg.noise_kw, cfg.noise_kw)
        actual = max(0.0, float(target_load_kw + noise))

        hvac = actual * cfg.hvac_share
        lighting = actual * cfg.lighting_share
        equipment = actual * cfg.equipment_share
        other = actual - (hvac + lighting + equipment)

        return LoadSample(
            target_load_kw=float(target_load_kw),
            actual_load_kw=actual,
            hvac_kw=hvac,
            lighting_kw=lighting,
            equipment_kw=equipment,
            other_kw=other,
            forecast_kw=actual * cfg.forecast_factor
        )
