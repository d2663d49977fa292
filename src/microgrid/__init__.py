"""Campus microgrid dispatch engine."""

from .core import MicrogridEngine
from .config import MicrogridConfig
from .exceptions import MicrogridError
from .state import DispatchResult, SystemState
from .simulation import Simulator, InMemoryStore, StateStore
from .forecasting import ForecastProjector, request_forecast

from . import models

__version__ = "0.1.0"
__license__ = "MIT"

__all__ = [
    "MicrogridEngine",
    "MicrogridConfig",
    "MicrogridError",
    "DispatchResult",
    "SystemState",
    "Simulator",
    "InMemoryStore",
    "StateStore",
    "ForecastProjector",
    "request_forecast",
    "models"
]
