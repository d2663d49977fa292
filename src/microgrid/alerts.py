"""
Condition-based alerts for the campus microgrid.

Alerts are produced from an ordered table of rules. Every rule is checked
independently against the state of the tick, so several may fire at once.
The active set is replaced wholesale each tick; no alert is carried over.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple
import logging
import threading

from .config import AlertThresholds
from .state import Alert, AlertType


@dataclass(frozen=True)
class AlertContext:
    """Values of a finished tick that alert rules are evaluated against."""
    timestamp: datetime
    soc_percent: float
    solar_power_kw: float
    wind_power_kw: float
    wind_speed_ms: float
    grid_import_kw: float
    grid_export_kw: float
    actual_load_kw: float

    @property
    def total_renewable_kw(self) -> float:
        return self.solar_power_kw + self.wind_power_kw


# (title, description, recommendation)
AlertText = Tuple[str, str, Optional[str]]


@dataclass(frozen=True)
class AlertRule:
    """A single predicate -> alert mapping."""
    name: str
    type: AlertType
    category: str
    priority: int
    predicate: Callable[[AlertContext], bool]
    render: Callable[[AlertContext], AlertText]

    def evaluate(self, context: AlertContext) -> Optional[Alert]:
        """Return an alert if the rule fires for ``context``."""
        if not self.predicate(context):
            return None

        title, description, recommendation = self.render(context)
        return Alert(
            type=self.type,
            category=self.category,
            title=title,
            description=description,
            recommendation=recommendation,
            priority=self.priority,
            timestamp=context.timestamp
        )


def default_rules(thresholds: Optional[AlertThresholds] = None) -> List[AlertRule]:
    """Build the standard rule table for the given thresholds."""
    t = thresholds or AlertThresholds()

    return [
        AlertRule(
            name="low_battery",
            type=AlertType.WARNING,
            category="battery",
            priority=3,
            predicate=lambda c: c.soc_percent < t.low_soc_percent,
            render=lambda c: (
                "Low Battery Level",
                f"Battery SoC is {c.soc_percent:.1f}%, below recommended minimum",
                "Consider reducing non-critical loads or importing from grid"
            )
        ),
        AlertRule(
            name="optimal_solar",
            type=AlertType.SUCCESS,
            category="optimization",
            priority=2,
            predicate=lambda c: (
                c.solar_power_kw > t.strong_solar_kw and
                c.soc_percent < t.solar_charge_soc_percent
            ),
            render=lambda c: (
                "Optimal Solar Generation",
                f"Excellent solar conditions generating {c.solar_power_kw:.0f}kW",
                "Perfect time to charge batteries and run flexible loads"
            )
        ),
        AlertRule(
            name="strong_wind",
            type=AlertType.INFO,
            category="wind",
            priority=1,
            predicate=lambda c: c.wind_power_kw > t.strong_wind_kw,
            render=lambda c: (
                "Strong Wind Generation",
                f"Wind turbines generating {c.wind_power_kw:.0f}kW at {c.wind_speed_ms:.1f} m/s",
                "Excellent conditions for renewable energy harvest"
            )
        ),
        AlertRule(
            name="high_grid_import",
            type=AlertType.WARNING,
            category="grid",
            priority=3,
            predicate=lambda c: c.grid_import_kw > t.high_import_kw,
            render=lambda c: (
                "High Grid Import",
                f"Currently importing {c.grid_import_kw:.0f}kW from grid",
                "Consider load shifting or battery discharge if available"
            )
        ),
        AlertRule(
            name="grid_export",
            type=AlertType.SUCCESS,
            category="grid",
            priority=1,
            predicate=lambda c: c.grid_export_kw > t.high_export_kw,
            render=lambda c: (
                "Exporting Surplus to Grid",
                f"Exporting {c.grid_export_kw:.0f}kW of surplus renewable energy",
                "Schedule flexible loads to use surplus on site"
            )
        ),
        AlertRule(
            name="renewable_self_sufficient",
            type=AlertType.SUCCESS,
            category="energy",
            priority=1,
            predicate=lambda c: c.total_renewable_kw >= c.actual_load_kw,
            render=lambda c: (
                "Campus Running on Renewables",
                f"Renewables supply {c.total_renewable_kw:.0f}kW against "
                f"{c.actual_load_kw:.0f}kW demand",
                None
            )
        ),
    ]


class AlertEvaluator:
    """Evaluates the rule table in order."""

    def __init__(
        self,
        thresholds: Optional[AlertThresholds] = None,
        rules: Optional[Sequence[AlertRule]] = None
    ):
        self.rules: List[AlertRule] = list(rules) if rules is not None else default_rules(thresholds)

    def evaluate(self, context: AlertContext) -> Tuple[Alert, ...]:
        """Return every alert whose rule fires, in table order."""
        alerts = []
        for rule in self.rules:
            alert = rule.evaluate(context)
            if alert is not None:
                alerts.append(alert)
        return tuple(alerts)


class AlertBoard:
    """Holds the currently active alert set.

    ``replace`` deactivates every active alert before installing the new set.
    """

    def __init__(self, max_history: int = 1000):
        self._active: List[Alert] = []
        self._history: List[Alert] = []
        self._max_history = max_history
        self._lock = threading.Lock()
        self.logger = logging.getLogger("microgrid.alerts")

    def replace(self, alerts: Sequence[Alert]) -> List[Alert]:
        """Swap in ``alerts`` as the active set; return the deactivated alerts."""
        with self._lock:
            retired = [replace(alert, active=False) for alert in self._active]
            self._history.extend(retired)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history:]

            self._active = [replace(alert, active=True) for alert in alerts]

        self.logger.debug(f"Replaced {len(retired)} active alerts with {len(alerts)}")
        return retired

    def active(self) -> List[Alert]:
        """Active alerts, highest priority first."""
        with self._lock:
            return sorted(self._active, key=lambda a: a.priority, reverse=True)

    def history(self) -> List[Alert]:
        """Previously deactivated alerts, oldest first."""
        with self._lock:
            return list(self._history)
