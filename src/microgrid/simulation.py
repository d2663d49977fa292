"""
Tick loop around the dispatch engine.

The engine itself is pure computation. This module owns the boundary to the
external state store: reading the carried state, persisting each result and
replacing the active alert set. Store calls are time-bound and retried a
bounded number of times; a failure degrades to default state or a skipped
tick and never stops the loop.
"""

from abc import ABC, abstractmethod
from collections import deque
from concurrent.futures import (
    Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError, wait
)
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Deque, List, Optional, Sequence, TypeVar
import logging
import threading
import time

from .alerts import AlertBoard
from .config import MicrogridConfig
from .core import MicrogridEngine
from .events import AlertEvent, Event, EventBus, EventType, TickEvent
from .exceptions import (
    ExternalReadError, ExternalWriteError, StoreError, StoreTimeoutError, ValidationError
)
from .state import Alert, DispatchResult, SystemState
from .validation import validate_soc, validate_target_load

T = TypeVar("T")


class StateStore(ABC):
    """External store holding the carried state, results and alerts."""

    @abstractmethod
    def read_state(self) -> Optional[SystemState]:
        """Latest persisted state, or None if nothing was stored yet."""
        pass

    @abstractmethod
    def write_result(self, result: DispatchResult) -> None:
        """Persist a tick result and the state of charge it produced.

        A result older than the stored one, or one already stored, must be
        ignored: a write that outlived its timeout may arrive late or twice.
        """
        pass

    @abstractmethod
    def replace_alerts(self, alerts: Sequence[Alert]) -> int:
        """Deactivate all active alerts and store ``alerts`` as the new set.

        Returns the number of alerts deactivated.
        """
        pass

    @abstractmethod
    def set_target_load(self, target_load_kw: float) -> None:
        """Store a new operator target load."""
        pass


class InMemoryStore(StateStore):
    """Thread-safe store keeping a bounded result history in memory."""

    def __init__(self, history_size: int = 1000):
        self._lock = threading.Lock()
        self._soc_percent: Optional[float] = None
        self._target_load_kw: Optional[float] = None
        self._timestamp: Optional[datetime] = None
        self._results: Deque[DispatchResult] = deque(maxlen=history_size)
        self.alert_board = AlertBoard(max_history=history_size)
        self.logger = logging.getLogger("microgrid.store")

    def read_state(self) -> Optional[SystemState]:
        with self._lock:
            if self._soc_percent is None and self._target_load_kw is None:
                return None

            state = SystemState(timestamp=self._timestamp)
            if self._soc_percent is not None:
                state.soc_percent = self._soc_percent
            if self._target_load_kw is not None:
                state.target_load_kw = self._target_load_kw
            return state

    def write_result(self, result: DispatchResult) -> None:
        with self._lock:
            if self._timestamp is not None and result.timestamp < self._timestamp:
                self.logger.warning(
                    f"Ignoring stale result for {result.timestamp.isoformat()}, "
                    f"store already holds {self._timestamp.isoformat()}"
                )
                return
            if any(stored is result for stored in self._results):
                self.logger.debug(f"Result for {result.timestamp.isoformat()} already stored")
                return

            self._results.append(result)
            self._soc_percent = result.battery.soc_percent
            self._timestamp = result.timestamp
            # The operator owns the target; a tick only fills it in when unset.
            if self._target_load_kw is None:
                self._target_load_kw = result.load.target_load_kw

    def replace_alerts(self, alerts: Sequence[Alert]) -> int:
        return len(self.alert_board.replace(alerts))

    def set_target_load(self, target_load_kw: float) -> None:
        with self._lock:
            self._target_load_kw = target_load_kw

    def latest(self) -> Optional[DispatchResult]:
        with self._lock:
            return self._results[-1] if self._results else None

    def results(self, limit: Optional[int] = None) -> List[DispatchResult]:
        """Stored results, oldest first."""
        with self._lock:
            results = list(self._results)
        return results[-limit:] if limit else results


class StoreGateway:
    """Time-bound, retrying access to a ``StateStore``."""

    def __init__(
        self,
        store: StateStore,
        timeout: float = 2.0,
        max_attempts: int = 3,
        retry_delay: float = 0.1
    ):
        self.store = store
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self.logger = logging.getLogger("microgrid.store")
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="microgrid-store")
        # Calls that timed out but were already running in a worker
        self._overdue: List[Future] = []
        self._overdue_lock = threading.Lock()

    def _call_with_timeout(self, name: str, func: Callable[..., T], *args: Any) -> T:
        future = self._executor.submit(func, *args)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            if not future.cancel():
                with self._overdue_lock:
                    self._overdue.append(future)
            raise StoreTimeoutError(f"{name} timed out after {self.timeout}s") from None

    def settle(self, timeout: Optional[float] = None) -> bool:
        """Wait for timed-out calls that are still running in a worker.

        Waits at most ``timeout`` seconds (the call timeout by default).
        Returns True when none are left running.
        """
        with self._overdue_lock:
            self._overdue = [f for f in self._overdue if not f.done()]
            overdue = list(self._overdue)

        if not overdue:
            return True

        _, still_running = wait(overdue, timeout=self.timeout if timeout is None else timeout)
        if still_running:
            self.logger.warning(f"{len(still_running)} timed-out store calls still running")
        return not still_running

    def call(self, name: str, func: Callable[..., T], *args: Any) -> T:
        """Run a store call, retrying with exponential backoff.

        Raises:
            StoreError: when every attempt failed.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return self._call_with_timeout(name, func, *args)
            except Exception as e:
                if attempt >= self.max_attempts:
                    raise StoreError(f"{name} failed after {attempt} attempts: {e}") from e
                self.logger.warning(
                    f"{name} failed ({e}), retrying (attempt {attempt}/{self.max_attempts})"
                )
                time.sleep(self.retry_delay * (2 ** (attempt - 1)))

    def read_state(self) -> Optional[SystemState]:
        try:
            return self.call("read_state", self.store.read_state)
        except StoreError as e:
            raise ExternalReadError(str(e)) from e

    def write_result(self, result: DispatchResult) -> None:
        try:
            self.call("write_result", self.store.write_result, result)
        except StoreError as e:
            raise ExternalWriteError(str(e)) from e

    def replace_alerts(self, alerts: Sequence[Alert]) -> int:
        try:
            return self.call("replace_alerts", self.store.replace_alerts, alerts) or 0
        except StoreError as e:
            raise ExternalWriteError(str(e)) from e

    def set_target_load(self, target_load_kw: float) -> None:
        try:
            self.call("set_target_load", self.store.set_target_load, target_load_kw)
        except StoreError as e:
            raise ExternalWriteError(str(e)) from e

    def close(self) -> None:
        self._executor.shutdown(wait=False)


@dataclass
class SimulationStats:
    """Counters collected by the tick loop."""
    ticks_completed: int = 0
    ticks_failed: int = 0
    state_fallbacks: int = 0
    last_tick: Optional[datetime] = None
    last_error: Optional[str] = None


class Simulator:
    """Drives the engine on a fixed cadence against a state store.

    Ticks never overlap: reading the state of charge, computing the tick
    and writing the new state of charge happen under one lock.
    """

    def __init__(
        self,
        config: Optional[MicrogridConfig] = None,
        store: Optional[StateStore] = None,
        engine: Optional[MicrogridEngine] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.config = config or MicrogridConfig()
        engine_cfg = self.config.engine

        self.engine = engine or MicrogridEngine(self.config)
        self.store = store if store is not None else InMemoryStore(engine_cfg.history_size)
        self.gateway = StoreGateway(
            self.store,
            timeout=engine_cfg.store_timeout_seconds,
            max_attempts=engine_cfg.store_max_attempts,
            retry_delay=engine_cfg.store_retry_delay
        )
        self.events = event_bus or EventBus()
        self.clock = clock
        self.stats = SimulationStats()
        self.logger = logging.getLogger("microgrid.simulation")

        self._tick_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def set_target_load(self, target_load_kw: float) -> float:
        """Validate and store a new campus target load.

        Raises:
            ValidationRangeError: if the target is outside (0, 2000] kW.
            ExternalWriteError: if the store rejects the update.
        """
        target = validate_target_load(target_load_kw)
        self.gateway.set_target_load(target)
        self.logger.info(f"Target load set to {target:.1f} kW")
        self.events.publish(Event(
            type=EventType.TARGET_LOAD_CHANGED,
            timestamp=self.clock(),
            details={"target_load_kw": target}
        ))
        return target

    def _load_state(self, timestamp: datetime) -> SystemState:
        """Carried state from the store, with documented defaults on failure."""
        default = self.engine.default_state()

        try:
            state = self.gateway.read_state()
        except ExternalReadError as e:
            return self._fallback(timestamp, default, str(e))

        if state is None:
            return default

        problems = []
        try:
            soc = validate_soc(state.soc_percent)
        except ValidationError as e:
            soc = default.soc_percent
            problems.append(f"invalid SoC: {e}")
        try:
            target = validate_target_load(state.target_load_kw)
        except ValidationError as e:
            target = default.target_load_kw
            problems.append(f"invalid target load: {e}")

        recovered = SystemState(soc_percent=soc, target_load_kw=target, timestamp=state.timestamp)
        if problems:
            return self._fallback(timestamp, recovered, "; ".join(problems))
        return recovered

    def _fallback(self, timestamp: datetime, state: SystemState, reason: str) -> SystemState:
        self.stats.state_fallbacks += 1
        self.logger.warning(f"Using fallback state ({reason})")
        self.events.publish(Event(
            type=EventType.STATE_FALLBACK,
            timestamp=timestamp,
            details={
                "reason": reason,
                "soc_percent": state.soc_percent,
                "target_load_kw": state.target_load_kw
            }
        ))
        return state

    def _fail_tick(self, timestamp: datetime, error: Exception, persisted: bool) -> None:
        self.stats.ticks_failed += 1
        self.stats.last_error = str(error)
        self.logger.error(f"Tick at {timestamp.isoformat()} failed: {error}")
        self.events.publish(TickEvent(
            type=EventType.TICK_FAILED,
            timestamp=timestamp,
            details={"persisted": persisted},
            error=str(error)
        ))

    def step(self, timestamp: Optional[datetime] = None) -> Optional[DispatchResult]:
        """Run one tick. Returns the result, or None if it could not be stored."""
        timestamp = timestamp or self.clock()

        with self._tick_lock:
            # Let late writes from earlier ticks land before reading the state
            self.gateway.settle()
            state = self._load_state(timestamp)
            result = self.engine.tick(state, timestamp)

            try:
                self.gateway.write_result(result)
            except ExternalWriteError as e:
                self._fail_tick(timestamp, e, persisted=False)
                return None

            try:
                deactivated = self.gateway.replace_alerts(result.alerts)
            except ExternalWriteError as e:
                self._fail_tick(timestamp, e, persisted=True)
                return None

            self.stats.ticks_completed += 1
            self.stats.last_tick = timestamp

        self.events.publish(AlertEvent(
            type=EventType.ALERTS_REPLACED,
            timestamp=timestamp,
            alerts=list(result.alerts),
            deactivated=deactivated
        ))
        self.events.publish(TickEvent(
            type=EventType.TICK_COMPLETE,
            timestamp=timestamp,
            result=result
        ))
        return result

    def run(
        self,
        ticks: int,
        start_time: Optional[datetime] = None,
        time_step: Optional[timedelta] = None
    ) -> List[DispatchResult]:
        """Run ``ticks`` ticks back to back on simulated time.

        Failed ticks are skipped; the successful results are returned in order.
        """
        current_time = start_time or self.clock()
        time_step = time_step or timedelta(seconds=self.config.engine.tick_interval_seconds)

        results = []
        for _ in range(ticks):
            result = self.step(current_time)
            if result is not None:
                results.append(result)
            current_time += time_step

        return results

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start ticking in a background thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="microgrid-ticker", daemon=True)
        self._thread.start()
        self.logger.info(
            f"Tick loop started ({self.config.engine.tick_interval_seconds}s interval)"
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the background loop and wait for the current tick to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.logger.info("Tick loop stopped")

    def close(self) -> None:
        self.stop()
        self.gateway.close()

    def _loop(self) -> None:
        interval = self.config.engine.tick_interval_seconds
        while not self._stop_event.is_set():
            try:
                self.step()
            except Exception as e:
                self.stats.ticks_failed += 1
                self.stats.last_error = str(e)
                self.logger.exception(f"Unexpected error in tick loop: {e}")
            self._stop_event.wait(interval)
