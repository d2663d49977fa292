"""
Basic usage example of the campus microgrid engine.
This example demonstrates core functionality including:
- Loading a configuration file
- Running dispatch ticks against an in-memory store
- Changing the campus target load
- Event handling and trend analysis
"""

from datetime import datetime, timedelta
from pathlib import Path

from microgrid import Simulator, InMemoryStore, MicrogridConfig, request_forecast
from microgrid.analysis import summarize_trends
from microgrid.events import Event, EventBus, EventType


def print_event(event: Event) -> None:
    """Print fallback and failure events."""
    print(f"\nEvent received: {event.type.name}")
    if event.details:
        print("Details:", event.details)


def main():
    config_path = Path(__file__).parent / "microgrid.yaml"
    config = MicrogridConfig.load_from_file(config_path)
    config.setup_logging()

    if not config.validate_and_log():
        return

    bus = EventBus()
    bus.subscribe(print_event, EventType.STATE_FALLBACK)
    bus.subscribe(print_event, EventType.TICK_FAILED)
    bus.subscribe(print_event, EventType.TARGET_LOAD_CHANGED)

    store = InMemoryStore(config.engine.history_size)
    sim = Simulator(config, store=store, event_bus=bus)

    print("Initializing campus microgrid...")
    print(f"Name: {config.name}")
    print(f"Solar: {config.generation.solar_capacity_kw} kW")
    print(f"Wind: {config.generation.wind_capacity_kw} kW")
    print(f"Battery: {config.battery.capacity_kwh} kWh")

    # Morning at the default target
    start = datetime(2024, 6, 1, 6, 0)
    results = sim.run(120, start, timedelta(minutes=3))

    # Afternoon lecture peak
    sim.set_target_load(650)
    results += sim.run(120, start + timedelta(hours=6), timedelta(minutes=3))

    latest = store.latest()
    print("\nLatest Tick:")
    print(f"  Solar: {latest.generation.solar_power_kw:.1f} kW")
    print(f"  Wind: {latest.generation.wind_power_kw:.1f} kW")
    print(f"  Load: {latest.load.actual_load_kw:.1f} kW")
    print(f"  SoC: {latest.battery.soc_percent:.2f}%")
    print(f"  Grid import/export: {latest.grid.import_kw:.1f} / {latest.grid.export_kw:.1f} kW")

    print("\nActive Alerts:")
    for alert in store.alert_board.active():
        print(f"  [{alert.type.value}] {alert.title}: {alert.description}")

    summary = summarize_trends(results)
    print("\nTrend Summary:")
    print(f"  Ticks: {summary.samples}")
    print(f"  Average SoC: {summary.avg_soc_percent:.1f}%")
    print(f"  Peak import: {summary.peak_import_kw:.1f} kW")
    print(f"  Renewable share: {summary.renewable_share_pct:.1f}%")

    report = request_forecast("optimize", "6h", reference=latest.timestamp, latest=latest)
    print("\nRecommendations:")
    for rec in report.recommendations:
        print(f"  {rec.category} ({rec.priority}): {rec.action}")

    forecast = request_forecast("forecast", "6h", reference=latest.timestamp)
    print("\nNext 6 Hours:")
    for hour in forecast.hourly_forecast:
        print(f"  {hour.hour:02d}:00 solar {hour.solar:.0f} kW, load {hour.load:.0f} kW "
              f"-> {hour.battery_action}")

    sim.close()
    print("\nBasic usage demonstration completed!")


if __name__ == "__main__":
    main()
