#!/usr/bin/env python3
"""
DWLR Station Status Monitor.

Polls the DWLR telemetry feed and prints a station summary every time a
newer snapshot arrives. Slow responses that complete after a newer one are
ignored by the poller.

Usage:
    python scripts/dwlr_status_monitor.py            # poll until Ctrl-C
    python scripts/dwlr_status_monitor.py --once     # print one snapshot
"""

import asyncio
import logging
import sys

# Add src to path for imports
sys.path.insert(0, 'src')

from dwlr.api.client import TelemetryClient
from dwlr.api.convenience import Snapshot, get_station_snapshot
from dwlr.api.poller import SnapshotPoller, snapshot_source
from dwlr.config import ClientConfig
from dwlr.exceptions import DWLRError
from dwlr.utils import format_last_update


def print_snapshot(snapshot: Snapshot) -> None:
    """Print a short dashboard summary of a snapshot."""
    stats = snapshot.statistics
    print(f"\n Snapshot at {snapshot.evaluated_at:%Y-%m-%d %H:%M:%S %Z}")
    print("=" * 50)

    if not stats.has_data:
        print("   No station data available")
        return

    print(f"   Stations: {stats.total_stations} total, {stats.active_stations} active, "
          f"{stats.alert_stations} alerting")
    if stats.avg_water_level is not None:
        print(f"   Avg water level: {stats.avg_water_level:.2f} m "
              f"(min {stats.min_water_level:.2f}, max {stats.max_water_level:.2f})")
    if stats.avg_battery is not None:
        print(f"   Avg battery: {stats.avg_battery:.2f} V")
    if snapshot.skipped:
        print(f"   Skipped records: {snapshot.skipped}")

    print("   Water level bands:")
    for band, count in stats.severity_counts.items():
        print(f"     {band:<10} {count:>4}  ({stats.severity_percentages[band]:.1f}%)")

    print("   Trends: " + ", ".join(
        f"{trend} {pct:.1f}%" for trend, pct in stats.trend_percentages.items()
    ))

    if snapshot.alerts:
        print("   Recent alerts:")
        for alert in snapshot.alerts[:5]:  # Show first 5
            age = format_last_update(alert.timestamp, snapshot.evaluated_at)
            print(f"     [{alert.severity.value}] {alert.station_id}: {alert.message} ({age})")


async def main():
    """Run the status monitor."""
    print(" DWLR Station Status Monitor")
    print("=" * 50)

    config = ClientConfig.from_env()

    async with TelemetryClient(config) as client:
        if len(sys.argv) > 1 and sys.argv[1] == "--once":
            print_snapshot(await get_station_snapshot(client=client))
            return

        poller = SnapshotPoller(
            snapshot_source(client),
            interval=config.poll_interval,
            on_update=print_snapshot,
        )
        print(f" Polling {config.dwlr_url} every {config.poll_interval:.0f}s (Ctrl-C to stop)")
        poller.start()
        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            await poller.stop()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(main())

    except KeyboardInterrupt:
        print("\n  Monitoring interrupted by user")
        sys.exit(130)
    except DWLRError as e:
        print(f"\n Telemetry error: {e}")
        sys.exit(1)
