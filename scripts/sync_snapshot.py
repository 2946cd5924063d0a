#!/usr/bin/env python3
"""
Sync the garage database and log a dashboard summary
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from garage_ops.config import configure_logging, get_settings
from garage_ops.core.views import DateRange, dashboard_stats, low_stock_items
from garage_ops.exceptions import GarageOpsError
from garage_ops.services.garage_db import create_garage_db

logger = logging.getLogger("garage-sync")


async def main(date_range: DateRange) -> int:
    try:
        database = await create_garage_db(get_settings())
    except GarageOpsError as e:
        logger.error(f"❌ {e.message}")
        return 1

    report = database.sync_report
    logger.info(f"Sync state: {report.state.value}")
    for name, count in report.counts.items():
        logger.info(f"   📦 {name}: {count}")

    stats = dashboard_stats(database.get_jobs(), date_range)
    logger.info(f"📊 {date_range.value}: {stats.total} jobs, revenue {stats.revenue:.2f}")
    logger.info(f"   In progress: {stats.wip}  Completed: {stats.completed}  Delivered: {stats.delivered}")

    for job in stats.overdue:
        logger.warning(
            f"⚠️ Overdue: {job.vehicle_number} ({job.customer_name}) "
            f"due {job.expected_delivery_date}, status {job.status.value}"
        )
    for item in low_stock_items(database.get_inventory()):
        logger.warning(f"⚠️ Low stock: {item.name} {item.quantity:g} {item.unit} (min {item.min_stock:g})")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sync garage data and print a dashboard summary")
    parser.add_argument(
        "--range",
        dest="date_range",
        choices=[choice.value for choice in DateRange if choice != DateRange.CUSTOM],
        default=DateRange.TODAY.value,
    )
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    configure_logging(args.log_level)
    sys.exit(asyncio.run(main(DateRange(args.date_range))))
