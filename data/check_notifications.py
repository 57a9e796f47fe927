"""
Check upcoming calvings and insemination needs.

Usage:
    python data/check_notifications.py               # every farm
    python data/check_notifications.py --farm-id 3   # one farm
    python data/check_notifications.py --sync        # also store new ones for each farmer

Meant to run from cron, e.g. daily at 08:00 and every six hours for urgent items.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List

from herdcycle.db import get_db, init_db
from herdcycle.logging import setup_logging
from herdcycle.models import Farm
from herdcycle.services.notifications import build_notifications, sync_notifications_for_farm
from herdcycle.services.reporting import notifications_frame

logger = logging.getLogger("check_notifications")


def print_notifications(notifications: List[dict], farm_id: int) -> None:
    if not notifications:
        return

    print(f"Found {len(notifications)} notification(s):\n")

    high = [n for n in notifications if n["priority"] == "high"]
    medium = [n for n in notifications if n["priority"] == "medium"]

    if high:
        print(f"HIGH PRIORITY ({len(high)}):")
        for n in high:
            print(f"  ! {n['message']}")
        print()
        logger.warning(f"{len(high)} high priority notification(s) for farm {farm_id}")

    if medium:
        print(f"MEDIUM PRIORITY ({len(medium)}):")
        for n in medium:
            print(f"  i {n['message']}")
        print()

    print(notifications_frame(notifications).to_string(index=False))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Check notifications for upcoming calvings and insemination needs")
    parser.add_argument("--farm-id", type=int, default=None, help="Specific farm ID to check")
    parser.add_argument("--sync", action="store_true", help="Store new notifications for each farm's farmer")
    args = parser.parse_args(argv)

    setup_logging()
    init_db()
    with get_db() as db:
        if args.farm_id is not None:
            farm = db.get(Farm, args.farm_id)
            if farm is None:
                print(f"Farm with ID {args.farm_id} not found.", file=sys.stderr)
                return 1
            farms = [farm]
            print(f"Checking notifications for farm: {farm.name}")
        else:
            farms = db.query(Farm).order_by(Farm.id).all()
            print("Checking notifications for all farms...")

        total = 0
        for farm in farms:
            notifications = build_notifications(db, farm.id)
            if notifications:
                print(f"\n=== Farm: {farm.name} ===")
                print_notifications(notifications, farm.id)
                total += len(notifications)
            if args.sync:
                sync_notifications_for_farm(db, farm.id)

        if total == 0:
            print("No notifications at this time.")
        elif args.farm_id is None:
            print(f"\nTotal notifications across all farms: {total}")
        return 0


if __name__ == "__main__":
    sys.exit(main())
