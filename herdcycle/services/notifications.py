"""
Breeding notifications.

``build_notifications`` derives the current list for a farm; the remaining
functions persist them per farmer and track which ones were read.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..db import atomic
from ..exceptions import NotFoundError
from ..logging import herd_context
from ..models import Farm, Notification, utcnow
from .breeding import (
    ALERT_LEAD_DAYS, IDEAL_END_DAYS, IDEAL_START_DAYS,
    days_between, failed_retry_date, open_cows_query, today, upcoming_calvings,
)

logger = logging.getLogger(__name__)

CALVING_DUE_SOON = "calving_due_soon"
INSEMINATION_DUE = "insemination_due"
NOTIFICATION_TYPES = (CALVING_DUE_SOON, INSEMINATION_DUE)

CALVING_NOTICE_DAYS = 15
CALVING_HIGH_PRIORITY_DAYS = 5

PRIORITY_ORDER = {"high": 1, "medium": 2, "low": 3}


def _sort_key(n: Dict[str, Any]):
    days = n.get("days_remaining")
    if days is None:
        days = n.get("days_until_ideal")
    if days is None:
        days = 999
    return (PRIORITY_ORDER.get(n["priority"], 9), days)


def calving_notifications(db: Session, farm_id: Optional[int], as_of: date) -> List[Dict[str, Any]]:
    out = []
    for cow in upcoming_calvings(db, farm_id, as_of):
        remaining = cow["days_remaining"]
        if not 0 < remaining <= CALVING_NOTICE_DAYS:
            continue
        out.append({
            "type": CALVING_DUE_SOON,
            "priority": "high" if remaining <= CALVING_HIGH_PRIORITY_DAYS else "medium",
            "message": f"{cow['tag_number']} is due to calve in {remaining} days",
            "cow_id": cow["cow_id"],
            "tag_number": cow["tag_number"],
            "name": cow["name"],
            "days_remaining": remaining,
            "expected_calving_date": cow["expected_calving_date"],
        })
    return out


def insemination_notifications(db: Session, farm_id: Optional[int], as_of: date) -> List[Dict[str, Any]]:
    out = []
    for cow in open_cows_query(db, farm_id).all():
        animal = cow.animal
        if animal is None or cow.last_calving_date is None:
            continue

        tag = animal.tag_number
        days_since_calving = days_between(cow.last_calving_date, as_of)

        retry_from = failed_retry_date(cow, as_of)
        if retry_from is not None:
            out.append({
                "type": INSEMINATION_DUE,
                "priority": "high",
                "message": f"{tag} is ready for insemination retry (21 days since failed insemination)",
                "cow_id": cow.id,
                "tag_number": tag,
                "name": animal.name,
                "days_since_calving": days_since_calving,
                "days_since_failed_insemination": days_between(retry_from, as_of),
                "last_failed_insemination_date": retry_from.isoformat(),
            })
            continue

        days_until_ideal_start = IDEAL_START_DAYS - days_since_calving
        is_overdue = days_since_calving > IDEAL_END_DAYS
        is_in_window = IDEAL_START_DAYS <= days_since_calving <= IDEAL_END_DAYS
        is_approaching = IDEAL_START_DAYS - ALERT_LEAD_DAYS <= days_since_calving < IDEAL_START_DAYS

        if not (is_approaching or is_in_window or is_overdue):
            continue

        if is_overdue:
            message = f"{tag} is {days_since_calving - IDEAL_END_DAYS} days overdue for insemination"
        elif is_in_window:
            message = f"{tag} is in ideal insemination window ({days_since_calving - IDEAL_START_DAYS} days into window)"
        else:
            message = f"{tag} is approaching insemination window ({days_until_ideal_start} days until ideal start)"

        out.append({
            "type": INSEMINATION_DUE,
            "priority": "high" if (is_overdue or is_in_window) else "medium",
            "message": message,
            "cow_id": cow.id,
            "tag_number": tag,
            "name": animal.name,
            "days_since_calving": days_since_calving,
            "days_until_ideal": max(0, days_until_ideal_start),
            "is_overdue": is_overdue,
            "is_in_window": is_in_window,
            "is_approaching": is_approaching,
            "last_calving_date": cow.last_calving_date.isoformat(),
        })
    return out


def sort_notifications(notifications: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """High priority first, then soonest by the relevant day count."""
    return sorted(notifications, key=_sort_key)


def build_notifications(db: Session, farm_id: Optional[int] = None, as_of: Optional[date] = None) -> List[Dict[str, Any]]:
    as_of = as_of or today()
    notifications = calving_notifications(db, farm_id, as_of)
    notifications.extend(insemination_notifications(db, farm_id, as_of))
    return sort_notifications(notifications)


# ---------------------------
# Durable sink
# ---------------------------
def sync_notifications_for_farm(db: Session, farm_id: int, as_of: Optional[date] = None) -> List[Notification]:
    """
    Store notifications the farm's farmer has never received.

    A notification is identified by (type, tag number); once stored, read or
    unread, the same key is not delivered again.
    """
    farm = db.get(Farm, farm_id)
    if farm is None or farm.farmer is None:
        return []

    farmer = farm.farmer
    delivered = {
        (n.type, n.subject_tag)
        for n in db.query(Notification)
        .filter(Notification.farmer_id == farmer.id)
        .filter(Notification.type.in_(NOTIFICATION_TYPES))
        .all()
    }

    created: List[Notification] = []
    with atomic(db):
        for data in build_notifications(db, farm_id, as_of):
            key = (data["type"], data["tag_number"])
            if key in delivered:
                continue
            delivered.add(key)
            row = Notification(
                farmer_id=farmer.id,
                farm_id=farm.id,
                type=data["type"],
                subject_tag=data["tag_number"],
                priority=data["priority"],
                message=data["message"],
                data=data,
            )
            db.add(row)
            created.append(row)

    if created:
        logger.info(f"Stored {len(created)} new notification(s) for farm {farm_id}", extra=herd_context(farm_id))
    return created


def unread_count(db: Session, farmer_id: int) -> int:
    return (
        db.query(Notification)
        .filter(Notification.farmer_id == farmer_id)
        .filter(Notification.read_at.is_(None))
        .count()
    )


def list_notifications(db: Session, farmer_id: int, unread_only: bool = False) -> List[Notification]:
    query = db.query(Notification).filter(Notification.farmer_id == farmer_id)
    if unread_only:
        query = query.filter(Notification.read_at.is_(None))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def mark_read(db: Session, farmer_id: int, notification_id: int) -> Notification:
    row = (
        db.query(Notification)
        .filter(Notification.id == notification_id)
        .filter(Notification.farmer_id == farmer_id)
        .first()
    )
    if row is None:
        raise NotFoundError("Notification", notification_id)

    with atomic(db):
        if row.read_at is None:
            row.read_at = utcnow()
    return row


def mark_all_read(db: Session, farmer_id: int) -> int:
    rows = list_notifications(db, farmer_id, unread_only=True)
    now = utcnow()
    with atomic(db):
        for row in rows:
            row.read_at = now
    return len(rows)
