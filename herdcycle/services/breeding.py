from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..models import Animal, Cow, Insemination, FAILED

GESTATION_DAYS = 283
FINAL_MONTH_START_DAYS = 253   # insemination age at which the 9th month begins
DUE_SOON_DAYS = 14

IDEAL_START_DAYS = 50          # ideal insemination window after calving
IDEAL_END_DAYS = 90
ALERT_LEAD_DAYS = 5            # alert band opens 5 days early, closes 5 days late

RETRY_AFTER_FAILED_DAYS = 21


def today() -> date:
    return date.today()


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative when end is earlier)."""
    return (end - start).days


def _iso(d: Optional[date]) -> Optional[str]:
    return d.isoformat() if d is not None else None


def latest_insemination(cow: Cow) -> Optional[Insemination]:
    """Most recently created attempt."""
    if not cow.inseminations:
        return None
    return max(cow.inseminations, key=lambda i: (i.created_at or datetime.min, i.id or 0))


def failed_retry_date(cow: Cow, as_of: date) -> Optional[date]:
    """
    Date of a failed insemination old enough to retry, if the latest attempt is one.

    A cow whose most recent attempt failed at least 21 days ago is ready for a
    new attempt regardless of how long ago she calved.
    """
    latest = latest_insemination(cow)
    if latest is None or latest.status != FAILED:
        return None
    if days_between(latest.insemination_date, as_of) >= RETRY_AFTER_FAILED_DAYS:
        return latest.insemination_date
    return None


def expected_calving_date(cow: Cow) -> Optional[date]:
    if cow.last_insemination_date is None:
        return None
    if cow.expected_calving_date is not None:
        return cow.expected_calving_date
    return cow.last_insemination_date + timedelta(days=GESTATION_DAYS)


def pregnancy_progress(cow: Cow, as_of: Optional[date] = None) -> Optional[Dict[str, Any]]:
    if cow.last_insemination_date is None:
        return None

    as_of = as_of or today()
    days_since = days_between(cow.last_insemination_date, as_of)
    expected = expected_calving_date(cow)
    days_until = days_between(as_of, expected)

    pct = min(100.0, max(0.0, days_since / GESTATION_DAYS * 100.0))

    status = "pregnant"
    if cow.actual_calving_date is not None:
        status = "calved"
    elif days_until < 0:
        status = "overdue"
    elif days_until <= DUE_SOON_DAYS:
        status = "due_soon"

    return {
        "status": status,
        "last_insemination_date": _iso(cow.last_insemination_date),
        "expected_calving_date": _iso(expected),
        "actual_calving_date": _iso(cow.actual_calving_date),
        "days_since_insemination": days_since,
        "days_until_calving": days_until,
        "progress_percentage": round(pct, 1),
        "total_gestation_days": GESTATION_DAYS,
    }


def _farm_filter(query, farm_id: Optional[int]):
    if farm_id is not None:
        query = query.filter(Cow.animal.has(Animal.farm_id == farm_id))
    return query


def open_cows_query(db: Session, farm_id: Optional[int] = None):
    """Cows that have calved and are not carrying a confirmed pregnancy."""
    query = (
        db.query(Cow)
        .filter(Cow.last_calving_date.isnot(None))
        .filter(Cow.last_insemination_date.is_(None))
        .filter(Cow.actual_calving_date.is_(None))
    )
    return _farm_filter(query, farm_id).order_by(Cow.id)


def upcoming_calvings(db: Session, farm_id: Optional[int] = None, as_of: Optional[date] = None) -> List[Dict[str, Any]]:
    """Cows in the final month of gestation, through the due date."""
    as_of = as_of or today()
    start = as_of - timedelta(days=GESTATION_DAYS)
    end = as_of - timedelta(days=FINAL_MONTH_START_DAYS)

    query = db.query(Cow).filter(Cow.last_insemination_date.between(start, end))
    cows = _farm_filter(query, farm_id).order_by(Cow.id).all()

    results: List[Dict[str, Any]] = []
    for cow in cows:
        animal = cow.animal
        if animal is None or cow.last_insemination_date is None:
            continue

        days_since = days_between(cow.last_insemination_date, as_of)
        if cow.expected_calving_date is not None:
            days_remaining = days_between(as_of, cow.expected_calving_date)
        else:
            days_remaining = GESTATION_DAYS - days_since

        results.append({
            "cow_id": cow.id,
            "animal_id": animal.id,
            "tag_number": animal.tag_number,
            "name": animal.name,
            "last_insemination_date": _iso(cow.last_insemination_date),
            "expected_calving_date": _iso(expected_calving_date(cow)),
            "days_remaining": max(0, days_remaining),
            "days_since_insemination": days_since,
            "progress": pregnancy_progress(cow, as_of),
        })
    return results


def insemination_summary(ins: Insemination) -> Dict[str, Any]:
    bull_animal = ins.bull.animal if ins.bull is not None else None
    return {
        "id": ins.id,
        "insemination_date": _iso(ins.insemination_date),
        "status": ins.status,
        "notes": ins.notes,
        "bull_id": ins.bull_id,
        "bull": {
            "id": ins.bull_id,
            "tag_number": bull_animal.tag_number,
            "name": bull_animal.name,
        } if bull_animal is not None else None,
    }


def cows_needing_insemination(db: Session, farm_id: Optional[int] = None, as_of: Optional[date] = None) -> List[Dict[str, Any]]:
    """
    Open cows inside the insemination alert band, overdue, or due a retry.

    The band runs from 45 to 95 days after calving. Cows whose latest attempt
    failed at least 21 days ago are included as ready whatever their calving age.
    """
    as_of = as_of or today()
    results: List[Dict[str, Any]] = []

    for cow in open_cows_query(db, farm_id).all():
        animal = cow.animal
        if animal is None or cow.last_calving_date is None:
            continue

        retry_from = failed_retry_date(cow, as_of)
        reference_date = retry_from or cow.last_calving_date

        days_since_calving = days_between(cow.last_calving_date, as_of)
        days_until_ideal = IDEAL_START_DAYS - days_since_calving
        is_overdue = days_since_calving > IDEAL_END_DAYS
        is_close = (IDEAL_START_DAYS - ALERT_LEAD_DAYS) <= days_since_calving <= (IDEAL_END_DAYS + ALERT_LEAD_DAYS)

        if not is_close and not is_overdue and retry_from is None:
            continue

        if retry_from is not None:
            status = "ready"
            is_overdue = False
            days_until_ideal = 0
        elif is_overdue:
            status = "overdue"
        elif days_since_calving >= IDEAL_START_DAYS - ALERT_LEAD_DAYS:
            status = "ready"
        else:
            status = "approaching"

        latest = latest_insemination(cow)
        results.append({
            "cow_id": cow.id,
            "animal_id": animal.id,
            "tag_number": animal.tag_number,
            "name": animal.name,
            "last_calving_date": _iso(cow.last_calving_date),
            "reference_date": _iso(reference_date),
            "days_since_calving": days_since_calving,
            "days_since_reference": days_between(reference_date, as_of),
            "days_until_ideal": days_until_ideal,
            "is_overdue": is_overdue,
            "is_failed_retry": retry_from is not None,
            "status": status,
            "latest_insemination": insemination_summary(latest) if latest is not None else None,
        })
    return results


def next_insemination_period(cow: Cow, as_of: Optional[date] = None) -> Optional[Dict[str, Any]]:
    """Where a calved, open cow stands relative to her next insemination window."""
    if cow.last_calving_date is None or cow.last_insemination_date is not None:
        return None

    as_of = as_of or today()
    days_since_calving = days_between(cow.last_calving_date, as_of)

    if failed_retry_date(cow, as_of) is not None:
        return {
            "last_calving_date": _iso(cow.last_calving_date),
            "days_since_calving": days_since_calving,
            "ideal_start_days": 0,
            "ideal_end_days": 0,
            "days_until_ideal_start": 0,
            "days_until_ideal_end": 0,
            "is_in_window": True,
            "is_past_window": False,
            "is_before_window": False,
            "next_insemination_date": as_of.isoformat(),
            "status": "ready",
        }

    is_in_window = IDEAL_START_DAYS <= days_since_calving <= IDEAL_END_DAYS
    is_past_window = days_since_calving > IDEAL_END_DAYS
    is_before_window = days_since_calving < IDEAL_START_DAYS

    status = "ready"
    if is_past_window:
        status = "overdue"
    elif is_before_window:
        status = "approaching"

    return {
        "last_calving_date": _iso(cow.last_calving_date),
        "days_since_calving": days_since_calving,
        "ideal_start_days": IDEAL_START_DAYS,
        "ideal_end_days": IDEAL_END_DAYS,
        "days_until_ideal_start": IDEAL_START_DAYS - days_since_calving,
        "days_until_ideal_end": IDEAL_END_DAYS - days_since_calving,
        "is_in_window": is_in_window,
        "is_past_window": is_past_window,
        "is_before_window": is_before_window,
        "next_insemination_date": (cow.last_calving_date + timedelta(days=IDEAL_START_DAYS)).isoformat(),
        "status": status,
    }
