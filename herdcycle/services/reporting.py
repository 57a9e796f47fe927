from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from ..models import Animal
from .breeding import next_insemination_period, pregnancy_progress, today
from .herd import BREEDING_FEMALE_TYPES
from .notifications import CALVING_DUE_SOON

NOTIFICATION_COLUMNS = ["Type", "Tag Number", "Priority", "Message"]
OVERVIEW_COLUMNS = [
    "tag_number",
    "name",
    "type",
    "pregnancy_status",
    "progress_percentage",
    "expected_calving_date",
    "days_until_calving",
    "last_calving_date",
    "insemination_status",
    "next_insemination_date",
]


def notifications_frame(notifications: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = [
        {
            "Type": "Calving" if n["type"] == CALVING_DUE_SOON else "Insemination",
            "Tag Number": n["tag_number"],
            "Priority": n["priority"].upper(),
            "Message": n["message"],
        }
        for n in notifications
    ]
    return pd.DataFrame(rows, columns=NOTIFICATION_COLUMNS)


def priority_counts(notifications: List[Dict[str, Any]]) -> Dict[str, int]:
    counts = {"high": 0, "medium": 0, "low": 0}
    for n in notifications:
        counts[n["priority"]] = counts.get(n["priority"], 0) + 1
    return counts


def breeding_overview_frame(db: Session, farm_id: int, as_of: Optional[date] = None) -> pd.DataFrame:
    """One row per breeding female on the farm with her current cycle position."""
    as_of = as_of or today()
    animals = (
        db.query(Animal)
        .filter(Animal.farm_id == farm_id)
        .filter(Animal.species == "cattle")
        .filter(Animal.type.in_(BREEDING_FEMALE_TYPES))
        .filter(Animal.cow_id.isnot(None))
        .order_by(Animal.tag_number)
        .all()
    )

    rows = []
    for animal in animals:
        cow = animal.cow
        progress = pregnancy_progress(cow, as_of) or {}
        period = next_insemination_period(cow, as_of) or {}
        rows.append({
            "tag_number": animal.tag_number,
            "name": animal.name,
            "type": animal.type,
            "pregnancy_status": progress.get("status", "open"),
            "progress_percentage": progress.get("progress_percentage"),
            "expected_calving_date": progress.get("expected_calving_date"),
            "days_until_calving": progress.get("days_until_calving"),
            "last_calving_date": cow.last_calving_date.isoformat() if cow.last_calving_date else None,
            "insemination_status": period.get("status"),
            "next_insemination_date": period.get("next_insemination_date"),
        })
    return pd.DataFrame(rows, columns=OVERVIEW_COLUMNS)
