from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from ..db import atomic
from ..exceptions import PreconditionError
from ..models import Animal, CattleVital
from ..schemas import VitalsCreate

MIN_WEANING_MONTHS = 6
MAX_WEANING_MONTHS = 8


def _require_cattle(animal: Animal) -> None:
    if animal.species != "cattle":
        raise PreconditionError("This operation only works for cattle animals.")


def age_in_months(animal: Animal, as_of: Optional[date] = None) -> Optional[int]:
    if animal.date_of_birth is None:
        return None
    as_of = as_of or date.today()
    delta = relativedelta(as_of, animal.date_of_birth)
    return delta.years * 12 + delta.months


def record_vitals(db: Session, animal: Animal, payload: VitalsCreate) -> CattleVital:
    _require_cattle(animal)
    vital = CattleVital(
        animal_id=animal.id,
        weight=payload.weight,
        heart_rate=payload.heart_rate,
        temperature=payload.temperature,
        respiration_rate=payload.respiration_rate,
        notes=payload.notes,
    )
    if payload.checked_at is not None:
        vital.checked_at = payload.checked_at
    with atomic(db):
        db.add(vital)
    return vital


def recent_vitals(db: Session, animal: Animal, limit: int = 10) -> List[CattleVital]:
    return (
        db.query(CattleVital)
        .filter(CattleVital.animal_id == animal.id)
        .order_by(CattleVital.checked_at.desc(), CattleVital.id.desc())
        .limit(limit)
        .all()
    )


def check_weaning_eligibility(animal: Animal, as_of: Optional[date] = None) -> Dict[str, Any]:
    """Calves are weaned between 6 and 8 months of age."""
    _require_cattle(animal)

    if animal.date_of_birth is None:
        return {"eligible": False, "reason": "Date of birth not available"}

    as_of = as_of or date.today()
    months = age_in_months(animal, as_of)
    eligible = MIN_WEANING_MONTHS <= months <= MAX_WEANING_MONTHS

    if eligible:
        recommendation = "Ready for weaning"
    elif months < MIN_WEANING_MONTHS:
        recommendation = f"Too young - wait until {MIN_WEANING_MONTHS} months"
    else:
        recommendation = f"Past optimal weaning window - should have been weaned by {MAX_WEANING_MONTHS} months"

    return {
        "eligible": eligible,
        "age_in_months": months,
        "age_in_days": (as_of - animal.date_of_birth).days,
        "min_age_months": MIN_WEANING_MONTHS,
        "max_age_months": MAX_WEANING_MONTHS,
        "recommendation": recommendation,
        "has_mother": animal.mother_id is not None,
    }
