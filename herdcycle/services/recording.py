"""
Breeding state transitions.

Each operation runs in a single transaction: the cow's dates, the log
entries and any calves are written together or not at all.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..db import atomic
from ..exceptions import ConflictError, NotFoundError, PreconditionError, ValidationError
from ..logging import herd_context
from ..models import (
    CONFIRMED, INSEMINATION_STATUSES, NEEDS_REPEAT, PENDING,
    Animal, Calving, Cow, Insemination,
)
from ..schemas import CalfCreate
from .breeding import GESTATION_DAYS
from .herd import CattleType, attach_detail, breeding_cow, build_detail, canonical_type, gender_for_type, tag_in_use

logger = logging.getLogger(__name__)

REPLACED_NOTE = "Replaced by new insemination"

_UNCHANGED = object()


def _require_animal(cow: Cow) -> Animal:
    if cow.animal is None:
        raise NotFoundError("Animal record for cow", cow.id)
    # only cattle cows and heifers carry a breeding cycle
    breeding_cow(cow.animal)
    return cow.animal


def record_insemination(
    db: Session,
    cow: Cow,
    insemination_date: date,
    notes: Optional[str] = None,
    performed_by: Optional[str] = None,
    bull_id: Optional[int] = None,
) -> Insemination:
    """
    Log a new pending insemination.

    A still-pending earlier attempt becomes needs_repeat. The cow's own
    insemination date is left alone until the attempt is confirmed, so she
    keeps appearing among cows needing insemination meanwhile.
    """
    animal = _require_animal(cow)

    if bull_id is not None:
        bull_animal = db.query(Animal).filter(Animal.bull_id == bull_id).first()
        if bull_animal is None or bull_animal.farm_id != animal.farm_id:
            raise PreconditionError("Bull must belong to the same farm as the cow.")

    previous = (
        db.query(Insemination)
        .filter(Insemination.animal_id == animal.id)
        .filter(Insemination.status == PENDING)
        .order_by(Insemination.created_at.desc(), Insemination.id.desc())
        .first()
    )

    with atomic(db):
        if previous is not None:
            previous.status = NEEDS_REPEAT
            previous.notes = f"{previous.notes} ({REPLACED_NOTE})" if previous.notes else REPLACED_NOTE
            logger.info(f"Insemination {previous.id} for {animal.tag_number} marked needs_repeat",
                        extra=herd_context(animal.farm_id, animal.tag_number, cow.id))

        insemination = Insemination(
            cow=cow,
            animal_id=animal.id,
            bull_id=bull_id,
            insemination_date=insemination_date,
            status=PENDING,
            notes=notes,
            performed_by=performed_by,
        )
        db.add(insemination)

    logger.info(f"Recorded insemination for {animal.tag_number} on {insemination_date.isoformat()}",
                extra=herd_context(animal.farm_id, animal.tag_number, cow.id))
    return insemination


def update_insemination_status(db: Session, insemination: Insemination, status: str, notes=_UNCHANGED) -> Insemination:
    """
    Change an attempt's status.

    Confirming the cow's most recently created confirmed attempt starts her
    pregnancy: last insemination date and expected calving date are set.
    """
    if status not in INSEMINATION_STATUSES:
        raise ValidationError(f"Invalid insemination status: {status}", field="status")

    with atomic(db):
        insemination.status = status
        if notes is not _UNCHANGED:
            insemination.notes = notes
        db.flush()

        if status == CONFIRMED:
            latest_confirmed = (
                db.query(Insemination)
                .filter(Insemination.cow_id == insemination.cow_id)
                .filter(Insemination.status == CONFIRMED)
                .order_by(Insemination.created_at.desc(), Insemination.id.desc())
                .first()
            )
            if latest_confirmed is not None and latest_confirmed.id == insemination.id:
                cow = insemination.cow
                cow.last_insemination_date = insemination.insemination_date
                cow.expected_calving_date = insemination.insemination_date + timedelta(days=GESTATION_DAYS)

    logger.info(f"Insemination {insemination.id} set to {status}", extra=herd_context(cow_id=insemination.cow_id))
    return insemination


def resolve_sire(db: Session, cow: Cow, animal: Animal) -> Optional[int]:
    """Animal id of the bull behind the current pregnancy, if known."""
    if cow.last_insemination_date is None:
        return None

    insemination = (
        db.query(Insemination)
        .filter(Insemination.cow_id == cow.id)
        .filter(Insemination.insemination_date == cow.last_insemination_date)
        .filter(Insemination.status == CONFIRMED)
        .order_by(Insemination.created_at.desc(), Insemination.id.desc())
        .first()
    )
    if insemination is None or insemination.bull_id is None:
        return None

    bull_animal = (
        db.query(Animal)
        .filter(Animal.bull_id == insemination.bull_id)
        .filter(Animal.farm_id == animal.farm_id)
        .first()
    )
    return bull_animal.id if bull_animal is not None else None


def promote_heifer(animal: Animal) -> bool:
    """A heifer becomes a cow at her first calving."""
    if animal.type != CattleType.HEIFER.value:
        return False
    animal.type = CattleType.COW.value
    logger.info(f"Heifer {animal.tag_number} has become a Cow after first calving",
                extra=herd_context(animal.farm_id, animal.tag_number))
    return True


def _create_calf(db: Session, mother: Animal, calf: CalfCreate, calving_date: date, father_id: Optional[int]) -> Animal:
    calf_type = canonical_type("cattle", calf.type)
    detail = build_detail(
        "cattle",
        calf_type,
        milk_yield=calf.milk_yield,
        semen_quality=calf.semen_quality,
        aggression_level=calf.aggression_level,
    )
    animal = Animal(
        tag_number=calf.tag_number,
        farm_id=mother.farm_id,
        species="cattle",
        type=calf_type,
        name=calf.name,
        gender=gender_for_type(calf_type, "cattle"),
        date_of_birth=calf.date_of_birth or calving_date,
        mother_id=mother.id,
        father_id=calf.father_id if calf.father_id is not None else father_id,
        is_active=True,
    )
    attach_detail(animal, detail)
    db.add(animal)
    return animal


def record_calving(
    db: Session,
    cow: Cow,
    calving_date: date,
    is_successful: bool = True,
    calves: Optional[List[CalfCreate]] = None,
    notes: Optional[str] = None,
    performed_by: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Close the cow's pregnancy cycle.

    The cycle closes and a calving entry is logged whether or not the calving
    succeeded. Calves are only created for a successful calving.
    """
    animal = _require_animal(cow)
    father_id = resolve_sire(db, cow, animal)
    first_calving = cow.actual_calving_date is None

    created: List[Animal] = []
    with atomic(db):
        cow.actual_calving_date = calving_date
        cow.last_calving_date = calving_date
        cow.last_insemination_date = None
        cow.expected_calving_date = None
        if performed_by:
            cow.performed_by = performed_by

        calving = Calving(
            cow=cow,
            animal_id=animal.id,
            calving_date=calving_date,
            is_successful=is_successful,
            notes=notes,
            performed_by=performed_by,
        )
        db.add(calving)

        if first_calving:
            promote_heifer(animal)

        if is_successful and calves:
            seen = set()
            for calf in calves:
                if calf.tag_number in seen or tag_in_use(db, animal.farm_id, calf.tag_number):
                    raise ConflictError(f"Tag {calf.tag_number} is already used on farm {animal.farm_id}.")
                seen.add(calf.tag_number)
                created.append(_create_calf(db, animal, calf, calving_date, father_id))

    logger.info(
        f"Recorded {'successful' if is_successful else 'unsuccessful'} calving for "
        f"{animal.tag_number} on {calving_date.isoformat()} ({len(created)} calves)",
        extra=herd_context(animal.farm_id, animal.tag_number, cow.id),
    )
    return {
        "success": True,
        "calving": calving,
        "calves": created,
        "notes": notes,
    }
