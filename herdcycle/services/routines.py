from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Optional

from ..exceptions import PreconditionError
from ..models import Animal
from .breeding import days_between, today
from .herd import CattleType
from .vitals import age_in_months

Routine = Dict[str, Any]


def bull_routine(animal: Animal, as_of: date) -> Routine:
    routine: Routine = {
        "feeding": "High-protein feed (2-3% body weight)",
        "exercise": "Controlled exercise and breeding activity monitoring",
        "health_check": "Check for injuries, aggression levels, and breeding fitness",
        "housing": "Secure, spacious pen with adequate ventilation",
        "notes": "Monitor semen quality and breeding performance",
    }
    if animal.bull is not None and animal.bull.aggression_level == "High":
        routine["safety"] = "Extra safety precautions required"
    return routine


def cow_routine(animal: Animal, as_of: date) -> Routine:
    routine: Routine = {
        "feeding": "Balanced feed with minerals (2-3% body weight)",
        "milking": "Twice daily milking schedule",
        "health_check": "Check udder health, body condition, and overall wellness",
        "housing": "Clean, comfortable milking parlor and resting area",
        "notes": "Monitor milk production and calving cycle",
    }
    cow = animal.cow
    if cow is not None and cow.milk_yield and cow.milk_yield > 0:
        routine["milking_details"] = {
            "frequency": "Twice daily",
            "expected_yield": f"{cow.milk_yield:g} liters/day",
        }
    if cow is not None and cow.last_calving_date is not None:
        if days_between(cow.last_calving_date, as_of) < 60:
            routine["post_calving_care"] = "Post-calving recovery period - monitor closely"
    return routine


def steer_routine(animal: Animal, as_of: date) -> Routine:
    routine: Routine = {
        "feeding": "High-energy feed for weight gain (2.5-3.5% body weight)",
        "exercise": "Moderate exercise to maintain muscle tone",
        "health_check": "Monitor weight gain, feed conversion ratio, and overall health",
        "housing": "Group housing with adequate space per animal",
        "notes": "Focus on efficient weight gain and feed conversion",
    }
    months = age_in_months(animal, as_of) or 0
    if months < 12:
        routine["feeding"] = "Growing feed with higher protein content"
        routine["growth_stage"] = "Early growth phase"
    elif months < 24:
        routine["feeding"] = "Finishing feed for optimal marbling"
        routine["growth_stage"] = "Finishing phase"
    return routine


def heifer_routine(animal: Animal, as_of: date) -> Routine:
    routine: Routine = {
        "feeding": "Balanced feed for growth and development (2-2.5% body weight)",
        "exercise": "Regular exercise to promote healthy development",
        "health_check": "Monitor growth rate, reproductive development, and overall health",
        "housing": "Group housing with other heifers",
        "notes": "Preparing for first breeding and future milk production",
    }
    months = age_in_months(animal, as_of) or 0
    if months < 6:
        routine["stage"] = "Pre-weaning - still with mother"
        routine["feeding"] = "Milk-based diet supplemented with starter feed"
    elif months < 12:
        routine["stage"] = "Post-weaning - growing phase"
        routine["feeding"] = "High-quality growing feed"
    elif months < 15:
        routine["stage"] = "Pre-breeding phase"
        routine["breeding_prep"] = "Monitor for breeding readiness (target: 13-15 months)"
    else:
        routine["stage"] = "Breeding age"
        routine["breeding_prep"] = "Ready for first breeding"
    return routine


ROUTINES: Dict[CattleType, Callable[[Animal, date], Routine]] = {
    CattleType.BULL: bull_routine,
    CattleType.COW: cow_routine,
    CattleType.STEER: steer_routine,
    CattleType.HEIFER: heifer_routine,
}


def process_daily_routine(animal: Animal, as_of: Optional[date] = None) -> Dict[str, Any]:
    if animal.species != "cattle":
        raise PreconditionError("Daily routines are only defined for cattle.")

    as_of = as_of or today()
    cattle_type = CattleType.parse(animal.type)
    return {
        "animal_id": animal.id,
        "tag_number": animal.tag_number,
        "type": cattle_type.value,
        "routine": ROUTINES[cattle_type](animal, as_of),
        "processed_on": as_of.isoformat(),
    }
