from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from ..db import atomic
from ..exceptions import ConflictError, PreconditionError, UnknownCattleTypeError, ValidationError
from ..models import SPECIES, Animal, Bull, Calving, Cow, Farm, Farmer, Insemination, Vet, utcnow
from ..schemas import AnimalCreate

logger = logging.getLogger(__name__)


class CattleType(str, Enum):
    BULL = "Bull"
    COW = "Cow"
    STEER = "Steer"
    HEIFER = "Heifer"

    @classmethod
    def parse(cls, value: str) -> "CattleType":
        for t in cls:
            if t.value.lower() == value.strip().lower():
                return t
        raise UnknownCattleTypeError(value)


BREEDING_FEMALE_TYPES = (CattleType.COW.value, CattleType.HEIFER.value)

MALE_TYPES = {
    "cattle": {"bull", "steer"},
    "horse": {"stallion", "gelding"},
    "sheep": {"ram", "wether"},
}

AnimalDetail = Union[None, Cow, Bull]


def gender_for_type(animal_type: str, species: str) -> str:
    if animal_type.strip().lower() in MALE_TYPES.get(species.strip().lower(), set()):
        return "male"
    return "female"


def canonical_type(species: str, animal_type: str) -> str:
    """Cattle types are stored in their canonical spelling; other species as given."""
    if species != "cattle":
        return animal_type
    return CattleType.parse(animal_type).value


def build_detail(
    species: str,
    animal_type: str,
    *,
    milk_yield: Optional[float] = None,
    last_calving_date=None,
    semen_quality: Optional[str] = None,
    aggression_level: Optional[str] = None,
) -> AnimalDetail:
    """Horses and sheep carry no detail; bulls a Bull; cows, heifers and steers a Cow."""
    if species != "cattle":
        return None
    if CattleType.parse(animal_type) is CattleType.BULL:
        return Bull(semen_quality=semen_quality, aggression_level=aggression_level)
    return Cow(milk_yield=milk_yield, last_calving_date=last_calving_date)


def attach_detail(animal: Animal, detail: AnimalDetail) -> None:
    if isinstance(detail, Cow):
        animal.cow = detail
    elif isinstance(detail, Bull):
        animal.bull = detail


def register_farmer(db: Session, name: str, email: str, phone: Optional[str] = None,
                    address: Optional[str] = None, subscription_plan: str = "basic",
                    locale: str = "en") -> Farmer:
    if db.query(Farmer).filter(Farmer.email == email).first():
        raise ConflictError(f"A farmer with email {email} already exists.")
    farmer = Farmer(name=name, email=email, phone=phone, address=address,
                    subscription_plan=subscription_plan, locale=locale)
    with atomic(db):
        db.add(farmer)
    return farmer


def register_vet(db: Session, name: str, email: str, license_number: Optional[str] = None,
                 specialization: Optional[str] = None, clinic_name: Optional[str] = None) -> Vet:
    if db.query(Vet).filter(Vet.email == email).first():
        raise ConflictError(f"A vet with email {email} already exists.")
    vet = Vet(name=name, email=email, license_number=license_number,
              specialization=specialization, clinic_name=clinic_name)
    with atomic(db):
        db.add(vet)
    return vet


def create_farm(db: Session, farmer: Farmer, name: str, location: Optional[str] = None,
                state: Optional[str] = None) -> Farm:
    if farmer.farm is not None:
        raise ConflictError(f"Farmer {farmer.id} already owns a farm.")
    farm = Farm(name=name, farmer=farmer, location=location, state=state,
                is_active=True, approved_at=utcnow())
    with atomic(db):
        db.add(farm)
    return farm


def tag_in_use(db: Session, farm_id: int, tag_number: str) -> bool:
    return (
        db.query(Animal.id)
        .filter(Animal.farm_id == farm_id)
        .filter(Animal.tag_number == tag_number)
        .first()
        is not None
    )


def add_animal(db: Session, farm: Farm, payload: AnimalCreate) -> Animal:
    if payload.species not in SPECIES:
        raise ValidationError(f"Unsupported species: {payload.species}", field="species")
    if tag_in_use(db, farm.id, payload.tag_number):
        raise ConflictError(f"Tag {payload.tag_number} is already used on farm {farm.id}.")

    # raises for unknown cattle types before anything is written
    animal_type = canonical_type(payload.species, payload.type)
    detail = build_detail(
        payload.species,
        animal_type,
        milk_yield=payload.milk_yield,
        last_calving_date=payload.last_calving_date,
        semen_quality=payload.semen_quality,
        aggression_level=payload.aggression_level,
    )

    animal = Animal(
        tag_number=payload.tag_number,
        farm_id=farm.id,
        species=payload.species,
        type=animal_type,
        name=payload.name,
        gender=gender_for_type(animal_type, payload.species),
        date_of_birth=payload.date_of_birth,
        mother_id=payload.mother_id,
        father_id=payload.father_id,
        is_active=True,
    )
    attach_detail(animal, detail)

    with atomic(db):
        db.add(animal)
    logger.info(f"Added {payload.species} {payload.tag_number} to farm {farm.id}")
    return animal


def list_animals(db: Session, farm_id: int, species: Optional[str] = None,
                 animal_type: Optional[str] = None) -> List[Animal]:
    query = db.query(Animal).filter(Animal.farm_id == farm_id)
    if species:
        query = query.filter(Animal.species == species)
    if animal_type:
        query = query.filter(Animal.type == animal_type)
    return query.order_by(Animal.id).all()


def breeding_cow(animal: Animal) -> Cow:
    """The Cow detail of a cattle cow or heifer."""
    if animal.species != "cattle" or animal.type not in BREEDING_FEMALE_TYPES:
        raise PreconditionError(
            f"Breeding records can only be kept for cattle cows and heifers, not {animal.species} {animal.type}."
        )
    if animal.cow is None:
        raise PreconditionError(f"Animal {animal.tag_number} has no cow record.")
    return animal.cow


def insemination_history(db: Session, cow: Cow) -> List[Insemination]:
    return (
        db.query(Insemination)
        .filter(Insemination.cow_id == cow.id)
        .order_by(Insemination.created_at.desc(), Insemination.id.desc())
        .all()
    )


def calving_history(db: Session, animal: Animal) -> List[Calving]:
    return (
        db.query(Calving)
        .filter(Calving.animal_id == animal.id)
        .order_by(Calving.calving_date.desc(), Calving.id.desc())
        .all()
    )
