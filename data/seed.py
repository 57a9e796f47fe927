from __future__ import annotations

import logging
import random
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from herdcycle.db import Base, engine, get_db, init_db
from herdcycle.logging import setup_logging
from herdcycle.models import Animal, Bull, Cow, Farm, Insemination, FAILED
from herdcycle.schemas import AnimalCreate
from herdcycle.services.breeding import GESTATION_DAYS
from herdcycle.services.herd import add_animal, create_farm, register_farmer, register_vet

random.seed(42)
logger = logging.getLogger("seed")


def reset_db():
    Base.metadata.drop_all(bind=engine)
    init_db()


def seed_owner(db: Session) -> Farm:
    farmer = register_farmer(
        db,
        name="Demo Farmer",
        email="farmer@example.com",
        address="123 Farm Road, Countryside",
        subscription_plan="premium",
    )
    register_vet(db, name="Demo Vet", email="vet@example.com", license_number="VET-0001", specialization="Bovine")
    return create_farm(db, farmer, name="Large Cattle Farm", location="123 Farm Road", state="Countryside")


def seed_bulls(db: Session, farm: Farm, n_bulls: int = 3):
    today = date.today()
    for i in range(n_bulls):
        add_animal(db, farm, AnimalCreate(
            tag_number=f"BULL-{i + 1:02d}",
            species="cattle",
            type="Bull",
            name=f"Bull {i + 1}",
            date_of_birth=today - relativedelta(years=random.randint(3, 7)),
            semen_quality=random.choice(["Good", "Excellent"]),
            aggression_level=random.choice(["Low", "Medium", "High"]),
        ))


def _stage_dates(stage: int, today: date) -> dict:
    """Breeding dates for one of ten herd stages."""
    d = dict(last_calving_date=None, last_insemination_date=None,
             expected_calving_date=None, actual_calving_date=None)

    pregnant_ranges = {0: (10, 50), 1: (51, 150), 2: (151, 250), 3: (251, 280), 4: (281, 300)}
    calved_ranges = {5: (1, 30), 6: (31, 60), 7: (61, 90), 8: (91, 120)}

    if stage in pregnant_ranges:
        inseminated = today - timedelta(days=random.randint(*pregnant_ranges[stage]))
        d["last_insemination_date"] = inseminated
        d["expected_calving_date"] = inseminated + timedelta(days=GESTATION_DAYS)
    elif stage in calved_ranges:
        # open again after calving
        d["last_calving_date"] = today - timedelta(days=random.randint(*calved_ranges[stage]))
    else:
        d["last_calving_date"] = today - timedelta(days=random.randint(120, 200))
    return d


def seed_cows(db: Session, farm: Farm, n_cows: int = 100):
    today = date.today()

    for i in range(1, n_cows + 1):
        stage = i % 10
        dates = _stage_dates(stage, today)

        cow = Cow(milk_yield=float(random.randint(15, 40)), **dates)
        # first ten are heifers unless they already calved
        animal_type = "Heifer" if i <= 10 and dates["last_calving_date"] is None else "Cow"
        db.add(Animal(
            tag_number=f"COW-{i:03d}",
            farm_id=farm.id,
            species="cattle",
            type=animal_type,
            name=f"Cow {i}",
            gender="female",
            date_of_birth=today - relativedelta(years=random.randint(2, 8), days=random.randint(0, 365)),
            cow=cow,
            is_active=True,
        ))
    db.commit()


def seed_failed_inseminations(db: Session, farm: Farm, k: int = 5):
    """Give a few open cows a failed attempt old enough to retry."""
    bull = db.query(Bull).join(Animal, Animal.bull_id == Bull.id).filter(Animal.farm_id == farm.id).first()
    open_cows = (
        db.query(Cow)
        .join(Animal, Animal.cow_id == Cow.id)
        .filter(Animal.farm_id == farm.id)
        .filter(Cow.last_calving_date.isnot(None))
        .filter(Cow.last_insemination_date.is_(None))
        .all()
    )
    for cow in random.sample(open_cows, k=min(k, len(open_cows))):
        db.add(Insemination(
            cow=cow,
            animal_id=cow.animal.id,
            bull_id=bull.id if bull else None,
            insemination_date=date.today() - timedelta(days=random.randint(21, 40)),
            status=FAILED,
            notes="Returned to heat",
        ))
    db.commit()


def main():
    setup_logging()
    reset_db()
    with get_db() as db:
        farm = seed_owner(db)
        seed_bulls(db, farm)
        seed_cows(db, farm, n_cows=100)
        seed_failed_inseminations(db, farm)
        logger.info(f"Seed complete: farm {farm.id} with 100 cows across ten breeding stages")
        print("Stages: early/mid/late pregnancy, due soon, overdue, calved 1-30/31-60/61-90/91-120 days, open 120+ days")


if __name__ == "__main__":
    main()
