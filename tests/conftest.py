"""
Pytest configuration and fixtures

Every test gets its own in-memory SQLite database, so nothing leaks between
tests and application code is free to commit.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from herdcycle.db import init_db
from herdcycle.models import Animal, Bull, Cow, Insemination
from herdcycle.services.herd import create_farm, register_farmer


@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    """Session bound to the per-test database."""
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)()
    yield session
    session.close()


@pytest.fixture
def farmer(db_session):
    return register_farmer(db_session, name="Test Farmer", email="farmer@example.com")


@pytest.fixture
def farm(db_session, farmer):
    return create_farm(db_session, farmer, name="Test Farm", location="1 Test Lane")


@pytest.fixture
def other_farm(db_session):
    owner = register_farmer(db_session, name="Other Farmer", email="other@example.com")
    return create_farm(db_session, owner, name="Other Farm")


@pytest.fixture
def make_cow(db_session, farm):
    """Factory for a cattle Cow (or Heifer) with the given breeding dates."""

    def _make(tag, animal_type="Cow", on_farm=None, milk_yield=20.0, **dates):
        cow = Cow(milk_yield=milk_yield, **dates)
        db_session.add(Animal(
            tag_number=tag,
            farm_id=(on_farm or farm).id,
            species="cattle",
            type=animal_type,
            name=f"{animal_type} {tag}",
            gender="female",
            cow=cow,
        ))
        db_session.commit()
        return cow

    return _make


@pytest.fixture
def make_bull(db_session, farm):
    """Factory for a cattle Bull; returns the Animal."""

    def _make(tag, on_farm=None, aggression_level="Low"):
        animal = Animal(
            tag_number=tag,
            farm_id=(on_farm or farm).id,
            species="cattle",
            type="Bull",
            name=f"Bull {tag}",
            gender="male",
            bull=Bull(semen_quality="Good", aggression_level=aggression_level),
        )
        db_session.add(animal)
        db_session.commit()
        return animal

    return _make


@pytest.fixture
def add_insemination(db_session):
    """Factory writing an insemination attempt straight to the database."""

    def _add(cow, insemination_date, status, notes=None):
        ins = Insemination(
            cow=cow,
            animal_id=cow.animal.id,
            insemination_date=insemination_date,
            status=status,
            notes=notes,
        )
        db_session.add(ins)
        db_session.commit()
        return ins

    return _add
