"""
Tests for the unit-of-work session helper.
"""
import pytest
from sqlalchemy.orm import sessionmaker

from herdcycle.db import get_db
from herdcycle.exceptions import ConflictError
from herdcycle.models import Farmer, utcnow


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def test_commits_on_success(session_factory):
    with get_db(session_factory) as db:
        db.add(Farmer(name="A", email="a@example.com"))

    with get_db(session_factory) as db:
        assert db.query(Farmer).count() == 1


def test_rolls_back_and_reraises(session_factory):
    with pytest.raises(RuntimeError):
        with get_db(session_factory) as db:
            db.add(Farmer(name="A", email="a@example.com"))
            db.flush()
            raise RuntimeError("boom")

    with get_db(session_factory) as db:
        assert db.query(Farmer).count() == 0


def test_domain_errors_propagate(session_factory):
    with pytest.raises(ConflictError):
        with get_db(session_factory) as db:
            db.add(Farmer(name="A", email="a@example.com"))
            raise ConflictError("duplicate")

    with get_db(session_factory) as db:
        assert db.query(Farmer).count() == 0


def test_each_unit_of_work_gets_its_own_session(session_factory):
    with get_db(session_factory) as first:
        first.add(Farmer(name="A", email="a@example.com"))
    with get_db(session_factory) as second:
        farmer = second.query(Farmer).one()

    assert first is not second
    assert farmer not in first
    # closed sessions hold nothing
    assert list(first) == []


def test_utcnow_is_naive():
    assert utcnow().tzinfo is None
