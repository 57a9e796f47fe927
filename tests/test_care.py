"""
Tests for daily routines, vitals and weaning checks.
"""
from datetime import date, datetime

import pytest
from dateutil.relativedelta import relativedelta

from herdcycle.exceptions import PreconditionError, UnknownCattleTypeError
from herdcycle.models import Animal, Bull, Cow
from herdcycle.schemas import VitalsCreate
from herdcycle.services.herd import CattleType
from herdcycle.services.routines import ROUTINES, process_daily_routine
from herdcycle.services.vitals import age_in_months, check_weaning_eligibility, recent_vitals, record_vitals

AS_OF = date(2025, 6, 1)


def cattle(animal_type, months_old=36, **kwargs):
    return Animal(
        id=1,
        tag_number="T1",
        species="cattle",
        type=animal_type,
        date_of_birth=AS_OF - relativedelta(months=months_old),
        **kwargs,
    )


class TestDailyRoutine:

    def test_every_type_has_a_routine(self):
        assert set(ROUTINES) == set(CattleType)

    def test_bull_safety_note(self):
        calm = process_daily_routine(cattle("Bull", bull=Bull(aggression_level="Low")), AS_OF)
        wild = process_daily_routine(cattle("Bull", bull=Bull(aggression_level="High")), AS_OF)

        assert "safety" not in calm["routine"]
        assert wild["routine"]["safety"] == "Extra safety precautions required"
        assert wild["type"] == "Bull"
        assert wild["processed_on"] == "2025-06-01"

    def test_cow_milking_and_post_calving(self):
        animal = cattle("Cow", cow=Cow(milk_yield=28.0, last_calving_date=AS_OF - relativedelta(days=20)))
        routine = process_daily_routine(animal, AS_OF)["routine"]

        assert routine["milking_details"]["expected_yield"] == "28 liters/day"
        assert "post_calving_care" in routine

    def test_cow_without_yield(self):
        routine = process_daily_routine(cattle("Cow", cow=Cow(milk_yield=0)), AS_OF)["routine"]
        assert "milking_details" not in routine
        assert "post_calving_care" not in routine

    @pytest.mark.parametrize("months,stage", [
        (3, "Pre-weaning - still with mother"),
        (8, "Post-weaning - growing phase"),
        (13, "Pre-breeding phase"),
        (20, "Breeding age"),
    ])
    def test_heifer_stage_by_age(self, months, stage):
        routine = process_daily_routine(cattle("Heifer", months_old=months), AS_OF)["routine"]
        assert routine["stage"] == stage

    @pytest.mark.parametrize("months,phase", [
        (6, "Early growth phase"),
        (18, "Finishing phase"),
        (30, None),
    ])
    def test_steer_growth_stage(self, months, phase):
        routine = process_daily_routine(cattle("Steer", months_old=months), AS_OF)["routine"]
        assert routine.get("growth_stage") == phase

    def test_type_is_parsed(self):
        assert process_daily_routine(cattle("heifer"), AS_OF)["type"] == "Heifer"

    def test_unknown_type(self):
        with pytest.raises(UnknownCattleTypeError):
            process_daily_routine(cattle("Calf"), AS_OF)

    def test_non_cattle(self):
        with pytest.raises(PreconditionError):
            process_daily_routine(Animal(species="horse", type="Mare", tag_number="H1"), AS_OF)


class TestWeaning:

    @pytest.mark.parametrize("months,eligible", [(5, False), (6, True), (8, True), (9, False)])
    def test_window(self, months, eligible):
        result = check_weaning_eligibility(cattle("Heifer", months_old=months), AS_OF)
        assert result["eligible"] is eligible
        assert result["age_in_months"] == months

    def test_recommendations(self):
        young = check_weaning_eligibility(cattle("Heifer", months_old=2), AS_OF)
        old = check_weaning_eligibility(cattle("Heifer", months_old=12), AS_OF)
        assert young["recommendation"] == "Too young - wait until 6 months"
        assert old["recommendation"].startswith("Past optimal weaning window")

    def test_missing_birth_date(self):
        result = check_weaning_eligibility(Animal(species="cattle", type="Heifer", tag_number="T1"), AS_OF)
        assert result == {"eligible": False, "reason": "Date of birth not available"}

    def test_age_in_months_whole_months(self):
        animal = Animal(date_of_birth=date(2025, 1, 31))
        assert age_in_months(animal, date(2025, 2, 28)) == 0
        assert age_in_months(animal, date(2025, 3, 31)) == 2
        assert age_in_months(Animal(), AS_OF) is None


class TestVitals:

    def test_record_and_list_newest_first(self, db_session, make_cow):
        animal = make_cow("C1").animal
        first = record_vitals(db_session, animal, VitalsCreate(temperature=38.5, checked_at=datetime(2025, 5, 1, 8)))
        latest = record_vitals(db_session, animal, VitalsCreate(weight=550, heart_rate=70,
                                                                checked_at=datetime(2025, 5, 2, 8)))

        vitals = recent_vitals(db_session, animal)
        assert [v.id for v in vitals] == [latest.id, first.id]
        assert vitals[1].temperature == 38.5
        assert len(recent_vitals(db_session, animal, limit=1)) == 1

    def test_cattle_only(self, db_session, farm):
        horse = Animal(tag_number="H1", farm_id=farm.id, species="horse", type="Mare", gender="female")
        db_session.add(horse)
        db_session.commit()

        with pytest.raises(PreconditionError):
            record_vitals(db_session, horse, VitalsCreate(temperature=38.0))
