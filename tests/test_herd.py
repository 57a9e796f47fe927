"""
Tests for herd registration and the cattle detail records.
"""
from datetime import date

import pytest

from herdcycle.exceptions import ConflictError, PreconditionError, UnknownCattleTypeError, ValidationError
from herdcycle.models import Animal, Bull, Cow
from herdcycle.schemas import AnimalCreate
from herdcycle.services.herd import (
    CattleType,
    add_animal,
    breeding_cow,
    build_detail,
    canonical_type,
    create_farm,
    gender_for_type,
    list_animals,
    register_farmer,
    register_vet,
)
from herdcycle.services.recording import record_calving


class TestCattleType:

    def test_parse_is_case_insensitive(self):
        assert CattleType.parse("heifer") is CattleType.HEIFER
        assert CattleType.parse(" BULL ") is CattleType.BULL

    def test_unknown_type(self):
        with pytest.raises(UnknownCattleTypeError) as exc:
            CattleType.parse("Calf")
        assert exc.value.detail == "Unknown cattle type: Calf"
        assert exc.value.error_code == "VALIDATION_ERROR_TYPE"
        assert isinstance(exc.value, ValidationError)


class TestDetail:

    @pytest.mark.parametrize("species,animal_type,expected", [
        ("cattle", "Bull", Bull),
        ("cattle", "Cow", Cow),
        ("cattle", "Heifer", Cow),
        ("cattle", "Steer", Cow),
    ])
    def test_cattle_detail(self, species, animal_type, expected):
        assert isinstance(build_detail(species, animal_type), expected)

    def test_horses_and_sheep_have_none(self):
        assert build_detail("horse", "Stallion") is None
        assert build_detail("sheep", "Ewe") is None

    def test_detail_fields(self):
        cow = build_detail("cattle", "Cow", milk_yield=25.5, last_calving_date=date(2025, 1, 1))
        assert cow.milk_yield == 25.5
        assert cow.last_calving_date == date(2025, 1, 1)

        bull = build_detail("cattle", "Bull", semen_quality="Excellent", aggression_level="High")
        assert bull.aggression_level == "High"

    @pytest.mark.parametrize("animal_type,species,gender", [
        ("Bull", "cattle", "male"),
        ("steer", "cattle", "male"),
        ("Heifer", "cattle", "female"),
        ("Gelding", "horse", "male"),
        ("Mare", "horse", "female"),
        ("Ram", "sheep", "male"),
        ("Wether", "sheep", "male"),
        ("Ewe", "sheep", "female"),
    ])
    def test_gender_for_type(self, animal_type, species, gender):
        assert gender_for_type(animal_type, species) == gender


class TestRegistration:

    def test_duplicate_farmer_email(self, db_session, farmer):
        with pytest.raises(ConflictError):
            register_farmer(db_session, name="Again", email="farmer@example.com")

    def test_duplicate_vet_email(self, db_session):
        register_vet(db_session, name="Vet", email="vet@example.com")
        with pytest.raises(ConflictError):
            register_vet(db_session, name="Vet Two", email="vet@example.com")

    def test_one_farm_per_farmer(self, db_session, farmer, farm):
        assert farmer.farm is farm
        with pytest.raises(ConflictError):
            create_farm(db_session, farmer, name="Second Farm")


class TestAddAnimal:

    def test_cow_with_detail(self, db_session, farm):
        animal = add_animal(db_session, farm, AnimalCreate(
            tag_number="C1", species="cattle", type="Cow", milk_yield=30, last_calving_date=date(2025, 3, 1),
        ))
        assert animal.gender == "female"
        assert animal.detail is animal.cow
        assert animal.cow.milk_yield == 30
        assert animal.bull_id is None

    def test_bull_with_detail(self, db_session, farm):
        animal = add_animal(db_session, farm, AnimalCreate(
            tag_number="B1", species="cattle", type="Bull", aggression_level="Medium",
        ))
        assert animal.gender == "male"
        assert animal.detail is animal.bull
        assert animal.cow_id is None

    def test_horse_without_detail(self, db_session, farm):
        animal = add_animal(db_session, farm, AnimalCreate(tag_number="H1", species="horse", type="Stallion"))
        assert animal.gender == "male"
        assert animal.detail is None

    def test_unknown_cattle_type_writes_nothing(self, db_session, farm):
        with pytest.raises(UnknownCattleTypeError):
            add_animal(db_session, farm, AnimalCreate(tag_number="X1", species="cattle", type="Calf"))
        assert db_session.query(Animal).count() == 0

    def test_duplicate_tag_on_farm(self, db_session, farm, other_farm):
        add_animal(db_session, farm, AnimalCreate(tag_number="T1", species="sheep", type="Ewe"))
        with pytest.raises(ConflictError):
            add_animal(db_session, farm, AnimalCreate(tag_number="T1", species="sheep", type="Ram"))

        # same tag is fine on another farm
        add_animal(db_session, other_farm, AnimalCreate(tag_number="T1", species="sheep", type="Ram"))

    def test_list_animals_filters(self, db_session, farm):
        add_animal(db_session, farm, AnimalCreate(tag_number="C1", species="cattle", type="Cow"))
        add_animal(db_session, farm, AnimalCreate(tag_number="B1", species="cattle", type="Bull"))
        add_animal(db_session, farm, AnimalCreate(tag_number="S1", species="sheep", type="Ewe"))

        assert [a.tag_number for a in list_animals(db_session, farm.id)] == ["C1", "B1", "S1"]
        assert [a.tag_number for a in list_animals(db_session, farm.id, species="cattle")] == ["C1", "B1"]
        assert [a.tag_number for a in list_animals(db_session, farm.id, animal_type="Bull")] == ["B1"]


class TestBreedingCow:

    def test_cow_and_heifer(self, make_cow):
        cow = make_cow("C1")
        heifer = make_cow("H1", animal_type="Heifer")
        assert breeding_cow(cow.animal) is cow
        assert breeding_cow(heifer.animal) is heifer

    def test_bull_rejected(self, make_bull):
        with pytest.raises(PreconditionError):
            breeding_cow(make_bull("B1"))

    def test_steer_rejected(self, db_session, farm):
        steer = add_animal(db_session, farm, AnimalCreate(tag_number="S1", species="cattle", type="Steer"))
        with pytest.raises(PreconditionError):
            breeding_cow(steer)

    def test_other_species_rejected(self, db_session, farm):
        sheep = add_animal(db_session, farm, AnimalCreate(tag_number="S1", species="sheep", type="Cow"))
        with pytest.raises(PreconditionError):
            breeding_cow(sheep)


class TestTypeSpelling:
    """Cattle types are stored in one spelling whatever the input case."""

    def test_lowercase_cattle_type_stored_canonically(self, db_session, farm):
        animal = add_animal(db_session, farm, AnimalCreate(tag_number="H1", species="cattle", type="heifer"))

        assert animal.type == "Heifer"
        assert breeding_cow(animal) is animal.cow
        assert [a.tag_number for a in list_animals(db_session, farm.id, animal_type="Heifer")] == ["H1"]

    def test_lowercase_heifer_promoted_at_first_calving(self, db_session, farm):
        animal = add_animal(db_session, farm, AnimalCreate(tag_number="H1", species="cattle", type="HEIFER"))
        cow = breeding_cow(animal)
        cow.last_insemination_date = date(2024, 8, 22)
        db_session.commit()

        record_calving(db_session, cow, date(2025, 6, 1))
        assert animal.type == "Cow"

    def test_other_species_type_kept_as_given(self, db_session, farm):
        animal = add_animal(db_session, farm, AnimalCreate(tag_number="H1", species="horse", type="stallion"))
        assert animal.type == "stallion"
        assert animal.gender == "male"


def test_canonical_type():
    assert canonical_type("cattle", " steer ") == "Steer"
    assert canonical_type("sheep", "ewe") == "ewe"
    with pytest.raises(UnknownCattleTypeError):
        canonical_type("cattle", "Calf")
