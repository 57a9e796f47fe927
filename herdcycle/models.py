from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, Date, DateTime, Float, ForeignKey,
    Index, Integer, String, Table, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


SPECIES = ("cattle", "horse", "sheep")

# Insemination lifecycle
PENDING = "pending"
CONFIRMED = "confirmed"
FAILED = "failed"
NEEDS_REPEAT = "needs_repeat"
INSEMINATION_STATUSES = (PENDING, CONFIRMED, FAILED, NEEDS_REPEAT)

# Vet request lifecycle
REQUEST_PENDING = "pending"
REQUEST_APPROVED = "approved"
REQUEST_REJECTED = "rejected"

farm_vets = Table(
    "farm_vets",
    Base.metadata,
    Column("farm_id", Integer, ForeignKey("farms.id"), primary_key=True),
    Column("vet_id", Integer, ForeignKey("vets.id"), primary_key=True),
    Column("assigned_at", DateTime, nullable=False, default=utcnow),
)


class Farmer(Base):
    __tablename__ = "farmers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    subscription_plan = Column(String, nullable=False, default="basic")
    locale = Column(String, nullable=False, default="en")

    farm = relationship("Farm", back_populates="farmer", uselist=False)
    notifications = relationship("Notification", back_populates="farmer", cascade="all, delete-orphan")


class Vet(Base):
    __tablename__ = "vets"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    license_number = Column(String, nullable=True)
    specialization = Column(String, nullable=True)
    clinic_name = Column(String, nullable=True)

    farms = relationship("Farm", secondary=farm_vets, back_populates="vets")
    requests = relationship("VetRequest", back_populates="vet", cascade="all, delete-orphan")


class Farm(Base):
    __tablename__ = "farms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    farmer_id = Column(Integer, ForeignKey("farmers.id"), nullable=True, unique=True)
    location = Column(String, nullable=True)
    state = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    approved_at = Column(DateTime, nullable=True)

    farmer = relationship("Farmer", back_populates="farm")
    vets = relationship("Vet", secondary=farm_vets, back_populates="farms")
    animals = relationship("Animal", back_populates="farm", order_by="Animal.id")
    vet_requests = relationship("VetRequest", back_populates="farm", cascade="all, delete-orphan")


class Cow(Base):
    __tablename__ = "cows"

    id = Column(Integer, primary_key=True, index=True)
    milk_yield = Column(Float, nullable=True)  # liters/day

    last_calving_date = Column(Date, nullable=True)
    last_insemination_date = Column(Date, nullable=True, index=True)
    expected_calving_date = Column(Date, nullable=True)
    actual_calving_date = Column(Date, nullable=True)
    performed_by = Column(String, nullable=True)

    animal = relationship("Animal", back_populates="cow", uselist=False)
    inseminations = relationship("Insemination", back_populates="cow", cascade="all, delete-orphan")
    calvings = relationship("Calving", back_populates="cow", cascade="all, delete-orphan")


class Bull(Base):
    __tablename__ = "bulls"

    id = Column(Integer, primary_key=True, index=True)
    semen_quality = Column(String, nullable=True)
    aggression_level = Column(String, nullable=True)

    animal = relationship("Animal", back_populates="bull", uselist=False)


class Animal(Base):
    __tablename__ = "animals"

    id = Column(Integer, primary_key=True, index=True)
    tag_number = Column(String, nullable=False)
    farm_id = Column(Integer, ForeignKey("farms.id"), nullable=False)

    species = Column(String, nullable=False)
    type = Column(String, nullable=False)
    name = Column(String, nullable=True)
    gender = Column(String, nullable=False)
    date_of_birth = Column(Date, nullable=True)

    mother_id = Column(Integer, ForeignKey("animals.id"), nullable=True)
    father_id = Column(Integer, ForeignKey("animals.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # cattle detail: at most one of these is set
    cow_id = Column(Integer, ForeignKey("cows.id"), nullable=True, unique=True)
    bull_id = Column(Integer, ForeignKey("bulls.id"), nullable=True, unique=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    farm = relationship("Farm", back_populates="animals")
    cow = relationship("Cow", back_populates="animal")
    bull = relationship("Bull", back_populates="animal")
    mother = relationship("Animal", foreign_keys=[mother_id], remote_side=[id])
    father = relationship("Animal", foreign_keys=[father_id], remote_side=[id])
    vitals = relationship("CattleVital", back_populates="animal", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint("farm_id", "tag_number", name="uix_farm_tag"),
        CheckConstraint("cow_id IS NULL OR bull_id IS NULL", name="ck_single_detail"),
        Index("idx_animal_farm_species", "farm_id", "species"),
    )

    @property
    def detail(self) -> Optional[Union[Cow, Bull]]:
        return self.cow if self.cow is not None else self.bull


class Insemination(Base):
    __tablename__ = "inseminations"

    id = Column(Integer, primary_key=True, index=True)
    cow_id = Column(Integer, ForeignKey("cows.id"), nullable=False)
    animal_id = Column(Integer, ForeignKey("animals.id"), nullable=False)
    bull_id = Column(Integer, ForeignKey("bulls.id"), nullable=True)

    insemination_date = Column(Date, nullable=False)
    status = Column(String, nullable=False, default=PENDING)
    notes = Column(Text, nullable=True)
    performed_by = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    cow = relationship("Cow", back_populates="inseminations")
    animal = relationship("Animal")
    bull = relationship("Bull")

    __table_args__ = (
        Index("idx_ins_cow_date", "cow_id", "insemination_date"),
    )


class Calving(Base):
    __tablename__ = "calvings"

    id = Column(Integer, primary_key=True, index=True)
    cow_id = Column(Integer, ForeignKey("cows.id"), nullable=False)
    animal_id = Column(Integer, ForeignKey("animals.id"), nullable=False)

    calving_date = Column(Date, nullable=False)
    is_successful = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
    performed_by = Column(String, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)

    cow = relationship("Cow", back_populates="calvings")
    animal = relationship("Animal")


class CattleVital(Base):
    __tablename__ = "cattle_vitals"

    id = Column(Integer, primary_key=True, index=True)
    animal_id = Column(Integer, ForeignKey("animals.id"), nullable=False)

    weight = Column(Float, nullable=True)
    heart_rate = Column(Integer, nullable=True)
    temperature = Column(Float, nullable=True)
    respiration_rate = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    checked_at = Column(DateTime, nullable=False, default=utcnow)

    animal = relationship("Animal", back_populates="vitals")

    __table_args__ = (
        Index("idx_vitals_animal_time", "animal_id", "checked_at"),
    )


class VetRequest(Base):
    __tablename__ = "vet_requests"

    id = Column(Integer, primary_key=True, index=True)
    vet_id = Column(Integer, ForeignKey("vets.id"), nullable=False)
    farm_id = Column(Integer, ForeignKey("farms.id"), nullable=False)

    status = Column(String, nullable=False, default=REQUEST_PENDING)
    message = Column(Text, nullable=True)
    requested_at = Column(DateTime, nullable=False, default=utcnow)
    responded_at = Column(DateTime, nullable=True)

    vet = relationship("Vet", back_populates="requests")
    farm = relationship("Farm", back_populates="vet_requests")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    farmer_id = Column(Integer, ForeignKey("farmers.id"), nullable=False)
    farm_id = Column(Integer, ForeignKey("farms.id"), nullable=True)

    type = Column(String, nullable=False)
    subject_tag = Column(String, nullable=False)
    priority = Column(String, nullable=False)
    message = Column(String, nullable=False)
    data = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    read_at = Column(DateTime, nullable=True)

    farmer = relationship("Farmer", back_populates="notifications")

    __table_args__ = (
        Index("idx_notif_farmer_key", "farmer_id", "type", "subject_tag"),
    )
