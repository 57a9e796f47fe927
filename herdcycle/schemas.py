from __future__ import annotations
from datetime import date, datetime
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

CalfType = Literal["Bull", "Cow", "Heifer", "Steer"]
InseminationStatus = Literal["pending", "confirmed", "failed", "needs_repeat"]

class AnimalCreate(BaseModel):
    tag_number: str = Field(..., min_length=1, max_length=255)
    species: Literal["cattle", "horse", "sheep"]
    type: str = Field(..., min_length=1)
    name: Optional[str] = Field(default=None, max_length=255)
    date_of_birth: Optional[date] = None
    mother_id: Optional[int] = None
    father_id: Optional[int] = None

    # cattle detail
    milk_yield: Optional[float] = Field(default=None, ge=0)
    last_calving_date: Optional[date] = None
    semen_quality: Optional[str] = None
    aggression_level: Optional[str] = None

class CalfCreate(BaseModel):
    tag_number: str = Field(..., min_length=1, max_length=255)
    type: CalfType
    name: Optional[str] = Field(default=None, max_length=255)
    date_of_birth: Optional[date] = None
    father_id: Optional[int] = None

    milk_yield: Optional[float] = Field(default=None, ge=0)
    semen_quality: Optional[str] = None
    aggression_level: Optional[str] = None

class InseminationCreate(BaseModel):
    insemination_date: date
    notes: Optional[str] = Field(default=None, max_length=1000)
    bull_id: Optional[int] = None

class InseminationStatusUpdate(BaseModel):
    status: InseminationStatus
    notes: Optional[str] = Field(default=None, max_length=1000)

class CalvingCreate(BaseModel):
    calving_date: date
    is_successful: bool = True
    notes: Optional[str] = Field(default=None, max_length=1000)
    calves: Optional[List[CalfCreate]] = None

class VitalsCreate(BaseModel):
    weight: Optional[float] = Field(default=None, ge=0)
    heart_rate: Optional[int] = Field(default=None, ge=0, le=300)
    temperature: Optional[float] = Field(default=None, ge=30, le=45)
    respiration_rate: Optional[int] = Field(default=None, ge=0, le=200)
    notes: Optional[str] = Field(default=None, max_length=1000)
    checked_at: Optional[datetime] = None
