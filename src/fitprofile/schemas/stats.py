from datetime import datetime

from pydantic import BaseModel, Field


class PhysicalStatsRead(BaseModel):
    height_cm: float | None = None
    weight_kg: float | None = None
    age: int | None = None
    gender: str | None = None
    bmi: float | None = None
    recorded_at: datetime | None = None


class StatsUpdate(BaseModel):
    """A complete new stats entry; always written as a fresh record."""

    height_cm: float | None = Field(default=None, gt=0)
    weight_kg: float | None = Field(default=None, gt=0)
    age: int | None = Field(default=None, gt=0)
    gender: str | None = None
