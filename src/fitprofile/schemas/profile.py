from enum import Enum

from pydantic import BaseModel, Field


class Equipment(str, Enum):
    BODYWEIGHT = "Bodyweight"
    DUMBBELLS = "Dumbbells"
    RESISTANCE_BAND = "Resistance Band"
    KETTLEBELL = "Kettlebell"
    BARBELL = "Barbell"
    MACHINE = "Machine"


EQUIPMENT_OPTIONS: list[str] = [e.value for e in Equipment]
GENDER_OPTIONS: list[str] = ["male", "female", "other", "prefer_not_say"]


class ProfileRead(BaseModel):
    id: str | None = None
    name: str | None = None
    photo_url: str | None = None
    available_equipment: list[Equipment] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    """Partial profile update. Only explicitly set fields are written."""

    name: str | None = Field(default=None, max_length=100)
    available_equipment: list[Equipment] | None = None

    @property
    def is_empty(self) -> bool:
        return not self.model_fields_set
