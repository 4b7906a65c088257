"""Snapshot, form and page-view models for the settings workflow."""

import math
from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator

from fitprofile.schemas.goal import GoalRead
from fitprofile.schemas.profile import GENDER_OPTIONS, Equipment, ProfileRead
from fitprofile.schemas.stats import PhysicalStatsRead


class SettingsSnapshot(BaseModel):
    """Profile, latest stats entry and goals as read in one fetch."""

    profile: ProfileRead
    stats: PhysicalStatsRead | None = None
    goals: list[GoalRead] = Field(default_factory=list)


def field_text(value: Any) -> str:
    """Render a stored value as form text. Missing values become ""."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


class SettingsForm(BaseModel):
    """Form state as the user edits it.

    Stats fields hold raw text, with "" meaning "no value".
    """

    name: str = Field(default="", max_length=100)
    available_equipment: list[Equipment] = Field(default_factory=list)
    height_cm: str = ""
    weight_kg: str = ""
    age: str = ""
    gender: str = ""

    @field_validator("height_cm", "weight_kg", "age", "gender", mode="before")
    @classmethod
    def _to_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, (int, float)) and not isinstance(value, bool):
            return field_text(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("height_cm", "weight_kg")
    @classmethod
    def _check_decimal(cls, value: str) -> str:
        if value:
            try:
                number = float(value)
            except ValueError:
                raise ValueError(f"'{value}' is not a number") from None
            if not math.isfinite(number) or number <= 0:
                raise ValueError("must be a positive number")
        return value

    @field_validator("age")
    @classmethod
    def _check_integer(cls, value: str) -> str:
        if value:
            try:
                number = int(value)
            except ValueError:
                raise ValueError(f"'{value}' is not a whole number") from None
            if number <= 0:
                raise ValueError("must be greater than zero")
        return value

    @field_validator("gender")
    @classmethod
    def _check_gender(cls, value: str) -> str:
        if value and value not in GENDER_OPTIONS:
            raise ValueError(f"gender must be one of {', '.join(GENDER_OPTIONS)}")
        return value


class FormEdit(BaseModel):
    """Partial form edit; unset fields are left alone."""

    name: str | None = None
    available_equipment: list[Equipment] | None = None
    height_cm: str | float | None = None
    weight_kg: str | float | None = None
    age: str | int | None = None
    gender: str | None = None


class Notice(BaseModel):
    kind: str = Field(pattern=r"^(success|info|error)$")
    message: str


class GoalSummary(BaseModel):
    id: int | str
    label: str
    status: str
    target: str
    target_date: date | None = None
    linked_plan: str | None = None
    detail_path: str


class SettingsView(BaseModel):
    user_id: str
    state: str
    error: str | None = None
    notice: Notice | None = None
    form: SettingsForm | None = None
    bmi_preview: float | None = None
    goals: list[GoalSummary] = Field(default_factory=list)
    total_goals: int = 0
    create_goal_path: str = "/goals/create"
    equipment_options: list[str] = Field(default_factory=list)
    gender_options: list[str] = Field(default_factory=list)
