from datetime import date
from typing import Any

from pydantic import BaseModel, Field, model_validator


class LinkedPlan(BaseModel):
    template_id: int | str | None = None
    name: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_template(cls, data: Any) -> Any:
        # Backend rows embed the template as {"workout_templates": {"name": ...}}
        if isinstance(data, dict) and "workout_templates" in data:
            template = data.get("workout_templates") or {}
            data = {"template_id": data.get("template_id"), "name": template.get("name")}
        return data


class GoalRead(BaseModel):
    id: int | str
    goal_type: str
    status: str = "active"
    target_date: date | None = None
    metric_type: str | None = None
    current_value: float | None = None
    target_value: float | None = None
    frequency: str | None = None
    start_date: date | None = None
    linked_plans: list[LinkedPlan] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _rename_plans(cls, data: Any) -> Any:
        if isinstance(data, dict) and "goal_workout_plans" in data:
            data = dict(data)
            data["linked_plans"] = data.pop("goal_workout_plans") or []
        return data
