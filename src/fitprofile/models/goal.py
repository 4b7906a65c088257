from datetime import date, datetime

from sqlalchemy import Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from fitprofile.database import Base


class WorkoutTemplate(Base):
    __tablename__ = "workout_templates"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)


class Goal(Base):
    __tablename__ = "user_goals"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)
    goal_type: Mapped[str] = mapped_column(
        String(50)
    )  # weight_loss, muscle_gain, endurance, flexibility, general_fitness
    status: Mapped[str] = mapped_column(String(20), default="active")  # active, completed, ...
    target_date: Mapped[date | None] = mapped_column(default=None)
    metric_type: Mapped[str | None] = mapped_column(String(50), default=None)
    current_value: Mapped[float | None] = mapped_column(Float, default=None)
    target_value: Mapped[float | None] = mapped_column(Float, default=None)
    frequency: Mapped[str | None] = mapped_column(String(50), default=None)
    start_date: Mapped[date | None] = mapped_column(default=None)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)


class GoalWorkoutPlan(Base):
    __tablename__ = "goal_workout_plans"

    id: Mapped[int] = mapped_column(primary_key=True)
    goal_id: Mapped[int] = mapped_column(ForeignKey("user_goals.id"), index=True)
    template_id: Mapped[int | None] = mapped_column(
        ForeignKey("workout_templates.id"), default=None
    )
