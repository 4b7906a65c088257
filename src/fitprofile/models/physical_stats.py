from datetime import datetime

from sqlalchemy import Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from fitprofile.database import Base


class PhysicalStats(Base):
    """One measurement entry. Rows are only ever inserted; the newest is current."""

    __tablename__ = "physical_stats"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("profiles.id"), index=True)
    height_cm: Mapped[float | None] = mapped_column(Float, default=None)
    weight_kg: Mapped[float | None] = mapped_column(Float, default=None)
    age: Mapped[int | None] = mapped_column(default=None)
    gender: Mapped[str | None] = mapped_column(
        String(20), default=None
    )  # male, female, other, prefer_not_say
    bmi: Mapped[float | None] = mapped_column(Float, default=None)
    recorded_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
