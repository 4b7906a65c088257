from datetime import datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fitprofile.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)  # auth user id
    name: Mapped[str | None] = mapped_column(String(100), default=None)
    photo_url: Mapped[str | None] = mapped_column(String(500), default=None)
    available_equipment: Mapped[str | None] = mapped_column(
        Text, default=None
    )  # JSON list, e.g. ["Dumbbells","Barbell"]
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)
