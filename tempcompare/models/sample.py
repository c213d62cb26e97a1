from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from tempcompare.db.base import Base


class Sample(Base):
    """One hourly temperature reading for a city, as seen on a given fetch date.

    Keyed by (city, fetch_date, target_date, hour): re-fetching the same tuple
    overwrites the temperature, so the table never holds duplicates. A row is an
    "actual" for its target_date when fetch_date == target_date, and a forecast
    candidate when fetch_date < target_date. Classification happens at query time.
    """

    __tablename__ = "temperature_samples"
    __table_args__ = (
        UniqueConstraint(
            "city", "fetch_date", "target_date", "hour", name="uq_samples_city_fetch_target_hour"
        ),
        CheckConstraint("hour >= 0 AND hour <= 23", name="ck_samples_hour_range"),
        Index("ix_samples_city_target_date", "city", "target_date"),
        Index("ix_samples_fetch_date", "fetch_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    city: Mapped[str] = mapped_column(String(50), nullable=False)
    fetch_date: Mapped[date] = mapped_column(Date, nullable=False)
    target_date: Mapped[date] = mapped_column(Date, nullable=False)
    hour: Mapped[int] = mapped_column(Integer, nullable=False)
    temperature: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
