"""SQLAlchemy ORM models for meter persistence."""

from datetime import datetime

from sqlalchemy import Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .utils import utc_now


class Base(DeclarativeBase):
    pass


class MeterStoreEntry(Base):
    """Key-value rows: the active-ride snapshot, saved rates, schema version."""

    __tablename__ = "meter_store"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: utc_now(),
        onupdate=lambda: utc_now(),
    )


class RideRecord(Base):
    __tablename__ = "ride_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ride_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    started_at: Mapped[datetime] = mapped_column(nullable=False)
    ended_at: Mapped[datetime] = mapped_column(nullable=False)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False)
    elapsed_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    waiting_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    fare: Mapped[float] = mapped_column(Float, nullable=False)
    start_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    start_lon: Mapped[float | None] = mapped_column(Float, nullable=True)
    start_timestamp: Mapped[int | None] = mapped_column(Integer, nullable=True)
    end_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    end_lon: Mapped[float | None] = mapped_column(Float, nullable=True)
    end_timestamp: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: utc_now())

    __table_args__ = (Index("idx_ride_started_at", "started_at"),)


class ActiveRidePathPoint(Base):
    """Accepted fixes of the active ride, appended as the ride progresses."""

    __tablename__ = "active_ride_path"

    ride_id: Mapped[str] = mapped_column(String, primary_key=True)
    seq: Mapped[int] = mapped_column(Integer, primary_key=True)
    fix: Mapped[str] = mapped_column(Text, nullable=False)
