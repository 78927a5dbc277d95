"""SQLAlchemy database models."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship

from src.station_booking.domain.entities.booking import BookingStatus

Base = declarative_base()


class StationModel(Base):
    """SQLAlchemy model for stations."""

    __tablename__ = "stations"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    specs = Column(String(100), nullable=False, default="")
    rate_per_hour = Column(Numeric(precision=10, scale=2), nullable=False)

    bookings = relationship("BookingModel", back_populates="station")

    def __repr__(self) -> str:
        return f"<StationModel(id={self.id}, name='{self.name}', specs='{self.specs}')>"


class BookingModel(Base):
    """SQLAlchemy model for bookings."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_bookings_end_after_start"),
        Index("ix_bookings_station_date", "station_id", "booking_date"),
    )

    # Primary key
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    # Reserved resource and window
    station_id = Column(Integer, ForeignKey("stations.id"), nullable=False)
    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    # Customer
    customer_name = Column(String(120), nullable=False)
    contact = Column(Text, nullable=True)

    # Derived at creation, never recomputed
    duration_hours = Column(Numeric(precision=6, scale=2), nullable=False)
    total_price = Column(Numeric(precision=10, scale=2), nullable=False)

    status = Column(
        SQLEnum(BookingStatus, values_callable=lambda obj: [e.value for e in obj], name="booking_status"),
        nullable=False,
        default=BookingStatus.CONFIRMED
    )
    booking_code = Column(String(16), nullable=False, unique=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    station = relationship("StationModel", back_populates="bookings")

    def __repr__(self) -> str:
        return f"<BookingModel(id={self.id}, booking_code='{self.booking_code}', status='{self.status}')>"
