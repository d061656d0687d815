import enum
from datetime import datetime
from sqlalchemy import String, Float, Integer, Boolean, DateTime, Text, Index, JSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class AlertFrequency(str, enum.Enum):
    INSTANT = "instant"
    DAILY = "daily"
    WEEKLY = "weekly"


class Listing(Base):
    """A vehicle listing in the marketplace corpus."""
    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    brand: Mapped[str] = mapped_column(String(50), index=True)
    model: Mapped[str | None] = mapped_column(String(100))
    price: Mapped[float] = mapped_column(Float)
    year: Mapped[int] = mapped_column(Integer)
    mileage: Mapped[int | None] = mapped_column(Integer)
    fuel_type: Mapped[str | None] = mapped_column(String(30))
    transmission: Mapped[str | None] = mapped_column(String(30))
    location: Mapped[str | None] = mapped_column(String(100))
    condition: Mapped[str] = mapped_column(String(10), default="Used")  # New, Used
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    __table_args__ = (
        Index("ix_listing_active_price", "is_active", "price"),
    )


class SavedSearch(Base):
    """A user's named filter definition with alerting configuration and match checkpoint."""
    __tablename__ = "saved_searches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    filters: Mapped[dict] = mapped_column(JSON, nullable=False)
    filters_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    alert_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    alert_frequency: Mapped[str] = mapped_column(String(10), default=AlertFrequency.DAILY.value)

    # Checkpoint state, written only by the matching engine
    known_listing_ids: Mapped[list] = mapped_column(JSON, default=list)
    pending_digest_ids: Mapped[list] = mapped_column(JSON, default=list)
    total_matches: Mapped[int] = mapped_column(Integer, default=0)
    new_matches_count: Mapped[int] = mapped_column(Integer, default=0)
    last_checked: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_notified_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    revision: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": revision}

    __table_args__ = (
        Index("ix_saved_search_alerting", "alert_enabled", "alert_frequency"),
        {"sqlite_autoincrement": True},  # ids are never reused after a delete
    )
