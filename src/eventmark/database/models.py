"""
SQLAlchemy ORM models for the eventmark database.

Defines the schema that the Alembic migrations build:
- analyses: one row per reviewed media file
- analysis_event_types: the event types defined for each analysis
"""

from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from eventmark.constants import EventCategory
from eventmark.database.types import EventCategoryType


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


class Analysis(Base):
    """A review session over one media file."""

    __tablename__ = "analyses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text)
    path: Mapped[str] = mapped_column(Text)
    duration: Mapped[float] = mapped_column(Float)

    # Assigned by the database, never by application code
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )
    last_opened_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )

    def __repr__(self) -> str:
        return f"<Analysis(id={self.id}, name={self.name}, path={self.path})>"


class AnalysisEventType(Base):
    """A named, keyed kind of event that can be marked within an analysis."""

    __tablename__ = "analysis_event_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    analysis_id: Mapped[int] = mapped_column(
        ForeignKey("analyses.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(Text)
    keyboard_key: Mapped[str] = mapped_column(Text)
    category: Mapped[EventCategory] = mapped_column(EventCategoryType)

    __table_args__ = (
        CheckConstraint("category IN ('single', 'range')", name="chk_category"),
    )

    def __repr__(self) -> str:
        return f"<AnalysisEventType(id={self.id}, analysis_id={self.analysis_id}, name={self.name}, category={self.category})>"


analyses_table = Analysis.__table__
event_types_table = AnalysisEventType.__table__
