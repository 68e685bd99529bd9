"""Workout program template models.

Programs are edited elsewhere; sessions only read them as templates.
"""
import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.config.database import Base
from src.core.models import TimestampMixin, UUIDMixin


class WorkoutProgram(Base, UUIDMixin, TimestampMixin):
    """A user's workout program: an ordered list of exercises with target sets."""

    __tablename__ = "workout_programs"

    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    exercises: Mapped[list["ProgramExercise"]] = relationship(
        "ProgramExercise",
        order_by="ProgramExercise.display_order",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<WorkoutProgram {self.name}>"


class ProgramExercise(Base, UUIDMixin, TimestampMixin):
    """An exercise slot within a program."""

    __tablename__ = "program_exercises"

    program_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workout_programs.id", ondelete="CASCADE"),
        nullable=False,
    )
    exercise_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("exercises.id", ondelete="CASCADE"),
        nullable=False,
    )
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    sets: Mapped[list["ProgramSet"]] = relationship(
        "ProgramSet",
        order_by="ProgramSet.sequence",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<ProgramExercise program={self.program_id} exercise={self.exercise_id}>"


class ProgramSet(Base, UUIDMixin, TimestampMixin):
    """Target values for one set of a program exercise."""

    __tablename__ = "program_sets"

    program_exercise_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("program_exercises.id", ondelete="CASCADE"),
        nullable=False,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    target_weight: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    target_reps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rest_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<ProgramSet exercise={self.program_exercise_id} sequence={self.sequence}>"
