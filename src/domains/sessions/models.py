"""Workout session aggregate models.

``WorkoutSession`` is the aggregate root. Exercises and sets refer to their
parent by id only, and every change to the tree goes through the root's
operations, which finish by re-deriving dense positions (``renumber``).
"""
import enum
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.config.database import Base
from src.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.core.models import TimestampMixin, UTCDateTime, UUIDMixin
from src.domains.programs.models import WorkoutProgram
from src.domains.sessions.identity import ExerciseKey, exercise_key


class SessionListStatus(str, enum.Enum):
    """Status filter for session listings."""

    ALL = "all"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass(frozen=True)
class SetPlan:
    """Planned values for a set created during a session."""

    planned_weight: Decimal | None = None
    planned_reps: int | None = None
    planned_duration_seconds: int | None = None
    rest_seconds: int | None = None


def as_decimal(value) -> Decimal | None:
    if value is None or isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def lifted_weight(sets: Iterable["SessionSet"]) -> Decimal:
    """Sum of actual weight x actual reps over sets where both are logged.

    Always a number: zero when no set qualifies.
    """
    total = Decimal("0")
    for session_set in sets:
        if session_set.actual_weight is None or session_set.actual_reps is None:
            continue
        total += as_decimal(session_set.actual_weight) * session_set.actual_reps
    return total


def _clean_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class SessionSet(Base, UUIDMixin, TimestampMixin):
    """One set of a session exercise, planned and actual values side by side."""

    __tablename__ = "session_sets"

    session_exercise_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("session_exercises.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    set_index: Mapped[int] = mapped_column(Integer, nullable=False)

    planned_weight: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    planned_reps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    planned_duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rest_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)

    actual_weight: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    actual_reps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    actual_duration_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_user_added: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def is_logged(self) -> bool:
        return (
            self.actual_weight is not None
            or self.actual_reps is not None
            or self.actual_duration_seconds is not None
        )

    def __repr__(self) -> str:
        return f"<SessionSet exercise={self.session_exercise_id} index={self.set_index}>"


class SessionExercise(Base, UUIDMixin, TimestampMixin):
    """An exercise performed within a session.

    Planned exercises come from a program slot (``program_exercise_id``);
    ad-hoc ones are added during the session and reference either a catalog
    exercise or a custom name.
    """

    __tablename__ = "session_exercises"

    session_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workout_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    exercise_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("exercises.id", ondelete="SET NULL"),
        nullable=True,
    )
    program_exercise_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("program_exercises.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_ad_hoc: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Custom identity
    custom_exercise_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    custom_category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    custom_primary_muscle: Mapped[str | None] = mapped_column(String(64), nullable=True)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_performed: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    _sets: Mapped[list["SessionSet"]] = relationship(
        "SessionSet",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def sets(self) -> tuple["SessionSet", ...]:
        """Sets in ``set_index`` order."""
        return tuple(sorted(self._sets, key=lambda s: (s.set_index, s.created_at)))

    @property
    def matching_key(self) -> ExerciseKey | None:
        return exercise_key(
            self.program_exercise_id,
            self.exercise_id,
            self.custom_exercise_name,
        )

    def _append_set(self, plan: SetPlan, now: datetime, user_added: bool) -> "SessionSet":
        session_set = SessionSet(
            id=uuid.uuid4(),
            session_exercise_id=self.id,
            set_index=max((s.set_index for s in self._sets), default=0) + 1,
            planned_weight=as_decimal(plan.planned_weight),
            planned_reps=plan.planned_reps,
            planned_duration_seconds=plan.planned_duration_seconds,
            rest_seconds=plan.rest_seconds,
            is_user_added=user_added,
            created_at=now,
        )
        self._sets.append(session_set)
        return session_set

    def _renumber_sets(self) -> None:
        for set_index, session_set in enumerate(self.sets, start=1):
            session_set.set_index = set_index

    def __repr__(self) -> str:
        return f"<SessionExercise session={self.session_id} order={self.order_performed}>"


class WorkoutSession(Base, UUIDMixin, TimestampMixin):
    """A performed instance of a workout program."""

    __tablename__ = "workout_sessions"
    __table_args__ = (
        Index("ix_workout_sessions_user_completed", "user_id", "completed_at"),
        Index("ix_workout_sessions_user_started", "user_id", "started_at"),
    )

    program_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("workout_programs.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    started_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_weight_lifted_kg: Mapped[Decimal | None] = mapped_column(Numeric(18, 2), nullable=True)

    # Optimistic concurrency counter
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    _exercises: Mapped[list["SessionExercise"]] = relationship(
        "SessionExercise",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<WorkoutSession {self.id} program={self.program_id}>"

    @classmethod
    def start(
        cls,
        program: WorkoutProgram,
        user_id: uuid.UUID,
        now: datetime,
        notes: str | None = None,
    ) -> "WorkoutSession":
        """Build a new session mirroring the program's exercises and sets.

        Nothing is ad-hoc or user-added; actual values start empty.
        """
        session = cls(
            id=uuid.uuid4(),
            program_id=program.id,
            user_id=user_id,
            started_at=now,
            notes=_clean_text(notes),
            created_at=now,
        )
        program_exercises = sorted(program.exercises, key=lambda pe: pe.display_order)
        for position, program_exercise in enumerate(program_exercises, start=1):
            exercise = SessionExercise(
                id=uuid.uuid4(),
                session_id=session.id,
                exercise_id=program_exercise.exercise_id,
                program_exercise_id=program_exercise.id,
                is_ad_hoc=False,
                notes=program_exercise.notes,
                order_performed=position,
                created_at=now,
            )
            for program_set in sorted(program_exercise.sets, key=lambda ps: ps.sequence):
                exercise._append_set(
                    SetPlan(
                        planned_weight=program_set.target_weight,
                        planned_reps=program_set.target_reps,
                        planned_duration_seconds=program_set.target_duration_seconds,
                        rest_seconds=program_set.rest_seconds,
                    ),
                    now,
                    user_added=False,
                )
            session._exercises.append(exercise)
        session.renumber()
        return session

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def exercises(self) -> tuple["SessionExercise", ...]:
        """Exercises in performed order, creation time breaking ties."""
        return tuple(
            sorted(self._exercises, key=lambda e: (e.order_performed, e.created_at))
        )

    @property
    def last_updated_at(self) -> datetime:
        return self.updated_at or self.started_at

    def ensure_active(self) -> None:
        if self.is_completed:
            raise ConflictError("Workout session is already completed.")

    def get_exercise(self, session_exercise_id: uuid.UUID) -> "SessionExercise":
        for exercise in self._exercises:
            if exercise.id == session_exercise_id:
                return exercise
        raise NotFoundError("Session exercise not found.")

    def get_set(self, set_id: uuid.UUID) -> tuple["SessionExercise", "SessionSet"]:
        for exercise in self._exercises:
            for session_set in exercise._sets:
                if session_set.id == set_id:
                    return exercise, session_set
        raise NotFoundError("Session set not found.")

    def renumber(self) -> None:
        """Re-derive dense 1-based exercise order and set indexes.

        Relative order is preserved, so calling it twice changes nothing.
        """
        for position, exercise in enumerate(self.exercises, start=1):
            exercise.order_performed = position
            exercise._renumber_sets()

    def touch(self, now: datetime) -> None:
        self.updated_at = now

    def add_exercise(
        self,
        now: datetime,
        exercise_id: uuid.UUID | None = None,
        custom_exercise_name: str | None = None,
        custom_category: str | None = None,
        custom_primary_muscle: str | None = None,
        notes: str | None = None,
        sets: list[SetPlan] | None = None,
    ) -> "SessionExercise":
        """Append an ad-hoc exercise after the current last one.

        Without initial sets a single empty set is created.
        """
        self.ensure_active()
        custom_exercise_name = _clean_text(custom_exercise_name)
        if exercise_id is None and custom_exercise_name is None:
            raise ValidationError(
                "Select a catalog exercise or provide a custom exercise name."
            )

        exercise = SessionExercise(
            id=uuid.uuid4(),
            session_id=self.id,
            exercise_id=exercise_id,
            program_exercise_id=None,
            is_ad_hoc=True,
            custom_exercise_name=custom_exercise_name,
            custom_category=_clean_text(custom_category),
            custom_primary_muscle=_clean_text(custom_primary_muscle),
            notes=notes,
            order_performed=max((e.order_performed for e in self._exercises), default=0) + 1,
            created_at=now,
        )
        for plan in sets or [SetPlan()]:
            exercise._append_set(plan, now, user_added=True)
        self._exercises.append(exercise)
        self.renumber()
        return exercise

    def remove_exercise(self, session_exercise_id: uuid.UUID) -> None:
        """Remove an ad-hoc exercise with its sets."""
        self.ensure_active()
        exercise = self.get_exercise(session_exercise_id)
        if not exercise.is_ad_hoc:
            raise ValidationError("Planned exercises cannot be removed from a session.")
        self._exercises.remove(exercise)
        self.renumber()

    def reorder_exercises(self, ordered_exercise_ids: list[uuid.UUID]) -> None:
        """Assign performed order from the position of each id in the list.

        The list must name every exercise of the session exactly once.
        """
        self.ensure_active()
        current_ids = {exercise.id for exercise in self._exercises}
        if len(ordered_exercise_ids) != len(current_ids) or set(ordered_exercise_ids) != current_ids:
            raise ValidationError(
                "Exercise order must list every exercise of the session exactly once."
            )

        positions = {
            exercise_id: position
            for position, exercise_id in enumerate(ordered_exercise_ids, start=1)
        }
        for exercise in self._exercises:
            exercise.order_performed = positions[exercise.id]
        self.renumber()

    def update_exercise(
        self,
        session_exercise_id: uuid.UUID,
        now: datetime,
        notes: str | None = None,
    ) -> "SessionExercise":
        """Partial update: None leaves a field unchanged."""
        self.ensure_active()
        exercise = self.get_exercise(session_exercise_id)
        if notes is not None:
            exercise.notes = notes
            exercise.updated_at = now
        return exercise

    def add_set(
        self,
        session_exercise_id: uuid.UUID,
        now: datetime,
        plan: SetPlan | None = None,
    ) -> "SessionSet":
        self.ensure_active()
        exercise = self.get_exercise(session_exercise_id)
        session_set = exercise._append_set(plan or SetPlan(), now, user_added=True)
        self.renumber()
        return session_set

    def remove_set(self, set_id: uuid.UUID, allow_planned_removal: bool = False) -> None:
        """Remove a set; planned sets of planned exercises need explicit permission."""
        self.ensure_active()
        exercise, session_set = self.get_set(set_id)
        if not (session_set.is_user_added or exercise.is_ad_hoc or allow_planned_removal):
            raise ValidationError("Planned sets cannot be removed from a session.")
        exercise._sets.remove(session_set)
        self.renumber()

    def update_set_actuals(
        self,
        set_id: uuid.UUID,
        now: datetime,
        actual_weight: Decimal | None = None,
        actual_reps: int | None = None,
        actual_duration_seconds: int | None = None,
    ) -> "SessionSet":
        """Replace all three actual values; None clears a value."""
        self.ensure_active()
        _, session_set = self.get_set(set_id)
        session_set.actual_weight = as_decimal(actual_weight)
        session_set.actual_reps = actual_reps
        session_set.actual_duration_seconds = actual_duration_seconds
        session_set.updated_at = now
        return session_set

    def complete(self, now: datetime) -> None:
        """Close the session and freeze its total weight lifted."""
        self.ensure_active()
        self.completed_at = now
        self.total_weight_lifted_kg = lifted_weight(
            session_set for exercise in self._exercises for session_set in exercise._sets
        )
