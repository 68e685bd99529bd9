"""Workout session service.

Every mutation follows the same path: load the aggregate for its owner,
apply one aggregate operation, commit, then reload and reproject so callers
always see the persisted state.
"""
import uuid
from collections.abc import Callable
from datetime import date
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.clock import Clock, SystemClock
from src.core.exceptions import ValidationError
from src.domains.exercises.service import ExerciseCatalog
from src.domains.programs.service import ProgramTemplateReader
from src.domains.sessions.history import HistoryMatcher
from src.domains.sessions.models import SessionListStatus, SetPlan, WorkoutSession
from src.domains.sessions.progression import ProgressionAggregator
from src.domains.sessions.projector import project_session, project_summary
from src.domains.sessions.schemas import (
    ExerciseProgressPoint,
    PagedSessionsResponse,
    ProgramProgressPoint,
    SessionResponse,
)
from src.domains.sessions.store import SessionStore

logger = structlog.get_logger(__name__)


class WorkoutSessionService:
    """Service for running workout sessions."""

    def __init__(self, db: AsyncSession, clock: Clock | None = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.store = SessionStore(db)
        self.programs = ProgramTemplateReader(db)
        self.catalog = ExerciseCatalog(db)
        self.history = HistoryMatcher(self.store)
        self.progression = ProgressionAggregator(self.store)

    async def _project(self, user_id: uuid.UUID, session_id: uuid.UUID) -> SessionResponse:
        session = await self.store.load(user_id, session_id)
        history = await self.history.lookup(session)
        catalog = await self.catalog.get_exercises(
            exercise.exercise_id for exercise in session.exercises
        )
        program_name = await self.programs.get_program_name(session.program_id)
        return project_session(session, program_name, catalog, history)

    async def _mutate(
        self,
        user_id: uuid.UUID,
        session_id: uuid.UUID,
        operation: Callable[[WorkoutSession], object],
    ) -> SessionResponse:
        session = await self.store.load(user_id, session_id)
        operation(session)
        session.touch(self.clock.now())
        await self.store.save(session)
        return await self._project(user_id, session_id)

    # Queries

    async def get_session(self, user_id: uuid.UUID, session_id: uuid.UUID) -> SessionResponse:
        return await self._project(user_id, session_id)

    async def list_sessions(
        self,
        user_id: uuid.UUID,
        status: SessionListStatus = SessionListStatus.ALL,
        started_from: date | None = None,
        started_to: date | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> PagedSessionsResponse:
        """List the user's sessions, newest first.

        Raises:
            ValidationError: If ``started_from`` is after ``started_to``
        """
        if started_from and started_to and started_from > started_to:
            raise ValidationError("started_from must be on or before started_to.")

        rows, total_count = await self.store.list_sessions(
            user_id,
            status=status,
            started_from=started_from,
            started_to=started_to,
            search=search,
            page=page,
            page_size=page_size,
        )
        return PagedSessionsResponse(
            items=[project_summary(session, program_name) for session, program_name in rows],
            page=page,
            page_size=page_size,
            total_count=total_count,
        )

    async def get_program_progression(
        self,
        user_id: uuid.UUID,
        program_id: uuid.UUID,
    ) -> list[ProgramProgressPoint]:
        return await self.progression.program_progression(user_id, program_id)

    async def get_exercise_progression(
        self,
        user_id: uuid.UUID,
        session_id: uuid.UUID,
        session_exercise_id: uuid.UUID,
    ) -> list[ExerciseProgressPoint]:
        return await self.progression.exercise_progression(
            user_id, session_id, session_exercise_id
        )

    # Lifecycle

    async def start_session(
        self,
        user_id: uuid.UUID,
        program_id: uuid.UUID,
        notes: str | None = None,
    ) -> SessionResponse:
        """Start a session from one of the user's programs.

        Raises:
            NotFoundError: If the program is not owned by the user
        """
        program = await self.programs.get_owned_program(user_id, program_id)
        session = WorkoutSession.start(program, user_id, self.clock.now(), notes=notes)
        self.store.add(session)
        await self.store.save(session)

        logger.info(
            "session_started",
            session_id=str(session.id),
            user_id=str(user_id),
            program_id=str(program_id),
            exercise_count=len(session.exercises),
        )
        return await self._project(user_id, session.id)

    async def complete_session(self, user_id: uuid.UUID, session_id: uuid.UUID) -> SessionResponse:
        """Complete a session and freeze its total weight lifted.

        Raises:
            ConflictError: If the session is already completed
        """
        now = self.clock.now()
        response = await self._mutate(user_id, session_id, lambda s: s.complete(now))
        logger.info(
            "session_completed",
            session_id=str(session_id),
            user_id=str(user_id),
            total_weight_lifted_kg=str(response.total_weight_lifted_kg),
        )
        return response

    async def delete_session(self, user_id: uuid.UUID, session_id: uuid.UUID) -> None:
        await self.store.delete(user_id, session_id)
        logger.info("session_deleted", session_id=str(session_id), user_id=str(user_id))

    # Exercises

    async def add_exercise(
        self,
        user_id: uuid.UUID,
        session_id: uuid.UUID,
        exercise_id: uuid.UUID | None = None,
        custom_exercise_name: str | None = None,
        custom_category: str | None = None,
        custom_primary_muscle: str | None = None,
        notes: str | None = None,
        sets: list[SetPlan] | None = None,
    ) -> SessionResponse:
        """Add an ad-hoc exercise, from the catalog or by custom name.

        Category and primary muscle default to the catalog exercise's.

        Raises:
            ValidationError: If neither a known catalog exercise nor a custom name is given
        """
        session = await self.store.load(user_id, session_id)
        session.ensure_active()

        if exercise_id is not None:
            catalog = await self.catalog.get_exercises([exercise_id])
            catalog_exercise = catalog.get(exercise_id)
            if catalog_exercise is None:
                raise ValidationError("Selected catalog exercise does not exist.")
            custom_category = custom_category or catalog_exercise.category.value
            custom_primary_muscle = custom_primary_muscle or catalog_exercise.primary_muscle

        now = self.clock.now()
        exercise = session.add_exercise(
            now,
            exercise_id=exercise_id,
            custom_exercise_name=custom_exercise_name,
            custom_category=custom_category,
            custom_primary_muscle=custom_primary_muscle,
            notes=notes,
            sets=sets,
        )
        session.touch(now)
        await self.store.save(session)

        logger.info(
            "session_exercise_added",
            session_id=str(session_id),
            session_exercise_id=str(exercise.id),
        )
        return await self._project(user_id, session_id)

    async def remove_exercise(
        self,
        user_id: uuid.UUID,
        session_id: uuid.UUID,
        session_exercise_id: uuid.UUID,
    ) -> SessionResponse:
        return await self._mutate(
            user_id, session_id, lambda s: s.remove_exercise(session_exercise_id)
        )

    async def reorder_exercises(
        self,
        user_id: uuid.UUID,
        session_id: uuid.UUID,
        ordered_exercise_ids: list[uuid.UUID],
    ) -> SessionResponse:
        return await self._mutate(
            user_id, session_id, lambda s: s.reorder_exercises(ordered_exercise_ids)
        )

    async def update_exercise(
        self,
        user_id: uuid.UUID,
        session_id: uuid.UUID,
        session_exercise_id: uuid.UUID,
        notes: str | None = None,
    ) -> SessionResponse:
        now = self.clock.now()
        return await self._mutate(
            user_id,
            session_id,
            lambda s: s.update_exercise(session_exercise_id, now, notes=notes),
        )

    # Sets

    async def add_set(
        self,
        user_id: uuid.UUID,
        session_id: uuid.UUID,
        session_exercise_id: uuid.UUID,
        plan: SetPlan | None = None,
    ) -> SessionResponse:
        now = self.clock.now()
        return await self._mutate(
            user_id,
            session_id,
            lambda s: s.add_set(session_exercise_id, now, plan),
        )

    async def remove_set(
        self,
        user_id: uuid.UUID,
        session_id: uuid.UUID,
        set_id: uuid.UUID,
        allow_planned_removal: bool = False,
    ) -> SessionResponse:
        return await self._mutate(
            user_id,
            session_id,
            lambda s: s.remove_set(set_id, allow_planned_removal=allow_planned_removal),
        )

    async def update_set_actuals(
        self,
        user_id: uuid.UUID,
        session_id: uuid.UUID,
        set_id: uuid.UUID,
        actual_weight: Decimal | None = None,
        actual_reps: int | None = None,
        actual_duration_seconds: int | None = None,
    ) -> SessionResponse:
        now = self.clock.now()
        return await self._mutate(
            user_id,
            session_id,
            lambda s: s.update_set_actuals(
                set_id,
                now,
                actual_weight=actual_weight,
                actual_reps=actual_reps,
                actual_duration_seconds=actual_duration_seconds,
            ),
        )
