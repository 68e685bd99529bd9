"""Transactional load/save of session aggregates."""
import uuid
from datetime import date, datetime, time, timedelta, timezone

import structlog
from sqlalchemy import func, inspect, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from src.core.exceptions import ConflictError, NotFoundError
from src.core.observability import capture_exception
from src.domains.programs.models import WorkoutProgram
from src.domains.sessions.models import SessionExercise, SessionListStatus, WorkoutSession

logger = structlog.get_logger(__name__)

_aggregate_options = (
    selectinload(WorkoutSession._exercises).selectinload(SessionExercise._sets),
)


def _describe_pending(db: AsyncSession) -> list[dict]:
    """Entity type, primary key and changed attributes of pending objects."""
    pending = []
    for state, objects in (("new", db.new), ("dirty", db.dirty), ("deleted", db.deleted)):
        for obj in objects:
            insp = inspect(obj)
            changed = [
                attr.key for attr in insp.attrs if attr.history.has_changes()
            ] if state == "dirty" else []
            pending.append({
                "entity": type(obj).__name__,
                "id": str(getattr(obj, "id", None)),
                "state": state,
                "changed": changed,
            })
    return pending


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class SessionStore:
    """Loads and persists whole session trees, always scoped to the owner."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load(self, user_id: uuid.UUID, session_id: uuid.UUID) -> WorkoutSession:
        """Load a session with its exercises and sets, refreshed from storage.

        Raises:
            NotFoundError: If the session does not exist or belongs to another user
        """
        result = await self.db.execute(
            select(WorkoutSession)
            .where(
                WorkoutSession.id == session_id,
                WorkoutSession.user_id == user_id,
            )
            .options(*_aggregate_options)
            .execution_options(populate_existing=True)
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise NotFoundError("Workout session not found.")
        return session

    async def load_history(
        self,
        user_id: uuid.UUID,
        program_id: uuid.UUID,
        before: datetime,
        exclude_session_id: uuid.UUID | None = None,
    ) -> list[WorkoutSession]:
        """Completed sessions of a program started before ``before``, newest first."""
        query = (
            select(WorkoutSession)
            .where(
                WorkoutSession.user_id == user_id,
                WorkoutSession.program_id == program_id,
                WorkoutSession.completed_at.is_not(None),
                WorkoutSession.started_at < before,
            )
            .options(*_aggregate_options)
            .order_by(
                func.coalesce(WorkoutSession.completed_at, WorkoutSession.started_at).desc()
            )
        )
        if exclude_session_id is not None:
            query = query.where(WorkoutSession.id != exclude_session_id)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def load_completed(
        self,
        user_id: uuid.UUID,
        program_id: uuid.UUID,
    ) -> list[WorkoutSession]:
        """Completed sessions of a program, oldest completion first."""
        query = (
            select(WorkoutSession)
            .where(
                WorkoutSession.user_id == user_id,
                WorkoutSession.program_id == program_id,
                WorkoutSession.completed_at.is_not(None),
            )
            .options(*_aggregate_options)
            .order_by(WorkoutSession.completed_at.asc())
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_sessions(
        self,
        user_id: uuid.UUID,
        status: SessionListStatus = SessionListStatus.ALL,
        started_from: date | None = None,
        started_to: date | None = None,
        search: str | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[tuple[WorkoutSession, str]], int]:
        """Page of (session, program name) pairs, newest start first, with the total count."""
        query = (
            select(WorkoutSession, WorkoutProgram.name)
            .join(WorkoutProgram, WorkoutProgram.id == WorkoutSession.program_id)
            .where(WorkoutSession.user_id == user_id)
        )

        if status == SessionListStatus.IN_PROGRESS:
            query = query.where(WorkoutSession.completed_at.is_(None))
        elif status == SessionListStatus.COMPLETED:
            query = query.where(WorkoutSession.completed_at.is_not(None))

        if started_from:
            query = query.where(WorkoutSession.started_at >= _day_start(started_from))
        if started_to:
            query = query.where(
                WorkoutSession.started_at < _day_start(started_to + timedelta(days=1))
            )

        if search and search.strip():
            term = search.strip()
            query = query.where(
                or_(
                    WorkoutProgram.name.icontains(term, autoescape=True),
                    WorkoutSession.notes.icontains(term, autoescape=True),
                )
            )

        count_result = await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )
        total_count = count_result.scalar_one()

        result = await self.db.execute(
            query.options(*_aggregate_options)
            .order_by(WorkoutSession.started_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return [(row[0], row[1]) for row in result.all()], total_count

    def add(self, session: WorkoutSession) -> None:
        self.db.add(session)

    async def save(self, session: WorkoutSession) -> None:
        """Commit pending changes of the aggregate.

        Raises:
            ConflictError: If another transaction changed or removed the rows
        """
        session_id = str(session.id)
        pending = _describe_pending(self.db)
        try:
            await self.db.commit()
        except (StaleDataError, IntegrityError) as e:
            await self.db.rollback()
            logger.warning(
                "session_save_conflict",
                entity=type(session).__name__,
                session_id=session_id,
                error=str(e),
                pending=pending,
            )
            capture_exception(
                e,
                extra={"session_id": session_id, "pending": pending},
                tags={"entity": type(session).__name__},
            )
            raise ConflictError(
                "The workout session was changed by another request. Reload and try again."
            ) from e

    async def delete(self, user_id: uuid.UUID, session_id: uuid.UUID) -> None:
        """Delete a session and its whole tree.

        Raises:
            NotFoundError: If the session does not exist or belongs to another user
        """
        session = await self.load(user_id, session_id)
        await self.db.delete(session)
        await self.save(session)
