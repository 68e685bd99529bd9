"""Weight-lifted time series for progression charts."""
import uuid

from src.domains.sessions.identity import ExerciseKey
from src.domains.sessions.models import WorkoutSession, lifted_weight
from src.domains.sessions.schemas import ExerciseProgressPoint, ProgramProgressPoint
from src.domains.sessions.store import SessionStore


def program_points(sessions: list[WorkoutSession]) -> list[ProgramProgressPoint]:
    """One point per completed session with a total, oldest first."""
    completed = [
        session for session in sessions
        if session.completed_at is not None and session.total_weight_lifted_kg is not None
    ]
    completed.sort(key=lambda s: s.completed_at)
    return [
        ProgramProgressPoint(
            session_id=session.id,
            completed_at=session.completed_at,
            total_weight_lifted_kg=session.total_weight_lifted_kg,
        )
        for session in completed
    ]


def exercise_points(
    reference_key: ExerciseKey | None,
    sessions: list[WorkoutSession],
) -> list[ExerciseProgressPoint]:
    """One point per exercise sharing ``reference_key``, oldest session first."""
    if reference_key is None:
        return []

    points = []
    completed = sorted(
        (session for session in sessions if session.completed_at is not None),
        key=lambda s: s.completed_at,
    )
    for session in completed:
        for exercise in session.exercises:
            if exercise.matching_key != reference_key:
                continue
            points.append(
                ExerciseProgressPoint(
                    session_id=session.id,
                    session_exercise_id=exercise.id,
                    completed_at=session.completed_at,
                    total_weight_lifted_kg=lifted_weight(exercise.sets),
                )
            )
    return points


class ProgressionAggregator:
    """Program- and exercise-level progression over completed sessions."""

    def __init__(self, store: SessionStore):
        self.store = store

    async def program_progression(
        self,
        user_id: uuid.UUID,
        program_id: uuid.UUID,
    ) -> list[ProgramProgressPoint]:
        sessions = await self.store.load_completed(user_id, program_id)
        return program_points(sessions)

    async def exercise_progression(
        self,
        user_id: uuid.UUID,
        session_id: uuid.UUID,
        session_exercise_id: uuid.UUID,
    ) -> list[ExerciseProgressPoint]:
        """Progression of the exercise matching a reference session exercise.

        Raises:
            NotFoundError: If the session or the exercise is not found
        """
        session = await self.store.load(user_id, session_id)
        reference = session.get_exercise(session_exercise_id)
        reference_key = reference.matching_key
        if reference_key is None:
            return []

        sessions = await self.store.load_completed(user_id, session.program_id)
        return exercise_points(reference_key, sessions)
