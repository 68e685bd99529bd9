"""Last-performance hints from earlier sessions of the same program."""
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from src.domains.sessions.identity import ExerciseKey
from src.domains.sessions.models import SessionExercise, SessionSet, WorkoutSession
from src.domains.sessions.store import SessionStore


@dataclass(frozen=True)
class SetSnapshot:
    """What was done (or planned, if nothing was logged) for one set index."""

    weight: Decimal | None
    reps: int | None
    duration_seconds: int | None

    @classmethod
    def from_set(cls, session_set: SessionSet) -> "SetSnapshot":
        return cls(
            weight=(
                session_set.actual_weight
                if session_set.actual_weight is not None
                else session_set.planned_weight
            ),
            reps=(
                session_set.actual_reps
                if session_set.actual_reps is not None
                else session_set.planned_reps
            ),
            duration_seconds=(
                session_set.actual_duration_seconds
                if session_set.actual_duration_seconds is not None
                else session_set.planned_duration_seconds
            ),
        )


HistoryLookup = dict[uuid.UUID, dict[int, SetSnapshot]]


def _recency(session: WorkoutSession):
    return session.completed_at or session.started_at


def _set_recency(session_set: SessionSet):
    return session_set.updated_at or session_set.created_at


def latest_exercises_by_key(
    history: Iterable[WorkoutSession],
) -> dict[ExerciseKey, SessionExercise]:
    """Most recent historical exercise for every matching key."""
    latest: dict[ExerciseKey, SessionExercise] = {}
    for past_session in sorted(history, key=_recency, reverse=True):
        for exercise in past_session.exercises:
            key = exercise.matching_key
            if key is not None and key not in latest:
                latest[key] = exercise
    return latest


def snapshot_sets(exercise: SessionExercise) -> dict[int, SetSnapshot]:
    """Snapshot per set index, the most recently updated set winning duplicates."""
    chosen: dict[int, SessionSet] = {}
    for session_set in exercise.sets:
        current = chosen.get(session_set.set_index)
        if current is None or _set_recency(session_set) > _set_recency(current):
            chosen[session_set.set_index] = session_set
    return {
        set_index: SetSnapshot.from_set(session_set)
        for set_index, session_set in chosen.items()
    }


def build_history_lookup(
    session: WorkoutSession,
    history: Iterable[WorkoutSession],
) -> HistoryLookup:
    """Map each exercise of ``session`` to the set snapshots of its latest match.

    Each exercise resolves independently; exercises without a usable key or
    without a match are absent from the result.
    """
    latest = latest_exercises_by_key(
        past for past in history if past.id != session.id
    )
    lookup: HistoryLookup = {}
    for exercise in session.exercises:
        key = exercise.matching_key
        if key is None or key not in latest:
            continue
        lookup[exercise.id] = snapshot_sets(latest[key])
    return lookup


class HistoryMatcher:
    """Finds last-performance hints for a session from the owner's history."""

    def __init__(self, store: SessionStore):
        self.store = store

    async def lookup(self, session: WorkoutSession) -> HistoryLookup:
        history = await self.store.load_history(
            session.user_id,
            session.program_id,
            before=session.started_at,
            exclude_session_id=session.id,
        )
        return build_history_lookup(session, history)
