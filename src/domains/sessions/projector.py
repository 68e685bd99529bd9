"""Builds the external views of a session aggregate."""
import uuid

from src.domains.exercises.models import Exercise
from src.domains.sessions.history import HistoryLookup
from src.domains.sessions.models import SessionExercise, WorkoutSession
from src.domains.sessions.schemas import (
    SessionExerciseResponse,
    SessionResponse,
    SessionSetResponse,
    SessionSummaryResponse,
)

CUSTOM_EXERCISE_FALLBACK_NAME = "Custom Exercise"


def resolve_exercise_name(exercise: SessionExercise, catalog_exercise: Exercise | None) -> str:
    """Display name of a session exercise.

    Ad-hoc: custom name, then catalog name, then a generic label.
    Planned: catalog name, then custom name, then empty.
    """
    catalog_name = catalog_exercise.name if catalog_exercise is not None else None
    if exercise.is_ad_hoc:
        return exercise.custom_exercise_name or catalog_name or CUSTOM_EXERCISE_FALLBACK_NAME
    return catalog_name or exercise.custom_exercise_name or ""


def project_exercise(
    exercise: SessionExercise,
    catalog: dict[uuid.UUID, Exercise],
    history: HistoryLookup,
) -> SessionExerciseResponse:
    snapshots = history.get(exercise.id, {})
    sets = []
    for session_set in exercise.sets:
        last = snapshots.get(session_set.set_index)
        sets.append(
            SessionSetResponse(
                id=session_set.id,
                set_index=session_set.set_index,
                planned_weight=session_set.planned_weight,
                planned_reps=session_set.planned_reps,
                planned_duration_seconds=session_set.planned_duration_seconds,
                rest_seconds=session_set.rest_seconds,
                actual_weight=session_set.actual_weight,
                actual_reps=session_set.actual_reps,
                actual_duration_seconds=session_set.actual_duration_seconds,
                is_user_added=session_set.is_user_added,
                last_weight=last.weight if last else None,
                last_reps=last.reps if last else None,
                last_duration_seconds=last.duration_seconds if last else None,
            )
        )

    return SessionExerciseResponse(
        id=exercise.id,
        exercise_id=exercise.exercise_id,
        program_exercise_id=exercise.program_exercise_id,
        exercise_name=resolve_exercise_name(exercise, catalog.get(exercise.exercise_id)),
        custom_exercise_name=exercise.custom_exercise_name,
        custom_category=exercise.custom_category,
        custom_primary_muscle=exercise.custom_primary_muscle,
        is_ad_hoc=exercise.is_ad_hoc,
        is_catalog_exercise=exercise.exercise_id is not None,
        notes=exercise.notes,
        order_performed=exercise.order_performed,
        sets=sets,
    )


def project_session(
    session: WorkoutSession,
    program_name: str,
    catalog: dict[uuid.UUID, Exercise],
    history: HistoryLookup,
) -> SessionResponse:
    """Full session view with exercises in performed order and last-time hints."""
    return SessionResponse(
        id=session.id,
        program_id=session.program_id,
        program_name=program_name,
        started_at=session.started_at,
        completed_at=session.completed_at,
        updated_at=session.updated_at,
        notes=session.notes,
        total_weight_lifted_kg=session.total_weight_lifted_kg,
        exercises=[
            project_exercise(exercise, catalog, history)
            for exercise in session.exercises
        ],
    )


def project_summary(session: WorkoutSession, program_name: str) -> SessionSummaryResponse:
    sets = [session_set for exercise in session.exercises for session_set in exercise.sets]
    duration_seconds = None
    if session.completed_at is not None:
        duration_seconds = int((session.completed_at - session.started_at).total_seconds())

    return SessionSummaryResponse(
        id=session.id,
        program_id=session.program_id,
        program_name=program_name,
        started_at=session.started_at,
        completed_at=session.completed_at,
        duration_seconds=duration_seconds,
        exercise_count=len(session.exercises),
        logged_set_count=sum(1 for session_set in sets if session_set.is_logged),
        total_set_count=len(sets),
        last_updated_at=session.last_updated_at,
        total_weight_lifted_kg=session.total_weight_lifted_kg,
    )
