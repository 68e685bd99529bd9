"""Workout session router."""
from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.database import get_db
from src.config.settings import settings
from src.core.clock import Clock, get_clock
from src.domains.auth.dependencies import CurrentUser
from src.domains.sessions.models import SessionListStatus, SetPlan
from src.domains.sessions.schemas import (
    ExerciseProgressPoint,
    PagedSessionsResponse,
    ProgramProgressPoint,
    SessionExerciseCreate,
    SessionExerciseReorder,
    SessionExerciseUpdate,
    SessionResponse,
    SessionSetActualsUpdate,
    SessionSetInput,
    SessionStart,
)
from src.domains.sessions.service import WorkoutSessionService

router = APIRouter()


def get_session_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> WorkoutSessionService:
    return WorkoutSessionService(db, clock)


SessionService = Annotated[WorkoutSessionService, Depends(get_session_service)]


def _set_plan(request: SessionSetInput) -> SetPlan:
    return SetPlan(
        planned_weight=request.planned_weight,
        planned_reps=request.planned_reps,
        planned_duration_seconds=request.planned_duration_seconds,
        rest_seconds=request.rest_seconds,
    )


# ==================== Listing and program-level routes ====================

@router.get("/sessions", response_model=PagedSessionsResponse)
async def list_sessions(
    current_user: CurrentUser,
    service: SessionService,
    status_filter: Annotated[SessionListStatus, Query(alias="status")] = SessionListStatus.ALL,
    started_from: Annotated[date | None, Query()] = None,
    started_to: Annotated[date | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=200)] = None,
    page: Annotated[int, Query()] = 1,
    page_size: Annotated[int, Query()] = settings.SESSION_PAGE_SIZE_DEFAULT,
) -> PagedSessionsResponse:
    """List the current user's sessions, newest first."""
    page = max(page, 1)
    page_size = min(max(page_size, settings.SESSION_PAGE_SIZE_MIN), settings.SESSION_PAGE_SIZE_MAX)
    return await service.list_sessions(
        current_user.id,
        status=status_filter,
        started_from=started_from,
        started_to=started_to,
        search=search,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/programs/{program_id}/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_session(
    program_id: UUID,
    current_user: CurrentUser,
    service: SessionService,
    request: SessionStart | None = None,
) -> SessionResponse:
    """Start a session from one of the current user's programs."""
    notes = request.notes if request else None
    return await service.start_session(current_user.id, program_id, notes=notes)


@router.get(
    "/programs/{program_id}/sessions/progression",
    response_model=list[ProgramProgressPoint],
)
async def get_program_progression(
    program_id: UUID,
    current_user: CurrentUser,
    service: SessionService,
) -> list[ProgramProgressPoint]:
    """Total weight lifted per completed session of a program."""
    return await service.get_program_progression(current_user.id, program_id)


# ==================== Session routes ====================

@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: UUID,
    current_user: CurrentUser,
    service: SessionService,
) -> SessionResponse:
    """Get a session with last-performance hints."""
    return await service.get_session(current_user.id, session_id)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: UUID,
    current_user: CurrentUser,
    service: SessionService,
) -> None:
    """Delete a session with all its exercises and sets."""
    await service.delete_session(current_user.id, session_id)


@router.post("/sessions/{session_id}/complete", response_model=SessionResponse)
async def complete_session(
    session_id: UUID,
    current_user: CurrentUser,
    service: SessionService,
) -> SessionResponse:
    """Complete a session."""
    return await service.complete_session(current_user.id, session_id)


# ==================== Exercise routes ====================

@router.post("/sessions/{session_id}/exercises", response_model=SessionResponse)
async def add_exercise(
    session_id: UUID,
    request: SessionExerciseCreate,
    current_user: CurrentUser,
    service: SessionService,
) -> SessionResponse:
    """Add an ad-hoc exercise to a session."""
    return await service.add_exercise(
        current_user.id,
        session_id,
        exercise_id=request.exercise_id,
        custom_exercise_name=request.custom_exercise_name,
        custom_category=request.custom_category,
        custom_primary_muscle=request.custom_primary_muscle,
        notes=request.notes,
        sets=[_set_plan(s) for s in request.sets],
    )


# Declared before the {session_exercise_id} routes so "order" is not parsed as an ID
@router.patch("/sessions/{session_id}/exercises/order", response_model=SessionResponse)
async def reorder_exercises(
    session_id: UUID,
    request: SessionExerciseReorder,
    current_user: CurrentUser,
    service: SessionService,
) -> SessionResponse:
    """Set the performed order of all session exercises."""
    return await service.reorder_exercises(
        current_user.id, session_id, request.ordered_exercise_ids
    )


@router.patch(
    "/sessions/{session_id}/exercises/{session_exercise_id}",
    response_model=SessionResponse,
)
async def update_exercise(
    session_id: UUID,
    session_exercise_id: UUID,
    request: SessionExerciseUpdate,
    current_user: CurrentUser,
    service: SessionService,
) -> SessionResponse:
    """Update session exercise notes."""
    return await service.update_exercise(
        current_user.id, session_id, session_exercise_id, notes=request.notes
    )


@router.delete(
    "/sessions/{session_id}/exercises/{session_exercise_id}",
    response_model=SessionResponse,
)
async def remove_exercise(
    session_id: UUID,
    session_exercise_id: UUID,
    current_user: CurrentUser,
    service: SessionService,
) -> SessionResponse:
    """Remove an ad-hoc exercise from a session."""
    return await service.remove_exercise(current_user.id, session_id, session_exercise_id)


@router.get(
    "/sessions/{session_id}/exercises/{session_exercise_id}/progression",
    response_model=list[ExerciseProgressPoint],
)
async def get_exercise_progression(
    session_id: UUID,
    session_exercise_id: UUID,
    current_user: CurrentUser,
    service: SessionService,
) -> list[ExerciseProgressPoint]:
    """Weight lifted on the same exercise across completed sessions of the program."""
    return await service.get_exercise_progression(
        current_user.id, session_id, session_exercise_id
    )


# ==================== Set routes ====================

@router.post(
    "/sessions/{session_id}/exercises/{session_exercise_id}/sets",
    response_model=SessionResponse,
)
async def add_set(
    session_id: UUID,
    session_exercise_id: UUID,
    current_user: CurrentUser,
    service: SessionService,
    request: SessionSetInput | None = None,
) -> SessionResponse:
    """Append a set to a session exercise."""
    plan = _set_plan(request) if request else None
    return await service.add_set(current_user.id, session_id, session_exercise_id, plan)


@router.patch("/sessions/{session_id}/sets/{set_id}", response_model=SessionResponse)
async def update_set(
    session_id: UUID,
    set_id: UUID,
    request: SessionSetActualsUpdate,
    current_user: CurrentUser,
    service: SessionService,
) -> SessionResponse:
    """Log actual values for a set."""
    return await service.update_set_actuals(
        current_user.id,
        session_id,
        set_id,
        actual_weight=request.actual_weight,
        actual_reps=request.actual_reps,
        actual_duration_seconds=request.actual_duration_seconds,
    )


@router.delete("/sessions/{session_id}/sets/{set_id}", response_model=SessionResponse)
async def remove_set(
    session_id: UUID,
    set_id: UUID,
    current_user: CurrentUser,
    service: SessionService,
    force: Annotated[bool, Query()] = False,
) -> SessionResponse:
    """Remove a user-added set, or any set of an ad-hoc exercise.

    Planned sets of planned exercises need ``force=true``.
    """
    return await service.remove_set(
        current_user.id, session_id, set_id, allow_planned_removal=force
    )
