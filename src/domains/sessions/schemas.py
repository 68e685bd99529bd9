"""Workout session schemas for request/response validation."""
from datetime import datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, PlainSerializer

# Decimals go over the wire as JSON numbers
Weight = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# Request schemas

class SessionStart(BaseModel):
    """Start session request."""

    notes: str | None = Field(None, max_length=1000)


class SessionSetInput(BaseModel):
    """Planned values for a set added during a session."""

    planned_weight: Decimal | None = Field(None, ge=0)
    planned_reps: int | None = Field(None, ge=0)
    planned_duration_seconds: int | None = Field(None, ge=0)
    rest_seconds: int | None = Field(None, ge=0)


class SessionExerciseCreate(BaseModel):
    """Add ad-hoc exercise request.

    Either ``exercise_id`` (catalog) or ``custom_exercise_name`` is required.
    """

    exercise_id: UUID | None = None
    custom_exercise_name: str | None = Field(None, max_length=128)
    custom_category: str | None = Field(None, max_length=64)
    custom_primary_muscle: str | None = Field(None, max_length=64)
    notes: str | None = Field(None, max_length=1000)
    sets: list[SessionSetInput] = []


class SessionExerciseUpdate(BaseModel):
    """Update session exercise request. Omitted fields stay unchanged."""

    notes: str | None = Field(None, max_length=1000)


class SessionExerciseReorder(BaseModel):
    """New performed order, as the full list of session exercise IDs."""

    ordered_exercise_ids: list[UUID]


class SessionSetActualsUpdate(BaseModel):
    """Logged values for a set. All three are replaced; null clears."""

    actual_weight: Decimal | None = Field(None, ge=0)
    actual_reps: int | None = Field(None, ge=0)
    actual_duration_seconds: int | None = Field(None, ge=0)


# Response schemas

class SessionSetResponse(BaseModel):
    """Session set response."""

    id: UUID
    set_index: int
    planned_weight: Weight | None = None
    planned_reps: int | None = None
    planned_duration_seconds: int | None = None
    rest_seconds: int | None = None
    actual_weight: Weight | None = None
    actual_reps: int | None = None
    actual_duration_seconds: int | None = None
    is_user_added: bool
    # Last performance of the matching exercise
    last_weight: Weight | None = None
    last_reps: int | None = None
    last_duration_seconds: int | None = None


class SessionExerciseResponse(BaseModel):
    """Session exercise response."""

    id: UUID
    exercise_id: UUID | None = None
    program_exercise_id: UUID | None = None
    exercise_name: str
    custom_exercise_name: str | None = None
    custom_category: str | None = None
    custom_primary_muscle: str | None = None
    is_ad_hoc: bool
    is_catalog_exercise: bool
    notes: str | None = None
    order_performed: int
    sets: list[SessionSetResponse] = []


class SessionResponse(BaseModel):
    """Full session view."""

    id: UUID
    program_id: UUID
    program_name: str
    started_at: datetime
    completed_at: datetime | None = None
    updated_at: datetime | None = None
    notes: str | None = None
    total_weight_lifted_kg: Weight | None = None
    exercises: list[SessionExerciseResponse] = []


class SessionSummaryResponse(BaseModel):
    """Session list item response."""

    id: UUID
    program_id: UUID
    program_name: str
    started_at: datetime
    completed_at: datetime | None = None
    duration_seconds: int | None = None
    exercise_count: int
    logged_set_count: int
    total_set_count: int
    last_updated_at: datetime
    total_weight_lifted_kg: Weight | None = None


class PagedSessionsResponse(BaseModel):
    """One page of session summaries."""

    items: list[SessionSummaryResponse]
    page: int
    page_size: int
    total_count: int


class ProgramProgressPoint(BaseModel):
    """Total weight lifted in one completed session."""

    session_id: UUID
    completed_at: datetime
    total_weight_lifted_kg: Weight


class ExerciseProgressPoint(BaseModel):
    """Weight lifted on one exercise in one completed session."""

    session_id: UUID
    session_exercise_id: UUID
    completed_at: datetime
    total_weight_lifted_kg: Weight
