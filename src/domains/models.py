"""Central import of all domain models.

This file imports all models to ensure they are registered with SQLAlchemy's
metadata before any database operations (like creating tables).
"""

# Exercises domain
from src.domains.exercises.models import (
    Exercise,
    ExerciseCategory,
)

# Programs domain
from src.domains.programs.models import (
    ProgramExercise,
    ProgramSet,
    WorkoutProgram,
)

# Sessions domain
from src.domains.sessions.models import (
    SessionExercise,
    SessionSet,
    WorkoutSession,
)

__all__ = [
    # Exercises
    "Exercise",
    "ExerciseCategory",
    # Programs
    "WorkoutProgram",
    "ProgramExercise",
    "ProgramSet",
    # Sessions
    "WorkoutSession",
    "SessionExercise",
    "SessionSet",
]
