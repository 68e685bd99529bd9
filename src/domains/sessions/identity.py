"""Matching keys that identify "the same exercise" across sessions.

A session exercise is identified by exactly one of: the program slot it was
planned from, the catalog exercise it references, or a free-text custom
name. History hints and exercise progression both correlate sessions by
comparing these keys for equality.
"""
import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class ProgramLinked:
    """Exercise planned from a program slot."""

    program_exercise_id: uuid.UUID
    exercise_id: uuid.UUID | None = None


@dataclass(frozen=True)
class CatalogLinked:
    """Ad-hoc exercise referencing a catalog exercise, optionally relabelled."""

    exercise_id: uuid.UUID
    custom_name: str | None = None


@dataclass(frozen=True)
class Custom:
    """Ad-hoc exercise known only by its name."""

    name: str


ExerciseKey = ProgramLinked | CatalogLinked | Custom


def normalize_custom_name(name: str | None) -> str | None:
    """Trim and lower-case a custom name; blank names become None."""
    if name is None:
        return None
    normalized = name.strip().lower()
    return normalized or None


def exercise_key(
    program_exercise_id: uuid.UUID | None,
    exercise_id: uuid.UUID | None,
    custom_exercise_name: str | None,
) -> ExerciseKey | None:
    """Build the matching key for an exercise identity.

    Returns None when the identity is empty (no program slot, no catalog
    exercise, blank name); such exercises never match anything.
    """
    if program_exercise_id is not None:
        return ProgramLinked(program_exercise_id, exercise_id)

    custom_name = normalize_custom_name(custom_exercise_name)
    if exercise_id is not None:
        return CatalogLinked(exercise_id, custom_name)
    if custom_name is not None:
        return Custom(custom_name)
    return None
