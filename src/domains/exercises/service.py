"""Read-only access to the exercise catalog."""
import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.exercises.models import Exercise


class ExerciseCatalog:
    """Looks up catalog exercises for session defaults and display names."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_exercises(self, exercise_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, Exercise]:
        """Batch lookup; unknown IDs are simply absent from the result."""
        ids = {exercise_id for exercise_id in exercise_ids if exercise_id is not None}
        if not ids:
            return {}
        result = await self.db.execute(
            select(Exercise).where(Exercise.id.in_(ids))
        )
        return {exercise.id: exercise for exercise in result.scalars().all()}
