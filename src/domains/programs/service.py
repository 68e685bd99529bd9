"""Program template reader."""
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import NotFoundError
from src.domains.programs.models import ProgramExercise, WorkoutProgram


class ProgramTemplateReader:
    """Read-only access to a user's programs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_owned_program(
        self,
        user_id: uuid.UUID,
        program_id: uuid.UUID,
    ) -> WorkoutProgram:
        """Get a program with its exercises and sets.

        Raises:
            NotFoundError: If the program does not exist or belongs to another user
        """
        result = await self.db.execute(
            select(WorkoutProgram)
            .where(
                WorkoutProgram.id == program_id,
                WorkoutProgram.user_id == user_id,
            )
            .options(
                selectinload(WorkoutProgram.exercises).selectinload(ProgramExercise.sets)
            )
        )
        program = result.scalar_one_or_none()
        if program is None:
            raise NotFoundError("Workout program not found.")
        return program

    async def get_program_name(self, program_id: uuid.UUID) -> str:
        """Name of a program, empty if it no longer exists."""
        result = await self.db.execute(
            select(WorkoutProgram.name).where(WorkoutProgram.id == program_id)
        )
        return result.scalar_one_or_none() or ""
