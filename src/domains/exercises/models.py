"""Exercise catalog models."""
import enum

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from src.config.database import Base
from src.core.models import TimestampMixin, UUIDMixin


class ExerciseCategory(str, enum.Enum):
    """Catalog exercise categories."""

    STRENGTH = "strength"
    CARDIO = "cardio"


class Exercise(Base, UUIDMixin, TimestampMixin):
    """Catalog exercise shared by all users."""

    __tablename__ = "exercises"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[ExerciseCategory] = mapped_column(
        Enum(ExerciseCategory, name="exercise_category_enum", values_callable=lambda x: [e.value for e in x]),
        default=ExerciseCategory.STRENGTH,
        nullable=False,
    )
    primary_muscle: Mapped[str] = mapped_column(String(64), nullable=False)
    secondary_muscle: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<Exercise {self.name}>"
