"""Tests for the workout session aggregate operations."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from src.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.domains.programs.models import ProgramExercise, ProgramSet, WorkoutProgram
from src.domains.sessions.models import SetPlan, WorkoutSession, lifted_weight

NOW = datetime(2025, 3, 3, 7, 0, tzinfo=timezone.utc)


def build_program(sets_per_exercise: list[int]) -> WorkoutProgram:
    """Transient program; exercise N has sets_per_exercise[N] sets."""
    program = WorkoutProgram(id=uuid.uuid4(), user_id=uuid.uuid4(), name="Test Program")
    for display_order, set_count in enumerate(sets_per_exercise, start=1):
        program_exercise = ProgramExercise(
            id=uuid.uuid4(),
            program_id=program.id,
            exercise_id=uuid.uuid4(),
            display_order=display_order,
        )
        for sequence in range(1, set_count + 1):
            program_exercise.sets.append(
                ProgramSet(
                    id=uuid.uuid4(),
                    sequence=sequence,
                    target_weight=Decimal(20 * sequence),
                    target_reps=10,
                    rest_seconds=60,
                )
            )
        program.exercises.append(program_exercise)
    return program


def start_session(sets_per_exercise: list[int]) -> WorkoutSession:
    program = build_program(sets_per_exercise)
    return WorkoutSession.start(program, program.user_id, NOW)


def orders(session: WorkoutSession) -> list[int]:
    return [exercise.order_performed for exercise in session.exercises]


def set_indexes(session: WorkoutSession, session_exercise_id: uuid.UUID) -> list[int]:
    return [s.set_index for s in session.get_exercise(session_exercise_id).sets]


class TestStart:
    """Tests for building a session from a program."""

    def test_start_mirrors_program_structure(self):
        """Order and set indexes are dense, planned values copied, actuals empty."""
        program = build_program([3, 2, 1])

        session = WorkoutSession.start(program, program.user_id, NOW, notes="  leg day ")

        assert session.started_at == NOW
        assert session.completed_at is None
        assert session.total_weight_lifted_kg is None
        assert session.notes == "leg day"
        assert orders(session) == [1, 2, 3]
        for exercise, program_exercise in zip(session.exercises, program.exercises):
            assert exercise.program_exercise_id == program_exercise.id
            assert exercise.exercise_id == program_exercise.exercise_id
            assert exercise.is_ad_hoc is False
            assert [s.set_index for s in exercise.sets] == list(range(1, len(program_exercise.sets) + 1))
            for session_set, program_set in zip(exercise.sets, program_exercise.sets):
                assert session_set.planned_weight == program_set.target_weight
                assert session_set.planned_reps == program_set.target_reps
                assert session_set.rest_seconds == program_set.rest_seconds
                assert session_set.actual_weight is None
                assert session_set.actual_reps is None
                assert session_set.actual_duration_seconds is None
                assert session_set.is_user_added is False

    def test_start_follows_display_order_not_insertion_order(self):
        """Program exercises are copied in display order."""
        program = build_program([1, 1])
        first, second = program.exercises
        first.display_order, second.display_order = 2, 1

        session = WorkoutSession.start(program, program.user_id, NOW)

        assert [e.program_exercise_id for e in session.exercises] == [second.id, first.id]


class TestExerciseOperations:
    """Tests for adding, removing and reordering exercises."""

    def test_add_exercise_appends_with_default_set(self):
        """An ad-hoc exercise without sets gets one empty user-added set."""
        session = start_session([1, 1])

        exercise = session.add_exercise(NOW, custom_exercise_name="  Farmer Carry ")

        assert exercise.order_performed == 3
        assert exercise.is_ad_hoc is True
        assert exercise.custom_exercise_name == "Farmer Carry"
        assert len(exercise.sets) == 1
        assert exercise.sets[0].set_index == 1
        assert exercise.sets[0].is_user_added is True
        assert exercise.sets[0].planned_weight is None

    def test_add_exercise_with_initial_sets(self):
        """Initial sets get dense indexes starting at 1."""
        session = start_session([1])

        exercise = session.add_exercise(
            NOW,
            exercise_id=uuid.uuid4(),
            sets=[SetPlan(planned_reps=12), SetPlan(planned_reps=10), SetPlan(planned_reps=8)],
        )

        assert [s.set_index for s in exercise.sets] == [1, 2, 3]
        assert [s.planned_reps for s in exercise.sets] == [12, 10, 8]
        assert all(s.is_user_added for s in exercise.sets)

    @pytest.mark.parametrize("custom_name", [None, "", "   "])
    def test_add_exercise_requires_identity(self, custom_name):
        """Neither catalog exercise nor custom name is a validation error."""
        session = start_session([1])

        with pytest.raises(ValidationError):
            session.add_exercise(NOW, custom_exercise_name=custom_name)

        assert len(session.exercises) == 1

    def test_remove_planned_exercise_fails(self):
        """Exercises inherited from the program cannot be removed."""
        session = start_session([1, 1])
        planned = session.exercises[0]

        with pytest.raises(ValidationError):
            session.remove_exercise(planned.id)

        assert orders(session) == [1, 2]

    def test_planned_exercise_stays_after_program_slot_is_gone(self):
        """Removal depends on the ad-hoc flag, not on the program link."""
        session = start_session([1, 1])
        planned = session.exercises[0]
        planned.program_exercise_id = None

        with pytest.raises(ValidationError):
            session.remove_exercise(planned.id)

        assert len(session.exercises) == 2

    def test_remove_ad_hoc_exercise_renumbers(self):
        """Removing from the middle closes the gap."""
        session = start_session([1])
        middle = session.add_exercise(NOW, custom_exercise_name="Dips")
        last = session.add_exercise(NOW, custom_exercise_name="Curls")

        session.remove_exercise(middle.id)

        assert orders(session) == [1, 2]
        assert session.exercises[1].id == last.id

    def test_remove_unknown_exercise_is_not_found(self):
        session = start_session([1])

        with pytest.raises(NotFoundError):
            session.remove_exercise(uuid.uuid4())

    def test_order_stays_dense_over_add_remove_sequence(self):
        """After every add or remove, order is exactly 1..count."""
        session = start_session([1, 1])
        added = []
        for i in range(4):
            added.append(session.add_exercise(NOW, custom_exercise_name=f"Extra {i}"))
            assert orders(session) == list(range(1, len(session.exercises) + 1))
        for exercise in [added[2], added[0], added[3]]:
            session.remove_exercise(exercise.id)
            assert orders(session) == list(range(1, len(session.exercises) + 1))

    def test_reorder_assigns_positions_from_list(self):
        session = start_session([1, 1, 1])
        first, second, third = session.exercises

        session.reorder_exercises([third.id, first.id, second.id])

        assert [e.id for e in session.exercises] == [third.id, first.id, second.id]
        assert orders(session) == [1, 2, 3]

    def test_reorder_rejects_non_permutations(self):
        """Omitted, foreign or duplicated ids fail and leave the order unchanged."""
        session = start_session([1, 1, 1])
        first, second, third = session.exercises
        original = [e.id for e in session.exercises]

        payloads = [
            [first.id, second.id],
            [first.id, second.id, third.id, uuid.uuid4()],
            [first.id, second.id, uuid.uuid4()],
            [first.id, first.id, second.id],
            [],
        ]
        for payload in payloads:
            with pytest.raises(ValidationError):
                session.reorder_exercises(payload)
            assert [e.id for e in session.exercises] == original

    def test_update_exercise_leaves_notes_when_absent(self):
        """None means "leave unchanged", not "clear"."""
        session = start_session([1])
        exercise = session.exercises[0]
        session.update_exercise(exercise.id, NOW, notes="Pause at the bottom")

        session.update_exercise(exercise.id, NOW, notes=None)

        assert exercise.notes == "Pause at the bottom"


class TestSetOperations:
    """Tests for adding, removing and logging sets."""

    def test_add_set_appends_user_added_set(self):
        session = start_session([2])
        exercise = session.exercises[0]

        session_set = session.add_set(exercise.id, NOW, SetPlan(planned_reps=6, rest_seconds=45))

        assert session_set.set_index == 3
        assert session_set.is_user_added is True
        assert session_set.rest_seconds == 45
        assert set_indexes(session, exercise.id) == [1, 2, 3]

    def test_remove_planned_set_fails_without_permission(self):
        session = start_session([2])
        planned_set = session.exercises[0].sets[0]

        with pytest.raises(ValidationError):
            session.remove_set(planned_set.id)

    def test_remove_planned_set_with_permission(self):
        session = start_session([3])
        exercise = session.exercises[0]

        session.remove_set(exercise.sets[0].id, allow_planned_removal=True)

        assert set_indexes(session, exercise.id) == [1, 2]

    def test_remove_user_added_set_on_planned_exercise(self):
        session = start_session([1])
        exercise = session.exercises[0]
        added = session.add_set(exercise.id, NOW)

        session.remove_set(added.id)

        assert set_indexes(session, exercise.id) == [1]

    def test_remove_any_set_of_ad_hoc_exercise(self):
        """Sets of ad-hoc exercises are always removable."""
        session = start_session([1])
        exercise = session.add_exercise(
            NOW, custom_exercise_name="Sled Push", sets=[SetPlan(), SetPlan(), SetPlan()]
        )
        exercise.sets[0].is_user_added = False

        session.remove_set(exercise.sets[0].id)

        assert set_indexes(session, exercise.id) == [1, 2]

    def test_set_indexes_stay_dense_over_add_remove_sequence(self):
        session = start_session([1])
        exercise = session.exercises[0]
        added = [session.add_set(exercise.id, NOW) for _ in range(4)]
        assert set_indexes(session, exercise.id) == [1, 2, 3, 4, 5]

        for session_set in [added[1], added[3], added[0]]:
            session.remove_set(session_set.id)
            assert set_indexes(session, exercise.id) == list(range(1, len(exercise.sets) + 1))

    def test_remove_unknown_set_is_not_found(self):
        session = start_session([1])

        with pytest.raises(NotFoundError):
            session.remove_set(uuid.uuid4())

    def test_update_set_actuals_replaces_all_three(self):
        """Null clears a previously logged value."""
        session = start_session([1])
        session_set = session.exercises[0].sets[0]
        session.update_set_actuals(
            session_set.id, NOW, actual_weight=100, actual_reps=5, actual_duration_seconds=40
        )

        later = NOW + timedelta(minutes=2)
        session.update_set_actuals(session_set.id, later, actual_reps=6)

        assert session_set.actual_weight is None
        assert session_set.actual_reps == 6
        assert session_set.actual_duration_seconds is None
        assert session_set.updated_at == later

    def test_update_set_actuals_stores_decimal(self):
        session = start_session([1])
        session_set = session.exercises[0].sets[0]

        session.update_set_actuals(session_set.id, NOW, actual_weight=62.5, actual_reps=5)

        assert session_set.actual_weight == Decimal("62.5")


class TestRenumber:
    """Tests for the renumbering step."""

    def test_renumber_closes_gaps_preserving_order(self):
        session = start_session([3, 1, 1])
        first, second, third = session.exercises
        first.order_performed, second.order_performed, third.order_performed = 4, 9, 10
        for session_set, index in zip(first.sets, [2, 5, 7]):
            session_set.set_index = index

        session.renumber()

        assert [e.id for e in session.exercises] == [first.id, second.id, third.id]
        assert orders(session) == [1, 2, 3]
        assert [s.set_index for s in first.sets] == [1, 2, 3]

    def test_renumber_breaks_ties_by_creation_time(self):
        session = start_session([1, 1])
        first, second = session.exercises
        first.created_at = NOW + timedelta(seconds=1)
        first.order_performed = second.order_performed = 1

        session.renumber()

        assert [e.id for e in session.exercises] == [second.id, first.id]
        assert orders(session) == [1, 2]

    def test_renumber_is_idempotent(self):
        session = start_session([2, 2])
        session.add_exercise(NOW, custom_exercise_name="Plank")
        session.renumber()
        snapshot = [(e.id, e.order_performed, [s.set_index for s in e.sets]) for e in session.exercises]

        session.renumber()

        assert [(e.id, e.order_performed, [s.set_index for s in e.sets]) for e in session.exercises] == snapshot


class TestCompletion:
    """Tests for completing a session."""

    def test_total_counts_only_sets_with_weight_and_reps(self):
        """(100,5), (None,5), (80,None), (60,3) -> 680."""
        session = start_session([4])
        sets = session.exercises[0].sets
        logged = [(100, 5), (None, 5), (80, None), (60, 3)]
        for session_set, (weight, reps) in zip(sets, logged):
            session.update_set_actuals(session_set.id, NOW, actual_weight=weight, actual_reps=reps)

        session.complete(NOW + timedelta(hours=1))

        assert session.completed_at == NOW + timedelta(hours=1)
        assert session.total_weight_lifted_kg == Decimal("680")

    def test_total_is_zero_when_nothing_qualifies(self):
        session = start_session([2])
        session.update_set_actuals(session.exercises[0].sets[0].id, NOW, actual_reps=12)

        session.complete(NOW)

        assert session.total_weight_lifted_kg == Decimal("0")
        assert session.total_weight_lifted_kg is not None

    def test_second_completion_conflicts_and_keeps_total(self):
        session = start_session([1])
        session.update_set_actuals(session.exercises[0].sets[0].id, NOW, actual_weight=50, actual_reps=10)
        session.complete(NOW)

        with pytest.raises(ConflictError):
            session.complete(NOW + timedelta(minutes=5))

        assert session.completed_at == NOW
        assert session.total_weight_lifted_kg == Decimal("500")

    def test_mutations_after_completion_conflict(self):
        session = start_session([1])
        exercise = session.exercises[0]
        session_set = exercise.sets[0]
        session.complete(NOW)

        with pytest.raises(ConflictError):
            session.add_exercise(NOW, custom_exercise_name="Late Addition")
        with pytest.raises(ConflictError):
            session.add_set(exercise.id, NOW)
        with pytest.raises(ConflictError):
            session.update_set_actuals(session_set.id, NOW, actual_reps=3)
        with pytest.raises(ConflictError):
            session.reorder_exercises([exercise.id])
        with pytest.raises(ConflictError):
            session.remove_set(session_set.id, allow_planned_removal=True)

    def test_completed_check_precedes_lookup(self):
        """A completed session reports the conflict even for unknown children."""
        session = start_session([1])
        session.complete(NOW)

        with pytest.raises(ConflictError):
            session.remove_exercise(uuid.uuid4())

    def test_lifted_weight_of_no_sets(self):
        assert lifted_weight([]) == Decimal("0")
