from __future__ import annotations
import logging
from typing import Iterable, Optional

from algorithms import CircuitGrouper
from db import (
    ExerciseRepository,
    WorkoutDayRepository,
    WorkoutPlanRepository,
)
from models import WorkoutGroup

logger = logging.getLogger(__name__)


class PlannerService:
    """Handles structured strength plans and their circuit groups."""

    def __init__(
        self,
        plan_repo: WorkoutPlanRepository,
        day_repo: WorkoutDayRepository,
        exercise_repo: ExerciseRepository,
    ) -> None:
        self.plans = plan_repo
        self.days = day_repo
        self.exercises = exercise_repo

    def create_plan(
        self,
        name: str,
        day_names: Iterable[str] = (),
        description: str | None = None,
    ) -> int:
        plan_id = self.plans.create(name, description, "strength")
        for day_name in day_names:
            self.days.add(plan_id, day_name)
        return plan_id

    def add_day(self, plan_id: int, name: str) -> int:
        return self.days.add(plan_id, name)

    def is_structured_strength(self, plan_id: int) -> bool:
        _pid, _name, _desc, plan_type = self.plans.fetch_detail(plan_id)
        return plan_type.lower() == "strength" and bool(
            self.days.fetch_for_plan(plan_id)
        )

    def add_exercise(
        self,
        day_id: int,
        name: str,
        exercise_type: str = "sets_reps",
        circuit_name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        if exercise_type not in {"sets_reps", "duration"}:
            raise ValueError("exercise_type must be 'sets_reps' or 'duration'")
        return self.exercises.add(day_id, name, exercise_type, circuit_name, notes)

    def assign_circuit(self, exercise_id: int, circuit_name: Optional[str]) -> None:
        self.exercises.set_circuit(exercise_id, circuit_name)

    def groups_for_day(self, day_id: int) -> list[WorkoutGroup]:
        return CircuitGrouper.group_by_circuit(self.exercises.fetch_for_day(day_id))

    def move_groups(
        self, day_id: int, source: Iterable[int], destination: int
    ) -> list[WorkoutGroup]:
        """Reorder the groups of a day and commit the new exercise order.

        A failed commit raises ``PersistenceError``; the returned groups are
        not produced in that case and the stored order is unchanged.
        """
        groups = self.groups_for_day(day_id)
        moved = CircuitGrouper.move_groups(groups, source, destination)
        CircuitGrouper.renumber_after_reorder(moved, self.exercises)
        logger.info("reordered %d groups of day %s", len(moved), day_id)
        return moved

    def circuit_options(self, day_id: int) -> list[str]:
        return CircuitGrouper.circuit_options(self.exercises.circuit_names(day_id))

    def next_circuit_label(self, day_id: int) -> str:
        return CircuitGrouper.next_circuit_label(self.exercises.circuit_names(day_id))
