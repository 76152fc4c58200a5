import logging
import re
import sys
from typing import Iterable, Optional

from models import ExerciseRecord, WorkoutGroup

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"^[+-]?\d+$")


class CircuitGrouper:
    """Group plan exercises into circuits while keeping display order."""

    PREFIX = "Circuit"

    @staticmethod
    def parse_circuit_number(name: Optional[str]) -> Optional[int]:
        """Return N for names made of two tokens whose second is an integer."""
        if not name:
            return None
        parts = [p for p in name.split(" ") if p]
        if len(parts) != 2 or not _INTEGER.match(parts[1]):
            return None
        return int(parts[1])

    @classmethod
    def circuit_sort_key(cls, name: str) -> tuple[int, str]:
        num = cls.parse_circuit_number(name)
        return (sys.maxsize if num is None else num, name)

    @classmethod
    def sorted_circuit_names(cls, names: Iterable[str]) -> list[str]:
        """Sort by circuit number; unparseable names go last."""
        return sorted(set(names), key=cls.circuit_sort_key)

    @classmethod
    def next_circuit_label(cls, names: Iterable[str]) -> str:
        numbers = [
            n for n in (cls.parse_circuit_number(name) for name in names) if n is not None
        ]
        if not numbers:
            return f"{cls.PREFIX} 1"
        return f"{cls.PREFIX} {max(numbers) + 1}"

    @classmethod
    def circuit_options(cls, names: Iterable[str]) -> list[str]:
        """Existing circuits in display order followed by a fresh label."""
        names = list(names)
        return cls.sorted_circuit_names(names) + [cls.next_circuit_label(names)]

    @staticmethod
    def group_by_circuit(exercises: Iterable[ExerciseRecord]) -> list[WorkoutGroup]:
        """Return groups in order of first appearance.

        Every exercise sharing a circuit name joins the group created at the
        first member, wherever the others sit in the sequence.
        """
        ordered = sorted(exercises, key=lambda e: e.order_index)
        groups: list[WorkoutGroup] = []
        processed: set[str] = set()
        for exercise in ordered:
            name = exercise.circuit_name
            if name is None:
                groups.append(WorkoutGroup(circuit_name=None, members=[exercise]))
            elif name not in processed:
                processed.add(name)
                members = [e for e in ordered if e.circuit_name == name]
                groups.append(WorkoutGroup(circuit_name=name, members=members))
        return groups

    @staticmethod
    def move_groups(
        groups: list[WorkoutGroup], source: Iterable[int], destination: int
    ) -> list[WorkoutGroup]:
        """Move the groups at ``source`` before the group at ``destination``.

        ``destination`` indexes the list before removal, so moving index 0 to
        ``len(groups)`` places it last.
        """
        indices = sorted(set(source))
        if any(i < 0 or i >= len(groups) for i in indices):
            raise ValueError("invalid source index")
        if destination < 0 or destination > len(groups):
            raise ValueError("invalid destination index")
        moving = [groups[i] for i in indices]
        remaining = [g for i, g in enumerate(groups) if i not in indices]
        offset = destination - sum(1 for i in indices if i < destination)
        return remaining[:offset] + moving + remaining[offset:]

    @staticmethod
    def renumber_after_reorder(
        groups: Iterable[WorkoutGroup], repository=None
    ) -> list[tuple[int, int]]:
        """Assign contiguous order indices group by group and commit them.

        Returns the ``(exercise_id, order_index)`` pairs. When ``repository``
        is given its ``update_order`` persists them; a failed commit
        propagates to the caller while the records keep the new indices.
        """
        order: list[tuple[int, int]] = []
        index = 0
        for group in groups:
            for exercise in group.members:
                exercise.order_index = index
                order.append((exercise.id, index))
                index += 1
        if repository is not None:
            repository.update_order(order)
            logger.debug("committed order for %d exercises", len(order))
        return order
