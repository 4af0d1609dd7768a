"""
Dependency gating for a worker's assignments on one work date.

Works on any objects exposing ``id``, ``status`` and ``dependency_ids``. A
dependency id that is not present in the given set counts as unmet.
"""
from typing import Iterable, List, Sequence, Set

from app.models.task_assignment import TaskStatus, WorkerTaskAssignment

STARTABLE_STATUSES = (TaskStatus.QUEUED, TaskStatus.PAUSED)


def completed_ids(assignments: Iterable[WorkerTaskAssignment]) -> Set[int]:
    return {a.id for a in assignments if a.status == TaskStatus.COMPLETED}


def unmet_dependencies(assignment: WorkerTaskAssignment, done: Set[int]) -> List[int]:
    """Dependency ids of `assignment` that are not in the completed set."""
    return [dep for dep in assignment.dependency_ids if dep not in done]


def eligible_to_start(
    assignment: WorkerTaskAssignment,
    assignments: Sequence[WorkerTaskAssignment],
) -> bool:
    if not assignment.dependency_ids:
        return True
    return not unmet_dependencies(assignment, completed_ids(assignments))


def startable(assignments: Sequence[WorkerTaskAssignment]) -> List[WorkerTaskAssignment]:
    """Queued or paused assignments whose dependencies are all completed, in sequence order."""
    done = completed_ids(assignments)
    ready = [
        a for a in assignments
        if a.status in STARTABLE_STATUSES and not unmet_dependencies(a, done)
    ]
    return sorted(ready, key=lambda a: (a.sequence, a.id))
