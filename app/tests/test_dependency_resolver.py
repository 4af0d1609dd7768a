"""
Tests for dependency gating
"""
from app.models.task_assignment import TaskStatus, WorkerTaskAssignment
from app.services.dependency_resolver import (
    completed_ids,
    eligible_to_start,
    startable,
    unmet_dependencies,
)


def _assignment(id, status=TaskStatus.QUEUED, deps=None, sequence=1) -> WorkerTaskAssignment:
    return WorkerTaskAssignment(id=id, status=status, dependencies=deps or [], sequence=sequence)


def test_no_dependencies_is_eligible():
    a = _assignment(1)
    assert eligible_to_start(a, [a]) is True


def test_dependency_must_be_completed():
    a = _assignment(1, status=TaskStatus.IN_PROGRESS)
    b = _assignment(2, deps=[1])
    assert eligible_to_start(b, [a, b]) is False
    a.status = TaskStatus.COMPLETED
    assert eligible_to_start(b, [a, b]) is True


def test_missing_dependency_is_unmet():
    """An id that is not in the set never counts as completed"""
    b = _assignment(2, deps=[999])
    assert eligible_to_start(b, [b]) is False
    assert unmet_dependencies(b, completed_ids([b])) == [999]


def test_unmet_lists_only_incomplete():
    a = _assignment(1, status=TaskStatus.COMPLETED)
    b = _assignment(2, status=TaskStatus.PAUSED)
    c = _assignment(3, deps=[1, 2, 7])
    assert unmet_dependencies(c, completed_ids([a, b, c])) == [2, 7]


def test_startable_filters_and_orders_by_sequence():
    done = _assignment(1, status=TaskStatus.COMPLETED, sequence=1)
    running = _assignment(2, status=TaskStatus.IN_PROGRESS, sequence=2)
    paused = _assignment(3, status=TaskStatus.PAUSED, sequence=5)
    ready = _assignment(4, deps=[1], sequence=3)
    blocked = _assignment(5, deps=[2], sequence=4)
    result = startable([blocked, paused, ready, running, done])
    assert [a.id for a in result] == [4, 3]


def test_startable_empty():
    assert startable([]) == []
