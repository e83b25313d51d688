from datetime import date

import pytest

from schedule_engine.models import Dependency, Task


def make_task(task_id, start, end, predecessors=None, name=None):
    """Builds a Task from ISO date strings and (pred_id, type, lag) tuples."""
    deps = [
        Dependency(predecessor_id=p[0], type=p[1], lag=p[2] if len(p) > 2 else 0)
        for p in (predecessors or [])
    ]
    return Task(
        id=task_id,
        name=name or f"Task {task_id}",
        start_date=date.fromisoformat(start),
        end_date=date.fromisoformat(end),
        predecessors=deps,
    )


@pytest.fixture
def foundation():
    return make_task("P", "2025-06-01", "2025-06-15", name="Foundation")


@pytest.fixture
def chain():
    """Three-hop finish-to-start chain A -> B -> C, with B and C scheduled too early."""
    a = make_task("A", "2025-03-01", "2025-03-10", name="Excavation")
    b = make_task("B", "2025-03-01", "2025-03-04", [("A", "FS")], name="Footings")
    c = make_task("C", "2025-03-02", "2025-03-03", [("B", "FS", 2)], name="Framing")
    return [a, b, c]
