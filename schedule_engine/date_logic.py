from datetime import date, timedelta
from typing import List, Optional

from .models import (
    DependencyResolution,
    DependencyType,
    ScheduleUpdate,
    Task,
    ValidationResult,
)

# Dependency kinds whose constraint is taken from the predecessor's start date.
# Everything else, unknown kinds included, uses the end date (FS behaviour).
START_BASED_TYPES = (DependencyType.SS, DependencyType.SF)

# Dependency kinds that bind the successor's finish rather than its start
FINISH_BOUND_TYPES = (DependencyType.FF, DependencyType.SF)

DEPENDENCY_LABELS = {
    DependencyType.FS: "Finish-to-Start",
    DependencyType.SS: "Start-to-Start",
    DependencyType.FF: "Finish-to-Finish",
    DependencyType.SF: "Start-to-Finish",
}

VIOLATION_MESSAGES = {
    DependencyType.FS: "Task cannot start before {name} finishes",
    DependencyType.SS: "Task cannot start before {name} starts",
    DependencyType.FF: "Task cannot finish before {name} finishes",
    DependencyType.SF: "Task cannot finish before {name} starts",
}


def _normalize_type(dep_type) -> DependencyType:
    try:
        return DependencyType(dep_type)
    except ValueError:
        return DependencyType.FS


def dependency_type_label(dep_type) -> str:
    return DEPENDENCY_LABELS[_normalize_type(dep_type)]


def dependency_constraint_date(predecessor: Task, dep_type, lag: Optional[int] = 0) -> date:
    """
    Date the predecessor imposes on its successor for one dependency.

    FS and FF are measured from the predecessor's end date, SS and SF from its
    start date. The lag (negative for a lead) is added in calendar days.
    """
    if _normalize_type(dep_type) in START_BASED_TYPES:
        base = predecessor.start_date
    else:
        base = predecessor.end_date
    return _shift(base, lag or 0)


def _shift(base: date, days: int) -> date:
    """Adds calendar days, pinning results outside the representable range to date.min/date.max."""
    try:
        return base + timedelta(days=days)
    except OverflowError:
        return date.max if days > 0 else date.min


def _find_task(task_id: str, all_tasks: List[Task]) -> Optional[Task]:
    return next((t for t in all_tasks if t.id == task_id), None)


def resolve_dependencies(task: Task, all_tasks: List[Task]) -> List[DependencyResolution]:
    """
    Looks up every predecessor of `task` in `all_tasks`.

    One entry per dependency, in predecessor-list order. Dependencies whose
    predecessor is missing from the snapshot come back unresolved instead of
    being dropped, so callers can report them.
    """
    resolutions = []
    for dependency in task.predecessors:
        predecessor = _find_task(dependency.predecessor_id, all_tasks)
        if predecessor is None:
            resolutions.append(DependencyResolution(dependency=dependency))
            continue

        constraint = dependency_constraint_date(predecessor, dependency.type, dependency.lag)
        resolutions.append(DependencyResolution(
            dependency=dependency,
            predecessor=predecessor,
            constraint_date=constraint,
        ))
    return resolutions


def dangling_predecessor_ids(task: Task, all_tasks: List[Task]) -> List[str]:
    return [r.dependency.predecessor_id for r in resolve_dependencies(task, all_tasks) if not r.resolved]


def earliest_legal_start(task: Task, all_tasks: List[Task]) -> Optional[date]:
    """
    Latest of all predecessor constraint dates, or None when nothing constrains the task.

    Predecessors missing from `all_tasks` are skipped.
    """
    if not task.predecessors:
        return None

    earliest = None
    for resolution in resolve_dependencies(task, all_tasks):
        if not resolution.resolved:
            continue
        if earliest is None or resolution.constraint_date > earliest:
            earliest = resolution.constraint_date
    return earliest


def auto_schedule(task: Task, all_tasks: List[Task]) -> ScheduleUpdate:
    """
    Moves the task to its earliest legal start, keeping its duration.

    Returns an empty update when the task is unconstrained. Dependents of the
    task are not touched.
    """
    earliest = earliest_legal_start(task, all_tasks)
    if earliest is None:
        return ScheduleUpdate()

    duration = (task.end_date - task.start_date).days
    return ScheduleUpdate(
        start_date=earliest,
        end_date=_shift(earliest, duration),
    )


def validate_schedule(task: Task, all_tasks: List[Task]) -> ValidationResult:
    """
    Checks the task's current dates against each predecessor.

    A date equal to the constraint date is valid; only strictly earlier dates
    are reported.
    """
    if not task.predecessors:
        return ValidationResult(is_valid=True, violations=[])

    violations = []
    for resolution in resolve_dependencies(task, all_tasks):
        if not resolution.resolved:
            continue

        try:
            dep_type = DependencyType(resolution.dependency.type)
        except ValueError:
            # Unknown kinds still constrain earliest_legal_start but are never reported here
            continue

        if dep_type in FINISH_BOUND_TYPES:
            current = task.end_date
        else:
            current = task.start_date

        if current < resolution.constraint_date:
            violations.append(VIOLATION_MESSAGES[dep_type].format(name=resolution.predecessor.name))

    return ValidationResult(is_valid=not violations, violations=violations)
