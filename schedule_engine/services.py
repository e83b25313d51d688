import collections
from typing import Dict, Iterable, List, Optional

from .date_logic import auto_schedule, validate_schedule
from .exceptions import DependencyCycleError, TaskNotFoundError
from .logger import logger
from .models import Task, ValidationResult


class DependencyGraph:
    """
    Successor view of a task snapshot.

    Edges run from predecessor to successor. Dependencies pointing at ids
    missing from the snapshot are left out of the graph.
    """

    def __init__(self, tasks: List[Task]):
        self.tasks = {}  # ID -> Task, first occurrence wins
        for t in tasks:
            self.tasks.setdefault(t.id, t)

        self.adjacency = collections.defaultdict(list)  # Pred_ID -> [Succ_ID]
        for task_id, task in self.tasks.items():
            for dep in task.predecessors:
                if dep.predecessor_id in self.tasks:
                    self.adjacency[dep.predecessor_id].append(task_id)

    def __contains__(self, task_id):
        return task_id in self.tasks

    def successors(self, task_id: str) -> List[str]:
        return list(self.adjacency.get(task_id, []))

    def find_dependent_tasks(self, task_id: str) -> List[Task]:
        seen = set()
        dependents = []
        for succ_id in self.adjacency.get(task_id, []):
            if succ_id not in seen:
                seen.add(succ_id)
                dependents.append(self.tasks[succ_id])
        return dependents

    def reachable_from(self, task_id: str) -> List[str]:
        """All transitive dependents of `task_id` (BFS order, excluding itself unless cyclic)."""
        queue = collections.deque(self.adjacency.get(task_id, []))
        seen = set()
        visited = []
        while queue:
            current = queue.popleft()
            if current in seen:
                continue
            seen.add(current)
            visited.append(current)
            queue.extend(self.adjacency.get(current, []))
        return visited

    def find_cycle(self, task_ids: Optional[Iterable[str]] = None) -> Optional[List[str]]:
        """
        Returns one dependency cycle as a closed path of ids (first id repeated
        at the end), or None when the graph (or the `task_ids` sub-graph) is acyclic.
        """
        nodes = list(self.tasks) if task_ids is None else list(dict.fromkeys(t for t in task_ids if t in self.tasks))
        allowed = set(nodes)
        visited = set()

        for root in nodes:
            if root in visited:
                continue

            # Depth-first walk with an explicit stack of (task_id, successor iterator) frames
            path = [root]
            on_path = {root}
            stack = [(root, iter(self.adjacency.get(root, [])))]
            while stack:
                task_id, successors = stack[-1]
                succ_id = next(successors, None)
                if succ_id is None:
                    stack.pop()
                    path.pop()
                    on_path.discard(task_id)
                    visited.add(task_id)
                    continue
                if succ_id not in allowed:
                    continue
                if succ_id in on_path:
                    return path[path.index(succ_id):] + [succ_id]
                if succ_id not in visited:
                    path.append(succ_id)
                    on_path.add(succ_id)
                    stack.append((succ_id, iter(self.adjacency.get(succ_id, []))))
        return None

    def topological_order(self, task_ids: Optional[Iterable[str]] = None) -> List[str]:
        """Kahn ordering of the whole graph or of the `task_ids` sub-graph."""
        nodes = list(self.tasks) if task_ids is None else list(dict.fromkeys(t for t in task_ids if t in self.tasks))
        allowed = set(nodes)

        indegree = {task_id: 0 for task_id in nodes}
        for task_id in nodes:
            for succ_id in self.adjacency.get(task_id, []):
                if succ_id in allowed:
                    indegree[succ_id] += 1

        queue = collections.deque(t for t in nodes if indegree[t] == 0)
        order = []
        while queue:
            u = queue.popleft()
            order.append(u)
            for v in self.adjacency.get(u, []):
                if v not in allowed:
                    continue
                indegree[v] -= 1
                if indegree[v] == 0:
                    queue.append(v)

        if len(order) < len(nodes):
            cycle = self.find_cycle(nodes)
            logger.warning(f"Dependency cycle detected: {' -> '.join(cycle)}")
            raise DependencyCycleError(cycle)

        return order


def cascade_schedule(changed_task_id: str, all_tasks: List[Task]) -> List[Task]:
    """
    Re-runs auto_schedule on every transitive dependent of a changed task.

    Dependents are visited in topological order against a working copy of the
    snapshot, so each hop sees the dates chosen for the hops before it.
    Returns rescheduled copies of the tasks whose dates moved; the input
    tasks are left untouched.
    """
    graph = DependencyGraph(all_tasks)
    if changed_task_id not in graph:
        raise TaskNotFoundError(changed_task_id)

    affected = graph.reachable_from(changed_task_id)
    if not affected:
        return []

    order = graph.topological_order([changed_task_id] + affected)

    working = dict(graph.tasks)
    updated = []
    for task_id in order:
        if task_id == changed_task_id:
            continue

        task = working[task_id]
        update = auto_schedule(task, list(working.values()))
        if update.is_empty:
            continue
        if update.start_date == task.start_date and update.end_date == task.end_date:
            continue

        moved = task.model_copy(update={"start_date": update.start_date, "end_date": update.end_date})
        working[task_id] = moved
        updated.append(moved)
        logger.debug(f"Cascade moved {task.name}: {task.start_date} -> {moved.start_date}")

    return updated


def validate_all(all_tasks: List[Task]) -> Dict[str, ValidationResult]:
    """Validation results for every task that has at least one violation."""
    results = {}
    for task in all_tasks:
        result = validate_schedule(task, all_tasks)
        if not result.is_valid:
            results[task.id] = result
    return results
