"""Task dependency validation (same-project, no self edges, acyclic)."""
from typing import Dict, Iterable, List, Optional

from taskflow.domain.errors import ValidationError
from taskflow.models import Task


def find_cycle(edges: Dict[int, List[int]]) -> Optional[List[int]]:
    """
    DFS cycle detection over ``task_id -> dependency ids``.

    Returns:
        The cycle path (first node repeated at the end) or None
    """
    visited = set()
    rec_stack = set()

    def visit(node: int, path: List[int]) -> Optional[List[int]]:
        visited.add(node)
        rec_stack.add(node)
        path.append(node)

        for dep_id in edges.get(node, []):
            if dep_id not in visited:
                cycle = visit(dep_id, path.copy())
                if cycle:
                    return cycle
            elif dep_id in rec_stack:
                return path[path.index(dep_id):] + [dep_id]

        rec_stack.remove(node)
        return None

    for node in edges:
        if node not in visited:
            cycle = visit(node, [])
            if cycle:
                return cycle
    return None


def validate_dependencies(
    task_id: Optional[int],
    dependency_ids: Iterable[int],
    project_tasks: Iterable[Task],
) -> List[int]:
    """
    Check a task's dependency list against the other tasks of its project.

    Args:
        task_id: id of the task being saved (None while creating)
        dependency_ids: requested dependencies
        project_tasks: every task of the same project

    Returns:
        De-duplicated dependency ids in request order
    """
    wanted = list(dict.fromkeys(int(dep_id) for dep_id in dependency_ids))
    by_id = {task.task_id: task for task in project_tasks}

    for dep_id in wanted:
        if task_id is not None and dep_id == task_id:
            raise ValidationError("dependencies", "task cannot depend on itself", dep_id)
        if dep_id not in by_id:
            raise ValidationError("dependencies", "dependency must be a task of the same project", dep_id)

    if task_id is None:
        # 새 작업은 아직 아무도 의존하지 않으므로 순환이 생길 수 없음
        return wanted

    edges = {tid: list(task.dependency_ids or []) for tid, task in by_id.items()}
    edges[task_id] = wanted
    cycle = find_cycle(edges)
    if cycle:
        raise ValidationError("dependencies", "circular dependency: " + " -> ".join(map(str, cycle)), cycle)
    return wanted
