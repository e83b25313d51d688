class ScheduleEngineError(Exception):
    """Base class for errors raised outside the core scheduling functions."""

    pass


class TaskNotFoundError(ScheduleEngineError):
    """Raised when a task id is not present in the supplied task set."""

    def __init__(self, task_id):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found in task set")


class DependencyCycleError(ScheduleEngineError):
    """Raised when a graph pass meets a dependency cycle."""

    def __init__(self, cycle):
        self.cycle = list(cycle)
        super().__init__(f"Dependency cycle: {' -> '.join(self.cycle)}")


class TaskImportError(ScheduleEngineError):
    """Raised when a task sheet cannot be turned into tasks."""

    pass


# Mapping of custom exceptions to HTTP status codes
CUSTOM_ERRORS = {
    TaskNotFoundError: 404,
    DependencyCycleError: 409,
    TaskImportError: 400,
}
