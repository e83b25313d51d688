from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, model_validator


class DependencyType(str, Enum):
    FS = "FS"  # Finish-to-Start
    SS = "SS"  # Start-to-Start
    FF = "FF"  # Finish-to-Finish
    SF = "SF"  # Start-to-Finish


class Dependency(BaseModel):
    predecessor_id: str
    # Kept as a plain string: unknown kinds are scheduled as FS, not rejected
    type: str = DependencyType.FS.value
    lag: Optional[int] = 0  # Days, negative = lead


class Task(BaseModel):
    id: str
    name: str
    start_date: date
    end_date: date
    predecessors: List[Dependency] = []

    @model_validator(mode="after")
    def check_date_order(self):
        if self.start_date > self.end_date:
            raise ValueError(
                f"Task {self.id} starts ({self.start_date}) after it ends ({self.end_date})"
            )
        return self


class ScheduleUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def is_empty(self) -> bool:
        return self.start_date is None and self.end_date is None


class ValidationResult(BaseModel):
    is_valid: bool
    violations: List[str] = []


class DependencyResolution(BaseModel):
    """Outcome of looking up one dependency against a task snapshot."""

    dependency: Dependency
    predecessor: Optional[Task] = None
    constraint_date: Optional[date] = None

    @property
    def resolved(self) -> bool:
        return self.predecessor is not None


# --- API payloads ---

class TaskSetRequest(BaseModel):
    task_id: str
    tasks: List[Task]


class TaskListRequest(BaseModel):
    tasks: List[Task]


class EarliestStartResponse(BaseModel):
    task_id: str
    earliest_start: Optional[date] = None
    dangling_predecessors: List[str] = []


class ScheduleResponse(BaseModel):
    task_id: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ValidationResponse(ValidationResult):
    task_id: str
    dangling_predecessors: List[str] = []


class ValidateAllResponse(BaseModel):
    violations: Dict[str, List[str]] = {}


class CascadeResponse(BaseModel):
    changed_task_id: str
    updated_tasks: List[Task] = []
