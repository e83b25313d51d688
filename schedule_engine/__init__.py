"""Dependency-aware task date scheduling: constraint dates, earliest legal start, validation."""

from .date_logic import (
    auto_schedule,
    dependency_constraint_date,
    earliest_legal_start,
    validate_schedule,
)
from .models import Dependency, DependencyType, Task

__all__ = [
    "Dependency",
    "DependencyType",
    "Task",
    "auto_schedule",
    "dependency_constraint_date",
    "earliest_legal_start",
    "validate_schedule",
]
