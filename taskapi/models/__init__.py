from .task import TASK_FIELDS, Task, TaskSeverity, TaskStatus

__all__ = [
    "Task",
    "TaskStatus",
    "TaskSeverity",
    "TASK_FIELDS",
]
