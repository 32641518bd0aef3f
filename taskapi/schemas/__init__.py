from .task import TaskCreate, TaskPatch, TaskUpdate

# Define the public API of this module
__all__ = [
    "TaskCreate",
    "TaskUpdate",
    "TaskPatch",
]
