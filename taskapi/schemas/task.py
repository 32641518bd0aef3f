from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from taskapi.models.task import TaskSeverity, TaskStatus


class TaskCreate(BaseModel):
    id: Optional[str] = Field(
        None, min_length=1, max_length=64, title="Task ID", description="Client-chosen identifier; generated when omitted."
    )
    title: str = Field(..., min_length=1, max_length=255, title="Task Title", description="The title of the task.")
    description: Optional[str] = Field(None, title="Description", description="A longer description of the task.")
    assigned_to: Optional[str] = Field(None, max_length=255, title="Assignee", description="Who the task is assigned to.")
    status: TaskStatus = Field(TaskStatus.TODO, title="Task Status")
    severity: TaskSeverity = Field(TaskSeverity.LOW, title="Task Severity")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Write release notes",
                "description": "Summarize changes for 1.0.0",
                "assigned_to": "alex",
                "status": "TODO",
                "severity": "MEDIUM",
            }
        }
    )


class TaskUpdate(BaseModel):
    """Full replacement of a task's editable fields."""

    title: str = Field(..., min_length=1, max_length=255, title="Task Title")
    description: Optional[str] = Field(None, title="Description")
    assigned_to: Optional[str] = Field(None, max_length=255, title="Assignee")
    status: TaskStatus = Field(TaskStatus.TODO, title="Task Status")
    severity: TaskSeverity = Field(TaskSeverity.LOW, title="Task Severity")


class TaskPatch(BaseModel):
    """Partial update; only supplied, non-null fields are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=255, title="Updated Title")
    description: Optional[str] = Field(None, title="Updated Description")
    assigned_to: Optional[str] = Field(None, max_length=255, title="Updated Assignee")
    status: Optional[TaskStatus] = Field(None, title="Updated Status")
    severity: Optional[TaskSeverity] = Field(None, title="Updated Severity")
