from sqlalchemy import Column, Integer, String, Text, Enum, Index
from operator import attrgetter
from uuid import uuid4
from taskapi.database import Base
from taskapi.utils.field_registry import FieldRegistry, FieldSpec
import enum


def generate_task_id() -> str:
    return uuid4().hex


# Member order is the sort order; values equal names so they serialize by name
class TaskStatus(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class TaskSeverity(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Task(Base):
    __tablename__ = "tasks"

    # Surrogate key keeps insertion order for unsorted listings
    pk = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(64), unique=True, index=True, nullable=False, default=generate_task_id)
    title = Column(String(255), index=True, nullable=False)
    description = Column(Text, nullable=True)
    assigned_to = Column(String(255), nullable=True, index=True)
    status = Column(Enum(TaskStatus), default=TaskStatus.TODO, nullable=False)
    severity = Column(Enum(TaskSeverity), default=TaskSeverity.LOW, nullable=False)

    __table_args__ = (
        Index("idx_tasks_status_severity", "status", "severity"),
    )

    def __repr__(self) -> str:
        return f"<Task id={self.id!r} title={self.title!r}>"


TASK_FIELDS = FieldRegistry(
    "task",
    [
        FieldSpec("id", attrgetter("id")),
        FieldSpec("title", attrgetter("title")),
        FieldSpec("description", attrgetter("description")),
        FieldSpec("assigned_to", attrgetter("assigned_to")),
        FieldSpec("status", attrgetter("status")),
        FieldSpec("severity", attrgetter("severity")),
    ],
    collection="tasks",
)
