from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from taskapi.exceptions import DatabaseError, DuplicateResourceError
from taskapi.models.task import Task, TaskSeverity, TaskStatus
from taskapi.schemas.task import TaskCreate, TaskPatch, TaskUpdate
from typing import Optional
import logging

logger = logging.getLogger(__name__)


def _new_task(data: TaskCreate) -> Task:
    values = data.model_dump(exclude_none=True)
    return Task(**values)


async def _commit(db: AsyncSession, operation: str, task_id: Optional[str] = None) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"Integrity error during {operation}: {str(e)}")
        raise DuplicateResourceError("Task", "id", task_id) from e
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error during {operation}: {str(e)}")
        raise DatabaseError(f"Failed to {operation}", operation=operation) from e


async def get_tasks(
        db: AsyncSession,
        title: Optional[str] = None,
        description: Optional[str] = None,
        assigned_to: Optional[str] = None,
        status: Optional[TaskStatus] = None,
        severity: Optional[TaskSeverity] = None,
) -> list[Task]:
    """
    Returns the tasks matching every supplied equality filter.

    Tasks come back in insertion order; sorting is left to the query layer.
    """
    query = select(Task)

    if title is not None:
        query = query.where(Task.title == title)

    if description is not None:
        query = query.where(Task.description == description)

    if assigned_to is not None:
        query = query.where(Task.assigned_to == assigned_to)

    if status is not None:
        query = query.where(Task.status == status)

    if severity is not None:
        query = query.where(Task.severity == severity)

    query = query.order_by(Task.pk)
    try:
        result = await db.execute(query)
    except SQLAlchemyError as e:
        logger.error(f"Error listing tasks: {str(e)}")
        raise DatabaseError("Failed to list tasks", operation="list tasks") from e
    return list(result.scalars().all())


async def get_task(db: AsyncSession, task_id: str) -> Optional[Task]:
    result = await db.execute(select(Task).where(Task.id == task_id))
    return result.scalars().first()


async def add_task(db: AsyncSession, data: TaskCreate) -> Task:
    """
    Creates a new task.

    Args:
        db (AsyncSession): The database session.
        data (TaskCreate): The data for the new task.

    Returns:
        Task: The newly created task.

    Raises:
        DuplicateResourceError: If a task with the same id already exists.
        DatabaseError: If the insert fails.
    """
    new_task = _new_task(data)
    db.add(new_task)
    await _commit(db, "create task", data.id)
    await db.refresh(new_task)
    logger.info(f"Task created successfully: {new_task.id}")
    return new_task


async def add_tasks(db: AsyncSession, items: list[TaskCreate]) -> list[Task]:
    """Creates several tasks in a single transaction."""
    new_tasks = [_new_task(data) for data in items]
    db.add_all(new_tasks)
    client_ids = [data.id for data in items if data.id is not None]
    await _commit(db, "create tasks", ", ".join(client_ids) or None)
    logger.info(f"Bulk created {len(new_tasks)} tasks")
    return new_tasks


async def update_task(db: AsyncSession, task_id: str, data: TaskUpdate) -> bool:
    existing_task = await get_task(db, task_id)
    if not existing_task:
        return False

    for field, value in data.model_dump().items():
        setattr(existing_task, field, value)

    await _commit(db, "update task", task_id)
    logger.info(f"Task updated: {task_id}")
    return True


async def patch_task(db: AsyncSession, task_id: str, data: TaskPatch) -> bool:
    existing_task = await get_task(db, task_id)
    if not existing_task:
        return False

    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(existing_task, field, value)

    await _commit(db, "patch task", task_id)
    logger.info(f"Task patched: {task_id}")
    return True


async def delete_task(db: AsyncSession, task_id: str) -> bool:
    existing_task = await get_task(db, task_id)
    if not existing_task:
        return False

    await db.delete(existing_task)
    await _commit(db, "delete task", task_id)
    logger.info(f"Task deleted: {task_id}")
    return True
