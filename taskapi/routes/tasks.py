"""
Task Routes

CRUD endpoints for tasks plus query endpoints that support equality
filters, the ``X-Sort`` and ``X-Fields`` headers, and JSON/CSV/XML output.
"""

import logging
from dataclasses import dataclass
from typing import Union

from fastapi import APIRouter, Body, Depends, Header, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskapi.config import settings
from taskapi.database import get_db
from taskapi.exceptions import TaskNotFoundError, ValidationError
from taskapi.models.task import TASK_FIELDS, TaskSeverity, TaskStatus
from taskapi.schemas.task import TaskCreate, TaskPatch, TaskUpdate
from taskapi.services import task_service
from taskapi.services.export_service import EncodedPayload, OutputFormat, export_service
from taskapi.services.query_service import TaskQuery, negotiate_format, run_query
from taskapi.utils.field_selector import FieldSelector
from taskapi.utils.security import sanitize_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])

BULK_ACTION = "bulk"


@dataclass
class TaskFilters:
    """Equality filters applied by the storage layer."""

    title: str | None = None
    description: str | None = None
    assigned_to: str | None = None
    status: TaskStatus | None = None
    severity: TaskSeverity | None = None


def payload_response(payload: EncodedPayload | None) -> Response:
    """Turn an encoded payload into a response; no payload means 204."""
    if payload is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    headers = {}
    if payload.filename:
        headers["Content-Disposition"] = f'attachment; filename="{sanitize_filename(payload.filename)}"'
    return Response(content=payload.content, media_type=payload.media_type, headers=headers)


async def query_tasks(
    db: AsyncSession,
    filters: TaskFilters,
    sort: str | None,
    fields: FieldSelector,
    export_format: OutputFormat,
) -> Response:
    tasks = await task_service.get_tasks(
        db,
        title=filters.title,
        description=filters.description,
        assigned_to=filters.assigned_to,
        status=filters.status,
        severity=filters.severity,
    )
    payload = run_query(tasks, TaskQuery(sort=sort, fields=fields.raw), export_format, TASK_FIELDS)
    return payload_response(payload)


@router.get(
    "",
    summary="Search tasks",
    responses={
        200: {
            "description": "Found tasks",
            "content": {"text/csv": {}, "application/xml": {}},
        },
        204: {"description": "No tasks found"},
    },
)
async def get_tasks(
    filters: TaskFilters = Depends(),
    sort: str | None = Header(default=None, alias="X-Sort", description="e.g. -severity,title"),
    fields: FieldSelector = Depends(),
    accept: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
):
    """
    Search tasks.

    **Headers**:
    - X-Sort: comma-separated fields, `-` prefix for descending
    - X-Fields: comma-separated fields to include
    - Accept: `application/json` (default), `text/csv` or `application/xml`
    """
    return await query_tasks(db, filters, sort, fields, negotiate_format(accept))


@router.get("/export/csv", summary="Export tasks as CSV", responses={204: {"description": "No tasks found"}})
async def export_tasks_csv(
    filters: TaskFilters = Depends(),
    sort: str | None = Header(default=None, alias="X-Sort"),
    fields: FieldSelector = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """
    Export tasks as CSV.

    **Returns**: CSV file with a header row (`items.csv`)
    """
    return await query_tasks(db, filters, sort, fields, OutputFormat.CSV)


@router.get("/export/xml", summary="Export tasks as XML", responses={204: {"description": "No tasks found"}})
async def export_tasks_xml(
    filters: TaskFilters = Depends(),
    sort: str | None = Header(default=None, alias="X-Sort"),
    fields: FieldSelector = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """Export tasks as XML."""
    return await query_tasks(db, filters, sort, fields, OutputFormat.XML)


@router.get("/{task_id}", summary="Get a task", responses={404: {"description": "No task found"}})
async def get_task(
    task_id: str,
    fields: FieldSelector = Depends(),
    db: AsyncSession = Depends(get_db),
):
    task = await task_service.get_task(db, task_id)
    if not task:
        raise TaskNotFoundError(task_id)

    return payload_response(export_service.export_json_item(fields.apply(task, TASK_FIELDS), TASK_FIELDS))


@router.head("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Check a task")
async def check_task(task_id: str, db: AsyncSession = Depends(get_db)):
    task = await task_service.get_task(db, task_id)
    if not task:
        raise TaskNotFoundError(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
    responses={204: {"description": "Bulk tasks created"}, 409: {"description": "Task id already exists"}},
)
async def add_task(
    request: Request,
    payload: Union[list[TaskCreate], TaskCreate] = Body(...),
    action: str | None = Header(default=None, alias="X-Action"),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a task, or several with `X-Action: bulk` and a JSON array body.
    """
    if action == BULK_ACTION:
        if not isinstance(payload, list):
            raise ValidationError("Bulk creation expects a JSON array of tasks", field="body")
        await task_service.add_tasks(db, payload)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    if isinstance(payload, list):
        raise ValidationError("Send X-Action: bulk to create several tasks", field="body")

    task = await task_service.add_task(db, payload)
    location = str(request.url_for("get_task", task_id=task.id))
    return Response(status_code=status.HTTP_201_CREATED, headers={"Location": location})


@router.put("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Update a task")
async def update_task(task_id: str, task: TaskUpdate, db: AsyncSession = Depends(get_db)):
    if not await task_service.update_task(db, task_id, task):
        raise TaskNotFoundError(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Patch a task")
async def patch_task(task_id: str, task: TaskPatch, db: AsyncSession = Depends(get_db)):
    if not await task_service.patch_task(db, task_id, task):
        raise TaskNotFoundError(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a task")
async def delete_task(task_id: str, db: AsyncSession = Depends(get_db)):
    if not await task_service.delete_task(db, task_id):
        raise TaskNotFoundError(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
