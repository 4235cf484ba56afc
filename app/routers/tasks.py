from math import ceil
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from app.dependencies import get_current_user, get_task_service
from app.schemas.task import TaskCreate, TaskOut, TaskUpdate
from app.services.tasks import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("/", response_model=TaskOut, status_code=201)
def create_task(task: TaskCreate, user: str = Depends(get_current_user), service: TaskService = Depends(get_task_service)):
    return service.create_task(user, task.title, task.completed)


@router.get("/")
def list_tasks(q: Optional[str] = Query(None, description="Search by title"), page: Optional[int] = None, limit: Optional[int] = None, user: str = Depends(get_current_user), service: TaskService = Depends(get_task_service)):
    """If page and limit are provided, return paginated result dict {items,page,limit,total,pages}.
    Otherwise return plain list for backward compatibility.

    Search and paging run over the owner's full (possibly cached) list.
    """
    tasks = service.list_tasks(user)
    if q:
        needle = q.lower()
        tasks = [t for t in tasks if needle in t.title.lower()]
    total = len(tasks)
    if page is None or limit is None:
        return tasks

    # normalize page/limit
    if page < 1:
        page = 1
    if limit < 1:
        limit = 10
    pages = ceil(total / limit) if total > 0 else 1
    items = tasks[(page - 1) * limit:page * limit]
    return {"items": items, "page": page, "limit": limit, "total": total, "pages": pages}


@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: int, user: str = Depends(get_current_user), service: TaskService = Depends(get_task_service)):
    return service.get_task(user, task_id)


@router.put("/{task_id}", response_model=TaskOut)
@router.patch("/{task_id}", response_model=TaskOut)
def update_task(task_id: int, patch: TaskUpdate, user: str = Depends(get_current_user), service: TaskService = Depends(get_task_service)):
    return service.update_task(user, task_id, patch.model_dump(exclude_unset=True))


@router.delete("/{task_id}", status_code=204)
def delete_task(task_id: int, user: str = Depends(get_current_user), service: TaskService = Depends(get_task_service)):
    service.delete_task(user, task_id)
    return Response(status_code=204)
