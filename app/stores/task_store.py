"""Task persistence.

`TaskStore` is what the service depends on; `SqlTaskStore` is the SQLAlchemy
implementation. Every write commits on its own, so each operation is atomic
for the task it touches. A store serves one request and refuses to commit
once that request has used up its time budget, so a timed-out write leaves
nothing behind. Callers get `TaskOut` snapshots back, never live
rows bound to the session.
"""

import logging
import time
from datetime import timedelta
from typing import Any, Callable, Mapping, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import REQUEST_TIMEOUT_SECONDS
from app.database import utcnow
from app.errors import NotFound, RequestTimeout, Unavailable, ValidationError
from app.models.task import Task
from app.schemas.task import TaskOut, clean_title

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "completed")


class TaskStore(Protocol):
    def create(self, owner_id: str, title: str, completed: bool = False) -> TaskOut: ...

    def get_by_id(self, task_id: int) -> TaskOut: ...

    def list_by_owner(self, owner_id: str) -> list[TaskOut]: ...

    def update(self, task_id: int, patch: Mapping[str, Any]) -> TaskOut: ...

    def delete(self, task_id: int) -> None: ...


def check_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
    """Validate an update patch and return it with the title cleaned.

    Only title and completed may change; owner_id in particular never does.
    """
    cleaned = {}
    for field, value in patch.items():
        if field == "owner_id":
            raise ValidationError("owner_id", "cannot be changed")
        if field not in UPDATABLE_FIELDS:
            raise ValidationError(field, "unknown field")
        if field == "title":
            value = clean_title(value)
        elif not isinstance(value, bool):
            raise ValidationError("completed", "must be a boolean")
        cleaned[field] = value
    return cleaned


class SqlTaskStore:
    def __init__(
        self,
        db: Session,
        timeout: Optional[float] = REQUEST_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.db = db
        self.clock = clock
        self.deadline = clock() + timeout if timeout is not None else None

    def _commit(self):
        if self.deadline is not None and self.clock() > self.deadline:
            self.db.rollback()
            logger.warning("Rolled back task write: request exceeded its time budget")
            raise RequestTimeout("Request timed out")
        self.db.commit()

    def _fetch(self, task_id: int) -> Task:
        try:
            task = self.db.get(Task, task_id)
        except OverflowError:
            # ids past the 64-bit range cannot exist
            self.db.rollback()
            raise NotFound("Task not found")
        if task is None:
            raise NotFound("Task not found")
        return task

    def _fail(self, action: str, exc: SQLAlchemyError):
        self.db.rollback()
        logger.exception("Task store failed to %s", action)
        raise Unavailable("Task store unavailable") from exc

    def create(self, owner_id: str, title: str, completed: bool = False) -> TaskOut:
        title = clean_title(title)
        now = utcnow()
        task = Task(owner_id=owner_id, title=title, completed=completed, created_at=now, updated_at=now)
        try:
            self.db.add(task)
            self._commit()
            self.db.refresh(task)
        except SQLAlchemyError as e:
            self._fail("create task", e)
        return TaskOut.model_validate(task)

    def get_by_id(self, task_id: int) -> TaskOut:
        try:
            task = self._fetch(task_id)
        except SQLAlchemyError as e:
            self._fail(f"read task {task_id}", e)
        return TaskOut.model_validate(task)

    def list_by_owner(self, owner_id: str) -> list[TaskOut]:
        try:
            rows = (
                self.db.query(Task)
                .filter(Task.owner_id == owner_id)
                .order_by(Task.created_at.asc(), Task.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            self._fail(f"list tasks of {owner_id}", e)
        return [TaskOut.model_validate(t) for t in rows]

    def update(self, task_id: int, patch: Mapping[str, Any]) -> TaskOut:
        changes = check_patch(patch)
        try:
            task = self._fetch(task_id)
            for field, value in changes.items():
                setattr(task, field, value)
            now = utcnow()
            # updated_at must move forward even within one clock tick
            if now <= task.updated_at:
                now = task.updated_at + timedelta(microseconds=1)
            task.updated_at = now
            self._commit()
            self.db.refresh(task)
        except SQLAlchemyError as e:
            self._fail(f"update task {task_id}", e)
        return TaskOut.model_validate(task)

    def delete(self, task_id: int) -> None:
        try:
            task = self._fetch(task_id)
            self.db.delete(task)
            self._commit()
        except SQLAlchemyError as e:
            self._fail(f"delete task {task_id}", e)
