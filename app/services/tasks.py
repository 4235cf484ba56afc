"""Authenticated access to tasks.

Every call takes the caller's verified user id explicitly. Id-addressed
operations check ownership before touching anything, and every write
invalidates the owner's cached list before it returns.
"""

import logging
from typing import Any, Mapping

from app.config import CACHE_TTL_SECONDS
from app.errors import Forbidden, ValidationError
from app.schemas.task import TaskOut, clean_title
from app.stores.task_store import TaskStore, check_patch
from app.utils.cache import ResultCache

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, store: TaskStore, cache: ResultCache, cache_ttl: int = CACHE_TTL_SECONDS):
        self.store = store
        self.cache = cache
        self.cache_ttl = cache_ttl

    def list_tasks(self, owner_id: str) -> list[TaskOut]:
        cached = self.cache.get(owner_id)
        if cached is not None:
            return cached
        tasks = self.store.list_by_owner(owner_id)
        self.cache.set(owner_id, tasks, self.cache_ttl)
        return tasks

    def create_task(self, owner_id: str, title: str, completed: bool = False) -> TaskOut:
        title = clean_title(title)
        if not isinstance(completed, bool):
            raise ValidationError("completed", "must be a boolean")
        task = self.store.create(owner_id, title, completed)
        self.cache.invalidate(owner_id)
        logger.info("User %s created task %s", owner_id, task.id)
        return task

    def get_task(self, requester_id: str, task_id: int) -> TaskOut:
        task = self.store.get_by_id(task_id)
        if task.owner_id != requester_id:
            logger.warning("User %s denied access to task %s", requester_id, task_id)
            raise Forbidden("Not allowed to access this task")
        return task

    def update_task(self, requester_id: str, task_id: int, patch: Mapping[str, Any]) -> TaskOut:
        self.get_task(requester_id, task_id)
        if not patch:
            raise ValidationError("body", "at least one of title, completed is required")
        changes = check_patch(patch)
        task = self.store.update(task_id, changes)
        self.cache.invalidate(requester_id)
        logger.info("User %s updated task %s (%s)", requester_id, task_id, ", ".join(changes))
        return task

    def delete_task(self, requester_id: str, task_id: int) -> None:
        self.get_task(requester_id, task_id)
        self.store.delete(task_id)
        self.cache.invalidate(requester_id)
        logger.info("User %s deleted task %s", requester_id, task_id)
