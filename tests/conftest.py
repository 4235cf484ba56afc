import os

# Point the app at a throwaway database before anything imports app.config
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_taskmaster.db")
os.environ.setdefault("CACHE_BACKEND", "memory")

from datetime import timedelta
from typing import Any, Mapping

import pytest

from app.database import utcnow
from app.errors import NotFound
from app.schemas.task import TaskOut, clean_title
from app.services.tasks import TaskService
from app.stores.task_store import check_patch
from app.utils.cache import MemoryCache


class FakeClock:
    """Manually advanced monotonic clock for cache TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTaskStore:
    """Dict-backed TaskStore that counts calls so tests can see cache hits."""

    def __init__(self):
        self.tasks: dict[int, TaskOut] = {}
        self.next_id = 1
        self.list_calls = 0
        self._tick = utcnow()

    def _now(self):
        self._tick += timedelta(seconds=1)
        return self._tick

    def create(self, owner_id: str, title: str, completed: bool = False) -> TaskOut:
        now = self._now()
        task = TaskOut(id=self.next_id, owner_id=owner_id, title=clean_title(title), completed=completed, created_at=now, updated_at=now)
        self.tasks[task.id] = task
        self.next_id += 1
        return task

    def get_by_id(self, task_id: int) -> TaskOut:
        if task_id not in self.tasks:
            raise NotFound("Task not found")
        return self.tasks[task_id]

    def list_by_owner(self, owner_id: str) -> list[TaskOut]:
        self.list_calls += 1
        return sorted((t for t in self.tasks.values() if t.owner_id == owner_id), key=lambda t: (t.created_at, t.id))

    def update(self, task_id: int, patch: Mapping[str, Any]) -> TaskOut:
        task = self.get_by_id(task_id)
        changes = check_patch(patch)
        task = task.model_copy(update={**changes, "updated_at": self._now()})
        self.tasks[task_id] = task
        return task

    def delete(self, task_id: int) -> None:
        self.get_by_id(task_id)
        del self.tasks[task_id]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return FakeTaskStore()


@pytest.fixture
def cache(clock):
    return MemoryCache(clock=clock)


@pytest.fixture
def service(store, cache):
    return TaskService(store, cache, cache_ttl=600)
