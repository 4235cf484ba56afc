import pytest

from app.errors import Forbidden, NotFound, ValidationError
from app.services.tasks import TaskService
from app.utils.cache import NullCache

ALICE = "a" * 32
BOB = "b" * 32


def test_list_is_scoped_to_owner(service):
    mine = [service.create_task(ALICE, f"alice task {i}") for i in range(3)]
    service.create_task(BOB, "bob task")

    assert [t.id for t in service.list_tasks(ALICE)] == [t.id for t in mine]
    bob_tasks = service.list_tasks(BOB)
    assert len(bob_tasks) == 1
    assert all(t.owner_id == BOB for t in bob_tasks)


def test_list_reads_store_once_then_serves_cache(service, store):
    service.create_task(ALICE, "first task")
    service.list_tasks(ALICE)
    service.list_tasks(ALICE)
    assert store.list_calls == 1


def test_cached_list_expires_after_ttl(service, store, clock):
    service.list_tasks(ALICE)
    clock.advance(599)
    service.list_tasks(ALICE)
    assert store.list_calls == 1
    clock.advance(1)
    service.list_tasks(ALICE)
    assert store.list_calls == 2


def test_create_invalidates_cached_list(service):
    assert service.list_tasks(ALICE) == []
    task = service.create_task(ALICE, "x" * 3)
    assert service.list_tasks(ALICE) == [task]


def test_update_and_delete_invalidate_cached_list(service):
    task = service.create_task(ALICE, "write report")
    service.list_tasks(ALICE)

    service.update_task(ALICE, task.id, {"completed": True})
    assert service.list_tasks(ALICE)[0].completed is True

    service.delete_task(ALICE, task.id)
    assert service.list_tasks(ALICE) == []


def test_title_length_boundary(service):
    with pytest.raises(ValidationError) as exc:
        service.create_task(ALICE, "ab")
    assert exc.value.field == "title"
    assert service.create_task(ALICE, "abc").title == "abc"


def test_title_is_trimmed_before_length_check(service):
    with pytest.raises(ValidationError):
        service.create_task(ALICE, "  ab  ")
    assert service.create_task(ALICE, "  Buy milk ").title == "Buy milk"


def test_completed_must_be_boolean(service):
    with pytest.raises(ValidationError) as exc:
        service.create_task(ALICE, "abc", completed="yes")
    assert exc.value.field == "completed"


def test_get_task_of_other_owner_is_forbidden(service):
    task = service.create_task(ALICE, "secret plans")
    with pytest.raises(Forbidden) as exc:
        service.get_task(BOB, task.id)
    assert "secret plans" not in str(exc.value)


def test_get_missing_task(service):
    with pytest.raises(NotFound):
        service.get_task(ALICE, 404)


def test_other_owner_cannot_update_or_delete(service, store):
    task = service.create_task(ALICE, "mine only")
    with pytest.raises(Forbidden):
        service.update_task(BOB, task.id, {"title": "hijacked"})
    with pytest.raises(Forbidden):
        service.delete_task(BOB, task.id)
    assert store.get_by_id(task.id).title == "mine only"


def test_delete_twice(service):
    task = service.create_task(ALICE, "one shot")
    service.delete_task(ALICE, task.id)
    with pytest.raises(NotFound):
        service.delete_task(ALICE, task.id)


@pytest.mark.parametrize(
    "patch, field",
    [
        ({}, "body"),
        ({"owner_id": BOB}, "owner_id"),
        ({"priority": 1}, "priority"),
        ({"title": "no"}, "title"),
        ({"completed": None}, "completed"),
    ],
)
def test_update_rejects_bad_patches(service, patch, field):
    task = service.create_task(ALICE, "original")
    with pytest.raises(ValidationError) as exc:
        service.update_task(ALICE, task.id, patch)
    assert exc.value.field == field
    assert service.get_task(ALICE, task.id).owner_id == ALICE


def test_end_to_end_lifecycle(service):
    task = service.create_task(ALICE, "Buy milk")
    assert task.completed is False

    assert service.list_tasks(ALICE) == [task]

    updated = service.update_task(ALICE, task.id, {"completed": True})
    assert updated.completed is True
    assert updated.updated_at > task.updated_at
    assert updated.created_at == task.created_at

    service.delete_task(ALICE, task.id)
    with pytest.raises(NotFound):
        service.get_task(ALICE, task.id)


def test_works_without_cache(store):
    service = TaskService(store, NullCache())
    service.create_task(ALICE, "uncached")
    service.list_tasks(ALICE)
    service.list_tasks(ALICE)
    assert store.list_calls == 2
