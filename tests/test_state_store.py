# tests/test_state_store.py

from __future__ import annotations

import asyncio
import random

import pytest

from weekly_planner.core.errors import SaveError
from weekly_planner.planner.models import WEEKDAYS, UserDocument, Weekday
from weekly_planner.planner.store import StateStore

from .fakes import FakeGateway, counter_ids


@pytest.mark.asyncio
async def test_global_task_lifecycle(store: StateStore, gateway: FakeGateway, doc_key) -> None:
    task = store.add_global_task("Buy milk")
    assert task is not None
    assert [(t.text, t.completed) for t in store.global_tasks] == [("Buy milk", False)]

    assert store.toggle_global_task(task.id) is True
    assert store.global_tasks[0].completed is True

    assert store.delete_global_task(task.id) is True
    assert store.global_tasks == ()

    await store.flush()
    assert len(gateway.writes) == 3
    # Every write carries the whole document, not a delta.
    key, last = gateway.writes[-1]
    assert key == doc_key.path
    assert last == UserDocument.empty().to_dict()


@pytest.mark.asyncio
async def test_blank_text_is_rejected_without_write(store: StateStore, gateway: FakeGateway) -> None:
    assert store.add_global_task("   ") is None
    assert store.add_routine("") is None
    assert store.add_daily_task("monday", "\t") is None

    await store.flush()
    assert store.document == UserDocument.empty()
    assert gateway.writes == []


@pytest.mark.asyncio
async def test_text_is_trimmed(store: StateStore) -> None:
    task = store.add_global_task("  Call mom  ")
    assert task is not None and task.text == "Call mom"


@pytest.mark.asyncio
async def test_toggle_is_its_own_inverse(store: StateStore) -> None:
    task = store.add_global_task("Read")
    other = store.add_global_task("Write")
    before = store.document

    store.toggle_global_task(task.id)
    store.toggle_global_task(task.id)

    assert store.document == before
    assert store.global_tasks[1] == other


@pytest.mark.asyncio
async def test_delete_twice_is_a_noop(store: StateStore, gateway: FakeGateway) -> None:
    task = store.add_global_task("Once")
    assert store.delete_global_task(task.id) is True
    assert store.delete_global_task(task.id) is False
    assert store.toggle_global_task("missing") is False

    await store.flush()
    assert len(gateway.writes) == 2


@pytest.mark.asyncio
async def test_daily_tasks_are_scoped_to_one_day(store: StateStore) -> None:
    task = store.add_daily_task("tuesday", "Gym")
    assert store.daily_tasks[Weekday.TUESDAY] == (task,)
    assert all(store.daily_tasks[d] == () for d in WEEKDAYS if d is not Weekday.TUESDAY)

    # Same id on a different day is not found.
    assert store.toggle_daily_task("monday", task.id) is False
    assert store.toggle_daily_task("tuesday", task.id) is True
    assert store.daily_tasks[Weekday.TUESDAY][0].completed is True

    assert store.delete_daily_task(Weekday.TUESDAY, task.id) is True
    assert store.daily_tasks[Weekday.TUESDAY] == ()


@pytest.mark.asyncio
async def test_invalid_weekday_is_rejected(store: StateStore, gateway: FakeGateway) -> None:
    with pytest.raises(ValueError):
        store.add_daily_task("funday", "x")
    with pytest.raises(ValueError):
        store.toggle_daily_task("funday", "id1")
    with pytest.raises(ValueError):
        store.delete_daily_task("funday", "id1")
    for raw in ("Monday", "  MONDAY ", "mon"):
        with pytest.raises(ValueError):
            store.add_daily_task(raw, "x")
    with pytest.raises(ValueError):
        store.toggle_routine_completion("r1", "Wednesday")

    await store.flush()
    assert store.document == UserDocument.empty()
    assert gateway.writes == []


@pytest.mark.asyncio
async def test_routine_completion_flips_one_day(store: StateStore) -> None:
    routine = store.add_routine("Stretch")
    assert routine is not None
    assert routine.completion == {d: False for d in WEEKDAYS}

    assert store.toggle_routine_completion(routine.id, "wednesday") is True
    updated = store.routines[0]
    assert updated.completion[Weekday.WEDNESDAY] is True
    assert [d for d in WEEKDAYS if updated.completion[d]] == [Weekday.WEDNESDAY]

    with pytest.raises(ValueError):
        store.toggle_routine_completion(routine.id, "funday")

    assert store.delete_routine(routine.id) is True
    assert store.delete_routine(routine.id) is False
    assert store.routines == ()


@pytest.mark.asyncio
async def test_daily_keys_survive_random_mutations(store: StateStore) -> None:
    rng = random.Random(7)
    for _ in range(200):
        day = rng.choice(WEEKDAYS)
        op = rng.choice(["add", "toggle", "delete", "global", "routine", "reset"])
        bucket = store.daily_tasks[day]
        if op == "add":
            store.add_daily_task(day, f"t{rng.randint(0, 99)}")
        elif op == "toggle" and bucket:
            store.toggle_daily_task(day, rng.choice(bucket).id)
        elif op == "delete" and bucket:
            store.delete_daily_task(day, rng.choice(bucket).id)
        elif op == "global":
            store.add_global_task("g")
        elif op == "routine":
            store.add_routine("r")
        elif op == "reset":
            store.reset_all()

        assert set(store.daily_tasks) == set(WEEKDAYS)
        assert len(store.daily_tasks) == 7
        for routine in store.routines:
            assert set(routine.completion) == set(WEEKDAYS)

    await store.flush()


@pytest.mark.asyncio
async def test_failed_write_keeps_optimistic_change(gateway: FakeGateway, doc_key) -> None:
    errors: list[SaveError] = []
    store = StateStore(id_factory=counter_ids(), on_save_error=errors.append)
    store.bind(gateway, doc_key)
    gateway.fail_writes = True

    store.add_global_task("Keep me")
    await store.flush()

    assert [t.text for t in store.global_tasks] == ["Keep me"]
    assert len(errors) == 1
    assert errors[0].user_message == "Failed to save data. Please try again."


@pytest.mark.asyncio
async def test_unbound_store_keeps_changes_in_memory(gateway: FakeGateway) -> None:
    store = StateStore(id_factory=counter_ids())
    store.add_global_task("Offline")
    await store.flush()

    assert store.pending_writes == 0
    assert [t.text for t in store.global_tasks] == ["Offline"]
    assert gateway.writes == []


@pytest.mark.asyncio
async def test_replace_all_never_persists(store: StateStore, gateway: FakeGateway) -> None:
    doc = UserDocument.from_dict({"globalTasks": [{"id": "r1", "text": "remote"}]})
    store.replace_all(doc)
    await asyncio.sleep(0)
    assert store.document == doc
    assert gateway.writes == []


@pytest.mark.asyncio
async def test_earlier_snapshots_are_not_shared_or_mutable(store: StateStore) -> None:
    before = store.document
    store.add_global_task("x")
    store.add_daily_task("monday", "Gym")
    routine = store.add_routine("Stretch")
    store.toggle_routine_completion(routine.id, "friday")

    with pytest.raises(TypeError):
        store.daily_tasks[Weekday.MONDAY] = ()  # type: ignore[index]
    with pytest.raises(AttributeError):
        store.daily_tasks.pop(Weekday.MONDAY)  # type: ignore[attr-defined]
    with pytest.raises(TypeError):
        store.routines[0].completion[Weekday.FRIDAY] = False  # type: ignore[index]

    assert before == UserDocument.empty()
    assert len(before.daily_tasks) == 7
    assert before.daily_tasks[Weekday.MONDAY] == ()

    # Buckets stay intact, so further day edits keep working.
    assert store.add_daily_task("monday", "Swim") is not None
    assert [t.text for t in store.daily_tasks[Weekday.MONDAY]] == ["Gym", "Swim"]
    await store.flush()
