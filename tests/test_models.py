# tests/test_models.py

from __future__ import annotations

import pytest

from weekly_planner.planner.models import (
    WEEKDAYS,
    DocumentKey,
    RoutineEntry,
    Task,
    TimestampIdFactory,
    UserDocument,
    Weekday,
)


def test_weekday_parse_accepts_canonical_names_only() -> None:
    assert Weekday.parse("wednesday") is Weekday.WEDNESDAY
    assert Weekday.parse(Weekday.FRIDAY) is Weekday.FRIDAY
    assert [d.value for d in WEEKDAYS] == [
        "monday",
        "tuesday",
        "wednesday",
        "thursday",
        "friday",
        "saturday",
        "sunday",
    ]
    for raw in ("funday", "Monday", " monday", "MONDAY ", ""):
        with pytest.raises(ValueError):
            Weekday.parse(raw)


def test_from_dict_defaults_missing_fields() -> None:
    doc = UserDocument.from_dict({"globalTasks": [{"id": "1", "text": "a"}]})

    assert doc.global_tasks == (Task(id="1", text="a", completed=False),)
    assert set(doc.daily_tasks) == set(WEEKDAYS)
    assert all(tasks == () for tasks in doc.daily_tasks.values())
    assert doc.routines == ()


def test_from_dict_tolerates_garbage() -> None:
    assert UserDocument.from_dict(None) == UserDocument.empty()
    assert UserDocument.from_dict("nope") == UserDocument.empty()

    doc = UserDocument.from_dict(
        {
            "globalTasks": "not a list",
            "dailyTasks": {"monday": [{"id": 7, "text": "x", "completed": 1}, "junk"], "funday": []},
            "routines": [{"id": "r", "text": "Stretch", "completion": {"monday": True, "extra": True}}],
        }
    )

    assert doc.global_tasks == ()
    assert doc.daily_tasks[Weekday.MONDAY] == (Task(id="7", text="x", completed=True),)
    assert "funday" not in doc.daily_tasks
    routine = doc.routines[0]
    assert set(routine.completion) == set(WEEKDAYS)
    assert routine.completion[Weekday.MONDAY] is True
    assert routine.completion[Weekday.SUNDAY] is False


def test_wire_form_uses_document_field_names() -> None:
    doc = UserDocument(
        global_tasks=(Task(id="1", text="Buy milk"),),
        routines=(RoutineEntry(id="r1", text="Stretch"),),
    )
    data = doc.to_dict()

    assert set(data) == {"globalTasks", "dailyTasks", "routines"}
    assert data["globalTasks"] == [{"id": "1", "text": "Buy milk", "completed": False}]
    assert list(data["dailyTasks"]) == [d.value for d in WEEKDAYS]
    assert data["routines"][0]["completion"] == {d.value: False for d in WEEKDAYS}
    assert UserDocument.from_dict(data) == doc


def test_document_key_path() -> None:
    key = DocumentKey("my-app", "u42")
    assert key.path == "artifacts/my-app/users/u42/tasksAndRoutines/user_data"
    assert key.parts[1:4] == ("my-app", "users", "u42")

    with pytest.raises(ValueError):
        DocumentKey("", "u42")
    with pytest.raises(ValueError):
        DocumentKey("my-app", " ")
    with pytest.raises(ValueError):
        DocumentKey("my-app", "u42/../u43")
    with pytest.raises(ValueError):
        DocumentKey("a/b", "u42")


def test_timestamp_ids_are_unique_and_increasing() -> None:
    new_id = TimestampIdFactory()
    ids = [new_id() for _ in range(50)]
    assert len(set(ids)) == 50
    assert [int(i) for i in ids] == sorted(int(i) for i in ids)


def test_snapshot_collections_are_read_only() -> None:
    doc = UserDocument.from_dict({"routines": [{"id": "r", "text": "Stretch"}]})
    routine = doc.routines[0]

    with pytest.raises(TypeError):
        doc.daily_tasks[Weekday.MONDAY] = (Task(id="1", text="x"),)  # type: ignore[index]
    with pytest.raises(AttributeError):
        doc.daily_tasks.pop(Weekday.MONDAY)  # type: ignore[attr-defined]
    with pytest.raises(TypeError):
        routine.completion[Weekday.MONDAY] = True  # type: ignore[index]

    toggled = routine.toggled(Weekday.MONDAY)
    assert toggled.completion[Weekday.MONDAY] is True
    assert routine.completion[Weekday.MONDAY] is False
    with pytest.raises(TypeError):
        toggled.completion[Weekday.MONDAY] = False  # type: ignore[index]
    assert len(UserDocument.empty().daily_tasks) == 7
