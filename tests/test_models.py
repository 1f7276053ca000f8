"""Tests for core.models record conversion and enums."""

from core.models import (Notification, NotificationType, Project, Task, TaskCounts,
                         TaskPriority, TaskStatus)


class TestTaskStatus:

    def test_exactly_three_columns(self):
        assert {s.value for s in TaskStatus} == {"not_started", "ongoing", "completed"}

    def test_parse_accepts_column_ids(self):
        assert TaskStatus.parse("ongoing") is TaskStatus.ONGOING
        assert TaskStatus.parse(TaskStatus.COMPLETED) is TaskStatus.COMPLETED

    def test_parse_rejects_everything_else(self):
        for value in ("done", "", None, "Ongoing", "task-1"):
            assert TaskStatus.parse(value) is None

    def test_label(self):
        assert TaskStatus.NOT_STARTED.label == "not started"


def test_priority_falls_back_to_medium():
    assert TaskPriority.from_str("high") is TaskPriority.HIGH
    assert TaskPriority.from_str("urgent") is TaskPriority.MEDIUM


def test_notification_type_fallback():
    assert NotificationType.from_str("project_shared") is NotificationType.PROJECT_SHARED
    assert NotificationType.from_str(None) is NotificationType.TASK_UPDATED


class TestTaskRecord:

    def test_from_record(self):
        t = Task.from_record({
            "id": "t1", "title": "Write copy", "project_id": "p1",
            "due_date": "2024-05-01 00:00:00.000Z", "priority": "low",
            "status": "completed", "assignees": ["a@x.io"],
        })
        assert t.due_date == "2024-05-01"
        assert t.priority is TaskPriority.LOW
        assert t.status is TaskStatus.COMPLETED
        assert t.assignees == ["a@x.io"]

    def test_unknown_status_lands_in_first_column(self):
        t = Task.from_record({"id": "t1", "title": "x", "project_id": "p1", "status": "archived"})
        assert t.status is TaskStatus.NOT_STARTED

    def test_missing_assignees_is_empty_list(self):
        t = Task.from_record({"id": "t1", "title": "x", "project_id": "p1", "assignees": None})
        assert t.assignees == []
        assert t.due_date is None

    def test_payload_never_carries_id(self):
        t = Task(id="t1", title="x", project_id="p1", status=TaskStatus.ONGOING)
        payload = t.to_payload()
        assert "id" not in payload
        assert payload["status"] == "ongoing"
        assert payload["priority"] == "medium"


def test_project_falls_back_to_pocketbase_timestamps():
    p = Project.from_record({"id": "p1", "name": "Launch", "created": "2024-01-01 10:00:00Z"})
    assert p.created_at == "2024-01-01 10:00:00Z"
    assert p.description == ""
    assert "id" not in p.to_payload()


def test_notification_record_roundtrip_fields():
    n = Notification.from_record({
        "id": "n1", "user_id": "u1", "type": "task_assigned", "title": "New Task Assigned",
        "message": "m", "task_id": "", "project_id": "p1", "is_read": True,
    })
    assert n.task_id is None
    assert n.project_id == "p1"
    assert n.is_read is True
    assert n.to_payload()["type"] == "task_assigned"


def test_task_counts_of():
    tasks = [
        Task(id="1", title="a", project_id="p", status=TaskStatus.NOT_STARTED),
        Task(id="2", title="b", project_id="p", status=TaskStatus.ONGOING),
        Task(id="3", title="c", project_id="p", status=TaskStatus.ONGOING),
    ]
    counts = TaskCounts.of(tasks)
    assert (counts.not_started, counts.ongoing, counts.completed) == (1, 2, 0)
    assert counts.total == 3
