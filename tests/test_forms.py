"""Tests for the project / task form drafts."""

import datetime as dt

from controller.forms import ProjectDraft, TaskDraft
from core.models import TaskPriority


def test_project_name_required():
    assert ProjectDraft(name="  ").validate() == "Project name is required"
    assert ProjectDraft(name="Launch").validate() is None


class TestTaskDraft:

    def test_defaults(self):
        d = TaskDraft()
        assert d.due_date == dt.date.today().isoformat()
        assert d.priority is TaskPriority.MEDIUM
        assert d.assignees == [""]

    def test_title_required(self):
        assert TaskDraft(title="").validate() == "Task title is required"

    def test_bad_due_date(self):
        assert TaskDraft(title="x", due_date="05/01/2024").validate() == "Due date must be YYYY-MM-DD"

    def test_empty_due_date_allowed(self):
        assert TaskDraft(title="x", due_date="").validate() is None

    def test_remove_keeps_last_field(self):
        d = TaskDraft()
        d.remove_assignee(0)
        assert d.assignees == [""]
        d.add_assignee()
        d.assignees = ["a@x.io", "b@x.io"]
        d.remove_assignee(0)
        assert d.assignees == ["b@x.io"]

    def test_cleaned_assignees_drops_blanks(self):
        d = TaskDraft(assignees=[" a@x.io ", "", "   "])
        assert d.cleaned_assignees() == ["a@x.io"]
