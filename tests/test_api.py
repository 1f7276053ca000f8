"""
Tests for services.api against the in-memory PocketBase stand-in.

Covers:
    - auth wrappers          : account mirror, current user, magic link
    - projects               : owner scoping, shared projects, delete order
    - tasks                  : degrade-to-empty listing, assignment notices
    - notifications          : ordering, single and bulk mark-read
"""

import logging

import pytest

from core.exceptions import NotAuthenticated, PBError
from core.models import Notification, NotificationType, TaskPriority, TaskStatus


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Auth
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestAuth:

    def test_create_account_mirrors_into_directory(self, api, fake):
        user = api.create_user_account("Carol", "carol@example.com", "pw12345678")
        members = fake.records("members")
        assert members == [{"id": user.id, "name": "Carol", "email": "carol@example.com"}]

    def test_directory_failure_does_not_fail_signup(self, api, fake):
        fake.fail("create", "members")
        user = api.create_user_account("Carol", "carol@example.com", "pw12345678")
        assert user.email == "carol@example.com"
        assert "carol@example.com" in fake.accounts

    def test_duplicate_account_raises(self, api, alice):
        with pytest.raises(PBError):
            api.create_user_account("Alice", "alice@example.com", "x")

    def test_current_user_none_when_anonymous_without_error_log(self, api, caplog):
        with caplog.at_level(logging.ERROR):
            assert api.get_current_user() is None
        assert caplog.records == []

    def test_current_user_logs_unexpected_failures(self, api, fake, alice, caplog):
        fake.fail("auth_refresh", status=500)
        with caplog.at_level(logging.ERROR):
            assert api.get_current_user() is None
        assert "Error getting current user" in caplog.text

    def test_sign_in_and_out(self, api, fake, alice):
        fake.logout()
        user = api.sign_in("alice@example.com", "secret")
        assert user.id == alice
        assert api.get_current_user().email == "alice@example.com"
        api.sign_out()
        assert api.get_current_user() is None

    def test_magic_link_flow(self, api, fake, alice):
        fake.logout()
        otp_id = api.create_magic_link("alice@example.com")
        user = api.complete_magic_link(otp_id, "123456")
        assert user.id == alice

    def test_magic_link_wrong_code_raises(self, api, alice):
        otp_id = api.create_magic_link("alice@example.com")
        with pytest.raises(PBError):
            api.complete_magic_link(otp_id, "000000")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Projects
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestProjects:

    def test_create_requires_user(self, api):
        with pytest.raises(NotAuthenticated):
            api.create_project("Launch")

    def test_create_sets_owner_and_timestamps(self, api, alice):
        p = api.create_project("Launch", "go to market")
        assert p.user_id == alice
        assert p.created_at and p.created_at == p.updated_at

    def test_user_projects_are_owner_scoped(self, api, fake, alice, bob):
        api.create_project("Mine")
        fake.seed("projects", name="Theirs", user_id=bob)
        assert [p.name for p in api.get_user_projects()] == ["Mine"]

    def test_user_projects_empty_on_failure(self, api, fake, alice):
        fake.fail("list", "projects")
        assert api.get_user_projects() == []

    def test_get_project_raises_for_missing(self, api):
        with pytest.raises(PBError):
            api.get_project("nope")

    def test_projects_with_assigned_tasks_are_unique(self, api, fake, bob):
        pid = fake.seed("projects", name="Shared", user_id=bob)
        other = fake.seed("projects", name="Other", user_id=bob)
        fake.seed("tasks", title="a", project_id=pid, assignees=["alice@example.com"])
        fake.seed("tasks", title="b", project_id=pid, assignees=["x@y.z", "alice@example.com"])
        fake.seed("tasks", title="c", project_id=other, assignees=["x@y.z"])
        projects = api.get_projects_with_assigned_tasks("alice@example.com")
        assert [p.id for p in projects] == [pid]

    def test_projects_with_assigned_tasks_skips_unreadable_project(self, api, fake):
        fake.seed("tasks", title="a", project_id="gone", assignees=["alice@example.com"])
        assert api.get_projects_with_assigned_tasks("alice@example.com") == []

    def test_delete_removes_tasks_then_project(self, api, fake, alice):
        p = api.create_project("Launch")
        t1 = fake.seed("tasks", title="a", project_id=p.id)
        t2 = fake.seed("tasks", title="b", project_id=p.id)
        keep = fake.seed("tasks", title="c", project_id="elsewhere")
        api.delete_project(p.id)
        deletes = [c for c in fake.calls if c[0] == "delete"]
        assert deletes == [("delete", "tasks", t1), ("delete", "tasks", t2), ("delete", "projects", p.id)]
        assert [t["id"] for t in fake.records("tasks")] == [keep]

    def test_delete_aborts_when_task_listing_fails(self, api, fake, alice):
        p = api.create_project("Launch")
        fake.seed("tasks", title="a", project_id=p.id)
        fake.fail("list", "tasks")
        with pytest.raises(PBError):
            api.delete_project(p.id)
        assert len(fake.records("projects")) == 1
        assert len(fake.records("tasks")) == 1


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Tasks
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestTasks:

    def test_project_tasks_empty_on_failure(self, api, fake):
        fake.seed("tasks", title="a", project_id="p1")
        fake.fail("list", "tasks")
        assert api.get_project_tasks("p1") == []

    def test_task_counts_per_project(self, api, fake):
        fake.seed("tasks", title="a", project_id="p1", status="not_started")
        fake.seed("tasks", title="b", project_id="p1", status="completed")
        fake.seed("tasks", title="c", project_id="p2", status="ongoing")
        counts = api.get_task_counts(["p1", "p2", "p3"])
        assert counts["p1"].not_started == 1 and counts["p1"].completed == 1
        assert counts["p2"].ongoing == 1
        assert counts["p3"].total == 0

    def test_task_counts_no_projects(self, api):
        assert api.get_task_counts([]) == {}

    def test_create_task_without_assignees_sends_no_notifications(self, api, fake, alice):
        p = api.create_project("Launch")
        task = api.create_task(title="Write copy", project_id=p.id)
        assert task.status is TaskStatus.NOT_STARTED
        assert task.priority is TaskPriority.MEDIUM
        assert fake.records("notifications") == []

    def test_create_task_notifies_known_assignees(self, api, fake, alice, bob, caplog):
        p = api.create_project("Launch")
        with caplog.at_level(logging.INFO, logger="services.api"):
            task = api.create_task(title="Write copy", project_id=p.id,
                                   assignees=["bob@example.com", "stranger@example.com"])
        notes = fake.records("notifications")
        assert len(notes) == 1
        n = notes[0]
        assert n["user_id"] == bob
        assert n["type"] == NotificationType.TASK_ASSIGNED.value
        assert n["title"] == "New Task Assigned"
        assert n["message"] == 'You have been assigned to "Write copy" in project "Launch"'
        assert n["task_id"] == task.id
        assert n["is_read"] is False
        assert "Email notification would be sent to: bob@example.com, stranger@example.com" in caplog.text

    def test_create_task_failure_raises(self, api, fake, alice):
        fake.fail("create", "tasks")
        with pytest.raises(PBError):
            api.create_task(title="x", project_id="p1")

    def test_update_status(self, api, fake):
        tid = fake.seed("tasks", title="a", project_id="p1", status="not_started")
        task = api.update_task_status(tid, TaskStatus.ONGOING)
        assert task.status is TaskStatus.ONGOING
        assert fake.get_record("tasks", tid)["status"] == "ongoing"

    def test_update_task_serialises_enums(self, api, fake):
        tid = fake.seed("tasks", title="a", project_id="p1")
        api.update_task(tid, title="b", priority=TaskPriority.HIGH)
        rec = fake.get_record("tasks", tid)
        assert rec["title"] == "b"
        assert rec["priority"] == "high"
        assert rec["updated_at"]

    def test_delete_missing_task_raises(self, api):
        with pytest.raises(PBError):
            api.delete_task("nope")

    def test_all_users_empty_on_failure(self, api, fake, bob):
        fake.fail("list", "members")
        assert api.get_all_users() == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Notifications
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _seed_notes(fake, user_id, *stamps, is_read=False):
    return [
        fake.seed("notifications", user_id=user_id, type="task_assigned", title=f"n{i}",
                  message="", is_read=is_read, created_at=stamp)
        for i, stamp in enumerate(stamps)
    ]


class TestNotifications:

    def test_newest_first_and_user_scoped(self, api, fake):
        _seed_notes(fake, "u1", "2024-01-01T00:00:00", "2024-03-01T00:00:00", "2024-02-01T00:00:00")
        _seed_notes(fake, "u2", "2024-04-01T00:00:00")
        notes = api.get_user_notifications("u1")
        assert [n.created_at[:7] for n in notes] == ["2024-03", "2024-02", "2024-01"]

    def test_create_notification_failure_returns_none(self, api, fake):
        fake.fail("create", "notifications")
        n = Notification(id="", user_id="u1", type=NotificationType.PROJECT_SHARED, title="t", message="m")
        assert api.create_notification(n) is None

    def test_mark_one_read(self, api, fake):
        (nid,) = _seed_notes(fake, "u1", "2024-01-01")
        assert api.mark_notification_as_read(nid).is_read is True

    def test_mark_one_failure_raises(self, api, fake):
        (nid,) = _seed_notes(fake, "u1", "2024-01-01")
        fake.fail("update", "notifications")
        with pytest.raises(PBError):
            api.mark_notification_as_read(nid)

    def test_mark_all_only_touches_unread(self, api, fake):
        unread = _seed_notes(fake, "u1", "2024-01-01", "2024-01-02")
        _seed_notes(fake, "u1", "2024-01-03", is_read=True)
        _seed_notes(fake, "u2", "2024-01-04")
        result = api.mark_all_notifications_as_read("u1")
        assert result.ok and result.updated == 2
        assert sorted(c[2] for c in fake.calls if c[0] == "update") == sorted(unread)

    def test_mark_all_partial_failure_is_counted(self, api, fake):
        ids = _seed_notes(fake, "u1", "2024-01-01", "2024-01-02", "2024-01-03")
        fake.fail("update", "notifications", ids=[ids[1]])
        result = api.mark_all_notifications_as_read("u1")
        assert (result.updated, result.failed) == (2, 1)
        assert not result.ok
        assert fake.get_record("notifications", ids[1])["is_read"] is False

    def test_mark_all_listing_failure_raises(self, api, fake):
        fake.fail("list", "notifications")
        with pytest.raises(PBError):
            api.mark_all_notifications_as_read("u1")
