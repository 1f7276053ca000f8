"""
One method per remote operation over the taskboard collections.

Error conventions:
  - list/query methods log and return an empty result;
  - create/update/delete methods log and re-raise so the caller can roll back;
  - the current-user lookup returns None, logging only unexpected failures.
"""
from __future__ import annotations
import datetime as dt
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from core.config import Settings
from core.exceptions import NotAuthenticated, PBError
from core.models import (Notification, NotificationType, Project, Task, TaskCounts,
                         TaskPriority, TaskStatus, User)
from storage.pocketbase import PocketBaseClient, all_of, contains, eq

logger = logging.getLogger(__name__)

MAX_WORKERS = 8


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


@dataclass
class MarkAllResult:
    updated: int = 0
    failed: int = 0

    @property
    def ok(self) -> bool:
        return self.failed == 0


class TaskboardApi:
    def __init__(self, client: PocketBaseClient, settings: Settings):
        self.client = client
        self.projects = settings.projects_collection
        self.tasks = settings.tasks_collection
        self.users = settings.users_collection
        self.notifications = settings.notifications_collection

    # ---------- auth ----------
    def create_user_account(self, name: str, email: str, password: str) -> User:
        try:
            account = self.client.create_account(email, password, name)
        except PBError as e:
            logger.error("Error creating user account: %s", e)
            raise
        # directory mirror for mentions/assignment; same id as the account
        try:
            self.client.create_record(self.users, {"id": account["id"], "name": name, "email": email})
        except PBError as e:
            logger.error("Error adding user to directory: %s", e)
        return User(id=account["id"], name=name, email=email)

    def create_email_verification(self, email: str) -> None:
        try:
            self.client.request_verification(email)
        except PBError as e:
            logger.error("Error creating email verification: %s", e)
            raise

    def create_magic_link(self, email: str) -> str:
        """Send a one-time code; returns the id to pair with it."""
        try:
            return self.client.request_otp(email)
        except PBError as e:
            logger.error("Error creating magic link token: %s", e)
            raise

    def complete_magic_link(self, otp_id: str, code: str) -> User:
        try:
            return User.from_record(self.client.auth_with_otp(otp_id, code))
        except PBError as e:
            logger.error("Error completing magic link session: %s", e)
            raise

    def sign_in(self, email: str, password: str) -> User:
        try:
            return User.from_record(self.client.login(email, password))
        except PBError as e:
            logger.error("Error signing in: %s", e)
            raise

    def sign_out(self) -> None:
        try:
            self.client.logout()
        except PBError as e:
            logger.error("Error signing out: %s", e)
            raise

    def get_current_user(self) -> Optional[User]:
        try:
            return User.from_record(self.client.auth_refresh())
        except PBError as e:
            # anonymous visitors land here on every start
            if not e.is_unauthorized:
                logger.error("Error getting current user: %s", e)
            return None

    def _require_user(self) -> User:
        user = self.get_current_user()
        if user is None:
            raise NotAuthenticated()
        return user

    # ---------- projects ----------
    def create_project(self, name: str, description: str = "") -> Project:
        try:
            user = self._require_user()
            now = _now()
            project = Project(id="", name=name, description=description, user_id=user.id,
                              created_at=now, updated_at=now)
            return Project.from_record(self.client.create_record(self.projects, project.to_payload()))
        except PBError as e:
            logger.error("Error creating project: %s", e)
            raise

    def get_user_projects(self) -> List[Project]:
        try:
            user = self._require_user()
            recs = self.client.list_records(self.projects, filter=eq("user_id", user.id))
            return [Project.from_record(r) for r in recs]
        except PBError as e:
            logger.error("Error getting user projects: %s", e)
            return []

    def get_project(self, project_id: str) -> Project:
        try:
            return Project.from_record(self.client.get_record(self.projects, project_id))
        except PBError as e:
            logger.error("Error getting project: %s", e)
            raise

    def delete_project(self, project_id: str) -> None:
        """Delete every task of the project, then the project itself."""
        try:
            # strict listing: a failed fetch must not leave orphaned tasks behind
            tasks = self._list_project_tasks(project_id)
            for task in tasks:
                if task.id:
                    self.client.delete_record(self.tasks, task.id)
            self.client.delete_record(self.projects, project_id)
        except PBError as e:
            logger.error("Error deleting project: %s", e)
            raise

    def get_projects_with_assigned_tasks(self, user_email: str) -> List[Project]:
        """Projects holding at least one task assigned to ``user_email``."""
        try:
            recs = self.client.list_records(self.tasks, filter=contains("assignees", user_email))
        except PBError as e:
            logger.error("Error getting projects with assigned tasks: %s", e)
            return []
        project_ids = list(dict.fromkeys(r.get("project_id") for r in recs if r.get("project_id")))
        projects = []
        for pid in project_ids:
            try:
                projects.append(Project.from_record(self.client.get_record(self.projects, pid)))
            except PBError as e:
                logger.error("Error fetching project with ID %s: %s", pid, e)
        return projects

    # ---------- tasks ----------
    def _list_project_tasks(self, project_id: str) -> List[Task]:
        recs = self.client.list_records(self.tasks, filter=eq("project_id", project_id))
        return [Task.from_record(r) for r in recs]

    def get_project_tasks(self, project_id: str) -> List[Task]:
        try:
            return self._list_project_tasks(project_id)
        except PBError as e:
            logger.error("Error getting project tasks: %s", e)
            return []

    def get_task_counts(self, project_ids: Iterable[str]) -> Dict[str, TaskCounts]:
        """Per-project column counts, fetched concurrently and joined."""
        ids = list(project_ids)
        if not ids:
            return {}
        with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(ids))) as pool:
            results = pool.map(self.get_project_tasks, ids)
            return {pid: TaskCounts.of(tasks) for pid, tasks in zip(ids, results)}

    def create_task(self, *, title: str, project_id: str, description: str = "",
                    due_date: Optional[str] = None, priority: TaskPriority = TaskPriority.MEDIUM,
                    status: TaskStatus = TaskStatus.NOT_STARTED,
                    assignees: Optional[List[str]] = None) -> Task:
        now = _now()
        task = Task(id="", title=title, project_id=project_id, description=description,
                    due_date=due_date, priority=priority, status=status,
                    assignees=list(assignees or []), created_at=now, updated_at=now)
        try:
            created = Task.from_record(self.client.create_record(self.tasks, task.to_payload()))
            if created.assignees:
                self._notify_assignees(created)
            return created
        except PBError as e:
            logger.error("Error creating task: %s", e)
            raise

    def _notify_assignees(self, task: Task) -> None:
        project = Project.from_record(self.client.get_record(self.projects, task.project_id))
        user_ids = {u.email: u.id for u in self.get_all_users()}
        for email in task.assignees:
            user_id = user_ids.get(email)
            if not user_id:
                continue
            self.create_notification(Notification(
                id="",
                user_id=user_id,
                type=NotificationType.TASK_ASSIGNED,
                title="New Task Assigned",
                message=f'You have been assigned to "{task.title}" in project "{project.name}"',
                task_id=task.id,
                project_id=task.project_id,
                is_read=False,
            ))
        self.send_task_assignment_email(task.id, task.project_id, task.assignees)

    def update_task_status(self, task_id: str, status: TaskStatus) -> Task:
        try:
            rec = self.client.update_record(self.tasks, task_id, status=status.value, updated_at=_now())
            return Task.from_record(rec)
        except PBError as e:
            logger.error("Error updating task status: %s", e)
            raise

    def update_task(self, task_id: str, **fields) -> Task:
        """Patch editable task fields (title, description, due_date, priority, assignees)."""
        payload = {k: (v.value if isinstance(v, (TaskPriority, TaskStatus)) else v) for k, v in fields.items()}
        payload["updated_at"] = _now()
        try:
            return Task.from_record(self.client.update_record(self.tasks, task_id, **payload))
        except PBError as e:
            logger.error("Error updating task: %s", e)
            raise

    def delete_task(self, task_id: str) -> None:
        try:
            self.client.delete_record(self.tasks, task_id)
        except PBError as e:
            logger.error("Error deleting task: %s", e)
            raise

    # ---------- users ----------
    def get_all_users(self) -> List[User]:
        try:
            return [User.from_record(r) for r in self.client.list_records(self.users)]
        except PBError as e:
            logger.error("Error fetching users: %s", e)
            return []

    def send_task_assignment_email(self, task_id: str, project_id: str, assignee_emails: List[str]) -> bool:
        """Email delivery is not implemented; the message is only logged."""
        try:
            task = Task.from_record(self.client.get_record(self.tasks, task_id))
            project = Project.from_record(self.client.get_record(self.projects, project_id))
        except PBError as e:
            logger.error("Error sending assignment emails: %s", e)
            return False
        logger.info("Email notification would be sent to: %s", ", ".join(assignee_emails))
        logger.info('Task "%s" in project "%s" has been assigned to you.', task.title, project.name)
        return True

    # ---------- notifications ----------
    def create_notification(self, notification: Notification) -> Optional[Notification]:
        notification.created_at = _now()
        try:
            rec = self.client.create_record(self.notifications, notification.to_payload())
            return Notification.from_record(rec)
        except PBError as e:
            logger.error("Error creating notification: %s", e)
            return None

    def get_user_notifications(self, user_id: str) -> List[Notification]:
        try:
            recs = self.client.list_records(self.notifications, filter=eq("user_id", user_id), sort="-created_at")
            return [Notification.from_record(r) for r in recs]
        except PBError as e:
            logger.error("Error getting user notifications: %s", e)
            return []

    def mark_notification_as_read(self, notification_id: str) -> Notification:
        try:
            rec = self.client.update_record(self.notifications, notification_id, is_read=True)
            return Notification.from_record(rec)
        except PBError as e:
            logger.error("Error marking notification as read: %s", e)
            raise

    def mark_all_notifications_as_read(self, user_id: str) -> MarkAllResult:
        """Update every unread notification; not transactional.

        Each update is attempted independently, so a failure leaves the
        successful ones read remotely. The listing itself raising propagates.
        """
        try:
            recs = self.client.list_records(self.notifications,
                                            filter=all_of(eq("user_id", user_id), eq("is_read", False)))
        except PBError as e:
            logger.error("Error marking all notifications as read: %s", e)
            raise
        ids = [r["id"] for r in recs]
        result = MarkAllResult()
        if not ids:
            return result

        def mark(nid: str) -> bool:
            try:
                self.client.update_record(self.notifications, nid, is_read=True)
                return True
            except PBError as e:
                logger.error("Error marking notification %s as read: %s", nid, e)
                return False

        with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(ids))) as pool:
            for ok in pool.map(mark, ids):
                if ok:
                    result.updated += 1
                else:
                    result.failed += 1
        return result
