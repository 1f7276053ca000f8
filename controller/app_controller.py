from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from core.models import Project, TaskCounts, User
from controller.board import BoardController
from controller.forms import ProjectDraft
from controller.runner import InlineRunner, call
from controller.session import SessionState
from services.api import TaskboardApi

logger = logging.getLogger(__name__)


@dataclass
class ProjectSummary:
    project: Project
    counts: TaskCounts = field(default_factory=TaskCounts)
    is_owner: bool = True


class AppController:
    """Ties the views to the session and the backend API."""
    def __init__(self, api: TaskboardApi, session: SessionState, notify: Callable[[str, str], None],
                 runner=None):
        self.api = api
        self.session = session
        self.notify = notify
        self.runner = runner or InlineRunner()
        self.projects: List[ProjectSummary] = []

    # ---- projects ----
    def _summaries(self, user: User) -> List[ProjectSummary]:
        """Owned projects, then projects the user has tasks in, with counts."""
        owned = self.api.get_user_projects()
        shared = self.api.get_projects_with_assigned_tasks(user.email) if user.email else []
        seen = set()
        projects: List[Project] = []
        for p in owned + shared:
            if p.id not in seen:
                seen.add(p.id)
                projects.append(p)
        counts: Dict[str, TaskCounts] = self.api.get_task_counts(p.id for p in projects)
        return [
            ProjectSummary(project=p, counts=counts.get(p.id, TaskCounts()), is_owner=p.user_id == user.id)
            for p in projects
        ]

    def load_projects(self, then=None) -> None:
        """Refresh ``projects``. ``then(projects)``."""
        user = self.session.user
        if not user:
            self.projects = []
            call(then, self.projects)
            return

        def done(summaries, error):
            if error is not None:
                logger.error("Error loading projects: %s", error)
                self.notify("error", "Failed to load projects")
            elif self.session.user is user:
                self.projects = summaries
            call(then, self.projects)

        self.runner.submit(lambda: self._summaries(user), done)

    def summary(self, project_id: str) -> Optional[ProjectSummary]:
        return next((s for s in self.projects if s.project.id == project_id), None)

    def create_project(self, draft: ProjectDraft, then=None) -> None:
        """``then(summary)``; summary is None when nothing was created."""
        error = draft.validate()
        if error:
            self.notify("error", error)
            call(then, None)
            return

        def done(project, error):
            if error is not None:
                logger.error("Error creating project: %s", error)
                self.notify("error", "Failed to create project")
                call(then, None)
                return
            s = ProjectSummary(project=project)
            self.projects.append(s)
            self.notify("success", "Project created successfully")
            call(then, s)

        self.runner.submit(lambda: self.api.create_project(draft.name.strip(), draft.description), done)

    def delete_project(self, project_id: str, then=None) -> None:
        """``then(ok)``."""
        s = self.summary(project_id)
        if s is not None and not s.is_owner:
            self.notify("error", "Only the project owner can delete it")
            call(then, False)
            return

        def done(_, error):
            if error is not None:
                logger.error("Error deleting project: %s", error)
                self.notify("error", "Failed to delete project")
                call(then, False)
                return
            self.projects = [p for p in self.projects if p.project.id != project_id]
            self.notify("success", "Project deleted successfully")
            call(then, True)

        self.runner.submit(lambda: self.api.delete_project(project_id), done)

    # ---- board ----
    def open_board(self, project_id: str) -> BoardController:
        return BoardController(self.api, project_id, self.session.user, self.notify, runner=self.runner)
