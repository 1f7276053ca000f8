"""
Kanban board for one project.

Moving a task between columns is optimistic: the local status changes at
once, then the backend is told. If the backend refuses, the task goes back
to its original column and the user gets one error notice. Every move is a
TaskMove that ends either COMMITTED or ROLLED_BACK.

Only the project owner may add, move or delete tasks. A task with a move
still in flight cannot be dragged again until that move settles.
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Set

from core.models import Project, Task, TaskStatus, User
from controller.forms import TaskDraft
from controller.runner import InlineRunner, call
from services.api import TaskboardApi

logger = logging.getLogger(__name__)

# press-vs-drag disambiguation
POINTER_ACTIVATION_DISTANCE = 8     # px
TOUCH_ACTIVATION_DELAY_MS = 250
TOUCH_ACTIVATION_TOLERANCE = 5      # px


class GestureTracker:
    """Turns raw press/move events into a drag activation.

    Pointer: becomes a drag once it travels POINTER_ACTIVATION_DISTANCE.
    Touch: becomes a drag after a TOUCH_ACTIVATION_DELAY_MS hold; moving more
    than TOUCH_ACTIVATION_TOLERANCE before that abandons the gesture (scroll).
    """
    def __init__(self):
        self.kind: Optional[str] = None
        self.origin = (0.0, 0.0)
        self.pressed_at = 0.0
        self.active = False
        self.abandoned = False

    def press(self, x: float, y: float, t_ms: float, kind: str = "pointer") -> None:
        self.kind = kind
        self.origin = (x, y)
        self.pressed_at = t_ms
        self.active = False
        self.abandoned = False

    def move(self, x: float, y: float, t_ms: float) -> bool:
        """Feed a movement; returns True on the event that activates the drag."""
        if self.kind is None or self.active or self.abandoned:
            return False
        dist = math.hypot(x - self.origin[0], y - self.origin[1])
        if self.kind == "touch":
            held = t_ms - self.pressed_at >= TOUCH_ACTIVATION_DELAY_MS
            if not held:
                if dist > TOUCH_ACTIVATION_TOLERANCE:
                    self.abandoned = True
                return False
            self.active = True
            return True
        if dist >= POINTER_ACTIVATION_DISTANCE:
            self.active = True
            return True
        return False

    def release(self) -> bool:
        """End the gesture; returns whether it had become a drag."""
        was_active = self.active
        self.kind = None
        self.active = False
        self.abandoned = False
        return was_active


class MoveState(Enum):
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


@dataclass
class TaskMove:
    task_id: str
    original_status: TaskStatus
    target_status: TaskStatus
    state: MoveState = MoveState.PENDING

    def commit(self) -> None:
        self.state = MoveState.COMMITTED

    def roll_back(self, task: Task) -> None:
        task.status = self.original_status
        self.state = MoveState.ROLLED_BACK


class BoardController:
    def __init__(self, api: TaskboardApi, project_id: str, user: Optional[User],
                 notify: Callable[[str, str], None], runner=None):
        self.api = api
        self.project_id = project_id
        self.user = user
        self.notify = notify
        self.runner = runner or InlineRunner()
        self.project: Optional[Project] = None
        self.tasks: List[Task] = []
        self.users: List[User] = []
        self.active_task: Optional[Task] = None
        # tasks whose status update has not come back yet
        self.pending: Set[str] = set()
        self.on_change: Optional[Callable[[], None]] = None

    def _changed(self):
        if self.on_change:
            self.on_change()

    # ---- data ----
    def load(self, then=None) -> None:
        """Fetch project, tasks and user directory. ``then(ok)``."""
        def work():
            project = self.api.get_project(self.project_id)
            return project, self.api.get_project_tasks(self.project_id), self.api.get_all_users()

        def done(result, error):
            if error is not None:
                logger.error("Error fetching project data: %s", error)
                self.notify("error", "Failed to load project data")
                call(then, False)
                return
            self.project, self.tasks, self.users = result
            self._changed()
            call(then, True)

        self.runner.submit(work, done)

    @property
    def is_owner(self) -> bool:
        return bool(self.project and self.user and self.project.user_id == self.user.id)

    can_drag = is_owner

    def find(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def tasks_by_status(self, status: TaskStatus) -> List[Task]:
        return [t for t in self.tasks if t.status == status]

    # ---- drag and drop ----
    def begin_drag(self, task_id: str) -> Optional[Task]:
        if not self.can_drag or task_id in self.pending:
            return None
        self.active_task = self.find(task_id)
        return self.active_task

    def cancel_drag(self) -> None:
        self.active_task = None

    def complete_drag(self, task_id: str, destination, then=None) -> Optional[TaskMove]:
        """Drop ``task_id`` on column ``destination``.

        The task is shown in its new column at once and the returned TaskMove
        stays PENDING until the backend answers; ``then(move)`` runs once it
        is COMMITTED or ROLLED_BACK. Returns None when the drop is a no-op
        (not owner, unknown or busy task, invalid or unchanged column).
        """
        self.active_task = None
        if not self.can_drag or task_id in self.pending:
            return None
        target = TaskStatus.parse(destination)
        task = self.find(task_id)
        if target is None or task is None or task.status == target:
            return None

        move = TaskMove(task_id=task_id, original_status=task.status, target_status=target)
        task.status = target
        self.pending.add(task_id)
        self._changed()

        def done(_, error):
            self.pending.discard(task_id)
            if error is not None:
                logger.error("Error updating task status: %s", error)
                move.roll_back(task)
                self.notify("error", "Failed to update task status")
                self._changed()
            else:
                move.commit()
                self.notify("success", f"Task moved to {target.label}")
            call(then, move)

        self.runner.submit(lambda: self.api.update_task_status(task_id, target), done)
        return move

    # ---- task CRUD ----
    def create_task(self, draft: TaskDraft, then=None) -> None:
        """``then(task)``; task is None when nothing was created."""
        if not self.is_owner:
            self.notify("error", "Only the project owner can add tasks")
            call(then, None)
            return
        error = draft.validate()
        if error:
            self.notify("error", error)
            call(then, None)
            return

        def work():
            return self.api.create_task(
                title=draft.title.strip(),
                project_id=self.project_id,
                description=draft.description,
                due_date=draft.due_date or None,
                priority=draft.priority,
                status=TaskStatus.NOT_STARTED,
                assignees=draft.cleaned_assignees(),
            )

        def done(task, error):
            if error is not None:
                logger.error("Error creating task: %s", error)
                self.notify("error", "Failed to create task")
                call(then, None)
                return
            self.tasks.append(task)
            self.notify("success", "Task created successfully")
            self._changed()
            call(then, task)

        self.runner.submit(work, done)

    def delete_task(self, task_id: str, then=None) -> None:
        """``then(ok)``."""
        if not self.is_owner:
            call(then, False)
            return

        def done(_, error):
            if error is not None:
                logger.error("Error deleting task: %s", error)
                self.notify("error", "Failed to delete task")
                call(then, False)
                return
            self.tasks = [t for t in self.tasks if t.id != task_id]
            self.notify("success", "Task deleted successfully")
            self._changed()
            call(then, True)

        self.runner.submit(lambda: self.api.delete_task(task_id), done)
