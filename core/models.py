"""
Records of the taskboard collections.

Each dataclass is built from a PocketBase record with ``from_record`` and
turned back into a request body with ``to_payload`` (server-managed fields
such as ``id`` are never sent).
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TaskStatus(Enum):
    """Kanban columns, in board order."""
    NOT_STARTED = "not_started"
    ONGOING = "ongoing"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: Any) -> Optional["TaskStatus"]:
        """Strict lookup: anything that is not a column id gives None."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class TaskPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_str(cls, value: Any) -> "TaskPriority":
        try:
            return cls(value)
        except ValueError:
            return cls.MEDIUM


class NotificationType(Enum):
    TASK_ASSIGNED = "task_assigned"
    TASK_UPDATED = "task_updated"
    PROJECT_SHARED = "project_shared"

    @classmethod
    def from_str(cls, value: Any) -> "NotificationType":
        try:
            return cls(value)
        except ValueError:
            return cls.TASK_UPDATED


@dataclass
class Project:
    id: str
    name: str
    description: str = ""
    user_id: str = ""      # owner
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Project":
        return cls(
            id=rec.get("id", ""),
            name=rec.get("name", ""),
            description=rec.get("description") or "",
            user_id=rec.get("user_id", ""),
            created_at=rec.get("created_at") or rec.get("created"),
            updated_at=rec.get("updated_at") or rec.get("updated"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "user_id": self.user_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class Task:
    id: str
    title: str
    project_id: str
    description: str = ""
    due_date: Optional[str] = None  # YYYY-MM-DD
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.NOT_STARTED
    assignees: List[str] = field(default_factory=list)  # emails
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Task":
        due = rec.get("due_date") or None
        return cls(
            id=rec.get("id", ""),
            title=rec.get("title", ""),
            project_id=rec.get("project_id", ""),
            description=rec.get("description") or "",
            due_date=str(due)[:10] if due else None,
            priority=TaskPriority.from_str(rec.get("priority")),
            status=TaskStatus.parse(rec.get("status")) or TaskStatus.NOT_STARTED,
            assignees=list(rec.get("assignees") or []),
            created_at=rec.get("created_at") or rec.get("created"),
            updated_at=rec.get("updated_at") or rec.get("updated"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "due_date": self.due_date or "",
            "priority": self.priority.value,
            "status": self.status.value,
            "assignees": list(self.assignees),
            "project_id": self.project_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class User:
    id: str
    name: str
    email: str

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "User":
        return cls(id=rec.get("id", ""), name=rec.get("name") or "", email=rec.get("email") or "")


@dataclass
class Notification:
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    task_id: Optional[str] = None
    project_id: Optional[str] = None
    is_read: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Notification":
        return cls(
            id=rec.get("id", ""),
            user_id=rec.get("user_id", ""),
            type=NotificationType.from_str(rec.get("type")),
            title=rec.get("title", ""),
            message=rec.get("message", ""),
            task_id=rec.get("task_id") or None,
            project_id=rec.get("project_id") or None,
            is_read=bool(rec.get("is_read", False)),
            created_at=rec.get("created_at") or rec.get("created"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "task_id": self.task_id or "",
            "project_id": self.project_id or "",
            "is_read": self.is_read,
            "created_at": self.created_at,
        }


@dataclass
class TaskCounts:
    """Number of tasks per column for one project."""
    not_started: int = 0
    ongoing: int = 0
    completed: int = 0

    @property
    def total(self) -> int:
        return self.not_started + self.ongoing + self.completed

    @classmethod
    def of(cls, tasks: List[Task]) -> "TaskCounts":
        counts = cls()
        for t in tasks:
            setattr(counts, t.status.value, getattr(counts, t.status.value) + 1)
        return counts
