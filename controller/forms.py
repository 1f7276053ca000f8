from __future__ import annotations
import datetime as dt
from dataclasses import dataclass, field
from typing import List, Optional

from core.models import TaskPriority


def _today() -> str:
    return dt.date.today().isoformat()


@dataclass
class ProjectDraft:
    name: str = ""
    description: str = ""

    def validate(self) -> Optional[str]:
        if not self.name.strip():
            return "Project name is required"
        return None


@dataclass
class TaskDraft:
    """State of the "new task" form."""
    title: str = ""
    description: str = ""
    due_date: str = field(default_factory=_today)
    priority: TaskPriority = TaskPriority.MEDIUM
    assignees: List[str] = field(default_factory=lambda: [""])

    def validate(self) -> Optional[str]:
        if not self.title.strip():
            return "Task title is required"
        if self.due_date:
            try:
                dt.date.fromisoformat(self.due_date)
            except ValueError:
                return "Due date must be YYYY-MM-DD"
        return None

    def add_assignee(self) -> None:
        self.assignees.append("")

    def remove_assignee(self, index: int) -> None:
        # the form always keeps one field
        if len(self.assignees) > 1 and 0 <= index < len(self.assignees):
            del self.assignees[index]

    def cleaned_assignees(self) -> List[str]:
        return [a.strip() for a in self.assignees if a.strip()]
