"""@-mention lookup for assignee fields, over an already fetched user list."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

from core.models import User


@dataclass
class MentionState:
    visible: bool = False
    matches: List[User] = field(default_factory=list)
    index: int = 0      # assignee field the list belongs to


class MentionResolver:
    def __init__(self, users: List[User]):
        self.users = list(users)
        self.state = MentionState()

    def search(self, term: str) -> List[User]:
        term = term.lower()
        return [u for u in self.users if term in u.name.lower() or term in u.email.lower()]

    def on_input(self, index: int, value: str) -> MentionState:
        at = value.rfind("@")
        if value.endswith("@"):
            matches = list(self.users)
            self.state = MentionState(visible=bool(matches), matches=matches, index=index)
        elif at != -1:
            matches = self.search(value[at + 1:])
            self.state = MentionState(visible=bool(matches), matches=matches, index=index)
        elif self.state.visible:
            self.state = MentionState(index=index)
        return self.state

    def select(self, value: str, user: User) -> str:
        """Replace the fragment after the last '@' with the user's email."""
        at = value.rfind("@")
        if at == -1:
            return value
        self.state = MentionState(index=self.state.index)
        return value[:at] + user.email
