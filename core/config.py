"""
Runtime configuration read from the environment.

Backend identifiers default to empty strings: a missing value produces remote
calls that fail (and degrade like any other remote failure) instead of a
startup error.
"""
from __future__ import annotations
import os
from pathlib import Path
from dataclasses import dataclass, fields, replace
from typing import List, Mapping, Optional

ENV_PREFIX = "TASKBOARD_"

# GUI
SYNC_INTERVAL_MS = int(os.environ.get("TASKBOARD_SYNC_INTERVAL_MS", "60000"))
TOPMOST = os.environ.get("TASKBOARD_TOPMOST", "0").lower() in ("1", "true", "yes")
WINDOW_GEOMETRY = os.environ.get("TASKBOARD_WINDOW_GEOMETRY", "1100x700")


@dataclass(frozen=True)
class Settings:
    endpoint: str = ""
    project_id: str = ""
    database_id: str = ""
    projects_collection: str = ""
    tasks_collection: str = ""
    users_collection: str = ""
    notifications_collection: str = ""
    auth_collection: str = "users"
    session_file: str = str(Path.home() / ".local" / "share" / "taskboard" / "session.json")
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is not None:
                values[f.name] = raw.strip()
        return cls(**values)

    def missing(self) -> List[str]:
        """Names of the backend identifiers left empty."""
        required = ("endpoint", "project_id", "database_id", "projects_collection",
                    "tasks_collection", "users_collection", "notifications_collection")
        return [ENV_PREFIX + name.upper() for name in required if not getattr(self, name)]


def load_settings(endpoint: Optional[str] = None, log_level: Optional[str] = None) -> Settings:
    """Settings from the environment, with command line overrides applied."""
    s = Settings.from_env()
    overrides = {}
    if endpoint:
        overrides["endpoint"] = endpoint
    if log_level:
        overrides["log_level"] = log_level
    if overrides:
        s = replace(s, **overrides)
    return s
