# Creates or updates the taskboard collections in PocketBase through the
# superuser API. Collection names come from the same TASKBOARD_* variables the
# app reads, credentials from PB_ADMIN_EMAIL / PB_ADMIN_PASSWORD.
#
# Run with:  python pb_bootstrap.py [--endpoint URL]

import argparse
import logging
import os
import sys

import requests

from core.config import load_settings

logger = logging.getLogger("pb_bootstrap")

OWNER_ONLY = "user_id = @request.auth.id"
SIGNED_IN = "@request.auth.id != ''"


def die(msg):
    logger.error(msg)
    sys.exit(1)


class SuperuserSession:
    """Collections API calls made as a PocketBase superuser; any failure exits."""
    def __init__(self, endpoint):
        self.endpoint = endpoint.rstrip("/")
        self.http = requests.Session()

    def _call(self, method, path, label, missing_ok=False, **kwargs):
        try:
            resp = self.http.request(method, f"{self.endpoint}{path}", timeout=20, **kwargs)
        except requests.RequestException as e:
            die(f"{label}: {e}")
        if missing_ok and resp.status_code == 404:
            return None
        if not resp.ok:
            die(f"{label}: HTTP {resp.status_code} {resp.text}")
        return resp.json()

    def login(self, email, password):
        data = self._call("POST", "/api/collections/_superusers/auth-with-password", "superuser login",
                          json={"identity": email, "password": password})
        token = data.get("token")
        if not token:
            die("superuser login: no token in response")
        self.http.headers["Authorization"] = f"Bearer {token}"
        logger.info("Signed in as superuser %s", email)

    def fetch(self, name):
        return self._call("GET", f"/api/collections/{name}", f"fetch {name}", missing_ok=True)

    def create(self, definition):
        return self._call("POST", "/api/collections", f"create {definition['name']}", json=definition)

    def update(self, collection_id, definition):
        return self._call("PATCH", f"/api/collections/{collection_id}", f"update {definition['name']}",
                          json=definition)


def _timestamps():
    # stored by the client, not PocketBase autodate fields
    return [
        {"name": "created_at", "type": "text", "required": False},
        {"name": "updated_at", "type": "text", "required": False},
    ]


def projects_collection(name):
    return {
        "name": name,
        "type": "base",
        "fields": [
            {"name": "name", "type": "text", "required": True, "min": 1, "max": 200},
            {"name": "description", "type": "text", "required": False, "max": 5000},
            {"name": "user_id", "type": "text", "required": True},
            *_timestamps(),
        ],
        "indexes": [f"CREATE INDEX idx_{name}_user ON {name} (user_id)"],
        # shared projects are opened by assignees too
        "listRule": SIGNED_IN,
        "viewRule": SIGNED_IN,
        "createRule": SIGNED_IN,
        "updateRule": OWNER_ONLY,
        "deleteRule": OWNER_ONLY,
    }


def tasks_collection(name, projects_id):
    return {
        "name": name,
        "type": "base",
        "fields": [
            {"name": "title", "type": "text", "required": True, "min": 1, "max": 200},
            {"name": "description", "type": "text", "required": False, "max": 5000},
            {"name": "due_date", "type": "text", "required": False},
            {"name": "priority", "type": "select", "required": True, "maxSelect": 1,
             "values": ["low", "medium", "high"]},
            {"name": "status", "type": "select", "required": True, "maxSelect": 1,
             "values": ["not_started", "ongoing", "completed"]},
            {"name": "assignees", "type": "json", "required": False},
            # tasks are removed by the client before their project
            {"name": "project_id", "type": "relation", "required": True,
             "collectionId": projects_id, "cascadeDelete": False, "maxSelect": 1},
            *_timestamps(),
        ],
        "indexes": [f"CREATE INDEX idx_{name}_project ON {name} (project_id)"],
        "listRule": SIGNED_IN,
        "viewRule": SIGNED_IN,
        "createRule": "project_id.user_id = @request.auth.id",
        "updateRule": "project_id.user_id = @request.auth.id",
        "deleteRule": "project_id.user_id = @request.auth.id",
    }


def users_collection(name):
    return {
        "name": name,
        "type": "base",
        "fields": [
            {"name": "name", "type": "text", "required": False, "max": 200},
            {"name": "email", "type": "email", "required": True},
        ],
        "indexes": [f"CREATE UNIQUE INDEX idx_{name}_email ON {name} (email)"],
        "listRule": SIGNED_IN,
        "viewRule": SIGNED_IN,
        "createRule": "",
        "updateRule": "id = @request.auth.id",
        "deleteRule": None,
    }


def notifications_collection(name):
    return {
        "name": name,
        "type": "base",
        "fields": [
            {"name": "user_id", "type": "text", "required": True},
            {"name": "type", "type": "select", "required": True, "maxSelect": 1,
             "values": ["task_assigned", "task_updated", "project_shared"]},
            {"name": "title", "type": "text", "required": True, "max": 200},
            {"name": "message", "type": "text", "required": False, "max": 2000},
            {"name": "task_id", "type": "text", "required": False},
            {"name": "project_id", "type": "text", "required": False},
            {"name": "is_read", "type": "bool", "required": False},
            {"name": "created_at", "type": "text", "required": False},
        ],
        "indexes": [f"CREATE INDEX idx_{name}_user_read ON {name} (user_id, is_read)"],
        "listRule": OWNER_ONLY,
        "viewRule": OWNER_ONLY,
        # the assigner creates notifications for other users
        "createRule": SIGNED_IN,
        "updateRule": OWNER_ONLY,
        "deleteRule": OWNER_ONLY,
    }


def upsert_collection(pb: SuperuserSession, definition: dict):
    existing = pb.fetch(definition["name"])
    if not existing:
        created = pb.create(definition)
        logger.info("Created %s (%s)", definition["name"], created.get("id"))
        return created
    updated = pb.update(existing["id"], {**definition, "id": existing["id"]})
    logger.info("Updated %s (%s)", definition["name"], existing["id"])
    return updated


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create the taskboard collections in PocketBase")
    parser.add_argument("--endpoint", help="PocketBase URL (overrides TASKBOARD_ENDPOINT)")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [pb_bootstrap] %(levelname)s: %(message)s",
                        handlers=[logging.StreamHandler(sys.stdout)])

    settings = load_settings(endpoint=args.endpoint)
    email = os.environ.get("PB_ADMIN_EMAIL", "")
    password = os.environ.get("PB_ADMIN_PASSWORD", "")
    if not settings.endpoint:
        die("TASKBOARD_ENDPOINT is not set")
    if not email or not password:
        die("PB_ADMIN_EMAIL and PB_ADMIN_PASSWORD must be set")

    pb = SuperuserSession(settings.endpoint)
    pb.login(email, password)

    # tasks hold a relation to projects, so projects go first
    projects = upsert_collection(pb, projects_collection(settings.projects_collection or "projects"))
    upsert_collection(pb, tasks_collection(settings.tasks_collection or "tasks", projects["id"]))
    upsert_collection(pb, users_collection(settings.users_collection or "members"))
    upsert_collection(pb, notifications_collection(settings.notifications_collection or "notifications"))
    logger.info("Bootstrap complete.")


if __name__ == "__main__":
    main()
