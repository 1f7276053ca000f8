from __future__ import annotations
import json
import os
import requests
from pathlib import Path
from typing import List, Dict, Any, Optional
from core.exceptions import PBError


# ---------- filter helpers ----------
def quote(value: Any) -> str:
    """Render a value as a PocketBase filter literal."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def eq(field: str, value: Any) -> str:
    return f"{field} = {quote(value)}"


def contains(field: str, value: Any) -> str:
    # `~` is a LIKE match; on a JSON list it matches any element text
    return f"{field} ~ {quote(value)}"


def all_of(*clauses: str) -> str:
    return " && ".join(c for c in clauses if c)


class PocketBaseClient:
    def __init__(self, base_url: str, auth_collection: str = "users", timeout: float = 10,
                 token_file: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.auth_collection = auth_collection
        self.timeout = timeout
        self.session = requests.Session()
        self.token: Optional[str] = ""
        self.user_id: Optional[str] = ""
        self.record: Optional[Dict[str, Any]] = None
        self.token_file = Path(token_file) if token_file else None
        self._load_token()

    # ---------- transport ----------
    def _request(self, method: str, path: str, what: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise PBError(f"{what} failed: {e}") from e
        if not r.ok:
            try:
                data = r.json()
            except ValueError:
                data = None
            raise PBError(f"{what} failed: {r.status_code} {r.text}", status=r.status_code, data=data)
        if r.status_code == 204 or not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            # proxy or captive-portal pages answer 200 with HTML
            raise PBError(f"{what} failed: invalid JSON", status=r.status_code) from e

    def _records(self, collection: str) -> str:
        return f"/api/collections/{collection}/records"

    def _set_auth(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.token = data.get("token")
        self.record = data.get("record") or {}
        self.user_id = self.record.get("id")
        if not self.token or not self.user_id:
            raise PBError("Missing token or user id in auth response")
        self.session.headers.update({"Authorization": f"Bearer {self.token}"})
        self._save_token()
        return self.record

    # ---------- persisted session ----------
    def _load_token(self) -> None:
        if not self.token_file or not self.token_file.exists():
            return
        try:
            token = json.loads(self.token_file.read_text(encoding="utf-8")).get("token")
        except (OSError, ValueError):
            return
        if token:
            self.token = token
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _save_token(self) -> None:
        if not self.token_file:
            return
        self.token_file.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        # the token is a credential: owner read/write only
        fd = os.open(self.token_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(json.dumps({"token": self.token}))
        # O_CREAT's mode does not apply to a file that already existed
        os.chmod(self.token_file, 0o600)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    # ---------- auth ----------
    def create_account(self, email: str, password: str, name: str) -> Dict[str, Any]:
        payload = {"email": email, "password": password, "passwordConfirm": password, "name": name}
        return self._request("POST", self._records(self.auth_collection), "Create account", json=payload)

    def login(self, identity: str, password: str) -> Dict[str, Any]:
        data = self._request("POST", f"/api/collections/{self.auth_collection}/auth-with-password",
                             "Login", json={"identity": identity, "password": password})
        return self._set_auth(data)

    def logout(self) -> None:
        """Drop the session; PocketBase tokens are stateless, so nothing is sent."""
        self.token = ""
        self.user_id = ""
        self.record = None
        self.session.headers.pop("Authorization", None)
        if self.token_file and self.token_file.exists():
            self.token_file.unlink()

    def auth_refresh(self) -> Dict[str, Any]:
        """Current-session lookup. Raises PBError(401) when there is no session."""
        if not self.token:
            raise PBError("No active session", status=401)
        try:
            data = self._request("POST", f"/api/collections/{self.auth_collection}/auth-refresh", "Auth refresh")
        except PBError as e:
            if e.is_unauthorized:
                # expired or revoked token
                self.logout()
            raise
        return self._set_auth(data)

    def request_verification(self, email: str) -> None:
        self._request("POST", f"/api/collections/{self.auth_collection}/request-verification",
                      "Request verification", json={"email": email})

    def request_otp(self, email: str) -> str:
        data = self._request("POST", f"/api/collections/{self.auth_collection}/request-otp",
                             "Request OTP", json={"email": email})
        return (data or {}).get("otpId", "")

    def auth_with_otp(self, otp_id: str, code: str) -> Dict[str, Any]:
        data = self._request("POST", f"/api/collections/{self.auth_collection}/auth-with-otp",
                             "OTP login", json={"otpId": otp_id, "password": code})
        return self._set_auth(data)

    # ---------- records ----------
    def list_records(self, collection: str, *, filter: Optional[str] = None, sort: Optional[str] = None,
                     per_page: int = 200) -> List[Dict[str, Any]]:
        """Every record matching ``filter``, following pagination."""
        params: Dict[str, Any] = {"perPage": per_page, "page": 1}
        if filter:
            params["filter"] = filter
        if sort:
            params["sort"] = sort
        items: List[Dict[str, Any]] = []
        while True:
            data = self._request("GET", self._records(collection), f"List {collection}", params=dict(params))
            items.extend(data.get("items", []))
            if params["page"] >= (data.get("totalPages") or 1):
                return items
            params["page"] += 1

    def get_record(self, collection: str, record_id: str) -> Dict[str, Any]:
        return self._request("GET", f"{self._records(collection)}/{record_id}", f"Get {collection}")

    def create_record(self, collection: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", self._records(collection), f"Create {collection}", json=payload)

    def update_record(self, collection: str, record_id: str, **fields) -> Dict[str, Any]:
        return self._request("PATCH", f"{self._records(collection)}/{record_id}", f"Update {collection}", json=fields)

    def delete_record(self, collection: str, record_id: str) -> None:
        self._request("DELETE", f"{self._records(collection)}/{record_id}", f"Delete {collection}")
