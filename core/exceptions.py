from typing import Any, Optional


class PBError(Exception):
    """Error returned by (or while reaching) the PocketBase backend."""
    def __init__(self, message: str, status: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.status = status
        self.data = data

    @property
    def is_unauthorized(self) -> bool:
        return self.status in (401, 403)


class NotAuthenticated(PBError):
    """Raised when an operation needs a signed-in user and there is none."""
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, status=401)
