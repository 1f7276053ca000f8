"""
Authenticated-user state shared by every view.

A single SessionState is created at startup and handed to the views; views
call ``subscribe`` to redraw when it changes. Backend calls go through the
runner, so every operation reports back through an optional ``then``
callback instead of a return value.
"""
from __future__ import annotations
import logging
from typing import Callable, List, Optional

from core.exceptions import PBError
from core.models import Notification, User
from controller.runner import InlineRunner, call
from services.api import TaskboardApi

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]  # (level, message)


def _silent(level: str, message: str) -> None:
    pass


class SessionState:
    def __init__(self, api: TaskboardApi, notify: Optional[Notifier] = None, runner=None):
        self.api = api
        self.notify = notify or _silent
        self.runner = runner or InlineRunner()
        self.user: Optional[User] = None
        self.is_authenticated = False
        self.is_loading = True
        self.is_verifying = False
        self.notifications: List[Notification] = []
        self.unread_count = 0
        self._listeners: List[Callable[[], None]] = []

    # ---- observers ----
    def subscribe(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _changed(self) -> None:
        for cb in list(self._listeners):
            cb()

    # ---- lifecycle ----
    def init(self, then=None) -> None:
        """Pick up an existing session, if any. ``then(is_authenticated)``."""
        self.is_loading = True

        def work():
            user = self.api.get_current_user()
            notes = self.api.get_user_notifications(user.id) if user else []
            return user, notes

        def done(result, error):
            self.is_loading = False
            if error is not None:
                logger.error("Error restoring session: %s", error)
                self._clear()
            else:
                user, notes = result
                if user:
                    self._set_user(user)
                    self._set_notifications(notes)
                else:
                    self._clear()
            self._changed()
            call(then, self.is_authenticated)

        self.runner.submit(work, done)

    def teardown(self) -> None:
        """Forget everything held in memory."""
        self._clear()
        self._changed()

    def _set_user(self, user: User) -> None:
        self.user = user
        self.is_authenticated = True

    def _clear(self) -> None:
        self.user = None
        self.is_authenticated = False
        self.notifications = []
        self.unread_count = 0

    def _set_notifications(self, notes: List[Notification]) -> None:
        self.notifications = notes
        self.unread_count = sum(1 for n in notes if not n.is_read)

    # ---- auth ----
    # each ``then`` receives the PBError, or None on success

    def _authenticate(self, authenticate: Callable[[], User], label: str, then) -> None:
        self.is_verifying = True
        self.is_loading = True
        self._changed()

        def work():
            user = authenticate()
            if user is None:
                raise PBError("Failed to get user after login")
            return user, self.api.get_user_notifications(user.id)

        def done(result, error):
            self.is_loading = False
            self.is_verifying = False
            if error is not None:
                logger.error("%s error: %s", label, error)
            else:
                user, notes = result
                self._set_user(user)
                self._set_notifications(notes)
            self._changed()
            call(then, error)

        self.runner.submit(work, done)

    def login(self, email: str, password: str, then=None) -> None:
        def authenticate():
            self.api.sign_in(email, password)
            return self.api.get_current_user()
        self._authenticate(authenticate, "Login", then)

    def verify_magic_link(self, otp_id: str, code: str, then=None) -> None:
        self._authenticate(lambda: self.api.complete_magic_link(otp_id, code), "Verification", then)

    def request_magic_link(self, email: str, then=None) -> None:
        """Email a one-time sign-in code. ``then(otp_id, error)``."""
        def done(otp_id, error):
            if error is not None:
                logger.error("Magic link error: %s", error)
            call(then, otp_id, error)
        self.runner.submit(lambda: self.api.create_magic_link(email), done)

    def register(self, name: str, email: str, password: str, then=None) -> None:
        """Create the account and send its verification email."""
        self.is_loading = True

        def work():
            user = self.api.create_user_account(name, email, password)
            try:
                self.api.create_email_verification(email)
            except PBError:
                # the account exists; verification can be re-requested later
                return user, False
            return user, True

        def done(result, error):
            self.is_loading = False
            if error is not None:
                logger.error("Registration error: %s", error)
            elif not result[1]:
                self.notify("info", "Account created, but the verification email could not be sent")
            call(then, error)

        self.runner.submit(work, done)

    def logout(self, then=None) -> None:
        self.is_loading = True
        self._changed()

        def done(_, error):
            self.is_loading = False
            if error is not None:
                logger.error("Logout error: %s", error)
            else:
                self._clear()
            self._changed()
            call(then, error)

        self.runner.submit(self.api.sign_out, done)

    # ---- notifications ----
    def load_notifications(self, then=None) -> None:
        if not self.user:
            return
        user_id = self.user.id

        def done(notes, error):
            if error is not None:
                logger.error("Error loading notifications: %s", error)
            elif self.user and self.user.id == user_id:
                self._set_notifications(notes)
                self._changed()
            call(then, error)

        self.runner.submit(lambda: self.api.get_user_notifications(user_id), done)

    def mark_notification_read(self, notification_id: str, then=None) -> None:
        """``then(ok)``."""
        def done(_, error):
            if error is not None:
                logger.error("Error marking notification as read: %s", error)
                self.notify("error", "Failed to mark notification as read")
                call(then, False)
                return
            for n in self.notifications:
                if n.id == notification_id and not n.is_read:
                    n.is_read = True
                    self.unread_count = max(0, self.unread_count - 1)
            self._changed()
            call(then, True)

        self.runner.submit(lambda: self.api.mark_notification_as_read(notification_id), done)

    def mark_all_notifications_read(self, then=None) -> None:
        """Local state only changes when every remote update succeeded.

        ``then(result)`` gets the MarkAllResult, or None when nothing ran.
        """
        if not self.user:
            call(then, None)
            return
        user_id = self.user.id

        def done(result, error):
            if error is not None:
                logger.error("Error marking all notifications as read: %s", error)
                self.notify("error", "Failed to mark notifications as read")
                call(then, None)
                return
            if not result.ok:
                self.notify("error", f"{result.failed} notification(s) could not be marked as read")
                call(then, result)
                return
            for n in self.notifications:
                n.is_read = True
            self.unread_count = 0
            self._changed()
            call(then, result)

        self.runner.submit(lambda: self.api.mark_all_notifications_as_read(user_id), done)
