import logging
import tkinter as tk
from tkinter import ttk
from core.config import SYNC_INTERVAL_MS, TOPMOST, WINDOW_GEOMETRY
from controller.app_controller import AppController
from controller.router import HOME, SIGN_IN, Router
from controller.session import SessionState
from gui.auth_views import SignInView, SignUpView, VerifyEmailView
from gui.background import BackgroundRunner
from gui.board_view import BoardView
from gui.dashboard import DashboardView
from gui.notifications import NotificationPanel
from gui.toast import Toaster

logger = logging.getLogger(__name__)


class MainWindow(tk.Tk):
    def __init__(self, controller: AppController, toaster: Toaster, runner: BackgroundRunner,
                 start_path: str = HOME):
        super().__init__()
        self.controller = controller
        self.session: SessionState = controller.session
        self.notify = toaster
        self.router = Router()
        self.view = None
        # bumped on every navigation; completions for an older one are dropped
        self._nav_seq = 0
        self.title("Taskboard")
        self.geometry(WINDOW_GEOMETRY)
        self.configure(padx=8, pady=8)
        if TOPMOST:
            self.attributes("-topmost", True)
        runner.attach(self)

        # Navbar
        self.navbar = ttk.Frame(self)
        self.user_var = tk.StringVar()
        self.bell_var = tk.StringVar(value="🔔")
        ttk.Label(self.navbar, text="Taskboard", font=("TkDefaultFont", 13, "bold")).pack(side="left")
        ttk.Label(self.navbar, text="There is no nobility in mediocrity", foreground="#888888").pack(side="left", padx=12)
        self.sign_out = ttk.Button(self.navbar, text="Sign out", command=self._on_sign_out)
        self.sign_out.pack(side="right")
        ttk.Label(self.navbar, textvariable=self.user_var).pack(side="right", padx=8)
        self.bell = ttk.Button(self.navbar, textvariable=self.bell_var, command=self._on_bell)
        self.bell.pack(side="right")

        # Content + toast bar
        toast = tk.Label(self, text="", anchor="w")
        toast.pack(fill="x", side="bottom")
        self.content = ttk.Frame(self)
        self.content.pack(fill="both", expand=True)
        toaster.attach(toast)

        self.session.subscribe(self._on_session_change)
        self._show_loading()
        self.session.init(then=lambda authed: self.navigate(start_path))

        # timers / binds
        self.bind("<F5>", lambda e: self._refresh())
        self.after(SYNC_INTERVAL_MS, self._auto_sync)

    # ---------- routing ----------
    def _clear_view(self):
        if self.view is not None:
            self.view.destroy()
            self.view = None

    def _show_loading(self, text: str = "Loading..."):
        self._clear_view()
        self.view = ttk.Label(self.content, text=text, foreground="#888888")
        self.view.pack(expand=True)

    def navigate(self, path: str):
        self._nav_seq += 1
        route = self.router.resolve(path, self.session)
        logger.debug("navigate %s -> %s", path, route.name)
        self._clear_view()

        if route.show_navbar and self.session.is_authenticated:
            self.navbar.pack(fill="x", pady=(0, 6), before=self.content)
        else:
            self.navbar.pack_forget()

        if route.name == "sign_in":
            self.view = SignInView(self.content, self)
        elif route.name == "sign_up":
            self.view = SignUpView(self.content, self)
        elif route.name == "verify_email":
            self.view = VerifyEmailView(self.content, self, route.params)
        elif route.name == "project":
            self._open_board(route.params["id"])
            return
        else:
            self.view = DashboardView(self.content, self, self.controller)
        self.view.pack(fill="both", expand=True)

    def _open_board(self, project_id: str):
        seq = self._nav_seq
        board = self.controller.open_board(project_id)
        self._show_loading("Loading project...")

        def loaded(ok):
            if seq != self._nav_seq:
                return
            if not ok:
                self.navigate(HOME)
                return
            self._clear_view()
            self.view = BoardView(self.content, self, board)
            self.view.pack(fill="both", expand=True)

        board.load(then=loaded)

    def destroy(self):
        self.session.unsubscribe(self._on_session_change)
        super().destroy()

    # ---------- session ----------
    def _on_session_change(self):
        user = self.session.user
        self.user_var.set((user.name or user.email) if user else "")
        count = self.session.unread_count
        self.bell_var.set(f"🔔 {count}" if count else "🔔")

    def _on_bell(self):
        NotificationPanel(self, self, self.session)

    def _on_sign_out(self):
        self.sign_out.state(["disabled"])

        def done(error):
            self.sign_out.state(["!disabled"])
            if error is not None:
                self.notify("error", "Failed to sign out")
                return
            self.notify("success", "Signed out successfully")
            self.navigate(SIGN_IN)

        self.session.logout(then=done)

    # ---------- sync ----------
    def _refresh(self):
        if not self.session.is_authenticated:
            return
        self.session.load_notifications()
        if isinstance(self.view, DashboardView):
            self.view.refresh()

    def _auto_sync(self):
        try:
            self._refresh()
        finally:
            self.after(SYNC_INTERVAL_MS, self._auto_sync)
