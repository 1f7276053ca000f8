from __future__ import annotations
import logging
import tkinter as tk
from tkinter import ttk
from typing import Optional
from urllib.parse import urlencode

from controller.router import HOME, SIGN_IN, SIGN_UP, VERIFY_EMAIL

logger = logging.getLogger(__name__)


class _Form(ttk.Frame):
    def __init__(self, parent, title: str, subtitle: str):
        super().__init__(parent, padding=24)
        self.columnconfigure(1, weight=1)
        ttk.Label(self, text=title, font=("TkDefaultFont", 16, "bold")).grid(row=0, column=0, columnspan=2, sticky="w")
        ttk.Label(self, text=subtitle).grid(row=1, column=0, columnspan=2, sticky="w", pady=(0, 12))
        self._row = 2

    def _field(self, label: str, show: str = "") -> ttk.Entry:
        ttk.Label(self, text=label).grid(row=self._row, column=0, sticky="w", pady=3)
        entry = ttk.Entry(self, show=show, width=36)
        entry.grid(row=self._row, column=1, sticky="we", pady=3)
        self._row += 1
        return entry

    def _actions(self) -> ttk.Frame:
        bar = ttk.Frame(self)
        bar.grid(row=self._row, column=0, columnspan=2, sticky="we", pady=(12, 0))
        self._row += 1
        return bar


class SignInView(_Form):
    def __init__(self, parent, window):
        super().__init__(parent, "Sign In", "Enter your email and password to sign in to your account")
        self.window = window
        self.email = self._field("Email")
        self.password = self._field("Password", show="*")
        bar = self._actions()
        self.submit = ttk.Button(bar, text="Sign In", command=self._on_submit)
        self.submit.pack(side="left")
        self.send_code = ttk.Button(bar, text="Email me a sign-in code", command=self._on_send_code)
        self.send_code.pack(side="left", padx=8)
        ttk.Button(bar, text="Create an account", command=lambda: window.navigate(SIGN_UP)).pack(side="right")
        self.password.bind("<Return>", self._on_submit)
        self.email.focus_set()
        self.otp_id = ""
        self.code: Optional[ttk.Entry] = None

    def _on_submit(self, event=None):
        self.submit.state(["disabled"])
        self.window.session.login(self.email.get().strip(), self.password.get(), then=self._signed_in)

    def _signed_in(self, error):
        if not self.winfo_exists():
            return
        if error is not None:
            self.window.notify("error", "Failed to sign in. Please check your credentials.")
            self.submit.state(["!disabled"])
            return
        self.window.notify("success", "Successfully signed in!")
        self.window.navigate(HOME)

    # ---- one-time code ----
    def _on_send_code(self):
        email = self.email.get().strip()
        if not email:
            self.window.notify("error", "Enter your email first")
            return
        self.send_code.state(["disabled"])
        self.window.session.request_magic_link(email, then=self._code_sent)

    def _code_sent(self, otp_id, error):
        if not self.winfo_exists():
            return
        self.send_code.state(["!disabled"])
        if error is not None:
            self.window.notify("error", "Failed to send sign-in code. Please try again.")
            return
        self.otp_id = otp_id
        self.window.notify("info", "Check your email for a sign-in code")
        if self.code is None:
            self.code = self._field("Code")
            bar = self._actions()
            ttk.Button(bar, text="Sign in with code", command=self._on_code).pack(side="left")
            self.code.bind("<Return>", lambda e: self._on_code())
        self.code.focus_set()

    def _on_code(self):
        code = self.code.get().strip()
        if not code:
            return
        self.window.navigate(f"{VERIFY_EMAIL}?{urlencode({'userId': self.otp_id, 'secret': code})}")


class SignUpView(_Form):
    def __init__(self, parent, window):
        super().__init__(parent, "Sign Up", "Create an account to get started")
        self.window = window
        self.name = self._field("Name")
        self.email = self._field("Email")
        self.password = self._field("Password", show="*")
        bar = self._actions()
        self.submit = ttk.Button(bar, text="Sign Up", command=self._on_submit)
        self.submit.pack(side="left")
        ttk.Button(bar, text="Already have an account?", command=lambda: window.navigate(SIGN_IN)).pack(side="right")
        self.name.focus_set()

    def _on_submit(self, event=None):
        self.submit.state(["disabled"])
        self.window.session.register(self.name.get().strip(), self.email.get().strip(), self.password.get(),
                                     then=self._registered)

    def _registered(self, error):
        if not self.winfo_exists():
            return
        if error is not None:
            self.window.notify("error", "Failed to create account. Please try again.")
            self.submit.state(["!disabled"])
            return
        self.window.notify("success", "Account created successfully!")
        self.window.navigate(SIGN_IN)


class VerifyEmailView(_Form):
    """Landing for a magic link: ``/verify-email?userId=<otp id>&secret=<code>``."""
    def __init__(self, parent, window, params):
        super().__init__(parent, "Email Verification", "Verifying your email...")
        self.window = window
        self.status = tk.StringVar(value="Please wait while we verify your email address...")
        ttk.Label(self, textvariable=self.status, wraplength=420).grid(row=self._row, column=0, columnspan=2, sticky="w")
        self._row += 1
        self.after(50, lambda: self._verify(params.get("userId"), params.get("secret")))

    def _verify(self, otp_id, code):
        if not otp_id or not code:
            logger.error("Missing userId or secret in verification link")
            self.status.set("Verification failed")
            self.window.notify("error", "Invalid verification link - missing parameters")
            return
        self.window.session.verify_magic_link(otp_id, code, then=self._verified)

    def _verified(self, error):
        if not self.winfo_exists():
            return
        if error is not None:
            self.status.set("Verification failed")
            if error.status in (400, 401):
                self.window.notify("error", "Verification link has expired or is invalid. "
                                            "Please request a new verification email.")
            else:
                self.window.notify("error", "Failed to verify your email. Please try again or contact support.")
            ttk.Button(self, text="Back to Sign In", command=lambda: self.window.navigate(SIGN_IN)).grid(
                row=self._row, column=0, sticky="w", pady=(12, 0))
            return
        self.status.set("Your email has been verified successfully. You will be redirected to the dashboard.")
        self.window.notify("success", "Email verified successfully!")
        self.after(2000, lambda: self.window.navigate(HOME))
