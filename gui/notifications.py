from __future__ import annotations
import tkinter as tk
from tkinter import ttk

from core.models import NotificationType
from controller.router import project_path
from controller.session import SessionState

ICONS = {
    NotificationType.TASK_ASSIGNED: "🔔",
    NotificationType.TASK_UPDATED: "📝",
    NotificationType.PROJECT_SHARED: "👥",
}


class NotificationPanel(tk.Toplevel):
    """Drop-down list of the session's notifications."""
    def __init__(self, parent, window, session: SessionState):
        super().__init__(parent)
        self.title("Notifications")
        self.transient(parent.winfo_toplevel())
        self.window = window
        self.session = session

        header = ttk.Frame(self, padding=(10, 8))
        header.pack(fill="x")
        ttk.Label(header, text="Notifications", font=("TkDefaultFont", 12, "bold")).pack(side="left")
        self.mark_all = ttk.Button(header, text="Mark all as read", command=self.session.mark_all_notifications_read)
        self.mark_all.pack(side="right")
        ttk.Separator(self).pack(fill="x")

        self.body = ttk.Frame(self, padding=8)
        self.body.pack(fill="both", expand=True)
        session.subscribe(self.render)
        self.bind("<Escape>", lambda e: self.destroy())
        self.render()

    def destroy(self):
        self.session.unsubscribe(self.render)
        super().destroy()

    def render(self):
        for child in self.body.winfo_children():
            child.destroy()
        if self.session.unread_count > 0:
            self.mark_all.pack(side="right")
        else:
            self.mark_all.pack_forget()
        if not self.session.notifications:
            ttk.Label(self.body, text="No notifications").pack(pady=12)
            return
        for n in self.session.notifications:
            row = ttk.Frame(self.body, padding=4)
            row.pack(fill="x")
            icon = ICONS.get(n.type, "📌")
            title = ttk.Label(row, text=f"{icon} {n.title}", font=("TkDefaultFont", 10, "normal" if n.is_read else "bold"))
            title.pack(anchor="w")
            msg = ttk.Label(row, text=n.message, wraplength=320)
            msg.pack(anchor="w")
            ttk.Label(row, text=(n.created_at or "")[:19].replace("T", " "), foreground="#888888").pack(anchor="w")
            for w in (row, title, msg):
                w.bind("<Button-1>", lambda e, nid=n.id, pid=n.project_id: self._on_click(nid, pid))

    def _on_click(self, notification_id: str, project_id):
        self.session.mark_notification_read(notification_id)
        if project_id:
            self.destroy()
            self.window.navigate(project_path(project_id))
