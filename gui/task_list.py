"""
Scrollable column of task cards for Tkinter
-------------------------------------------
Each task is rendered as its own card (a Frame) inside a scrollable Canvas,
with:
- the title and an optional description
- colored tags (priority, due date, assignees)
- the creation time
- a Delete button (owner only)

The widget is view-only state: drag gestures and deletes are reported through
callbacks and the owner re-renders with ``set_tasks()``.
"""
from __future__ import annotations
from typing import Callable, Dict, List, Optional, Tuple
import datetime as dt
import tkinter as tk
from tkinter import ttk

from core.models import Task, TaskPriority, TaskStatus

PRIORITY_COLORS = {
    TaskPriority.HIGH: "#FECACA",
    TaskPriority.MEDIUM: "#FEF08A",
    TaskPriority.LOW: "#BBF7D0",
}
ASSIGNEE_COLOR = "#BFDBFE"
DUE_COLOR = "#CBD5E1"
OVERDUE_COLOR = "#B00020"

# (task_id, event) callbacks used for drag gestures
GestureCallback = Callable[[str, tk.Event], None]

WHEEL_EVENTS = ("<MouseWheel>", "<Button-4>", "<Button-5>")


def task_tags(task: Task, today: Optional[dt.date] = None) -> List[Tuple[str, str]]:
    """Label/color pairs shown under a task title."""
    today = today or dt.date.today()
    tags = [(task.priority.value, PRIORITY_COLORS.get(task.priority, "#E5E7EB"))]
    if task.due_date:
        try:
            d = dt.date.fromisoformat(task.due_date)
            overdue = d < today and task.status is not TaskStatus.COMPLETED
            tags.append((f"Due {d.isoformat()}", OVERDUE_COLOR if overdue else DUE_COLOR))
        except ValueError:
            tags.append((task.due_date, DUE_COLOR))
    for email in task.assignees:
        tags.append((email, ASSIGNEE_COLOR))
    return tags


def created_ago(stamp: Optional[str], now: Optional[dt.datetime] = None) -> str:
    """'Created 3 hours ago' style text."""
    if not stamp:
        return ""
    try:
        when = dt.datetime.fromisoformat(stamp.replace("Z", "+00:00"))
    except ValueError:
        return "Invalid date"
    if when.tzinfo is None:
        when = when.replace(tzinfo=dt.timezone.utc)
    now = now or dt.datetime.now(dt.timezone.utc)
    secs = int((now - when).total_seconds())
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if secs >= size:
            n = secs // size
            return f"Created {n} {unit}{'s' if n != 1 else ''} ago"
    return "Created just now"


class TaskCard(ttk.Frame):
    """One task card; drag handlers are only bound when ``draggable``."""
    def __init__(
        self,
        master,
        task: Task,
        draggable: bool = False,
        on_delete: Optional[Callable[[str], None]] = None,
        on_press: Optional[GestureCallback] = None,
        on_motion: Optional[GestureCallback] = None,
        on_release: Optional[GestureCallback] = None,
        wrap: int = 260,
    ):
        super().__init__(master, padding=6, relief="ridge", borderwidth=1)
        self.task_id = task.id
        self.columnconfigure(0, weight=1)

        self.lbl = ttk.Label(self, text=task.title, wraplength=wrap, anchor="w", justify="left",
                             style="Card.Title.TLabel")
        self.lbl.grid(row=0, column=0, sticky="we")
        if task.description:
            ttk.Label(self, text=task.description, wraplength=wrap, justify="left").grid(
                row=1, column=0, sticky="we", pady=(2, 0))

        self.tag_container = ttk.Frame(self)
        self.tag_container.grid(row=2, column=0, sticky="w", pady=(4, 2))
        self._render_tags(task_tags(task))

        footer = ttk.Frame(self)
        footer.grid(row=3, column=0, sticky="we")
        ttk.Label(footer, text=created_ago(task.created_at), style="Card.Muted.TLabel").pack(side="left")
        if on_delete is not None:
            ttk.Button(footer, text="Delete", width=7,
                       command=lambda: on_delete(self.task_id)).pack(side="right")

        if draggable:
            for widget in (self, self.lbl, self.tag_container):
                widget.bind("<ButtonPress-1>", lambda e: on_press and on_press(self.task_id, e))
                widget.bind("<B1-Motion>", lambda e: on_motion and on_motion(self.task_id, e))
                widget.bind("<ButtonRelease-1>", lambda e: on_release and on_release(self.task_id, e))
            self.configure(cursor="fleur")

    def _render_tags(self, tags: List[Tuple[str, str]]):
        for label, color in tags:
            # tk.Label allows a background color without ttk style plumbing
            tk.Label(
                self.tag_container,
                text=label,
                bg=color,
                fg=_ideal_text_color(color),
                padx=4,
                pady=1,
                borderwidth=0,
                relief="flat",
            ).pack(side="left", padx=(0, 4))


class ScrollableTaskList(ttk.Frame):
    """Canvas + interior Frame pattern with mousewheel support."""
    def __init__(
        self,
        master,
        draggable: bool = False,
        on_delete: Optional[Callable[[str], None]] = None,
        on_press: Optional[GestureCallback] = None,
        on_motion: Optional[GestureCallback] = None,
        on_release: Optional[GestureCallback] = None,
        card_wrap: int = 260,
        card_padding: Tuple[int, int] = (3, 3),
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._draggable = draggable
        self._on_delete = on_delete
        self._on_press = on_press
        self._on_motion = on_motion
        self._on_release = on_release
        self._card_wrap = card_wrap
        self._card_padding = card_padding
        self._cards: Dict[str, TaskCard] = {}

        style = ttk.Style(self)
        style.configure("Card.Title.TLabel", font=("TkDefaultFont", 10, "bold"))
        style.configure("Card.Muted.TLabel", foreground="#888888")

        self.canvas = tk.Canvas(self, highlightthickness=0, width=card_wrap + 30)
        self.vbar = ttk.Scrollbar(self, orient="vertical", command=self.canvas.yview)
        self.canvas.configure(yscrollcommand=self.vbar.set)

        self.canvas.grid(row=0, column=0, sticky="nsew")
        self.vbar.grid(row=0, column=1, sticky="ns")
        self.rowconfigure(0, weight=1)
        self.columnconfigure(0, weight=1)

        self.interior = ttk.Frame(self.canvas)
        self._win_id = self.canvas.create_window(0, 0, window=self.interior, anchor="nw")
        self._empty = ttk.Label(self.interior, text="No tasks in this column", style="Card.Muted.TLabel")

        self.interior.bind("<Configure>", self._on_interior_configure)
        self.canvas.bind("<Configure>", self._on_canvas_configure)
        self.canvas.bind("<Enter>", lambda e: self._bind_mousewheel())
        self.canvas.bind("<Leave>", lambda e: self._unbind_mousewheel())

    # --- Public API ---
    def set_tasks(self, tasks: List[Task]):
        """Replace all cards."""
        for card in list(self._cards.values()):
            card.destroy()
        self._cards.clear()
        self._empty.grid_forget()

        for i, task in enumerate(tasks):
            card = TaskCard(
                self.interior,
                task,
                draggable=self._draggable,
                on_delete=self._on_delete,
                on_press=self._on_press,
                on_motion=self._on_motion,
                on_release=self._on_release,
                wrap=self._card_wrap,
            )
            card.grid(row=i, column=0, sticky="we", padx=(4, 4), pady=self._card_padding)
            self._cards[task.id] = card
        if not tasks:
            self._empty.grid(row=0, column=0, padx=8, pady=12)
        self.interior.columnconfigure(0, weight=1)
        self._update_scrollregion()

    # --- Internals ---
    def _update_scrollregion(self):
        self.update_idletasks()
        self.canvas.configure(scrollregion=self.canvas.bbox("all"))

    def _on_interior_configure(self, _):
        self._update_scrollregion()

    def _on_canvas_configure(self, event):
        # keep interior width synced to canvas for wrapping
        self.canvas.itemconfigure(self._win_id, width=event.width)

    def _bind_mousewheel(self):
        for seq in WHEEL_EVENTS:
            self.canvas.bind_all(seq, self._on_wheel)

    def _unbind_mousewheel(self):
        for seq in WHEEL_EVENTS:
            self.canvas.unbind_all(seq)

    def _on_wheel(self, event):
        # X11 sends buttons 4/5; Windows and macOS send a delta (120 per notch on Windows)
        if event.num == 4:
            step = -1
        elif event.num == 5:
            step = 1
        else:
            step = -1 if event.delta > 0 else 1
        self.canvas.yview_scroll(step, "units")


def _ideal_text_color(bg_hex: str) -> str:
    """Return black or white depending on background brightness."""
    bg_hex = bg_hex.strip().lstrip('#')
    if len(bg_hex) == 3:
        bg_hex = ''.join(c*2 for c in bg_hex)
    try:
        r = int(bg_hex[0:2], 16)
        g = int(bg_hex[2:4], 16)
        b = int(bg_hex[4:6], 16)
    except ValueError:
        return "black"
    # perceived luminance
    luminance = 0.299*r + 0.587*g + 0.114*b
    return "black" if luminance > 186 else "white"
