from __future__ import annotations
import tkinter as tk
from tkinter import ttk
from typing import Dict, Optional

from core.models import Task, TaskPriority, TaskStatus
from controller.board import BoardController, GestureTracker
from controller.forms import TaskDraft
from controller.mentions import MentionResolver
from controller.router import HOME
from gui.task_list import ScrollableTaskList

COLUMN_TITLES = {
    TaskStatus.NOT_STARTED: "Not Started",
    TaskStatus.ONGOING: "Ongoing",
    TaskStatus.COMPLETED: "Completed",
}


class TaskColumn(ttk.LabelFrame):
    """Drop target for one status; ``drop_status`` identifies it under the pointer."""
    def __init__(self, parent, status: TaskStatus, **list_kwargs):
        super().__init__(parent, text=COLUMN_TITLES[status], padding=4)
        self.drop_status = status
        self.task_list = ScrollableTaskList(self, **list_kwargs)
        self.task_list.pack(fill="both", expand=True)

    def show(self, tasks):
        self.configure(text=f"{COLUMN_TITLES[self.drop_status]} ({len(tasks)})")
        self.task_list.set_tasks(tasks)


class BoardView(ttk.Frame):
    def __init__(self, parent, window, board: BoardController):
        super().__init__(parent, padding=12)
        self.window = window
        self.board = board
        self.gesture = GestureTracker()
        self._pressed_task: Optional[str] = None
        self._overlay: Optional[tk.Toplevel] = None

        header = ttk.Frame(self)
        header.pack(fill="x", pady=(0, 10))
        ttk.Button(header, text="← Back to Projects", command=lambda: window.navigate(HOME)).pack(side="left")
        titles = ttk.Frame(header)
        titles.pack(side="left", padx=12)
        self.title_var = tk.StringVar()
        self.desc_var = tk.StringVar()
        ttk.Label(titles, textvariable=self.title_var, font=("TkDefaultFont", 16, "bold")).pack(anchor="w")
        ttk.Label(titles, textvariable=self.desc_var).pack(anchor="w")
        owner = board.is_owner
        if owner:
            # tasks createRule is owner-only
            ttk.Button(header, text="Add New Task", command=self._on_add).pack(side="right")

        cols = ttk.Frame(self)
        cols.pack(fill="both", expand=True)
        self.columns: Dict[TaskStatus, TaskColumn] = {}
        for i, status in enumerate(TaskStatus):
            col = TaskColumn(
                cols, status,
                # non-owners get no drag handlers at all
                draggable=owner,
                on_delete=self._on_delete if owner else None,
                on_press=self._on_press,
                on_motion=self._on_motion,
                on_release=self._on_release,
            )
            col.grid(row=0, column=i, sticky="nsew", padx=4)
            cols.columnconfigure(i, weight=1, uniform="cols")
            self.columns[status] = col
        cols.rowconfigure(0, weight=1)

        board.on_change = self.render
        self.render()

    def render(self):
        if self.board.project:
            self.title_var.set(self.board.project.name)
            self.desc_var.set(self.board.project.description)
        for status, col in self.columns.items():
            col.show(self.board.tasks_by_status(status))

    def destroy(self):
        if self.board.on_change == self.render:
            self.board.on_change = None
        self._drop_overlay()
        super().destroy()

    # ---------- drag and drop ----------
    def _on_press(self, task_id: str, event):
        # Tk has no touch events; touchscreens arrive as emulated Button-1
        # presses, so only the pointer path of the tracker is reachable here.
        self._pressed_task = task_id
        self.gesture.press(event.x_root, event.y_root, event.time, "pointer")

    def _on_motion(self, task_id: str, event):
        if self.gesture.move(event.x_root, event.y_root, event.time):
            task = self.board.begin_drag(task_id)
            if task is not None:
                self._show_overlay(task)
        if self._overlay is not None:
            self._overlay.geometry(f"+{event.x_root + 12}+{event.y_root + 12}")

    def _on_release(self, task_id: str, event):
        was_drag = self.gesture.release()
        self._drop_overlay()
        if not was_drag or self._pressed_task != task_id:
            self.board.cancel_drag()
            return
        self._pressed_task = None
        column = self._column_at(event.x_root, event.y_root)
        if column is None:
            self.board.cancel_drag()
            self.render()
            return
        # the board re-renders through on_change
        self.board.complete_drag(task_id, column.drop_status.value)

    def _column_at(self, x: int, y: int) -> Optional[TaskColumn]:
        widget = self.winfo_containing(x, y)
        while widget is not None:
            if isinstance(widget, TaskColumn):
                return widget
            widget = widget.master
        return None

    def _show_overlay(self, task: Task):
        self._drop_overlay()
        top = tk.Toplevel(self)
        top.overrideredirect(True)
        top.attributes("-alpha", 0.85)
        tk.Label(top, text=task.title, bg="#F8FAFC", relief="solid", borderwidth=1, padx=8, pady=6).pack()
        self._overlay = top

    def _drop_overlay(self):
        if self._overlay is not None:
            self._overlay.destroy()
            self._overlay = None

    # ---------- actions ----------
    def _on_delete(self, task_id: str):
        self.board.delete_task(task_id)

    def _on_add(self):
        NewTaskDialog(self, self.board)


class NewTaskDialog(tk.Toplevel):
    """'Create New Task' form; assignee fields resolve @-mentions."""
    def __init__(self, parent, board: BoardController):
        super().__init__(parent)
        self.title("Create New Task")
        self.transient(parent.winfo_toplevel())
        self.board = board
        self.draft = TaskDraft()
        self.mentions = MentionResolver(board.users)

        body = ttk.Frame(self, padding=12)
        body.pack(fill="both", expand=True)
        body.columnconfigure(1, weight=1)
        ttk.Label(body, text="Add a new task to your project").grid(row=0, column=0, columnspan=2, sticky="w")

        self.title_entry = self._labeled(body, 1, "Task Title", ttk.Entry(body, width=44))
        self.desc_entry = self._labeled(body, 2, "Description", ttk.Entry(body, width=44))
        self.due_entry = self._labeled(body, 3, "Due Date", ttk.Entry(body, width=14))
        self.due_entry.insert(0, self.draft.due_date)
        self.priority_var = tk.StringVar(value=self.draft.priority.value)
        self._labeled(body, 4, "Priority", ttk.Combobox(body, textvariable=self.priority_var, state="readonly",
                                                       values=[p.value for p in TaskPriority], width=12))

        ttk.Label(body, text="Assignees (Type @ to mention users)").grid(row=5, column=0, columnspan=2,
                                                                      sticky="w", pady=(8, 2))
        self.assignee_frame = ttk.Frame(body)
        self.assignee_frame.grid(row=6, column=0, columnspan=2, sticky="we")
        self.assignee_frame.columnconfigure(0, weight=1)
        self.assignee_entries = []
        self._picking = False
        self.dropdown = tk.Listbox(self.assignee_frame, height=5)
        self.dropdown.bind("<<ListboxSelect>>", self._on_pick)
        self._render_assignees()

        self.submit = ttk.Button(body, text="Create Task", command=self._submit)
        self.submit.grid(row=7, column=1, sticky="e", pady=(10, 0))
        self.title_entry.focus_set()
        self.grab_set()

    def _labeled(self, body, row, text, widget):
        ttk.Label(body, text=text).grid(row=row, column=0, sticky="w", pady=3)
        widget.grid(row=row, column=1, sticky="w", pady=3)
        return widget

    def _render_assignees(self):
        """Rebuild the assignee rows from the draft."""
        for entry, button, _ in self.assignee_entries:
            entry.destroy()
            button.destroy()
        self.assignee_entries = []
        self.dropdown.grid_forget()
        last = len(self.draft.assignees) - 1
        for i, value in enumerate(self.draft.assignees):
            var = tk.StringVar(value=value)
            entry = ttk.Entry(self.assignee_frame, textvariable=var)
            entry.grid(row=i * 2, column=0, sticky="we", pady=2)
            var.trace_add("write", lambda *_, idx=i, v=var: self._on_assignee_input(idx, v.get()))
            if i == last:
                button = ttk.Button(self.assignee_frame, text="+", width=3, command=self._add_field)
            else:
                button = ttk.Button(self.assignee_frame, text="-", width=3,
                                    command=lambda idx=i: self._remove_field(idx))
            button.grid(row=i * 2, column=1, padx=(4, 0))
            self.assignee_entries.append((entry, button, var))

    def _sync_draft(self):
        if self.assignee_entries:
            self.draft.assignees = [e.get() for e, _, _ in self.assignee_entries]

    def _add_field(self):
        self._sync_draft()
        self.draft.add_assignee()
        self._render_assignees()

    def _remove_field(self, index: int):
        self._sync_draft()
        self.draft.remove_assignee(index)
        self._render_assignees()

    def _on_assignee_input(self, index: int, value: str):
        if self._picking:
            return
        state = self.mentions.on_input(index, value)
        self.dropdown.grid_forget()
        if not state.visible:
            return
        self.dropdown.delete(0, "end")
        for user in state.matches:
            self.dropdown.insert("end", f"{user.name} <{user.email}>")
        self.dropdown.grid(row=index * 2 + 1, column=0, sticky="we")

    def _on_pick(self, _event):
        sel = self.dropdown.curselection()
        state = self.mentions.state
        if not sel or not state.visible:
            return
        user = state.matches[sel[0]]
        entry = self.assignee_entries[state.index][0]
        value = self.mentions.select(entry.get(), user)
        self._picking = True
        try:
            entry.delete(0, "end")
            entry.insert(0, value)
        finally:
            self._picking = False
        self.dropdown.grid_forget()

    def _submit(self):
        self._sync_draft()
        self.draft.title = self.title_entry.get()
        self.draft.description = self.desc_entry.get()
        self.draft.due_date = self.due_entry.get().strip()
        self.draft.priority = TaskPriority.from_str(self.priority_var.get())
        self.submit.state(["disabled"])
        self.board.create_task(self.draft, then=self._created)

    def _created(self, task):
        if not self.winfo_exists():
            return
        if task is not None:
            self.destroy()
        else:
            self.submit.state(["!disabled"])
