from __future__ import annotations
import tkinter as tk
from tkinter import ttk, messagebox as mb

from controller.app_controller import AppController, ProjectSummary
from controller.forms import ProjectDraft
from controller.router import project_path

COLUMNS = 3


class DashboardView(ttk.Frame):
    """'My Projects': one card per project with its column counts."""
    def __init__(self, parent, window, controller: AppController):
        super().__init__(parent, padding=12)
        self.window = window
        self.controller = controller

        header = ttk.Frame(self)
        header.pack(fill="x", pady=(0, 10))
        ttk.Label(header, text="My Projects", font=("TkDefaultFont", 16, "bold")).pack(side="left")
        ttk.Button(header, text="Create New Project", command=self._on_create).pack(side="right")

        self.grid_frame = ttk.Frame(self)
        self.grid_frame.pack(fill="both", expand=True)
        for c in range(COLUMNS):
            self.grid_frame.columnconfigure(c, weight=1, uniform="cards")
        self.refresh()

    def refresh(self):
        self.controller.load_projects(then=self._show)

    def _show(self, summaries):
        if not self.winfo_exists():
            return
        for child in self.grid_frame.winfo_children():
            child.destroy()
        if not summaries:
            ttk.Label(self.grid_frame, text="You don't have any projects yet").grid(row=0, column=0, sticky="w")
            return
        for i, s in enumerate(summaries):
            self._card(s).grid(row=i // COLUMNS, column=i % COLUMNS, sticky="nsew", padx=6, pady=6)

    def _card(self, s: ProjectSummary) -> ttk.Frame:
        card = ttk.Frame(self.grid_frame, padding=10, relief="ridge", borderwidth=1)
        ttk.Label(card, text=s.project.name, font=("TkDefaultFont", 12, "bold")).pack(anchor="w")
        if s.project.description:
            ttk.Label(card, text=s.project.description, wraplength=280).pack(anchor="w", pady=(2, 4))
        c = s.counts
        ttk.Label(card, text=f"{c.total} tasks · {c.not_started} not started · "
                             f"{c.ongoing} ongoing · {c.completed} completed").pack(anchor="w")
        if not s.is_owner:
            ttk.Label(card, text="Shared with you", foreground="#1D4ED8").pack(anchor="w")
        bar = ttk.Frame(card)
        bar.pack(fill="x", pady=(8, 0))
        ttk.Button(bar, text="Open", command=lambda: self.window.navigate(project_path(s.project.id))).pack(side="left")
        if s.is_owner:
            ttk.Button(bar, text="Delete", command=lambda: self._on_delete(s)).pack(side="right")
        return card

    def _on_create(self):
        ProjectDialog(self, self._create)

    def _create(self, draft: ProjectDraft, finished):
        def created(summary):
            finished(summary is not None)
            if summary is not None and self.winfo_exists():
                self.refresh()
        self.controller.create_project(draft, then=created)

    def _on_delete(self, s: ProjectSummary):
        if not mb.askyesno("Delete project", f"Delete \"{s.project.name}\" and all of its tasks?"):
            return
        def deleted(ok):
            if ok and self.winfo_exists():
                self.refresh()
        self.controller.delete_project(s.project.id, then=deleted)


class ProjectDialog(tk.Toplevel):
    def __init__(self, parent, on_submit):
        super().__init__(parent)
        self.title("Create New Project")
        self.transient(parent.winfo_toplevel())
        self.on_submit = on_submit
        body = ttk.Frame(self, padding=12)
        body.pack(fill="both", expand=True)
        ttk.Label(body, text="Add a new project to your workspace").grid(row=0, column=0, columnspan=2, sticky="w")
        ttk.Label(body, text="Project Name").grid(row=1, column=0, sticky="w", pady=3)
        self.name = ttk.Entry(body, width=40)
        self.name.grid(row=1, column=1, pady=3)
        ttk.Label(body, text="Description").grid(row=2, column=0, sticky="w", pady=3)
        self.description = ttk.Entry(body, width=40)
        self.description.grid(row=2, column=1, pady=3)
        self.submit = ttk.Button(body, text="Create Project", command=self._submit)
        self.submit.grid(row=3, column=1, sticky="e", pady=(10, 0))
        self.name.bind("<Return>", lambda e: self._submit())
        self.name.focus_set()
        self.grab_set()

    def _submit(self):
        self.submit.state(["disabled"])
        draft = ProjectDraft(name=self.name.get(), description=self.description.get())
        self.on_submit(draft, self._finished)

    def _finished(self, ok: bool):
        if not self.winfo_exists():
            return
        if ok:
            self.destroy()
        else:
            self.submit.state(["!disabled"])
