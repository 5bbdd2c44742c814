"""Tkinter based desktop window for bulk uploading leads."""
from __future__ import annotations

import logging
import queue
from concurrent.futures import ThreadPoolExecutor
import tkinter as tk
from tkinter import filedialog, messagebox, ttk
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..api import LeadAPIClient, error_message
from ..config import ConfigurationError, UploaderSettings, resolve_settings
from ..factory import build_client, build_upload_session
from ..ingestion import export_error_details, write_template
from ..models import UploadResult, User
from ..upload import ProgressPhase, SelectionError, SessionState, UploadSession
from ..upload.session import PreviewRow

LOGGER = logging.getLogger(__name__)

PREVIEW_COLUMNS = ("sheet", "name", "phone", "mandal", "state")
ERROR_COLUMNS = ("sheet", "row", "error")


class TkScheduler:
    """Runs progress timers on the Tk event loop so they never touch widgets from another thread."""

    def __init__(self, root: tk.Misc) -> None:
        self._root = root

    def call_later(self, delay: float, callback: Callable[[], None]) -> "_TkTimer":
        return _TkTimer(self._root, self._root.after(int(delay * 1000), callback))


class _TkTimer:
    def __init__(self, root: tk.Misc, after_id: str) -> None:
        self._root = root
        self._after_id: Optional[str] = after_id

    def cancel(self) -> None:
        if self._after_id is not None:
            try:
                self._root.after_cancel(self._after_id)
            except tk.TclError:  # pragma: no cover - window already destroyed
                pass
            self._after_id = None


def format_upload_button_label(is_uploading: bool, progress: float, file_name: Optional[str]) -> str:
    if is_uploading:
        return f"Uploading… {min(100, max(5, round(progress)))}%"
    return f"Upload {file_name or 'File'}"


def format_progress_caption(phase: ProgressPhase, progress: float) -> str:
    if progress <= 0:
        return ""
    label = "Processing file…" if phase is ProgressPhase.RISING else "Finalizing results…"
    return f"{label} {min(100, max(1, round(progress)))}%"


def summarise_result(result: UploadResult) -> List[Tuple[str, str]]:
    """Label/value pairs for the result tiles and optional details."""

    summary = [
        ("Total", str(result.total)),
        ("Success", str(result.success)),
        ("Errors", str(result.errors)),
    ]
    if result.duration_ms is not None:
        summary.append(("Duration", f"{result.duration_ms / 1000:.1f}s"))
    if result.sheets_processed:
        summary.append(("Sheets processed", ", ".join(result.sheets_processed)))
    return summary


def error_table_rows(result: UploadResult) -> List[Tuple[str, str, str]]:
    return [(detail.sheet or "—", str(detail.row), detail.error) for detail in result.error_details]


def preview_table_rows(rows: Iterable[PreviewRow]) -> List[Tuple[str, ...]]:
    return [
        (sheet, lead.display_name(), lead.phone or "", lead.mandal or "", lead.state or "")
        for sheet, lead in rows
    ]


class SheetSelectionFrame(ttk.LabelFrame):
    """Checkboxes for choosing which worksheets of a workbook to import."""

    def __init__(self, master: tk.Misc, on_toggle: Callable[[str], None], on_select_all: Callable[[], None], on_clear_all: Callable[[], None]) -> None:
        super().__init__(master, text="2. Worksheets")
        self._on_toggle = on_toggle
        self.variables: Dict[str, tk.BooleanVar] = {}
        self.checkbuttons: Dict[str, ttk.Checkbutton] = {}
        self.warning_var = tk.StringVar()

        buttons = ttk.Frame(self)
        buttons.grid(row=0, column=0, sticky="w", padx=4, pady=4)
        self.select_all_button = ttk.Button(buttons, text="Select All", command=on_select_all)
        self.select_all_button.pack(side="left", padx=(0, 4))
        self.clear_all_button = ttk.Button(buttons, text="Clear All", command=on_clear_all)
        self.clear_all_button.pack(side="left")

        self.sheet_container = ttk.Frame(self)
        self.sheet_container.grid(row=1, column=0, sticky="ew", padx=4, pady=4)
        ttk.Label(self, textvariable=self.warning_var, foreground="#B45309").grid(row=2, column=0, sticky="w", padx=4)
        self.columnconfigure(0, weight=1)

    # ------------------------------------------------------------------
    def set_sheets(self, sheet_names: Sequence[str], selected: Iterable[str]) -> None:
        for child in self.sheet_container.winfo_children():
            child.destroy()
        self.variables.clear()
        self.checkbuttons.clear()
        chosen = set(selected)
        for index, sheet in enumerate(sheet_names):
            variable = tk.BooleanVar(value=sheet in chosen)
            button = ttk.Checkbutton(
                self.sheet_container,
                text=sheet,
                variable=variable,
                command=lambda name=sheet: self._on_toggle(name),
            )
            button.grid(row=index // 4, column=index % 4, sticky="w", padx=4, pady=2)
            self.variables[sheet] = variable
            self.checkbuttons[sheet] = button

    # ------------------------------------------------------------------
    def sync(self, selected: Iterable[str], warning: Optional[str], enabled: bool) -> None:
        chosen = set(selected)
        for sheet, variable in self.variables.items():
            variable.set(sheet in chosen)
        state = "!disabled" if enabled else "disabled"
        for button in self.checkbuttons.values():
            button.state([state])
        self.select_all_button.state(["!disabled" if enabled and self.variables else "disabled"])
        self.clear_all_button.state(["!disabled" if enabled and chosen else "disabled"])
        self.warning_var.set(warning or "")


class BulkUploadApp:
    """Main application window."""

    def __init__(self, root: tk.Tk, settings: Optional[UploaderSettings] = None) -> None:
        self.root = root
        self.root.title("Bulk Upload Leads")
        self.root.geometry("1024x760")
        self.root.minsize(900, 640)

        self.settings = settings or self._load_settings()
        self.client: LeadAPIClient = build_client(self.settings)
        self.client.session.on_logout(lambda: self.event_queue.put(("logged_out",)))
        self.session: UploadSession = build_upload_session(self.settings, self.client, scheduler=TkScheduler(root))
        self.event_queue: "queue.Queue[tuple]" = queue.Queue()
        self._executor = ThreadPoolExecutor(max_workers=1)

        self.source_var = tk.StringVar(value=self.session.source)
        self.file_var = tk.StringVar()
        self.error_var = tk.StringVar()
        self.notice_var = tk.StringVar()
        self.status_var = tk.StringVar(value="Choose an Excel or CSV file to begin")
        self.progress_var = tk.DoubleVar(value=0.0)
        self.progress_caption_var = tk.StringVar()
        self.upload_label_var = tk.StringVar(value=format_upload_button_label(False, 0, None))
        self.result_vars: Dict[str, tk.StringVar] = {}

        self._build_layout()
        self.session.subscribe(lambda _state: self.refresh())
        self.session.progress.subscribe(self._on_progress)
        self.root.protocol("WM_DELETE_WINDOW", self.on_close)
        self.root.after(100, self._poll_queue)
        self._check_current_user()
        self.refresh()

    # ------------------------------------------------------------------
    def _build_layout(self) -> None:
        container = ttk.Frame(self.root, padding=12)
        container.pack(fill="both", expand=True)
        container.columnconfigure(0, weight=1)

        self._build_file_section(container)
        self.sheet_frame = SheetSelectionFrame(
            container,
            on_toggle=self.toggle_sheet,
            on_select_all=self.select_all_sheets,
            on_clear_all=self.clear_all_sheets,
        )
        self.sheet_frame.grid(row=1, column=0, sticky="ew", pady=(12, 0))
        self._build_preview_section(container)
        self._build_upload_section(container)
        self._build_results_section(container)

    # ------------------------------------------------------------------
    def _build_file_section(self, parent: ttk.Frame) -> None:
        frame = ttk.LabelFrame(parent, text="1. Upload file")
        frame.grid(row=0, column=0, sticky="ew")
        frame.columnconfigure(1, weight=1)

        ttk.Label(frame, text="Source").grid(row=0, column=0, padx=4, pady=4, sticky="w")
        ttk.Entry(frame, textvariable=self.source_var).grid(row=0, column=1, columnspan=2, padx=4, pady=4, sticky="ew")

        ttk.Label(frame, text="File (Excel or CSV)").grid(row=1, column=0, padx=4, pady=4, sticky="w")
        ttk.Entry(frame, textvariable=self.file_var, state="readonly").grid(row=1, column=1, padx=4, pady=4, sticky="ew")
        self.browse_button = ttk.Button(frame, text="Choose File", command=self.browse_file)
        self.browse_button.grid(row=1, column=2, padx=4, pady=4)

        templates = ttk.Frame(frame)
        templates.grid(row=2, column=0, columnspan=3, sticky="w", padx=4, pady=4)
        ttk.Button(templates, text="Download CSV Template", command=lambda: self.save_template(".csv")).pack(side="left", padx=(0, 4))
        ttk.Button(templates, text="Download Excel Template", command=lambda: self.save_template(".xlsx")).pack(side="left")

        ttk.Label(frame, textvariable=self.error_var, foreground="#B91C1C").grid(row=3, column=0, columnspan=3, sticky="w", padx=4)
        ttk.Label(frame, textvariable=self.notice_var, foreground="#1D4ED8").grid(row=4, column=0, columnspan=3, sticky="w", padx=4)

    # ------------------------------------------------------------------
    def _build_preview_section(self, parent: ttk.Frame) -> None:
        frame = ttk.LabelFrame(parent, text=f"3. Preview (first {self.settings.preview_limit} rows)")
        frame.grid(row=2, column=0, sticky="nsew", pady=(12, 0))
        frame.columnconfigure(0, weight=1)

        self.preview_tree = ttk.Treeview(frame, columns=PREVIEW_COLUMNS, show="headings", height=6)
        for column in PREVIEW_COLUMNS:
            self.preview_tree.heading(column, text=column.title())
            self.preview_tree.column(column, anchor="w")
        self.preview_tree.grid(row=0, column=0, sticky="nsew", padx=4, pady=4)

        scrollbar = ttk.Scrollbar(frame, orient="vertical", command=self.preview_tree.yview)
        self.preview_tree.configure(yscrollcommand=scrollbar.set)
        scrollbar.grid(row=0, column=1, sticky="ns")

    # ------------------------------------------------------------------
    def _build_upload_section(self, parent: ttk.Frame) -> None:
        frame = ttk.LabelFrame(parent, text="4. Upload")
        frame.grid(row=3, column=0, sticky="ew", pady=(12, 0))
        frame.columnconfigure(0, weight=1)

        self.upload_button = ttk.Button(frame, textvariable=self.upload_label_var, command=self.start_upload)
        self.upload_button.grid(row=0, column=0, sticky="w", padx=4, pady=4)

        progress = ttk.Progressbar(frame, maximum=100, variable=self.progress_var)
        progress.grid(row=1, column=0, sticky="ew", padx=4, pady=4)
        ttk.Label(frame, textvariable=self.progress_caption_var).grid(row=2, column=0, sticky="w", padx=4)
        ttk.Label(frame, textvariable=self.status_var).grid(row=3, column=0, sticky="w", padx=4, pady=4)

    # ------------------------------------------------------------------
    def _build_results_section(self, parent: ttk.Frame) -> None:
        frame = ttk.LabelFrame(parent, text="5. Upload results")
        frame.grid(row=4, column=0, sticky="nsew", pady=(12, 0))
        frame.columnconfigure(0, weight=1)
        frame.rowconfigure(1, weight=1)
        parent.rowconfigure(4, weight=1)

        tiles = ttk.Frame(frame)
        tiles.grid(row=0, column=0, sticky="ew", padx=4, pady=4)
        for index, label in enumerate(("Total", "Success", "Errors", "Duration", "Sheets processed")):
            variable = tk.StringVar(value="—")
            ttk.Label(tiles, text=label).grid(row=0, column=index, padx=8, sticky="w")
            ttk.Label(tiles, textvariable=variable, font=("TkDefaultFont", 12, "bold")).grid(row=1, column=index, padx=8, sticky="w")
            self.result_vars[label] = variable

        self.errors_tree = ttk.Treeview(frame, columns=ERROR_COLUMNS, show="headings", height=6)
        for column, heading in zip(ERROR_COLUMNS, ["Sheet", "Row", "Error"]):
            self.errors_tree.heading(column, text=heading)
            self.errors_tree.column(column, anchor="w")
        self.errors_tree.grid(row=1, column=0, sticky="nsew", padx=4, pady=4)

        scroll = ttk.Scrollbar(frame, orient="vertical", command=self.errors_tree.yview)
        self.errors_tree.configure(yscrollcommand=scroll.set)
        scroll.grid(row=1, column=1, sticky="ns")

        btn_bar = ttk.Frame(frame)
        btn_bar.grid(row=2, column=0, sticky="w", padx=4, pady=4)
        self.export_button = ttk.Button(btn_bar, text="Export errors", command=self.export_errors)
        self.export_button.pack(side="left", padx=(0, 4))
        ttk.Button(btn_bar, text="Start over", command=self.start_over).pack(side="left")

    # ------------------------------------------------------------------
    def browse_file(self) -> None:
        path = filedialog.askopenfilename(
            filetypes=[("Spreadsheets", "*.xlsx *.xls *.csv"), ("Excel", "*.xlsx *.xls"), ("CSV", "*.csv")]
        )
        if not path:
            return
        self.file_var.set(path)
        ticket = self.session.start_inspection(path)
        self.status_var.set("Analyzing workbook… please wait.")

        def worker() -> None:
            try:
                inspection = self.client.inspect_bulk_upload(path)
            except Exception as exc:  # pragma: no cover - GUI surface
                self.event_queue.put(("inspect_failed", ticket, exc))
                return
            self.event_queue.put(("inspected", ticket, inspection))

        self._executor.submit(worker)

    # ------------------------------------------------------------------
    def toggle_sheet(self, name: str) -> None:
        self.session.toggle_sheet(name)
        self.refresh()

    def select_all_sheets(self) -> None:
        self.session.select_all_sheets()
        self.refresh()

    def clear_all_sheets(self) -> None:
        self.session.clear_all_sheets()
        self.refresh()

    # ------------------------------------------------------------------
    def start_upload(self) -> None:
        self.session.source = self.source_var.get()
        try:
            request = self.session.begin_commit()
        except SelectionError:
            return
        self.status_var.set("Uploading leads…")

        def worker() -> None:
            try:
                result = self.client.bulk_upload(request)
            except Exception as exc:  # pragma: no cover - GUI surface
                self.event_queue.put(("commit_failed", exc))
                return
            self.event_queue.put(("committed", result))

        self._executor.submit(worker)

    # ------------------------------------------------------------------
    def start_over(self) -> None:
        self.session.reset()
        self.file_var.set("")
        self.status_var.set("Choose an Excel or CSV file to begin")

    # ------------------------------------------------------------------
    def save_template(self, suffix: str) -> None:
        path = filedialog.asksaveasfilename(
            defaultextension=suffix,
            initialfile=f"lead_template{suffix}",
            filetypes=[("CSV", "*.csv")] if suffix == ".csv" else [("Excel", "*.xlsx")],
        )
        if not path:
            return
        try:
            write_template(path)
        except Exception as exc:  # pragma: no cover - GUI surface
            messagebox.showerror("Template failed", str(exc))
            return
        messagebox.showinfo("Template saved", f"Template written to {path}")

    # ------------------------------------------------------------------
    def export_errors(self) -> None:
        result = self.session.result
        if result is None or not result.error_details:
            messagebox.showinfo("No errors", "The last upload did not report any rejected rows.")
            return
        path = filedialog.asksaveasfilename(
            defaultextension=".csv",
            filetypes=[("CSV", "*.csv"), ("Excel", "*.xlsx")],
        )
        if not path:
            return
        try:
            export_error_details(result, path)
        except Exception as exc:  # pragma: no cover - GUI surface
            messagebox.showerror("Export failed", str(exc))
            return
        messagebox.showinfo("Export complete", f"Rejected rows exported to {path}")

    # ------------------------------------------------------------------
    def _check_current_user(self) -> None:
        if not self.client.session.is_authenticated():
            self.status_var.set("No API token configured; set LEAD_UPLOADER_TOKEN before uploading")
            return

        def worker() -> None:
            try:
                user = self.client.get_current_user()
            except Exception as exc:  # pragma: no cover - GUI surface
                self.event_queue.put(("user_failed", exc))
                return
            self.event_queue.put(("user", user))

        self._executor.submit(worker)

    # ------------------------------------------------------------------
    def _poll_queue(self) -> None:
        try:
            while True:
                event = self.event_queue.get_nowait()
                self._handle_event(event)
        except queue.Empty:
            pass
        finally:
            self.root.after(100, self._poll_queue)

    # ------------------------------------------------------------------
    def _handle_event(self, event: tuple) -> None:
        kind = event[0]
        if kind == "inspected":
            _, ticket, inspection = event
            if self.session.complete_inspection(ticket, inspection):
                self.sheet_frame.set_sheets(self.session.sheet_names, self.session.selected_sheets)
                self.status_var.set(f"Ready to upload {inspection.original_name or self.file_var.get()}")
        elif kind == "inspect_failed":
            _, ticket, exc = event
            if self.session.fail_inspection(ticket, exc):
                self.file_var.set("")
                self.sheet_frame.set_sheets([], [])
                self.status_var.set("Analysis failed")
        elif kind == "committed":
            _, result = event
            if self.session.complete_commit(result):
                self.status_var.set("Upload finished")
        elif kind == "commit_failed":
            _, exc = event
            if self.session.fail_commit(exc):
                self.status_var.set("Upload failed; you can retry")
        elif kind == "user":
            _, user = event
            self._apply_user(user)
        elif kind == "user_failed":
            _, exc = event
            self.status_var.set(error_message(exc, "Could not verify the current user."))
        elif kind == "logged_out":
            messagebox.showwarning("Signed out", "The backend rejected the API token. Configure a new token and restart.")
        self.refresh()

    # ------------------------------------------------------------------
    def _apply_user(self, user: User) -> None:
        self.client.session.set_user(user)
        if not self.client.session.is_super_admin():
            messagebox.showwarning("Access denied", "Bulk upload is limited to Super Admin accounts.")
            self.status_var.set(f"Signed in as {user.name} ({user.role_name}); uploads are disabled")
        else:
            self.status_var.set(f"Signed in as {user.name}")

    # ------------------------------------------------------------------
    def _on_progress(self, value: float, phase: ProgressPhase) -> None:
        self.progress_var.set(min(100.0, value))
        self.progress_caption_var.set(format_progress_caption(phase, value))
        file_name = self.session.file.name if self.session.file else None
        self.upload_label_var.set(format_upload_button_label(self.session.is_uploading, value, file_name))

    # ------------------------------------------------------------------
    def refresh(self, _state: Optional[SessionState] = None) -> None:
        session = self.session
        busy = session.is_analyzing or session.is_uploading
        self.error_var.set(session.error or "")
        notices = []
        if session.is_analyzing:
            notices.append("Analyzing workbook… please wait.")
        if session.analysis_info is not None and session.analysis_info.notice:
            notices.append(session.analysis_info.notice)
        self.notice_var.set(" ".join(notices))

        self.sheet_frame.sync(session.selected_sheets, session.warning, enabled=not busy)
        if session.sheets is None:
            self.sheet_frame.grid_remove()
        else:
            self.sheet_frame.grid()

        self.preview_tree.delete(*self.preview_tree.get_children())
        for values in preview_table_rows(session.preview_rows(self.settings.preview_limit)):
            self.preview_tree.insert("", "end", values=values)

        allowed = session.can_commit and (
            self.client.session.get_current_user() is None or self.client.session.is_super_admin()
        )
        self.upload_button.state(["!disabled" if allowed else "disabled"])
        self.browse_button.state(["disabled" if busy else "!disabled"])
        file_name = session.file.name if session.file else None
        self.upload_label_var.set(format_upload_button_label(session.is_uploading, self.progress_var.get(), file_name))
        self._render_result(session.result)

    # ------------------------------------------------------------------
    def _render_result(self, result: Optional[UploadResult]) -> None:
        for variable in self.result_vars.values():
            variable.set("—")
        self.errors_tree.delete(*self.errors_tree.get_children())
        if result is None:
            self.export_button.state(["disabled"])
            return
        for label, value in summarise_result(result):
            self.result_vars[label].set(value)
        for values in error_table_rows(result):
            self.errors_tree.insert("", "end", values=values)
        self.export_button.state(["!disabled" if result.error_details else "disabled"])

    # ------------------------------------------------------------------
    def on_close(self) -> None:
        if self.session.is_uploading:
            if not messagebox.askyesno("Quit", "An upload is still running. Quit anyway?"):
                return
        self.session.close()
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.client.close()
        self.root.destroy()

    # ------------------------------------------------------------------
    def _load_settings(self) -> UploaderSettings:
        try:
            return resolve_settings()
        except (ConfigurationError, FileNotFoundError) as exc:
            messagebox.showwarning("Configuration error", f"Failed to load configuration: {exc}")
            return UploaderSettings()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    root = tk.Tk()
    BulkUploadApp(root)
    root.mainloop()


if __name__ == "__main__":  # pragma: no cover - manual launch
    main()
