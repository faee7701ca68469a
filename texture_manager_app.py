import argparse
import importlib.util
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import tkinter as tk
from tkinter import messagebox, ttk

from texture_import import ARCHIVE_EXTENSIONS, IMAGE_EXTENSIONS
from texture_manager import OperationResult, TextureManager


def _check_runtime_dependencies() -> None:
    required = [
        ("Pillow", "PIL"),
        ("tkinterdnd2", "tkinterdnd2"),
    ]
    missing = [dist_name for dist_name, module_name in required if importlib.util.find_spec(module_name) is None]
    if not missing:
        return

    human = ", ".join(missing)
    root = tk.Tk()
    root.withdraw()
    messagebox.showerror(
        "Missing Dependencies",
        f"Missing required libraries: {human}\n\nInstall the package with pip to pull them in.",
        parent=root,
    )
    root.destroy()
    raise SystemExit(f"Cannot launch without required dependencies: {human}")


_check_runtime_dependencies()

from PIL import Image, ImageOps, ImageTk
from tkinterdnd2 import DND_FILES, TkinterDnD

BaseTk = TkinterDnD.Tk

logger = logging.getLogger(__name__)

APP_TITLE = "Bonzomatic Texture Manager"
WINDOW_SIZE = "800x600"
THUMB_SIZE = (48, 48)
LIST_HEIGHT = 475
ACCENT = "#fa8020"
DROPPABLE_EXTENSIONS = IMAGE_EXTENSIONS | ARCHIVE_EXTENSIONS


def _setup_logging(verbose: bool) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.addHandler(handler)


class TextureManagerApp(BaseTk):
    def __init__(self, root_path: Path) -> None:
        super().__init__()
        self.title(APP_TITLE)
        self.geometry(WINDOW_SIZE)
        self.resizable(False, False)

        self.manager = TextureManager(root_path)
        self.status_var = tk.StringVar(value="Ready.")
        self.name_vars: list[tk.StringVar] = []
        self.path_vars: list[tk.StringVar] = []
        self.active_vars: list[tk.BooleanVar] = []
        # path -> (mtime, thumbnail); a newer mtime replaces the entry.
        self._thumb_cache: dict[str, tuple[float, ImageTk.PhotoImage]] = {}
        self._refreshing = False

        self._apply_style()
        self._build_ui()
        self._setup_dnd()
        self._apply_result(self.manager.reconcile())

    def _apply_style(self) -> None:
        style = ttk.Style(self)
        for widget in ("TLabel", "TCheckbutton", "TButton", "TEntry"):
            style.configure(widget, foreground=ACCENT)
        style.configure("Heading.TLabel", font=("Segoe UI", 14, "bold"), foreground=ACCENT)
        style.map("TEntry", selectbackground=[("focus", ACCENT)])

    def _build_ui(self) -> None:
        root = ttk.Frame(self)
        root.pack(fill="both", expand=True, padx=10, pady=10)
        root.columnconfigure(0, weight=1)

        ttk.Label(root, text=APP_TITLE, style="Heading.TLabel").grid(row=0, column=0, sticky="w")
        ttk.Label(root, text=str(self.manager.root)).grid(row=1, column=0, sticky="w", pady=(2, 6))

        list_frame = ttk.Frame(root)
        list_frame.grid(row=2, column=0, sticky="nsew")
        list_frame.columnconfigure(0, weight=1)
        self.canvas = tk.Canvas(list_frame, height=LIST_HEIGHT, highlightthickness=0)
        yscroll = ttk.Scrollbar(list_frame, orient="vertical", command=self.canvas.yview)
        self.canvas.configure(yscrollcommand=yscroll.set)
        self.canvas.grid(row=0, column=0, sticky="nsew")
        yscroll.grid(row=0, column=1, sticky="ns")
        self.rows_frame = ttk.Frame(self.canvas)
        self.rows_frame.columnconfigure(1, weight=1)
        self.rows_frame.columnconfigure(2, weight=2)
        self.canvas.create_window((0, 0), window=self.rows_frame, anchor="nw")
        self.rows_frame.bind("<Configure>", lambda _e: self.canvas.configure(scrollregion=self.canvas.bbox("all")))
        self.canvas.bind("<MouseWheel>", self._on_mousewheel)

        self.export_button = ttk.Button(root, text="Export as zip package", command=self._export_zip)
        self.export_button.grid(row=3, column=0, sticky="w", pady=(8, 0))
        ttk.Label(root, textvariable=self.status_var, foreground="#808080").grid(row=4, column=0, sticky="w", pady=(6, 0))

    def _setup_dnd(self) -> None:
        try:
            # Register multiple targets; some environments only dispatch on widgets.
            self.drop_target_register(DND_FILES)
            self.canvas.drop_target_register(DND_FILES)
            self.dnd_bind("<<Drop>>", self._on_drop)
            self.canvas.dnd_bind("<<Drop>>", self._on_drop)
        except tk.TclError as exc:
            logger.warning("Drag and drop unavailable: %s", exc)
            self.status_var.set("Drag/drop failed to initialize.")

    def _on_mousewheel(self, event) -> None:  # pragma: no cover
        self.canvas.yview_scroll(int(-event.delta / 120), "units")

    def _on_drop(self, event) -> None:  # pragma: no cover
        paths = self._expand_paths_from_input(list(self.tk.splitlist(event.data)))
        self._ingest_paths(paths)

    def _expand_paths_from_input(self, raw_paths: list[str]) -> list[str]:
        expanded: list[str] = []
        seen: set[str] = set()
        for raw in raw_paths:
            if raw is None:
                continue
            p = str(raw).strip().strip('"').strip("{}")
            if p == "":
                continue
            path_obj = Path(p)
            if path_obj.is_dir():
                candidates = sorted(c for c in path_obj.iterdir() if c.suffix.lower() in DROPPABLE_EXTENSIONS)
            else:
                # Unsupported files are passed on so the importer can report them.
                candidates = [path_obj]
            for candidate in candidates:
                key = os.path.normcase(str(candidate))
                if key in seen:
                    continue
                seen.add(key)
                expanded.append(str(candidate))
        return expanded

    def _ingest_paths(self, paths: list[str]) -> None:
        failures: list[str] = []
        last: Optional[OperationResult] = None
        for path in paths:
            last = self.manager.import_file(path)
            if not last.ok:
                failures.append(last.message)
            elif last.detail is not None:
                failures.extend(last.detail.errors)
        if last is None:
            return
        self._apply_result(last, quiet=True)
        if failures:
            self.status_var.set(failures[-1])
            messagebox.showwarning("Import", "\n".join(failures[:10]), parent=self)

    def _apply_result(self, result: OperationResult, quiet: bool = False) -> None:
        self.status_var.set(result.message)
        self._refresh_rows()
        if not result.ok and not quiet:
            messagebox.showerror(result.operation.capitalize(), result.message, parent=self)

    def _thumbnail(self, relative_path: str) -> Optional[ImageTk.PhotoImage]:
        path = self.manager.root / relative_path
        key = str(path)
        try:
            mtime = path.stat().st_mtime
        except OSError:
            self._thumb_cache.pop(key, None)
            return None
        cached = self._thumb_cache.get(key)
        if cached is not None and cached[0] == mtime:
            return cached[1]
        try:
            with Image.open(path) as img:
                thumb = ImageOps.contain(img.convert("RGBA"), THUMB_SIZE, Image.Resampling.LANCZOS)
        except (OSError, ValueError) as exc:
            logger.debug("No preview for %s: %s", relative_path, exc)
            self._thumb_cache.pop(key, None)
            return None
        photo = ImageTk.PhotoImage(thumb)
        self._thumb_cache[key] = (mtime, photo)
        return photo

    def _refresh_rows(self) -> None:
        self._refreshing = True
        try:
            for child in self.rows_frame.winfo_children():
                child.destroy()
            self.name_vars = []
            self.path_vars = []
            self.active_vars = []
            for idx, entry in enumerate(self.manager.catalog):
                active_var = tk.BooleanVar(value=entry.active)
                name_var = tk.StringVar(value=entry.uniform_name)
                path_var = tk.StringVar(value=entry.relative_path)
                self.active_vars.append(active_var)
                self.name_vars.append(name_var)
                self.path_vars.append(path_var)

                ttk.Checkbutton(
                    self.rows_frame, variable=active_var, command=lambda i=idx: self._on_toggle(i)
                ).grid(row=idx, column=0, padx=(0, 6), pady=4)
                name_entry = ttk.Entry(self.rows_frame, textvariable=name_var, width=22)
                name_entry.grid(row=idx, column=1, sticky="ew", padx=(0, 6))
                path_entry = ttk.Entry(self.rows_frame, textvariable=path_var, width=40)
                path_entry.grid(row=idx, column=2, sticky="ew", padx=(0, 6))
                for widget, commit in ((name_entry, self._commit_name), (path_entry, self._commit_path)):
                    widget.bind("<Return>", lambda _e, i=idx, c=commit: c(i))
                    widget.bind("<FocusOut>", lambda _e, i=idx, c=commit: c(i))
                preview = ttk.Label(self.rows_frame)
                photo = self._thumbnail(entry.relative_path)
                if photo is not None:
                    preview.configure(image=photo)
                    preview.image = photo
                preview.grid(row=idx, column=3, sticky="w")
        finally:
            self._refreshing = False
        if len(self.manager.catalog):
            self.export_button.grid()
        else:
            self.export_button.grid_remove()

    def _on_toggle(self, idx: int) -> None:
        if self._refreshing:
            return
        self._apply_result(self.manager.set_active(idx, self.active_vars[idx].get()))

    def _commit_name(self, idx: int) -> None:
        if self._refreshing or idx >= len(self.manager.catalog):
            return
        value = self.name_vars[idx].get().strip()
        if value == self.manager.catalog[idx].uniform_name:
            return
        self._apply_result(self.manager.set_uniform_name(idx, value))

    def _commit_path(self, idx: int) -> None:
        if self._refreshing or idx >= len(self.manager.catalog):
            return
        value = self.path_vars[idx].get().strip()
        if value == self.manager.catalog[idx].relative_path:
            return
        self._apply_result(self.manager.set_relative_path(idx, value))

    def _export_zip(self) -> None:
        result = self.manager.export()
        self._apply_result(result)
        if result.ok:
            messagebox.showinfo("Export", result.message, parent=self)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=APP_TITLE)
    parser.add_argument("root", nargs="?", default=".", help="Bonzomatic root folder (default: current folder)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug details to stderr")
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    _setup_logging(args.verbose)

    root_path = Path(args.root).expanduser()
    if not root_path.is_dir():
        print(f"Bonzomatic root not found: {root_path}", file=sys.stderr)
        return 1
    app = TextureManagerApp(root_path.resolve())
    app.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
