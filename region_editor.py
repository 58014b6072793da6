#!/usr/bin/env python3
"""
Tkinter-based region editor for WAD level maps.

Features:
    - Load a map (THINGS, LINEDEFS, SIDEDEFS, VERTEXES, SECTORS) from an IWAD/PWAD.
    - Draw named, coloured rectangular regions over the map and drag their
      edges, corners or whole body with the mouse.
    - Edit region titles (kept unique), bounding boxes and rule flags.
    - Zoom with the mouse wheel, pan with the right button.
    - Export the current view to a PNG snapshot.

The map/region logic lives in the mapregions package; this module only wires
it to Tk widgets and the canvas.
"""

from __future__ import annotations

import argparse
import logging
import sys
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox, simpledialog
from typing import Dict, List, Optional, Tuple

from mapregions.interaction import CursorHint, EditorSession, InputState, MouseButton
from mapregions.level import MapData, load_map_file
from mapregions.logging_config import LOG_LEVELS, setup_logging
from mapregions.regions import RegionList
from mapregions.render import BACKGROUND, RGBA, draw_scene, render_snapshot
from mapregions.wad import ArchiveOpenError, WadError

try:
    from tkinter import ttk
except ImportError:  # pragma: no cover - ttk is bundled with Tk in CPython.
    ttk = None  # type: ignore

logger = logging.getLogger("mapregions.editor")

DEFAULT_WAD_NAME = "MAP01.wad"
DEFAULT_MAP_NAME = "MAP01"
FRAME_INTERVAL_MS = 16

TK_CURSORS: Dict[CursorHint, str] = {
    CursorHint.ARROW: "arrow",
    CursorHint.HAND: "hand2",
    CursorHint.RESIZE_NS: "sb_v_double_arrow",
    CursorHint.RESIZE_EW: "sb_h_double_arrow",
    CursorHint.RESIZE_NWSE: "bottom_right_corner",
    CursorHint.RESIZE_NESW: "bottom_left_corner",
    CursorHint.RESIZE_ALL: "fleur",
}


def _default_wad_path() -> Path:
    candidate = Path("wad") / DEFAULT_WAD_NAME
    if candidate.exists():
        return candidate
    return Path(DEFAULT_WAD_NAME)


def _hex_colour(rgb: Tuple[int, int, int]) -> str:
    return "#{:02x}{:02x}{:02x}".format(*rgb)


class CanvasSurface:
    """Draws scene primitives as canvas items, blending alpha against the background."""

    def __init__(self, canvas: tk.Canvas, background: Tuple[int, int, int] = BACKGROUND) -> None:
        self.canvas = canvas
        self.background = background
        self._cache: Dict[RGBA, str] = {}

    def clear(self) -> None:
        self.canvas.delete("all")

    def _colour(self, colour: RGBA) -> str:
        cached = self._cache.get(colour)
        if cached is None:
            r, g, b, a = colour
            t = a / 255.0
            blended = tuple(
                int(round(c * t + bg * (1.0 - t))) for c, bg in zip((r, g, b), self.background)
            )
            cached = self._cache[colour] = _hex_colour(blended)  # type: ignore[arg-type]
        return cached

    def draw_line(self, p0, p1, colour: RGBA, width: float = 1.0) -> None:
        self.canvas.create_line(p0[0], p0[1], p1[0], p1[1], fill=self._colour(colour), width=width)

    def draw_filled_rect(self, p0, p1, colour: RGBA) -> None:
        self.canvas.create_rectangle(p0[0], p0[1], p1[0], p1[1], fill=self._colour(colour), outline="")

    def draw_rect(self, p0, p1, colour: RGBA) -> None:
        self.canvas.create_rectangle(p0[0], p0[1], p1[0], p1[1], outline=self._colour(colour))

    def draw_filled_circle(self, centre, radius: float, colour: RGBA) -> None:
        x, y = centre
        self.canvas.create_oval(
            x - radius, y - radius, x + radius, y + radius, fill=self._colour(colour), outline=""
        )

    def draw_text(self, pos, colour: RGBA, text: str) -> None:
        self.canvas.create_text(pos[0], pos[1], text=text, fill=self._colour(colour), anchor=tk.NW)


class RegionEditorApp:
    def __init__(
        self,
        root: tk.Tk,
        wad_path: Optional[Path] = None,
        map_name: str = DEFAULT_MAP_NAME,
        map_data: Optional[MapData] = None,
    ) -> None:
        if ttk is None:
            raise RuntimeError("ttk is required for this application.")

        self.root = root
        self.root.title("Region Editor")

        self.wad_path = wad_path
        self.map_name = map_name
        self.session = EditorSession(
            regions=RegionList(),
            map_data=map_data if map_data is not None else MapData(name=map_name),
        )
        self.input = InputState()
        self._dirty = True
        self._shown_selection: Optional[int] = -1

        self.status_var = tk.StringVar(value="")
        self.title_var = tk.StringVar()
        self.bounds_vars = [tk.StringVar() for _ in range(4)]
        self.rule_name_var = tk.StringVar()

        self._build_menu()
        self._build_layout()
        self._bind_canvas()
        self._update_status()
        self.root.after(FRAME_INTERVAL_MS, self._frame)

    # ------------------------------------------------------------------#
    # UI construction
    # ------------------------------------------------------------------#
    def _build_menu(self) -> None:
        menubar = tk.Menu(self.root)
        file_menu = tk.Menu(menubar, tearoff=False)
        file_menu.add_command(label="Open WAD…", command=self._open_wad_dialog)
        file_menu.add_command(label="Export Snapshot…", command=self.export_snapshot)
        file_menu.add_separator()
        file_menu.add_command(label="Quit", command=self.root.quit)
        menubar.add_cascade(label="File", menu=file_menu)

        region_menu = tk.Menu(menubar, tearoff=False)
        region_menu.add_command(label="New Region", command=self.new_region)
        region_menu.add_command(label="Delete Region", command=self.delete_region)
        menubar.add_cascade(label="Regions", menu=region_menu)
        self.root.config(menu=menubar)

    def _build_layout(self) -> None:
        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)

        self.canvas = tk.Canvas(
            self.root,
            width=960,
            height=640,
            bg=_hex_colour(BACKGROUND),
            highlightthickness=0,
        )
        self.canvas.grid(row=0, column=0, sticky="nsew")
        self.surface = CanvasSurface(self.canvas)

        panel = ttk.Frame(self.root)
        panel.grid(row=0, column=1, sticky="ns", padx=4, pady=4)

        ttk.Button(panel, text="New Region", command=self.new_region).pack(fill=tk.X, pady=(0, 4))

        ttk.Label(panel, text="Regions").pack(anchor="w")
        self.region_listbox = tk.Listbox(panel, width=32, height=10, exportselection=False)
        self.region_listbox.pack(fill=tk.X, pady=2)
        self.region_listbox.bind("<<ListboxSelect>>", self._on_select_region)
        self.region_listbox.bind("<B1-Motion>", self._on_drag_region_list)

        list_buttons = ttk.Frame(panel)
        list_buttons.pack(fill=tk.X, pady=2)
        ttk.Button(list_buttons, text="Up", command=lambda: self.move_region(-1)).pack(side=tk.LEFT, padx=2)
        ttk.Button(list_buttons, text="Down", command=lambda: self.move_region(1)).pack(side=tk.LEFT, padx=2)
        ttk.Button(list_buttons, text="Delete", command=self.delete_region).pack(side=tk.LEFT, padx=2)

        editor = ttk.LabelFrame(panel, text="Selected Region")
        editor.pack(fill=tk.X, pady=6)
        editor.columnconfigure(1, weight=1)

        ttk.Label(editor, text="Title").grid(row=0, column=0, sticky="w")
        title_entry = ttk.Entry(editor, textvariable=self.title_var)
        title_entry.grid(row=0, column=1, columnspan=4, sticky="ew", pady=2)
        title_entry.bind("<Return>", self._apply_title)
        title_entry.bind("<FocusOut>", self._apply_title)

        ttk.Label(editor, text="Bounding Box").grid(row=1, column=0, sticky="w")
        self.bounds_entries: List[ttk.Entry] = []
        for idx, var in enumerate(self.bounds_vars):
            entry = ttk.Entry(editor, width=7, textvariable=var)
            entry.grid(row=1, column=1 + idx, padx=1, pady=2)
            entry.bind("<Return>", self._apply_bounds)
            self.bounds_entries.append(entry)
        ttk.Button(editor, text="Apply Bounds", command=self._apply_bounds).grid(
            row=2, column=1, columnspan=4, sticky="e", pady=2
        )

        rules = ttk.LabelFrame(panel, text="Rules")
        rules.pack(fill=tk.BOTH, expand=True, pady=6)
        self.rule_listbox = tk.Listbox(rules, width=32, height=8, exportselection=False)
        self.rule_listbox.pack(fill=tk.BOTH, expand=True, padx=2, pady=2)
        self.rule_listbox.bind("<Double-Button-1>", lambda _e: self.toggle_rule())
        rule_entry_row = ttk.Frame(rules)
        rule_entry_row.pack(fill=tk.X, pady=2)
        rule_entry = ttk.Entry(rule_entry_row, textvariable=self.rule_name_var)
        rule_entry.pack(side=tk.LEFT, fill=tk.X, expand=True, padx=2)
        rule_entry.bind("<Return>", lambda _e: self.add_rule())
        ttk.Button(rule_entry_row, text="Add", command=self.add_rule).pack(side=tk.LEFT, padx=2)
        rule_buttons = ttk.Frame(rules)
        rule_buttons.pack(fill=tk.X, pady=2)
        ttk.Button(rule_buttons, text="Toggle", command=self.toggle_rule).pack(side=tk.LEFT, padx=2)
        ttk.Button(rule_buttons, text="Remove", command=self.remove_rule).pack(side=tk.LEFT, padx=2)

        ttk.Label(self.root, textvariable=self.status_var, anchor="w").grid(
            row=1, column=0, columnspan=2, sticky="ew", padx=4, pady=2
        )

    def _bind_canvas(self) -> None:
        self.canvas.bind("<Motion>", self._on_motion)
        self.canvas.bind("<ButtonPress-1>", lambda e: self._on_press(e, MouseButton.LEFT))
        self.canvas.bind("<ButtonRelease-1>", lambda e: self._on_release(e, MouseButton.LEFT))
        self.canvas.bind("<ButtonPress-3>", lambda e: self._on_press(e, MouseButton.RIGHT))
        self.canvas.bind("<ButtonRelease-3>", lambda e: self._on_release(e, MouseButton.RIGHT))
        self.canvas.bind("<MouseWheel>", self._on_wheel)
        # X11 reports the wheel as buttons 4 and 5
        self.canvas.bind("<Button-4>", lambda _e: self._on_wheel_ticks(1.0))
        self.canvas.bind("<Button-5>", lambda _e: self._on_wheel_ticks(-1.0))
        self.canvas.bind("<Configure>", lambda _e: self._mark_dirty())

    # ------------------------------------------------------------------#
    # Canvas input
    # ------------------------------------------------------------------#
    def _mark_dirty(self) -> None:
        self._dirty = True

    def _on_motion(self, event: tk.Event) -> None:
        self.input.move(event.x, event.y)
        self._dirty = True

    def _on_press(self, event: tk.Event, button: MouseButton) -> None:
        self.canvas.focus_set()
        self.input.press(button, event.x, event.y)
        self._dirty = True

    def _on_release(self, event: tk.Event, button: MouseButton) -> None:
        self.input.release(button, event.x, event.y)
        self._dirty = True

    def _on_wheel(self, event: tk.Event) -> None:
        delta = event.delta
        if abs(delta) >= 120:
            ticks = delta / 120.0
        else:
            ticks = 1.0 if delta > 0 else -1.0 if delta < 0 else 0.0
        self._on_wheel_ticks(ticks)

    def _on_wheel_ticks(self, ticks: float) -> None:
        self.input.scroll(ticks)
        self._dirty = True

    def _frame(self) -> None:
        viewport = self.session.viewport
        viewport.set_work_area((0.0, 0.0), (self.canvas.winfo_width(), self.canvas.winfo_height()))

        bounds_before = self._selected_bounds()
        result = self.session.step(self.input)
        self.input.end_step()

        self.canvas.configure(cursor=TK_CURSORS[result.cursor])
        if result.selection_changed:
            self._sync_selection()
        elif self._selected_bounds() != bounds_before:
            self._refresh_bounds_fields()

        if self._dirty or result.consumed:
            self.surface.clear()
            draw_scene(self.surface, self.session)
            self._dirty = False
            self._update_status()
        self.root.after(FRAME_INTERVAL_MS, self._frame)

    # ------------------------------------------------------------------#
    # Region list handling
    # ------------------------------------------------------------------#
    @property
    def regions(self) -> RegionList:
        return self.session.regions

    def _selected_bounds(self):
        region = self.regions.selected_region
        if region is None:
            return None
        return region.corner_a, region.corner_b

    def refresh_region_list(self) -> None:
        self.region_listbox.delete(0, tk.END)
        for region in self.regions:
            self.region_listbox.insert(tk.END, region.title)
        index = self.regions.selected_index
        if index is not None:
            self.region_listbox.selection_set(index)
            self.region_listbox.see(index)

    def _sync_selection(self) -> None:
        """Reload the side panel after the selected region changed."""
        self.refresh_region_list()
        region = self.regions.selected_region
        self._shown_selection = self.regions.selected_index
        self.title_var.set(region.title if region else "")
        self._refresh_bounds_fields()
        self.refresh_rule_list()
        self._dirty = True

    def _refresh_bounds_fields(self) -> None:
        region = self.regions.selected_region
        values = ["", "", "", ""]
        if region is not None:
            (ax, ay), (bx, by) = region.corner_a, region.corner_b
            values = [f"{ax:.0f}", f"{ay:.0f}", f"{bx:.0f}", f"{by:.0f}"]
        for var, value in zip(self.bounds_vars, values):
            var.set(value)

    def _on_select_region(self, *_args) -> None:
        selection = self.region_listbox.curselection()
        if not selection:
            return
        self.regions.select(selection[0])
        self._sync_selection()

    def _on_drag_region_list(self, event: tk.Event) -> None:
        index = self.regions.selected_index
        if index is None:
            return
        target = self.region_listbox.nearest(event.y)
        if target == index:
            return
        self.move_region(1 if target > index else -1)

    def new_region(self) -> None:
        region = self.regions.create_region()
        self.regions.select(len(self.regions) - 1)
        logger.info("New region %r", region.title)
        self._sync_selection()

    def delete_region(self) -> None:
        index = self.regions.selected_index
        if index is None:
            messagebox.showwarning("No Region", "Select a region to delete first.")
            return
        self.regions.delete(index)
        self._sync_selection()

    def move_region(self, step: int) -> None:
        index = self.regions.selected_index
        if index is None:
            return
        self.regions.move(index, step)
        self._sync_selection()

    def _apply_title(self, *_args) -> None:
        index = self.regions.selected_index
        if index is None or index != self._shown_selection:
            return
        applied = self.regions.rename(index, self.title_var.get())
        self.title_var.set(applied)
        self.refresh_region_list()
        self._dirty = True

    def _apply_bounds(self, *_args) -> None:
        index = self.regions.selected_index
        if index is None:
            return
        try:
            values = [float(var.get()) for var in self.bounds_vars]
        except ValueError:
            messagebox.showerror("Invalid Bounds", "Bounding box values must be numbers.")
            self._refresh_bounds_fields()
            return
        self.regions.set_bounds(index, *values)
        self._refresh_bounds_fields()
        self._dirty = True

    # ------------------------------------------------------------------#
    # Rules
    # ------------------------------------------------------------------#
    def refresh_rule_list(self) -> None:
        self.rule_listbox.delete(0, tk.END)
        region = self.regions.selected_region
        if region is None:
            return
        for name, enabled in region.rules.items():
            mark = "x" if enabled else " "
            self.rule_listbox.insert(tk.END, f"[{mark}] {name}")

    def _selected_rule_name(self) -> Optional[str]:
        region = self.regions.selected_region
        selection = self.rule_listbox.curselection()
        if region is None or not selection:
            return None
        names = list(region.rules)
        if selection[0] >= len(names):
            return None
        return names[selection[0]]

    def add_rule(self) -> None:
        region = self.regions.selected_region
        if region is None:
            return
        try:
            region.set_rule(self.rule_name_var.get(), True)
        except ValueError as exc:
            messagebox.showerror("Invalid Rule", str(exc))
            return
        self.rule_name_var.set("")
        self.refresh_rule_list()

    def toggle_rule(self) -> None:
        region = self.regions.selected_region
        name = self._selected_rule_name()
        if region is None or name is None:
            return
        region.set_rule(name, not region.rules[name])
        self.refresh_rule_list()

    def remove_rule(self) -> None:
        region = self.regions.selected_region
        name = self._selected_rule_name()
        if region is None or name is None:
            return
        region.remove_rule(name)
        self.refresh_rule_list()

    # ------------------------------------------------------------------#
    # Files
    # ------------------------------------------------------------------#
    def load_map(self, path: Path, map_name: str) -> Optional[WadError]:
        map_data, error = load_map_file(path, map_name)
        self.wad_path = path
        self.map_name = map_name
        self.session.map_data = map_data
        self.session.viewport.fit(map_data.bounds())
        self._dirty = True
        self._update_status()
        return error

    def _open_wad_dialog(self) -> None:
        path = filedialog.askopenfilename(
            title="Open WAD",
            filetypes=[("WAD archives", "*.wad *.WAD"), ("All files", "*.*")],
            initialdir=self.wad_path.parent if self.wad_path else Path.cwd(),
        )
        if not path:
            return
        map_name = simpledialog.askstring("Map", "Map lump name:", initialvalue=self.map_name, parent=self.root)
        if not map_name:
            return
        error = self.load_map(Path(path), map_name.strip().upper())
        if error is not None:
            messagebox.showerror("Open Error", f"Unable to read WAD:\n{error}")
        elif not self.session.map_data.loaded:
            messagebox.showwarning("Map Not Found", f"No map lump labelled {map_name} in {Path(path).name}.")

    def export_snapshot(self) -> None:
        target = filedialog.asksaveasfilename(
            title="Export Snapshot",
            defaultextension=".png",
            filetypes=[("PNG image", "*.png")],
        )
        if not target:
            return
        size = (max(self.canvas.winfo_width(), 1), max(self.canvas.winfo_height(), 1))
        try:
            render_snapshot(self.session, size).save(target)
        except (OSError, ValueError) as exc:
            messagebox.showerror("Export Error", f"Unable to save snapshot:\n{exc}")
            return
        self.status_var.set(f"Snapshot saved to {target}")

    def _update_status(self) -> None:
        map_data = self.session.map_data
        source = self.wad_path.name if self.wad_path else "no WAD"
        if map_data.loaded:
            counts = map_data.record_counts()
            summary = ", ".join(f"{count} {name.lower()}" for name, count in counts.items())
            map_text = f"{map_data.name} ({summary})"
        else:
            map_text = f"{map_data.name or self.map_name} not loaded"
        zoom = self.session.viewport.zoom
        self.status_var.set(f"{source}: {map_text} | {len(self.regions)} regions | zoom {zoom:.2f}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Annotate a WAD map with named regions.")
    parser.add_argument(
        "--wad",
        type=Path,
        default=None,
        help=f"WAD file to open (default: ./wad/{DEFAULT_WAD_NAME} or ./{DEFAULT_WAD_NAME})",
    )
    parser.add_argument("--map", default=DEFAULT_MAP_NAME, help=f"Map lump name (default: {DEFAULT_MAP_NAME})")
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging verbosity (default: INFO)",
    )
    parser.add_argument("--log-file", default=None, help="Also write the log to this file")
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_file)

    wad_path = args.wad or _default_wad_path()
    map_data, error = load_map_file(wad_path, args.map)
    if isinstance(error, ArchiveOpenError):
        logger.error("No archive at %s; exiting.", wad_path)
        return 1

    root = tk.Tk()
    app = RegionEditorApp(root, wad_path=wad_path, map_name=args.map, map_data=map_data)
    app.session.viewport.fit(map_data.bounds())
    root.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
