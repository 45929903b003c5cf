"""
ui_main_window.py
Main window: header (mode toggle, theme, settings menu), editor/canvas stack and a
footer with word count, save status and the AI suggestion bar.

All state changes go through the NoteController; this module only renders it.
"""

import logging
import os

from PyQt5 import QtCore, QtGui, QtWidgets

import ai_suggest
import note_files
from errors import MonoPadError
from note_state import Note, SaveStatus
from settings_manager import (
    AI_MODES,
    FONTS,
    GLASS_THEMES,
    THEMES,
    get_ai_delay_ms,
    get_ai_mode,
    get_font_family,
    get_glass_mode,
    get_ollama_settings,
    get_theme_default_font,
    get_theme_name,
    set_ai_mode,
    set_font_family,
    set_glass_mode,
    set_theme_name,
)
from ui_canvas import DrawingCanvas
from ui_sync_dialog import SyncDialog
from task_scheduler import QtTaskScheduler
from ui_toast import show_toast

logger = logging.getLogger(__name__)

# background, panel, text
THEME_COLORS = {
    "dark-glass": ("#0b0b0f", "rgba(255,255,255,12)", "#f2f2f2"),
    "maroon-beige": ("#f3ead8", "rgba(90,20,30,18)", "#5a141e"),
    "olive-beige": ("#f1ecdc", "rgba(70,80,30,18)", "#3f4a1c"),
    "twilight-vibe": ("#1b1530", "rgba(255,255,255,14)", "#e9e3ff"),
}


def build_stylesheet(theme: str, glass: bool) -> str:
    bg, panel, text = THEME_COLORS.get(theme, THEME_COLORS["dark-glass"])
    if not (glass and theme in GLASS_THEMES):
        panel = "transparent"
    return f"""
    QMainWindow, QWidget#central {{ background: {bg}; color: {text}; }}
    QPlainTextEdit {{ background: {panel}; color: {text}; border: none; padding: 24px; }}
    QLabel {{ color: {text}; }}
    QPushButton {{ color: {text}; background: {panel}; border: 1px solid rgba(128,128,128,60);
                  border-radius: 12px; padding: 6px 16px; }}
    """


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, controller, link_channel=None, suggestion_provider=None):
        super().__init__()
        self._controller = controller
        self._link_channel = link_channel
        self._suggestion = None
        self._syncing_editor = False
        self._canvas_uri = None
        self.setWindowTitle("MonoPad")
        self.resize(1100, 760)

        central = QtWidgets.QWidget()
        central.setObjectName("central")
        root = QtWidgets.QVBoxLayout(central)
        root.setContentsMargins(24, 16, 24, 16)
        self.setCentralWidget(central)

        # Header
        header = QtWidgets.QHBoxLayout()
        logo = QtWidgets.QLabel("MONO<b>PAD</b>")
        header.addWidget(logo)
        self.notes_btn = QtWidgets.QPushButton("Notes")
        self.canvas_btn = QtWidgets.QPushButton("Canvas")
        for b in (self.notes_btn, self.canvas_btn):
            b.setCheckable(True)
            header.addWidget(b)
        self.notes_btn.setChecked(True)
        header.addStretch(1)
        self.theme_combo = QtWidgets.QComboBox()
        for t in THEMES:
            self.theme_combo.addItem(t.replace("-", " "), t)
        header.addWidget(self.theme_combo)
        self.settings_btn = QtWidgets.QPushButton("Settings")
        self.settings_btn.setMenu(self._build_settings_menu())
        header.addWidget(self.settings_btn)
        root.addLayout(header)

        # Editor / canvas
        self.stack = QtWidgets.QStackedWidget()
        self.editor = QtWidgets.QPlainTextEdit()
        self.editor.setPlaceholderText("Focus is clarity...")
        self.stack.addWidget(self.editor)
        canvas_page = QtWidgets.QWidget()
        canvas_layout = QtWidgets.QVBoxLayout(canvas_page)
        canvas_layout.setContentsMargins(0, 0, 0, 0)
        self.canvas = DrawingCanvas()
        canvas_layout.addWidget(self.canvas, 1)
        self.clear_btn = QtWidgets.QPushButton("Clear")
        canvas_layout.addWidget(self.clear_btn, 0, QtCore.Qt.AlignRight)
        self.stack.addWidget(canvas_page)
        root.addWidget(self.stack, 1)

        # Suggestion bar
        self.suggestion_bar = QtWidgets.QWidget()
        bar = QtWidgets.QHBoxLayout(self.suggestion_bar)
        bar.setContentsMargins(0, 0, 0, 0)
        self.suggestion_label = QtWidgets.QLabel()
        self.suggestion_label.setWordWrap(True)
        self.apply_suggestion_btn = QtWidgets.QPushButton("Apply")
        self.dismiss_suggestion_btn = QtWidgets.QPushButton("Dismiss")
        bar.addWidget(self.suggestion_label, 1)
        bar.addWidget(self.apply_suggestion_btn)
        bar.addWidget(self.dismiss_suggestion_btn)
        self.suggestion_bar.setVisible(False)
        root.addWidget(self.suggestion_bar)

        # Footer
        footer = QtWidgets.QHBoxLayout()
        self.words_label = QtWidgets.QLabel()
        self.status_label = QtWidgets.QLabel()
        footer.addWidget(self.words_label)
        footer.addWidget(self.status_label)
        footer.addStretch(1)
        footer.addWidget(QtWidgets.QLabel("MonoPad AirSync"))
        root.addLayout(footer)

        # Wiring
        self.notes_btn.clicked.connect(lambda: self.set_mode("text"))
        self.canvas_btn.clicked.connect(lambda: self.set_mode("draw"))
        self.theme_combo.currentIndexChanged.connect(self._on_theme_selected)
        self.editor.textChanged.connect(self._on_text_changed)
        self.canvas.on_stroke_progress = controller.mark_drawing_dirty
        self.canvas.on_stroke_end = self._on_stroke_end
        self.clear_btn.clicked.connect(self._clear_canvas)
        self.apply_suggestion_btn.clicked.connect(self._apply_suggestion)
        self.dismiss_suggestion_btn.clicked.connect(self._hide_suggestion)

        controller.add_note_listener(self._on_note_changed)
        controller.autosave.add_status_listener(self._on_status_changed)
        controller.autosave.add_error_listener(lambda e: show_toast(self, "Save failed"))

        base_url, model = get_ollama_settings()
        provider = suggestion_provider or ai_suggest.OllamaProvider(base_url, model)
        self.suggestions = ai_suggest.SuggestionService(
            provider, QtTaskScheduler(self), self._show_suggestion, delay_ms=get_ai_delay_ms()
        )
        self.suggestions.mode = get_ai_mode()

        self._apply_preferences(get_theme_name(), get_glass_mode(), get_font_family())
        self._on_note_changed(controller.note)
        self._on_status_changed(controller.status)

    # --- menus ---
    def _build_settings_menu(self) -> QtWidgets.QMenu:
        menu = QtWidgets.QMenu(self)
        fonts = menu.addMenu("Typography")
        for label, family in FONTS:
            act = fonts.addAction(label)
            act.triggered.connect(lambda _checked=False, f=family: self._choose_font(f))
        menu.addSeparator()
        self.fullscreen_action = menu.addAction("Fullscreen")
        self.fullscreen_action.setCheckable(True)
        self.fullscreen_action.triggered.connect(self._toggle_fullscreen)
        self.glass_action = menu.addAction("Glass UI")
        self.glass_action.setCheckable(True)
        self.glass_action.triggered.connect(self._toggle_glass)
        ai_menu = menu.addMenu("AI Suggestions")
        group = QtWidgets.QActionGroup(self)
        for mode in AI_MODES:
            act = ai_menu.addAction(mode.capitalize())
            act.setCheckable(True)
            act.setChecked(mode == get_ai_mode())
            group.addAction(act)
            act.triggered.connect(lambda _checked=False, m=mode: self._choose_ai_mode(m))
        menu.addSeparator()
        menu.addAction("Wireless Sync", self.open_sync_dialog)
        menu.addAction("Open Transfer Link…", self._open_link_dialog)
        menu.addSeparator()
        menu.addAction("Export JSON", self._export_json)
        menu.addAction("Export Text", self._export_text)
        menu.addAction("Export DOCX", self._export_docx)
        menu.addAction("Import…", self._import_file)
        return menu

    # --- preferences ---
    def _apply_preferences(self, theme: str, glass: bool, font: str):
        self._theme = theme
        self._glass = glass
        self.setStyleSheet(build_stylesheet(theme, glass))
        self.editor.setFont(QtGui.QFont(font, 18))
        self.canvas.set_pen_color(THEME_COLORS.get(theme, THEME_COLORS["dark-glass"])[2])
        self.glass_action.setChecked(glass)
        self.glass_action.setVisible(theme in GLASS_THEMES)
        idx = self.theme_combo.findData(theme)
        if idx >= 0 and idx != self.theme_combo.currentIndex():
            self.theme_combo.blockSignals(True)
            self.theme_combo.setCurrentIndex(idx)
            self.theme_combo.blockSignals(False)

    def _on_theme_selected(self, index: int):
        theme = self.theme_combo.itemData(index)
        if not theme:
            return
        set_theme_name(theme)
        # Picking a theme resets the font to the theme's default
        font = get_theme_default_font(theme)
        set_font_family(font)
        self._apply_preferences(theme, self._glass, font)

    def _choose_font(self, family: str):
        set_font_family(family)
        self.editor.setFont(QtGui.QFont(family, 18))

    def _toggle_glass(self, checked: bool):
        set_glass_mode(checked)
        self._apply_preferences(self._theme, checked, get_font_family())

    def _toggle_fullscreen(self, checked: bool):
        if checked:
            self.showFullScreen()
        else:
            self.showNormal()

    def _choose_ai_mode(self, mode: str):
        set_ai_mode(mode)
        self.suggestions.mode = mode
        if mode == "none":
            self.suggestions.cancel()
            self._hide_suggestion()

    # --- modes and state ---
    def set_mode(self, mode: str):
        drawing = mode == "draw"
        self.notes_btn.setChecked(not drawing)
        self.canvas_btn.setChecked(drawing)
        self.stack.setCurrentIndex(1 if drawing else 0)
        if drawing:
            self._load_canvas(self._controller.note.drawing)

    def _load_canvas(self, drawing):
        self._canvas_uri = drawing
        self.canvas.load_data_uri(drawing)

    def _on_stroke_end(self, drawing: str):
        self._canvas_uri = drawing
        self._controller.commit_drawing(drawing)

    def _on_text_changed(self):
        if self._syncing_editor:
            return
        text = self.editor.toPlainText()
        self._controller.set_content(text)
        self.suggestions.request(text)

    def _on_note_changed(self, note: Note):
        if self.editor.toPlainText() != note.content:
            self._syncing_editor = True
            try:
                self.editor.setPlainText(note.content)
            finally:
                self._syncing_editor = False
        if self.stack.currentIndex() == 1 and note.drawing != self._canvas_uri:
            self._load_canvas(note.drawing)
        self.words_label.setText(f"{note.word_count()} Words")

    def _on_status_changed(self, status: SaveStatus):
        self.status_label.setText(status.value)

    def _clear_canvas(self):
        self.canvas.clear()
        self._canvas_uri = None
        self._controller.clear_drawing()

    # --- suggestions ---
    def _show_suggestion(self, suggestion):
        self._suggestion = suggestion
        if not suggestion:
            self._hide_suggestion()
            return
        self.suggestion_label.setText(suggestion)
        self.suggestion_bar.setVisible(True)

    def _apply_suggestion(self):
        if self._suggestion:
            self.editor.setPlainText(self._suggestion)
        self._hide_suggestion()

    def _hide_suggestion(self):
        self._suggestion = None
        self.suggestion_bar.setVisible(False)

    # --- sync / files ---
    def open_sync_dialog(self):
        dlg = SyncDialog(self._controller, self)
        dlg.exec_()

    def _open_link_dialog(self):
        if self._link_channel is None:
            return
        url, ok = QtWidgets.QInputDialog.getText(self, "Open Transfer Link", "Paste a #share= link:")
        if ok and url.strip():
            self._link_channel.open_link(url)

    def _export_with(self, exporter, title: str):
        d = QtWidgets.QFileDialog.getExistingDirectory(self, title)
        if not d:
            return
        try:
            path = exporter(self._controller.note, d)
            show_toast(self, "Exported " + os.path.basename(path))
        except OSError as e:
            show_toast(self, f"Export failed: {e}")

    def _export_json(self):
        self._export_with(note_files.export_json, "Export Backup To")

    def _export_text(self):
        self._export_with(note_files.export_text, "Export Text To")

    def _export_docx(self):
        self._export_with(note_files.export_docx, "Export Document To")

    def _import_file(self):
        path, _ = QtWidgets.QFileDialog.getOpenFileName(
            self, "Import Note", "", "Notes (*.json *.txt *.md *.docx);;All Files (*)"
        )
        if not path:
            return
        try:
            note = note_files.import_file(path)
        except MonoPadError as e:
            show_toast(self, str(e))
            return
        self._controller.replace_note(note)
        show_toast(self, "Import Successful")

    def closeEvent(self, event):
        self.suggestions.shutdown()
        self._controller.shutdown()
        super().closeEvent(event)
