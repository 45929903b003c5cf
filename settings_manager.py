"""
settings_manager.py
Loads and saves application preferences (theme, glass mode, font, timing knobs)
in a per-user JSON file, and resolves where the note store and logs live.

Location strategy:
    Windows: %LOCALAPPDATA%/MonoPad/settings.json
    macOS:   ~/Library/Application Support/MonoPad/settings.json
    Linux:   ~/.config/MonoPad/settings.json

MONOPAD_DATA_DIR overrides the directory entirely (used by tests and portable
installs). A pointer file (settings.loc) in the default directory can redirect
settings.json elsewhere; it survives restarts.
"""

import json
import logging
import os
import sys

logger = logging.getLogger(__name__)

_SETTINGS_BASENAME = "settings.json"
_POINTER_BASENAME = "settings.loc"  # stores absolute path to settings.json (override)
_STORE_BASENAME = "monopad.db"
_CACHED_SETTINGS_PATH = None  # memoize resolved path

THEMES = ("dark-glass", "maroon-beige", "olive-beige", "twilight-vibe")
GLASS_THEMES = ("dark-glass", "twilight-vibe")

FONTS = [
    ("Versace Luxury", "Bodoni Moda"),
    ("Classic Serif", "Playfair Display"),
    ("Modern Sans", "Inter"),
    ("Technical Mono", "JetBrains Mono"),
]

AI_MODES = ("none", "grammar", "email", "message")

DEFAULTS = {
    "theme": "dark-glass",
    "glass_mode": True,
    "autosave_delay_ms": 1500,
    "saving_indicator_ms": 600,
    "scan_interval_ms": 100,
    "camera_index": 0,
    "ai_mode": "none",
    "ai_delay_ms": 1200,
    "ollama_url": "http://127.0.0.1:11434",
    "ollama_model": "llama3.2",
}


def _default_settings_dir() -> str:
    """Return the platform-specific settings directory, honoring MONOPAD_DATA_DIR."""
    override = os.environ.get("MONOPAD_DATA_DIR", "").strip()
    if override:
        return os.path.abspath(override)
    if os.name == "nt":  # Windows
        base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~")
        return os.path.join(base, "MonoPad")
    elif sys.platform == "darwin":  # macOS
        return os.path.join(os.path.expanduser("~"), "Library", "Application Support", "MonoPad")
    else:  # Linux / other Unix
        return os.path.join(os.path.expanduser("~"), ".config", "MonoPad")


def _pointer_file_path() -> str:
    return os.path.join(_default_settings_dir(), _POINTER_BASENAME)


def _read_settings_pointer():
    """Return absolute path to settings.json from pointer file if present, else None."""
    try:
        p = _pointer_file_path()
        if os.path.exists(p):
            with open(p, "r", encoding="utf-8") as f:
                line = f.readline().strip()
                if line:
                    return line
    except OSError:
        logger.warning("could not read settings pointer", exc_info=True)
    return None


def get_app_data_dir() -> str:
    """Return the data directory (store, logs), creating it if needed."""
    d = _default_settings_dir()
    try:
        os.makedirs(d, exist_ok=True)
    except OSError:
        logger.warning("could not create data dir %s", d, exc_info=True)
    return d


def _resolve_settings_path() -> str:
    global _CACHED_SETTINGS_PATH
    if _CACHED_SETTINGS_PATH:
        return _CACHED_SETTINGS_PATH
    override_path = _read_settings_pointer()
    if override_path:
        new_path = os.path.abspath(override_path)
    else:
        new_path = os.path.join(get_app_data_dir(), _SETTINGS_BASENAME)
    _CACHED_SETTINGS_PATH = new_path
    return new_path


def reset_settings_cache():
    """Forget the memoized settings path (after MONOPAD_DATA_DIR changes)."""
    global _CACHED_SETTINGS_PATH
    _CACHED_SETTINGS_PATH = None


def get_settings_file_path() -> str:
    return os.path.abspath(_resolve_settings_path())


def set_settings_file_path(full_path: str):
    """Persistently switch settings.json location to the given absolute path."""
    if not isinstance(full_path, str) or not full_path:
        return
    global _CACHED_SETTINGS_PATH
    full_path = os.path.abspath(full_path)
    os.makedirs(os.path.dirname(full_path), exist_ok=True)
    os.makedirs(_default_settings_dir(), exist_ok=True)
    with open(_pointer_file_path(), "w", encoding="utf-8") as f:
        f.write(full_path)
    _CACHED_SETTINGS_PATH = full_path


def get_store_path() -> str:
    """Absolute path of the SQLite file holding the note slot."""
    return os.path.join(get_app_data_dir(), _STORE_BASENAME)


def get_log_path() -> str:
    return os.path.join(get_app_data_dir(), "monopad.log")


def load_settings() -> dict:
    path = _resolve_settings_path()
    try:
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                return data
            logger.warning("ignoring non-object settings file %s", path)
    except (OSError, ValueError):
        logger.warning("could not load settings from %s", path, exc_info=True)
    return {}


def save_settings(settings: dict):
    path = _resolve_settings_path()
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(settings, f, indent=2)
    except OSError:
        logger.warning("could not save settings to %s", path, exc_info=True)


def get_setting(key: str):
    return load_settings().get(key, DEFAULTS.get(key))


def _get_int(key: str) -> int:
    try:
        return int(get_setting(key))
    except (TypeError, ValueError):
        return int(DEFAULTS[key])


# --- Theme / glass / font ---
def get_theme_default_font(theme: str) -> str:
    if theme in ("dark-glass", "twilight-vibe"):
        return "JetBrains Mono"
    if theme in ("maroon-beige", "olive-beige"):
        return "Bodoni Moda"
    return "Inter"


def get_theme_name() -> str:
    theme = get_setting("theme")
    return theme if theme in THEMES else DEFAULTS["theme"]


def set_theme_name(theme: str):
    if theme not in THEMES:
        return
    s = load_settings()
    s["theme"] = theme
    save_settings(s)


def get_glass_mode() -> bool:
    return bool(get_setting("glass_mode"))


def set_glass_mode(enabled: bool):
    s = load_settings()
    s["glass_mode"] = bool(enabled)
    save_settings(s)


def get_font_family() -> str:
    """Saved font, or the theme's default when none was chosen."""
    font = load_settings().get("font")
    if isinstance(font, str) and font:
        return font
    return get_theme_default_font(get_theme_name())


def set_font_family(family: str):
    s = load_settings()
    s["font"] = str(family)
    save_settings(s)


# --- Timing and device knobs ---
def get_autosave_delay_ms() -> int:
    return _get_int("autosave_delay_ms")


def get_saving_indicator_ms() -> int:
    return _get_int("saving_indicator_ms")


def get_scan_interval_ms() -> int:
    return _get_int("scan_interval_ms")


def get_camera_index() -> int:
    return _get_int("camera_index")


def is_safe_mode() -> bool:
    """MONOPAD_SAFE_MODE disables camera scanning."""
    return os.environ.get("MONOPAD_SAFE_MODE", "0").strip() in {"1", "true", "yes"}


# --- AI suggestions ---
def get_ai_mode() -> str:
    mode = get_setting("ai_mode")
    return mode if mode in AI_MODES else "none"


def set_ai_mode(mode: str):
    if mode not in AI_MODES:
        return
    s = load_settings()
    s["ai_mode"] = mode
    save_settings(s)


def get_ai_delay_ms() -> int:
    return _get_int("ai_delay_ms")


def get_ollama_settings():
    """Return (base_url, model) for the local suggestion server."""
    return str(get_setting("ollama_url")), str(get_setting("ollama_model"))
