import os

import settings_manager as sm


def test_data_dir_override(_isolated_data_dir):
    assert sm.get_app_data_dir() == str(_isolated_data_dir)
    assert sm.get_store_path() == os.path.join(str(_isolated_data_dir), "monopad.db")
    assert sm.get_log_path().startswith(str(_isolated_data_dir))


def test_defaults_without_settings_file():
    assert sm.load_settings() == {}
    assert sm.get_theme_name() == "dark-glass"
    assert sm.get_glass_mode() is True
    assert sm.get_autosave_delay_ms() == 1500
    assert sm.get_saving_indicator_ms() == 600
    assert sm.get_scan_interval_ms() == 100
    assert sm.get_ai_mode() == "none"
    assert sm.get_font_family() == "JetBrains Mono"


def test_theme_and_font_persist():
    sm.set_theme_name("olive-beige")
    sm.set_theme_name("not-a-theme")
    assert sm.get_theme_name() == "olive-beige"
    assert sm.get_font_family() == "Bodoni Moda"
    sm.set_font_family("Inter")
    sm.reset_settings_cache()
    assert sm.get_font_family() == "Inter"


def test_bad_values_fall_back_to_defaults(_isolated_data_dir):
    os.makedirs(_isolated_data_dir, exist_ok=True)
    (_isolated_data_dir / "settings.json").write_text(
        '{"autosave_delay_ms": "soon", "ai_mode": "poetry", "theme": 7}', encoding="utf-8"
    )
    assert sm.get_autosave_delay_ms() == 1500
    assert sm.get_ai_mode() == "none"
    assert sm.get_theme_name() == "dark-glass"


def test_corrupt_settings_file(_isolated_data_dir):
    os.makedirs(_isolated_data_dir, exist_ok=True)
    (_isolated_data_dir / "settings.json").write_text("{oops", encoding="utf-8")
    assert sm.load_settings() == {}


def test_settings_pointer_redirects(tmp_path):
    target = tmp_path / "elsewhere" / "prefs.json"
    sm.set_settings_file_path(str(target))
    sm.set_ai_mode("grammar")
    assert target.exists()
    sm.reset_settings_cache()
    assert sm.get_settings_file_path() == str(target)
    assert sm.get_ai_mode() == "grammar"


def test_safe_mode_flag(monkeypatch):
    monkeypatch.delenv("MONOPAD_SAFE_MODE", raising=False)
    assert sm.is_safe_mode() is False
    monkeypatch.setenv("MONOPAD_SAFE_MODE", "1")
    assert sm.is_safe_mode() is True
