"""Pytest configuration. Puts the project root on sys.path, runs Qt offscreen and
points the data directory at a temporary folder for every test."""
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import settings_manager  # noqa: E402
from fakes import VirtualScheduler  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_data_dir(tmp_path, monkeypatch):
    data_dir = tmp_path / "data"
    monkeypatch.setenv("MONOPAD_DATA_DIR", str(data_dir))
    settings_manager.reset_settings_cache()
    yield data_dir
    settings_manager.reset_settings_cache()


@pytest.fixture
def scheduler():
    return VirtualScheduler()


@pytest.fixture(scope="session")
def qapp():
    from PyQt5 import QtWidgets

    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app
