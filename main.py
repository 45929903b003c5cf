"""
main.py
Entry point for MonoPad. Sets up diagnostics and logging, builds the note controller,
restores the last saved note, wires the transfer link channel and shows the window.

An optional first argument is treated as the address the app was opened with; if it
carries a #share=<token> fragment the shared note is offered for import.
"""
import logging
import os
import sys
import warnings

from PyQt5 import QtWidgets
from PyQt5.QtCore import QTimer

from app_logging import setup_logging
from link_channel import LinkChannel, Location
from note_controller import NoteController
from note_store import NoteStore
from settings_manager import (
    get_app_data_dir,
    get_autosave_delay_ms,
    get_log_path,
    get_saving_indicator_ms,
    get_store_path,
)
from task_scheduler import QtTaskScheduler
from ui_main_window import MainWindow
from ui_toast import show_toast

logger = logging.getLogger("monopad")


def _install_global_excepthook(log_path: str):
    """Install a sys.excepthook that logs the traceback and shows a critical dialog.

    Nothing in the app is meant to be fatal; anything that escapes still gets reported
    instead of closing the window silently.
    """
    import traceback as _traceback

    def _handler(exctype, value, tb):
        msg = "".join(_traceback.format_exception(exctype, value, tb))
        try:
            with open(log_path, "a", encoding="utf-8") as _f:
                _f.write("\n=== Unhandled exception ===\n")
                _f.write(msg)
        except OSError:
            pass
        logger.error("unhandled exception\n%s", msg)
        try:
            QtWidgets.QMessageBox.critical(None, "Unexpected Error", msg)
        except RuntimeError:
            pass

    sys.excepthook = _handler


def _enable_faulthandler(log_path: str):
    """Dump native tracebacks for all threads to log_path on fatal errors."""
    import faulthandler as _faulthandler

    try:
        f = open(log_path, "a", encoding="utf-8")
    except OSError:
        return
    # Keep a global reference so the file handle stays open for the lifetime of the app
    globals()["_native_crash_log_file"] = f
    _faulthandler.enable(all_threads=True, file=f)


def _install_qt_message_handler():
    """Route Qt warnings/errors into the application log."""
    from PyQt5.QtCore import QtMsgType, qInstallMessageHandler

    qt_logger = logging.getLogger("qt")
    level_map = {
        QtMsgType.QtDebugMsg: logging.DEBUG,
        QtMsgType.QtInfoMsg: logging.INFO,
        QtMsgType.QtWarningMsg: logging.WARNING,
        QtMsgType.QtCriticalMsg: logging.ERROR,
        QtMsgType.QtFatalMsg: logging.CRITICAL,
    }

    def _qt_handler(msg_type, context, message):
        file = getattr(context, "file", None)
        line = getattr(context, "line", None)
        if file:
            qt_logger.log(level_map.get(msg_type, logging.WARNING), "%s (%s:%s)", message, file, line)
        else:
            qt_logger.log(level_map.get(msg_type, logging.WARNING), "%s", message)

    qInstallMessageHandler(_qt_handler)


def _confirm(parent, question: str) -> bool:
    answer = QtWidgets.QMessageBox.question(
        parent, "Wireless Import", question, QtWidgets.QMessageBox.Yes | QtWidgets.QMessageBox.No
    )
    return answer == QtWidgets.QMessageBox.Yes


def build_app(argv):
    """Construct controller, link channel and window. Returns (window, controller, link_channel)."""
    scheduler = QtTaskScheduler()
    store = NoteStore(get_store_path())
    controller = NoteController(
        store,
        scheduler,
        delay_ms=get_autosave_delay_ms(),
        indicator_ms=get_saving_indicator_ms(),
    )
    controller.load()

    initial_url = argv[1] if len(argv) > 1 else ""
    location = Location(initial_url)
    holder = {}
    link_channel = LinkChannel(
        controller,
        location,
        confirm=lambda q: _confirm(holder.get("window"), q),
        notify=lambda msg: show_toast(holder.get("window"), msg),
    )
    window = MainWindow(controller, link_channel=link_channel)
    holder["window"] = window
    return window, controller, link_channel


def main():
    # Suppress noisy SIP deprecation warning from PyQt5 about sipPyTypeDict
    warnings.filterwarnings("ignore", category=DeprecationWarning, message=".*sipPyTypeDict.*")
    data_dir = get_app_data_dir()
    setup_logging(get_log_path())
    _install_global_excepthook(os.path.join(data_dir, "crash.log"))
    app = QtWidgets.QApplication(sys.argv)
    app.setApplicationName("MonoPad")
    _enable_faulthandler(os.path.join(data_dir, "native_crash.log"))
    _install_qt_message_handler()

    window, controller, link_channel = build_app(sys.argv)
    app.aboutToQuit.connect(controller.shutdown)
    window.show()
    # Initial load counts as a navigation event for transfer links
    QTimer.singleShot(0, link_channel.handle_navigation)
    logger.info("MonoPad started (data dir %s)", data_dir)
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
