from PyQt5 import QtCore, QtWidgets

TOAST_DURATION_MS = 3000


def show_toast(parent: QtWidgets.QWidget, text: str, duration_ms: int = TOAST_DURATION_MS):
    """
    Show a short pill-shaped notice near the top center of the window.

    - parent: any widget of the target window
    - text: message (shown upper-case, letter-spaced)
    - duration_ms: auto-dismiss delay

    Returns the label, or None when there is no window to attach to.
    """
    if parent is None:
        return None
    window = parent.window() if isinstance(parent, QtWidgets.QWidget) else None
    if window is None:
        return None

    # Replace a toast that is still visible instead of stacking them
    previous = getattr(window, "_active_toast", None)
    if previous is not None:
        try:
            previous.close()
        except RuntimeError:
            pass

    label = QtWidgets.QLabel(text.upper(), window)
    label.setObjectName("toast")
    label.setAlignment(QtCore.Qt.AlignCenter)
    label.setAttribute(QtCore.Qt.WA_TransparentForMouseEvents, True)
    label.setAttribute(QtCore.Qt.WA_DeleteOnClose, True)
    label.setStyleSheet(
        """
        QLabel#toast {
            background-color: rgba(255, 255, 255, 30);
            color: #ffffff;
            border: 1px solid rgba(255, 255, 255, 50);
            border-radius: 16px;
            padding: 10px 28px;
            font-size: 9pt;
            font-weight: bold;
            letter-spacing: 2px;
        }
        """
    )
    label.adjustSize()
    margin = 32
    label.move(max(0, (window.width() - label.width()) // 2), margin)
    label.raise_()
    label.show()
    window._active_toast = label

    def _dismiss():
        if getattr(window, "_active_toast", None) is label:
            window._active_toast = None
        try:
            label.close()
        except RuntimeError:
            pass

    QtCore.QTimer.singleShot(duration_ms, _dismiss)
    return label
