"""
ui_sync_dialog.py
"Wireless Portal" dialog: shows the current note as a QR code, can show a code for
a different JSON backup, copies a transfer link, and scans a code from the camera.

Closing the dialog stops the scan (releasing the camera) and detaches the display.
"""

import logging
import os

import numpy as np
from PyQt5 import QtCore, QtGui, QtWidgets

from errors import MonoPadError, PermissionDenied
from link_channel import build_link
from optical_channel import OpenCvCamera, QrDisplay, ScanState
from settings_manager import get_camera_index, get_scan_interval_ms, is_safe_mode
from ui_toast import show_toast

logger = logging.getLogger(__name__)


def array_to_pixmap(image: np.ndarray) -> QtGui.QPixmap:
    gray = np.ascontiguousarray(image)
    h, w = gray.shape[:2]
    qimage = QtGui.QImage(gray.data, w, h, gray.strides[0], QtGui.QImage.Format_Grayscale8)
    return QtGui.QPixmap.fromImage(qimage.copy())


class SyncDialog(QtWidgets.QDialog):
    def __init__(self, controller, parent=None):
        super().__init__(parent)
        self._controller = controller
        self.setWindowTitle("Wireless Portal")
        self.setModal(True)
        self.setMinimumWidth(380)

        layout = QtWidgets.QVBoxLayout(self)
        title = QtWidgets.QLabel("WIRELESS PORTAL")
        title.setAlignment(QtCore.Qt.AlignCenter)
        layout.addWidget(title)

        self.code_label = QtWidgets.QLabel()
        self.code_label.setAlignment(QtCore.Qt.AlignCenter)
        self.code_label.setMinimumSize(240, 240)
        self.code_label.setStyleSheet("background: #ffffff; border-radius: 24px; padding: 12px;")
        layout.addWidget(self.code_label)

        self.name_label = QtWidgets.QLabel()
        self.name_label.setAlignment(QtCore.Qt.AlignCenter)
        layout.addWidget(self.name_label)
        hint = QtWidgets.QLabel("Scan to wirelessly transfer this note")
        hint.setAlignment(QtCore.Qt.AlignCenter)
        layout.addWidget(hint)

        buttons = QtWidgets.QHBoxLayout()
        self.copy_link_btn = QtWidgets.QPushButton("Copy Link")
        self.upload_btn = QtWidgets.QPushButton("Upload JSON")
        self.scan_btn = QtWidgets.QPushButton("Scan Code")
        for b in (self.copy_link_btn, self.upload_btn, self.scan_btn):
            buttons.addWidget(b)
        layout.addLayout(buttons)

        self.scan_status = QtWidgets.QLabel("")
        self.scan_status.setAlignment(QtCore.Qt.AlignCenter)
        layout.addWidget(self.scan_status)

        self.copy_link_btn.clicked.connect(self._copy_link)
        self.upload_btn.clicked.connect(self._choose_backup)
        self.scan_btn.clicked.connect(self._toggle_scan)
        if is_safe_mode():
            self.scan_btn.setEnabled(False)
            self.scan_btn.setToolTip("Camera scanning is disabled in safe mode")

        self.display = QrDisplay(on_render=self._show_code, on_error=lambda e: show_toast(self, str(e)))
        controller.attach_display(self.display)

    def _show_code(self, image, label: str):
        self.name_label.setText(label)
        if image is None:
            self.code_label.setPixmap(QtGui.QPixmap())
            self.code_label.setText("Too large for a QR code.\nUse Copy Link instead.")
            return
        pixmap = array_to_pixmap(image).scaled(
            220, 220, QtCore.Qt.KeepAspectRatio, QtCore.Qt.FastTransformation
        )
        self.code_label.setText("")
        self.code_label.setPixmap(pixmap)

    def _copy_link(self):
        token = self.display.token or self._controller.current_token()
        QtWidgets.QApplication.clipboard().setText(build_link(token))
        show_toast(self, "Link copied")

    def _choose_backup(self):
        path, _ = QtWidgets.QFileDialog.getOpenFileName(self, "Choose Backup", "", "JSON Backups (*.json)")
        if not path:
            return
        # Showing a backup means the code no longer follows the live note
        self._controller.detach_display()
        try:
            self.display.show_backup(path)
            show_toast(self, "QR Generated for " + os.path.basename(path))
        except MonoPadError as e:
            show_toast(self, str(e))

    def _toggle_scan(self):
        if self._controller.scanning:
            self._controller.stop_scan()
            self._show_sender()
            return
        # Sender and receiver roles are never active together
        self._controller.detach_display()
        self.code_label.setVisible(False)
        self.scan_status.setText("Requesting camera…")
        session = self._controller.start_scan(
            lambda: OpenCvCamera(get_camera_index()),
            on_imported=self._on_imported,
            on_failure=self._on_scan_failure,
            interval_ms=get_scan_interval_ms(),
        )
        if session.state == ScanState.SCANNING:
            self.scan_status.setText("Scanning… point the camera at the other device")
            self.scan_btn.setText("Stop Scan")

    def _show_sender(self):
        self.scan_status.setText("")
        self.scan_btn.setText("Scan Code")
        self.code_label.setVisible(True)
        self._controller.attach_display(self.display)

    def _on_imported(self, _note):
        show_toast(self.parentWidget() or self, "Wireless Import Success")
        self.accept()

    def _on_scan_failure(self, error: Exception):
        self._show_sender()
        if isinstance(error, PermissionDenied):
            show_toast(self, "Camera access denied")
        else:
            show_toast(self, str(error))

    def done(self, result):
        self._controller.stop_scan()
        self._controller.detach_display()
        super().done(result)
