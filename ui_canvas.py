"""
ui_canvas.py
Freehand drawing surface. Strokes are painted into a QImage; when a stroke ends
the image is handed out as a PNG data URI.
"""

import base64
from typing import Callable, Optional

from PyQt5 import QtCore, QtGui, QtWidgets

DATA_URI_PREFIX = "data:image/png;base64,"


def image_to_data_uri(image: QtGui.QImage) -> str:
    buf = QtCore.QBuffer()
    buf.open(QtCore.QIODevice.WriteOnly)
    image.save(buf, "PNG")
    return DATA_URI_PREFIX + base64.b64encode(bytes(buf.data())).decode("ascii")


def data_uri_to_image(data_uri: Optional[str]) -> Optional[QtGui.QImage]:
    if not data_uri or "," not in data_uri:
        return None
    try:
        raw = base64.b64decode(data_uri.split(",", 1)[1])
    except ValueError:
        return None
    image = QtGui.QImage()
    if not image.loadFromData(raw):
        return None
    return image


class DrawingCanvas(QtWidgets.QWidget):
    """Mouse/pen drawing widget.

    on_stroke_progress fires while drawing (marks the note dirty);
    on_stroke_end receives the PNG data URI of the whole canvas.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setAttribute(QtCore.Qt.WA_StaticContents)
        self.setCursor(QtCore.Qt.CrossCursor)
        self._image = QtGui.QImage()
        self._drawing = False
        self._last_point = QtCore.QPoint()
        self._pen_color = QtGui.QColor("#ffffff")
        self.on_stroke_progress: Optional[Callable[[], None]] = None
        self.on_stroke_end: Optional[Callable[[str], None]] = None

    def set_pen_color(self, color: str):
        self._pen_color = QtGui.QColor(color)

    def _blank(self, size: QtCore.QSize) -> QtGui.QImage:
        image = QtGui.QImage(size, QtGui.QImage.Format_ARGB32_Premultiplied)
        image.fill(QtCore.Qt.transparent)
        return image

    def _ensure_image(self):
        # The bitmap only grows; shrinking the widget never crops strokes.
        size = self._image.size().expandedTo(self.size())
        if self._image.size() == size:
            return
        resized = self._blank(size)
        if not self._image.isNull():
            painter = QtGui.QPainter(resized)
            painter.drawImage(0, 0, self._image)
            painter.end()
        self._image = resized

    def load_data_uri(self, data_uri: Optional[str]):
        """Show a stored drawing pixel for pixel at the top-left corner."""
        stored = data_uri_to_image(data_uri)
        if stored is None:
            self._image = self._blank(self.size())
        else:
            self._image = self._blank(stored.size().expandedTo(self.size()))
            painter = QtGui.QPainter(self._image)
            painter.drawImage(0, 0, stored)
            painter.end()
        self.update()

    def image_size(self) -> QtCore.QSize:
        return self._image.size()

    def clear(self):
        self._image.fill(QtCore.Qt.transparent)
        self.update()

    def to_data_uri(self) -> str:
        return image_to_data_uri(self._image)

    def resizeEvent(self, event):
        self._ensure_image()
        super().resizeEvent(event)

    def mousePressEvent(self, event):
        if event.button() == QtCore.Qt.LeftButton:
            self._ensure_image()
            self._drawing = True
            self._last_point = event.pos()

    def mouseMoveEvent(self, event):
        if not self._drawing:
            return
        painter = QtGui.QPainter(self._image)
        painter.setRenderHint(QtGui.QPainter.Antialiasing)
        pen = QtGui.QPen(self._pen_color, 2.5, QtCore.Qt.SolidLine, QtCore.Qt.RoundCap, QtCore.Qt.RoundJoin)
        painter.setPen(pen)
        painter.drawLine(self._last_point, event.pos())
        painter.end()
        self._last_point = event.pos()
        self.update()
        if self.on_stroke_progress is not None:
            self.on_stroke_progress()

    def mouseReleaseEvent(self, event):
        self._finish_stroke()

    def leaveEvent(self, event):
        self._finish_stroke()
        super().leaveEvent(event)

    def _finish_stroke(self):
        if not self._drawing:
            return
        self._drawing = False
        if self.on_stroke_end is not None:
            self.on_stroke_end(self.to_data_uri())

    def paintEvent(self, event):
        painter = QtGui.QPainter(self)
        painter.drawImage(event.rect(), self._image, event.rect())
        painter.end()
