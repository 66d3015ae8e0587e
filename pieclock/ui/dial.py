from __future__ import annotations

import math

from PyQt6.QtCore import QPointF, QRectF, Qt, pyqtSignal
from PyQt6.QtGui import QBrush, QColor, QMouseEvent, QPainter, QPen
from PyQt6.QtWidgets import QWidget

from pieclock import config
from pieclock.core.clockface import ClockfaceScale
from pieclock.core.dial import SweepDirection, angle_from_drag, dial_angle, duration_from_angle, pie_span
from pieclock.core.timer import DisplayState, TimerState


class DialWidget(QWidget):
    """Analog face with the remaining-time pie; dragging on it sets the time."""

    duration_dragged = pyqtSignal(float)
    drag_finished = pyqtSignal()

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setMinimumSize(160, 160)
        self.setCursor(Qt.CursorShape.PointingHandCursor)
        self._remaining = 0.0
        self._scale = ClockfaceScale.MINUTES_60
        self._color = QColor(f"#{config.DEFAULT_COLOR}")
        self._warning = False
        self._blink_on = True
        self._state = TimerState.IDLE
        self._dragging = False

    def set_display(self, display: DisplayState, blink_on: bool) -> None:
        self._remaining = display.remaining_seconds
        self._scale = display.scale
        self._color = QColor(f"#{display.color}")
        self._warning = display.in_warning_zone
        self._state = display.state
        self._blink_on = blink_on
        self.update()

    def show_preview(self, seconds: float, scale: ClockfaceScale, color: str) -> None:
        """Shows a dialed-in duration on an idle timer."""
        self._remaining = seconds
        self._scale = scale
        self._color = QColor(f"#{color}")
        self._warning = False
        self._state = TimerState.IDLE
        self.update()

    def _face_rect(self) -> QRectF:
        side = min(self.width(), self.height()) - 12
        return QRectF((self.width() - side) / 2, (self.height() - side) / 2, side, side)

    def paintEvent(self, event) -> None:  # noqa: N802
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        face = self._face_rect()
        center = face.center()
        radius = face.width() / 2

        face_color = QColor("#fffaf5")
        if self._warning and self._blink_on:
            face_color = QColor("#ffd9d0")
        painter.setPen(QPen(QColor("#d8c8bb"), 2))
        painter.setBrush(QBrush(face_color))
        painter.drawEllipse(face)

        if self._remaining > 0:
            start, span = pie_span(self._remaining, self._scale.seconds, config.SWEEP_DIRECTION)
            pie_color = QColor(self._color)
            pie_color.setAlphaF(0.85)
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(QBrush(pie_color))
            painter.drawPie(face.adjusted(4, 4, -4, -4), start, span)

        self._paint_numerals(painter, center, radius)

        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(QColor("#2f2a26")))
        painter.drawEllipse(center, radius * 0.05, radius * 0.05)

        painter.setPen(QColor("#867b71"))
        label_rect = QRectF(center.x() - radius / 2, center.y() + radius * 0.12, radius, radius * 0.2)
        painter.drawText(label_rect, Qt.AlignmentFlag.AlignCenter, self._scale.label)

    def _paint_numerals(self, painter: QPainter, center: QPointF, radius: float) -> None:
        units = self._scale.units
        sign = 1 if config.SWEEP_DIRECTION == SweepDirection.CLOCKWISE else -1
        painter.setPen(QPen(QColor("#9c8f84"), 1.5))
        for value in self._scale.tick_labels:
            theta = math.radians(sign * value / units * 360.0)
            outer = QPointF(center.x() + radius * math.sin(theta), center.y() - radius * math.cos(theta))
            inner = QPointF(center.x() + radius * 0.9 * math.sin(theta), center.y() - radius * 0.9 * math.cos(theta))
            painter.drawLine(inner, outer)

            text_at = QPointF(center.x() + radius * 0.75 * math.sin(theta), center.y() - radius * 0.75 * math.cos(theta))
            box = QRectF(text_at.x() - 14, text_at.y() - 9, 28, 18)
            painter.setPen(QColor("#2f2a26"))
            painter.drawText(box, Qt.AlignmentFlag.AlignCenter, str(value))
            painter.setPen(QPen(QColor("#9c8f84"), 1.5))

    def _emit_drag(self, event: QMouseEvent) -> None:
        if self._state == TimerState.ALARMING:
            return
        face = self._face_rect()
        offset = event.position() - face.center()
        angle = angle_from_drag(offset.x(), offset.y(), face.width() / 2)
        if angle is None:
            return
        seconds = duration_from_angle(dial_angle(angle, config.SWEEP_DIRECTION), self._scale.seconds)
        self._dragging = True
        self.duration_dragged.emit(seconds)

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if event.button() == Qt.MouseButton.LeftButton:
            self._emit_drag(event)

    def mouseMoveEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if event.buttons() & Qt.MouseButton.LeftButton:
            self._emit_drag(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if self._dragging:
            self._dragging = False
            self.drag_finished.emit()
