"""Pendulum canvas: QPainter rendering of a FrameSnapshot.

The scene is a fixed 800 x 600 coordinate space, scaled uniformly and
centred in the widget. The canvas never mutates simulation state.
"""

import numpy as np
from PyQt6.QtCore import Qt, QPointF, QRectF, pyqtSignal
from PyQt6.QtGui import QPainter, QPen, QBrush, QColor, QFont, QPainterPath
from PyQt6.QtWidgets import QWidget

from history import MIN_CONSERVATION_SAMPLES, normalize
from interaction import device_to_scene, mass_radius
from simulation import PIVOT, SCENE_SIZE

BACKGROUND = QColor(10, 10, 10)
MASS1_COLOR = QColor(0, 136, 255)
MASS2_COLOR = QColor(0, 255, 136)
PIVOT_COLOR = QColor(255, 0, 128)


class PendulumCanvas(QWidget):
    """Custom widget that draws the double pendulum using QPainter.

    Pointer events are translated to scene coordinates and re-emitted.
    """

    pointer_pressed = pyqtSignal(float, float)
    pointer_moved = pyqtSignal(float, float)
    pointer_released = pyqtSignal()
    pointer_left = pyqtSignal()

    TRAIL_OPACITY = 0.8

    def __init__(self, parent=None):
        super().__init__(parent)
        self.snapshot = None
        self.show_trails = True
        self.show_energy = True
        self.conservation = None
        self.status_message = ""
        self.setMinimumSize(400, 300)
        self.setMouseTracking(False)

    def set_snapshot(self, snapshot, conservation=None):
        self.snapshot = snapshot
        self.conservation = conservation
        self.update()

    # -- Coordinates --

    def _scene_transform(self):
        """Return (scale, offset_x, offset_y) mapping scene to widget pixels."""
        sw, sh = SCENE_SIZE
        scale = min(self.width() / sw, self.height() / sh)
        return (
            scale,
            (self.width() - sw * scale) / 2,
            (self.height() - sh * scale) / 2,
        )

    def _to_scene(self, event):
        pos = event.position()
        return device_to_scene(pos.x(), pos.y(), (self.width(), self.height()))

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self.pointer_pressed.emit(*self._to_scene(event))

    def mouseMoveEvent(self, event):
        self.pointer_moved.emit(*self._to_scene(event))

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self.pointer_released.emit()

    def leaveEvent(self, event):
        self.pointer_left.emit()
        super().leaveEvent(event)

    # -- Drawing --

    def _draw_trail(self, painter, trail, alphas, color):
        if len(trail) < 2:
            return
        pen = QPen(color)
        pen.setWidthF(2.0)
        pen.setCapStyle(Qt.PenCapStyle.RoundCap)
        for i in range(1, len(trail)):
            fade = QColor(color)
            fade.setAlphaF(float(alphas[i]) * self.TRAIL_OPACITY)
            pen.setColor(fade)
            painter.setPen(pen)
            painter.drawLine(
                QPointF(trail[i - 1].x, trail[i - 1].y),
                QPointF(trail[i].x, trail[i].y),
            )

    def _draw_mass(self, painter, x, y, mass, color):
        r = mass_radius(mass)
        outline = QPen(QColor(255, 255, 255))
        outline.setWidthF(2.0)
        painter.setPen(outline)
        painter.setBrush(QBrush(color))
        painter.drawEllipse(QPointF(x, y), r, r)

    def _draw_energy_overlay(self, painter, snapshot):
        """Energy readout in the top-right corner of the widget."""
        if self.conservation is None:
            conservation = "N/A"
        else:
            conservation = f"{self.conservation:.1f}%"
        lines = [f"Energy: {snapshot.energy:.2f} J", f"Conservation: {conservation}"]

        font = QFont()
        font.setPointSizeF(10)
        painter.setFont(font)
        box = QRectF(self.width() - 190, 10, 180, 46)
        painter.setPen(QPen(QColor(80, 80, 80)))
        painter.setBrush(QBrush(QColor(0, 0, 0, 128)))
        painter.drawRoundedRect(box, 6, 6)
        painter.setPen(MASS2_COLOR)
        painter.drawText(box.adjusted(10, 4, -10, -24),
                         Qt.AlignmentFlag.AlignLeft, lines[0])
        painter.setPen(QColor(160, 160, 160))
        painter.drawText(box.adjusted(10, 24, -10, -4),
                         Qt.AlignmentFlag.AlignLeft, lines[1])

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(17, 17, 17))

        snapshot = self.snapshot
        if snapshot is None:
            painter.end()
            return

        scale, ox, oy = self._scene_transform()
        painter.save()
        painter.translate(ox, oy)
        painter.scale(scale, scale)
        painter.fillRect(QRectF(0, 0, *SCENE_SIZE), BACKGROUND)

        if self.show_trails:
            self._draw_trail(painter, snapshot.trail1, snapshot.alphas1, MASS1_COLOR)
            self._draw_trail(painter, snapshot.trail2, snapshot.alphas2, MASS2_COLOR)

        # Rods
        x1, y1, x2, y2 = snapshot.positions
        rod_pen = QPen(QColor(255, 255, 255))
        rod_pen.setWidthF(3.0)
        painter.setPen(rod_pen)
        painter.drawLine(QPointF(*PIVOT), QPointF(x1, y1))
        painter.drawLine(QPointF(x1, y1), QPointF(x2, y2))

        # Pivot
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(PIVOT_COLOR))
        painter.drawEllipse(QPointF(*PIVOT), 8, 8)

        self._draw_mass(painter, x1, y1, snapshot.config.mass1, MASS1_COLOR)
        self._draw_mass(painter, x2, y2, snapshot.config.mass2, MASS2_COLOR)
        painter.restore()

        if self.show_energy:
            self._draw_energy_overlay(painter, snapshot)

        if self.status_message:
            painter.setPen(QColor(255, 80, 80))
            painter.drawText(
                QRectF(0, self.height() - 30, self.width(), 24),
                Qt.AlignmentFlag.AlignHCenter, self.status_message,
            )

        painter.end()


class EnergyGraph(QWidget):
    """Line plot of the energy history, normalized to the widget height."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.values = np.zeros(0)
        self.setMinimumHeight(120)

    def set_values(self, values):
        self.values = np.asarray(values, dtype=np.float64)
        self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), QColor(17, 17, 17))

        values = self.values
        if values.size <= MIN_CONSERVATION_SAMPLES:
            painter.setPen(QColor(120, 120, 120))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter,
                             "Collecting samples...")
            painter.end()
            return

        w, h = self.width() - 8, self.height() - 8
        xs = 4 + np.arange(values.size) / (values.size - 1) * w
        ys = 4 + h - normalize(values) * h

        path = QPainterPath(QPointF(xs[0], ys[0]))
        for x, y in zip(xs[1:], ys[1:]):
            path.lineTo(QPointF(x, y))

        pen = QPen(MASS2_COLOR)
        pen.setWidthF(2.0)
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawPath(path)
        painter.end()
