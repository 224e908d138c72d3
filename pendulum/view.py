"""Pendulum view: wires the simulation session, canvas, and controls.

This is a QWidget hosted by AppWindow. The animation loop is driven by a
QTimer-backed FrameScheduler; pointer events from the canvas go through
the DragController.
"""

import logging

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtWidgets import QWidget, QHBoxLayout, QSplitter, QLabel

from history import conservation_percent
from interaction import DragController
from pendulum.canvas import PendulumCanvas
from pendulum.controls import PendulumControls
from session import AnimationLoop, MonotonicClock, SimulationSession
from simulation import ConfigError, energy_scale

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# QtFrameScheduler
# ---------------------------------------------------------------------------

class QtFrameScheduler:
    """FrameScheduler backed by a precise QTimer at the display rate."""

    FPS = 60

    def __init__(self):
        self._timer = QTimer()
        self._timer.setTimerType(Qt.TimerType.PreciseTimer)
        self._timer.setInterval(int(1000 / self.FPS))
        self._callback = None
        self._timer.timeout.connect(self._on_timeout)

    @property
    def active(self):
        return self._timer.isActive()

    def start(self, callback):
        self._callback = callback
        self._timer.start()

    def stop(self):
        self._timer.stop()
        self._callback = None

    def _on_timeout(self):
        if self._callback is not None:
            self._callback()


# ---------------------------------------------------------------------------
# PendulumView
# ---------------------------------------------------------------------------

class PendulumView(QWidget):
    """Complete pendulum mode: canvas + controls + simulation wiring."""

    def __init__(self, session=None, parent=None):
        super().__init__(parent)

        self.session = session or SimulationSession()
        self.canvas = PendulumCanvas()
        self.controls = PendulumControls(self.session.config)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self.canvas)
        splitter.addWidget(self.controls)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(splitter)

        # Status bar labels (AppWindow places these in the real status bar)
        self.angle_label = QLabel()
        self.energy_label = QLabel()
        self.conservation_label = QLabel()

        self.loop = AnimationLoop(
            self.session,
            QtFrameScheduler(),
            MonotonicClock(),
            on_frame=self._on_frame,
            on_fault=self._on_fault,
        )
        self.drag = DragController(self.loop)

        # Wire signals
        self.controls.play_btn.clicked.connect(self._toggle_play)
        self.controls.reset_btn.clicked.connect(self._reset)
        self.controls.chaos_btn.clicked.connect(self._randomize)
        self.controls.damping_checkbox.toggled.connect(self._on_damping_toggled)
        self.controls.trails_checkbox.toggled.connect(self._on_trails_toggled)
        self.controls.energy_checkbox.toggled.connect(self._on_energy_toggled)
        for name, slider in self.controls.param_sliders.items():
            slider.valueChanged.connect(
                lambda _val, n=name: self._on_param_changed(n)
            )

        self.canvas.pointer_pressed.connect(self.drag.pointer_down)
        self.canvas.pointer_moved.connect(self.drag.pointer_move)
        self.canvas.pointer_released.connect(self.drag.pointer_up)
        self.canvas.pointer_left.connect(self.drag.pointer_leave)

        self.loop.render()

    def deactivate(self):
        """Stop scheduling frames, e.g. before the window closes."""
        self.loop.pause()
        self.controls.set_playing(False)

    # -- Frame handling --

    def _on_frame(self, snapshot):
        conservation = conservation_percent(
            self.session.energy_history,
            energy_scale(snapshot.config),
            snapshot.energy,
        )
        self.canvas.set_snapshot(snapshot, conservation)
        self.controls.energy_graph.set_values(snapshot.energy_history)
        self.controls.set_playing(self.loop.playing)

        state = snapshot.state
        self.angle_label.setText(
            f"  θ1 = {state.angle1:+.3f}  θ2 = {state.angle2:+.3f} rad  "
        )
        self.energy_label.setText(f"  E = {snapshot.energy:.4f} J  ")
        if conservation is None:
            self.conservation_label.setText("  Conservation: N/A  ")
        else:
            self.conservation_label.setText(f"  Conservation: {conservation:.1f}%  ")

    def _on_fault(self, exc):
        self.controls.set_playing(False)
        message = f"Simulation halted: {exc}. Press Reset."
        self.energy_label.setText("  E = N/A  ")
        self.conservation_label.setText(f"  {message}  ")
        self.canvas.status_message = message
        self.canvas.update()

    # -- Playback --

    def _toggle_play(self):
        self.loop.toggle()
        self.controls.set_playing(self.loop.playing)

    def _reset(self):
        self.canvas.status_message = ""
        self.loop.reset()
        self.controls.set_playing(False)

    def _randomize(self):
        self.drag.randomize()

    # -- Parameters --

    def _on_param_changed(self, name):
        value = self.controls.param_value(name)
        try:
            self.session.set_param(name, value)
        except ConfigError as exc:
            logger.warning("Rejected parameter change: %s", exc)
            return
        if not self.loop.playing:
            self.loop.render()

    def _on_damping_toggled(self, checked):
        self.session.set_damping_enabled(checked)

    def _on_trails_toggled(self, checked):
        self.canvas.show_trails = checked
        self.canvas.update()

    def _on_energy_toggled(self, checked):
        self.canvas.show_energy = checked
        self.controls.energy_group.setVisible(checked)
        self.canvas.update()
