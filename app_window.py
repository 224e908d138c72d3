"""App window: hosts the PendulumView with a status bar."""

import logging

from PyQt6.QtWidgets import QMainWindow, QStatusBar

from pendulum.view import PendulumView

logger = logging.getLogger(__name__)


class AppWindow(QMainWindow):
    """Top-level window for the double pendulum simulation."""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Double Pendulum Chaos")
        self.resize(1200, 750)

        self.pendulum_view = PendulumView()
        self.setCentralWidget(self.pendulum_view)

        # --- Status bar ---
        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)
        self._status_bar.addWidget(self.pendulum_view.angle_label)
        self._status_bar.addWidget(self.pendulum_view.energy_label)
        self._status_bar.addWidget(self.pendulum_view.conservation_label)

    def closeEvent(self, event):
        self.pendulum_view.deactivate()
        logger.info("Window closed")
        super().closeEvent(event)
