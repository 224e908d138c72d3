"""Pendulum control panel: playback buttons, parameter sliders, toggles.

Uses PhysicsParamsWidget from ui_common for the physics parameters.
"""

from PyQt6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGroupBox,
    QPushButton, QCheckBox, QLabel,
)

from pendulum.canvas import EnergyGraph
from ui_common import PhysicsParamsWidget


class PendulumControls(QWidget):
    """Buttons, sliders and visibility toggles for the pendulum view."""

    def __init__(self, config, parent=None):
        super().__init__(parent)
        self._init_ui(config)

    def _init_ui(self, config):
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(8, 8, 8, 8)

        # --- Playback ---
        pb_group = QGroupBox("Playback")
        pb_layout = QHBoxLayout()
        pb_group.setLayout(pb_layout)

        self.play_btn = QPushButton("Play")
        self.reset_btn = QPushButton("Reset")
        self.chaos_btn = QPushButton("Chaos")
        self.chaos_btn.setToolTip("Nudge both angles by up to 0.05 rad")

        pb_layout.addWidget(self.play_btn)
        pb_layout.addWidget(self.reset_btn)
        pb_layout.addWidget(self.chaos_btn)

        main_layout.addWidget(pb_group)

        # --- Physics Parameters ---
        sys_group = QGroupBox("Physics Parameters")
        sys_layout = QVBoxLayout()
        sys_group.setLayout(sys_layout)

        self.physics_params = PhysicsParamsWidget(config)
        sys_layout.addWidget(self.physics_params)

        self.damping_checkbox = QCheckBox("Damping")
        self.damping_checkbox.setChecked(config.damping_enabled)
        sys_layout.addWidget(self.damping_checkbox)

        main_layout.addWidget(sys_group)

        # --- Visualization ---
        vis_group = QGroupBox("Visualization")
        vis_layout = QVBoxLayout()
        vis_group.setLayout(vis_layout)

        self.trails_checkbox = QCheckBox("Show trails")
        self.trails_checkbox.setChecked(True)
        self.energy_checkbox = QCheckBox("Show energy")
        self.energy_checkbox.setChecked(True)
        vis_layout.addWidget(self.trails_checkbox)
        vis_layout.addWidget(self.energy_checkbox)

        main_layout.addWidget(vis_group)

        # --- Energy ---
        self.energy_group = QGroupBox("Energy Conservation")
        energy_layout = QVBoxLayout()
        self.energy_group.setLayout(energy_layout)
        self.energy_graph = EnergyGraph()
        energy_layout.addWidget(self.energy_graph)
        hint = QLabel("Total energy over the last 200 frames")
        hint.setStyleSheet("color: #888;")
        energy_layout.addWidget(hint)

        main_layout.addWidget(self.energy_group)
        main_layout.addStretch()

    @property
    def param_sliders(self):
        return self.physics_params.sliders

    def param_value(self, name):
        return self.physics_params.value(name)

    def set_playing(self, playing):
        self.play_btn.setText("Pause" if playing else "Play")
