"""Shared UI widgets: slider helpers and the physics parameter sliders."""

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QWidget, QGridLayout, QSlider, QLabel

from session import PARAM_RANGES


# ---------------------------------------------------------------------------
# Slider helpers
# ---------------------------------------------------------------------------

def make_slider(minimum, maximum, value, resolution=100, step=1):
    """Create an integer QSlider that maps to float values.

    The slider range is [minimum*resolution, maximum*resolution]; *step* is
    in slider units, and slider_value snaps to it.
    """
    slider = QSlider(Qt.Orientation.Horizontal)
    slider.setMinimum(round(minimum * resolution))
    slider.setMaximum(round(maximum * resolution))
    slider.setSingleStep(step)
    slider.setPageStep(step)
    slider.setValue(round(value * resolution))
    slider.resolution = resolution
    slider.step = step
    return slider


def slider_value(slider):
    """Read the float value from a slider created by make_slider."""
    pos = slider.value()
    step = getattr(slider, "step", 1)
    if step > 1:
        pos = round(pos / step) * step
    return pos / slider.resolution


def make_param_slider(name, value):
    """Slider over PARAM_RANGES[name], with integer positions on the step grid."""
    bounds = PARAM_RANGES[name]
    if bounds.step >= 1:
        resolution, step = 1, round(bounds.step)
    else:
        resolution, step = round(1 / bounds.step), 1
    return make_slider(bounds.minimum, bounds.maximum, value, resolution, step)


# ---------------------------------------------------------------------------
# PhysicsParamsWidget
# ---------------------------------------------------------------------------

class PhysicsParamsWidget(QWidget):
    """Grouped sliders for the physics parameters.

    Emits no signals itself. The parent connects slider.valueChanged of
    the entries in ``sliders`` (keyed by configuration field name).
    """

    ROWS = [
        ("length1", "Length 1", " px", "{:.0f}"),
        ("length2", "Length 2", " px", "{:.0f}"),
        ("mass1", "Mass 1", " kg", "{:.0f}"),
        ("mass2", "Mass 2", " kg", "{:.0f}"),
        ("gravity", "Gravity", " m/s²", "{:.1f}"),
        ("damping_coefficient", "Damping", " /s", "{:.2f}"),
    ]

    def __init__(self, config, parent=None):
        super().__init__(parent)
        layout = QGridLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.sliders = {}
        for row, (name, label_text, unit, fmt) in enumerate(self.ROWS):
            slider = make_param_slider(name, getattr(config, name))
            self.sliders[name] = slider
            self._add_row(layout, row, label_text, slider, unit, fmt)

    def _add_row(self, layout, row, label_text, slider, unit, fmt):
        label = QLabel(label_text)
        value_label = QLabel()
        value_label.setMinimumWidth(70)
        value_label.setAlignment(
            Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter
        )
        layout.addWidget(label, row, 0)
        layout.addWidget(slider, row, 1)
        layout.addWidget(value_label, row, 2)

        def _update(_val, vl=value_label, sl=slider, u=unit, f=fmt):
            vl.setText(f.format(slider_value(sl)) + u)

        slider.valueChanged.connect(_update)
        _update(slider.value())

    def value(self, name):
        return slider_value(self.sliders[name])

