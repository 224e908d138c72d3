"""Pointer interaction: dragging the masses and the randomize perturbation.

DragController is a two-state machine (idle, dragging one mass). While a
mass is dragged its angle follows the pointer directly and the animation
loop is paused; the loop resumes on release if it was playing before.
"""

from __future__ import annotations

import enum
import logging
import math
import random

from session import AnimationLoop
from simulation import PIVOT, SCENE_SIZE, positions

logger = logging.getLogger(__name__)

# Pixels added around a mass's drawn radius when hit-testing
HIT_MARGIN = 8.0
MIN_MASS_RADIUS = 8.0


class DragTarget(enum.Enum):
    MASS1 = 1
    MASS2 = 2


def mass_radius(mass: float) -> float:
    """Drawn radius of a mass in pixels."""
    return max(MIN_MASS_RADIUS, mass)


def hit_radius(mass: float) -> float:
    return mass_radius(mass) + HIT_MARGIN


def pointer_angle(origin_x: float, origin_y: float, x: float, y: float) -> float:
    """Angle from the downward vertical at origin to the point (x, y)."""
    return math.atan2(x - origin_x, y - origin_y)


def device_to_scene(x: float, y: float, display_size, scene_size=SCENE_SIZE):
    """Map a pointer position on the displayed canvas to scene coordinates.

    display_size is the (width, height) the scene is presented at; the
    scene keeps its aspect ratio and is centred, so letterbox margins are
    subtracted before scaling.
    """
    dw, dh = display_size
    sw, sh = scene_size
    scale = min(dw / sw, dh / sh)
    offset_x = (dw - sw * scale) / 2
    offset_y = (dh - sh * scale) / 2
    return (x - offset_x) / scale, (y - offset_y) / scale


class DragController:
    """Translates pointer events into direct state changes."""

    def __init__(self, loop: AnimationLoop):
        self.loop = loop
        self.target: DragTarget | None = None
        self._was_playing = False

    @property
    def session(self):
        return self.loop.session

    @property
    def dragging(self) -> bool:
        return self.target is not None

    def hit_test(self, x: float, y: float) -> DragTarget | None:
        """Return the mass under (x, y), the closer one if both qualify."""
        config = self.session.config
        pos = positions(self.session.state, config)
        d1 = math.hypot(x - pos.x1, y - pos.y1)
        d2 = math.hypot(x - pos.x2, y - pos.y2)
        in1 = d1 <= hit_radius(config.mass1)
        in2 = d2 <= hit_radius(config.mass2)
        if in1 and in2:
            return DragTarget.MASS2 if d2 <= d1 else DragTarget.MASS1
        if in2:
            return DragTarget.MASS2
        if in1:
            return DragTarget.MASS1
        return None

    def pointer_down(self, x: float, y: float) -> bool:
        """Start dragging the mass under the pointer. Returns True on a hit."""
        if self.dragging:
            return False
        target = self.hit_test(x, y)
        if target is None:
            return False
        self.target = target
        self._was_playing = self.loop.playing
        self.loop.pause()
        self.session.clear_history()
        logger.debug("Drag started on %s", target.name)
        self.loop.render()
        return True

    def pointer_move(self, x: float, y: float) -> None:
        if self.target is None:
            return
        session = self.session
        if self.target is DragTarget.MASS1:
            session.set_angles(angle1=pointer_angle(*PIVOT, x, y))
        else:
            pos = positions(session.state, session.config)
            session.set_angles(angle2=pointer_angle(pos.x1, pos.y1, x, y))
        session.clear_trails()
        self.loop.render()

    def pointer_up(self) -> None:
        if self.target is None:
            return
        logger.debug("Drag ended on %s", self.target.name)
        self.target = None
        if self._was_playing:
            self.loop.play()
        self._was_playing = False

    pointer_leave = pointer_up

    def randomize(self, rng: random.Random | None = None) -> bool:
        """Perturb both angles slightly. Ignored while dragging."""
        if self.dragging:
            return False
        self.session.randomize(rng)
        self.loop.render()
        return True
