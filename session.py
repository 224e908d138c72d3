"""Simulation session and the frame-driven animation loop.

SimulationSession owns the configuration, the state and the history
buffers, and advances them together in one atomic transition per frame.
AnimationLoop drives a session from an injectable clock and frame
scheduler, so the whole engine runs without a display.
"""

from __future__ import annotations

import logging
import math
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import NamedTuple, Protocol

import numpy as np

from history import EnergyHistory, TrailBuffer, TrailPoint
from simulation import (
    INITIAL_STATE, MAX_DT, ConfigError, PendulumConfig, PendulumState,
    Positions, SimulationFault, positions, step, total_energy,
)

logger = logging.getLogger(__name__)

# Half-width of the uniform angle perturbation applied by randomize (rad)
RANDOMIZE_SPREAD = 0.05


@dataclass(frozen=True)
class ParamRange:
    """Valid range and slider step for one configuration field."""

    minimum: float
    maximum: float
    step: float

    def contains(self, value: float) -> bool:
        return math.isfinite(value) and self.minimum <= value <= self.maximum


PARAM_RANGES = {
    "length1": ParamRange(50, 250, 10),
    "length2": ParamRange(50, 250, 10),
    "mass1": ParamRange(1, 50, 1),
    "mass2": ParamRange(1, 50, 1),
    "gravity": ParamRange(1, 20, 0.1),
    "damping_coefficient": ParamRange(0.01, 1, 0.01),
}


class FrameSnapshot(NamedTuple):
    """Read-only view of one frame, handed to the renderer."""

    state: PendulumState
    config: PendulumConfig
    positions: Positions
    trail1: tuple[TrailPoint, ...]
    trail2: tuple[TrailPoint, ...]
    alphas1: np.ndarray
    alphas2: np.ndarray
    energy: float
    energy_history: np.ndarray
    now: float


class SimulationSession:
    """State, configuration and history buffers of one simulation run."""

    def __init__(self, config: PendulumConfig | None = None,
                 state: PendulumState = INITIAL_STATE):
        self.config = (config or PendulumConfig()).validate()
        self.state = state
        self.trail1 = TrailBuffer()
        self.trail2 = TrailBuffer()
        self.energy_history = EnergyHistory()
        self.fault: SimulationFault | None = None

    # -- Per-frame transition --

    def advance(self, dt: float, now: float) -> bool:
        """Step the pendulum by dt seconds and record the frame at time now (ms).

        dt is clamped to [0, MAX_DT]; a zero step changes nothing. Either
        the state and all buffers are updated together or none of them is.
        Returns True if a step was taken.
        """
        if self.fault is not None:
            raise SimulationFault(f"Simulation halted: {self.fault}")

        dt = min(max(dt, 0.0), MAX_DT)
        if dt == 0:
            return False

        try:
            new_state = step(self.state, self.config, dt)
            pos = positions(new_state, self.config)
            energy = total_energy(new_state, self.config)
        except SimulationFault as exc:
            self.fault = exc
            logger.error("Simulation halted: %s", exc)
            raise

        self.state = new_state
        self.trail1.append(pos.x1, pos.y1, now)
        self.trail2.append(pos.x2, pos.y2, now)
        self.energy_history.append(energy)
        return True

    def snapshot(self, now: float) -> FrameSnapshot:
        """Collect everything the renderer needs, with fades computed at now."""
        self.trail1.evict(now)
        self.trail2.evict(now)
        return FrameSnapshot(
            state=self.state,
            config=self.config,
            positions=positions(self.state, self.config),
            trail1=tuple(self.trail1),
            trail2=tuple(self.trail2),
            alphas1=self.trail1.alphas(now),
            alphas2=self.trail2.alphas(now),
            energy=total_energy(self.state, self.config),
            energy_history=self.energy_history.values(),
            now=now,
        )

    # -- Control surface --

    def reset(self) -> None:
        """Return to the initial condition with empty buffers."""
        self.state = INITIAL_STATE
        self.clear_history()
        self.fault = None
        logger.info("Simulation reset")

    def clear_trails(self) -> None:
        self.trail1.clear()
        self.trail2.clear()

    def clear_history(self) -> None:
        self.clear_trails()
        self.energy_history.clear()

    def set_angles(self, angle1: float | None = None,
                   angle2: float | None = None) -> None:
        """Place the pendulum directly, at rest."""
        self.state = PendulumState(
            angle1=self.state.angle1 if angle1 is None else angle1,
            angle2=self.state.angle2 if angle2 is None else angle2,
            velocity1=0.0,
            velocity2=0.0,
        )

    def randomize(self, rng: random.Random | None = None) -> None:
        """Nudge both angles by independent offsets in [-0.05, 0.05] rad."""
        rng = rng or random
        self.state = replace(
            self.state,
            angle1=self.state.angle1 + rng.uniform(-RANDOMIZE_SPREAD, RANDOMIZE_SPREAD),
            angle2=self.state.angle2 + rng.uniform(-RANDOMIZE_SPREAD, RANDOMIZE_SPREAD),
        )
        logger.debug(
            "Randomized angles to %.4f, %.4f", self.state.angle1, self.state.angle2,
        )

    def set_param(self, name: str, value: float) -> None:
        """Set one numeric configuration field, validated against PARAM_RANGES.

        Raises KeyError for unknown names and ConfigError for values out of
        range; the previous configuration is kept on error.
        """
        if name not in PARAM_RANGES:
            raise KeyError(f"Unknown parameter: {name}")
        value = float(value)
        bounds = PARAM_RANGES[name]
        if not bounds.contains(value):
            raise ConfigError(
                f"{name}={value!r} outside [{bounds.minimum}, {bounds.maximum}]"
            )
        self.config = replace(self.config, **{name: value}).validate()
        logger.debug("Set %s = %s", name, value)

    def set_damping_enabled(self, enabled: bool) -> None:
        self.config = replace(self.config, damping_enabled=bool(enabled))
        logger.debug("Damping %s", "enabled" if enabled else "disabled")


# ---------------------------------------------------------------------------
# Clock and scheduling
# ---------------------------------------------------------------------------

class Clock(Protocol):
    def now(self) -> float:
        """Current time in milliseconds."""
        ...


class FrameScheduler(Protocol):
    """Calls a callback once per display frame until stopped."""

    @property
    def active(self) -> bool:
        ...

    def start(self, callback: Callable[[], None]) -> None:
        ...

    def stop(self) -> None:
        ...


class MonotonicClock:
    """Clock backed by time.perf_counter."""

    def now(self) -> float:
        return time.perf_counter() * 1000.0


class AnimationLoop:
    """Drives a SimulationSession: one step and one frame callback per tick."""

    def __init__(
        self,
        session: SimulationSession,
        scheduler: FrameScheduler,
        clock: Clock | None = None,
        on_frame: Callable[[FrameSnapshot], None] | None = None,
        on_fault: Callable[[SimulationFault], None] | None = None,
    ):
        self.session = session
        self.scheduler = scheduler
        self.clock = clock or MonotonicClock()
        self.on_frame = on_frame
        self.on_fault = on_fault
        self._playing = False
        self._last_time = 0.0

    @property
    def playing(self) -> bool:
        return self._playing

    def play(self) -> None:
        if self._playing:
            return
        if self.session.fault is not None:
            logger.warning("Cannot play a halted simulation; reset first")
            return
        self._last_time = self.clock.now()
        self._playing = True
        self.scheduler.start(self._tick)
        logger.info("Playback started")

    def pause(self) -> None:
        if not self._playing:
            return
        self._playing = False
        self.scheduler.stop()
        logger.info("Playback paused")

    def toggle(self) -> None:
        if self._playing:
            self.pause()
        else:
            self.play()

    def reset(self) -> None:
        self.pause()
        self.session.reset()
        self.render()

    def render(self) -> None:
        """Push a snapshot of the current state to the frame callback."""
        if self.on_frame is not None:
            self.on_frame(self.session.snapshot(self.clock.now()))

    def _tick(self) -> None:
        if not self._playing:
            return
        now = self.clock.now()
        dt = (now - self._last_time) / 1000.0
        self._last_time = now
        try:
            self.session.advance(dt, now)
        except SimulationFault as exc:
            self.pause()
            if self.on_fault is not None:
                self.on_fault(exc)
            return
        if self.on_frame is not None:
            self.on_frame(self.session.snapshot(now))
