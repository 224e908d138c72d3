"""Double pendulum physics engine.

Implements the Lagrangian equations of motion for a double pendulum with
point masses on massless rods, a semi-implicit Euler stepper with optional
exponential velocity damping, and a high-accuracy SciPy reference solver.

Link lengths are given in screen pixels and converted to metres with
METERS_PER_PIXEL wherever they enter the dynamics or the energy.
"""

import math
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
from scipy.integrate import solve_ivp

METERS_PER_PIXEL = 0.01

# Largest time step the session will hand to step() (one 60 Hz frame)
MAX_DT = 1.0 / 60.0

SCENE_SIZE = (800.0, 600.0)
PIVOT = (400.0, 100.0)


class ConfigError(ValueError):
    """Raised when a physical parameter is outside its valid domain."""


class SimulationFault(ArithmeticError):
    """Raised when integration produces an undefined or non-finite value."""


@dataclass
class PendulumConfig:
    """Physical parameters of the double pendulum system."""

    length1: float = 150.0
    length2: float = 150.0
    mass1: float = 10.0
    mass2: float = 10.0
    gravity: float = 9.81
    damping_enabled: bool = False
    damping_coefficient: float = 0.1

    def validate(self):
        """Raise ConfigError unless every parameter is finite and in range."""
        for name in ("length1", "length2", "mass1", "mass2", "gravity"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ConfigError(f"{name} must be a positive number, got {value!r}")
        c = self.damping_coefficient
        if not math.isfinite(c) or c < 0:
            raise ConfigError(
                f"damping_coefficient must be non-negative, got {c!r}"
            )
        return self

    @property
    def l1(self):
        """First link length in metres."""
        return self.length1 * METERS_PER_PIXEL

    @property
    def l2(self):
        """Second link length in metres."""
        return self.length2 * METERS_PER_PIXEL


@dataclass(frozen=True)
class PendulumState:
    """Angles from the downward vertical (rad) and angular velocities (rad/s)."""

    angle1: float
    angle2: float
    velocity1: float = 0.0
    velocity2: float = 0.0

    def as_array(self):
        return np.array(
            [self.angle1, self.angle2, self.velocity1, self.velocity2],
            dtype=np.float64,
        )

    @classmethod
    def from_array(cls, values):
        a1, a2, w1, w2 = (float(v) for v in values)
        return cls(a1, a2, w1, w2)

    def is_finite(self):
        return all(
            math.isfinite(v)
            for v in (self.angle1, self.angle2, self.velocity1, self.velocity2)
        )


INITIAL_STATE = PendulumState(math.pi / 2, math.pi / 2, 0.0, 0.0)


class Positions(NamedTuple):
    """Scene coordinates of both masses (y grows downward)."""

    x1: float
    y1: float
    x2: float
    y2: float


def positions(state, config, pivot=PIVOT):
    """Convert a state to scene coordinates of both masses.

    Both angles are absolute: angle2 is measured from the vertical at
    joint 1, not relative to the first link.
    """
    px, py = pivot
    x1 = px + config.length1 * math.sin(state.angle1)
    y1 = py + config.length1 * math.cos(state.angle1)
    x2 = x1 + config.length2 * math.sin(state.angle2)
    y2 = y1 + config.length2 * math.cos(state.angle2)
    return Positions(x1, y1, x2, y2)


def accelerations(state, config):
    """Angular accelerations (alpha1, alpha2) from the Lagrangian equations.

    Raises SimulationFault if the denominator vanishes or the result is
    not finite.
    """
    theta1, theta2 = state.angle1, state.angle2
    omega1, omega2 = state.velocity1, state.velocity2
    m1, m2, g = config.mass1, config.mass2, config.gravity
    l1, l2 = config.l1, config.l2

    delta = theta1 - theta2
    sin_delta = math.sin(delta)
    cos_delta = math.cos(delta)
    denom = m1 + m2 - m2 * cos_delta**2

    if not math.isfinite(denom) or denom == 0 or l1 == 0 or l2 == 0:
        raise SimulationFault(
            f"Degenerate configuration: denominator={denom!r}, l1={l1!r}, l2={l2!r}"
        )

    # float ** raises OverflowError rather than returning inf
    try:
        alpha1 = (
            -m2 * l1 * omega1**2 * sin_delta * cos_delta
            - m2 * l2 * omega2**2 * sin_delta
            - (m1 + m2) * g * math.sin(theta1)
            + m2 * g * math.sin(theta2) * cos_delta
        ) / (l1 * denom)

        alpha2 = (
            (m1 + m2) * l1 * omega1**2 * sin_delta
            + (m1 + m2) * g * math.sin(theta1) * cos_delta
            + m2 * l2 * omega2**2 * sin_delta * cos_delta
            - (m1 + m2) * g * math.sin(theta2)
        ) / (l2 * denom)
    except OverflowError as exc:
        raise SimulationFault(f"Acceleration overflow in state {state}") from exc

    if not (math.isfinite(alpha1) and math.isfinite(alpha2)):
        raise SimulationFault(
            f"Non-finite acceleration: alpha1={alpha1!r}, alpha2={alpha2!r}"
        )
    return alpha1, alpha2


def damping_factor(config, dt):
    """Velocity multiplier for one step: exp(-c * dt), or 1 when disabled."""
    if config.damping_enabled and config.damping_coefficient > 0:
        return math.exp(-config.damping_coefficient * dt)
    return 1.0


def step(state, config, dt):
    """Advance the state by dt seconds with semi-implicit Euler.

    Velocities are updated first (and damped), then the angles are moved
    with the updated velocities.
    """
    if dt < 0:
        raise ValueError(f"dt must be non-negative, got {dt!r}")

    alpha1, alpha2 = accelerations(state, config)
    decay = damping_factor(config, dt)

    omega1 = (state.velocity1 + alpha1 * dt) * decay
    omega2 = (state.velocity2 + alpha2 * dt) * decay

    new_state = PendulumState(
        angle1=state.angle1 + omega1 * dt,
        angle2=state.angle2 + omega2 * dt,
        velocity1=omega1,
        velocity2=omega2,
    )
    if not new_state.is_finite():
        raise SimulationFault(f"Integration produced a non-finite state: {new_state}")
    return new_state


def derivatives(t, y, config):
    """Compute the four first-order ODEs for the double pendulum.

    State vector: [theta1, theta2, omega1, omega2]
    Returns: [d_theta1/dt, d_theta2/dt, d_omega1/dt, d_omega2/dt]

    When damping is enabled the continuous-time counterpart of the
    stepper's exponential decay, -c * omega, is added to each acceleration.
    """
    state = PendulumState.from_array(y)
    alpha1, alpha2 = accelerations(state, config)
    if config.damping_enabled:
        c = config.damping_coefficient
        alpha1 -= c * state.velocity1
        alpha2 -= c * state.velocity2
    return [state.velocity1, state.velocity2, alpha1, alpha2]


def simulate(config, state, t_end=10.0, dt=0.005):
    """Run a high-accuracy reference simulation with uniformly-spaced output.

    Returns:
        t_array: 1D array of time values at uniform dt spacing
        state_array: 2D array of shape (len(t_array), 4)
    """
    t_eval = np.arange(0, t_end, dt)

    sol = solve_ivp(
        fun=lambda t, y: derivatives(t, y, config),
        t_span=(0, t_end),
        y0=state.as_array(),
        method="DOP853",
        t_eval=t_eval,
        rtol=1e-12,
        atol=1e-12,
    )
    if not sol.success:
        raise SimulationFault(f"Reference integration failed: {sol.message}")

    return sol.t, sol.y.T  # shape: (n_steps, 4)


def total_energy(state, config):
    """Compute total mechanical energy (T + V) in joules.

    Potential energy is measured from the pivot, so a pendulum hanging at
    rest has negative total energy.
    """
    theta1, theta2 = state.angle1, state.angle2
    omega1, omega2 = state.velocity1, state.velocity2
    m1, m2, g = config.mass1, config.mass2, config.gravity
    l1, l2 = config.l1, config.l2

    v1 = l1 * omega1
    v2 = l2 * omega2

    # Kinetic energy
    try:
        T = 0.5 * m1 * v1**2 + 0.5 * m2 * (
            v1**2 + v2**2 + 2 * v1 * v2 * math.cos(theta1 - theta2)
        )
    except OverflowError as exc:
        raise SimulationFault(f"Kinetic energy overflow in state {state}") from exc

    # Potential energy (from pivot)
    V = (
        -m1 * g * l1 * math.cos(theta1)
        - m2 * g * (l1 * math.cos(theta1) + l2 * math.cos(theta2))
    )

    energy = T + V
    if not math.isfinite(energy):
        raise SimulationFault(f"Non-finite energy: {energy!r}")
    return energy


def energy_scale(config):
    """Depth of the potential well, g * ((m1 + m2) * l1 + m2 * l2), in joules."""
    return config.gravity * (
        (config.mass1 + config.mass2) * config.l1 + config.mass2 * config.l2
    )
