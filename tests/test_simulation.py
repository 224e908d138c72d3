"""Tests for simulation.py: accelerations, stepping, energy, kinematics."""

import math

import numpy as np
import pytest

from simulation import (
    INITIAL_STATE, METERS_PER_PIXEL, PIVOT, ConfigError, PendulumConfig,
    PendulumState, SimulationFault, accelerations, derivatives, energy_scale,
    positions, simulate, step, total_energy,
)


def _run(state, config, dt, n_steps):
    """Step n_steps times and return the list of visited states."""
    states = [state]
    for _ in range(n_steps):
        state = step(state, config, dt)
        states.append(state)
    return states


class TestConfig:
    """Test parameter validation."""

    def test_defaults_are_valid(self):
        config = PendulumConfig()
        assert config.validate() is config
        assert config.length1 == 150.0
        assert config.gravity == 9.81
        assert config.damping_enabled is False

    @pytest.mark.parametrize("field", ["length1", "length2", "mass1", "mass2", "gravity"])
    def test_non_positive_rejected(self, field):
        with pytest.raises(ConfigError):
            PendulumConfig(**{field: 0.0}).validate()
        with pytest.raises(ConfigError):
            PendulumConfig(**{field: -5.0}).validate()

    def test_non_finite_rejected(self):
        with pytest.raises(ConfigError):
            PendulumConfig(length1=math.nan).validate()
        with pytest.raises(ConfigError):
            PendulumConfig(mass2=math.inf).validate()

    def test_negative_damping_rejected(self):
        with pytest.raises(ConfigError):
            PendulumConfig(damping_coefficient=-0.1).validate()

    def test_zero_damping_allowed(self):
        PendulumConfig(damping_coefficient=0.0).validate()

    def test_lengths_converted_to_metres(self):
        config = PendulumConfig(length1=200, length2=50)
        assert config.l1 == pytest.approx(200 * METERS_PER_PIXEL)
        assert config.l2 == pytest.approx(50 * METERS_PER_PIXEL)


class TestAccelerations:
    """Test the closed-form angular accelerations for known states."""

    def test_rest_hanging_down(self):
        """At rest hanging straight down, angular accelerations are zero."""
        a1, a2 = accelerations(PendulumState(0.0, 0.0), PendulumConfig())
        assert abs(a1) < 1e-12
        assert abs(a2) < 1e-12

    def test_horizontal_straight(self):
        """Both links horizontal: only the first link is pulled down initially.

        With d = 0 the denominator is m1, so alpha1 = -m1 g / (l1 m1) = -g / l1
        and alpha2 vanishes.
        """
        config = PendulumConfig()
        a1, a2 = accelerations(INITIAL_STATE, config)
        assert a1 == pytest.approx(-config.gravity / config.l1)
        assert a1 == pytest.approx(-6.54)
        assert a2 == pytest.approx(0.0, abs=1e-12)

    def test_depends_on_inputs_only(self):
        state = PendulumState(0.7, -1.2, 0.4, 2.0)
        config = PendulumConfig(mass1=3, mass2=17, length1=90, length2=210)
        assert accelerations(state, config) == accelerations(state, config)

    def test_matches_derivatives(self):
        state = PendulumState(0.5, 1.0, 0.3, -0.2)
        config = PendulumConfig()
        d = derivatives(0.0, state.as_array(), config)
        assert d[0] == pytest.approx(0.3)
        assert d[1] == pytest.approx(-0.2)
        assert (d[2], d[3]) == pytest.approx(accelerations(state, config))


class TestStep:
    """Test the semi-implicit Euler stepper."""

    def test_single_step_regression(self):
        """Default configuration, both links horizontal, one 16 ms step."""
        config = PendulumConfig(
            length1=150, length2=150, mass1=10, mass2=10, gravity=9.81,
        )
        new = step(INITIAL_STATE, config, 0.016)

        assert new.velocity1 == pytest.approx(-6.54 * 0.016)
        assert new.velocity1 == pytest.approx(-0.10464)
        assert new.angle1 == pytest.approx(math.pi / 2 - 0.00167424, abs=1e-12)
        assert new.angle1 < math.pi / 2
        assert new.velocity2 == pytest.approx(0.0, abs=1e-12)
        assert new.angle2 == pytest.approx(math.pi / 2, abs=1e-12)

    def test_second_step_moves_second_link(self):
        config = PendulumConfig()
        s = _run(INITIAL_STATE, config, 0.016, 5)[-1]
        assert s.angle2 != math.pi / 2

    def test_angles_use_updated_velocity(self):
        state = PendulumState(0.4, -0.3, 1.5, -0.7)
        config = PendulumConfig()
        dt = 0.01
        new = step(state, config, dt)
        assert new.angle1 == pytest.approx(state.angle1 + new.velocity1 * dt)
        assert new.angle2 == pytest.approx(state.angle2 + new.velocity2 * dt)

    def test_deterministic(self):
        state = PendulumState(2.1, -0.4, 3.0, -1.0)
        config = PendulumConfig(mass1=7, length2=230)
        assert step(state, config, 1 / 60) == step(state, config, 1 / 60)

    def test_zero_dt_is_identity(self):
        state = PendulumState(0.3, 0.2, 0.1, -0.1)
        assert step(state, PendulumConfig(), 0.0) == state

    def test_negative_dt_rejected(self):
        with pytest.raises(ValueError):
            step(INITIAL_STATE, PendulumConfig(), -0.01)

    def test_angles_not_normalized(self):
        """A fast spin keeps accumulating angle past 2*pi."""
        config = PendulumConfig()
        state = PendulumState(0.0, 0.0, 10.0, 10.0)
        final = _run(state, config, 1 / 120, 240)[-1]
        assert max(abs(final.angle1), abs(final.angle2)) > 2 * math.pi


class TestFaults:
    """Invalid configurations injected past validation must halt stepping."""

    def test_zero_length_raises(self):
        config = PendulumConfig()
        config.length1 = 0.0
        with pytest.raises(SimulationFault):
            step(INITIAL_STATE, config, 0.01)

    def test_zero_masses_raise(self):
        config = PendulumConfig()
        config.mass1 = 0.0
        config.mass2 = 0.0
        with pytest.raises(SimulationFault):
            step(INITIAL_STATE, config, 0.01)

    def test_non_finite_state_raises(self):
        state = PendulumState(0.3, 0.1, math.inf, 0.0)
        with pytest.raises(SimulationFault):
            step(state, PendulumConfig(), 0.01)

    def test_non_finite_energy_raises(self):
        state = PendulumState(math.nan, 0.0, 0.0, 0.0)
        with pytest.raises(SimulationFault):
            total_energy(state, PendulumConfig())

    def test_huge_velocity_overflow_is_fault(self):
        """Squaring a finite but huge velocity overflows the float range."""
        state = PendulumState(0.3, 0.1, 1e200, 0.0)
        with pytest.raises(SimulationFault) as excinfo:
            step(state, PendulumConfig(), 0.01)
        assert isinstance(excinfo.value.__cause__, OverflowError)

    def test_huge_velocity_energy_is_fault(self):
        state = PendulumState(0.3, 0.1, 0.0, -1e200)
        with pytest.raises(SimulationFault):
            total_energy(state, PendulumConfig())


class TestEnergy:
    """Test the total energy bookkeeping."""

    def test_rest_energy_is_negative_well_depth(self):
        config = PendulumConfig()
        e = total_energy(PendulumState(0.0, 0.0), config)
        # -m1 g l1 - m2 g (l1 + l2) with l in metres
        assert e == pytest.approx(-441.45)
        assert e == pytest.approx(-energy_scale(config))

    def test_horizontal_energy_is_zero(self):
        assert total_energy(INITIAL_STATE, PendulumConfig()) == pytest.approx(0.0, abs=1e-9)

    def test_kinetic_term(self):
        config = PendulumConfig()
        state = PendulumState(0.0, 0.0, 2.0, 0.0)
        # 1/2 m1 (l1 w1)^2 + 1/2 m2 (l1 w1)^2 = 45 + 45
        assert total_energy(state, config) == pytest.approx(90.0 - 441.45)

    def test_cross_term_uses_angle_difference(self):
        config = PendulumConfig()
        aligned = PendulumState(0.0, 0.0, 1.0, 1.0)
        opposed = PendulumState(0.0, math.pi, 1.0, 1.0)
        ke_aligned = total_energy(aligned, config) - total_energy(
            PendulumState(0.0, 0.0), config)
        ke_opposed = total_energy(opposed, config) - total_energy(
            PendulumState(0.0, math.pi), config)
        # 2 * 1/2 * m2 * 2 l1 l2 w1 w2 = 45
        assert ke_aligned - ke_opposed == pytest.approx(2 * 10 * 1.5 * 1.5)


class TestEnergyConservation:
    """Without damping, energy drift is bounded by integration error."""

    @staticmethod
    def _max_drift(state, config, dt, t_end):
        states = _run(state, config, dt, round(t_end / dt))
        energies = np.array([total_energy(s, config) for s in states])
        return np.max(np.abs(energies - energies[0])) / energy_scale(config)

    def test_drift_within_tolerance(self):
        config = PendulumConfig()
        drift = self._max_drift(PendulumState(0.5, 0.3), config, 1 / 120, 10.0)
        assert drift < 0.02, f"Energy drift {drift:.4%} exceeds tolerance"

    def test_drift_within_tolerance_other_config(self):
        # The heavy second mass needs a finer step for the same bound
        config = PendulumConfig(length1=100, length2=200, mass1=5, mass2=20, gravity=4.0)
        drift = self._max_drift(PendulumState(-0.4, 0.6), config, 1 / 960, 10.0)
        assert drift < 0.02, f"Energy drift {drift:.4%} exceeds tolerance"

    def test_other_config_drift_shrinks_with_step(self):
        config = PendulumConfig(length1=100, length2=200, mass1=5, mass2=20, gravity=4.0)
        state = PendulumState(-0.4, 0.6)
        coarse = self._max_drift(state, config, 1 / 120, 10.0)
        fine = self._max_drift(state, config, 1 / 240, 10.0)
        assert fine < coarse

    def test_smaller_step_reduces_drift(self):
        config = PendulumConfig()
        state = PendulumState(0.5, 0.3)
        coarse = self._max_drift(state, config, 1 / 120, 5.0)
        fine = self._max_drift(state, config, 1 / 480, 5.0)
        assert fine < coarse


class TestReferenceSolver:
    """The stepper converges to the high-accuracy SciPy trajectory."""

    def test_reference_shapes(self):
        t, states = simulate(PendulumConfig(), INITIAL_STATE, t_end=1.0, dt=0.01)
        assert t.ndim == 1
        assert states.shape == (len(t), 4)
        assert states[0] == pytest.approx(INITIAL_STATE.as_array())

    def test_reference_conserves_energy(self):
        config = PendulumConfig()
        _, states = simulate(config, INITIAL_STATE, t_end=5.0, dt=0.01)
        energies = [total_energy(PendulumState.from_array(s), config) for s in states]
        drift = max(abs(e - energies[0]) for e in energies)
        assert drift < 1e-6 * energy_scale(config)

    def test_stepper_tracks_reference(self):
        config = PendulumConfig()
        start = PendulumState(0.5, 0.3)
        t, ref = simulate(config, start, t_end=1.0, dt=0.01)
        assert t[50] == pytest.approx(0.5)

        stepped = _run(start, config, 0.001, 500)[-1]
        assert stepped.angle1 == pytest.approx(ref[50, 0], abs=1e-2)
        assert stepped.angle2 == pytest.approx(ref[50, 1], abs=1e-2)


class TestPositions:
    """Test scene coordinate conversion (y grows downward)."""

    def test_straight_down(self):
        config = PendulumConfig(length1=150, length2=100)
        x1, y1, x2, y2 = positions(PendulumState(0.0, 0.0), config)
        px, py = PIVOT
        assert (x1, y1) == pytest.approx((px, py + 150))
        assert (x2, y2) == pytest.approx((px, py + 250))

    def test_horizontal(self):
        config = PendulumConfig(length1=150, length2=150)
        pos = positions(INITIAL_STATE, config)
        px, py = PIVOT
        assert pos.x1 == pytest.approx(px + 150)
        assert pos.y1 == pytest.approx(py)
        assert pos.x2 == pytest.approx(px + 300)
        assert pos.y2 == pytest.approx(py)

    def test_second_angle_is_absolute(self):
        """angle2 is measured from the vertical, not from link 1."""
        config = PendulumConfig(length1=100, length2=100)
        pos = positions(PendulumState(math.pi / 2, 0.0), config)
        assert pos.x2 == pytest.approx(pos.x1)
        assert pos.y2 == pytest.approx(pos.y1 + 100)

    def test_custom_pivot(self):
        pos = positions(PendulumState(0.0, 0.0), PendulumConfig(), pivot=(0.0, 0.0))
        assert pos == pytest.approx((0.0, 150.0, 0.0, 300.0))
