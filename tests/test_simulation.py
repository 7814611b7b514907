import math

import numpy as np
import pytest

from pointer import PointerState
from simulation import Simulation, attraction_gain


def place(simulation, positions, velocities=None):
    """Replaces the particle arrays with hand-placed particles."""
    positions = np.array(positions, dtype=np.float64)
    simulation.particles.positions = positions
    if velocities is None:
        velocities = np.zeros_like(positions)
    simulation.particles.velocities = np.array(velocities, dtype=np.float64)
    simulation.particles.radii = np.ones(len(positions))


def test_positions_stay_on_the_torus(make_simulation, pointer, rng):
    simulation = make_simulation(particle_count=200, rng=rng)
    simulation.particles.velocities = rng.uniform(-500.0, 500.0, size=(200, 2))

    for _ in range(50):
        simulation.step(16.0, pointer)
        positions = simulation.particles.positions
        assert np.all((positions[:, 0] >= 0.0) & (positions[:, 0] < 800.0))
        assert np.all((positions[:, 1] >= 0.0) & (positions[:, 1] < 600.0))


def test_tiny_negative_overshoot_wraps_strictly_inside(make_simulation, pointer):
    simulation = make_simulation(particle_count=1)
    place(simulation, [[0.0, 0.0]], [[-1e-18, -1e-18]])

    simulation.step(16.0, pointer)

    x, y = simulation.particles.positions[0]
    assert 0.0 <= x < 800.0
    assert 0.0 <= y < 600.0


def test_wrap_reappears_on_opposite_edge(make_simulation, pointer):
    simulation = make_simulation(particle_count=1)
    place(simulation, [[799.0, 300.0]], [[3.0, 0.0]])

    simulation.step(16.0, pointer)

    assert simulation.particles.positions[0, 0] == pytest.approx(2.0)


def test_attraction_gain_falls_off_linearly():
    assert attraction_gain(0.0, 220.0) == 1.0
    assert attraction_gain(110.0, 220.0) == pytest.approx(0.5)
    assert attraction_gain(220.0, 220.0) == 0.0
    assert attraction_gain(300.0, 220.0) == 0.0
    assert attraction_gain(10.0, 0.0) == 0.0


def test_particle_on_attraction_boundary_feels_nothing(make_simulation):
    simulation = make_simulation(particle_count=1)
    place(simulation, [[80.0, 300.0]])
    simulation.cursor_dist = simulation.hover_attr_max
    pointer = PointerState(x=300.0, y=300.0, active=True)

    simulation.step(16.0, pointer)

    np.testing.assert_array_equal(simulation.particles.velocities, [[0.0, 0.0]])


def test_particle_inside_attraction_radius_is_pulled_in(make_simulation):
    simulation = make_simulation(particle_count=1)
    place(simulation, [[278.0, 300.0]])
    simulation.cursor_dist = 220.0
    pointer = PointerState(x=300.0, y=300.0, active=True)

    simulation.step(16.0, pointer)

    expected = attraction_gain(22.0, 220.0) * simulation.attraction_force * simulation.damping
    vx, vy = simulation.particles.velocities[0]
    assert vx == pytest.approx(expected)
    assert vy == pytest.approx(0.0)


def test_particle_under_pointer_stays_finite(make_simulation):
    simulation = make_simulation(particle_count=1)
    place(simulation, [[300.0, 300.0]])
    simulation.cursor_dist = 220.0
    pointer = PointerState(x=300.0, y=300.0, active=True)

    simulation.step(16.0, pointer)

    assert np.all(np.isfinite(simulation.particles.positions))
    assert np.all(np.isfinite(simulation.particles.velocities))


def test_inactive_pointer_exerts_no_pull(make_simulation):
    simulation = make_simulation(particle_count=1)
    place(simulation, [[290.0, 300.0]])
    simulation.cursor_dist = 220.0
    pointer = PointerState(x=300.0, y=300.0, active=False)

    simulation.step(16.0, pointer)

    np.testing.assert_array_equal(simulation.particles.velocities, [[0.0, 0.0]])


def test_damping_drives_free_particles_to_rest(make_simulation, pointer):
    simulation = make_simulation(particle_count=100)
    initial = simulation.particles.speeds().copy()
    previous = initial

    for _ in range(300):
        simulation.step(16.0, pointer)
        speeds = simulation.particles.speeds()
        assert np.all(speeds <= previous + 1e-15)
        previous = speeds

    assert np.all(previous <= initial * simulation.damping ** 300 + 1e-12)


def test_rupture_impulse_scenario(make_simulation):
    simulation = make_simulation(particle_count=1, shock_impulse=4.5, rupture_falloff_distance=120)
    place(simulation, [[30.0, 40.0]])

    simulation.rupture(0.0, 0.0)

    vx, vy = simulation.particles.velocities[0]
    assert math.hypot(vx, vy) == pytest.approx(4.5)
    assert vx == pytest.approx(4.5 * 30.0 / 50.0)
    assert vy == pytest.approx(4.5 * 40.0 / 50.0)


def test_rupture_falloff_weakens_distant_particles(make_simulation):
    simulation = make_simulation(particle_count=2)
    place(simulation, [[240.0, 0.0], [0.0, 0.0]])

    simulation.rupture(0.0, 0.0)

    assert simulation.particles.velocities[0, 0] == pytest.approx(4.5 * 120.0 / 240.0)
    # A particle on the press itself has no direction to be pushed in.
    np.testing.assert_array_equal(simulation.particles.velocities[1], [0.0, 0.0])


def test_rupture_spawns_wave_and_restarts_link_fade(make_simulation):
    simulation = make_simulation()

    assert simulation.rupture(100.0, 200.0)

    assert len(simulation.shockwaves) == 1
    wave = next(iter(simulation.shockwaves))
    assert (wave.x, wave.y) == (100.0, 200.0)
    assert simulation.link_fade == simulation.link_fade_time


def test_rupture_at_non_finite_position_is_ignored(make_simulation):
    simulation = make_simulation()

    assert not simulation.rupture(float("nan"), 10.0)

    assert len(simulation.shockwaves) == 0
    assert np.all(np.isfinite(simulation.particles.velocities))


def test_shock_band_pushes_particles_on_the_ring(make_simulation, pointer):
    simulation = make_simulation(particle_count=3, shock_band=18, shock_impulse=4.5)
    # ring radius is 1 + 6 = 7 once the step has grown it
    place(simulation, [[307.0, 300.0], [316.0, 300.0], [350.0, 300.0]])
    simulation.shockwaves.spawn(300.0, 300.0)

    simulation.step(16.0, pointer)

    velocities = simulation.particles.velocities
    assert velocities[0, 0] == pytest.approx(4.5 * simulation.damping)
    assert velocities[1, 0] == pytest.approx((1.0 - 9.0 / 18.0) * 4.5 * simulation.damping)
    assert velocities[2, 0] == 0.0


def test_overlapping_waves_add_up(make_simulation, pointer):
    simulation = make_simulation(particle_count=1)
    place(simulation, [[307.0, 300.0]])
    simulation.shockwaves.spawn(300.0, 300.0)
    simulation.shockwaves.spawn(300.0, 300.0)

    simulation.step(16.0, pointer)

    assert simulation.particles.velocities[0, 0] == pytest.approx(2 * 4.5 * simulation.damping)


def test_pointer_leave_decays_attraction_radius_to_zero(make_simulation):
    simulation = make_simulation(particle_count=10)
    pointer = PointerState(x=400.0, y=300.0, active=True)
    frames = int(simulation.hover_attr_max / simulation.hover_attr_step)

    for _ in range(frames):
        simulation.step(16.0, pointer)
    assert simulation.cursor_dist == simulation.hover_attr_max

    simulation.step(16.0, pointer)
    assert simulation.cursor_dist == simulation.hover_attr_max

    pointer.active = False
    for _ in range(frames):
        simulation.step(16.0, pointer)
    assert simulation.cursor_dist == 0.0

    for _ in range(5):
        simulation.step(16.0, pointer)
        assert simulation.cursor_dist == 0.0


def test_link_fade_counts_down_and_floors_at_zero(make_simulation, pointer):
    simulation = make_simulation()
    simulation.rupture(10.0, 10.0)

    simulation.step(100.0, pointer)
    assert simulation.link_fade == pytest.approx(600.0)

    for _ in range(10):
        simulation.step(100.0, pointer)
    assert simulation.link_fade == 0.0


@pytest.mark.parametrize("dt", [0.0, -16.0, float("nan"), float("inf"), None])
def test_unusable_frame_time_skips_the_frame(make_simulation, pointer, dt):
    simulation = make_simulation()
    simulation.rupture(10.0, 10.0)
    positions = simulation.particles.positions.copy()

    assert simulation.step(dt, pointer) is False

    assert simulation.clock == 0.0
    assert next(iter(simulation.shockwaves)).radius == simulation.shockwaves.initial_radius
    np.testing.assert_array_equal(simulation.particles.positions, positions)


def test_long_frame_time_is_clamped(make_simulation, pointer):
    simulation = make_simulation(max_frame_dt=100)
    simulation.rupture(10.0, 10.0)

    simulation.step(5000.0, pointer)

    assert simulation.clock == 100.0
    assert len(simulation.shockwaves) == 1
    assert next(iter(simulation.shockwaves)).life == pytest.approx(800.0)


def test_non_finite_velocity_is_discarded(make_simulation, pointer):
    simulation = make_simulation(particle_count=2)
    place(simulation, [[10.0, 10.0], [20.0, 20.0]], [[np.nan, 1.0], [1.0, 1.0]])

    simulation.step(16.0, pointer)

    assert np.all(np.isfinite(simulation.particles.positions))
    assert np.all(np.isfinite(simulation.particles.velocities))
    np.testing.assert_array_equal(simulation.particles.positions[0], [10.0, 10.0])


def test_resize_resets_field_and_drops_waves(make_simulation):
    simulation = make_simulation(width=800.0, height=600.0, particle_count=260)
    simulation.rupture(700.0, 500.0)

    simulation.resize(400.0, 300.0)

    positions = simulation.particles.positions
    assert len(positions) == 260
    assert np.all((positions[:, 0] >= 0.0) & (positions[:, 0] < 400.0))
    assert np.all((positions[:, 1] >= 0.0) & (positions[:, 1] < 300.0))
    assert len(simulation.shockwaves) == 0


def test_field_stays_bounded_under_sustained_interaction(make_simulation, rng):
    simulation = make_simulation(particle_count=260, rng=rng)
    pointer = PointerState(x=400.0, y=300.0, active=True)

    for frame in range(1000):
        pointer.x, pointer.y = rng.uniform([0.0, 0.0], [800.0, 600.0])
        if frame % 3 == 0:
            simulation.rupture(pointer.x, pointer.y)
        simulation.step(16.0, pointer)

        assert len(simulation.shockwaves) <= simulation.shockwaves.capacity

    assert np.all(np.isfinite(simulation.particles.velocities))
    assert simulation.particles.speeds().max() < 1000.0
    positions = simulation.particles.positions
    assert np.all((positions[:, 0] >= 0.0) & (positions[:, 0] < 800.0))
    assert np.all((positions[:, 1] >= 0.0) & (positions[:, 1] < 600.0))


@pytest.mark.parametrize("overrides", [
    {"damping": 1.0},
    {"damping": 0.0},
    {"shock_band": 0},
    {"max_link_distance": -1},
    {"hover_attraction_max": -5},
])
def test_invalid_parameters_are_rejected(overrides):
    with pytest.raises(ValueError):
        Simulation(dict({"particle_count": 5}, **overrides), 100.0, 100.0)
