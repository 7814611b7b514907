# simulation.py
"""
Handles the core field logic and physics calculations.

This module defines the Simulation class, which is responsible for
advancing the field by one frame: it animates the attraction radius, ages the
shockwaves, pulls particles toward the pointer, pushes them away from
shockwave fronts, integrates and damps their motion and wraps them around the
edges of the surface.

Ring growth, damping and position integration are per-frame quantities (the
field is tuned for a display refresh of ~60 Hz). Only the clock, the link
fade and shockwave life consume the elapsed milliseconds.
"""
import logging
import math
import numpy as np
from typing import Dict, Any, Optional, TYPE_CHECKING
from numba import jit
from particle import ParticleSystem
from shockwave import ShockwaveStore
from constants import (
    HOVER_ATTR_MAX, HOVER_ATTR_STEP, ATTR_FORCE, BASE_DAMP, SHOCK_IMPULSE,
    SHOCK_VR, SHOCK_LIFE, SHOCK_BAND, INITIAL_SHOCK_RADIUS, LINK_FADE_TIME,
    RUPTURE_FALLOFF_DISTANCE, MAX_SHOCKWAVES, MAX_FRAME_DT, MAX_LINK,
    DISTANCE_EPSILON
)
from utils import require_positive

if TYPE_CHECKING:
    from pointer import PointerState

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, params: Dict[str, Any], width: float, height: float,
#              rng: Optional[np.random.Generator] = None):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "hover_attraction_max", "hover_attraction_step": float
#         - "attraction_force", "damping": float
#         - "shock_impulse", "shock_growth", "shock_life", "shock_band": float
#         - "link_fade_time", "max_link_distance": float
#         - "rupture_falloff_distance", "max_frame_dt": float
#         - "max_shockwaves": int
#       - width, height: logical size of the drawing surface.
#     - Side Effects: Creates the ParticleSystem and ShockwaveStore.
#     - Raises: ValueError if a tunable is out of range.
#
#   - step(self, dt: float, pointer: PointerState) -> bool:
#     - Inputs: elapsed milliseconds since the previous frame, and the
#       pointer state written by the input adapter.
#     - Outputs: False if the frame was skipped because dt was unusable.
#     - Side Effects: Mutates particles, shockwaves, cursor_dist, link_fade
#       and clock.
#     - Invariants: Particle count remains constant. Particle positions stay
#       inside [0, width) x [0, height). No NaN enters the particle arrays.
#
#   - rupture(self, x: float, y: float) -> bool:
#     - Spawns a shockwave at (x, y), restarts the link fade and gives every
#       particle an immediate outward kick.
#
#   - resize(self, width: float, height: float) -> None:
#     - Full reset of the particle store for the new surface size.

@jit(nopython=True)
def _wrap_coordinate_numba(value, bound):
    """Maps a coordinate onto [0, bound) on a torus."""
    value = value - bound * np.floor(value / bound)
    # Rounding can land exactly on bound; NaN fails the test as well.
    if not (0.0 <= value < bound):
        value = 0.0
    return value

@jit(nopython=True)
def _advance_particles_numba(
    positions, velocities, width, height,
    pointer_x, pointer_y, attraction_radius, attraction_force,
    shock_origins, shock_radii, shock_band, shock_impulse,
    damping, epsilon
):
    """
    Numba-jitted per-particle update: pointer attraction, shock band
    impulses, integration, damping and toroidal wrap, in that order.
    An attraction_radius of 0 disables the pointer pull.
    """
    particle_count = positions.shape[0]
    wave_count = shock_radii.shape[0]
    attraction_radius_sq = attraction_radius * attraction_radius

    for i in range(particle_count):
        x = positions[i, 0]
        y = positions[i, 1]
        vx = velocities[i, 0]
        vy = velocities[i, 1]

        # --- Pointer gravity: linear falloff, zero at the radius edge ---
        if attraction_radius > 0.0:
            dx = pointer_x - x
            dy = pointer_y - y
            distance_sq = dx * dx + dy * dy
            if distance_sq < attraction_radius_sq:
                distance = math.sqrt(distance_sq)
                if distance == 0.0:
                    distance = epsilon
                pull = (attraction_radius - distance) / attraction_radius * attraction_force
                vx += dx / distance * pull
                vy += dy / distance * pull

        # --- Shock fronts: push particles straddled by a ring ---
        for k in range(wave_count):
            dx = x - shock_origins[k, 0]
            dy = y - shock_origins[k, 1]
            distance = math.sqrt(dx * dx + dy * dy)
            if distance == 0.0:
                distance = epsilon
            offset = abs(distance - shock_radii[k])
            if offset < shock_band:
                push = (1.0 - offset / shock_band) * shock_impulse
                vx += dx / distance * push
                vy += dy / distance * push

        if not (math.isfinite(vx) and math.isfinite(vy)):
            vx = 0.0
            vy = 0.0

        x += vx
        y += vy
        vx *= damping
        vy *= damping

        positions[i, 0] = _wrap_coordinate_numba(x, width)
        positions[i, 1] = _wrap_coordinate_numba(y, height)
        velocities[i, 0] = vx
        velocities[i, 1] = vy

def attraction_gain(distance: float, radius: float) -> float:
    """
    Fraction of the full attraction felt at `distance` from the pointer:
    1 at the pointer, falling linearly to 0 at `radius` and beyond.
    """
    if radius <= 0 or distance >= radius:
        return 0.0
    return (radius - max(distance, 0.0)) / radius

class Simulation:
    """
    Owns the particle and shockwave stores and advances them frame by frame.
    """
    def __init__(
        self,
        params: Dict[str, Any],
        width: float,
        height: float,
        rng: Optional[np.random.Generator] = None
    ):
        self.hover_attr_max = float(params.get('hover_attraction_max', HOVER_ATTR_MAX))
        self.hover_attr_step = require_positive(
            'hover_attraction_step', params.get('hover_attraction_step', HOVER_ATTR_STEP)
        )
        self.attraction_force = float(params.get('attraction_force', ATTR_FORCE))
        self.damping = float(params.get('damping', BASE_DAMP))
        self.shock_impulse = float(params.get('shock_impulse', SHOCK_IMPULSE))
        self.shock_band = require_positive('shock_band', params.get('shock_band', SHOCK_BAND))
        self.link_fade_time = require_positive('link_fade_time', params.get('link_fade_time', LINK_FADE_TIME))
        self.max_link = require_positive('max_link_distance', params.get('max_link_distance', MAX_LINK))
        self.rupture_falloff_distance = require_positive(
            'rupture_falloff_distance', params.get('rupture_falloff_distance', RUPTURE_FALLOFF_DISTANCE)
        )
        self.max_frame_dt = require_positive('max_frame_dt', params.get('max_frame_dt', MAX_FRAME_DT))
        self.epsilon = DISTANCE_EPSILON

        # Validate on initialization.
        if not 0.0 < self.damping < 1.0:
            msg = (
                f"Configuration error: damping must lie strictly between 0 and 1, "
                f"got {self.damping}. Values >= 1 let velocities grow without bound."
            )
            logging.critical(msg)
            raise ValueError(msg)
        if self.hover_attr_max < 0:
            msg = f"Configuration error: hover_attraction_max must be >= 0, got {self.hover_attr_max}."
            logging.critical(msg)
            raise ValueError(msg)

        self.particles = ParticleSystem(params, width, height, rng=rng)
        self.shockwaves = ShockwaveStore(
            capacity=params.get('max_shockwaves', MAX_SHOCKWAVES),
            growth=params.get('shock_growth', SHOCK_VR),
            lifetime=params.get('shock_life', SHOCK_LIFE),
            initial_radius=params.get('initial_shock_radius', INITIAL_SHOCK_RADIUS)
        )

        self.clock = 0.0
        self.cursor_dist = 0.0
        self.link_fade = 0.0
        self.step_count = 0

        logging.info("Simulation logic initialized and configuration validated.")
        logging.info(
            f"Field {self.width:.0f}x{self.height:.0f}, "
            f"attraction radius up to {self.hover_attr_max:.0f}px, "
            f"at most {self.shockwaves.capacity} live shockwaves."
        )

    @property
    def width(self) -> float:
        return self.particles.width

    @property
    def height(self) -> float:
        return self.particles.height

    def sanitize_dt(self, dt: float) -> float:
        """
        Returns a usable frame time in milliseconds, or 0.0 if the frame
        should be skipped (zero, negative or non-finite dt).
        """
        try:
            dt = float(dt)
        except (TypeError, ValueError):
            dt = math.nan
        if not math.isfinite(dt) or dt <= 0.0:
            return 0.0
        if dt > self.max_frame_dt:
            logging.debug(f"Frame time {dt:.1f}ms clamped to {self.max_frame_dt:.1f}ms.")
            return self.max_frame_dt
        return dt

    def step(self, dt: float, pointer: "PointerState") -> bool:
        """
        Executes one frame of the field.
        """
        dt = self.sanitize_dt(dt)
        if dt == 0.0:
            return False

        # 1. Advance the clock
        self.clock += dt

        # 2. Ease the attraction radius toward its target without overshooting
        target = self.hover_attr_max if pointer.active else 0.0
        if self.cursor_dist < target:
            self.cursor_dist = min(target, self.cursor_dist + self.hover_attr_step)
        elif self.cursor_dist > target:
            self.cursor_dist = max(target, self.cursor_dist - self.hover_attr_step)

        # 3. Let the links recover after a rupture
        self.link_fade = max(0.0, self.link_fade - dt)

        # 4-5. Grow and age the shockwaves, dropping expired ones
        expired = self.shockwaves.advance(dt)
        if expired:
            logging.debug(f"{expired} shockwave(s) expired, {len(self.shockwaves)} live.")

        # 6. Per-particle forces, integration and wrap (using Numba)
        origins, radii = self.shockwaves.arrays()
        attraction_radius = self.cursor_dist if pointer.active else 0.0
        _advance_particles_numba(
            self.particles.positions, self.particles.velocities,
            float(self.width), float(self.height),
            float(pointer.x), float(pointer.y), float(attraction_radius), float(self.attraction_force),
            origins, radii, float(self.shock_band), float(self.shock_impulse),
            float(self.damping), float(self.epsilon)
        )

        self.step_count += 1
        return True

    def rupture(self, x: float, y: float) -> bool:
        """
        Spawns a shockwave at (x, y) and kicks every particle away from it
        straight away, so the press is felt before the ring arrives.
        """
        if not (math.isfinite(x) and math.isfinite(y)):
            logging.debug(f"Ignoring rupture at non-finite position ({x}, {y}).")
            return False

        self.shockwaves.spawn(x, y)
        self.link_fade = self.link_fade_time

        positions = self.particles.positions
        delta = positions - np.array([x, y], dtype=np.float64)
        distance = np.linalg.norm(delta, axis=1)
        distance = np.where(distance > 0.0, distance, self.epsilon)
        # Closer particles get more push, capped at the full impulse.
        falloff = np.minimum(1.0, self.rupture_falloff_distance / distance)
        magnitude = self.shock_impulse * falloff / distance
        self.particles.velocities += delta * magnitude[:, np.newaxis]

        logging.debug(f"Rupture at ({x:.1f}, {y:.1f}); {len(self.shockwaves)} live shockwave(s).")
        return True

    def resize(self, width: float, height: float) -> None:
        """
        Rebuilds the field for a new surface size. Particles are redrawn from
        scratch and live shockwaves are dropped, since their origins belong to
        the old layout.
        """
        self.particles.reset(width, height)
        self.shockwaves.clear()
        logging.info(f"Field resized to {self.width:.0f}x{self.height:.0f}.")

    def stats(self) -> Dict[str, float]:
        """Aggregated metrics for throttled status logging."""
        speeds = self.particles.speeds()
        return {
            "mean_speed": float(np.mean(speeds)) if speeds.size else 0.0,
            "max_speed": float(np.max(speeds)) if speeds.size else 0.0,
            "shockwaves": len(self.shockwaves),
            "cursor_dist": self.cursor_dist,
            "link_fade": self.link_fade,
        }
