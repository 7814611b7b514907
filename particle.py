# particle.py
"""
Manages the state of all particles in the field.

This module defines the ParticleSystem class, which is responsible for
initializing and storing particle data (position, velocity, radius) in
efficient NumPy arrays.
"""
import logging
import numpy as np
from typing import Dict, Any, Optional
from constants import (
    P_COUNT, INITIAL_VELOCITY_SPREAD, PARTICLE_RADIUS_MIN, PARTICLE_RADIUS_MAX
)
from utils import require_positive

# --- Data Contracts ---
#
# class ParticleSystem:
#   - __init__(self, params: Dict[str, Any], width: float, height: float,
#              rng: Optional[np.random.Generator] = None):
#     - Inputs:
#       - params: Dictionary of simulation parameters from config.json.
#         - "seed": int or null
#         - "particle_count": int
#         - "initial_velocity_spread": float
#       - width, height: logical size of the drawing surface.
#       - rng: optional injected generator; one is seeded from "seed" otherwise.
#     - Side Effects: Initializes internal NumPy arrays for particle state.
#     - Invariants:
#       - self.positions is a NumPy array of shape (N, 2) of dtype float64,
#         every row inside [0, width) x [0, height).
#       - self.velocities is a NumPy array of shape (N, 2) of dtype float64.
#       - self.radii is a NumPy array of shape (N,) of dtype float64.
#       - N never changes after construction.
#
#   - reset(self, width: float, height: float) -> None:
#     - Discards all particle state and draws a fresh field for the new size.
#       The three arrays are replaced together; no partially reset store is
#       ever visible.

class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(
        self,
        params: Dict[str, Any],
        width: float,
        height: float,
        rng: Optional[np.random.Generator] = None
    ):
        self.particle_count = int(params.get('particle_count', P_COUNT))
        if self.particle_count < 0:
            msg = f"Configuration error: particle_count must be >= 0, got {self.particle_count}."
            logging.critical(msg)
            raise ValueError(msg)
        self.velocity_spread = float(params.get('initial_velocity_spread', INITIAL_VELOCITY_SPREAD))
        self.seed = params.get('seed')

        # All randomness in this store goes through one generator so tests can
        # seed it or inject their own.
        self.rng = rng if rng is not None else np.random.default_rng(self.seed)

        self.width = 0.0
        self.height = 0.0
        self.reset(width, height)

        logging.info(f"ParticleSystem initialized with {self.particle_count} particles.")

    def reset(self, width: float, height: float) -> None:
        """
        Replaces every particle with a freshly placed one for a surface of
        the given logical size.
        """
        width = require_positive('width', width)
        height = require_positive('height', height)
        n = self.particle_count
        half_spread = self.velocity_spread / 2.0

        positions = self.rng.uniform(low=[0.0, 0.0], high=[width, height], size=(n, 2))
        # uniform() may round up to the high bound for large sizes
        positions[:, 0] = np.where(positions[:, 0] >= width, 0.0, positions[:, 0])
        positions[:, 1] = np.where(positions[:, 1] >= height, 0.0, positions[:, 1])
        velocities = self.rng.uniform(low=-half_spread, high=half_spread, size=(n, 2))
        radii = self.rng.uniform(low=PARTICLE_RADIUS_MIN, high=PARTICLE_RADIUS_MAX, size=n)

        self.positions = positions
        self.velocities = velocities
        self.radii = radii
        self.width = width
        self.height = height

        logging.debug(
            f"Particle arrays reset for {width:.0f}x{height:.0f}. "
            f"Positions shape: {self.positions.shape}, "
            f"Velocities shape: {self.velocities.shape}, "
            f"Radii shape: {self.radii.shape}"
        )

    def speeds(self) -> np.ndarray:
        """Per-particle speed, in logical units per frame."""
        return np.linalg.norm(self.velocities, axis=1)
