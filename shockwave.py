# shockwave.py
"""
Holds the expanding rupture rings spawned by pointer presses.

A shockwave is SPAWNED at a press location, EXPANDING while it has life
left (its radius grows by a fixed amount every frame and its life decays by
the frame's elapsed time), and EXPIRED the moment its life reaches zero, at
which point it is dropped from the store for good.
"""
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterator, Tuple

import numpy as np

from constants import INITIAL_SHOCK_RADIUS, MAX_SHOCKWAVES, SHOCK_LIFE, SHOCK_VR
from utils import require_positive

# --- Data Contracts ---
#
# class ShockwaveStore:
#   - __init__(self, capacity: int, growth: float, lifetime: float,
#              initial_radius: float):
#     - capacity: maximum number of live shockwaves. Spawning into a full
#       store evicts the oldest wave first.
#     - growth: radius increment per frame.
#     - lifetime: starting life of every wave, in milliseconds.
#
#   - advance(self, dt: float) -> int:
#     - Grows and ages every wave, then removes the ones with life <= 0.
#     - Returns the number of waves removed.
#     - Invariants: no wave with life <= 0 survives an advance; a removed
#       wave is never touched again.
#
#   - arrays(self) -> Tuple[np.ndarray, np.ndarray]:
#     - origins (M, 2) float64 and radii (M,) float64 of the live waves, in
#       a form the numba kernels accept (M may be 0).


@dataclass
class Shockwave:
    """One expanding ring."""
    x: float
    y: float
    radius: float
    life: float


class ShockwaveStore:
    """
    A bounded, oldest-first collection of live shockwaves.
    """
    def __init__(
        self,
        capacity: int = MAX_SHOCKWAVES,
        growth: float = SHOCK_VR,
        lifetime: float = SHOCK_LIFE,
        initial_radius: float = INITIAL_SHOCK_RADIUS
    ):
        self.capacity = int(require_positive('max_shockwaves', capacity))
        self.growth = require_positive('shock_growth', growth)
        self.lifetime = require_positive('shock_life', lifetime)
        self.initial_radius = float(initial_radius)
        self._waves: Deque[Shockwave] = deque()

    def __len__(self) -> int:
        return len(self._waves)

    def __iter__(self) -> Iterator[Shockwave]:
        return iter(self._waves)

    def spawn(self, x: float, y: float) -> Shockwave:
        """Adds a new wave at (x, y), evicting the oldest one if full."""
        if len(self._waves) >= self.capacity:
            evicted = self._waves.popleft()
            logging.debug(
                f"Shockwave store full ({self.capacity}); evicted wave at "
                f"({evicted.x:.1f}, {evicted.y:.1f}) with {evicted.life:.0f}ms left."
            )
        wave = Shockwave(x=float(x), y=float(y), radius=self.initial_radius, life=self.lifetime)
        self._waves.append(wave)
        return wave

    def advance(self, dt: float) -> int:
        for wave in self._waves:
            wave.radius += self.growth
            wave.life -= dt
        before = len(self._waves)
        self._waves = deque(wave for wave in self._waves if wave.life > 0)
        return before - len(self._waves)

    def clear(self) -> None:
        self._waves.clear()

    def arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        count = len(self._waves)
        origins = np.empty((count, 2), dtype=np.float64)
        radii = np.empty(count, dtype=np.float64)
        for i, wave in enumerate(self._waves):
            origins[i, 0] = wave.x
            origins[i, 1] = wave.y
            radii[i] = wave.radius
        return origins, radii
