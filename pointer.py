# pointer.py
"""
Pointer state and the input adapter that keeps it current.

The adapter turns pygame mouse and touch events into updates of a single
PointerState record and into ruptures on the Simulation. It never raises on
bad input: an event it cannot make sense of is logged and skipped.
"""
import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, TYPE_CHECKING

import pygame

if TYPE_CHECKING:
    from frame_driver import FrameDriver
    from simulation import Simulation

# --- Data Contracts ---
#
# class PointerState:
#   - x, y: last known pointer position in logical surface coordinates.
#   - active: True while the pointer is over the surface (a move was seen and
#     no leave/finger-up has fired since).
#   - Written only by InputAdapter; read by Simulation.step and the renderer.
#
# class InputAdapter:
#   - __init__(self, pointer: PointerState, simulation: Simulation,
#              surface_size: Callable[[], Tuple[float, float]]):
#     - surface_size returns the current logical (width, height), used to
#       scale normalised finger coordinates.
#   - attach(self, driver: FrameDriver) -> None:
#     - Registers one handler per event type with the frame driver.

@dataclass
class PointerState:
    """The single shared pointer record."""
    x: float = 0.0
    y: float = 0.0
    active: bool = False


class InputAdapter:
    """
    Normalizes mouse and single-touch events into pointer state and ruptures.
    """
    def __init__(
        self,
        pointer: PointerState,
        simulation: "Simulation",
        surface_size: Callable[[], Tuple[float, float]]
    ):
        self.pointer = pointer
        self.simulation = simulation
        self.surface_size = surface_size
        # Only the first finger down drives the pointer.
        self.primary_finger: Optional[int] = None

    def attach(self, driver: "FrameDriver") -> None:
        driver.register(pygame.MOUSEMOTION, self.on_move)
        driver.register(pygame.MOUSEBUTTONDOWN, self.on_down)
        driver.register(pygame.WINDOWLEAVE, self.on_leave)
        driver.register(pygame.FINGERMOTION, self.on_finger_move)
        driver.register(pygame.FINGERDOWN, self.on_finger_down)
        driver.register(pygame.FINGERUP, self.on_finger_up)
        logging.debug("Input adapter attached to frame driver.")

    # --- Mouse ---

    def on_move(self, event: pygame.event.Event) -> None:
        if getattr(event, 'touch', False):
            return
        position = self._mouse_position(event)
        if position is None:
            return
        self._move_to(*position)

    def on_down(self, event: pygame.event.Event) -> None:
        if getattr(event, 'touch', False) or getattr(event, 'button', 1) != 1:
            return
        position = self._mouse_position(event)
        if position is None:
            return
        self.pointer.x, self.pointer.y = position
        self.simulation.rupture(*position)

    def on_leave(self, event: pygame.event.Event) -> None:
        # A finger lifted outside the window never sends its FINGERUP.
        self.primary_finger = None
        self.pointer.active = False

    # --- Touch ---

    def on_finger_move(self, event: pygame.event.Event) -> None:
        if getattr(event, 'finger_id', None) != self.primary_finger:
            return
        position = self._finger_position(event)
        if position is None:
            return
        self._move_to(*position)

    def on_finger_down(self, event: pygame.event.Event) -> None:
        if self.primary_finger is not None:
            return
        position = self._finger_position(event)
        if position is None:
            return
        self.primary_finger = getattr(event, 'finger_id', None)
        self._move_to(*position)
        self.simulation.rupture(*position)

    def on_finger_up(self, event: pygame.event.Event) -> None:
        if getattr(event, 'finger_id', None) != self.primary_finger:
            return
        self.primary_finger = None
        self.pointer.active = False

    # --- Helpers ---

    def _move_to(self, x: float, y: float) -> None:
        self.pointer.x = x
        self.pointer.y = y
        self.pointer.active = True

    def _mouse_position(self, event: pygame.event.Event) -> Optional[Tuple[float, float]]:
        try:
            x, y = event.pos
            return self._checked(float(x), float(y))
        except (AttributeError, TypeError, ValueError):
            logging.debug(f"Skipping malformed pointer event: {event}")
            return None

    def _finger_position(self, event: pygame.event.Event) -> Optional[Tuple[float, float]]:
        try:
            width, height = self.surface_size()
            return self._checked(float(event.x) * width, float(event.y) * height)
        except (AttributeError, TypeError, ValueError):
            logging.debug(f"Skipping malformed touch event: {event}")
            return None

    @staticmethod
    def _checked(x: float, y: float) -> Optional[Tuple[float, float]]:
        if not (math.isfinite(x) and math.isfinite(y)):
            logging.debug(f"Skipping pointer event at non-finite position ({x}, {y}).")
            return None
        return x, y
