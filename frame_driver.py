# frame_driver.py
"""
The continuous redraw loop.

The FrameDriver is the only component that initiates work: once per display
frame it dispatches the pending input events to their handlers, derives the
elapsed time from the frame timestamp, steps the simulation and asks the
visualizer to draw. Everything else reacts to a tick or to an event.
"""
import logging
import math
from typing import Callable, Dict, Iterable, Optional, TYPE_CHECKING

import pygame

if TYPE_CHECKING:
    from pointer import PointerState
    from simulation import Simulation
    from visualization import Visualizer

# --- Data Contracts ---
#
# class FrameDriver:
#   - __init__(self, simulation, pointer, visualizer, log_throttle: int = 300):
#     - visualizer must provide draw(simulation, pointer), refresh_size()
#       returning the logical (width, height), and wait_for_frame().
#
#   - tick(self, timestamp: float, events: Iterable[pygame.event.Event]) -> bool:
#     - Inputs: a monotonically increasing timestamp in milliseconds and the
#       events received since the previous tick.
#     - Outputs: False once the driver has stopped.
#     - Side Effects: one step + draw pair. The first tick uses dt = 0.
#
#   - stop(self) -> None:
#     - Halts the loop and deregisters every handler. Events dispatched
#       afterwards reach nobody.

EventHandler = Callable[[pygame.event.Event], None]


class FrameDriver:
    """
    Runs step + draw once per display refresh and routes input events.
    """
    def __init__(
        self,
        simulation: "Simulation",
        pointer: "PointerState",
        visualizer: "Visualizer",
        log_throttle: int = 300
    ):
        self.simulation = simulation
        self.pointer = pointer
        self.visualizer = visualizer
        self.log_throttle = max(1, int(log_throttle))

        self.handlers: Dict[int, EventHandler] = {}
        self.running = True
        self.frame_count = 0
        self.last_timestamp: Optional[float] = None

        self.register(pygame.QUIT, self._on_quit)
        self.register(pygame.KEYDOWN, self._on_key)
        self.register(pygame.VIDEORESIZE, self._on_resize)
        # Size changes made by the system or the API only report this one
        self.register(pygame.WINDOWSIZECHANGED, self._on_resize)

    def register(self, event_type: int, handler: EventHandler) -> None:
        self.handlers[event_type] = handler

    def dispatch(self, event: pygame.event.Event) -> None:
        handler = self.handlers.get(event.type)
        if handler is not None:
            handler(event)

    def tick(self, timestamp: float, events: Iterable[pygame.event.Event]) -> bool:
        """
        Executes one frame: events, then physics, then drawing.
        """
        if not self.running:
            return False

        dt = 0.0 if self.last_timestamp is None else timestamp - self.last_timestamp
        self.last_timestamp = timestamp

        for event in events:
            self.dispatch(event)
            if not self.running:
                return False

        self.simulation.step(dt, self.pointer)
        self.visualizer.draw(self.simulation, self.pointer)
        self.frame_count += 1

        # Hot loops must throttle logs
        if self.frame_count % self.log_throttle == 0:
            stats = self.simulation.stats()
            logging.info(
                f"Frame {self.frame_count} | {stats['shockwaves']} shockwave(s) | "
                f"clock {self.simulation.clock / 1000.0:.1f}s"
            )
            logging.debug(
                f"Frame {self.frame_count} | Mean speed: {stats['mean_speed']:.4f} | "
                f"Max speed: {stats['max_speed']:.4f} | "
                f"Attraction radius: {stats['cursor_dist']:.1f}"
            )
        return True

    def run(self, max_steps: int = 0) -> None:
        """
        Drives ticks from the Pygame clock until the window is closed or
        max_steps frames have run (0 means no limit).
        """
        logging.info("Frame driver started.")
        while self.running:
            if not self.tick(pygame.time.get_ticks(), pygame.event.get()):
                break
            if max_steps and self.frame_count >= max_steps:
                logging.info(f"Reached max_steps ({max_steps}). Stopping frame driver.")
                break
            self.visualizer.wait_for_frame()
        self.stop()

    def stop(self) -> None:
        if self.running:
            logging.info(f"Frame driver stopped after {self.frame_count} frames.")
        self.running = False
        self.handlers.clear()

    # --- Built-in handlers ---

    def _on_quit(self, event: pygame.event.Event) -> None:
        logging.info("Quit event received. Stopping frame driver.")
        self.stop()

    def _on_key(self, event: pygame.event.Event) -> None:
        if getattr(event, 'key', None) == pygame.K_ESCAPE:
            logging.info("ESC key pressed. Stopping frame driver.")
            self.stop()

    def _on_resize(self, event: pygame.event.Event) -> None:
        width, height = self.visualizer.refresh_size()
        if not (math.isfinite(width) and math.isfinite(height)) or width <= 0 or height <= 0:
            # e.g. a minimised window; keep the current field until a real size arrives
            logging.debug(f"Resize to degenerate size {width}x{height} ignored.")
            return
        if (width, height) == (self.simulation.width, self.simulation.height):
            logging.debug(f"Resize to unchanged size {width:.0f}x{height:.0f} ignored.")
            return
        self.simulation.resize(width, height)
