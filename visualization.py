# visualization.py
"""
Handles the rendering of the field using Pygame.
"""
import logging
import math
import pygame
import numpy as np
from numba import jit
from typing import Dict, Any, Optional, Tuple, TYPE_CHECKING
from constants import (
    FULLSCREEN, DEFAULT_WINDOW_SIZE, FPS, WINDOW_CAPTION,
    BACKGROUND_GRADIENT_START, BACKGROUND_GRADIENT_END,
    LINK_COLOR, LINK_BASE_OPACITY, LINK_MIN_OPACITY, NODE_COLOR, NODE_OPACITY,
    FILAMENT_COLOR, FILAMENT_OPACITY_SCALE, RING_COLOR, RING_MAX_OPACITY,
    RING_WIDTH, LINE_WIDTH
)

# Forward reference for type hinting to avoid circular import
if TYPE_CHECKING:
    from simulation import Simulation
    from pointer import PointerState


# --- Data Contracts ---
#
# class FieldRenderer:
#   - render(self, surface: pygame.Surface, simulation: Simulation,
#            pointer: PointerState, scale: float = 1.0) -> None:
#     - Inputs:
#       - surface: target whose pixel size is the logical size times scale.
#       - simulation, pointer: state to draw; read only.
#       - scale: device pixels per logical unit.
#     - Side Effects: Paints the surface. Rebuilds the cached background and
#       overlay layer when the surface size changes. Never mutates simulation
#       or pointer state.
#     - Draw order: background gradient, links, nodes, pointer filaments,
#       shockwave rings.
#
# class Visualizer:
#   - __init__(self, vis_params: Optional[Dict[str, Any]] = None):
#     - Side Effects: Initializes Pygame and creates the display surface.
#   - refresh_size(self) -> Tuple[float, float]:
#     - Re-reads the window size and pixel scale; returns the logical size.
#   - draw(self, simulation, pointer) -> None: renders and presents a frame.

@jit(nopython=True)
def _link_pairs_numba(positions, max_link):
    """
    Numba-jitted search for all unordered particle pairs closer than
    max_link. Returns (pairs (K, 2) int64 with i < j, distances (K,)).
    """
    particle_count = positions.shape[0]
    capacity = particle_count * (particle_count - 1) // 2
    pairs = np.empty((capacity, 2), dtype=np.int64)
    distances = np.empty(capacity, dtype=np.float64)
    max_link_sq = max_link * max_link
    count = 0
    for i in range(particle_count):
        for j in range(i + 1, particle_count):
            dx = positions[i, 0] - positions[j, 0]
            dy = positions[i, 1] - positions[j, 1]
            distance_sq = dx * dx + dy * dy
            if distance_sq < max_link_sq:
                pairs[count, 0] = i
                pairs[count, 1] = j
                distances[count] = math.sqrt(distance_sq)
                count += 1
    return pairs[:count], distances[:count]

def link_pairs(positions: np.ndarray, max_link: float) -> Tuple[np.ndarray, np.ndarray]:
    return _link_pairs_numba(positions, float(max_link))

def link_fade_scale(link_fade: float, link_fade_time: float) -> float:
    """Global link opacity, dimmed right after a rupture."""
    return LINK_BASE_OPACITY * (1.0 - min(1.0, link_fade / link_fade_time))

def link_opacity(distance, max_link: float, fade_scale: float):
    """Opacity of a link of the given length; works on scalars and arrays."""
    return (1.0 - distance / max_link) * fade_scale

def filament_opacity(distance, cursor_dist: float):
    return (1.0 - distance / cursor_dist) * FILAMENT_OPACITY_SCALE

def ring_opacity(life: float, lifetime: float) -> float:
    return min(RING_MAX_OPACITY, max(0.0, life / lifetime) * RING_MAX_OPACITY)

def _to_alpha(opacity: float) -> int:
    return max(0, min(255, int(round(opacity * 255))))

def build_diagonal_gradient(size: Tuple[int, int]) -> pygame.Surface:
    """
    Pre-renders the background: a linear gradient running from the top-left
    corner to the bottom-right corner.
    """
    width, height = max(1, size[0]), max(1, size[1])
    xs = np.arange(width, dtype=np.float64)[:, np.newaxis]
    ys = np.arange(height, dtype=np.float64)[np.newaxis, :]
    # Projection of each pixel onto the corner-to-corner axis
    t = np.clip((xs * width + ys * height) / float(width * width + height * height), 0.0, 1.0)
    start = np.array(BACKGROUND_GRADIENT_START, dtype=np.float64)
    end = np.array(BACKGROUND_GRADIENT_END, dtype=np.float64)
    pixels = start + (end - start) * t[..., np.newaxis]
    return pygame.surfarray.make_surface(np.rint(pixels).astype(np.uint8))


class FieldRenderer:
    """
    Paints the field onto any pygame surface.
    """
    def __init__(self):
        self._size: Optional[Tuple[int, int]] = None
        self.background: Optional[pygame.Surface] = None
        self.layer: Optional[pygame.Surface] = None

    def _ensure_buffers(self, size: Tuple[int, int]) -> None:
        if size == self._size:
            return
        logging.debug(f"Pre-rendering background and overlay for {size[0]}x{size[1]} pixels.")
        self.background = build_diagonal_gradient(size)
        self.layer = pygame.Surface(size, pygame.SRCALPHA)
        self._size = size

    def _compose_layer(self, surface: pygame.Surface) -> None:
        surface.blit(self.layer, (0, 0))
        self.layer.fill((0, 0, 0, 0))

    def render(
        self,
        surface: pygame.Surface,
        simulation: "Simulation",
        pointer: "PointerState",
        scale: float = 1.0
    ) -> None:
        self._ensure_buffers(surface.get_size())
        positions = simulation.particles.positions
        line_width = max(LINE_WIDTH, int(round(LINE_WIDTH * scale)))

        # 1. Background
        surface.blit(self.background, (0, 0))
        self.layer.fill((0, 0, 0, 0))

        # 2. Links, dimmed for a while after each rupture
        fade_scale = link_fade_scale(simulation.link_fade, simulation.link_fade_time)
        if fade_scale > LINK_MIN_OPACITY:
            pairs, distances = link_pairs(positions, simulation.max_link)
            opacities = link_opacity(distances, simulation.max_link, fade_scale)
            for (i, j), opacity in zip(pairs, opacities):
                if opacity <= LINK_MIN_OPACITY:
                    continue
                pygame.draw.line(
                    self.layer,
                    (*LINK_COLOR, _to_alpha(opacity)),
                    (positions[i, 0] * scale, positions[i, 1] * scale),
                    (positions[j, 0] * scale, positions[j, 1] * scale),
                    line_width
                )
            self._compose_layer(surface)

        # 3. Nodes
        node_color = (*NODE_COLOR, _to_alpha(NODE_OPACITY))
        for (x, y), radius in zip(positions, simulation.particles.radii):
            # pygame skips circles with a radius below one pixel
            pygame.draw.circle(self.layer, node_color, (x * scale, y * scale), max(1.0, radius * scale))
        self._compose_layer(surface)

        # 4. Gravity filaments to the pointer
        cursor_dist = simulation.cursor_dist
        if pointer.active and cursor_dist > 0:
            distances = np.hypot(positions[:, 0] - pointer.x, positions[:, 1] - pointer.y)
            target = (pointer.x * scale, pointer.y * scale)
            for index in np.flatnonzero(distances < cursor_dist):
                opacity = filament_opacity(distances[index], cursor_dist)
                pygame.draw.line(
                    self.layer,
                    (*FILAMENT_COLOR, _to_alpha(opacity)),
                    (positions[index, 0] * scale, positions[index, 1] * scale),
                    target,
                    line_width
                )
            self._compose_layer(surface)

        # 5. Shockwave rings
        if len(simulation.shockwaves):
            ring_width = max(1, int(round(RING_WIDTH * scale)))
            lifetime = simulation.shockwaves.lifetime
            for wave in simulation.shockwaves:
                pygame.draw.circle(
                    self.layer,
                    (*RING_COLOR, _to_alpha(ring_opacity(wave.life, lifetime))),
                    (wave.x * scale, wave.y * scale),
                    wave.radius * scale,
                    ring_width
                )
            self._compose_layer(surface)


class Visualizer:
    """
    Owns the Pygame window and presents rendered frames.
    """
    def __init__(self, vis_params: Optional[Dict[str, Any]] = None):
        """
        Initializes Pygame and the display window.
        """
        vis_params = vis_params if vis_params is not None else {}
        pygame.init()

        if vis_params.get('fullscreen', FULLSCREEN):
            display_info = pygame.display.Info()
            size = (display_info.current_w, display_info.current_h)
            pygame.display.set_mode(size, pygame.FULLSCREEN)
        else:
            size = (
                int(vis_params.get('window_width', DEFAULT_WINDOW_SIZE[0])),
                int(vis_params.get('window_height', DEFAULT_WINDOW_SIZE[1]))
            )
            pygame.display.set_mode(size, pygame.RESIZABLE)

        pygame.display.set_caption(vis_params.get('caption', WINDOW_CAPTION))
        self.clock = pygame.time.Clock()
        self.fps = int(vis_params.get('fps', FPS))
        self.renderer = FieldRenderer()

        self.screen: Optional[pygame.Surface] = None
        self.logical_width = 0.0
        self.logical_height = 0.0
        self.pixel_scale = 1.0
        self.refresh_size()

        logging.info(
            f"Visualizer initialized with Pygame display "
            f"({self.logical_width:.0f}x{self.logical_height:.0f}, scale {self.pixel_scale:.2f})."
        )

    def refresh_size(self) -> Tuple[float, float]:
        """
        Re-reads the drawable surface. Physics runs in window (logical)
        units; drawing is scaled up to the backing surface's pixels.
        """
        self.screen = pygame.display.get_surface()
        pixel_width, pixel_height = self.screen.get_size()
        window_width, window_height = pygame.display.get_window_size()
        if window_width <= 0 or window_height <= 0:
            window_width, window_height = pixel_width, pixel_height
        self.logical_width = float(window_width)
        self.logical_height = float(window_height)
        self.pixel_scale = max(1.0, pixel_width / float(window_width)) if window_width > 0 else 1.0
        return self.logical_width, self.logical_height

    def surface_size(self) -> Tuple[float, float]:
        return self.logical_width, self.logical_height

    def draw(self, simulation: "Simulation", pointer: "PointerState") -> None:
        self.renderer.render(self.screen, simulation, pointer, self.pixel_scale)
        pygame.display.flip()

    def wait_for_frame(self) -> float:
        """Sleeps until the next display frame; returns the elapsed ms."""
        return self.clock.tick(self.fps)

    def close(self):
        """Shuts down Pygame."""
        pygame.quit()
