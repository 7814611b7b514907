# constants.py
"""
Application-level constants.

These values are static and do not change between runs. Rendering colours,
window defaults and the default value of every field tunable live here;
`config.json` may override the tunables under `simulation_parameters`.
"""

# Visualization settings
# Set to True to run in borderless fullscreen mode.
# Set to False to run in a resizable window (DEFAULT_WINDOW_SIZE).
FULLSCREEN = False
DEFAULT_WINDOW_SIZE = (1280, 720)
FPS = 60
WINDOW_CAPTION = "Ambient Field"

# --- Background ---
# Diagonal gradient from the top-left to the bottom-right corner.
BACKGROUND_GRADIENT_START = (11, 16, 32)   # #0b1020
BACKGROUND_GRADIENT_END = (10, 15, 26)     # #0a0f1a

# --- Link / node / filament / ring appearance ---
LINK_COLOR = (255, 255, 255)
LINK_BASE_OPACITY = 0.22
# Links fainter than this are not drawn at all.
LINK_MIN_OPACITY = 0.002
NODE_COLOR = (255, 255, 255)
NODE_OPACITY = 0.06
FILAMENT_COLOR = (144, 238, 144)   # light green "gravity" filaments
FILAMENT_OPACITY_SCALE = 0.5
RING_COLOR = (173, 216, 230)       # soft cyan
RING_MAX_OPACITY = 0.5
RING_WIDTH = 2
LINE_WIDTH = 1

# --- Field tunables (defaults) ---
P_COUNT = 260                  # particle density
MAX_LINK = 130.0               # particle-to-particle link distance
HOVER_ATTR_MAX = 220.0         # max attraction radius when hovering
HOVER_ATTR_STEP = 10.0         # how fast the radius grows/shrinks per frame
ATTR_FORCE = 3.2               # attraction strength
BASE_DAMP = 0.99               # velocity damping each frame
SHOCK_IMPULSE = 4.5            # outward push on rupture
SHOCK_VR = 6.0                 # shockwave expansion speed (px/frame)
SHOCK_LIFE = 900.0             # how long the shockwave lives (ms)
SHOCK_BAND = 18.0              # half-thickness of the shock front
INITIAL_SHOCK_RADIUS = 1.0
LINK_FADE_TIME = 700.0         # links dim for this long (ms)
RUPTURE_FALLOFF_DISTANCE = 120.0
MAX_SHOCKWAVES = 32

# Initial velocity components are drawn from [-spread/2, spread/2).
INITIAL_VELOCITY_SPREAD = 0.35
PARTICLE_RADIUS_MIN = 0.9
PARTICLE_RADIUS_MAX = 2.5

# Frames slower than this (ms) are clamped, e.g. after a minimised window.
MAX_FRAME_DT = 100.0
# Stand-in for a zero distance in any direction normalisation.
DISTANCE_EPSILON = 0.001
