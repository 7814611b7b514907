import os

# Renderer and event tests run without a real display.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pygame
import pytest

from pointer import PointerState
from simulation import Simulation


def make_params(**overrides):
    params = {
        "seed": 7,
        "particle_count": 40,
    }
    params.update(overrides)
    return params


@pytest.fixture
def make_simulation():
    def factory(width=800.0, height=600.0, rng=None, **overrides):
        return Simulation(make_params(**overrides), width, height, rng=rng)
    return factory


@pytest.fixture
def pointer():
    return PointerState()


@pytest.fixture
def display():
    pygame.display.init()
    pygame.display.set_mode((1, 1))
    yield
    pygame.display.quit()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
