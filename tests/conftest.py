"""
Pytest configuration and fixtures for VRPlayer detector tests.
"""

import pytest
import sys
from pathlib import Path

import numpy as np

# Add src to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from fakes import horizontal_gradient, tent_gradient


@pytest.fixture
def mono_frame():
    """Smooth left-to-right gradient: no seams, mismatched edges."""
    return horizontal_gradient(200, 400)


@pytest.fixture
def sbs_frame():
    """Two pixel-identical gradient halves side by side."""
    half = horizontal_gradient(200, 200)
    return np.concatenate([half, half], axis=1)


@pytest.fixture
def tb_frame():
    """Two pixel-identical vertical gradients stacked top over bottom."""
    half = np.ascontiguousarray(np.transpose(horizontal_gradient(400, 100), (1, 0, 2)))
    return np.concatenate([half, half], axis=0)


@pytest.fixture
def panorama_frame():
    """Tent profile whose left and right edges meet, like a wrapped sphere."""
    return tent_gradient(200, 400)
