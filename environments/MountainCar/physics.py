"""
Mountain car physics.

Pure force and terrain functions for a car on a hill. The valley bottom sits at
position -0.5; the hill to the right of the origin rises asymptotically, so an
engine limited to 0.04 cannot drive straight up to the target at 0.5.

All functions accept scalars or numpy arrays.
"""

from collections import namedtuple

import numpy as np


# =============================================================================
# Default coefficients
# =============================================================================

ENGINE_FORCE_LIMIT = 0.04
FRICTION_COEFFICIENT = 0.1
GRAVITY_SCALE = 0.05


Physics = namedtuple("Physics", ["Fa", "Ff", "Fg", "height"])


# =============================================================================
# Forces
# =============================================================================

def engine_force(action, engine_force_limit=ENGINE_FORCE_LIMIT):
    """
    Saturating engine force.

    Args:
        action: requested action (any real)
        engine_force_limit: asymptotic magnitude of the force

    Returns:
        engine_force_limit * tanh(action), strictly inside (-limit, limit)
    """
    return engine_force_limit * np.tanh(action)


def friction_force(velocity, friction_coefficient=FRICTION_COEFFICIENT):
    """Linear friction opposing the velocity."""
    return -friction_coefficient * velocity


def gravity_force(position):
    """
    Gravitational force along the track (negative slope of `height`).

    Left of the origin the track is the parabola p^2 + p; right of it the
    track follows p / sqrt(1 + 5p^2). Both branches give -0.05 at p = 0.
    """
    p = np.asarray(position, dtype=np.float64)
    left = GRAVITY_SCALE * (-2.0 * p - 1.0)
    q = 1.0 + 5.0 * p ** 2
    right = GRAVITY_SCALE * (-q ** -0.5 - (p ** 2) * q ** -1.5 - (p ** 4) / 16.0)
    force = np.where(p < 0, left, right)
    if force.ndim == 0:
        return float(force)
    return force


def height(position):
    """Terrain height, used for visualisation and goal checks."""
    p = np.asarray(position, dtype=np.float64)
    h = np.where(p < 0, p ** 2 + p, p * (1.0 + 5.0 * p ** 2) ** -0.5)
    if h.ndim == 0:
        return float(h)
    return h


# =============================================================================
# Factory
# =============================================================================

def create_physics(engine_force_limit=ENGINE_FORCE_LIMIT, friction_coefficient=FRICTION_COEFFICIENT):
    """
    Bind the physics coefficients and return the force callables.

    Returns:
        Physics(Fa, Ff, Fg, height)

    Examples:
        >>> Fa, Ff, Fg, h = create_physics(engine_force_limit=0.04)
        >>> Fg(-0.5)
        0.0
    """
    def Fa(action):
        return engine_force(action, engine_force_limit)

    def Ff(velocity):
        return friction_force(velocity, friction_coefficient)

    return Physics(Fa=Fa, Ff=Ff, Fg=gravity_force, height=height)
