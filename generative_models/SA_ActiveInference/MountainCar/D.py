"""
Functional D (initial state prior) for MountainCar.

The car starts at a known position and velocity, so the prior is a Gaussian
centred there with a clamped (TINY) covariance.
"""

import numpy as np
from . import model_init


def build_D(initial_position=model_init.initial_position,
            initial_velocity=model_init.initial_velocity,
            variance=model_init.TINY):
    """
    Build the prior over the state preceding the first control.

    Returns
    -------
    D : dict
        {"m_s": array (2,), "V_s": array (2, 2)}
    """
    return {
        "m_s": np.array([initial_position, initial_velocity], dtype=np.float64),
        "V_s": variance * np.eye(2),
    }


def D_fn(config=None):
    if config is None:
        return build_D()
    return build_D(
        initial_position=config.get("initial_position", model_init.initial_position),
        initial_velocity=config.get("initial_velocity", model_init.initial_velocity),
        variance=config.get("variance", model_init.TINY),
    )
