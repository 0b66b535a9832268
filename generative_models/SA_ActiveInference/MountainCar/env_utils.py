"""
Utility functions for converting between environment observations/actions
and the MountainCar Active Inference model format.

The environment speaks gymnasium (Box observations, length-1 action arrays);
the model works with float64 state vectors and scalar controls.
"""

import numpy as np


def env_obs_to_model_obs(env_obs):
    """
    Convert an environment observation to a model observation.

    Examples
    --------
    >>> env_obs_to_model_obs([-0.5, 0.0])
    array([-0.5,  0. ])
    """
    obs = np.asarray(env_obs, dtype=np.float64).reshape(-1)
    if obs.shape != (2,):
        raise ValueError(f"Expected (position, velocity), got shape {obs.shape}")
    return obs


def model_action_to_env_action(action):
    """Scalar control -> gymnasium Box action."""
    return np.array([float(action)], dtype=np.float64)
