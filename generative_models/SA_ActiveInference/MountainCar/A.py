"""
Functional A (observation model) for MountainCar.

The car's state is observed directly with a small Gaussian noise:

    x_t ~ N(s_t, THETA)
"""

import numpy as np
from . import model_init


def A_fn(m_s, V_s, observation_covariance=model_init.THETA):
    """
    Predicted observation belief for a state belief.

    Returns
    -------
    m_o, V_o : array (2,), array (2, 2)
    """
    return np.asarray(m_s, dtype=np.float64).copy(), np.asarray(V_s, dtype=np.float64) + observation_covariance
