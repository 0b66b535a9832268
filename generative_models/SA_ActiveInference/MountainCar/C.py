"""
Functional C (goal and control priors) for MountainCar.

C encodes what the agent expects to observe over the planning horizon:
- the final offset carries the target state with a tight covariance (SIGMA),
- every other offset is uninformative (HUGE covariance).

The same module builds the control priors: zero mean, HUGE variance, so that
controls are free until they are performed and clamped.
"""

import numpy as np
from . import model_init


# =============================================================================
# Goal priors
# =============================================================================

def C_goal(T, x_target=model_init.x_target, goal_covariance=model_init.SIGMA, huge=model_init.HUGE):
    """
    Goal prior means and covariances for offsets 0..T-1.

    Returns
    -------
    m_x : array (T, 2)
    V_x : array (T, 2, 2)
    """
    m_x = np.zeros((T, 2))
    V_x = np.tile(huge * np.eye(2), (T, 1, 1))
    m_x[-1] = np.asarray(x_target, dtype=np.float64)
    V_x[-1] = goal_covariance
    return m_x, V_x


# =============================================================================
# Control priors
# =============================================================================

def C_controls(T, huge=model_init.HUGE):
    """
    Control prior means and variances for offsets 0..T-1.

    Returns
    -------
    m_u : array (T,)
    V_u : array (T,)
    """
    return np.zeros(T), np.full(T, huge)


def C_fn(T, x_target=None, config=None):
    """
    All horizon priors in one dict.

    Parameters
    ----------
    T : int
        Horizon length.
    x_target : array-like (2,), optional
        Target state, defaults to model_init.x_target.
    config : dict, optional
        May override 'goal_covariance' and 'huge'.
    """
    config = config or {}
    if x_target is None:
        x_target = model_init.x_target
    huge = config.get("huge", model_init.HUGE)
    m_x, V_x = C_goal(
        T,
        x_target=x_target,
        goal_covariance=config.get("goal_covariance", model_init.SIGMA),
        huge=huge,
    )
    m_u, V_u = C_controls(T, huge=huge)
    return {"m_u": m_u, "V_u": V_u, "m_x": m_x, "V_x": V_x}
