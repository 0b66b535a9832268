"""
Functional B (state transition) for MountainCar.

The agent's transition model mirrors the environment physics:

    s_t = g(s_{t-1}) + h(u_t) + noise,     noise ~ N(0, GAMMA^-1)

where g applies gravity and friction and h maps the control through the
saturating engine force. The engine force enters the velocity and, through the
Euler position update, the position as well, so the mean of B matches one
environment step exactly. Gaussian beliefs are pushed through g and h by
linearisation around the current mean.
"""

import numpy as np
from . import model_init
from environments.MountainCar.physics import engine_force, friction_force, gravity_force

# Step used for the numerical derivative of the gravity force
FD_STEP = 1e-6


# --------------------------------
# Nonlinear pieces
# --------------------------------
def g(s, friction_coefficient=model_init.friction_coefficient):
    """Drift due to gravity and friction, no control."""
    position, velocity = s[0], s[1]
    new_velocity = velocity + gravity_force(position) + friction_force(velocity, friction_coefficient)
    return np.array([position + new_velocity, new_velocity])


def h(u, engine_force_limit=model_init.engine_force_limit):
    """State increment produced by control u."""
    force = engine_force(u, engine_force_limit)
    return np.array([force, force])


# --------------------------------
# Linearisation
# --------------------------------
def g_jacobian(s, friction_coefficient=model_init.friction_coefficient):
    position = s[0]
    dFg = (gravity_force(position + FD_STEP) - gravity_force(position - FD_STEP)) / (2 * FD_STEP)
    dv_dp = dFg
    dv_dv = 1.0 - friction_coefficient
    return np.array([
        [1.0 + dv_dp, dv_dv],
        [dv_dp, dv_dv],
    ])


def h_jacobian(u, engine_force_limit=model_init.engine_force_limit):
    dFa = engine_force_limit * (1.0 - np.tanh(u) ** 2)
    return np.array([dFa, dFa])


# --------------------------------
# Belief propagation
# --------------------------------
def B_fn(m_s, V_s, u, V_u=0.0,
         engine_force_limit=model_init.engine_force_limit,
         friction_coefficient=model_init.friction_coefficient,
         transition_precision=model_init.GAMMA):
    """
    Predict the next state belief given the current one and a control.

    Parameters
    ----------
    m_s, V_s : array (2,), array (2, 2)
        Current state mean and covariance.
    u : float
        Control (mean of the control belief).
    V_u : float
        Control variance, 0 for a deterministic control.

    Returns
    -------
    m_next, V_next : array (2,), array (2, 2)
    """
    m_s = np.asarray(m_s, dtype=np.float64)
    V_s = np.asarray(V_s, dtype=np.float64)

    m_next = g(m_s, friction_coefficient) + h(u, engine_force_limit)

    J = g_jacobian(m_s, friction_coefficient)
    dh = h_jacobian(u, engine_force_limit)
    V_next = J @ V_s @ J.T + V_u * np.outer(dh, dh) + np.linalg.inv(transition_precision)
    return m_next, V_next
