"""
Policy evaluation for Active Inference with a Gaussian generative model.

This module implements:
- Expected state rollout using B_fn
- Goal energy of predicted observations (using A_fn) under the goal priors
- Control energy under the control priors
- Policy posterior inference
"""

import numpy as np
from . import maths
from . import utils


# =============================================================================
# Expected State Prediction (using B_fn)
# =============================================================================

def get_expected_state(B_fn, m_s, V_s, control, model_params=None, control_variance=0.0):
    """
    Predict the next state belief given the current belief and a control.

    Args:
        B_fn: functional transition model (m_s, V_s, u, **params) → (m, V)
        m_s, V_s: current state mean and covariance
        control: float control
        model_params: dict of extra keyword arguments for B_fn
        control_variance: variance of the control around its mean

    Returns:
        (m_next, V_next)
    """
    return B_fn(m_s, V_s, control, V_u=control_variance, **(model_params or {}))


def get_expected_states(B_fn, m_s, V_s, controls, model_params=None, control_variances=None):
    """
    Roll out expected states under a control sequence.

    Args:
        B_fn: functional transition model
        m_s, V_s: starting state belief
        controls: sequence of controls [u_1, ..., u_K]
        model_params: dict of extra keyword arguments for B_fn
        control_variances: per-step control variances, zeros if None

    Returns:
        means: array (K, 2), means[k] is the belief after controls[k]
        covs: array (K, 2, 2)

    Examples:
        >>> means, covs = get_expected_states(B_fn, m_s, V_s, [1.0, 1.0, -1.0])
        >>> means.shape
        (3, 2)
    """
    means = []
    covs = []
    m_t, V_t = m_s, V_s
    if control_variances is None:
        control_variances = np.zeros(len(controls))

    for control, variance in zip(controls, control_variances):
        m_t, V_t = get_expected_state(
            B_fn, m_t, V_t, float(control), model_params, control_variance=float(variance)
        )
        means.append(m_t)
        covs.append(V_t)

    dim = np.shape(m_s)[0]
    if not means:
        return np.zeros((0, dim)), np.zeros((0, dim, dim))
    return np.array(means), np.array(covs)


# =============================================================================
# Energies
# =============================================================================

def calc_goal_energy(A_fn, means, covs, m_x, V_x):
    """
    Sum over offsets of the negative log evidence of the predicted
    observations under the goal priors.

    Args:
        A_fn: functional observation model (m_s, V_s) → (m_o, V_o)
        means, covs: predicted state beliefs, one per offset
        m_x, V_x: goal prior means and covariances, aligned with means

    Returns:
        scalar energy (lower = closer to the goals)
    """
    energy = 0.0
    for m_s, V_s, m_goal, V_goal in zip(means, covs, m_x, V_x):
        m_o, V_o = A_fn(m_s, V_s)
        energy += maths.expected_gaussian_nll(m_o, V_o, m_goal, V_goal)
    return energy


def calc_control_energy(controls, m_u, V_u):
    """Sum of control negative log densities under the control priors."""
    energy = 0.0
    for u, m, V in zip(controls, m_u, V_u):
        energy += maths.gaussian_nll(u, m, V)
    return energy


# =============================================================================
# Policy Posterior
# =============================================================================

def vanilla_update_posterior_policies(
    m_s,
    V_s,
    A_fn,
    B_fn,
    policies,
    m_u,
    V_u,
    m_x,
    V_x,
    model_params=None,
    E=None,
    gamma=16.0,
    control_variance=0.0,
):
    """
    Update the posterior over policies by scoring each rollout.

    For each policy π, expanded to a control sequence over the remaining
    offsets:
        G(π) = goal energy + control energy

    Then: q(π) ∝ exp(-γ * G(π)) * p(π)

    Args:
        m_s, V_s: state belief the rollout starts from
        A_fn, B_fn: functional observation and transition models
        policies: list of policies (segment levels)
        m_u, V_u: control priors for the rolled-out offsets
        m_x, V_x: goal priors for the rolled-out offsets
        model_params: extra keyword arguments for B_fn
        E: prior over policies (if None, uniform)
        gamma: precision parameter (inverse temperature)
        control_variance: variance of the executed controls around the
            policy levels, widening the predicted state covariances

    Returns:
        q_pi: array of policy posterior probabilities
        G: array of energies per policy
        rollouts: list of (controls, means, covs) per policy
    """
    num_policies = len(policies)
    horizon = len(m_u)
    G = np.zeros(num_policies)

    if E is None:
        lnE = np.log(np.ones(num_policies) / num_policies)
    else:
        lnE = maths.log_stable(E)

    rollouts = []
    for policy_idx, policy in enumerate(policies):
        controls = utils.expand_policy(policy, horizon)
        variances = np.full(len(controls), control_variance)
        means, covs = get_expected_states(B_fn, m_s, V_s, controls, model_params, variances)
        G[policy_idx] += calc_goal_energy(A_fn, means, covs, m_x, V_x)
        G[policy_idx] += calc_control_energy(controls, m_u, V_u)
        rollouts.append((controls, means, covs))

    log_q_pi = -gamma * G + lnE
    q_pi = maths.softmax(log_q_pi)

    return q_pi, G, rollouts


def get_top_policies(q_pi, policies, top_k=5):
    """
    Get top-k most likely policies.

    Returns:
        top_policies: list of (policy, probability, index) tuples
    """
    top_indices = np.argsort(q_pi)[-top_k:][::-1]

    top_policies = []
    for idx in top_indices:
        top_policies.append((policies[idx], float(q_pi[idx]), int(idx)))
    return top_policies
