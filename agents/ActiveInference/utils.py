"""
Utility functions for the Active Inference agent.

This module provides helper functions for:
- Policy construction (piecewise-constant control sequences)
- Policy selection
"""

import numpy as np
import itertools

from .maths import log_stable, softmax


# =============================================================================
# Policy Construction
# =============================================================================

def construct_policies(actions, policy_len):
    """
    Construct all possible policies of given length.

    Args:
        actions: list of available control levels
        policy_len: number of segments in each policy

    Returns:
        list of policies, where each policy is a list of control levels

    Examples
    --------
    >>> policies = construct_policies([-1.0, 0.0, 1.0], policy_len=2)
    >>> len(policies)
    9
    >>> policies[0]
    [-1.0, -1.0]
    """
    if policy_len <= 0:
        raise ValueError(f"policy_len must be positive, got {policy_len}")
    if len(actions) == 0:
        raise ValueError("At least one control level is required")
    if policy_len == 1:
        return [[action] for action in actions]
    policies = list(itertools.product(actions, repeat=policy_len))
    return [list(policy) for policy in policies]


def expand_policy(policy, length):
    """
    Stretch a policy of segment levels into a control sequence.

    The sequence is split into len(policy) nearly equal consecutive segments,
    each held at its level. Segments beyond `length` are dropped.

    Examples
    --------
    >>> expand_policy([1.0, -1.0], 5)
    array([ 1.,  1.,  1., -1., -1.])
    """
    controls = np.zeros(length)
    if length == 0:
        return controls
    segments = np.array_split(np.arange(length), min(len(policy), length))
    for level, idx in zip(policy, segments):
        controls[idx] = level
    return controls


# =============================================================================
# Policy Selection
# =============================================================================

def select_policy(q_pi, action_selection="deterministic", alpha=16.0, rng=None):
    """
    Pick a policy index from the policy posterior.

    Args:
        q_pi: policy posterior probabilities (1D array)
        action_selection: "deterministic" or "stochastic"
        alpha: precision parameter for stochastic selection
        rng: optional numpy Generator

    Returns:
        selected policy index (int)
    """
    if action_selection == "deterministic":
        policy_idx = np.argmax(q_pi)
    elif action_selection == "stochastic":
        rng = rng if rng is not None else np.random.default_rng()
        p_policies = softmax(log_stable(q_pi) * alpha)
        policy_idx = rng.choice(len(q_pi), p=p_policies)
    else:
        raise ValueError(f"Unknown action selection mode: {action_selection}")
    return int(policy_idx)
