"""
Mathematical utilities for Active Inference with a Gaussian generative model.

This module provides core mathematical operations for:
- Gaussian negative log-likelihoods (goal and control energies)
- Gaussian belief fusion (prediction x observation)
- Numerical stability helpers
"""

import numpy as np


# =============================================================================
# Numerical Stability
# =============================================================================

EPS_VAL = 1e-16  # Small constant to prevent log(0)
LOG_2PI = np.log(2.0 * np.pi)


def log_stable(x, eps=EPS_VAL):
    """
    Numerically stable logarithm.

    Args:
        x: array-like input
        eps: small constant to prevent log(0)

    Returns:
        log(max(x, eps))
    """
    x = np.asarray(x, dtype=np.float64)
    return np.log(np.maximum(x, eps))


def softmax(x, axis=None):
    """
    Numerically stable softmax function.

    Args:
        x: array-like input
        axis: axis along which to apply softmax

    Returns:
        softmax(x) - probability distribution
    """
    x = np.asarray(x, dtype=np.float64)
    x_max = np.max(x, axis=axis, keepdims=True)
    exp_x = np.exp(x - x_max)
    return exp_x / np.sum(exp_x, axis=axis, keepdims=True)


def symmetrize(V):
    """Remove the asymmetric part left by round-off."""
    V = np.asarray(V, dtype=np.float64)
    return 0.5 * (V + V.T)


# =============================================================================
# Gaussian energies
# =============================================================================

def gaussian_nll(x, m, V):
    """
    Negative log density of x under N(m, V).

    Args:
        x: point (d,) or scalar
        m: mean (d,) or scalar
        V: covariance (d, d) or scalar variance

    Returns:
        -log N(x; m, V)

    Examples
    --------
    >>> round(gaussian_nll(0.0, 0.0, 1.0), 4)
    0.9189
    """
    x = np.atleast_1d(np.asarray(x, dtype=np.float64))
    m = np.atleast_1d(np.asarray(m, dtype=np.float64))
    V = np.atleast_2d(np.asarray(V, dtype=np.float64))
    d = x - m
    _, logdet = np.linalg.slogdet(V)
    quad = float(d @ np.linalg.solve(V, d))
    return 0.5 * (quad + logdet + x.shape[0] * LOG_2PI)


def expected_gaussian_nll(m_pred, V_pred, m, V):
    """
    Negative log evidence of a predicted Gaussian N(m_pred, V_pred) under the
    prior N(m, V), i.e. -log ∫ N(x; m_pred, V_pred) N(x; m, V) dx.

    The predicted covariance widens the prior, so uncertain predictions are
    penalised less for missing the prior mean.
    """
    return gaussian_nll(m_pred, m, np.atleast_2d(V) + np.atleast_2d(V_pred))


# =============================================================================
# Gaussian fusion
# =============================================================================

def gaussian_product(m1, V1, m2, V2):
    """
    Normalised product of two Gaussian densities over the same variable.

    Computed in information form so that near-zero (clamped) covariances
    dominate without cancellation.

    Returns:
        m, V of the fused Gaussian
    """
    W1 = np.linalg.inv(np.atleast_2d(V1))
    W2 = np.linalg.inv(np.atleast_2d(V2))
    V = np.linalg.inv(W1 + W2)
    m = V @ (W1 @ np.atleast_1d(m1) + W2 @ np.atleast_1d(m2))
    return m, symmetrize(V)


def is_finite(*arrays):
    """True when every array contains only finite values."""
    return all(np.all(np.isfinite(np.asarray(a, dtype=np.float64))) for a in arrays)
