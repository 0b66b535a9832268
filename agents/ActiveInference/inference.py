"""
Inference engines for the receding-horizon Active Inference agent.

An inference engine takes the agent's BeliefState (previous-state prior plus
T control and goal priors, offset 0 clamped to the performed action and its
observed outcome) and returns a PosteriorResult over the horizon.

Engines provided here:
- StaticInferenceEngine: recommends zero control and predicts the current
  state repeated over the horizon. Useful as a wiring check.
- RolloutInferenceEngine: fuses the prediction from the previous-state prior
  with the observation, then scores piecewise-constant control sequences by
  rolling out the generative model against the goal priors.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from . import control
from . import maths
from . import utils

logger = logging.getLogger(__name__)


class InferenceError(RuntimeError):
    """Inference failed or produced an unusable posterior."""


@dataclass
class PosteriorResult:
    """
    Point summaries of the posterior over a T-step horizon.

    controls[k] is the most likely control at offset k, states[k] the most
    likely state after it. state_prior is the engine's own (mean, cov)
    summary for seeding the next cycle's previous-state prior; the agent uses
    it only when configured without a state offset.
    """

    controls: np.ndarray
    states: np.ndarray
    state_covs: np.ndarray
    state_prior: Tuple[np.ndarray, np.ndarray]
    info: Optional[dict] = field(default=None)


def validate_posterior(result, horizon, dim=2):
    """
    Check that an engine result has the expected shapes and finite values.

    Raises:
        InferenceError: describing the first problem found
    """
    if not isinstance(result, PosteriorResult):
        raise InferenceError(f"Expected PosteriorResult, got {type(result).__name__}")

    expected = {
        "controls": (horizon,),
        "states": (horizon, dim),
        "state_covs": (horizon, dim, dim),
    }
    for name, shape in expected.items():
        actual = np.shape(getattr(result, name))
        if actual != shape:
            raise InferenceError(f"Posterior {name} has shape {actual}, expected {shape}")

    try:
        m_s, V_s = result.state_prior
    except (TypeError, ValueError) as exc:
        raise InferenceError("Posterior state_prior must be a (mean, cov) pair") from exc
    if np.shape(m_s) != (dim,) or np.shape(V_s) != (dim, dim):
        raise InferenceError(
            f"Posterior state_prior has shapes {np.shape(m_s)}, {np.shape(V_s)}, "
            f"expected {(dim,)}, {(dim, dim)}"
        )

    if not maths.is_finite(result.controls, result.states, result.state_covs, m_s, V_s):
        raise InferenceError("Posterior contains non-finite values")
    return result


# =============================================================================
# Engines
# =============================================================================

class InferenceEngine:
    """Base class: subclasses implement infer(beliefs) → PosteriorResult."""

    def infer(self, beliefs):
        raise NotImplementedError


class StaticInferenceEngine(InferenceEngine):
    """
    Recommend zero control, predict the current state for the whole horizon.

    The current state is the observation clamped at offset 0 when its
    covariance is tight, otherwise the previous-state prior mean.
    """

    def __init__(self, tiny=1e-12):
        self.tiny = tiny

    def infer(self, beliefs):
        T = beliefs.horizon
        dim = beliefs.m_s.shape[0]

        if np.all(np.diag(beliefs.V_x[0]) <= self.tiny):
            current = beliefs.m_x[0].copy()
        else:
            current = beliefs.m_s.copy()

        cov = self.tiny * np.eye(dim)
        return PosteriorResult(
            controls=np.zeros(T),
            states=np.tile(current, (T, 1)),
            state_covs=np.tile(cov, (T, 1, 1)),
            state_prior=(current.copy(), cov.copy()),
        )


class RolloutInferenceEngine(InferenceEngine):
    """
    Score piecewise-constant control sequences by rolling out the model.

    Args:
        A_fn: functional observation model (m_s, V_s) → (m_o, V_o)
        B_fn: functional transition model (m_s, V_s, u, ...) → (m, V)
        action_levels: control levels each policy segment may take
        policy_len: number of constant segments spanning offsets 1..T-1
        gamma: policy precision
        control_variance: variance of the executed controls around the
            policy levels, propagated into the rolled-out state covariances
        observation_covariance: covariance of the observation likelihood
            used when fusing the clamped observation
        model_params: extra keyword arguments for B_fn
        action_selection: "deterministic" or "stochastic"
        alpha: precision for stochastic selection
        seed: seed for stochastic selection
    """

    def __init__(
        self,
        A_fn,
        B_fn,
        action_levels=(-10.0, 0.0, 10.0),
        policy_len=4,
        gamma=16.0,
        control_variance=0.0,
        observation_covariance=None,
        model_params=None,
        action_selection="deterministic",
        alpha=16.0,
        seed=None,
    ):
        self.A_fn = A_fn
        self.B_fn = B_fn
        self.action_levels = list(action_levels)
        self.policy_len = policy_len
        self.policies = utils.construct_policies(self.action_levels, policy_len)
        self.gamma = gamma
        self.control_variance = control_variance
        self.observation_covariance = observation_covariance
        self.model_params = model_params or {}
        if action_selection not in ("deterministic", "stochastic"):
            raise ValueError(f"Unknown action selection mode: {action_selection}")
        self.action_selection = action_selection
        self.alpha = alpha
        self.rng = np.random.default_rng(seed)

    def _current_state(self, beliefs):
        """Posterior over the offset-0 state: prediction fused with the observation."""
        m_pred, V_pred = control.get_expected_state(
            self.B_fn, beliefs.m_s, beliefs.V_s, beliefs.m_u[0], self.model_params,
            control_variance=beliefs.V_u[0],
        )
        V_obs = beliefs.V_x[0]
        if self.observation_covariance is not None:
            V_obs = V_obs + self.observation_covariance
        return maths.gaussian_product(m_pred, V_pred, beliefs.m_x[0], V_obs)

    def infer(self, beliefs):
        m_0, V_0 = self._current_state(beliefs)

        q_pi, G, rollouts = control.vanilla_update_posterior_policies(
            m_0,
            V_0,
            self.A_fn,
            self.B_fn,
            self.policies,
            beliefs.m_u[1:],
            beliefs.V_u[1:],
            beliefs.m_x[1:],
            beliefs.V_x[1:],
            model_params=self.model_params,
            gamma=self.gamma,
            control_variance=self.control_variance,
        )
        policy_idx = utils.select_policy(q_pi, self.action_selection, self.alpha, self.rng)
        future_controls, means, covs = rollouts[policy_idx]

        controls = np.concatenate([[beliefs.m_u[0]], future_controls])
        states = np.concatenate([m_0[None, :], means.reshape(-1, m_0.shape[0])], axis=0)
        state_covs = np.concatenate([V_0[None, :, :], covs.reshape(-1, *V_0.shape)], axis=0)

        top_policies = control.get_top_policies(q_pi, self.policies, top_k=3)
        logger.debug(
            "Selected policy %d %s (G=%.3f) out of %d, top: %s",
            policy_idx, self.policies[policy_idx], G[policy_idx], len(self.policies), top_policies,
        )

        return PosteriorResult(
            controls=controls,
            states=states,
            state_covs=state_covs,
            state_prior=(m_0.copy(), V_0.copy()),
            info={
                "q_pi": q_pi,
                "G": G,
                "policy": self.policies[policy_idx],
                "top_policies": top_policies,
            },
        )
