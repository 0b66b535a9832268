"""
Receding-horizon Active Inference Agent.

The agent keeps Gaussian priors over a fixed look-ahead window (BeliefState) and
delegates the posterior computation to a pluggable inference engine. Each
timestep runs the cycle:

    act → execute → observe → infer → slide

Only the first planned control is executed; the window then slides forward by
one step and the goal is re-appended at the far end.
"""

import logging
from collections import namedtuple

import numpy as np

from . import inference
from .beliefs import BeliefState

logger = logging.getLogger(__name__)


StepRecord = namedtuple("StepRecord", ["action", "observation", "future"])

FAILURE_MODES = ("raise", "default")


class Agent:
    """
    Active Inference agent with a receding planning horizon.

    Owns the BeliefState and the latest PosteriorResult; the environment is
    owned by the caller.
    """

    def __init__(
        self,
        engine,
        C_fn,
        D_fn,
        horizon=20,
        x_target=(0.5, 0.0),
        initial_state=None,
        tiny=1e-12,
        on_inference_failure="raise",
        state_prior_offset=2,
    ):
        """
        Initialize the agent.

        Args:
            engine: InferenceEngine with infer(beliefs) → PosteriorResult
            C_fn: goal/control prior builder (T, x_target) → dict
            D_fn: initial state prior builder (config) → dict
            horizon: planning horizon T, at least 2 and above state_prior_offset
            x_target: target (position, velocity)
            initial_state: optional (position, velocity) overriding D_fn's default
            tiny: variance used to clamp performed actions and observations
            on_inference_failure: "raise" to propagate InferenceError,
                "default" to log it and fall back to a zero action
            state_prior_offset: horizon offset of the posterior state belief
                that reseeds the previous-state prior on slide, or None to use
                the engine's own state_prior

        Examples:
            >>> from agents.ActiveInference.inference import RolloutInferenceEngine
            >>> from generative_models.SA_ActiveInference.MountainCar import (
            ...     A_fn, B_fn, C_fn, D_fn
            ... )
            >>> engine = RolloutInferenceEngine(A_fn, B_fn)
            >>> agent = Agent(engine, C_fn, D_fn, horizon=20)
        """
        if horizon < 2:
            raise ValueError(f"Horizon must be at least 2 to plan ahead, got {horizon}")
        if on_inference_failure not in FAILURE_MODES:
            raise ValueError(f"Unknown inference failure mode: {on_inference_failure}")
        x_target = np.asarray(x_target, dtype=np.float64)
        if x_target.shape != (2,):
            raise ValueError(f"Target must be (position, velocity), got shape {x_target.shape}")
        if state_prior_offset is not None and not 0 <= state_prior_offset < horizon:
            raise ValueError(
                f"State prior offset must lie in [0, {horizon}), got {state_prior_offset}"
            )

        self.engine = engine
        self.C_fn = C_fn
        self.D_fn = D_fn
        self.horizon = horizon
        self.x_target = x_target
        self.tiny = tiny
        self.on_inference_failure = on_inference_failure
        self.state_prior_offset = state_prior_offset

        self.beliefs = None
        self.posterior = None
        self.fallback_prior = None
        self.curr_timestep = 0

        self.reset(initial_state)

    # =============================================================================
    # Reset
    # =============================================================================

    def reset(self, initial_state=None):
        """Fresh priors, no posterior."""
        config = None
        if initial_state is not None:
            initial_state = np.asarray(initial_state, dtype=np.float64)
            if initial_state.shape != (2,):
                raise ValueError(
                    f"Initial state must be (position, velocity), got shape {initial_state.shape}"
                )
            config = {
                "initial_position": initial_state[0],
                "initial_velocity": initial_state[1],
                "variance": self.tiny,
            }
        self.beliefs = BeliefState.from_model(
            self.C_fn, self.D_fn, self.horizon, x_target=self.x_target, config=config, tiny=self.tiny
        )
        self.posterior = None
        self.fallback_prior = None
        self.curr_timestep = 0

    # =============================================================================
    # Act
    # =============================================================================

    def act(self):
        """Most likely control at offset 1, or 0.0 without a posterior."""
        if self.posterior is None:
            return 0.0
        return float(self.posterior.controls[1])

    def future(self):
        """Predicted positions over the horizon, zeros without a posterior."""
        if self.posterior is None:
            return np.zeros(self.horizon)
        return np.asarray(self.posterior.states)[:, 0].copy()

    # =============================================================================
    # Infer
    # =============================================================================

    def infer(self, action, observation):
        """
        Register the performed action and its outcome, then run the engine.

        Raises:
            InferenceError: when the engine fails and on_inference_failure == "raise"
        """
        observation = np.asarray(observation, dtype=np.float64)
        self.beliefs.clamp_control(action)
        self.beliefs.clamp_observation(observation)

        try:
            self.posterior = self._run_engine()
            self.fallback_prior = None
        except inference.InferenceError as exc:
            if self.on_inference_failure == "raise":
                raise
            logger.warning("Inference failed at t=%d, using default action: %s", self.curr_timestep, exc)
            self.posterior = None
            # next cycle starts from the observed state
            self.fallback_prior = (observation.copy(), self.tiny * np.eye(observation.shape[0]))

        return self.posterior

    def _run_engine(self):
        try:
            result = self.engine.infer(self.beliefs)
        except (ArithmeticError, LookupError, TypeError, ValueError, np.linalg.LinAlgError) as exc:
            raise inference.InferenceError(f"Inference engine failed: {exc}") from exc
        return inference.validate_posterior(result, self.horizon, dim=self.beliefs.m_s.shape[0])

    # =============================================================================
    # Slide
    # =============================================================================

    def slide(self):
        """
        Shift the horizon by one step and reseed the previous-state prior.

        The new prior is the posterior state belief at state_prior_offset
        (the engine's state_prior when the offset is None), or the exact
        observation after a tolerated inference failure.
        """
        self.beliefs.slide(self._next_state_prior())
        self.curr_timestep += 1
        return self.curr_timestep

    def _next_state_prior(self):
        if self.posterior is None:
            return self.fallback_prior
        if self.state_prior_offset is None:
            return self.posterior.state_prior
        k = self.state_prior_offset
        return (
            np.array(self.posterior.states[k], dtype=np.float64),
            np.array(self.posterior.state_covs[k], dtype=np.float64),
        )

    # =============================================================================
    # Full cycle: act → execute → observe → infer → slide
    # =============================================================================

    def step(self, env):
        """
        Run one full cycle against an environment exposing execute/observe.

        Returns:
            StepRecord(action, observation, future) where future is the
            prediction available before acting
        """
        action = self.act()
        future = self.future()
        env.execute(action)
        observation = env.observe()
        self.infer(action, observation)
        self.slide()

        logger.debug(
            "t=%d action=%+.4f observation=(%+.4f, %+.4f)",
            self.curr_timestep, action, observation[0], observation[1],
        )
        return StepRecord(action=action, observation=observation, future=future)

    def run(self, env, num_steps):
        """Run num_steps cycles and return the list of StepRecords."""
        return [self.step(env) for _ in range(num_steps)]
