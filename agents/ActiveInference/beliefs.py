"""
Receding-horizon belief state.

Holds the Gaussian priors the agent hands to its inference engine:
- control priors  m_u[k], V_u[k]   for offsets k = 0..T-1
- goal priors     m_x[k], V_x[k]   for offsets k = 0..T-1
- the prior over the state preceding offset 0, (m_s, V_s)

Offset 0 is the current timestep: once an action has been performed and its
outcome observed, both are clamped there. The final offset always carries the
goal. Sliding drops offset 0 and appends a fresh final slot.
"""

import numpy as np


class BeliefState:
    """
    Priors over controls, goals and the previous state for a fixed horizon.

    The horizon length never changes after construction; the final-slot
    defaults (goal and control) are captured from the initial priors and
    restored on every slide.
    """

    def __init__(self, m_u, V_u, m_x, V_x, m_s, V_s, tiny=1e-12):
        self.m_u = np.array(m_u, dtype=np.float64)
        self.V_u = np.array(V_u, dtype=np.float64)
        self.m_x = np.array(m_x, dtype=np.float64)
        self.V_x = np.array(V_x, dtype=np.float64)
        self.m_s = np.array(m_s, dtype=np.float64)
        self.V_s = np.array(V_s, dtype=np.float64)
        self.tiny = tiny

        self.horizon = len(self.m_u)
        if self.horizon <= 0:
            raise ValueError(f"Horizon must be positive, got {self.horizon}")
        self.validate()

        # Defaults restored at the far end of the window on every slide
        self.control_tail = (self.m_u[-1].copy(), self.V_u[-1].copy())
        self.goal_tail = (self.m_x[-1].copy(), self.V_x[-1].copy())

    @classmethod
    def from_model(cls, C_fn, D_fn, horizon, x_target=None, config=None, tiny=1e-12):
        """
        Build the initial belief state from a generative model's C and D.

        Args:
            C_fn: (T, x_target) → dict with m_u, V_u, m_x, V_x
            D_fn: (config) → dict with m_s, V_s
            horizon: T
            x_target: target state handed to C_fn
            config: optional config dict handed to D_fn
        """
        if horizon <= 0:
            raise ValueError(f"Horizon must be positive, got {horizon}")
        C = C_fn(horizon, x_target)
        D = D_fn(config)
        return cls(C["m_u"], C["V_u"], C["m_x"], C["V_x"], D["m_s"], D["V_s"], tiny=tiny)

    # =============================================================================
    # Validation
    # =============================================================================

    def validate(self):
        """Raise ValueError when the prior arrays disagree on shape."""
        T = self.horizon
        dim = self.m_s.shape[0] if self.m_s.ndim == 1 else None
        if dim is None:
            raise ValueError(f"m_s must be a vector, got shape {self.m_s.shape}")

        expected = {
            "m_u": (T,),
            "V_u": (T,),
            "m_x": (T, dim),
            "V_x": (T, dim, dim),
            "m_s": (dim,),
            "V_s": (dim, dim),
        }
        for name, shape in expected.items():
            actual = getattr(self, name).shape
            if actual != shape:
                raise ValueError(f"{name} has shape {actual}, expected {shape} for horizon {T}")

    # =============================================================================
    # Clamping
    # =============================================================================

    def clamp_control(self, action):
        """Register a performed action at offset 0."""
        self.m_u[0] = float(action)
        self.V_u[0] = self.tiny

    def clamp_observation(self, observation):
        """Register an observed outcome at offset 0."""
        observation = np.asarray(observation, dtype=np.float64)
        if observation.shape != self.m_s.shape:
            raise ValueError(f"Observation has shape {observation.shape}, expected {self.m_s.shape}")
        self.m_x[0] = observation
        self.V_x[0] = self.tiny * np.eye(self.m_s.shape[0])

    # =============================================================================
    # Slide
    # =============================================================================

    def slide(self, state_prior=None):
        """
        Advance the window by one step.

        Args:
            state_prior: optional (mean, cov) replacing the previous-state prior
        """
        self.m_u = np.roll(self.m_u, -1, axis=0)
        self.V_u = np.roll(self.V_u, -1, axis=0)
        self.m_u[-1], self.V_u[-1] = self.control_tail

        self.m_x = np.roll(self.m_x, -1, axis=0)
        self.V_x = np.roll(self.V_x, -1, axis=0)
        self.m_x[-1] = self.goal_tail[0]
        self.V_x[-1] = self.goal_tail[1]

        if state_prior is not None:
            m_s, V_s = state_prior
            self.m_s = np.array(m_s, dtype=np.float64)
            self.V_s = np.array(V_s, dtype=np.float64)
        self.validate()

    # =============================================================================
    # Views
    # =============================================================================

    def as_dict(self):
        """Copy of all priors, keyed like the model's data inputs."""
        return {
            "m_u": self.m_u.copy(),
            "V_u": self.V_u.copy(),
            "m_x": self.m_x.copy(),
            "V_x": self.V_x.copy(),
            "m_s_t_min": self.m_s.copy(),
            "V_s_t_min": self.V_s.copy(),
            "T": self.horizon,
        }

    def copy(self):
        other = BeliefState(self.m_u, self.V_u, self.m_x, self.V_x, self.m_s, self.V_s, tiny=self.tiny)
        other.control_tail = self.control_tail
        other.goal_tail = self.goal_tail
        return other

    def __repr__(self):
        return (
            f"BeliefState(T={self.horizon}, m_s={self.m_s.tolist()}, "
            f"goal={self.goal_tail[0].tolist()})"
        )
