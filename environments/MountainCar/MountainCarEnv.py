import numpy as np
import gymnasium as gym
from gymnasium import spaces

from .physics import create_physics, height, ENGINE_FORCE_LIMIT, FRICTION_COEFFICIENT


class MountainCarEnv(gym.Env):
    """
    Mountain Car Environment (continuous action)

    A car starts at rest in a valley and must reach a target position on the hill
    to its right. The engine is too weak to climb the hill directly: the car has
    to swing back and forth to build momentum.

    Dynamics (explicit Euler, one step per call, no sub-stepping):
        velocity <- velocity + Fg(position) + Ff(velocity) + Fa(action)
        position <- position + velocity

    The right-hand side of the velocity update uses the pre-step state, the
    position update uses the new velocity.

    Win/Neutral Conditions:
    - **WIN**: position reaches the target position (reward 1, terminated)
    - **NEUTRAL**: all other cases (reward 0)
    - Episode is truncated after max_steps if max_steps is set.
    """

    metadata = {"render_modes": ["ansi"]}

    def __init__(
        self,
        initial_position=-0.5,
        initial_velocity=0.0,
        engine_force_limit=ENGINE_FORCE_LIMIT,
        friction_coefficient=FRICTION_COEFFICIENT,
        target=(0.5, 0.0),
        max_steps=None,
    ):
        super().__init__()
        self.initial_position = float(initial_position)
        self.initial_velocity = float(initial_velocity)
        self.engine_force_limit = engine_force_limit
        self.friction_coefficient = friction_coefficient
        self.target = np.asarray(target, dtype=np.float64)
        self.max_steps = max_steps

        self.Fa, self.Ff, self.Fg, self.height = create_physics(
            engine_force_limit=engine_force_limit,
            friction_coefficient=friction_coefficient,
        )

        self.position = self.initial_position
        self.velocity = self.initial_velocity
        self.step_count = 0

        self._initialize_common_attributes()

    # =============================================================================
    # Core simulation
    # =============================================================================

    def execute(self, action):
        """
        Advance the physics by one step under `action`.

        The action is not clipped; its effect saturates through Fa.
        """
        action = float(np.asarray(action, dtype=np.float64).reshape(-1)[0])
        velocity = self.velocity + self.Fg(self.position) + self.Ff(self.velocity) + self.Fa(action)
        self.position = self.position + velocity
        self.velocity = velocity
        self.step_count += 1

    def observe(self):
        """Current (position, velocity)."""
        return np.array([self.position, self.velocity], dtype=np.float64)

    # =============================================================================
    # Gymnasium API
    # =============================================================================

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)

        options = options or {}
        self.position = float(options.get("initial_position", self.initial_position))
        self.velocity = float(options.get("initial_velocity", self.initial_velocity))
        self.step_count = 0

        return self.observe(), {"height": self.height(self.position), "step": 0}

    def step(self, action):
        reward = 0.0
        terminated = False
        truncated = False

        self.execute(action)
        observation = self.observe()

        if self.reached_target():
            reward = 1.0
            terminated = True
        elif self.max_steps is not None and self.step_count >= self.max_steps:
            truncated = True

        info = {
            "step": self.step_count,
            "action": action,
            "height": self.height(self.position),
            "result": "win" if terminated else "neutral",
        }

        return observation, reward, terminated, truncated, info

    def render(self, mode="ansi"):
        s = (
            f"t={self.step_count:4d}  x={self.position:+.4f}  v={self.velocity:+.4f}  "
            f"h={self.height(self.position):+.4f}  target={self.target[0]:+.2f}"
        )
        if mode == "human":
            print(s)
        return s

    def close(self):
        pass

    # =============================================================================
    # Helpers
    # =============================================================================

    def _initialize_common_attributes(self):
        self.action_space = spaces.Box(low=-np.inf, high=np.inf, shape=(1,), dtype=np.float64)
        self.observation_space = spaces.Box(low=-np.inf, high=np.inf, shape=(2,), dtype=np.float64)

    def reached_target(self):
        """True once the car is at or beyond the target position."""
        return self.position >= self.target[0]

    def target_height(self):
        return height(self.target[0])

    def get_state(self):
        """Get full state information."""
        return {
            "position": self.position,
            "velocity": self.velocity,
            "height": self.height(self.position),
            "step_count": self.step_count,
            "max_steps": self.max_steps,
            "target": tuple(self.target),
        }
