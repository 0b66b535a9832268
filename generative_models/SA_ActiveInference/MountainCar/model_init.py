"""
SA Active Inference model init for MountainCar.

Constants shared by the generative model (A, B, C, D) and used as defaults by the
agent and the run scripts. Override them through constructor keyword arguments
rather than editing this file.
"""

import numpy as np


# -------------------------------------------------
# Planning horizon
# -------------------------------------------------
T = 20

# -------------------------------------------------
# Task
# -------------------------------------------------
initial_position = -0.5
initial_velocity = 0.0
x_target = np.array([0.5, 0.0])

# -------------------------------------------------
# Physics assumed by the agent
# -------------------------------------------------
engine_force_limit = 0.04
friction_coefficient = 0.1

# -------------------------------------------------
# Precisions
# -------------------------------------------------
HUGE = 1e12  # uninformative variance
TINY = 1e-12  # clamped (certain) variance

SIGMA = 1e-4 * np.eye(2)  # goal prior covariance at the final offset
GAMMA = 1e4 * np.eye(2)  # transition precision
THETA = 1e-4 * np.eye(2)  # observation covariance

