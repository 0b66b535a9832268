"""
Receding-Horizon Active Inference Agent Package

This package provides an Active Inference agent for continuous-state control
with functional Gaussian generative models (A_fn, B_fn, C_fn, D_fn). The
agent keeps priors over a sliding look-ahead window and delegates posterior
computation to a pluggable inference engine.
"""

from .agent import Agent, StepRecord
from .beliefs import BeliefState
from .inference import (
    InferenceEngine,
    InferenceError,
    PosteriorResult,
    RolloutInferenceEngine,
    StaticInferenceEngine,
)
from . import utils
from . import maths
from . import inference
from . import control

__all__ = [
    'Agent', 'StepRecord', 'BeliefState',
    'InferenceEngine', 'InferenceError', 'PosteriorResult',
    'RolloutInferenceEngine', 'StaticInferenceEngine',
    'utils', 'maths', 'inference', 'control',
]
