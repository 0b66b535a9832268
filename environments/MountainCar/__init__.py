from .MountainCarEnv import MountainCarEnv
from . import physics

__all__ = ['MountainCarEnv', 'physics']
