"""
universal-subnet-runner - local multi-subnet Avalanche test networks
"""

__version__ = "0.3.0"

from .core import SubnetRunner
from .errors import RunnerError

__all__ = ["SubnetRunner", "RunnerError"]
