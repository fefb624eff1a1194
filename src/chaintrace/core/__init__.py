"""
Core components of the chaintrace SDK: run records and the run registry.
"""

from .run import AgentRun, Run, RunType
from .tracer import BaseTracer

__all__ = [
    "Run",
    "AgentRun",
    "RunType",
    "BaseTracer",
]
