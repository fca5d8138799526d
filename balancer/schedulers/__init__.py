from balancer.schedulers.base import BaseScheduler, StepKind, StepResult
from balancer.schedulers.least_loaded import LeastLoadedScheduler

__all__ = ["BaseScheduler", "StepKind", "StepResult", "LeastLoadedScheduler"]
