from balancer.simulator.history import HistoryManager
from balancer.simulator.generator import TaskGenerator
from balancer.simulator.status import StatusAdvisor, StatusReport, Situation
from balancer.simulator.controller import SimulationController, AdvanceOutcome

__all__ = [
    "HistoryManager",
    "TaskGenerator",
    "StatusAdvisor",
    "StatusReport",
    "Situation",
    "SimulationController",
    "AdvanceOutcome",
]
