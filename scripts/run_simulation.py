"""Entry point for running a stepped load-balancing simulation.

Usage:
    python scripts/run_simulation.py --servers 3 --capacity 100 --tasks 10 --steps 20
    python scripts/run_simulation.py --tasks 5 --steps 8 --rewind 3 --replay 2
"""

import argparse
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rich.console import Console

from balancer.config import load_settings
from balancer.models.server import Server
from balancer.simulator.controller import SimulationController
from balancer.simulator.generator import TaskGenerator

console = Console()


def build_controller(args: argparse.Namespace) -> SimulationController:
    """Create a controller from settings overridden by CLI flags."""
    settings = load_settings()
    server_count = args.servers or settings.server_count
    capacity = args.capacity or settings.server_capacity
    seed = args.seed if args.seed is not None else settings.seed

    servers = [Server(id=i + 1, capacity=capacity) for i in range(server_count)]
    generator = TaskGenerator(
        min_weight=settings.min_task_weight,
        max_weight=settings.max_task_weight,
        seed=seed,
    )
    return SimulationController(
        servers=servers, weight_source=generator, settings=settings,
    )


def main():
    parser = argparse.ArgumentParser(
        description="Dynamic load balancing simulator with step-by-step history"
    )
    parser.add_argument("--servers", type=int, default=None, help="Number of servers (default: settings)")
    parser.add_argument("--capacity", type=int, default=None, help="Capacity per server (default: settings)")
    parser.add_argument("--tasks", type=int, default=5, help="Tasks to enqueue before stepping (default: 5)")
    parser.add_argument("--steps", type=int, default=10, help="Steps to advance (default: 10)")
    parser.add_argument("--rewind", type=int, default=0, help="Steps to rewind afterwards (default: 0)")
    parser.add_argument("--replay", type=int, default=0, help="Steps to replay after rewinding (default: 0)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for task weights")

    args = parser.parse_args()

    controller = build_controller(args)
    controller.start()

    added = controller.add_tasks(args.tasks)
    console.print(
        f"[bold]Enqueued[/bold] {len(added)} tasks: "
        + ", ".join(f"{t.label}({t.weight})" for t in added)
    )

    for _ in range(args.steps):
        if not controller.can_advance:
            console.print("[dim]Nothing left to do, stopping early.[/dim]")
            break
        controller.advance()
        console.print(
            f"  step {controller.cursor}: {controller.last_step_kind.value}"
        )

    for _ in range(args.rewind):
        if not controller.rewind():
            break
    for _ in range(args.replay):
        if not controller.is_viewing_history:
            break
        controller.advance()

    controller.print_report()

    if controller.is_viewing_history:
        console.print(
            f"\n[dim]Viewing history: step {controller.current_step} "
            f"of {controller.history_length}[/dim]"
        )


if __name__ == "__main__":
    main()
