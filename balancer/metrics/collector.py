"""Statistics Collector — derives simulation statistics and renders reports."""

from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from balancer.models.log import LogStatus
from balancer.models.server import Server
from balancer.models.state import SimulationState, Statistics
from balancer.schedulers.base import StepResult

if TYPE_CHECKING:
    from balancer.simulator.status import StatusReport


class StatisticsCollector:
    """Computes statistics after each step and prints rich reports."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    @staticmethod
    def average_load(servers: list[Server]) -> float:
        """Mean raw load across servers (0.0 for an empty pool)."""
        if not servers:
            return 0.0
        return sum(s.load for s in servers) / len(servers)

    def calculate(
        self,
        previous: Statistics,
        servers: list[Server],
        result: Optional[StepResult] = None,
    ) -> Statistics:
        """Fold one step's events into the running totals."""
        assigned = result.assigned_count if result is not None else 0
        completed = result.completed_count if result is not None else 0
        return Statistics(
            total_tasks=previous.total_tasks + assigned,
            completed_tasks=previous.completed_tasks + completed,
            average_load=self.average_load(servers),
        )

    def print_report(
        self,
        state: SimulationState,
        step: int = 0,
        history_length: int = 0,
        status: Optional["StatusReport"] = None,
        log_limit: int = 20,
    ) -> None:
        """Print statistics, servers, queue, log and status."""
        console = self.console
        stats = state.statistics

        console.print(Panel(
            f"[bold cyan]Dynamic Load Balancing — Simulation State[/bold cyan]\n"
            f"Step: [bold yellow]{step}[/bold yellow] of {history_length}",
            border_style="cyan",
        ))

        stats_table = Table(title="Statistics", border_style="blue")
        stats_table.add_column("Metric", style="bold")
        stats_table.add_column("Value", justify="right")
        stats_table.add_row("Total Tasks", str(stats.total_tasks))
        stats_table.add_row("Completed", f"[green]{stats.completed_tasks}[/green]")
        stats_table.add_row("Average Load", f"{stats.average_load:.1f}%")
        stats_table.add_row("Pending", f"[yellow]{len(state.queue)}[/yellow]")
        console.print(stats_table)

        server_table = Table(title="Servers", border_style="magenta")
        server_table.add_column("Server", style="bold")
        server_table.add_column("Load", justify="right")
        server_table.add_column("Utilization")
        server_table.add_column("Tasks")
        for server in state.servers:
            pct = server.load_percent()
            bar_len = int(pct / 5)
            bar = "█" * bar_len + "░" * (20 - bar_len)
            server_table.add_row(
                f"Server {server.id}",
                f"{server.load}/{server.capacity}",
                f"[{self._load_color(pct)}]{bar}[/] {pct:.0f}%",
                " ".join(t.label for t in server.tasks) or "-",
            )
        console.print(server_table)

        queue_text = " ".join(f"{t.label}({t.weight})" for t in state.queue)
        console.print(Panel(queue_text or "[dim]No pending tasks[/dim]", title="Task Queue"))

        log_table = Table(title="Task Assignment History", border_style="green")
        for column in ("Time", "Task", "Weight", "Server", "Before", "After", "Status"):
            log_table.add_column(column)
        for entry in state.log[:log_limit]:
            style = "green" if entry.status == LogStatus.COMPLETED else "cyan"
            log_table.add_row(
                entry.timestamp.strftime("%H:%M:%S"),
                f"T{entry.task_id}",
                f"{entry.task_weight} units",
                f"Server {entry.server_id}",
                f"{entry.load_before}%",
                f"{entry.load_after}%",
                f"[{style}]{entry.status.value}[/]",
            )
        console.print(log_table)

        if status is not None:
            console.print(Panel(
                f"[bold]Current:[/bold] {status.current}\n"
                f"[bold]Next:[/bold] {status.next}",
                title=f"Status: {status.situation.value}",
                border_style="yellow",
            ))

    @staticmethod
    def _load_color(pct: float) -> str:
        if pct < 50:
            return "green"
        if pct < 80:
            return "yellow"
        return "red"
