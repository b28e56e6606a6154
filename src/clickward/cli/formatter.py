import json
import typer
from typing import Any, Dict, List
from pydantic import BaseModel
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from clickward.core.models import Topology

# Create a stderr console for logging
error_console = Console(stderr=True)

# Data tables go to stdout
data_console = Console()


class OutputFormatter:
    """
    Handles output formatting for the CLI.
    Ensures separation of concerns between System Logs (stderr) and Data (stdout).
    """

    @staticmethod
    def log(message: str, severity: str = "info") -> None:
        """
        Print system messages to stderr with color coding.
        """
        style = "white"
        prefix = "[SYSTEM]"

        if severity == "warning":
            style = "yellow"
        elif severity == "error":
            style = "red"
        elif severity == "critical":
            style = "bold red"
        elif severity == "success":
            style = "green"

        error_console.print(f"[{style}]{prefix} {message}[/{style}]", highlight=False)

    @staticmethod
    def print_topology(topology: Topology) -> None:
        table = Table(title="Clickward Deployment", header_style="bold")
        table.add_column("Kind", style="bold")
        table.add_column("Live Ids")
        table.add_column("Max Allocated Id")

        table.add_row(
            "keeper",
            ", ".join(str(i) for i in sorted(topology.keeper_ids)) or "-",
            str(topology.max_keeper_id),
        )
        table.add_row(
            "clickhouse server",
            ", ".join(str(i) for i in sorted(topology.server_ids)) or "-",
            str(topology.max_server_id),
        )
        data_console.print(table)

    @staticmethod
    def print_node_status(rows: List[Dict[str, Any]]) -> None:
        """Print per-node process state for `status` output."""
        if not rows:
            return

        table = Table(title="Clickward Node Status", header_style="bold")
        table.add_column("Kind", style="bold")
        table.add_column("Id")
        table.add_column("State")
        table.add_column("Pid")
        table.add_column("Address")
        table.add_column("Reason")

        for row in rows:
            color = "green"
            if row["state"] == "stale":
                color = "yellow"
            elif row["state"] == "absent":
                color = "red"

            table.add_row(
                row["kind"],
                str(row["node_id"]),
                f"[{color}]{row['state'].upper()}[/{color}]",
                "-" if row["pid"] is None else str(row["pid"]),
                escape(row["address"]),
                row["reason"],
            )

        data_console.print(table)

    @staticmethod
    def print_membership(node_id: int, membership: Dict[int, str]) -> None:
        """Print the raft membership as reported by one keeper."""
        table = Table(title=f"Keeper {node_id} Raft Membership", header_style="bold")
        table.add_column("Keeper Id", style="bold")
        table.add_column("Raft Address")
        for member_id, address in sorted(membership.items()):
            table.add_row(str(member_id), address)
        data_console.print(table)

    @staticmethod
    def print_data(data: Any) -> None:
        """
        Print a result to stdout as JSON.
        Handles Pydantic models and complex types.
        """
        if isinstance(data, str):
            typer.echo(data)
            return

        def json_serializer(obj):
            if isinstance(obj, BaseModel):
                return obj.model_dump(mode='json')
            if isinstance(obj, (set, frozenset)):
                return sorted(obj)
            return str(obj)

        try:
            output = json.dumps(data, indent=2, default=json_serializer)
            typer.echo(output)
        except TypeError as e:
            OutputFormatter.log(f"JSON Serialization failed: {e}", severity="error")
            typer.echo(str(data))
