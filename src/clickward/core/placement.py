from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from clickward.core.errors import InvalidPlacementError
from clickward.core.models import BasePorts, NodeKind

KEEPER_CONFIG_FILENAME = "keeper-config.xml"
SERVER_CONFIG_FILENAME = "clickhouse-config.xml"
KEEPER_PID_FILENAME = "keeper.pid"
SERVER_PID_FILENAME = "clickhouse.pid"

MAX_PORT = 65535


@dataclass(frozen=True)
class NodePlacement:
    """Where a node listens and where its files live.

    Computed purely from (kind, id, base ports, deployment dir), so any
    component can derive it independently.
    """

    kind: NodeKind
    node_id: int
    directory: Path
    config_path: Path
    pid_path: Path
    log_path: Path
    errorlog_path: Path
    tcp_port: int
    raft_port: Optional[int] = None
    http_port: Optional[int] = None
    interserver_http_port: Optional[int] = None
    data_path: Optional[Path] = None
    log_storage_path: Optional[Path] = None
    snapshot_storage_path: Optional[Path] = None


def node_dir_name(kind: NodeKind, node_id: int) -> str:
    return f"{kind.value}-{node_id}"


def _port(base: int, node_id: int, name: str) -> int:
    port = base + node_id
    if port > MAX_PORT:
        raise InvalidPlacementError(f"{name} port {base} + {node_id} exceeds {MAX_PORT}")
    return port


def place_node(
    kind: NodeKind,
    node_id: int,
    deployment_dir: Path,
    base_ports: BasePorts,
) -> NodePlacement:
    """Return the deterministic placement of one node."""
    if node_id < 1:
        raise InvalidPlacementError(f"Node ids start at 1, got {node_id}")

    directory = deployment_dir / node_dir_name(kind, node_id)
    logs = directory / "logs"

    if kind is NodeKind.KEEPER:
        return NodePlacement(
            kind=kind,
            node_id=node_id,
            directory=directory,
            config_path=directory / KEEPER_CONFIG_FILENAME,
            pid_path=directory / KEEPER_PID_FILENAME,
            log_path=logs / "clickhouse-keeper.log",
            errorlog_path=logs / "clickhouse-keeper.err.log",
            tcp_port=_port(base_ports.keeper, node_id, "keeper"),
            raft_port=_port(base_ports.raft, node_id, "raft"),
            log_storage_path=directory / "coordination" / "log",
            snapshot_storage_path=directory / "coordination" / "snapshots",
        )

    return NodePlacement(
        kind=kind,
        node_id=node_id,
        directory=directory,
        config_path=directory / SERVER_CONFIG_FILENAME,
        pid_path=directory / SERVER_PID_FILENAME,
        log_path=logs / "clickhouse.log",
        errorlog_path=logs / "clickhouse.err.log",
        tcp_port=_port(base_ports.clickhouse_tcp, node_id, "clickhouse tcp"),
        http_port=_port(base_ports.clickhouse_http, node_id, "clickhouse http"),
        interserver_http_port=_port(
            base_ports.clickhouse_interserver_http, node_id, "clickhouse interserver http"
        ),
        data_path=directory / "data",
    )


def format_host(host: str) -> str:
    """Bracket IPv6 literals so a port can follow."""
    if ":" in host and not host.startswith("["):
        return f"[{host}]"
    return host


def format_address(host: str, port: int) -> str:
    return f"{format_host(host)}:{port}"
