from __future__ import annotations

import os
import signal
import subprocess
from enum import Enum
from pathlib import Path
from typing import List, Optional

import psutil
from pydantic import BaseModel, Field

from clickward.cli.formatter import OutputFormatter
from clickward.core.context import DeploymentConfig
from clickward.core.errors import NotRunningError, SpawnFailedError
from clickward.core.models import NodeKind

# Subcommand of the clickhouse multi-call binary for each node kind
SUBCOMMANDS = {
    NodeKind.KEEPER: "keeper",
    NodeKind.SERVER: "server",
}


class ProcessHandle(BaseModel):
    """A node process as recorded at start time."""

    kind: NodeKind
    node_id: int = Field(gt=0)
    pid: int = Field(gt=0)
    pid_path: Path


class NodeState(str, Enum):
    """Classification of a node's pid marker/liveness state."""

    ABSENT = "absent"
    RUNNING = "running"
    STALE = "stale"


class NodeProbeResult(BaseModel):
    """Result payload from probing a node's pid marker."""

    kind: NodeKind
    node_id: int
    state: NodeState
    pid: Optional[int] = None
    pid_path: str
    reason: str


def is_process_alive(pid: int) -> bool:
    """Return True when a process id appears to be alive on this host."""
    if pid <= 0:
        return False

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError:
        return False

    return True


def read_pid_file(pid_path: Path) -> int:
    return int(pid_path.read_text(encoding="utf-8").strip())


def write_pid_file(pid_path: Path, pid: int) -> Path:
    pid_path.parent.mkdir(parents=True, exist_ok=True)
    pid_path.write_text(f"{pid}\n", encoding="utf-8")
    return pid_path


def child_pids(pid: int) -> List[int]:
    """Return pids whose parent is `pid`, empty if `pid` is gone or cannot be inspected."""
    try:
        return [child.pid for child in psutil.Process(pid).children()]
    except psutil.NoSuchProcess:
        return []
    except psutil.Error as exc:
        OutputFormatter.log(f"Could not list children of pid {pid}: {exc}", severity="warning")
        return []


class ProcessSupervisor:
    """
    Starts and stops node processes, tracking each by a pid file in its directory.

    Neither start nor stop waits: start returns once the process is spawned and
    stop returns once the signal is sent.
    """

    def __init__(self, config: DeploymentConfig):
        self.config = config

    def command(self, kind: NodeKind, config_path: Path) -> List[str]:
        return [self.config.settings.clickhouse_binary, SUBCOMMANDS[kind], "-C", str(config_path)]

    def start(self, kind: NodeKind, node_id: int, config_path: Optional[Path] = None) -> ProcessHandle:
        placement = self.config.placement(kind, node_id)
        config_path = config_path or placement.config_path
        OutputFormatter.log(f"Deploying {kind.label}: {placement.directory}", severity="info")

        try:
            process = subprocess.Popen(
                self.command(kind, config_path),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            raise SpawnFailedError(kind.label, node_id, str(exc)) from exc

        try:
            write_pid_file(placement.pid_path, process.pid)
        except OSError as exc:
            # Every running node has a pid file.
            process.kill()
            raise SpawnFailedError(kind.label, node_id, f"cannot write pid file: {exc}") from exc

        return ProcessHandle(kind=kind, node_id=node_id, pid=process.pid, pid_path=placement.pid_path)

    def stop(self, kind: NodeKind, node_id: int) -> List[int]:
        """
        Kill a node and remove its pid file. Returns the pids signalled.

        A clickhouse server pid is a watchdog that forks the real server, so its
        children are looked up before the watchdog goes away.
        """
        placement = self.config.placement(kind, node_id)
        if not placement.pid_path.exists():
            raise NotRunningError(kind.label, node_id, str(placement.pid_path))

        pid = read_pid_file(placement.pid_path)
        targets = [pid]
        if kind is NodeKind.SERVER:
            targets.extend(child_pids(pid))

        pids = ", ".join(str(p) for p in targets)
        OutputFormatter.log(f"Stopping {kind.label} {node_id}: pid(s) {pids}", severity="info")

        for target in targets:
            self._kill(target)

        placement.pid_path.unlink()
        return targets

    def probe(self, kind: NodeKind, node_id: int) -> NodeProbeResult:
        """Classify a node as absent, running, or stale from its pid file."""
        pid_path = self.config.placement(kind, node_id).pid_path
        if not pid_path.exists():
            return NodeProbeResult(
                kind=kind,
                node_id=node_id,
                state=NodeState.ABSENT,
                pid_path=str(pid_path),
                reason="Pid file not found.",
            )

        try:
            pid = read_pid_file(pid_path)
        except (OSError, ValueError) as exc:
            return NodeProbeResult(
                kind=kind,
                node_id=node_id,
                state=NodeState.STALE,
                pid_path=str(pid_path),
                reason=f"Invalid pid file: {exc}",
            )

        if not is_process_alive(pid):
            return NodeProbeResult(
                kind=kind,
                node_id=node_id,
                state=NodeState.STALE,
                pid=pid,
                pid_path=str(pid_path),
                reason=f"Process pid={pid} is not alive.",
            )

        return NodeProbeResult(
            kind=kind,
            node_id=node_id,
            state=NodeState.RUNNING,
            pid=pid,
            pid_path=str(pid_path),
            reason="Process is alive.",
        )

    def _kill(self, pid: int) -> None:
        try:
            os.kill(pid, signal.SIGKILL)
        except ProcessLookupError:
            OutputFormatter.log(f"Process {pid} already exited.", severity="warning")
