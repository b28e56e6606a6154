from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from clickward.cli.formatter import OutputFormatter
from clickward.core.context import DeploymentConfig
from clickward.core.errors import (
    ClickwardError,
    DeploymentExistsError,
    TopologyCorruptError,
    TopologyNotFoundError,
)
from clickward.core.models import NodeKind, Topology
from clickward.keeper.client import KeeperClient
from clickward.render.projector import ConfigProjector
from clickward.runtime.saga import SagaResult, SagaStep, run_saga
from clickward.runtime.supervisor import NodeProbeResult, ProcessSupervisor
from clickward.storage.topology_store import TopologyStore

NODE_DIR_PATTERN = re.compile(r"^(keeper|clickhouse)-(\d+)$")


@dataclass(frozen=True)
class TeardownResult:
    """Which nodes were stopped and which stops failed during teardown."""

    stopped: List[Tuple[NodeKind, int]]
    failed: List[Tuple[NodeKind, int, str]]


class Deployment:
    """
    A deployment of Clickhouse servers and a Keeper cluster.

    This always generates clusters on localhost and is suitable only for testing.
    Every membership operation loads the topology, mutates it, persists it, and
    only then renders configs and starts or stops processes. Nothing is rolled
    back: a failure after the save leaves the new topology in place.
    """

    def __init__(
        self,
        config: DeploymentConfig,
        store: Optional[TopologyStore] = None,
        projector: Optional[ConfigProjector] = None,
        supervisor: Optional[ProcessSupervisor] = None,
    ) -> None:
        self.config = config
        self.store = store if store is not None else TopologyStore(config.path)
        self.projector = projector if projector is not None else ConfigProjector(config)
        self.supervisor = supervisor if supervisor is not None else ProcessSupervisor(config)

    def show(self) -> Topology:
        return self.store.load()

    def status(self) -> List[NodeProbeResult]:
        topology = self.store.load()
        results = [self.supervisor.probe(NodeKind.KEEPER, i) for i in topology.ids(NodeKind.KEEPER)]
        results.extend(self.supervisor.probe(NodeKind.SERVER, i) for i in topology.ids(NodeKind.SERVER))
        return results

    def keeper_client(self, node_id: int) -> KeeperClient:
        placement = self.config.placement(NodeKind.KEEPER, node_id)
        return KeeperClient(
            host=self.config.settings.listen_host,
            port=placement.tcp_port,
            clickhouse_binary=self.config.settings.clickhouse_binary,
        )

    def keeper_membership(self, node_id: int) -> Dict[int, str]:
        """Return the raft membership as keeper `node_id` itself sees it."""
        return self.keeper_client(node_id).config()

    def generate_config(self, num_keepers: int, num_replicas: int, force: bool = False) -> Topology:
        """Write configs for a fresh cluster and persist its topology. Starts nothing."""
        if not force:
            try:
                self.store.load()
            except (TopologyNotFoundError, TopologyCorruptError):
                pass
            else:
                raise DeploymentExistsError(str(self.config.path))

        topology = Topology.generate(num_keepers, num_replicas)
        self._check_placements(topology)

        self.config.path.mkdir(parents=True, exist_ok=True)

        for node_id in topology.ids(NodeKind.SERVER):
            self.projector.write(NodeKind.SERVER, node_id, topology)
        for node_id in topology.ids(NodeKind.KEEPER):
            self.projector.write(NodeKind.KEEPER, node_id, topology)

        self.store.save(topology)
        OutputFormatter.log(
            f"Generated config for {num_keepers} keeper(s) and {num_replicas} replica(s) at {self.config.path}",
            severity="success",
        )
        return topology

    def deploy(self) -> List[Tuple[NodeKind, int]]:
        """Start every node with a generated config directory, keepers first."""
        if not self.config.path.is_dir():
            raise TopologyNotFoundError(str(self.config.path))

        found: Dict[NodeKind, List[int]] = {NodeKind.KEEPER: [], NodeKind.SERVER: []}
        for entry in self.config.path.iterdir():
            match = NODE_DIR_PATTERN.match(entry.name)
            if entry.is_dir() and match:
                found[NodeKind(match.group(1))].append(int(match.group(2)))

        live: Optional[Topology]
        try:
            live = self.store.load()
        except (TopologyNotFoundError, TopologyCorruptError) as exc:
            OutputFormatter.log(f"Deploying every config directory found: {exc}", severity="warning")
            live = None

        started: List[Tuple[NodeKind, int]] = []
        for kind in (NodeKind.KEEPER, NodeKind.SERVER):
            for node_id in sorted(found[kind]):
                if live is not None and node_id not in live.ids(kind):
                    OutputFormatter.log(
                        f"Skipping {kind.label} {node_id}: no longer part of the cluster.",
                        severity="warning",
                    )
                    continue
                self.supervisor.start(kind, node_id, self.config.placement(kind, node_id).config_path)
                started.append((kind, node_id))
        return started

    def teardown(self) -> TeardownResult:
        """Stop all clickhouse servers and keepers, continuing past failures."""
        stopped: List[Tuple[NodeKind, int]] = []
        failed: List[Tuple[NodeKind, int, str]] = []

        try:
            topology = self.store.load()
        except TopologyNotFoundError:
            OutputFormatter.log("No deployment metadata found. Nothing to tear down.", severity="info")
            return TeardownResult(stopped=stopped, failed=failed)

        # We don't keep track of which nodes were already stopped, so a failure
        # here is expected for partially running clusters.
        for kind in (NodeKind.KEEPER, NodeKind.SERVER):
            for node_id in topology.ids(kind):
                try:
                    self.supervisor.stop(kind, node_id)
                except (ClickwardError, OSError, ValueError) as exc:
                    OutputFormatter.log(f"Could not stop {kind.label} {node_id}: {exc}", severity="warning")
                    failed.append((kind, node_id, str(exc)))
                else:
                    stopped.append((kind, node_id))

        return TeardownResult(stopped=stopped, failed=failed)

    def add_keeper(self) -> int:
        """
        Add a node to the keeper config at all replicas and start the new keeper.
        """
        topology = self.store.load()
        new_id = topology.add_keeper()
        self._check_placements(topology)
        OutputFormatter.log(f"Updating config to include new keeper: {new_id}", severity="info")
        self.store.save(topology)

        # The new node is configured and started before the other nodes hear
        # about it. It must be online for reconfiguration to succeed.
        steps = [
            self._write_step(NodeKind.KEEPER, new_id, topology),
            self._start_step(NodeKind.KEEPER, new_id),
        ]
        # Existing keepers reload the new config on their own.
        steps.extend(
            self._write_step(NodeKind.KEEPER, node_id, topology)
            for node_id in topology.ids(NodeKind.KEEPER)
            if node_id != new_id
        )
        # Servers need to learn about the new keeper node.
        steps.extend(self._server_config_steps(topology))

        self._run("add keeper", steps)
        return new_id

    def remove_keeper(self, node_id: int) -> SagaResult:
        """
        Remove a node from the keeper config at all replicas and stop it.
        """
        OutputFormatter.log(f"Updating config to remove keeper: {node_id}", severity="info")
        topology = self.store.load()
        topology.remove_keeper(node_id)
        self.store.save(topology)

        # Membership is redistributed before the node goes away.
        steps = [
            self._write_step(NodeKind.KEEPER, remaining, topology)
            for remaining in topology.ids(NodeKind.KEEPER)
        ]
        steps.extend(self._server_config_steps(topology))
        steps.append(self._stop_step(NodeKind.KEEPER, node_id))

        return self._run("remove keeper", steps)

    def add_server(self) -> int:
        """Add a new clickhouse server replica."""
        topology = self.store.load()
        new_id = topology.add_server()
        self._check_placements(topology)
        OutputFormatter.log(f"Updating config to include new replica: {new_id}", severity="info")
        self.store.save(topology)

        # Replicas tolerate a peer that is configured but not up yet, so the
        # new server can start after everyone knows about it.
        steps = self._server_config_steps(topology)
        steps.append(self._start_step(NodeKind.SERVER, new_id))

        self._run("add server", steps)
        return new_id

    def remove_server(self, node_id: int) -> SagaResult:
        """Remove a replica from every server config and stop the old server."""
        OutputFormatter.log(f"Updating config to remove clickhouse server: {node_id}", severity="info")
        topology = self.store.load()
        topology.remove_server(node_id)
        self.store.save(topology)

        steps = self._server_config_steps(topology)
        steps.append(self._stop_step(NodeKind.SERVER, node_id))

        return self._run("remove server", steps)

    def _check_placements(self, topology: Topology) -> None:
        """Raise InvalidPlacementError if any live node cannot be placed."""
        for kind in (NodeKind.KEEPER, NodeKind.SERVER):
            for node_id in topology.ids(kind):
                self.config.placement(kind, node_id)

    def _write_step(self, kind: NodeKind, node_id: int, topology: Topology) -> SagaStep:
        return SagaStep(
            name=f"write {kind.value}-{node_id} config",
            action=lambda: self.projector.write(kind, node_id, topology),
        )

    def _start_step(self, kind: NodeKind, node_id: int) -> SagaStep:
        config_path: Path = self.config.placement(kind, node_id).config_path
        return SagaStep(
            name=f"start {kind.value}-{node_id}",
            action=lambda: self.supervisor.start(kind, node_id, config_path),
        )

    def _stop_step(self, kind: NodeKind, node_id: int) -> SagaStep:
        return SagaStep(
            name=f"stop {kind.value}-{node_id}",
            action=lambda: self.supervisor.stop(kind, node_id),
        )

    def _server_config_steps(self, topology: Topology) -> List[SagaStep]:
        return [
            self._write_step(NodeKind.SERVER, node_id, topology)
            for node_id in topology.ids(NodeKind.SERVER)
        ]

    def _run(self, operation: str, steps: List[SagaStep]) -> SagaResult:
        result = run_saga(operation, steps)
        OutputFormatter.log(f"{operation} complete ({len(result.completed)} steps).", severity="success")
        return result
