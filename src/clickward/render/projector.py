from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from jinja2 import DictLoader, Environment

from clickward.core.context import DeploymentConfig
from clickward.core.models import NodeKind, Topology
from clickward.core.placement import format_host
from clickward.render.models import (
    KeeperConfig,
    KeeperConfigsForReplica,
    KeeperCoordinationSettings,
    LogConfig,
    Macros,
    RaftServerConfig,
    RemoteServers,
    ReplicaConfig,
    ServerConfig,
)
from clickward.render.templates import TEMPLATES


class ConfigProjector:
    """
    Turns the current topology into the XML config each node process reads.
    """

    def __init__(self, config: DeploymentConfig):
        self.config = config
        self.env = Environment(
            loader=DictLoader(TEMPLATES),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def keeper_config(self, node_id: int, topology: Topology) -> KeeperConfig:
        """Build the config for `node_id` listing every live keeper as a raft peer."""
        placement = self.config.placement(NodeKind.KEEPER, node_id)
        host = self.config.settings.listen_host
        raft_servers = [
            RaftServerConfig(
                id=peer_id,
                hostname=host,
                port=self.config.placement(NodeKind.KEEPER, peer_id).raft_port,
            )
            for peer_id in topology.ids(NodeKind.KEEPER)
        ]
        return KeeperConfig(
            logger=self._logger(placement.log_path, placement.errorlog_path),
            listen_host=host,
            tcp_port=placement.tcp_port,
            server_id=node_id,
            log_storage_path=placement.log_storage_path,
            snapshot_storage_path=placement.snapshot_storage_path,
            coordination_settings=KeeperCoordinationSettings(
                raft_logs_level=self.config.node_logging.level,
            ),
            raft_servers=raft_servers,
        )

    def replica_config(self, node_id: int, topology: Topology) -> ReplicaConfig:
        """Build the config for server `node_id` with every live replica and keeper."""
        placement = self.config.placement(NodeKind.SERVER, node_id)
        settings = self.config.settings
        host = settings.listen_host

        replicas = [
            ServerConfig(host=host, port=self.config.placement(NodeKind.SERVER, peer_id).tcp_port)
            for peer_id in topology.ids(NodeKind.SERVER)
        ]
        keepers = [
            ServerConfig(
                host=format_host(host),
                port=self.config.placement(NodeKind.KEEPER, keeper_id).tcp_port,
            )
            for keeper_id in topology.ids(NodeKind.KEEPER)
        ]

        return ReplicaConfig(
            logger=self._logger(placement.log_path, placement.errorlog_path),
            macros=Macros(shard=1, replica=node_id, cluster=settings.cluster_name),
            listen_host=host,
            http_port=placement.http_port,
            tcp_port=placement.tcp_port,
            interserver_http_port=placement.interserver_http_port,
            remote_servers=RemoteServers(
                cluster=settings.cluster_name,
                secret=settings.secret,
                replicas=replicas,
            ),
            keepers=KeeperConfigsForReplica(nodes=keepers),
            data_path=placement.data_path,
        )

    def render(self, kind: NodeKind, node_id: int, topology: Topology) -> str:
        """Render the config text for one node from the full topology."""
        if kind is NodeKind.KEEPER:
            model = self.keeper_config(node_id, topology)
            template = self.env.get_template("keeper")
        else:
            model = self.replica_config(node_id, topology)
            template = self.env.get_template("replica")
        return template.render(config=model, logger=model.logger)

    def write(self, kind: NodeKind, node_id: int, topology: Topology) -> Path:
        """Render and write one node's config, creating its directory tree."""
        placement = self.config.placement(kind, node_id)
        placement.log_path.parent.mkdir(parents=True, exist_ok=True)
        placement.config_path.write_text(self.render(kind, node_id, topology), encoding="utf-8")
        return placement.config_path

    def _logger(self, log: Path, errorlog: Path) -> LogConfig:
        logging = self.config.node_logging
        return LogConfig(
            level=logging.level,
            log=log,
            errorlog=errorlog,
            size=logging.size,
            count=logging.count,
        )


def config_schema(kind: NodeKind) -> Dict[str, Any]:
    """Return the JSON schema of the config model used for a node kind."""
    model = KeeperConfig if kind is NodeKind.KEEPER else ReplicaConfig
    return model.model_json_schema()
