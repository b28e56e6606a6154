from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict


class LogConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str
    log: Path
    errorlog: Path
    size: str
    count: int


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str
    port: int


class RemoteServers(BaseModel):
    cluster: str
    secret: str
    replicas: List[ServerConfig]


class KeeperConfigsForReplica(BaseModel):
    """The <zookeeper> section of a replica config."""

    nodes: List[ServerConfig]


class Macros(BaseModel):
    shard: int
    replica: int
    cluster: str


class ReplicaConfig(BaseModel):
    """
    Config for an individual Clickhouse Replica.
    """
    logger: LogConfig
    macros: Macros
    listen_host: str
    http_port: int
    tcp_port: int
    interserver_http_port: int
    remote_servers: RemoteServers
    keepers: KeeperConfigsForReplica
    data_path: Path


class RaftServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    hostname: str
    port: int


class KeeperCoordinationSettings(BaseModel):
    operation_timeout_ms: int = 10000
    session_timeout_ms: int = 30000
    raft_logs_level: str = "trace"


class KeeperConfig(BaseModel):
    """
    Config for an individual Clickhouse Keeper.
    """
    logger: LogConfig
    listen_host: str
    tcp_port: int
    server_id: int
    log_storage_path: Path
    snapshot_storage_path: Path
    coordination_settings: KeeperCoordinationSettings
    raft_servers: List[RaftServerConfig]
