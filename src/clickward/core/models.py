from enum import Enum
from typing import List, Literal, Set

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from clickward.core.errors import NodeNotFoundError


class NodeKind(str, Enum):
    """
    The two kinds of node in a deployment. The value doubles as the prefix of
    the node's directory name.
    """

    KEEPER = "keeper"
    SERVER = "clickhouse"

    @property
    def label(self) -> str:
        return "keeper" if self is NodeKind.KEEPER else "clickhouse server"


class ClickwardSettings(BaseSettings):
    """
    Framework-level settings (the 'clickward' section in clickward.yaml).
    """
    model_config = SettingsConfigDict(env_prefix='CLICKWARD_', extra='ignore')

    cluster_name: str = "test_cluster"
    clickhouse_binary: str = "clickhouse"
    listen_host: str = "::1"
    secret: str = "some-unique-value"


class BasePorts(BaseModel):
    """
    Port allocation used for config generation (the 'ports' section).
    A node listens on base + id.
    """
    model_config = ConfigDict(extra='ignore', frozen=True)

    keeper: int = Field(default=20000, ge=1, le=65535)
    raft: int = Field(default=21000, ge=1, le=65535)
    clickhouse_tcp: int = Field(default=22000, ge=1, le=65535)
    clickhouse_http: int = Field(default=23000, ge=1, le=65535)
    clickhouse_interserver_http: int = Field(default=24000, ge=1, le=65535)


class NodeLoggingSettings(BaseModel):
    """
    Logger settings written into every node config (the 'node_logging' section).
    """
    model_config = ConfigDict(extra='ignore')

    level: Literal["trace", "debug", "information", "warning", "error"] = "trace"
    size: str = "100M"
    count: int = Field(default=1, ge=1)


class Topology(BaseModel):
    """
    Metadata stored for use by clickward.

    This prevents the need to parse XML and only includes what we need to
    implement commands. Ids are never reused: the watermarks only ever grow.
    """
    model_config = ConfigDict(extra='forbid')

    # Keepers that are currently part of the cluster
    keeper_ids: Set[int] = Field(default_factory=set)

    # Largest keeper id allocated so far
    max_keeper_id: int = Field(default=0, ge=0)

    # Clickhouse servers that are currently part of the cluster
    server_ids: Set[int] = Field(default_factory=set)

    # Largest server id allocated so far
    max_server_id: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_watermarks(self) -> "Topology":
        for kind, ids, watermark in (
            ("keeper", self.keeper_ids, self.max_keeper_id),
            ("server", self.server_ids, self.max_server_id),
        ):
            if any(node_id < 1 for node_id in ids):
                raise ValueError(f"{kind} ids must be positive integers")
            if ids and max(ids) > watermark:
                raise ValueError(
                    f"max_{kind}_id={watermark} is below the largest live {kind} id {max(ids)}"
                )
        return self

    @field_serializer("keeper_ids", "server_ids")
    def _serialize_ids(self, ids: Set[int]) -> List[int]:
        return sorted(ids)

    @classmethod
    def new(cls, keeper_ids: Set[int], server_ids: Set[int]) -> "Topology":
        return cls(
            keeper_ids=set(keeper_ids),
            max_keeper_id=max(keeper_ids, default=0),
            server_ids=set(server_ids),
            max_server_id=max(server_ids, default=0),
        )

    @classmethod
    def generate(cls, num_keepers: int, num_servers: int) -> "Topology":
        """Allocate ids 1..=n for each kind in one shot."""
        if num_keepers < 0 or num_servers < 0:
            raise ValueError("Node counts cannot be negative.")
        return cls.new(set(range(1, num_keepers + 1)), set(range(1, num_servers + 1)))

    def ids(self, kind: NodeKind) -> List[int]:
        source = self.keeper_ids if kind is NodeKind.KEEPER else self.server_ids
        return sorted(source)

    def add_keeper(self) -> int:
        self.max_keeper_id += 1
        self.keeper_ids.add(self.max_keeper_id)
        return self.max_keeper_id

    def remove_keeper(self, node_id: int) -> None:
        if node_id not in self.keeper_ids:
            raise NodeNotFoundError("keeper", node_id)
        self.keeper_ids.remove(node_id)

    def add_server(self) -> int:
        self.max_server_id += 1
        self.server_ids.add(self.max_server_id)
        return self.max_server_id

    def remove_server(self, node_id: int) -> None:
        if node_id not in self.server_ids:
            raise NodeNotFoundError("replica", node_id)
        self.server_ids.remove(node_id)
