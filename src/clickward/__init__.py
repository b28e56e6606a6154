from __future__ import annotations

from clickward.core.context import DEPLOYMENT_DIR, DeploymentConfig
from clickward.core.errors import (
	ClickwardError,
	ConfigLoadError,
	DeploymentExistsError,
	InvalidPlacementError,
	KeeperQueryError,
	NodeNotFoundError,
	NotRunningError,
	ReconfigurationError,
	SpawnFailedError,
	TopologyCorruptError,
	TopologyNotFoundError,
	UnexpectedResponseError,
)
from clickward.core.models import BasePorts, NodeKind, Topology
from clickward.core.placement import NodePlacement, place_node
from clickward.keeper.client import KeeperClient, parse_keeper_config
from clickward.runtime import Deployment, ProcessSupervisor
from clickward.storage.topology_store import METADATA_FILENAME, TopologyStore

__all__ = [
	"DEPLOYMENT_DIR",
	"METADATA_FILENAME",
	"BasePorts",
	"ClickwardError",
	"ConfigLoadError",
	"Deployment",
	"DeploymentConfig",
	"DeploymentExistsError",
	"InvalidPlacementError",
	"KeeperClient",
	"KeeperQueryError",
	"NodeKind",
	"NodeNotFoundError",
	"NodePlacement",
	"NotRunningError",
	"ProcessSupervisor",
	"ReconfigurationError",
	"SpawnFailedError",
	"Topology",
	"TopologyCorruptError",
	"TopologyNotFoundError",
	"TopologyStore",
	"UnexpectedResponseError",
	"parse_keeper_config",
	"place_node",
]
