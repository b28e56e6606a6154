from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from clickward.config.loader import load_config, resolve_config_path
from clickward.core.models import BasePorts, ClickwardSettings, NodeKind, NodeLoggingSettings
from clickward.core.placement import NodePlacement, format_address, place_node

# We put things in a subdirectory of the user path for easy cleanup
DEPLOYMENT_DIR = "deployment"


class DeploymentConfig(BaseModel):
    """
    Everything needed to locate and configure one deployment.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    # Deployment directory: <root>/<target_dir or "deployment">
    path: Path

    # Framework Settings (Maps to 'clickward' section)
    settings: ClickwardSettings = Field(default_factory=ClickwardSettings)

    # Port allocation (Maps to 'ports' section)
    base_ports: BasePorts = Field(default_factory=BasePorts)

    # Logger settings for the node processes (Maps to 'node_logging' section)
    node_logging: NodeLoggingSettings = Field(default_factory=NodeLoggingSettings)

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None, **data: Any):
        """
        Initialize the config, optionally seeding sections from a loaded clickward.yaml.
        """
        if config_dict:
            if 'settings' not in data:
                data['settings'] = ClickwardSettings(**config_dict.get('clickward', {}))
            if 'base_ports' not in data:
                data['base_ports'] = BasePorts(**config_dict.get('ports', {}))
            if 'node_logging' not in data:
                data['node_logging'] = NodeLoggingSettings(**config_dict.get('node_logging', {}))

        super().__init__(**data)

    @classmethod
    def from_root(cls, root: Path, target_dir: Optional[Path] = None) -> "DeploymentConfig":
        """Build the config for a deployment rooted at `root`, reading clickward.yaml if present."""
        config_data = load_config(resolve_config_path(root))
        path = root / (target_dir if target_dir is not None else Path(DEPLOYMENT_DIR))
        return cls(config_dict=config_data, path=path)

    def placement(self, kind: NodeKind, node_id: int) -> NodePlacement:
        return place_node(kind, node_id, self.path, self.base_ports)

    def keeper_address(self, node_id: int) -> str:
        """Return the expected localhost client address of a keeper."""
        port = self.placement(NodeKind.KEEPER, node_id).tcp_port
        return format_address(self.settings.listen_host, port)

    def http_address(self, node_id: int) -> str:
        """Return the expected localhost http address of a clickhouse server."""
        port = self.placement(NodeKind.SERVER, node_id).http_port
        return format_address(self.settings.listen_host, port)
