from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import ValidationError

from clickward.core.errors import TopologyCorruptError, TopologyNotFoundError
from clickward.core.models import Topology

# Always lives directly below the deployment directory.
METADATA_FILENAME = "clickward-metadata.json"


def metadata_path(deployment_dir: Path) -> Path:
    """Return the metadata file path for a deployment directory."""
    return deployment_dir / METADATA_FILENAME


class TopologyStore:
    """Durable home of the Topology record for one deployment."""

    def __init__(self, deployment_dir: Path) -> None:
        self.deployment_dir = deployment_dir

    @property
    def path(self) -> Path:
        return metadata_path(self.deployment_dir)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Topology:
        """Load the record; missing and unreadable records raise distinct errors."""
        if not self.path.exists():
            raise TopologyNotFoundError(str(self.deployment_dir))

        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            return Topology.model_validate(payload)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
            raise TopologyCorruptError(str(self.path), str(exc)) from exc

    def save(self, topology: Topology) -> Path:
        """Persist the record, replacing any previous one in a single rename."""
        self.deployment_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f".{METADATA_FILENAME}.tmp")
        tmp_path.write_text(topology.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)
        return self.path
