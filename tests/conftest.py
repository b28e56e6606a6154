import pytest
import sys
from pathlib import Path

# Ensure src/ is in the python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from clickward.core.context import DeploymentConfig


@pytest.fixture
def deployment_config(tmp_path):
    """
    A DeploymentConfig whose deployment directory lives under a temporary root.
    """
    return DeploymentConfig(path=tmp_path / "deployment")
