"""Process lifecycle and reconfiguration orchestration."""

from clickward.runtime.orchestrator import Deployment, TeardownResult
from clickward.runtime.saga import SagaResult, SagaStep, run_saga
from clickward.runtime.supervisor import (
	NodeProbeResult,
	NodeState,
	ProcessHandle,
	ProcessSupervisor,
	is_process_alive,
)

__all__ = [
	"Deployment",
	"TeardownResult",
	"SagaResult",
	"SagaStep",
	"run_saga",
	"NodeProbeResult",
	"NodeState",
	"ProcessHandle",
	"ProcessSupervisor",
	"is_process_alive",
]
