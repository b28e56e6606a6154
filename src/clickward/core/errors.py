from typing import List, Optional


class ClickwardError(Exception):
    """
    Base class for every error surfaced by clickward operations.
    The CLI turns these into a printed message and a non-zero exit.
    """


class TopologyNotFoundError(ClickwardError):
    """No metadata record exists at the deployment path."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No deployment found at {path}: Is your path correct?")


class TopologyCorruptError(ClickwardError):
    """The metadata record exists but cannot be read back."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Deployment metadata at {path} is unreadable: {reason}")


class DeploymentExistsError(ClickwardError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"A deployment already exists at {path}. "
            "Tear it down and remove the directory, or pass --force."
        )


class NodeNotFoundError(ClickwardError):
    """A remove operation named an id that is not part of the cluster."""

    def __init__(self, kind: str, node_id: int):
        self.kind = kind
        self.node_id = node_id
        super().__init__(f"No such {kind}: {node_id}")


class SpawnFailedError(ClickwardError):
    def __init__(self, kind: str, node_id: int, reason: str):
        self.kind = kind
        self.node_id = node_id
        super().__init__(f"Failed to start {kind} {node_id}: {reason}")


class NotRunningError(ClickwardError):
    """No pid marker exists for the node, so it is not known to be running."""

    def __init__(self, kind: str, node_id: int, pid_path: str):
        self.kind = kind
        self.node_id = node_id
        self.pid_path = pid_path
        super().__init__(f"{kind} {node_id} is not running (no pid file at {pid_path})")


class InvalidPlacementError(ClickwardError, ValueError):
    """A node id cannot be placed: it is not positive or a port would overflow."""


class KeeperQueryError(ClickwardError):
    pass


class UnexpectedResponseError(ClickwardError):
    def __init__(self, line: str):
        self.line = line
        super().__init__(f"Unexpected response from keeper: {line!r}")


class ReconfigurationError(ClickwardError):
    """
    A step of a multi-step operation failed.

    Earlier steps are not undone. `completed` lists what already happened so an
    operator can reconcile by hand.
    """

    def __init__(
        self,
        operation: str,
        failed_step: str,
        completed: List[str],
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.failed_step = failed_step
        self.completed = list(completed)
        self.cause = cause
        done = ", ".join(self.completed) if self.completed else "none"
        super().__init__(
            f"{operation} failed at step '{failed_step}': {cause} (completed steps: {done})"
        )


class ConfigLoadError(ClickwardError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Unable to load {path}: {reason}")
