"""
External collaborators of the remediation loop.

The loop never gathers cluster state or touches infrastructure itself:
- ContextProvider: returns the current cluster-state text
- Actuator: executes one catalog action and reports a textual result

Reference implementations for tests and dry runs:
- StaticContextProvider: replays fixed context text(s)
- DryRunActuator: validates and records actions without executing them
"""

from typing import Protocol, runtime_checkable

from remedy_core.actions.catalog import ActionName
from remedy_core.actions.validation import validate_action, validate_delete_pod


@runtime_checkable
class ContextProvider(Protocol):
    """Protocol for the cluster-state source, refreshed before every step."""

    async def get_context(self) -> str:
        """Return the current cluster state as text."""
        ...


@runtime_checkable
class Actuator(Protocol):
    """
    Protocol for the component that applies actions to infrastructure.

    execute() returns a textual result on success and raises on failure;
    the loop turns either into the step's observation.
    """

    async def execute(self, action: ActionName, params: dict[str, str]) -> str:
        """Execute one action and describe the result."""
        ...


class StaticContextProvider:
    """
    Context provider replaying a fixed sequence of snapshots.

    Each call returns the next snapshot; the last one repeats forever.

    Example:
        provider = StaticContextProvider(["pods: 0/3 ready", "pods: 3/3 ready"])
    """

    def __init__(self, snapshots: list[str] | str) -> None:
        self._snapshots = [snapshots] if isinstance(snapshots, str) else list(snapshots)
        self._index = 0

    async def get_context(self) -> str:
        if not self._snapshots:
            return ""
        snapshot = self._snapshots[min(self._index, len(self._snapshots) - 1)]
        self._index += 1
        return snapshot


class DryRunActuator:
    """
    Actuator that validates and records actions without executing them.

    Attributes:
        executed: (action, params) pairs in call order
        pod_count: Pods owned by the target workload, used to refuse DeletePod
    """

    def __init__(self, pod_count: int | None = None) -> None:
        self.executed: list[tuple[ActionName, dict[str, str]]] = []
        self.pod_count = pod_count

    async def execute(self, action: ActionName, params: dict[str, str]) -> str:
        validate_action(action, params)
        if action == ActionName.DELETE_POD and self.pod_count is not None:
            validate_delete_pod(self.pod_count)
        self.executed.append((action, dict(params)))
        return f"dry-run: {action.value} not applied"
