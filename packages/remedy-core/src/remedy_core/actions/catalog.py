"""
Action catalog: the fixed vocabulary of remediation actions.

This module provides:
- ActionName: Enum of every action the reasoning model may choose
- ParamDef: Parameter definition for an action argument
- ActionDefinition: Complete action specification with prompt guidance
- ActionCatalog: Versioned, read-only lookup table of definitions
- DEFAULT_CATALOG: The catalog shipped with this release

The catalog is the safety boundary of the agentic loop. The prompt
enumerates exactly these actions, the parser rejects anything else, and
the driver validates parameters against these definitions before the
actuator is ever called.

Example:
    ```python
    definition = DEFAULT_CATALOG.get_definition("ScaleDeployment")
    for name, param in definition.parameters.items():
        print(f"{name}: {param.description}")
    ```
"""

from enum import Enum

from pydantic import BaseModel, Field

CATALOG_VERSION = "v1"

RESOURCE_PARAM_KEYS = ("memory_limit", "memory_request", "cpu_limit", "cpu_request")


class ActionName(str, Enum):
    """
    Remediation actions understood by the actuator.

    Values are the literal strings exchanged with the reasoning model.
    """

    RESTART_DEPLOYMENT = "RestartDeployment"
    SCALE_DEPLOYMENT = "ScaleDeployment"
    ROLLBACK_DEPLOYMENT = "RollbackDeployment"
    ADJUST_RESOURCES = "AdjustResources"
    DELETE_POD = "DeletePod"
    PATCH_CONFIG = "PatchConfig"
    OBSERVE = "Observe"
    """Non-mutating pseudo-action: wait for the next context refresh."""


class ParamDef(BaseModel):
    """
    Parameter definition for an action argument.

    All wire-level parameter values are strings; `type` documents how the
    actuator interprets them.

    Attributes:
        type: Interpretation of the string value ("int", "str", "quantity")
        description: What this parameter represents
        required: Whether parameter must be provided
        default: Value the actuator assumes when omitted
    """

    type: str = Field(default="str", description="Interpretation of the string value")
    description: str = Field(..., description="What this parameter represents")
    required: bool = Field(default=False, description="Whether parameter must be provided")
    default: str | None = Field(default=None, description="Value assumed when omitted")


class ActionDefinition(BaseModel):
    """
    Complete definition of a catalog action.

    Attributes:
        name: Action name as exchanged with the model
        description: What the action does
        guidance: One-line advice on when to prefer this action
        parameters: Parameter definitions keyed by parameter name
        accepts_extra_params: Whether keys beyond `parameters` are allowed
        mutating: False only for the Observe pseudo-action
        risk_level: "low", "medium", "high"
    """

    name: ActionName = Field(..., description="Action name as exchanged with the model")
    description: str = Field(..., description="What the action does")
    guidance: str = Field(default="", description="When to prefer this action")
    parameters: dict[str, ParamDef] = Field(
        default_factory=dict, description="Parameter definitions keyed by name"
    )
    accepts_extra_params: bool = Field(
        default=False, description="Whether arbitrary extra keys are allowed"
    )
    mutating: bool = Field(default=True, description="False for observation-only actions")
    risk_level: str = Field(default="low", description="Risk level: low, medium, high")


class ActionCatalog:
    """
    Versioned, read-only table of action definitions.

    Definition order is preserved and is the order in which actions are
    presented to the model.

    Example:
        ```python
        catalog = ActionCatalog("v1", [restart_def, scale_def])
        catalog.is_known("ScaleDeployment")  # True
        catalog.list_action_names()          # ["RestartDeployment", "ScaleDeployment"]
        ```
    """

    def __init__(self, version: str, definitions: list[ActionDefinition]) -> None:
        self.version = version
        self._definitions = {defn.name.value: defn for defn in definitions}

    def get_definitions(self) -> list[ActionDefinition]:
        """All definitions in presentation order."""
        return list(self._definitions.values())

    def get_definition(self, action_name: str) -> ActionDefinition | None:
        """
        Find an action definition by name.

        Args:
            action_name: The name of the action to find

        Returns:
            ActionDefinition if found, None otherwise
        """
        # ActionName members hash and compare equal to their string values
        return self._definitions.get(action_name)

    def is_known(self, action_name: str) -> bool:
        """True if the action belongs to this catalog."""
        return self.get_definition(action_name) is not None

    def list_action_names(self) -> list[str]:
        """Action names in presentation order."""
        return list(self._definitions.keys())

    def __len__(self) -> int:
        return len(self._definitions)


# Presentation order matters: AdjustResources and RollbackDeployment are
# listed ahead of RestartDeployment so targeted fixes are read first.
_DEFINITIONS = [
    ActionDefinition(
        name=ActionName.ADJUST_RESOURCES,
        description="Patch container resource requests/limits on the Deployment",
        guidance=(
            "PREFERRED for OOMKilled pods or CPU throttling: raise memory/cpu "
            "instead of RestartDeployment or RollbackDeployment. Limits must "
            "never be set below requests."
        ),
        parameters={
            "container": ParamDef(
                description="Container name (defaults to the first container)"
            ),
            "memory_limit": ParamDef(type="quantity", description="Memory limit, e.g. 512Mi"),
            "memory_request": ParamDef(type="quantity", description="Memory request, e.g. 256Mi"),
            "cpu_limit": ParamDef(type="quantity", description="CPU limit, e.g. 500m"),
            "cpu_request": ParamDef(type="quantity", description="CPU request, e.g. 250m"),
        },
        risk_level="medium",
    ),
    ActionDefinition(
        name=ActionName.ROLLBACK_DEPLOYMENT,
        description="Roll the Deployment back to an earlier revision",
        guidance=(
            "PREFERRED for CrashLoopBackOff or errors that began after a recent "
            "deploy: use toRevision instead of restarting."
        ),
        parameters={
            "toRevision": ParamDef(
                description='"previous", "healthy" (last known-good) or a revision number',
                default="previous",
            ),
        },
        risk_level="medium",
    ),
    ActionDefinition(
        name=ActionName.SCALE_DEPLOYMENT,
        description="Set the Deployment's replica count",
        guidance="Use for saturation or high latency under load. Never scale to 0.",
        parameters={
            "replicas": ParamDef(type="int", description="Desired replicas (>= 1)", required=True),
        },
        risk_level="medium",
    ),
    ActionDefinition(
        name=ActionName.RESTART_DEPLOYMENT,
        description="Trigger a rolling restart of the Deployment",
        guidance="Use for stale state or leaked connections when no config or resource fix applies.",
        risk_level="low",
    ),
    ActionDefinition(
        name=ActionName.DELETE_POD,
        description="Delete one pod (the named pod, or the most unhealthy one)",
        guidance=(
            "Use for a single stuck pod. Refused when the workload has only one "
            "pod; at most one deletion per step."
        ),
        parameters={
            "pod": ParamDef(description="Pod name (omit to pick the most unhealthy pod)"),
        },
        risk_level="high",
    ),
    ActionDefinition(
        name=ActionName.PATCH_CONFIG,
        description="Update keys in a ConfigMap",
        guidance="Use when the context shows a bad configuration value.",
        parameters={
            "configmap": ParamDef(description="ConfigMap name", required=True),
        },
        accepts_extra_params=True,
        risk_level="high",
    ),
    ActionDefinition(
        name=ActionName.OBSERVE,
        description="Take no action and wait for the next context refresh",
        guidance='Use when an earlier action needs time to take effect (send "next_action": null).',
        mutating=False,
    ),
]

DEFAULT_CATALOG = ActionCatalog(CATALOG_VERSION, _DEFINITIONS)
