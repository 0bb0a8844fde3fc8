"""
Action catalog and parameter contracts.

This module provides the safety boundary of the agentic loop:
- ActionName: Enum of permitted remediation actions
- ActionDefinition / ParamDef: Action and parameter contracts
- ActionCatalog: Versioned lookup table (DEFAULT_CATALOG)
- Typed per-action views (to_typed_action, *Params models)
- ValidationError and the validate_* helpers
"""

from remedy_core.actions.catalog import (
    CATALOG_VERSION,
    DEFAULT_CATALOG,
    RESOURCE_PARAM_KEYS,
    ActionCatalog,
    ActionDefinition,
    ActionName,
    ParamDef,
)
from remedy_core.actions.typed import (
    AdjustResourcesParams,
    DeletePodParams,
    ObserveParams,
    PatchConfigParams,
    RestartDeploymentParams,
    RollbackDeploymentParams,
    ScaleDeploymentParams,
    TypedAction,
    to_typed_action,
)
from remedy_core.actions.validation import (
    ValidationError,
    validate_action,
    validate_action_params,
    validate_delete_pod,
    validate_turn_actions,
)

__all__ = [
    "CATALOG_VERSION",
    "DEFAULT_CATALOG",
    "RESOURCE_PARAM_KEYS",
    "ActionCatalog",
    "ActionDefinition",
    "ActionName",
    "AdjustResourcesParams",
    "DeletePodParams",
    "ObserveParams",
    "ParamDef",
    "PatchConfigParams",
    "RestartDeploymentParams",
    "RollbackDeploymentParams",
    "ScaleDeploymentParams",
    "TypedAction",
    "ValidationError",
    "to_typed_action",
    "validate_action",
    "validate_action_params",
    "validate_delete_pod",
    "validate_turn_actions",
]
