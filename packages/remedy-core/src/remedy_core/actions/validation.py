"""
Parameter validation for catalog actions.

This module provides pre-flight validation so the actuator only ever
receives an action from the catalog with a well-formed parameter set.

Validation runs in two layers:
1. Contract checks against the ActionDefinition (unknown and missing keys)
2. Value rules from the typed per-action view (replica floor, revision
   format, quantities, limits not below requests)

All errors are collected before raising, giving complete feedback rather
than failing on the first issue.

Example:
    ```python
    try:
        validate_action("ScaleDeployment", {"replicas": "0"})
    except ValidationError as e:
        print(e)  # "Validation failed for ScaleDeployment: replicas: ..."
    ```
"""

import logging

import pydantic

from remedy_core.actions.catalog import (
    DEFAULT_CATALOG,
    ActionCatalog,
    ActionDefinition,
    ActionName,
)
from remedy_core.actions.typed import TypedAction, to_typed_action

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """
    Exception raised when action validation fails.

    Attributes:
        action_name: Name of the action that failed validation
        errors: List of human-readable error messages
    """

    def __init__(self, action_name: str, errors: list[str]) -> None:
        self.action_name = action_name
        self.errors = errors
        super().__init__(str(self))

    def __str__(self) -> str:
        """Format as readable error message."""
        error_list = "; ".join(self.errors)
        return f"Validation failed for {self.action_name}: {error_list}"


def _format_pydantic_errors(exc: pydantic.ValidationError) -> list[str]:
    """Flatten pydantic errors into "field: message" strings."""
    messages = []
    for error in exc.errors():
        # loc[0] is the union tag for discriminated unions
        loc = [str(part) for part in error["loc"][1:]]
        message = error["msg"].removeprefix("Value error, ")
        messages.append(f"{'.'.join(loc)}: {message}" if loc else message)
    return messages


def validate_action_params(definition: ActionDefinition, parameters: dict[str, str]) -> TypedAction:
    """
    Validate parameters against an action definition.

    Checks:
    1. No unknown parameters (unless the action accepts extra keys)
    2. All required parameters are present
    3. Per-action value rules via the typed view

    Args:
        definition: The ActionDefinition to validate against
        parameters: Wire-level string parameters

    Returns:
        The typed parameter view for the action

    Raises:
        ValidationError: If validation fails (contains all errors)
    """
    errors: list[str] = []
    action_name = definition.name.value

    if not definition.accepts_extra_params:
        unknown = set(parameters) - set(definition.parameters)
        for param_name in sorted(unknown):
            errors.append(f"unknown parameter '{param_name}'")

    for param_name, param_def in definition.parameters.items():
        if param_def.required and not parameters.get(param_name):
            errors.append(f"missing required parameter '{param_name}'")

    if errors:
        raise ValidationError(action_name, errors)

    try:
        return to_typed_action(action_name, parameters)
    except pydantic.ValidationError as e:
        raise ValidationError(action_name, _format_pydantic_errors(e)) from e


def validate_action(
    action_name: str,
    parameters: dict[str, str],
    catalog: ActionCatalog = DEFAULT_CATALOG,
) -> TypedAction:
    """
    Validate an (action, params) pair against a catalog.

    Args:
        action_name: Action name as returned by the model
        parameters: Wire-level string parameters
        catalog: Catalog defining the allowed actions

    Returns:
        The typed parameter view for the action

    Raises:
        ValidationError: If the action is unknown or its parameters are invalid
    """
    definition = catalog.get_definition(action_name)
    if definition is None:
        raise ValidationError(
            str(action_name),
            [f"unknown action (catalog {catalog.version} allows: {', '.join(catalog.list_action_names())})"],
        )
    return validate_action_params(definition, parameters)


def validate_delete_pod(pod_count: int) -> None:
    """
    Refuse a pod deletion that would take the workload to zero pods.

    Called by actuators before executing DeletePod, with the number of
    pods currently owned by the target workload.

    Raises:
        ValidationError: If the workload has one pod or fewer
    """
    if pod_count <= 1:
        raise ValidationError(
            ActionName.DELETE_POD.value,
            [f"only {pod_count} pod(s) found, refusing to delete (would cause full outage)"],
        )


def validate_turn_actions(
    actions: list[tuple[str, dict[str, str]]],
    catalog: ActionCatalog = DEFAULT_CATALOG,
) -> None:
    """
    Validate a set of actions proposed for a single turn.

    Each action is validated individually, and at most one DeletePod is
    allowed per turn. All errors are collected before raising.

    Args:
        actions: (action_name, params) pairs
        catalog: Catalog defining the allowed actions

    Raises:
        ValidationError: If any action is invalid or the turn deletes more than one pod
    """
    errors: list[str] = []
    delete_count = 0
    for action_name, params in actions:
        if action_name == ActionName.DELETE_POD:
            delete_count += 1
        try:
            validate_action(action_name, params, catalog)
        except ValidationError as e:
            errors.append(str(e))

    if delete_count > 1:
        errors.append("only one DeletePod action is allowed per turn")

    if errors:
        logger.warning(f"Rejected turn with {len(actions)} action(s): {len(errors)} error(s)")
        raise ValidationError("turn", errors)
