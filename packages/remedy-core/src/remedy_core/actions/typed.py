"""
Typed per-action parameter views.

Parameters travel as a generic string-to-string mapping on the wire. For
internal use that mapping is lifted into a tagged union keyed by the
action name, which is where value-level rules live (replica floor,
revision format, quantity ordering).

Example:
    ```python
    typed = to_typed_action("ScaleDeployment", {"replicas": "3"})
    assert isinstance(typed, ScaleDeploymentParams)
    assert typed.replicas == 3
    ```
"""

from decimal import Decimal
from typing import Annotated, Literal, Union

from kubernetes.utils import parse_quantity
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from remedy_core.actions.catalog import RESOURCE_PARAM_KEYS

ROLLBACK_KEYWORDS = ("previous", "healthy")


class RestartDeploymentParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: Literal["RestartDeployment"] = "RestartDeployment"


class ScaleDeploymentParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: Literal["ScaleDeployment"] = "ScaleDeployment"
    replicas: int = Field(..., ge=1, description="Desired replica count")


class RollbackDeploymentParams(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    action: Literal["RollbackDeployment"] = "RollbackDeployment"
    to_revision: str = Field(default="previous", alias="toRevision")

    @field_validator("to_revision")
    @classmethod
    def _check_revision(cls, value: str) -> str:
        if value in ROLLBACK_KEYWORDS:
            return value
        if value.isdigit() and int(value) > 0:
            return value
        raise ValueError(
            f"toRevision must be 'previous', 'healthy' or a revision number, got {value!r}"
        )

    @property
    def revision_number(self) -> int | None:
        """Explicit revision, or None for the keyword forms."""
        return int(self.to_revision) if self.to_revision.isdigit() else None


class AdjustResourcesParams(BaseModel):
    """
    Resource adjustment for one container.

    Quantities use Kubernetes notation and are parsed with the kubernetes
    client, so "1Gi" and "1024Mi" compare equal.
    """

    model_config = ConfigDict(extra="ignore")

    action: Literal["AdjustResources"] = "AdjustResources"
    container: str | None = None
    memory_limit: str | None = None
    memory_request: str | None = None
    cpu_limit: str | None = None
    cpu_request: str | None = None

    @field_validator(*RESOURCE_PARAM_KEYS)
    @classmethod
    def _check_quantity(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            parsed = parse_quantity(value)
        except ValueError as e:
            raise ValueError(f"invalid quantity {value!r}: {e}") from e
        if parsed <= 0:
            raise ValueError(f"quantity {value!r} must be positive")
        return value

    @model_validator(mode="after")
    def _check_limits(self) -> "AdjustResourcesParams":
        if all(getattr(self, key) is None for key in RESOURCE_PARAM_KEYS):
            raise ValueError(
                "AdjustResources requires at least one of: " + ", ".join(RESOURCE_PARAM_KEYS)
            )
        for resource in ("memory", "cpu"):
            limit = self.quantity(f"{resource}_limit")
            request = self.quantity(f"{resource}_request")
            if limit is not None and request is not None and limit < request:
                raise ValueError(
                    f"{resource} limit ({getattr(self, f'{resource}_limit')}) cannot be "
                    f"less than request ({getattr(self, f'{resource}_request')})"
                )
        return self

    def quantity(self, key: str) -> Decimal | None:
        """Parsed value of a resource key, or None if not set."""
        value = getattr(self, key)
        return parse_quantity(value) if value is not None else None


class DeletePodParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: Literal["DeletePod"] = "DeletePod"
    pod: str | None = None


class PatchConfigParams(BaseModel):
    """ConfigMap patch: `configmap` names the target, every other key is data."""

    model_config = ConfigDict(extra="allow")

    action: Literal["PatchConfig"] = "PatchConfig"
    configmap: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def _check_data(self) -> "PatchConfigParams":
        if not self.model_extra:
            raise ValueError("PatchConfig requires at least one key/value pair besides configmap")
        return self

    @property
    def data(self) -> dict[str, str]:
        """The key/value pairs to write into the ConfigMap."""
        return {key: str(value) for key, value in (self.model_extra or {}).items()}


class ObserveParams(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: Literal["Observe"] = "Observe"


TypedAction = Annotated[
    Union[
        RestartDeploymentParams,
        ScaleDeploymentParams,
        RollbackDeploymentParams,
        AdjustResourcesParams,
        DeletePodParams,
        PatchConfigParams,
        ObserveParams,
    ],
    Field(discriminator="action"),
]

_typed_action_adapter = TypeAdapter(TypedAction)


def to_typed_action(action: str, params: dict[str, str]) -> TypedAction:
    """
    Lift a wire-level (action, params) pair into its typed view.

    Args:
        action: Catalog action name
        params: Wire-level string parameters

    Returns:
        The typed parameter model for the action

    Raises:
        pydantic.ValidationError: If the action is unknown or a value rule fails
    """
    payload = dict(params)
    # "action" is the discriminator; a PatchConfig data key of the same
    # name cannot be represented in the typed view
    payload["action"] = str(getattr(action, "value", action))
    return _typed_action_adapter.validate_python(payload)
