"""
Remedy Core Library

Agentic step engine for autonomous incident remediation. This package
provides:

- Action catalog: the fixed, versioned vocabulary of remediation actions
- Step engine: prompt building, model call, decision parsing
- Postmortem synthesis for resolved issues
- A reference remediation loop with audit logging
- RPC service and Typer-based CLI
"""

__version__ = "0.1.0"

from remedy_core.actions import (
    DEFAULT_CATALOG,
    ActionCatalog,
    ActionName,
    ValidationError,
    validate_action,
)
from remedy_core.engine import (
    ActionRequest,
    AnthropicReasoningClient,
    IssueAnalysis,
    ParseFailure,
    PostmortemRecord,
    ReasoningClient,
    ReasoningModelError,
    StepDecision,
    StepTimeoutError,
    analyze_issue,
    step,
    synthesize_postmortem,
)
from remedy_core.types import IssueContext, RemediationStep, StepHistory

__all__ = [
    "__version__",
    # Data types
    "IssueContext",
    "RemediationStep",
    "StepHistory",
    # Action catalog
    "ActionCatalog",
    "ActionName",
    "DEFAULT_CATALOG",
    "ValidationError",
    "validate_action",
    # Engine
    "ActionRequest",
    "AnthropicReasoningClient",
    "IssueAnalysis",
    "ParseFailure",
    "PostmortemRecord",
    "ReasoningClient",
    "ReasoningModelError",
    "StepDecision",
    "StepTimeoutError",
    "analyze_issue",
    "step",
    "synthesize_postmortem",
]
