"""
Agentic step engine.

This module contains:
- decision.py: Wire-contract models (StepDecision, ActionRequest, IssueAnalysis)
- prompt.py: System prompt and prompt builders
- parser.py: Response parsing with ParseFailure results
- client.py: ReasoningClient protocol and Anthropic implementation
- step.py: The step and analyze_issue operations
- postmortem.py: PostmortemRecord synthesis
- errors.py: ReasoningModelError hierarchy
"""

from remedy_core.engine.client import AnthropicReasoningClient, ReasoningClient
from remedy_core.engine.decision import ActionRequest, IssueAnalysis, StepDecision
from remedy_core.engine.errors import ReasoningModelError, StepTimeoutError
from remedy_core.engine.parser import (
    ParseFailure,
    StepResult,
    as_decision,
    parse_analysis_response,
    parse_step_response,
    strip_code_fence,
)
from remedy_core.engine.postmortem import (
    PostmortemRecord,
    format_postmortem_markdown,
    synthesize_postmortem,
)
from remedy_core.engine.prompt import (
    SYSTEM_PROMPT,
    build_analysis_prompt,
    build_step_prompt,
    truncate_context,
)
from remedy_core.engine.step import analyze_issue, step

__all__ = [
    # Wire contract
    "ActionRequest",
    "IssueAnalysis",
    "StepDecision",
    # Prompt building
    "SYSTEM_PROMPT",
    "build_analysis_prompt",
    "build_step_prompt",
    "truncate_context",
    # Parsing
    "ParseFailure",
    "StepResult",
    "as_decision",
    "parse_analysis_response",
    "parse_step_response",
    "strip_code_fence",
    # Client
    "AnthropicReasoningClient",
    "ReasoningClient",
    "ReasoningModelError",
    "StepTimeoutError",
    # Operations
    "analyze_issue",
    "step",
    # Postmortem
    "PostmortemRecord",
    "format_postmortem_markdown",
    "synthesize_postmortem",
]
