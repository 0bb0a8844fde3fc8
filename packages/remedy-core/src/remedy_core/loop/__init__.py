"""
Caller-side remediation loop.

This module contains:
- driver.py: RemediationLoop, LoopOutcome, summarize_failed_attempts
- collaborators.py: ContextProvider / Actuator protocols and dry-run implementations
"""

from remedy_core.loop.collaborators import (
    Actuator,
    ContextProvider,
    DryRunActuator,
    StaticContextProvider,
)
from remedy_core.loop.driver import (
    LoopOutcome,
    LoopStatus,
    RemediationLoop,
    summarize_failed_attempts,
)

__all__ = [
    "Actuator",
    "ContextProvider",
    "DryRunActuator",
    "LoopOutcome",
    "LoopStatus",
    "RemediationLoop",
    "StaticContextProvider",
    "summarize_failed_attempts",
]
