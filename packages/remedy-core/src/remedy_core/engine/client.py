"""
Reasoning-model client interface and Anthropic implementation.

The engine only depends on ReasoningClient: text in, text out, raise on
failure. Retry/backoff on transient upstream errors belongs to the client
(the Anthropic SDK's own `max_retries`), never to the engine.
"""

import logging
from typing import Protocol, runtime_checkable

import anthropic
from anthropic import AsyncAnthropic

from remedy_core.engine.errors import ReasoningModelError, StepTimeoutError
from remedy_core.engine.prompt import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


@runtime_checkable
class ReasoningClient(Protocol):
    """
    Protocol for the external reasoning model.

    Implementations send one prompt and return the model's text. Any
    failure to obtain a response must raise ReasoningModelError (or a
    subclass); it must never be reported as response text.
    """

    @property
    def model_name(self) -> str:
        """Model identifier reported alongside results."""
        ...

    @property
    def provider(self) -> str:
        """Provider identifier reported alongside results."""
        ...

    async def complete(self, prompt: str, timeout: float | None = None) -> str:
        """
        Send one prompt and return the response text.

        Args:
            prompt: Instruction text from the PromptBuilder
            timeout: Deadline in seconds for this call

        Raises:
            ReasoningModelError: If the call fails
        """
        ...


class AnthropicReasoningClient:
    """
    ReasoningClient backed by the Anthropic Messages API.

    Example:
        client = AnthropicReasoningClient(model="claude-sonnet-4-5")
        text = await client.complete(prompt, timeout=60.0)
    """

    def __init__(
        self,
        anthropic_client: AsyncAnthropic | None = None,
        model: str = "claude-sonnet-4-5",
        max_tokens: int = 4096,
        max_retries: int = 2,
        system: str = SYSTEM_PROMPT,
    ) -> None:
        """
        Initialize the client.

        Args:
            anthropic_client: Optional AsyncAnthropic client (created if None)
            model: Claude model to use
            max_tokens: Completion budget per call
            max_retries: SDK retry count for transient errors (ignored if a
                client is passed in)
            system: System prompt sent with every call
        """
        self.client = anthropic_client or AsyncAnthropic(max_retries=max_retries)
        self.model = model
        self.max_tokens = max_tokens
        self.system = system

    @property
    def model_name(self) -> str:
        return self.model

    @property
    def provider(self) -> str:
        return "anthropic"

    async def complete(self, prompt: str, timeout: float | None = None) -> str:
        """
        Send one prompt to Claude and return the concatenated text blocks.

        Raises:
            StepTimeoutError: If the SDK reports a timeout
            ReasoningModelError: On connection, auth, rate-limit or API errors
        """
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=self.system,
                messages=[{"role": "user", "content": prompt}],
                timeout=timeout,
            )
        except anthropic.APITimeoutError as e:
            raise StepTimeoutError(timeout, cause=e) from e
        except anthropic.RateLimitError as e:
            raise ReasoningModelError(f"Rate limited by reasoning model: {e}", cause=e) from e
        except anthropic.APIConnectionError as e:
            raise ReasoningModelError(f"Connection to reasoning model failed: {e}", cause=e) from e
        except anthropic.APIError as e:
            raise ReasoningModelError(f"Reasoning model API error: {e}", cause=e) from e

        if response.stop_reason == "refusal":
            logger.warning("Reasoning model refused to answer")
        elif response.stop_reason == "max_tokens":
            logger.warning(f"Reasoning model response truncated at {self.max_tokens} tokens")

        return "".join(block.text for block in response.content if block.type == "text")
