"""
Exceptions raised by the step engine.

A failure to *ask* the reasoning model is always an exception. A model
that answered with something unusable is not: that case is returned as a
ParseFailure value, so callers can tell "the model said no" from "we
couldn't ask".
"""


class ReasoningModelError(Exception):
    """
    Raised when the reasoning-model call fails (network, auth, rate limit).

    Attributes:
        cause: The underlying client exception, if any
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class StepTimeoutError(ReasoningModelError):
    """
    Raised when the reasoning-model call exceeds its deadline.

    Attributes:
        timeout: The deadline in seconds that was exceeded
    """

    def __init__(self, timeout: float | None, cause: BaseException | None = None) -> None:
        self.timeout = timeout
        super().__init__(f"Reasoning model call exceeded deadline ({timeout}s)", cause)
